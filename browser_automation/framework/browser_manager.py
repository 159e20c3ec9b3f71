"""
================================================================================
Browser Manager
================================================================================

Browser and session lifecycle management for UI automation.

Features:
    - One browser / context / page per manager, launched lazily
    - Session tracking with an idle timeout (cancel + reschedule on activity)
    - Best-effort teardown that always leaves a clean slate for the next launch
    - Storage clearing and context reset between test runs
    - Console / error observability in development mode

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from browser_automation.common import Settings, utc_now_iso
from browser_automation.framework.viewport import ViewportSpec, get_viewport, validate_viewport
from browser_automation.observability import ConsoleLogger, ErrorTracker


# Exposes an empty state-bridge registry; the application pushes its stores
# into it on startup.
STATE_BRIDGE_INIT_SCRIPT = """
if (!window.__REDUX_DEVTOOLS_EXTENSION__) {
  window.__REDUX_DEVTOOLS_EXTENSION__ = { stores: [] };
} else if (!window.__REDUX_DEVTOOLS_EXTENSION__.stores) {
  window.__REDUX_DEVTOOLS_EXTENSION__.stores = [];
}
"""

CLEAR_WEB_STORAGE_SCRIPT = """
async () => {
  try { window.localStorage.clear(); } catch (e) {}
  try { window.sessionStorage.clear(); } catch (e) {}
  let indexedDbCleared = false;
  if (window.indexedDB && typeof window.indexedDB.databases === 'function') {
    const databases = await window.indexedDB.databases();
    await Promise.all(databases.map((db) => new Promise((resolve) => {
      const request = window.indexedDB.deleteDatabase(db.name);
      request.onsuccess = request.onerror = request.onblocked = () => resolve();
    })));
    indexedDbCleared = true;
  }
  return {
    localStorage: window.localStorage ? window.localStorage.length : 0,
    sessionStorage: window.sessionStorage ? window.sessionStorage.length : 0,
    indexedDbCleared,
  };
}
"""


class SessionState(str, Enum):
    """Lifecycle state of the automation session."""
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class Session:
    """A bounded span of browser activity terminated by an idle timeout."""
    id: str
    created_at: str
    last_activity: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "lastActivity": self.last_activity,
            "url": self.url,
        }


@dataclass
class BrowserStatus:
    """Point-in-time view of the manager, produced without side effects."""
    running: bool
    connected: bool
    current_url: Optional[str]
    state: SessionState
    session: Optional[Session] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "connected": self.connected,
            "currentUrl": self.current_url,
            "state": self.state.value,
            "session": self.session.to_dict() if self.session else None,
        }


class BrowserManager:
    """
    Owns one automation browser and page for the lifetime of a session.

    The first get_page() call launches the browser (if needed) and starts a
    session; every call records activity and re-arms the idle timer. When
    no activity happens for ``session_timeout`` milliseconds the session is
    ended and the browser closed.

    Usage:
        async with BrowserManager(settings) as manager:
            page = await manager.get_page()
            await page.goto("http://localhost:3000")

        # Or long-lived, owned by the control API
        manager = BrowserManager(settings)
        page = await manager.get_page()
        ...
        await manager.close()
    """

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        settings: Optional[Settings] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        """
        Initialize browser manager.

        Args:
            settings: Browser / session settings. Defaults are used if omitted.
            playwright_factory: Callable returning an object with an async
                ``start()``; injectable so tests can run without a browser.
        """
        self.settings = settings or Settings()
        self._playwright_factory = playwright_factory

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self._session: Optional[Session] = None
        self._last_activity_at: float = 0.0
        self._idle_task: Optional[asyncio.Task] = None
        self._launch_lock = asyncio.Lock()

        self._console_logger: Optional[ConsoleLogger] = None
        self._error_tracker: Optional[ErrorTracker] = None

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry - launch browser."""
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close browser."""
        await self.close()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def launch(self) -> None:
        """
        Start Playwright and launch the browser.

        No-op when a browser is already running. Failures propagate after
        whatever was partially started has been released.
        """
        async with self._launch_lock:
            if self._browser is not None:
                if self._page is None:
                    await self._open_page()
                return

            try:
                self._playwright = await self._playwright_factory().start()

                if self.settings.browser_type == "firefox":
                    browser_launcher = self._playwright.firefox
                elif self.settings.browser_type == "webkit":
                    browser_launcher = self._playwright.webkit
                else:
                    browser_launcher = self._playwright.chromium

                launch_options = {
                    "headless": self.settings.headless,
                    "args": list(self.settings.launch_args),
                }
                self._browser = await browser_launcher.launch(**launch_options)
                await self._open_page()
            except Exception:
                logger.exception("Browser launch failed")
                await self._release()
                raise

        logger.info(
            f"Browser launched: {self.settings.browser_type} "
            f"(headless={self.settings.headless})"
        )

    async def _open_page(self) -> None:
        context_options = {
            **self.DEFAULT_CONTEXT_OPTIONS,
            "viewport": self.settings.viewport,
        }
        if self.settings.user_agent:
            context_options["user_agent"] = self.settings.user_agent

        self._context = await self._browser.new_context(**context_options)
        await self._context.add_init_script(STATE_BRIDGE_INIT_SCRIPT)
        self._page = await self._context.new_page()
        self._page.set_default_timeout(self.settings.action_timeout)
        self._page.set_default_navigation_timeout(self.settings.navigation_timeout)

        if self.settings.dev_mode:
            self._attach_observability()

    def _attach_observability(self) -> None:
        self._console_logger = ConsoleLogger(self._page, self.settings.console_max_entries)
        self._error_tracker = ErrorTracker(self._page, self.settings.error_max_entries)
        logger.debug("Observability attached (development mode)")

    def _detach_observability(self) -> None:
        for component in (self._console_logger, self._error_tracker):
            if component is None:
                continue
            try:
                component.detach()
            except Exception as e:
                logger.warning(f"Failed to detach {type(component).__name__}: {e}")
        self._console_logger = None
        self._error_tracker = None

    async def get_page(self) -> Page:
        """
        Get the automation page, launching and starting a session on demand.

        Every call counts as activity and re-arms the idle timer.

        Returns:
            The single managed Page
        """
        if self._page is None or self._page.is_closed():
            if self._page is not None:
                logger.warning("Page was closed externally, relaunching browser")
                await self.close()
            await self.launch()

        if self._session is None:
            self._start_session()

        self.touch()
        return self._page

    async def restart(self) -> None:
        """Close and relaunch the browser (crash recovery)."""
        logger.info("Restarting browser")
        await self.close()
        await self.launch()

    async def close(self) -> None:
        """
        Release page, context, browser and Playwright, in that order.

        Every step is best-effort: failures are logged, never raised, and all
        references are cleared so the next launch() starts clean.
        """
        self._cancel_idle_timer()
        self._detach_observability()

        steps = (
            ("page", self._page, "close"),
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._playwright, "stop"),
        )
        for label, target, method in steps:
            if target is None:
                continue
            try:
                await getattr(target, method)()
            except Exception as e:
                logger.warning(f"Error closing {label}: {e}")

        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        self._session = None
        logger.debug("Browser closed")

    async def _release(self) -> None:
        """Drop a partially launched browser without touching the session."""
        session = self._session
        await self.close()
        self._session = session

    # =========================================================================
    # Session / idle timeout
    # =========================================================================

    def _start_session(self) -> None:
        now = utc_now_iso()
        self._session = Session(
            id=f"session-{int(time.time() * 1000)}",
            created_at=now,
            last_activity=now,
            url=self._page.url if self._page else None,
        )
        logger.info(f"Session started: {self._session.id}")

    def touch(self) -> None:
        """Record activity on the current session and re-arm the idle timer."""
        if self._session is None:
            return
        self._last_activity_at = time.monotonic()
        self._session.last_activity = utc_now_iso()
        if self._page is not None:
            self._session.url = self._page.url
        self._schedule_idle_timer(self.settings.session_timeout / 1000)

    def _schedule_idle_timer(self, delay: float) -> None:
        self._cancel_idle_timer()
        self._idle_task = asyncio.ensure_future(self._idle_watch(delay))

    def _cancel_idle_timer(self) -> None:
        task = self._idle_task
        self._idle_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _idle_watch(self, delay: float) -> None:
        await asyncio.sleep(delay)

        timeout = self.settings.session_timeout / 1000
        inactive_for = time.monotonic() - self._last_activity_at
        if self._session is None:
            return
        if inactive_for < timeout:
            # Woke marginally early; wait out the remainder
            self._schedule_idle_timer(timeout - inactive_for)
            return

        logger.info(
            f"Session {self._session.id} idle for {inactive_for:.1f}s, ending session"
        )
        await self.end_session()

    async def end_session(self) -> None:
        """End the current session and close the browser."""
        if self._session is not None:
            logger.info(f"Session ended: {self._session.id}")
        self._session = None
        await self.close()

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self._session is not None else SessionState.IDLE

    @property
    def session(self) -> Optional[Session]:
        return self._session

    # =========================================================================
    # Status / accessors
    # =========================================================================

    def get_status(self) -> BrowserStatus:
        """Report running / connected / current URL / session without side effects."""
        connected = False
        if self._browser is not None:
            try:
                connected = self._browser.is_connected()
            except Exception:
                connected = False

        current_url = None
        if self._page is not None and not self._page.is_closed():
            current_url = self._page.url

        return BrowserStatus(
            running=self._browser is not None,
            connected=connected,
            current_url=current_url,
            state=self.state,
            session=self._session,
        )

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    @property
    def page(self) -> Optional[Page]:
        """The current page without launching or recording activity."""
        return self._page

    @property
    def context(self) -> Optional[BrowserContext]:
        return self._context

    @property
    def console_logger(self) -> Optional[ConsoleLogger]:
        return self._console_logger

    @property
    def error_tracker(self) -> Optional[ErrorTracker]:
        return self._error_tracker

    # =========================================================================
    # Storage / context management
    # =========================================================================

    async def clear_storage(self) -> Dict[str, Any]:
        """
        Clear cookies, localStorage, sessionStorage and IndexedDB.

        Returns:
            Remaining item counts after clearing, for verification
        """
        page = await self.get_page()
        await self._context.clear_cookies()
        remaining = await page.evaluate(CLEAR_WEB_STORAGE_SCRIPT)
        cookies = await self._context.cookies()

        result = {
            "cookies": len(cookies),
            "localStorage": remaining.get("localStorage", 0),
            "sessionStorage": remaining.get("sessionStorage", 0),
            "indexedDbCleared": remaining.get("indexedDbCleared", False),
        }
        result["cleared"] = (
            result["cookies"] == 0
            and result["localStorage"] == 0
            and result["sessionStorage"] == 0
        )
        logger.info(f"Storage cleared: {result}")
        return result

    async def reset_context(self) -> Page:
        """
        Replace the browser context and page with fresh ones.

        The session is kept; only storage and page state are discarded.
        """
        if self._browser is None:
            return await self.get_page()

        self._detach_observability()
        for label, target in (("page", self._page), ("context", self._context)):
            if target is None:
                continue
            try:
                await target.close()
            except Exception as e:
                logger.warning(f"Error closing {label} during reset: {e}")
        self._page = None
        self._context = None

        await self._open_page()
        logger.info("Browser context reset")
        return await self.get_page()

    async def set_viewport(self, spec: ViewportSpec) -> Dict[str, Any]:
        """
        Resize the page to a preset or custom viewport.

        Raises:
            ValueError: If a custom size is outside the supported bounds
        """
        size = get_viewport(spec)
        problem = validate_viewport(size)
        if problem:
            raise ValueError(problem)

        page = await self.get_page()
        await page.set_viewport_size(size.playwright_size())
        return size.to_dict()


__all__ = [
    "BrowserManager",
    "BrowserStatus",
    "Session",
    "SessionState",
    "STATE_BRIDGE_INIT_SCRIPT",
]

"""
Explicit application context for the control API.

Everything a route needs (settings, the browser manager, map repositories,
the screenshot manager, rate limiters) hangs off one object stored on
``app.state.context``; tests build their own with fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from playwright.async_api import async_playwright

from browser_automation.common import Settings
from browser_automation.framework.browser_manager import BrowserManager
from browser_automation.framework.screenshots import ScreenshotManager
from browser_automation.maps.element_map import ElementMapRepository
from browser_automation.maps.store_map import StoreInspector, StoreMapRepository
from browser_automation.server.security import RateLimiter


@dataclass
class AutomationContext:
    settings: Settings
    manager: BrowserManager
    element_maps: ElementMapRepository
    store_maps: StoreMapRepository
    screenshots: ScreenshotManager
    limiters: Dict[str, RateLimiter] = field(default_factory=dict)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> "AutomationContext":
        settings = settings or Settings.from_config()
        return cls(
            settings=settings,
            manager=BrowserManager(settings, playwright_factory=playwright_factory),
            element_maps=ElementMapRepository(settings.element_maps_dir),
            store_maps=StoreMapRepository(settings.store_maps_dir),
            screenshots=ScreenshotManager(settings.screenshots_dir),
            limiters={
                "console": RateLimiter("console", settings.console_rate_limit),
                "errors": RateLimiter("errors", settings.errors_rate_limit),
                "snapshot": RateLimiter("snapshot", settings.snapshot_rate_limit),
            },
        )

    def app_name(self, app: Optional[str]) -> str:
        return app or self.settings.default_app

    async def store_inspector(self, app: Optional[str] = None) -> StoreInspector:
        store_map = self.store_maps.load(self.app_name(app))
        page = await self.manager.get_page()
        return StoreInspector(page, store_map, dev_mode=self.settings.dev_mode)

    async def shutdown(self) -> None:
        await self.manager.close()


def get_context(request: Request) -> AutomationContext:
    """FastAPI dependency returning the context of the running app."""
    return request.app.state.context


__all__ = ["AutomationContext", "get_context"]

"""
================================================================================
Page Navigation
================================================================================

Navigation helpers over the managed page: go to URL, back, reload and
current location. Navigation timeouts are raised as WaitTimeoutError so the
control API can answer 408 with the elapsed time.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import allure
from loguru import logger
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_automation.common import ActionFailedError, WaitTimeoutError
from browser_automation.framework.element_actions import error_message
from browser_automation.framework.wait_helpers import elapsed_ms


LOAD_STATES = ("load", "domcontentloaded", "networkidle", "commit")


@dataclass
class NavigationResult:
    """Where the page ended up after a navigation."""
    success: bool
    current_url: str
    title: str
    status: Optional[int] = None
    elapsed: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "currentUrl": self.current_url,
            "title": self.title,
            "status": self.status,
            "elapsed": self.elapsed,
        }


class PageNavigator:
    """
    Navigation operations bound to a page.

    Usage:
        navigator = PageNavigator(page)
        result = await navigator.navigate("http://localhost:3000", wait_until="networkidle")
    """

    def __init__(self, page: Page, default_timeout: int = 30000):
        self.page = page
        self.default_timeout = default_timeout

    async def _result(self, started: float, response: Any = None) -> NavigationResult:
        return NavigationResult(
            success=True,
            current_url=self.page.url,
            title=await self.page.title(),
            status=response.status if response is not None else None,
            elapsed=elapsed_ms(started),
        )

    async def navigate(
        self,
        url: str,
        wait_until: str = "load",
        timeout: Optional[int] = None,
    ) -> NavigationResult:
        """
        Navigate to a URL.

        Args:
            url: Absolute URL
            wait_until: load | domcontentloaded | networkidle | commit
            timeout: Budget in milliseconds

        Raises:
            ValueError: Unknown wait_until value
            WaitTimeoutError: Navigation exceeded its budget
            ActionFailedError: Navigation failed (DNS, refused connection, ...)
        """
        if wait_until not in LOAD_STATES:
            raise ValueError(f"wait_until must be one of {', '.join(LOAD_STATES)}")
        timeout = self.default_timeout if timeout is None else timeout

        started = time.monotonic()
        with allure.step(f"Navigate to {url}"):
            try:
                response = await self.page.goto(url, wait_until=wait_until, timeout=timeout)
            except PlaywrightTimeoutError as e:
                raise WaitTimeoutError(
                    f"Navigation to {url} timed out: {error_message(e)}",
                    elapsed=elapsed_ms(started),
                ) from e
            except Exception as e:
                raise ActionFailedError(f"Navigation to {url} failed: {error_message(e)}") from e

        logger.debug(f"Navigated to: {self.page.url}")
        return await self._result(started, response)

    async def current(self) -> NavigationResult:
        return NavigationResult(True, self.page.url, await self.page.title())

    async def back(self, timeout: Optional[int] = None) -> NavigationResult:
        started = time.monotonic()
        with allure.step("Navigate back"):
            try:
                response = await self.page.go_back(
                    timeout=self.default_timeout if timeout is None else timeout
                )
            except PlaywrightTimeoutError as e:
                raise WaitTimeoutError(
                    f"Navigating back timed out: {error_message(e)}", elapsed=elapsed_ms(started)
                ) from e
            except Exception as e:
                raise ActionFailedError(f"Navigating back failed: {error_message(e)}") from e
        return await self._result(started, response)

    async def reload(self, wait_until: str = "load", timeout: Optional[int] = None) -> NavigationResult:
        if wait_until not in LOAD_STATES:
            raise ValueError(f"wait_until must be one of {', '.join(LOAD_STATES)}")

        started = time.monotonic()
        with allure.step("Reload page"):
            try:
                response = await self.page.reload(
                    wait_until=wait_until,
                    timeout=self.default_timeout if timeout is None else timeout,
                )
            except PlaywrightTimeoutError as e:
                raise WaitTimeoutError(
                    f"Reload timed out: {error_message(e)}", elapsed=elapsed_ms(started)
                ) from e
            except Exception as e:
                raise ActionFailedError(f"Reload failed: {error_message(e)}") from e
        return await self._result(started, response)

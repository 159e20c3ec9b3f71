"""
================================================================================
Assertion Library
================================================================================

Assertions available to test bodies as ``ctx.assertions``.

DOM assertions go through ElementActions / PageWaiter on the managed page;
store assertions go through StoreInspector. Every failed assertion raises
AssertionFailure, which the runner records as a FAILED test.

Groups:
    - DOM:        element_exists / visible / hidden / enabled / disabled /
                  count, text_contains / text_equals, attribute_equals
    - Page:       url_equals / url_contains, title_equals / title_contains
    - Screenshot: screenshot_captured, screenshot_path, screenshot_size
    - Store:      store_equals / truthy / falsy / contains / length,
                  store_eventually_equals

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import allure
from loguru import logger

from browser_automation.framework.browser_manager import BrowserManager
from browser_automation.framework.element_actions import ElementActions
from browser_automation.framework.screenshots import ScreenshotResult
from browser_automation.framework.wait_helpers import PageWaiter
from browser_automation.maps.comparison import deep_equal, js_truthy
from browser_automation.maps.store_map import StoreInspector, StoreMap
from browser_automation.runner.constants import POLLING, TEST_TIMEOUTS


class AssertionFailure(AssertionError):
    """A failed assertion with optional structured details."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class Assertions:
    """
    Assertion helpers bound to one BrowserManager.

    Example:
        assertions = Assertions(manager, store_map=store_repo.load("cv-builder"))
        await assertions.element_visible("[data-testid='tab-bio']")
        await assertions.store_eventually_equals("activeTab", "bio")
    """

    def __init__(
        self,
        manager: BrowserManager,
        store_map: Optional[StoreMap] = None,
        dev_mode: bool = False,
        timeout: float = TEST_TIMEOUTS.ELEMENT_VISIBLE,
    ):
        self.manager = manager
        self.store_map = store_map
        self.dev_mode = dev_mode
        self.timeout = timeout

    @staticmethod
    def _fail(message: str, **details: Any) -> None:
        logger.error(f"Assertion failed: {message}")
        raise AssertionFailure(message, **details)

    async def _actions(self) -> ElementActions:
        return ElementActions(await self.manager.get_page())

    async def _store(self) -> StoreInspector:
        if self.store_map is None:
            raise RuntimeError("Store assertions require a store map")
        return StoreInspector(await self.manager.get_page(), self.store_map, self.dev_mode)

    # =========================================================================
    # DOM
    # =========================================================================

    async def element_exists(self, selector: str) -> None:
        with allure.step(f"Assert element exists: {selector}"):
            count = await (await self._actions()).element_count(selector)
            if count == 0:
                self._fail(f"Expected element to exist: {selector}", selector=selector)

    async def element_visible(self, selector: str, timeout: Optional[float] = None) -> None:
        with allure.step(f"Assert element visible: {selector}"):
            waiter = PageWaiter(await self.manager.get_page())
            result = await waiter.wait_for_element(selector, "visible", timeout or self.timeout)
            if not result.success:
                self._fail(
                    f"Expected element to be visible: {selector} ({result.error})",
                    selector=selector,
                )

    async def element_hidden(self, selector: str, timeout: Optional[float] = None) -> None:
        with allure.step(f"Assert element hidden: {selector}"):
            waiter = PageWaiter(await self.manager.get_page())
            result = await waiter.wait_for_element(selector, "hidden", timeout or self.timeout)
            if not result.success:
                self._fail(f"Expected element to be hidden: {selector}", selector=selector)

    async def _enabled_state(self, selector: str) -> bool:
        result = await (await self._actions()).is_enabled(selector)
        if not result.element_found:
            self._fail(f"Element not found: {selector}", selector=selector)
        if not result.success:
            self._fail(f"Could not read enabled state of {selector}: {result.error}", selector=selector)
        return bool(result.value)

    async def element_enabled(self, selector: str) -> None:
        with allure.step(f"Assert element enabled: {selector}"):
            if not await self._enabled_state(selector):
                self._fail(f"Expected element to be enabled: {selector}", selector=selector)

    async def element_disabled(self, selector: str) -> None:
        with allure.step(f"Assert element disabled: {selector}"):
            if await self._enabled_state(selector):
                self._fail(f"Expected element to be disabled: {selector}", selector=selector)

    async def element_count(self, selector: str, expected: int) -> None:
        with allure.step(f"Assert {expected} element(s): {selector}"):
            count = await (await self._actions()).element_count(selector)
            if count != expected:
                self._fail(
                    f"Expected {expected} element(s) for {selector}, found {count}",
                    selector=selector,
                    expected=expected,
                    actual=count,
                )

    async def _text(self, selector: str) -> str:
        result = await (await self._actions()).get_text(selector)
        if not result.element_found:
            self._fail(f"Element not found: {selector}", selector=selector)
        if not result.success:
            self._fail(f"Could not read text of {selector}: {result.error}", selector=selector)
        return (result.value or "").strip()

    async def text_contains(self, selector: str, text: str) -> None:
        with allure.step(f"Assert text of {selector} contains '{text}'"):
            actual = await self._text(selector)
            if text not in actual:
                self._fail(
                    f"Expected text of {selector} to contain '{text}', got '{actual}'",
                    expected=text,
                    actual=actual,
                )

    async def text_equals(self, selector: str, text: str) -> None:
        with allure.step(f"Assert text of {selector} equals '{text}'"):
            actual = await self._text(selector)
            if actual != text:
                self._fail(
                    f"Expected text of {selector} to equal '{text}', got '{actual}'",
                    expected=text,
                    actual=actual,
                )

    async def attribute_equals(self, selector: str, name: str, expected: Optional[str]) -> None:
        with allure.step(f"Assert {selector}[{name}] == '{expected}'"):
            result = await (await self._actions()).get_attribute(selector, name)
            if not result.element_found:
                self._fail(f"Element not found: {selector}", selector=selector)
            if result.value != expected:
                self._fail(
                    f"Expected attribute '{name}' of {selector} to equal '{expected}', "
                    f"got '{result.value}'",
                    expected=expected,
                    actual=result.value,
                )

    # =========================================================================
    # Page
    # =========================================================================

    async def url_equals(self, expected: str) -> None:
        with allure.step(f"Assert URL equals {expected}"):
            actual = (await self.manager.get_page()).url
            if actual != expected:
                self._fail(f"Expected URL '{expected}', got '{actual}'", expected=expected, actual=actual)

    async def url_contains(self, fragment: str) -> None:
        with allure.step(f"Assert URL contains {fragment}"):
            actual = (await self.manager.get_page()).url
            if fragment not in actual:
                self._fail(f"Expected URL to contain '{fragment}', got '{actual}'", actual=actual)

    async def title_equals(self, expected: str) -> None:
        with allure.step(f"Assert title equals '{expected}'"):
            actual = await (await self.manager.get_page()).title()
            if actual != expected:
                self._fail(f"Expected title '{expected}', got '{actual}'", expected=expected, actual=actual)

    async def title_contains(self, fragment: str) -> None:
        with allure.step(f"Assert title contains '{fragment}'"):
            actual = await (await self.manager.get_page()).title()
            if fragment not in actual:
                self._fail(f"Expected title to contain '{fragment}', got '{actual}'", actual=actual)

    # =========================================================================
    # Screenshots
    # =========================================================================

    def screenshot_captured(self, result: ScreenshotResult) -> None:
        if not result.success:
            self._fail(f"Screenshot capture failed: {result.error}")

    def screenshot_path(self, result: ScreenshotResult, contains: Optional[str] = None) -> None:
        """The capture succeeded, its file exists and (optionally) its path contains a fragment."""
        self.screenshot_captured(result)
        if not result.path or not Path(result.path).is_file():
            self._fail(f"Screenshot file does not exist: {result.path}")
        if contains is not None and contains not in result.path:
            self._fail(f"Expected screenshot path to contain '{contains}', got '{result.path}'")

    def screenshot_size(self, result: ScreenshotResult, min_bytes: int = 1) -> None:
        self.screenshot_captured(result)
        if result.file_size < min_bytes:
            self._fail(
                f"Expected screenshot of at least {min_bytes} bytes, got {result.file_size}",
                expected=min_bytes,
                actual=result.file_size,
            )

    # =========================================================================
    # Store
    # =========================================================================

    async def store_equals(self, query: str, expected: Any) -> None:
        with allure.step(f"Assert store {query} == {expected!r}"):
            actual = await (await self._store()).query_store(query)
            if not deep_equal(actual, expected):
                self._fail(
                    f"Expected store query '{query}' to equal {expected!r}, got {actual!r}",
                    expected=expected,
                    actual=actual,
                )

    async def store_truthy(self, query: str) -> None:
        with allure.step(f"Assert store {query} is truthy"):
            actual = await (await self._store()).query_store(query)
            if not js_truthy(actual):
                self._fail(f"Expected store query '{query}' to be truthy, got {actual!r}", actual=actual)

    async def store_falsy(self, query: str) -> None:
        with allure.step(f"Assert store {query} is falsy"):
            actual = await (await self._store()).query_store(query)
            if js_truthy(actual):
                self._fail(f"Expected store query '{query}' to be falsy, got {actual!r}", actual=actual)

    async def store_contains(self, query: str, item: Any) -> None:
        """Arrays contain a deep-equal element; strings contain a substring."""
        with allure.step(f"Assert store {query} contains {item!r}"):
            actual = await (await self._store()).query_store(query)
            if isinstance(actual, str) and isinstance(item, str):
                found = item in actual
            elif isinstance(actual, list):
                found = any(deep_equal(element, item) for element in actual)
            else:
                self._fail(
                    f"Store query '{query}' is not an array or string: {actual!r}",
                    actual=actual,
                )
            if not found:
                self._fail(
                    f"Expected store query '{query}' to contain {item!r}, got {actual!r}",
                    expected=item,
                    actual=actual,
                )

    async def store_length(self, query: str, expected: int) -> None:
        with allure.step(f"Assert store {query} has length {expected}"):
            actual = await (await self._store()).query_store(query)
            if not isinstance(actual, (list, str)):
                self._fail(f"Store query '{query}' has no length: {actual!r}", actual=actual)
            if len(actual) != expected:
                self._fail(
                    f"Expected store query '{query}' to have length {expected}, got {len(actual)}",
                    expected=expected,
                    actual=len(actual),
                )

    async def store_eventually_equals(
        self,
        query: str,
        expected: Any,
        timeout: float = TEST_TIMEOUTS.MEDIUM,
        poll_interval: float = POLLING.DEFAULT,
    ) -> None:
        """Wait for the query to equal ``expected``; fails with the last observed value."""
        inspector = await self._store()
        result = await inspector.wait_for_store_state(query, expected, timeout, poll_interval)
        if not result.success:
            self._fail(
                f"Store query '{query}' did not equal {expected!r} within {timeout}ms "
                f"(last value: {result.actual_value!r})",
                expected=expected,
                actual=result.actual_value,
                elapsed=result.elapsed,
            )


__all__ = ["AssertionFailure", "Assertions"]

# ================================================================================
# Element Actions Module
# ================================================================================
#
# Uniform interaction and query primitives over the managed page.
#
# Every interaction follows the same sequence:
#   locate first match -> require count > 0 -> wait for visibility -> act
#
# and returns an InteractionResult instead of raising:
#   element_found=False                 selector matched nothing    (API 404)
#   element_found=True, success=False   matched, operation failed   (API 500)
#
# Key Features:
#   - Click / type / fill / hover / key press / select / check
#   - Element queries (exists, count, text, attribute, visible, enabled)
#   - Allure step integration
#
# ================================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import allure
from loguru import logger
from playwright.async_api import Locator, Page


DEFAULT_ACTION_TIMEOUT = 30000


def error_message(error: BaseException) -> str:
    """First line of a Playwright error (drops the call log)."""
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    return message.strip().split("\n", 1)[0]


@dataclass
class InteractionResult:
    """Outcome of a single element interaction."""
    success: bool
    element_found: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "elementFound": self.element_found}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class QueryResult:
    """Outcome of a read-only element query."""
    success: bool
    element_found: bool
    value: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "elementFound": self.element_found,
            "value": self.value,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


class ElementActions:
    """
    Interaction and query primitives bound to a Playwright page.

    No method raises past its boundary; driver exceptions are converted
    into the structured result.

    Example:
        actions = ElementActions(page)
        result = await actions.click("button#submit")
        if not result.element_found:
            ...
    """

    def __init__(self, page: Page, default_timeout: int = DEFAULT_ACTION_TIMEOUT):
        """
        Initialize ElementActions with a Playwright page.

        Args:
            page: Playwright Page object
            default_timeout: Default wait timeout in milliseconds
        """
        self.page = page
        self.default_timeout = default_timeout

    async def _perform(
        self,
        action: str,
        selector: str,
        operation: Callable[[Locator, int], Awaitable[Any]],
        timeout: Optional[int] = None,
        state: str = "visible",
    ) -> InteractionResult:
        timeout = self.default_timeout if timeout is None else timeout

        with allure.step(f"{action}: {selector}"):
            try:
                locator = self.page.locator(selector).first
                count = await locator.count()
            except Exception as e:
                logger.warning(f"{action} failed to locate {selector}: {error_message(e)}")
                return InteractionResult(False, False, error_message(e))

            if count == 0:
                logger.warning(f"{action}: element not found: {selector}")
                return InteractionResult(False, False, f"Element not found: {selector}")

            try:
                await locator.wait_for(state=state, timeout=timeout)
                await operation(locator, timeout)
            except Exception as e:
                logger.warning(f"{action} failed on {selector}: {error_message(e)}")
                return InteractionResult(False, True, error_message(e))

        logger.debug(f"{action} succeeded: {selector}")
        return InteractionResult(True, True)

    # =========================================================================
    # Interactions
    # =========================================================================

    async def click(
        self,
        selector: str,
        button: str = "left",
        click_count: int = 1,
        delay: float = 0,
        force: bool = False,
        position: Optional[Dict[str, float]] = None,
        timeout: Optional[int] = None,
    ) -> InteractionResult:
        """
        Click an element.

        Args:
            selector: CSS / Playwright selector
            button: "left", "right" or "middle"
            click_count: 2 for double click
            delay: Milliseconds between mousedown and mouseup
            force: Skip actionability checks
            position: Click offset relative to the element's top-left corner
            timeout: Visibility and actionability wait in milliseconds
        """
        options: Dict[str, Any] = {
            "button": button,
            "click_count": click_count,
            "delay": delay,
            "force": force,
        }
        if position:
            options["position"] = position
        return await self._perform(
            "Click", selector, lambda loc, t: loc.click(**options, timeout=t), timeout
        )

    async def type_text(
        self,
        selector: str,
        text: str,
        delay: float = 0,
        clear: bool = False,
        timeout: Optional[int] = None,
    ) -> InteractionResult:
        """Type text key by key, optionally clearing the field first."""

        async def operation(locator: Locator, timeout: int) -> None:
            if clear:
                await locator.clear(timeout=timeout)
            await locator.press_sequentially(text, delay=delay, timeout=timeout)

        return await self._perform("Type", selector, operation, timeout)

    async def fill(
        self,
        selector: str,
        value: str,
        timeout: Optional[int] = None,
    ) -> InteractionResult:
        """Replace the field's value in one step."""
        return await self._perform("Fill", selector, lambda loc, t: loc.fill(value, timeout=t), timeout)

    async def hover(self, selector: str, timeout: Optional[int] = None) -> InteractionResult:
        return await self._perform("Hover", selector, lambda loc, t: loc.hover(timeout=t), timeout)

    async def press_key(
        self,
        key: str,
        selector: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> InteractionResult:
        """
        Press a key on an element, or on the focused element when no selector is given.

        Args:
            key: Key name, e.g. "Enter", "Control+A"
            selector: Target element (optional)
            timeout: Visibility and actionability wait in milliseconds
        """
        if selector:
            return await self._perform(
                f"Press {key}", selector, lambda loc, t: loc.press(key, timeout=t), timeout
            )

        with allure.step(f"Press {key}"):
            try:
                await self.page.keyboard.press(key)
            except Exception as e:
                logger.warning(f"Press {key} failed: {error_message(e)}")
                return InteractionResult(False, True, error_message(e))
        return InteractionResult(True, True)

    async def select_option(
        self,
        selector: str,
        value: Optional[Union[str, List[str]]] = None,
        label: Optional[Union[str, List[str]]] = None,
        index: Optional[Union[int, List[int]]] = None,
        timeout: Optional[int] = None,
    ) -> InteractionResult:
        """Select option(s) of a <select> by value, label or index."""
        options: Dict[str, Any] = {}
        if value is not None:
            options["value"] = value
        if label is not None:
            options["label"] = label
        if index is not None:
            options["index"] = index

        return await self._perform(
            "Select", selector, lambda loc, t: loc.select_option(**options, timeout=t), timeout
        )

    async def set_checked(
        self,
        selector: str,
        checked: bool = True,
        timeout: Optional[int] = None,
    ) -> InteractionResult:
        """Check or uncheck a checkbox / radio."""
        return await self._perform(
            "Check" if checked else "Uncheck",
            selector,
            lambda loc, t: loc.set_checked(checked, timeout=t),
            timeout,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def _query(
        self,
        selector: str,
        read: Callable[[Locator], Awaitable[Any]],
    ) -> QueryResult:
        try:
            locator = self.page.locator(selector).first
            if await locator.count() == 0:
                return QueryResult(False, False, None, f"Element not found: {selector}")
            return QueryResult(True, True, await read(locator))
        except Exception as e:
            logger.warning(f"Query failed on {selector}: {error_message(e)}")
            return QueryResult(False, True, None, error_message(e))

    async def element_count(self, selector: str) -> int:
        """Number of elements matching the selector (0 on selector errors)."""
        try:
            return await self.page.locator(selector).count()
        except Exception as e:
            logger.warning(f"Count failed on {selector}: {error_message(e)}")
            return 0

    async def element_exists(self, selector: str) -> QueryResult:
        count = await self.element_count(selector)
        return QueryResult(True, count > 0, count)

    async def get_text(self, selector: str) -> QueryResult:
        return await self._query(selector, lambda loc: loc.text_content())

    async def get_attribute(self, selector: str, name: str) -> QueryResult:
        return await self._query(selector, lambda loc: loc.get_attribute(name))

    async def is_visible(self, selector: str) -> QueryResult:
        return await self._query(selector, lambda loc: loc.is_visible())

    async def is_enabled(self, selector: str) -> QueryResult:
        return await self._query(selector, lambda loc: loc.is_enabled())


__all__ = [
    "ElementActions",
    "InteractionResult",
    "QueryResult",
    "DEFAULT_ACTION_TIMEOUT",
    "error_message",
]

# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Polling and page wait strategies for browser automation.
#
# Key Features:
#   - Cooperative async polling with timeout and last-value reporting
#   - Page wait conditions (selector, text, network, timeout, url, function)
#   - Timeouts surfaced as a distinguished result, never as a hang
#   - Allure integration for step reporting
#
# Usage:
#   outcome = await poll_until(check, WaitConfig(timeout=5000, poll_interval=100))
#   result = await PageWaiter(page).wait("selector", "#app", timeout=10000)
#
# ================================================================================

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

import allure
from loguru import logger
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_automation.framework.element_actions import error_message


T = TypeVar("T")


@dataclass
class WaitConfig:
    """
    Configuration for polling waits.

    Attributes:
        timeout: Total budget in milliseconds
        poll_interval: Delay between attempts in milliseconds
    """
    timeout: float = 30000
    poll_interval: float = 100


@dataclass
class PollOutcome(Generic[T]):
    """Result of poll_until: the last observed value is kept on timeout."""
    success: bool
    value: Optional[T]
    elapsed: float
    attempts: int
    last_error: Optional[str] = None


def elapsed_ms(started: float) -> float:
    """Milliseconds since a time.monotonic() reading."""
    return round((time.monotonic() - started) * 1000, 1)


async def poll_until(
    check_fn: Callable[[], Awaitable[Tuple[bool, T]]],
    config: Optional[WaitConfig] = None,
    description: str = "Waiting for condition",
) -> PollOutcome[T]:
    """
    Poll an async check until it reports success or the timeout elapses.

    Errors raised by check_fn are logged and treated as a failed attempt so
    that transient states (e.g. mid-navigation) do not abort the wait.

    Args:
        check_fn: Coroutine function returning (success, observed_value)
        config: Timeout / interval configuration
        description: Human-readable description for logging

    Returns:
        PollOutcome with elapsed time and the last observed value
    """
    config = config or WaitConfig()
    started = time.monotonic()
    deadline = started + config.timeout / 1000
    interval = config.poll_interval / 1000

    attempts = 0
    value: Optional[T] = None
    last_error: Optional[str] = None

    while True:
        attempts += 1
        try:
            success, value = await check_fn()
            last_error = None
        except Exception as e:
            success = False
            last_error = error_message(e)
            logger.debug(f"{description}: attempt {attempts} raised {last_error}")

        if success:
            return PollOutcome(True, value, elapsed_ms(started), attempts)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        await asyncio.sleep(min(interval, remaining))

    logger.warning(
        f"{description}: timed out after {config.timeout}ms ({attempts} attempts)"
    )
    return PollOutcome(False, value, elapsed_ms(started), attempts, last_error)


# ================================================================================
# Page Wait Conditions
# ================================================================================

class WaitCondition(str, Enum):
    """Supported page wait conditions."""
    SELECTOR = "selector"
    TEXT = "text"
    NETWORK = "network"
    TIMEOUT = "timeout"
    URL = "url"
    FUNCTION = "function"


@dataclass
class WaitResult:
    """Outcome of a page wait."""
    success: bool
    time_elapsed: float
    error: Optional[str] = None
    timed_out: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "timeElapsed": self.time_elapsed}
        if self.error is not None:
            data["error"] = self.error
        return data


class PageWaiter:
    """
    Waits on page conditions with explicit timeouts.

    Example:
        waiter = PageWaiter(page)
        result = await waiter.wait("text", "Saved", timeout=5000)
        if result.timed_out:
            ...
    """

    def __init__(self, page: Page, default_timeout: int = 30000):
        self.page = page
        self.default_timeout = default_timeout

    async def wait(
        self,
        condition: str,
        value: Any = None,
        timeout: Optional[int] = None,
        state: Optional[str] = None,
    ) -> WaitResult:
        """
        Wait for a condition on the page.

        Args:
            condition: selector | text | network | timeout | url | function
            value: Selector, text, URL pattern, JS expression or milliseconds
            timeout: Budget in milliseconds
            state: Element state for selector waits (visible, hidden, attached, detached)

        Raises:
            ValueError: If the condition is unknown or value is missing
        """
        condition = WaitCondition(condition)
        timeout = self.default_timeout if timeout is None else timeout
        if condition not in (WaitCondition.NETWORK, WaitCondition.TIMEOUT) and value in (None, ""):
            raise ValueError(f"Wait condition '{condition.value}' requires a value")

        started = time.monotonic()
        with allure.step(f"Wait for {condition.value}: {value}"):
            try:
                await self._dispatch(condition, value, timeout, state)
            except PlaywrightTimeoutError as e:
                logger.warning(f"Wait for {condition.value} timed out: {value}")
                return WaitResult(False, elapsed_ms(started), error_message(e), timed_out=True)
            except Exception as e:
                logger.warning(f"Wait for {condition.value} failed: {error_message(e)}")
                return WaitResult(False, elapsed_ms(started), error_message(e))

        return WaitResult(True, elapsed_ms(started))

    async def _dispatch(
        self,
        condition: WaitCondition,
        value: Any,
        timeout: int,
        state: Optional[str],
    ) -> None:
        if condition == WaitCondition.SELECTOR:
            await self.page.wait_for_selector(value, state=state or "visible", timeout=timeout)
        elif condition == WaitCondition.TEXT:
            await self.page.get_by_text(value).first.wait_for(
                state=state or "visible", timeout=timeout
            )
        elif condition == WaitCondition.NETWORK:
            await self.page.wait_for_load_state("networkidle", timeout=timeout)
        elif condition == WaitCondition.TIMEOUT:
            await asyncio.sleep(float(value if value not in (None, "") else timeout) / 1000)
        elif condition == WaitCondition.URL:
            await self.page.wait_for_url(value, timeout=timeout)
        elif condition == WaitCondition.FUNCTION:
            await self.page.wait_for_function(value, timeout=timeout)

    async def wait_for_load(self, state: str = "load", timeout: Optional[int] = None) -> WaitResult:
        """Wait for a page load state: load, domcontentloaded or networkidle."""
        timeout = self.default_timeout if timeout is None else timeout
        started = time.monotonic()
        try:
            await self.page.wait_for_load_state(state, timeout=timeout)
        except PlaywrightTimeoutError as e:
            return WaitResult(False, elapsed_ms(started), error_message(e), timed_out=True)
        except Exception as e:
            return WaitResult(False, elapsed_ms(started), error_message(e))
        return WaitResult(True, elapsed_ms(started))

    async def wait_for_element(
        self,
        selector: str,
        state: str = "visible",
        timeout: Optional[int] = None,
    ) -> WaitResult:
        return await self.wait(WaitCondition.SELECTOR.value, selector, timeout, state)


__all__ = [
    "WaitConfig",
    "PollOutcome",
    "poll_until",
    "elapsed_ms",
    "WaitCondition",
    "WaitResult",
    "PageWaiter",
]

"""
================================================================================
Error Tracker
================================================================================

Captures uncaught JavaScript errors from the browser.

Features:
    - Page errors (uncaught exceptions) with stack traces
    - Console errors that look like exceptions, deduplicated against page errors
    - Source / line / column parsed from the first stack frame
    - Grouped summary, most frequent first

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional, Tuple

from loguru import logger
from playwright.async_api import ConsoleMessage, Error, Page

from browser_automation.common import utc_now_iso


# Matches "at fn (http://host/file.js:10:5)" and "at http://host/file.js:10:5"
STACK_FRAME_PATTERN = re.compile(r"\(?((?:https?|file|webpack)://[^\s()]+?):(\d+):(\d+)\)?")

DUPLICATE_WINDOW_MS = 100


@dataclass
class JavaScriptError:
    """JavaScript error captured from the browser."""
    timestamp: str
    message: str
    name: Optional[str] = None
    stack: Optional[str] = None
    source: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def parse_stack_location(stack: Optional[str]) -> Tuple[Optional[str], Optional[int], Optional[int]]:
    """Extract (source, line, column) from the first frame of a stack trace."""
    if not stack:
        return None, None, None
    match = STACK_FRAME_PATTERN.search(stack)
    if not match:
        return None, None, None
    return match.group(1), int(match.group(2)), int(match.group(3))


def _millis_between(a: str, b: str) -> float:
    first = datetime.fromisoformat(a.replace("Z", "+00:00"))
    second = datetime.fromisoformat(b.replace("Z", "+00:00"))
    return abs((first - second).total_seconds() * 1000)


class ErrorTracker:
    """
    Ring buffer of JavaScript errors raised in the page.

    Example:
        tracker = ErrorTracker(page)
        for item in tracker.get_error_summary():
            print(item["message"], item["count"])
    """

    def __init__(self, page: Page, max_errors: int = 100):
        self.page = page
        self.max_errors = max_errors
        self._errors: Deque[JavaScriptError] = deque(maxlen=max_errors)
        self._attached = False
        self._attach()

    def _attach(self) -> None:
        if self._attached:
            return
        self.page.on("pageerror", self._handle_page_error)
        self.page.on("console", self._handle_console_message)
        self._attached = True

    def _handle_page_error(self, error: Error) -> None:
        source, line, column = parse_stack_location(error.stack)
        js_error = JavaScriptError(
            timestamp=utc_now_iso(),
            message=error.message,
            name=error.name,
            stack=error.stack,
            source=source,
            line=line,
            column=column,
        )
        self._errors.append(js_error)

        logger.error(f"[Browser] {error.name}: {error.message}")
        if source:
            logger.error(f"[Browser]   at {source}:{line}:{column}")

    def _handle_console_message(self, msg: ConsoleMessage) -> None:
        if msg.type != "error":
            return
        text = msg.text
        if "Error:" not in text and "Exception:" not in text:
            return
        self.record_console_error(text)

    def record_console_error(self, text: str) -> bool:
        """
        Record an error reported through console.error.

        Returns:
            False when the same message was already captured as a page
            error within the duplicate window
        """
        source, line, column = parse_stack_location(text)
        js_error = JavaScriptError(
            timestamp=utc_now_iso(),
            message=text.split("\n", 1)[0],
            stack=text,
            source=source,
            line=line,
            column=column,
        )

        for existing in self._errors:
            if (
                existing.message == js_error.message
                and _millis_between(existing.timestamp, js_error.timestamp) < DUPLICATE_WINDOW_MS
            ):
                return False

        self._errors.append(js_error)
        return True

    def get_errors(self, limit: Optional[int] = None) -> List[JavaScriptError]:
        errors = list(self._errors)
        if limit and limit > 0:
            return errors[-limit:]
        return errors

    @property
    def count(self) -> int:
        return len(self._errors)

    def get_grouped_errors(self) -> Dict[str, List[JavaScriptError]]:
        grouped: Dict[str, List[JavaScriptError]] = {}
        for error in self._errors:
            grouped.setdefault(error.message, []).append(error)
        return grouped

    def get_error_summary(self) -> List[Dict[str, Any]]:
        """Unique error messages with counts, most frequent first."""
        summary = [
            {
                "message": message,
                "count": len(errors),
                "latestTimestamp": errors[-1].timestamp,
            }
            for message, errors in self.get_grouped_errors().items()
        ]
        summary.sort(key=lambda item: item["count"], reverse=True)
        return summary

    def clear(self) -> None:
        self._errors.clear()

    def detach(self) -> None:
        if not self._attached:
            return
        for event, handler in (
            ("pageerror", self._handle_page_error),
            ("console", self._handle_console_message),
        ):
            try:
                self.page.remove_listener(event, handler)
            except Exception as e:
                logger.debug(f"Listener for {event} already gone: {e}")
        self._attached = False


__all__ = [
    "ErrorTracker",
    "JavaScriptError",
    "parse_stack_location",
]

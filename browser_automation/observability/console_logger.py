"""
================================================================================
Console Logger
================================================================================

Captures browser console messages for debugging and monitoring.

Features:
    - Captures console.log / info / warn / error / debug messages
    - Ring buffer (default 1000 entries)
    - Filtering by level, timestamp and limit
    - Source location when Playwright provides it

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from loguru import logger
from playwright.async_api import ConsoleMessage, Page

from browser_automation.common import utc_now_iso


CONSOLE_LEVELS = ("log", "info", "warn", "error", "debug")


@dataclass
class ConsoleEntry:
    """Console entry captured from the browser."""
    timestamp: str
    level: str
    message: str
    args: List[str] = field(default_factory=list)
    location: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["location"] is None:
            data.pop("location")
        return data


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ConsoleLogger:
    """
    Ring buffer of browser console messages.

    Example:
        console = ConsoleLogger(page)
        errors = console.get_logs(level="error", limit=10)
    """

    def __init__(self, page: Page, max_entries: int = 1000):
        self.page = page
        self.max_entries = max_entries
        self._entries: Deque[ConsoleEntry] = deque(maxlen=max_entries)
        self._attached = False
        self._attach()

    def _attach(self) -> None:
        if self._attached:
            return
        self.page.on("console", self._handle_console_message)
        self._attached = True

    async def _handle_console_message(self, msg: ConsoleMessage) -> None:
        level = msg.type if msg.type in CONSOLE_LEVELS else "log"
        # Playwright reports console.warn as "warning"
        if msg.type == "warning":
            level = "warn"

        args: List[str] = []
        for arg in msg.args:
            try:
                args.append(json.dumps(await arg.json_value()))
            except Exception:
                args.append(str(arg))

        location = msg.location or {}
        self.record(
            ConsoleEntry(
                timestamp=utc_now_iso(),
                level=level,
                message=msg.text,
                args=args,
                location=location if location.get("url") else None,
            )
        )

    def record(self, entry: ConsoleEntry) -> None:
        """Append an entry, evicting the oldest once the buffer is full."""
        self._entries.append(entry)
        if entry.level == "error":
            logger.debug(f"[Browser] console.error: {entry.message}")

    def get_logs(
        self,
        level: Optional[str] = None,
        limit: Optional[int] = None,
        since: Optional[str] = None,
    ) -> List[ConsoleEntry]:
        """
        Get console logs with optional filtering.

        Args:
            level: Only entries of this level
            limit: Keep only the most recent N entries (after filtering)
            since: ISO timestamp; only entries at or after it

        Returns:
            Matching entries, oldest first
        """
        entries = list(self._entries)

        if level:
            entries = [e for e in entries if e.level == level]

        if since:
            since_dt = _parse_timestamp(since)
            entries = [e for e in entries if _parse_timestamp(e.timestamp) >= since_dt]

        if limit and limit > 0:
            entries = entries[-limit:]

        return entries

    @property
    def count(self) -> int:
        return len(self._entries)

    def count_by_level(self) -> Dict[str, int]:
        counts = {level: 0 for level in CONSOLE_LEVELS}
        for entry in self._entries:
            counts[entry.level] = counts.get(entry.level, 0) + 1
        return counts

    def clear(self) -> None:
        self._entries.clear()

    def detach(self) -> None:
        """Stop listening to the page."""
        if not self._attached:
            return
        try:
            self.page.remove_listener("console", self._handle_console_message)
        except Exception as e:
            logger.debug(f"Console listener already gone: {e}")
        self._attached = False


__all__ = [
    "ConsoleEntry",
    "ConsoleLogger",
    "CONSOLE_LEVELS",
]

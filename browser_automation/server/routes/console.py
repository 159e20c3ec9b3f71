"""
Browser console and JavaScript error routes.

Development mode only; every route is rate limited per client and answers
503 until the browser has opened a page with observability attached.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from browser_automation.common import UninitializedError
from browser_automation.observability import ConsoleLogger, ErrorTracker
from browser_automation.server.context import AutomationContext, get_context
from browser_automation.server.security import rate_limit, require_dev_mode


router = APIRouter(
    prefix="/api/console",
    tags=["console"],
    dependencies=[Depends(require_dev_mode)],
)


def _console_logger(context: AutomationContext) -> ConsoleLogger:
    if context.manager.console_logger is None:
        raise UninitializedError("Console logger not initialized. Navigate to a page first.")
    return context.manager.console_logger


def _error_tracker(context: AutomationContext) -> ErrorTracker:
    if context.manager.error_tracker is None:
        raise UninitializedError("Error tracker not initialized. Navigate to a page first.")
    return context.manager.error_tracker


@router.get("/logs", dependencies=[Depends(rate_limit("console"))])
async def console_logs(
    level: Optional[str] = None,
    limit: Optional[int] = None,
    since: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    console = _console_logger(context)
    logs = console.get_logs(level=level, limit=limit, since=since)
    return {
        "logs": [entry.to_dict() for entry in logs],
        "count": len(logs),
        "total": console.count,
        "devModeOnly": True,
    }


@router.get("/errors", dependencies=[Depends(rate_limit("errors"))])
async def javascript_errors(
    limit: Optional[int] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    tracker = _error_tracker(context)
    errors = tracker.get_errors(limit=limit)
    return {
        "errors": [error.to_dict() for error in errors],
        "summary": tracker.get_error_summary(),
        "count": len(errors),
        "total": tracker.count,
        "devModeOnly": True,
    }


@router.post("/clear", dependencies=[Depends(rate_limit("console"))])
async def clear_console(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    _console_logger(context).clear()
    _error_tracker(context).clear()
    return {"success": True, "devModeOnly": True}


@router.get("/stats", dependencies=[Depends(rate_limit("console"))])
async def console_stats(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    console = _console_logger(context)
    tracker = _error_tracker(context)
    return {
        "console": {"total": console.count, "byLevel": console.count_by_level()},
        "errors": {"total": tracker.count, "unique": len(tracker.get_grouped_errors())},
        "devModeOnly": True,
    }

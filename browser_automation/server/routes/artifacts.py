"""Screenshot capture and screenshot-session routes."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from browser_automation.server.context import AutomationContext, get_context
from browser_automation.server.schemas import CleanupRequest, ScreenshotRequest


router = APIRouter(prefix="/api/screenshot", tags=["screenshots"])


@router.post("")
async def capture(body: ScreenshotRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    page = await context.manager.get_page()
    result = await context.screenshots.capture(
        page,
        body.name,
        full_page=body.full_page,
        selector=body.selector,
        viewport=body.viewport,
        image_format=body.format,
        quality=body.quality,
        test_name=body.test_name,
    )
    return JSONResponse(status_code=200 if result.success else 500, content=result.to_dict())


@router.get("/sessions")
async def list_sessions(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    sessions = context.screenshots.list_sessions()
    return {"count": len(sessions), "sessions": [s.to_dict() for s in sessions]}


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    return context.screenshots.get_session(session_id).to_dict()


@router.post("/sessions/cleanup")
async def cleanup_sessions(
    body: CleanupRequest = CleanupRequest(),
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    days = body.max_age_days if body.max_age_days is not None else context.settings.screenshot_max_age_days
    removed = context.screenshots.cleanup_old_sessions(days)
    return {"removed": removed, "count": len(removed), "maxAgeDays": days}

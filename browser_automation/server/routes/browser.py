"""
================================================================================
Browser Routes
================================================================================

Navigation, element interaction, element queries, waits and browser
lifecycle.

Interaction status codes:
    200  action performed
    404  selector matched nothing
    500  element found but the action failed

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger

from browser_automation.framework.element_actions import ElementActions, InteractionResult, QueryResult
from browser_automation.framework.navigation import PageNavigator
from browser_automation.framework.viewport import VIEWPORT_PRESETS
from browser_automation.framework.wait_helpers import PageWaiter, WaitCondition, WaitResult
from browser_automation.server.context import AutomationContext, get_context
from browser_automation.server.schemas import (
    BackRequest,
    ElementQueryRequest,
    InteractRequest,
    NavigateRequest,
    ReloadRequest,
    ViewportRequest,
    WaitElementRequest,
    WaitLoadRequest,
    WaitRequest,
)
from browser_automation.server.security import DEV_MODE_HEADER, require_dev_mode


router = APIRouter(prefix="/api", tags=["browser"])

INTERACTIONS = ("click", "type", "fill", "hover", "press", "select", "check", "uncheck")


async def _actions(context: AutomationContext) -> ElementActions:
    page = await context.manager.get_page()
    return ElementActions(page, default_timeout=context.settings.action_timeout)


async def _navigator(context: AutomationContext) -> PageNavigator:
    page = await context.manager.get_page()
    return PageNavigator(page, default_timeout=context.settings.navigation_timeout)


async def _waiter(context: AutomationContext) -> PageWaiter:
    page = await context.manager.get_page()
    return PageWaiter(page, default_timeout=context.settings.action_timeout)


def _interaction_response(result: InteractionResult) -> JSONResponse:
    if not result.element_found:
        status = 404
    elif not result.success:
        status = 500
    else:
        status = 200
    return JSONResponse(status_code=status, content=result.to_dict())


def _query_response(result: QueryResult) -> JSONResponse:
    if not result.element_found:
        status = 404
    elif not result.success:
        status = 500
    else:
        status = 200
    return JSONResponse(status_code=status, content=result.to_dict())


def _wait_response(result: WaitResult) -> JSONResponse:
    if result.success:
        status = 200
    elif result.timed_out:
        status = 408
    else:
        status = 500
    return JSONResponse(status_code=status, content=result.to_dict())


def _require(value: Any, field: str, operation: str) -> Any:
    if value in (None, ""):
        raise ValueError(f"'{field}' is required for {operation}")
    return value


# ================================================================================
# Navigation
# ================================================================================

@router.post("/navigate")
async def navigate(body: NavigateRequest, context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    navigator = await _navigator(context)
    result = await navigator.navigate(body.url, wait_until=body.wait_for, timeout=body.timeout)
    return result.to_dict()


@router.get("/navigate/current")
async def current_page(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    return (await (await _navigator(context)).current()).to_dict()


@router.post("/navigate/back")
async def navigate_back(body: BackRequest = BackRequest(), context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    return (await (await _navigator(context)).back(timeout=body.timeout)).to_dict()


@router.post("/navigate/reload")
async def reload_page(body: ReloadRequest = ReloadRequest(), context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    navigator = await _navigator(context)
    return (await navigator.reload(wait_until=body.wait_for, timeout=body.timeout)).to_dict()


# ================================================================================
# Interaction
# ================================================================================

@router.post("/interact/{operation}")
async def interact(
    operation: str,
    body: InteractRequest,
    context: AutomationContext = Depends(get_context),
) -> JSONResponse:
    if operation not in INTERACTIONS:
        raise ValueError(f"Unknown interaction '{operation}'. Available: {', '.join(INTERACTIONS)}")

    if operation == "press":
        key = _require(body.key, "key", operation)
        actions = await _actions(context)
        return _interaction_response(await actions.press_key(key, body.selector, body.timeout))

    selector = _require(body.selector, "selector", operation)
    actions = await _actions(context)

    if operation == "click":
        result = await actions.click(
            selector,
            button=body.button,
            click_count=body.click_count,
            delay=body.delay,
            force=body.force,
            timeout=body.timeout,
        )
    elif operation == "type":
        text = _require(body.text, "text", operation)
        result = await actions.type_text(selector, text, delay=body.delay, clear=body.clear, timeout=body.timeout)
    elif operation == "fill":
        value = body.value if body.value is not None else body.text
        if value is None:
            raise ValueError("'value' is required for fill")
        result = await actions.fill(selector, value, timeout=body.timeout)
    elif operation == "hover":
        result = await actions.hover(selector, timeout=body.timeout)
    elif operation == "select":
        if body.value is None and body.label is None and body.index is None:
            raise ValueError("One of 'value', 'label' or 'index' is required for select")
        result = await actions.select_option(
            selector, value=body.value, label=body.label, index=body.index, timeout=body.timeout
        )
    else:
        result = await actions.set_checked(selector, checked=operation == "check", timeout=body.timeout)

    return _interaction_response(result)


# ================================================================================
# Element queries
# ================================================================================

@router.post("/element/exists")
async def element_exists(body: ElementQueryRequest, context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    count = await (await _actions(context)).element_count(body.selector)
    return {"exists": count > 0, "count": count, "selector": body.selector}


@router.post("/element/count")
async def element_count(body: ElementQueryRequest, context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    count = await (await _actions(context)).element_count(body.selector)
    return {"count": count, "selector": body.selector}


@router.post("/element/text")
async def element_text(body: ElementQueryRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    return _query_response(await (await _actions(context)).get_text(body.selector))


@router.post("/element/attribute")
async def element_attribute(body: ElementQueryRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    name = _require(body.name, "name", "attribute")
    return _query_response(await (await _actions(context)).get_attribute(body.selector, name))


@router.post("/element/visible")
async def element_visible(body: ElementQueryRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    return _query_response(await (await _actions(context)).is_visible(body.selector))


@router.post("/element/enabled")
async def element_enabled(body: ElementQueryRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    return _query_response(await (await _actions(context)).is_enabled(body.selector))


# ================================================================================
# Waits
# ================================================================================

@router.post("/wait")
async def wait(
    body: WaitRequest,
    request: Request,
    response: Response,
    context: AutomationContext = Depends(get_context),
) -> JSONResponse:
    if body.condition == WaitCondition.FUNCTION.value:
        require_dev_mode(request, response)
    result = await (await _waiter(context)).wait(body.condition, body.value, body.timeout, body.state)
    json_response = _wait_response(result)
    if body.condition == WaitCondition.FUNCTION.value:
        json_response.headers[DEV_MODE_HEADER] = "true"
    return json_response


@router.post("/wait/load")
async def wait_for_load(body: WaitLoadRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    return _wait_response(await (await _waiter(context)).wait_for_load(body.state, body.timeout))


@router.post("/wait/element")
async def wait_for_element(body: WaitElementRequest, context: AutomationContext = Depends(get_context)) -> JSONResponse:
    waiter = await _waiter(context)
    return _wait_response(await waiter.wait_for_element(body.selector, body.state, body.timeout))


# ================================================================================
# Browser lifecycle
# ================================================================================

@router.get("/browser/status")
async def browser_status(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    return context.manager.get_status().to_dict()


@router.post("/browser/restart")
async def restart_browser(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    logger.info("Restarting browser on request")
    await context.manager.restart()
    return {"success": True, "status": context.manager.get_status().to_dict()}


@router.post("/browser/close")
async def close_browser(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    await context.manager.close()
    return {"success": True}


@router.post("/browser/clear-storage")
async def clear_storage(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    return {"success": True, **await context.manager.clear_storage()}


@router.post("/browser/viewport")
async def set_viewport(body: ViewportRequest, context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    if body.preset is not None:
        if body.preset not in VIEWPORT_PRESETS:
            raise ValueError(f"Unknown viewport preset '{body.preset}'. Available: {', '.join(VIEWPORT_PRESETS)}")
        spec: Any = body.preset
    elif body.width is not None and body.height is not None:
        spec = {"width": body.width, "height": body.height}
    else:
        raise ValueError("Provide a 'preset' or both 'width' and 'height'")
    return {"success": True, "viewport": await context.manager.set_viewport(spec)}

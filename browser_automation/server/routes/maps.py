"""
================================================================================
Element & Store Map Routes
================================================================================

Element map discovery (map, search, categories, lookup, validate, update)
and store introspection (schema, query, wait, snapshot, validate).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from browser_automation.common import NotFoundError, utc_now_iso
from browser_automation.maps.element_search import DEFAULT_THRESHOLD, search_elements
from browser_automation.maps.element_validator import DEFAULT_VALIDATION_TIMEOUT, validate_element_map
from browser_automation.server.context import AutomationContext, get_context
from browser_automation.server.schemas import (
    StoreQueryRequest,
    StoreValidateRequest,
    StoreWaitRequest,
    UpdateElementRequest,
    ValidateElementsRequest,
)
from browser_automation.server.security import rate_limit, require_dev_mode


elements_router = APIRouter(prefix="/api/elements", tags=["elements"])
store_router = APIRouter(prefix="/api/store", tags=["store"])


# ================================================================================
# Element map
# ================================================================================

@elements_router.get("/apps")
async def list_element_maps(context: AutomationContext = Depends(get_context)) -> Dict[str, Any]:
    return {"apps": context.element_maps.list_apps()}


@elements_router.get("/map")
async def get_element_map(
    app: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    element_map = context.element_maps.load(context.app_name(app))
    return {**element_map.to_dict(), "elementCount": element_map.count_elements()}


@elements_router.get("/search")
async def search(
    q: str = Query(..., min_length=1),
    app: Optional[str] = None,
    threshold: float = DEFAULT_THRESHOLD,
    limit: Optional[int] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    element_map = context.element_maps.load(context.app_name(app))
    results = search_elements(element_map.flatten(), q, threshold=threshold, limit=limit)
    return {
        "query": q,
        "app": element_map.app,
        "count": len(results),
        "results": [r.to_dict() for r in results],
    }


@elements_router.get("/categories")
async def categories(
    app: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    element_map = context.element_maps.load(context.app_name(app))
    return {
        "app": element_map.app,
        "categories": [
            {"name": name, "elementCount": len(element_map.get_elements_in_category(name))}
            for name in element_map.get_categories()
        ],
    }


@elements_router.get("/category/{name}")
async def category(
    name: str,
    app: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    element_map = context.element_maps.load(context.app_name(app))
    if name not in element_map.get_categories():
        raise NotFoundError(f"Category '{name}' not found", available=element_map.get_categories())
    elements = element_map.get_elements_in_category(name)
    return {"category": name, "count": len(elements), "elements": [e.to_dict() for e in elements]}


@elements_router.get("/get/{path:path}")
async def get_element(
    path: str,
    app: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    element = context.element_maps.load(context.app_name(app)).get_element_by_path(path)
    if element is None:
        raise NotFoundError(f"Element not found at path '{path}'", path=path)
    return {"path": path, "element": element.to_dict()}


@elements_router.post("/validate")
async def validate_elements(
    body: ValidateElementsRequest,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    element_map = context.element_maps.load(context.app_name(body.app))
    page = await context.manager.get_page()
    result = await validate_element_map(
        page,
        element_map,
        strict=body.strict,
        timeout=body.timeout or DEFAULT_VALIDATION_TIMEOUT,
    )
    return result.to_dict()


@elements_router.post("/update")
async def update_element(
    body: UpdateElementRequest,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    app = context.app_name(body.app)
    element = context.element_maps.update(app, body.path, body.element)
    return {"success": True, "app": app, "path": body.path, "element": element.to_dict()}


# ================================================================================
# Store
# ================================================================================

@store_router.get("/schema")
async def store_schema(
    app: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    return context.store_maps.load(context.app_name(app)).to_dict()


@store_router.post("/query")
async def query_store(
    body: StoreQueryRequest,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    inspector = await context.store_inspector(body.app)
    return (await inspector.query_store_typed(body.query)).to_dict()


@store_router.post("/wait")
async def wait_for_store(
    body: StoreWaitRequest,
    context: AutomationContext = Depends(get_context),
) -> JSONResponse:
    inspector = await context.store_inspector(body.app)
    result = await inspector.wait_for_store_state(
        body.query,
        body.value,
        timeout=body.timeout,
        poll_interval=body.poll_interval,
    )
    return JSONResponse(status_code=200 if result.success else 408, content=result.to_dict())


@store_router.get(
    "/snapshot",
    dependencies=[Depends(require_dev_mode), Depends(rate_limit("snapshot"))],
)
async def store_snapshot(
    app: Optional[str] = None,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    inspector = await context.store_inspector(app)
    return {
        "snapshot": await inspector.get_store_snapshot(),
        "timestamp": utc_now_iso(),
        "devModeOnly": True,
        "storeType": inspector.store_map.store_type.value,
    }


@store_router.post("/validate")
async def validate_store(
    body: StoreValidateRequest,
    context: AutomationContext = Depends(get_context),
) -> Dict[str, Any]:
    inspector = await context.store_inspector(body.app)
    return (await inspector.validate_store_map()).to_dict()

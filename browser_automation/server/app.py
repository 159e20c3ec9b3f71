"""
================================================================================
Control API Application
================================================================================

FastAPI application exposing the automation engine over JSON/HTTP.

Error mapping:
    AutomationError subclasses -> their status_code, body {error, message, ...}
    ValueError                 -> 400

Usage:
    context = AutomationContext.from_settings()
    app = create_app(context)
    uvicorn.run(app, host=context.settings.server_host, port=context.settings.server_port)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from browser_automation.common import AutomationError
from browser_automation.server.context import AutomationContext
from browser_automation.server.routes import (
    browser_router,
    console_router,
    elements_router,
    screenshots_router,
    store_router,
)


def create_app(context: Optional[AutomationContext] = None) -> FastAPI:
    """
    Build the control API around an explicit context.

    Args:
        context: Engine context; built from configuration when omitted

    Returns:
        FastAPI application (the browser is closed on shutdown)
    """
    context = context or AutomationContext.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Control API starting (environment={context.settings.environment}, "
            f"devMode={context.settings.dev_mode})"
        )
        yield
        await context.shutdown()
        logger.info("Control API stopped, browser closed")

    app = FastAPI(title="Browser Automation Control API", lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(context.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AutomationError)
    async def automation_error_handler(request: Request, exc: AutomationError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        headers = None
        retry_after = exc.details.get("retryAfter")
        if retry_after is not None:
            headers = {"Retry-After": str(retry_after)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path} -> 400: {exc}")
        return JSONResponse(status_code=400, content={"error": "Bad request", "message": str(exc)})

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "environment": context.settings.environment,
            "devMode": context.settings.dev_mode,
            "browser": context.manager.get_status().to_dict(),
        }

    for router in (browser_router, elements_router, store_router, screenshots_router, console_router):
        app.include_router(router)

    return app


__all__ = ["create_app"]

"""
================================================================================
Control API
================================================================================

Thin FastAPI surface over the automation engine.

Components:
    - app: create_app() and error mapping
    - context: AutomationContext (explicit dependency container)
    - security: development-mode gate and rate limiting
    - routes: browser, elements, store, screenshots, console

Author: Automation Team
License: MIT
================================================================================
"""

from .app import create_app
from .context import AutomationContext, get_context
from .security import RateLimiter, TokenBucket, rate_limit, require_dev_mode

__all__ = [
    "create_app",
    "AutomationContext",
    "get_context",
    "RateLimiter",
    "TokenBucket",
    "rate_limit",
    "require_dev_mode",
]

from .artifacts import router as screenshots_router
from .browser import router as browser_router
from .console import router as console_router
from .maps import elements_router, store_router

__all__ = [
    "browser_router",
    "console_router",
    "elements_router",
    "screenshots_router",
    "store_router",
]

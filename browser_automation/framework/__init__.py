"""
================================================================================
Browser Automation Framework
================================================================================

Playwright-based primitives driven by the control API and the test runner.

Components:
    - browser_manager: Single-page session lifecycle with idle teardown
    - element_actions: Click / type / fill / hover / press and element queries
    - navigation: URL navigation, back and reload
    - wait_helpers: Polling loop and page wait conditions
    - screenshots: Session directories and screenshot capture
    - manifest: Per-session screenshot manifest
    - viewport: Viewport presets and validation

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager, BrowserStatus, Session, SessionState
from .element_actions import ElementActions, InteractionResult, QueryResult
from .manifest import Manifest, ManifestMetadata, ScreenshotEntry
from .navigation import NavigationResult, PageNavigator
from .screenshots import ScreenshotManager, ScreenshotResult, SessionDetail, SessionInfo
from .viewport import VIEWPORT_PRESETS, ViewportSize, get_viewport
from .wait_helpers import PageWaiter, WaitCondition, WaitConfig, WaitResult, poll_until

__all__ = [
    "BrowserManager",
    "BrowserStatus",
    "Session",
    "SessionState",
    "ElementActions",
    "InteractionResult",
    "QueryResult",
    "Manifest",
    "ManifestMetadata",
    "ScreenshotEntry",
    "NavigationResult",
    "PageNavigator",
    "ScreenshotManager",
    "ScreenshotResult",
    "SessionDetail",
    "SessionInfo",
    "VIEWPORT_PRESETS",
    "ViewportSize",
    "get_viewport",
    "PageWaiter",
    "WaitCondition",
    "WaitConfig",
    "WaitResult",
    "poll_until",
]

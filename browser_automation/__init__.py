"""
================================================================================
Browser Automation
================================================================================

Single-browser automation engine for UI testing.

Modules:
    - common: Configuration, logging and the error taxonomy
    - framework: Browser session, actions, waits, navigation, screenshots
    - maps: Element maps (search, validate) and store maps (query, wait)
    - observability: Browser console and JavaScript error capture
    - runner: Test suites, assertions and reporters
    - server: FastAPI control API
    - publishing: Screenshot publishing contract

Example:
    from browser_automation.common import Settings
    from browser_automation.framework import BrowserManager, PageNavigator
    from browser_automation.maps import ElementMapRepository

    async with BrowserManager(Settings.from_config()) as manager:
        page = await manager.get_page()
        await PageNavigator(page).navigate("http://localhost:3000")

Author: Automation Team
License: MIT
================================================================================
"""

__version__ = "1.0.0"

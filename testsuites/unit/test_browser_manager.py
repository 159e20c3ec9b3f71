import asyncio
from dataclasses import replace

import pytest

from browser_automation.framework.browser_manager import (
    STATE_BRIDGE_INIT_SCRIPT,
    BrowserManager,
    SessionState,
)


def _manager(settings, fake_playwright, **overrides):
    return BrowserManager(replace(settings, **overrides), playwright_factory=lambda: fake_playwright)


def test_status_before_launch(manager):
    status = manager.get_status()
    assert status.running is False
    assert status.connected is False
    assert status.current_url is None
    assert status.state == SessionState.IDLE
    assert status.to_dict()["session"] is None


@pytest.mark.asyncio
async def test_get_page_launches_once_and_starts_session(manager, fake_playwright):
    first = await manager.get_page()
    second = await manager.get_page()

    assert first is second
    assert fake_playwright.launch_count == 1
    assert manager.state == SessionState.ACTIVE
    assert manager.session.id.startswith("session-")

    browser = fake_playwright.browsers[0]
    assert browser.options["headless"] is True
    assert browser.contexts[0].options["viewport"] == {"width": 1920, "height": 1080}
    assert STATE_BRIDGE_INIT_SCRIPT in browser.contexts[0].init_scripts

    status = manager.get_status()
    assert status.running is True
    assert status.connected is True
    assert status.current_url == "about:blank"

    await manager.close()


@pytest.mark.asyncio
async def test_launch_is_idempotent(manager, fake_playwright):
    await manager.launch()
    await manager.launch()
    assert fake_playwright.launch_count == 1
    await manager.close()


@pytest.mark.asyncio
async def test_idle_timeout_ends_session_and_closes_browser(settings, fake_playwright):
    manager = _manager(settings, fake_playwright, session_timeout=50)
    await manager.get_page()
    browser = fake_playwright.browsers[0]

    await asyncio.sleep(0.2)

    assert manager.state == SessionState.IDLE
    assert manager.is_running is False
    assert browser.closed is True
    assert fake_playwright.stopped == 1


@pytest.mark.asyncio
async def test_activity_resets_idle_timer(settings, fake_playwright):
    manager = _manager(settings, fake_playwright, session_timeout=250)
    await manager.get_page()

    await asyncio.sleep(0.15)
    await manager.get_page()
    await asyncio.sleep(0.15)
    assert manager.state == SessionState.ACTIVE

    await asyncio.sleep(0.3)
    assert manager.state == SessionState.IDLE
    assert fake_playwright.launch_count == 1


@pytest.mark.asyncio
async def test_close_is_idempotent_and_best_effort(manager, fake_playwright):
    await manager.get_page()
    fake_playwright.browsers[0].close_error = RuntimeError("browser already gone")

    await manager.close()
    await manager.close()

    assert manager.is_running is False
    assert manager.page is None
    assert manager.session is None
    assert fake_playwright.stopped == 1


@pytest.mark.asyncio
async def test_launch_failure_propagates_and_releases(manager, fake_playwright):
    fake_playwright.launch_error = RuntimeError("Executable doesn't exist")

    with pytest.raises(RuntimeError, match="Executable"):
        await manager.get_page()

    assert manager.is_running is False
    assert fake_playwright.stopped == 1


@pytest.mark.asyncio
async def test_externally_closed_page_is_relaunched(manager, fake_playwright):
    page = await manager.get_page()
    page.closed = True

    fresh = await manager.get_page()

    assert fresh is not page
    assert fake_playwright.launch_count == 2
    await manager.close()


@pytest.mark.asyncio
async def test_observability_only_in_development(settings, fake_playwright):
    dev = _manager(settings, fake_playwright, environment="development")
    page = await dev.get_page()
    assert dev.console_logger is not None
    assert dev.error_tracker is not None
    assert "pageerror" in page.listeners
    await dev.close()
    assert page.listeners["pageerror"] == []

    prod = _manager(settings, fake_playwright, environment="production")
    await prod.get_page()
    assert prod.console_logger is None
    assert prod.error_tracker is None
    await prod.close()


@pytest.mark.asyncio
async def test_clear_storage_reports_remaining_items(manager):
    page = await manager.get_page()
    page.evaluate_handler = lambda script, arg: {
        "localStorage": 0,
        "sessionStorage": 0,
        "indexedDbCleared": True,
    }

    result = await manager.clear_storage()

    assert result == {
        "cookies": 0,
        "localStorage": 0,
        "sessionStorage": 0,
        "indexedDbCleared": True,
        "cleared": True,
    }
    await manager.close()


@pytest.mark.asyncio
async def test_reset_context_keeps_session(manager, fake_playwright):
    page = await manager.get_page()
    session_id = manager.session.id

    fresh = await manager.reset_context()

    assert fresh is not page
    assert page.closed is True
    assert manager.session.id == session_id
    assert fake_playwright.launch_count == 1
    await manager.close()


@pytest.mark.asyncio
async def test_set_viewport(manager):
    page = await manager.get_page()

    size = await manager.set_viewport("mobile")
    assert size["width"] == 375
    assert page.viewport_size == {"width": 375, "height": 667}

    with pytest.raises(ValueError, match="Width"):
        await manager.set_viewport({"width": 100, "height": 600})
    await manager.close()

import pytest

from browser_automation.framework.screenshots import ScreenshotResult
from browser_automation.runner.assertions import AssertionFailure, Assertions


@pytest.mark.asyncio
async def test_dom_assertions(manager):
    page = await manager.get_page()
    page.add("[data-testid='tab-bio']", text=" Bio ", attributes={"aria-selected": "true"})
    page.add("[data-testid='bio-save']", enabled=False)
    page.add(".job", count=3)
    assertions = Assertions(manager, timeout=50)

    await assertions.element_exists("[data-testid='tab-bio']")
    await assertions.element_visible("[data-testid='tab-bio']")
    await assertions.element_hidden("#spinner")
    await assertions.element_disabled("[data-testid='bio-save']")
    await assertions.element_count(".job", 3)
    await assertions.text_equals("[data-testid='tab-bio']", "Bio")
    await assertions.text_contains("[data-testid='tab-bio']", "Bi")
    await assertions.attribute_equals("[data-testid='tab-bio']", "aria-selected", "true")

    with pytest.raises(AssertionFailure, match="Expected 2 element"):
        await assertions.element_count(".job", 2)
    with pytest.raises(AssertionFailure, match="Element not found"):
        await assertions.text_equals("#missing", "x")
    with pytest.raises(AssertionFailure, match="to be enabled"):
        await assertions.element_enabled("[data-testid='bio-save']")
    with pytest.raises(AssertionFailure, match="visible"):
        await assertions.element_visible("#missing")

    await manager.close()


@pytest.mark.asyncio
async def test_page_assertions(manager):
    page = await manager.get_page()
    page.url = "http://localhost:3000/jobs"
    page.page_title = "CV Builder - Jobs"
    assertions = Assertions(manager)

    await assertions.url_equals("http://localhost:3000/jobs")
    await assertions.url_contains("/jobs")
    await assertions.title_contains("Jobs")

    with pytest.raises(AssertionFailure) as exc_info:
        await assertions.title_equals("CV Builder")
    assert exc_info.value.details == {"expected": "CV Builder", "actual": "CV Builder - Jobs"}

    await manager.close()


def test_screenshot_assertions(tmp_path, manager):
    image = tmp_path / "home.png"
    image.write_bytes(b"\x89PNG" + b"\x00" * 10)
    captured = ScreenshotResult(success=True, path=str(image), file_size=14)
    failed = ScreenshotResult(success=False, error="Element not found: #hero")
    assertions = Assertions(manager)

    assertions.screenshot_captured(captured)
    assertions.screenshot_path(captured, contains="home")
    assertions.screenshot_size(captured, min_bytes=10)

    with pytest.raises(AssertionFailure, match="Element not found"):
        assertions.screenshot_captured(failed)
    with pytest.raises(AssertionFailure, match="at least 100 bytes"):
        assertions.screenshot_size(captured, min_bytes=100)
    with pytest.raises(AssertionFailure, match="does not exist"):
        assertions.screenshot_path(ScreenshotResult(success=True, path=str(tmp_path / "gone.png")))


@pytest.mark.asyncio
async def test_store_assertions(manager, store_map, install_store):
    bridge = install_store(await manager.get_page())
    bridge.state["chat"]["messages"] = [{"role": "user", "text": "hello"}]
    assertions = Assertions(manager, store_map=store_map)

    await assertions.store_equals("activeTab", "bio")
    await assertions.store_truthy("chatMessages")
    await assertions.store_falsy("isStreaming")
    await assertions.store_contains("chatMessages", {"text": "hello", "role": "user"})
    await assertions.store_contains("bioName", "Lovelace")
    await assertions.store_length("chatMessages", 1)

    with pytest.raises(AssertionFailure, match="to equal 'jobs'"):
        await assertions.store_equals("activeTab", "jobs")
    with pytest.raises(AssertionFailure, match="not an array or string"):
        await assertions.store_contains("isStreaming", True)

    await manager.close()


@pytest.mark.asyncio
async def test_store_eventually_equals_reports_last_value(manager, store_map, install_store):
    install_store(await manager.get_page())
    assertions = Assertions(manager, store_map=store_map)

    await assertions.store_eventually_equals("activeTab", "bio", timeout=100, poll_interval=10)
    with pytest.raises(AssertionFailure) as exc_info:
        await assertions.store_eventually_equals("activeTab", "jobs", timeout=50, poll_interval=10)

    assert exc_info.value.message == (
        "Store query 'activeTab' did not equal 'jobs' within 50ms (last value: 'bio')"
    )
    await manager.close()


@pytest.mark.asyncio
async def test_store_assertions_require_store_map(manager):
    with pytest.raises(RuntimeError, match="store map"):
        await Assertions(manager).store_equals("activeTab", "bio")

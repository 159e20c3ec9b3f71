import json
import os
import time
from datetime import datetime, timezone

import pytest

from browser_automation.common import InvalidFormatError, NotFoundError, SessionNotFoundError
from browser_automation.framework.manifest import (
    MANIFEST_FILENAME,
    ScreenshotEntry,
    get_manifest,
    update_manifest,
    update_manifest_with_urls,
)
from browser_automation.framework.screenshots import (
    ScreenshotManager,
    sanitize_filename,
    session_dir_name,
)
from testsuites.fakes import PNG_BYTES


def test_session_dir_name_is_filesystem_safe():
    moment = datetime(2025, 11, 17, 12, 0, 5, 123456, tzinfo=timezone.utc)
    assert session_dir_name(moment) == "2025-11-17T12-00-05-123Z"


def test_sanitize_filename():
    assert sanitize_filename("home page") == "home-page"
    assert sanitize_filename("../../etc/passwd") == "etc-passwd"
    assert sanitize_filename("tab_bio-desktop") == "tab_bio-desktop"
    assert sanitize_filename("***") == "screenshot"


# ================================================================================
# Manifest
# ================================================================================

def test_update_manifest_creates_and_appends(tmp_path):
    first = update_manifest(tmp_path, ScreenshotEntry("a.png", str(tmp_path / "a.png")), test_name="smoke")
    update_manifest(tmp_path, ScreenshotEntry("b.png", str(tmp_path / "b.png")), test_name="other")

    manifest = get_manifest(tmp_path)
    assert manifest.session_id == tmp_path.name
    assert manifest.created == first.created
    assert [e.filename for e in manifest.screenshots] == ["a.png", "b.png"]
    assert all(e.timestamp for e in manifest.screenshots)
    # First test name wins
    assert manifest.metadata.test_name == "smoke"
    assert not (tmp_path / "manifest.json.tmp").exists()


def test_get_manifest_missing_and_invalid(tmp_path):
    assert get_manifest(tmp_path) is None

    (tmp_path / MANIFEST_FILENAME).write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidFormatError):
        get_manifest(tmp_path)


def test_update_manifest_with_urls(tmp_path):
    update_manifest(tmp_path, ScreenshotEntry("a.png", "a.png"))
    update_manifest(tmp_path, ScreenshotEntry("b.png", "b.png"))

    manifest = update_manifest_with_urls(
        tmp_path,
        {"a.png": "https://example.com/a.png", "unknown.png": "https://example.com/x.png"},
        target_number=42,
        target_type="pr",
    )

    assert manifest.screenshots[0].external_url == "https://example.com/a.png"
    assert manifest.screenshots[1].external_url is None
    assert manifest.metadata.target_number == 42
    assert manifest.metadata.target_type == "pr"
    assert manifest.metadata.purpose == "pr-42"
    assert manifest.metadata.uploaded_at

    on_disk = json.loads((tmp_path / MANIFEST_FILENAME).read_text(encoding="utf-8"))
    assert on_disk["screenshots"][0]["externalUrl"] == "https://example.com/a.png"
    assert "externalUrl" not in on_disk["screenshots"][1]


def test_update_manifest_with_urls_requires_manifest(tmp_path):
    with pytest.raises(NotFoundError) as exc_info:
        update_manifest_with_urls(tmp_path, {}, 1, "issue")

    assert exc_info.value.status_code == 404
    assert exc_info.value.to_dict()["message"] == f"No manifest in {tmp_path}"


# ================================================================================
# Capture
# ================================================================================

@pytest.mark.asyncio
async def test_capture_writes_file_and_manifest(tmp_path, page):
    screenshots = ScreenshotManager(tmp_path)

    result = await screenshots.capture(page, "home page", full_page=True, test_name="smoke")

    assert result.success is True
    assert result.filename == "home-page.png"
    assert result.file_size == len(PNG_BYTES)
    assert result.url == "http://localhost:3000/"
    assert result.viewport == {"width": 1920, "height": 1080}

    session_dir = tmp_path / result.session_id
    assert (session_dir / "home-page.png").read_bytes() == PNG_BYTES
    manifest = get_manifest(session_dir)
    assert [e.filename for e in manifest.screenshots] == ["home-page.png"]
    assert manifest.metadata.test_name == "smoke"


@pytest.mark.asyncio
async def test_capture_same_name_gets_counter(tmp_path, page):
    screenshots = ScreenshotManager(tmp_path)

    first = await screenshots.capture(page, "home")
    second = await screenshots.capture(page, "home")

    assert first.filename == "home.png"
    assert second.filename == "home-1.png"
    assert first.session_id == second.session_id


@pytest.mark.asyncio
async def test_capture_with_viewport_preset(tmp_path, page):
    screenshots = ScreenshotManager(tmp_path)

    result = await screenshots.capture(page, "tab-bio", viewport="mobile")

    assert result.filename == "tab-bio-mobile.png"
    assert page.viewport_size == {"width": 375, "height": 667}
    assert result.viewport["width"] == 375


@pytest.mark.asyncio
async def test_capture_element(tmp_path, page):
    page.add("#panel")
    screenshots = ScreenshotManager(tmp_path)

    result = await screenshots.capture(page, "panel", selector="#panel")
    missing = await screenshots.capture(page, "other", selector="#missing")

    assert result.success is True
    assert missing.success is False
    assert missing.error == "Element not found: #missing"


@pytest.mark.asyncio
async def test_capture_rejects_bad_options(tmp_path, page):
    screenshots = ScreenshotManager(tmp_path)

    bad_format = await screenshots.capture(page, "x", image_format="gif")
    bad_viewport = await screenshots.capture(page, "x", viewport={"width": 10, "height": 10})

    assert bad_format.error == "Unsupported image format: gif"
    assert bad_viewport.success is False
    assert not tmp_path.exists() or not any(tmp_path.iterdir())


# ================================================================================
# Sessions
# ================================================================================

@pytest.mark.asyncio
async def test_list_and_get_sessions(tmp_path, page):
    screenshots = ScreenshotManager(tmp_path)
    await screenshots.capture(page, "first")
    older = screenshots.current_session_dir
    os.utime(older, (time.time() - 60, time.time() - 60))
    newer = screenshots.new_session()
    await screenshots.capture(page, "second")

    sessions = screenshots.list_sessions()
    assert [s.id for s in sessions] == [newer.name, older.name]
    assert sessions[0].screenshot_count == 1
    assert sessions[0].has_manifest is True

    detail = screenshots.get_session(older.name)
    assert detail.screenshots == ["first.png"]
    assert detail.manifest.screenshots[0].filename == "first.png"


def test_get_session_rejects_unknown_and_traversal(tmp_path):
    screenshots = ScreenshotManager(tmp_path)
    (tmp_path / "real").mkdir()

    for session_id in ("missing", "../real", ".", ""):
        with pytest.raises(SessionNotFoundError):
            screenshots.get_session(session_id)


def test_list_sessions_without_root(tmp_path):
    assert ScreenshotManager(tmp_path / "nothing").list_sessions() == []


def test_cleanup_old_sessions(tmp_path):
    screenshots = ScreenshotManager(tmp_path)
    old = tmp_path / "2020-01-01T00-00-00-000Z"
    old.mkdir()
    (old / "a.png").write_bytes(PNG_BYTES)
    forty_days_ago = time.time() - 40 * 86400
    os.utime(old, (forty_days_ago, forty_days_ago))
    recent = screenshots.new_session()

    removed = screenshots.cleanup_old_sessions(30)

    assert removed == [old.name]
    assert not old.exists()
    assert recent.exists()

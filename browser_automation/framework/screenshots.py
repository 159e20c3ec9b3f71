"""
================================================================================
Screenshot Manager
================================================================================

Screenshot capture and per-session cataloguing.

Features:
    - Full page, viewport or single element capture (PNG / JPEG)
    - Viewport presets for multi-device captures
    - One timestamped directory per capture session, each with a manifest
    - Session listing / detail and age-based cleanup
    - Allure attachment of every capture

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Page

from browser_automation.common import SessionNotFoundError, utc_now_iso
from browser_automation.framework.element_actions import error_message
from browser_automation.framework.manifest import (
    MANIFEST_FILENAME,
    Manifest,
    ScreenshotEntry,
    get_manifest,
    update_manifest,
)
from browser_automation.framework.viewport import (
    ViewportSpec,
    get_viewport,
    get_viewport_suffix,
    validate_viewport,
)


IMAGE_EXTENSIONS = {"png": ".png", "jpeg": ".jpeg"}
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def session_dir_name(moment: Optional[datetime] = None) -> str:
    """Directory name for a capture session, e.g. 2025-11-17T12-00-00-000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


def sanitize_filename(name: str) -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", name.strip()).strip("-.")
    return cleaned or "screenshot"


def _iso_from_epoch(value: float) -> str:
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat(
        timespec="milliseconds"
    ).replace("+00:00", "Z")


@dataclass
class ScreenshotResult:
    """Outcome of a capture."""
    success: bool
    path: Optional[str] = None
    filename: Optional[str] = None
    file_size: int = 0
    viewport: Optional[Dict[str, Any]] = None
    url: Optional[str] = None
    timestamp: str = ""
    session_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": self.success,
            "path": self.path,
            "filename": self.filename,
            "fileSize": self.file_size,
            "viewport": self.viewport,
            "url": self.url,
            "timestamp": self.timestamp,
            "sessionId": self.session_id,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class SessionInfo:
    """Summary of one screenshot-session directory."""
    id: str
    path: str
    created: str
    modified: str
    screenshot_count: int
    has_manifest: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "created": self.created,
            "modified": self.modified,
            "screenshotCount": self.screenshot_count,
            "hasManifest": self.has_manifest,
        }


@dataclass
class SessionDetail:
    info: SessionInfo
    screenshots: List[str] = field(default_factory=list)
    manifest: Optional[Manifest] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.info.to_dict(),
            "screenshots": self.screenshots,
            "manifest": self.manifest.to_dict() if self.manifest else None,
        }


class ScreenshotManager:
    """
    Captures screenshots into session directories under a root folder.

    A session directory is created lazily on the first capture and reused
    until new_session() is called.

    Usage:
        screenshots = ScreenshotManager(Path("screenshots"))
        result = await screenshots.capture(page, "home", full_page=True)
        for session in screenshots.list_sessions():
            print(session.id, session.screenshot_count)
    """

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self._session_dir: Optional[Path] = None

    # =========================================================================
    # Sessions
    # =========================================================================

    def new_session(self) -> Path:
        """Start a new capture session directory."""
        self.root_dir.mkdir(parents=True, exist_ok=True)
        session_dir = self.root_dir / session_dir_name()
        # Two sessions in the same millisecond get a numeric suffix
        suffix = 1
        while session_dir.exists():
            session_dir = self.root_dir / f"{session_dir_name()}-{suffix}"
            suffix += 1
        session_dir.mkdir(parents=True)
        self._session_dir = session_dir
        logger.info(f"Screenshot session created: {session_dir}")
        return session_dir

    @property
    def current_session_dir(self) -> Path:
        if self._session_dir is None or not self._session_dir.exists():
            return self.new_session()
        return self._session_dir

    def _resolve_session(self, session_id: str) -> Path:
        # Session ids are plain directory names; anything else is rejected
        if not session_id or session_id != Path(session_id).name or session_id.startswith("."):
            raise SessionNotFoundError(f"Session not found: {session_id}")
        session_dir = self.root_dir / session_id
        if not session_dir.is_dir():
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session_dir

    def _session_info(self, session_dir: Path) -> SessionInfo:
        stat = session_dir.stat()
        return SessionInfo(
            id=session_dir.name,
            path=str(session_dir),
            created=_iso_from_epoch(getattr(stat, "st_birthtime", stat.st_ctime)),
            modified=_iso_from_epoch(stat.st_mtime),
            screenshot_count=len(self._image_files(session_dir)),
            has_manifest=(session_dir / MANIFEST_FILENAME).exists(),
        )

    @staticmethod
    def _image_files(session_dir: Path) -> List[Path]:
        return sorted(
            p for p in session_dir.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
        )

    def list_sessions(self) -> List[SessionInfo]:
        """All session directories, newest first."""
        if not self.root_dir.exists():
            return []
        sessions = [
            self._session_info(path)
            for path in self.root_dir.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        ]
        sessions.sort(key=lambda s: (s.modified, s.id), reverse=True)
        return sessions

    def get_session(self, session_id: str) -> SessionDetail:
        """
        Details of one session.

        Raises:
            SessionNotFoundError: Unknown or invalid session id
        """
        session_dir = self._resolve_session(session_id)
        return SessionDetail(
            info=self._session_info(session_dir),
            screenshots=[p.name for p in self._image_files(session_dir)],
            manifest=get_manifest(session_dir),
        )

    def list_screenshots(self, session_id: str) -> List[str]:
        return [p.name for p in self._image_files(self._resolve_session(session_id))]

    def cleanup_old_sessions(self, max_age_days: int = 30) -> List[str]:
        """
        Delete session directories not modified for ``max_age_days``.

        Returns:
            Ids of the removed sessions
        """
        if not self.root_dir.exists():
            return []

        cutoff = time.time() - max_age_days * 86400
        removed: List[str] = []
        for path in self.root_dir.iterdir():
            if not path.is_dir() or path.stat().st_mtime >= cutoff:
                continue
            try:
                shutil.rmtree(path)
                removed.append(path.name)
            except OSError as e:
                logger.warning(f"Failed to remove old session {path.name}: {e}")

        if self._session_dir is not None and self._session_dir.name in removed:
            self._session_dir = None
        logger.info(f"Removed {len(removed)} screenshot sessions older than {max_age_days} days")
        return removed

    # =========================================================================
    # Capture
    # =========================================================================

    async def capture(
        self,
        page: Page,
        name: str,
        full_page: bool = False,
        selector: Optional[str] = None,
        viewport: ViewportSpec = None,
        image_format: str = "png",
        quality: Optional[int] = None,
        test_name: Optional[str] = None,
    ) -> ScreenshotResult:
        """
        Capture a screenshot into the current session and record it in the manifest.

        Args:
            page: Page to capture
            name: Base filename (sanitized; viewport suffix and extension added)
            full_page: Capture the whole scrollable page
            selector: Capture only this element
            viewport: Preset name or custom size to resize to before capturing
            image_format: "png" or "jpeg"
            quality: JPEG quality 0-100
            test_name: Recorded in the manifest metadata

        Returns:
            ScreenshotResult; failures are reported, not raised
        """
        if image_format not in IMAGE_EXTENSIONS:
            return ScreenshotResult(False, error=f"Unsupported image format: {image_format}")

        size = None
        if viewport is not None:
            size = get_viewport(viewport)
            problem = validate_viewport(size)
            if problem:
                return ScreenshotResult(False, error=problem)

        session_dir = self.current_session_dir
        filename = (
            f"{sanitize_filename(name)}{get_viewport_suffix(viewport)}"
            f"{IMAGE_EXTENSIONS[image_format]}"
        )
        path = session_dir / filename
        counter = 1
        while path.exists():
            path = session_dir / f"{Path(filename).stem}-{counter}{IMAGE_EXTENSIONS[image_format]}"
            counter += 1

        options: Dict[str, Any] = {"path": str(path), "type": image_format}
        if image_format == "jpeg" and quality is not None:
            options["quality"] = quality

        with allure.step(f"Capture screenshot: {path.name}"):
            try:
                if size is not None:
                    await page.set_viewport_size(size.playwright_size())

                if selector:
                    locator = page.locator(selector).first
                    if await locator.count() == 0:
                        return ScreenshotResult(False, error=f"Element not found: {selector}")
                    await locator.screenshot(**options)
                else:
                    await page.screenshot(full_page=full_page, **options)
            except Exception as e:
                logger.error(f"Screenshot {path.name} failed: {error_message(e)}")
                return ScreenshotResult(False, error=error_message(e))

            allure.attach.file(
                str(path),
                name=path.name,
                attachment_type=(
                    allure.attachment_type.PNG if image_format == "png"
                    else allure.attachment_type.JPG
                ),
            )

        viewport_info = size.to_dict() if size is not None else page.viewport_size
        entry = ScreenshotEntry(
            filename=path.name,
            path=str(path),
            timestamp=utc_now_iso(),
            file_size=path.stat().st_size,
            viewport=viewport_info,
            format=image_format,
        )
        update_manifest(session_dir, entry, test_name=test_name)

        logger.info(f"Screenshot captured: {path} ({entry.file_size} bytes)")
        return ScreenshotResult(
            success=True,
            path=str(path),
            filename=path.name,
            file_size=entry.file_size,
            viewport=viewport_info,
            url=page.url,
            timestamp=entry.timestamp,
            session_id=session_dir.name,
        )


__all__ = [
    "ScreenshotManager",
    "ScreenshotResult",
    "SessionInfo",
    "SessionDetail",
    "session_dir_name",
    "sanitize_filename",
]

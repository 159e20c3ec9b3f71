# ================================================================================
# Screenshot Manifest Module
# ================================================================================
#
# One manifest.json per screenshot-session directory. Entries are appended in
# capture order and later enriched with the external URLs returned by the
# artifact publisher; the image files themselves are never touched.
#
# File format:
#   {
#     "sessionId": "2025-11-17T12-00-00-000Z",
#     "created": "2025-11-17T12:00:00.000Z",
#     "screenshots": [
#       {"filename": "home.png", "path": "...", "timestamp": "...",
#        "fileSize": 12345, "viewport": {...}, "format": "png",
#        "externalUrl": "https://..."}
#     ],
#     "metadata": {"purpose": "...", "targetNumber": 42, "targetType": "pr",
#                  "uploadedAt": "...", "testName": "..."}
#   }
#
# ================================================================================

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from browser_automation.common import InvalidFormatError, NotFoundError, utc_now_iso


MANIFEST_FILENAME = "manifest.json"


@dataclass
class ScreenshotEntry:
    """A single captured image recorded in a session manifest."""
    filename: str
    path: str
    timestamp: str = ""
    file_size: int = 0
    viewport: Optional[Dict[str, Any]] = None
    format: str = "png"
    external_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "filename": self.filename,
            "path": self.path,
            "timestamp": self.timestamp,
            "fileSize": self.file_size,
            "format": self.format,
        }
        if self.viewport is not None:
            data["viewport"] = self.viewport
        if self.external_url is not None:
            data["externalUrl"] = self.external_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScreenshotEntry":
        return cls(
            filename=data["filename"],
            path=data.get("path", ""),
            timestamp=data.get("timestamp", ""),
            file_size=data.get("fileSize", 0),
            viewport=data.get("viewport"),
            format=data.get("format", "png"),
            external_url=data.get("externalUrl"),
        )


@dataclass
class ManifestMetadata:
    purpose: Optional[str] = None
    target_number: Optional[int] = None
    target_type: Optional[str] = None
    uploaded_at: Optional[str] = None
    test_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "purpose": self.purpose,
            "targetNumber": self.target_number,
            "targetType": self.target_type,
            "uploadedAt": self.uploaded_at,
            "testName": self.test_name,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestMetadata":
        return cls(
            purpose=data.get("purpose"),
            target_number=data.get("targetNumber"),
            target_type=data.get("targetType"),
            uploaded_at=data.get("uploadedAt"),
            test_name=data.get("testName"),
        )


@dataclass
class Manifest:
    session_id: str
    created: str
    screenshots: List[ScreenshotEntry] = field(default_factory=list)
    metadata: ManifestMetadata = field(default_factory=ManifestMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "created": self.created,
            "screenshots": [entry.to_dict() for entry in self.screenshots],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        return cls(
            session_id=data["sessionId"],
            created=data.get("created", ""),
            screenshots=[ScreenshotEntry.from_dict(item) for item in data.get("screenshots", [])],
            metadata=ManifestMetadata.from_dict(data.get("metadata") or {}),
        )


def _manifest_path(session_dir: Union[str, Path]) -> Path:
    return Path(session_dir) / MANIFEST_FILENAME


def get_manifest(session_dir: Union[str, Path]) -> Optional[Manifest]:
    """
    Read the manifest of a session directory.

    Returns:
        The manifest, or None when the directory has none yet

    Raises:
        InvalidFormatError: If the manifest exists but is not valid JSON
    """
    path = _manifest_path(session_dir)
    if not path.exists():
        return None
    try:
        return Manifest.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, KeyError) as e:
        raise InvalidFormatError(f"Invalid manifest {path}: {e}") from e


def save_manifest(session_dir: Union[str, Path], manifest: Manifest) -> Path:
    """Write the manifest atomically (temp file + rename)."""
    path = _manifest_path(session_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".json.tmp")
    tmp_path.write_text(json.dumps(manifest.to_dict(), indent=2), encoding="utf-8")
    os.replace(tmp_path, path)
    return path


def update_manifest(
    session_dir: Union[str, Path],
    entry: ScreenshotEntry,
    test_name: Optional[str] = None,
) -> Manifest:
    """
    Append a screenshot entry to the session manifest, creating it if needed.

    The entry gets a fresh timestamp when it carries none.
    """
    session_dir = Path(session_dir)
    manifest = get_manifest(session_dir) or Manifest(
        session_id=session_dir.name,
        created=utc_now_iso(),
    )
    if not entry.timestamp:
        entry.timestamp = utc_now_iso()
    if test_name and not manifest.metadata.test_name:
        manifest.metadata.test_name = test_name
    manifest.screenshots.append(entry)
    save_manifest(session_dir, manifest)
    logger.debug(f"Manifest updated: {entry.filename} ({len(manifest.screenshots)} entries)")
    return manifest


def update_manifest_with_urls(
    session_dir: Union[str, Path],
    url_mapping: Dict[str, str],
    target_number: int,
    target_type: str,
) -> Manifest:
    """
    Record the external URLs of published screenshots.

    Args:
        session_dir: Session directory holding the manifest
        url_mapping: filename -> external URL
        target_number: PR / issue number the images were published for
        target_type: "pr" or "issue"

    Returns:
        The enriched manifest

    Raises:
        NotFoundError: If the session has no manifest
    """
    manifest = get_manifest(session_dir)
    if manifest is None:
        raise NotFoundError(f"No manifest in {session_dir}")

    matched = 0
    for entry in manifest.screenshots:
        url = url_mapping.get(entry.filename)
        if url:
            entry.external_url = url
            matched += 1

    manifest.metadata.target_number = target_number
    manifest.metadata.target_type = target_type
    manifest.metadata.uploaded_at = utc_now_iso()
    if not manifest.metadata.purpose:
        manifest.metadata.purpose = f"{target_type}-{target_number}"

    save_manifest(session_dir, manifest)
    logger.info(
        f"Manifest enriched with {matched}/{len(manifest.screenshots)} URLs "
        f"for {target_type} #{target_number}"
    )
    return manifest


__all__ = [
    "Manifest",
    "ManifestMetadata",
    "ScreenshotEntry",
    "MANIFEST_FILENAME",
    "get_manifest",
    "save_manifest",
    "update_manifest",
    "update_manifest_with_urls",
]

"""
================================================================================
Screenshot Publishing Contract
================================================================================

Interface for collaborators that publish a screenshot session to an issue
tracker (commit the images, then comment on a PR or issue).

A publisher must:
    1. collect the images of the session directory
    2. persist them under a deterministic per-target path (``pr-42/``)
    3. commit and push when something changed, then wait until the commit
       is visible remotely
    4. build a comment whose image URLs are pinned to the commit, never to
       a branch
    5. post the comment and return the comment URL and attached count

publish_session() validates the request, delegates to the publisher and
records the returned URLs in the session manifest.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from browser_automation.common import AutomationError, NotFoundError
from browser_automation.framework.manifest import (
    MANIFEST_FILENAME,
    ScreenshotEntry,
    get_manifest,
    update_manifest_with_urls,
)
from browser_automation.framework.screenshots import IMAGE_SUFFIXES


TARGET_TYPES = ("pr", "issue")


class PublishNotFoundError(NotFoundError):
    """The target PR / issue or the screenshot directory does not exist."""
    error = "Publish target not found"


class PublishForbiddenError(AutomationError):
    """The publisher lacks permission to push or comment."""
    status_code = 403
    error = "Publish forbidden"


class PublishValidationError(AutomationError):
    """The request or the tracker rejected the content."""
    status_code = 422
    error = "Publish validation failed"


@dataclass
class PublishRequest:
    target_number: int
    target_type: str
    screenshot_dir: Path

    def validate(self) -> None:
        """
        Raises:
            PublishValidationError: Bad target number / type, or no images
            PublishNotFoundError: Screenshot directory does not exist
        """
        if not isinstance(self.target_number, int) or self.target_number <= 0:
            raise PublishValidationError(f"Invalid target number: {self.target_number!r}")
        if self.target_type not in TARGET_TYPES:
            raise PublishValidationError(
                f"Invalid target type '{self.target_type}', expected one of: {', '.join(TARGET_TYPES)}"
            )
        if not Path(self.screenshot_dir).is_dir():
            raise PublishNotFoundError(f"Screenshot directory not found: {self.screenshot_dir}")
        if not collect_images(self.screenshot_dir):
            raise PublishValidationError(f"No images found in {self.screenshot_dir}")

    @property
    def target_dir_name(self) -> str:
        """Deterministic per-target directory, e.g. ``pr-42``."""
        return f"{self.target_type}-{self.target_number}"


@dataclass
class PublishResult:
    comment_url: str
    images_attached: int
    commit_sha: Optional[str] = None
    image_urls: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "commentUrl": self.comment_url,
            "imagesAttached": self.images_attached,
            "commitSha": self.commit_sha,
            "imageUrls": dict(self.image_urls),
        }


class ArtifactPublisher(abc.ABC):
    """Publishes a screenshot session; see the module docstring for the contract."""

    @abc.abstractmethod
    async def publish(self, request: PublishRequest) -> PublishResult:
        """
        Raises:
            PublishNotFoundError / PublishForbiddenError / PublishValidationError
        """


# ================================================================================
# Helpers for publisher implementations
# ================================================================================

def collect_images(screenshot_dir: Path) -> List[Path]:
    """Image files of a session, in manifest order when a manifest exists."""
    screenshot_dir = Path(screenshot_dir)
    images = sorted(
        p for p in screenshot_dir.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
    )
    manifest = get_manifest(screenshot_dir)
    if manifest is None:
        return images

    order = {entry.filename: index for index, entry in enumerate(manifest.screenshots)}
    return sorted(images, key=lambda p: (order.get(p.name, len(order)), p.name))


def commit_pinned_url(owner: str, repo: str, commit_sha: str, relative_path: str) -> str:
    """Image URL pinned to a commit so later pushes never change it."""
    return f"https://github.com/{owner}/{repo}/blob/{commit_sha}/{relative_path}?raw=true"


def image_title(filename: str) -> str:
    """``tab-bio-desktop.png`` -> ``Tab Bio Desktop``."""
    stem = Path(filename).stem
    return " ".join(word.capitalize() for word in stem.replace("_", "-").split("-") if word)


def build_comment(
    request: PublishRequest,
    image_urls: Dict[str, str],
    entries: Optional[List[ScreenshotEntry]] = None,
    commit_sha: Optional[str] = None,
) -> str:
    """Markdown comment listing every published image."""
    details = {entry.filename: entry for entry in entries or []}
    lines = ["## 📸 Screenshots", ""]
    for filename, url in image_urls.items():
        title = image_title(filename)
        lines += [f"### {title}", "", f"![{title}]({url})", ""]
        entry = details.get(filename)
        if entry is not None:
            lines += [f"**Captured:** {entry.timestamp} | **Size:** {entry.file_size / 1024:.1f} KB", ""]
    lines += ["---", "", f"- **Total screenshots:** {len(image_urls)}"]
    if commit_sha:
        lines.append(f"- **Commit:** `{commit_sha}`")
    return "\n".join(lines) + "\n"


async def publish_session(publisher: ArtifactPublisher, request: PublishRequest) -> PublishResult:
    """
    Validate, publish, then record the external URLs in the session manifest.

    Sessions without a manifest are published but not enriched.
    """
    request.validate()
    logger.info(f"Publishing {request.screenshot_dir} to {request.target_type} #{request.target_number}")
    result = await publisher.publish(request)

    if (Path(request.screenshot_dir) / MANIFEST_FILENAME).exists():
        update_manifest_with_urls(
            request.screenshot_dir,
            result.image_urls,
            request.target_number,
            request.target_type,
        )
    else:
        logger.warning(f"No manifest in {request.screenshot_dir}, URLs not recorded")

    logger.info(f"Published {result.images_attached} image(s): {result.comment_url}")
    return result


__all__ = [
    "ArtifactPublisher",
    "PublishRequest",
    "PublishResult",
    "PublishNotFoundError",
    "PublishForbiddenError",
    "PublishValidationError",
    "collect_images",
    "commit_pinned_url",
    "image_title",
    "build_comment",
    "publish_session",
]

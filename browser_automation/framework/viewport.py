# ================================================================================
# Viewport Module
# ================================================================================
#
# Viewport presets and validation for multi-device screenshot capture.
#
# Usage:
#   size = get_viewport("tablet")
#   suffix = get_viewport_suffix("tablet")      # "-tablet"
#   suffix = get_viewport_suffix(ViewportSize(800, 600))  # "-800x600"
#
# ================================================================================

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union


MIN_WIDTH, MAX_WIDTH = 320, 3840
MIN_HEIGHT, MAX_HEIGHT = 240, 2160


@dataclass(frozen=True)
class ViewportSize:
    """Viewport dimensions plus device emulation hints."""
    width: int
    height: int
    device_scale_factor: float = 1
    is_mobile: bool = False
    has_touch: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def playwright_size(self) -> Dict[str, int]:
        """Size in the shape expected by page.set_viewport_size()."""
        return {"width": self.width, "height": self.height}


VIEWPORT_PRESETS: Dict[str, ViewportSize] = {
    "desktop": ViewportSize(1920, 1080),
    "tablet": ViewportSize(768, 1024, device_scale_factor=2, is_mobile=True, has_touch=True),
    "mobile": ViewportSize(375, 667, device_scale_factor=2, is_mobile=True, has_touch=True),
    "mobile-landscape": ViewportSize(667, 375, device_scale_factor=2, is_mobile=True, has_touch=True),
}

ViewportSpec = Union[str, ViewportSize, Dict[str, Any], None]


def get_viewport(spec: ViewportSpec = None) -> ViewportSize:
    """
    Resolve a preset name, dict or ViewportSize to a ViewportSize.

    Unknown preset names and None fall back to desktop.
    """
    if spec is None:
        return VIEWPORT_PRESETS["desktop"]
    if isinstance(spec, ViewportSize):
        return spec
    if isinstance(spec, str):
        return VIEWPORT_PRESETS.get(spec, VIEWPORT_PRESETS["desktop"])
    return ViewportSize(
        width=int(spec["width"]),
        height=int(spec["height"]),
        device_scale_factor=spec.get("deviceScaleFactor", spec.get("device_scale_factor", 1)),
        is_mobile=spec.get("isMobile", spec.get("is_mobile", False)),
        has_touch=spec.get("hasTouch", spec.get("has_touch", False)),
    )


def get_viewport_suffix(spec: ViewportSpec = None) -> str:
    """Filename suffix for a viewport: "-<preset>" or "-<w>x<h>"."""
    if spec is None:
        return ""
    if isinstance(spec, str):
        return f"-{spec}"
    size = get_viewport(spec)
    return f"-{size.width}x{size.height}"


def validate_viewport(size: ViewportSize) -> Optional[str]:
    """
    Check a custom viewport against supported bounds.

    Returns:
        None when valid, otherwise a human readable reason
    """
    if not MIN_WIDTH <= size.width <= MAX_WIDTH:
        return f"Width must be between {MIN_WIDTH} and {MAX_WIDTH}, got {size.width}"
    if not MIN_HEIGHT <= size.height <= MAX_HEIGHT:
        return f"Height must be between {MIN_HEIGHT} and {MAX_HEIGHT}, got {size.height}"
    return None


__all__ = [
    "ViewportSize",
    "VIEWPORT_PRESETS",
    "get_viewport",
    "get_viewport_suffix",
    "validate_viewport",
]

"""
================================================================================
Element Map
================================================================================

Semantic selector registry: a JSON tree mapping human-readable dot paths to
selectors plus descriptive metadata.

File layout (``<maps_dir>/<app>.json``):

    {
      "app": "cv-builder",
      "version": "1.0.0",
      "updated": "2025-11-17T12:00:00.000Z",
      "elements": {
        "navigation": {                       <- category
          "tabs": {                           <- group
            "bio": {                          <- descriptor
              "selector": "[data-testid='tab-bio']",
              "alternatives": ["text=Bio"],
              "description": "Bio tab in the main navigation",
              "type": "tab",
              "children": { ... }             <- nested descriptors
            }
          }
        }
      }
    }

Features:
    - Lossless load / save (unknown keys and key order are preserved)
    - Depth-first flattening into FlatElement records
    - Path lookup, category listing and path-addressed upsert

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from loguru import logger

from browser_automation.common import ElementMapNotFoundError, InvalidFormatError, utc_now_iso


APP_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class ElementType(str, Enum):
    """Kinds of UI elements a descriptor can describe."""
    BUTTON = "button"
    LINK = "link"
    INPUT = "input"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TAB = "tab"
    PANEL = "panel"
    MODAL = "modal"
    FORM = "form"
    CONTAINER = "container"
    TEXT = "text"
    IMAGE = "image"


def is_element_descriptor(value: Any) -> bool:
    """A descriptor is a mapping with string selector, description and type."""
    return (
        isinstance(value, dict)
        and isinstance(value.get("selector"), str)
        and isinstance(value.get("description"), str)
        and isinstance(value.get("type"), str)
    )


@dataclass
class ElementDescriptor:
    """A single element entry of the map."""
    selector: str
    description: str
    type: str
    alternatives: List[str] = field(default_factory=list)
    role: Optional[str] = None
    test_id: Optional[str] = None
    states: Optional[Dict[str, Any]] = None
    children: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementDescriptor":
        """
        Build a descriptor from its JSON form.

        Raises:
            InvalidFormatError: If selector, description or type is missing
        """
        if not is_element_descriptor(data):
            raise InvalidFormatError(
                "Element descriptor requires string fields: selector, description, type"
            )
        alternatives = data.get("alternatives") or []
        if not isinstance(alternatives, list) or not all(isinstance(a, str) for a in alternatives):
            raise InvalidFormatError("Element descriptor 'alternatives' must be a list of strings")
        return cls(
            selector=data["selector"],
            description=data["description"],
            type=data["type"],
            alternatives=list(alternatives),
            role=data.get("role"),
            test_id=data.get("testId"),
            states=data.get("states"),
            children=data.get("children"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"selector": self.selector}
        if self.alternatives:
            data["alternatives"] = list(self.alternatives)
        data["description"] = self.description
        data["type"] = self.type
        if self.role is not None:
            data["role"] = self.role
        if self.test_id is not None:
            data["testId"] = self.test_id
        if self.states is not None:
            data["states"] = self.states
        if self.children is not None:
            data["children"] = self.children
        return data


@dataclass
class FlatElement:
    """A descriptor addressed by its full dot path."""
    path: str
    name: str
    selector: str
    description: str
    type: str
    alternatives: List[str] = field(default_factory=list)
    role: Optional[str] = None
    test_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "selector": self.selector,
            "alternatives": list(self.alternatives),
            "description": self.description,
            "type": self.type,
        }
        if self.role is not None:
            data["role"] = self.role
        if self.test_id is not None:
            data["testId"] = self.test_id
        return data


def iter_descriptors(tree: Dict[str, Any], prefix: str = "") -> Iterator[FlatElement]:
    """
    Walk the element tree depth-first.

    Each descriptor is yielded before its children, and its children before
    its next sibling. Objects that are not descriptors are groups.
    """
    for key, value in tree.items():
        if not isinstance(value, dict):
            continue
        path = f"{prefix}.{key}" if prefix else key

        if is_element_descriptor(value):
            yield FlatElement(
                path=path,
                name=key,
                selector=value["selector"],
                description=value["description"],
                type=value["type"],
                alternatives=list(value.get("alternatives") or []),
                role=value.get("role"),
                test_id=value.get("testId"),
            )
            children = value.get("children")
            if isinstance(children, dict):
                yield from iter_descriptors(children, path)
        else:
            yield from iter_descriptors(value, path)


def flatten_elements(tree: Dict[str, Any]) -> List[FlatElement]:
    return list(iter_descriptors(tree))


def _check_keys(tree: Dict[str, Any], prefix: str = "") -> None:
    for key, value in tree.items():
        if "." in key:
            raise InvalidFormatError(f"Element key must not contain '.': {prefix}{key}")
        if not isinstance(value, dict):
            continue
        if is_element_descriptor(value):
            if isinstance(value.get("children"), dict):
                _check_keys(value["children"], f"{prefix}{key}.")
        else:
            _check_keys(value, f"{prefix}{key}.")


class ElementMap:
    """
    In-memory element map backed by the raw JSON document.

    The raw document is kept as loaded so that saving an unmodified map
    reproduces the file exactly.
    """

    def __init__(self, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise InvalidFormatError("Element map must be a JSON object")
        if not isinstance(data.get("app"), str):
            raise InvalidFormatError("Element map requires a string 'app'")
        if not isinstance(data.get("elements"), dict):
            raise InvalidFormatError("Element map requires an 'elements' object")
        _check_keys(data["elements"])
        self._data = data

    @classmethod
    def create(cls, app: str, version: str = "1.0.0") -> "ElementMap":
        return cls({"app": app, "version": version, "updated": utc_now_iso(), "elements": {}})

    @property
    def app(self) -> str:
        return self._data["app"]

    @property
    def version(self) -> Optional[str]:
        return self._data.get("version")

    @property
    def updated(self) -> Optional[str]:
        return self._data.get("updated")

    @updated.setter
    def updated(self, value: str) -> None:
        self._data["updated"] = value

    @property
    def elements(self) -> Dict[str, Any]:
        return self._data["elements"]

    def to_dict(self) -> Dict[str, Any]:
        return self._data

    def to_json(self) -> str:
        return json.dumps(self._data, indent=2, ensure_ascii=False)

    # =========================================================================
    # Queries
    # =========================================================================

    def flatten(self) -> List[FlatElement]:
        return flatten_elements(self.elements)

    def count_elements(self) -> int:
        return sum(1 for _ in iter_descriptors(self.elements))

    def get_categories(self) -> List[str]:
        """Top-level keys of the element tree."""
        return [key for key, value in self.elements.items() if isinstance(value, dict)]

    def get_elements_in_category(self, category: str) -> List[FlatElement]:
        prefix = f"{category}."
        return [
            element for element in self.flatten()
            if element.path == category or element.path.startswith(prefix)
        ]

    def _resolve(self, path: str) -> Optional[Dict[str, Any]]:
        container: Optional[Dict[str, Any]] = self.elements
        node: Any = None
        for part in path.split("."):
            if not isinstance(container, dict):
                return None
            node = container.get(part)
            if not isinstance(node, dict):
                return None
            container = node.get("children") if is_element_descriptor(node) else node
        return node

    def get_element_by_path(self, path: str) -> Optional[ElementDescriptor]:
        """
        Look up a descriptor by dot path.

        Returns:
            The descriptor, or None when the path is absent or names a group
        """
        node = self._resolve(path) if path else None
        if not is_element_descriptor(node):
            return None
        return ElementDescriptor.from_dict(node)

    # =========================================================================
    # Mutation
    # =========================================================================

    def set_element(self, path: str, element: ElementDescriptor) -> None:
        """
        Insert or replace the descriptor at ``path``.

        Missing intermediate groups are created. When the element being
        replaced has children and the new one declares none, the children
        are kept.

        Raises:
            InvalidFormatError: Empty path, or an intermediate node is not an object
        """
        parts = path.split(".") if path else []
        if not parts or any(not part for part in parts):
            raise InvalidFormatError(f"Invalid element path: '{path}'")

        container = self.elements
        for index, part in enumerate(parts[:-1]):
            node = container.get(part)
            if node is None:
                node = {}
                container[part] = node
            elif not isinstance(node, dict):
                raise InvalidFormatError(
                    f"Path conflict at '{'.'.join(parts[:index + 1])}': not an object"
                )

            if is_element_descriptor(node):
                container = node.setdefault("children", {})
            else:
                container = node

        existing = container.get(parts[-1])
        new_data = element.to_dict()
        if (
            element.children is None
            and is_element_descriptor(existing)
            and isinstance(existing.get("children"), dict)
        ):
            new_data["children"] = existing["children"]
        container[parts[-1]] = new_data


class ElementMapRepository:
    """
    Loads and persists element maps, one JSON file per application.

    Usage:
        repo = ElementMapRepository(Path("tests/element-maps"))
        element_map = repo.load("cv-builder")
        repo.update("cv-builder", "navigation.tabs.jobs", {...})
    """

    def __init__(self, maps_dir: Path):
        self.maps_dir = Path(maps_dir)

    def path_for(self, app: str) -> Path:
        if not app or not APP_NAME_PATTERN.match(app):
            raise InvalidFormatError(f"Invalid app name: '{app}'")
        return self.maps_dir / f"{app}.json"

    def exists(self, app: str) -> bool:
        return self.path_for(app).exists()

    def list_apps(self) -> List[str]:
        if not self.maps_dir.exists():
            return []
        return sorted(p.stem for p in self.maps_dir.glob("*.json"))

    def load(self, app: str) -> ElementMap:
        """
        Load the element map of an application.

        Raises:
            ElementMapNotFoundError: No map file for the app
            InvalidFormatError: The file is not a valid element map
        """
        path = self.path_for(app)
        if not path.exists():
            raise ElementMapNotFoundError(f"Element map not found for app '{app}'", app=app)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidFormatError(f"Invalid JSON in element map {path}: {e}") from e
        return ElementMap(data)

    def save(self, element_map: ElementMap) -> Path:
        """Write the map as 2-space indented UTF-8 JSON with a trailing newline."""
        path = self.path_for(element_map.app)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(element_map.to_json() + "\n", encoding="utf-8")
        logger.debug(f"Element map saved: {path}")
        return path

    def update(
        self,
        app: str,
        path: str,
        element: Union[ElementDescriptor, Dict[str, Any]],
    ) -> ElementDescriptor:
        """
        Upsert one descriptor, bump ``updated`` and persist.

        A missing map is created.

        Raises:
            InvalidFormatError: Invalid descriptor or path
        """
        if isinstance(element, dict):
            element = ElementDescriptor.from_dict(element)

        element_map = self.load(app) if self.exists(app) else ElementMap.create(app)
        element_map.set_element(path, element)
        element_map.updated = utc_now_iso()
        self.save(element_map)

        logger.info(f"Element map '{app}' updated: {path}")
        return element_map.get_element_by_path(path)


__all__ = [
    "ElementType",
    "ElementDescriptor",
    "FlatElement",
    "ElementMap",
    "ElementMapRepository",
    "is_element_descriptor",
    "iter_descriptors",
    "flatten_elements",
]

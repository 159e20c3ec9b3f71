import json
import re
import shutil

import pytest

from browser_automation.common import ElementMapNotFoundError, InvalidFormatError
from browser_automation.maps.element_map import (
    ElementDescriptor,
    ElementMap,
    ElementMapRepository,
)
from testsuites.fakes import MAPS_ROOT


EXPECTED_ORDER = [
    "navigation.tabs.bio",
    "navigation.tabs.jobs",
    "navigation.tabs.outputs",
    "bio.form",
    "bio.form.nameInput",
    "bio.form.emailInput",
    "bio.form.saveButton",
    "chat.panel",
    "chat.input",
    "chat.sendButton",
]


def test_flatten_is_depth_first_with_parents_before_children(element_map):
    paths = [element.path for element in element_map.flatten()]
    assert paths == EXPECTED_ORDER
    assert element_map.count_elements() == len(EXPECTED_ORDER)


def test_flat_element_carries_metadata(element_map):
    bio = element_map.flatten()[0]
    assert bio.name == "bio"
    assert bio.selector == "[data-testid='tab-bio']"
    assert bio.alternatives == ["button:has-text('Bio')", "text=Bio"]
    assert bio.to_dict()["testId"] == "tab-bio"


def test_categories_and_category_listing(element_map):
    assert element_map.get_categories() == ["navigation", "bio", "chat"]
    assert [e.name for e in element_map.get_elements_in_category("bio")] == [
        "form", "nameInput", "emailInput", "saveButton",
    ]
    assert element_map.get_elements_in_category("settings") == []


def test_get_element_by_path(element_map):
    save = element_map.get_element_by_path("bio.form.saveButton")
    assert save.type == "button"
    assert save.alternatives == ["button:has-text('Save')"]

    assert element_map.get_element_by_path("navigation.tabs") is None
    assert element_map.get_element_by_path("navigation.tabs.missing") is None
    assert element_map.get_element_by_path("") is None


def test_save_and_reload_preserves_document(tmp_path, element_map):
    repo = ElementMapRepository(tmp_path)
    path = repo.save(element_map)

    assert path == tmp_path / "cv-builder.json"
    assert json.loads(path.read_text(encoding="utf-8")) == element_map.to_dict()
    assert repo.load("cv-builder").to_dict() == element_map.to_dict()
    assert repo.list_apps() == ["cv-builder"]


def test_update_replaces_descriptor_and_keeps_children(tmp_path, element_map):
    repo = ElementMapRepository(tmp_path)
    repo.save(element_map)

    updated = repo.update("cv-builder", "bio.form", {
        "selector": "form#bio",
        "description": "Bio editor form",
        "type": "form",
    })

    assert updated.selector == "form#bio"
    reloaded = repo.load("cv-builder")
    assert reloaded.get_element_by_path("bio.form.nameInput") is not None
    assert reloaded.updated != "2025-11-17T12:00:00.000Z"


def test_update_creates_map_and_intermediate_groups(tmp_path):
    repo = ElementMapRepository(tmp_path)

    repo.update("new-app", "settings.profile.avatar", ElementDescriptor(
        selector="img.avatar",
        description="Profile picture",
        type="image",
    ))

    element_map = repo.load("new-app")
    assert [e.path for e in element_map.flatten()] == ["settings.profile.avatar"]


def test_update_under_descriptor_goes_into_children(tmp_path, element_map):
    repo = ElementMapRepository(tmp_path)
    repo.save(element_map)

    repo.update("cv-builder", "chat.panel.clearButton", {
        "selector": "[data-testid='chat-clear']",
        "description": "Clear conversation",
        "type": "button",
    })

    paths = [e.path for e in repo.load("cv-builder").flatten()]
    assert paths.index("chat.panel.clearButton") == paths.index("chat.panel") + 1


def test_invalid_descriptor_and_paths(tmp_path):
    repo = ElementMapRepository(tmp_path)

    with pytest.raises(InvalidFormatError):
        repo.update("cv-builder", "chat.input", {"selector": "textarea"})
    with pytest.raises(InvalidFormatError):
        ElementMap.create("cv-builder").set_element("chat..input", ElementDescriptor("a", "b", "input"))
    with pytest.raises(InvalidFormatError):
        repo.path_for("../etc/passwd")


def test_load_errors(tmp_path):
    repo = ElementMapRepository(tmp_path)

    with pytest.raises(ElementMapNotFoundError) as exc_info:
        repo.load("ghost")
    assert exc_info.value.status_code == 404

    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidFormatError):
        repo.load("broken")

    with pytest.raises(InvalidFormatError):
        ElementMap({"app": "x", "elements": {"a.b": {}}})


UPDATED_VALUE = re.compile(r'("updated": )"[^"]*"')


def test_save_of_loaded_map_is_byte_for_byte(tmp_path):
    shutil.copy(MAPS_ROOT / "element-maps" / "cv-builder.json", tmp_path / "cv-builder.json")
    original = (tmp_path / "cv-builder.json").read_text(encoding="utf-8")
    repo = ElementMapRepository(tmp_path)

    repo.save(repo.load("cv-builder"))

    assert (tmp_path / "cv-builder.json").read_text(encoding="utf-8") == original


def test_save_after_touch_differs_only_in_updated(tmp_path):
    shutil.copy(MAPS_ROOT / "element-maps" / "cv-builder.json", tmp_path / "cv-builder.json")
    original = (tmp_path / "cv-builder.json").read_text(encoding="utf-8")
    repo = ElementMapRepository(tmp_path)
    element_map = repo.load("cv-builder")
    element_map.updated = "2026-01-01T00:00:00.000Z"

    repo.save(element_map)

    saved = (tmp_path / "cv-builder.json").read_text(encoding="utf-8")
    assert saved != original
    assert UPDATED_VALUE.sub(r'\1"*"', saved) == UPDATED_VALUE.sub(r'\1"*"', original)

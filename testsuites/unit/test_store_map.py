import asyncio

import pytest

from browser_automation.common import (
    InvalidFormatError,
    QueryNotFoundError,
    SecurityDeniedError,
    StoreMapNotFoundError,
    StoreUnavailableError,
)
from browser_automation.maps.store_map import (
    DEV_MODE_HINT,
    StoreInspector,
    StoreMap,
    StoreMapRepository,
    StoreType,
    parse_access_path,
)


def test_parse_access_path():
    assert parse_access_path("window.__REDUX_DEVTOOLS_EXTENSION__.stores[0]") == [
        "__REDUX_DEVTOOLS_EXTENSION__", "stores", "0",
    ]
    assert parse_access_path("globalThis.appStore") == ["appStore"]
    assert parse_access_path("__APP_STORE__") == ["__APP_STORE__"]

    for bad in ("window", "fetch('/steal')", "a.b; alert(1)", "a[b]", ""):
        with pytest.raises(InvalidFormatError):
            parse_access_path(bad)


def test_store_map_round_trip(store_map):
    assert store_map.store_type == StoreType.REDUX
    assert store_map.access_path_segments == [
        ["__REDUX_DEVTOOLS_EXTENSION__", "stores", "0"],
        ["__APP_STORE__"],
    ]
    assert StoreMap.from_dict(store_map.to_dict()) == store_map

    query = store_map.get_query("activeTab")
    assert query.segments == ["ui", "activeTab"]
    assert store_map.get_query("authToken").dev_mode_only is True


def test_unknown_query_lists_available_queries(store_map):
    with pytest.raises(QueryNotFoundError) as exc_info:
        store_map.get_query("nope")

    assert exc_info.value.details["availableQueries"] == [
        "activeTab", "authToken", "bioName", "chatMessages", "isStreaming",
    ]


def test_invalid_store_maps():
    with pytest.raises(InvalidFormatError):
        StoreMap.from_dict({"app": "x", "storeType": "flux"})
    with pytest.raises(InvalidFormatError):
        StoreMap.from_dict({"app": "x", "accessPath": "eval('1')"})
    with pytest.raises(InvalidFormatError):
        StoreMap.from_dict({"app": "x", "queries": {"q": {"path": "a.b", "type": "date"}}})
    with pytest.raises(InvalidFormatError):
        StoreMap.from_dict({"app": "x", "queries": {"q": {"path": "a[0]", "type": "string"}}})


def test_repository(tmp_path, store_map):
    repo = StoreMapRepository(tmp_path)

    with pytest.raises(StoreMapNotFoundError):
        repo.load("cv-builder")

    repo.save(store_map)
    assert repo.list_apps() == ["cv-builder"]
    assert repo.load("cv-builder") == store_map


@pytest.mark.asyncio
async def test_query_store(page, store_map, store_bridge):
    inspector = StoreInspector(page, store_map)

    assert await inspector.query_store("activeTab") == "bio"
    typed = await inspector.query_store_typed("chatMessages")
    assert typed.value == []
    assert typed.to_dict()["type"] == "array"
    assert typed.to_dict()["queryPath"] == "state.chat.messages"

    assert store_bridge.calls[0]["accessPaths"][1] == ["__APP_STORE__"]
    assert store_bridge.calls[0]["path"] == ["ui", "activeTab"]


@pytest.mark.asyncio
async def test_missing_path_yields_none(page, store_map, store_bridge):
    del store_bridge.state["bio"]
    typed = await StoreInspector(page, store_map).query_store_typed("bioName")
    assert typed.value is None
    assert typed.value_type == "undefined"


@pytest.mark.asyncio
async def test_dev_only_query_denied_outside_development(page, store_map, store_bridge):
    inspector = StoreInspector(page, store_map, dev_mode=False)

    with pytest.raises(SecurityDeniedError) as exc_info:
        await inspector.query_store("authToken")

    assert exc_info.value.status_code == 403
    assert exc_info.value.hint == DEV_MODE_HINT
    assert store_bridge.calls == []

    dev = StoreInspector(page, store_map, dev_mode=True)
    assert await dev.query_store("authToken") == "secret-token"


@pytest.mark.asyncio
async def test_unreachable_store(page, store_map, store_bridge):
    store_bridge.accessible = False

    with pytest.raises(StoreUnavailableError, match="__APP_STORE__"):
        await StoreInspector(page, store_map).query_store("activeTab")


@pytest.mark.asyncio
async def test_evaluate_failure_is_store_unavailable(page, store_map):
    def explode(script, arg):
        raise RuntimeError("Execution context was destroyed")

    page.evaluate_handler = explode
    with pytest.raises(StoreUnavailableError, match="Execution context"):
        await StoreInspector(page, store_map).get_store_snapshot()


@pytest.mark.asyncio
async def test_wait_for_store_state_sees_change(page, store_map, store_bridge):
    inspector = StoreInspector(page, store_map)

    async def switch_tab():
        await asyncio.sleep(0.05)
        store_bridge.state["ui"]["activeTab"] = "jobs"

    switcher = asyncio.ensure_future(switch_tab())
    result = await inspector.wait_for_store_state("activeTab", "jobs", timeout=200, poll_interval=10)
    await switcher

    assert result.success is True
    assert result.query == "state.ui.activeTab"
    assert result.value == "jobs"
    assert 40 <= result.elapsed < 200
    assert "actualValue" not in result.to_dict()


@pytest.mark.asyncio
async def test_wait_for_store_state_timeout_keeps_last_value(page, store_map, store_bridge):
    inspector = StoreInspector(page, store_map)

    result = await inspector.wait_for_store_state("activeTab", "outputs", timeout=60, poll_interval=10)

    assert result.success is False
    assert result.actual_value == "bio"
    assert result.to_dict()["actualValue"] == "bio"
    assert result.elapsed >= 60


@pytest.mark.asyncio
async def test_wait_uses_deep_equality(page, store_map, store_bridge):
    store_bridge.state["chat"]["messages"] = [{"role": "user", "text": "hi"}]
    inspector = StoreInspector(page, store_map)

    result = await inspector.wait_for_store_state(
        "chatMessages", [{"text": "hi", "role": "user"}], timeout=50, poll_interval=10
    )
    assert result.success is True


@pytest.mark.asyncio
async def test_snapshot(page, store_map, store_bridge):
    snapshot = await StoreInspector(page, store_map).get_store_snapshot()
    assert snapshot["ui"] == {"activeTab": "bio"}


@pytest.mark.asyncio
async def test_validate_store_map(page, store_map, store_bridge):
    result = await StoreInspector(page, store_map).validate_store_map()

    assert result.valid is True
    assert result.actual_type == "redux"
    assert result.access_path == "__REDUX_DEVTOOLS_EXTENSION__.stores.0"
    assert result.query_results["authToken"].skipped is True
    assert result.query_results["isStreaming"].actual_type == "boolean"


@pytest.mark.asyncio
async def test_validate_reports_type_and_value_mismatches(page, store_map, store_bridge):
    store_bridge.store_type = "zustand"
    store_bridge.state["chat"]["isStreaming"] = "no"
    store_bridge.state["ui"]["activeTab"] = "settings"
    store_bridge.state["bio"]["name"] = None

    result = await StoreInspector(page, store_map, dev_mode=True).validate_store_map()

    assert result.valid is False
    assert result.type_matches is False
    assert result.query_results["isStreaming"].error == "Type mismatch: expected boolean, got string"
    assert "not one of the declared values" in result.query_results["activeTab"].error
    assert result.query_results["bioName"].valid is True
    assert result.query_results["authToken"].skipped is False


@pytest.mark.asyncio
async def test_validate_unreachable_store(page, store_map, store_bridge):
    store_bridge.accessible = False

    result = await StoreInspector(page, store_map).validate_store_map()

    assert result.valid is False
    assert result.accessible is False
    assert result.to_dict()["queryResults"] == {}


@pytest.mark.asyncio
async def test_custom_store_type_always_matches(page, store_map, store_bridge):
    store_map.store_type = StoreType.CUSTOM
    store_bridge.store_type = "zustand"

    result = await StoreInspector(page, store_map).validate_store_map()
    assert result.type_matches is True

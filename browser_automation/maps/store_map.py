"""
================================================================================
Store Map
================================================================================

Declarative queries over the application's state container.

A store map declares how to reach the store (``accessPath`` plus fallbacks)
and a set of named queries (dot paths into the state). The in-page bridge
only ever receives declared access paths and query paths as data; callers
cannot submit code to evaluate.

File layout (``<store_maps_dir>/<app>.json``):

    {
      "app": "cv-builder",
      "storeType": "redux",
      "accessPath": "window.__REDUX_DEVTOOLS_EXTENSION__.stores[0]",
      "alternativeAccessPaths": ["window.__APP_STORE__"],
      "queries": {
        "activeTab": {"path": "state.ui.activeTab", "type": "string",
                      "values": ["bio", "jobs", "outputs"]},
        "chatMessages": {"path": "state.chat.messages", "type": "array"},
        "authToken": {"path": "state.auth.token", "type": "string",
                      "devModeOnly": true}
      },
      "version": "1.0.0",
      "updated": "2025-11-17T12:00:00.000Z"
    }

Features:
    - queryStore: read one declared query (missing keys yield None)
    - waitForStoreState: poll until deep-equal or timeout, last value kept
    - snapshot: full state tree
    - validate: reachability, store kind inference, per-query type checks

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
from typing import Any, Dict, List, Optional, Union

import allure
from loguru import logger
from playwright.async_api import Page

from browser_automation.common import (
    InvalidFormatError,
    QueryNotFoundError,
    SecurityDeniedError,
    StoreMapNotFoundError,
    StoreUnavailableError,
    utc_now_iso,
)
from browser_automation.framework.element_actions import error_message
from browser_automation.framework.wait_helpers import WaitConfig, poll_until
from browser_automation.maps.comparison import deep_equal
from browser_automation.maps.element_map import APP_NAME_PATTERN


DEFAULT_ACCESS_PATH = "window.__REDUX_DEVTOOLS_EXTENSION__.stores[0]"
DEFAULT_WAIT_TIMEOUT = 30000
DEFAULT_POLL_INTERVAL = 100

DEV_MODE_HINT = "Set ENVIRONMENT=development to enable development-only store queries"

_IDENTIFIER = r"[A-Za-z_$][A-Za-z0-9_$]*"
ACCESS_PATH_PATTERN = re.compile(rf"^{_IDENTIFIER}(?:\.{_IDENTIFIER}|\[\d+\])*$")
QUERY_PATH_PATTERN = re.compile(r"^[A-Za-z0-9_$]+(?:\.[A-Za-z0-9_$]+)*$")

# Resolves the store from declared paths and reads state. Paths arrive as
# arrays of property names; nothing supplied by the caller is evaluated.
STORE_BRIDGE_SCRIPT = """
({ accessPaths, path, mode }) => {
  const resolve = (segments) => {
    let target = window;
    for (const segment of segments) {
      if (target === null || target === undefined) return undefined;
      target = target[segment];
    }
    return target;
  };
  const typeOf = (value) => {
    if (value === null) return 'null';
    if (Array.isArray(value)) return 'array';
    return typeof value;
  };
  const kindOf = (store) => {
    if (typeof store.getState === 'function' && typeof store.dispatch === 'function') return 'redux';
    if (typeof store.getState === 'function' && typeof store.setState === 'function') return 'zustand';
    if (store.$mobx || Object.getOwnPropertySymbols(store).some((s) => String(s).includes('mobx'))) return 'mobx';
    if (typeof store.get === 'function' && typeof store.set === 'function' && typeof store.sub === 'function') return 'jotai';
    return 'custom';
  };

  let store;
  let usedPath = null;
  for (const segments of accessPaths) {
    const candidate = resolve(segments);
    if (candidate !== undefined && candidate !== null) {
      store = candidate;
      usedPath = segments.join('.');
      break;
    }
  }
  if (store === undefined) {
    return { accessible: false };
  }

  if (mode === 'probe') {
    return { accessible: true, accessPath: usedPath, storeType: kindOf(store) };
  }

  const state = typeof store.getState === 'function' ? store.getState() : store;
  let value = state;
  if (mode === 'query') {
    for (const part of path) {
      if (value === null || value === undefined) break;
      value = value[part];
    }
  }
  return { accessible: true, accessPath: usedPath, value, valueType: typeOf(value) };
}
"""


class StoreType(str, Enum):
    """Supported state management libraries."""
    REDUX = "redux"
    MOBX = "mobx"
    ZUSTAND = "zustand"
    JOTAI = "jotai"
    VALTIO = "valtio"
    CUSTOM = "custom"


class QueryType(str, Enum):
    """Declared result type of a store query."""
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"
    UNDEFINED = "undefined"


ALWAYS_ACCEPTED_TYPES = {QueryType.NULL.value, QueryType.UNDEFINED.value}


@dataclass
class StoreQuery:
    """A named dot path into application state."""
    name: str
    path: str
    type: QueryType
    description: Optional[str] = None
    values: Optional[List[Any]] = None
    dev_mode_only: bool = False

    @property
    def segments(self) -> List[str]:
        """Path segments with the leading "state" token dropped."""
        parts = self.path.split(".")
        if parts and parts[0] == "state":
            parts = parts[1:]
        return parts

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "StoreQuery":
        path = data.get("path")
        if not isinstance(path, str) or not QUERY_PATH_PATTERN.match(path):
            raise InvalidFormatError(f"Store query '{name}' has an invalid path: {path!r}")
        try:
            query_type = QueryType(data.get("type"))
        except ValueError as e:
            raise InvalidFormatError(
                f"Store query '{name}' has an invalid type: {data.get('type')!r}"
            ) from e
        return cls(
            name=name,
            path=path,
            type=query_type,
            description=data.get("description"),
            values=data.get("values"),
            dev_mode_only=bool(data.get("devModeOnly", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"path": self.path, "type": self.type.value}
        if self.values is not None:
            data["values"] = self.values
        if self.description is not None:
            data["description"] = self.description
        if self.dev_mode_only:
            data["devModeOnly"] = True
        return data


def parse_access_path(access_path: str) -> List[str]:
    """
    Split a declared access path into property names.

    "window.__STORE__.stores[0]" -> ["__STORE__", "stores", "0"]

    Raises:
        InvalidFormatError: Anything other than identifiers and numeric indexes
    """
    if not isinstance(access_path, str) or not ACCESS_PATH_PATTERN.match(access_path):
        raise InvalidFormatError(f"Invalid store access path: {access_path!r}")
    segments = re.findall(rf"{_IDENTIFIER}|\d+", access_path.replace("[", ".").replace("]", ""))
    if segments and segments[0] in ("window", "globalThis"):
        segments = segments[1:]
    if not segments:
        raise InvalidFormatError(f"Store access path names no property: {access_path!r}")
    return segments


@dataclass
class StoreMap:
    """How to reach an application's store, plus its declared queries."""
    app: str
    store_type: StoreType
    access_path: str = DEFAULT_ACCESS_PATH
    alternative_access_paths: List[str] = field(default_factory=list)
    queries: Dict[str, StoreQuery] = field(default_factory=dict)
    version: Optional[str] = None
    updated: Optional[str] = None

    @property
    def access_path_segments(self) -> List[List[str]]:
        return [
            parse_access_path(path)
            for path in [self.access_path, *self.alternative_access_paths]
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreMap":
        if not isinstance(data, dict) or not isinstance(data.get("app"), str):
            raise InvalidFormatError("Store map requires a string 'app'")
        try:
            store_type = StoreType(data.get("storeType", StoreType.CUSTOM.value))
        except ValueError as e:
            raise InvalidFormatError(f"Unknown store type: {data.get('storeType')!r}") from e

        queries = data.get("queries") or {}
        if not isinstance(queries, dict):
            raise InvalidFormatError("Store map 'queries' must be an object")

        access_path = data.get("accessPath", DEFAULT_ACCESS_PATH)
        alternatives = list(data.get("alternativeAccessPaths") or [])
        for path in [access_path, *alternatives]:
            parse_access_path(path)

        return cls(
            app=data["app"],
            store_type=store_type,
            access_path=access_path,
            alternative_access_paths=alternatives,
            queries={name: StoreQuery.from_dict(name, q) for name, q in queries.items()},
            version=data.get("version"),
            updated=data.get("updated"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "app": self.app,
            "storeType": self.store_type.value,
            "accessPath": self.access_path,
        }
        if self.alternative_access_paths:
            data["alternativeAccessPaths"] = list(self.alternative_access_paths)
        data["queries"] = {name: q.to_dict() for name, q in self.queries.items()}
        if self.version is not None:
            data["version"] = self.version
        if self.updated is not None:
            data["updated"] = self.updated
        return data

    def get_query(self, name: str) -> StoreQuery:
        """
        Raises:
            QueryNotFoundError: With the list of declared query names
        """
        query = self.queries.get(name)
        if query is None:
            raise QueryNotFoundError(
                f"Query '{name}' not found in store map for '{self.app}'",
                availableQueries=sorted(self.queries),
            )
        return query


class StoreMapRepository:
    """One JSON store map per application."""

    def __init__(self, maps_dir: Path):
        self.maps_dir = Path(maps_dir)

    def path_for(self, app: str) -> Path:
        if not app or not APP_NAME_PATTERN.match(app):
            raise InvalidFormatError(f"Invalid app name: '{app}'")
        return self.maps_dir / f"{app}.json"

    def list_apps(self) -> List[str]:
        if not self.maps_dir.exists():
            return []
        return sorted(p.stem for p in self.maps_dir.glob("*.json"))

    def load(self, app: str) -> StoreMap:
        """
        Raises:
            StoreMapNotFoundError: No map file for the app
            InvalidFormatError: The file is not a valid store map
        """
        path = self.path_for(app)
        if not path.exists():
            raise StoreMapNotFoundError(f"Store map not found for app '{app}'", app=app)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidFormatError(f"Invalid JSON in store map {path}: {e}") from e
        return StoreMap.from_dict(data)

    def save(self, store_map: StoreMap) -> Path:
        path = self.path_for(store_map.app)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(store_map.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug(f"Store map saved: {path}")
        return path


# ================================================================================
# Results
# ================================================================================

@dataclass
class StoreQueryResult:
    query: str
    path: str
    value: Any
    value_type: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "queryPath": self.path,
            "result": self.value,
            "type": self.value_type,
            "timestamp": self.timestamp,
        }


@dataclass
class StoreWaitResult:
    """Outcome of waiting for a store value; actual_value is set only on timeout."""
    success: bool
    query: str
    value: Any
    elapsed: float
    timestamp: str
    actual_value: Any = None
    attempts: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "query": self.query,
            "value": self.value,
            "timestamp": self.timestamp,
            "elapsed": self.elapsed,
        }
        if not self.success:
            data["actualValue"] = self.actual_value
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class QueryValidation:
    valid: bool
    expected_type: str
    actual_type: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "valid": self.valid,
            "expectedType": self.expected_type,
            "actualType": self.actual_type,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.skipped:
            data["skipped"] = True
        return data


@dataclass
class StoreValidationResult:
    app: str
    accessible: bool
    declared_type: str
    actual_type: Optional[str] = None
    access_path: Optional[str] = None
    type_matches: bool = False
    queries_valid: bool = False
    query_results: Dict[str, QueryValidation] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return self.accessible and self.type_matches and self.queries_valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app": self.app,
            "valid": self.valid,
            "accessible": self.accessible,
            "accessPath": self.access_path,
            "declaredType": self.declared_type,
            "actualType": self.actual_type,
            "typeMatches": self.type_matches,
            "queriesValid": self.queries_valid,
            "queryResults": {name: r.to_dict() for name, r in self.query_results.items()},
        }


# ================================================================================
# Store Inspector
# ================================================================================

class StoreInspector:
    """
    Reads application state through the declared store map.

    Example:
        inspector = StoreInspector(page, store_map, dev_mode=settings.dev_mode)
        tab = await inspector.query_store("activeTab")
        result = await inspector.wait_for_store_state("activeTab", "jobs", timeout=5000)
    """

    def __init__(self, page: Page, store_map: StoreMap, dev_mode: bool = False):
        self.page = page
        self.store_map = store_map
        self.dev_mode = dev_mode

    async def _evaluate(self, mode: str, path: Optional[List[str]] = None) -> Dict[str, Any]:
        arg = {
            "accessPaths": self.store_map.access_path_segments,
            "path": path or [],
            "mode": mode,
        }
        try:
            result = await self.page.evaluate(STORE_BRIDGE_SCRIPT, arg)
        except Exception as e:
            raise StoreUnavailableError(f"Failed to query store: {error_message(e)}") from e
        return result or {"accessible": False}

    def _resolve_query(self, query: Union[str, StoreQuery]) -> StoreQuery:
        if isinstance(query, str):
            query = self.store_map.get_query(query)
        if query.dev_mode_only and not self.dev_mode:
            logger.warning(f"[SECURITY] Blocked development-only store query: {query.name}")
            raise SecurityDeniedError(
                f"Query '{query.name}' is only available in development mode",
                hint=DEV_MODE_HINT,
            )
        return query

    async def query_store_typed(self, query: Union[str, StoreQuery]) -> StoreQueryResult:
        """
        Read a declared query together with its in-page type.

        Raises:
            QueryNotFoundError: Unknown query name
            SecurityDeniedError: Development-only query outside development mode
            StoreUnavailableError: The store cannot be reached
        """
        query = self._resolve_query(query)
        result = await self._evaluate("query", query.segments)
        if not result.get("accessible"):
            raise StoreUnavailableError(
                f"Store not reachable for app '{self.store_map.app}' "
                f"(tried: {', '.join([self.store_map.access_path, *self.store_map.alternative_access_paths])})"
            )
        return StoreQueryResult(
            query=query.name,
            path=query.path,
            value=result.get("value"),
            value_type=result.get("valueType", "undefined"),
            timestamp=utc_now_iso(),
        )

    async def query_store(self, query: Union[str, StoreQuery]) -> Any:
        """Current value of a declared query (None when the path is missing)."""
        return (await self.query_store_typed(query)).value

    async def wait_for_store_state(
        self,
        query: Union[str, StoreQuery],
        expected: Any,
        timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> StoreWaitResult:
        """
        Poll a query until it deep-equals ``expected`` or the timeout elapses.

        Args:
            query: Query name or StoreQuery
            expected: Value to wait for
            timeout: Budget in milliseconds
            poll_interval: Delay between reads in milliseconds

        Returns:
            StoreWaitResult; on timeout it carries the last observed value
        """
        query = self._resolve_query(query)

        async def check():
            value = await self.query_store(query)
            return deep_equal(value, expected), value

        with allure.step(f"Wait for store {query.name} == {expected!r}"):
            outcome = await poll_until(
                check,
                WaitConfig(timeout=timeout, poll_interval=poll_interval),
                description=f"Store query {query.name}",
            )

        return StoreWaitResult(
            success=outcome.success,
            query=query.path,
            value=expected,
            elapsed=outcome.elapsed,
            timestamp=utc_now_iso(),
            actual_value=None if outcome.success else outcome.value,
            attempts=outcome.attempts,
            error=outcome.last_error,
        )

    async def get_store_snapshot(self) -> Any:
        """
        Full state tree.

        Raises:
            StoreUnavailableError: The store cannot be reached
        """
        result = await self._evaluate("snapshot")
        if not result.get("accessible"):
            raise StoreUnavailableError(f"Store not reachable for app '{self.store_map.app}'")
        return result.get("value")

    async def validate_store_map(self) -> StoreValidationResult:
        """
        Check reachability, store kind and every declared query.

        Development-only queries are skipped outside development mode.
        """
        declared = self.store_map.store_type.value
        result = StoreValidationResult(app=self.store_map.app, accessible=False, declared_type=declared)

        with allure.step(f"Validate store map: {self.store_map.app}"):
            try:
                probe = await self._evaluate("probe")
            except StoreUnavailableError as e:
                logger.warning(f"Store probe failed: {e.message}")
                probe = {"accessible": False}

            result.accessible = bool(probe.get("accessible"))
            if not result.accessible:
                logger.warning(f"Store not accessible for app '{self.store_map.app}'")
                return result

            result.access_path = probe.get("accessPath")
            result.actual_type = probe.get("storeType", StoreType.CUSTOM.value)
            result.type_matches = (
                declared == StoreType.CUSTOM.value or result.actual_type == declared
            )

            for name, query in self.store_map.queries.items():
                result.query_results[name] = await self._validate_query(query)

        result.queries_valid = all(r.valid for r in result.query_results.values())
        logger.info(
            f"Store map '{self.store_map.app}' validated: accessible={result.accessible}, "
            f"typeMatches={result.type_matches}, queriesValid={result.queries_valid}"
        )
        return result

    async def _validate_query(self, query: StoreQuery) -> QueryValidation:
        expected = query.type.value
        if query.dev_mode_only and not self.dev_mode:
            return QueryValidation(
                valid=True,
                expected_type=expected,
                error="Skipped: development mode only",
                skipped=True,
            )

        try:
            outcome = await self.query_store_typed(query)
        except StoreUnavailableError as e:
            return QueryValidation(valid=False, expected_type=expected, error=e.message)

        actual = outcome.value_type
        if actual in ALWAYS_ACCEPTED_TYPES or expected in ALWAYS_ACCEPTED_TYPES:
            return QueryValidation(valid=True, expected_type=expected, actual_type=actual)
        if actual != expected:
            return QueryValidation(
                valid=False,
                expected_type=expected,
                actual_type=actual,
                error=f"Type mismatch: expected {expected}, got {actual}",
            )
        if query.values and not any(deep_equal(outcome.value, v) for v in query.values):
            return QueryValidation(
                valid=False,
                expected_type=expected,
                actual_type=actual,
                error=f"Value {outcome.value!r} is not one of the declared values",
            )
        return QueryValidation(valid=True, expected_type=expected, actual_type=actual)


__all__ = [
    "StoreType",
    "QueryType",
    "StoreQuery",
    "StoreMap",
    "StoreMapRepository",
    "StoreInspector",
    "StoreQueryResult",
    "StoreWaitResult",
    "QueryValidation",
    "StoreValidationResult",
    "parse_access_path",
    "STORE_BRIDGE_SCRIPT",
    "DEFAULT_ACCESS_PATH",
]

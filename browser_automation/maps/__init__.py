"""
================================================================================
Element & Store Maps
================================================================================

Declarative descriptions of an application under test.

Components:
    - element_map: Semantic selector registry (load, flatten, update)
    - element_search: Fuzzy search over flattened elements
    - element_validator: Check selectors against a live page
    - store_map: Declared state queries, waits, snapshots and validation
    - comparison: Deep equality and JavaScript truthiness of state values

Author: Automation Team
License: MIT
================================================================================
"""

from .comparison import deep_equal, js_truthy, js_type_of
from .element_map import (
    ElementDescriptor,
    ElementMap,
    ElementMapRepository,
    ElementType,
    FlatElement,
    flatten_elements,
)
from .element_search import SearchResult, search_elements
from .element_validator import ValidationIssue, ValidationResult, validate_element_map
from .store_map import (
    StoreInspector,
    StoreMap,
    StoreMapRepository,
    StoreQuery,
    StoreType,
    StoreValidationResult,
    StoreWaitResult,
)

__all__ = [
    "deep_equal",
    "js_truthy",
    "js_type_of",
    "ElementDescriptor",
    "ElementMap",
    "ElementMapRepository",
    "ElementType",
    "FlatElement",
    "flatten_elements",
    "SearchResult",
    "search_elements",
    "ValidationIssue",
    "ValidationResult",
    "validate_element_map",
    "StoreInspector",
    "StoreMap",
    "StoreMapRepository",
    "StoreQuery",
    "StoreType",
    "StoreValidationResult",
    "StoreWaitResult",
]

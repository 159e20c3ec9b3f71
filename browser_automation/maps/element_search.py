# ================================================================================
# Element Search Module
# ================================================================================
#
# Fuzzy search over flattened element maps.
#
# Scoring:
#   Each field (name, description, path, type) gets a similarity in [0, 1]
#   from rapidfuzz: the full-string ratio, or 0.9 x the best substring
#   alignment (partial_ratio), whichever is higher. Identical strings score
#   exactly 1. A field participates when its distance (1 - similarity) is
#   within the threshold. Participating distances are combined as a weighted
#   geometric product (log-linear in the field weights):
#
#       distance = prod(d_f ** (w_f / sum(w)))      score = 1 - distance
#
#   so one exact field drives the distance towards zero, the name field
#   (highest weight) dominates, and every extra matching field improves the
#   score. Records with no participating field are excluded.
#
#   threshold = 0  -> exact (normalized) matches only
#   threshold = 1  -> every record matches
#
# ================================================================================

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rapidfuzz import fuzz

from browser_automation.maps.element_map import FlatElement


FIELD_WEIGHTS: Dict[str, float] = {
    "name": 0.4,
    "description": 0.3,
    "path": 0.2,
    "type": 0.1,
}

DEFAULT_THRESHOLD = 0.4
PARTIAL_MATCH_FACTOR = 0.9
DISTANCE_FLOOR = 1e-12

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[\s._\-/]+")


def normalize(text: Optional[str]) -> str:
    """Lowercase and split camelCase / snake_case / dotted text into words."""
    if not text:
        return ""
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", text)
    return _SEPARATORS.sub(" ", text).strip().lower()


def field_similarity(query: str, value: str) -> float:
    """Similarity of two normalized strings in [0, 1]."""
    if not query or not value:
        return 0.0
    if query == value:
        return 1.0
    full = fuzz.ratio(query, value) / 100
    partial = fuzz.partial_ratio(query, value) / 100 * PARTIAL_MATCH_FACTOR
    return min(max(full, partial), 0.999999)


@dataclass
class SearchResult:
    """A matched element with its 0-1 score (higher is better)."""
    element: FlatElement
    score: float
    matches: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.element.to_dict(),
            "score": round(self.score, 4),
            "matches": self.matches,
        }


def score_element(
    query: str,
    element: FlatElement,
    threshold: float = DEFAULT_THRESHOLD,
    weights: Optional[Dict[str, float]] = None,
) -> Optional[SearchResult]:
    """
    Score one element against a normalized query.

    Returns:
        SearchResult, or None when no field is within the threshold
    """
    weights = weights or FIELD_WEIGHTS
    total_weight = sum(weights.values())
    values = {
        "name": normalize(element.name),
        "description": normalize(element.description),
        "path": normalize(element.path),
        "type": normalize(element.type),
    }

    log_distance = 0.0
    matches: Dict[str, float] = {}
    for field_name, weight in weights.items():
        similarity = field_similarity(query, values.get(field_name, ""))
        distance = 1 - similarity
        if distance > threshold:
            continue
        matches[field_name] = round(similarity, 4)
        log_distance += (weight / total_weight) * math.log(max(distance, DISTANCE_FLOOR))

    if not matches:
        return None
    return SearchResult(element=element, score=1 - math.exp(log_distance), matches=matches)


def search_elements(
    elements: List[FlatElement],
    query: str,
    threshold: float = DEFAULT_THRESHOLD,
    limit: Optional[int] = None,
) -> List[SearchResult]:
    """
    Rank elements by fuzzy similarity to a query.

    Args:
        elements: Flattened element map
        query: Free text, e.g. "bio tab" or "submitButton"
        threshold: Per-field distance tolerance in [0, 1]
        limit: Maximum number of results

    Returns:
        Results sorted by score, best first; ties keep map order
    """
    if not 0 <= threshold <= 1:
        raise ValueError("threshold must be between 0 and 1")

    normalized = normalize(query)
    if not normalized:
        return []

    results = [
        result for result in (score_element(normalized, e, threshold) for e in elements)
        if result is not None
    ]
    results.sort(key=lambda r: r.score, reverse=True)
    if limit is not None and limit > 0:
        results = results[:limit]
    return results


__all__ = [
    "FIELD_WEIGHTS",
    "DEFAULT_THRESHOLD",
    "SearchResult",
    "normalize",
    "field_similarity",
    "score_element",
    "search_elements",
]

"""
================================================================================
Element Map Validator
================================================================================

Checks every descriptor of an element map against a live page.

Per descriptor:
    primary selector matches exactly 1 element   -> passed
    primary selector matches > 1 element         -> warning (ambiguous)
    primary matches 0, an alternative matches    -> warning (fallback)
    nothing matches / the check raised           -> error

``valid`` means zero errors; strict mode also requires zero warnings.
The whole sweep runs under one time budget; descriptors not checked before
the deadline are reported as errors and the result is flagged ``timed_out``.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Page

from browser_automation.framework.element_actions import error_message
from browser_automation.maps.element_map import ElementMap, FlatElement


DEFAULT_VALIDATION_TIMEOUT = 60000


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCategory(str, Enum):
    MISSING = "missing"
    FALLBACK = "fallback"
    AMBIGUOUS = "ambiguous"
    EXCEPTION = "exception"
    TIMEOUT = "timeout"


@dataclass
class ValidationIssue:
    severity: IssueSeverity
    category: IssueCategory
    element: str
    message: str
    selector: str
    working_selector: Optional[str] = None
    match_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "severity": self.severity.value,
            "category": self.category.value,
            "element": self.element,
            "message": self.message,
            "selector": self.selector,
        }
        if self.working_selector is not None:
            data["workingSelector"] = self.working_selector
        if self.match_count is not None:
            data["matchCount"] = self.match_count
        return data


@dataclass
class ValidationResult:
    """Aggregate outcome of checking a map against a live page."""
    app: str
    strict: bool = False
    issues: List[ValidationIssue] = field(default_factory=list)
    total_elements: int = 0
    passed_elements: int = 0
    warning_elements: int = 0
    error_elements: int = 0
    timed_out: bool = False
    duration: float = 0

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

    @property
    def valid(self) -> bool:
        if self.error_elements:
            return False
        return not (self.strict and self.warning_elements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app": self.app,
            "valid": self.valid,
            "strict": self.strict,
            "timedOut": self.timed_out,
            "totalElements": self.total_elements,
            "passedElements": self.passed_elements,
            "warningElements": self.warning_elements,
            "errorElements": self.error_elements,
            "issues": [issue.to_dict() for issue in self.issues],
            "duration": self.duration,
        }


async def _count(page: Page, selector: str) -> int:
    return await page.locator(selector).count()


async def check_element(page: Page, element: FlatElement) -> Optional[ValidationIssue]:
    """
    Validate one descriptor.

    Returns:
        None when it passes, otherwise the issue found
    """
    try:
        count = await _count(page, element.selector)
        if count == 1:
            return None
        if count > 1:
            return ValidationIssue(
                severity=IssueSeverity.WARNING,
                category=IssueCategory.AMBIGUOUS,
                element=element.path,
                message=f"Selector matches {count} elements (ambiguous)",
                selector=element.selector,
                match_count=count,
            )

        for alternative in element.alternatives:
            if await _count(page, alternative) >= 1:
                return ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    category=IssueCategory.FALLBACK,
                    element=element.path,
                    message=(
                        "Primary selector not found, works via fallback, "
                        f"selector: {alternative}"
                    ),
                    selector=element.selector,
                    working_selector=alternative,
                )

        return ValidationIssue(
            severity=IssueSeverity.ERROR,
            category=IssueCategory.MISSING,
            element=element.path,
            message="Element not found with primary selector or any alternative",
            selector=element.selector,
            match_count=0,
        )
    except Exception as e:
        return ValidationIssue(
            severity=IssueSeverity.ERROR,
            category=IssueCategory.EXCEPTION,
            element=element.path,
            message=f"Validation failed: {error_message(e)}",
            selector=element.selector,
        )


async def validate_element_map(
    page: Page,
    element_map: ElementMap,
    strict: bool = False,
    timeout: Optional[float] = DEFAULT_VALIDATION_TIMEOUT,
) -> ValidationResult:
    """
    Validate every descriptor of a map against the page.

    Args:
        page: Live page showing the application
        element_map: Map to validate
        strict: Treat warnings as failures
        timeout: Budget in milliseconds for the whole sweep (None = unbounded)

    Returns:
        ValidationResult with per-element issues and counts
    """
    started = time.monotonic()
    deadline = started + timeout / 1000 if timeout is not None else None
    elements = element_map.flatten()
    result = ValidationResult(app=element_map.app, strict=strict, total_elements=len(elements))

    with allure.step(f"Validate element map: {element_map.app} ({len(elements)} elements)"):
        for element in elements:
            issue: Optional[ValidationIssue]
            remaining = None if deadline is None else deadline - time.monotonic()

            if result.timed_out or (remaining is not None and remaining <= 0):
                result.timed_out = True
                issue = ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    category=IssueCategory.TIMEOUT,
                    element=element.path,
                    message="Validation timed out before this element was checked",
                    selector=element.selector,
                )
            else:
                try:
                    issue = await asyncio.wait_for(check_element(page, element), timeout=remaining)
                except asyncio.TimeoutError:
                    result.timed_out = True
                    issue = ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.TIMEOUT,
                        element=element.path,
                        message=f"Validation timed out after {timeout}ms",
                        selector=element.selector,
                    )

            if issue is None:
                result.passed_elements += 1
                continue

            result.issues.append(issue)
            if issue.severity == IssueSeverity.ERROR:
                result.error_elements += 1
            else:
                result.warning_elements += 1

    result.duration = round((time.monotonic() - started) * 1000, 1)
    logger.info(
        f"Element map '{element_map.app}' validated: "
        f"{result.passed_elements}/{result.total_elements} passed, "
        f"{result.warning_elements} warnings, {result.error_elements} errors"
        + (" (timed out)" if result.timed_out else "")
    )
    return result


__all__ = [
    "IssueSeverity",
    "IssueCategory",
    "ValidationIssue",
    "ValidationResult",
    "check_element",
    "validate_element_map",
    "DEFAULT_VALIDATION_TIMEOUT",
]

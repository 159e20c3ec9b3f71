"""
================================================================================
Test Result Models
================================================================================

Per-test status is a one-way state machine:

    PENDING -> RUNNING -> PASSED | FAILED | SKIPPED
    PENDING -> FAILED | SKIPPED        (not run: hook failure, skipped test)

Terminal states never change. Suite summaries are derived from the test
results, so ``total == passed + failed + skipped`` always holds.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TestStatus(str, Enum):
    """Lifecycle status of a single test."""
    __test__ = False

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (TestStatus.PASSED, TestStatus.FAILED, TestStatus.SKIPPED)


class InvalidTransitionError(RuntimeError):
    """Raised when a test result is moved out of a terminal state."""


@dataclass
class TestError:
    """Failure details recorded on a test result."""
    __test__ = False

    message: str
    name: str = "Error"
    stack: Optional[str] = None

    @classmethod
    def from_exception(cls, error: BaseException) -> "TestError":
        return cls(
            message=str(error) or type(error).__name__,
            name=type(error).__name__,
            stack="".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "message": self.message}
        if self.stack:
            data["stack"] = self.stack
        return data


@dataclass
class TestResult:
    """Outcome of one test, including retries."""
    __test__ = False

    name: str
    status: TestStatus = TestStatus.PENDING
    duration: float = 0
    error: Optional[TestError] = None
    skip_reason: Optional[str] = None
    attempts: int = 0

    def start(self) -> None:
        if self.status != TestStatus.PENDING:
            raise InvalidTransitionError(
                f"Test '{self.name}' cannot start from status {self.status.value}"
            )
        self.status = TestStatus.RUNNING

    def finish(
        self,
        status: TestStatus,
        error: Optional[TestError] = None,
        skip_reason: Optional[str] = None,
    ) -> None:
        if not status.is_terminal:
            raise InvalidTransitionError(f"{status.value} is not a terminal status")
        if self.status.is_terminal:
            raise InvalidTransitionError(
                f"Test '{self.name}' already finished with status {self.status.value}"
            )
        self.status = status
        self.error = error
        self.skip_reason = skip_reason

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "duration": self.duration,
            "attempts": self.attempts,
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.skip_reason:
            data["skipReason"] = self.skip_reason
        return data


@dataclass
class SuiteSummary:
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_results(cls, results: List[TestResult]) -> "SuiteSummary":
        summary = cls(total=len(results))
        for result in results:
            if result.status == TestStatus.PASSED:
                summary.passed += 1
            elif result.status == TestStatus.SKIPPED:
                summary.skipped += 1
            else:
                summary.failed += 1
        return summary

    def add(self, other: "SuiteSummary") -> "SuiteSummary":
        return SuiteSummary(
            total=self.total + other.total,
            passed=self.passed + other.passed,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass
class HookError:
    """A failed lifecycle hook (``test`` is set for per-test hooks)."""
    hook: str
    error: TestError
    test: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"hook": self.hook, "error": self.error.to_dict()}
        if self.test is not None:
            data["test"] = self.test
        return data


@dataclass
class SuiteResult:
    name: str
    tests: List[TestResult] = field(default_factory=list)
    duration: float = 0
    hook_errors: List[HookError] = field(default_factory=list)

    @property
    def summary(self) -> SuiteSummary:
        return SuiteSummary.from_results(self.tests)

    @property
    def success(self) -> bool:
        return self.summary.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "summary": self.summary.to_dict(),
            "duration": self.duration,
            "success": self.success,
            "tests": [t.to_dict() for t in self.tests],
            "hookErrors": [h.to_dict() for h in self.hook_errors],
        }


@dataclass
class RunResult:
    suites: List[SuiteResult] = field(default_factory=list)
    duration: float = 0
    bailed: bool = False

    @property
    def summary(self) -> SuiteSummary:
        total = SuiteSummary()
        for suite in self.suites:
            total = total.add(suite.summary)
        return total

    @property
    def success(self) -> bool:
        return all(suite.success for suite in self.suites)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "duration": self.duration,
            "success": self.success,
            "bailed": self.bailed,
            "suites": [s.to_dict() for s in self.suites],
        }


__all__ = [
    "TestStatus",
    "TestError",
    "TestResult",
    "SuiteSummary",
    "SuiteResult",
    "HookError",
    "RunResult",
    "InvalidTransitionError",
]

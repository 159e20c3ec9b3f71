"""
================================================================================
Test Runner
================================================================================

Suite / test / hook model over the browser primitives and store engine.

Components:
    - test_suite: Suites, tests and lifecycle hooks
    - test_case: Test context (assertions, skip, timeout)
    - test_runner: Sequential runner, reporters and exit code
    - assertions: DOM, page, screenshot and store assertions
    - models: Test / suite / run results

Author: Automation Team
License: MIT
================================================================================
"""

from .assertions import AssertionFailure, Assertions
from .constants import POLLING, TEST_TIMEOUTS
from .models import RunResult, SuiteResult, SuiteSummary, TestError, TestResult, TestStatus
from .reporters import AllureReporter, ConsoleReporter, JSONReporter, Reporter
from .test_case import TestCase, TestContext, TestSkipped, TestTimeoutError
from .test_runner import RunnerConfig, TestRunner
from .test_suite import TestSuite

__all__ = [
    "AssertionFailure",
    "Assertions",
    "POLLING",
    "TEST_TIMEOUTS",
    "RunResult",
    "SuiteResult",
    "SuiteSummary",
    "TestError",
    "TestResult",
    "TestStatus",
    "AllureReporter",
    "ConsoleReporter",
    "JSONReporter",
    "Reporter",
    "TestCase",
    "TestContext",
    "TestSkipped",
    "TestTimeoutError",
    "RunnerConfig",
    "TestRunner",
    "TestSuite",
]

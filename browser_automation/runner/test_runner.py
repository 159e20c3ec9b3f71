"""
================================================================================
Test Runner
================================================================================

Runs registered suites in order, fans results out to reporters and derives
the process exit code (non-zero iff any test failed).

Usage:
    runner = TestRunner(RunnerConfig(reporters=["console", "json"]), assertions=assertions)
    runner.add_suite(tabs_suite).add_suite(chat_suite)
    await runner.run_all()
    sys.exit(runner.get_exit_code())

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from loguru import logger

from browser_automation.runner.models import RunResult, SuiteResult
from browser_automation.runner.reporters import Reporter, build_reporters
from browser_automation.runner.test_suite import TestSuite


@dataclass
class RunnerConfig:
    reporters: List[str] = field(default_factory=lambda: ["console"])
    output_dir: Path = Path("test-results")
    bail: bool = False
    verbose: bool = False
    filter: Optional[str] = None


class TestRunner:
    """Sequential suite runner."""
    __test__ = False

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        assertions: Any = None,
        reporters: Optional[List[Reporter]] = None,
    ):
        self.config = config or RunnerConfig()
        self.assertions = assertions
        self.reporters = (
            reporters
            if reporters is not None
            else build_reporters(self.config.reporters, self.config.output_dir, self.config.verbose)
        )
        self.suites: List[TestSuite] = []
        self.results: List[SuiteResult] = []

    def add_suite(self, suite: TestSuite) -> "TestRunner":
        self.suites.append(suite)
        return self

    def _notify(self, event: str, *args: Any) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, event)(*args)
            except Exception as e:
                logger.error(f"Reporter '{reporter.name}' failed on {event}: {e}")

    async def run(self, suite: TestSuite) -> SuiteResult:
        """Run one suite and report it."""
        self._notify("on_suite_start", suite.name, len(suite.tests))
        result = await suite.run(assertions=self.assertions, name_filter=self.config.filter)
        self.results.append(result)
        self._notify("on_suite_end", result)
        return result

    async def run_all(self) -> RunResult:
        """
        Run every registered suite in order.

        With ``bail`` set, stops after the first suite that has a failure.
        """
        started = time.monotonic()
        run_result = RunResult()
        for suite in self.suites:
            suite_result = await self.run(suite)
            run_result.suites.append(suite_result)
            if self.config.bail and not suite_result.success:
                logger.warning(f"Bailing out after failures in suite '{suite.name}'")
                run_result.bailed = True
                break

        run_result.duration = round((time.monotonic() - started) * 1000, 1)
        self._notify("on_run_end", run_result)
        return run_result

    def get_exit_code(self) -> int:
        return 0 if all(result.success for result in self.results) else 1


__all__ = ["RunnerConfig", "TestRunner"]

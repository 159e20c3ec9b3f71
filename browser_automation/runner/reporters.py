"""
================================================================================
Test Reporters
================================================================================

Reporters receive suite results as they finish and the run result at the
end. Results are reported, not stored: the JSON reporter writes one file
per run for the caller to pick up.

Reporters:
    - console: loguru summary with per-test status icons
    - json:    ``<output_dir>/results-<timestamp>.json``
    - allure:  JSON attachments on the current Allure report

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import allure
from loguru import logger

from browser_automation.runner.models import RunResult, SuiteResult, TestStatus


STATUS_ICONS = {
    TestStatus.PASSED: "✅",
    TestStatus.FAILED: "❌",
    TestStatus.SKIPPED: "⏭️",
}


class Reporter:
    """Base reporter; every callback is optional."""

    name = "base"

    def on_suite_start(self, suite_name: str, test_count: int) -> None:
        pass

    def on_suite_end(self, result: SuiteResult) -> None:
        pass

    def on_run_end(self, result: RunResult) -> None:
        pass


class ConsoleReporter(Reporter):
    name = "console"

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def on_suite_end(self, result: SuiteResult) -> None:
        for test in result.tests:
            icon = STATUS_ICONS.get(test.status, "•")
            line = f"  {icon} {test.name} ({test.duration}ms)"
            if test.status == TestStatus.FAILED and test.error is not None:
                logger.error(f"{line}: {test.error.message}")
                if self.verbose and test.error.stack:
                    logger.debug(test.error.stack)
            elif test.status == TestStatus.SKIPPED:
                logger.info(f"{line}: {test.skip_reason or 'skipped'}")
            else:
                logger.info(line)

        for hook_error in result.hook_errors:
            logger.warning(f"  ⚠️ {hook_error.hook} hook error: {hook_error.error.message}")

        summary = result.summary
        logger.info(
            f"Suite '{result.name}': {summary.passed} passed, {summary.failed} failed, "
            f"{summary.skipped} skipped ({result.duration}ms)"
        )

    def on_run_end(self, result: RunResult) -> None:
        summary = result.summary
        logger.info("=" * 60)
        logger.info("TEST EXECUTION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Total Tests:    {summary.total}")
        logger.info(f"Passed:         {summary.passed} ✅")
        logger.info(f"Failed:         {summary.failed} ❌")
        logger.info(f"Skipped:        {summary.skipped} ⏭️")
        logger.info(f"Duration:       {result.duration / 1000:.2f}s")
        logger.info("=" * 60)


class JSONReporter(Reporter):
    name = "json"

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.last_path: Optional[Path] = None

    def on_run_end(self, result: RunResult) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.output_dir / f"results-{stamp}.json"
        path.write_text(json.dumps(result.to_dict(), indent=2, default=str), encoding="utf-8")
        self.last_path = path
        logger.info(f"Test results written to {path}")


class AllureReporter(Reporter):
    name = "allure"

    @staticmethod
    def _attach(data: Dict[str, Any], name: str) -> None:
        allure.attach(
            json.dumps(data, indent=2, default=str),
            name=name,
            attachment_type=allure.attachment_type.JSON,
        )

    def on_suite_end(self, result: SuiteResult) -> None:
        self._attach(result.to_dict(), f"Suite: {result.name}")

    def on_run_end(self, result: RunResult) -> None:
        self._attach(result.summary.to_dict(), "Run Summary")


REPORTERS: Dict[str, Type[Reporter]] = {
    ConsoleReporter.name: ConsoleReporter,
    JSONReporter.name: JSONReporter,
    AllureReporter.name: AllureReporter,
}


def build_reporters(names: List[str], output_dir: Path, verbose: bool = False) -> List[Reporter]:
    """
    Instantiate reporters by name.

    Raises:
        ValueError: Unknown reporter name
    """
    reporters: List[Reporter] = []
    for name in names:
        if name == ConsoleReporter.name:
            reporters.append(ConsoleReporter(verbose=verbose))
        elif name == JSONReporter.name:
            reporters.append(JSONReporter(output_dir))
        elif name == AllureReporter.name:
            reporters.append(AllureReporter())
        else:
            raise ValueError(f"Unknown reporter: {name}. Available: {', '.join(REPORTERS)}")
    return reporters


__all__ = [
    "Reporter",
    "ConsoleReporter",
    "JSONReporter",
    "AllureReporter",
    "build_reporters",
]

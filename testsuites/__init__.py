"""
Test suites package.

This repository intentionally keeps `testsuites` importable to support:
  - IDE navigation
  - programmatic runners (e.g., `run_tests.py`)
  - shared fakes (`testsuites.fakes`) used by both the unit and API suites

Nothing here launches a real browser.
"""

"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and tags tests by the suite they live in.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "security: Development gate and rate limit tests"
    )

    # Suite markers
    config.addinivalue_line(
        "markers", "unit: Engine tests against fake Playwright objects"
    )
    config.addinivalue_line(
        "markers", "api: Control API tests served in-process"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Tests are tagged with the suite they live in so `-m unit` / `-m api`
    select one suite.
    """
    for item in items:
        path = str(item.fspath)
        if "api_testing" in path:
            item.add_marker(pytest.mark.api)
        elif "unit" in path:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Browser Automation Engine Test Suite",
        "=" * 60,
        "",
    ]

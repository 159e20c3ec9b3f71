"""
================================================================================
Control API Pytest Configuration
================================================================================

Fixtures running the control API in-process over fake Playwright objects.

Fixtures:
    - api_client_factory: build a TestClient for given settings overrides
    - dev_client / prod_client: clients in development / production mode

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import shutil
from dataclasses import replace
from typing import Any, Callable, Generator, List

import pytest
from fastapi.testclient import TestClient

from browser_automation.common import Settings
from browser_automation.server import AutomationContext, create_app
from testsuites.fakes import MAPS_ROOT, FakePlaywright


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "P0: Critical smoke tests (must pass)")
    config.addinivalue_line("markers", "P1: Core functionality tests")
    config.addinivalue_line("markers", "P2: Extended coverage tests")
    config.addinivalue_line("markers", "smoke: Quick health checks of the control API")
    config.addinivalue_line("markers", "security: Development gate and rate limit tests")


@pytest.fixture
def api_settings(tmp_path) -> Settings:
    """Settings pointing at a private copy of the fixture maps."""
    shutil.copytree(MAPS_ROOT / "element-maps", tmp_path / "element-maps")
    shutil.copytree(MAPS_ROOT / "store-maps", tmp_path / "store-maps")
    return Settings(
        environment="development",
        element_maps_dir=tmp_path / "element-maps",
        store_maps_dir=tmp_path / "store-maps",
        screenshots_dir=tmp_path / "screenshots",
    )


@pytest.fixture
def api_client_factory(api_settings) -> Generator[Callable[..., TestClient], None, None]:
    """
    Build clients whose app runs on its own FakePlaywright.

    Yields:
        build(**settings_overrides) -> entered TestClient
    """
    clients: List[TestClient] = []

    def build(**overrides: Any) -> TestClient:
        fake_playwright = FakePlaywright()
        context = AutomationContext.from_settings(
            replace(api_settings, **overrides),
            playwright_factory=lambda: fake_playwright,
        )
        client = TestClient(create_app(context))
        client.__enter__()
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def dev_client(api_client_factory) -> TestClient:
    return api_client_factory(environment="development")


@pytest.fixture
def prod_client(api_client_factory) -> TestClient:
    return api_client_factory(environment="production")

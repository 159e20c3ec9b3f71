"""
================================================================================
Unit Test Fixtures
================================================================================

Fixtures wiring the Playwright fakes into the engine components.

Fixtures:
    - fake_playwright / manager: BrowserManager over FakePlaywright
    - page: standalone FakePage
    - element_map / store_map: the cv-builder fixture maps
    - store_bridge / install_store: FakeStoreBridge attached to a page

================================================================================
"""

import pytest

from browser_automation.common import Settings
from browser_automation.framework.browser_manager import BrowserManager
from browser_automation.maps.element_map import ElementMap, ElementMapRepository
from browser_automation.maps.store_map import StoreMap, StoreMapRepository
from testsuites.fakes import (
    MAPS_ROOT,
    FakePage,
    FakePlaywright,
    FakeStoreBridge,
    cv_builder_state,
)


@pytest.fixture
def fake_playwright() -> FakePlaywright:
    return FakePlaywright()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="development",
        session_timeout=300000,
        element_maps_dir=tmp_path / "element-maps",
        store_maps_dir=tmp_path / "store-maps",
        screenshots_dir=tmp_path / "screenshots",
    )


@pytest.fixture
def manager(settings, fake_playwright) -> BrowserManager:
    return BrowserManager(settings, playwright_factory=lambda: fake_playwright)


@pytest.fixture
def page() -> FakePage:
    return FakePage(url="http://localhost:3000/", title="CV Builder")


@pytest.fixture
def element_map() -> ElementMap:
    return ElementMapRepository(MAPS_ROOT / "element-maps").load("cv-builder")


@pytest.fixture
def store_map() -> StoreMap:
    return StoreMapRepository(MAPS_ROOT / "store-maps").load("cv-builder")


@pytest.fixture
def store_bridge(page) -> FakeStoreBridge:
    bridge = FakeStoreBridge(cv_builder_state())
    page.evaluate_handler = bridge
    return bridge


@pytest.fixture
def install_store():
    """Attach a fresh cv-builder store bridge to a page."""
    def install(target: FakePage) -> FakeStoreBridge:
        bridge = FakeStoreBridge(cv_builder_state())
        target.evaluate_handler = bridge
        return bridge

    return install

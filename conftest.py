"""
Repository-level pytest configuration.

Why this exists:
  - Provide safe defaults so local runs never open a visible browser window
  - Keep every test on temporary directories instead of the real screenshot folder
  - Keep behavior explicit and discoverable

Important:
  Tests build their own Settings and fake Playwright objects; nothing here
  launches a real browser.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _safe_env_defaults() -> Generator[None, None, None]:
    """
    Set safe environment defaults if not already provided by the user/CI.

    ENVIRONMENT is deliberately left alone: tests choose development or
    production mode explicitly.
    """
    defaults = {
        "BROWSER_HEADLESS": "true",
        "LOGGING_LEVEL": "INFO",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield

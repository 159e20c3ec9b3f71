"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration management with environment variable override support.

Features:
    - Hierarchical YAML configuration loading
    - Environment variable override (BROWSER_HEADLESS overrides browser.headless)
    - Dot notation path access
    - Typed settings snapshot consumed by the browser manager and control API
    - Development mode detection (ENVIRONMENT / NODE_ENV)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger


# Default configuration file path (repository root /config/config.yaml)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

DEV_ENVIRONMENTS = ("development", "dev")


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Environment variables (BROWSER_HEADLESS)
        2. YAML configuration file
        3. Default values

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("browser.headless", True)
        True

        >>> config.get("server.port", 3002)
        3002

    Environment Variable Mapping:
        - browser.headless -> BROWSER_HEADLESS
        - browser.session_timeout -> BROWSER_SESSION_TIMEOUT
        - screenshots.dir -> SCREENSHOTS_DIR
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Singleton pattern - return existing instance if available."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
            logger.debug(f"Loaded configuration from: {self._config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        First checks environment variables, then YAML config, then default.

        Args:
            key: Dot-notation path (e.g., "browser.headless")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        env_key = key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._convert_type(env_value, default)

        value = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Args:
            section: Section name (e.g., "browser", "rate_limits")

        Returns:
            Section dictionary or empty dict if not found
        """
        return self._config.get(section, {}) or {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value
        if isinstance(reference, list):
            return [item.strip() for item in value.split(",") if item.strip()]

        return value

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        cls._instance = None
        cls._config = {}


def resolve_environment(config: Optional[ConfigLoader] = None) -> str:
    """
    Resolve the runtime environment name.

    ENVIRONMENT wins, then NODE_ENV (kept for parity with the web app that
    hosts the state bridge), then ENV, then the YAML ``environment`` key.
    """
    for env_key in ("ENVIRONMENT", "NODE_ENV", "ENV"):
        value = os.environ.get(env_key)
        if value:
            return value.lower()

    if config is not None:
        return str(config.get("environment", "production")).lower()
    return "production"


@dataclass(frozen=True)
class Settings:
    """
    Typed snapshot of every tunable used by the automation engine.

    Built once from ConfigLoader and passed explicitly to the components
    that need it, so tests can construct their own without touching YAML.
    """
    environment: str = "production"

    # Browser
    browser_type: str = "chromium"
    headless: bool = True
    launch_args: List[str] = field(default_factory=lambda: [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
    ])
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: Optional[str] = None
    session_timeout: int = 300000
    action_timeout: int = 30000
    navigation_timeout: int = 30000

    # Maps
    element_maps_dir: Path = Path("tests/element-maps")
    store_maps_dir: Path = Path("tests/store-maps")
    default_app: str = "cv-builder"

    # Screenshots
    screenshots_dir: Path = Path("screenshots")
    screenshot_max_age_days: int = 30

    # Control API
    server_host: str = "127.0.0.1"
    server_port: int = 3002
    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:3000",
        "http://localhost:5173",
    ])

    # Rate limits (requests per minute)
    console_rate_limit: int = 30
    errors_rate_limit: int = 20
    snapshot_rate_limit: int = 10

    # Observability buffers
    console_max_entries: int = 1000
    error_max_entries: int = 100

    @property
    def dev_mode(self) -> bool:
        """True when dev-only endpoints and observability are allowed."""
        return self.environment in DEV_ENVIRONMENTS

    @property
    def viewport(self) -> Dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "Settings":
        """
        Build settings from the YAML/env configuration.

        Args:
            config: Loader to read from. Uses the process-wide singleton if omitted.

        Returns:
            Settings snapshot
        """
        config = config or ConfigLoader()
        defaults = cls()

        return cls(
            environment=resolve_environment(config),
            browser_type=config.get("browser.type", defaults.browser_type),
            headless=config.get("browser.headless", defaults.headless),
            launch_args=config.get("browser.launch_args", list(defaults.launch_args)),
            viewport_width=config.get("browser.viewport.width", defaults.viewport_width),
            viewport_height=config.get("browser.viewport.height", defaults.viewport_height),
            user_agent=config.get("browser.user_agent", defaults.user_agent),
            session_timeout=config.get("browser.session_timeout", defaults.session_timeout),
            action_timeout=config.get("browser.action_timeout", defaults.action_timeout),
            navigation_timeout=config.get(
                "browser.navigation_timeout", defaults.navigation_timeout
            ),
            element_maps_dir=Path(config.get("maps.element_dir", str(defaults.element_maps_dir))),
            store_maps_dir=Path(config.get("maps.store_dir", str(defaults.store_maps_dir))),
            default_app=config.get("maps.default_app", defaults.default_app),
            screenshots_dir=Path(config.get("screenshots.dir", str(defaults.screenshots_dir))),
            screenshot_max_age_days=config.get(
                "screenshots.max_age_days", defaults.screenshot_max_age_days
            ),
            server_host=config.get("server.host", defaults.server_host),
            server_port=config.get("server.port", defaults.server_port),
            cors_origins=config.get("server.cors_origins", list(defaults.cors_origins)),
            console_rate_limit=config.get("rate_limits.console", defaults.console_rate_limit),
            errors_rate_limit=config.get("rate_limits.errors", defaults.errors_rate_limit),
            snapshot_rate_limit=config.get("rate_limits.snapshot", defaults.snapshot_rate_limit),
            console_max_entries=config.get(
                "observability.console_max_entries", defaults.console_max_entries
            ),
            error_max_entries=config.get(
                "observability.error_max_entries", defaults.error_max_entries
            ),
        )


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "Settings",
    "resolve_environment",
    "DEFAULT_CONFIG_PATH",
]

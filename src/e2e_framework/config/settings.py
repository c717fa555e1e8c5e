"""Framework settings with environment variable and YAML loading."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = "E2E_"
CONFIG_FILE_NAME = "e2e.yaml"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes")


class TestDataConfig(BaseModel):
    """Where test data is loaded from."""

    __test__ = False

    source: Literal["json", "yaml", "api"] = Field(
        default_factory=lambda: os.getenv("TEST_DATA_SOURCE", "json"),
        description="Test data source",
    )
    path: Optional[str] = Field(
        default_factory=lambda: os.getenv("TEST_DATA_PATH"),
        description="File path for json/yaml sources",
    )
    endpoint: Optional[str] = Field(
        default_factory=lambda: os.getenv("TEST_DATA_ENDPOINT"),
        description="URL for the api source",
    )


class BrowserConfig(BaseModel):
    """Browser launch and recording options."""

    headless: bool = Field(
        default_factory=lambda: _env_bool("HEADLESS", True),
        description="Run browsers headless",
    )
    slow_mo: int = Field(
        default_factory=lambda: int(os.getenv("SLOW_MO", "0")),
        description="Delay between Playwright operations (ms)",
    )
    devtools: bool = Field(default=False, description="Open devtools (chromium)")
    record_video: bool = Field(
        default_factory=lambda: _env_bool("RECORD_VIDEO", True),
        description="Record a video per test",
    )
    record_har: bool = Field(
        default_factory=lambda: _env_bool("RECORD_HAR", False),
        description="Record network traffic to a HAR file",
    )


class MobileConfig(BaseModel):
    """Device emulation options."""

    device_name: str = Field(description="Playwright device descriptor name")
    orientation: Literal["portrait", "landscape"] = Field(
        default="portrait", description="Screen orientation"
    )


class ApiConfig(BaseModel):
    """API client options."""

    timeout: int = Field(default=30000, description="Request timeout (ms)")
    retries: int = Field(default=3, description="Attempts per request")
    headers: Dict[str, str] = Field(default_factory=dict, description="Default headers")


class FrameworkSettings(BaseModel):
    """Run-wide options shared by fixtures, reporters and the CLI."""

    # Environment
    environment: str = Field(
        default_factory=lambda: os.getenv("TEST_ENV", "staging"),
        description="Target environment (dev, staging, prod)",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("BASE_URL", "https://www.google.com"),
        description="Base URL for UI tests",
    )
    api_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "API_BASE_URL", "https://jsonplaceholder.typicode.com"
        ),
        description="Base URL for API tests",
    )
    ci: bool = Field(
        default_factory=lambda: bool(os.getenv("CI")),
        description="Running on a CI server",
    )

    # Feature toggles
    enable_visual_testing: bool = Field(
        default_factory=lambda: _env_bool("ENABLE_VISUAL_TESTING", True)
    )
    enable_accessibility_testing: bool = Field(
        default_factory=lambda: _env_bool("ENABLE_ACCESSIBILITY_TESTING", True)
    )
    enable_performance_testing: bool = Field(
        default_factory=lambda: _env_bool("ENABLE_PERFORMANCE_TESTING", True)
    )

    # Sub-configurations
    test_data_config: TestDataConfig = Field(default_factory=TestDataConfig)
    browser_config: BrowserConfig = Field(default_factory=BrowserConfig)
    mobile_config: Optional[MobileConfig] = Field(default=None)
    api_config: ApiConfig = Field(default_factory=ApiConfig)

    # Timeouts (ms)
    action_timeout: int = Field(default=30000, description="Default action timeout")
    navigation_timeout: int = Field(default=60000, description="Navigation timeout")
    expect_timeout: int = Field(default=10000, description="Assertion timeout")
    screenshot_threshold: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Per-pixel colour threshold"
    )

    # Artifacts
    output_dir: str = Field(default="test-results", description="Artifacts directory")
    snapshot_dir: str = Field(
        default="tests/__snapshots__", description="Visual baseline directory"
    )
    screenshot: Literal["off", "on", "only-on-failure"] = Field(
        default="only-on-failure"
    )
    video: Literal["off", "on", "retain-on-failure"] = Field(
        default="retain-on-failure"
    )
    trace: Literal["off", "on", "retain-on-failure"] = Field(
        default="retain-on-failure"
    )
    viewport_width: int = Field(default=1920)
    viewport_height: int = Field(default=1080)
    ignore_https_errors: bool = Field(default=True)
    accept_downloads: bool = Field(default=True)
    user_agent: str = Field(default="Playwright Test Automation Framework")

    # Runner
    forbid_only: bool = Field(default_factory=lambda: bool(os.getenv("CI")))
    update_snapshots: bool = Field(
        default_factory=lambda: _env_bool("UPDATE_SNAPSHOTS", False)
    )
    archive_results: bool = Field(
        default_factory=lambda: _env_bool("ARCHIVE_RESULTS", False)
    )

    # Notifications
    enable_notifications: bool = Field(
        default_factory=lambda: _env_bool("ENABLE_NOTIFICATIONS", False)
    )
    slack_webhook_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("SLACK_WEBHOOK_URL")
    )
    teams_webhook_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("TEAMS_WEBHOOK_URL")
    )
    email_enabled: bool = Field(default_factory=lambda: _env_bool("EMAIL_ENABLED", False))

    class Config:
        """Pydantic configuration."""

        extra = "allow"  # Allow extra fields from config files

    @property
    def results_dir(self) -> Path:
        return Path(self.output_dir)

    def ensure_directories(self) -> List[Path]:
        """Create the artifact directories used during a run."""
        base = self.results_dir
        dirs = [
            base,
            base / "screenshots",
            base / "videos",
            base / "downloads",
            base / "har",
            base / "traces",
            base / "custom-reports",
        ]
        for dir_path in dirs:
            dir_path.mkdir(parents=True, exist_ok=True)
        return dirs


def get_config_paths() -> List[Path]:
    """
    Get configuration file paths in priority order.

    Returns:
        List of paths, highest priority last
    """
    return [
        Path.home() / ".e2e-framework" / "config.yaml",
        Path.cwd() / CONFIG_FILE_NAME,
    ]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def load_settings(config_path: Optional[str] = None) -> FrameworkSettings:
    """
    Load framework settings.

    Settings are merged in this order (later overrides earlier):
    1. Default values (environment variables such as TEST_ENV, BASE_URL)
    2. Global config (~/.e2e-framework/config.yaml)
    3. Project config (./e2e.yaml)
    4. Explicit config_path if provided
    5. Environment variables prefixed with E2E_ (E2E_BROWSER_CONFIG__SLOW_MO=250)

    Args:
        config_path: Optional explicit config file path

    Returns:
        Merged FrameworkSettings instance
    """
    merged: Dict[str, Any] = {}

    config_paths = get_config_paths()
    if config_path:
        config_paths.append(Path(config_path))

    for path in config_paths:
        if path.exists():
            try:
                with open(path) as f:
                    file_config = yaml.safe_load(f) or {}
                merged = _deep_merge(merged, file_config)
                logger.debug(f"Loaded config from {path}")
            except Exception as e:
                logger.warning(f"Failed to load config from {path}: {e}")

    merged = _deep_merge(merged, _get_env_overrides())

    return FrameworkSettings(**merged)


def _coerce(value: str) -> Any:
    if value.lower() in ("true", "1", "yes"):
        return True
    if value.lower() in ("false", "0", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        try:
            return float(value)
        except ValueError:
            return value


def _get_env_overrides() -> Dict[str, Any]:
    """
    Get setting overrides from environment variables.

    Variables are prefixed with E2E_; a double underscore selects a nested
    field. Boolean and numeric values are converted automatically.

    Returns:
        Dictionary of overrides
    """
    overrides: Dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = key[len(ENV_PREFIX) :].lower().split("__")
        target = overrides
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = _coerce(value)

    return overrides


def save_settings(settings: FrameworkSettings, path: Optional[Path] = None) -> Path:
    """
    Save settings to a YAML file.

    Args:
        settings: Settings to save
        path: Target path (default: ./e2e.yaml)

    Returns:
        Path written
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILE_NAME

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(
            settings.model_dump(mode="json", exclude_none=True),
            f,
            default_flow_style=False,
            sort_keys=False,
        )

    logger.info(f"Saved config to {path}")
    return path

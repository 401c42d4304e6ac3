"""
YAML configuration loader.

Reads config.yaml into a StagingSettings object, then lets the environment
override secrets and deployment knobs. Falls back to defaults if the file is
missing.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from stagingpage.models import LiveApiConfig, StagingSettings

logger = logging.getLogger(__name__)

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def _apply_env(settings: StagingSettings, env: Mapping[str, str]) -> None:
    """Environment variables win over the file."""
    if env.get("STATUSPAGE_API_KEY"):
        settings.live.api_key = env["STATUSPAGE_API_KEY"]
    if env.get("STATUSPAGE_PAGE_ID"):
        settings.live.page_id = env["STATUSPAGE_PAGE_ID"]
    if "PREVIEW_DEMO_MODE" in env:
        settings.demo_mode = _env_flag(env["PREVIEW_DEMO_MODE"])
    if env.get("CRON_SECRET"):
        settings.cron_secret = env["CRON_SECRET"]
    if env.get("STAGING_DATA_DIR"):
        settings.data_dir = env["STAGING_DATA_DIR"]
    if env.get("PORT"):
        settings.port = int(env["PORT"])


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> StagingSettings:
    """
    Load and parse the YAML configuration file.

    Args:
        path: Config file location; defaults to config.yaml at the project root.
        env: Environment to read overrides from; defaults to os.environ.

    Returns:
        The merged StagingSettings.
    """
    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH
    environ = os.environ if env is None else env

    if not config_path.exists():
        logger.warning("Config file not found at %s, using defaults", config_path)
        settings = StagingSettings()
        _apply_env(settings, environ)
        return settings

    with open(config_path, "r") as fh:
        raw: Mapping[str, Any] = yaml.safe_load(fh) or {}

    raw_live = raw.get("live", {}) or {}
    live = LiveApiConfig(
        base_url=raw_live.get("base_url", LiveApiConfig.base_url),
        api_key=raw_live.get("api_key", "") or "",
        page_id=raw_live.get("page_id", "") or "",
    )

    raw_settings = raw.get("settings", {}) or {}
    defaults = StagingSettings()
    settings = StagingSettings(
        data_dir=raw_settings.get("data_dir", defaults.data_dir),
        state_file=raw_settings.get("state_file", defaults.state_file),
        tracker_dir=raw_settings.get("tracker_dir", defaults.tracker_dir),
        tracker_file=raw_settings.get("tracker_file", defaults.tracker_file),
        demo_mode=bool(raw_settings.get("demo_mode", defaults.demo_mode)),
        auto_seed=bool(raw_settings.get("auto_seed", defaults.auto_seed)),
        sweep_interval=int(raw_settings.get("sweep_interval", defaults.sweep_interval)),
        log_level=raw_settings.get("log_level", defaults.log_level),
        max_retries=int(raw_settings.get("max_retries", defaults.max_retries)),
        base_backoff=int(raw_settings.get("base_backoff", defaults.base_backoff)),
        port=int(raw_settings.get("port", defaults.port)),
        cron_secret=raw_settings.get("cron_secret", "") or "",
        live=live,
    )

    _apply_env(settings, environ)
    return settings

"""Application configuration loader.

Loads configuration from data/config/studytrack_v1.yaml, falling back to
built-in defaults when the file is missing. STUDYTRACK_DB overrides the
database path.

Usage:
    from studytrack.config.app_config import load_app_config

    config = load_app_config()
    db_path = config.storage.db_path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/studytrack_v1.yaml")
DB_PATH_ENV = "STUDYTRACK_DB"

THEMES = ("light", "dark")


@dataclass
class StorageConfig:
    """Where the SQLite database lives."""

    db_path: Path = Path("data/studytrack.db")


@dataclass
class ApiConfig:
    """Web API settings."""

    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    default_theme: str = "light"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "storage": {"db_path": "data/studytrack.db"},
        "api": {"cors_origins": ["*"]},
        "ui": {"default_theme": "light"},
    }


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        logger.warning("config.invalid_section", section=key, found=type(value).__name__)
        return {}
    return value


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    storage_data = _section(data, "storage")
    db_path = os.environ.get(DB_PATH_ENV) or storage_data.get(
        "db_path", defaults["storage"]["db_path"]
    )

    api_data = _section(data, "api")
    cors_origins = api_data.get("cors_origins", defaults["api"]["cors_origins"])

    ui_data = _section(data, "ui")
    theme = ui_data.get("default_theme", defaults["ui"]["default_theme"])
    if theme not in THEMES:
        logger.warning("config.invalid_theme", theme=theme, fallback="light")
        theme = "light"

    return AppConfig(
        storage=StorageConfig(db_path=Path(db_path)),
        api=ApiConfig(cors_origins=list(cors_origins)),
        default_theme=theme,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, using defaults if no file exists.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            logger.warning(
                "config.invalid_format",
                source=str(CONFIG_FILE),
                found=type(data).__name__,
            )
            data = {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None

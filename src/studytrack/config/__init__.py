"""Configuration package for the study tracker."""

from studytrack.config.app_config import (
    ApiConfig,
    AppConfig,
    StorageConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "StorageConfig",
    "clear_config_cache",
    "load_app_config",
]

"""Configuration package for the grade tracker."""

from gradetrack.config.app_config import (
    AppConfig,
    LocalConfig,
    RemoteConfig,
    build_adapter,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "LocalConfig",
    "RemoteConfig",
    "build_adapter",
    "clear_config_cache",
    "load_app_config",
]

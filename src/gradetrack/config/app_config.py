"""Application configuration loader.

Loads configuration from data/config/gradetrack.yaml, falling back to
built-in defaults when the file is missing.

Usage:
    from gradetrack.config.app_config import load_app_config, build_adapter

    config = load_app_config()
    adapter = build_adapter(config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from gradetrack.persistence import (
    CourseAdapter,
    KeyValueStorage,
    LocalCourseAdapter,
    RemoteCourseAdapter,
)

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/gradetrack.yaml")

BACKENDS = ("local", "remote")


@dataclass
class RemoteConfig:
    """Connection settings for the course API."""

    base_url: str = "http://localhost:8000"
    timeout: float = 10
    base_url_env: str | None = "GRADETRACK_API_URL"

    def get_base_url(self) -> str:
        """Base URL, overridden by the environment variable when set."""
        if self.base_url_env:
            override = os.environ.get(self.base_url_env)
            if override:
                return override
        return self.base_url


@dataclass
class LocalConfig:
    """Settings for on-device storage."""

    storage_dir: str = "data/state"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    backend: str = "local"
    user_id: str = "local-user"
    dark_mode: bool = False
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    local: LocalConfig = field(default_factory=LocalConfig)
    db_path: str = "db/gradetrack.db"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "backend": "local",
        "user_id": "local-user",
        "dark_mode": False,
        "remote": {
            "base_url": "http://localhost:8000",
            "timeout": 10,
            "base_url_env": "GRADETRACK_API_URL",
        },
        "local": {
            "storage_dir": "data/state",
        },
        "db_path": "db/gradetrack.db",
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    backend = data.get("backend", defaults["backend"])
    if backend not in BACKENDS:
        logger.warning("config.unknown_backend", backend=backend, using=defaults["backend"])
        backend = defaults["backend"]

    remote_data = {**defaults["remote"], **(data.get("remote") or {})}
    local_data = {**defaults["local"], **(data.get("local") or {})}

    return AppConfig(
        backend=backend,
        user_id=str(data.get("user_id", defaults["user_id"])),
        dark_mode=bool(data.get("dark_mode", defaults["dark_mode"])),
        remote=RemoteConfig(
            base_url=remote_data["base_url"],
            timeout=remote_data["timeout"],
            base_url_env=remote_data["base_url_env"],
        ),
        local=LocalConfig(storage_dir=local_data["storage_dir"]),
        db_path=data.get("db_path", defaults["db_path"]),
    )


def load_app_config(force_reload: bool = False, config_file: Path | None = None) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternate YAML file. Defaults to data/config/gradetrack.yaml

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    path = config_file or CONFIG_FILE
    data: dict[str, Any]

    if path.exists():
        logger.debug("config.loading", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("config.using_defaults")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def build_adapter(config: AppConfig | None = None) -> CourseAdapter:
    """Create the persistence adapter selected by the config.

    Args:
        config: Loaded config. Loads the default config if omitted.

    Returns:
        LocalCourseAdapter or RemoteCourseAdapter
    """
    config = config or load_app_config()

    if config.backend == "remote":
        base_url = config.remote.get_base_url()
        logger.debug("config.adapter", backend="remote", base_url=base_url)
        return RemoteCourseAdapter(
            base_url=base_url,
            user_id=config.user_id,
            timeout=config.remote.timeout,
        )

    logger.debug("config.adapter", backend="local", storage_dir=config.local.storage_dir)
    return LocalCourseAdapter(storage=KeyValueStorage(Path(config.local.storage_dir)))


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None

"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is missing.

Usage:
    from precalc.config.app_config import load_app_config

    config = load_app_config()
    timeout = config.sessions.assignment_timeout_minutes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class SiteConfig:
    """Presentation settings for the course site."""

    title: str = "Precalculus Program"
    support_email: str = "precalc_math@example.edu"
    maintenance_message: str | None = None


@dataclass
class SessionConfig:
    """Timeouts for login and assignment sessions."""

    login_timeout_minutes: int = 480
    assignment_timeout_minutes: int = 120
    mastery_threshold: float = 0.8


@dataclass
class AppConfig:
    """Application-wide configuration."""

    site: SiteConfig = field(default_factory=SiteConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        return Path(self.paths.get("db_path", "db/precalc.db"))

    @property
    def state_dir(self) -> Path:
        return Path(self.paths.get("state_dir", "data/state"))

    @property
    def config_dir(self) -> Path:
        """Directory holding the catalog and other YAML configs."""
        return Path(self.paths.get("config_dir", "data/config"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "site": {
            "title": "Precalculus Program",
            "support_email": "precalc_math@example.edu",
            "maintenance_message": None,
        },
        "sessions": {
            "login_timeout_minutes": 480,
            "assignment_timeout_minutes": 120,
            "mastery_threshold": 0.8,
        },
        "paths": {
            "db_path": "db/precalc.db",
            "state_dir": "data/state",
            "config_dir": "data/config",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    site_data = data.get("site") or {}
    site = SiteConfig(
        title=site_data.get("title", defaults["site"]["title"]),
        support_email=site_data.get("support_email", defaults["site"]["support_email"]),
        maintenance_message=site_data.get("maintenance_message"),
    )

    sessions_data = data.get("sessions") or {}
    sessions = SessionConfig(
        login_timeout_minutes=int(sessions_data.get("login_timeout_minutes", 480)),
        assignment_timeout_minutes=int(sessions_data.get("assignment_timeout_minutes", 120)),
        mastery_threshold=float(sessions_data.get("mastery_threshold", 0.8)),
    )

    paths = dict(defaults["paths"])
    paths.update(data.get("paths") or {})

    return AppConfig(site=site, sessions=sessions, paths=paths)


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

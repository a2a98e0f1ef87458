"""Runtime settings read from ``PLACEBOOK_*`` environment variables."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

__all__ = ["Settings", "load_settings", "reload", "default_data_dir", "default_export_dir"]

APP_NAME = "Placebook"
DB_FILENAME = "places.db"

_FALSE_VALUES = {"0", "false", "off", "no", "disable", "disabled"}
_TRUE_VALUES = {"1", "true", "on", "yes", "enable", "enabled"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    export_dir: Path
    backfill_seed: int | None = None
    backup_before_migrate: bool = True


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalised = value.strip().lower()
    if normalised in _TRUE_VALUES:
        return True
    if normalised in _FALSE_VALUES:
        return False
    return default


def _parse_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def default_data_dir(env: Mapping[str, str] | None = None) -> Path:
    """Platform-specific application data directory."""

    env = os.environ if env is None else env
    home = Path.home()

    if sys.platform == "win32":
        base = Path(env.get("LOCALAPPDATA", home / "AppData" / "Local"))
        return base / APP_NAME
    elif sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    else:
        xdg_data_home = env.get("XDG_DATA_HOME", home / ".local" / "share")
        return Path(xdg_data_home) / APP_NAME.lower()


def default_export_dir(env: Mapping[str, str] | None = None) -> Path:
    """Shared downloads-like directory, outside the app's private storage."""

    env = os.environ if env is None else env
    xdg_download = env.get("XDG_DOWNLOAD_DIR")
    if xdg_download:
        return Path(xdg_download).expanduser()
    return Path.home() / "Downloads"


def _build(env: Mapping[str, str]) -> Settings:
    raw_home = env.get("PLACEBOOK_HOME")
    data_dir = Path(raw_home).expanduser() if raw_home else default_data_dir(env)

    raw_db = env.get("PLACEBOOK_DB")
    db_path = Path(raw_db).expanduser() if raw_db else data_dir / DB_FILENAME

    raw_export = env.get("PLACEBOOK_EXPORT_DIR")
    export_dir = Path(raw_export).expanduser() if raw_export else default_export_dir(env)

    return Settings(
        data_dir=data_dir,
        db_path=db_path,
        export_dir=export_dir,
        backfill_seed=_parse_int(env.get("PLACEBOOK_BACKFILL_SEED")),
        backup_before_migrate=_parse_bool(env.get("PLACEBOOK_BACKUP"), True),
    )


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return _build(os.environ)


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Return settings for ``env`` (the process environment by default)."""

    if env is not None:
        return _build(env)
    return _cached_settings()


def reload() -> None:
    """Clear the cached settings (useful for tests)."""

    _cached_settings.cache_clear()

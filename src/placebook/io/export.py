# Placebook
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Export files on disk.

Timestamped exports go to a shared downloads-like directory and never overwrite
each other. A single well-known file inside the app data directory backs the
check/info/delete helpers.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Final

from placebook.core.errors import CodecError, StorageError
from placebook.core.place import Place
from placebook.core.settings import load_settings
from placebook.io.document import EXPORT_TIMESTAMP_FORMAT, export_places, import_places

log = logging.getLogger(__name__)

__all__ = [
    "EXPORT_PREFIX",
    "EXPORT_SUFFIX",
    "WELL_KNOWN_EXPORT_NAME",
    "ExportFileInfo",
    "export_filename",
    "write_export",
    "read_export",
    "exported_file_path",
    "exported_file_exists",
    "exported_file_info",
    "delete_exported_file",
    "save_exported_file",
    "load_exported_file",
]

EXPORT_PREFIX: Final[str] = "places_export"
EXPORT_SUFFIX: Final[str] = ".json"
WELL_KNOWN_EXPORT_NAME: Final[str] = f"{EXPORT_PREFIX}{EXPORT_SUFFIX}"


@dataclass(frozen=True)
class ExportFileInfo:
    name: str
    path: Path
    size_bytes: int
    last_modified: str

    @property
    def size_kb(self) -> int:
        return self.size_bytes // 1024


def export_filename(now: datetime | None = None) -> str:
    """``places_export_YYYYMMDD_HHMMSS.json`` for ``now``."""

    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{EXPORT_PREFIX}_{stamp}{EXPORT_SUFFIX}"


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


def _claim_unique_path(directory: Path, filename: str) -> Path:
    """Create an empty file under ``directory`` that does not clash with existing ones."""

    base = Path(filename)
    candidate = directory / filename
    counter = 1
    while True:
        try:
            with open(candidate, "x", encoding="utf-8"):
                return candidate
        except FileExistsError:
            candidate = directory / f"{base.stem}_{counter}{base.suffix}"
            counter += 1


def write_export(
    places: Iterable[Place],
    directory: str | os.PathLike[str] | None = None,
    *,
    now: datetime | None = None,
) -> Path:
    """Write a timestamped export of ``places`` and return its path.

    ``directory`` defaults to the configured export directory.
    """

    now = now or datetime.now()
    target_dir = Path(directory) if directory is not None else load_settings().export_dir
    places = list(places)
    text = export_places(places, now=now)
    path: Path | None = None
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        path = _claim_unique_path(target_dir, export_filename(now))
        _atomic_write_text(path, text)
    except OSError as exc:
        log.error("Error exporting places to %s: %s", target_dir, exc)
        if path is not None:
            # Drop the empty placeholder so it is never mistaken for an export.
            path.unlink(missing_ok=True)
        raise StorageError(f"Could not write export to {target_dir}: {exc}", path=target_dir) from exc

    log.info("Exported %d place(s) to %s", len(places), path)
    return path


def read_export(path: str | os.PathLike[str]) -> list[Place]:
    """Read and decode an export file."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise StorageError(f"Export file not found: {path}", path=path) from exc
    except UnicodeDecodeError as exc:
        raise CodecError(f"Export file is not UTF-8 text: {path}") from exc
    except OSError as exc:
        raise StorageError(f"Could not read export file {path}: {exc}", path=path) from exc
    return import_places(text)


# ---------------------------------------------------------------------------
# Well-known export file


def exported_file_path(data_dir: str | os.PathLike[str] | None = None) -> Path:
    base = Path(data_dir) if data_dir is not None else load_settings().data_dir
    return base / WELL_KNOWN_EXPORT_NAME


def exported_file_exists(data_dir: str | os.PathLike[str] | None = None) -> bool:
    return exported_file_path(data_dir).is_file()


def exported_file_info(data_dir: str | os.PathLike[str] | None = None) -> ExportFileInfo | None:
    """Size and modification time of the well-known export, or ``None``."""

    path = exported_file_path(data_dir)
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    modified = datetime.fromtimestamp(stat.st_mtime).strftime(EXPORT_TIMESTAMP_FORMAT)
    return ExportFileInfo(
        name=path.name,
        path=path.resolve(),
        size_bytes=stat.st_size,
        last_modified=modified,
    )


def delete_exported_file(data_dir: str | os.PathLike[str] | None = None) -> bool:
    """Remove the well-known export. Returns ``False`` when there was none."""

    path = exported_file_path(data_dir)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise StorageError(f"Could not delete {path}: {exc}", path=path) from exc
    log.info("Deleted exported file %s", path)
    return True


def save_exported_file(
    places: Iterable[Place],
    data_dir: str | os.PathLike[str] | None = None,
    *,
    now: datetime | None = None,
) -> Path:
    """Write ``places`` to the well-known export, replacing any previous one."""

    path = exported_file_path(data_dir)
    places = list(places)
    try:
        _atomic_write_text(path, export_places(places, now=now))
    except OSError as exc:
        raise StorageError(f"Could not write {path}: {exc}", path=path) from exc
    log.info("Saved %d place(s) to %s", len(places), path)
    return path


def load_exported_file(data_dir: str | os.PathLike[str] | None = None) -> list[Place] | None:
    """Decode the well-known export, or ``None`` when it does not exist."""

    path = exported_file_path(data_dir)
    if not path.is_file():
        return None
    return read_export(path)

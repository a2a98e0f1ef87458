"""Shared SQLite file helpers for Placebook."""

from __future__ import annotations

import contextlib
import os
import sqlite3
import tempfile
from pathlib import Path

__all__ = [
    "connect_rw",
    "checkpoint_full",
    "delete_sidecars",
    "backup_copy",
]


def connect_rw(path: str | os.PathLike[str], *, timeout: float = 30.0) -> sqlite3.Connection:
    """Open ``path`` in read/write mode with autocommit semantics."""

    return sqlite3.connect(str(path), timeout=timeout, isolation_level=None)


def checkpoint_full(conn: sqlite3.Connection) -> None:
    """Request a FULL WAL checkpoint, ignoring unsupported configurations."""

    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA wal_checkpoint(FULL)")


def delete_sidecars(path: str | os.PathLike[str]) -> None:
    """Remove ``-wal``/``-shm``/``-journal`` files adjacent to ``path`` if present."""

    base = str(Path(path))
    for suffix in ("-wal", "-shm", "-journal"):
        try:
            os.remove(base + suffix)
        except FileNotFoundError:
            continue


def backup_copy(src_path: str | os.PathLike[str], dst_path: str | os.PathLike[str]) -> Path:
    """Copy the database at ``src_path`` into ``dst_path`` through the backup API.

    The copy is written to a temporary file first and moved into place, so a
    partially written backup never replaces an older one.
    """

    src_path = str(Path(src_path))
    dst = Path(dst_path)
    dst.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        prefix=dst.name + ".", suffix=".tmp", dir=dst.parent, delete=False
    ) as tmp:
        tmp_path = tmp.name
    src = connect_rw(src_path)
    try:
        checkpoint_full(src)
        dst_conn = connect_rw(tmp_path)
        try:
            src.backup(dst_conn)
        finally:
            dst_conn.close()
        delete_sidecars(tmp_path)
        os.replace(tmp_path, dst)
    finally:
        src.close()
        if os.path.exists(tmp_path):
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
    return dst

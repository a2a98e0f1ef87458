"""
Connection helpers for the SQLite place store.

Every store operation acquires its own connection through :func:`connection`
and releases it on exit, including when the body raises.
"""

from __future__ import annotations

import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

__all__ = ["STORE_PRAGMAS", "open_db", "connection", "transaction"]

# Rollback journal and full syncs: the store is small and written rarely.
STORE_PRAGMAS = (("journal_mode", "DELETE"), ("synchronous", "FULL"))


# ---- Connections ------------------------------------------------------------


def open_db(path: str | os.PathLike[str], *, mode: str = "rwc") -> sqlite3.Connection:
    """
    Open the store file with the store pragmas applied.

    mode: "ro" (read-only), "rw", "rwc" (create if needed). Default: "rwc".
    The connection runs in autocommit mode; writers use :func:`transaction`.
    """
    uri = f"file:{Path(path).as_posix()}?mode={mode}"
    conn = sqlite3.connect(uri, uri=True, isolation_level=None, timeout=30.0)
    conn.row_factory = sqlite3.Row
    for name, value in STORE_PRAGMAS:
        conn.execute(f"PRAGMA {name}={value}")
    return conn


@contextmanager
def connection(path: str | os.PathLike[str], *, mode: str = "rwc") -> Iterator[sqlite3.Connection]:
    """Scoped connection that is always closed on exit."""

    conn = open_db(path, mode=mode)
    try:
        yield conn
    finally:
        conn.close()


# ---- Transactions -------------------------------------------------


@contextmanager
def transaction(
    conn: sqlite3.Connection,
    *,
    begin: str = "BEGIN IMMEDIATE",
) -> Iterator[sqlite3.Connection]:
    """
    Transaction wrapper that commits on success and rolls back on error.
    Uses BEGIN IMMEDIATE by default so the write lock is taken up front.
    """

    conn.execute(begin)
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")

"""
Table definitions and schema-version helpers for the place store.
"""

from __future__ import annotations

import sqlite3
from typing import Final

from placebook.storage.sqlite.utils import transaction

__all__ = [
    "SCHEMA_VERSION",
    "PLACES_TABLE",
    "PLACE_COLUMNS",
    "create_places_table",
    "create_v1_places_table",
    "ensure_schema",
    "get_user_version",
    "set_user_version",
    "table_exists",
    "table_columns",
    "count_rows",
]

SCHEMA_VERSION: Final[int] = 3
PLACES_TABLE: Final[str] = "places"

PLACE_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "name",
    "description",
    "latitude",
    "longitude",
    "category",
    "created_at",
    "rating",
    "is_favorite",
    "cuisine_type",
)

_PLACES_DDL = """
    CREATE TABLE {table} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        category TEXT NOT NULL,
        created_at INTEGER NOT NULL,
        rating REAL DEFAULT 0.0,
        is_favorite INTEGER DEFAULT 0,
        cuisine_type TEXT DEFAULT ''
    )
"""

# Shape shipped with the first release: free-text categories, no rating,
# favourite flag or cuisine.
_PLACES_V1_DDL = """
    CREATE TABLE {table} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        category TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
"""


def create_places_table(conn: sqlite3.Connection, *, table: str = PLACES_TABLE) -> None:
    """Create the current-shape places table."""

    conn.execute(_PLACES_DDL.format(table=table))


def create_v1_places_table(conn: sqlite3.Connection, *, table: str = PLACES_TABLE) -> None:
    """Create the version-1 table. Used by fixtures and legacy tooling."""

    conn.execute(_PLACES_V1_DDL.format(table=table))


def ensure_schema(conn: sqlite3.Connection, *, schema_version: int = SCHEMA_VERSION) -> None:
    """Create the places table at the current shape and stamp the version."""

    with transaction(conn):
        if not table_exists(conn, PLACES_TABLE):
            create_places_table(conn)
        set_user_version(conn, schema_version)


def get_user_version(conn: sqlite3.Connection) -> int:
    """Return the PRAGMA user_version value."""

    cur = conn.execute("PRAGMA user_version")
    row = cur.fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def set_user_version(conn: sqlite3.Connection, version: int) -> None:
    """Update the PRAGMA user_version value."""

    conn.execute(f"PRAGMA user_version = {int(version)}")


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cur = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
        (table,),
    )
    return cur.fetchone() is not None


def table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    """Column names of ``table`` in declaration order."""

    return [row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()]


def count_rows(conn: sqlite3.Connection, table: str = PLACES_TABLE) -> int:
    (count,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
    return int(count)

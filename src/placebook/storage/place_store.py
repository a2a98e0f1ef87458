# Placebook
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""
SQLite-backed place store.

:class:`PlaceStore` is the only path through which places are read or written.
The store file is migrated once when it is opened; until then every CRUD call
is refused. Each call acquires its own connection and releases it before
returning, so no handle outlives an operation.
"""

from __future__ import annotations

import logging
import os
import random
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pydantic

from placebook.core.category import Category, category_from_code
from placebook.core.errors import StorageError
from placebook.core.place import Place, now_millis
from placebook.storage.migration import MigrationReport, migrate
from placebook.storage.sqlite.schema import PLACE_COLUMNS, PLACES_TABLE, SCHEMA_VERSION
from placebook.storage.sqlite.utils import connection, transaction

log = logging.getLogger(__name__)

__all__ = ["PlaceStore", "open_store"]

_SELECT = f"SELECT {', '.join(PLACE_COLUMNS)} FROM {PLACES_TABLE}"
_ORDER = "ORDER BY created_at DESC, id DESC"
_MUTABLE_COLUMNS = (
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
_INSERT = (
    f"INSERT INTO {PLACES_TABLE} ({', '.join(_MUTABLE_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _MUTABLE_COLUMNS)})"
)


def _row_to_place(row: sqlite3.Row, path: Path) -> Place:
    try:
        return Place(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            latitude=row["latitude"],
            longitude=row["longitude"],
            category=category_from_code(row["category"]),
            created_at=row["created_at"],
            rating=row["rating"] if row["rating"] is not None else 0.0,
            is_favorite=bool(row["is_favorite"]),
            cuisine_type=row["cuisine_type"] or "",
        )
    except pydantic.ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        log.error("Stored place id=%s is invalid (%s)", row["id"], fields)
        raise StorageError(
            f"Stored place id={row['id']} in {path} is invalid ({fields})", path=path
        ) from exc


def _insert_values(place: Place, created_at: int | None) -> tuple[Any, ...]:
    return (
        place.name,
        place.description,
        place.latitude,
        place.longitude,
        place.category.value,
        created_at,
        place.rating,
        1 if place.is_favorite else 0,
        place.cuisine_type,
    )


class PlaceStore:
    """CRUD gateway over the current-version places table."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)
        self.migration: MigrationReport | None = None

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        *,
        rng: random.Random | None = None,
        backup: bool = True,
    ) -> PlaceStore:
        """Migrate the store at ``path`` to the current schema and return it.

        Raises :class:`~placebook.core.errors.MigrationError` when the file
        cannot be brought up to date; the store must not be used in that case.
        """

        store = cls(path)
        store.migration = migrate(store.path, target=SCHEMA_VERSION, rng=rng, backup=backup)
        log.info(
            "Opened place store %s (schema v%d)", store.path, store.migration.to_version
        )
        return store

    @property
    def ready(self) -> bool:
        return self.migration is not None

    def __repr__(self) -> str:
        return f"PlaceStore(path={str(self.path)!r}, ready={self.ready})"

    # ------------------------------------------------------------------
    # Connection handling

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if not self.ready:
            raise StorageError(
                f"Place store {self.path} has not been migrated; use PlaceStore.open()",
                path=self.path,
            )
        try:
            with connection(self.path, mode="rw") as conn:
                yield conn
        except sqlite3.Error as exc:
            log.error("Storage failure on %s: %s", self.path, exc)
            raise StorageError(f"Storage failure on {self.path}: {exc}", path=self.path) from exc

    # ------------------------------------------------------------------
    # Writes

    def insert(self, place: Place) -> int:
        """Persist ``place`` as a new row and return its id.

        ``place.id`` is ignored. ``created_at`` is stamped now unless the place
        already carries one.
        """

        created_at = place.created_at if place.created_at is not None else now_millis()
        with self._connect() as conn, transaction(conn):
            cur = conn.execute(_INSERT, _insert_values(place, created_at))
            new_id = int(cur.lastrowid)
        log.debug("Inserted place id=%d", new_id)
        return new_id

    def insert_many(self, places: Iterable[Place]) -> list[int]:
        """Insert ``places`` in one transaction; either all rows land or none."""

        ids: list[int] = []
        with self._connect() as conn, transaction(conn):
            for place in places:
                created_at = place.created_at if place.created_at is not None else now_millis()
                cur = conn.execute(_INSERT, _insert_values(place, created_at))
                ids.append(int(cur.lastrowid))
        log.info("Inserted %d place(s)", len(ids))
        return ids

    def update(self, place: Place) -> int:
        """Replace every mutable field of the row with ``place.id``.

        ``created_at`` is written exactly as passed; callers copy it forward
        from the stored row. Only a ``None`` value leaves the stored timestamp
        untouched. Returns the number of affected rows.
        """

        if place.id is None:
            return 0
        columns = [c for c in _MUTABLE_COLUMNS if c != "created_at" or place.created_at is not None]
        values = dict(zip(_MUTABLE_COLUMNS, _insert_values(place, place.created_at)))
        assignments = ", ".join(f"{column} = ?" for column in columns)
        with self._connect() as conn, transaction(conn):
            cur = conn.execute(
                f"UPDATE {PLACES_TABLE} SET {assignments} WHERE id = ?",
                (*(values[column] for column in columns), place.id),
            )
            affected = cur.rowcount
        log.debug("Updated place id=%s: %d row(s)", place.id, affected)
        return affected

    def delete(self, place_id: int) -> int:
        """Hard-delete the row with ``place_id``; returns affected rows."""

        with self._connect() as conn, transaction(conn):
            affected = conn.execute(
                f"DELETE FROM {PLACES_TABLE} WHERE id = ?", (place_id,)
            ).rowcount
        log.debug("Deleted place id=%s: %d row(s)", place_id, affected)
        return affected

    def delete_all(self) -> int:
        """Clear the table. Meant for fixtures, not for end users."""

        with self._connect() as conn, transaction(conn):
            affected = conn.execute(f"DELETE FROM {PLACES_TABLE}").rowcount
        log.info("Deleted all places: %d row(s)", affected)
        return affected

    # ------------------------------------------------------------------
    # Reads

    def get_all(self) -> list[Place]:
        """Every place, most recently created first."""

        with self._connect() as conn:
            rows = conn.execute(f"{_SELECT} {_ORDER}").fetchall()
        log.debug("Loaded %d place(s)", len(rows))
        return [_row_to_place(row, self.path) for row in rows]

    def get_by_id(self, place_id: int) -> Place | None:
        with self._connect() as conn:
            row = conn.execute(f"{_SELECT} WHERE id = ?", (place_id,)).fetchone()
        return _row_to_place(row, self.path) if row is not None else None

    def get_by_category(self, category: Category | str) -> list[Place]:
        """Places whose stored code equals ``category``, newest first."""

        code = category.value if isinstance(category, Category) else str(category)
        with self._connect() as conn:
            rows = conn.execute(f"{_SELECT} WHERE category = ? {_ORDER}", (code,)).fetchall()
        return [_row_to_place(row, self.path) for row in rows]

    def exists(self, place_id: int) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT 1 FROM {PLACES_TABLE} WHERE id = ? LIMIT 1", (place_id,)
            ).fetchone()
        return row is not None

    def count(self) -> int:
        with self._connect() as conn:
            (total,) = conn.execute(f"SELECT COUNT(*) FROM {PLACES_TABLE}").fetchone()
        return int(total)


def open_store(
    path: str | os.PathLike[str],
    *,
    rng: random.Random | None = None,
    backup: bool = True,
) -> PlaceStore:
    """Shorthand for :meth:`PlaceStore.open`."""

    return PlaceStore.open(path, rng=rng, backup=backup)

"""
Schema migration engine for the place store.

The on-disk version lives in ``PRAGMA user_version``. Each shipped version has
exactly one step that upgrades it to the next one; :func:`run_migrations`
applies them in ascending order until the target is reached. A step bumps the
version inside the same transaction as its structural change, so a failed step
never leaves the file half-way between two versions.
"""

from __future__ import annotations

import logging
import os
import random
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from placebook.core.category import Category, category_from_legacy_text
from placebook.core.errors import MigrationError
from placebook.storage.sqlite.schema import (
    PLACE_COLUMNS,
    PLACES_TABLE,
    SCHEMA_VERSION,
    count_rows,
    create_places_table,
    ensure_schema,
    get_user_version,
    set_user_version,
    table_columns,
    table_exists,
)
from placebook.storage.sqlite.utils import connection, transaction
from placebook.storage.sqlite_utils import backup_copy

log = logging.getLogger(__name__)

__all__ = [
    "MigrationReport",
    "MigrationStep",
    "MIGRATION_STEPS",
    "BACKUP_TABLE",
    "CUISINE_BY_LEGACY_CATEGORY",
    "detect_version",
    "migrate",
    "run_migrations",
    "add_rating_columns",
    "backfill_defaults",
    "normalize_categories",
    "restore_backup_table",
    "random_rating",
]

BACKUP_TABLE: Final[str] = f"{PLACES_TABLE}_old"

# Seed values for ``cuisine_type`` keyed by the free-text labels the first
# release stored. Labels missing here fall back to the raw category text.
CUISINE_BY_LEGACY_CATEGORY: Final[dict[str, str]] = {
    "Restaurant": "Especialidad",
    "Café": "Cafetería",
    "Bar": "Tapas",
    "Pizzeria": "Italiano",
    "Fast Food": "Americana",
    "Bakery": "Panadería",
}


@dataclass
class MigrationReport:
    """Outcome of one open-time migration run."""

    from_version: int
    to_version: int
    applied: list[int] = field(default_factory=list)
    rows_before: int = 0
    rows_after: int = 0
    created: bool = False
    backup_path: Path | None = None
    backfill_error: str | None = None

    @property
    def migrated(self) -> bool:
        return bool(self.applied)


@dataclass
class _StepContext:
    to_version: int
    rng: random.Random
    report: MigrationReport


@dataclass(frozen=True)
class MigrationStep:
    source: int
    description: str
    apply: Callable[[sqlite3.Connection, _StepContext], None]

    @property
    def target(self) -> int:
        return self.source + 1


# ---------------------------------------------------------------------------
# Step 1 -> 2: add rating / favourite / cuisine columns


def restore_backup_table(conn: sqlite3.Connection) -> bool:
    """Put ``places_old`` back in place of ``places`` if it is still around.

    Returns ``True`` when a restore happened.
    """

    if not table_exists(conn, BACKUP_TABLE):
        return False
    with transaction(conn):
        conn.execute(f"DROP TABLE IF EXISTS {PLACES_TABLE}")
        conn.execute(f"ALTER TABLE {BACKUP_TABLE} RENAME TO {PLACES_TABLE}")
    log.warning("Restored %s from %s", PLACES_TABLE, BACKUP_TABLE)
    return True


def _carry_sequence(conn: sqlite3.Connection, old_seq: int | None) -> None:
    """Keep the AUTOINCREMENT high-water mark so deleted ids are never reused."""

    if old_seq is None:
        return
    row = conn.execute(
        "SELECT seq FROM sqlite_sequence WHERE name = ?", (PLACES_TABLE,)
    ).fetchone()
    if row is None:
        conn.execute(
            "INSERT INTO sqlite_sequence(name, seq) VALUES (?, ?)", (PLACES_TABLE, old_seq)
        )
    elif int(row[0]) < old_seq:
        conn.execute(
            "UPDATE sqlite_sequence SET seq = ? WHERE name = ?", (old_seq, PLACES_TABLE)
        )


def add_rating_columns(conn: sqlite3.Connection, *, to_version: int | None = None) -> int:
    """Rewrite ``places`` into the current shape, keeping every row.

    The table is renamed aside, recreated and refilled with the columns both
    shapes share. All of it runs in one transaction; ``to_version`` is stamped
    inside that transaction when given. Returns the number of copied rows.
    """

    with transaction(conn):
        conn.execute(f"ALTER TABLE {PLACES_TABLE} RENAME TO {BACKUP_TABLE}")
        log.info("Renamed %s to %s", PLACES_TABLE, BACKUP_TABLE)

        create_places_table(conn)

        old_columns = set(table_columns(conn, BACKUP_TABLE))
        shared = [column for column in PLACE_COLUMNS if column in old_columns]
        column_list = ", ".join(shared)
        cur = conn.execute(
            f"INSERT INTO {PLACES_TABLE} ({column_list}) "
            f"SELECT {column_list} FROM {BACKUP_TABLE}"
        )
        copied = cur.rowcount
        log.info("Copied %d row(s) into the new %s table", copied, PLACES_TABLE)

        row = conn.execute(
            "SELECT seq FROM sqlite_sequence WHERE name = ?", (BACKUP_TABLE,)
        ).fetchone()
        _carry_sequence(conn, int(row[0]) if row is not None else None)

        conn.execute(f"DROP TABLE {BACKUP_TABLE}")
        if to_version is not None:
            set_user_version(conn, to_version)
    return copied


def random_rating(rng: random.Random) -> float:
    """Pseudo-random rating in [3.5, 5.0] with one decimal."""

    return rng.randint(35, 50) / 10.0


def backfill_defaults(conn: sqlite3.Connection, rng: random.Random) -> int:
    """Seed ``cuisine_type`` and ``rating`` for rows that lack them.

    Cosmetic only: the values are plausible, not recovered. Returns the number
    of rows touched.
    """

    rows = conn.execute(
        f"SELECT id, category, rating, cuisine_type FROM {PLACES_TABLE} ORDER BY id"
    ).fetchall()
    touched = 0
    with transaction(conn):
        for row in rows:
            cuisine = row["cuisine_type"]
            rating = row["rating"]
            if not cuisine:
                label = row["category"] or ""
                cuisine = CUISINE_BY_LEGACY_CATEGORY.get(label, label)
            if rating is None or float(rating) == 0.0:
                rating = random_rating(rng)
            if cuisine == row["cuisine_type"] and rating == row["rating"]:
                continue
            conn.execute(
                f"UPDATE {PLACES_TABLE} SET cuisine_type = ?, rating = ? WHERE id = ?",
                (cuisine, rating, row["id"]),
            )
            touched += 1
    log.info("Default values assigned to %d row(s)", touched)
    return touched


def _step_add_columns(conn: sqlite3.Connection, ctx: _StepContext) -> None:
    try:
        add_rating_columns(conn, to_version=ctx.to_version)
    except Exception as exc:
        log.error("Add-columns migration failed: %s", exc)
        try:
            restore_backup_table(conn)
            rolled_back = table_exists(conn, PLACES_TABLE) and not table_exists(
                conn, BACKUP_TABLE
            )
        except Exception as restore_exc:
            log.error("Rollback of add-columns migration failed: %s", restore_exc)
            raise MigrationError(
                f"Migration to v{ctx.to_version} failed and the rollback also failed: "
                f"{restore_exc}",
                from_version=ctx.to_version - 1,
                to_version=ctx.to_version,
                rolled_back=False,
            ) from exc
        log.warning("Add-columns migration rolled back")
        raise MigrationError(
            f"Migration to v{ctx.to_version} failed: {exc}",
            from_version=ctx.to_version - 1,
            to_version=ctx.to_version,
            rolled_back=rolled_back,
        ) from exc

    try:
        backfill_defaults(conn, ctx.rng)
    except Exception as exc:
        # Row count and required columns are already correct at this point.
        log.error("Error assigning default values: %s", exc)
        ctx.report.backfill_error = str(exc)


# ---------------------------------------------------------------------------
# Step 2 -> 3: categories become codes


def normalize_categories(conn: sqlite3.Connection) -> dict[str | None, Category]:
    """Rewrite every stored category label to its code.

    Each distinct value is resolved once. Running it on normalised data is a
    no-op because every code resolves to itself. Returns the mapping applied.
    """

    values = [row[0] for row in conn.execute(f"SELECT DISTINCT category FROM {PLACES_TABLE}")]
    mapping: dict[str | None, Category] = {}
    for value in values:
        resolved = category_from_legacy_text(value)
        mapping[value] = resolved
        if value is None:
            conn.execute(
                f"UPDATE {PLACES_TABLE} SET category = ? WHERE category IS NULL",
                (resolved.value,),
            )
        elif value != resolved.value:
            conn.execute(
                f"UPDATE {PLACES_TABLE} SET category = ? WHERE category = ?",
                (resolved.value, value),
            )
        log.info("Converted category %r to %r", value, resolved.value)
    return mapping


def _step_normalize_categories(conn: sqlite3.Connection, ctx: _StepContext) -> None:
    try:
        with transaction(conn):
            normalize_categories(conn)
            set_user_version(conn, ctx.to_version)
    except sqlite3.Error as exc:
        log.error("Category migration v%d to v%d failed: %s", ctx.to_version - 1, ctx.to_version, exc)
        raise MigrationError(
            f"Migration to v{ctx.to_version} failed: {exc}",
            from_version=ctx.to_version - 1,
            to_version=ctx.to_version,
            rolled_back=True,
        ) from exc


MIGRATION_STEPS: Final[tuple[MigrationStep, ...]] = (
    MigrationStep(1, "add rating, favourite and cuisine columns", _step_add_columns),
    MigrationStep(2, "category labels to codes", _step_normalize_categories),
)

_STEPS_BY_SOURCE: Final[dict[int, MigrationStep]] = {step.source: step for step in MIGRATION_STEPS}


# ---------------------------------------------------------------------------
# Engine


def detect_version(conn: sqlite3.Connection) -> int:
    """Return the effective schema version of ``conn``.

    A file that never stamped ``user_version`` but already holds a places table
    is classified by its columns.
    """

    version = get_user_version(conn)
    if version != 0 or not table_exists(conn, PLACES_TABLE):
        return version
    columns = set(table_columns(conn, PLACES_TABLE))
    inferred = 2 if {"rating", "is_favorite", "cuisine_type"} <= columns else 1
    log.warning("Unversioned places table found; treating it as v%d", inferred)
    return inferred


def run_migrations(
    conn: sqlite3.Connection,
    *,
    target: int = SCHEMA_VERSION,
    rng: random.Random | None = None,
    path: str | os.PathLike[str] | None = None,
) -> MigrationReport:
    """Bring ``conn`` from its stored version up to ``target``."""

    stored = get_user_version(conn)
    if stored > target:
        raise MigrationError(
            f"Store schema version {stored} is newer than supported {target}",
            path=path,
            from_version=stored,
            to_version=target,
        )

    # A crash in an earlier add-columns attempt can leave the old table aside.
    restore_backup_table(conn)

    start = detect_version(conn)
    report = MigrationReport(from_version=start, to_version=target)

    if start == 0:
        ensure_schema(conn, schema_version=target)
        report.created = True
        log.info("Created places store at schema v%d", target)
        return report

    report.rows_before = count_rows(conn)
    if start == target:
        report.rows_after = report.rows_before
        return report

    ctx = _StepContext(to_version=start, rng=rng or random.Random(), report=report)
    version = start
    while version < target:
        step = _STEPS_BY_SOURCE.get(version)
        if step is None:
            raise MigrationError(
                f"Unknown schema version {version}. Cannot migrate.",
                path=path,
                from_version=version,
                to_version=target,
            )
        log.info("Migrating schema from v%d to v%d (%s)", step.source, step.target, step.description)
        ctx.to_version = step.target
        try:
            step.apply(conn, ctx)
        except MigrationError as exc:
            if exc.path is None and path is not None:
                exc.path = Path(path)
            raise
        report.applied.append(step.source)
        version = step.target

    report.rows_after = count_rows(conn)
    log.info(
        "Migration complete: v%d -> v%d (%d row(s))", start, target, report.rows_after
    )
    return report


def migrate(
    path: str | os.PathLike[str],
    *,
    target: int = SCHEMA_VERSION,
    rng: random.Random | None = None,
    backup: bool = False,
) -> MigrationReport:
    """Open the store at ``path`` and migrate it to ``target``.

    With ``backup`` set, a copy named ``<file>.v<old>.bak`` is written next to
    the store before the first step runs.
    """

    db_path = Path(path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with connection(db_path) as conn:
            backup_path = None
            start = get_user_version(conn)
            if backup and 0 < start < target:
                backup_path = backup_copy(db_path, db_path.with_name(f"{db_path.name}.v{start}.bak"))
                log.info("Created backup: %s", backup_path)
            report = run_migrations(conn, target=target, rng=rng, path=db_path)
            report.backup_path = backup_path
            return report
    except MigrationError:
        raise
    except (sqlite3.Error, OSError) as exc:
        raise MigrationError(
            f"Could not migrate store at {db_path}: {exc}", path=db_path, to_version=target
        ) from exc

"""Catalog service used by front-ends.

Wraps a :class:`~placebook.storage.place_store.PlaceStore` with a read-through
cache of the full listing. The cache is dropped after every successful write,
so the store stays the only source of truth.
"""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Iterable
from pathlib import Path

from placebook.core.category import Category
from placebook.core.place import Place
from placebook.core.settings import Settings, load_settings
from placebook.io import export as _export
from placebook.storage.place_store import PlaceStore

log = logging.getLogger(__name__)

__all__ = ["PlaceCatalog"]


class PlaceCatalog:
    def __init__(self, store: PlaceStore, *, settings: Settings | None = None):
        self.store = store
        self.settings = settings or load_settings()
        self._listing: list[Place] | None = None

    @classmethod
    def open(cls, settings: Settings | None = None) -> PlaceCatalog:
        """Open (and migrate) the store configured in ``settings``."""

        settings = settings or load_settings()
        rng = random.Random(settings.backfill_seed) if settings.backfill_seed is not None else None
        store = PlaceStore.open(
            settings.db_path, rng=rng, backup=settings.backup_before_migrate
        )
        return cls(store, settings=settings)

    def invalidate(self) -> None:
        self._listing = None

    # ------------------------------------------------------------------
    # Reads

    def places(self) -> list[Place]:
        if self._listing is None:
            self._listing = self.store.get_all()
        return list(self._listing)

    def find(self, place_id: int) -> Place | None:
        return self.store.get_by_id(place_id)

    def by_category(self, category: Category | str) -> list[Place]:
        return self.store.get_by_category(category)

    def favorites(self) -> list[Place]:
        return [place for place in self.places() if place.is_favorite]

    # ------------------------------------------------------------------
    # Writes

    def add(self, place: Place) -> int:
        place_id = self.store.insert(place)
        self.invalidate()
        return place_id

    def edit(self, place: Place) -> int:
        affected = self.store.update(place)
        if affected:
            self.invalidate()
        return affected

    def remove(self, place_id: int) -> int:
        affected = self.store.delete(place_id)
        if affected:
            self.invalidate()
        return affected

    def toggle_favorite(self, place_id: int) -> Place | None:
        """Flip the favourite flag; returns the updated place or ``None``."""

        current = self.store.get_by_id(place_id)
        if current is None:
            return None
        updated = current.with_changes(is_favorite=not current.is_favorite)
        self.edit(updated)
        return updated

    def set_rating(self, place_id: int, rating: float) -> Place | None:
        current = self.store.get_by_id(place_id)
        if current is None:
            return None
        updated = current.with_changes(rating=rating)
        self.edit(updated)
        return updated

    # ------------------------------------------------------------------
    # Export / import

    def export_to_downloads(self, directory: str | os.PathLike[str] | None = None) -> Path:
        target = directory if directory is not None else self.settings.export_dir
        return _export.write_export(self.places(), target)

    def save_backup(self) -> Path:
        return _export.save_exported_file(self.places(), self.settings.data_dir)

    def import_places(self, places: Iterable[Place]) -> list[int]:
        ids = self.store.insert_many(places)
        if ids:
            self.invalidate()
        return ids

    def import_from(self, path: str | os.PathLike[str]) -> list[int]:
        """Decode the export at ``path`` and insert every place as a new row."""

        places = _export.read_export(path)
        ids = self.import_places(places)
        log.info("Imported %d place(s) from %s", len(ids), path)
        return ids

# Placebook
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Public package interface for Placebook."""

from placebook.core.category import Category, category_from_code, category_from_legacy_text
from placebook.core.errors import (
    CodecError,
    MigrationError,
    PlacebookError,
    StorageError,
    ValidationError,
)
from placebook.core.place import Place, validate_place
from placebook.io.document import export_places, import_places
from placebook.io.export import read_export, write_export
from placebook.services.catalog import PlaceCatalog
from placebook.storage.place_store import PlaceStore, open_store

__all__ = [
    "Category",
    "category_from_code",
    "category_from_legacy_text",
    "Place",
    "validate_place",
    "PlaceStore",
    "open_store",
    "PlaceCatalog",
    "export_places",
    "import_places",
    "write_export",
    "read_export",
    "PlacebookError",
    "ValidationError",
    "StorageError",
    "MigrationError",
    "CodecError",
]

__version__ = "1.0.0"

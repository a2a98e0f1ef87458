"""Application services for higher-level orchestration."""

from placebook.services.catalog import PlaceCatalog

__all__ = ["PlaceCatalog"]

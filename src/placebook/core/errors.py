"""Error kinds raised by the Placebook core.

Not-found is never an error: lookups return ``None`` and mutations return an
affected-row count of ``0``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

__all__ = [
    "PlacebookError",
    "ValidationError",
    "StorageError",
    "MigrationError",
    "CodecError",
]


class PlacebookError(Exception):
    """Base class for all Placebook errors."""


class ValidationError(PlacebookError, ValueError):
    """Raised by callers when a place fails range or required-field checks."""

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)


class StorageError(PlacebookError):
    """Raised when the underlying SQLite store cannot be read or written."""

    def __init__(self, message: str, *, path: str | os.PathLike[str] | None = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class MigrationError(StorageError):
    """Raised when the store cannot be brought to the current schema version."""

    def __init__(
        self,
        message: str,
        *,
        path: str | os.PathLike[str] | None = None,
        from_version: int | None = None,
        to_version: int | None = None,
        rolled_back: bool = False,
    ):
        self.from_version = from_version
        self.to_version = to_version
        self.rolled_back = rolled_back
        super().__init__(message, path=path)


class CodecError(PlacebookError, ValueError):
    """Raised when an export document cannot be parsed."""

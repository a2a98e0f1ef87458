from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from placebook.core.category import Category, category_from_code
from placebook.core.errors import ValidationError

__all__ = ["Place", "validate_place", "now_millis"]

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_RATING = 0.0
MAX_RATING = 5.0


def now_millis() -> int:
    """Current wall-clock time as epoch milliseconds."""

    return int(time.time() * 1000)


class Place(BaseModel):
    """One favourite location.

    ``id`` is ``None`` until the store assigns one. ``created_at`` is stamped by
    the store on insertion when left as ``None``.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    description: str = ""
    latitude: float = Field(ge=MIN_LATITUDE, le=MAX_LATITUDE)
    longitude: float = Field(ge=MIN_LONGITUDE, le=MAX_LONGITUDE)
    category: Category = Category.RESTAURANT
    created_at: int | None = None
    rating: float = Field(default=0.0, ge=MIN_RATING, le=MAX_RATING)
    is_favorite: bool = False
    cuisine_type: str = ""

    @field_validator("name")
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @field_validator("description", "cuisine_type", mode="before")
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", mode="before")
    def _resolve_category(cls, value: Any) -> Category:
        return category_from_code(value)

    def with_changes(self, **changes: Any) -> Place:
        """Return a validated copy with ``changes`` applied.

        Raises :class:`~placebook.core.errors.ValidationError` on bad values.
        """

        data = self.model_dump()
        data.update(changes)
        return validate_place(data)

    def content(self) -> dict[str, Any]:
        """Field values without the store-assigned ``id`` and ``created_at``."""

        return self.model_dump(exclude={"id", "created_at"})


def validate_place(data: Mapping[str, Any] | Place) -> Place:
    """Caller-side validation entry point.

    Converts pydantic's error into :class:`~placebook.core.errors.ValidationError`
    so presentation layers only have to handle Placebook error kinds.
    """

    if isinstance(data, Place):
        return data
    try:
        return Place.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        details = exc.errors(include_url=False)
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in details)
        raise ValidationError(f"Invalid place ({fields})", errors=details) from exc

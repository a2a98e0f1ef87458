"""Export document model and its JSON codec.

The document layout (Spanish keys included) is what earlier releases wrote, so
files exported by them can still be imported.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Final

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from placebook.core.errors import CodecError
from placebook.core.place import Place

log = logging.getLogger(__name__)

__all__ = [
    "FORMAT_VERSION",
    "EXPORT_TIMESTAMP_FORMAT",
    "ExportedPlace",
    "ExportDocument",
    "build_document",
    "encode_document",
    "decode_document",
    "export_places",
    "import_places",
]

FORMAT_VERSION: Final[str] = "1.0"
EXPORT_TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


class ExportedPlace(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    name: str = Field(alias="nombre")
    description: str = Field(default="", alias="descripcion")
    latitude: float = Field(alias="latitud")
    longitude: float = Field(alias="longitud")
    category: str = Field(alias="categoria")
    created_at: int | None = Field(default=None, alias="fechaCreacion")
    rating: float = 0.0
    is_favorite: bool = Field(default=False, alias="esFavorito")
    cuisine_type: str = Field(default="", alias="tipoCocina")

    @classmethod
    def from_place(cls, place: Place) -> ExportedPlace:
        return cls(
            id=place.id,
            name=place.name,
            description=place.description,
            latitude=place.latitude,
            longitude=place.longitude,
            category=place.category.value,
            created_at=place.created_at,
            rating=place.rating,
            is_favorite=place.is_favorite,
            cuisine_type=place.cuisine_type,
        )

    def to_place(self) -> Place:
        return Place(**self.model_dump())


class ExportDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    format_version: str = Field(default=FORMAT_VERSION, alias="version")
    exported_at: str = Field(alias="fecha_exportacion")
    total_count: int = Field(ge=0, alias="total_lugares")
    places: list[ExportedPlace] = Field(alias="lugares")


def build_document(places: Iterable[Place], *, now: datetime | None = None) -> ExportDocument:
    """Snapshot ``places`` into an export document stamped with ``now``."""

    exported = [ExportedPlace.from_place(place) for place in places]
    stamp = (now or datetime.now()).strftime(EXPORT_TIMESTAMP_FORMAT)
    return ExportDocument(
        format_version=FORMAT_VERSION,
        exported_at=stamp,
        total_count=len(exported),
        places=exported,
    )


def encode_document(document: ExportDocument) -> str:
    """Pretty-printed JSON text with a stable key order."""

    payload = document.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def decode_document(text: str | bytes) -> ExportDocument:
    """Parse an export document.

    Types are checked strictly: a string where a number is expected, a missing
    ``lugares`` list or a negative ``total_lugares`` all raise
    :class:`~placebook.core.errors.CodecError`.
    """

    try:
        document = ExportDocument.model_validate_json(text, strict=True)
    except pydantic.ValidationError as exc:
        raise CodecError(f"Malformed export document: {_summarise(exc)}") from exc

    if document.total_count != len(document.places):
        log.warning(
            "Export document declares %d place(s) but contains %d",
            document.total_count,
            len(document.places),
        )
    return document


def export_places(places: Iterable[Place], *, now: datetime | None = None) -> str:
    return encode_document(build_document(places, now=now))


def import_places(text: str | bytes) -> list[Place]:
    """Decode ``text`` into places. Nothing is returned unless every entry is valid."""

    document = decode_document(text)
    places: list[Place] = []
    for index, entry in enumerate(document.places):
        try:
            places.append(entry.to_place())
        except pydantic.ValidationError as exc:
            raise CodecError(f"Invalid place at lugares[{index}]: {_summarise(exc)}") from exc
    log.info("Imported %d place(s) from export document", len(places))
    return places


def _summarise(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors(include_url=False)[:5]:
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)

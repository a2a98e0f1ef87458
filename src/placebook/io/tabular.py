"""Tabular views of the place collection (CSV export, per-category summary)."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from placebook.core.category import Category
from placebook.core.errors import StorageError
from placebook.core.place import Place

log = logging.getLogger(__name__)

__all__ = ["PLACE_FRAME_COLUMNS", "places_to_frame", "export_csv", "category_summary"]

PLACE_FRAME_COLUMNS = [
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
]


def places_to_frame(places: Iterable[Place]) -> pd.DataFrame:
    """One row per place; ``category`` holds the code, ``created_at`` a UTC timestamp."""

    records = []
    for place in places:
        record = place.model_dump()
        record["category"] = place.category.value
        records.append(record)
    df = pd.DataFrame.from_records(records, columns=PLACE_FRAME_COLUMNS)
    df["created_at"] = pd.to_datetime(df["created_at"], unit="ms", utc=True)
    df["id"] = df["id"].astype("Int64")
    return df


def export_csv(places: Iterable[Place], path: str | os.PathLike[str]) -> Path:
    out_path = Path(path)
    df = places_to_frame(places)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out_path, index=False, encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Could not write CSV to {out_path}: {exc}", path=out_path) from exc
    log.info("Wrote %d place(s) to %s", len(df.index), out_path)
    return out_path


def category_summary(places: Iterable[Place]) -> pd.DataFrame:
    """Count, favourites and mean rating per category, every category listed."""

    df = places_to_frame(places)
    order = [category.value for category in Category.all()]
    if df.empty:
        summary = pd.DataFrame(
            {"count": 0, "favorites": 0, "mean_rating": float("nan")}, index=order
        )
    else:
        grouped = df.groupby("category")
        summary = pd.DataFrame(
            {
                "count": grouped.size(),
                "favorites": grouped["is_favorite"].sum(),
                "mean_rating": grouped["rating"].mean(),
            }
        ).reindex(order)
        summary[["count", "favorites"]] = summary[["count", "favorites"]].fillna(0).astype(int)
    summary.index.name = "category"
    return summary

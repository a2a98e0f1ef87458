import math

import pandas as pd

from placebook.core.category import Category
from placebook.core.place import Place
from placebook.io.tabular import PLACE_FRAME_COLUMNS, category_summary, export_csv, places_to_frame


def _places():
    return [
        Place(id=1, name="a", latitude=1.0, longitude=1.0, category=Category.CAFE,
              created_at=0, rating=4.0, is_favorite=True),
        Place(id=2, name="b", latitude=2.0, longitude=2.0, category=Category.CAFE,
              created_at=1_000, rating=3.0),
        Place(id=3, name="c", latitude=3.0, longitude=3.0, category=Category.BAR,
              created_at=2_000, rating=5.0, is_favorite=True),
    ]


def test_places_to_frame_columns_and_types():
    df = places_to_frame(_places())
    assert list(df.columns) == PLACE_FRAME_COLUMNS
    assert df["category"].tolist() == ["CAFE", "CAFE", "BAR"]
    assert df.loc[0, "created_at"] == pd.Timestamp(0, unit="ms", tz="UTC")
    assert df["id"].dtype == "Int64"


def test_category_summary_lists_every_category():
    summary = category_summary(_places())
    assert list(summary.index) == [c.value for c in Category.all()]
    assert summary.loc["CAFE", "count"] == 2
    assert summary.loc["CAFE", "favorites"] == 1
    assert summary.loc["CAFE", "mean_rating"] == 3.5
    assert summary.loc["BAR", "count"] == 1
    assert summary.loc["BAKERY", "count"] == 0
    assert math.isnan(summary.loc["BAKERY", "mean_rating"])


def test_category_summary_of_nothing():
    summary = category_summary([])
    assert summary["count"].sum() == 0
    assert len(summary.index) == len(Category.all())


def test_export_csv(tmp_path):
    path = export_csv(_places(), tmp_path / "out" / "places.csv")
    df = pd.read_csv(path)
    assert list(df.columns) == PLACE_FRAME_COLUMNS
    assert df["name"].tolist() == ["a", "b", "c"]

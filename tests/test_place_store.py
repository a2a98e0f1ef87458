import sqlite3
from pathlib import Path

import pytest

from placebook.core.category import Category
from placebook.core.errors import StorageError
from placebook.core.place import Place
from placebook.storage.place_store import PlaceStore, open_store
from placebook.storage.sqlite.schema import SCHEMA_VERSION


def _make_store(tmp_path: Path) -> PlaceStore:
    return open_store(tmp_path / "places.db")


def _place(name="Bar Nestor", **overrides) -> Place:
    data = {
        "name": name,
        "description": "Tortilla",
        "latitude": 43.3225,
        "longitude": -1.9857,
        "category": Category.BAR,
        "rating": 4.5,
        "cuisine_type": "Pintxos",
    }
    data.update(overrides)
    return Place(**data)


def test_open_creates_current_schema(tmp_path):
    store = _make_store(tmp_path)
    assert store.ready
    assert store.migration.created
    assert store.migration.to_version == SCHEMA_VERSION
    with sqlite3.connect(store.path) as conn:
        assert conn.execute("PRAGMA user_version").fetchone()[0] == SCHEMA_VERSION
    assert store.count() == 0
    assert store.get_all() == []


def test_insert_then_get_round_trip(tmp_path):
    store = _make_store(tmp_path)
    place = _place()
    new_id = store.insert(place)

    stored = store.get_by_id(new_id)
    assert stored is not None
    assert stored.id == new_id
    assert stored.created_at is not None
    assert stored.content() == place.content()
    assert store.exists(new_id)


def test_insert_ignores_id_and_keeps_given_timestamp(tmp_path):
    store = _make_store(tmp_path)
    new_id = store.insert(_place(id=999, created_at=1_700_000_000_000))
    stored = store.get_by_id(new_id)
    assert new_id != 999
    assert stored.created_at == 1_700_000_000_000


def test_update_writes_created_at_as_given(tmp_path):
    store = _make_store(tmp_path)
    new_id = store.insert(_place(created_at=1_000))
    stored = store.get_by_id(new_id)

    edited = stored.with_changes(name="Bar Nestor (Parte Vieja)", created_at=5_000)
    assert store.update(edited) == 1
    assert store.get_by_id(new_id).created_at == 5_000
    assert store.get_by_id(new_id).name == "Bar Nestor (Parte Vieja)"


def test_update_with_null_timestamp_keeps_stored_value(tmp_path):
    store = _make_store(tmp_path)
    new_id = store.insert(_place(created_at=1_000))
    edited = store.get_by_id(new_id).with_changes(rating=3.0, created_at=None)
    assert store.update(edited) == 1
    stored = store.get_by_id(new_id)
    assert stored.created_at == 1_000
    assert stored.rating == 3.0


def test_update_and_delete_missing_rows_affect_nothing(tmp_path):
    store = _make_store(tmp_path)
    assert store.update(_place(id=42)) == 0
    assert store.update(_place()) == 0
    assert store.delete(42) == 0
    assert store.get_by_id(42) is None
    assert not store.exists(42)


def test_delete_then_lookup_is_absent(tmp_path):
    store = _make_store(tmp_path)
    new_id = store.insert(_place())
    assert store.delete(new_id) == 1
    assert store.get_by_id(new_id) is None
    assert store.count() == 0


def test_deleted_ids_are_not_reused(tmp_path):
    store = _make_store(tmp_path)
    first = store.insert(_place("a"))
    store.delete(first)
    second = store.insert(_place("b"))
    assert second > first


def test_get_all_is_newest_first(tmp_path):
    store = _make_store(tmp_path)
    store.insert(_place("old", created_at=1_000))
    store.insert(_place("new", created_at=3_000))
    store.insert(_place("middle", created_at=2_000))
    assert [p.name for p in store.get_all()] == ["new", "middle", "old"]


def test_get_all_ties_break_on_id(tmp_path):
    store = _make_store(tmp_path)
    first = store.insert(_place("first", created_at=1_000))
    second = store.insert(_place("second", created_at=1_000))
    assert [p.id for p in store.get_all()] == [second, first]


def test_get_by_category_filters_on_code(tmp_path):
    store = _make_store(tmp_path)
    store.insert(_place("cafe", category=Category.CAFE, created_at=1))
    store.insert(_place("bar", category=Category.BAR, created_at=2))
    store.insert(_place("cafe2", category=Category.CAFE, created_at=3))

    assert [p.name for p in store.get_by_category(Category.CAFE)] == ["cafe2", "cafe"]
    assert [p.name for p in store.get_by_category("BAR")] == ["bar"]
    assert store.get_by_category(Category.BAKERY) == []


def test_insert_many_and_delete_all(tmp_path):
    store = _make_store(tmp_path)
    ids = store.insert_many([_place("a"), _place("b"), _place("c")])
    assert len(ids) == 3
    assert store.count() == 3
    assert store.delete_all() == 3
    assert store.count() == 0


def test_unopened_store_refuses_operations(tmp_path):
    store = PlaceStore(tmp_path / "places.db")
    assert not store.ready
    with pytest.raises(StorageError):
        store.get_all()
    with pytest.raises(StorageError):
        store.insert(_place())


def test_reopen_keeps_rows(tmp_path):
    store = _make_store(tmp_path)
    new_id = store.insert(_place())

    reopened = _make_store(tmp_path)
    assert not reopened.migration.migrated
    assert not reopened.migration.created
    assert reopened.get_by_id(new_id) is not None


def _write_raw_row(store: PlaceStore, name, latitude, category="BAR") -> int:
    conn = sqlite3.connect(store.path)
    try:
        cur = conn.execute(
            "INSERT INTO places (name, description, latitude, longitude, category, created_at) "
            "VALUES (?, '', ?, -2.0, ?, 1)",
            (name, latitude, category),
        )
        conn.commit()
        return cur.lastrowid
    finally:
        conn.close()


@pytest.mark.parametrize("name, latitude", [("ok", 95.0), ("", 43.0)])
def test_invalid_stored_row_raises_storage_error(tmp_path, name, latitude):
    store = _make_store(tmp_path)
    bad_id = _write_raw_row(store, name, latitude)

    with pytest.raises(StorageError, match=f"id={bad_id}") as excinfo:
        store.get_all()
    assert excinfo.value.path == store.path
    assert excinfo.value.__cause__ is not None

    with pytest.raises(StorageError):
        store.get_by_id(bad_id)
    with pytest.raises(StorageError):
        store.get_by_category(Category.BAR)


def test_unknown_stored_code_reads_as_restaurant(tmp_path):
    store = _make_store(tmp_path)
    place_id = _write_raw_row(store, "Pizzeria Napoli", 40.4, category="PIZZA")
    assert store.get_by_id(place_id).category is Category.RESTAURANT
    assert store.get_by_category("PIZZA")[0].category is Category.RESTAURANT

import json
from datetime import datetime
from pathlib import Path

import pytest

from placebook.core.category import Category
from placebook.core.errors import CodecError, StorageError
from placebook.core.place import Place
from placebook.io import export
from placebook.io.document import (
    FORMAT_VERSION,
    build_document,
    decode_document,
    encode_document,
    export_places,
    import_places,
)

NOW = datetime(2024, 5, 17, 9, 30, 0)


def _places():
    return [
        Place(
            id=1,
            name="Café Iruña",
            description="Desde 1888",
            latitude=43.263,
            longitude=-2.935,
            category=Category.CAFE,
            created_at=1_700_000_000_000,
            rating=4.5,
            is_favorite=True,
            cuisine_type="Cafetería",
        ),
        Place(
            id=2,
            name="Otaegui",
            latitude=-90.0,
            longitude=180.0,
            category=Category.BAKERY,
            created_at=1_700_000_100_000,
        ),
    ]


def test_document_uses_expected_keys():
    payload = json.loads(export_places(_places(), now=NOW))
    assert payload["version"] == FORMAT_VERSION
    assert payload["fecha_exportacion"] == "2024-05-17 09:30:00"
    assert payload["total_lugares"] == 2
    first = payload["lugares"][0]
    assert set(first) == {
        "id",
        "nombre",
        "descripcion",
        "latitud",
        "longitud",
        "categoria",
        "fechaCreacion",
        "rating",
        "esFavorito",
        "tipoCocina",
    }
    assert first["nombre"] == "Café Iruña"
    assert first["categoria"] == "CAFE"
    assert first["esFavorito"] is True


def test_text_is_utf8_and_not_escaped():
    text = export_places(_places(), now=NOW)
    assert "Café Iruña" in text
    assert text.endswith("\n")


def test_round_trip_preserves_content_and_timestamps():
    places = _places()
    restored = import_places(export_places(places, now=NOW))
    assert [p.content() for p in restored] == [p.content() for p in places]
    assert [p.created_at for p in restored] == [p.created_at for p in places]
    assert [p.id for p in restored] == [1, 2]


def test_empty_export_round_trips():
    text = export_places([], now=NOW)
    assert json.loads(text)["total_lugares"] == 0
    assert import_places(text) == []


def test_encode_decode_document_is_stable():
    document = build_document(_places(), now=NOW)
    assert decode_document(encode_document(document)) == document


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "{}",
        '{"version": "1.0", "fecha_exportacion": "x", "total_lugares": 0}',
        '{"version": "1.0", "fecha_exportacion": "x", "total_lugares": -1, "lugares": []}',
        '{"version": "1.0", "fecha_exportacion": "x", "total_lugares": 1, "lugares": '
        '[{"nombre": "a", "latitud": "43.0", "longitud": 1.0, "categoria": "BAR"}]}',
        '{"version": "1.0", "fecha_exportacion": "x", "total_lugares": 1, "lugares": '
        '[{"nombre": "a", "longitud": 1.0, "categoria": "BAR"}]}',
    ],
)
def test_malformed_documents_raise_codec_error(text):
    with pytest.raises(CodecError):
        import_places(text)


def test_out_of_range_entry_is_rejected():
    text = (
        '{"version": "1.0", "fecha_exportacion": "x", "total_lugares": 1, "lugares": '
        '[{"nombre": "a", "latitud": 91.0, "longitud": 1.0, "categoria": "BAR"}]}'
    )
    with pytest.raises(CodecError, match=r"lugares\[0\]"):
        import_places(text)


def test_unknown_category_code_falls_back_to_restaurant():
    text = (
        '{"version": "1.0", "fecha_exportacion": "x", "total_lugares": 1, "lugares": '
        '[{"nombre": "a", "latitud": 1.0, "longitud": 1, "categoria": "PIZZERIA"}]}'
    )
    (place,) = import_places(text)
    assert place.category is Category.RESTAURANT
    assert place.id is None
    assert place.created_at is None


def test_write_export_never_overwrites(tmp_path):
    first = export.write_export(_places(), tmp_path, now=NOW)
    second = export.write_export(_places()[:1], tmp_path, now=NOW)

    assert first.name == "places_export_20240517_093000.json"
    assert second.name == "places_export_20240517_093000_1.json"
    assert len(export.read_export(first)) == 2
    assert len(export.read_export(second)) == 1


def test_read_export_missing_file(tmp_path):
    with pytest.raises(StorageError):
        export.read_export(tmp_path / "nope.json")


def test_well_known_file_helpers(tmp_path):
    assert not export.exported_file_exists(tmp_path)
    assert export.exported_file_info(tmp_path) is None
    assert export.load_exported_file(tmp_path) is None
    assert export.delete_exported_file(tmp_path) is False

    path = export.save_exported_file(_places(), tmp_path, now=NOW)
    assert path == tmp_path / export.WELL_KNOWN_EXPORT_NAME
    assert export.exported_file_exists(tmp_path)

    info = export.exported_file_info(tmp_path)
    assert info.name == "places_export.json"
    assert info.size_bytes == path.stat().st_size
    assert info.size_kb == info.size_bytes // 1024
    datetime.strptime(info.last_modified, "%Y-%m-%d %H:%M:%S")

    assert len(export.load_exported_file(tmp_path)) == 2

    # Saving again replaces the file rather than adding a sibling.
    export.save_exported_file(_places()[:1], tmp_path, now=NOW)
    assert len(export.load_exported_file(tmp_path)) == 1
    assert sorted(p.name for p in Path(tmp_path).iterdir()) == ["places_export.json"]

    assert export.delete_exported_file(tmp_path) is True
    assert not export.exported_file_exists(tmp_path)


def test_failed_write_leaves_no_placeholder(tmp_path, monkeypatch):
    def _disk_full(path, text):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(export, "_atomic_write_text", _disk_full)

    with pytest.raises(StorageError):
        export.write_export(_places(), tmp_path, now=NOW)
    assert list(tmp_path.glob("places_export_*")) == []

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .core.category import Category
from .core.errors import PlacebookError, ValidationError
from .core.logging_config import setup_logging
from .core.place import Place, validate_place
from .core.settings import Settings, load_settings
from .io.tabular import category_summary, export_csv
from .services.catalog import PlaceCatalog

log = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_INVALID = 2


def _format_place(place: Place) -> str:
    star = "*" if place.is_favorite else " "
    return (
        f"{star} {place.id:>5}  {place.name}  [{place.category.value}]  "
        f"({place.latitude:.6f}, {place.longitude:.6f})  {place.rating:.1f}"
    )


def cmd_list(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    if args.category:
        places = catalog.by_category(args.category)
    else:
        places = catalog.places()
    if args.favorites:
        places = [place for place in places if place.is_favorite]
    for place in places:
        print(_format_place(place))
    return 0


def cmd_show(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    place = catalog.find(args.id)
    if place is None:
        print(f"No place with id {args.id}", file=sys.stderr)
        return EXIT_ERROR
    print(place.model_dump_json(indent=2))
    return 0


def cmd_add(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    place = validate_place(
        {
            "name": args.name,
            "description": args.description,
            "latitude": args.lat,
            "longitude": args.lon,
            "category": args.category,
            "rating": args.rating,
            "is_favorite": args.favorite,
            "cuisine_type": args.cuisine,
        }
    )
    print(f"Added place {catalog.add(place)}")
    return 0


def cmd_delete(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    if not catalog.remove(args.id):
        print(f"No place with id {args.id}", file=sys.stderr)
        return EXIT_ERROR
    print(f"Deleted place {args.id}")
    return 0


def cmd_favorite(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    place = catalog.toggle_favorite(args.id)
    if place is None:
        print(f"No place with id {args.id}", file=sys.stderr)
        return EXIT_ERROR
    state = "on" if place.is_favorite else "off"
    print(f"Favourite {state} for place {place.id}")
    return 0


def cmd_export(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    path = catalog.export_to_downloads(args.dir)
    print(f"Exported to {path}")
    if args.csv:
        print(f"CSV written to {export_csv(catalog.places(), args.csv)}")
    return 0


def cmd_import(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    ids = catalog.import_from(args.file)
    print(f"Imported {len(ids)} place(s)")
    return 0


def cmd_status(catalog: PlaceCatalog, args: argparse.Namespace) -> int:
    report = catalog.store.migration
    print(f"Store: {catalog.store.path}")
    if report is not None:
        print(f"Schema version: {report.to_version}")
        if report.migrated:
            print(f"Migrated from v{report.from_version} on open")
        if report.backup_path is not None:
            print(f"Backup: {report.backup_path}")
    places = catalog.places()
    print(f"Places: {len(places)}")
    if places:
        print(category_summary(places).to_string())
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("placebook")
    parser.add_argument("--db", type=Path, default=None, help="store file (overrides PLACEBOOK_DB)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log INFO to the console")
    sub = parser.add_subparsers(dest="cmd", required=True)

    codes = [category.value for category in Category.all()]

    sp = sub.add_parser("list")
    sp.add_argument("--category", choices=codes, default=None)
    sp.add_argument("--favorites", action="store_true")
    sp.set_defaults(func=cmd_list)

    sp = sub.add_parser("show")
    sp.add_argument("id", type=int)
    sp.set_defaults(func=cmd_show)

    sp = sub.add_parser("add")
    sp.add_argument("--name", required=True)
    sp.add_argument("--lat", type=float, required=True)
    sp.add_argument("--lon", type=float, required=True)
    sp.add_argument("--category", choices=codes, default=Category.RESTAURANT.value)
    sp.add_argument("--description", default="")
    sp.add_argument("--rating", type=float, default=0.0)
    sp.add_argument("--favorite", action="store_true")
    sp.add_argument("--cuisine", default="")
    sp.set_defaults(func=cmd_add)

    sp = sub.add_parser("delete")
    sp.add_argument("id", type=int)
    sp.set_defaults(func=cmd_delete)

    sp = sub.add_parser("favorite")
    sp.add_argument("id", type=int)
    sp.set_defaults(func=cmd_favorite)

    sp = sub.add_parser("export")
    sp.add_argument("--dir", type=Path, default=None)
    sp.add_argument("--csv", type=Path, default=None, help="also write a CSV table")
    sp.set_defaults(func=cmd_export)

    sp = sub.add_parser("import")
    sp.add_argument("file", type=Path)
    sp.set_defaults(func=cmd_import)

    sp = sub.add_parser("status")
    sp.set_defaults(func=cmd_status)

    return parser


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    if args.db is None:
        return settings
    return Settings(
        data_dir=settings.data_dir,
        db_path=args.db,
        export_dir=settings.export_dir,
        backfill_seed=settings.backfill_seed,
        backup_before_migrate=settings.backup_before_migrate,
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = _settings_for(args)
    setup_logging(
        console_level=logging.INFO if args.verbose else logging.WARNING,
        log_dir=settings.data_dir / "logs",
    )

    try:
        catalog = PlaceCatalog.open(settings)
        return args.func(catalog, args)
    except ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        for err in exc.errors:
            loc = ".".join(str(p) for p in err.get("loc", ()))
            print(f"  {loc}: {err.get('msg')}", file=sys.stderr)
        return EXIT_INVALID
    except PlacebookError as exc:
        log.error("%s failed: %s", args.cmd, exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

import argparse
import json
import os
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import DATE_RULES, MatchConfig, load_config
from .database import init_database
from .env import load_env
from .errors import ItemNotFoundError, ItemValidationError
from .logger import get_logger
from .models import STATUSES, ItemRecord
from .schema import validate_item

from pipelines.matching.metadata import extract_metadata, tag_item
from pipelines.matching.resolver import confirm_match, find_matches, match_item
from pipelines.matching.scoring import score_breakdown
from storage.repositories import ItemRepository, ProfileRepository

NO_STORE_COMMANDS = ("init-db", "tag", "serve")
SUMMARY_COMMANDS = ("report", "match")


def _load_json(path_str: str):
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _config_from_args(args: argparse.Namespace) -> MatchConfig:
    base: MatchConfig = args.config
    try:
        return MatchConfig(
            min_confidence=base.min_confidence if args.min_confidence is None else args.min_confidence,
            limit=base.limit if args.limit is None else args.limit,
            date_rule=args.date_rule or base.date_rule,
            weights=base.weights,
            db_path=Path(args.db),
            log_level=base.log_level,
            log_dir=base.log_dir,
        )
    except ValueError as e:
        raise SystemExit(str(e))


def _print_item(item: ItemRecord) -> None:
    print(f"ID: {item.id}")
    print(f"  Status: {item.status}")
    print(f"  Title: {item.title}")
    print(f"  Category: {item.category}")
    print(f"  Location: {item.location}")
    print(f"  Date: {item.date}")
    if item.is_tagged:
        print(f"  Tags: {item.object_type} / {item.color_profile} / {', '.join(sorted(item.labels))}")
    if item.matches:
        print(f"  Matches: {', '.join(item.matches)} (confidence {item.match_confidence})")
    if item.is_matched:
        print("  Match confirmed")


def report_item(payload: dict, repository: ItemRepository, profiles: Optional[ProfileRepository] = None) -> ItemRecord:
    """Validate, tag and store a new report. Raises ItemValidationError on bad input."""
    errors = validate_item(payload)
    if errors:
        raise ItemValidationError(errors)

    if profiles is not None and payload.get("contact_email") and payload.get("reporter_name"):
        profiles.get_or_create(full_name=payload["reporter_name"], email=payload["contact_email"])

    item = tag_item(ItemRecord.from_dict(payload))
    stored = repository.insert(item)
    get_logger().info("Item reported", item_id=stored.id, status=stored.status, object_type=stored.object_type)
    return stored


def cmd_init_db(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_report(args: argparse.Namespace) -> None:
    payload = _load_json(args.input)
    repository = ItemRepository(Path(args.db))
    try:
        item = report_item(payload, repository, ProfileRepository(Path(args.db)))
    except ItemValidationError as e:
        print("Invalid:")
        for err in e.errors:
            print(f" - {err}")
        raise SystemExit(2)
    print(f"Item: {item.id}")
    print(f"Tags: {item.object_type} / {item.color_profile} / {', '.join(sorted(item.labels))}")

    if args.match:
        ranked = find_matches(item.id, repository, _config_from_args(args), persist=True)
        _print_matches(ranked)


def cmd_list(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    items = ItemRepository(db_path).get_all(args.status, args.search)
    if not items:
        print("No items in store.")
        return
    print(f"Found {len(items)} items in {db_path}:\n")
    for item in items:
        _print_item(item)
        print()


def cmd_show(args: argparse.Namespace) -> None:
    item = ItemRepository(Path(args.db)).get_by_id(args.id)
    if item is None:
        raise SystemExit(f"Item not found: {args.id}")
    if args.json:
        print(json.dumps(item.to_dict(), indent=2))
    else:
        _print_item(item)


def cmd_tag(args: argparse.Namespace) -> None:
    metadata = extract_metadata(args.image, args.text or "")
    print(f"Object type: {metadata.object_type}")
    print(f"Color profile: {metadata.color_profile}")
    print(f"Labels: {', '.join(sorted(metadata.labels))}")


def _print_matches(ranked, query: Optional[ItemRecord] = None, config: Optional[MatchConfig] = None) -> None:
    if not ranked:
        print("No matches above the confidence threshold.")
        return
    print(f"{len(ranked)} probable match(es):")
    for match in ranked:
        print(f" - [{match.score:3d}] {match.item.id}  {match.item.title} ({match.item.location}, {match.item.date})")
        if query is not None and config is not None:
            breakdown = score_breakdown(query, match.item, config.weights, config.date_rule)
            for line in breakdown.explanation:
                print(f"         {line}")


def cmd_match(args: argparse.Namespace) -> None:
    if not args.id and not args.input:
        raise SystemExit("Provide --id of a stored item or --input with an item JSON.")
    config = _config_from_args(args)
    repository = ItemRepository(Path(args.db))

    try:
        if args.id:
            ranked = find_matches(args.id, repository, config, persist=args.persist)
            query = repository.get_by_id(args.id)
        else:
            query = tag_item(ItemRecord.from_dict(_load_json(args.input)))
            if query.status not in STATUSES:
                raise SystemExit("Item JSON needs a status of 'lost' or 'found'")
            ranked = match_item(query, repository.get_all(), config)
    except ItemNotFoundError as e:
        raise SystemExit(str(e))
    except ItemValidationError as e:
        raise SystemExit(str(e))

    if args.json:
        print(json.dumps([{"id": m.item.id, "score": m.score} for m in ranked], indent=2))
        return
    _print_matches(ranked, query if args.explain else None, config)


def cmd_confirm(args: argparse.Namespace) -> None:
    try:
        item, other = confirm_match(ItemRepository(Path(args.db)), args.id, args.match)
    except (ItemNotFoundError, ItemValidationError) as e:
        raise SystemExit(str(e))
    print(f"Confirmed: {item.id} ({item.status}) <-> {other.id} ({other.status})")


def cmd_delete(args: argparse.Namespace) -> None:
    if ItemRepository(Path(args.db)).delete(args.id):
        print(f"Deleted: {args.id}")
    else:
        raise SystemExit(f"Item not found: {args.id}")


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    os.environ["LOSTFOUND_DB_PATH"] = str(args.db)
    uvicorn.run("lostfound.api:app", host=args.host, port=args.port)


def _add_match_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--min-confidence", type=int, help="Inclusion floor 0-100 (default from LOSTFOUND_MIN_CONFIDENCE or 40)")
    p.add_argument("--limit", type=int, help="Maximum matches (default from LOSTFOUND_MATCH_LIMIT or 5)")
    p.add_argument("--date-rule", choices=DATE_RULES, help="Date proximity rule (default: linear)")


def build_parser(config: MatchConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lostfound", description="Lost & found reports with automatic match ranking")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", default=str(config.db_path), help=f"Path to SQLite store (default: {config.db_path})")
    parser.set_defaults(config=config)

    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init-db", help="Create the item and profile tables")
    init.set_defaults(func=cmd_init_db)

    rep = subparsers.add_parser("report", help="Report a lost or found item from a JSON file")
    rep.add_argument("--input", required=True, help="Path to item JSON")
    rep.add_argument("--match", action="store_true", help="Rank and persist matches right after reporting")
    _add_match_options(rep)
    rep.set_defaults(func=cmd_report)

    lst = subparsers.add_parser("list", help="List stored items")
    lst.add_argument("--status", choices=STATUSES, help="Only lost or only found items")
    lst.add_argument("--search", help="Case-insensitive text in title, description, category or location")
    lst.set_defaults(func=cmd_list)

    shw = subparsers.add_parser("show", help="Show one stored item")
    shw.add_argument("--id", required=True, help="Item id")
    shw.add_argument("--json", action="store_true", help="Print the full record as JSON")
    shw.set_defaults(func=cmd_show)

    tag = subparsers.add_parser("tag", help="Derive coarse tags from an image reference")
    tag.add_argument("--image", required=True, help="Image URL or file name")
    tag.add_argument("--text", help="Optional report text to scan as well")
    tag.set_defaults(func=cmd_tag)

    mat = subparsers.add_parser("match", help="Rank probable counterparts for an item")
    mat.add_argument("--id", help="Id of a stored item")
    mat.add_argument("--input", help="Item JSON to match without storing it")
    mat.add_argument("--persist", action="store_true", help="Write matches back to the stored item")
    mat.add_argument("--explain", action="store_true", help="Show per-signal score breakdown")
    mat.add_argument("--json", action="store_true", help="Print [{id, score}] as JSON")
    _add_match_options(mat)
    mat.set_defaults(func=cmd_match)

    conf = subparsers.add_parser("confirm", help="Mark a lost item and a found item as the same object")
    conf.add_argument("--id", required=True, help="Item id")
    conf.add_argument("--match", required=True, help="Id of the counterpart item")
    conf.set_defaults(func=cmd_confirm)

    dele = subparsers.add_parser("delete", help="Delete a stored item")
    dele.add_argument("--id", required=True, help="Item id")
    dele.set_defaults(func=cmd_delete)

    srv = subparsers.add_parser("serve", help="Run the HTTP match service")
    srv.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    srv.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    srv.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None):
    # Load .env if present (LOSTFOUND_DB_PATH, LOSTFOUND_MIN_CONFIDENCE, etc.)
    load_env()
    try:
        config = load_config()
    except ValueError as e:
        raise SystemExit(f"Invalid configuration: {e}")
    get_logger(level=config.log_level, log_dir=config.log_dir)

    parser = build_parser(config)
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        if args.command not in NO_STORE_COMMANDS and not Path(args.db).exists():
            raise SystemExit(f"Database not found: {args.db} (run `lostfound init-db` first)")
        args.func(args)
        if args.command in SUMMARY_COMMANDS:
            get_logger().log_metrics_summary()
        return

    parser.print_help()


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Load lost & found reports from a JSON list into the database.

Usage:
    python scripts/seed_items.py --json data/sample_items.json --db data/lostfound.db
    python scripts/seed_items.py --json data/sample_items.json --match
    python scripts/seed_items.py --json data/sample_items.json --update
"""

import argparse
import json
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from lostfound.config import load_config
from lostfound.database import init_database
from lostfound.models import ItemRecord
from lostfound.schema import validate_item
from pipelines.matching.metadata import tag_item
from pipelines.matching.resolver import find_matches
from storage.repositories import ItemRepository


def seed(json_path: Path, db_path: Path, dry_run: bool = False, match: bool = False, update: bool = False) -> dict:
    """
    Insert every valid report from json_path that is not already stored.

    Args:
        json_path: JSON file holding a list of item objects
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database
        match: Rank and persist matches for each stored item afterwards
        update: Overwrite items that are already stored instead of skipping them

    Returns:
        Counts of inserted, updated, skipped and invalid reports
    """
    print(f"Loading items from {json_path}...")
    with open(json_path, encoding="utf-8") as f:
        payloads = json.load(f)
    print(f"Found {len(payloads)} items")

    counts = {"inserted": 0, "updated": 0, "skipped": 0, "invalid": 0, "matched": 0}

    if dry_run:
        print("\n[DRY RUN] Would load the following items:")
        for i, payload in enumerate(payloads[:5], 1):
            print(f"  {i}. [{payload.get('status')}] {payload.get('title')}")
        if len(payloads) > 5:
            print(f"  ... and {len(payloads) - 5} more")
        return counts

    init_database(db_path)
    repository = ItemRepository(db_path)

    for payload in payloads:
        errors = validate_item(payload)
        if errors:
            print(f"⚠️  Skipping {payload.get('title')!r}: {'; '.join(errors)}")
            counts["invalid"] += 1
            continue

        item = ItemRecord.from_dict(payload)
        if repository.get_by_id(item.id) is not None:
            if update:
                try:
                    repository.upsert(tag_item(item))
                except ValueError as e:
                    print(f"⚠️  Skipping {item.id}: {e}")
                    counts["invalid"] += 1
                    continue
                counts["updated"] += 1
                continue
            print(f"⚠️  Item {item.id} already exists, skipping")
            counts["skipped"] += 1
            continue

        repository.insert(tag_item(item))
        counts["inserted"] += 1

    if match:
        config = load_config()
        for item in repository.get_all():
            if find_matches(item.id, repository, config, persist=True):
                counts["matched"] += 1

    print(f"\n✅ Seeding complete!")
    print(f"   Inserted: {counts['inserted']}")
    print(f"   Updated:  {counts['updated']}")
    print(f"   Skipped:  {counts['skipped']}")
    print(f"   Invalid:  {counts['invalid']}")
    if match:
        print(f"   With matches: {counts['matched']}")
    return counts


def main():
    parser = argparse.ArgumentParser(description="Load lost & found reports into the database")
    parser.add_argument("--json", type=Path, default=Path("data/sample_items.json"),
                        help="Path to JSON list of items")
    parser.add_argument("--db", type=Path, default=None,
                        help="Path to SQLite database file (default: LOSTFOUND_DB_PATH)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be loaded without writing")
    parser.add_argument("--match", action="store_true",
                        help="Rank and store matches for every item after loading")
    parser.add_argument("--update", action="store_true",
                        help="Overwrite items that already exist instead of skipping them")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    seed(args.json, args.db or load_config().db_path, dry_run=args.dry_run, match=args.match, update=args.update)


if __name__ == "__main__":
    main()

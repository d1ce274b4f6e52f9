"""
Import drill items from a CSV file into the SQL store.

Expected columns: item_id, question, answer, and optionally tags
(space or comma separated). Existing items keep their review statistics;
only their content is updated.

Usage:
    python -m scripts.import_items items.csv [--batch-size N] [--dry-run]
"""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from drill.config import configure_logging
from drill.store.database import SqlItemStore

REQUIRED_COLUMNS = ["item_id", "question", "answer"]


def parse_tags(tags_str) -> list[str]:
    """Parse space- or comma-separated tags from CSV."""
    if pd.isna(tags_str) or not str(tags_str).strip():
        return []
    return [tag for tag in str(tags_str).replace(",", " ").split() if tag]


def load_items_csv(csv_path: Path) -> pd.DataFrame:
    """
    Load and validate the item CSV.

    Raises:
        FileNotFoundError: CSV does not exist
        ValueError: a required column is missing
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")

    df = pd.read_csv(csv_path, dtype={"item_id": str})
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

    df["answer"] = df["answer"].fillna("")
    if "tags" not in df.columns:
        df["tags"] = ""
    return df.dropna(subset=["item_id", "question"])


def import_items(
    store: SqlItemStore,
    df: pd.DataFrame,
    batch_size: int | None = None,
    dry_run: bool = False
) -> dict[str, int]:
    """
    Upsert every CSV row into the store.

    Args:
        store: Target SQL store (tables are created if needed)
        df: Rows from load_items_csv()
        batch_size: Maximum number of rows to process (None = all)
        dry_run: If True, don't write anything

    Returns:
        Counts of created and updated items
    """
    if batch_size:
        df = df.head(batch_size)
    if not dry_run:
        store.init_db()

    created = updated = 0
    for _, row in df.iterrows():
        item_id = str(row["item_id"]).strip()
        tags = parse_tags(row.get("tags", ""))
        if dry_run:
            print(f"  [DRY RUN] Would import {item_id}")
            created += 1
            continue
        if store.upsert_item(item_id, str(row["question"]), str(row["answer"]), tags=tags):
            created += 1
        else:
            updated += 1

    return {"created": created, "updated": updated, "total": len(df)}


def main():
    parser = argparse.ArgumentParser(description="Import drill items from CSV")
    parser.add_argument("csv_path", type=Path, help="CSV with item_id, question, answer[, tags]")
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL (default: DRILL_DATABASE_URL or sqlite:///drill.db)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Maximum number of items to process (default: all)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Don't write to the database"
    )

    args = parser.parse_args()
    configure_logging()

    df = load_items_csv(args.csv_path)
    print(f"Loaded {len(df)} items from {args.csv_path}")

    counts = import_items(
        SqlItemStore(args.database_url),
        df,
        batch_size=args.batch_size,
        dry_run=args.dry_run
    )

    print(f"\n{'='*60}")
    print("Import complete!")
    print(f"{'='*60}")
    print(f"Created: {counts['created']}")
    print(f"Updated: {counts['updated']}")
    print(f"Total:   {counts['total']}")
    if args.dry_run:
        print("\n⚠ DRY RUN MODE - No changes were made")


if __name__ == "__main__":
    main()

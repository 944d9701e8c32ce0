"""
Convert photo_urls from the plain URL list to the structured reference list.

    old: '["url1", "url2"]'
    new: '[{"originalUrl": "url1", "currentUrl": null, "order": 0}, ...]'

Run with: python -m scripts.migrate_photo_urls [--dry-run]
"""

from __future__ import annotations

import argparse
import logging
import sys

from core.dev_logger import configure_logging
from db import SessionLocal
from services.photo_migration import MigrationSummary, migrate_photo_urls


logger = logging.getLogger(__name__)


def print_summary(summary: MigrationSummary) -> None:
    print("=" * 50)
    print("Migration Summary:")
    print(f"   Migrated: {summary.migrated}")
    print(f"   Skipped:  {summary.skipped}")
    print(f"   Errors:   {summary.errored}")
    print("=" * 50)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Migrate photo_urls to photo references")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be migrated without saving",
    )
    args = parser.parse_args(argv)

    configure_logging()
    logger.info("Starting photo_urls migration")

    database = SessionLocal()
    try:
        summary = migrate_photo_urls(database, dry_run=args.dry_run)
    except Exception:
        logger.exception("Migration failed")
        return 1
    finally:
        database.close()

    print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Rewrite legacy ``photo_urls`` values into the structured photo reference format.

Each record is classified, upgraded and committed on its own, so a failure on
one record is rolled back and counted without stopping the run. Running it
again is safe: already-upgraded, empty and malformed values are skipped.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from models import Submission
from services.photos import (
    LegacyPhotos,
    decode_photo_urls,
    encode_photo_refs,
    upgrade_legacy,
)


logger = logging.getLogger(__name__)


@dataclass
class MigrationSummary:
    migrated: int = 0
    skipped: int = 0
    errored: int = 0

    def as_dict(self) -> dict:
        return {"migrated": self.migrated, "skipped": self.skipped, "errored": self.errored}


def migrated_photo_urls(raw) -> str | None:
    """New column value for ``raw``, or None when the record should be skipped."""
    decoded = decode_photo_urls(raw)
    if not isinstance(decoded, LegacyPhotos):
        return None
    return encode_photo_refs(upgrade_legacy(decoded))


def load_candidates(database: Session) -> list[Submission]:
    return (
        database.query(Submission)
        .filter(Submission.photo_urls.isnot(None))
        .order_by(Submission.created_at)
        .all()
    )


def migrate_photo_urls(database: Session, *, dry_run: bool = False) -> MigrationSummary:
    summary = MigrationSummary()
    candidates = [(s.id, s.short_title, s.photo_urls) for s in load_candidates(database)]
    logger.info("Found %d submissions with photos", len(candidates))

    for submission_id, title, raw in candidates:
        new_value = migrated_photo_urls(raw)
        if new_value is None:
            logger.info('Skipping "%s" (ID: %s) - already migrated or empty', title, submission_id)
            summary.skipped += 1
            continue

        if dry_run:
            logger.info('Would migrate "%s" (ID: %s)', title, submission_id)
            summary.migrated += 1
            continue

        try:
            submission = database.get(Submission, submission_id)
            if submission is None:
                raise LookupError(f"submission {submission_id} no longer exists")
            submission.photo_urls = new_value
            database.commit()
        except Exception:
            database.rollback()
            logger.exception("Error migrating submission %s", submission_id)
            summary.errored += 1
            continue

        logger.info('Migrated "%s" (ID: %s)', title, submission_id)
        summary.migrated += 1

    return summary

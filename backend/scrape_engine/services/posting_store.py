"""Persistent posting storage keyed by (source, external_id)."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.orm import sessionmaker

from scrape_engine.models.scraped_posting import ScrapedPostingRecord
from scrape_engine.schemas.posting import ScrapedPosting

logger = logging.getLogger(__name__)

# Columns refreshed when a known posting is seen again
UPDATABLE_FIELDS = (
    "url", "title", "company", "location", "employment_type", "seniority_level",
    "salary_min", "salary_max", "salary_currency", "salary_period",
    "description", "requirements", "benefits", "responsibilities",
    "posted_at", "deadline", "application_count",
    "company_industry", "company_size", "company_type",
    "easy_apply", "referral_bonus",
    "scraped_at", "scraper_version", "data_quality", "anonymized", "encrypted",
)


@dataclass
class UpsertSummary:
    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated


def _column_values(posting: ScrapedPosting) -> dict:
    values = {}
    for key, value in posting.model_dump().items():
        if isinstance(value, Enum):
            value = value.value
        values[key] = value
    return values


class PostingStore:
    """Idempotent upsert of scraped postings.

    Re-submitting the same postings updates rows in place and never
    creates duplicates.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def upsert_postings(self, postings: list[ScrapedPosting]) -> UpsertSummary:
        summary = UpsertSummary()
        if not postings:
            return summary

        now = datetime.now(timezone.utc)
        db = self.session_factory()
        try:
            seen: dict[tuple[str, str], ScrapedPostingRecord] = {}
            for posting in postings:
                key = posting.dedup_key
                data = _column_values(posting)

                existing = seen.get(key)
                if existing is None:
                    existing = db.query(ScrapedPostingRecord).filter(
                        ScrapedPostingRecord.source == posting.source,
                        ScrapedPostingRecord.external_id == posting.external_id,
                    ).first()

                if existing:
                    for field in UPDATABLE_FIELDS:
                        setattr(existing, field, data[field])
                    existing.last_seen_at = now
                    existing.times_seen = (existing.times_seen or 0) + 1
                    summary.updated += 1
                else:
                    existing = ScrapedPostingRecord(
                        source=posting.source,
                        external_id=posting.external_id,
                        first_seen_at=now,
                        last_seen_at=now,
                        times_seen=1,
                        **{field: data[field] for field in UPDATABLE_FIELDS},
                    )
                    db.add(existing)
                    summary.inserted += 1
                seen[key] = existing

            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info(f"Stored postings: {summary.inserted} new, {summary.updated} updated")
        return summary

    def count(self, source: str | None = None) -> int:
        db = self.session_factory()
        try:
            query = db.query(ScrapedPostingRecord)
            if source:
                query = query.filter(ScrapedPostingRecord.source == source)
            return query.count()
        finally:
            db.close()

"""Scraped posting model: one row per (source, external_id)."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Index, Integer, String, Text, UniqueConstraint

from scrape_engine.models.base import Base, TimestampMixin, UUIDMixin


class ScrapedPostingRecord(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "scraped_postings"

    # Dedup
    source = Column(String(50), nullable=False, index=True)
    external_id = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)

    # Core
    title = Column(Text, nullable=False)
    company = Column(String(255), nullable=False, index=True)
    location = Column(String(255))
    employment_type = Column(String(50))
    seniority_level = Column(String(50))

    # Compensation
    salary_min = Column(Float)
    salary_max = Column(Float)
    salary_currency = Column(String(3))
    salary_period = Column(String(20))

    # Content
    description = Column(Text)
    requirements = Column(JSON, default=list)
    benefits = Column(JSON, default=list)
    responsibilities = Column(JSON, default=list)

    # Dates
    posted_at = Column(DateTime(timezone=True), index=True)
    deadline = Column(DateTime(timezone=True))
    application_count = Column(Integer)

    # Company insights
    company_industry = Column(String(255))
    company_size = Column(String(100))
    company_type = Column(String(100))

    easy_apply = Column(Boolean, default=False, nullable=False)
    referral_bonus = Column(Boolean, default=False, nullable=False)

    # Scraping metadata
    scraped_at = Column(DateTime(timezone=True), nullable=False)
    scraper_version = Column(String(20))
    data_quality = Column(String(20))
    anonymized = Column(Boolean, default=False, nullable=False)
    encrypted = Column(Boolean, default=False, nullable=False)

    # Lifecycle
    first_seen_at = Column(DateTime(timezone=True), nullable=False)
    last_seen_at = Column(DateTime(timezone=True), nullable=False)
    times_seen = Column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint("source", "external_id", name="uq_scraped_posting_source_external"),
        Index("idx_scraped_posting_quality", "source", "data_quality"),
    )

"""Normalized job posting record and data-quality scoring."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field

from scrape_engine.schemas.common import utcnow


class EmploymentType(str, Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    TEMPORARY = "Temporary"
    INTERNSHIP = "Internship"
    FREELANCE = "Freelance"
    REMOTE = "Remote"
    HYBRID = "Hybrid"
    ON_SITE = "On-site"


class SeniorityLevel(str, Enum):
    ENTRY = "Entry"
    JUNIOR = "Junior"
    MID = "Mid"
    SENIOR = "Senior"
    LEAD = "Lead"
    MANAGER = "Manager"
    DIRECTOR = "Director"
    EXECUTIVE = "Executive"


class SalaryPeriod(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUAL = "annual"


class DataQuality(str, Enum):
    EXCELLENT = "excellent"  # 95+
    GOOD = "good"  # 80-94
    FAIR = "fair"  # 60-79
    POOR = "poor"  # <60
    UNKNOWN = "unknown"  # never scored


# Field -> points awarded when the field is present
QUALITY_WEIGHTS: dict[str, int] = {
    "title": 20,
    "company": 20,
    "location": 15,
    "description": 20,
    "requirements": 15,
    "benefits": 10,
}


def score_data_quality(fields: Mapping[str, Any]) -> int:
    """Completeness score (0-100) from field presence only."""
    score = 0
    for name, points in QUALITY_WEIGHTS.items():
        value = fields.get(name)
        if isinstance(value, str):
            value = value.strip()
        if value:
            score += points
    return score


def quality_label(score: int) -> DataQuality:
    if score >= 95:
        return DataQuality.EXCELLENT
    if score >= 80:
        return DataQuality.GOOD
    if score >= 60:
        return DataQuality.FAIR
    return DataQuality.POOR


def assess_data_quality(fields: Mapping[str, Any]) -> DataQuality:
    return quality_label(score_data_quality(fields))


class ScrapedPosting(BaseModel):
    """One job listing normalized from a board.

    ``(source, external_id)`` is the natural dedup key used by storage.
    """

    # Identification
    source: str
    external_id: str
    url: str

    # Job details
    title: str
    company: str
    location: str = "Unknown"
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    seniority_level: SeniorityLevel = SeniorityLevel.MID

    # Compensation
    salary_min: float | None = None
    salary_max: float | None = None
    salary_currency: str | None = None
    salary_period: SalaryPeriod | None = None

    # Content
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)

    # Dates
    posted_at: datetime | None = None
    deadline: datetime | None = None
    application_count: int | None = None

    # Company insights
    company_industry: str | None = None
    company_size: str | None = None
    company_type: str | None = None

    # Application details
    easy_apply: bool = False
    referral_bonus: bool = False

    # Scraping metadata
    scraped_at: datetime = Field(default_factory=utcnow)
    scraper_version: str = "1.0.0"
    data_quality: DataQuality = DataQuality.UNKNOWN

    # Compliance
    anonymized: bool = False
    encrypted: bool = False

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.source, self.external_id)

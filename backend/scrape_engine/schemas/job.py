"""Scrape job and scrape result records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from scrape_engine.schemas.common import ScrapingIssue, ScrapingWarning, utcnow
from scrape_engine.schemas.posting import ScrapedPosting
from scrape_engine.schemas.scrape_config import ScrapeConfiguration, SearchParams


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    RETRYING = "retrying"
    CANCELLED = "cancelled"


class JobKind(str, Enum):
    SEARCH_SCRAPE = "search_scrape"
    JOB_DETAIL = "job_detail"
    MONITORING = "monitoring"


class ScrapingResult(BaseModel):
    """Outcome of one execution attempt."""

    success: bool
    postings: list[ScrapedPosting] = Field(default_factory=list)
    total_jobs: int = 0
    scraped_jobs: int = 0
    failed_jobs: int = 0

    start_time: datetime
    end_time: datetime
    duration: float = 0.0  # seconds
    average_time_per_job: float = 0.0

    errors: list[ScrapingIssue] = Field(default_factory=list)
    warnings: list[ScrapingWarning] = Field(default_factory=list)

    robots_txt_respected: bool = True
    rate_limit_respected: bool = True
    terms_of_service_respected: bool = True

    @classmethod
    def build(
        cls,
        *,
        start_time: datetime,
        postings: list[ScrapedPosting],
        total_jobs: int,
        failed_jobs: int = 0,
        errors: list[ScrapingIssue] | None = None,
        warnings: list[ScrapingWarning] | None = None,
        end_time: datetime | None = None,
        success: bool = True,
        **compliance: bool,
    ) -> "ScrapingResult":
        end_time = end_time or utcnow()
        duration = (end_time - start_time).total_seconds()
        scraped = len(postings)
        return cls(
            success=success,
            postings=postings,
            total_jobs=max(total_jobs, scraped),
            scraped_jobs=scraped,
            failed_jobs=failed_jobs,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            average_time_per_job=duration / scraped if scraped else 0.0,
            errors=errors or [],
            warnings=warnings or [],
            **compliance,
        )


class ScrapeJob(BaseModel):
    """Unit of orchestrated work, owned by the scraping service."""

    id: str
    kind: JobKind = JobKind.SEARCH_SCRAPE
    board: str
    priority: int = 5
    status: JobStatus = JobStatus.PENDING

    config: ScrapeConfiguration
    search_params: SearchParams | None = None
    target_url: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_attempt_at: datetime | None = None

    attempts: int = 0
    max_attempts: int = 1
    next_retry_at: datetime | None = None

    result: ScrapingResult | None = None
    error: ScrapingIssue | None = None
    status_history: list[JobStatus] = Field(default_factory=lambda: [JobStatus.PENDING])

    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        if self.status in (JobStatus.COMPLETED, JobStatus.CANCELLED):
            return True
        return self.status == JobStatus.FAILED and self.next_retry_at is None

"""Pydantic schemas package."""

from scrape_engine.schemas.common import (
    ErrorSeverity,
    ScrapingIssue,
    ScrapingWarning,
    WarningSeverity,
)
from scrape_engine.schemas.posting import (
    DataQuality,
    EmploymentType,
    SalaryPeriod,
    ScrapedPosting,
    SeniorityLevel,
    assess_data_quality,
    quality_label,
    score_data_quality,
)
from scrape_engine.schemas.scrape_config import ScrapeConfiguration, SearchParams
from scrape_engine.schemas.session import SessionCookie, SessionIdentity, Viewport
from scrape_engine.schemas.job import JobKind, JobStatus, ScrapeJob, ScrapingResult

__all__ = [
    # Issues
    "ErrorSeverity",
    "ScrapingIssue",
    "ScrapingWarning",
    "WarningSeverity",
    # Posting
    "DataQuality",
    "EmploymentType",
    "SalaryPeriod",
    "ScrapedPosting",
    "SeniorityLevel",
    "assess_data_quality",
    "quality_label",
    "score_data_quality",
    # Configuration / session
    "ScrapeConfiguration",
    "SearchParams",
    "SessionCookie",
    "SessionIdentity",
    "Viewport",
    # Jobs
    "JobKind",
    "JobStatus",
    "ScrapeJob",
    "ScrapingResult",
]

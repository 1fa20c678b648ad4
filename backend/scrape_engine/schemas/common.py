"""Shared enumerations and issue records."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class WarningSeverity(str, Enum):
    INFO = "info"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class ScrapingIssue(BaseModel):
    """Structured error entry recorded on a result or a job."""

    code: str
    message: str
    details: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    posting_id: str | None = None
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    retryable: bool = False


class ScrapingWarning(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    posting_id: str | None = None
    severity: WarningSeverity = WarningSeverity.MINOR

"""Scraping error taxonomy.

Every error carries a stable ``code``, a severity, and whether the
orchestrator may retry the job that raised it.
"""

from typing import Any

from scrape_engine.schemas.common import ErrorSeverity, ScrapingIssue, utcnow


class ScrapingError(Exception):
    code = "SCRAPING_ERROR"
    severity = ErrorSeverity.MEDIUM
    retryable = False

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.timestamp = utcnow()

    def to_issue(self, posting_id: str | None = None) -> ScrapingIssue:
        return ScrapingIssue(
            code=self.code,
            message=self.message,
            details=self.context or None,
            timestamp=self.timestamp,
            posting_id=posting_id,
            severity=self.severity,
            retryable=self.retryable,
        )


class NetworkError(ScrapingError):
    """Navigation, session initialization, or transport failure."""

    code = "NETWORK_ERROR"
    retryable = True

    def __init__(self, message: str, status_code: int | None = None, context: dict[str, Any] | None = None):
        super().__init__(message, {**(context or {}), "status_code": status_code})
        self.status_code = status_code


class ScrapeTimeoutError(NetworkError):
    code = "TIMEOUT_ERROR"

    def __init__(self, message: str, timeout_ms: int | None = None, context: dict[str, Any] | None = None):
        super().__init__(message, context={**(context or {}), "timeout_ms": timeout_ms})
        self.timeout_ms = timeout_ms


class AntiBotError(ScrapingError):
    """The page carries blocking or verification countermeasures."""

    code = "ANTI_BOT_BLOCKED"
    severity = ErrorSeverity.HIGH
    retryable = True


class RateLimitError(ScrapingError):
    code = "RATE_LIMIT_EXCEEDED"
    retryable = True

    def __init__(self, message: str, retry_after: float | None = None, context: dict[str, Any] | None = None):
        super().__init__(message, {**(context or {}), "retry_after": retry_after})
        self.retry_after = retry_after


class ParsingError(ScrapingError):
    code = "PARSING_FAILED"


class RobotsTxtError(ScrapingError):
    code = "ROBOTS_TXT_VIOLATION"
    severity = ErrorSeverity.CRITICAL


class ConfigurationError(ScrapingError):
    code = "CONFIGURATION_ERROR"
    severity = ErrorSeverity.CRITICAL


class CircuitOpenError(ScrapingError):
    code = "CIRCUIT_OPEN"
    severity = ErrorSeverity.HIGH


class ScrapeCancelledError(ScrapingError):
    code = "CANCELLED"
    severity = ErrorSeverity.LOW

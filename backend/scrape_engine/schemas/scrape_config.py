"""Per-source scraping policy and search parameters."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from scrape_engine.schemas.posting import EmploymentType, SeniorityLevel


class ScrapeConfiguration(BaseModel):
    """Immutable scraping policy for one board.

    Durations are in seconds. Built from the board's registered defaults
    and optionally overridden per request through ``with_overrides``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    base_url: str
    enabled: bool = True
    priority: int = Field(5, ge=1, le=10)

    # Rate limiting
    requests_per_minute: int = Field(30, ge=1)
    requests_per_hour: int = Field(1000, ge=1)
    delay_between_requests: float = Field(2.0, ge=0)
    delay_jitter: float = Field(1.0, ge=0)

    # Anti-bot
    use_proxies: bool = True
    rotate_user_agents: bool = True
    simulate_human_behavior: bool = True

    # Depth
    max_pages_per_search: int = Field(10, ge=1)
    max_jobs_per_page: int = Field(25, ge=1)
    follow_pagination: bool = True

    # Extraction
    extract_full_description: bool = True
    extract_requirements: bool = True
    extract_benefits: bool = True

    # Retry / failure handling
    max_retries: int = Field(3, ge=0)
    retry_delay: float = Field(5.0, ge=0)
    circuit_breaker_threshold: int = Field(5, ge=1)

    # Compliance
    respect_robots_txt: bool = True
    include_audit_trail: bool = True
    anonymize_data: bool = True

    def with_overrides(self, overrides: dict[str, Any] | None) -> "ScrapeConfiguration":
        """Return a validated copy where each override wins over the current value.

        Raises pydantic.ValidationError for unknown fields or invalid values.
        """
        if not overrides:
            return self
        return ScrapeConfiguration.model_validate({**self.model_dump(), **overrides})


class SearchParams(BaseModel):
    query: str
    location: str | None = None
    radius: int | None = None

    # Job filters
    employment_types: list[EmploymentType] = Field(default_factory=list)
    seniority_levels: list[SeniorityLevel] = Field(default_factory=list)
    salary_min: int | None = None
    salary_max: int | None = None

    # Company filters
    company_sizes: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)

    # Posted within N days
    posted_within: int | None = None

    # Pagination
    page: int | None = None
    limit: int | None = None

    # Advanced
    remote: bool | None = None
    easy_apply: bool | None = None
    veteran: bool | None = None
    disability: bool | None = None

    custom_filters: dict[str, Any] = Field(default_factory=dict)

"""Application configuration from environment variables."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "Job Scrape Engine"
    debug: bool = False
    scraper_version: str = "1.0.0"

    # Storage collaborator
    database_url: str = "sqlite:///./scraped_postings.db"

    # Redis (result cache + celery broker)
    redis_url: str = "redis://localhost:6379/0"
    result_cache_ttl: int = 86400
    result_cache_prefix: str = "scraping:results:"

    # Browser
    browser_headless: bool = True
    browser_channel: str | None = None
    navigation_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    proxy_servers: list[str] = []

    # Orchestration
    max_concurrent_sessions: int = 3
    continuous_query_delay: float = 5.0
    circuit_breaker_cooldown: float = 900.0
    job_wait_timeout: float = 300.0

    # Compliance
    robots_txt_timeout: float = 10.0
    robots_user_agent: str = "*"

    # Audit trail
    screenshot_dir: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()

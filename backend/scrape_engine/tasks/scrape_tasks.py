"""Scrape tasks for the durable worker queue."""

import asyncio
import logging
from typing import Any

from scrape_engine.config import Settings, get_settings
from scrape_engine.errors import ScrapingError
from scrape_engine.models.base import make_session_factory
from scrape_engine.schemas.job import JobStatus, ScrapeJob
from scrape_engine.scrapers.factory import ScraperFactory
from scrape_engine.services.cache import ResultCache
from scrape_engine.services.posting_store import PostingStore
from scrape_engine.services.scraping_service import ScrapingService
from scrape_engine.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> ScrapingService:
    """Wire factory, storage and cache from settings."""
    factory = ScraperFactory(settings)
    store = PostingStore(make_session_factory(settings.database_url, echo=settings.debug, create_tables=True))
    cache = ResultCache.from_url(
        settings.redis_url,
        ttl=settings.result_cache_ttl,
        prefix=settings.result_cache_prefix,
    )
    return ScrapingService(factory, settings, store=store, cache=cache)


def summarize_job(job: ScrapeJob) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "job_id": job.id,
        "board": job.board,
        "status": job.status.value,
        "attempts": job.attempts,
        "jobs_found": 0,
        "jobs_scraped": 0,
        "jobs_failed": 0,
    }
    if job.result is not None:
        summary.update({
            "jobs_found": job.result.total_jobs,
            "jobs_scraped": job.result.scraped_jobs,
            "jobs_failed": job.result.failed_jobs,
            "duration": job.result.duration,
            "errors": len(job.result.errors),
        })
    if "stored" in job.metadata:
        summary["stored"] = job.metadata["stored"]
    if job.error is not None:
        summary["error"] = job.error.message
    return summary


async def run_scrape_job(
    service: ScrapingService,
    board_id: str,
    search_params: dict[str, Any],
    config_override: dict[str, Any] | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Submit one job, wait for it to finish and shut the service down."""
    try:
        job_id = await service.start_scraping_job(board_id, search_params, config_override, tags=["worker"])
        job = await service.wait_for_job(job_id, timeout=timeout)
        if not job.is_terminal:
            service.cancel_job(job_id)
            summary = summarize_job(job)
            summary["status"] = "timeout"
            return summary
        return summarize_job(job)
    finally:
        await service.shutdown()
        if service.cache is not None:
            await service.cache.close()


@celery_app.task(name="scrape_engine.tasks.scrape_tasks.scrape_board")
def scrape_board(board_id: str, search_params: dict[str, Any], config_override: dict[str, Any] | None = None):
    """Scrape one board for one search and store the postings."""
    settings = get_settings()

    async def _run():
        service = build_service(settings)
        return await run_scrape_job(
            service, board_id, search_params, config_override, timeout=settings.job_wait_timeout
        )

    try:
        summary = asyncio.run(_run())
    except ScrapingError as e:
        logger.error(f"Rejected scrape of {board_id}: {e}")
        return {"board": board_id, "status": "rejected", "error": e.message}

    if summary["status"] == JobStatus.COMPLETED.value:
        logger.info(f"Scraped {board_id}: {summary}")
    else:
        logger.error(f"Failed to scrape {board_id}: {summary}")
    return summary

"""Scraping orchestration service.

Owns the in-memory job table, runs jobs on the event loop behind a bounded
session pool, retries retryable failures, trips per-board circuit breakers,
and forwards results to the cache and storage collaborators.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from scrape_engine.config import Settings, get_settings
from scrape_engine.errors import (
    CircuitOpenError,
    ConfigurationError,
    RateLimitError,
    ScrapeCancelledError,
    ScrapingError,
)
from scrape_engine.schemas.common import ScrapingWarning, utcnow
from scrape_engine.schemas.job import JobKind, JobStatus, ScrapeJob, ScrapingResult
from scrape_engine.schemas.scrape_config import ScrapeConfiguration, SearchParams
from scrape_engine.scrapers.base import BaseScraper
from scrape_engine.scrapers.factory import ScraperFactory
from scrape_engine.services.cache import ResultCache
from scrape_engine.services.circuit_breaker import CircuitBreaker
from scrape_engine.services.posting_store import PostingStore

logger = logging.getLogger(__name__)

# Legal status edges; COMPLETED and CANCELLED are absorbing, FAILED only moves on to a retry
TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.CANCELLED},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED},
    JobStatus.FAILED: {JobStatus.RETRYING},
    JobStatus.RETRYING: {JobStatus.RUNNING, JobStatus.CANCELLED},
    JobStatus.COMPLETED: set(),
    JobStatus.CANCELLED: set(),
}


class InvalidTransitionError(ValueError):
    pass


class ScrapingService:
    """Coordinates scrape jobs across boards.

    Construct one per process and pass it to whatever owns the outer
    surface (CLI, worker task, HTTP layer).
    """

    def __init__(
        self,
        factory: ScraperFactory,
        settings: Settings | None = None,
        store: PostingStore | None = None,
        cache: ResultCache | None = None,
    ):
        self.factory = factory
        self.settings = settings or factory.settings or get_settings()
        self.store = store
        self.cache = cache

        self._jobs: dict[str, ScrapeJob] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}
        self._done_events: dict[str, asyncio.Event] = {}
        self._retry_tasks: dict[str, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()
        self._breakers: dict[str, CircuitBreaker] = {}
        self._semaphore: asyncio.Semaphore | None = None

        self._continuous_task: asyncio.Task | None = None
        self.is_continuous_running = False

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def start_scraping_job(
        self,
        board_id: str,
        search_params: SearchParams | dict[str, Any],
        config_override: dict[str, Any] | None = None,
        *,
        tags: list[str] | None = None,
    ) -> str:
        """Register a search job as PENDING and start it in the background.

        Raises ConfigurationError for unknown boards or invalid input and
        CircuitOpenError while the board's breaker is open.
        """
        if not isinstance(search_params, SearchParams):
            try:
                search_params = SearchParams.model_validate(search_params)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid search parameters: {e.errors(include_url=False)}") from e

        config = self._prepare_config(board_id, config_override)
        job = ScrapeJob(
            id=str(uuid.uuid4()),
            kind=JobKind.SEARCH_SCRAPE,
            board=board_id,
            priority=config.priority,
            config=config,
            search_params=search_params,
            max_attempts=max(1, config.max_retries),
            tags=[board_id, "search", *(tags or [])],
            metadata={"board": board_id},
        )
        self._register(job)
        logger.info(f"Started scraping job {job.id} for {board_id}: '{search_params.query}'")
        return job.id

    async def start_detail_job(
        self,
        board_id: str,
        url: str,
        config_override: dict[str, Any] | None = None,
    ) -> str:
        """Register a single-posting detail job; its result holds 0 or 1 postings."""
        config = self._prepare_config(board_id, config_override)
        job = ScrapeJob(
            id=str(uuid.uuid4()),
            kind=JobKind.JOB_DETAIL,
            board=board_id,
            priority=config.priority,
            config=config,
            target_url=url,
            max_attempts=max(1, config.max_retries),
            tags=[board_id, "detail"],
            metadata={"board": board_id},
        )
        self._register(job)
        logger.info(f"Started detail job {job.id} for {board_id}: {url}")
        return job.id

    def _prepare_config(self, board_id: str, config_override: dict[str, Any] | None) -> ScrapeConfiguration:
        if not self.factory.is_scraper_available(board_id):
            raise ConfigurationError(f"Scraper not available for {board_id}", {"board": board_id})

        config = self.factory.build_config(board_id, config_override)
        if not config.enabled:
            raise ConfigurationError(f"Scraper for {board_id} is disabled", {"board": board_id})

        breaker = self._breaker(board_id, config)
        if breaker.is_open:
            raise CircuitOpenError(
                f"Circuit open for {board_id}, retry in {breaker.remaining:.0f}s",
                {"board": board_id, "remaining": breaker.remaining},
            )
        return config

    def _register(self, job: ScrapeJob) -> None:
        self._jobs[job.id] = job
        self._cancel_events[job.id] = asyncio.Event()
        self._done_events[job.id] = asyncio.Event()
        self._spawn(self._execute(job.id))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _breaker(self, board_id: str, config: ScrapeConfiguration) -> CircuitBreaker:
        if board_id not in self._breakers:
            self._breakers[board_id] = CircuitBreaker(
                threshold=config.circuit_breaker_threshold,
                cooldown=self.settings.circuit_breaker_cooldown,
                name=board_id,
            )
        return self._breakers[board_id]

    def _get_semaphore(self) -> asyncio.Semaphore:
        # Created lazily so it binds to the running loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrent_sessions))
        return self._semaphore

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, job: ScrapeJob, status: JobStatus) -> None:
        if status not in TRANSITIONS[job.status]:
            raise InvalidTransitionError(f"Job {job.id}: illegal transition {job.status.value} -> {status.value}")
        job.status = status
        job.status_history.append(status)
        if job.is_terminal:
            job.completed_at = job.completed_at or utcnow()
            self._done_events[job.id].set()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _execute(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        self._retry_tasks.pop(job_id, None)

        async with self._get_semaphore():
            if job.status == JobStatus.CANCELLED:
                logger.info(f"Job {job_id} was cancelled before it started")
                return

            now = utcnow()
            self._transition(job, JobStatus.RUNNING)
            job.attempts += 1
            job.started_at = job.started_at or now
            job.last_attempt_at = now
            job.next_retry_at = None
            logger.info(f"Job {job_id} running (attempt {job.attempts}/{job.max_attempts})")

            scraper = None
            try:
                scraper = self.factory.create_scraper(
                    job.board, job.config, cancel_event=self._cancel_events[job_id]
                )
                result = await self._run_scraper(job, scraper)
            except ScrapeCancelledError:
                logger.info(f"Job {job_id} stopped after cancellation")
                return
            except ScrapingError as e:
                self._handle_failure(job, e)
                return
            except Exception as e:
                logger.exception(f"Job {job_id} crashed: {e}")
                self._handle_failure(job, ScrapingError(f"Job execution failed: {e}", {"board": job.board}))
                return
            finally:
                if scraper is not None:
                    self.factory.release(scraper)

        if job.status == JobStatus.CANCELLED:
            logger.info(f"Job {job_id} finished after cancellation, discarding result")
            return

        job.result = result
        job.error = None
        self._transition(job, JobStatus.COMPLETED)
        self._breakers[job.board].record_success()
        logger.info(f"Job {job_id} completed successfully: {result.scraped_jobs} jobs scraped")

        if self.cache is not None:
            await self.cache.set_job_result(job_id, result, self.settings.result_cache_ttl)
        await self._store_postings(job, result)

    async def _run_scraper(self, job: ScrapeJob, scraper: BaseScraper) -> ScrapingResult:
        if job.kind == JobKind.JOB_DETAIL:
            start_time = utcnow()
            posting = await scraper.scrape_job_details(job.target_url)
            warnings = []
            if posting is None:
                warnings.append(ScrapingWarning(
                    code="INCOMPLETE_POSTING",
                    message=f"Missing title or company on {job.target_url}",
                ))
            return ScrapingResult.build(
                start_time=start_time,
                postings=[posting] if posting else [],
                total_jobs=1,
                failed_jobs=0 if posting else 1,
                warnings=warnings,
                robots_txt_respected=job.config.respect_robots_txt,
                rate_limit_respected=scraper.rate_limit_respected,
            )
        return await scraper.scrape_jobs(job.search_params)

    def _handle_failure(self, job: ScrapeJob, error: ScrapingError) -> None:
        if job.status == JobStatus.CANCELLED:
            logger.info(f"Job {job.id} failed after cancellation: {error}")
            return

        breaker = self._breakers[job.board]
        breaker.record_failure()

        job.error = error.to_issue()
        if error.retryable and job.attempts < job.max_attempts:
            delay = max(
                job.config.retry_delay,
                (error.retry_after or 0.0) if isinstance(error, RateLimitError) else 0.0,
                breaker.remaining,
            )
            job.next_retry_at = utcnow() + timedelta(seconds=delay)
            self._transition(job, JobStatus.FAILED)
            self._transition(job, JobStatus.RETRYING)
            logger.warning(
                f"Job {job.id} failed ({error.code}), retrying in {delay:.1f}s "
                f"(attempt {job.attempts}/{job.max_attempts}): {error}"
            )
            self._retry_tasks[job.id] = self._spawn(self._retry_after(job.id, delay))
        else:
            job.next_retry_at = None
            self._transition(job, JobStatus.FAILED)
            logger.error(f"Job {job.id} failed permanently after {job.attempts} attempt(s): {error}")

    async def _retry_after(self, job_id: str, delay: float) -> None:
        await asyncio.sleep(delay)
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.RETRYING:
            return
        await self._execute(job_id)

    async def _store_postings(self, job: ScrapeJob, result: ScrapingResult) -> None:
        if self.store is None or not result.postings:
            return
        try:
            summary = await asyncio.to_thread(self.store.upsert_postings, result.postings)
            job.metadata["stored"] = {"inserted": summary.inserted, "updated": summary.updated}
        except Exception as e:
            logger.error(f"Failed to store jobs for {job.id}: {e}")

    # ------------------------------------------------------------------
    # Queries and control
    # ------------------------------------------------------------------

    def get_job_status(self, job_id: str) -> ScrapeJob | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    def get_active_jobs(self) -> list[ScrapeJob]:
        """Jobs that have not reached a terminal state."""
        return [job.model_copy(deep=True) for job in self._jobs.values() if not job.is_terminal]

    async def get_cached_result(self, job_id: str) -> ScrapingResult | None:
        if self.cache is not None:
            cached = await self.cache.get_job_result(job_id)
            if cached is not None:
                return cached
        job = self._jobs.get(job_id)
        return job.result if job else None

    async def wait_for_job(self, job_id: str, timeout: float | None = None) -> ScrapeJob | None:
        """Wait until the job is terminal (or the timeout passes) and return a snapshot."""
        done = self._done_events.get(job_id)
        if done is None:
            return None
        try:
            await asyncio.wait_for(done.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out waiting for job {job_id}")
        return self.get_job_status(job_id)

    def cancel_job(self, job_id: str) -> bool:
        """Cancel a job. Returns False for unknown or already-finished jobs.

        A running job is marked CANCELLED at once; its scraper stops at the
        next navigation checkpoint.
        """
        job = self._jobs.get(job_id)
        if job is None or job.is_terminal:
            return False

        was_running = job.status == JobStatus.RUNNING
        self._transition(job, JobStatus.CANCELLED)
        job.next_retry_at = None
        self._cancel_events[job_id].set()

        retry = self._retry_tasks.pop(job_id, None)
        if retry is not None:
            retry.cancel()

        if was_running:
            logger.info(f"Job {job_id} cancelled while running, signalling scraper")
        else:
            logger.info(f"Job {job_id} cancelled")
        return True

    # ------------------------------------------------------------------
    # Continuous scraping
    # ------------------------------------------------------------------

    async def start_continuous_scraping(
        self,
        board_ids: list[str],
        queries: list[str],
        interval_minutes: float = 60,
    ) -> None:
        """Run a sweep over boards x queries now, then every ``interval_minutes``."""
        if self.is_continuous_running:
            logger.warning("Continuous scraping is already running")
            return
        self.is_continuous_running = True
        logger.info(f"Starting continuous scraping with {interval_minutes} minute intervals")
        self._continuous_task = asyncio.create_task(
            self._continuous_loop(list(board_ids), list(queries), interval_minutes * 60)
        )

    def stop_continuous_scraping(self) -> None:
        self.is_continuous_running = False
        if self._continuous_task is not None:
            self._continuous_task.cancel()
            self._continuous_task = None
        logger.info("Continuous scraping stopped")

    async def _continuous_loop(self, board_ids: list[str], queries: list[str], interval: float) -> None:
        while self.is_continuous_running:
            await self.run_sweep(board_ids, queries)
            await asyncio.sleep(interval)

    async def run_sweep(self, board_ids: list[str], queries: list[str]) -> list[str]:
        """Start one job per (board, query); returns the started job ids."""
        logger.info("Running continuous scraping cycle")
        started = []
        for board_id in board_ids:
            if not self.factory.is_scraper_available(board_id):
                logger.warning(f"Skipping {board_id} - scraper not available")
                continue
            breaker = self._breakers.get(board_id)
            if breaker is not None and breaker.is_open:
                logger.warning(f"Skipping {board_id} - circuit open for {breaker.remaining:.0f}s")
                continue

            for query in queries:
                try:
                    started.append(
                        await self.start_scraping_job(board_id, SearchParams(query=query), tags=["continuous"])
                    )
                except ScrapingError as e:
                    logger.error(f"Failed to start continuous scraping for {board_id} with query '{query}': {e}")
                    continue
                if self.settings.continuous_query_delay > 0:
                    await asyncio.sleep(self.settings.continuous_query_delay)

        logger.info(f"Continuous scraping cycle completed: {len(started)} jobs started")
        return started

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        jobs = list(self._jobs.values())
        by_status = {status.value: 0 for status in JobStatus}
        for job in jobs:
            by_status[job.status.value] += 1

        total = len(jobs)
        completed = by_status[JobStatus.COMPLETED.value]
        return {
            "total_jobs": total,
            "completed_jobs": completed,
            "failed_jobs": sum(1 for job in jobs if job.status == JobStatus.FAILED and job.is_terminal),
            "running_jobs": by_status[JobStatus.RUNNING.value],
            "jobs_by_status": by_status,
            "success_rate": (completed / total) * 100 if total else 0.0,
            "scraper_stats": self.factory.get_scraper_stats(),
            "available_scrapers": self.factory.get_available_scrapers(),
            "circuit_breakers": {board: breaker.snapshot() for board, breaker in self._breakers.items()},
        }

    async def health_check(self) -> dict[str, Any]:
        checks = {}
        try:
            if self.cache is None:
                checks["cache"] = {"ok": True, "status": "unavailable"}
            elif await self.cache.ping():
                checks["cache"] = {"ok": True, "status": "healthy"}
            else:
                checks["cache"] = {"ok": False, "status": "unhealthy"}

            all_ok = all(check.get("ok", False) for check in checks.values())
            return {
                "status": "healthy" if all_ok else "degraded",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "stats": self.get_stats(),
                "checks": checks,
                "cache": checks["cache"]["status"],
                "continuous_scraping": self.is_continuous_running,
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
                "continuous_scraping": self.is_continuous_running,
            }

    async def shutdown(self) -> None:
        """Stop scheduling, cancel outstanding jobs and release browser sessions."""
        self.stop_continuous_scraping()
        for job_id, job in list(self._jobs.items()):
            if not job.is_terminal:
                self.cancel_job(job_id)

        pending = [task for task in self._tasks if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        await self.factory.cleanup_all()
        logger.info("Scraping service shut down")


"""Result cache over Redis.

Caching is best effort: every Redis failure is logged and swallowed so a
cache outage never fails a scrape job.
"""

import logging

import redis.asyncio as aioredis
from pydantic import ValidationError

from scrape_engine.schemas.job import ScrapingResult

logger = logging.getLogger(__name__)


class ResultCache:
    def __init__(self, client: aioredis.Redis, ttl: int = 86400, prefix: str = "scraping:results:"):
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str, ttl: int = 86400, prefix: str = "scraping:results:") -> "ResultCache":
        client = aioredis.from_url(redis_url, socket_timeout=5, decode_responses=True)
        return cls(client, ttl=ttl, prefix=prefix)

    def _key(self, job_id: str) -> str:
        return f"{self.prefix}{job_id}"

    async def set_job_result(self, job_id: str, result: ScrapingResult, ttl: int | None = None) -> bool:
        try:
            await self.client.setex(self._key(job_id), ttl or self.ttl, result.model_dump_json())
            return True
        except Exception as e:
            logger.warning(f"Failed to cache result for job {job_id}: {e}")
            return False

    async def get_job_result(self, job_id: str) -> ScrapingResult | None:
        try:
            payload = await self.client.get(self._key(job_id))
        except Exception as e:
            logger.warning(f"Failed to read cached result for job {job_id}: {e}")
            return None
        if not payload:
            return None
        try:
            return ScrapingResult.model_validate_json(payload)
        except ValidationError as e:
            logger.warning(f"Discarding malformed cached result for job {job_id}: {e}")
            return None

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning(f"Result cache unreachable: {e}")
            return False

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except Exception as e:
            logger.warning(f"Failed to close result cache: {e}")

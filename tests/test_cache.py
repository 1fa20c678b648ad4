"""Tests for services/cache.py: best-effort result caching over Redis."""

import asyncio

from scrape_engine.schemas import ScrapingResult
from scrape_engine.schemas.common import utcnow
from scrape_engine.services.cache import ResultCache

from conftest import FakeRedis


def make_result():
    return ScrapingResult.build(start_time=utcnow(), postings=[], total_jobs=3, failed_jobs=3)


def test_set_and_get_result():
    redis = FakeRedis()
    cache = ResultCache(redis, ttl=600)

    async def run():
        stored = await cache.set_job_result("job-1", make_result())
        return stored, await cache.get_job_result("job-1")

    stored, cached = asyncio.run(run())

    assert stored is True
    assert redis.ttls["scraping:results:job-1"] == 600
    assert cached.total_jobs == 3
    assert cached.failed_jobs == 3


def test_explicit_ttl_and_prefix():
    redis = FakeRedis()
    cache = ResultCache(redis, prefix="results:")
    asyncio.run(cache.set_job_result("job-2", make_result(), ttl=30))
    assert redis.ttls == {"results:job-2": 30}


def test_missing_and_malformed_entries():
    redis = FakeRedis()
    redis.store["scraping:results:broken"] = '{"success": "maybe"}'
    cache = ResultCache(redis)

    async def run():
        return await cache.get_job_result("unknown"), await cache.get_job_result("broken")

    assert asyncio.run(run()) == (None, None)


def test_redis_outage_is_swallowed():
    redis = FakeRedis(healthy=False)
    cache = ResultCache(redis)

    async def run():
        return (
            await cache.set_job_result("job-1", make_result()),
            await cache.get_job_result("job-1"),
            await cache.ping(),
        )

    assert asyncio.run(run()) == (False, None, False)


def test_ping_and_close():
    redis = FakeRedis()
    cache = ResultCache(redis)

    async def run():
        healthy = await cache.ping()
        await cache.close()
        return healthy

    assert asyncio.run(run()) is True
    assert redis.closed is True

"""Tests for services/posting_store.py: idempotent upserts on SQLite."""

from scrape_engine.models.base import make_session_factory
from scrape_engine.models.scraped_posting import ScrapedPostingRecord
from scrape_engine.schemas import DataQuality, ScrapedPosting, SeniorityLevel
from scrape_engine.services.posting_store import PostingStore


def make_posting(external_id="k1", **overrides):
    data = {
        "source": "indeed",
        "external_id": external_id,
        "url": f"https://www.indeed.com/viewjob?jk={external_id}",
        "title": "Software Engineer",
        "company": "Acme Corp",
        "requirements": ["Python"],
        "seniority_level": SeniorityLevel.SENIOR,
        "data_quality": DataQuality.FAIR,
    }
    data.update(overrides)
    return ScrapedPosting(**data)


def make_store():
    session_factory = make_session_factory("sqlite://", create_tables=True)
    return PostingStore(session_factory), session_factory


def test_insert_then_update():
    store, session_factory = make_store()

    first = store.upsert_postings([make_posting("k1"), make_posting("k2")])
    second = store.upsert_postings([make_posting("k1", title="Senior Software Engineer")])

    assert (first.inserted, first.updated) == (2, 0)
    assert (second.inserted, second.updated) == (0, 1)
    assert second.total == 1
    assert store.count() == 2

    db = session_factory()
    try:
        record = db.query(ScrapedPostingRecord).filter_by(source="indeed", external_id="k1").one()
        assert record.title == "Senior Software Engineer"
        assert record.times_seen == 2
        assert record.seniority_level == "Senior"
        assert record.data_quality == "fair"
        assert record.requirements == ["Python"]
    finally:
        db.close()


def test_duplicates_within_one_batch_collapse():
    store, _ = make_store()
    summary = store.upsert_postings([make_posting("k1"), make_posting("k1", company="Acme Inc")])
    assert (summary.inserted, summary.updated) == (1, 1)
    assert store.count() == 1


def test_same_id_on_different_boards_is_distinct():
    store, _ = make_store()
    store.upsert_postings([make_posting("12345"), make_posting("12345", source="naukri")])
    assert store.count() == 2
    assert store.count("naukri") == 1


def test_empty_batch():
    store, _ = make_store()
    summary = store.upsert_postings([])
    assert summary.total == 0
    assert store.count() == 0

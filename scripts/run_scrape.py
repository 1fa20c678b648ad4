#!/usr/bin/env python3
"""Run a single scrape job from the command line.

Builds the service from settings (.env / environment), scrapes one board for
one query, stores the postings and prints a summary.

Usage:
    python scripts/run_scrape.py indeed "software engineer" --location "Austin, TX"
    python scripts/run_scrape.py naukri "python developer" --location Bangalore --max-pages 1 --no-details
"""

import sys
from pathlib import Path

# Add backend to path when running as script
backend_dir = Path(__file__).resolve().parent.parent / "backend"
if backend_dir.exists():
    sys.path.insert(0, str(backend_dir))

import argparse
import asyncio
import json
import logging

from scrape_engine.config import get_settings
from scrape_engine.errors import ScrapingError
from scrape_engine.scrapers.registry import list_boards
from scrape_engine.tasks.scrape_tasks import build_service, run_scrape_job

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)


def build_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.max_pages is not None:
        overrides["max_pages_per_search"] = args.max_pages
        overrides["follow_pagination"] = args.max_pages > 1
    if args.max_jobs is not None:
        overrides["max_jobs_per_page"] = args.max_jobs
    if args.no_details:
        overrides["extract_full_description"] = False
    if args.headful:
        overrides["simulate_human_behavior"] = True
    return overrides


async def main(args: argparse.Namespace) -> dict:
    settings = get_settings()
    if args.headful:
        settings = settings.model_copy(update={"browser_headless": False})

    service = build_service(settings)
    search_params = {"query": args.query}
    if args.location:
        search_params["location"] = args.location
    if args.posted_within:
        search_params["posted_within"] = args.posted_within
    if args.remote:
        search_params["remote"] = True

    return await run_scrape_job(
        service,
        args.board,
        search_params,
        build_overrides(args),
        timeout=settings.job_wait_timeout,
    )


if __name__ == "__main__":
    import scrape_engine.scrapers  # noqa: F401

    parser = argparse.ArgumentParser(description="Scrape one job board for one search query")
    parser.add_argument("board", choices=list_boards(), help="Board to scrape")
    parser.add_argument("query", help="Search query, e.g. 'software engineer'")
    parser.add_argument("--location", help="Location filter")
    parser.add_argument("--posted-within", type=int, help="Only postings from the last N days")
    parser.add_argument("--remote", action="store_true", help="Remote jobs only")
    parser.add_argument("--max-pages", type=int, help="Maximum result pages to walk")
    parser.add_argument("--max-jobs", type=int, help="Maximum postings per result page")
    parser.add_argument("--no-details", action="store_true", help="Skip detail pages, keep listing data only")
    parser.add_argument("--headful", action="store_true", help="Show the browser window")
    args = parser.parse_args()

    try:
        summary = asyncio.run(main(args))
    except ScrapingError as e:
        logger.error(f"Scrape rejected: {e}")
        sys.exit(2)

    print(json.dumps(summary, indent=2, default=str))
    sys.exit(0 if summary["status"] == "completed" else 1)

"""Scraper package: import all scrapers to trigger @register_scraper decorators."""

from scrape_engine.scrapers.indeed import IndeedScraper  # noqa: F401
from scrape_engine.scrapers.naukri import NaukriScraper  # noqa: F401

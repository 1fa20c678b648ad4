"""Naukri.com scraper.

Search URLs are slug paths, /python-developer-jobs-in-bangalore, with the
raw query and filters repeated as query parameters. Result cards carry a
data-job-id attribute; detail URLs end with the same numeric id, e.g.
/job-listings-python-developer-acme-bangalore-3-to-5-years-150324500123.
Salaries are quoted in INR lakhs per annum ("5-8 Lacs PA").
"""

import logging
import re
from typing import Any
from urllib.parse import urlencode, urljoin

from bs4 import BeautifulSoup

from scrape_engine.schemas.posting import SeniorityLevel
from scrape_engine.schemas.scrape_config import SearchParams
from scrape_engine.scrapers.base import BaseScraper
from scrape_engine.scrapers.parsing import (
    map_employment_type,
    parse_relative_date,
    parse_salary,
    seniority_from_experience,
    slugify,
)
from scrape_engine.scrapers.registry import register_scraper

logger = logging.getLogger(__name__)

# Minimum years of experience Naukri's "experience" filter should ask for
EXPERIENCE_YEARS = {
    SeniorityLevel.ENTRY: 0,
    SeniorityLevel.JUNIOR: 1,
    SeniorityLevel.MID: 3,
    SeniorityLevel.SENIOR: 6,
    SeniorityLevel.LEAD: 10,
    SeniorityLevel.MANAGER: 10,
    SeniorityLevel.DIRECTOR: 15,
    SeniorityLevel.EXECUTIVE: 15,
}

# Naukri's freshness filter only offers these windows
JOB_AGE_DAYS = {1, 3, 7, 15, 30}

WFH_REMOTE = "2"

CARD_SELECTORS = [
    "div.srp-jobtuple-wrapper[data-job-id]",
    "article.jobTuple[data-job-id]",
    "[data-job-id]",
    '[class*="jobTuple"]',
    '[class*="jobCard"]',
]
CARD_TITLE = ["a.title", '[class*="jobTitle"] a', "h2 a", '[class*="title"]']
CARD_COMPANY = ["a.comp-name", '[class*="companyName"]', '[class*="comp-name"]', '[class*="company"]']
CARD_LOCATION = ["span.locWdth", '[class*="loc-wrap"] span', '[class*="location"]']
CARD_SALARY = ['[class*="sal-wrap"] span', "span.sal", '[class*="salary"]']
CARD_EXPERIENCE = ["span.expwdth", '[class*="exp-wrap"] span', '[class*="experience"]']
CARD_POSTED = ["span.job-post-day", '[class*="job-post-day"]', '[class*="posted"]']
CARD_TAGS = ["ul.tags-gt li", '[class*="tags"] li']

DETAIL_TITLE = ['[class*="jd-header-title"]', "h1.jd-header-title", "h1"]
DETAIL_COMPANY = ['[class*="jd-header-comp-name"] a', '[class*="jd-header-comp-name"]', '[class*="comp-name"]']
DETAIL_LOCATION = ['[class*="jhc__location"] a', '[class*="jhc__location"]', '[class*="location"]']
DETAIL_SALARY = ['[class*="jhc__salary"] span', '[class*="salary"]']
DETAIL_EXPERIENCE = ['[class*="jhc__exp"] span', '[class*="experience"]']
DETAIL_DESCRIPTION = ['[class*="dang-inner-html"]', "section.job-desc", '[class*="job-desc"]']
DETAIL_SKILLS = ['[class*="key-skill"] a', '[class*="key-skill"] span', '[class*="chip"]']
DETAIL_EMPLOYMENT = ['[class*="details"] [class*="employment"]', '[class*="employment-type"]']
DETAIL_POSTED = ['[class*="jhc__stat"] span', '[class*="posted"]']
DETAIL_BENEFITS = ['[class*="perks"] li', '[class*="benefit"] li']

_JOB_ID_RE = re.compile(r"-(\d{6,})(?:[/?#]|$)")


@register_scraper(
    "naukri",
    requests_per_minute=25,
    delay_between_requests=2.5,
    max_pages_per_search=10,
)
class NaukriScraper(BaseScraper):
    listing_ready_selector = "[data-job-id]"
    detail_ready_selector = "h1"
    default_currency = "INR"

    def build_search_url(self, params: SearchParams) -> str:
        path = f"{slugify(params.query)}-jobs"
        if params.location:
            path += f"-in-{slugify(params.location)}"

        query: dict[str, str] = {"k": params.query}
        if params.location:
            query["l"] = params.location

        years = [EXPERIENCE_YEARS[s] for s in params.seniority_levels if s in EXPERIENCE_YEARS]
        if years:
            query["experience"] = str(min(years))
        if params.salary_min:
            query["salary"] = str(params.salary_min)
        if params.posted_within in JOB_AGE_DAYS:
            query["jobAge"] = str(params.posted_within)
        if params.remote:
            query["wfhType"] = WFH_REMOTE
        if params.page and params.page > 1:
            query["pageNo"] = str(params.page)

        return f"{self.base_url}/{path}?{urlencode(query)}"

    def extract_job_id(self, url: str) -> str | None:
        match = _JOB_ID_RE.search(url or "")
        return match.group(1) if match else None

    def parse_job_listings(self, html: str) -> list[dict[str, Any]]:
        soup = BeautifulSoup(html, "lxml")

        cards = []
        for selector in CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                break
        if not cards:
            logger.debug(f"[{self.board}] No job tuples found")
            return []

        listings = []
        for card in cards:
            title = self.extract_text(card, CARD_TITLE)
            if not title:
                continue

            href = self.extract_attribute(card, CARD_TITLE, "href") or self.extract_attribute(card, ["a"], "href")
            url = urljoin(self.base_url + "/", href) if href else None
            job_id = card.get("data-job-id") or (self.extract_job_id(url) if url else None)

            experience = self.extract_text(card, CARD_EXPERIENCE)
            salary_min, salary_max, currency, period = parse_salary(
                self.extract_text(card, CARD_SALARY), default_currency="INR"
            )

            listings.append({
                "external_id": job_id,
                "url": url,
                "title": title,
                "company": self.extract_text(card, CARD_COMPANY) or None,
                "location": self.extract_text(card, CARD_LOCATION) or None,
                "seniority_level": seniority_from_experience(experience),
                "salary_min": salary_min,
                "salary_max": salary_max,
                "salary_currency": currency,
                "salary_period": period,
                "posted_at": parse_relative_date(self.extract_text(card, CARD_POSTED)),
                "requirements": self.extract_texts(card, CARD_TAGS),
            })

        logger.debug(f"[{self.board}] Parsed {len(listings)} listings")
        return listings[: self.config.max_jobs_per_page]

    def parse_job_page(self, html: str, url: str) -> dict[str, Any]:
        soup = BeautifulSoup(html, "lxml")

        salary_min, salary_max, currency, period = parse_salary(
            self.extract_text(soup, DETAIL_SALARY), default_currency="INR"
        )
        experience = self.extract_text(soup, DETAIL_EXPERIENCE)

        description = ""
        for selector in DETAIL_DESCRIPTION:
            node = soup.select_one(selector)
            if node is not None:
                description = node.get_text("\n", strip=True)
                if description:
                    break

        employment = self.extract_text(soup, DETAIL_EMPLOYMENT)

        return {
            "external_id": self.extract_job_id(url),
            "title": self.extract_text(soup, DETAIL_TITLE) or None,
            "company": self.extract_text(soup, DETAIL_COMPANY) or None,
            "location": self.extract_text(soup, DETAIL_LOCATION) or None,
            "description": description or None,
            "employment_type": map_employment_type(employment) if employment else None,
            "seniority_level": seniority_from_experience(experience) if experience else None,
            "salary_min": salary_min,
            "salary_max": salary_max,
            "salary_currency": currency,
            "salary_period": period,
            "posted_at": parse_relative_date(self.extract_text(soup, DETAIL_POSTED)),
            "requirements": self.extract_texts(soup, DETAIL_SKILLS),
            "benefits": self.extract_texts(soup, DETAIL_BENEFITS),
        }

"""Indeed scraper.

Search results live at /jobs?q=...&l=...; each result card links to
/viewjob?jk=<job key> (older markup uses /rc/clk?jk= or data-jk on the card).
Indeed reshuffles its markup frequently, so every field is read through an
ordered list of fallback selectors.
"""

import logging
from typing import Any
from urllib.parse import parse_qs, urlencode, urljoin, urlparse

from bs4 import BeautifulSoup

from scrape_engine.schemas.posting import EmploymentType, SeniorityLevel
from scrape_engine.schemas.scrape_config import SearchParams
from scrape_engine.scrapers.base import BaseScraper
from scrape_engine.scrapers.parsing import (
    infer_seniority,
    map_employment_type,
    parse_relative_date,
    parse_salary,
)
from scrape_engine.scrapers.registry import register_scraper

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 10

EMPLOYMENT_TYPE_PARAMS = {
    EmploymentType.FULL_TIME: "fulltime",
    EmploymentType.PART_TIME: "parttime",
    EmploymentType.CONTRACT: "contract",
    EmploymentType.TEMPORARY: "temporary",
    EmploymentType.INTERNSHIP: "internship",
    EmploymentType.FREELANCE: "freelance",
    EmploymentType.REMOTE: "remote",
    EmploymentType.HYBRID: "hybrid",
    EmploymentType.ON_SITE: "onsite",
}

SENIORITY_PARAMS = {
    SeniorityLevel.ENTRY: "entry",
    SeniorityLevel.JUNIOR: "junior",
    SeniorityLevel.MID: "mid",
    SeniorityLevel.SENIOR: "senior",
    SeniorityLevel.LEAD: "lead",
    SeniorityLevel.MANAGER: "manager",
    SeniorityLevel.DIRECTOR: "director",
    SeniorityLevel.EXECUTIVE: "executive",
}

# Indeed only accepts these "posted within N days" windows
POSTED_WITHIN_DAYS = {1, 3, 7, 14, 30}

CARD_SELECTORS = [
    '[data-testid="jobsearch-ResultsList"] > div',
    "#mosaic-provider-jobcards li div.job_seen_beacon",
    "div.job_seen_beacon",
    "div[data-jk]",
]
CARD_TITLE = ['[data-testid="jobsearch-JobComponent-title"] a', "h2.jobTitle a", "a.jcs-JobTitle", "h2.jobTitle"]
CARD_COMPANY = ['[data-testid="jobsearch-JobComponent-company"]', '[data-testid="company-name"]', "span.companyName"]
CARD_LOCATION = ['[data-testid="jobsearch-JobComponent-location"]', '[data-testid="text-location"]', "div.companyLocation"]
CARD_JOB_TYPE = ['[data-testid="jobsearch-JobComponent-jobType"]', '[data-testid="attribute_snippet_testid"]']
CARD_SALARY = ['[data-testid="jobsearch-JobComponent-salary"]', "div.salary-snippet-container", "div.metadata.salary-snippet-container"]
CARD_DATE = ['[data-testid="jobsearch-JobComponent-postedDate"]', '[data-testid="myJobsStateDate"]', "span.date"]

DETAIL_TITLE = ['[data-testid="jobsearch-JobComponent-title"]', "h1.jobsearch-JobInfoHeader-title", "h1"]
DETAIL_COMPANY = ['[data-testid="jobsearch-JobComponent-company"]', '[data-testid="inlineHeader-companyName"]', "div.jobsearch-CompanyInfoContainer a"]
DETAIL_LOCATION = ['[data-testid="jobsearch-JobComponent-location"]', '[data-testid="inlineHeader-companyLocation"]', '[data-testid="job-location"]']
DETAIL_DESCRIPTION = ['[data-testid="jobsearch-JobComponent-description"]', "#jobDescriptionText", "div.jobsearch-jobDescriptionText"]
DETAIL_SALARY = ['[data-testid="jobsearch-JobComponent-salary"]', "#salaryInfoAndJobType span", '[data-testid="jobsearch-OtherJobDetailsContainer"] span']
DETAIL_JOB_TYPE = ['[data-testid="jobsearch-JobComponent-jobType"]', "#salaryInfoAndJobType span:last-child"]
DETAIL_DATE = ['[data-testid="jobsearch-JobComponent-postedDate"]', "span.jobsearch-HiringInsights-entry--age"]
DETAIL_REQUIREMENT_ITEMS = ['[data-testid="jobsearch-JobComponent-description"] li', "#jobDescriptionText li", "ul li"]
DETAIL_BENEFITS = [".jobsearch-JobComponent-benefits li", '[data-testid="benefits-test"] li', '[class*="benefit"] li']
DETAIL_EASY_APPLY = ['[data-testid="jobsearch-JobComponent-easyApply"]', '[data-testid="indeedApply"]', "#indeedApplyButton"]

REQUIREMENT_KEYWORDS = ("experience", "required", "must", "should", "degree", "proficien", "knowledge of")

# jk on /viewjob and /rc/clk links, vjk on search pages with a job preview open
JOB_KEY_PARAMS = ("jk", "vjk")


@register_scraper(
    "indeed",
    requests_per_minute=20,
    delay_between_requests=3.0,
    max_pages_per_search=15,
)
class IndeedScraper(BaseScraper):
    listing_ready_selector = '[data-testid="jobsearch-ResultsList"]'
    detail_ready_selector = '[data-testid="jobsearch-JobComponent"]'
    default_currency = "USD"

    def build_search_url(self, params: SearchParams) -> str:
        query: dict[str, str] = {"q": params.query}

        if params.location:
            query["l"] = params.location
        if params.radius:
            query["radius"] = str(params.radius)

        job_types = [EMPLOYMENT_TYPE_PARAMS[t] for t in params.employment_types if t in EMPLOYMENT_TYPE_PARAMS]
        if job_types:
            query["jt"] = ",".join(job_types)

        levels = [SENIORITY_PARAMS[s] for s in params.seniority_levels if s in SENIORITY_PARAMS]
        if levels:
            query["explvl"] = ",".join(levels)

        if params.salary_min:
            query["salary_min"] = str(params.salary_min)
        if params.salary_max:
            query["salary_max"] = str(params.salary_max)
        if params.remote:
            query["remotejob"] = "1"
        if params.easy_apply:
            query["easy_apply"] = "1"
        if params.posted_within in POSTED_WITHIN_DAYS:
            query["fromage"] = str(params.posted_within)
        if params.page and params.page > 1:
            query["start"] = str((params.page - 1) * RESULTS_PER_PAGE)

        return f"{self.base_url}/jobs?{urlencode(query)}"

    def extract_job_id(self, url: str) -> str | None:
        """Job key from ?jk= links (/viewjob, /rc/clk) or a search page's ?vjk= preview."""
        if not url:
            return None
        query = parse_qs(urlparse(url).query)
        for param in JOB_KEY_PARAMS:
            values = query.get(param)
            if values and values[0]:
                return values[0]
        return None

    def parse_job_listings(self, html: str) -> list[dict[str, Any]]:
        soup = BeautifulSoup(html, "lxml")

        cards = []
        for selector in CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                break
        if not cards:
            logger.debug(f"[{self.board}] No result cards found")
            return []

        listings = []
        for card in cards:
            title = self.extract_text(card, CARD_TITLE)
            if not title:
                # Ad slots and separators share the card container
                continue

            href = self.extract_attribute(card, CARD_TITLE, "href")
            url = urljoin(self.base_url + "/", href) if href else None
            job_key = card.get("data-jk") or self.extract_attribute(card, ["[data-jk]"], "data-jk") or None
            if job_key is None and url:
                job_key = self.extract_job_id(url)
            if url is None and job_key:
                url = f"{self.base_url}/viewjob?jk={job_key}"

            salary_min, salary_max, currency, period = parse_salary(self.extract_text(card, CARD_SALARY))
            job_type = self.extract_text(card, CARD_JOB_TYPE)

            listings.append({
                "external_id": job_key,
                "url": url,
                "title": title,
                "company": self.extract_text(card, CARD_COMPANY) or None,
                "location": self.extract_text(card, CARD_LOCATION) or None,
                "employment_type": map_employment_type(job_type),
                "seniority_level": infer_seniority(title),
                "salary_min": salary_min,
                "salary_max": salary_max,
                "salary_currency": currency,
                "salary_period": period,
                "posted_at": parse_relative_date(self.extract_text(card, CARD_DATE)),
            })

        logger.debug(f"[{self.board}] Parsed {len(listings)} listings from {len(cards)} cards")
        return listings[: self.config.max_jobs_per_page]

    def parse_job_page(self, html: str, url: str) -> dict[str, Any]:
        soup = BeautifulSoup(html, "lxml")

        title = self.extract_text(soup, DETAIL_TITLE)
        salary_min, salary_max, currency, period = parse_salary(self.extract_text(soup, DETAIL_SALARY))

        description = ""
        for selector in DETAIL_DESCRIPTION:
            node = soup.select_one(selector)
            if node is not None:
                description = node.get_text("\n", strip=True)
                if description:
                    break

        requirements = [
            line for line in self.extract_texts(soup, DETAIL_REQUIREMENT_ITEMS)
            if any(keyword in line.lower() for keyword in REQUIREMENT_KEYWORDS)
        ]

        job_type = self.extract_text(soup, DETAIL_JOB_TYPE)

        return {
            "external_id": self.extract_job_id(url),
            "title": title or None,
            "company": self.extract_text(soup, DETAIL_COMPANY) or None,
            "location": self.extract_text(soup, DETAIL_LOCATION) or None,
            "description": description or None,
            "employment_type": map_employment_type(job_type) if job_type else None,
            "seniority_level": infer_seniority(title) if title else None,
            "salary_min": salary_min,
            "salary_max": salary_max,
            "salary_currency": currency,
            "salary_period": period,
            "posted_at": parse_relative_date(self.extract_text(soup, DETAIL_DATE)),
            "requirements": requirements,
            "benefits": self.extract_texts(soup, DETAIL_BENEFITS),
            "easy_apply": any(soup.select_one(selector) is not None for selector in DETAIL_EASY_APPLY),
        }

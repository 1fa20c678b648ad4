"""Base scraper abstract class.

Every board scraper follows the same lifecycle: acquire a browser session,
navigate, check for countermeasures, extract, release. Subclasses supply
only the board-specific pieces:

    build_search_url(params) -> str   translate SearchParams into the board's URL
    parse_job_listings(html) -> list  raw field dicts from a results page
    parse_job_page(html, url) -> dict raw field dicts from a detail page

Raw field dicts use ScrapedPosting field names; missing fields are simply
absent (or None) and receive neutral defaults in ``build_posting``.
"""

import asyncio
import hashlib
import json
import logging
import random
import re
import time
from abc import ABC, abstractmethod
from collections import deque
from email.utils import parsedate_to_datetime
from typing import Any, Iterable

from bs4 import BeautifulSoup
from bs4.element import Tag

from scrape_engine.config import Settings, get_settings
from scrape_engine.errors import (
    AntiBotError,
    NetworkError,
    ParsingError,
    RateLimitError,
    RobotsTxtError,
    ScrapeCancelledError,
    ScrapeTimeoutError,
    ScrapingError,
)
from scrape_engine.schemas.common import ScrapingWarning, WarningSeverity, utcnow
from scrape_engine.schemas.job import ScrapingResult
from scrape_engine.schemas.posting import ScrapedPosting, score_data_quality, quality_label
from scrape_engine.schemas.scrape_config import ScrapeConfiguration, SearchParams
from scrape_engine.schemas.session import SessionIdentity
from scrape_engine.scrapers.browser import (
    BROWSER_LAUNCH_ARGS,
    STEALTH_INIT_SCRIPT,
    BrowserLauncher,
    PatchrightLauncher,
    context_options,
    human_delay,
)
from scrape_engine.scrapers.parsing import anonymize_text, clean_text, infer_seniority
from scrape_engine.services.robots import RobotsPolicy

logger = logging.getLogger(__name__)

# Phrases that only show up on block or verification walls
STRONG_ANTI_BOT_PHRASES = [
    "access denied",
    "verify you are human",
    "unusual traffic",
    "are you a robot",
    "captcha",
]

# Words that also appear in ordinary postings ("robot programmer", "verify invoices")
WEAK_ANTI_BOT_TERMS = [
    "robot",
    "bot",
    "blocked",
    "suspicious",
    "unusual",
    "verify",
    "challenge",
]

ANTI_BOT_LEXICON = STRONG_ANTI_BOT_PHRASES + WEAK_ANTI_BOT_TERMS

# Signal weights; a page counts as blocked once the summed confidence reaches the threshold
CAPTCHA_ELEMENT_WEIGHT = 1.0
STRONG_PHRASE_WEIGHT = 1.0
STRONG_PHRASE_WEIGHT_RENDERED = 0.5
WEAK_TERM_WEIGHT = 0.35
ANTI_BOT_THRESHOLD = 1.0

CAPTCHA_SELECTORS = [
    '[class*="captcha"]',
    '[id*="captcha"]',
    'iframe[src*="captcha"]',
    ".g-recaptcha",
    ".h-captcha",
    ".cf-turnstile",
    'iframe[src*="challenges.cloudflare.com"]',
]

THROTTLE_PHRASES = ["too many requests", "rate limit exceeded", "slow down"]

# Errors on the first results page mean the session never got going
SESSION_FAULTS = (NetworkError, AntiBotError, RateLimitError, RobotsTxtError)

_LEXICON_RE = re.compile(
    r"\b(" + "|".join(re.escape(term) for term in sorted(ANTI_BOT_LEXICON, key=len, reverse=True)) + r")\b"
)

MAX_SCROLL_STEPS = 20

HOUR = 3600.0
# Clock slack when checking that requests kept to the configured pace
PACING_TOLERANCE = 0.05


def _is_timeout(exc: Exception) -> bool:
    return isinstance(exc, asyncio.TimeoutError) or type(exc).__name__ == "TimeoutError"


def visible_text(html: str) -> str:
    """Rendered text of an HTML document with script/style/noscript removed."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return clean_text(soup.get_text(" "))


class BaseScraper(ABC):
    """Abstract base class for all job board scrapers."""

    board: str = ""
    listing_ready_selector: str | None = None
    detail_ready_selector: str | None = None
    default_currency: str = "USD"

    def __init__(
        self,
        config: ScrapeConfiguration,
        session: SessionIdentity,
        *,
        launcher: BrowserLauncher | None = None,
        settings: Settings | None = None,
        robots: RobotsPolicy | None = None,
        cancel_event: asyncio.Event | None = None,
    ):
        self.config = config
        self.session = session
        self.settings = settings or get_settings()
        self.launcher = launcher or PatchrightLauncher()
        self.robots = robots
        self.cancel_event = cancel_event or asyncio.Event()
        self.browser = None
        self.context = None
        self.page = None
        self._last_response = None

        # Request pacing: monotonic send times within the last hour
        self._request_times: deque[float] = deque()
        self._resume_at: float | None = None
        self.rate_limit_respected = True

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    @property
    def has_live_session(self) -> bool:
        return any(handle is not None for handle in (self.page, self.context, self.browser))

    # ------------------------------------------------------------------
    # Board-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def build_search_url(self, params: SearchParams) -> str:
        ...

    @abstractmethod
    def parse_job_listings(self, html: str) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def parse_job_page(self, html: str, url: str) -> dict[str, Any]:
        ...

    def extract_job_id(self, url: str) -> str | None:
        """Board job id embedded in a URL, if any."""
        return None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def open_session(self) -> None:
        """Launch the browser and prepare a stealth context and page."""
        if self.has_live_session:
            return
        self._checkpoint()

        try:
            self.browser = await self.launcher.launch(
                headless=self.settings.browser_headless,
                args=BROWSER_LAUNCH_ARGS,
                channel=self.settings.browser_channel,
            )
            options = context_options(self.session)
            if not self.config.use_proxies:
                options.pop("proxy", None)
            self.context = await self.browser.new_context(**options)

            if self.session.cookies:
                await self.context.add_cookies([c.to_browser_cookie() for c in self.session.cookies])

            await self.context.add_init_script(STEALTH_INIT_SCRIPT)
            if self.session.local_storage or self.session.session_storage:
                await self.context.add_init_script(self._storage_restore_script())

            self.page = await self.context.new_page()
            self.page.set_default_timeout(self.settings.navigation_timeout_ms)
        except Exception as e:
            await self.cleanup()
            raise NetworkError(
                f"Failed to initialize browser: {e}", context={"scraper": self.config.name}
            ) from e

        logger.info(f"[{self.board}] Browser session {self.session.session_id} initialized")

    def _storage_restore_script(self) -> str:
        local = json.dumps(self.session.local_storage)
        session = json.dumps(self.session.session_storage)
        return (
            f"Object.entries({local}).forEach(([k, v]) => window.localStorage.setItem(k, v));\n"
            f"Object.entries({session}).forEach(([k, v]) => window.sessionStorage.setItem(k, v));"
        )

    async def cleanup(self) -> None:
        """Close page, context and browser in order; failures are logged, not raised."""
        for name in ("page", "context", "browser"):
            handle = getattr(self, name)
            if handle is None:
                continue
            try:
                await handle.close()
            except Exception as e:
                logger.warning(f"[{self.board}] Failed to close {name}: {e}")
            finally:
                setattr(self, name, None)
        self._last_response = None
        self.session.ended_at = utcnow()

    def _checkpoint(self) -> None:
        if self.cancel_event.is_set():
            raise ScrapeCancelledError("Scrape cancelled", {"scraper": self.config.name})

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def navigate(self, url: str, wait_for_selector: str | None = None) -> None:
        """Navigate to ``url``, optionally wait for a readiness selector, then settle."""
        self._checkpoint()
        if self.page is None:
            raise NetworkError("Page not initialized", context={"url": url})

        await self.respect_rate_limiting()
        self._checkpoint()
        self._record_request()

        nav_timeout = self.settings.navigation_timeout_ms
        try:
            self._last_response = await self.page.goto(url, wait_until="domcontentloaded", timeout=nav_timeout)
        except Exception as e:
            if _is_timeout(e):
                raise ScrapeTimeoutError(f"Navigation to {url} timed out", nav_timeout, {"url": url}) from e
            raise NetworkError(f"Failed to navigate to {url}: {e}", context={"url": url}) from e

        status = getattr(self._last_response, "status", None)
        if status is not None and status >= 500 and status != 503:
            raise NetworkError(f"{url} answered HTTP {status}", status_code=status, context={"url": url})

        if wait_for_selector:
            selector_timeout = self.settings.selector_timeout_ms
            try:
                await self.page.wait_for_selector(wait_for_selector, timeout=selector_timeout)
            except Exception as e:
                # Block and throttle pages never render the expected container
                await self.handle_anti_bot_measures()
                await self.check_rate_limiting()
                if _is_timeout(e):
                    raise ScrapeTimeoutError(
                        f"Timed out waiting for {wait_for_selector}", selector_timeout, {"url": url}
                    ) from e
                raise NetworkError(f"Failed waiting for {wait_for_selector}: {e}", context={"url": url}) from e

        if self.config.simulate_human_behavior:
            await self._simulate_page_load()

        logger.debug(f"[{self.board}] Navigated to {url}")

    async def _simulate_page_load(self) -> None:
        """Scroll down the page and back up like a reader would."""
        scroll_height = await self.page.evaluate("() => document.body.scrollHeight") or 0
        viewport_height = await self.page.evaluate("() => window.innerHeight") or self.session.viewport.height
        step = max(int(viewport_height // 2), 1)

        positions = list(range(0, int(scroll_height), step))[:MAX_SCROLL_STEPS]
        for y in positions:
            await self.page.evaluate("(y) => window.scrollTo(0, y)", y)
            await human_delay(200, 700)
        for y in reversed(positions):
            await self.page.evaluate("(y) => window.scrollTo(0, y)", y)
            await human_delay(100, 400)

    async def page_html(self) -> str:
        if self.page is None:
            return ""
        return await self.page.content()

    # ------------------------------------------------------------------
    # Countermeasures and compliance
    # ------------------------------------------------------------------

    async def _scan_anti_bot(self) -> tuple[list[str], list[str]]:
        if self.page is None:
            return [], []
        terms, selectors = [], []
        try:
            text = visible_text(await self.page.content()).lower()
            terms = sorted(set(_LEXICON_RE.findall(text)))
            for selector in CAPTCHA_SELECTORS:
                if await self.page.query_selector(selector):
                    selectors.append(selector)
        except Exception as e:
            logger.warning(f"[{self.board}] Failed to detect anti-bot measures: {e}")
        return terms, selectors

    async def _board_content_rendered(self) -> bool:
        """Whether the board's own results or job container is on the page."""
        for selector in (self.listing_ready_selector, self.detail_ready_selector):
            if not selector:
                continue
            try:
                if await self.page.query_selector(selector):
                    return True
            except Exception as e:
                logger.debug(f"[{self.board}] Ready selector check failed: {e}")
        return False

    async def anti_bot_signals(self) -> list[str]:
        """Lexicon words and CAPTCHA selectors found on the current page."""
        terms, selectors = await self._scan_anti_bot()
        return terms + selectors

    async def anti_bot_confidence(self) -> float:
        """Weighted 0-1 confidence that the current page is a block or verification wall.

        CAPTCHA elements are decisive. Wall phrases count fully only when
        the board's content did not render, and generic words count only then.
        """
        terms, selectors = await self._scan_anti_bot()
        if not terms and not selectors:
            return 0.0

        rendered = await self._board_content_rendered()
        score = CAPTCHA_ELEMENT_WEIGHT * len(selectors)
        for term in terms:
            if term in STRONG_ANTI_BOT_PHRASES:
                score += STRONG_PHRASE_WEIGHT_RENDERED if rendered else STRONG_PHRASE_WEIGHT
            elif not rendered:
                score += WEAK_TERM_WEIGHT

        confidence = min(score, 1.0)
        logger.debug(
            f"[{self.board}] Anti-bot confidence {confidence:.2f} "
            f"(signals: {', '.join(terms + selectors)}; content rendered: {rendered})"
        )
        return confidence

    async def detect_anti_bot_measures(self) -> bool:
        confidence = await self.anti_bot_confidence()
        if confidence >= ANTI_BOT_THRESHOLD:
            logger.warning(f"[{self.board}] Anti-bot measures detected (confidence {confidence:.2f})")
            return True
        return False

    async def handle_anti_bot_measures(self) -> None:
        if await self.detect_anti_bot_measures():
            await self._save_screenshot("blocked")
            raise AntiBotError(
                "Anti-bot measures detected",
                {"url": getattr(self.page, "url", None), "scraper": self.config.name},
            )

    async def _save_screenshot(self, label: str) -> None:
        if not (self.config.include_audit_trail and self.settings.screenshot_dir and self.page):
            return
        path = f"{self.settings.screenshot_dir.rstrip('/')}/{self.board}-{self.session.session_id}-{label}.png"
        try:
            await self.page.screenshot(path=path, full_page=True)
            logger.info(f"[{self.board}] Saved screenshot {path}")
        except Exception as e:
            logger.warning(f"[{self.board}] Failed to save screenshot: {e}")

    async def check_rate_limiting(self) -> None:
        """Raise RateLimitError when the last response carries throttling signals."""
        response = self._last_response
        status = getattr(response, "status", None)
        headers = {k.lower(): v for k, v in (getattr(response, "headers", None) or {}).items()}
        retry_after = _parse_retry_after(headers.get("retry-after"))
        context = {"url": getattr(self.page, "url", None), "scraper": self.config.name}

        if status == 429 or (status == 503 and retry_after is not None):
            raise RateLimitError(f"Rate limited (HTTP {status})", retry_after, context)

        if self.page is None:
            return
        try:
            text = visible_text(await self.page.content()).lower()
        except Exception as e:
            logger.warning(f"[{self.board}] Failed to check rate limiting: {e}")
            return
        for phrase in THROTTLE_PHRASES:
            if phrase in text:
                raise RateLimitError(f"Throttling message detected: {phrase}", retry_after, context)

    @property
    def min_request_interval(self) -> float:
        """Seconds between requests demanded by the delay and per-minute ceiling."""
        return max(self.config.delay_between_requests, 60.0 / self.config.requests_per_minute)

    def _now(self) -> float:
        return time.monotonic()

    def _trim_request_window(self, now: float) -> None:
        while self._request_times and now - self._request_times[0] >= HOUR - PACING_TOLERANCE:
            self._request_times.popleft()

    def rate_limit_delay(self) -> float:
        """Seconds to wait before the next request may be sent.

        Covers the jittered minimum interval since the last request, the
        hourly request budget and any back-off a board asked for.
        """
        now = self._now()
        self._trim_request_window(now)
        delay = 0.0

        if self._request_times:
            interval = self.min_request_interval + random.uniform(0, self.config.delay_jitter)
            delay = interval - (now - self._request_times[-1])

        if len(self._request_times) >= self.config.requests_per_hour:
            oldest = self._request_times[len(self._request_times) - self.config.requests_per_hour]
            delay = max(delay, oldest + HOUR - now)

        if self._resume_at is not None:
            delay = max(delay, self._resume_at - now)
        return max(delay, 0.0)

    async def respect_rate_limiting(self) -> None:
        delay = self.rate_limit_delay()
        if delay > 0:
            logger.debug(f"[{self.board}] Waiting {delay:.2f}s before next request")
            await asyncio.sleep(delay)

    def back_off(self, seconds: float | None) -> None:
        """Hold the next request for ``seconds`` (a Retry-After from the board)."""
        if not seconds:
            return
        resume_at = self._now() + seconds
        if self._resume_at is None or resume_at > self._resume_at:
            self._resume_at = resume_at

    def _record_request(self) -> None:
        now = self._now()
        self._trim_request_window(now)

        if self._request_times and now - self._request_times[-1] < self.min_request_interval - PACING_TOLERANCE:
            self.rate_limit_respected = False
            logger.warning(f"[{self.board}] Request sent faster than {self.min_request_interval:.1f}s pacing")
        if len(self._request_times) >= self.config.requests_per_hour:
            self.rate_limit_respected = False
            logger.warning(f"[{self.board}] Hourly budget of {self.config.requests_per_hour} requests exceeded")

        self._request_times.append(now)
        self._resume_at = None

    async def check_robots_txt(self, url: str) -> None:
        if not self.config.respect_robots_txt or self.robots is None:
            return
        if not await self.robots.is_allowed(url):
            raise RobotsTxtError(f"robots.txt disallows {url}", {"url": url, "scraper": self.config.name})

    # ------------------------------------------------------------------
    # Extraction primitives (ordered fallback selectors, first non-empty wins)
    # ------------------------------------------------------------------

    @staticmethod
    def extract_text(node: Tag, selectors: Iterable[str], default: str = "") -> str:
        for selector in selectors:
            try:
                element = node.select_one(selector)
            except Exception as e:
                logger.debug(f"Bad selector {selector}: {e}")
                continue
            if element is None:
                continue
            text = clean_text(element.get_text(" "))
            if text:
                return text
        return default

    @staticmethod
    def extract_texts(node: Tag, selectors: Iterable[str]) -> list[str]:
        for selector in selectors:
            try:
                elements = node.select(selector)
            except Exception as e:
                logger.debug(f"Bad selector {selector}: {e}")
                continue
            texts = [clean_text(el.get_text(" ")) for el in elements]
            texts = [t for t in texts if t]
            if texts:
                return texts
        return []

    @staticmethod
    def extract_attribute(node: Tag, selectors: Iterable[str], attribute: str, default: str = "") -> str:
        for selector in selectors:
            try:
                element = node.select_one(selector)
            except Exception as e:
                logger.debug(f"Bad selector {selector}: {e}")
                continue
            if element is None:
                continue
            value = element.get(attribute)
            if isinstance(value, list):
                value = " ".join(value)
            if value:
                return value.strip()
        return default

    # ------------------------------------------------------------------
    # Shared driver
    # ------------------------------------------------------------------

    async def scrape_jobs(self, params: SearchParams) -> ScrapingResult:
        """Scrape search results page by page.

        Session-level faults on the first page propagate; later page faults
        and per-posting failures are recorded on the result.
        """
        start_time = utcnow()
        postings: list[ScrapedPosting] = []
        errors = []
        warnings: list[ScrapingWarning] = []
        total_found = 0
        failed = 0
        consecutive_blocks = 0

        logger.info(f"[{self.board}] Scraping '{params.query}' in {params.location or 'any location'}")

        first_page = params.page or 1
        max_pages = self.config.max_pages_per_search if self.config.follow_pagination else 1

        try:
            await self.open_session()

            for page_no in range(first_page, first_page + max_pages):
                url = self.build_search_url(params.model_copy(update={"page": page_no}))
                try:
                    listings = await self._scrape_listing_page(url)
                except ScrapeCancelledError:
                    raise
                except SESSION_FAULTS as e:
                    if page_no == first_page:
                        raise
                    logger.warning(f"[{self.board}] Page {page_no} failed: {e}")
                    errors.append(e.to_issue())
                    break
                except Exception as e:
                    logger.error(f"[{self.board}] Failed to parse page {page_no}: {e}")
                    errors.append(ParsingError(f"Failed to scrape page {page_no}: {e}", {"url": url}).to_issue())
                    break

                if not listings:
                    logger.info(f"[{self.board}] No jobs on page {page_no}, stopping pagination")
                    break

                total_found += len(listings)

                if self.config.extract_full_description:
                    for listing in listings:
                        detail_url = listing.get("url")
                        posting_id = listing.get("external_id")
                        try:
                            if not detail_url:
                                raise ParsingError("Listing has no detail URL", {"title": listing.get("title")})
                            posting = await self._scrape_detail(detail_url, listing)
                        except ScrapeCancelledError:
                            raise
                        except ScrapingError as e:
                            logger.warning(f"[{self.board}] Failed to scrape details for {detail_url}: {e}")
                            failed += 1
                            errors.append(e.to_issue(posting_id))
                            if isinstance(e, (AntiBotError, RateLimitError)):
                                consecutive_blocks += 1
                                if isinstance(e, RateLimitError):
                                    self.back_off(e.retry_after)
                            else:
                                consecutive_blocks = 0
                        except Exception as e:
                            logger.warning(f"[{self.board}] Failed to scrape details for {detail_url}: {e}")
                            failed += 1
                            errors.append(ParsingError(f"Failed to scrape job details: {e}").to_issue(posting_id))
                            consecutive_blocks = 0
                        else:
                            consecutive_blocks = 0
                            if posting is None:
                                failed += 1
                                warnings.append(ScrapingWarning(
                                    code="INCOMPLETE_POSTING",
                                    message=f"Missing title or company on {detail_url}",
                                    posting_id=posting_id,
                                    severity=WarningSeverity.MINOR,
                                ))
                            else:
                                postings.append(posting)

                        if consecutive_blocks >= self.config.circuit_breaker_threshold:
                            break
                else:
                    for listing in listings:
                        if not listing.get("url") and not listing.get("external_id"):
                            listing = {**listing, "external_id": self.listing_fingerprint(listing)}
                        postings.append(self.build_posting(listing, listing.get("url") or url))

                logger.info(f"[{self.board}] Page {page_no}: {len(listings)} jobs, total {total_found}")

                if consecutive_blocks >= self.config.circuit_breaker_threshold:
                    logger.warning(
                        f"[{self.board}] {consecutive_blocks} detail pages in a row were blocked, stopping run"
                    )
                    warnings.append(ScrapingWarning(
                        code="DETAILS_BLOCKED",
                        message=f"Stopped after {consecutive_blocks} consecutive blocked detail pages",
                        severity=WarningSeverity.MAJOR,
                    ))
                    break
        finally:
            await self.cleanup()

        result = ScrapingResult.build(
            start_time=start_time,
            postings=postings,
            total_jobs=total_found,
            failed_jobs=failed,
            errors=errors,
            warnings=warnings,
            robots_txt_respected=self.config.respect_robots_txt,
            rate_limit_respected=self.rate_limit_respected,
            terms_of_service_respected=True,
        )
        logger.info(f"[{self.board}] Scraped {result.scraped_jobs} jobs in {result.duration:.1f}s")
        return result

    async def _scrape_listing_page(self, url: str) -> list[dict[str, Any]]:
        await self.check_robots_txt(url)
        await self.navigate(url, self.listing_ready_selector)
        await self.handle_anti_bot_measures()
        await self.check_rate_limiting()
        listings = self.parse_job_listings(await self.page_html())
        return listings[: self.config.max_jobs_per_page]

    async def scrape_job_details(self, url: str) -> ScrapedPosting | None:
        """Scrape one detail page.

        Returns None when title or company cannot be recovered. Opens and
        releases its own session when none is live.
        """
        owns_session = not self.has_live_session
        if owns_session:
            await self.open_session()
        try:
            return await self._scrape_detail(url, {})
        finally:
            if owns_session:
                await self.cleanup()

    async def _scrape_detail(self, url: str, listing: dict[str, Any]) -> ScrapedPosting | None:
        await self.check_robots_txt(url)
        await self.navigate(url, self.detail_ready_selector)
        await self.handle_anti_bot_measures()
        await self.check_rate_limiting()

        fields = dict(listing)
        for key, value in self.parse_job_page(await self.page_html(), url).items():
            if value not in (None, "", []):
                fields[key] = value

        if not fields.get("title") or not fields.get("company"):
            logger.warning(f"[{self.board}] Incomplete job data for {url}")
            return None
        return self.build_posting(fields, url)

    @staticmethod
    def listing_fingerprint(fields: dict[str, Any]) -> str:
        """Stable id for a card with neither link nor job key."""
        parts = [clean_text(str(fields.get(key) or "")).lower() for key in ("title", "company", "location")]
        return hashlib.sha256("|".join(parts).encode()).hexdigest()[:16]

    def build_posting(self, fields: dict[str, Any], url: str) -> ScrapedPosting:
        """Normalize raw fields into a ScrapedPosting with neutral defaults."""
        data = {k: v for k, v in fields.items() if v not in (None, "")}
        if not self.config.extract_requirements:
            data.pop("requirements", None)
        if not self.config.extract_benefits:
            data.pop("benefits", None)

        quality = quality_label(score_data_quality(data))
        external_id = (
            data.pop("external_id", None)
            or self.extract_job_id(url)
            or hashlib.sha256(url.encode()).hexdigest()[:16]
        )
        data.pop("url", None)

        description = data.pop("description", None) or "Not specified"
        if self.config.anonymize_data:
            description = anonymize_text(description)

        title = data.pop("title", None) or "Unknown Title"
        currency = data.pop("salary_currency", None)
        if currency is None and (data.get("salary_min") or data.get("salary_max")):
            currency = self.default_currency
        data.setdefault("seniority_level", infer_seniority(title))

        return ScrapedPosting(
            source=self.board,
            external_id=str(external_id),
            url=url,
            title=title,
            company=data.pop("company", None) or "Unknown Company",
            location=data.pop("location", None) or "Unknown",
            description=description,
            salary_currency=currency,
            scraper_version=self.settings.scraper_version,
            data_quality=quality,
            anonymized=self.config.anonymize_data,
            encrypted=False,
            **data,
        )


def _parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header (delta-seconds or HTTP-date)."""
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    return max((when - utcnow()).total_seconds(), 0.0)

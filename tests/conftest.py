"""Shared fixtures: an HTML-backed fake browser, settings and sample pages."""

import asyncio
from dataclasses import dataclass, field

import httpx
import pytest
from bs4 import BeautifulSoup

import scrape_engine.scrapers  # noqa: F401
from scrape_engine.config import Settings
from scrape_engine.scrapers.factory import ScraperFactory
from scrape_engine.schemas.session import SessionIdentity
from scrape_engine.services.robots import RobotsPolicy

# Playwright raises its own TimeoutError class; scrapers match on the class name
BrowserTimeout = type("TimeoutError", (Exception,), {})

# Overrides that keep scrapers from sleeping or touching the network in tests
FAST = {
    "delay_between_requests": 0,
    "delay_jitter": 0,
    "simulate_human_behavior": False,
    "respect_robots_txt": False,
    "retry_delay": 0,
    "requests_per_minute": 60000,
}


# ----------------------------------------------------------------------
# Fake browser
# ----------------------------------------------------------------------


@dataclass
class FakeResponse:
    status: int = 200
    headers: dict = field(default_factory=dict)


@dataclass
class PageSpec:
    html: str = ""
    status: int = 200
    headers: dict = field(default_factory=dict)
    error: Exception | None = None
    gate: asyncio.Event | None = None


class FakeSite:
    """URL -> page mapping. A route may hold a list of specs served in order (last one repeats)."""

    def __init__(self):
        self.routes: dict[str, list[PageSpec]] = {}
        self.visits: list[str] = []

    def add(self, url: str, *specs: PageSpec) -> None:
        self.routes[url] = list(specs)

    def resolve(self, url: str) -> PageSpec:
        self.visits.append(url)
        specs = self.routes.get(url)
        if not specs:
            return PageSpec(html="<html><body><p>Page not found</p></body></html>", status=404)
        if len(specs) > 1:
            return specs.pop(0)
        return specs[0]


class FakeElement:
    def __init__(self, tag):
        self.tag = tag


class FakePage:
    def __init__(self, site: FakeSite):
        self.site = site
        self.url = "about:blank"
        self.html = ""
        self.closed = False
        self.default_timeout = None
        self.evaluations = []
        self.screenshots = []

    async def goto(self, url, *, wait_until="load", timeout=30000):
        spec = self.site.resolve(url)
        if spec.gate is not None:
            await spec.gate.wait()
        if spec.error is not None:
            raise spec.error
        self.url = url
        self.html = spec.html
        return FakeResponse(spec.status, dict(spec.headers))

    async def wait_for_selector(self, selector, *, timeout=30000):
        element = BeautifulSoup(self.html, "lxml").select_one(selector)
        if element is None:
            raise BrowserTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return FakeElement(element)

    async def query_selector(self, selector):
        element = BeautifulSoup(self.html, "lxml").select_one(selector)
        return FakeElement(element) if element is not None else None

    async def evaluate(self, expression, arg=None):
        self.evaluations.append((expression, arg))
        if "scrollHeight" in expression:
            return 2000
        if "innerHeight" in expression:
            return 1000
        return None

    async def content(self):
        return self.html

    async def screenshot(self, *, path=None, full_page=False):
        self.screenshots.append(path)
        return b""

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, site: FakeSite, options: dict):
        self.site = site
        self.options = options
        self.cookies = []
        self.init_scripts = []
        self.pages = []
        self.closed = False

    async def add_cookies(self, cookies):
        self.cookies.extend(cookies)

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def new_page(self):
        page = FakePage(self.site)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, site: FakeSite):
        self.site = site
        self.contexts = []
        self.closed = False

    async def new_context(self, **options):
        context = FakeContext(self.site, options)
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True


class FakeLauncher:
    def __init__(self, site: FakeSite, fail: Exception | None = None):
        self.site = site
        self.fail = fail
        self.browsers = []
        self.launch_args = []

    async def launch(self, *, headless, args, channel=None):
        self.launch_args.append({"headless": headless, "args": args, "channel": channel})
        if self.fail is not None:
            raise self.fail
        browser = FakeBrowser(self.site)
        self.browsers.append(browser)
        return browser

    @property
    def pages(self):
        return [page for b in self.browsers for c in b.contexts for page in c.pages]


class FakeRedis:
    """Minimal async Redis client for the result cache."""

    def __init__(self, healthy: bool = True):
        self.store = {}
        self.ttls = {}
        self.healthy = healthy
        self.closed = False

    async def setex(self, key, ttl, value):
        if not self.healthy:
            raise ConnectionError("redis down")
        self.store[key] = value
        self.ttls[key] = ttl

    async def get(self, key):
        if not self.healthy:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def ping(self):
        if not self.healthy:
            raise ConnectionError("redis down")
        return True

    async def aclose(self):
        self.closed = True


# ----------------------------------------------------------------------
# Sample pages
# ----------------------------------------------------------------------


def indeed_card(i: int, title: str = "Software Engineer", company: str = "Acme Corp") -> str:
    jk = f"a1b2c3d4e5f6{i:04d}"
    return f"""
    <div class="cardOutline" data-jk="{jk}">
      <h2 class="jobTitle" data-testid="jobsearch-JobComponent-title">
        <a href="/viewjob?jk={jk}">{title} {i}</a>
      </h2>
      <span data-testid="jobsearch-JobComponent-company">{company}</span>
      <div data-testid="jobsearch-JobComponent-location">Mumbai, Maharashtra</div>
      <div data-testid="jobsearch-JobComponent-salary">$120,000 - $150,000 a year</div>
      <div data-testid="jobsearch-JobComponent-jobType">Full-time</div>
      <span data-testid="jobsearch-JobComponent-postedDate">3 days ago</span>
    </div>
    """


def indeed_listing_page(count: int, title: str = "Software Engineer") -> str:
    cards = "".join(indeed_card(i, title=title) for i in range(1, count + 1))
    return f"""
    <html><head><title>Software Engineer Jobs</title>
    <script>window.mosaic = {{"providerData": {{}}}};</script></head>
    <body>
      <div id="mosaic-provider-jobcards">
        <div data-testid="jobsearch-ResultsList">{cards}</div>
      </div>
    </body></html>
    """


def indeed_detail_page(
    i: int,
    company: str = "Acme Corp",
    summary: str = "Join our platform team building payment services.",
) -> str:
    return f"""
    <html><body>
      <div data-testid="jobsearch-JobComponent">
        <h1 data-testid="jobsearch-JobComponent-title">Software Engineer {i}</h1>
        <div data-testid="jobsearch-JobComponent-company">{company}</div>
        <div data-testid="jobsearch-JobComponent-location">Mumbai, Maharashtra</div>
        <div data-testid="jobsearch-JobComponent-salary">$120,000 - $150,000 a year</div>
        <div data-testid="jobsearch-JobComponent-jobType">Full-time</div>
        <span data-testid="jobsearch-JobComponent-postedDate">Posted 3 days ago</span>
        <div data-testid="jobsearch-JobComponent-description">
          <p>{summary}</p>
          <p>Questions? Email recruiter@acme.example or call +1 (555) 123-4567.</p>
          <ul>
            <li>3+ years of experience with Python</li>
            <li>Degree in computer science or equivalent</li>
            <li>Friendly team</li>
          </ul>
        </div>
        <div class="jobsearch-JobComponent-benefits">
          <ul><li>Health insurance</li><li>401(k) matching</li></ul>
        </div>
        <span data-testid="jobsearch-JobComponent-easyApply">Easily apply</span>
      </div>
    </body></html>
    """


BLOCK_PAGE = """
<html><body>
  <h1>Additional check required</h1>
  <p>Please verify you are human before continuing.</p>
  <div class="g-recaptcha" data-sitekey="xyz"></div>
</body></html>
"""

THROTTLE_PAGE = """
<html><body><h1>Too many requests</h1><p>Please wait a moment and try again.</p></body></html>
"""

NAUKRI_LISTING_PAGE = """
<html><body>
  <div class="srp-jobtuple-wrapper" data-job-id="150324500123">
    <div class="cust-job-tuple">
      <h2><a class="title" href="https://www.naukri.com/job-listings-python-developer-infosys-bangalore-3-to-5-years-150324500123">Python Developer</a></h2>
      <a class="comp-name" href="/infosys-jobs">Infosys</a>
      <span class="expwdth">3-5 Yrs</span>
      <span class="sal-wrap"><span>5-8 Lacs PA</span></span>
      <span class="locWdth">Bangalore</span>
      <ul class="tags-gt"><li>python</li><li>django</li><li>rest api</li></ul>
      <span class="job-post-day">2 Days Ago</span>
    </div>
  </div>
  <div class="srp-jobtuple-wrapper" data-job-id="150324500456">
    <div class="cust-job-tuple">
      <h2><a class="title" href="/job-listings-senior-data-engineer-tcs-pune-8-to-12-years-150324500456">Senior Data Engineer</a></h2>
      <a class="comp-name" href="/tcs-jobs">Tata Consultancy Services</a>
      <span class="expwdth">8-12 Yrs</span>
      <span class="sal-wrap"><span>Not disclosed</span></span>
      <span class="locWdth">Pune</span>
      <span class="job-post-day">Just Now</span>
    </div>
  </div>
</body></html>
"""


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        redis_url="redis://localhost:6379/15",
        navigation_timeout_ms=1000,
        selector_timeout_ms=500,
        max_concurrent_sessions=2,
        continuous_query_delay=0,
        circuit_breaker_cooldown=60,
        job_wait_timeout=5,
        proxy_servers=[],
    )


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def launcher(site):
    return FakeLauncher(site)


def offline_robots() -> RobotsPolicy:
    """robots.txt policy whose fetches all answer 404 (allow everything)."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    return RobotsPolicy(client=client)


@pytest.fixture
def factory(settings, launcher):
    return ScraperFactory(settings, launcher=launcher, robots=offline_robots())


@pytest.fixture
def session_identity():
    return SessionIdentity(session_id="session_test", user_agent="Mozilla/5.0 (X11; Linux x86_64)")


@pytest.fixture
def indeed_site(site):
    """Indeed search for 'software engineer' in Mumbai with 7 results and detail pages."""
    site.add(
        "https://www.indeed.com/jobs?q=software+engineer&l=Mumbai",
        PageSpec(html=indeed_listing_page(7)),
    )
    for i in range(1, 8):
        site.add(f"https://www.indeed.com/viewjob?jk=a1b2c3d4e5f6{i:04d}", PageSpec(html=indeed_detail_page(i)))
    return site

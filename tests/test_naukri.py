"""Tests for scrapers/naukri.py: slug search URLs and tuple parsing."""

from scrape_engine.schemas import SalaryPeriod, SearchParams, SeniorityLevel

from conftest import FAST, NAUKRI_LISTING_PAGE

DETAIL_PAGE = """
<html><body>
  <section class="styles_job-header-container">
    <h1 class="styles_jd-header-title__rZwM1">Python Developer</h1>
    <div class="styles_jd-header-comp-name__MvqAI"><a href="/infosys-jobs">Infosys</a></div>
    <div class="styles_jhc__exp__k_giM"><span>3 - 5 years</span></div>
    <div class="styles_jhc__salary__jdfEC"><span>5-8 Lacs P.A.</span></div>
    <span class="styles_jhc__location__W_pVs"><a href="/jobs-in-bangalore">Bangalore</a></span>
  </section>
  <section class="styles_job-desc-container">
    <div class="styles_dang-inner-html__BCwbE">
      <p>Build and maintain Django services for our payments platform.</p>
    </div>
    <div class="styles_key-skill__GIPn_">
      <a href="/python-jobs"><span>Python</span></a>
      <a href="/django-jobs"><span>Django</span></a>
    </div>
  </section>
</body></html>
"""


def make_scraper(factory, **overrides):
    return factory.create_scraper("naukri", {**FAST, **overrides})


def test_search_url_slug_and_filters(factory):
    params = SearchParams(
        query="python developer",
        location="Bangalore",
        seniority_levels=[SeniorityLevel.MID, SeniorityLevel.SENIOR],
        posted_within=7,
        remote=True,
        page=2,
    )
    assert make_scraper(factory).build_search_url(params) == (
        "https://www.naukri.com/python-developer-jobs-in-bangalore"
        "?k=python+developer&l=Bangalore&experience=3&jobAge=7&wfhType=2&pageNo=2"
    )


def test_search_url_without_location(factory):
    url = make_scraper(factory).build_search_url(SearchParams(query="Data Scientist", posted_within=14))
    assert url == "https://www.naukri.com/data-scientist-jobs?k=Data+Scientist"


def test_extract_job_id(factory):
    scraper = make_scraper(factory)
    url = "https://www.naukri.com/job-listings-python-developer-infosys-bangalore-3-to-5-years-150324500123"
    assert scraper.extract_job_id(url) == "150324500123"
    assert scraper.extract_job_id(url + "?src=jobsearchDesk") == "150324500123"
    assert scraper.extract_job_id("https://www.naukri.com/python-jobs") is None


def test_parse_listings(factory):
    listings = make_scraper(factory).parse_job_listings(NAUKRI_LISTING_PAGE)
    assert len(listings) == 2

    first, second = listings
    assert first["external_id"] == "150324500123"
    assert first["title"] == "Python Developer"
    assert first["company"] == "Infosys"
    assert first["location"] == "Bangalore"
    assert first["seniority_level"] == SeniorityLevel.MID
    assert (first["salary_min"], first["salary_max"]) == (500000.0, 800000.0)
    assert first["salary_currency"] == "INR"
    assert first["requirements"] == ["python", "django", "rest api"]

    assert second["url"] == (
        "https://www.naukri.com/job-listings-senior-data-engineer-tcs-pune-8-to-12-years-150324500456"
    )
    assert second["seniority_level"] == SeniorityLevel.SENIOR
    assert second["salary_min"] is None
    assert second["requirements"] == []


def test_parse_job_page(factory):
    url = "https://www.naukri.com/job-listings-python-developer-infosys-bangalore-3-to-5-years-150324500123"
    fields = make_scraper(factory).parse_job_page(DETAIL_PAGE, url)

    assert fields["external_id"] == "150324500123"
    assert fields["title"] == "Python Developer"
    assert fields["company"] == "Infosys"
    assert fields["location"] == "Bangalore"
    assert fields["seniority_level"] == SeniorityLevel.MID
    assert fields["salary_min"] == 500000.0
    assert fields["salary_period"] == SalaryPeriod.ANNUAL
    assert "Django services" in fields["description"]
    assert fields["requirements"] == ["Python", "Django"]


def test_listing_posting_defaults_to_inr(factory):
    scraper = make_scraper(factory)
    listing = scraper.parse_job_listings(NAUKRI_LISTING_PAGE)[0]
    posting = scraper.build_posting(listing, listing["url"])
    assert posting.source == "naukri"
    assert posting.salary_currency == "INR"
    assert posting.description == "Not specified"

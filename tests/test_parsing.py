"""Tests for scrapers/parsing.py: salary, dates, seniority and PII helpers."""

from datetime import datetime, timedelta, timezone

from freezegun import freeze_time

from scrape_engine.schemas.posting import EmploymentType, SalaryPeriod, SeniorityLevel
from scrape_engine.scrapers.parsing import (
    anonymize_text,
    clean_text,
    infer_seniority,
    map_employment_type,
    parse_relative_date,
    parse_salary,
    seniority_from_experience,
    slugify,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


# --- salary ---


def test_salary_range_with_symbol():
    assert parse_salary("$120,000 - $150,000 a year") == (120000.0, 150000.0, "USD", SalaryPeriod.ANNUAL)


def test_salary_hourly():
    low, high, currency, period = parse_salary("$25 - $30 an hour")
    assert (low, high, currency) == (25.0, 30.0, "USD")
    assert period == SalaryPeriod.HOURLY


def test_salary_thousands_suffix():
    low, high, _, _ = parse_salary("£45k - £55k per year")
    assert (low, high) == (45000.0, 55000.0)


def test_salary_lakhs_unit_on_upper_bound_only():
    """'5-8 Lacs PA' applies the unit to both ends."""
    assert parse_salary("5-8 Lacs PA", default_currency="INR") == (500000.0, 800000.0, "INR", SalaryPeriod.ANNUAL)


def test_salary_open_ended():
    low, high, _, _ = parse_salary("From $90,000 a year")
    assert low == 90000.0
    assert high is None

    low, high, _, _ = parse_salary("Up to $70,000 a year")
    assert low is None
    assert high == 70000.0


def test_salary_without_amount():
    assert parse_salary("Not disclosed") == (None, None, None, None)
    assert parse_salary("") == (None, None, None, None)
    assert parse_salary(None) == (None, None, None, None)


# --- dates ---


def test_relative_dates():
    assert parse_relative_date("Just posted", now=NOW) == NOW
    assert parse_relative_date("Today", now=NOW) == NOW
    assert parse_relative_date("Yesterday", now=NOW) == NOW - timedelta(days=1)
    assert parse_relative_date("Posted 3 days ago", now=NOW) == NOW - timedelta(days=3)
    assert parse_relative_date("30+ days ago", now=NOW) == NOW - timedelta(days=30)
    assert parse_relative_date("2 weeks ago", now=NOW) == NOW - timedelta(weeks=2)
    assert parse_relative_date("5 hours ago", now=NOW) == NOW - timedelta(hours=5)


def test_relative_date_unparseable():
    assert parse_relative_date("Hiring ongoing", now=NOW) is None
    assert parse_relative_date(None) is None


@freeze_time("2026-03-10 12:00:00")
def test_relative_date_defaults_to_current_time():
    assert parse_relative_date("1 day ago") == datetime(2026, 3, 9, 12, 0, tzinfo=timezone.utc)


# --- seniority and employment type ---


def test_infer_seniority_from_title():
    assert infer_seniority("Senior Backend Engineer") == SeniorityLevel.SENIOR
    assert infer_seniority("Sr. Data Analyst") == SeniorityLevel.SENIOR
    assert infer_seniority("Engineering Manager") == SeniorityLevel.MANAGER
    assert infer_seniority("Director of Engineering") == SeniorityLevel.DIRECTOR
    assert infer_seniority("VP of Sales") == SeniorityLevel.EXECUTIVE
    assert infer_seniority("Tech Lead") == SeniorityLevel.LEAD
    assert infer_seniority("Junior Developer") == SeniorityLevel.JUNIOR
    assert infer_seniority("Software Engineering Intern") == SeniorityLevel.ENTRY
    assert infer_seniority("Software Engineer") == SeniorityLevel.MID
    assert infer_seniority(None) == SeniorityLevel.MID


def test_seniority_from_experience():
    assert seniority_from_experience("0-1 Yrs") == SeniorityLevel.ENTRY
    assert seniority_from_experience("2-5 Yrs") == SeniorityLevel.JUNIOR
    assert seniority_from_experience("3-5 Yrs") == SeniorityLevel.MID
    assert seniority_from_experience("8-12 Yrs") == SeniorityLevel.SENIOR
    assert seniority_from_experience("12-18 Yrs") == SeniorityLevel.LEAD
    assert seniority_from_experience("Any") == SeniorityLevel.MID


def test_map_employment_type():
    assert map_employment_type("Full-time") == EmploymentType.FULL_TIME
    assert map_employment_type("Part-time, Contract") == EmploymentType.PART_TIME
    assert map_employment_type("Contract") == EmploymentType.CONTRACT
    assert map_employment_type("Internship") == EmploymentType.INTERNSHIP
    assert map_employment_type("Something else") == EmploymentType.FULL_TIME
    assert map_employment_type(None) == EmploymentType.FULL_TIME


# --- text ---


def test_anonymize_removes_email_and_phone():
    text = "Email jane.doe@example.com or call +1 (555) 123-4567 today."
    result = anonymize_text(text)
    assert "jane.doe@example.com" not in result
    assert "555" not in result
    assert "[email removed]" in result
    assert "[phone removed]" in result


def test_anonymize_keeps_ordinary_numbers():
    text = "Salary 120,000 per year, 3 openings, founded 1998."
    assert anonymize_text(text) == text


def test_clean_text_and_slugify():
    assert clean_text("  Software \n\t Engineer  ") == "Software Engineer"
    assert clean_text(None) == ""
    assert slugify("Python Developer") == "python-developer"
    assert slugify("C++ / .NET Engineer") == "c-net-engineer"

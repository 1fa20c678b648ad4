"""Text helpers shared by board scrapers: salary, dates, seniority, PII."""

import re
from datetime import datetime, timedelta, timezone

from scrape_engine.schemas.posting import EmploymentType, SalaryPeriod, SeniorityLevel

_WS_RE = re.compile(r"\s+")

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"(?<![\w,])\+?\(?\d[\d\s().-]{8,}\d(?![\w,])")

_CURRENCY_SYMBOLS = {"$": "USD", "£": "GBP", "€": "EUR", "₹": "INR"}
_CURRENCY_CODES = ("USD", "GBP", "EUR", "INR", "AED", "CAD", "AUD")

_PERIOD_PATTERNS = [
    (re.compile(r"\b(an? hour|per hour|hourly|/\s*hr)\b", re.I), SalaryPeriod.HOURLY),
    (re.compile(r"\b(a day|per day|daily)\b", re.I), SalaryPeriod.DAILY),
    (re.compile(r"\b(a week|per week|weekly)\b", re.I), SalaryPeriod.WEEKLY),
    (re.compile(r"\b(a month|per month|monthly)\b", re.I), SalaryPeriod.MONTHLY),
    (re.compile(r"\b(a year|per year|annually|annual|yearly|p\.?a\.?)\b", re.I), SalaryPeriod.ANNUAL),
]

_AMOUNT_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([kK]|lacs?|lakhs?|crores?)?", re.I)

_MULTIPLIERS = {"k": 1_000, "lac": 100_000, "lacs": 100_000, "lakh": 100_000, "lakhs": 100_000,
                "crore": 10_000_000, "crores": 10_000_000}

_EMPLOYMENT_TYPES = {
    "full-time": EmploymentType.FULL_TIME,
    "full time": EmploymentType.FULL_TIME,
    "permanent": EmploymentType.FULL_TIME,
    "part-time": EmploymentType.PART_TIME,
    "part time": EmploymentType.PART_TIME,
    "contract": EmploymentType.CONTRACT,
    "temporary": EmploymentType.TEMPORARY,
    "internship": EmploymentType.INTERNSHIP,
    "freelance": EmploymentType.FREELANCE,
    "remote": EmploymentType.REMOTE,
    "hybrid": EmploymentType.HYBRID,
    "on-site": EmploymentType.ON_SITE,
    "onsite": EmploymentType.ON_SITE,
}

# Checked in order; first match wins
_SENIORITY_KEYWORDS = [
    (re.compile(r"\b(chief|vp|vice president|head of|cto|ceo|cfo)\b", re.I), SeniorityLevel.EXECUTIVE),
    (re.compile(r"\bdirector\b", re.I), SeniorityLevel.DIRECTOR),
    (re.compile(r"\bmanager\b", re.I), SeniorityLevel.MANAGER),
    (re.compile(r"\b(lead|principal|staff|architect)\b", re.I), SeniorityLevel.LEAD),
    (re.compile(r"\b(senior|sr\.?)\b", re.I), SeniorityLevel.SENIOR),
    (re.compile(r"\b(junior|jr\.?|associate)\b", re.I), SeniorityLevel.JUNIOR),
    (re.compile(r"\b(intern|internship|entry[- ]level|graduate|trainee|fresher)\b", re.I), SeniorityLevel.ENTRY),
]


def clean_text(text: str | None) -> str:
    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def anonymize_text(text: str) -> str:
    """Strip email addresses and phone numbers."""
    if not text:
        return text
    text = _EMAIL_RE.sub("[email removed]", text)
    return _PHONE_RE.sub(_redact_phone, text)


def _redact_phone(match: re.Match) -> str:
    digits = sum(ch.isdigit() for ch in match.group(0))
    return "[phone removed]" if digits >= 10 else match.group(0)


def map_employment_type(text: str | None, default: EmploymentType = EmploymentType.FULL_TIME) -> EmploymentType:
    if not text:
        return default
    lowered = text.lower()
    for key, value in _EMPLOYMENT_TYPES.items():
        if key in lowered:
            return value
    return default


def infer_seniority(title: str | None, default: SeniorityLevel = SeniorityLevel.MID) -> SeniorityLevel:
    if not title:
        return default
    for pattern, level in _SENIORITY_KEYWORDS:
        if pattern.search(title):
            return level
    return default


def seniority_from_experience(text: str | None, default: SeniorityLevel = SeniorityLevel.MID) -> SeniorityLevel:
    """Map an experience range such as "2-5 Yrs" to a seniority level."""
    if not text:
        return default
    match = re.search(r"(\d+)", text)
    if not match:
        return default
    years = int(match.group(1))
    if years < 1:
        return SeniorityLevel.ENTRY
    if years < 3:
        return SeniorityLevel.JUNIOR
    if years < 6:
        return SeniorityLevel.MID
    if years < 10:
        return SeniorityLevel.SENIOR
    return SeniorityLevel.LEAD


def parse_salary(text: str | None, default_currency: str = "USD"):
    """Parse salary text into (min, max, currency, period).

    Returns (None, None, None, None) when no amount is present.
    """
    if not text:
        return None, None, None, None

    currency = None
    for symbol, code in _CURRENCY_SYMBOLS.items():
        if symbol in text:
            currency = code
            break
    if currency is None:
        upper = text.upper()
        currency = next((code for code in _CURRENCY_CODES if code in upper), None)

    amounts = []
    for number, unit in _AMOUNT_RE.findall(text):
        value = float(number.replace(",", ""))
        if unit:
            value *= _MULTIPLIERS.get(unit.lower(), 1)
        amounts.append(value)

    if not amounts:
        return None, None, None, None

    # "5-8 Lacs" puts the unit on the upper bound only
    unit_match = re.search(r"(lacs?|lakhs?|crores?)", text, re.I)
    if unit_match and len(amounts) == 2 and amounts[0] < amounts[1] / 1000:
        amounts[0] *= _MULTIPLIERS[unit_match.group(1).lower()]

    period = SalaryPeriod.ANNUAL
    for pattern, value in _PERIOD_PATTERNS:
        if pattern.search(text):
            period = value
            break

    low = min(amounts)
    high = max(amounts)
    if re.match(r"\s*(from|starting at)\b", text, re.I):
        high = None
    elif re.match(r"\s*(up to)\b", text, re.I):
        low = None
    return low, high, currency or default_currency, period


def parse_relative_date(text: str | None, now: datetime | None = None) -> datetime | None:
    """Parse posted-date snippets like "3 days ago", "Just posted", "30+ days ago"."""
    if not text:
        return None
    now = now or datetime.now(timezone.utc)
    lowered = text.lower()
    if any(word in lowered for word in ("just posted", "today", "just now", "few hours")):
        return now
    if "yesterday" in lowered:
        return now - timedelta(days=1)
    match = re.search(r"(\d+)\+?\s*(minute|hour|day|week|month)s?", lowered)
    if not match:
        return None
    value = int(match.group(1))
    unit = match.group(2)
    if unit == "minute":
        return now - timedelta(minutes=value)
    if unit == "hour":
        return now - timedelta(hours=value)
    if unit == "day":
        return now - timedelta(days=value)
    if unit == "week":
        return now - timedelta(weeks=value)
    return now - timedelta(days=30 * value)


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")

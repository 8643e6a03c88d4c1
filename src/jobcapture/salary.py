"""
Salary parsing - raw display text to a normalized (min, max, period) triple

The period (hourly vs annual) is always decided from the text before any
amount is parsed, so a range whose sides carry different unit suffixes is
classified once for the whole range.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from jobcapture.models import SalaryPeriod

logger = logging.getLogger(__name__)

CURRENCY = "$£€"

_AMOUNT = r"(\d+(?:,\d{3})*(?:\.\d+)?)\s?([kK])?(?![A-Za-z])"
_UNIT_SUFFIX = r"(?:\s?/\s?(?:hr|hour|yr|year))?"
_SEPARATOR = r"\s*(?:-|–|—|\bto\b)\s*"

RANGE_RE = re.compile(
    rf"([{CURRENCY}])\s?{_AMOUNT}{_UNIT_SUFFIX}{_SEPARATOR}[{CURRENCY}]?\s?{_AMOUNT}{_UNIT_SUFFIX}",
    re.IGNORECASE,
)
SINGLE_RE = re.compile(rf"([{CURRENCY}])\s?{_AMOUNT}", re.IGNORECASE)
SINGLE_WITH_UNIT_RE = re.compile(
    rf"([{CURRENCY}])\s?{_AMOUNT}\s*(?:per\s+|/\s?|an?\s+)(hour|hr|year|yr|annum)\b",
    re.IGNORECASE,
)
SALARY_TOKEN_RE = re.compile(rf"[{CURRENCY}]\s?\d")

HOURLY_RE = re.compile(r"/\s?hr\b|/\s?hour\b|per\s+hour|hourly|an\s+hour", re.IGNORECASE)
ANNUAL_RE = re.compile(
    r"/\s?yr\b|/\s?year\b|per\s+year|per\s+annum|annual|annually|yearly|a\s+year",
    re.IGNORECASE,
)

# How far past a description match to look for a period marker
_PERIOD_WINDOW = 24


@dataclass
class SalaryInfo:
    """Parsed salary: raw display text plus normalized bounds."""

    raw: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    period: Optional[SalaryPeriod] = None

    def __post_init__(self) -> None:
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            self.minimum, self.maximum = self.maximum, self.minimum


def detect_period(text: str) -> Optional[SalaryPeriod]:
    """Hourly markers win over annual ones; None when neither is present."""
    if not text:
        return None
    if HOURLY_RE.search(text):
        return SalaryPeriod.HOURLY
    if ANNUAL_RE.search(text):
        return SalaryPeriod.ANNUAL
    return None


def _to_number(value_raw: str, k_suffix: Optional[str]) -> Optional[float]:
    try:
        value = float(value_raw.replace(",", ""))
    except (TypeError, ValueError):
        return None
    if k_suffix:
        value *= 1000
    return round(value, 2)


def _parse_amounts(text: str) -> Tuple[Optional[float], Optional[float]]:
    match = RANGE_RE.search(text)
    if match:
        _, min_raw, min_k, max_raw, max_k = match.groups()
        return _to_number(min_raw, min_k), _to_number(max_raw, max_k)
    match = SINGLE_RE.search(text)
    if match:
        _, value_raw, k_suffix = match.groups()
        return _to_number(value_raw, k_suffix), None
    return None, None


def strip_benefit_suffix(salary_text: str) -> str:
    """Strip benefit suffixes like '· Medical, +1 benefit' from salary text."""
    if not salary_text:
        return salary_text
    # Examples: "$25/hr · Medical, +1 benefit", "$150K/yr - $190K/yr · Vision, +3 benefits"
    match = re.match(r'^([^·]+)', salary_text)
    if match:
        return match.group(1).strip()
    return salary_text.strip()


def parse_salary_text(text: str) -> Optional[SalaryInfo]:
    """Parse a salary widget text such as '$55K/yr - $60K/yr'."""
    if not text:
        return None
    cleaned = strip_benefit_suffix(" ".join(text.split()))
    period = detect_period(cleaned)
    minimum, maximum = _parse_amounts(cleaned)
    if minimum is None:
        return None
    return SalaryInfo(raw=cleaned, minimum=minimum, maximum=maximum, period=period)


def looks_like_salary(text: str) -> bool:
    if not text:
        return False
    stripped = text.strip()
    return stripped[:1] in CURRENCY or bool(SALARY_TOKEN_RE.search(stripped))


def find_salary_in_insights(fragments: Iterable[str]) -> Optional[SalaryInfo]:
    """First insight fragment that carries a leading currency amount."""
    for text in fragments:
        if not looks_like_salary(text):
            continue
        info = parse_salary_text(text)
        if info:
            logger.debug("Salary found in insight: %s", text)
            return info
    return None


def _format_amount(currency: str, value: float) -> str:
    if float(value).is_integer():
        return f"{currency}{int(value):,}"
    return f"{currency}{value:,.2f}"


def format_salary(currency: str, minimum: Optional[float], maximum: Optional[float]) -> Optional[str]:
    if minimum is None and maximum is None:
        return None
    parts = [_format_amount(currency, v) for v in (minimum, maximum) if v is not None]
    return " - ".join(parts)


def find_salary_in_description(description: str) -> Optional[SalaryInfo]:
    """Regex fallback over free text; defaults to annual when no hourly marker is near."""
    if not description:
        return None

    match = RANGE_RE.search(description)
    if match:
        window = description[match.start():match.end() + _PERIOD_WINDOW]
        period = SalaryPeriod.HOURLY if HOURLY_RE.search(window) else SalaryPeriod.ANNUAL
        currency, min_raw, min_k, max_raw, max_k = match.groups()
        info = SalaryInfo(
            raw="",
            minimum=_to_number(min_raw, min_k),
            maximum=_to_number(max_raw, max_k),
            period=period,
        )
        info.raw = format_salary(currency, info.minimum, info.maximum) or match.group(0)
        logger.debug("Salary range found in description: %s", match.group(0))
        return info

    match = SINGLE_WITH_UNIT_RE.search(description)
    if match:
        currency, value_raw, k_suffix, unit = match.groups()
        period = SalaryPeriod.HOURLY if unit.lower() in ("hour", "hr") else SalaryPeriod.ANNUAL
        value = _to_number(value_raw, k_suffix)
        logger.debug("Single salary found in description: %s", match.group(0))
        return SalaryInfo(raw=format_salary(currency, value, None) or match.group(0), minimum=value, period=period)

    return None


_JSON_LD_CURRENCY = {"USD": "$", "GBP": "£", "EUR": "€"}


def salary_from_json_ld(posting: Optional[dict]) -> Optional[SalaryInfo]:
    """baseSalary of a schema.org JobPosting."""
    if not posting:
        return None
    base_salary = posting.get("baseSalary")
    if not isinstance(base_salary, dict):
        return None
    value = base_salary.get("value")
    if not isinstance(value, dict):
        value = {"value": value}
    minimum = value.get("minValue", value.get("value"))
    maximum = value.get("maxValue")
    try:
        minimum = float(minimum) if minimum is not None else None
        maximum = float(maximum) if maximum is not None else None
    except (TypeError, ValueError):
        return None
    if minimum is None and maximum is None:
        return None
    if minimum is None:
        minimum, maximum = maximum, None

    unit = str(value.get("unitText") or base_salary.get("unitText") or "").strip().upper()
    period = {"HOUR": SalaryPeriod.HOURLY, "YEAR": SalaryPeriod.ANNUAL}.get(unit)
    currency = _JSON_LD_CURRENCY.get(str(base_salary.get("currency") or "").upper(), "$")
    info = SalaryInfo(raw="", minimum=minimum, maximum=maximum, period=period)
    info.raw = format_salary(currency, info.minimum, info.maximum)
    return info

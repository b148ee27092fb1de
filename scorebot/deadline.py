"""
Deadline detection for "by-date" markets.

This module classifies markets whose resolution is conditioned on a
deadline and extracts that deadline from free text when the listing has
no structured end date. Text parsing is a best-effort heuristic: common
phrasings are recognised, anything else yields None rather than an error.
"""

import calendar
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from scorebot.models import (
    URGENCY_CRITICAL,
    URGENCY_DISTANT,
    URGENCY_MODERATE,
    URGENCY_UNKNOWN,
    URGENCY_URGENT,
)
from scorebot.utils import ensure_utc, utc_now

# Configure module logger
logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

# Phrasings that mark a market as time-bound (matched against lowercased text)
TIME_BOUND_PATTERNS = [
    re.compile(r" by "),
    re.compile(r" before "),
    re.compile(r" by end of "),
    re.compile(r" this year"),
    re.compile(r" this month"),
    re.compile(r" this week"),
    re.compile(r" by \d{4}"),               # "by 2026"
    re.compile(r" before \d{1,2}/\d{1,2}"),  # "before 3/31"
    re.compile(r" by [a-z]+ \d{1,2}"),       # "by march 31"
    re.compile(r"deadline"),
    re.compile(r"\d{4}$"),                   # ends with a year
]

_MONTH_DAY_YEAR_FORMATS = ("%B %d, %Y", "%b %d, %Y")
_MONTH_YEAR_FORMATS = ("%B %Y", "%b %Y")


def is_time_bound_market(
    title: str,
    rules: Optional[str] = None,
    description: Optional[str] = None
) -> bool:
    """
    Detect whether a market is a "by-date" (deadline-based) market.

    Args:
        title: Market title
        rules: Resolution rules text
        description: Market description

    Returns:
        True if any deadline phrasing appears in the combined text
    """
    text = f"{title} {rules or ''} {description or ''}".lower().strip()
    return any(pattern.search(text) for pattern in TIME_BOUND_PATTERNS)


def _strptime_any(text: str, formats: tuple[str, ...]) -> Optional[datetime]:
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def _parse_month_day_year(match: re.Match, now: datetime) -> Optional[datetime]:
    return _strptime_any(match.group(1), _MONTH_DAY_YEAR_FORMATS)


def _parse_slash_date(match: re.Match, now: datetime) -> Optional[datetime]:
    return _strptime_any(match.group(1), ("%m/%d/%Y",))


def _parse_end_of_month(match: re.Match, now: datetime) -> Optional[datetime]:
    month_start = _strptime_any(match.group(1), _MONTH_YEAR_FORMATS)
    if month_start is None:
        return None
    last_day = calendar.monthrange(month_start.year, month_start.month)[1]
    return month_start.replace(day=last_day)


def _parse_this_year(match: re.Match, now: datetime) -> Optional[datetime]:
    return datetime(now.year, 12, 31, tzinfo=timezone.utc)


# Ordered (pattern, parser) pairs; the first successful parse wins
DEADLINE_PATTERNS: list[tuple[re.Pattern, Callable[[re.Match, datetime], Optional[datetime]]]] = [
    (re.compile(r"by (\w+ \d{1,2}, \d{4})", re.IGNORECASE), _parse_month_day_year),
    (re.compile(r"before (\w+ \d{1,2}, \d{4})", re.IGNORECASE), _parse_month_day_year),
    (re.compile(r"(\d{1,2}/\d{1,2}/\d{4})"), _parse_slash_date),
    (re.compile(r"by end of (\w+ \d{4})", re.IGNORECASE), _parse_end_of_month),
    (re.compile(r"this year", re.IGNORECASE), _parse_this_year),
]


def extract_deadline(
    title: str,
    rules: Optional[str] = None,
    end_date: Optional[datetime] = None,
    now: Optional[datetime] = None
) -> Optional[datetime]:
    """
    Extract a market's resolution deadline.

    A structured end date always takes precedence and is returned unchanged.
    Otherwise title and rules are scanned with an ordered list of date
    patterns. Parsed dates are midnight UTC.

    Args:
        title: Market title
        rules: Resolution rules text
        end_date: Structured end date from the listing
        now: Reference time for relative phrasings ("this year")

    Returns:
        Deadline datetime, or None if no pattern yields a valid date
    """
    if end_date:
        return end_date

    now = ensure_utc(now) if now else utc_now()
    text = f"{title} {rules or ''}"

    for pattern, parser in DEADLINE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue

        deadline = parser(match, now)
        if deadline is not None:
            return deadline

        logger.debug(f"Deadline text '{match.group(0)}' is not a valid date")

    return None


def time_remaining_days(
    end_date: Optional[datetime],
    now: Optional[datetime] = None
) -> Optional[float]:
    """
    Calculate time remaining until a deadline in (fractional) days.

    Args:
        end_date: Deadline; naive datetimes are treated as UTC
        now: Reference time (defaults to the current UTC time)

    Returns:
        Days remaining, 0.0 for past deadlines, None if there is no deadline
    """
    if not end_date:
        return None

    now = ensure_utc(now) if now else utc_now()
    seconds = (ensure_utc(end_date) - now).total_seconds()

    return seconds / SECONDS_PER_DAY if seconds > 0 else 0.0


def deadline_urgency(days: Optional[float]) -> str:
    """Categorize deadline urgency from days remaining."""
    if days is None:
        return URGENCY_UNKNOWN

    if days < 7:
        return URGENCY_CRITICAL
    if days < 30:
        return URGENCY_URGENT
    if days < 90:
        return URGENCY_MODERATE
    return URGENCY_DISTANT


def business_days_remaining(
    end_date: Optional[datetime],
    now: Optional[datetime] = None
) -> Optional[int]:
    """
    Count weekdays from today through the deadline day, inclusive.

    Args:
        end_date: Deadline; naive datetimes are treated as UTC
        now: Reference time (defaults to the current UTC time)

    Returns:
        Number of Monday-Friday days, 0 for past deadlines, None without a deadline
    """
    if not end_date:
        return None

    now = ensure_utc(now) if now else utc_now()
    current = now.date()
    last = ensure_utc(end_date).date()

    business_days = 0
    while current <= last:
        if current.weekday() < 5:
            business_days += 1
        current += timedelta(days=1)

    return business_days

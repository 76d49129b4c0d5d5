"""
Date/time resolution for the loosely formatted values Work IQ puts in meeting
tables: relative days ("yesterday at 3:00 PM", "last Monday"), ISO 8601, and a
handful of locale formats.

Every strategy is a pure function ``(text, now) -> datetime | None``; the
resolver tries them in order and returns the first hit. Unresolvable text
yields ``None`` so callers can fall back to showing the raw value.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Callable, Optional, Sequence

from loguru import logger

from meeting_prep.utils.markdown_normalizer import fold_dashes, strip_bold, strip_footnotes

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# datetime.weekday() numbering
WEEKDAYS = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

_RELATIVE_AT_TIME_RE = re.compile(
    r"^(today|yesterday|last\s+\w+)(?:\s+at)?\s+(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE
)
_RELATIVE_DAY_RE = re.compile(r"^(today|yesterday|last\s+\w+)$", re.IGNORECASE)
_ISO_DATETIME_RE = re.compile(
    r"(\d{4})-(\d{1,2})-(\d{1,2})[,\s]+(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*(AM|PM)\b)?", re.IGNORECASE
)
_ISO_RANGE_RE = re.compile(
    r"(\d{4})-(\d{1,2})-(\d{1,2}),?\s*(\d{1,2}):(\d{2})(?:\s*(AM|PM)\b)?", re.IGNORECASE
)
_MONTH_FIRST_RE = re.compile(
    r"([^\W\d_]+)\s+(\d{1,2}),?\s*(\d{4}),?\s*(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE
)
_SLASH_RE = re.compile(
    r"(\d{1,2})/(\d{1,2})/(\d{4}),?\s*(\d{1,2}):(\d{2})(?:\s*(AM|PM)\b)?", re.IGNORECASE
)
_DATE_ONLY_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_RFC2822_RE = re.compile(r"^[A-Za-z]{3},\s+\d{1,2}\s+[A-Za-z]{3}\s+\d{4}\s+\d{1,2}:\d{2}")
# "2026-02-17 09:00-10:00" would otherwise parse as 09:00 at UTC-10
_TIME_RANGE_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}[,\s]+\d{1,2}:\d{2}\s*-\s*\d{1,2}:\d{2}$")
_DAY_FIRST_RE = re.compile(
    r"(?:[^\W\d_]+,?\s+)?(\d{1,2})\s+([^\W\d_]+)\s+(\d{4})(?:[,\s]+(\d{1,2}):(\d{2})\s*(AM|PM)?)?",
    re.IGNORECASE,
)

# Unambiguous formats accepted by the direct parse besides ISO 8601
_DIRECT_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d, %Y %H:%M",
    "%b %d, %Y %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%a %b %d %Y",
)


def normalize_date_text(text: str) -> str:
    """Fold dash variants and strip bold markers and footnote references."""
    return strip_footnotes(strip_bold(fold_dashes(text))).strip()


def to_24_hour(hour: int, meridiem: Optional[str]) -> int:
    """Apply an optional AM/PM suffix: 12 AM is 0, PM adds 12 to 1-11."""
    marker = (meridiem or "").upper()
    if marker == "PM" and hour < 12:
        return hour + 12
    if marker == "AM" and hour == 12:
        return 0
    return hour


def month_number(name: str) -> Optional[int]:
    return MONTHS.get((name or "").lower()[:3])


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def resolve_relative_day(rel: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Resolve "today", "yesterday" or "last <weekday>" to local midnight.

    "last <weekday>" is always a prior day: asked on a Monday, "last Monday"
    is seven days back.
    """
    now = now or datetime.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    lower = re.sub(r"\s+", " ", (rel or "").strip().lower())

    if lower == "today":
        return today
    if lower == "yesterday":
        return today - timedelta(days=1)

    m = re.match(r"^last (\w+)$", lower)
    if m:
        target = WEEKDAYS.get(m.group(1))
        if target is None:
            return None
        diff = today.weekday() - target
        if diff <= 0:
            diff += 7
        return today - timedelta(days=diff)

    return None


def _relative_at_time(s: str, now: datetime) -> Optional[datetime]:
    m = _RELATIVE_AT_TIME_RE.match(s)
    if not m:
        return None
    base = resolve_relative_day(m.group(1), now)
    if base is None:
        return None
    hour = to_24_hour(int(m.group(2)), m.group(4))
    return base.replace(hour=hour, minute=int(m.group(3)))


def _relative_day(s: str, now: datetime) -> Optional[datetime]:
    m = _RELATIVE_DAY_RE.match(s)
    if not m:
        return None
    return resolve_relative_day(m.group(1), now)


def _direct_parse(s: str, now: datetime) -> Optional[datetime]:
    if _TIME_RANGE_RE.match(s):
        return None
    try:
        return _local_naive(datetime.fromisoformat(s))
    except ValueError:
        pass
    for fmt in _DIRECT_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    # RFC 2822, e.g. "Tue, 17 Feb 2026 10:00:00 GMT"
    if _RFC2822_RE.match(s):
        try:
            return _local_naive(parsedate_to_datetime(s))
        except (TypeError, ValueError, IndexError):
            pass
    return None


def _iso_datetime(s: str, now: datetime) -> Optional[datetime]:
    m = _ISO_DATETIME_RE.search(s)
    if not m:
        return None
    y, mo, d, h, mi, sec, meridiem = m.groups()
    hour = to_24_hour(int(h), meridiem)
    return datetime(int(y), int(mo), int(d), hour, int(mi), int(sec or 0))


def _iso_range_start(s: str, now: datetime) -> Optional[datetime]:
    m = _ISO_RANGE_RE.search(s)
    if not m:
        return None
    y, mo, d, h, mi = (int(g) for g in m.groups()[:5])
    return datetime(y, mo, d, to_24_hour(h, m.group(6)), mi)


def _month_first(s: str, now: datetime) -> Optional[datetime]:
    m = _MONTH_FIRST_RE.search(s)
    if not m:
        return None
    month = month_number(m.group(1))
    if month is None:
        return None
    hour = to_24_hour(int(m.group(4)), m.group(6))
    return datetime(int(m.group(3)), month, int(m.group(2)), hour, int(m.group(5)))


def _slash_date(s: str, now: datetime) -> Optional[datetime]:
    m = _SLASH_RE.search(s)
    if not m:
        return None
    first, second, year, hour, minute = (int(g) for g in m.groups()[:5])
    hour = to_24_hour(hour, m.group(6))
    try:
        return datetime(year, second, first, hour, minute)
    except ValueError:
        # Day-first was impossible (e.g. 02/17/2026), read it month-first
        return datetime(year, first, second, hour, minute)


def _date_only(s: str, now: datetime) -> Optional[datetime]:
    m = _DATE_ONLY_RE.match(s)
    if not m:
        return None
    y, mo, d = (int(g) for g in m.groups())
    return datetime(y, mo, d)


def _day_first(s: str, now: datetime) -> Optional[datetime]:
    m = _DAY_FIRST_RE.search(s)
    if not m:
        return None
    month = month_number(m.group(2))
    if month is None:
        return None
    hour = to_24_hour(int(m.group(4)), m.group(6)) if m.group(4) else 0
    minute = int(m.group(5)) if m.group(5) else 0
    return datetime(int(m.group(3)), month, int(m.group(1)), hour, minute)


Strategy = Callable[[str, datetime], Optional[datetime]]

STRATEGIES: Sequence[Strategy] = (
    _relative_at_time,
    _relative_day,
    _direct_parse,
    _iso_datetime,
    _iso_range_start,
    _month_first,
    _slash_date,
    _date_only,
    _day_first,
)


def resolve_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Convert free date/time text into a naive local datetime.

    Args:
        text: Raw cell text such as ``"yesterday at 3:00 PM"`` or
            ``"2026-02-17T09:00:00"``.
        now: Reference time for relative expressions (defaults to now).

    Returns:
        The resolved datetime, or ``None`` when no strategy matches.
    """
    if not text:
        return None

    s = normalize_date_text(text)
    if not s:
        return None

    now = now or datetime.now()
    for strategy in STRATEGIES:
        try:
            result = strategy(s, now)
        except (ValueError, OverflowError):
            # Pattern matched but named an impossible date; keep looking
            continue
        if result is not None:
            return result

    logger.debug(f"Unresolved date text: {s!r}")
    return None

# slip_service/extraction/dates.py
"""
Kickoff date extraction.

Bookmakers display local wall-clock time without a zone. The displayed values
are stored as-is on a UTC datetime, so "22/12/2025 18:45" becomes
2025-12-22T18:45:00Z.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from typing import Optional

import structlog

from .thresholds import DEFAULT_THRESHOLDS
from .thresholds import ExtractionThresholds

log = structlog.get_logger(__name__)

DATE_PATTERNS = (
    re.compile(r"(?<!\d)(?P<day>\d{2})/(?P<month>\d{2})/(?P<year>\d{4})\s+(?P<hour>\d{2}):(?P<minute>\d{2})"),
    re.compile(
        r"(?<!\d)(?P<day>\d{1,2})[./-](?P<month>\d{1,2})[./-](?P<year>\d{4}),?\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})"
    ),
    re.compile(
        r"(?<!\d)(?P<day>\d{1,2})[./-](?P<month>\d{1,2})[./-](?P<year>\d{2})(?!\d),?\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})"
    ),
    re.compile(
        r"(?<!\d)(?P<hour>\d{1,2}):(?P<minute>\d{2})\s+(?P<day>\d{1,2})[./-](?P<month>\d{1,2})[./-](?P<year>\d{4})"
    ),
)


@dataclass(frozen=True)
class DateExtraction:
    value: datetime
    suspicious: bool = False


def build_datetime(day: int, month: int, year: int, hour: int, minute: int) -> Optional[datetime]:
    """A UTC datetime from displayed fields, or None when any field is out of range."""
    if year < 100:
        year += 2000
    if not (1 <= day <= 31 and 1 <= month <= 12 and 0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    try:
        return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    except ValueError:
        return None


def _nearest(pattern, text: str, start: int, end: int, offset: int):
    best = None
    for found in pattern.finditer(text, start, end):
        distance = abs(found.start() - offset)
        if best is None or distance < best[0]:
            best = (distance, found)
    return best[1] if best else None


def extract_match_date(
    offset: int,
    text: str,
    now: Optional[datetime] = None,
    thresholds: ExtractionThresholds = DEFAULT_THRESHOLDS,
) -> Optional[DateExtraction]:
    """
    Finds the kickoff date for the match starting at ``offset``.

    Searches ±proximity_window characters around the offset. The first
    pattern with any hit wins, and within it the hit nearest the offset. The
    result passes through the plausibility gate: stale dates are dropped,
    borderline ones are kept but flagged as suspicious.
    """
    if not text:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = max(0, offset - thresholds.proximity_window)
    end = min(len(text), offset + thresholds.proximity_window)

    found = None
    for pattern in DATE_PATTERNS:
        found = _nearest(pattern, text, start, end, offset)
        if found:
            break
    if found is None:
        return None

    value = build_datetime(
        int(found.group("day")),
        int(found.group("month")),
        int(found.group("year")),
        int(found.group("hour")),
        int(found.group("minute")),
    )
    if value is None:
        log.warning("match_date_invalid_fields", raw=found.group(0))
        return None

    hours_from_now = (value - now).total_seconds() / 3600
    if hours_from_now < thresholds.stale_after_hours:
        log.warning("match_date_discarded", raw=found.group(0), hours_from_now=round(hours_from_now, 1))
        return None
    if hours_from_now < thresholds.suspicious_past_hours or hours_from_now > thresholds.suspicious_future_hours:
        log.warning("match_date_suspicious", raw=found.group(0), hours_from_now=round(hours_from_now, 1))
        return DateExtraction(value, suspicious=True)
    return DateExtraction(value)

"""
Meeting list assembly: agent text -> MeetingRecords -> day/hour schedule.
"""

import re
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from loguru import logger

from meeting_prep.config import ParsingConfig, get_config
from meeting_prep.models import UNKNOWN_DAY, DaySchedule, HourSlot, MeetingRecord
from meeting_prep.parsers.date_resolver import resolve_date
from meeting_prep.parsers.table_extractor import (
    extract_numbered_rows,
    extract_table,
    filter_table_rows,
)
from meeting_prep.utils.markdown_normalizer import clean_cell

REQUIRED_COLUMNS = ("subject", "start")
OPTIONAL_COLUMNS = ("end", "organizer")

_TRANSCRIPT_AVAILABLE_RE = re.compile(r"^(yes|true|available|exists|1)$", re.IGNORECASE)


def _build_record(subject: str, start_raw: str, end_raw: str, organizer: str,
                  now: Optional[datetime]) -> Optional[MeetingRecord]:
    if not subject:
        return None
    return MeetingRecord(
        subject=subject,
        start=resolve_date(clean_cell(start_raw), now),
        end=resolve_date(clean_cell(end_raw), now),
        organizer=organizer,
        start_raw=start_raw,
        end_raw=end_raw,
    )


def parse_meetings_fallback(text: Optional[str], now: Optional[datetime] = None) -> List[MeetingRecord]:
    """Build meetings from numbered pipe rows when no recognisable header exists.

    Start and end cells are kept uncleaned as the raw values.
    """
    meetings = []
    for row in extract_numbered_rows(text):
        record = _build_record(
            clean_cell(row["subject"]),
            row["start"],
            row["end"],
            "",
            now,
        )
        if record is not None:
            meetings.append(record)
    return meetings


def assemble_meetings(text: Optional[str], now: Optional[datetime] = None) -> List[MeetingRecord]:
    """
    Parse the agent's meeting-list answer into MeetingRecords.

    Args:
        text: Raw agent answer, usually containing a markdown table
        now: Reference time for relative dates such as "yesterday"

    Returns:
        Meetings in source order. Empty when nothing parseable was found;
        never raises.
    """
    if not text:
        return []

    rows = extract_table(text, REQUIRED_COLUMNS, OPTIONAL_COLUMNS)
    if not rows:
        logger.info("No meetings table header found; trying numbered-row fallback")
        meetings = parse_meetings_fallback(text, now)
    else:
        meetings = []
        for row in rows:
            record = _build_record(row["subject"], row["start"], row["end"], row["organizer"], now)
            if record is not None:
                meetings.append(record)

    resolved = sum(1 for m in meetings if m.start is not None)
    logger.info(f"Assembled {len(meetings)} meetings ({resolved} with resolved start)")
    return meetings


def filter_meetings_by_transcript(text: Optional[str]) -> Optional[str]:
    """Keep only table rows flagged as having a transcript.

    Returns ``None`` when no availability column exists or no row is flagged,
    so the caller keeps the unfiltered answer instead of an empty list.
    """
    return filter_table_rows(text, REQUIRED_COLUMNS, "transcript", _TRANSCRIPT_AVAILABLE_RE)


# ----------------------------------------------------------------------
# Schedule view
# ----------------------------------------------------------------------

def day_key(meeting: MeetingRecord) -> str:
    """Local calendar day ``YYYY-MM-DD`` of the meeting start, or ``"unknown"``."""
    if meeting.start is None:
        return UNKNOWN_DAY
    return meeting.start.strftime("%Y-%m-%d")


def day_label(key: str, today: date) -> str:
    """Friendly header such as ``Today - Feb 17, 2026`` or ``Monday - Feb 16, 2026``."""
    if key == UNKNOWN_DAY:
        return "Other"
    day = datetime.strptime(key, "%Y-%m-%d").date()
    date_str = f"{day.strftime('%b')} {day.day}, {day.year}"
    diff = (today - day).days
    if diff == 0:
        return f"Today - {date_str}"
    if diff == 1:
        return f"Yesterday - {date_str}"
    return f"{day.strftime('%A')} - {date_str}"


def _meeting_end(meeting: MeetingRecord, default_minutes: int) -> datetime:
    if meeting.end is not None:
        return meeting.end
    return meeting.start + timedelta(minutes=default_minutes)


def hour_range(meetings: List[MeetingRecord], config: Optional[ParsingConfig] = None) -> range:
    """Hours to display for one day: earliest start hour to latest end hour.

    An end with non-zero minutes rounds up; a meeting without an end counts
    as ending one hour after its start hour. Falls back to business hours
    when the range is degenerate.
    """
    config = config or get_config().parsing
    min_hour, max_hour = 24, 0

    for m in meetings:
        if m.start is not None:
            min_hour = min(min_hour, m.start.hour)
        if m.end is not None:
            end_hour = m.end.hour + 1 if m.end.minute > 0 else m.end.hour
            max_hour = max(max_hour, end_hour)
        elif m.start is not None:
            max_hour = max(max_hour, m.start.hour + 1)

    if min_hour > max_hour:
        min_hour, max_hour = config.business_hours
    min_hour = max(0, min_hour)
    max_hour = min(24, max_hour)
    return range(min_hour, max_hour)


def overlaps_hour(meeting: MeetingRecord, hour: int, default_minutes: int = 60) -> bool:
    """Half-open overlap of the meeting with ``[hour, hour + 1)`` on its start day."""
    if meeting.start is None:
        return False
    day_start = meeting.start.replace(hour=0, minute=0, second=0, microsecond=0)
    slot_start = day_start + timedelta(hours=hour)
    slot_end = slot_start + timedelta(hours=1)
    return meeting.start < slot_end and _meeting_end(meeting, default_minutes) > slot_start


def build_schedule(
    meetings: List[MeetingRecord],
    today: Optional[date] = None,
    config: Optional[ParsingConfig] = None,
) -> List[DaySchedule]:
    """
    Group meetings into day buckets sliced into hourly slots.

    Days are ordered newest first; meetings without a resolved start go into
    a trailing "unknown" bucket that has no slots.
    """
    config = config or get_config().parsing
    today = today or date.today()

    groups: Dict[str, List[MeetingRecord]] = OrderedDict()
    for meeting in meetings:
        groups.setdefault(day_key(meeting), []).append(meeting)

    known = sorted((k for k in groups if k != UNKNOWN_DAY), reverse=True)
    ordered = known + ([UNKNOWN_DAY] if UNKNOWN_DAY in groups else [])

    schedule: List[DaySchedule] = []
    for key in ordered:
        day_meetings = groups[key]
        slots: List[HourSlot] = []
        if key != UNKNOWN_DAY:
            for hour in hour_range(day_meetings, config):
                slots.append(HourSlot(
                    hour=hour,
                    label=f"{hour:02d}:00 - {hour + 1:02d}:00",
                    meetings=[m for m in day_meetings
                              if overlaps_hour(m, hour, config.default_meeting_minutes)],
                ))
        schedule.append(DaySchedule(
            key=key,
            label=day_label(key, today),
            meetings=day_meetings,
            slots=slots,
        ))

    return schedule

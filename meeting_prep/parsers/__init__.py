"""
Parsers turning free-form agent text into structured records.
"""

from meeting_prep.parsers.date_resolver import resolve_date, resolve_relative_day
from meeting_prep.parsers.table_extractor import extract_table, extract_numbered_rows
from meeting_prep.parsers.transcript_parser import (
    TranscriptParser,
    get_transcript_parser,
    reset_transcript_parser,
    parse_transcript,
    parse_transcript_turns,
    parse_vtt_cues,
)
from meeting_prep.parsers.content_classifier import (
    ContentClassifier,
    get_content_classifier,
    reset_content_classifier,
    classify_response,
    extract_content,
    is_refusal,
)
from meeting_prep.parsers.meeting_assembler import (
    assemble_meetings,
    build_schedule,
    filter_meetings_by_transcript,
)

__all__ = [
    "resolve_date",
    "resolve_relative_day",
    "extract_table",
    "extract_numbered_rows",
    "TranscriptParser",
    "get_transcript_parser",
    "reset_transcript_parser",
    "parse_transcript",
    "parse_transcript_turns",
    "parse_vtt_cues",
    "ContentClassifier",
    "get_content_classifier",
    "reset_content_classifier",
    "classify_response",
    "extract_content",
    "is_refusal",
    "assemble_meetings",
    "build_schedule",
    "filter_meetings_by_transcript",
]

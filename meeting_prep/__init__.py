"""
Meeting Prep Assistant - Main package.
"""

from meeting_prep.models import *
from meeting_prep.config import get_config, set_config, reset_config
from meeting_prep.parsers import (
    resolve_date,
    extract_table,
    parse_transcript,
    parse_transcript_turns,
    parse_vtt_cues,
    classify_response,
    assemble_meetings,
    build_schedule,
)

__version__ = "1.0.0"
__all__ = [
    "get_config",
    "set_config",
    "reset_config",
    "resolve_date",
    "extract_table",
    "parse_transcript",
    "parse_transcript_turns",
    "parse_vtt_cues",
    "classify_response",
    "assemble_meetings",
    "build_schedule",
]

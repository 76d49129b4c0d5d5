"""
Data models for the Meeting Prep Assistant.

All records are transient values: built from a single agent response and
discarded when the next query supersedes them.
"""

from typing import List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, validator


UNKNOWN_SPEAKER = "Unknown"
UNKNOWN_DAY = "unknown"


class MeetingRecord(BaseModel):
    """A meeting row extracted from an agent response."""
    subject: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    organizer: str = ""
    start_raw: str = ""
    end_raw: str = ""

    @validator('subject')
    def subject_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('Meeting subject cannot be empty')
        return v.strip()

    @property
    def query_date(self) -> Optional[str]:
        """Date hint to send back to the agent when asking for this meeting."""
        if self.start_raw:
            return self.start_raw
        if self.start:
            return self.start.isoformat()
        return None


class TranscriptTurn(BaseModel):
    """One attributed utterance within a transcript."""
    speaker: str = UNKNOWN_SPEAKER
    text: str = ""

    @validator('speaker', pre=True, always=True)
    def speaker_default(cls, v):
        if not v or not str(v).strip():
            return UNKNOWN_SPEAKER
        return str(v).strip()


class VttCue(BaseModel):
    """A caption cue carrying an explicit time range."""
    timestamp: str
    speaker: Optional[str] = None
    text: str = ""


class ClassificationResult(BaseModel):
    """Refusal decision plus the cleaned payload of a usable response."""
    is_refusal: bool
    cleaned_text: str = ""


class OutcomeKind(str, Enum):
    """Which representation a parsed transcript ended up in."""
    VTT = "vtt"
    TURNS = "turns"
    VERBATIM = "verbatim"


class ParseOutcome(BaseModel):
    """Structured transcript data, or a marker that the raw text must be shown as-is."""
    kind: OutcomeKind
    raw_text: str = ""
    cues: List[VttCue] = Field(default_factory=list)
    turns: List[TranscriptTurn] = Field(default_factory=list)
    context_note: str = ""

    @property
    def is_verbatim(self) -> bool:
        return self.kind == OutcomeKind.VERBATIM

    @property
    def speakers(self) -> List[str]:
        """Distinct speakers in order of first appearance."""
        seen: List[str] = []
        names = [c.speaker for c in self.cues] if self.kind == OutcomeKind.VTT else [t.speaker for t in self.turns]
        for name in names:
            if name and name not in seen:
                seen.append(name)
        return seen

    def to_plain_text(self) -> str:
        """Render the outcome as "Speaker: text" lines for downstream prompts."""
        if self.kind == OutcomeKind.VTT:
            return "\n".join(
                f"{c.speaker}: {c.text}" if c.speaker else c.text for c in self.cues
            )
        if self.kind == OutcomeKind.TURNS:
            return "\n".join(f"{t.speaker}: {t.text}" for t in self.turns)
        return self.raw_text


class HourSlot(BaseModel):
    """One hour of a day's schedule and the meetings overlapping it."""
    hour: int
    label: str
    meetings: List[MeetingRecord] = Field(default_factory=list)


class DaySchedule(BaseModel):
    """Meetings of one local calendar day, sliced into hourly slots."""
    key: str
    label: str
    meetings: List[MeetingRecord] = Field(default_factory=list)
    slots: List[HourSlot] = Field(default_factory=list)

    @property
    def is_unknown(self) -> bool:
        return self.key == UNKNOWN_DAY


class MeetingsResult(BaseModel):
    """Agent answer to the meeting-list question, parsed when possible."""
    raw_text: str
    meetings: List[MeetingRecord] = Field(default_factory=list)
    schedule: List[DaySchedule] = Field(default_factory=list)
    filtered_by_transcript: bool = False
    source: str = "workiq"

    @property
    def is_verbatim(self) -> bool:
        return not self.meetings


class TranscriptResult(BaseModel):
    """Transcript text as retrieved, plus where it came from."""
    text: str
    source: str = "workiq"
    transcript_url: Optional[str] = None
    is_refusal: bool = False
    outcome: Optional[ParseOutcome] = None
    attempts: int = 1

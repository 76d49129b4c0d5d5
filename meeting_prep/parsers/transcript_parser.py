"""
Transcript parser for segmenting agent transcript text into speaker turns.

Work IQ returns transcripts in several dialects, sometimes mixed in a single
answer::

    > Speaker: text [1](url)
    - Speaker: text
    **Speaker**: text
    Name: dialogue {id=N}
    De: Nombre Apellido.        (speaker change marker, Spanish tenants)

Caption files (WebVTT) are recognised first and parsed into cues instead.
"""

import re
from typing import List, NamedTuple, Optional, Tuple

from loguru import logger

from meeting_prep.config import ParsingConfig, get_config
from meeting_prep.models import (
    UNKNOWN_SPEAKER,
    OutcomeKind,
    ParseOutcome,
    TranscriptTurn,
    VttCue,
)
from meeting_prep.utils.markdown_normalizer import (
    clean_inline,
    strip_footnote_links,
    strip_id_markers,
)

_BLOCKQUOTE_RE = re.compile(r"^>\s*(?:\*\*)?([^:*]+?)(?:\*\*)?:\s*(.+)")
_BULLET_RE = re.compile(r"^[-•]\s*(?:\*\*)?([^:*]+?)(?:\*\*)?:\s*(.+)")
_BARE_RE = re.compile(r"^(?:\*\*)?([A-ZÀ-ÖØ-Þ][A-Za-zÀ-ÖØ-öø-ÿ\s()/,'-]+?)(?:\*\*)?:\s+(.+)")
_VTT_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n+")
_VTT_VOICE_RE = re.compile(r"^<v\s+([^>]+)>(.*)", re.DOTALL)
_HEADING_RE = re.compile(r"^#{1,3}\s")
_BULLET_SPEAKER_HINT_RE = re.compile(r"^[-•]\s*[A-Z]")


class _TurnState(NamedTuple):
    """Accumulator threaded through the lines of one transcript."""
    speaker: str = ""
    emitted: int = 0


class TranscriptParser:
    """Parse raw transcript text into ordered turns or caption cues."""

    def __init__(self, config: Optional[ParsingConfig] = None):
        """Initialize the parser with heuristic word lists."""
        self.config = config or get_config().parsing

        prefixes = "|".join(re.escape(p) for p in self.config.speaker_marker_prefixes) or r"(?!x)x"
        self.marker_pattern = re.compile(rf"^(?:{prefixes}):\s*(.+?)\.?\s*$", re.IGNORECASE)

        stopwords = "|".join(re.escape(w) for w in self.config.speaker_marker_stopwords)
        self.stopword_pattern = re.compile(rf"\b(?:{stopwords})\b", re.IGNORECASE) if stopwords else None

        labels = "|".join(re.escape(w) for w in self.config.metadata_labels)
        self.metadata_pattern = re.compile(rf"^(?:{labels})", re.IGNORECASE) if labels else None

    # ------------------------------------------------------------------
    # Dialect matchers: each takes one pre-cleaned line
    # ------------------------------------------------------------------

    def is_metadata_label(self, label: str) -> bool:
        """Check if a label is a document heading rather than a speaker."""
        if self.metadata_pattern is None:
            return False
        return bool(self.metadata_pattern.match(label.strip().lower()))

    def match_speaker_marker(self, line: str) -> Optional[str]:
        """Return the announced speaker for lines like ``De: Ana Ruiz.``"""
        m = self.marker_pattern.match(line)
        if not m:
            return None
        name = m.group(1)
        if len(name) >= self.config.max_speaker_label_length or "," in name:
            return None
        if self.stopword_pattern is not None and self.stopword_pattern.search(name):
            return None
        return clean_inline(name)

    def match_blockquote(self, line: str) -> Optional[Tuple[str, str]]:
        m = _BLOCKQUOTE_RE.match(line)
        if not m:
            return None
        return clean_inline(m.group(1)), clean_inline(m.group(2))

    def match_bullet(self, line: str) -> Optional[Tuple[str, str]]:
        m = _BULLET_RE.match(line)
        if not m or self.is_metadata_label(m.group(1)):
            return None
        return clean_inline(m.group(1)), clean_inline(m.group(2))

    def match_bare(self, line: str) -> Optional[Tuple[str, str]]:
        m = _BARE_RE.match(line)
        if not m:
            return None
        label = m.group(1)
        if self.is_metadata_label(label) or len(label) >= self.config.max_speaker_label_length:
            return None
        return clean_inline(label), clean_inline(m.group(2))

    # ------------------------------------------------------------------
    # Turn parsing
    # ------------------------------------------------------------------

    def _step(self, state: _TurnState, line: str) -> Tuple[_TurnState, Optional[TranscriptTurn]]:
        """Consume one line; return the next state and the turn it produced, if any."""
        announced = self.match_speaker_marker(line)
        if announced:
            return state._replace(speaker=announced), None

        for matcher in (self.match_blockquote, self.match_bullet, self.match_bare):
            hit = matcher(line)
            if hit:
                speaker, text = hit
                return _TurnState(speaker, state.emitted + 1), TranscriptTurn(speaker=speaker, text=text)

        # Continuation of the current speaker: its own turn, never merged
        if state.speaker and state.emitted > 0:
            turn = TranscriptTurn(speaker=state.speaker, text=clean_inline(line))
        else:
            turn = TranscriptTurn(speaker=UNKNOWN_SPEAKER, text=clean_inline(line))
        return state._replace(emitted=state.emitted + 1), turn

    def parse_turns(self, text: Optional[str]) -> List[TranscriptTurn]:
        """
        Segment transcript text into speaker-attributed turns.

        Args:
            text: Raw or cleaned transcript text

        Returns:
            Turns in conversation order; unattributable lines are kept under
            speaker "Unknown"
        """
        if not text:
            return []

        state = _TurnState()
        turns: List[TranscriptTurn] = []
        for raw_line in text.split("\n"):
            line = strip_footnote_links(strip_id_markers(raw_line.strip())).strip()
            if not line:
                continue
            state, turn = self._step(state, line)
            if turn is not None:
                turns.append(turn)

        return turns

    # ------------------------------------------------------------------
    # WebVTT
    # ------------------------------------------------------------------

    def parse_vtt(self, raw: Optional[str]) -> List[VttCue]:
        """Parse WebVTT caption blocks; returns [] for non-caption text."""
        if not raw or not isinstance(raw, str):
            return []

        cues: List[VttCue] = []
        for part in _VTT_BLOCK_SPLIT_RE.split(raw.replace("\r\n", "\n")):
            lines = part.strip().split("\n")
            if len(lines) < 2:
                continue

            timestamp_idx = next((i for i, ln in enumerate(lines) if "-->" in ln), None)
            if timestamp_idx is None:
                continue

            speaker = None
            text = " ".join(lines[timestamp_idx + 1:]).strip()
            voice = _VTT_VOICE_RE.match(text)
            if voice:
                speaker = voice.group(1).strip()
                text = voice.group(2).replace("</v>", "").strip()

            cues.append(VttCue(timestamp=lines[timestamp_idx].strip(), speaker=speaker, text=text))

        return cues

    # ------------------------------------------------------------------
    # Combined
    # ------------------------------------------------------------------

    def extract_context_note(self, text: Optional[str]) -> str:
        """Explanatory prose the agent put before the first quoted or bulleted turn."""
        if not text:
            return ""

        note_lines: List[str] = []
        for line in text.split("\n"):
            trimmed = line.strip()
            if trimmed.startswith(">"):
                break
            if _BULLET_SPEAKER_HINT_RE.match(trimmed) and ":" in trimmed:
                break
            if not trimmed or _HEADING_RE.match(trimmed):
                if note_lines:
                    note_lines.append(trimmed)
                continue
            note_lines.append(trimmed)

        note = "\n".join(note_lines).strip()
        return note if len(note) > 20 else ""

    def parse(self, text: Optional[str]) -> ParseOutcome:
        """
        Parse transcript text, trying captions first, then speaker dialects.

        Returns:
            ParseOutcome; kind VERBATIM means nothing structured was found
            and the raw text should be shown as-is
        """
        raw = text or ""

        cues = self.parse_vtt(raw)
        if cues:
            logger.info(f"Parsed transcript as VTT: {len(cues)} cues")
            return ParseOutcome(kind=OutcomeKind.VTT, raw_text=raw, cues=cues)

        turns = self.parse_turns(raw)
        if turns:
            outcome = ParseOutcome(
                kind=OutcomeKind.TURNS,
                raw_text=raw,
                turns=turns,
                context_note=self.extract_context_note(raw),
            )
            logger.info(f"Parsed transcript: {len(turns)} turns, {len(outcome.speakers)} speakers")
            return outcome

        logger.warning("No transcript structure found; falling back to verbatim text")
        return ParseOutcome(kind=OutcomeKind.VERBATIM, raw_text=raw)


# Global parser instance
_parser: Optional[TranscriptParser] = None


def get_transcript_parser() -> TranscriptParser:
    """Get the global transcript parser instance."""
    global _parser
    if _parser is None:
        _parser = TranscriptParser()
    return _parser


def reset_transcript_parser():
    """Reset the global transcript parser instance."""
    global _parser
    _parser = None


def parse_transcript_turns(text: Optional[str]) -> List[TranscriptTurn]:
    return get_transcript_parser().parse_turns(text)


def parse_vtt_cues(text: Optional[str]) -> List[VttCue]:
    return get_transcript_parser().parse_vtt(text)


def parse_transcript(text: Optional[str]) -> ParseOutcome:
    return get_transcript_parser().parse(text)

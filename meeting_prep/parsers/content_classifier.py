"""
Decide whether an agent answer is usable data or a conversational refusal,
and cut usable answers down to the embedded payload.
"""

import re
from typing import List, Optional

from loguru import logger

from meeting_prep.config import ParsingConfig, get_config
from meeting_prep.models import ClassificationResult
from meeting_prep.utils.markdown_normalizer import (
    extract_fenced_blocks,
    strip_footnote_links,
    strip_id_markers,
)

# "Name: dialogue", "> Name: dialogue", "**Name**: dialogue"
_SPEAKER_LINE_RE = re.compile(
    r"^>?\s*(?:\*\*)?[A-ZÀ-ÖØ-Þa-záéíóúñü][a-záéíóúñüA-ZÀ-ÖØ-Þ\s(),/]+(?:\*\*)?:\s+\S"
)
_LABEL_PREFIX_RE = re.compile(r"^>?\s*(?:\*\*)?")


class ContentClassifier:
    """Refusal detection and payload extraction for agent responses."""

    def __init__(self, config: Optional[ParsingConfig] = None):
        self.config = config or get_config().parsing
        labels = "|".join(re.escape(w) for w in self.config.preamble_metadata_labels)
        self.preamble_label_pattern = re.compile(rf"^(?:{labels})") if labels else None

    def is_refusal(self, text: Optional[str]) -> bool:
        """Short answers, or medium answers carrying a refusal phrase, are refusals.

        Long answers are never refusals: a real transcript may quote such
        phrases in dialogue.
        """
        if not text or len(text) < self.config.refusal_min_length:
            return True
        lower = text.lower()
        if any(phrase in lower for phrase in self.config.refusal_phrases):
            return len(text) < self.config.refusal_max_length
        return False

    def _is_preamble_label(self, line: str) -> bool:
        label = _LABEL_PREFIX_RE.sub("", line).split(":")[0].strip().replace("**", "").lower()
        return bool(self.preamble_label_pattern and self.preamble_label_pattern.match(label))

    def strip_preamble(self, text: Optional[str]) -> str:
        """Drop everything before the first line shaped like a speaker turn.

        Caption text is returned untouched, as is text with no speaker lines.
        """
        if not text:
            return text or ""
        if "-->" in text:
            return text

        lines = text.split("\n")
        for idx, line in enumerate(lines):
            trimmed = line.strip()
            if _SPEAKER_LINE_RE.match(trimmed) and not self._is_preamble_label(trimmed):
                return "\n".join(lines[idx:])
        return text

    def strip_footer(self, text: Optional[str]) -> str:
        """Truncate from the first line carrying a conversational closing phrase."""
        if not text:
            return text or ""

        lines = text.split("\n")
        cut = len(lines)
        for idx, line in enumerate(lines):
            lower = line.strip().lower()
            if any(phrase in lower for phrase in self.config.footer_phrases):
                cut = idx
                break
        return "\n".join(lines[:cut]).rstrip()

    def extract_content(self, text: Optional[str]) -> str:
        """
        Extract the transcript payload from a usable agent response.

        Code-fenced blocks win when present (long transcripts are sometimes
        split across several); otherwise the conversational preamble is
        stripped. Citation markers and footer noise are removed either way.
        """
        if not text:
            return text or ""

        blocks: List[str] = extract_fenced_blocks(text)
        payload = "\n\n".join(blocks) if blocks else text

        payload = strip_footnote_links(strip_id_markers(payload))
        payload = self.strip_preamble(payload)
        payload = self.strip_footer(payload)
        return payload.strip()

    def classify(self, text: Optional[str]) -> ClassificationResult:
        """Classify a response; refusals keep their raw text for display."""
        if self.is_refusal(text):
            logger.info(f"Response classified as refusal ({len(text or '')} chars)")
            return ClassificationResult(is_refusal=True, cleaned_text=(text or "").strip())

        cleaned = self.extract_content(text)
        logger.debug(f"Response cleaned: {len(text)} -> {len(cleaned)} chars")
        return ClassificationResult(is_refusal=False, cleaned_text=cleaned)


# Global classifier instance
_classifier: Optional[ContentClassifier] = None


def get_content_classifier() -> ContentClassifier:
    """Get the global classifier instance."""
    global _classifier
    if _classifier is None:
        _classifier = ContentClassifier()
    return _classifier


def reset_content_classifier():
    """Reset the global classifier instance."""
    global _classifier
    _classifier = None


def is_refusal(text: Optional[str]) -> bool:
    return get_content_classifier().is_refusal(text)


def extract_content(text: Optional[str]) -> str:
    return get_content_classifier().extract_content(text)


def classify_response(text: Optional[str]) -> ClassificationResult:
    return get_content_classifier().classify(text)

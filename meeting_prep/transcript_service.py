"""
Retrieval orchestration: which questions to ask Work IQ, how to retry, and
how to turn the answers into parsed results.
"""

import re
from typing import Callable, Optional, Tuple

import requests
from loguru import logger

from meeting_prep.agent_client import ask as agent_ask
from meeting_prep.config import AgentConfig, get_config
from meeting_prep.errors import AgentError
from meeting_prep.models import MeetingsResult, TranscriptResult
from meeting_prep.parsers.content_classifier import ContentClassifier, get_content_classifier
from meeting_prep.parsers.meeting_assembler import (
    assemble_meetings,
    build_schedule,
    filter_meetings_by_transcript,
)
from meeting_prep.parsers.transcript_parser import TranscriptParser, get_transcript_parser

MEETINGS_QUESTION = (
    "List my online Teams meetings from the last 7 days. "
    "For each meeting, show subject/title, start date/time, end date/time, and organizer. "
    "For dates, use whatever format is available — relative times like 'today at 10:00 AM' "
    "or 'yesterday at 3:00 PM' are fine, or ISO 8601 (e.g. 2026-02-17T09:00:00) if available. "
    "Do NOT write 'Unknown' for dates — always provide the best available time, even if relative. "
    "Return them as a markdown table ordered from newest to oldest."
)

_VERBATIM_INSTRUCTION = (
    'List each speaker turn as "Speaker: what they said". Include all lines from start to finish. '
    "Do not summarize, do not omit lines, and do not use ellipsis."
)

_URL_RE = re.compile(r"https?://[^\s)\]>\"']+", re.IGNORECASE)
_HTML_START_RE = re.compile(r"^\s*<!doctype html", re.IGNORECASE)

DOWNLOAD_ACCEPT = "text/vtt,text/plain,text/*,application/octet-stream,*/*"

SOURCE_WORKIQ = "workiq"
SOURCE_URL_DOWNLOAD = "workiq-url-download"

Asker = Callable[..., str]
Fetcher = Callable[[str], Optional[str]]


def _meeting_ref(subject: str, date: Optional[str]) -> str:
    if date:
        return f'the meeting "{subject}" on {date}'
    return f'the most recent meeting called "{subject}"'


def transcript_questions(subject: str, date: Optional[str] = None) -> list:
    """Three phrasings of the transcript request, tried in order."""
    if date:
        return [
            f'Show me the transcript of the meeting "{subject}" on {date}. {_VERBATIM_INSTRUCTION}',
            f'Get the meeting transcript for "{subject}" on {date}. '
            "Show every line with the speaker name and what they said. Return verbatim text only.",
            f'Retrieve the transcript content of "{subject}" held on {date}. '
            "I need the full conversation with speaker names and no omissions.",
        ]
    return [
        f'Show me the transcript of the most recent meeting called "{subject}". {_VERBATIM_INSTRUCTION}',
        f'Get the meeting transcript for the most recent "{subject}" meeting. '
        "Show every line with the speaker name and what they said. Return verbatim text only.",
        f'Retrieve the transcript content of the most recent "{subject}" meeting. '
        "I need the full conversation with speaker names and no omissions.",
    ]


def location_question(subject: str, date: Optional[str] = None) -> str:
    if date:
        return (f'For the meeting "{subject}" on {date}, provide ONLY the direct transcript '
                "file location (single URL or file path). No explanation.")
    return (f'For the most recent meeting "{subject}", provide ONLY the direct transcript '
            "file location (single URL or file path). No explanation.")


def insights_question(subject: str, date: Optional[str] = None) -> str:
    return f"Give me a summary and key action items from {_meeting_ref(subject, date)}."


def extract_first_url(text: Optional[str]) -> Optional[str]:
    """First http(s) URL in the text, or None."""
    if not text:
        return None
    m = _URL_RE.search(text)
    return m.group(0).strip() if m else None


def download_transcript_text(url: str, timeout: Optional[float] = None) -> Optional[str]:
    """
    Download a transcript file, best effort.

    Returns None for non-2xx responses, empty bodies, HTML pages (portals and
    login screens) and network failures.
    """
    timeout = timeout if timeout is not None else get_config().agent.download_timeout
    try:
        response = requests.get(
            url,
            headers={"Accept": DOWNLOAD_ACCEPT},
            allow_redirects=True,
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning(f"Transcript download failed: {e}")
        return None

    if not response.ok:
        logger.warning(f"Transcript download returned HTTP {response.status_code}")
        return None

    body = response.text
    if not body or not body.strip():
        return None

    content_type = (response.headers.get("content-type") or "").lower()
    if "text/html" in content_type or _HTML_START_RE.match(body) or "<html" in body[:500].lower():
        logger.warning("Transcript download returned an HTML page; ignoring")
        return None

    return body


class TranscriptService:
    """Fetch meetings, transcripts and insights from Work IQ."""

    def __init__(
        self,
        ask: Optional[Asker] = None,
        fetch_url: Optional[Fetcher] = None,
        config: Optional[AgentConfig] = None,
        classifier: Optional[ContentClassifier] = None,
        parser: Optional[TranscriptParser] = None,
    ):
        self._ask = ask or agent_ask
        self._fetch_url = fetch_url or download_transcript_text
        self.config = config or get_config().agent
        self.classifier = classifier or get_content_classifier()
        self.parser = parser or get_transcript_parser()

    def fetch_meetings(self) -> MeetingsResult:
        """Ask for last week's online meetings and parse the answer."""
        unfiltered = self._ask(MEETINGS_QUESTION, self.config.query_timeout)
        logger.info(f"Meetings answer: {len(unfiltered)} chars")
        logger.debug(f"Meetings answer preview: {unfiltered[:500]!r}")

        filtered = filter_meetings_by_transcript(unfiltered)
        if filtered:
            logger.info("Applied transcript availability filter")
        else:
            logger.info("No transcript availability metadata; keeping all meetings")
        answer = filtered or unfiltered

        meetings = assemble_meetings(answer)
        return MeetingsResult(
            raw_text=answer,
            meetings=meetings,
            schedule=build_schedule(meetings),
            filtered_by_transcript=bool(filtered),
            source=SOURCE_WORKIQ,
        )

    def _download_from_location(self, subject: str, date: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
        """Ask where the transcript file lives and try to download it."""
        try:
            location = self._ask(location_question(subject, date), self.config.location_timeout)
        except AgentError as e:
            logger.warning(f"Transcript location query failed: {e.message}")
            return None, None

        url = extract_first_url(location)
        if not url:
            return None, None
        logger.info(f"Trying transcript download from {url}")
        return url, self._fetch_url(url)

    def fetch_transcript(self, subject: str, date: Optional[str] = None) -> TranscriptResult:
        """
        Retrieve a meeting transcript.

        Tries up to three phrasings until Work IQ gives a usable answer. When
        every attempt is refused, asks for the transcript file location and
        downloads it. A persistent refusal is returned as-is for display.
        """
        answer = ""
        attempts = 0
        for attempts, question in enumerate(transcript_questions(subject, date), start=1):
            answer = self._ask(question, self.config.transcript_timeout)
            if answer and not self.classifier.is_refusal(answer):
                break
            logger.info(f"Transcript attempt {attempts} got refusal/empty, retrying")

        if self.classifier.is_refusal(answer):
            url, text = self._download_from_location(subject, date)
            if text:
                return TranscriptResult(
                    text=text,
                    source=SOURCE_URL_DOWNLOAD,
                    transcript_url=url,
                    outcome=self.parser.parse(text),
                    attempts=attempts,
                )
            logger.warning(f"Transcript unavailable for {subject!r} after {attempts} attempts")
            return TranscriptResult(
                text=answer,
                source=SOURCE_WORKIQ,
                transcript_url=url,
                is_refusal=True,
                attempts=attempts,
            )

        cleaned = self.classifier.classify(answer).cleaned_text
        return TranscriptResult(
            text=cleaned,
            source=SOURCE_WORKIQ,
            outcome=self.parser.parse(cleaned),
            attempts=attempts,
        )

    def fetch_insights(self, subject: str, date: Optional[str] = None) -> str:
        return self._ask(insights_question(subject, date), self.config.query_timeout)

    def ask(self, question: str) -> str:
        return self._ask(question, self.config.query_timeout)


# Global service instance
_service: Optional[TranscriptService] = None


def get_transcript_service() -> TranscriptService:
    """Get the global transcript service instance."""
    global _service
    if _service is None:
        _service = TranscriptService()
    return _service


def reset_transcript_service():
    """Reset the global transcript service instance."""
    global _service
    _service = None

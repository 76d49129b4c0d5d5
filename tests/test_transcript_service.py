"""
Tests for retrieval orchestration with a scripted agent.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from meeting_prep.errors import AgentTimeout
from meeting_prep.models import OutcomeKind
from meeting_prep.transcript_service import (
    DOWNLOAD_ACCEPT,
    MEETINGS_QUESTION,
    SOURCE_URL_DOWNLOAD,
    SOURCE_WORKIQ,
    TranscriptService,
    download_transcript_text,
    extract_first_url,
    transcript_questions,
)

REFUSAL = "I'm sorry, I can't provide the verbatim transcript for that meeting."

USABLE = """Here is the transcript:

```text
Ana Ruiz: Welcome to the design review, let's start with the architecture.
Bob Lee: Thanks Ana, I have the diagrams ready.
```

Would you like me to summarize it?"""

VTT = "WEBVTT\n\n00:00:01.000 --> 00:00:03.000\n<v Ana Ruiz>Welcome</v>\n"


class ScriptedAgent:
    """Returns canned answers in order and records the questions asked."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.questions = []
        self.timeouts = []

    def __call__(self, question, timeout=None):
        self.questions.append(question)
        self.timeouts.append(timeout)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class TestQuestions:

    def test_three_phrasings_with_date(self):
        questions = transcript_questions("Design Review", "2026-02-17")
        assert len(questions) == 3
        assert all('"Design Review"' in q and "2026-02-17" in q for q in questions)

    def test_most_recent_without_date(self):
        assert all("most recent" in q for q in transcript_questions("Design Review"))


class TestExtractFirstUrl:

    def test_url_in_prose(self):
        text = "The file lives at (https://contoso.sharepoint.com/sites/x/transcript.vtt). Ask again if needed."
        assert extract_first_url(text) == "https://contoso.sharepoint.com/sites/x/transcript.vtt"

    def test_no_url(self):
        assert extract_first_url("C:\\Users\\ana\\transcript.docx") is None
        assert extract_first_url(None) is None


class TestDownloadTranscriptText:

    def _response(self, ok=True, status=200, text=VTT, content_type="text/vtt"):
        return Mock(ok=ok, status_code=status, text=text, headers={"content-type": content_type})

    def test_downloads_text(self):
        with patch("meeting_prep.transcript_service.requests.get", return_value=self._response()) as get:
            assert download_transcript_text("https://x/t.vtt", timeout=5) == VTT
        _, kwargs = get.call_args
        assert kwargs["headers"] == {"Accept": DOWNLOAD_ACCEPT}
        assert kwargs["timeout"] == 5
        assert kwargs["allow_redirects"] is True

    def test_rejects_html_content_type(self):
        resp = self._response(text="<p>Sign in</p>", content_type="text/html; charset=utf-8")
        with patch("meeting_prep.transcript_service.requests.get", return_value=resp):
            assert download_transcript_text("https://x") is None

    def test_rejects_html_body(self):
        resp = self._response(text="<!DOCTYPE html><html><body>Login</body></html>", content_type="text/plain")
        with patch("meeting_prep.transcript_service.requests.get", return_value=resp):
            assert download_transcript_text("https://x") is None

    def test_rejects_http_error(self):
        resp = self._response(ok=False, status=403)
        with patch("meeting_prep.transcript_service.requests.get", return_value=resp):
            assert download_transcript_text("https://x") is None

    def test_rejects_empty_body(self):
        with patch("meeting_prep.transcript_service.requests.get", return_value=self._response(text="  \n")):
            assert download_transcript_text("https://x") is None

    def test_network_error(self):
        with patch("meeting_prep.transcript_service.requests.get",
                   side_effect=requests.ConnectionError("boom")):
            assert download_transcript_text("https://x") is None


class TestFetchTranscript:

    def test_first_answer_usable(self):
        agent = ScriptedAgent(USABLE)
        result = TranscriptService(ask=agent).fetch_transcript("Design Review", "2026-02-17")
        assert result.source == SOURCE_WORKIQ
        assert not result.is_refusal
        assert result.attempts == 1
        assert result.text.startswith("Ana Ruiz: Welcome")
        assert result.outcome.kind == OutcomeKind.TURNS
        assert result.outcome.speakers == ["Ana Ruiz", "Bob Lee"]
        assert agent.timeouts == [600.0]

    def test_retries_until_usable(self):
        agent = ScriptedAgent(REFUSAL, "", USABLE)
        result = TranscriptService(ask=agent).fetch_transcript("Design Review")
        assert result.attempts == 3
        assert len(agent.questions) == 3
        assert not result.is_refusal

    def test_falls_back_to_url_download(self):
        agent = ScriptedAgent(REFUSAL, REFUSAL, REFUSAL, "https://contoso.sharepoint.com/t.vtt")
        fetch = Mock(return_value=VTT)
        result = TranscriptService(ask=agent, fetch_url=fetch).fetch_transcript("Design Review")

        fetch.assert_called_once_with("https://contoso.sharepoint.com/t.vtt")
        assert result.source == SOURCE_URL_DOWNLOAD
        assert result.transcript_url == "https://contoso.sharepoint.com/t.vtt"
        assert result.outcome.kind == OutcomeKind.VTT
        assert "transcript file location" in agent.questions[-1]
        assert agent.timeouts[-1] == 120.0

    def test_download_failure_returns_refusal_with_url(self):
        agent = ScriptedAgent(REFUSAL, REFUSAL, REFUSAL, "See https://contoso.sharepoint.com/t.vtt")
        result = TranscriptService(ask=agent, fetch_url=Mock(return_value=None)).fetch_transcript("X")
        assert result.is_refusal
        assert result.text == REFUSAL
        assert result.source == SOURCE_WORKIQ
        assert result.transcript_url == "https://contoso.sharepoint.com/t.vtt"
        assert result.outcome is None

    def test_no_location_url(self):
        agent = ScriptedAgent(REFUSAL, REFUSAL, REFUSAL, "I can't share file locations.")
        fetch = Mock()
        result = TranscriptService(ask=agent, fetch_url=fetch).fetch_transcript("X")
        fetch.assert_not_called()
        assert result.is_refusal
        assert result.transcript_url is None

    def test_location_query_failure_is_not_fatal(self):
        agent = ScriptedAgent(REFUSAL, REFUSAL, REFUSAL, AgentTimeout("WorkIQ query timed out"))
        result = TranscriptService(ask=agent).fetch_transcript("X")
        assert result.is_refusal
        assert result.attempts == 3

    def test_transcript_query_failure_propagates(self):
        agent = ScriptedAgent(AgentTimeout("WorkIQ query timed out"))
        with pytest.raises(AgentTimeout):
            TranscriptService(ask=agent).fetch_transcript("X")


class TestFetchMeetings:

    def test_filters_and_parses(self):
        answer = (
            "| Subject | Start | End | Transcript |\n"
            "|---|---|---|---|\n"
            "| Alpha | 2026-02-16T09:00:00 | 2026-02-16T10:00:00 | Yes |\n"
            "| Beta | 2026-02-16T11:00:00 | 2026-02-16T12:00:00 | No |"
        )
        agent = ScriptedAgent(answer)
        result = TranscriptService(ask=agent).fetch_meetings()

        assert agent.questions == [MEETINGS_QUESTION]
        assert result.filtered_by_transcript
        assert [m.subject for m in result.meetings] == ["Alpha"]
        assert "Beta" not in result.raw_text
        assert [d.key for d in result.schedule] == ["2026-02-16"]

    def test_unparseable_answer_kept_verbatim(self):
        answer = "I couldn't find any online meetings in the last 7 days."
        result = TranscriptService(ask=ScriptedAgent(answer)).fetch_meetings()
        assert result.is_verbatim
        assert result.raw_text == answer
        assert not result.filtered_by_transcript


class TestPassThroughs:

    def test_insights_question(self):
        agent = ScriptedAgent("Summary...")
        assert TranscriptService(ask=agent).fetch_insights("Design Review", "2026-02-17") == "Summary..."
        assert agent.questions == [
            'Give me a summary and key action items from the meeting "Design Review" on 2026-02-17.'
        ]

    def test_ask(self):
        agent = ScriptedAgent("42")
        assert TranscriptService(ask=agent).ask("What is the answer?") == "42"
        assert agent.timeouts == [300.0]

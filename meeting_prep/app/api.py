"""
API blueprint for the Meeting Prep Assistant.

Endpoints:
- GET  /api/auth/status
- POST /api/auth/login          (interactive az login)
- POST /api/auth/logout
- GET  /api/meetings            (last 7 days, parsed + day/hour schedule)
- GET  /api/meetings/transcript ?subject=&date=
- GET  /api/meetings/insights   ?subject=&date=
- POST /api/ask                 {question}
- GET  /api/models
- POST /api/generate-plan       {transcript, subject?, model?} -> SSE

Everything except /api/auth/* requires a signed-in Azure CLI account.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator

from flask import Blueprint, Response, jsonify, request, stream_with_context
from loguru import logger

from meeting_prep.auth import get_auth_session
from meeting_prep.errors import MeetingPrepError
from meeting_prep.llm_client import get_llm_client
from meeting_prep.transcript_service import get_transcript_service

api_bp = Blueprint("api", __name__)

_PUBLIC_ENDPOINTS = {"api.auth_status", "api.auth_login", "api.auth_logout"}


@api_bp.before_request
def require_auth():
    if request.endpoint in _PUBLIC_ENDPOINTS or request.method == "OPTIONS":
        return None
    if not get_auth_session().is_authenticated:
        return jsonify({"ok": False, "error": "Not authenticated"}), 401
    return None


def _json_body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _subject_and_date():
    subject = (request.args.get("subject") or "").strip()
    date = (request.args.get("date") or "").strip() or None
    return subject, date


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------

@api_bp.get("/auth/status")
def auth_status():
    return jsonify(get_auth_session().status())


@api_bp.post("/auth/login")
def auth_login():
    name = get_auth_session().login()
    return jsonify({"ok": True, "authenticated": True, "name": name})


@api_bp.route("/auth/logout", methods=["GET", "POST"])
def auth_logout():
    get_auth_session().logout()
    return jsonify({"ok": True, "message": "Logged out."})


# ----------------------------------------------------------------------
# Work IQ
# ----------------------------------------------------------------------

@api_bp.get("/meetings")
def api_meetings():
    result = get_transcript_service().fetch_meetings()
    return jsonify({
        "ok": True,
        "text": result.raw_text,
        "source": result.source,
        "filtered": result.filtered_by_transcript,
        "verbatim": result.is_verbatim,
        "meetings": [{**m.model_dump(mode="json"), "queryDate": m.query_date} for m in result.meetings],
        "schedule": [{**d.model_dump(mode="json"), "isUnknown": d.is_unknown} for d in result.schedule],
    })


@api_bp.get("/meetings/transcript")
def api_transcript():
    subject, date = _subject_and_date()
    if not subject:
        return jsonify({"ok": False, "error": "Missing 'subject' query parameter"}), 400

    result = get_transcript_service().fetch_transcript(subject, date)
    outcome = result.outcome
    return jsonify({
        "ok": True,
        "text": result.text,
        "plainText": outcome.to_plain_text() if outcome else result.text,
        "speakers": outcome.speakers if outcome else [],
        "verbatim": outcome.is_verbatim if outcome else True,
        "source": result.source,
        "transcriptUrl": result.transcript_url,
        "isRefusal": result.is_refusal,
        "attempts": result.attempts,
        "outcome": outcome.model_dump(mode="json") if outcome else None,
    })


@api_bp.get("/meetings/insights")
def api_insights():
    subject, date = _subject_and_date()
    if not subject:
        return jsonify({"ok": False, "error": "Missing 'subject' query parameter"}), 400
    text = get_transcript_service().fetch_insights(subject, date)
    return jsonify({"ok": True, "text": text, "source": "workiq"})


@api_bp.post("/ask")
def api_ask():
    question = (_json_body().get("question") or "").strip()
    if not question:
        return jsonify({"ok": False, "error": "Missing 'question' in request body"}), 400
    text = get_transcript_service().ask(question)
    return jsonify({"ok": True, "text": text, "source": "workiq"})


# ----------------------------------------------------------------------
# Plan generation
# ----------------------------------------------------------------------

@api_bp.get("/models")
def api_models():
    return jsonify({"ok": True, "models": get_llm_client().list_models()})


def _sse(payload: Any) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


def plan_event_stream(transcript: str, subject: str | None, model: str | None) -> Iterator[str]:
    """OpenAI-compatible SSE frames, always terminated by ``data: [DONE]``."""
    try:
        for delta in get_llm_client().stream_plan(transcript, subject, model):
            yield _sse({"choices": [{"delta": {"content": delta}}]})
    except MeetingPrepError as e:
        yield _sse({"error": e.details or e.message})
    yield _sse("[DONE]")


@api_bp.post("/generate-plan")
def api_generate_plan():
    body = _json_body()
    transcript = body.get("transcript") or ""
    if not transcript.strip():
        return jsonify({"ok": False, "error": "Missing transcript in request body"}), 400

    subject = body.get("subject") or None
    model = body.get("model") or None
    logger.info(f"Plan requested: subject={subject!r}, transcriptLen={len(transcript)}")

    return Response(
        stream_with_context(plan_event_stream(transcript, subject, model)),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )

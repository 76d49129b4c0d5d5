"""
Flask application factory for the Meeting Prep Assistant.
Sets up: Config, CORS, API blueprint, error handlers and health endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_cors import CORS
from loguru import logger

from meeting_prep.config import AppConfig, get_config
from meeting_prep.errors import MeetingPrepError


def create_app(config_object: AppConfig | None = None) -> Flask:
    """
    Flask application factory.
    """
    cfg = config_object or get_config()
    app = Flask(__name__)

    app.config.update(
        JSON_SORT_KEYS=False,
        MEETING_PREP=cfg,
    )

    CORS(app, resources={r"/api/*": {"origins": cfg.web.cors_origins}})

    # Register API blueprint
    from .api import api_bp  # defer import until app exists
    app.register_blueprint(api_bp, url_prefix="/api")

    @app.errorhandler(MeetingPrepError)
    def handle_app_error(err: MeetingPrepError):
        logger.error(f"{type(err).__name__}: {err.message} ({err.details})")
        return jsonify({"ok": False, **err.to_dict()}), err.status_code

    # Health endpoint
    @app.get("/health")
    def health():
        return jsonify(
            {
                "status": "ok",
                "time": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "model": cfg.llm.model,
                "workiq": cfg.agent.command,
            }
        )

    logger.info(f"App initialized. Health at /health. model={cfg.llm.model}")
    return app

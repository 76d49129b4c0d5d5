"""
Shared fixtures: every test starts from default configuration and fresh
module-level singletons.
"""

from pathlib import Path

import pytest

from meeting_prep.agent_client import reset_agent_client
from meeting_prep.auth import reset_auth_session
from meeting_prep.config import AppConfig, reset_config, set_config
from meeting_prep.llm_client import reset_llm_client
from meeting_prep.parsers.content_classifier import reset_content_classifier
from meeting_prep.parsers.transcript_parser import reset_transcript_parser
from meeting_prep.transcript_service import reset_transcript_service

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _reset_all():
    reset_config()
    reset_transcript_parser()
    reset_content_classifier()
    reset_agent_client()
    reset_transcript_service()
    reset_auth_session()
    reset_llm_client()


@pytest.fixture(autouse=True)
def default_config():
    _reset_all()
    config = AppConfig()
    set_config(config)
    yield config
    _reset_all()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR

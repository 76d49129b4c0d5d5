"""
Tests for configuration loading and validation.
"""

import pytest
from pydantic import ValidationError

from meeting_prep.config import (
    AppConfig,
    LLMConfig,
    ParsingConfig,
    get_config,
    reset_config,
    set_config,
)


class TestDefaults:

    def test_parsing_defaults(self):
        config = ParsingConfig()
        assert config.refusal_min_length == 100
        assert config.refusal_max_length == 1000
        assert config.business_hours == (8, 18)
        assert "i can't provide" in config.refusal_phrases

    def test_agent_timeouts(self):
        agent = AppConfig().agent
        assert agent.args == ["mcp"]
        assert agent.query_timeout == 300.0
        assert agent.transcript_timeout == 600.0
        assert agent.location_timeout == 120.0


class TestValidation:

    def test_refusal_window(self):
        with pytest.raises(ValidationError):
            ParsingConfig(refusal_min_length=500, refusal_max_length=100)

    def test_business_hours(self):
        with pytest.raises(ValidationError):
            ParsingConfig(business_hours=(18, 8))
        with pytest.raises(ValidationError):
            ParsingConfig(business_hours=(0, 25))

    def test_api_key_falls_back_to_github_token(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        assert LLMConfig().api_key == "ghp_test"


class TestLoading:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("WORKIQ_PATH", "/opt/workiq/bin/workiq")
        monkeypatch.setenv("MEETING_PREP_TRANSCRIPT_TIMEOUT", "900")
        monkeypatch.setenv("MEETING_PREP_REFUSAL_MAX_LENGTH", "2000")
        monkeypatch.setenv("MEETING_PREP_PORT", "8080")
        monkeypatch.setenv("MEETING_PREP_DEBUG", "true")

        config = AppConfig.from_env()
        assert config.agent.command == "/opt/workiq/bin/workiq"
        assert config.agent.transcript_timeout == 900.0
        assert config.parsing.refusal_max_length == 2000
        assert config.web.port == 8080
        assert config.web.debug is True

    def test_from_env_ignores_bad_numbers(self, monkeypatch):
        monkeypatch.setenv("MEETING_PREP_PORT", "not-a-port")
        assert AppConfig.from_env().web.port == 3000

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "parsing:\n"
            "  refusal_min_length: 50\n"
            "  speaker_marker_prefixes: [De, From]\n"
            "agent:\n"
            "  command: /usr/local/bin/workiq\n"
        )
        config = AppConfig.from_yaml(path)
        assert config.parsing.refusal_min_length == 50
        assert config.parsing.speaker_marker_prefixes == ["De", "From"]
        assert config.agent.command == "/usr/local/bin/workiq"

    def test_to_dict_masks_api_key(self):
        config = AppConfig(llm=LLMConfig(api_key="secret"))
        assert config.to_dict()["llm"]["api_key"] is True


class TestGlobalConfig:

    def test_set_and_reset(self):
        custom = AppConfig()
        set_config(custom)
        assert get_config() is custom
        reset_config()
        assert get_config() is not custom

"""
Configuration management for the Meeting Prep Assistant.
"""

import os
import sys
from typing import Dict, Any, Optional, List, Tuple
from pathlib import Path
from pydantic import BaseModel, Field, validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _default_workiq_command() -> str:
    if sys.platform == "win32":
        return str(Path.home() / "AppData" / "Roaming" / "npm" / "workiq.cmd")
    return "workiq"


class ParsingConfig(BaseModel):
    """Heuristic thresholds and word lists for parsing agent responses.

    The defaults were tuned against Work IQ's observed output style.
    """
    # Refusal detection
    refusal_min_length: int = 100
    refusal_max_length: int = 1000
    refusal_phrases: List[str] = Field(
        default_factory=lambda: [
            "i can't provide",
            "i cannot provide",
            "unable to provide",
            "unable to retrieve",
            "no transcript available",
            "transcript is not available",
            "don't have access to the transcript",
        ]
    )
    # Conversational closings that mark the start of footer noise
    footer_phrases: List[str] = Field(
        default_factory=lambda: [
            "meeting details confirmed",
            "if you want, i can",
            "just tell me how",
            "do you want me to",
            "would you like me to",
            "fastest way to get",
            "why i can't",
            "what i can access",
        ]
    )
    # Labels that look like "Label: value" but are document headings, not speakers
    metadata_labels: List[str] = Field(
        default_factory=lambda: [
            "meeting", "time", "date", "organizer", "subject", "start", "end",
            "transcribed", "transcript", "what", "why", "fastest", "note", "important",
        ]
    )
    preamble_metadata_labels: List[str] = Field(
        default_factory=lambda: [
            "meeting", "time", "date", "organizer", "subject", "start", "end",
            "note", "important", "below", "here",
        ]
    )
    # Localized "speaker announcement" lines, e.g. "De: Nombre Apellido."
    speaker_marker_prefixes: List[str] = Field(default_factory=lambda: ["De"])
    speaker_marker_stopwords: List[str] = Field(
        default_factory=lambda: ["tipo", "que", "lo", "es", "la", "el", "por", "si", "se", "un", "no"]
    )
    max_speaker_label_length: int = 60
    # Schedule view
    business_hours: Tuple[int, int] = (8, 18)
    default_meeting_minutes: int = 60

    @validator('refusal_max_length')
    def validate_refusal_window(cls, v, values):
        minimum = values.get('refusal_min_length', 0)
        if v < minimum:
            raise ValueError('refusal_max_length must be >= refusal_min_length')
        return v

    @validator('business_hours')
    def validate_business_hours(cls, v):
        start, end = v
        if not (0 <= start < end <= 24):
            raise ValueError('business_hours must satisfy 0 <= start < end <= 24')
        return v


class AgentConfig(BaseModel):
    """Configuration for the Work IQ agent process."""
    command: str = Field(default_factory=_default_workiq_command)
    args: List[str] = Field(default_factory=lambda: ["mcp"])
    protocol_version: str = "2024-11-05"
    client_name: str = "meeting-prep-assistant"
    client_version: str = "1.0.0"
    query_timeout: float = 300.0       # 5 minutes
    transcript_timeout: float = 600.0  # long transcripts take a while
    location_timeout: float = 120.0
    download_timeout: float = 60.0


class LLMConfig(BaseModel):
    """Configuration for the plan-generation model endpoint."""
    model: str = Field(default="gpt-4.1")
    api_key: Optional[str] = None
    api_base: str = "https://models.inference.ai.azure.com"
    max_tokens: int = 8000
    temperature: float = 0.4
    timeout: int = 120

    @validator('api_key', always=True)
    def validate_api_key(cls, v):
        # Defer hard validation to runtime LLM calls so the app can boot without a key
        if v:
            return v
        return os.getenv('GITHUB_TOKEN') or os.getenv('OPENAI_API_KEY')

    @validator('model')
    def validate_model(cls, v):
        if not v:
            v = os.getenv('MEETING_PREP_MODEL', 'gpt-4.1')
        return v


class AuthConfig(BaseModel):
    """Configuration for the Azure CLI identity session."""
    az_command: str = "az"
    check_timeout: float = 15.0
    login_timeout: float = 120.0
    logout_timeout: float = 10.0


class WebConfig(BaseModel):
    """Configuration for web application."""
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    cors_origins: str = "*"


class AppConfig(BaseSettings):
    """Main application configuration."""
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        env_prefix = 'MEETING_PREP_'
        extra = 'ignore'

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Create configuration from environment variables."""
        config = cls()

        if os.getenv('WORKIQ_PATH'):
            config.agent.command = os.getenv('WORKIQ_PATH')

        for key_env, attr in [
            ('MEETING_PREP_QUERY_TIMEOUT', 'query_timeout'),
            ('MEETING_PREP_TRANSCRIPT_TIMEOUT', 'transcript_timeout'),
            ('MEETING_PREP_LOCATION_TIMEOUT', 'location_timeout'),
            ('MEETING_PREP_DOWNLOAD_TIMEOUT', 'download_timeout'),
        ]:
            if os.getenv(key_env):
                try:
                    setattr(config.agent, attr, float(os.getenv(key_env)))
                except ValueError:
                    pass

        for key_env, attr in [
            ('MEETING_PREP_REFUSAL_MIN_LENGTH', 'refusal_min_length'),
            ('MEETING_PREP_REFUSAL_MAX_LENGTH', 'refusal_max_length'),
        ]:
            if os.getenv(key_env):
                try:
                    setattr(config.parsing, attr, int(os.getenv(key_env)))
                except ValueError:
                    pass

        if os.getenv('MEETING_PREP_MODEL'):
            config.llm.model = os.getenv('MEETING_PREP_MODEL')
        if os.getenv('MEETING_PREP_API_BASE'):
            config.llm.api_base = os.getenv('MEETING_PREP_API_BASE')

        if os.getenv('MEETING_PREP_HOST'):
            config.web.host = os.getenv('MEETING_PREP_HOST')
        if os.getenv('MEETING_PREP_PORT'):
            try:
                config.web.port = int(os.getenv('MEETING_PREP_PORT'))
            except ValueError:
                pass
        if os.getenv('MEETING_PREP_DEBUG'):
            config.web.debug = os.getenv('MEETING_PREP_DEBUG').lower() == 'true'

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> 'AppConfig':
        """Create configuration from YAML file."""
        import yaml

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, without secrets."""
        llm = self.llm.dict()
        llm['api_key'] = bool(llm.get('api_key'))
        return {
            'parsing': self.parsing.dict(),
            'agent': self.agent.dict(),
            'llm': llm,
            'auth': self.auth.dict(),
            'web': self.web.dict(),
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None

"""
Typed errors for the I/O collaborators.

Parsers never raise for malformed text; only the agent process, the identity
session and the model endpoint surface failures.
"""


class MeetingPrepError(Exception):
    """Base class for all application errors."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details or self.message}


class AgentError(MeetingPrepError):
    """Base class for Work IQ agent failures."""


class AgentUnavailable(AgentError):
    """The agent process could not be started or reached."""


class AgentTimeout(AgentError):
    """The agent did not answer before the deadline."""

    status_code = 504


class AgentProtocolError(AgentError):
    """The agent answered with an error or with malformed framing."""

    status_code = 502


class AuthenticationError(MeetingPrepError):
    """No signed-in Azure CLI identity."""

    status_code = 401


class PlanGenerationError(MeetingPrepError):
    """The model endpoint failed while generating a plan."""

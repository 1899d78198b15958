"""Voice agent error taxonomy.

Each error carries the fixed message spoken to the caller. Raw exception text
is logged, never spoken.
"""
from typing import List, Optional


class VoiceAgentError(Exception):
    """Base class for errors surfaced to a caller as a spoken message."""

    spoken_message = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.spoken_message)
        self.detail = detail


class AuthenticationFailed(VoiceAgentError):
    """Access code missing, inactive or expired."""

    spoken_message = "I couldn't verify that access code."


class SessionExpired(VoiceAgentError):
    """A turn arrived for an unknown or already completed call."""

    spoken_message = "Your session has expired. Please call again."


class UnresolvedIntent(VoiceAgentError):
    """No classifier rule matched the utterance."""

    spoken_message = (
        "I'm sorry, I didn't quite understand that. You can say: update my skills, "
        "find a mentor, schedule a session, check opportunities, view events, "
        "or send a message."
    )


class AmbiguousReference(VoiceAgentError):
    """An ordinal or name reference matched no remembered candidate."""

    spoken_message = "I couldn't identify that selection. Please try again."


class ExecutionFailed(VoiceAgentError):
    """A domain gateway call failed."""

    status_code: Optional[int] = None

    @staticmethod
    def from_status(status_code: Optional[int], detail: Optional[str] = None) -> "ExecutionFailed":
        """Map an HTTP-style status code onto the matching subclass."""
        if status_code == 401:
            return Unauthorized(detail)
        if status_code == 403:
            return Forbidden(detail)
        if status_code == 429:
            return RateLimited(detail)
        error = Transient(detail)
        error.status_code = status_code
        return error


class Unauthorized(ExecutionFailed):
    status_code = 401
    spoken_message = "It looks like your session has expired. Please log in again."


class Forbidden(ExecutionFailed):
    status_code = 403
    spoken_message = "You don't have permission to perform that action."


class RateLimited(ExecutionFailed):
    status_code = 429
    spoken_message = "The system is busy right now. Let me try again in a moment."


class Transient(ExecutionFailed):
    spoken_message = (
        "I encountered an issue processing that request. Please try again in a moment."
    )


class UnknownToolError(ValueError):
    """Tool name is not part of the shared action surface."""

    def __init__(self, tool_name: str, available_tools: List[str]):
        super().__init__(f"Unknown tool_name: {tool_name}")
        self.tool_name = tool_name
        self.available_tools = available_tools


class ConcurrentTurnError(RuntimeError):
    """Another turn for the same call saved the session first."""

    def __init__(self, call_id: str):
        super().__init__(f"Concurrent update for call {call_id}")
        self.call_id = call_id

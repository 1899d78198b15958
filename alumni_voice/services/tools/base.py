"""Domain gateway interfaces."""
from abc import ABC, abstractmethod
from typing import Any, Dict

AVAILABLE_TOOLS = [
    "authenticate_user",
    "find_mentors",
    "update_skills",
    "check_opportunities",
    "check_events",
    "schedule_mentorship",
    "send_message",
    "rsvp_event",
    "get_profile",
]

# Endpoint recorded in the audit log for each tool
TOOL_ENDPOINTS = {
    "authenticate_user": "GET /voice_access_codes",
    "find_mentors": "GET /profiles?is_mentor=true",
    "update_skills": "PUT /profiles/{user_id}",
    "check_opportunities": "GET /opportunities?is_active=true",
    "check_events": "GET /events?upcoming=true",
    "schedule_mentorship": "POST /events",
    "send_message": "POST /messages",
    "rsvp_event": "POST /event_rsvps",
    "get_profile": "GET /profiles/{user_id}",
    "create_post": "POST /posts",
}


class DomainGateway(ABC):
    """Single named-tool entry point shared by every conversation transport."""

    @abstractmethod
    async def invoke(self, tool_name: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool and return its JSON-style result.

        Raises ExecutionFailed subclasses for transport-level failures and
        UnknownToolError for names outside AVAILABLE_TOOLS.
        """
        pass


class ContentStore(ABC):
    """Direct write path for feed posts."""

    @abstractmethod
    async def create_post(self, user_id: str, content: str) -> Dict[str, Any]:
        """Publish a post and return the stored row as a dict."""
        pass

"""Per-conversation memory used to resolve follow-up references."""
from typing import List, Optional
from pydantic import BaseModel


class MentorRef(BaseModel):
    """Mentor offered to the caller in the most recent mentor list."""

    name: str
    user_id: str
    skills: str = ""
    designation: Optional[str] = None
    company: Optional[str] = None


class OpportunityRef(BaseModel):
    """Opportunity offered to the caller."""

    title: str
    company: str


class EventRef(BaseModel):
    """Event offered to the caller."""

    title: str
    id: str
    date: str


class ConversationMemory(BaseModel):
    """Conversation memory.

    Lists hold only the most recent result set of each kind so that ordinal
    references ("the second mentor") resolve against what the caller just heard.
    ``skills_added`` accumulates for the life of the conversation.
    """

    user_id: Optional[str] = None
    user_name: Optional[str] = None
    last_mentors: List[MentorRef] = []
    last_opportunities: List[OpportunityRef] = []
    last_events: List[EventRef] = []
    last_topic: Optional[str] = None
    skills_added: List[str] = []

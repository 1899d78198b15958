"""Rule-based intent classifier.

Rules are tried in table order and the first matching pattern wins, even when
a later rule would also match. Keep that in mind before reordering INTENT_RULES.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Pattern, Sequence

from pydantic import BaseModel

from alumni_voice.services.intent.memory import ConversationMemory

logger = logging.getLogger(__name__)

Extractor = Callable[[str, ConversationMemory], Dict[str, Any]]

MENTOR_ORDINALS = {
    "first": 0, "1st": 0,
    "second": 1, "2nd": 1,
    "third": 2, "3rd": 2,
    "fourth": 3, "4th": 3,
    "fifth": 4, "5th": 4,
}

EVENT_ORDINALS = {
    "first": 0, "1st": 0,
    "second": 1, "2nd": 1,
    "third": 2, "3rd": 2,
}

SKILL_SEPARATORS = re.compile(r",|\band\b|\+", re.IGNORECASE)

SEND_MESSAGE_DETAIL_PATTERNS = (
    re.compile(
        r"(?:send|write)\s+(?:a\s+)?message\s+to\s+(\w[\w\s]*?)(?:\s+saying\s+|\s+that\s+)(.+)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:tell|message)\s+(\w[\w\s]*?)\s+(?:that\s+|to\s+)(.+)", re.IGNORECASE),
)


class IntentRecord(BaseModel):
    """Classifier output for one utterance."""

    intent: str
    params: Dict[str, Any] = {}


@dataclass(frozen=True)
class IntentRule:
    """One row of the classifier table."""

    intent: str
    patterns: Sequence[Pattern[str]]
    extract: Extractor


def _compile(*patterns: str) -> List[Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


def extract_skills(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    skills = [s.strip() for s in SKILL_SEPARATORS.split(match)]
    return {"new_skills": [s for s in skills if s]}


def extract_skill_area(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    skill_area = match.strip()
    return {"skill_area": skill_area or None}


def extract_nothing(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    return {}


def resolve_mentor(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    """Resolve a mentor by ordinal, then by name, against the last mentor list."""
    text = match.strip().lower()
    for word, idx in MENTOR_ORDINALS.items():
        if word in text and idx < len(memory.last_mentors):
            mentor = memory.last_mentors[idx]
            return {"mentor_user_id": mentor.user_id, "mentor_name": mentor.name}

    for mentor in memory.last_mentors:
        if mentor.name.lower() in text:
            return {"mentor_user_id": mentor.user_id, "mentor_name": mentor.name}

    return {"mentor_name": match.strip()}


def extract_message(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    # Refined by a second pass over the full utterance in classify()
    return {"recipient_name": match, "message": ""}


def resolve_event(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    """Resolve an event by ordinal, defaulting to the first remembered event."""
    text = match.strip().lower()
    for word, idx in EVENT_ORDINALS.items():
        if word in text and idx < len(memory.last_events):
            return {"event_id": memory.last_events[idx].id}
    if memory.last_events:
        return {"event_id": memory.last_events[0].id}
    return {}


def extract_content(match: str, memory: ConversationMemory) -> Dict[str, Any]:
    return {"content": match.strip()}


INTENT_RULES: List[IntentRule] = [
    IntentRule(
        intent="update_skills",
        patterns=_compile(
            r"(?:i\s+(?:learned|know|added|picked up|studied|completed))\s+(.+)",
            r"(?:add|update)\s+(?:my\s+)?skills?\s*(?:to|with|:)?\s*(.+)",
            r"(?:new skills?)\s*(?::|are|is)?\s*(.+)",
        ),
        extract=extract_skills,
    ),
    IntentRule(
        intent="find_mentors",
        patterns=_compile(
            r"(?:find|search|show|get|look for)\s+(?:me\s+)?(?:a\s+)?mentors?\s*(?:for|in|about|on)?\s*(.*)",
            r"(?:mentor|mentors)\s+(?:for|in|about)\s+(.+)",
            r"who\s+(?:can\s+)?(?:mentor|teach|help)\s+(?:me\s+)?(?:in|with|about)?\s*(.*)",
        ),
        extract=extract_skill_area,
    ),
    IntentRule(
        intent="check_opportunities",
        patterns=_compile(
            r"(?:show|find|search|get|list|check)\s+(?:me\s+)?(?:the\s+)?(?:latest\s+)?"
            r"(?:opportunities|jobs?|internships?|positions?|openings?)",
            r"(?:any|are there)\s+(?:new\s+)?(?:opportunities|jobs?|internships?)",
        ),
        extract=extract_nothing,
    ),
    IntentRule(
        intent="check_events",
        patterns=_compile(
            r"(?:show|find|list|check|get|what)\s+(?:me\s+)?(?:the\s+)?(?:upcoming\s+)?"
            r"(?:events?|meetups?|webinars?|workshops?)",
            r"(?:any|are there)\s+(?:upcoming\s+)?(?:events?|meetups?)",
        ),
        extract=extract_nothing,
    ),
    IntentRule(
        intent="schedule_mentorship",
        patterns=_compile(
            r"(?:schedule|book|set up|arrange)\s+(?:a\s+)?(?:session|meeting|mentorship|call)\s+(?:with)\s+(.+)",
            r"(?:schedule|book)\s+(?:with\s+)?(?:the\s+)?(?:(\w+)\s+)?mentor",
            r"(?:connect|meet)\s+(?:with\s+)?(?:the\s+)?(?:(\w+)\s+)?mentor",
        ),
        extract=resolve_mentor,
    ),
    IntentRule(
        intent="send_message",
        patterns=_compile(
            r"(?:send|write)\s+(?:a\s+)?message\s+to\s+(\w[\w\s]*?)(?:\s+saying|\s+that)?\s+(.+)",
            r"(?:tell|message)\s+(\w[\w\s]*?)\s+(?:that|to)\s+(.+)",
        ),
        extract=extract_message,
    ),
    IntentRule(
        intent="rsvp_event",
        patterns=_compile(
            r"(?:rsvp|register|sign up|attend)\s+(?:to|for)\s+(?:the\s+)?(?:(\w+)\s+)?event",
            r"(?:join|attend)\s+(?:the\s+)?(?:(\w+)\s+)?(?:event|meetup|webinar)",
        ),
        extract=resolve_event,
    ),
    IntentRule(
        intent="get_profile",
        patterns=_compile(
            r"(?:show|get|what(?:'s| is))\s+(?:my\s+)?profile",
            r"(?:my\s+)?(?:profile|info|details|information)",
        ),
        extract=extract_nothing,
    ),
    IntentRule(
        intent="create_post",
        patterns=_compile(
            r"(?:post|share|publish)\s+(?:that|about)?\s*(.+)",
            r"(?:create|make)\s+(?:a\s+)?(?:social\s+)?post\s+(?:about|saying|that)?\s*(.+)",
        ),
        extract=extract_content,
    ),
]


def _captured(match: "re.Match[str]") -> str:
    """First capture group when it took part in the match, else the whole match."""
    if match.re.groups and match.group(1) is not None:
        return match.group(1)
    return match.group(0)


class IntentClassifier:
    """Maps free-form utterances to intents using an ordered rule table."""

    def __init__(self, rules: Optional[Sequence[IntentRule]] = None):
        self.rules = list(rules) if rules is not None else INTENT_RULES

    def classify(self, utterance: str, memory: ConversationMemory) -> Optional[IntentRecord]:
        """Return the first matching intent with extracted params, or None."""
        if not utterance or not utterance.strip():
            return None

        for rule in self.rules:
            for pattern in rule.patterns:
                match = pattern.search(utterance)
                if not match:
                    continue

                params = rule.extract(_captured(match), memory)
                if rule.intent == "send_message":
                    params = self._refine_message(utterance, params)

                logger.debug(
                    f"[CLASSIFIER] '{utterance[:80]}' -> {rule.intent} "
                    f"(pattern: {pattern.pattern[:40]}...), params: {params}"
                )
                return IntentRecord(intent=rule.intent, params=params)

        logger.debug(f"[CLASSIFIER] No intent matched for '{utterance[:80]}'")
        return None

    @staticmethod
    def _refine_message(utterance: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Second, stricter pass to split recipient and message.

        When it fails the first-pass params are kept as they are (recipient_name
        holds the captured text, message is empty).
        """
        for pattern in SEND_MESSAGE_DETAIL_PATTERNS:
            detail = pattern.search(utterance)
            if detail:
                return {
                    "recipient_name": detail.group(1).strip(),
                    "message": detail.group(2).strip(),
                }
        return params

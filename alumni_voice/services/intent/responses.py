"""Spoken response formatters, one per intent."""
from typing import Any, Callable, Dict

SPOKEN_LIST_LIMIT = 3
POST_PREVIEW_LENGTH = 60

Formatter = Callable[[Dict[str, Any], Dict[str, Any]], str]


def format_find_mentors(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    mentors = data.get("mentors") or []
    if not mentors:
        return "I couldn't find any mentors matching that criteria right now."
    mentor_list = ". ".join(f"{m['name']}, {m['designation']} at {m['company']}" for m in mentors)
    return (
        f"I found {len(mentors)} mentors. {mentor_list}. "
        f"Would you like to schedule a session with any of them?"
    )


def format_update_skills(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    return data.get("message") or "Your skills have been updated successfully."


def format_check_opportunities(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    opportunities = data.get("opportunities") or []
    if not opportunities:
        return "There are no active opportunities right now."
    opp_list = ". ".join(f"{o['title']} at {o['company']}" for o in opportunities[:SPOKEN_LIST_LIMIT])
    return f"Here are some opportunities: {opp_list}."


def format_check_events(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    events = data.get("events") or []
    if not events:
        return "There are no upcoming events at the moment."
    event_list = ". ".join(f"{e['title']} on {e['date']}" for e in events[:SPOKEN_LIST_LIMIT])
    return f"Upcoming events: {event_list}. Would you like to RSVP for any?"


def format_schedule_mentorship(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    return data.get("message") or (
        f"Mentorship session with {params.get('mentor_name') or 'the mentor'} has been scheduled."
    )


def format_send_message(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    return data.get("message") or f"Message sent to {params.get('recipient_name')}."


def format_rsvp_event(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    return data.get("message") or "You've been registered for the event."


def format_get_profile(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    profile = data.get("profile")
    if not profile:
        return "I couldn't load your profile."
    skills = ", ".join(profile.get("skills") or []) or "none listed"
    return (
        f"Here's your profile. Name: {profile.get('full_name')}. "
        f"Company: {profile.get('company') or 'not set'}. "
        f"Skills: {skills}. "
        f"Engagement score: {profile.get('engagement_score') or 0}."
    )


def format_create_post(data: Dict[str, Any], params: Dict[str, Any]) -> str:
    content = params.get("content") or ""
    preview = content[:POST_PREVIEW_LENGTH]
    if len(content) > POST_PREVIEW_LENGTH:
        preview += "..."
    return f'Your post has been published: "{preview}"'


FORMATTERS: Dict[str, Formatter] = {
    "find_mentors": format_find_mentors,
    "update_skills": format_update_skills,
    "check_opportunities": format_check_opportunities,
    "check_events": format_check_events,
    "schedule_mentorship": format_schedule_mentorship,
    "send_message": format_send_message,
    "rsvp_event": format_rsvp_event,
    "get_profile": format_get_profile,
    "create_post": format_create_post,
}


def generate_response(intent: str, data: Dict[str, Any], params: Dict[str, Any]) -> str:
    """Turn a tool result into the sentence spoken to the caller."""
    formatter = FORMATTERS.get(intent)
    if formatter is None:
        return data.get("message") or "Done."
    return formatter(data or {}, params)

"""Prompts and spoken-word indicators used by the call state machine."""
import re

# Caller wants to end the call
FAREWELL_PATTERN = re.compile(
    r"\b(?:bye|goodbye|good bye|thank you|thanks|that's all|that is all|end the call|hang up)\b",
    re.IGNORECASE,
)

# Skills request with nothing to add yet
BARE_SKILLS_PATTERN = re.compile(
    r"^\W*(?:please\s+)?(?:add|update)\s+(?:my\s+)?skills?\W*$",
    re.IGNORECASE,
)

# Caller agrees to schedule
CONFIRMATION_INDICATORS = [
    "yes",
    "yeah",
    "sure",
    "okay",
    "ok",
    "please do",
]

SELECTION_ORDINALS = {
    "first": 1, "one": 1,
    "second": 2, "two": 2,
    "third": 3, "three": 3,
    "fourth": 4, "four": 4,
    "fifth": 5, "five": 5,
}

GREETING_PROMPT = (
    "Welcome to {platform}. I am your AI operator. "
    "Please speak or enter your {digits}-digit access code to authenticate."
)
AUTH_RETRY_PROMPT = "Let me try again. Please speak or enter your access code."
AUTHENTICATED_PROMPT = (
    "Welcome back, {name}. You are now authenticated. How can I help you today? "
    "You can say things like: update my skills, find a mentor, schedule a session, "
    "check opportunities, or send a message."
)
ANYTHING_ELSE_PROMPT = "Is there anything else I can help you with?"
DECLINE_PROMPT = "No problem. Is there anything else I can help you with?"
SELECTED_MENTOR_PROMPT = (
    "You've selected {name}. Would you like to schedule a mentorship session with them? Say yes or no."
)
WHICH_MENTOR_PROMPT = "Which mentor number?"
TIME_CAPTURE_PROMPT = (
    "When would you like to schedule the session? "
    "Please say the day and time, for example, tomorrow at 3 PM."
)
MESSAGE_CAPTURE_PROMPT = "What message would you like to send to {name}?"
SKILLS_CAPTURE_PROMPT = "Please tell me the skills you'd like to add."
FAREWELL_PROMPT = "Thank you for using the {platform}. Have a great day!"

NO_CODE_GOODBYE = "I didn't receive an access code. Goodbye."
AUTH_FAILED_GOODBYE = "Authentication failed. Goodbye."
NO_INPUT_GOODBYE = "I didn't hear anything. Goodbye."

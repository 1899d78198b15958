"""Call lifecycle enumerations."""
from enum import Enum


class CallStatus(str, Enum):
    """Lifecycle status of a call session."""

    INITIATED = "initiated"  # Created, no turn processed yet (outbound calls)
    GREETING = "greeting"  # Greeting played, waiting for an access code
    AUTHENTICATING = "authenticating"  # Access code lookup in progress
    AUTHENTICATED = "authenticated"  # Caller identified, capabilities offered
    AUTH_FAILED = "auth_failed"  # Last code rejected, retry allowed
    IN_INTENT = "in_intent"  # Intent loop running
    COMPLETED = "completed"  # Terminal

    def __str__(self) -> str:
        """Return the string value of the status."""
        return self.value


class CallType(str, Enum):
    """How the call was started."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    REMINDER = "reminder"
    BROWSER = "browser"

    def __str__(self) -> str:
        return self.value


class InputHint(str, Enum):
    """What kind of input the transport should gather next."""

    SPEECH = "speech"
    ACCESS_CODE = "access_code"
    SELECTION = "selection"

    def __str__(self) -> str:
        return self.value


# Statuses in which a caller identity must be present
AUTHENTICATED_STATUSES = (CallStatus.AUTHENTICATED, CallStatus.IN_INTENT)

# Statuses in which the next input is treated as an access code
AUTH_STATUSES = (
    CallStatus.INITIATED,
    CallStatus.GREETING,
    CallStatus.AUTHENTICATING,
    CallStatus.AUTH_FAILED,
)

"""Intent executor: runs a classified intent against the domain gateway."""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

from alumni_voice.services.audit.log import AuditLog
from alumni_voice.services.errors import ExecutionFailed, Transient
from alumni_voice.services.intent.memory import ConversationMemory, EventRef, MentorRef, OpportunityRef
from alumni_voice.services.intent.responses import generate_response
from alumni_voice.services.tools.base import TOOL_ENDPOINTS, ContentStore, DomainGateway

logger = logging.getLogger(__name__)

# Intents whose tool call needs the acting user's id
USER_SCOPED_INTENTS = ("update_skills", "schedule_mentorship", "send_message", "rsvp_event", "get_profile")

UserResolver = Callable[[], Awaitable[Optional[str]]]


class IntentResult(BaseModel):
    intent: str
    params: Dict[str, Any]
    response: str
    success: bool


class IntentExecutor:
    """Executes intents through a single named-tool gateway.

    Every execution is written to the audit log. Gateway failures are turned
    into fixed spoken messages; they never propagate to the transport.
    """

    def __init__(
        self,
        gateway: DomainGateway,
        content_store: ContentStore,
        audit: AuditLog,
        user_resolver: Optional[UserResolver] = None,
    ):
        self.gateway = gateway
        self.content_store = content_store
        self.audit = audit
        self.user_resolver = user_resolver

    async def execute(self, intent: str, params: Dict[str, Any], memory: ConversationMemory) -> IntentResult:
        tool_params = dict(params)
        status_code: Optional[int] = 200
        data: Dict[str, Any] = {}

        try:
            await self._ensure_user(memory)

            if intent in USER_SCOPED_INTENTS:
                tool_params["user_id"] = tool_params.get("user_id") or memory.user_id
            if intent == "send_message":
                tool_params["sender_id"] = memory.user_id

            if intent == "create_post":
                data = await self.content_store.create_post(memory.user_id, params.get("content") or "")
                data = {"success": True, "post": data}
            else:
                data = await self.gateway.invoke(intent, tool_params)

            success = data.get("success") is not False
            if not success:
                status_code = 422
            else:
                self._remember(intent, params, data, memory)
            response = generate_response(intent, data, params)

        except ExecutionFailed as e:
            logger.warning(
                f"[EXECUTOR] {intent} failed with {type(e).__name__} (status {e.status_code}): {e.detail}"
            )
            status_code = e.status_code or 500
            data = {"error": type(e).__name__}
            success = False
            response = e.spoken_message
        except Exception as e:
            logger.error(
                f"[EXECUTOR] Unexpected error executing {intent}: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            status_code = 500
            data = {"error": type(e).__name__}
            success = False
            response = Transient.spoken_message

        await self.audit.record(
            action=intent,
            endpoint=TOOL_ENDPOINTS.get(intent),
            request=tool_params,
            response_status=status_code,
            response=data,
        )
        logger.info(f"[EXECUTOR] {intent} -> success={success} - CallSid: {self.audit.call_id}")
        return IntentResult(intent=intent, params=params, response=response, success=success)

    async def _ensure_user(self, memory: ConversationMemory) -> None:
        """Resolve the acting user once per conversation."""
        if memory.user_id or self.user_resolver is None:
            return
        user_id = await self.user_resolver()
        if not user_id:
            return
        memory.user_id = user_id
        profile = (await self.gateway.invoke("get_profile", {"user_id": user_id})).get("profile") or {}
        memory.user_name = profile.get("full_name") or "there"

    @staticmethod
    def _remember(intent: str, params: Dict[str, Any], data: Dict[str, Any], memory: ConversationMemory) -> None:
        """Replace the remembered result set for list-style intents."""
        if intent == "find_mentors" and data.get("mentors") is not None:
            memory.last_mentors = [
                MentorRef(
                    name=m["name"],
                    user_id=m["user_id"],
                    skills=m.get("skills") or "",
                    designation=m.get("designation"),
                    company=m.get("company"),
                )
                for m in data["mentors"]
            ]
            memory.last_topic = params.get("skill_area")
        elif intent == "check_events" and data.get("events") is not None:
            memory.last_events = [
                EventRef(title=e["title"], id=str(e["id"]), date=e["date"]) for e in data["events"]
            ]
        elif intent == "check_opportunities" and data.get("opportunities") is not None:
            memory.last_opportunities = [
                OpportunityRef(title=o["title"], company=o["company"]) for o in data["opportunities"]
            ]
        elif intent == "update_skills":
            memory.skills_added = [*memory.skills_added, *(params.get("new_skills") or [])]

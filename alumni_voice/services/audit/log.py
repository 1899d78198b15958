"""Append-only action audit log."""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.db.models import CallActionLog

logger = logging.getLogger(__name__)

SUMMARY_LIMIT = 500


class ActionAuditEntry(BaseModel):
    """One executed action. Entries are never mutated after creation."""

    call_id: str
    action: str
    endpoint: Optional[str] = None
    request_summary: Optional[str] = None
    response_status: Optional[int] = None
    response_summary: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {"frozen": True}


def summarize(payload: Any, limit: int = SUMMARY_LIMIT) -> str:
    """Compact JSON rendering of a request or response, truncated."""
    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, default=str, sort_keys=True)
    return text if len(text) <= limit else text[: limit - 3] + "..."


class AuditSink(ABC):
    """Destination for audit entries."""

    @abstractmethod
    async def append(self, entry: ActionAuditEntry) -> None:
        pass


class SqlAuditSink(AuditSink):
    """Writes audit entries to the call_action_logs table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, entry: ActionAuditEntry) -> None:
        row = CallActionLog(
            call_session_id=entry.call_id,
            action=entry.action,
            endpoint=entry.endpoint,
            request_summary=entry.request_summary,
            response_status=entry.response_status,
            response_summary=entry.response_summary,
            created_at=entry.created_at,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def list_for_call(self, call_id: str) -> List[ActionAuditEntry]:
        """Entries for one call, oldest first."""
        result = await self.db.execute(
            select(CallActionLog)
            .where(CallActionLog.call_session_id == call_id)
            .order_by(CallActionLog.id)
        )
        return [
            ActionAuditEntry(
                call_id=row.call_session_id,
                action=row.action,
                endpoint=row.endpoint,
                request_summary=row.request_summary,
                response_status=row.response_status,
                response_summary=row.response_summary,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]


class AuditLog:
    """Audit writer bound to one call.

    Failures to write are logged and dropped so that a broken audit sink never
    fails the caller's turn.
    """

    def __init__(self, sink: AuditSink, call_id: str):
        self.sink = sink
        self.call_id = call_id

    async def record(
        self,
        action: str,
        endpoint: Optional[str] = None,
        request: Optional[Dict[str, Any]] = None,
        response_status: Optional[int] = None,
        response: Any = None,
    ) -> None:
        entry = ActionAuditEntry(
            call_id=self.call_id,
            action=action,
            endpoint=endpoint,
            request_summary=summarize(request) if request is not None else None,
            response_status=response_status,
            response_summary=summarize(response) if response is not None else None,
        )
        try:
            await self.sink.append(entry)
            logger.debug(f"[AUDIT] Recorded {action} ({response_status}) - CallSid: {self.call_id}")
        except Exception as e:
            logger.error(
                f"[AUDIT] Failed to record {action} - CallSid: {self.call_id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )

"""Call session persistence."""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alumni_voice.db.models import CallSessionRecord
from alumni_voice.services.call_session.models import CallContext, CallSession
from alumni_voice.services.call_session.stages import CallStatus, CallType
from alumni_voice.services.errors import ConcurrentTurnError

logger = logging.getLogger(__name__)


def _to_session(record: CallSessionRecord) -> CallSession:
    return CallSession(
        id=record.call_sid,
        user_id=record.user_id,
        status=CallStatus(record.status),
        call_type=CallType(record.call_type),
        intent=record.intent,
        context=CallContext.model_validate(record.context or {}),
        transcript=record.transcript.split("\n") if record.transcript else [],
        started_at=record.started_at,
        ended_at=record.ended_at,
        duration_seconds=record.duration_seconds,
        recording_url=record.recording_url,
        summary=record.summary,
        version=record.version,
    )


def _row_values(session: CallSession) -> dict:
    return {
        "user_id": session.user_id,
        "status": session.status.value,
        "call_type": session.call_type.value,
        "intent": session.intent,
        "context": session.context.model_dump(mode="json"),
        "transcript": session.get_transcript_text() or None,
        "started_at": session.started_at,
        "ended_at": session.ended_at,
        "duration_seconds": session.duration_seconds,
        "recording_url": session.recording_url,
        "summary": session.summary,
    }


class SqlCallSessionStore:
    """Loads and saves call sessions keyed by call id.

    Turns of the same call are serialized with an optimistic version check:
    ``save`` only succeeds against the version that was loaded.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, call_id: str) -> Optional[CallSession]:
        record = await self._get_record(call_id)
        return _to_session(record) if record else None

    async def create(self, session: CallSession) -> CallSession:
        """Insert a new session or return the one already stored for this id."""
        existing = await self.load(session.id)
        if existing:
            return existing

        record = CallSessionRecord(call_sid=session.id, version=1, **_row_values(session))
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"[CALL STORE] Created {session.call_type} session - CallSid: {session.id}")
        return _to_session(record)

    async def save(self, session: CallSession) -> CallSession:
        """Write the session back, bumping its version."""
        result = await self.db.execute(
            update(CallSessionRecord)
            .where(
                CallSessionRecord.call_sid == session.id,
                CallSessionRecord.version == session.version,
            )
            .values(version=session.version + 1, **_row_values(session))
        )
        if result.rowcount != 1:
            await self.db.rollback()
            logger.warning(f"[CALL STORE] Version conflict at v{session.version} - CallSid: {session.id}")
            raise ConcurrentTurnError(session.id)

        await self.db.commit()
        session.version += 1
        return session

    async def list_recent(self, limit: int = 50) -> List[CallSessionRecord]:
        """Newest sessions first, with their audit entries loaded."""
        result = await self.db.execute(
            select(CallSessionRecord)
            .options(selectinload(CallSessionRecord.action_logs))
            .execution_options(populate_existing=True)
            .order_by(CallSessionRecord.started_at.desc(), CallSessionRecord.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _get_record(self, call_id: str) -> Optional[CallSessionRecord]:
        result = await self.db.execute(
            select(CallSessionRecord)
            .where(CallSessionRecord.call_sid == call_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

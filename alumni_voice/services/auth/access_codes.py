"""Access code authentication."""
import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.db.models import AccessCodeRecord
from alumni_voice.services.errors import AuthenticationFailed, ExecutionFailed
from alumni_voice.services.tools.base import DomainGateway

logger = logging.getLogger(__name__)


class AccessCode(BaseModel):
    """Short-lived code tied to one user."""

    code: str
    user_id: str
    is_active: bool
    expires_at: datetime

    def is_valid_at(self, now: datetime) -> bool:
        return self.is_active and self.expires_at > now


class AuthenticatedCaller(BaseModel):
    user_id: str
    display_name: str


class SqlAccessCodeStore:
    """Read-only lookup of access codes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup(self, code: str) -> Optional[AccessCode]:
        """Return the most recently issued code row matching ``code``."""
        result = await self.db.execute(
            select(AccessCodeRecord)
            .where(AccessCodeRecord.access_code == code)
            .order_by(AccessCodeRecord.created_at.desc(), AccessCodeRecord.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return AccessCode(
            code=row.access_code,
            user_id=row.user_id,
            is_active=row.is_active,
            expires_at=row.expires_at,
        )


class AccessCodeAuthenticator:
    """Validates access codes and resolves the caller's display name.

    Codes are opaque lookup keys; their length is not checked here.
    """

    def __init__(self, store: SqlAccessCodeStore, gateway: Optional[DomainGateway] = None):
        self.store = store
        self.gateway = gateway

    async def check_code(self, code: str, now: datetime) -> AccessCode:
        """Return the code if it exists, is active and has not expired."""
        code = (code or "").strip()
        if not code:
            raise AuthenticationFailed("empty access code")

        access = await self.store.lookup(code)
        if access is None:
            raise AuthenticationFailed("unknown access code")
        if not access.is_active:
            raise AuthenticationFailed("inactive access code")
        if not access.is_valid_at(now):
            raise AuthenticationFailed(f"access code expired at {access.expires_at.isoformat()}")
        return access

    async def authenticate(self, code: str, now: datetime) -> AuthenticatedCaller:
        access = await self.check_code(code, now)

        display_name = "there"
        if self.gateway is not None:
            try:
                result = await self.gateway.invoke("get_profile", {"user_id": access.user_id})
            except ExecutionFailed as e:
                logger.warning(f"[AUTH] Profile lookup failed for {access.user_id}: {type(e).__name__}")
                result = {}
            profile = result.get("profile")
            if profile and profile.get("full_name"):
                display_name = profile["full_name"]

        logger.info(f"[AUTH] Access code accepted for user {access.user_id}")
        return AuthenticatedCaller(user_id=access.user_id, display_name=display_name)

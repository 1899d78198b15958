"""Unit tests for access code authentication."""
import pytest
from datetime import datetime, timedelta
from typing import Any, Dict

from alumni_voice.services.auth.access_codes import (
    AccessCode,
    AccessCodeAuthenticator,
    SqlAccessCodeStore,
)
from alumni_voice.services.errors import AuthenticationFailed, ExecutionFailed
from alumni_voice.services.tools.base import DomainGateway


class FailingProfileGateway(DomainGateway):
    async def invoke(self, tool_name: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        raise ExecutionFailed.from_status(503)


class TestAccessCode:
    """Test the access code value object."""

    def test_valid_until_expiry(self):
        now = datetime(2026, 5, 1, 12, 0)
        code = AccessCode(code="123456", user_id="u1", is_active=True, expires_at=now + timedelta(minutes=1))

        assert code.is_valid_at(now)
        assert not code.is_valid_at(now + timedelta(minutes=1))

    def test_inactive_never_valid(self):
        now = datetime(2026, 5, 1, 12, 0)
        code = AccessCode(code="123456", user_id="u1", is_active=False, expires_at=now + timedelta(days=1))

        assert not code.is_valid_at(now)


class TestAccessCodeAuthenticator:
    """Test access code authentication against the seeded store."""

    @pytest.mark.asyncio
    async def test_authenticate_resolves_name(self, seeded_db, gateway):
        authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(seeded_db), gateway)

        caller = await authenticator.authenticate("614203", datetime.utcnow())

        assert caller.user_id == "user-asha"
        assert caller.display_name == "Asha Rao"

    @pytest.mark.asyncio
    async def test_name_defaults_without_gateway(self, seeded_db):
        authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(seeded_db))

        caller = await authenticator.authenticate("614203", datetime.utcnow())

        assert caller.display_name == "there"

    @pytest.mark.asyncio
    async def test_profile_failure_does_not_block_login(self, seeded_db):
        """Test a failing profile lookup still authenticates the caller."""
        authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(seeded_db), FailingProfileGateway())

        caller = await authenticator.authenticate("614203", datetime.utcnow())

        assert caller.user_id == "user-asha"
        assert caller.display_name == "there"

    @pytest.mark.parametrize("code", ["", "   ", "000000", "111111", "222222"])
    @pytest.mark.asyncio
    async def test_rejected_codes(self, seeded_db, code):
        """Test empty, unknown, inactive and expired codes are rejected."""
        authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(seeded_db))

        with pytest.raises(AuthenticationFailed):
            await authenticator.authenticate(code, datetime.utcnow())

    @pytest.mark.asyncio
    async def test_code_expires_later(self, seeded_db):
        """Test a code that is valid today is rejected after its expiry."""
        authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(seeded_db))

        with pytest.raises(AuthenticationFailed):
            await authenticator.check_code("614203", datetime.utcnow() + timedelta(days=31))

"""
ChatGate Backend — Auth Service Tests
=======================================

What:  Two-phase signup with rollback, and login, against a mocked identity
       provider and the real profile table.

What we test:
    ✅ Signup creates identity + profile with the configured defaults
    ✅ Rejected identity: nothing written, nothing rolled back
    ✅ Failed profile insert: identity deleted, RegistrationError raised
    ✅ Failed rollback: ORPHANED IDENTITY logged, original error still raised
    ✅ Login returns session + user
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from chatgate.config import settings
from chatgate.exceptions import (
    IdentityProviderError,
    InvalidCredentialsError,
    ProfileStoreError,
    RegistrationError,
)
from chatgate.schemas.auth import AuthUser
from chatgate.services.auth_service import AuthService
from chatgate.services.profile_store import ProfileStore


def _user(uid="user-1", email="new@example.com") -> AuthUser:
    return AuthUser(id=uid, email=email, raw={"id": uid, "email": email})


class TestSignup:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_creates_identity_and_profile(self, db_session, fetch_profile):
        with patch("chatgate.services.auth_service.identity_service") as mock_identity:
            mock_identity.sign_up = AsyncMock(return_value=_user())
            mock_identity.delete_user = AsyncMock()

            result = await self.service.signup(db_session, "new@example.com", "pw", "Jo")

        assert result == {"id": "user-1", "email": "new@example.com"}
        mock_identity.sign_up.assert_awaited_once_with(
            email="new@example.com", password="pw", display_name="Jo"
        )
        mock_identity.delete_user.assert_not_awaited()

        profile = await fetch_profile("user-1")
        assert profile.email == "new@example.com"
        assert profile.display_name == "Jo"
        assert profile.plan_type == settings.signup_plan_type
        assert profile.chat_credits == settings.signup_chat_credits
        assert profile.is_premium is False

    @pytest.mark.asyncio
    async def test_rejected_identity_writes_nothing(self, db_session, fetch_profile):
        with patch("chatgate.services.auth_service.identity_service") as mock_identity, \
             patch.object(ProfileStore, "insert", new_callable=AsyncMock) as mock_insert:
            mock_identity.sign_up = AsyncMock(side_effect=RegistrationError(message="User already registered"))
            mock_identity.delete_user = AsyncMock()

            with pytest.raises(RegistrationError) as exc_info:
                await self.service.signup(db_session, "dup@example.com", "pw", "")

        assert exc_info.value.message == "User already registered"
        mock_insert.assert_not_awaited()
        mock_identity.delete_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_profile_failure_rolls_back_identity(self, db_session, create_profile, fetch_profile):
        # Email already taken by another profile: the insert violates the unique index
        await create_profile(email="taken@example.com")

        with patch("chatgate.services.auth_service.identity_service") as mock_identity:
            mock_identity.sign_up = AsyncMock(return_value=_user("user-2", "taken@example.com"))
            mock_identity.delete_user = AsyncMock()

            with pytest.raises(RegistrationError):
                await self.service.signup(db_session, "taken@example.com", "pw", "")

        mock_identity.delete_user.assert_awaited_once_with("user-2")
        assert await fetch_profile("user-2") is None

    @pytest.mark.asyncio
    async def test_failed_rollback_is_logged(self, db_session, caplog):
        with patch("chatgate.services.auth_service.identity_service") as mock_identity, \
             patch.object(ProfileStore, "insert", new=AsyncMock(side_effect=ProfileStoreError())):
            mock_identity.sign_up = AsyncMock(return_value=_user("user-3"))
            mock_identity.delete_user = AsyncMock(side_effect=IdentityProviderError())

            with caplog.at_level(logging.ERROR, logger="chatgate.services.auth_service"):
                with pytest.raises(RegistrationError):
                    await self.service.signup(db_session, "new@example.com", "pw", "")

        assert "ORPHANED IDENTITY" in caplog.text
        assert "user-3" in caplog.text


class TestLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_returns_session_and_user(self):
        session = {"access_token": "at", "refresh_token": "rt", "user": {"id": "u1"}}
        with patch("chatgate.services.auth_service.identity_service") as mock_identity:
            mock_identity.sign_in = AsyncMock(return_value=session)

            result = await self.service.login("a@example.com", "pw")

        assert result == {"session": session, "user": {"id": "u1"}}

    @pytest.mark.asyncio
    async def test_bad_credentials_propagate(self):
        with patch("chatgate.services.auth_service.identity_service") as mock_identity:
            mock_identity.sign_in = AsyncMock(side_effect=InvalidCredentialsError())

            with pytest.raises(InvalidCredentialsError):
                await self.service.login("a@example.com", "wrong")

"""
ChatGate Backend — Auth Service (Signup / Login Orchestrator)
===============================================================

What:  Two-phase signup (identity, then profile) with rollback, and login.
Why:   An identity without a profile would authenticate but every chat
       request would fail with a 500. Signup therefore either creates both
       records or neither.

Signup Flow:
    ┌──────────────────┐    ┌─────────────────┐
    │ Supabase signUp  │───▶│ INSERT profiles │───▶ 200 {user}
    └──────────────────┘    └─────────────────┘
             │ rejected              │ failed
             ▼                       ▼
         400 (nothing         DELETE identity (admin) ───▶ 400
          to undo)
"""

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from chatgate.config import settings
from chatgate.exceptions import ChatGateError, ProfileStoreError, RegistrationError
from chatgate.models.profile import Profile
from chatgate.services.identity_service import identity_service
from chatgate.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless orchestrator; the session and collaborators are module-level."""

    async def signup(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        name: str,
    ) -> Dict[str, Any]:
        """
        Create identity + profile.

        Returns:
            The raw user object from Supabase.

        Raises:
            RegistrationError: identity rejected, or profile insert failed
                (identity already deleted again)
            IdentityProviderError: Supabase unreachable / returned no user
        """
        user = await identity_service.sign_up(email=email, password=password, display_name=name)
        logger.info("Identity %s created for %s", user.id, email)

        profile = Profile(
            id=user.id,
            email=email,
            display_name=name or None,
            plan_type=settings.signup_plan_type,
            chat_credits=settings.signup_chat_credits,
            is_premium=False,
        )
        try:
            await ProfileStore(db).insert(profile)
        except ProfileStoreError as e:
            await self._rollback_identity(user.id)
            raise RegistrationError(message=e.message, context=e.context) from e

        logger.info(
            "Profile %s created (plan=%s, credits=%d)",
            user.id,
            profile.plan_type,
            profile.chat_credits,
        )
        return user.raw

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Password login.

        Returns:
            {"session": <supabase session>, "user": <user object or None>}
        """
        session = await identity_service.sign_in(email=email, password=password)
        return {"session": session, "user": session.get("user")}

    async def _rollback_identity(self, user_id: str) -> None:
        """
        Delete the identity created in phase one.

        A failing delete is logged at ERROR with the id so it can be removed by
        hand; the signup still reports the original profile failure.
        """
        try:
            await identity_service.delete_user(user_id)
            logger.warning("Rolled back identity %s after profile insert failure", user_id)
        except ChatGateError as e:
            logger.error(
                "ORPHANED IDENTITY: could not delete %s after profile insert failure: %s | %s",
                user_id,
                e.message,
                e.context,
            )


auth_service = AuthService()

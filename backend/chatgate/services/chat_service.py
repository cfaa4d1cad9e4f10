"""
ChatGate Backend — Chat Service (Entitlement Gate + Compensation)
===================================================================

What:  Runs one paid AI call for an authenticated user.
Why:   This is where the entitlement decision turns into store writes: the
       optimistic debit before Gemini, and the credit restoration after a
       Gemini failure.
Who:   Called by POST /api/chat after the bearer token has been verified.

Orchestration Flow:
    ┌──────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────────┐
    │ read profile │──▶│ policy       │──▶│ atomic debit │──▶│  Gemini  │──▶ text
    └──────────────┘   │ .evaluate()  │   │ (if metered) │   └──────────┘
           │           └──────────────┘   └──────────────┘         │ fails
           ▼                  │ deny             │ 0 rows          ▼
      500 store error     403, no write      403 no_credits   restore credit
                                                              (bounded retry)
                                                                    │
                                                                    ▼
                                                                   500

Compensation:
    restore_credit is retried with exponential backoff (tenacity). If every
    attempt fails the user keeps the loss; an ERROR log with the profile id is
    the alert. The caller still gets the Gemini failure, never the store one.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from chatgate.config import settings
from chatgate.exceptions import AuthorizationError, ProfileStoreError
from chatgate.services.entitlement import (
    DENY_MESSAGES,
    DenyReason,
    PostAction,
    entitlement_policy,
)
from chatgate.services.gemini_service import gemini_service
from chatgate.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)


class ChatService:
    """
    Stateless: each call gets its own session. The policy and the gateway
    are module-level singletons, patched in tests.
    """

    async def chat(self, db: AsyncSession, user_id: str, prompt: str) -> str:
        """
        Gate, debit, generate.

        Args:
            db: Async database session (injected by FastAPI)
            user_id: Verified identity id (profile primary key)
            prompt: The user's prompt

        Returns:
            Generated text.

        Raises:
            ProfileStoreError: profile missing or unreadable (→ 500)
            AuthorizationError: entitlement denied (→ 403), nothing written
            InferenceError: Gemini failed (→ 500), debit already restored
        """
        store = ProfileStore(db)

        profile = await store.get(user_id)
        if profile is None:
            raise ProfileStoreError(
                message="Could not load your profile.",
                context={"profile_id": user_id, "reason": "missing"},
            )

        decision = entitlement_policy.evaluate(profile)
        if not decision.allow:
            logger.info(
                "Chat denied for %s: %s (plan=%s, credits=%s)",
                user_id,
                decision.deny_reason.value,
                profile.plan_type,
                profile.chat_credits,
            )
            raise AuthorizationError(
                message=DENY_MESSAGES[decision.deny_reason],
                deny_reason=decision.deny_reason.value,
            )

        debited = False
        if decision.post_action is PostAction.DECREMENT_CREDIT:
            if not await store.try_debit_credit(user_id):
                # Another request spent the last credit after our read
                logger.info("Chat denied for %s: lost the race for the last credit", user_id)
                raise AuthorizationError(
                    message=DENY_MESSAGES[DenyReason.NO_CREDITS],
                    deny_reason=DenyReason.NO_CREDITS.value,
                )
            debited = True

        try:
            return await gemini_service.generate_text(prompt)
        except BaseException:
            # Includes CancelledError from a dropped request
            if debited:
                await self._compensate(store, user_id)
            raise

    async def _compensate(self, store: ProfileStore, user_id: str) -> None:
        try:
            await self._restore_credit(store, user_id)
            logger.info("Restored chat credit for %s after inference failure", user_id)
        except Exception as e:
            # The caller must still see the inference failure, not this one
            logger.error(
                "ALERT: chat credit for %s was NOT restored after %d attempts: %s: %s",
                user_id,
                settings.compensation_max_attempts,
                type(e).__name__,
                str(e),
            )

    @retry(
        retry=retry_if_exception_type((ProfileStoreError, OSError)),
        stop=stop_after_attempt(settings.compensation_max_attempts),
        wait=wait_exponential(
            multiplier=settings.compensation_min_wait,
            max=settings.compensation_max_wait,
        ) + wait_random(0, settings.compensation_min_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _restore_credit(self, store: ProfileStore, user_id: str) -> None:
        await store.restore_credit(user_id)


chat_service = ChatService()

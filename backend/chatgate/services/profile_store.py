"""
ChatGate Backend — Profile Store
==================================

What:  Every SQL statement that touches the `profiles` table.
Why:   The entitlement logic depends on a few precise store semantics
       (atomic conditional debit, update-by-email without existence check);
       keeping them in one class makes those semantics testable in isolation.
How:   Wraps an AsyncSession. Each write is its own committed transaction,
       so a debit is durable before the caller moves on to the Gemini call.
Who:   AuthService (insert), ChatService (get, debit, restore),
       WebhookReconciler (update_by_email), profile route (get).

Concurrency:
    try_debit_credit issues
        UPDATE profiles SET chat_credits = chat_credits - 1
        WHERE id = :id AND chat_credits > 0
    Two concurrent requests against a profile with one credit left both pass
    the policy check, but only one UPDATE matches a row. The loser sees
    rowcount 0 and is denied. There is no read-then-write window.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatgate.exceptions import ProfileStoreError
from chatgate.models.profile import Profile

logger = logging.getLogger(__name__)

# asyncpg surfaces an unreachable server as a bare OSError, outside SQLAlchemy
_STORE_ERRORS = (SQLAlchemyError, OSError)


class ProfileStore:
    """Profile persistence bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, profile_id: str) -> Optional[Profile]:
        """
        Point read by identity id.

        populate_existing: a profile already in the session's identity map is
        refreshed from the row, so the caller always sees the latest committed
        values (last read wins).

        Raises:
            ProfileStoreError: the query itself failed
        """
        try:
            result = await self.db.execute(
                select(Profile)
                .where(Profile.id == profile_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except _STORE_ERRORS as e:
            logger.error("Profile read failed for %s: %s", profile_id, str(e))
            raise ProfileStoreError(context={"profile_id": profile_id, "op": "get"}) from e

    async def insert(self, profile: Profile) -> Profile:
        """Inserts a new profile and commits. Rolls back and raises on any DB error."""
        try:
            self.db.add(profile)
            await self.db.commit()
            return profile
        except _STORE_ERRORS as e:
            await self.db.rollback()
            logger.warning("Profile insert failed for %s: %s", profile.id, str(e))
            raise ProfileStoreError(
                message="Could not create the user profile.",
                context={"profile_id": profile.id, "op": "insert", "error_type": type(e).__name__},
            ) from e

    async def try_debit_credit(self, profile_id: str) -> bool:
        """
        Atomically takes one chat credit.

        Returns:
            True if a credit was taken, False if the profile had none left
            (or does not exist).
        """
        stmt = (
            update(Profile)
            .where(Profile.id == profile_id, Profile.chat_credits > 0)
            .values(chat_credits=Profile.chat_credits - 1)
            .execution_options(synchronize_session=False)
        )
        rowcount = await self._execute_write(stmt, profile_id, "debit")
        return rowcount == 1

    async def restore_credit(self, profile_id: str) -> None:
        """
        Gives back one credit taken by try_debit_credit.

        An increment rather than "set to the old value": a concurrent debit
        committed in between is preserved.
        """
        stmt = (
            update(Profile)
            .where(Profile.id == profile_id)
            .values(chat_credits=Profile.chat_credits + 1)
            .execution_options(synchronize_session=False)
        )
        rowcount = await self._execute_write(stmt, profile_id, "restore")
        if rowcount != 1:
            raise ProfileStoreError(
                message="Could not restore the chat credit.",
                context={"profile_id": profile_id, "op": "restore", "rowcount": rowcount},
            )

    async def update_by_email(self, email: str, values: Dict[str, Any]) -> int:
        """
        Overwrites fields on the profile whose email matches exactly.

        Does not check that such a profile exists; returns the number of
        matched rows (0 or 1) for logging.
        """
        stmt = (
            update(Profile)
            .where(Profile.email == email)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_write(stmt, email, "update_by_email")

    async def _execute_write(self, stmt, key: str, op: str) -> int:
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount
        except _STORE_ERRORS as e:
            await self.db.rollback()
            logger.error("Profile %s failed for %s: %s", op, key, str(e))
            raise ProfileStoreError(context={"key": key, "op": op}) from e

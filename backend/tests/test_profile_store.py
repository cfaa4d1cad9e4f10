"""
ChatGate Backend — Profile Store Tests
========================================

What:  The store semantics the entitlement flow relies on.
How:   Real SQL against in-memory SQLite.

What we test:
    ✅ Conditional debit never goes below zero
    ✅ Only one of two debits against the last credit succeeds
    ✅ Restore is an increment
    ✅ update_by_email reports 0 rows for an unknown email
    ✅ Duplicate insert raises ProfileStoreError and leaves the session usable
    ✅ A driver-level OSError surfaces as ProfileStoreError
"""

from unittest.mock import AsyncMock, patch

import pytest

from chatgate.exceptions import ProfileStoreError
from chatgate.models.profile import Profile
from chatgate.services.profile_store import ProfileStore


class TestProfileStoreReads:

    @pytest.mark.asyncio
    async def test_get_existing(self, db_session, create_profile):
        profile = await create_profile(chat_credits=7)
        loaded = await ProfileStore(db_session).get(profile["id"])
        assert loaded is not None
        assert loaded.chat_credits == 7
        assert loaded.email == profile["email"]

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, db_session):
        assert await ProfileStore(db_session).get("nobody") is None

    @pytest.mark.asyncio
    async def test_get_sees_latest_committed_value(self, db_session, create_profile):
        """A second read in the same session reflects writes made in between."""
        profile = await create_profile(chat_credits=2)
        store = ProfileStore(db_session)
        await store.get(profile["id"])
        await store.try_debit_credit(profile["id"])
        reloaded = await store.get(profile["id"])
        assert reloaded.chat_credits == 1


class TestProfileStoreDebit:

    @pytest.mark.asyncio
    async def test_debit_decrements(self, db_session, create_profile, fetch_profile):
        profile = await create_profile(chat_credits=3)
        assert await ProfileStore(db_session).try_debit_credit(profile["id"]) is True
        assert (await fetch_profile(profile["id"])).chat_credits == 2

    @pytest.mark.asyncio
    async def test_debit_refuses_at_zero(self, db_session, create_profile, fetch_profile):
        profile = await create_profile(chat_credits=0)
        assert await ProfileStore(db_session).try_debit_credit(profile["id"]) is False
        assert (await fetch_profile(profile["id"])).chat_credits == 0

    @pytest.mark.asyncio
    async def test_only_one_debit_wins_the_last_credit(
        self, session_factory, create_profile, fetch_profile
    ):
        profile = await create_profile(plan_type="standard", chat_credits=1)
        async with session_factory() as first, session_factory() as second:
            results = [
                await ProfileStore(first).try_debit_credit(profile["id"]),
                await ProfileStore(second).try_debit_credit(profile["id"]),
            ]
        assert sorted(results) == [False, True]
        assert (await fetch_profile(profile["id"])).chat_credits == 0

    @pytest.mark.asyncio
    async def test_debit_unknown_profile(self, db_session):
        assert await ProfileStore(db_session).try_debit_credit("nobody") is False

    @pytest.mark.asyncio
    async def test_restore_increments(self, db_session, create_profile, fetch_profile):
        profile = await create_profile(chat_credits=0)
        await ProfileStore(db_session).restore_credit(profile["id"])
        assert (await fetch_profile(profile["id"])).chat_credits == 1

    @pytest.mark.asyncio
    async def test_restore_unknown_profile_raises(self, db_session):
        with pytest.raises(ProfileStoreError):
            await ProfileStore(db_session).restore_credit("nobody")


class TestProfileStoreWrites:

    @pytest.mark.asyncio
    async def test_update_by_email(self, db_session, create_profile, fetch_profile):
        profile = await create_profile(plan_type="free", chat_credits=5)
        matched = await ProfileStore(db_session).update_by_email(
            profile["email"], {"plan_type": "pro", "chat_credits": 999_999}
        )
        assert matched == 1
        updated = await fetch_profile(profile["id"])
        assert updated.plan_type == "pro"
        assert updated.chat_credits == 999_999

    @pytest.mark.asyncio
    async def test_update_by_unknown_email(self, db_session):
        matched = await ProfileStore(db_session).update_by_email(
            "ghost@example.com", {"is_premium": True}
        )
        assert matched == 0

    @pytest.mark.asyncio
    async def test_insert_duplicate_raises(self, db_session, create_profile):
        existing = await create_profile()
        store = ProfileStore(db_session)
        with pytest.raises(ProfileStoreError):
            await store.insert(Profile(id=existing["id"], email="other@example.com", chat_credits=5))

        # Session was rolled back and can still be used
        assert await store.get(existing["id"]) is not None

    @pytest.mark.asyncio
    async def test_unreachable_database_maps_to_store_error(self, db_session, create_profile):
        existing = await create_profile()
        store = ProfileStore(db_session)

        with patch.object(db_session, "execute", new=AsyncMock(side_effect=OSError("Connect call failed"))):
            with pytest.raises(ProfileStoreError):
                await store.update_by_email(existing["email"], {"is_premium": True})
            with pytest.raises(ProfileStoreError):
                await store.restore_credit(existing["id"])
            with pytest.raises(ProfileStoreError):
                await store.get(existing["id"])

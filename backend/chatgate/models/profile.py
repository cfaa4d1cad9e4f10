"""
ChatGate Backend — Profile SQLAlchemy Model
=============================================

What:  ORM model for the `profiles` table, one row per Supabase identity.
Why:   The subscription tier and the remaining chat credits live here; every
       chat request reads it and the Ko-fi webhook writes it.
Who:   ProfileStore (all SQL), the entitlement policies (read-only), Alembic.

Table Design:
    - id: the Supabase auth user id, copied verbatim at signup. Never reassigned.
    - email: unique, because the Ko-fi webhook identifies the payer by email.
    - plan_type / chat_credits: metered entitlement model.
    - is_premium: boolean entitlement model. Both sets of columns exist so the
      deployment can switch ENTITLEMENT_POLICY without a migration.
    - CHECK (chat_credits >= 0): the conditional decrement already refuses to
      go below zero; the constraint makes a bad manual write fail loudly too.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from chatgate.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlanType(str, enum.Enum):
    """Subscription tiers of the metered entitlement model."""

    FREE = "free"
    STANDARD = "standard"
    PRO = "pro"


class Profile(Base):
    """
    Entitlement state of one user.

    Lifecycle:
        1. Inserted by AuthService.signup right after the identity is created
           (plan_type='free', chat_credits=5 by default)
        2. chat_credits decremented per chat call, restored if Gemini fails
        3. plan_type/chat_credits or is_premium overwritten by the Ko-fi webhook
        4. Never deleted in normal operation
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("chat_credits >= 0", name="ck_profiles_chat_credits_non_negative"),
        CheckConstraint(
            "plan_type IN ('free', 'standard', 'pro')",
            name="ck_profiles_plan_type",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Supabase auth user id",
    )

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Correlation key for payment webhooks",
    )

    display_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    plan_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PlanType.FREE.value,
        server_default=text("'free'"),
    )

    chat_credits: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Remaining chat calls; ignored for plan_type='pro'",
    )

    is_premium: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # onupdate also fires for the bulk UPDATE statements in ProfileStore
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<Profile(id={self.id}, plan_type={self.plan_type}, "
            f"chat_credits={self.chat_credits}, is_premium={self.is_premium})>"
        )

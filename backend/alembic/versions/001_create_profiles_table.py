"""Create profiles table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  The `profiles` table: one row per Supabase identity holding its
       subscription tier and remaining chat credits.
How:   id is the Supabase auth user id (text), email is unique because the
       Ko-fi webhook selects profiles by email.

Rollback: downgrade() drops the table (destructive, all entitlements lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), nullable=False, comment="Supabase auth user id"),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Correlation key for payment webhooks",
        ),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column(
            "plan_type",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'free'"),
        ),
        sa.Column(
            "chat_credits",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Remaining chat calls; ignored for plan_type='pro'",
        ),
        sa.Column(
            "is_premium",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.CheckConstraint("chat_credits >= 0", name="ck_profiles_chat_credits_non_negative"),
        sa.CheckConstraint(
            "plan_type IN ('free', 'standard', 'pro')",
            name="ck_profiles_plan_type",
        ),
    )

    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")

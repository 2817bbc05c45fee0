"""Create obligations table

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

One row per amount owed by a contract/apartment in a billing period.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OBLIGATION_TYPES = ("rent", "expenses", "maintenance", "tax", "service")
OBLIGATION_STATUSES = ("pending", "paid", "overdue")


def upgrade() -> None:
    op.create_table(
        "obligations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=True),
        sa.Column("apartment_id", sa.Integer(), nullable=True),
        sa.Column(
            "type",
            sa.Enum(*OBLIGATION_TYPES, name="obligation_type", create_constraint=True),
            nullable=False,
        ),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("period", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("owner_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("owner_impact", sa.Numeric(12, 2), nullable=True),
        sa.Column("agency_impact", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*OBLIGATION_STATUSES, name="obligation_status", create_constraint=True),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("legacy_payment_id", sa.Integer(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("legacy_payment_id", name="uq_obligations_legacy_payment_id"),
        sa.CheckConstraint("amount >= 0", name="ck_obligations_amount_non_negative"),
        sa.CheckConstraint("paid_amount >= 0", name="ck_obligations_paid_non_negative"),
        sa.CheckConstraint("paid_amount <= amount", name="ck_obligations_paid_le_amount"),
    )
    op.create_index("ix_obligations_user_id", "obligations", ["user_id"])
    op.create_index("ix_obligations_contract_id", "obligations", ["contract_id"])
    op.create_index("ix_obligations_apartment_id", "obligations", ["apartment_id"])
    op.create_index("ix_obligations_type", "obligations", ["type"])
    op.create_index("ix_obligations_period", "obligations", ["period"])
    op.create_index("ix_obligations_due_date", "obligations", ["due_date"])
    op.create_index("ix_obligations_status", "obligations", ["status"])


def downgrade() -> None:
    op.drop_index("ix_obligations_status", table_name="obligations")
    op.drop_index("ix_obligations_due_date", table_name="obligations")
    op.drop_index("ix_obligations_period", table_name="obligations")
    op.drop_index("ix_obligations_type", table_name="obligations")
    op.drop_index("ix_obligations_apartment_id", table_name="obligations")
    op.drop_index("ix_obligations_contract_id", table_name="obligations")
    op.drop_index("ix_obligations_user_id", table_name="obligations")
    op.drop_table("obligations")

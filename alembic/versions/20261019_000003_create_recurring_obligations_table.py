"""Create recurring_obligations table

Revision ID: 20261019_000003
Revises: 20261019_000002
Create Date: 2026-10-19

Monthly templates for non-rent obligations, plus the link from each
billed obligation back to its template.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_000003"
down_revision: Union[str, None] = "20261019_000002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OBLIGATION_TYPES = ("rent", "expenses", "maintenance", "tax", "service")


def upgrade() -> None:
    op.create_table(
        "recurring_obligations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=True),
        sa.Column("apartment_id", sa.Integer(), nullable=True),
        sa.Column(
            "type",
            sa.Enum(*OBLIGATION_TYPES, name="recurring_obligation_type", create_constraint=True),
            nullable=False,
        ),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("day_of_month", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_generated", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount >= 0", name="ck_recurring_obligations_amount_non_negative"),
        sa.CheckConstraint("day_of_month BETWEEN 1 AND 31", name="ck_recurring_obligations_day_of_month"),
    )
    op.create_index("ix_recurring_obligations_user_id", "recurring_obligations", ["user_id"])
    op.create_index("ix_recurring_obligations_contract_id", "recurring_obligations", ["contract_id"])
    op.create_index("ix_recurring_obligations_apartment_id", "recurring_obligations", ["apartment_id"])

    op.add_column("obligations", sa.Column("recurring_obligation_id", sa.Integer(), nullable=True))
    op.create_index("ix_obligations_recurring_obligation_id", "obligations", ["recurring_obligation_id"])


def downgrade() -> None:
    op.drop_index("ix_obligations_recurring_obligation_id", table_name="obligations")
    op.drop_column("obligations", "recurring_obligation_id")
    op.drop_index("ix_recurring_obligations_apartment_id", table_name="recurring_obligations")
    op.drop_index("ix_recurring_obligations_contract_id", table_name="recurring_obligations")
    op.drop_index("ix_recurring_obligations_user_id", table_name="recurring_obligations")
    op.drop_table("recurring_obligations")

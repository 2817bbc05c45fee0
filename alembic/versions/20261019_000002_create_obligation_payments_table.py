"""Create obligation_payments table

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19

Payment events applied to obligations. Deleting an obligation with
payments is refused; reverse the payments first. A gateway reference is
recorded at most once per obligation.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_000002"
down_revision: Union[str, None] = "20261019_000001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PAYMENT_METHODS = ("transfer", "cash", "card", "check", "gateway", "other")


def upgrade() -> None:
    op.create_table(
        "obligation_payments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("obligation_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column(
            "method",
            sa.Enum(*PAYMENT_METHODS, name="payment_method", create_constraint=True),
            nullable=False,
        ),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["obligation_id"],
            ["obligations.id"],
            name="fk_obligation_payments_obligation_id",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint("amount > 0", name="ck_obligation_payments_amount_positive"),
    )
    op.create_index("ix_obligation_payments_user_id", "obligation_payments", ["user_id"])
    op.create_index("ix_obligation_payments_obligation_id", "obligation_payments", ["obligation_id"])
    op.create_index("ix_obligation_payments_payment_date", "obligation_payments", ["payment_date"])
    op.create_index("ix_obligation_payments_reference", "obligation_payments", ["reference"])
    op.create_index(
        "uq_obligation_payments_obligation_reference",
        "obligation_payments",
        ["obligation_id", "reference"],
        unique=True,
        mssql_where=sa.text("reference IS NOT NULL"),
        sqlite_where=sa.text("reference IS NOT NULL"),
        postgresql_where=sa.text("reference IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_obligation_payments_obligation_reference", table_name="obligation_payments")
    op.drop_index("ix_obligation_payments_reference", table_name="obligation_payments")
    op.drop_index("ix_obligation_payments_payment_date", table_name="obligation_payments")
    op.drop_index("ix_obligation_payments_obligation_id", table_name="obligation_payments")
    op.drop_index("ix_obligation_payments_user_id", table_name="obligation_payments")
    op.drop_table("obligation_payments")

"""
Obligation model - a single amount owed for one purpose in one period.

Status lifecycle:
     PENDING -> PAID
     PENDING -> OVERDUE -> PAID

There is no separate partial status: an obligation with
0 < paid_amount < amount stays PENDING or OVERDUE.
"""
import enum
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class ObligationType(str, enum.Enum):
     """What the obligation is charged for."""
     RENT = "rent"
     EXPENSES = "expenses"
     MAINTENANCE = "maintenance"
     TAX = "tax"
     SERVICE = "service"


class ObligationStatus(str, enum.Enum):
     """Settlement status of an obligation."""
     PENDING = "pending"
     PAID = "paid"
     OVERDUE = "overdue"


class Obligation(TimestampMixin, Base):
     """
     Amount owed by a contract/apartment for one billing period.

     Commission and impact columns stay NULL until the obligation is fully
     paid; they are filled by the commission calculator at settlement time.
     """
     __tablename__ = "obligations"
     __table_args__ = (
          CheckConstraint("amount >= 0", name="ck_obligations_amount_non_negative"),
          CheckConstraint("paid_amount >= 0", name="ck_obligations_paid_non_negative"),
          CheckConstraint("paid_amount <= amount", name="ck_obligations_paid_le_amount"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)  # agency account

     # External references (owned by the CRUD layer, referenced by id only)
     contract_id = Column(Integer, nullable=True, index=True)
     apartment_id = Column(Integer, nullable=True, index=True)

     type = Column(
          Enum(ObligationType, name="obligation_type", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False,
          index=True
     )
     description = Column(String(500), nullable=False, default="")
     period = Column(Date, nullable=False, index=True)  # first day of month
     due_date = Column(Date, nullable=False, index=True)

     amount = Column(Numeric(12, 2), nullable=False)
     paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

     # Settlement distribution
     commission_amount = Column(Numeric(12, 2), nullable=True)
     owner_amount = Column(Numeric(12, 2), nullable=True)
     owner_impact = Column(Numeric(12, 2), nullable=True)
     agency_impact = Column(Numeric(12, 2), nullable=True)

     status = Column(
          Enum(ObligationStatus, name="obligation_status", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          default=ObligationStatus.PENDING,
          nullable=False,
          index=True
     )
     notes = Column(Text, nullable=True)

     # Template that billed this row, if any
     recurring_obligation_id = Column(Integer, nullable=True, index=True)

     # Provenance of rows carried over from the legacy payments table
     legacy_payment_id = Column(Integer, nullable=True, unique=True)

     # Optimistic lock, bumped on every UPDATE
     version_id = Column(Integer, nullable=False, default=1)

     # Relationships
     payments = relationship(
          "ObligationPayment",
          back_populates="obligation",
          order_by="ObligationPayment.id",
          passive_deletes=True,
     )

     __mapper_args__ = {"version_id_col": version_id}

     def __repr__(self):
          return (
               f"<Obligation(id={self.id}, type='{self.type.value}', amount={self.amount}, "
               f"paid={self.paid_amount}, status='{self.status.value}')>"
          )

     @property
     def outstanding(self) -> Decimal:
          """Amount still owed."""
          return Decimal(self.amount) - Decimal(self.paid_amount or 0)

     @property
     def is_partially_paid(self) -> bool:
          return Decimal("0") < Decimal(self.paid_amount or 0) < Decimal(self.amount)

     @property
     def is_settled(self) -> bool:
          return self.status == ObligationStatus.PAID

     def clear_distribution(self) -> None:
          """Drop settlement figures (obligation reopened)."""
          self.commission_amount = None
          self.owner_amount = None
          self.owner_impact = None
          self.agency_impact = None

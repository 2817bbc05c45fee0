"""
RecurringObligation model - a monthly template that bills one obligation
per period (building expenses, taxes, service fees).

Rent is never recurring here; it is billed from the contracts.
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, Enum, Boolean, CheckConstraint
from .base import Base, TimestampMixin
from .obligation import ObligationType


class RecurringObligation(TimestampMixin, Base):
     __tablename__ = "recurring_obligations"
     __table_args__ = (
          CheckConstraint("amount >= 0", name="ck_recurring_obligations_amount_non_negative"),
          CheckConstraint("day_of_month BETWEEN 1 AND 31", name="ck_recurring_obligations_day_of_month"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)  # agency account

     contract_id = Column(Integer, nullable=True, index=True)
     apartment_id = Column(Integer, nullable=True, index=True)

     type = Column(
          Enum(ObligationType, name="recurring_obligation_type", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False
     )
     category = Column(String(100), nullable=True)  # free label, e.g. "ABL", "expensas"
     description = Column(String(500), nullable=False)
     amount = Column(Numeric(12, 2), nullable=False)
     day_of_month = Column(Integer, nullable=False)  # due day, clamped to short months

     start_date = Column(Date, nullable=False)
     end_date = Column(Date, nullable=True)
     notes = Column(Text, nullable=True)

     is_active = Column(Boolean, nullable=False, default=True)
     last_generated = Column(Date, nullable=True)  # period of the last billed month

     def __repr__(self):
          return (
               f"<RecurringObligation(id={self.id}, type='{self.type.value}', amount={self.amount}, "
               f"day={self.day_of_month}, active={self.is_active})>"
          )


"""
ObligationPayment model - one recorded payment event against an Obligation.

Rows are immutable except for corrective notes. The sum of amounts per
obligation always equals the obligation's paid_amount; both are written
in the same transaction.
"""
import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, Enum, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class PaymentMethod(str, enum.Enum):
     """How the money was collected."""
     TRANSFER = "transfer"
     CASH = "cash"
     CARD = "card"
     CHECK = "check"
     GATEWAY = "gateway"
     OTHER = "other"


class ObligationPayment(TimestampMixin, Base):
     __tablename__ = "obligation_payments"
     __table_args__ = (
          CheckConstraint("amount > 0", name="ck_obligation_payments_amount_positive"),
          # One row per external reference and obligation; NULL references are
          # left out of the index (SQL Server treats NULLs as equal in UNIQUE)
          Index(
               "uq_obligation_payments_obligation_reference",
               "obligation_id",
               "reference",
               unique=True,
               mssql_where=text("reference IS NOT NULL"),
               sqlite_where=text("reference IS NOT NULL"),
               postgresql_where=text("reference IS NOT NULL"),
          ),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)
     obligation_id = Column(
          Integer,
          ForeignKey("obligations.id", ondelete="RESTRICT"),  # Reverse payments before deleting
          nullable=False,
          index=True
     )
     amount = Column(Numeric(12, 2), nullable=False)
     payment_date = Column(Date, nullable=False, index=True)
     method = Column(
          Enum(PaymentMethod, name="payment_method", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False,
          default=PaymentMethod.TRANSFER
     )
     reference = Column(String(255), nullable=True, index=True)  # external / gateway reference
     notes = Column(Text, nullable=True)

     # Relationships
     obligation = relationship("Obligation", back_populates="payments")

     def __repr__(self):
          return (
               f"<ObligationPayment(id={self.id}, obligation_id={self.obligation_id}, "
               f"amount={self.amount}, method='{self.method.value}')>"
          )

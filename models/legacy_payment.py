"""
LegacyPayment model - the deprecated flat payment record.

Maps to the existing 'payments' table. Rows are never modified; the
migration folds them into Obligation + ObligationPayment pairs.
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, func
from .base import Base


class LegacyPayment(Base):
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)
     contract_id = Column(Integer, nullable=False, index=True)

     month = Column(Date, nullable=False)  # billed month, used as due date
     amount = Column(Numeric(12, 2), nullable=False)
     status = Column(String(20), nullable=False, default="pending")  # pending, paid, overdue
     payment_date = Column(Date, nullable=True)
     method = Column(String(50), nullable=True)

     commission_amount = Column(Numeric(12, 2), nullable=True)
     owner_amount = Column(Numeric(12, 2), nullable=True)
     notes = Column(Text, nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     def __repr__(self):
          return f"<LegacyPayment(id={self.id}, contract_id={self.contract_id}, status='{self.status}')>"

"""
Owner model - property owner whose settlement the ledger computes.
Maps to existing 'owners' table; read-only for the ledger.
"""
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric
from .base import Base


class Owner(Base):
     """
     Property owner profile - maps to existing 'owners' table.
     """
     __tablename__ = "owners"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)
     name = Column(String(255), nullable=False)

     # Default commission (fraction 0-1) when the contract sets none
     commission_percentage = Column(Numeric(5, 4), nullable=True)
     balance = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))

     def __repr__(self):
          return f"<Owner(id={self.id}, name='{self.name}')>"

from sqlalchemy import Column, Integer, Numeric, Date
from .base import Base


class Contract(Base):
     """
     Contract model - rental agreement for an apartment.
     Maps to existing 'contracts' table in the database (owned by the CRUD layer).
     The ledger only reads it to route commission and impact to an owner.
     """
     __tablename__ = "contracts"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)
     apartment_id = Column(Integer, nullable=True, index=True)
     tenant_id = Column(Integer, nullable=True)

     start_date = Column(Date, nullable=False)
     end_date = Column(Date, nullable=False)
     rent_amount = Column(Numeric(12, 2), nullable=False)

     # Fraction 0-1; NULL falls back to the owner's default
     commission_percentage = Column(Numeric(5, 4), nullable=True)

     def __repr__(self):
          return f"<Contract(id={self.id}, apartment_id={self.apartment_id})>"

from sqlalchemy import Column, Integer, String
from .base import Base


class Apartment(Base):
     """
     Apartment model - rentable unit.
     Maps to existing 'apartments' table in the database.
     """
     __tablename__ = "apartments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, nullable=False, index=True)
     owner_id = Column(Integer, nullable=True, index=True)
     nomenclature = Column(String(100), nullable=True)

     def __repr__(self):
          return f"<Apartment(id={self.id}, owner_id={self.owner_id}, nomenclature='{self.nomenclature}')>"

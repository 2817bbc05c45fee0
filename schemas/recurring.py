"""
Pydantic schemas for recurring obligation templates.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.obligation import ObligationType


class RecurringObligationCreate(BaseModel):
     """Schema for creating a recurring obligation (any type but rent)."""
     contract_id: Optional[int] = Field(None, gt=0, description="Contract billed")
     apartment_id: Optional[int] = Field(None, gt=0, description="Apartment billed")
     type: ObligationType = Field(..., description="expenses, maintenance, tax or service")
     category: Optional[str] = Field(None, max_length=100)
     description: str = Field(..., min_length=1, max_length=500)
     amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Amount billed each month")
     day_of_month: int = Field(..., ge=1, le=31, description="Due day; clamped in shorter months")
     start_date: date
     end_date: Optional[date] = None
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "apartment_id": 4,
                    "type": "expenses",
                    "category": "expensas",
                    "description": "Expensas ordinarias",
                    "amount": 85000.00,
                    "day_of_month": 10,
                    "start_date": "2024-01-01"
               }
          }
     )


class RecurringObligationUpdate(BaseModel):
     """Fields left out are not changed; end_date null removes the end."""
     description: Optional[str] = Field(None, min_length=1, max_length=500)
     amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     day_of_month: Optional[int] = Field(None, ge=1, le=31)
     end_date: Optional[date] = None
     notes: Optional[str] = None
     is_active: Optional[bool] = None


class RecurringObligationResponse(BaseModel):
     id: int
     user_id: int
     contract_id: Optional[int] = None
     apartment_id: Optional[int] = None
     type: ObligationType
     category: Optional[str] = None
     description: str
     amount: Decimal
     day_of_month: int
     start_date: date
     end_date: Optional[date] = None
     notes: Optional[str] = None
     is_active: bool
     last_generated: Optional[date] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class RecurringObligationListResponse(BaseModel):
     recurring_obligations: List[RecurringObligationResponse]
     total: int

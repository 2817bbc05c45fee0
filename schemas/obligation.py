"""
Pydantic schemas for Obligation API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.obligation import ObligationStatus, ObligationType


class ObligationCreate(BaseModel):
     """Schema for creating a new obligation."""
     contract_id: Optional[int] = Field(None, gt=0, description="Contract billed (required for rent)")
     apartment_id: Optional[int] = Field(None, gt=0, description="Apartment billed")
     type: ObligationType = Field(..., description="rent, expenses, maintenance, tax or service")
     description: Optional[str] = Field(None, max_length=500)
     period: date = Field(..., description="Billed month (any day; stored as the 1st)")
     due_date: date = Field(..., description="Payment due date")
     amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Total owed")
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "contract_id": 1,
                    "type": "rent",
                    "period": "2024-03-01",
                    "due_date": "2024-03-10",
                    "amount": 450000.00
               }
          }
     )


class ObligationUpdate(BaseModel):
     """Schema for a manual edit; status is re-derived afterwards."""
     amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     due_date: Optional[date] = None
     description: Optional[str] = Field(None, max_length=500)
     notes: Optional[str] = None


class ObligationResponse(BaseModel):
     """Schema for obligation response."""
     id: int
     user_id: int
     contract_id: Optional[int] = None
     apartment_id: Optional[int] = None
     type: ObligationType
     description: str
     period: date
     due_date: date
     amount: Decimal
     paid_amount: Decimal
     outstanding: Decimal
     is_partially_paid: bool
     commission_amount: Optional[Decimal] = None
     owner_amount: Optional[Decimal] = None
     owner_impact: Optional[Decimal] = None
     agency_impact: Optional[Decimal] = None
     status: ObligationStatus
     notes: Optional[str] = None
     legacy_payment_id: Optional[int] = None
     recurring_obligation_id: Optional[int] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class ObligationListResponse(BaseModel):
     """Schema for obligation list response."""
     obligations: List[ObligationResponse]
     total: int


class OverdueSweepResponse(BaseModel):
     count: int


class RentGenerationResponse(BaseModel):
     generated: int
     skipped: int
     errors: List[str] = []

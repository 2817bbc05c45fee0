"""
Pydantic schemas for payment application and history.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.obligation_payment import PaymentMethod


class PaymentApplyRequest(BaseModel):
     """Request body for POST /api/obligations/{id}/payments."""

     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount collected")
     payment_date: date = Field(..., description="Date the money was received")
     method: PaymentMethod = Field(default=PaymentMethod.TRANSFER)
     reference: Optional[str] = Field(
          None,
          max_length=255,
          description="External reference (bank transfer id, gateway checkout id)",
     )
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": 30000.00,
                    "payment_date": "2024-03-10",
                    "method": "transfer",
                    "reference": "TRX-000123",
               }
          }
     )


class PaymentNotesUpdate(BaseModel):
     """Corrective notes; the only editable field of a recorded payment."""

     notes: Optional[str] = None


class ObligationPaymentResponse(BaseModel):
     id: int
     obligation_id: int
     amount: Decimal
     payment_date: date
     method: PaymentMethod
     reference: Optional[str] = None
     notes: Optional[str] = None
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class PaymentListResponse(BaseModel):
     payments: List[ObligationPaymentResponse]
     total: int


class GatewayConfirmResponse(BaseModel):
     """Response for the gateway webhook."""

     obligation_id: int
     provider_reference: str
     applied: bool = Field(..., description="False when the reference was already recorded")
     status: str

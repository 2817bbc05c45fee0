"""
Obligation API routes.

Thin shaping over the ledger services; every query is scoped to the
caller's agency account. Ledger errors are rendered by the handler
registered in main.py.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from config import RENT_DUE_DAY
from database import get_session
from models.obligation import ObligationStatus, ObligationType
from schemas.obligation import (
     ObligationCreate,
     ObligationUpdate,
     ObligationResponse,
     ObligationListResponse,
     OverdueSweepResponse,
     RentGenerationResponse,
)
from schemas.payment import (
     PaymentApplyRequest,
     PaymentNotesUpdate,
     ObligationPaymentResponse,
     PaymentListResponse,
)
from services.commission import ImpactPolicy
from services.directory import ContractDirectory
from services.obligation_service import ObligationService
from services.overdue_service import OverdueSweeper
from services.payment_service import PaymentRecorder

from .deps import billing_month, current_user_id, get_directory, get_policy

router = APIRouter(prefix="/api/obligations", tags=["obligations"])


def _obligations(
     db: Session = Depends(get_session),
     directory: ContractDirectory = Depends(get_directory),
     policy: ImpactPolicy = Depends(get_policy),
) -> ObligationService:
     return ObligationService(db, directory, policy)


def _recorder(
     db: Session = Depends(get_session),
     directory: ContractDirectory = Depends(get_directory),
     policy: ImpactPolicy = Depends(get_policy),
) -> PaymentRecorder:
     return PaymentRecorder(db, directory, policy)


@router.post(
     "",
     response_model=ObligationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create an obligation"
)
def create_obligation(
     body: ObligationCreate,
     service: ObligationService = Depends(_obligations),
     user_id: int = Depends(current_user_id),
):
     """
     Create a PENDING obligation with nothing paid.

     - **type**: rent, expenses, maintenance, tax or service
     - **period**: billed month (stored as its first day)
     - **amount**: total owed (>= 0)
     """
     return service.create_obligation(user_id, **body.model_dump())


@router.get(
     "",
     response_model=ObligationListResponse,
     summary="List obligations with filters"
)
def list_obligations(
     contract_id: Optional[int] = Query(None, description="Filter by contract ID"),
     apartment_id: Optional[int] = Query(None, description="Filter by apartment ID"),
     owner_id: Optional[int] = Query(None, description="Filter by owner ID"),
     type: Optional[ObligationType] = Query(None, description="Filter by type"),
     status: Optional[ObligationStatus] = Query(None, description="Filter by status"),
     period_from: Optional[date] = Query(None, description="First billed month"),
     period_to: Optional[date] = Query(None, description="Last billed month"),
     service: ObligationService = Depends(_obligations),
     user_id: int = Depends(current_user_id),
):
     obligations = service.list_obligations(
          user_id=user_id,
          contract_id=contract_id,
          apartment_id=apartment_id,
          owner_id=owner_id,
          type=type,
          status=status,
          period_from=period_from,
          period_to=period_to,
     )
     return ObligationListResponse(
          obligations=[ObligationResponse.model_validate(o) for o in obligations],
          total=len(obligations),
     )


@router.post(
     "/mark-overdue",
     response_model=OverdueSweepResponse,
     summary="Mark past-due pending obligations as overdue"
)
def mark_overdue(
     db: Session = Depends(get_session),
     user_id: int = Depends(current_user_id),
):
     return OverdueSweepResponse(count=OverdueSweeper(db).mark_overdue(user_id))


@router.post(
     "/generate",
     response_model=RentGenerationResponse,
     summary="Bill rent for every active contract in a month"
)
def generate_rent(
     period: date = Depends(billing_month),
     service: ObligationService = Depends(_obligations),
     user_id: int = Depends(current_user_id),
):
     return service.generate_rent_obligations(user_id, period, due_day=RENT_DUE_DAY)


@router.get("/{obligation_id}", response_model=ObligationResponse, summary="Get an obligation")
def get_obligation(
     obligation_id: int,
     service: ObligationService = Depends(_obligations),
     user_id: int = Depends(current_user_id),
):
     return service.get_obligation(obligation_id, user_id)


@router.put("/{obligation_id}", response_model=ObligationResponse, summary="Edit an obligation")
def update_obligation(
     obligation_id: int,
     body: ObligationUpdate,
     service: ObligationService = Depends(_obligations),
     user_id: int = Depends(current_user_id),
):
     """
     Manual edit. The amount may not drop below what was already paid;
     status is recomputed afterwards.
     """
     return service.update_obligation(obligation_id, user_id, **body.model_dump(exclude_unset=True))


@router.post(
     "/{obligation_id}/recompute",
     response_model=ObligationResponse,
     summary="Re-derive status from amount and paid amount"
)
def recompute_obligation(
     obligation_id: int,
     service: ObligationService = Depends(_obligations),
     user_id: int = Depends(current_user_id),
):
     return service.recompute(obligation_id, user_id)


@router.post(
     "/{obligation_id}/payments",
     response_model=ObligationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Apply a payment"
)
def apply_payment(
     obligation_id: int,
     body: PaymentApplyRequest,
     recorder: PaymentRecorder = Depends(_recorder),
     user_id: int = Depends(current_user_id),
):
     """
     Record a payment and update the obligation atomically.

     Overpaying is rejected with 409 (overpayment); the obligation is left
     untouched.
     """
     return recorder.apply_payment(
          obligation_id,
          body.amount,
          body.payment_date,
          method=body.method,
          reference=body.reference,
          notes=body.notes,
          user_id=user_id,
     )


@router.get(
     "/{obligation_id}/payments",
     response_model=PaymentListResponse,
     summary="Payment history of an obligation"
)
def list_payments(
     obligation_id: int,
     recorder: PaymentRecorder = Depends(_recorder),
     user_id: int = Depends(current_user_id),
):
     payments = recorder.list_payments(obligation_id, user_id)
     return PaymentListResponse(
          payments=[ObligationPaymentResponse.model_validate(p) for p in payments],
          total=len(payments),
     )


@router.patch(
     "/{obligation_id}/payments/{payment_id}",
     response_model=ObligationPaymentResponse,
     summary="Correct the notes of a payment"
)
def annotate_payment(
     obligation_id: int,
     payment_id: int,
     body: PaymentNotesUpdate,
     recorder: PaymentRecorder = Depends(_recorder),
     user_id: int = Depends(current_user_id),
):
     return recorder.annotate_payment(obligation_id, payment_id, body.notes, user_id)


@router.delete(
     "/{obligation_id}/payments/{payment_id}",
     response_model=ObligationResponse,
     summary="Reverse a payment"
)
def reverse_payment(
     obligation_id: int,
     payment_id: int,
     recorder: PaymentRecorder = Depends(_recorder),
     user_id: int = Depends(current_user_id),
):
     """Delete a payment and take its amount back off the obligation."""
     return recorder.reverse_payment(obligation_id, payment_id, user_id)

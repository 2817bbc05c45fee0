# routers/payments.py
"""
Payment gateway webhook.

POST /api/payments/webhook: receives the gateway's checkout result and
records it as a gateway payment on the obligation named by the
reference ("OBL-<id>"). Redelivered events are acknowledged without
applying them twice.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_session
from schemas.payment import GatewayConfirmResponse
from services.commission import ImpactPolicy
from services.directory import ContractDirectory
from services.payment_service import PaymentRecorder

from .deps import get_directory, get_policy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])

REFERENCE_PREFIX = "OBL-"


def _obligation_id(request_ref) -> int:
     if not request_ref or not str(request_ref).startswith(REFERENCE_PREFIX):
          raise HTTPException(400, "Invalid reference")
     try:
          return int(str(request_ref)[len(REFERENCE_PREFIX):])
     except ValueError:
          raise HTTPException(400, "Invalid reference")


def _paid_on(data: dict):
     paid_at = data.get("paymentDate") or data.get("updatedAt")
     if not paid_at:
          return None
     try:
          return datetime.fromisoformat(str(paid_at).replace("Z", "+00:00")).date()
     except ValueError:
          return None


@router.post("/webhook")
def gateway_webhook(
     payload: dict = Body(...),
     db: Session = Depends(get_session),
     directory: ContractDirectory = Depends(get_directory),
     policy: ImpactPolicy = Depends(get_policy),
):
     """
     Receives the gateway payment result.

     Only CHECKOUT.SUCCESS events are recorded; the amount defaults to
     what is still owed when the event carries none.
     """
     event = payload.get("event")
     data = payload.get("data", {})
     if event != "CHECKOUT.SUCCESS":
          return {"message": "Ignored non-success event"}
     checkout_id = data.get("id")
     if not checkout_id:
          raise HTTPException(400, "Missing checkout id")

     obligation_id = _obligation_id(data.get("requestReferenceNumber"))
     recorder = PaymentRecorder(db, directory, policy)

     total = data.get("totalAmount")
     # Either {"value": ..., "currency": ...} or a bare number
     amount = total.get("value") if isinstance(total, dict) else total
     if amount is None:
          obligation = recorder.repo.get(obligation_id)
          if obligation is None:
               raise HTTPException(404, "Obligation not found")
          amount = obligation.outstanding

     obligation, applied = recorder.confirm_gateway_payment(
          obligation_id, amount, str(checkout_id), _paid_on(data),
     )
     logger.info("Gateway checkout %s on obligation #%s (applied=%s)", checkout_id, obligation_id, applied)
     return GatewayConfirmResponse(
          obligation_id=obligation.id,
          provider_reference=str(checkout_id),
          applied=applied,
          status=obligation.status.value,
     )

"""
Recurring obligation API routes.

Templates for monthly non-rent charges and the monthly run that bills
them. Everything is scoped to the caller's agency account.
"""
from datetime import date

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from database import get_session
from schemas.obligation import RentGenerationResponse
from schemas.recurring import (
     RecurringObligationCreate,
     RecurringObligationUpdate,
     RecurringObligationResponse,
     RecurringObligationListResponse,
)
from services.commission import ImpactPolicy
from services.directory import ContractDirectory
from services.recurring_service import RecurringObligationService

from .deps import billing_month, current_user_id, get_directory, get_policy

router = APIRouter(prefix="/api/recurring-obligations", tags=["recurring obligations"])


def _recurring(
     db: Session = Depends(get_session),
     directory: ContractDirectory = Depends(get_directory),
     policy: ImpactPolicy = Depends(get_policy),
) -> RecurringObligationService:
     return RecurringObligationService(db, directory, policy)


@router.post(
     "",
     response_model=RecurringObligationResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a recurring obligation"
)
def create_recurring(
     body: RecurringObligationCreate,
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     """
     Create an active monthly template.

     - **type**: any obligation type except rent
     - **day_of_month**: due day (1-31), moved to the last day in shorter months
     """
     return service.create_recurring(user_id, **body.model_dump())


@router.get("", response_model=RecurringObligationListResponse, summary="List recurring obligations")
def list_recurring(
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     templates = service.list_recurring(user_id)
     return RecurringObligationListResponse(
          recurring_obligations=[RecurringObligationResponse.model_validate(t) for t in templates],
          total=len(templates),
     )


@router.post(
     "/generate",
     response_model=RentGenerationResponse,
     summary="Bill every active recurring obligation for a month"
)
def generate_recurring(
     period: date = Depends(billing_month),
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     return service.generate_for_month(user_id, period)


@router.get("/{recurring_id}", response_model=RecurringObligationResponse, summary="Get a recurring obligation")
def get_recurring(
     recurring_id: int,
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     return service.get_recurring(recurring_id, user_id)


@router.put("/{recurring_id}", response_model=RecurringObligationResponse, summary="Edit a recurring obligation")
def update_recurring(
     recurring_id: int,
     body: RecurringObligationUpdate,
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     """Only future months are affected; obligations already billed keep their values."""
     return service.update_recurring(recurring_id, user_id, body.model_dump(exclude_unset=True))


@router.post(
     "/{recurring_id}/toggle",
     response_model=RecurringObligationResponse,
     summary="Pause or resume a recurring obligation"
)
def toggle_recurring(
     recurring_id: int,
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     return service.toggle_active(recurring_id, user_id)


@router.delete(
     "/{recurring_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a recurring obligation"
)
def delete_recurring(
     recurring_id: int,
     service: RecurringObligationService = Depends(_recurring),
     user_id: int = Depends(current_user_id),
):
     service.delete_recurring(recurring_id, user_id)
     return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Settlement (liquidación) API.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_session
from schemas.settlement import SettlementSummary
from services.commission import ImpactPolicy
from services.directory import ContractDirectory
from services.overdue_service import OverdueSweeper
from services.settlement_service import SettlementAggregator

from .deps import current_user_id, get_directory, get_policy

router = APIRouter(prefix="/api/settlements", tags=["settlements"])


@router.get("", response_model=SettlementSummary, summary="Settlement figures per owner and month")
def get_settlement(
     period_from: date = Query(..., description="First month of the range"),
     period_to: Optional[date] = Query(None, description="Last month of the range (defaults to period_from)"),
     owner_id: Optional[int] = Query(None, description="Only this owner"),
     apartment_id: Optional[int] = Query(None, description="Only this apartment"),
     refresh_overdue: bool = Query(False, description="Run the overdue sweep before aggregating"),
     db: Session = Depends(get_session),
     directory: ContractDirectory = Depends(get_directory),
     policy: ImpactPolicy = Depends(get_policy),
     user_id: int = Depends(current_user_id),
):
     """
     Read-only aggregation of paid obligations in the period plus the
     current mora. With refresh_overdue the overdue sweep runs first so
     mora reflects today's date.
     """
     if refresh_overdue:
          OverdueSweeper(db).mark_overdue(user_id)
     return SettlementAggregator(db, directory, policy).aggregate_settlement(
          user_id,
          period_from,
          period_to,
          owner_id=owner_id,
          apartment_id=apartment_id,
     )

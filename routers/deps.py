"""
Shared FastAPI dependencies for the ledger routers.
"""
from functools import lru_cache

from datetime import date

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from auth import verify_token
from config import get_impact_policy
from database import get_session
from services.commission import ImpactPolicy
from services.directory import ContractDirectory


@lru_cache(maxsize=1)
def _policy() -> ImpactPolicy:
     return get_impact_policy()


def get_policy() -> ImpactPolicy:
     return _policy()


def get_directory(db: Session = Depends(get_session)) -> ContractDirectory:
     return ContractDirectory(db)


def current_user_id(token: dict = Depends(verify_token)) -> int:
     """Agency account of the caller."""
     return int(token["id"])


def billing_month(month: str = Query(..., description="Month to bill, YYYY-MM")) -> date:
     """First day of the requested month; 400 on anything but YYYY-MM."""
     try:
          year, month_num = (int(part) for part in month.split("-"))
          return date(year, month_num, 1)
     except ValueError:
          raise HTTPException(
               status_code=status.HTTP_400_BAD_REQUEST,
               detail="Invalid month format. Use YYYY-MM"
          )

"""
Legacy payment migration API.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_session
from schemas.migration import MigrationSummary
from services.commission import ImpactPolicy
from services.directory import ContractDirectory
from services.migration_service import LegacyMigration

from .deps import current_user_id, get_directory, get_policy

router = APIRouter(prefix="/api/migration", tags=["migration"])


@router.post(
     "/legacy-payments",
     response_model=MigrationSummary,
     summary="Carry legacy payments over into obligations"
)
def migrate_legacy_payments(
     db: Session = Depends(get_session),
     directory: ContractDirectory = Depends(get_directory),
     policy: ImpactPolicy = Depends(get_policy),
     user_id: int = Depends(current_user_id),
):
     """
     Idempotent: records already migrated are counted as skipped. A bad
     record is reported in errors and does not stop the run.
     """
     return LegacyMigration(db, directory, policy).migrate_legacy_payments(user_id)

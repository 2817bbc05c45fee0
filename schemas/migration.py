"""
Legacy migration result schemas.
"""
from typing import List
from pydantic import BaseModel, Field


class MigrationErrorItem(BaseModel):
     legacy_id: int
     reason: str


class MigrationSummary(BaseModel):
     migrated: int = Field(0, description="Obligations created in this run")
     payments_created: int = Field(0, description="ObligationPayments created in this run")
     skipped: int = Field(0, description="Legacy records already migrated earlier")
     errors: List[MigrationErrorItem] = Field(default_factory=list)

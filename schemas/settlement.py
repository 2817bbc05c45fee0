"""
Settlement summary schemas (liquidación figures per owner and period).

Field meanings:
- cobrado: owner credits collected (positive owner impact of paid obligations)
- ajustes: deductions against the owner (absolute negative owner impact)
- comisiones: agency commission on paid rent
- a_liquidar: cobrado - ajustes - comisiones
- mora: outstanding amount on overdue obligations, as of now
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel

ZERO = Decimal("0.00")


class SettlementFigures(BaseModel):
     cobrado: Decimal = ZERO
     ajustes: Decimal = ZERO
     comisiones: Decimal = ZERO
     a_liquidar: Decimal = ZERO


class OwnerSettlement(SettlementFigures):
     owner_id: Optional[int] = None  # None groups obligations with no resolvable owner
     owner_name: Optional[str] = None
     balance: Optional[Decimal] = None
     obligations: int = 0
     mora: Decimal = ZERO


class MonthlySettlement(SettlementFigures):
     period: date


class SettlementTotals(SettlementFigures):
     obligations: int = 0
     mora: Decimal = ZERO


class SettlementSummary(BaseModel):
     period_from: date
     period_to: date
     owner_id: Optional[int] = None
     apartment_id: Optional[int] = None
     totals: SettlementTotals
     owners: List[OwnerSettlement]
     monthly: List[MonthlySettlement]
     # Paid obligations whose stored distribution differs from a fresh calculation
     discrepancies: List[int] = []

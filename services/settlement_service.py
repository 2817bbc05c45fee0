"""
Settlement aggregator - read-only owner settlement figures.

Groups paid obligations in a period range per owner and per month:

     cobrado    = sum of positive owner_impact
     ajustes    = sum of |negative owner_impact|
     comisiones = sum of agency_impact on rent
     a_liquidar = cobrado - ajustes - comisiones

mora is the outstanding amount of OVERDUE obligations and ignores the
period range. Everything comes from a single query so the figures
belong to one snapshot; nothing is written.
"""
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from models import Obligation, ObligationStatus, ObligationType
from schemas.settlement import (
     MonthlySettlement,
     OwnerSettlement,
     SettlementSummary,
     SettlementTotals,
)
from .commission import Distribution, ImpactPolicy, calculate_distribution
from .directory import BaseDirectory
from .exceptions import ValidationError
from .obligation_service import first_of_month

ZERO = Decimal("0.00")


def _add_month(value: date) -> date:
     if value.month == 12:
          return date(value.year + 1, 1, 1)
     return date(value.year, value.month + 1, 1)


class _Bucket:
     """Running figures for one owner / month / the whole result."""

     def __init__(self):
          self.cobrado = ZERO
          self.ajustes = ZERO
          self.comisiones = ZERO
          self.obligations = 0
          self.mora = ZERO

     def add(self, obligation_type: ObligationType, distribution: Distribution) -> None:
          if distribution.owner_impact > 0:
               self.cobrado += distribution.owner_impact
          elif distribution.owner_impact < 0:
               self.ajustes += -distribution.owner_impact
          if obligation_type == ObligationType.RENT:
               self.comisiones += distribution.agency_impact
          self.obligations += 1

     def figures(self) -> dict:
          return {
               "cobrado": self.cobrado,
               "ajustes": self.ajustes,
               "comisiones": self.comisiones,
               "a_liquidar": self.cobrado - self.ajustes - self.comisiones,
          }


class SettlementAggregator:

     def __init__(self, db: Session, directory: BaseDirectory, policy: Optional[ImpactPolicy] = None):
          self.db = db
          self.directory = directory
          self.policy = policy or ImpactPolicy()

     def aggregate_settlement(
          self,
          user_id: Optional[int],
          period_from: date,
          period_to: Optional[date] = None,
          owner_id: Optional[int] = None,
          apartment_id: Optional[int] = None,
     ) -> SettlementSummary:
          """
          Settlement figures for the months period_from..period_to (inclusive).

          Args:
               user_id: agency account (None = all accounts)
               period_from: first month of the range (any day of it)
               period_to: last month of the range; defaults to period_from
               owner_id: only obligations routed to this owner
               apartment_id: only obligations on this apartment

          Raises:
               ValidationError: period_to before period_from
          """
          if period_from is None:
               raise ValidationError("period_from is required")
          start = first_of_month(period_from)
          end = first_of_month(period_to) if period_to is not None else start
          if end < start:
               raise ValidationError("period_to must not be before period_from")

          query = self.db.query(Obligation).filter(
               or_(
                    and_(
                         Obligation.status == ObligationStatus.PAID,
                         Obligation.period >= start,
                         Obligation.period <= end,
                    ),
                    Obligation.status == ObligationStatus.OVERDUE,
               )
          )
          if user_id is not None:
               query = query.filter(Obligation.user_id == user_id)
          snapshot = query.order_by(Obligation.id.asc()).all()

          totals = _Bucket()
          owners: Dict[Optional[int], _Bucket] = {}
          monthly: "OrderedDict[date, _Bucket]" = OrderedDict()
          month = start
          while month <= end:
               monthly[month] = _Bucket()
               month = _add_month(month)
          discrepancies: List[int] = []

          for obligation in snapshot:
               routed_owner = self.directory.owner_for(obligation.contract_id, obligation.apartment_id)
               if owner_id is not None and routed_owner != owner_id:
                    continue
               if apartment_id is not None:
                    routed_apartment = self.directory.apartment_for(obligation.contract_id, obligation.apartment_id)
                    if routed_apartment != apartment_id:
                         continue

               bucket = owners.setdefault(routed_owner, _Bucket())

               if obligation.status == ObligationStatus.OVERDUE:
                    outstanding = obligation.outstanding
                    bucket.mora += outstanding
                    totals.mora += outstanding
                    continue

               distribution, matches = self._distribution(obligation)
               if not matches:
                    discrepancies.append(obligation.id)
               bucket.add(obligation.type, distribution)
               totals.add(obligation.type, distribution)
               monthly[first_of_month(obligation.period)].add(obligation.type, distribution)

          owner_rows = []
          for key in sorted(owners, key=lambda k: (k is None, k or 0)):
               bucket = owners[key]
               info = self.directory.get_owner(key) if key is not None else None
               owner_rows.append(
                    OwnerSettlement(
                         owner_id=key,
                         owner_name=info.name if info else None,
                         balance=info.balance if info else None,
                         obligations=bucket.obligations,
                         mora=bucket.mora,
                         **bucket.figures(),
                    )
               )

          return SettlementSummary(
               period_from=start,
               period_to=end,
               owner_id=owner_id,
               apartment_id=apartment_id,
               totals=SettlementTotals(obligations=totals.obligations, mora=totals.mora, **totals.figures()),
               owners=owner_rows,
               monthly=[MonthlySettlement(period=p, **b.figures()) for p, b in monthly.items()],
               discrepancies=discrepancies,
          )

     def _distribution(self, obligation: Obligation):
          """
          Stored distribution of a paid obligation, checked against a fresh
          calculation. Rows with nothing stored use the calculation.
          """
          percentage = self.directory.commission_for(obligation.contract_id, obligation.apartment_id)
          computed = calculate_distribution(obligation.amount, obligation.type, percentage, self.policy)
          if obligation.owner_impact is None or obligation.agency_impact is None:
               return computed, False
          stored = Distribution(
               commission_amount=Decimal(obligation.commission_amount or 0),
               owner_amount=Decimal(obligation.owner_amount or 0),
               owner_impact=Decimal(obligation.owner_impact),
               agency_impact=Decimal(obligation.agency_impact),
          )
          matches = (
               stored.owner_impact == computed.owner_impact
               and stored.agency_impact == computed.agency_impact
               and stored.commission_amount == computed.commission_amount
          )
          return stored, matches

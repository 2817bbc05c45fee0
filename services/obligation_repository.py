"""
Queries over the obligations / obligation_payments tables.

Every ledger component receives its session through its constructor and
goes through this repository, so tests can hand in a throwaway database.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import Session

from models import Obligation, ObligationPayment, ObligationStatus, ObligationType


class ObligationRepository:

     def __init__(self, db: Session):
          self.db = db

     # -- obligations ------------------------------------------------------

     def get(self, obligation_id: int, user_id: Optional[int] = None) -> Optional[Obligation]:
          stmt = select(Obligation).where(Obligation.id == obligation_id)
          if user_id is not None:
               stmt = stmt.where(Obligation.user_id == user_id)
          return self.db.execute(stmt).scalars().first()

     def get_for_update(self, obligation_id: int, user_id: Optional[int] = None) -> Optional[Obligation]:
          """
          Load the row locked (SELECT ... FOR UPDATE where supported) and
          overwrite whatever copy the session already holds.
          """
          stmt = (
               select(Obligation)
               .where(Obligation.id == obligation_id)
               .with_for_update()
               .execution_options(populate_existing=True)
          )
          if user_id is not None:
               stmt = stmt.where(Obligation.user_id == user_id)
          return self.db.execute(stmt).scalars().first()

     def add(self, obligation: Obligation) -> Obligation:
          self.db.add(obligation)
          self.db.flush()
          return obligation

     def find_by_legacy_id(self, legacy_payment_id: int) -> Optional[Obligation]:
          return (
               self.db.query(Obligation)
               .filter(Obligation.legacy_payment_id == legacy_payment_id)
               .first()
          )

     def find_rent(self, user_id: int, contract_id: int, period: date) -> Optional[Obligation]:
          return (
               self.db.query(Obligation)
               .filter(
                    Obligation.user_id == user_id,
                    Obligation.contract_id == contract_id,
                    Obligation.type == ObligationType.RENT,
                    Obligation.period == period,
               )
               .first()
          )

     def find_recurring(self, user_id: int, recurring_obligation_id: int, period: date) -> Optional[Obligation]:
          return (
               self.db.query(Obligation)
               .filter(
                    Obligation.user_id == user_id,
                    Obligation.recurring_obligation_id == recurring_obligation_id,
                    Obligation.period == period,
               )
               .first()
          )

     def unlink_recurring(self, recurring_obligation_id: int) -> int:
          """Detach billed obligations from a template that is going away."""
          result = self.db.execute(
               update(Obligation)
               .where(Obligation.recurring_obligation_id == recurring_obligation_id)
               .values(recurring_obligation_id=None, version_id=Obligation.version_id + 1)
               .execution_options(synchronize_session="fetch")
          )
          return result.rowcount or 0

     def search(
          self,
          user_id: Optional[int] = None,
          contract_ids: Optional[Iterable[int]] = None,
          apartment_ids: Optional[Iterable[int]] = None,
          type: Optional[ObligationType] = None,
          statuses: Optional[Iterable[ObligationStatus]] = None,
          period_from: Optional[date] = None,
          period_to: Optional[date] = None,
     ) -> List[Obligation]:
          """
          Filtered listing ordered by due date then id.

          contract_ids and apartment_ids are OR-ed: an obligation matches
          when either its contract or its apartment is in the given sets.
          """
          query = self.db.query(Obligation)
          if user_id is not None:
               query = query.filter(Obligation.user_id == user_id)

          scope = []
          if contract_ids is not None:
               scope.append(Obligation.contract_id.in_(list(contract_ids)))
          if apartment_ids is not None:
               scope.append(Obligation.apartment_id.in_(list(apartment_ids)))
          if scope:
               query = query.filter(or_(*scope))

          if type is not None:
               query = query.filter(Obligation.type == type)
          if statuses is not None:
               query = query.filter(Obligation.status.in_(list(statuses)))
          if period_from is not None:
               query = query.filter(Obligation.period >= period_from)
          if period_to is not None:
               query = query.filter(Obligation.period <= period_to)
          return query.order_by(Obligation.due_date.asc(), Obligation.id.asc()).all()

     def mark_overdue(self, today: date, user_id: Optional[int] = None) -> int:
          """
          Conditional UPDATE pending -> overdue for rows past due.

          The status check happens in the UPDATE itself, so a row settled
          by a concurrent payment is never touched. version_id is bumped
          so an in-flight payment holding the old version retries.
          """
          stmt = (
               update(Obligation)
               .where(
                    Obligation.status == ObligationStatus.PENDING,
                    Obligation.due_date < today,
               )
               .values(
                    status=ObligationStatus.OVERDUE,
                    version_id=Obligation.version_id + 1,
               )
               .execution_options(synchronize_session="fetch")
          )
          if user_id is not None:
               stmt = stmt.where(Obligation.user_id == user_id)
          result = self.db.execute(stmt)
          return result.rowcount or 0

     # -- payments ---------------------------------------------------------

     def get_payment(
          self, obligation_id: int, payment_id: int, user_id: Optional[int] = None
     ) -> Optional[ObligationPayment]:
          query = self.db.query(ObligationPayment).filter(
               ObligationPayment.id == payment_id,
               ObligationPayment.obligation_id == obligation_id,
          )
          if user_id is not None:
               query = query.filter(ObligationPayment.user_id == user_id)
          return query.first()

     def payments_for(self, obligation_id: int) -> List[ObligationPayment]:
          """Payment history, newest first."""
          return (
               self.db.query(ObligationPayment)
               .filter(ObligationPayment.obligation_id == obligation_id)
               .order_by(ObligationPayment.payment_date.desc(), ObligationPayment.id.desc())
               .all()
          )

     def find_payment_by_reference(self, obligation_id: int, reference: str) -> Optional[ObligationPayment]:
          return (
               self.db.query(ObligationPayment)
               .filter(
                    ObligationPayment.obligation_id == obligation_id,
                    ObligationPayment.reference == reference,
               )
               .first()
          )

     def paid_total(self, obligation_id: int) -> Decimal:
          """Sum of recorded payments for one obligation."""
          total = (
               self.db.query(func.coalesce(func.sum(ObligationPayment.amount), 0))
               .filter(ObligationPayment.obligation_id == obligation_id)
               .scalar()
          )
          return Decimal(str(total))

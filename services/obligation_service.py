"""
Obligation Service - store and lifecycle of obligations.

Creation, listing, manual edits, status recomputation and monthly rent
billing. Payment application lives in payment_service; status moves to
OVERDUE through overdue_service.
"""
import logging
import calendar
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from models import Obligation, ObligationStatus, ObligationType
from .commission import ImpactPolicy, calculate_distribution, to_money
from .directory import BaseDirectory
from .exceptions import NotFoundError, ValidationError
from .obligation_repository import ObligationRepository

logger = logging.getLogger(__name__)


def coerce_enum(enum_cls, value, field_name: str):
     """Map a raw value onto a closed enum, raising ValidationError."""
     if isinstance(value, enum_cls):
          return value
     if value is None:
          raise ValidationError(f"{field_name} is required")
     try:
          return enum_cls(str(value).strip().lower())
     except ValueError:
          allowed = ", ".join(m.value for m in enum_cls)
          raise ValidationError(f"Unknown {field_name} '{value}' (expected one of: {allowed})")


def first_of_month(value: date) -> date:
     return value.replace(day=1)


def settle_obligation(obligation: Obligation, directory: BaseDirectory, policy: ImpactPolicy) -> None:
     """
     Mark a fully paid obligation PAID and fill its distribution.

     Commission is only finalized here, at the moment the obligation
     becomes fully paid.
     """
     percentage = directory.commission_for(obligation.contract_id, obligation.apartment_id)
     distribution = calculate_distribution(obligation.amount, obligation.type, percentage, policy)
     obligation.status = ObligationStatus.PAID
     obligation.commission_amount = distribution.commission_amount
     obligation.owner_amount = distribution.owner_amount
     obligation.owner_impact = distribution.owner_impact
     obligation.agency_impact = distribution.agency_impact


def reopen_obligation(obligation: Obligation, today: date) -> None:
     """Move a PAID obligation that is no longer covered back to PENDING/OVERDUE."""
     obligation.status = ObligationStatus.OVERDUE if obligation.due_date < today else ObligationStatus.PENDING
     obligation.clear_distribution()


class ObligationService:
     """Service class for obligation store and lifecycle operations."""

     def __init__(
          self,
          db: Session,
          directory: BaseDirectory,
          policy: Optional[ImpactPolicy] = None,
          clock: Callable[[], date] = date.today,
     ):
          self.db = db
          self.repo = ObligationRepository(db)
          self.directory = directory
          self.policy = policy or ImpactPolicy()
          self.clock = clock

     def create_obligation(
          self,
          user_id: int,
          *,
          type,
          amount,
          period: Optional[date],
          due_date: Optional[date],
          contract_id: Optional[int] = None,
          apartment_id: Optional[int] = None,
          description: Optional[str] = None,
          notes: Optional[str] = None,
          recurring_obligation_id: Optional[int] = None,
     ) -> Obligation:
          """
          Create a PENDING obligation with nothing paid.

          Args:
               user_id: agency account owning the obligation
               type: one of ObligationType (enum or its value)
               amount: total owed, >= 0
               period: any date inside the billed month (normalized to day 1)
               due_date: payment due date
               contract_id: contract billed (required for rent)
               apartment_id: apartment billed; filled from the contract when omitted
               recurring_obligation_id: template that billed it, for generated rows

          Raises:
               ValidationError: bad amount, missing dates, unknown type
               NotFoundError: contract_id does not belong to the account
          """
          obligation_type = coerce_enum(ObligationType, type, "type")
          amount = to_money(amount)
          if amount < 0:
               raise ValidationError(f"amount must be >= 0, got {amount}")
          if period is None:
               raise ValidationError("period is required")
          if due_date is None:
               raise ValidationError("due_date is required")
          if contract_id is None and apartment_id is None:
               raise ValidationError("contract_id or apartment_id is required")
          if obligation_type == ObligationType.RENT and contract_id is None:
               raise ValidationError("rent obligations require a contract_id")

          if contract_id is not None:
               contract = self.directory.get_contract(contract_id, user_id)
               if contract is None:
                    raise NotFoundError(f"Contract with ID {contract_id} not found")
               if apartment_id is None:
                    apartment_id = contract.apartment_id

          period = first_of_month(period)
          obligation = Obligation(
               user_id=user_id,
               contract_id=contract_id,
               apartment_id=apartment_id,
               type=obligation_type,
               description=description or f"{obligation_type.value.capitalize()} {period:%m/%Y}",
               period=period,
               due_date=due_date,
               amount=amount,
               paid_amount=Decimal("0.00"),
               status=ObligationStatus.PENDING,
               notes=notes,
               recurring_obligation_id=recurring_obligation_id,
          )
          self.repo.add(obligation)
          self.db.commit()
          logger.info(
               "Created obligation #%s (%s, amount=%s, period=%s)",
               obligation.id, obligation_type.value, amount, period.isoformat(),
          )
          return obligation

     def get_obligation(self, obligation_id: int, user_id: Optional[int] = None) -> Obligation:
          obligation = self.repo.get(obligation_id, user_id)
          if obligation is None:
               raise NotFoundError(f"Obligation with ID {obligation_id} not found")
          return obligation

     def list_obligations(
          self,
          user_id: Optional[int] = None,
          contract_id: Optional[int] = None,
          apartment_id: Optional[int] = None,
          owner_id: Optional[int] = None,
          type=None,
          status=None,
          period_from: Optional[date] = None,
          period_to: Optional[date] = None,
     ) -> List[Obligation]:
          """
          List obligations matching every given filter.

          owner_id matches obligations on the owner's apartments, or on
          contracts for those apartments.
          """
          obligation_type = coerce_enum(ObligationType, type, "type") if type is not None else None
          statuses = [coerce_enum(ObligationStatus, status, "status")] if status is not None else None

          contract_ids = [contract_id] if contract_id is not None else None
          apartment_ids = None
          if owner_id is not None and contract_id is None and user_id is not None:
               # Narrow in SQL first; the exact routing check below still applies
               apartment_ids = self.directory.apartment_ids_for_owner(owner_id)
               contract_ids = self.directory.contract_ids_for_apartments(user_id, apartment_ids)

          results = self.repo.search(
               user_id=user_id,
               contract_ids=contract_ids,
               apartment_ids=apartment_ids,
               type=obligation_type,
               statuses=statuses,
               period_from=first_of_month(period_from) if period_from else None,
               period_to=period_to,
          )

          if apartment_id is not None:
               results = [
                    o for o in results
                    if self.directory.apartment_for(o.contract_id, o.apartment_id) == apartment_id
               ]
          if owner_id is not None:
               results = [
                    o for o in results
                    if self.directory.owner_for(o.contract_id, o.apartment_id) == owner_id
               ]
          return results

     def update_obligation(
          self,
          obligation_id: int,
          user_id: Optional[int] = None,
          amount=None,
          due_date: Optional[date] = None,
          description: Optional[str] = None,
          notes: Optional[str] = None,
     ) -> Obligation:
          """
          Manual edit of an obligation, followed by recompute().

          Raises:
               ValidationError: amount negative or below what was already paid
          """
          obligation = self.get_obligation(obligation_id, user_id)

          if amount is not None:
               amount = to_money(amount)
               if amount < 0:
                    raise ValidationError(f"amount must be >= 0, got {amount}")
               if amount < Decimal(obligation.paid_amount):
                    raise ValidationError(
                         f"amount {amount} is below the {obligation.paid_amount} already paid; "
                         "reverse payments first"
                    )
               obligation.amount = amount
          if due_date is not None:
               obligation.due_date = due_date
          if description is not None:
               obligation.description = description
          if notes is not None:
               obligation.notes = notes

          self._recompute(obligation)
          self.db.flush()
          self.db.commit()
          return obligation

     def recompute(self, obligation_id: int, user_id: Optional[int] = None) -> Obligation:
          """
          Re-derive status from amount / paid_amount.

          paid_amount >= amount settles the obligation; a PAID obligation
          whose amount was raised is reopened; anything else is left as is.
          """
          obligation = self.get_obligation(obligation_id, user_id)
          self._recompute(obligation)
          self.db.flush()
          self.db.commit()
          return obligation

     def _recompute(self, obligation: Obligation) -> None:
          paid = Decimal(obligation.paid_amount)
          amount = Decimal(obligation.amount)
          if paid >= amount:
               settle_obligation(obligation, self.directory, self.policy)
          elif obligation.status == ObligationStatus.PAID:
               reopen_obligation(obligation, self.clock())
               logger.info("Obligation #%s reopened (paid %s of %s)", obligation.id, paid, amount)

     def generate_rent_obligations(self, user_id: int, month: date, due_day: int = 10) -> dict:
          """
          Bill one rent obligation per active contract for the given month.

          Idempotent: contracts already billed for the period are skipped.

          Returns:
               {"generated": int, "skipped": int, "errors": [str]}
          """
          period = first_of_month(month)
          due_date = period.replace(day=min(max(due_day, 1), 28))
          results = {"generated": 0, "skipped": 0, "errors": []}

          last_day = period.replace(day=calendar.monthrange(period.year, period.month)[1])

          for contract in self.directory.active_contracts(user_id, period, last_day):
               if self.repo.find_rent(user_id, contract.contract_id, period):
                    results["skipped"] += 1
                    continue
               try:
                    self.create_obligation(
                         user_id,
                         type=ObligationType.RENT,
                         amount=contract.rent_amount,
                         period=period,
                         due_date=due_date,
                         contract_id=contract.contract_id,
                         apartment_id=contract.apartment_id,
                         description=f"Rent {period:%m/%Y} - contract #{contract.contract_id}",
                    )
                    results["generated"] += 1
               except (ValidationError, NotFoundError) as e:
                    self.db.rollback()
                    logger.error("Rent billing failed for contract #%s: %s", contract.contract_id, e.reason)
                    results["errors"].append(f"Contract {contract.contract_id}: {e.reason}")

          logger.info(
               "Rent billing for %s: %d generated, %d skipped, %d errors",
               period.isoformat(), results["generated"], results["skipped"], len(results["errors"]),
          )
          return results

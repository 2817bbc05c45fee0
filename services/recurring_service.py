"""
Recurring Obligation Service - monthly templates for non-rent charges.

A template bills one obligation per month while it is active and its
start/end window overlaps the month. Generation goes through
ObligationService.create_obligation, so generated rows get the same
validation as manual ones.
"""
import calendar
import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import ObligationType, RecurringObligation
from .commission import ImpactPolicy, to_money
from .directory import BaseDirectory
from .exceptions import NotFoundError, ValidationError
from .obligation_repository import ObligationRepository
from .obligation_service import ObligationService, coerce_enum, first_of_month

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("description", "amount", "day_of_month", "end_date", "notes", "is_active")


def _check_day(day_of_month) -> int:
     try:
          day = int(day_of_month)
     except (TypeError, ValueError):
          raise ValidationError(f"day_of_month must be a number, got {day_of_month!r}")
     if day < 1 or day > 31:
          raise ValidationError(f"day_of_month must be between 1 and 31, got {day}")
     return day


def _check_amount(amount):
     amount = to_money(amount)
     if amount < 0:
          raise ValidationError(f"amount must be >= 0, got {amount}")
     return amount


def due_date_in(period: date, day_of_month: int) -> date:
     """Due date inside the month, clamped to its last day."""
     last_day = calendar.monthrange(period.year, period.month)[1]
     return period.replace(day=min(day_of_month, last_day))


class RecurringObligationService:
     """Service class for recurring obligation templates."""

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
          self.clock = clock
          self.obligations = ObligationService(db, directory, policy, clock=clock)

     def create_recurring(
          self,
          user_id: int,
          *,
          type,
          amount,
          day_of_month: int,
          start_date: Optional[date],
          description: Optional[str],
          contract_id: Optional[int] = None,
          apartment_id: Optional[int] = None,
          category: Optional[str] = None,
          end_date: Optional[date] = None,
          notes: Optional[str] = None,
     ) -> RecurringObligation:
          """
          Create an active template.

          Raises:
               ValidationError: rent type, no contract/apartment, bad day,
                    amount or date window
               NotFoundError: contract_id does not belong to the account
          """
          obligation_type = coerce_enum(ObligationType, type, "type")
          if obligation_type == ObligationType.RENT:
               raise ValidationError("Rent is billed from contracts and cannot be a recurring obligation")
          if contract_id is None and apartment_id is None:
               raise ValidationError("contract_id or apartment_id is required")
          if not description or not description.strip():
               raise ValidationError("description is required")
          if start_date is None:
               raise ValidationError("start_date is required")
          if end_date is not None and end_date < start_date:
               raise ValidationError(f"end_date {end_date} is before start_date {start_date}")
          day = _check_day(day_of_month)
          amount = _check_amount(amount)

          if contract_id is not None:
               contract = self.directory.get_contract(contract_id, user_id)
               if contract is None:
                    raise NotFoundError(f"Contract with ID {contract_id} not found")
               if apartment_id is None:
                    apartment_id = contract.apartment_id

          recurring = RecurringObligation(
               user_id=user_id,
               contract_id=contract_id,
               apartment_id=apartment_id,
               type=obligation_type,
               category=category,
               description=description.strip(),
               amount=amount,
               day_of_month=day,
               start_date=start_date,
               end_date=end_date,
               notes=notes,
               is_active=True,
          )
          self.db.add(recurring)
          self.db.commit()
          logger.info(
               "Created recurring obligation #%s (%s, amount=%s, day=%s)",
               recurring.id, obligation_type.value, amount, day,
          )
          return recurring

     def get_recurring(self, recurring_id: int, user_id: Optional[int] = None) -> RecurringObligation:
          query = self.db.query(RecurringObligation).filter(RecurringObligation.id == recurring_id)
          if user_id is not None:
               query = query.filter(RecurringObligation.user_id == user_id)
          recurring = query.first()
          if recurring is None:
               raise NotFoundError(f"Recurring obligation with ID {recurring_id} not found")
          return recurring

     def list_recurring(self, user_id: int) -> List[RecurringObligation]:
          """Templates of an account, newest first."""
          return (
               self.db.query(RecurringObligation)
               .filter(RecurringObligation.user_id == user_id)
               .order_by(RecurringObligation.created_at.desc(), RecurringObligation.id.desc())
               .all()
          )

     def update_recurring(self, recurring_id: int, user_id: Optional[int], changes: dict) -> RecurringObligation:
          """
          Apply the given changes; keys outside EDITABLE_FIELDS are ignored.

          A None end_date removes the end of the window. Obligations
          already billed are not touched.
          """
          recurring = self.get_recurring(recurring_id, user_id)
          changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}

          if "description" in changes:
               if not changes["description"] or not changes["description"].strip():
                    raise ValidationError("description is required")
               changes["description"] = changes["description"].strip()
          if "amount" in changes:
               if changes["amount"] is None:
                    raise ValidationError("amount is required")
               changes["amount"] = _check_amount(changes["amount"])
          if "day_of_month" in changes:
               changes["day_of_month"] = _check_day(changes["day_of_month"])
          if changes.get("end_date") is not None and changes["end_date"] < recurring.start_date:
               raise ValidationError(f"end_date {changes['end_date']} is before start_date {recurring.start_date}")
          if "is_active" in changes and changes["is_active"] is None:
               del changes["is_active"]

          for field, value in changes.items():
               setattr(recurring, field, value)
          self.db.commit()
          return recurring

     def toggle_active(self, recurring_id: int, user_id: Optional[int] = None) -> RecurringObligation:
          """Pause an active template or resume a paused one."""
          recurring = self.get_recurring(recurring_id, user_id)
          recurring.is_active = not recurring.is_active
          self.db.commit()
          logger.info("Recurring obligation #%s %s", recurring.id, "resumed" if recurring.is_active else "paused")
          return recurring

     def delete_recurring(self, recurring_id: int, user_id: Optional[int] = None) -> None:
          """Delete a template; obligations it billed stay, unlinked."""
          recurring = self.get_recurring(recurring_id, user_id)
          unlinked = self.repo.unlink_recurring(recurring.id)
          self.db.delete(recurring)
          self.db.commit()
          logger.info("Deleted recurring obligation #%s (%d obligation(s) unlinked)", recurring_id, unlinked)

     def generate_for_month(self, user_id: int, month: date) -> dict:
          """
          Bill every active template of the account for the given month.

          Idempotent: a template already billed for the period is skipped.
          One failing template is reported and does not stop the rest.

          Returns:
               {"generated": int, "skipped": int, "errors": [str]}
          """
          period = first_of_month(month)
          last_day = due_date_in(period, 31)
          results = {"generated": 0, "skipped": 0, "errors": []}

          templates = (
               self.db.query(RecurringObligation)
               .filter(
                    RecurringObligation.user_id == user_id,
                    RecurringObligation.is_active.is_(True),
                    RecurringObligation.start_date <= last_day,
                    or_(RecurringObligation.end_date.is_(None), RecurringObligation.end_date >= period),
               )
               .order_by(RecurringObligation.id.asc())
               .all()
          )

          for recurring in templates:
               recurring_id = recurring.id
               if recurring.last_generated == period or self.repo.find_recurring(user_id, recurring_id, period):
                    results["skipped"] += 1
                    continue
               try:
                    # Committed together with the obligation below
                    recurring.last_generated = period
                    self.obligations.create_obligation(
                         user_id,
                         type=recurring.type,
                         amount=recurring.amount,
                         period=period,
                         due_date=due_date_in(period, recurring.day_of_month),
                         contract_id=recurring.contract_id,
                         apartment_id=recurring.apartment_id,
                         description=recurring.description,
                         notes=recurring.notes,
                         recurring_obligation_id=recurring_id,
                    )
                    results["generated"] += 1
               except (ValidationError, NotFoundError) as e:
                    self.db.rollback()
                    logger.error("Recurring billing failed for template #%s: %s", recurring_id, e.reason)
                    results["errors"].append(f"Recurring {recurring_id}: {e.reason}")

          logger.info(
               "Recurring billing for %s (account %s): %d generated, %d skipped, %d errors",
               period.isoformat(), user_id, results["generated"], results["skipped"], len(results["errors"]),
          )
          return results

     def generate_pending(self, month: Optional[date] = None) -> dict:
          """
          Run generate_for_month for every account with an active template.

          month defaults to the current one.

          Returns:
               {"generated": int, "skipped": int, "errors": [str], "accounts": int}
          """
          period = first_of_month(month or self.clock())
          user_ids = [
               row[0] for row in
               self.db.query(RecurringObligation.user_id)
               .filter(RecurringObligation.is_active.is_(True))
               .distinct()
               .order_by(RecurringObligation.user_id)
               .all()
          ]
          totals = {"generated": 0, "skipped": 0, "errors": [], "accounts": len(user_ids)}
          for user_id in user_ids:
               results = self.generate_for_month(user_id, period)
               totals["generated"] += results["generated"]
               totals["skipped"] += results["skipped"]
               totals["errors"].extend(f"Account {user_id}: {error}" for error in results["errors"])
          return totals

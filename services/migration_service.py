"""
Legacy migration - folds the flat legacy payments table into the
Obligation / ObligationPayment model.

Re-runnable: every obligation created here carries the legacy id in
legacy_payment_id (unique), and records already carried over are
skipped. Each legacy record is migrated in its own transaction; a bad
record is logged and counted without stopping the batch. Failures of
the batch itself (database unreachable) propagate.
"""
import logging
from typing import Optional

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import LegacyPayment, Obligation, ObligationPayment, ObligationStatus, ObligationType, PaymentMethod
from schemas.migration import MigrationErrorItem, MigrationSummary
from .commission import ImpactPolicy, calculate_distribution, distribution_for_commission, round_money, to_decimal
from .directory import BaseDirectory
from .exceptions import LedgerError, ValidationError
from .obligation_repository import ObligationRepository
from .obligation_service import first_of_month
from .payment_service import coerce_method

logger = logging.getLogger(__name__)

LEGACY_STATUS_MAP = {
     "pending": ObligationStatus.PENDING,
     "paid": ObligationStatus.PAID,
     "overdue": ObligationStatus.OVERDUE,
}


def provenance_note(legacy_id: int) -> str:
     return f"Migrated from legacy payment #{legacy_id}"


def _failure_reason(error: Exception) -> str:
     if isinstance(error, LedgerError):
          return error.reason
     if isinstance(error, SQLAlchemyError):
          return str(getattr(error, "orig", None) or error)
     # Undecodable column values surface as plain ValueError / TypeError
     return f"Unreadable legacy record: {error}"


class LegacyMigration:

     def __init__(self, db: Session, directory: BaseDirectory, policy: Optional[ImpactPolicy] = None):
          self.db = db
          self.repo = ObligationRepository(db)
          self.directory = directory
          self.policy = policy or ImpactPolicy()

     def migrate_legacy_payments(self, user_id: Optional[int] = None) -> MigrationSummary:
          """
          Migrate every legacy payment not yet carried over.

          Returns:
               MigrationSummary with migrated / payments_created / skipped
               counts and the per-record errors.
          """
          query = self.db.query(LegacyPayment.id).order_by(LegacyPayment.id.asc())
          if user_id is not None:
               query = query.filter(LegacyPayment.user_id == user_id)
          legacy_ids = [row[0] for row in query.all()]
          logger.info("Legacy migration started: %d record(s) to inspect", len(legacy_ids))

          summary = MigrationSummary()
          for legacy_id in legacy_ids:
               if self.repo.find_by_legacy_id(legacy_id) is not None:
                    summary.skipped += 1
                    continue
               try:
                    obligation, payment = self._migrate_one(legacy_id)
                    self.db.commit()
               except (OperationalError, InterfaceError):
                    # Database unreachable: the batch itself has failed
                    self.db.rollback()
                    raise
               except (LedgerError, SQLAlchemyError, ValueError, TypeError) as e:
                    self.db.rollback()
                    reason = _failure_reason(e)
                    logger.error("Legacy payment #%s not migrated: %s", legacy_id, reason)
                    summary.errors.append(MigrationErrorItem(legacy_id=legacy_id, reason=reason))
                    continue

               summary.migrated += 1
               if payment is not None:
                    summary.payments_created += 1
               logger.info(
                    "Migrated legacy payment #%s -> obligation #%s%s",
                    legacy_id, obligation.id,
                    f" (+ payment #{payment.id})" if payment is not None else "",
               )

          logger.info(
               "Legacy migration finished: %d migrated, %d payments created, %d skipped, %d errors",
               summary.migrated, summary.payments_created, summary.skipped, len(summary.errors),
          )
          return summary

     def _migrate_one(self, legacy_id: int):
          legacy = self.db.get(LegacyPayment, legacy_id)

          status = LEGACY_STATUS_MAP.get((legacy.status or "").strip().lower())
          if status is None:
               raise ValidationError(f"Unknown legacy status '{legacy.status}'")
          if legacy.month is None:
               raise ValidationError("Legacy payment has no month")
          amount = round_money(to_decimal(legacy.amount))
          if amount < 0:
               raise ValidationError(f"Negative amount {amount}")

          contract = self.directory.get_contract(legacy.contract_id)
          apartment_id = contract.apartment_id if contract is not None else None
          period = first_of_month(legacy.month)
          is_paid = status == ObligationStatus.PAID

          notes = "\n".join(n for n in (legacy.notes, provenance_note(legacy.id)) if n)
          obligation = Obligation(
               user_id=legacy.user_id,
               contract_id=legacy.contract_id,
               apartment_id=apartment_id,
               type=ObligationType.RENT,
               description=f"Rent {period:%m/%Y} - contract #{legacy.contract_id}",
               period=period,
               due_date=legacy.month,
               amount=amount,
               paid_amount=amount if is_paid else round_money(0),
               status=status,
               notes=notes,
               legacy_payment_id=legacy.id,
          )

          if is_paid:
               # Keep the commission the legacy system charged when it recorded one
               if legacy.commission_amount is not None:
                    distribution = distribution_for_commission(
                         amount, ObligationType.RENT, legacy.commission_amount, self.policy
                    )
               else:
                    percentage = self.directory.commission_for(legacy.contract_id, apartment_id)
                    distribution = calculate_distribution(amount, ObligationType.RENT, percentage, self.policy)
               obligation.commission_amount = distribution.commission_amount
               obligation.owner_amount = distribution.owner_amount
               obligation.owner_impact = distribution.owner_impact
               obligation.agency_impact = distribution.agency_impact

          self.repo.add(obligation)

          payment = None
          if is_paid and legacy.payment_date is not None and amount > 0:
               method = PaymentMethod.TRANSFER
               if legacy.method:
                    try:
                         method = coerce_method(legacy.method)
                    except ValidationError:
                         logger.warning(
                              "Legacy payment #%s has unknown method '%s', using transfer",
                              legacy.id, legacy.method,
                         )
               payment = ObligationPayment(
                    user_id=legacy.user_id,
                    obligation_id=obligation.id,
                    amount=amount,
                    payment_date=legacy.payment_date,
                    method=method,
                    notes=provenance_note(legacy.id),
               )
               self.db.add(payment)
               self.db.flush()
          elif is_paid and amount > 0:
               logger.warning(
                    "Legacy payment #%s is paid but has no payment date; no payment row created",
                    legacy.id,
               )
          return obligation, payment

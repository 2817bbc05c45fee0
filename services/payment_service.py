"""
Payment Recorder - applies payment events to obligations.

Each application is one unit of work: the ObligationPayment insert and
the paid_amount increment are flushed and committed together. The row is
loaded FOR UPDATE and carries an optimistic version, so two payments
against the same obligation cannot both pass the overpayment check.
A version clash is retried once.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from models import Obligation, ObligationPayment, ObligationStatus, PaymentMethod
from .commission import ImpactPolicy, to_money
from .directory import BaseDirectory
from .exceptions import (
     ConcurrencyConflict,
     DuplicatePaymentError,
     NotFoundError,
     OverpaymentError,
     ValidationError,
)
from .obligation_repository import ObligationRepository
from .obligation_service import coerce_enum, settle_obligation, reopen_obligation

logger = logging.getLogger(__name__)

# Spellings found in older records and gateway payloads
METHOD_ALIASES = {
     "efectivo": PaymentMethod.CASH,
     "transferencia": PaymentMethod.TRANSFER,
     "bank_transfer": PaymentMethod.TRANSFER,
     "tarjeta": PaymentMethod.CARD,
     "cheque": PaymentMethod.CHECK,
     "mercadopago": PaymentMethod.GATEWAY,
     "paymaya": PaymentMethod.GATEWAY,
}


def coerce_method(value) -> PaymentMethod:
     """Normalize a payment method, accepting the known aliases."""
     if isinstance(value, str) and value.strip().lower() in METHOD_ALIASES:
          return METHOD_ALIASES[value.strip().lower()]
     return coerce_enum(PaymentMethod, value, "method")


class PaymentRecorder:
     """Records payments against obligations and keeps paid_amount in sync."""

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

     def apply_payment(
          self,
          obligation_id: int,
          amount,
          payment_date: Optional[date],
          method=PaymentMethod.TRANSFER,
          reference: Optional[str] = None,
          notes: Optional[str] = None,
          user_id: Optional[int] = None,
     ) -> Obligation:
          """
          Apply a payment to one obligation.

          A payment that completes the amount settles the obligation
          (status PAID plus commission / impacts). A partial payment leaves
          the status as it was.

          Raises:
               ValidationError: non-positive amount, missing date, unknown method
               NotFoundError: obligation does not exist (for this account)
               OverpaymentError: amount exceeds what is still owed
               ConcurrencyConflict: the row kept changing after one retry
               DuplicatePaymentError: reference already recorded on this obligation
          """
          amount = to_money(amount)
          if amount <= 0:
               raise ValidationError(f"Payment amount must be positive, got {amount}")
          if payment_date is None:
               raise ValidationError("payment_date is required")
          method = coerce_method(method)

          try:
               return self._apply_once(obligation_id, amount, payment_date, method, reference, notes, user_id)
          except ConcurrencyConflict as e:
               logger.warning("Retrying payment on obligation #%s: %s", obligation_id, e.reason)
               return self._apply_once(obligation_id, amount, payment_date, method, reference, notes, user_id)

     def _apply_once(
          self,
          obligation_id: int,
          amount: Decimal,
          payment_date: date,
          method: PaymentMethod,
          reference: Optional[str],
          notes: Optional[str],
          user_id: Optional[int],
     ) -> Obligation:
          obligation = self.repo.get_for_update(obligation_id, user_id)
          if obligation is None:
               raise NotFoundError(f"Obligation with ID {obligation_id} not found")

          # Checked under the row lock so racing deliveries see each other
          if reference and self.repo.find_payment_by_reference(obligation_id, reference) is not None:
               raise DuplicatePaymentError(
                    f"Reference {reference} is already recorded on obligation #{obligation_id}"
               )

          remaining = obligation.outstanding
          if amount > remaining:
               raise OverpaymentError(
                    f"Payment amount ({amount}) exceeds remaining amount ({remaining}) "
                    f"on obligation #{obligation_id}"
               )

          payment = ObligationPayment(
               user_id=obligation.user_id,
               amount=amount,
               payment_date=payment_date,
               method=method,
               reference=reference,
               notes=notes,
          )
          payment.obligation = obligation
          self.db.add(payment)

          obligation.paid_amount = Decimal(obligation.paid_amount) + amount
          if obligation.paid_amount >= Decimal(obligation.amount):
               settle_obligation(obligation, self.directory, self.policy)

          try:
               self.db.flush()
          except StaleDataError as e:
               self.db.rollback()
               raise ConcurrencyConflict(f"Obligation #{obligation_id} was modified concurrently") from e
          except IntegrityError as e:
               self.db.rollback()
               if reference:
                    raise DuplicatePaymentError(
                         f"Reference {reference} is already recorded on obligation #{obligation_id}"
                    ) from e
               raise
          self.db.commit()

          logger.info(
               "Applied %s (%s) to obligation #%s: paid %s of %s, status=%s",
               amount, method.value, obligation.id, obligation.paid_amount,
               obligation.amount, obligation.status.value,
          )
          if obligation.status == ObligationStatus.PAID:
               logger.info(
                    "Obligation #%s settled: commission=%s owner=%s",
                    obligation.id, obligation.commission_amount, obligation.owner_amount,
               )
          return obligation

     def reverse_payment(self, obligation_id: int, payment_id: int, user_id: Optional[int] = None) -> Obligation:
          """
          Delete a payment and take its amount back off the obligation.

          A PAID obligation that is no longer fully covered reopens as
          PENDING (or OVERDUE when past due) and loses its distribution.
          """
          obligation = self.repo.get_for_update(obligation_id, user_id)
          if obligation is None:
               raise NotFoundError(f"Obligation with ID {obligation_id} not found")
          payment = self.repo.get_payment(obligation_id, payment_id, user_id)
          if payment is None:
               raise NotFoundError(f"Payment with ID {payment_id} not found on obligation #{obligation_id}")

          amount = Decimal(payment.amount)
          self.db.delete(payment)
          obligation.paid_amount = Decimal(obligation.paid_amount) - amount
          if obligation.status == ObligationStatus.PAID and obligation.paid_amount < Decimal(obligation.amount):
               reopen_obligation(obligation, self.clock())

          try:
               self.db.flush()
          except StaleDataError as e:
               self.db.rollback()
               raise ConcurrencyConflict(f"Obligation #{obligation_id} was modified concurrently") from e
          self.db.expire(obligation, ["payments"])
          self.db.commit()
          logger.info("Reversed payment #%s (%s) on obligation #%s", payment_id, amount, obligation_id)
          return obligation

     def annotate_payment(
          self, obligation_id: int, payment_id: int, notes: Optional[str], user_id: Optional[int] = None
     ) -> ObligationPayment:
          """Replace the notes of a payment; nothing else on it is editable."""
          payment = self.repo.get_payment(obligation_id, payment_id, user_id)
          if payment is None:
               raise NotFoundError(f"Payment with ID {payment_id} not found on obligation #{obligation_id}")
          payment.notes = notes
          self.db.commit()
          return payment

     def list_payments(self, obligation_id: int, user_id: Optional[int] = None) -> List[ObligationPayment]:
          if self.repo.get(obligation_id, user_id) is None:
               raise NotFoundError(f"Obligation with ID {obligation_id} not found")
          return self.repo.payments_for(obligation_id)

     def confirm_gateway_payment(
          self,
          obligation_id: int,
          amount,
          reference: str,
          payment_date: Optional[date] = None,
     ) -> Tuple[Obligation, bool]:
          """
          Apply a payment confirmed by the payment gateway.

          The gateway reference makes the call idempotent: a confirmation
          already recorded is acknowledged without applying it again. The
          authoritative check runs under the row lock in _apply_once, backed
          by the unique (obligation_id, reference) index; the read here only
          short-circuits plain redeliveries.

          Returns:
               (obligation, applied)
          """
          if not reference:
               raise ValidationError("Gateway confirmations require a reference")
          obligation = self.repo.get(obligation_id)
          if obligation is None:
               raise NotFoundError(f"Obligation with ID {obligation_id} not found")
          if self.repo.find_payment_by_reference(obligation_id, reference):
               logger.info("Gateway reference %s already recorded on obligation #%s", reference, obligation_id)
               return obligation, False
          try:
               obligation = self.apply_payment(
                    obligation_id,
                    amount,
                    payment_date or self.clock(),
                    method=PaymentMethod.GATEWAY,
                    reference=reference,
                    notes="Confirmed by payment gateway",
               )
          except DuplicatePaymentError:
               logger.info("Gateway reference %s recorded concurrently on obligation #%s", reference, obligation_id)
               return self.repo.get(obligation_id), False
          return obligation, True

"""
Ledger error taxonomy.

Every error carries a machine-readable ``kind`` and a human-readable
``reason``; the API layer reports both verbatim.
"""


class LedgerError(Exception):
     """Base class for errors raised by the ledger services."""

     kind = "ledger_error"
     status_code = 400

     def __init__(self, reason: str):
          super().__init__(reason)
          self.reason = reason

     def to_dict(self) -> dict:
          return {"error": self.kind, "detail": self.reason}


class ValidationError(LedgerError):
     """Malformed input: negative amount, missing field, unknown enum value."""

     kind = "validation_error"
     status_code = 422


class NotFoundError(LedgerError):
     """Referenced obligation, payment or contract does not exist."""

     kind = "not_found"
     status_code = 404


class OverpaymentError(LedgerError):
     """Payment would push paid_amount above amount."""

     kind = "overpayment"
     status_code = 409


class ConcurrencyConflict(LedgerError):
     """Obligation row changed underneath a payment (version clash)."""

     kind = "concurrency_conflict"
     status_code = 409


class DuplicatePaymentError(LedgerError):
     """A payment with the same external reference is already recorded."""

     kind = "duplicate_payment"
     status_code = 409

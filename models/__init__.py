from .base import Base
from .owner import Owner
from .apartment import Apartment
from .contract import Contract
from .legacy_payment import LegacyPayment
from .obligation import Obligation, ObligationType, ObligationStatus
from .obligation_payment import ObligationPayment, PaymentMethod
from .recurring_obligation import RecurringObligation

__all__ = [
     "Base",
     "Owner",
     "Apartment",
     "Contract",
     "LegacyPayment",
     "Obligation",
     "ObligationType",
     "ObligationStatus",
     "ObligationPayment",
     "PaymentMethod",
     "RecurringObligation",
]

from .exceptions import (
     LedgerError,
     ValidationError,
     NotFoundError,
     OverpaymentError,
     ConcurrencyConflict,
     DuplicatePaymentError,
)
from .commission import (
     ImpactPolicy,
     ImpactSign,
     Distribution,
     calculate_commission,
     calculate_distribution,
     round_money,
)
from .directory import ContractDirectory, InMemoryContractDirectory, ContractInfo, OwnerInfo
from .obligation_service import ObligationService
from .payment_service import PaymentRecorder
from .overdue_service import OverdueSweeper
from .migration_service import LegacyMigration
from .recurring_service import RecurringObligationService
from .settlement_service import SettlementAggregator

__all__ = [
     "LedgerError",
     "ValidationError",
     "NotFoundError",
     "OverpaymentError",
     "ConcurrencyConflict",
     "DuplicatePaymentError",
     "ImpactPolicy",
     "ImpactSign",
     "Distribution",
     "calculate_commission",
     "calculate_distribution",
     "round_money",
     "ContractDirectory",
     "InMemoryContractDirectory",
     "ContractInfo",
     "OwnerInfo",
     "ObligationService",
     "PaymentRecorder",
     "OverdueSweeper",
     "LegacyMigration",
     "RecurringObligationService",
     "SettlementAggregator",
]

from .obligation import (
     ObligationCreate,
     ObligationUpdate,
     ObligationResponse,
     ObligationListResponse,
     OverdueSweepResponse,
     RentGenerationResponse,
)
from .payment import (
     PaymentApplyRequest,
     PaymentNotesUpdate,
     ObligationPaymentResponse,
     PaymentListResponse,
     GatewayConfirmResponse,
)
from .recurring import (
     RecurringObligationCreate,
     RecurringObligationUpdate,
     RecurringObligationResponse,
     RecurringObligationListResponse,
)
from .settlement import SettlementSummary, OwnerSettlement, MonthlySettlement, SettlementTotals
from .migration import MigrationSummary, MigrationErrorItem

__all__ = [
     "ObligationCreate",
     "ObligationUpdate",
     "ObligationResponse",
     "ObligationListResponse",
     "OverdueSweepResponse",
     "RentGenerationResponse",
     "PaymentApplyRequest",
     "PaymentNotesUpdate",
     "ObligationPaymentResponse",
     "PaymentListResponse",
     "GatewayConfirmResponse",
     "RecurringObligationCreate",
     "RecurringObligationUpdate",
     "RecurringObligationResponse",
     "RecurringObligationListResponse",
     "SettlementSummary",
     "OwnerSettlement",
     "MonthlySettlement",
     "SettlementTotals",
     "MigrationSummary",
     "MigrationErrorItem",
]

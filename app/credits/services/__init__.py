"""
Credits service layer.

- PurchaseService: Order creation and Stripe PaymentIntents
- PaymentCompletionService: Order completion, failure and webhooks
- RefundService: Refund policy and issuance
- AdminCreditService: Adjustments, project sweeps, user snapshots
- HistoryService: History, analytics and export queries
- SignupBonusService: One-off bonus for new freelancers
"""

from credits.services.admin_service import (
    AdjustmentResult,
    AdminCreditService,
    SweepResult,
)
from credits.services.bonus_service import SignupBonusService
from credits.services.gateway import PaymentGatewayService
from credits.services.history_service import (
    EXPORT_HEADERS,
    HistoryFilters,
    HistoryService,
)
from credits.services.payment_service import (
    CompletionResult,
    PaymentCompletionService,
)
from credits.services.purchase_service import PurchaseService
from credits.services.refund_service import RefundEligibility, RefundService

__all__ = [
    "AdjustmentResult",
    "AdminCreditService",
    "CompletionResult",
    "EXPORT_HEADERS",
    "HistoryFilters",
    "HistoryService",
    "PaymentCompletionService",
    "PaymentGatewayService",
    "PurchaseService",
    "RefundEligibility",
    "RefundService",
    "SignupBonusService",
    "SweepResult",
]

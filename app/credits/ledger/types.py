"""
Data types for ledger operations.

Types:
    TransactionParams: Parameters for one ledger write
    BalanceSnapshot: Balance and lifetime aggregates for one account
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from credits.states import TransactionKind

if TYPE_CHECKING:
    from credits.models import CreditOrder


@dataclass
class TransactionParams:
    """
    Parameters for LedgerService.apply_transaction.

    Attributes:
        amount: Signed credit delta, never zero
        kind: TransactionKind value
        idempotency_key: Unique key; replays return the original transaction
        reference_type / reference_id: Business entity behind the change
        order: Purchase order, for purchase transactions
        reason: Operator reason, required for admin adjustments
        description: Human-readable summary
        performed_by: Admin user, for admin-initiated changes
        metadata: Extra audit data (gateway ids, ip address, user agent)
        allow_negative: Permit the balance to drop below zero

    Example:
        params = TransactionParams(
            amount=10,
            kind=TransactionKind.PURCHASE,
            idempotency_key="purchase:order:order_5f1c...",
            reference_type=ReferenceType.ORDER,
            reference_id="order_5f1c...",
        )
    """

    amount: int
    kind: str
    idempotency_key: str
    reference_type: str | None = None
    reference_id: str | None = None
    order: CreditOrder | None = None
    reason: str = ""
    description: str = ""
    performed_by: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)
    allow_negative: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError(f"amount must be an integer, got {self.amount!r}")
        if self.amount == 0:
            raise ValueError("amount must be non-zero")
        if self.kind not in TransactionKind.values:
            raise ValueError(f"Unknown transaction kind: {self.kind!r}")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if self.kind == TransactionKind.ADMIN_ADJUSTMENT and not self.reason.strip():
            raise ValueError("reason is required for admin adjustments")
        if self.kind == TransactionKind.USAGE and self.amount > 0:
            raise ValueError("usage transactions must be negative")
        if (
            self.kind
            in (
                TransactionKind.PURCHASE,
                TransactionKind.REFUND,
                TransactionKind.SIGNUP_BONUS,
            )
            and self.amount < 0
        ):
            raise ValueError(f"{self.kind} transactions must be positive")


@dataclass(frozen=True)
class BalanceSnapshot:
    balance: int
    total_purchased: int
    total_used: int
    price_per_credit: int
    currency: str

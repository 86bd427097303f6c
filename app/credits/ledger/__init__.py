"""
Credits ledger.

All balance changes go through LedgerService.apply_transaction, which
locks the account row, enforces idempotency and writes one immutable
CreditTransaction together with the new cached balance.

Usage:
    from credits.ledger import TransactionParams, ledger

    snapshot = ledger.get_balance(user)
    txn = ledger.apply_transaction(user, TransactionParams(...))
"""

from credits.ledger.services import LedgerService, ledger
from credits.ledger.types import BalanceSnapshot, TransactionParams

__all__ = [
    "BalanceSnapshot",
    "LedgerService",
    "TransactionParams",
    "ledger",
]

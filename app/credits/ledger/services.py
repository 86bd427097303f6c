"""
Ledger service layer for credit balances.

This module provides the LedgerService class which encapsulates every
write to a credit account. Callers never touch CreditAccount.balance
directly.

Usage:
    from credits.ledger import TransactionParams, ledger
    from credits.states import ReferenceType, TransactionKind

    snapshot = ledger.get_balance(user)

    txn = ledger.apply_transaction(user, TransactionParams(
        amount=-1,
        kind=TransactionKind.USAGE,
        idempotency_key=f"usage:application:{application.pk}",
        reference_type=ReferenceType.APPLICATION,
        reference_id=str(application.pk),
    ))
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Sum

from credits.conf import credit_settings
from credits.exceptions import InsufficientCredits
from credits.ledger.types import BalanceSnapshot, TransactionParams
from credits.models import CreditAccount, CreditTransaction
from credits.states import TransactionKind

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Service class for credit ledger operations.

    Key features:
    - Account row locked with select_for_update before any balance read
    - Idempotency via unique keys (safe to retry)
    - Balance validation before debits
    - Cached balance and aggregates written in the same transaction
      as the ledger row

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def get_or_create_account(user) -> CreditAccount:
        """Return the user's account, provisioning an empty one if missing."""
        account, created = CreditAccount.objects.get_or_create(user=user)
        if created:
            logger.info(
                "Provisioned credit account",
                extra={"user_id": user.pk, "account_id": account.pk},
            )
        return account

    @staticmethod
    def lock_account(user) -> CreditAccount:
        """
        Lock and return the user's account row.

        Must be called inside transaction.atomic().
        """
        account = LedgerService.get_or_create_account(user)
        return CreditAccount.objects.select_for_update().get(pk=account.pk)

    @staticmethod
    def get_balance(user) -> BalanceSnapshot:
        """Current balance and lifetime aggregates, zero for a new account."""
        account = LedgerService.get_or_create_account(user)
        conf = credit_settings()
        return BalanceSnapshot(
            balance=account.balance,
            total_purchased=account.total_purchased,
            total_used=account.total_used,
            price_per_credit=conf.price_per_credit,
            currency=conf.currency,
        )

    @staticmethod
    def apply_transaction(user, params: TransactionParams) -> CreditTransaction:
        """
        Apply one signed change to the user's balance.

        Idempotent - if a transaction with the same idempotency_key exists,
        it is returned unchanged and the balance is not touched.

        Args:
            user: Owner of the account to change
            params: Amount, kind, idempotency key and audit data

        Returns:
            The created or existing CreditTransaction

        Raises:
            InsufficientCredits: If a negative amount exceeds the balance
                and params.allow_negative is False
        """
        with transaction.atomic():
            account = LedgerService.lock_account(user)

            # Check idempotency before validating; a replay must not fail
            # on a balance that already reflects it
            existing = CreditTransaction.objects.filter(
                idempotency_key=params.idempotency_key
            ).first()
            if existing is not None:
                logger.info(
                    "Ledger transaction replayed",
                    extra={
                        "idempotency_key": params.idempotency_key,
                        "transaction_id": existing.pk,
                    },
                )
                return existing

            balance_before = account.balance
            balance_after = balance_before + params.amount
            if balance_after < 0 and not params.allow_negative:
                raise InsufficientCredits(
                    required=-params.amount,
                    available=balance_before,
                )

            try:
                with transaction.atomic():
                    txn = CreditTransaction.objects.create(
                        account=account,
                        amount=params.amount,
                        kind=params.kind,
                        balance_before=balance_before,
                        balance_after=balance_after,
                        order=params.order,
                        reference_type=params.reference_type,
                        reference_id=params.reference_id,
                        reason=params.reason,
                        description=params.description,
                        performed_by=params.performed_by,
                        metadata=params.metadata or {},
                        idempotency_key=params.idempotency_key,
                    )
            except IntegrityError:
                # Another writer committed the same key between the check
                # and the insert
                return CreditTransaction.objects.get(
                    idempotency_key=params.idempotency_key
                )

            account.balance = balance_after
            LedgerService._apply_aggregates(account, params)
            account.save(
                update_fields=[
                    "balance",
                    "total_purchased",
                    "total_used",
                    "updated_at",
                ]
            )

        logger.info(
            "Ledger transaction applied",
            extra={
                "transaction_id": txn.pk,
                "account_id": account.pk,
                "kind": params.kind,
                "amount": params.amount,
                "balance_after": balance_after,
            },
        )
        return txn

    @staticmethod
    def _apply_aggregates(account: CreditAccount, params: TransactionParams) -> None:
        amount = params.amount
        if params.kind in (TransactionKind.PURCHASE, TransactionKind.SIGNUP_BONUS):
            account.total_purchased += amount
        elif params.kind == TransactionKind.USAGE:
            account.total_used += -amount
        elif params.kind == TransactionKind.REFUND:
            account.total_used = max(account.total_used - amount, 0)
        elif params.kind == TransactionKind.ADMIN_ADJUSTMENT:
            if amount > 0:
                account.total_purchased += amount
            else:
                account.total_used += -amount

    @staticmethod
    def list_transactions(user):
        """The user's transactions, newest first."""
        return (
            CreditTransaction.objects.for_user(user)
            .select_related("order")
            .order_by("-created_at", "-id")
        )

    @staticmethod
    def reconcile(account: CreditAccount) -> int:
        """Recompute the balance from the ledger."""
        total = account.transactions.aggregate(total=Sum("amount"))["total"]
        return total or 0


# Singleton for convenience
ledger = LedgerService()

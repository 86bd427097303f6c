"""
Read-side queries: transaction history, analytics and CSV export.

Nothing here takes locks or writes.

Usage:
    from credits.services import HistoryFilters, HistoryService

    qs = HistoryService.user_history(user, HistoryFilters(kind="purchase"))
    stats = HistoryService.analytics(days=30)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from core.services import BaseService

from credits.conf import credit_settings
from credits.models import CreditAccount, CreditOrder, CreditTransaction
from credits.states import CreditOrderStatus, TransactionKind

EXPORT_ROW_LIMIT = 10000
DAILY_STATS_DAYS = 7
TOP_HOLDERS_LIMIT = 10

EXPORT_HEADERS = [
    "Transaction ID",
    "User ID",
    "Email",
    "Name",
    "Type",
    "Amount",
    "Balance After",
    "Date",
]

SORT_FIELDS = {
    "created_at": "created_at",
    "amount": "amount",
}


@dataclass
class HistoryFilters:
    """
    Filters shared by user and admin history queries.

    Attributes:
        kind: TransactionKind to keep, or None for all
        date_from / date_to: Inclusive created_at date bounds
        user_id: Restrict to one user (admin only)
        sort_by: created_at or amount (admin only)
        sort_order: asc or desc (admin only)
    """

    kind: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    user_id: int | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


class HistoryService(BaseService):
    """Service for credits history, analytics and export."""

    @classmethod
    def _filtered(cls, queryset, filters: HistoryFilters):
        queryset = queryset.of_kind(filters.kind).created_between(
            filters.date_from, filters.date_to
        )
        if filters.user_id is not None:
            queryset = queryset.filter(account__user_id=filters.user_id)
        return queryset

    @classmethod
    def user_history(cls, user, filters: HistoryFilters | None = None):
        """The user's transactions, newest first."""
        filters = filters or HistoryFilters()
        queryset = CreditTransaction.objects.for_user(user).select_related("order")
        return cls._filtered(queryset, filters).order_by("-created_at", "-id")

    @classmethod
    def admin_transactions(cls, filters: HistoryFilters | None = None):
        """All transactions with their owners, sorted as requested."""
        filters = filters or HistoryFilters()
        queryset = CreditTransaction.objects.select_related(
            "account__user", "order", "performed_by"
        )
        field_name = SORT_FIELDS.get(filters.sort_by, "created_at")
        prefix = "" if filters.sort_order == "asc" else "-"
        return cls._filtered(queryset, filters).order_by(
            f"{prefix}{field_name}", f"{prefix}id"
        )

    @classmethod
    def export_rows(cls, filters: HistoryFilters | None = None, limit: int = EXPORT_ROW_LIMIT):
        """Yield CSV rows (without header) for at most `limit` transactions."""
        for txn in cls.admin_transactions(filters)[:limit]:
            user = txn.account.user
            yield [
                txn.pk,
                user.pk,
                user.email,
                user.get_full_name(),
                txn.kind,
                txn.amount,
                txn.balance_after,
                txn.created_at.isoformat(),
            ]

    @classmethod
    def analytics(cls, days: int = 30) -> dict[str, Any]:
        """
        Platform-wide credit statistics.

        Covers the last `days` days for revenue and per-kind totals, the
        last 7 days for daily stats, and current balances for circulation
        and top holders.
        """
        conf = credit_settings()
        now = timezone.now()
        since = now - timedelta(days=days)

        circulation = CreditAccount.objects.aggregate(total=Sum("balance"))["total"] or 0

        orders = CreditOrder.objects.filter(created_at__gte=since)
        order_counts = {
            row["status"]: row["count"]
            for row in orders.values("status").annotate(count=Count("id"))
        }
        revenue = (
            orders.filter(status=CreditOrderStatus.COMPLETED).aggregate(
                total=Sum("amount")
            )["total"]
            or 0
        )

        period_transactions = CreditTransaction.objects.filter(created_at__gte=since)
        by_kind = [
            {"type": row["kind"], "count": row["count"], "total": row["total"]}
            for row in period_transactions.values("kind")
            .annotate(count=Count("id"), total=Sum("amount"))
            .order_by("kind")
        ]

        daily_since = now - timedelta(days=DAILY_STATS_DAYS)
        daily = (
            CreditTransaction.objects.filter(created_at__gte=daily_since)
            .annotate(day=TruncDate("created_at"))
            .values("day")
            .annotate(
                transactions=Count("id"),
                purchased=Sum("amount", filter=Q(kind=TransactionKind.PURCHASE)),
                used=Sum("amount", filter=Q(kind=TransactionKind.USAGE)),
                refunded=Sum("amount", filter=Q(kind=TransactionKind.REFUND)),
            )
            .order_by("day")
        )
        daily_stats = [
            {
                "date": row["day"].isoformat(),
                "transactions": row["transactions"],
                "purchased": row["purchased"] or 0,
                "used": -(row["used"] or 0),
                "refunded": row["refunded"] or 0,
            }
            for row in daily
        ]

        top_holders = [
            {
                "user_id": account.user_id,
                "email": account.user.email,
                "name": account.user.get_full_name(),
                "credits_balance": account.balance,
                "total_credits_purchased": account.total_purchased,
                "credits_used": account.total_used,
            }
            for account in CreditAccount.objects.select_related("user")
            .filter(balance__gt=0)
            .order_by("-balance", "id")[:TOP_HOLDERS_LIMIT]
        ]

        return {
            "period": {
                "days": days,
                "from": since.isoformat(),
                "to": now.isoformat(),
            },
            "credits_in_circulation": circulation,
            "total_revenue": revenue,
            "currency": conf.currency,
            "orders": {
                status: order_counts.get(status, 0)
                for status in CreditOrderStatus.values
            },
            "transactions_by_type": by_kind,
            "daily_stats": daily_stats,
            "top_users": top_holders,
        }

"""
Tests for HistoryService: filtered history, admin listing, CSV rows and
analytics.
"""

from datetime import date, datetime, timezone as dt_timezone

import pytest
from freezegun import freeze_time

from authentication.tests.factories import FreelancerFactory
from credits.ledger import TransactionParams, ledger
from credits.services import EXPORT_HEADERS, HistoryFilters, HistoryService, PaymentCompletionService
from credits.states import CreditOrderStatus, TransactionKind
from credits.tests.factories import CreditAccountFactory, CreditOrderFactory


def spend(user, amount, key):
    return ledger.apply_transaction(
        user,
        TransactionParams(amount=-amount, kind=TransactionKind.USAGE, idempotency_key=key),
    )


@pytest.mark.django_db
class TestUserHistory:
    def test_newest_first_and_scoped_to_user(self, freelancer, fund):
        other = FreelancerFactory()
        fund(other, 3)
        first = fund(freelancer, 5)
        second = spend(freelancer, 1, "usage:1")

        history = list(HistoryService.user_history(freelancer))

        assert [txn.pk for txn in history] == [second.pk, first.pk]

    def test_filter_by_kind(self, freelancer, fund):
        fund(freelancer, 5)
        spend(freelancer, 1, "usage:1")

        history = HistoryService.user_history(
            freelancer, HistoryFilters(kind=TransactionKind.USAGE)
        )

        assert [txn.kind for txn in history] == [TransactionKind.USAGE]

    def test_filter_by_date_range_is_inclusive(self, freelancer, fund):
        with freeze_time("2026-03-01 10:00:00"):
            fund(freelancer, 1)
        with freeze_time("2026-03-05 23:30:00"):
            fund(freelancer, 2)
        with freeze_time("2026-03-09 08:00:00"):
            fund(freelancer, 3)

        history = HistoryService.user_history(
            freelancer,
            HistoryFilters(date_from=date(2026, 3, 2), date_to=date(2026, 3, 5)),
        )

        assert [txn.amount for txn in history] == [2]

    def test_empty_history(self, freelancer):
        assert list(HistoryService.user_history(freelancer)) == []


@pytest.mark.django_db
class TestAdminTransactions:
    def test_filter_by_user(self, freelancer, fund):
        other = FreelancerFactory()
        fund(freelancer, 1)
        fund(other, 2)

        rows = HistoryService.admin_transactions(HistoryFilters(user_id=other.pk))

        assert [txn.amount for txn in rows] == [2]

    def test_sort_by_amount_ascending(self, freelancer, fund):
        fund(freelancer, 7)
        fund(freelancer, 2)
        fund(freelancer, 4)

        rows = HistoryService.admin_transactions(
            HistoryFilters(sort_by="amount", sort_order="asc")
        )

        assert [txn.amount for txn in rows] == [2, 4, 7]

    def test_unknown_sort_field_falls_back_to_created_at(self, freelancer, fund):
        first = fund(freelancer, 1)
        second = fund(freelancer, 1)

        rows = HistoryService.admin_transactions(HistoryFilters(sort_by="email"))

        assert [txn.pk for txn in rows] == [second.pk, first.pk]


@pytest.mark.django_db
class TestExportRows:
    def test_rows_match_headers(self, freelancer, fund):
        txn = fund(freelancer, 5)

        rows = list(HistoryService.export_rows())

        assert len(rows) == 1
        assert len(rows[0]) == len(EXPORT_HEADERS)
        assert rows[0][:2] == [txn.pk, freelancer.pk]
        assert rows[0][4:7] == [TransactionKind.PURCHASE, 5, 5]

    def test_limit(self, freelancer, fund):
        for _ in range(3):
            fund(freelancer, 1)

        assert len(list(HistoryService.export_rows(limit=2))) == 2


@pytest.mark.django_db
class TestAnalytics:
    def test_platform_statistics(self, freelancer, fund):
        other = FreelancerFactory()
        account = CreditAccountFactory(user=freelancer)
        completed = CreditOrderFactory(account=account, credits=10)
        PaymentCompletionService.complete_order(completed.order_id)
        CreditOrderFactory(account=account, credits=5)
        fund(other, 3)
        spend(freelancer, 4, "usage:1")

        stats = HistoryService.analytics(days=30)

        assert stats["period"]["days"] == 30
        assert stats["credits_in_circulation"] == 9
        assert stats["total_revenue"] == completed.amount
        assert stats["currency"] == "INR"
        assert stats["orders"] == {
            CreditOrderStatus.INITIATED: 1,
            CreditOrderStatus.COMPLETED: 1,
            CreditOrderStatus.FAILED: 0,
        }
        by_type = {row["type"]: row for row in stats["transactions_by_type"]}
        assert by_type[TransactionKind.PURCHASE]["count"] == 2
        assert by_type[TransactionKind.PURCHASE]["total"] == 13
        assert by_type[TransactionKind.USAGE]["total"] == -4

        today = stats["daily_stats"][-1]
        assert today["purchased"] == 13
        assert today["used"] == 4
        assert today["transactions"] == 3

        assert [row["user_id"] for row in stats["top_users"]] == [freelancer.pk, other.pk]

    def test_period_excludes_older_activity(self, freelancer, fund):
        with freeze_time(datetime(2026, 1, 1, tzinfo=dt_timezone.utc)):
            fund(freelancer, 5)

        with freeze_time(datetime(2026, 3, 1, tzinfo=dt_timezone.utc)):
            stats = HistoryService.analytics(days=7)

        assert stats["transactions_by_type"] == []
        assert stats["daily_stats"] == []
        assert stats["credits_in_circulation"] == 5

"""
Django admin for credits models.

Ledger rows are read-only here; balance changes go through the admin
adjust endpoint so they are recorded with a reason.
"""

from django.contrib import admin

from credits.models import CreditAccount, CreditOrder, CreditTransaction


@admin.register(CreditAccount)
class CreditAccountAdmin(admin.ModelAdmin):
    list_display = ["user", "balance", "total_purchased", "total_used", "updated_at"]
    search_fields = ["user__email"]
    readonly_fields = ["user", "balance", "total_purchased", "total_used"]


@admin.register(CreditTransaction)
class CreditTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "account",
        "kind",
        "amount",
        "balance_after",
        "reference_type",
        "reference_id",
        "created_at",
    ]
    list_filter = ["kind", "reference_type"]
    search_fields = ["account__user__email", "idempotency_key", "reference_id"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CreditOrder)
class CreditOrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_id",
        "account",
        "credits",
        "amount",
        "currency",
        "status",
        "created_at",
    ]
    list_filter = ["status", "currency"]
    search_fields = ["order_id", "gateway_reference", "account__user__email"]
    readonly_fields = [
        "order_id",
        "status",
        "gateway_reference",
        "client_secret",
        "completed_at",
        "failed_at",
        "version",
    ]

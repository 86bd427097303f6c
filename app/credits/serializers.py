"""
DRF serializers for the credits API.

Request serializers validate input shape only; business rules (limits,
eligibility, balances) are enforced by the services and reported through
core.exceptions.

Related files:
    - views.py / admin_views.py: API views
    - services/: Business logic
"""

from __future__ import annotations

from rest_framework import serializers

from credits.states import TransactionKind

# =============================================================================
# Requests
# =============================================================================


class InitiatePurchaseSerializer(serializers.Serializer):
    """
    Purchase request. package_id wins over credits_amount.

    Either field is enough; with neither the request is rejected.
    """

    credits_amount = serializers.IntegerField(required=False, min_value=1)
    package_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if attrs.get("package_id") is None and attrs.get("credits_amount") is None:
            raise serializers.ValidationError(
                "Provide either credits_amount or package_id."
            )
        return attrs


class VerifyPaymentSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=40)
    payment_intent_id = serializers.CharField(max_length=255)


class HistoryQuerySerializer(serializers.Serializer):
    """Filters for the user's history (pagination params are read separately)."""

    type = serializers.ChoiceField(choices=TransactionKind.choices, required=False)
    # "from" is a keyword, so the field is declared below
    to = serializers.DateField(required=False)

    def get_fields(self):
        fields = super().get_fields()
        fields["from"] = serializers.DateField(required=False)
        return fields

    def validate(self, attrs):
        start, end = attrs.get("from"), attrs.get("to")
        if start and end and start > end:
            raise serializers.ValidationError({"from": "Must not be after 'to'."})
        return attrs


class AdminTransactionQuerySerializer(HistoryQuerySerializer):
    user_id = serializers.IntegerField(required=False, min_value=1)
    sort_by = serializers.ChoiceField(
        choices=["created_at", "amount"], required=False, default="created_at"
    )
    sort_order = serializers.ChoiceField(
        choices=["asc", "desc"], required=False, default="desc"
    )


class AdminAdjustSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    amount = serializers.IntegerField()
    reason = serializers.CharField(max_length=500, trim_whitespace=True)

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError("Amount must be non-zero.")
        return value


class AnalyticsQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(required=False, min_value=1, max_value=365, default=30)


# =============================================================================
# Responses
# =============================================================================


class BalanceSerializer(serializers.Serializer):
    """Serializes a ledger BalanceSnapshot."""

    credits_balance = serializers.IntegerField(source="balance")
    total_credits_purchased = serializers.IntegerField(source="total_purchased")
    credits_used = serializers.IntegerField(source="total_used")
    pricePerCredit = serializers.IntegerField(source="price_per_credit")
    currency = serializers.CharField()


class PackagesQuerySerializer(serializers.Serializer):
    monthly_applications = serializers.IntegerField(required=False, min_value=0)


class PackageSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    credits = serializers.IntegerField()
    price = serializers.IntegerField()
    currency = serializers.CharField()
    description = serializers.CharField()


class CreditTransactionSerializer(serializers.Serializer):
    """
    Ledger entry as shown in the user's history.

    Fields:
        transaction_id: Ledger row id
        transaction_type: purchase, usage, refund, admin_adjustment, signup_bonus
        amount: Signed delta
        balance_before / balance_after: Balance around the entry
        order_id: Purchase order, for purchases
    """

    transaction_id = serializers.IntegerField(source="pk")
    transaction_type = serializers.CharField(source="kind")
    amount = serializers.IntegerField()
    balance_before = serializers.IntegerField()
    balance_after = serializers.IntegerField()
    description = serializers.CharField()
    reason = serializers.CharField()
    reference_type = serializers.CharField(allow_null=True)
    reference_id = serializers.CharField(allow_null=True)
    order_id = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField()

    def get_order_id(self, obj) -> str | None:
        return obj.order.order_id if obj.order_id else None


class AdminTransactionSerializer(CreditTransactionSerializer):
    user_id = serializers.IntegerField(source="account.user_id")
    user_email = serializers.EmailField(source="account.user.email")
    user_name = serializers.CharField(source="account.user.get_full_name")
    performed_by = serializers.IntegerField(source="performed_by_id", allow_null=True)


class RefundHistorySerializer(CreditTransactionSerializer):
    """
    Refund transaction joined with its application.

    Expects context["applications"]: {application_id: Application}.
    """

    application_id = serializers.SerializerMethodField()
    project_title = serializers.SerializerMethodField()
    refund_reason = serializers.CharField(source="reason")

    def _application(self, obj):
        applications = self.context.get("applications", {})
        try:
            return applications.get(int(obj.reference_id))
        except (TypeError, ValueError):
            return None

    def get_application_id(self, obj) -> int | None:
        application = self._application(obj)
        return application.pk if application else None

    def get_project_title(self, obj) -> str | None:
        application = self._application(obj)
        return application.project.title if application else None


class RefundEligibilitySerializer(serializers.Serializer):
    eligible = serializers.BooleanField()
    refund_amount = serializers.IntegerField()
    refund_percent = serializers.IntegerField()
    original_credits = serializers.IntegerField()
    reason = serializers.CharField()
    refund_reason = serializers.CharField(allow_null=True)


class AdminUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    email = serializers.EmailField()
    name = serializers.CharField(source="get_full_name")
    role = serializers.CharField()
    date_joined = serializers.DateTimeField()

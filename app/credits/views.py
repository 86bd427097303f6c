"""
Credits API views for freelancers.

Endpoints:
    GET  /api/v1/credits/balance/
    GET  /api/v1/credits/packages/
    POST /api/v1/credits/initiate-purchase/
    POST /api/v1/credits/verify-payment/
    GET  /api/v1/credits/history/
    GET  /api/v1/credits/refunds/
    GET  /api/v1/credits/refund-eligibility/<application_id>/

Every view requires a JWT and a role holding the view's
required_permission (see credits.policy). Domain errors raised by the
services are rendered by core.exception_handler.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.helpers import request_audit_context

from credits.conf import credit_settings
from credits.ledger import ledger
from credits.packages import list_packages, recommended_package
from credits.pagination import LedgerPagination
from credits.policy import CreditPermission, HasCreditPermission
from credits.serializers import (
    BalanceSerializer,
    CreditTransactionSerializer,
    HistoryQuerySerializer,
    InitiatePurchaseSerializer,
    PackageSerializer,
    PackagesQuerySerializer,
    RefundEligibilitySerializer,
    RefundHistorySerializer,
    VerifyPaymentSerializer,
)
from credits.services import (
    HistoryFilters,
    HistoryService,
    PaymentCompletionService,
    PurchaseService,
    RefundService,
)
from credits.throttles import CreditOperationsThrottle, CreditPurchaseThrottle
from projects.models import Application


class CreditAPIView(APIView):
    """Base view: JWT + role policy + credits rate limit."""

    permission_classes = [IsAuthenticated, HasCreditPermission]
    throttle_classes = [CreditOperationsThrottle]
    required_permission: str | None = None


class CreditBalanceView(CreditAPIView):
    required_permission = CreditPermission.VIEW_OWN

    @extend_schema(
        operation_id="get_credit_balance",
        summary="Get credit balance",
        responses={200: BalanceSerializer},
        tags=["Credits"],
    )
    def get(self, request):
        snapshot = ledger.get_balance(request.user)
        return Response(BalanceSerializer(snapshot).data)


class CreditPackagesView(CreditAPIView):
    required_permission = CreditPermission.VIEW_PACKAGES

    @extend_schema(
        operation_id="list_credit_packages",
        summary="List credit packages",
        parameters=[
            OpenApiParameter(
                "monthly_applications",
                int,
                description="Average applications per month; adds a recommended package",
            ),
        ],
        tags=["Credits"],
    )
    def get(self, request):
        query = PackagesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        conf = credit_settings()
        data = {
            "packages": PackageSerializer(list_packages(), many=True).data,
            "pricePerCredit": conf.price_per_credit,
            "currency": conf.currency,
            "limits": {
                "minPurchase": conf.min_purchase,
                "maxPurchase": conf.max_single_purchase,
                "maxBalance": conf.max_balance,
            },
        }
        monthly = query.validated_data.get("monthly_applications")
        if monthly is not None:
            data["recommended"] = PackageSerializer(recommended_package(monthly)).data
        return Response(data)


class InitiatePurchaseView(CreditAPIView):
    """
    Start a purchase and return what the frontend needs to confirm it
    with Stripe.js.
    """

    required_permission = CreditPermission.PURCHASE
    throttle_classes = [CreditOperationsThrottle, CreditPurchaseThrottle]

    @extend_schema(
        operation_id="initiate_credit_purchase",
        summary="Initiate credit purchase",
        request=InitiatePurchaseSerializer,
        tags=["Credits"],
    )
    def post(self, request):
        serializer = InitiatePurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = PurchaseService.initiate_purchase(
            request.user,
            credits=serializer.validated_data.get("credits_amount"),
            package_id=serializer.validated_data.get("package_id"),
            request_context=request_audit_context(request),
        )
        adapter = PurchaseService.get_stripe_adapter()
        return Response(
            {
                "order_id": order.order_id,
                "amount": order.amount,
                "currency": order.currency,
                "credits": order.credits,
                "package_name": order.package_name or None,
                "key_id": adapter.publishable_key(),
                "client_secret": order.client_secret,
                "user": {
                    "name": request.user.get_full_name(),
                    "email": request.user.email,
                },
            }
        )


class VerifyPaymentView(CreditAPIView):
    required_permission = CreditPermission.PURCHASE
    throttle_classes = [CreditOperationsThrottle, CreditPurchaseThrottle]

    @extend_schema(
        operation_id="verify_credit_payment",
        summary="Verify payment and add credits",
        request=VerifyPaymentSerializer,
        tags=["Credits"],
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentCompletionService.verify_payment(
            request.user,
            order_id=serializer.validated_data["order_id"],
            payment_intent_id=serializer.validated_data["payment_intent_id"],
            request_context=request_audit_context(request),
        )
        return Response(
            {
                "order_id": result.order.order_id,
                "credits_added": result.transaction.amount,
                "credits_balance": ledger.get_balance(request.user).balance,
                "transaction_id": result.transaction.pk,
                "already_processed": result.already_processed,
            }
        )


class CreditHistoryView(CreditAPIView):
    required_permission = CreditPermission.VIEW_HISTORY
    pagination_class = LedgerPagination

    @extend_schema(
        operation_id="list_credit_history",
        summary="List credit transactions",
        parameters=[
            OpenApiParameter("limit", int, description="Rows per page (max 50)"),
            OpenApiParameter("offset", int, description="Row offset"),
            OpenApiParameter("page", int, description="1-based page"),
            OpenApiParameter("type", str, description="Transaction type"),
            OpenApiParameter("from", str, description="Start date (YYYY-MM-DD)"),
            OpenApiParameter("to", str, description="End date (YYYY-MM-DD)"),
        ],
        responses={200: CreditTransactionSerializer(many=True)},
        tags=["Credits"],
    )
    def get(self, request):
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        filters = HistoryFilters(
            kind=query.validated_data.get("type"),
            date_from=query.validated_data.get("from"),
            date_to=query.validated_data.get("to"),
        )

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(
            HistoryService.user_history(request.user, filters), request, view=self
        )
        return paginator.get_paginated_response(
            CreditTransactionSerializer(page, many=True).data
        )


class CreditRefundsView(CreditAPIView):
    required_permission = CreditPermission.REQUEST_REFUND

    @extend_schema(
        operation_id="list_credit_refunds",
        summary="List credit refunds",
        responses={200: RefundHistorySerializer(many=True)},
        tags=["Credits"],
    )
    def get(self, request):
        refunds = list(RefundService.list_refunds(request.user))
        application_ids = [
            int(txn.reference_id)
            for txn in refunds
            if txn.reference_id and txn.reference_id.isdigit()
        ]
        applications = Application.all_objects.select_related("project").in_bulk(
            application_ids
        )
        data = RefundHistorySerializer(
            refunds, many=True, context={"applications": applications}
        ).data
        return Response({"data": data})


class RefundEligibilityView(CreditAPIView):
    required_permission = CreditPermission.REQUEST_REFUND

    @extend_schema(
        operation_id="check_refund_eligibility",
        summary="Check refund eligibility for an application",
        responses={200: RefundEligibilitySerializer},
        tags=["Credits"],
    )
    def get(self, request, application_id):
        application = RefundService.get_application_for_user(request.user, application_id)
        eligibility = RefundService.check_eligibility(application)
        return Response(
            {
                "application_id": application.pk,
                **RefundEligibilitySerializer(eligibility).data,
            }
        )

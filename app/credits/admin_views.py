"""
Admin credits API views.

Endpoints:
    GET  /api/v1/admin/credits/transactions/
    POST /api/v1/admin/credits/adjust/
    GET  /api/v1/admin/credits/analytics/
    GET  /api/v1/admin/credits/user/<user_id>/
    POST /api/v1/admin/credits/refund-project/<project_id>/
    GET  /api/v1/admin/credits/export/

Restricted to admin and super_admin roles through credits.policy.
"""

from __future__ import annotations

import csv

from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema

from rest_framework.response import Response

from core.helpers import request_audit_context

from credits.pagination import AdminTransactionPagination
from credits.policy import CreditPermission
from credits.serializers import (
    AdminAdjustSerializer,
    AdminTransactionQuerySerializer,
    AdminTransactionSerializer,
    AdminUserSerializer,
    AnalyticsQuerySerializer,
    BalanceSerializer,
    CreditTransactionSerializer,
)
from credits.services import (
    EXPORT_HEADERS,
    AdminCreditService,
    HistoryFilters,
    HistoryService,
)
from credits.views import CreditAPIView


def _admin_filters(request) -> HistoryFilters:
    query = AdminTransactionQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    data = query.validated_data
    return HistoryFilters(
        kind=data.get("type"),
        date_from=data.get("from"),
        date_to=data.get("to"),
        user_id=data.get("user_id"),
        sort_by=data.get("sort_by", "created_at"),
        sort_order=data.get("sort_order", "desc"),
    )


class AdminTransactionListView(CreditAPIView):
    required_permission = CreditPermission.ADMIN_VIEW_ALL
    pagination_class = AdminTransactionPagination

    @extend_schema(
        operation_id="admin_list_credit_transactions",
        summary="List all credit transactions",
        parameters=[
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int, description="Rows per page (max 100)"),
            OpenApiParameter("user_id", int),
            OpenApiParameter("type", str),
            OpenApiParameter("from", str),
            OpenApiParameter("to", str),
            OpenApiParameter("sort_by", str, enum=["created_at", "amount"]),
            OpenApiParameter("sort_order", str, enum=["asc", "desc"]),
        ],
        responses={200: AdminTransactionSerializer(many=True)},
        tags=["Admin - Credits"],
    )
    def get(self, request):
        paginator = self.pagination_class()
        page = paginator.paginate_queryset(
            HistoryService.admin_transactions(_admin_filters(request)),
            request,
            view=self,
        )
        return paginator.get_paginated_response(
            AdminTransactionSerializer(page, many=True).data
        )


class AdminAdjustBalanceView(CreditAPIView):
    required_permission = CreditPermission.ADMIN_ADJUST

    @extend_schema(
        operation_id="admin_adjust_credits",
        summary="Adjust a user's credit balance",
        request=AdminAdjustSerializer,
        tags=["Admin - Credits"],
    )
    def post(self, request):
        serializer = AdminAdjustSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        target = AdminCreditService.get_user(data["user_id"])
        result = AdminCreditService.adjust_balance(
            target,
            amount=data["amount"],
            reason=data["reason"],
            admin=request.user,
            request_context=request_audit_context(request),
        )
        return Response(
            {
                "user_id": target.pk,
                "previousBalance": result.previous_balance,
                "adjustment": result.adjustment,
                "newBalance": result.new_balance,
                "reason": result.transaction.reason,
                "adjusted_by": request.user.pk,
                "transaction_id": result.transaction.pk,
            }
        )


class AdminAnalyticsView(CreditAPIView):
    required_permission = CreditPermission.ADMIN_ANALYTICS

    @extend_schema(
        operation_id="admin_credit_analytics",
        summary="Credit analytics",
        parameters=[OpenApiParameter("days", int, description="Period in days (default 30)")],
        tags=["Admin - Credits"],
    )
    def get(self, request):
        query = AnalyticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(HistoryService.analytics(days=query.validated_data["days"]))


class AdminUserCreditsView(CreditAPIView):
    required_permission = CreditPermission.ADMIN_VIEW_ALL

    @extend_schema(
        operation_id="admin_user_credits",
        summary="A user's credits and recent transactions",
        tags=["Admin - Credits"],
    )
    def get(self, request, user_id):
        snapshot = AdminCreditService.user_snapshot(user_id)
        return Response(
            {
                "user": AdminUserSerializer(snapshot["user"]).data,
                "credits": BalanceSerializer(snapshot["credits"]).data,
                "recent_transactions": CreditTransactionSerializer(
                    snapshot["recent_transactions"], many=True
                ).data,
            }
        )


class AdminRefundProjectView(CreditAPIView):
    required_permission = CreditPermission.ADMIN_REFUND

    @extend_schema(
        operation_id="admin_refund_project",
        summary="Refund every application on a project",
        request=None,
        tags=["Admin - Credits"],
    )
    def post(self, request, project_id):
        sweep = AdminCreditService.refund_project(project_id, admin=request.user)
        return Response(
            {
                "project_id": sweep.project.pk,
                "project_title": sweep.project.title,
                "refunds_processed": sweep.refunds_processed,
                "total_applications": sweep.total_applications,
                "failures": sweep.failures,
            }
        )


class AdminExportView(CreditAPIView):
    required_permission = CreditPermission.ADMIN_EXPORT

    @extend_schema(
        operation_id="admin_export_credit_transactions",
        summary="Export credit transactions as CSV",
        responses={(200, "text/csv"): str},
        tags=["Admin - Credits"],
    )
    def get(self, request):
        filters = _admin_filters(request)
        filename = f"credit-transactions-{timezone.now():%Y%m%d}.csv"

        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow(EXPORT_HEADERS)
        for row in HistoryService.export_rows(filters):
            writer.writerow(row)
        return response

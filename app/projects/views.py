"""
Projects API views.

Endpoints:
    POST /api/v1/projects/<project_id>/apply/
    POST /api/v1/projects/applications/<application_id>/withdraw/
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from credits.ledger import ledger
from projects.serializers import ApplicationSerializer, ApplySerializer
from projects.services import ApplicationService


class ApplyToProjectView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="apply_to_project",
        summary="Apply to a project (spends credits)",
        request=ApplySerializer,
        responses={201: ApplicationSerializer},
        tags=["Projects"],
    )
    def post(self, request, project_id):
        serializer = ApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = ApplicationService.get_project(project_id)
        application = ApplicationService.apply(
            request.user,
            project,
            cover_letter=serializer.validated_data["cover_letter"],
        )
        return Response(
            {
                "application": ApplicationSerializer(application).data,
                "credits_balance": ledger.get_balance(request.user).balance,
            },
            status=status.HTTP_201_CREATED,
        )


class WithdrawApplicationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="withdraw_application",
        summary="Withdraw an application (may refund credits)",
        request=None,
        tags=["Projects"],
    )
    def post(self, request, application_id):
        result = ApplicationService.withdraw(application_id, request.user)
        return Response(
            {
                "application": ApplicationSerializer(result.application).data,
                "refund": {
                    "issued": result.refund is not None,
                    "amount": result.refund.amount if result.refund else 0,
                    "percent": result.eligibility.refund_percent if result.refund else 0,
                    "reason": result.eligibility.reason,
                },
                "credits_balance": ledger.get_balance(request.user).balance,
            }
        )

"""
Role-based access policy for credits endpoints.

Access is a single declarative table mapping each permission to the
roles allowed to use it. Views declare the permission they need:

    class CreditBalanceView(CreditAPIView):
        required_permission = CreditPermission.VIEW_OWN

and HasCreditPermission evaluates it. Clients have no credits access.

Policy:
    Freelancers (videographer, video_editor):
        view_own, view_packages, purchase, view_history, request_refund
    Admins (admin, super_admin):
        view_packages and every admin.* permission
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models
from rest_framework import permissions

from authentication.models import ADMIN_ROLES, FREELANCER_ROLES

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class CreditPermission(models.TextChoices):
    VIEW_OWN = "credits.view_own", "View own credits"
    VIEW_PACKAGES = "credits.view_packages", "View credit packages"
    PURCHASE = "credits.purchase", "Purchase credits"
    VIEW_HISTORY = "credits.view_history", "View credit history"
    REQUEST_REFUND = "credits.request_refund", "Request refunds"
    ADMIN_VIEW_ALL = "credits.admin.view_all", "View all credit activity"
    ADMIN_ADJUST = "credits.admin.adjust", "Adjust balances"
    ADMIN_ANALYTICS = "credits.admin.analytics", "View credit analytics"
    ADMIN_REFUND = "credits.admin.refund", "Refund projects"
    ADMIN_EXPORT = "credits.admin.export", "Export transactions"


ROLE_POLICY: dict[str, frozenset[str]] = {
    CreditPermission.VIEW_OWN: FREELANCER_ROLES,
    CreditPermission.VIEW_PACKAGES: FREELANCER_ROLES | ADMIN_ROLES,
    CreditPermission.PURCHASE: FREELANCER_ROLES,
    CreditPermission.VIEW_HISTORY: FREELANCER_ROLES,
    CreditPermission.REQUEST_REFUND: FREELANCER_ROLES,
    CreditPermission.ADMIN_VIEW_ALL: ADMIN_ROLES,
    CreditPermission.ADMIN_ADJUST: ADMIN_ROLES,
    CreditPermission.ADMIN_ANALYTICS: ADMIN_ROLES,
    CreditPermission.ADMIN_REFUND: ADMIN_ROLES,
    CreditPermission.ADMIN_EXPORT: ADMIN_ROLES,
}


def is_allowed(role: str, permission: str) -> bool:
    """Whether `role` holds `permission`. Unknown permissions are denied."""
    return role in ROLE_POLICY.get(permission, frozenset())


class HasCreditPermission(permissions.BasePermission):
    """
    Allows access when the user's role holds the view's required_permission.

    Views without a required_permission are denied.
    """

    message = "Your role does not have access to this resource."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        required = getattr(view, "required_permission", None)
        if required is None:
            return False
        return is_allowed(user.role, required)

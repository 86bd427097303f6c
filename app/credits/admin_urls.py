"""
URL configuration for the admin credits API.

Mounted at /api/v1/admin/credits/ in config/urls.py.
"""

from django.urls import path

from credits import admin_views

app_name = "credits_admin"

urlpatterns = [
    path(
        "transactions/",
        admin_views.AdminTransactionListView.as_view(),
        name="transactions",
    ),
    path("adjust/", admin_views.AdminAdjustBalanceView.as_view(), name="adjust"),
    path("analytics/", admin_views.AdminAnalyticsView.as_view(), name="analytics"),
    path(
        "user/<int:user_id>/",
        admin_views.AdminUserCreditsView.as_view(),
        name="user",
    ),
    path(
        "refund-project/<int:project_id>/",
        admin_views.AdminRefundProjectView.as_view(),
        name="refund-project",
    ),
    path("export/", admin_views.AdminExportView.as_view(), name="export"),
]

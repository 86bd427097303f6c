"""
URL configuration for the credits API.

Mounted at /api/v1/credits/ in config/urls.py.
"""

from django.urls import path

from credits import views
from credits.webhooks import stripe_webhook

app_name = "credits"

urlpatterns = [
    path("balance/", views.CreditBalanceView.as_view(), name="balance"),
    path("packages/", views.CreditPackagesView.as_view(), name="packages"),
    path(
        "initiate-purchase/",
        views.InitiatePurchaseView.as_view(),
        name="initiate-purchase",
    ),
    path("verify-payment/", views.VerifyPaymentView.as_view(), name="verify-payment"),
    path("history/", views.CreditHistoryView.as_view(), name="history"),
    path("refunds/", views.CreditRefundsView.as_view(), name="refunds"),
    path(
        "refund-eligibility/<int:application_id>/",
        views.RefundEligibilityView.as_view(),
        name="refund-eligibility",
    ),
    path("webhooks/stripe/", stripe_webhook, name="stripe-webhook"),
]

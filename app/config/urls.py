"""
URL configuration for the credits backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT token obtain/refresh, current user
    /api/v1/credits/               - Freelancer credits endpoints
        balance/                   - Current balance
        packages/                  - Package catalogue and limits
        initiate-purchase/         - Create order and payment intent
        verify-payment/            - Confirm payment and add credits
        history/                   - Paginated transaction history
        refunds/                   - Refund transactions
        refund-eligibility/{id}/   - Refund preview for an application
        webhooks/stripe/           - Stripe webhook endpoint (POST)
    /api/v1/admin/credits/         - Admin credits endpoints
        transactions/              - All transactions
        adjust/                    - Manual balance adjustment
        analytics/                 - Platform statistics
        user/{id}/                 - A user's credits
        refund-project/{id}/       - Refund every application on a project
        export/                    - CSV export
    /api/v1/projects/              - Project applications
        {id}/apply/                - Apply (spends credits)
        applications/{id}/withdraw/ - Withdraw (refunds credits when eligible)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("credits/", include("credits.urls")),
    path("admin/credits/", include("credits.admin_urls")),
    path("projects/", include("projects.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Credits Admin"
admin.site.site_title = "Credits Admin Portal"
admin.site.index_title = "Credits, orders and applications"

"""
Pytest fixtures for credits tests.

Usage:
    def test_balance(freelancer, freelancer_client, fund):
        fund(freelancer, 10)
        response = freelancer_client.get("/api/v1/credits/balance/")
        assert response.data["credits_balance"] == 10

    def test_purchase(freelancer, stripe_adapter):
        order = PurchaseService.initiate_purchase(freelancer, package_id=1)
        stripe_adapter.create_payment_intent.assert_called_once()
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import (
    AdminUserFactory,
    ClientFactory,
    FreelancerFactory,
)
from credits.adapters import PaymentIntentResult
from credits.ledger import TransactionParams, ledger
from credits.services import PaymentGatewayService
from credits.states import TransactionKind
from projects.tests.factories import ProjectFactory


# =============================================================================
# Users and API clients
# =============================================================================


def _jwt_client(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def freelancer(db):
    return FreelancerFactory()


@pytest.fixture
def client_user(db):
    """A client (project owner); has no credits access."""
    return ClientFactory()


@pytest.fixture
def admin_user(db):
    return AdminUserFactory()


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def freelancer_client(freelancer):
    return _jwt_client(freelancer)


@pytest.fixture
def client_user_client(client_user):
    return _jwt_client(client_user)


@pytest.fixture
def admin_api_client(admin_user):
    return _jwt_client(admin_user)


@pytest.fixture
def jwt_client():
    """Factory returning a JWT-authenticated client for any user."""
    return _jwt_client


# =============================================================================
# Ledger seeding
# =============================================================================


@pytest.fixture
def fund(db):
    """
    Seed a user's balance through the ledger.

    Returns the created purchase transaction.
    """

    def _fund(user, amount):
        return ledger.apply_transaction(
            user,
            TransactionParams(
                amount=amount,
                kind=TransactionKind.PURCHASE,
                idempotency_key=f"test:fund:{uuid4()}",
                description="Test top-up",
            ),
        )

    return _fund


@pytest.fixture
def project(db):
    return ProjectFactory()


# =============================================================================
# Stripe
# =============================================================================


@pytest.fixture
def stripe_adapter():
    """
    Mock Stripe adapter installed for every credits service.

    create_payment_intent returns a requires_payment_method intent whose
    id and amount follow the request; configure retrieve_payment_intent
    per test (see factories.make_intent).
    """
    adapter = MagicMock()
    adapter.publishable_key.return_value = "pk_test_123"

    def _create(params):
        return PaymentIntentResult(
            id=f"pi_{params.metadata['order_id']}",
            status="requires_payment_method",
            amount_cents=params.amount_cents,
            currency=params.currency.lower(),
            client_secret=f"pi_{params.metadata['order_id']}_secret_abc",
            metadata=dict(params.metadata),
        )

    adapter.create_payment_intent.side_effect = _create

    PaymentGatewayService.set_stripe_adapter(adapter)
    yield adapter
    PaymentGatewayService.set_stripe_adapter(None)

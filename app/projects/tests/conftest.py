"""
Pytest fixtures for projects tests.
"""

from uuid import uuid4

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import ClientFactory, FreelancerFactory
from credits.ledger import TransactionParams, ledger
from credits.states import TransactionKind
from projects.tests.factories import ProjectFactory


@pytest.fixture
def freelancer(db):
    return FreelancerFactory()


@pytest.fixture
def client_user(db):
    return ClientFactory()


@pytest.fixture
def project(db):
    return ProjectFactory(credits_required=2)


@pytest.fixture
def auth_client():
    """Factory returning a JWT-authenticated APIClient for a user."""

    def _client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _client


@pytest.fixture
def fund(db):
    """Give a user credits through the ledger."""

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

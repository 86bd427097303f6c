"""
Tests for authentication API views.

- POST /api/v1/auth/token/ issues a JWT pair
- GET /api/v1/auth/me/ returns the authenticated user
"""

from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from authentication.models import UserRole

TOKEN_URL = "/api/v1/auth/token/"
ME_URL = "/api/v1/auth/me/"


class TestTokenObtain:
    def test_returns_pair_for_valid_credentials(self, api_client, freelancer):
        response = api_client.post(
            TOKEN_URL,
            {"email": freelancer.email, "password": "TestPass123!"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.data
        assert "refresh" in response.data

    def test_access_token_carries_role_claim(self, api_client, freelancer):
        response = api_client.post(
            TOKEN_URL,
            {"email": freelancer.email, "password": "TestPass123!"},
            format="json",
        )

        token = AccessToken(response.data["access"])
        assert token["role"] == UserRole.VIDEOGRAPHER

    def test_rejects_wrong_password(self, api_client, freelancer):
        response = api_client.post(
            TOKEN_URL,
            {"email": freelancer.email, "password": "wrong"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert "error" in response.data


class TestMe:
    def test_returns_current_user(self, authenticated_client, user):
        response = authenticated_client.get(ME_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["email"] == user.email
        assert response.data["role"] == user.role

    def test_requires_token(self, api_client):
        response = api_client.get(ME_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["error_code"] == "NOT_AUTHENTICATED"

    def test_rejects_malformed_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")

        response = api_client.get(ME_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

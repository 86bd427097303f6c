"""
Tests for the projects API.
"""

import pytest

from credits.ledger import ledger
from projects.models import Application, ApplicationStatus
from projects.services import ApplicationService


def apply_url(project_id):
    return f"/api/v1/projects/{project_id}/apply/"


def withdraw_url(application_id):
    return f"/api/v1/projects/applications/{application_id}/withdraw/"


@pytest.mark.django_db
class TestApplyView:
    def test_apply(self, freelancer, project, fund, auth_client):
        fund(freelancer, 3)

        response = auth_client(freelancer).post(
            apply_url(project.pk), {"cover_letter": "Available all week"}, format="json"
        )

        assert response.status_code == 201
        assert response.data["application"]["project"] == project.pk
        assert response.data["application"]["credits_spent"] == 2
        assert response.data["application"]["cover_letter"] == "Available all week"
        assert response.data["credits_balance"] == 1

    def test_insufficient_credits(self, freelancer, project, auth_client):
        response = auth_client(freelancer).post(apply_url(project.pk))

        assert response.status_code == 400
        assert response.data["error_code"] == "INSUFFICIENT_CREDITS"
        assert response.data["details"]["required"] == 2
        assert response.data["details"]["purchase_url"] == "/credits/purchase"
        assert not Application.objects.exists()

    def test_already_applied(self, freelancer, project, fund, auth_client):
        fund(freelancer, 5)
        client = auth_client(freelancer)
        client.post(apply_url(project.pk))

        response = client.post(apply_url(project.pk))

        assert response.status_code == 409
        assert response.data["error_code"] == "ALREADY_APPLIED"

    def test_unknown_project(self, freelancer, auth_client):
        response = auth_client(freelancer).post(apply_url(999999))

        assert response.status_code == 404

    def test_client_role(self, client_user, project, auth_client):
        response = auth_client(client_user).post(apply_url(project.pk))

        assert response.status_code == 403

    def test_anonymous(self, project, client):
        response = client.post(apply_url(project.pk))

        assert response.status_code == 401


@pytest.mark.django_db
class TestWithdrawView:
    def test_withdraw_with_refund(self, freelancer, project, fund, auth_client):
        fund(freelancer, 2)
        application = ApplicationService.apply(freelancer, project)

        response = auth_client(freelancer).post(withdraw_url(application.pk))

        assert response.status_code == 200
        assert response.data["application"]["status"] == ApplicationStatus.WITHDRAWN
        assert response.data["refund"] == {
            "issued": True,
            "amount": 2,
            "percent": 100,
            "reason": "Full refund within 30 minutes",
        }
        assert response.data["credits_balance"] == 2
        assert ledger.get_balance(freelancer).balance == 2

    def test_withdraw_twice(self, freelancer, project, fund, auth_client):
        fund(freelancer, 2)
        application = ApplicationService.apply(freelancer, project)
        client = auth_client(freelancer)
        client.post(withdraw_url(application.pk))

        response = client.post(withdraw_url(application.pk))

        assert response.status_code == 409
        assert response.data["error_code"] == "APPLICATION_NOT_ACTIVE"
        assert ledger.get_balance(freelancer).balance == 2

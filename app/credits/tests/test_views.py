"""
Tests for the freelancer credits API.

Covers authentication, the role policy per endpoint and the response
shapes of balance, packages, purchase, verification, history and refund
endpoints.
"""

import pytest

from authentication.tests.factories import FreelancerFactory
from credits.exceptions import PaymentGatewayError
from credits.models import CreditOrder
from credits.policy import ROLE_POLICY, CreditPermission
from credits.services import PaymentCompletionService
from credits.states import CreditOrderStatus, TransactionKind
from credits.tests.factories import CreditAccountFactory, CreditOrderFactory, make_intent
from projects.models import ApplicationStatus
from projects.services import ApplicationService
from projects.tests.factories import ProjectFactory

BALANCE_URL = "/api/v1/credits/balance/"
PACKAGES_URL = "/api/v1/credits/packages/"
INITIATE_URL = "/api/v1/credits/initiate-purchase/"
VERIFY_URL = "/api/v1/credits/verify-payment/"
HISTORY_URL = "/api/v1/credits/history/"
REFUNDS_URL = "/api/v1/credits/refunds/"


def eligibility_url(application_id):
    return f"/api/v1/credits/refund-eligibility/{application_id}/"


@pytest.mark.django_db
class TestAccessPolicy:
    @pytest.mark.parametrize(
        "url",
        [BALANCE_URL, PACKAGES_URL, HISTORY_URL, REFUNDS_URL, eligibility_url(1)],
    )
    def test_anonymous_is_rejected(self, api_client, url):
        response = api_client.get(url)

        assert response.status_code == 401

    def test_plain_http_is_not_redirected(self, api_client, settings):
        assert settings.SECURE_SSL_REDIRECT is False

        response = api_client.get(BALANCE_URL, secure=False)

        assert response.status_code == 401

    @pytest.mark.parametrize(
        "method,url",
        [
            ("get", BALANCE_URL),
            ("get", PACKAGES_URL),
            ("get", HISTORY_URL),
            ("get", REFUNDS_URL),
            ("post", INITIATE_URL),
            ("post", VERIFY_URL),
            ("get", eligibility_url(1)),
        ],
    )
    def test_clients_are_forbidden(self, client_user_client, stripe_adapter, method, url):
        response = getattr(client_user_client, method)(url, {}, format="json")

        assert response.status_code == 403
        assert response.data["error_code"] == "PERMISSION_DENIED"
        assert response.data["error"] == "Your role does not have access to this resource."
        stripe_adapter.create_payment_intent.assert_not_called()
        stripe_adapter.retrieve_payment_intent.assert_not_called()

    @pytest.mark.parametrize(
        "url",
        [BALANCE_URL, PACKAGES_URL, HISTORY_URL, REFUNDS_URL],
    )
    def test_freelancers_can_read(self, freelancer_client, url):
        assert freelancer_client.get(url).status_code == 200

    def test_freelancers_can_purchase_and_verify(
        self, freelancer, freelancer_client, stripe_adapter
    ):
        initiated = freelancer_client.post(INITIATE_URL, {"package_id": 1}, format="json")
        assert initiated.status_code == 200

        order = CreditOrder.objects.get(order_id=initiated.data["order_id"])
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(order)
        verified = freelancer_client.post(
            VERIFY_URL,
            {"order_id": order.order_id, "payment_intent_id": order.gateway_reference},
            format="json",
        )
        assert verified.status_code == 200

    def test_freelancers_reach_refund_eligibility(self, freelancer_client):
        # Passes the role check, then finds no such application
        response = freelancer_client.get(eligibility_url(999999))

        assert response.status_code == 404
        assert response.data["error_code"] == "APPLICATION_NOT_FOUND"

    def test_refund_list_follows_refund_permission(self, freelancer_client, monkeypatch):
        monkeypatch.setitem(ROLE_POLICY, CreditPermission.REQUEST_REFUND, frozenset())

        assert freelancer_client.get(REFUNDS_URL).status_code == 403
        assert freelancer_client.get(eligibility_url(1)).status_code == 403
        assert freelancer_client.get(HISTORY_URL).status_code == 200

    def test_admins_see_packages_but_not_a_balance(self, admin_api_client):
        assert admin_api_client.get(PACKAGES_URL).status_code == 200
        assert admin_api_client.get(BALANCE_URL).status_code == 403

    def test_admins_cannot_purchase(self, admin_api_client, stripe_adapter):
        response = admin_api_client.post(INITIATE_URL, {"package_id": 1}, format="json")

        assert response.status_code == 403
        stripe_adapter.create_payment_intent.assert_not_called()


@pytest.mark.django_db
class TestBalance:
    def test_new_freelancer_has_zero_balance(self, freelancer_client):
        response = freelancer_client.get(BALANCE_URL)

        assert response.status_code == 200
        assert response.data == {
            "credits_balance": 0,
            "total_credits_purchased": 0,
            "credits_used": 0,
            "pricePerCredit": 50,
            "currency": "INR",
        }

    def test_reflects_ledger(self, freelancer, freelancer_client, fund):
        fund(freelancer, 8)

        response = freelancer_client.get(BALANCE_URL)

        assert response.data["credits_balance"] == 8
        assert response.data["total_credits_purchased"] == 8


@pytest.mark.django_db
class TestPackages:
    def test_catalog_and_limits(self, freelancer_client):
        response = freelancer_client.get(PACKAGES_URL)

        assert response.status_code == 200
        assert [p["name"] for p in response.data["packages"]] == [
            "Starter",
            "Basic",
            "Pro",
            "Business",
        ]
        assert response.data["packages"][1]["price"] == 500
        assert response.data["pricePerCredit"] == 50
        assert response.data["limits"] == {
            "minPurchase": 1,
            "maxPurchase": 100,
            "maxBalance": 500,
        }
        assert "recommended" not in response.data

    def test_recommendation_for_monthly_volume(self, freelancer_client):
        response = freelancer_client.get(PACKAGES_URL, {"monthly_applications": 8})

        assert response.status_code == 200
        assert response.data["recommended"]["name"] == "Basic"
        assert response.data["recommended"]["price"] == 500

    def test_invalid_monthly_volume(self, freelancer_client):
        response = freelancer_client.get(PACKAGES_URL, {"monthly_applications": -1})

        assert response.status_code == 400


@pytest.mark.django_db
class TestInitiatePurchase:
    def test_package_purchase(self, freelancer, freelancer_client, stripe_adapter):
        response = freelancer_client.post(INITIATE_URL, {"package_id": 3}, format="json")

        assert response.status_code == 200
        order = CreditOrder.objects.get()
        assert response.data["order_id"] == order.order_id
        assert response.data["credits"] == 25
        assert response.data["amount"] == 125000
        assert response.data["currency"] == "INR"
        assert response.data["package_name"] == "Pro"
        assert response.data["key_id"] == "pk_test_123"
        assert response.data["client_secret"] == order.client_secret
        assert response.data["user"]["email"] == freelancer.email

    def test_custom_amount(self, freelancer_client, stripe_adapter):
        response = freelancer_client.post(INITIATE_URL, {"credits_amount": 7}, format="json")

        assert response.status_code == 200
        assert response.data["credits"] == 7
        assert response.data["package_name"] is None

    def test_neither_field(self, freelancer_client, stripe_adapter):
        response = freelancer_client.post(INITIATE_URL, {}, format="json")

        assert response.status_code == 400
        assert not CreditOrder.objects.exists()

    def test_unknown_package(self, freelancer_client, stripe_adapter):
        response = freelancer_client.post(INITIATE_URL, {"package_id": 9}, format="json")

        assert response.status_code == 400
        assert response.data["error_code"] == "INVALID_PACKAGE"

    def test_balance_ceiling(self, freelancer, freelancer_client, fund, stripe_adapter):
        fund(freelancer, 480)

        response = freelancer_client.post(INITIATE_URL, {"credits_amount": 25}, format="json")

        assert response.status_code == 400
        assert response.data["error_code"] == "MAX_BALANCE_EXCEEDED"
        assert response.data["details"]["can_purchase"] == 20

    def test_gateway_failure(self, freelancer_client, stripe_adapter):
        stripe_adapter.create_payment_intent.side_effect = PaymentGatewayError(
            "Payment gateway unavailable. Please retry.",
            error_code="GATEWAY_UNAVAILABLE",
        )

        response = freelancer_client.post(INITIATE_URL, {"package_id": 1}, format="json")

        assert response.status_code == 502
        assert response.data["error_code"] == "GATEWAY_UNAVAILABLE"
        assert CreditOrder.objects.get().status == CreditOrderStatus.FAILED


@pytest.mark.django_db
class TestVerifyPayment:
    @pytest.fixture
    def order(self, freelancer):
        return CreditOrderFactory(account=CreditAccountFactory(user=freelancer), credits=10)

    def test_verification_adds_credits(self, freelancer_client, order, stripe_adapter):
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(order)

        response = freelancer_client.post(
            VERIFY_URL,
            {"order_id": order.order_id, "payment_intent_id": order.gateway_reference},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["order_id"] == order.order_id
        assert response.data["credits_added"] == 10
        assert response.data["credits_balance"] == 10
        assert response.data["already_processed"] is False

    def test_repeat_verification_is_idempotent(self, freelancer_client, order, stripe_adapter):
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(order)
        payload = {"order_id": order.order_id, "payment_intent_id": order.gateway_reference}

        first = freelancer_client.post(VERIFY_URL, payload, format="json")
        second = freelancer_client.post(VERIFY_URL, payload, format="json")

        assert second.status_code == 200
        assert second.data["already_processed"] is True
        assert second.data["transaction_id"] == first.data["transaction_id"]
        assert second.data["credits_balance"] == 10

    def test_unknown_order(self, freelancer_client, stripe_adapter):
        response = freelancer_client.post(
            VERIFY_URL,
            {"order_id": "order_missing", "payment_intent_id": "pi_x"},
            format="json",
        )

        assert response.status_code == 404
        assert response.data["error_code"] == "ORDER_NOT_FOUND"

    def test_someone_elses_order(self, order, jwt_client, stripe_adapter):
        client = jwt_client(FreelancerFactory())

        response = client.post(
            VERIFY_URL,
            {"order_id": order.order_id, "payment_intent_id": order.gateway_reference},
            format="json",
        )

        assert response.status_code == 403
        assert response.data["error_code"] == "ORDER_OWNERSHIP_MISMATCH"

    def test_unpaid_intent(self, freelancer_client, order, stripe_adapter):
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(
            order, status="requires_payment_method"
        )

        response = freelancer_client.post(
            VERIFY_URL,
            {"order_id": order.order_id, "payment_intent_id": order.gateway_reference},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["error_code"] == "PAYMENT_NOT_CAPTURED"

    def test_missing_fields(self, freelancer_client, stripe_adapter):
        response = freelancer_client.post(VERIFY_URL, {}, format="json")

        assert response.status_code == 400


@pytest.mark.django_db
class TestHistory:
    def test_paginated_history(self, freelancer, freelancer_client, fund):
        for _ in range(3):
            fund(freelancer, 1)

        response = freelancer_client.get(HISTORY_URL, {"limit": 2})

        assert response.status_code == 200
        assert len(response.data["transactions"]) == 2
        assert response.data["pagination"] == {
            "total": 3,
            "page": 1,
            "limit": 2,
            "totalPages": 2,
        }
        row = response.data["transactions"][0]
        assert row["transaction_type"] == TransactionKind.PURCHASE
        assert row["amount"] == 1
        assert row["balance_after"] == 3

    def test_purchase_rows_carry_order_id(self, freelancer, freelancer_client):
        order = CreditOrderFactory(account=CreditAccountFactory(user=freelancer))
        PaymentCompletionService.complete_order(order.order_id)

        response = freelancer_client.get(HISTORY_URL)

        assert response.data["transactions"][0]["order_id"] == order.order_id

    def test_only_own_transactions(self, freelancer_client, fund):
        fund(FreelancerFactory(), 5)

        response = freelancer_client.get(HISTORY_URL)

        assert response.data["transactions"] == []
        assert response.data["pagination"]["total"] == 0

    def test_type_filter(self, freelancer, freelancer_client, fund, project):
        fund(freelancer, 3)
        ApplicationService.apply(freelancer, project)

        response = freelancer_client.get(HISTORY_URL, {"type": "usage"})

        assert [row["transaction_type"] for row in response.data["transactions"]] == ["usage"]

    def test_invalid_type(self, freelancer_client):
        response = freelancer_client.get(HISTORY_URL, {"type": "gift"})

        assert response.status_code == 400

    def test_inverted_date_range(self, freelancer_client):
        response = freelancer_client.get(
            HISTORY_URL, {"from": "2026-05-10", "to": "2026-05-01"}
        )

        assert response.status_code == 400


@pytest.mark.django_db
class TestRefunds:
    @pytest.fixture
    def withdrawn(self, freelancer, fund):
        fund(freelancer, 3)
        project = ProjectFactory(title="Brand film", credits_required=2)
        application = ApplicationService.apply(freelancer, project)
        ApplicationService.withdraw(application.pk, freelancer)
        return application

    def test_lists_refunds_with_application(self, freelancer_client, withdrawn):
        response = freelancer_client.get(REFUNDS_URL)

        assert response.status_code == 200
        [refund] = response.data["data"]
        assert refund["application_id"] == withdrawn.pk
        assert refund["project_title"] == "Brand film"
        assert refund["amount"] == 2
        assert refund["refund_reason"] == "withdrawal"

    def test_eligibility_of_refunded_application(self, freelancer_client, withdrawn):
        response = freelancer_client.get(eligibility_url(withdrawn.pk))

        assert response.status_code == 200
        assert response.data["application_id"] == withdrawn.pk
        assert response.data["eligible"] is False
        assert response.data["reason"] == "Application already refunded"

    def test_eligibility_of_rejected_application(self, freelancer, freelancer_client, fund):
        fund(freelancer, 2)
        application = ApplicationService.apply(freelancer, ProjectFactory(credits_required=2))
        application.status = ApplicationStatus.REJECTED
        application.save(update_fields=["status"])

        response = freelancer_client.get(eligibility_url(application.pk))

        assert response.data["eligible"] is True
        assert response.data["refund_amount"] == 2
        assert response.data["refund_percent"] == 100
        assert response.data["refund_reason"] == "application_rejected"

    def test_eligibility_of_someone_elses_application(self, jwt_client, withdrawn):
        client = jwt_client(FreelancerFactory())

        response = client.get(eligibility_url(withdrawn.pk))

        assert response.status_code == 404
        assert response.data["error_code"] == "APPLICATION_NOT_FOUND"

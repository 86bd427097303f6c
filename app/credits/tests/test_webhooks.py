"""
Tests for the Stripe webhook endpoint.

Signature verification is mocked on the installed adapter; the event
payloads mimic Stripe's PaymentIntent events.
"""

import json

import pytest

from credits.exceptions import PaymentVerificationError
from credits.ledger import ledger
from credits.models import CreditOrder
from credits.states import CreditOrderStatus
from credits.tests.factories import CreditAccountFactory, CreditOrderFactory

WEBHOOK_URL = "/api/v1/credits/webhooks/stripe/"


def intent_event(order, event_type="payment_intent.succeeded", **intent_overrides):
    intent = {
        "id": order.gateway_reference,
        "object": "payment_intent",
        "status": "succeeded",
        "amount": order.amount,
        "currency": order.currency.lower(),
        "metadata": {"type": "credit_purchase", "order_id": order.order_id},
    }
    intent.update(intent_overrides)
    return {"id": "evt_webhook_1", "type": event_type, "data": {"object": intent}}


@pytest.fixture
def order(freelancer):
    return CreditOrderFactory(account=CreditAccountFactory(user=freelancer), credits=10)


def post_event(client, event, signature="t=1,v1=abc"):
    headers = {"HTTP_STRIPE_SIGNATURE": signature} if signature else {}
    return client.post(
        WEBHOOK_URL,
        data=json.dumps(event),
        content_type="application/json",
        **headers,
    )


@pytest.mark.django_db
class TestStripeWebhook:
    def test_missing_signature(self, client, order, stripe_adapter):
        response = post_event(client, intent_event(order), signature=None)

        assert response.status_code == 400
        stripe_adapter.verify_webhook_signature.assert_not_called()

    def test_invalid_signature(self, client, order, stripe_adapter):
        stripe_adapter.verify_webhook_signature.side_effect = PaymentVerificationError(
            "Invalid webhook signature"
        )

        response = post_event(client, intent_event(order))

        assert response.status_code == 400
        assert CreditOrder.objects.get(pk=order.pk).status == CreditOrderStatus.INITIATED

    def test_event_without_type(self, client, order, stripe_adapter):
        stripe_adapter.verify_webhook_signature.return_value = {"id": "evt_1"}

        response = post_event(client, {"id": "evt_1"})

        assert response.status_code == 400

    def test_succeeded_event_completes_order(self, client, freelancer, order, stripe_adapter):
        event = intent_event(order)
        stripe_adapter.verify_webhook_signature.return_value = event

        response = post_event(client, event)

        assert response.status_code == 200
        assert response.content == b"completed"
        assert CreditOrder.objects.get(pk=order.pk).status == CreditOrderStatus.COMPLETED
        assert ledger.get_balance(freelancer).balance == 10

    def test_redelivery_is_a_duplicate(self, client, freelancer, order, stripe_adapter):
        event = intent_event(order)
        stripe_adapter.verify_webhook_signature.return_value = event

        post_event(client, event)
        response = post_event(client, event)

        assert response.status_code == 200
        assert response.content == b"duplicate"
        assert ledger.get_balance(freelancer).balance == 10

    def test_failed_event_fails_order(self, client, order, stripe_adapter):
        event = intent_event(
            order,
            event_type="payment_intent.payment_failed",
            status="requires_payment_method",
            last_payment_error={"message": "Card declined"},
        )
        stripe_adapter.verify_webhook_signature.return_value = event

        response = post_event(client, event)

        assert response.status_code == 200
        assert response.content == b"failed"
        failed = CreditOrder.objects.get(pk=order.pk)
        assert failed.status == CreditOrderStatus.FAILED
        assert failed.failure_reason == "Card declined"

    def test_unrelated_event_is_ignored(self, client, order, stripe_adapter):
        event = intent_event(order, metadata={"type": "subscription"})
        stripe_adapter.verify_webhook_signature.return_value = event

        response = post_event(client, event)

        assert response.status_code == 200
        assert response.content == b"ignored"

    def test_get_not_allowed(self, client):
        response = client.get(WEBHOOK_URL)

        assert response.status_code == 405

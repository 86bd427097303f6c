"""
Tests for PaymentCompletionService.

Covers:
1. Order completion credits the account exactly once
2. Failure handling and terminal-state conflicts
3. verify-payment checks against the PaymentIntent
4. Stripe webhook dispatch
"""

import pytest

from authentication.tests.factories import FreelancerFactory
from core.exceptions import PermissionDeniedError
from credits.exceptions import (
    InvalidStateTransitionError,
    OrderNotFound,
    PaymentGatewayError,
    PaymentVerificationError,
)
from credits.ledger import ledger
from credits.models import CreditOrder, CreditTransaction
from credits.services import PaymentCompletionService
from credits.states import CreditOrderStatus, ReferenceType, TransactionKind
from credits.tests.factories import CreditAccountFactory, CreditOrderFactory, make_intent


@pytest.fixture
def order(freelancer):
    return CreditOrderFactory(account=CreditAccountFactory(user=freelancer), credits=10)


def webhook_event(order, event_type="payment_intent.succeeded", **intent_overrides):
    intent = {
        "id": order.gateway_reference,
        "object": "payment_intent",
        "status": "succeeded",
        "amount": order.amount,
        "currency": order.currency.lower(),
        "metadata": {"type": "credit_purchase", "order_id": order.order_id},
    }
    intent.update(intent_overrides)
    return {"id": "evt_test_1", "type": event_type, "data": {"object": intent}}


@pytest.mark.django_db
class TestCompleteOrder:
    def test_completes_and_credits(self, freelancer, order):
        result = PaymentCompletionService.complete_order(order.order_id)

        assert not result.already_processed
        assert result.order.status == CreditOrderStatus.COMPLETED
        txn = result.transaction
        assert txn.kind == TransactionKind.PURCHASE
        assert txn.amount == 10
        assert txn.order_id == order.pk
        assert txn.reference_type == ReferenceType.ORDER
        assert txn.reference_id == order.order_id
        assert txn.metadata["payment_intent_id"] == order.gateway_reference
        assert ledger.get_balance(freelancer).balance == 10
        assert ledger.get_balance(freelancer).total_purchased == 10

    def test_second_completion_is_a_no_op(self, freelancer, order):
        first = PaymentCompletionService.complete_order(order.order_id)
        second = PaymentCompletionService.complete_order(order.order_id)

        assert second.already_processed
        assert second.transaction.pk == first.transaction.pk
        assert ledger.get_balance(freelancer).balance == 10
        assert CreditTransaction.objects.filter(kind=TransactionKind.PURCHASE).count() == 1

    def test_unknown_order(self, db):
        with pytest.raises(OrderNotFound):
            PaymentCompletionService.complete_order("order_missing")

    def test_other_users_order_is_rejected(self, order, client_user):
        with pytest.raises(PermissionDeniedError) as exc_info:
            PaymentCompletionService.complete_order(order.order_id, user=client_user)

        assert exc_info.value.error_code == "ORDER_OWNERSHIP_MISMATCH"

    def test_failed_order_cannot_complete(self, freelancer, order):
        PaymentCompletionService.fail_order(order.order_id, reason="Card declined")

        with pytest.raises(InvalidStateTransitionError):
            PaymentCompletionService.complete_order(order.order_id)

        assert ledger.get_balance(freelancer).balance == 0

    def test_captured_payment_credited_past_ceiling(self, freelancer, order, fund):
        fund(freelancer, 495)

        PaymentCompletionService.complete_order(order.order_id)

        assert ledger.get_balance(freelancer).balance == 505


@pytest.mark.django_db
class TestFailOrder:
    def test_marks_failed_without_ledger_effect(self, order):
        failed = PaymentCompletionService.fail_order(order.order_id, reason="Expired")

        assert failed.status == CreditOrderStatus.FAILED
        assert failed.failure_reason == "Expired"
        assert not CreditTransaction.objects.exists()

    def test_repeat_failure_is_a_no_op(self, order):
        PaymentCompletionService.fail_order(order.order_id, reason="first")
        again = PaymentCompletionService.fail_order(order.order_id, reason="second")

        assert again.failure_reason == "first"

    def test_completed_order_cannot_fail(self, order):
        PaymentCompletionService.complete_order(order.order_id)

        with pytest.raises(InvalidStateTransitionError):
            PaymentCompletionService.fail_order(order.order_id)


@pytest.mark.django_db
class TestVerifyPayment:
    def test_verified_payment_credits_account(self, freelancer, order, stripe_adapter):
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(order)

        result = PaymentCompletionService.verify_payment(
            freelancer, order.order_id, order.gateway_reference
        )

        assert not result.already_processed
        assert ledger.get_balance(freelancer).balance == 10
        stripe_adapter.retrieve_payment_intent.assert_called_once_with(
            order.gateway_reference
        )

    def test_already_completed_skips_stripe(self, freelancer, order, stripe_adapter):
        PaymentCompletionService.complete_order(order.order_id)

        result = PaymentCompletionService.verify_payment(
            freelancer, order.order_id, order.gateway_reference
        )

        assert result.already_processed
        stripe_adapter.retrieve_payment_intent.assert_not_called()
        assert ledger.get_balance(freelancer).balance == 10

    def test_unknown_order(self, freelancer, stripe_adapter):
        with pytest.raises(OrderNotFound):
            PaymentCompletionService.verify_payment(freelancer, "order_missing", "pi_x")

    def test_other_users_order(self, order, stripe_adapter):
        with pytest.raises(PermissionDeniedError):
            PaymentCompletionService.verify_payment(
                FreelancerFactory(), order.order_id, order.gateway_reference
            )

    def test_mismatched_payment_intent_id(self, freelancer, order, stripe_adapter):
        with pytest.raises(PaymentVerificationError):
            PaymentCompletionService.verify_payment(freelancer, order.order_id, "pi_other")

        stripe_adapter.retrieve_payment_intent.assert_not_called()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"metadata": {"type": "credit_purchase", "order_id": "order_other"}},
            {"amount_cents": 1},
            {"currency": "usd"},
        ],
    )
    def test_intent_for_different_payment(self, freelancer, order, stripe_adapter, overrides):
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(order, **overrides)

        with pytest.raises(PaymentVerificationError):
            PaymentCompletionService.verify_payment(
                freelancer, order.order_id, order.gateway_reference
            )

        assert ledger.get_balance(freelancer).balance == 0

    def test_unsettled_intent(self, freelancer, order, stripe_adapter):
        stripe_adapter.retrieve_payment_intent.return_value = make_intent(
            order, status="processing"
        )

        with pytest.raises(PaymentVerificationError) as exc_info:
            PaymentCompletionService.verify_payment(
                freelancer, order.order_id, order.gateway_reference
            )

        assert exc_info.value.error_code == "PAYMENT_NOT_CAPTURED"
        order = CreditOrder.objects.get(pk=order.pk)
        assert order.status == CreditOrderStatus.INITIATED

    def test_gateway_error_propagates(self, freelancer, order, stripe_adapter):
        stripe_adapter.retrieve_payment_intent.side_effect = PaymentGatewayError(
            "Payment gateway unavailable. Please retry.",
            error_code="GATEWAY_UNAVAILABLE",
        )

        with pytest.raises(PaymentGatewayError):
            PaymentCompletionService.verify_payment(
                freelancer, order.order_id, order.gateway_reference
            )


@pytest.mark.django_db
class TestHandleWebhookEvent:
    def test_succeeded_completes_order(self, freelancer, order):
        outcome = PaymentCompletionService.handle_webhook_event(webhook_event(order))

        assert outcome == "completed"
        assert ledger.get_balance(freelancer).balance == 10

    def test_redelivery_is_duplicate(self, freelancer, order):
        PaymentCompletionService.handle_webhook_event(webhook_event(order))
        outcome = PaymentCompletionService.handle_webhook_event(webhook_event(order))

        assert outcome == "duplicate"
        assert ledger.get_balance(freelancer).balance == 10

    def test_payment_failed_fails_order(self, order):
        event = webhook_event(
            order,
            event_type="payment_intent.payment_failed",
            status="requires_payment_method",
            last_payment_error={"message": "Your card was declined."},
        )

        outcome = PaymentCompletionService.handle_webhook_event(event)

        assert outcome == "failed"
        order = CreditOrder.objects.get(pk=order.pk)
        assert order.status == CreditOrderStatus.FAILED
        assert order.failure_reason == "Your card was declined."

    def test_late_failure_after_completion_is_ignored(self, freelancer, order):
        PaymentCompletionService.complete_order(order.order_id)

        outcome = PaymentCompletionService.handle_webhook_event(
            webhook_event(order, event_type="payment_intent.payment_failed")
        )

        assert outcome == "ignored"
        assert ledger.get_balance(freelancer).balance == 10

    def test_non_credit_intent_is_ignored(self, order):
        event = webhook_event(order, metadata={"type": "subscription"})

        assert PaymentCompletionService.handle_webhook_event(event) == "ignored"
        order = CreditOrder.objects.get(pk=order.pk)
        assert order.status == CreditOrderStatus.INITIATED

    def test_unknown_order_is_ignored(self, db):
        event = {
            "id": "evt_test_2",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": "pi_unknown",
                    "amount": 1000,
                    "currency": "inr",
                    "status": "succeeded",
                    "metadata": {"type": "credit_purchase", "order_id": "order_missing"},
                }
            },
        }

        assert PaymentCompletionService.handle_webhook_event(event) == "ignored"

    def test_amount_mismatch_is_ignored(self, freelancer, order):
        outcome = PaymentCompletionService.handle_webhook_event(
            webhook_event(order, amount=1)
        )

        assert outcome == "ignored"
        assert ledger.get_balance(freelancer).balance == 0

    def test_unhandled_event_type(self, order):
        event = webhook_event(order, event_type="payment_intent.created")

        assert PaymentCompletionService.handle_webhook_event(event) == "ignored"

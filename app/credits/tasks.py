"""
Celery tasks for the credits app.

Tasks:
- expire_stale_orders: Periodic task cancelling the PaymentIntents of
  initiated orders that were never paid, and failing those orders

Usage:
    # Typically called via celery-beat (see migration 0002)
    from credits.tasks import expire_stale_orders

    expire_stale_orders.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from credits.conf import credit_settings
from credits.models import CreditOrder
from credits.services import PaymentCompletionService
from credits.states import CreditOrderStatus

logger = logging.getLogger(__name__)

# Maximum orders expired per run
BATCH_SIZE = 500


@shared_task(bind=True, acks_late=True)
def expire_stale_orders(self) -> dict:
    """
    Expire initiated orders older than CREDITS_ORDER_EXPIRY_HOURS.

    Each order's PaymentIntent is cancelled at Stripe before the order is
    failed, so a stale client_secret cannot take a payment afterwards.
    Orders whose intent turns out to have succeeded are completed.

    Idempotent: orders completed or failed in the meantime are skipped.

    Returns:
        Dict with expired_count, completed_count and skipped_count
    """
    cutoff = timezone.now() - timedelta(hours=credit_settings().order_expiry_hours)
    order_ids = list(
        CreditOrder.objects.filter(
            status=CreditOrderStatus.INITIATED,
            created_at__lt=cutoff,
        )
        .order_by("created_at")
        .values_list("order_id", flat=True)[:BATCH_SIZE]
    )

    counts = {"expired": 0, "completed": 0, "skipped": 0}
    for order_id in order_ids:
        outcome = PaymentCompletionService.expire_order(order_id)
        counts[outcome] += 1

    logger.info(
        "Expired stale credit orders",
        extra={
            "expired_count": counts["expired"],
            "completed_count": counts["completed"],
            "skipped_count": counts["skipped"],
            "cutoff": cutoff.isoformat(),
        },
    )
    return {
        "expired_count": counts["expired"],
        "completed_count": counts["completed"],
        "skipped_count": counts["skipped"],
    }

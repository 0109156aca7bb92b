"""
Celery tasks for payment processing.

This module provides async tasks for:
- Reprocessing a stored Stripe webhook event
- Retrying failed webhook events (celery-beat)
- Re-queueing events left PENDING after a crash (celery-beat)
- Expiring unpaid PIX charges (celery-beat)

Usage:
    from payments.tasks import process_webhook_event

    process_webhook_event.delay(str(webhook_event.id))
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from payments.models import WebhookEvent
from payments.services import PixChargeService
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import process_webhook_event as run_webhook_event

logger = logging.getLogger(__name__)


STALE_PENDING_THRESHOLD_MINUTES = 30
RETRY_BATCH_SIZE = 100


# =============================================================================
# Webhook Processing Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 3},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a stored Stripe webhook event.

    Handler failures are recorded on the event (FAILED, retry_count) and
    picked up again by retry_failed_webhook_events; only database errors
    retry the task itself.

    Returns:
        Dict with processing result status
    """
    result = run_webhook_event(webhook_event_id)
    if result:
        return {"status": "processed", "webhook_event_id": str(webhook_event_id)}
    return {
        "status": "failed",
        "webhook_event_id": str(webhook_event_id),
        "error": result.error,
        "error_code": result.error_code,
    }


@shared_task
def retry_failed_webhook_events() -> dict:
    """
    Periodic task to retry failed webhook events.

    Finds failed events below STRIPE_WEBHOOK_MAX_RETRIES and re-queues
    them for processing.

    Returns:
        Dict with count of webhooks queued for retry
    """
    failed_ids = list(
        WebhookEvent.objects.filter(
            status=WebhookEventStatus.FAILED,
            retry_count__lt=settings.STRIPE_WEBHOOK_MAX_RETRIES,
        )
        .order_by("created_at")
        .values_list("pk", flat=True)[:RETRY_BATCH_SIZE]
    )

    for webhook_event_id in failed_ids:
        process_webhook_event.delay(str(webhook_event_id))

    if failed_ids:
        logger.info(
            f"Queued {len(failed_ids)} failed webhooks for retry",
            extra={"queued_count": len(failed_ids)},
        )
    return {"queued_count": len(failed_ids)}


@shared_task
def requeue_pending_webhook_events() -> dict:
    """
    Periodic task to pick up webhook events that were never processed.

    Processing commits the final status in one transaction, so a crash
    mid-run leaves the event PENDING. Events still PENDING after the
    threshold are queued for processing.

    Returns:
        Dict with count of webhooks queued
    """
    threshold = timezone.now() - timedelta(minutes=STALE_PENDING_THRESHOLD_MINUTES)
    pending_ids = list(
        WebhookEvent.objects.filter(
            status=WebhookEventStatus.PENDING,
            updated_at__lt=threshold,
        )
        .order_by("created_at")
        .values_list("pk", flat=True)[:RETRY_BATCH_SIZE]
    )

    for webhook_event_id in pending_ids:
        process_webhook_event.delay(str(webhook_event_id))

    if pending_ids:
        logger.warning(
            f"Queued {len(pending_ids)} stale pending webhooks",
            extra={"queued_count": len(pending_ids)},
        )
    return {"queued_count": len(pending_ids)}


# =============================================================================
# PIX Tasks
# =============================================================================


@shared_task
def expire_stale_pix_charges() -> dict:
    """Periodic task expiring unpaid PIX charges and failing their purchases."""
    expired_count = PixChargeService.expire_stale_charges()
    return {"expired_count": expired_count}

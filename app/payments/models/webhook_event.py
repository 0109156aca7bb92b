"""
WebhookEvent model: ledger of Stripe events received.

Every Stripe event is stored once, keyed by its event id. The unique
constraint turns redeliveries into no-ops, the stored payload lets the
retry task reprocess failures, and the table doubles as an audit log.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id="evt_1234567890",
        defaults={"event_type": "checkout.session.completed", "payload": data},
    )
    if not created and event.is_processed:
        return HttpResponse(status=200)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import WebhookEventStatus

if TYPE_CHECKING:
    from typing import Any


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    A Stripe event and its processing outcome.

    Processing Flow:
        1. Verify the Stripe signature
        2. get_or_create by stripe_event_id
        3. Already PROCESSED -> acknowledge without reprocessing
        4. mark_processing(), dispatch to the registered handler
        5. mark_processed() or mark_failed(); failed events are picked up
           by the retry task until retry_count reaches the limit

    Fields:
        stripe_event_id: Stripe event id (evt_xxx), unique
        event_type: e.g. "checkout.session.completed"
        payload: Full event as received
        status: Processing status
        processed_at: When processing succeeded
        error_message: Last failure reason
        retry_count: Processing attempts so far
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type",
    )

    payload = models.JSONField(
        help_text="Full event payload from Stripe",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )

    processed_at = models.DateTimeField(null=True, blank=True)

    error_message = models.TextField(null=True, blank=True)

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "retry_count"], name="payments_we_status_5c2e7a_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def can_retry(self) -> bool:
        """Failed and still under the STRIPE_WEBHOOK_MAX_RETRIES limit."""
        return (
            self.status == WebhookEventStatus.FAILED
            and self.retry_count < settings.STRIPE_WEBHOOK_MAX_RETRIES
        )

    @property
    def data_object(self) -> dict[str, Any]:
        """The event's data.object, or an empty dict for malformed payloads."""
        try:
            return self.payload.get("data", {}).get("object", {}) or {}
        except AttributeError:
            return {}

    def mark_processing(self) -> None:
        """
        Mark event as being processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        """
        Mark event as successfully processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        """
        Mark event as failed with error message.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

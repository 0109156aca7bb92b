"""
Webhook endpoint views for Stripe and the PIX gateway.

stripe_webhook:
1. Verifies the webhook signature
2. Creates/retrieves the WebhookEvent record (idempotent)
3. Processes the event in the request, so Stripe sees a 500 and
   redelivers when a handler fails

pix_webhook:
1. Parses the {"pix": [...]} batch
2. Records each notification once (PixWebhookService)
3. Answers 500 on storage failures so the gateway redelivers

Usage:
    # In urls.py
    from payments.webhooks.views import pix_webhook, stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe-webhook"),
        path("pix/webhook/", pix_webhook, name="pix-webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.db import DatabaseError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.adapters import StripeAdapter
from payments.exceptions import StripeInvalidRequestError
from payments.models import WebhookEvent
from payments.services import PixWebhookService
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import process_webhook_event

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and process Stripe webhook events.

    Idempotency:
    - WebhookEvent.stripe_event_id is unique
    - Events already PROCESSED return 200 without reprocessing
    - Failed events are processed again on redelivery

    Returns:
        HttpResponse with status:
        - 200: Event processed (new or duplicate)
        - 400: Invalid signature or payload
        - 500: Handler failed; Stripe will retry

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return HttpResponse("Missing signature", status=400)

    try:
        event_data = StripeAdapter.verify_webhook_signature(payload, signature)
    except StripeInvalidRequestError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": str(e)},
        )
        return HttpResponse("Invalid signature", status=400)

    stripe_event_id = event_data.get("id")
    event_type = event_data.get("type")

    if not stripe_event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    logger.info(
        f"Received Stripe webhook: {event_type}",
        extra={
            "stripe_event_id": stripe_event_id,
            "event_type": event_type,
        },
    )

    webhook_event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id=stripe_event_id,
        defaults={
            "event_type": event_type,
            "payload": event_data,
            "status": WebhookEventStatus.PENDING,
        },
    )

    if not created and webhook_event.is_processed:
        logger.info(
            "Webhook already processed, returning success",
            extra={"stripe_event_id": stripe_event_id},
        )
        return HttpResponse("Already processed", status=200)

    result = process_webhook_event(webhook_event.pk)
    if not result:
        return HttpResponse("Processing failed", status=500)
    return HttpResponse("Processed", status=200)


@csrf_exempt
@require_POST
def pix_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive PIX gateway payment notifications.

    Body: {"pix": [{"txid", "valor", "endToEndId", "horario"}, ...]}

    A missing or empty "pix" array is acknowledged with 200 (gateways send
    one when the webhook URL is registered). A malformed body is logged and
    acknowledged the same way so the gateway does not keep redelivering it.
    Every entry is processed; invalid entries are counted as ignored.

    Returns:
        JsonResponse with status:
        - 200: {"status": "ok", "received", "recorded", "duplicates", "ignored"}
        - 500: Payments could not be stored; the gateway will retry
    """
    entries = _pix_entries(request.body)

    try:
        summary = PixWebhookService.ingest(entries)
    except DatabaseError:
        logger.exception(
            "PIX webhook could not be stored",
            extra={"received": len(entries)},
        )
        return JsonResponse({"error": "Failed to record payments"}, status=500)

    return JsonResponse({"status": "ok", **summary}, status=200)


def _pix_entries(raw_body: bytes) -> list:
    """Extract the "pix" array from a webhook body; malformed bodies yield []."""
    try:
        body = json.loads(raw_body or b"{}")
    except (ValueError, UnicodeDecodeError):
        logger.warning("PIX webhook with invalid JSON body, acknowledged")
        return []

    if not isinstance(body, dict):
        logger.warning(
            "PIX webhook body is not an object, acknowledged",
            extra={"body_type": type(body).__name__},
        )
        return []

    entries = body.get("pix") or []
    if not isinstance(entries, list):
        logger.warning(
            "PIX webhook with non-list pix field, acknowledged",
            extra={"pix_type": type(entries).__name__},
        )
        return []
    return entries

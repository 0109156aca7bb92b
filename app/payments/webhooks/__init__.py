"""
Webhook handling for payment events from Stripe and the PIX gateway.

Stripe events are verified, stored idempotently in WebhookEvent and
processed in the request; failed events are retried by Celery. PIX
notifications are recorded once per txid.

Usage:
    # In urls.py
    from payments.webhooks.views import pix_webhook, stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe-webhook"),
    ]
"""

from payments.webhooks.handlers import (
    dispatch_webhook,
    process_webhook_event,
    register_handler,
)
from payments.webhooks.views import pix_webhook, stripe_webhook

__all__ = [
    "dispatch_webhook",
    "pix_webhook",
    "process_webhook_event",
    "register_handler",
    "stripe_webhook",
]

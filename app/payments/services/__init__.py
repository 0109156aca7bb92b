"""
Payment services for coordinating payment operations.

This module provides:
- CheckoutService: Stripe customer provisioning and checkout sessions
- PixChargeService: PIX charge issuance, status lookup and expiry
- PixWebhookService: Exactly-once recording of PIX gateway notifications
- PurchaseService: Purchase benefits and the carousel submission lifecycle
- SubscriptionService: Mirrors Stripe subscription state onto users

Usage:
    from payments.services import PixWebhookService

    summary = PixWebhookService.ingest(body.get("pix") or [])

    from payments.services import CheckoutService

    url = CheckoutService.create_checkout_session(
        user=request.user,
        price_id=price_id,
        mode="payment",
        product_id=product_id,
    )
"""

from payments.services.checkout_service import CheckoutService
from payments.services.pix_service import PixChargeService, PixWebhookService
from payments.services.purchase_service import PurchaseService, run_transition
from payments.services.subscription_service import (
    SubscriptionService,
    UnknownSubscriptionStatusError,
)

__all__ = [
    "CheckoutService",
    "PixChargeService",
    "PixWebhookService",
    "PurchaseService",
    "SubscriptionService",
    "UnknownSubscriptionStatusError",
    "run_transition",
]

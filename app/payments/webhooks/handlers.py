"""
Webhook event handlers for Stripe events.

This module provides a handler registry, the handlers for the events this
marketplace subscribes to, and process_webhook_event, which runs one
stored WebhookEvent through its handler exactly once.

The handler registry allows:
- Clean separation between event routing and handling
- Easy extension for new event types
- Centralized error handling

Usage:
    from payments.webhooks.handlers import process_webhook_event, register_handler

    @register_handler("custom.event")
    def handle_custom_event(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    result = process_webhook_event(webhook_event.id)
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable

from django.db import transaction

from authentication.models import User
from core.services import ServiceResult
from marketplace.models import Product

from payments.adapters import StripeAdapter, subscription_result_from_dict
from payments.models import Purchase, WebhookEvent
from payments.services import PurchaseService, SubscriptionService, run_transition
from payments.state_machines import PRODUCT_PURCHASE_TYPES, PaymentMethod, PurchaseType

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler("checkout.session.completed")
        def handle_checkout_completed(webhook_event: WebhookEvent) -> ServiceResult:
            ...

    Args:
        event_type: The Stripe event type

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Unknown event types succeed without doing anything, so Stripe stops
    redelivering events this endpoint does not care about.
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )

    return handler(webhook_event)


def process_webhook_event(webhook_event_id) -> ServiceResult:
    """
    Run a stored WebhookEvent through its handler once.

    The event row is locked for the whole run, so a redelivery or a retry
    task arriving meanwhile waits and then sees PROCESSED. Handler writes
    sit in a savepoint: a failing handler leaves no partial state, while
    the FAILED status and error message are still committed.

    Returns:
        ServiceResult; success for handled and already-processed events
    """
    with transaction.atomic():
        webhook_event = (
            WebhookEvent.objects.select_for_update().filter(pk=webhook_event_id).first()
        )
        if webhook_event is None:
            logger.error(
                "WebhookEvent not found",
                extra={"webhook_event_id": str(webhook_event_id)},
            )
            return ServiceResult.failure(
                "Webhook event not found",
                error_code="WEBHOOK_EVENT_NOT_FOUND",
            )

        if webhook_event.is_processed:
            logger.info(
                "WebhookEvent already processed, skipping",
                extra={"stripe_event_id": webhook_event.stripe_event_id},
            )
            return ServiceResult.success(webhook_event)

        webhook_event.mark_processing()
        webhook_event.save(update_fields=["status", "retry_count", "updated_at"])

        try:
            with transaction.atomic():
                result = dispatch_webhook(webhook_event)
                if not result:
                    transaction.set_rollback(True)
        except Exception as e:
            logger.exception(
                "Webhook handler raised",
                extra={
                    "stripe_event_id": webhook_event.stripe_event_id,
                    "event_type": webhook_event.event_type,
                },
            )
            result = ServiceResult.failure(
                f"{type(e).__name__}: {e}",
                error_code="WEBHOOK_HANDLER_EXCEPTION",
            )

        if result:
            webhook_event.mark_processed()
        else:
            webhook_event.mark_failed(result.error or "Handler returned failure")
        webhook_event.save(
            update_fields=["status", "processed_at", "error_message", "updated_at"]
        )

    logger.info(
        f"Webhook {webhook_event.status}",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "event_type": webhook_event.event_type,
            "retry_count": webhook_event.retry_count,
            "error_code": result.error_code,
        },
    )
    return result


# =============================================================================
# Checkout Handler
# =============================================================================


@register_handler("checkout.session.completed")
def handle_checkout_session_completed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Settle a completed hosted checkout.

    payment mode: records the Purchase for the session (one per session id),
    marks it PAID and applies its benefit.
    subscription mode: copies the new subscription onto the user.
    """
    session = webhook_event.data_object
    session_id = session.get("id")
    metadata = session.get("metadata") or {}
    user_id = metadata.get("userId")

    if not session_id or not user_id:
        logger.error(
            "checkout.session.completed: missing session id or userId metadata",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.failure(
            "Checkout session without id or userId metadata",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    mode = session.get("mode")
    if mode == "subscription":
        subscription_id = session.get("subscription")
        if not subscription_id:
            return ServiceResult.failure(
                "Subscription checkout without subscription id",
                error_code="INVALID_WEBHOOK_PAYLOAD",
            )
        subscription = StripeAdapter.retrieve_subscription(subscription_id)
        user = SubscriptionService.sync_from_checkout(user_id, subscription)
        return ServiceResult.success(user)

    if mode != "payment":
        logger.info(
            f"Ignoring checkout session in mode {mode}",
            extra={"session_id": session_id},
        )
        return ServiceResult.success(None)

    if session.get("payment_status") not in ("paid", "no_payment_required"):
        logger.info(
            "Checkout completed but not paid yet",
            extra={"session_id": session_id, "payment_status": session.get("payment_status")},
        )
        return ServiceResult.success(None)

    purchase_type = metadata.get("purchaseType")
    if purchase_type not in PurchaseType.values:
        return ServiceResult.failure(
            f"Unknown purchaseType in checkout metadata: {purchase_type}",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    owner = User.objects.filter(pk=user_id).first()
    if owner is None:
        return ServiceResult.failure(
            f"User from checkout metadata not found: {user_id}",
            error_code="USER_NOT_FOUND",
        )

    product = None
    product_id = metadata.get("productId")
    if product_id and purchase_type in PRODUCT_PURCHASE_TYPES:
        product = Product.objects.filter(pk=product_id, seller=owner).first()
        if product is None:
            # Paid anyway: record the purchase without a benefit target
            logger.warning(
                "Checkout product is not owned by the purchaser",
                extra={"session_id": session_id, "product_id": product_id},
            )

    amount_total = session.get("amount_total")
    purchase, created = Purchase.objects.select_for_update().get_or_create(
        stripe_checkout_session_id=session_id,
        defaults={
            "owner": owner,
            "product": product,
            "type": purchase_type,
            "amount": Decimal(amount_total) / 100 if amount_total is not None else None,
            "payment_method": PaymentMethod.STRIPE,
        },
    )
    if not created and purchase.is_paid:
        logger.info(
            "Purchase for checkout session already recorded",
            extra={"session_id": session_id, "purchase_id": str(purchase.pk)},
        )
        return ServiceResult.success(purchase)

    run_transition(purchase, "mark_paid")
    PurchaseService.apply_benefit(purchase)

    logger.info(
        "Stripe purchase recorded",
        extra={
            "session_id": session_id,
            "purchase_id": str(purchase.pk),
            "purchase_type": purchase_type,
        },
    )
    return ServiceResult.success(purchase)


# =============================================================================
# Subscription Handlers
# =============================================================================


def _invoice_subscription_id(invoice: dict) -> str | None:
    """Subscription id of an invoice across API versions."""
    subscription_id = invoice.get("subscription")
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    if subscription_id:
        return subscription_id
    parent = invoice.get("parent") or {}
    return (parent.get("subscription_details") or {}).get("subscription")


@register_handler("invoice.payment_succeeded")
def handle_invoice_payment_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    """Refresh price and period end of a renewed subscription."""
    subscription_id = _invoice_subscription_id(webhook_event.data_object)
    if not subscription_id:
        logger.info(
            "Invoice is not tied to a subscription",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    subscription = StripeAdapter.retrieve_subscription(subscription_id)
    updated = SubscriptionService.record_renewal(subscription)
    return ServiceResult.success(updated)


@register_handler("customer.subscription.updated")
@register_handler("customer.subscription.deleted")
def handle_subscription_changed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Mirror a subscription status change.

    The event already carries the subscription, so Stripe is not queried.
    An unknown Stripe status raises and fails the event.
    """
    data_object = webhook_event.data_object
    if not data_object.get("id"):
        return ServiceResult.failure(
            "Subscription event without subscription id",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    subscription = subscription_result_from_dict(data_object)
    updated = SubscriptionService.apply_status_change(subscription)
    return ServiceResult.success(updated)

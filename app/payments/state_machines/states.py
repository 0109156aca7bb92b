"""
State enums for payment models.

This module defines all state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Purchase payment status:
    PENDING -> PAID
    PENDING -> FAILED (charge expired or gateway rejected)

Purchase submission status (promotional entitlement):
    AVAILABLE -> PENDING_APPROVAL -> USED

PixCharge:
    PENDING -> CONFIRMED (webhook recorded a PixPayment with the same txid)
    PENDING -> EXPIRED (not paid before expires_at)

PixPayment:
    COMPLETED (set at creation, never changes)

WebhookEvent:
    PENDING -> PROCESSING -> PROCESSED
    PENDING -> PROCESSING -> FAILED (can retry)
"""

from django.db import models


class PurchaseType(models.TextChoices):
    """
    What a purchase buys.

    ACHADINHO_TURBO: Boost a product for a period
    CARROSSEL_PRACA: Carousel placement, consumed on admin approval
    PLANO: Catalog plan paid through PIX
    """

    ACHADINHO_TURBO = "ACHADINHO_TURBO", "Achadinho Turbo"
    CARROSSEL_PRACA = "CARROSSEL_PRACA", "Carrossel Praça"
    PLANO = "PLANO", "Plano"


# Purchase types that promote a specific product
PRODUCT_PURCHASE_TYPES = (PurchaseType.ACHADINHO_TURBO, PurchaseType.CARROSSEL_PRACA)


class PurchaseStatus(models.TextChoices):
    """
    Payment status of a Purchase.

    Terminal states: PAID, FAILED
    """

    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"


class SubmissionStatus(models.TextChoices):
    """
    Consumption status of a purchased entitlement.

    State Flow:
        AVAILABLE -> PENDING_APPROVAL -> USED
    """

    AVAILABLE = "AVAILABLE", "Available"
    PENDING_APPROVAL = "PENDING_APPROVAL", "Pending approval"
    USED = "USED", "Used"


class PaymentMethod(models.TextChoices):
    PIX = "PIX", "PIX"
    STRIPE = "STRIPE", "Stripe"


class PixChargeStatus(models.TextChoices):
    """
    Lifecycle of a charge issued at the PIX gateway.

    Terminal states: CONFIRMED, EXPIRED
    """

    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    EXPIRED = "EXPIRED", "Expired"


class PixPaymentStatus(models.TextChoices):
    """
    Status of a recorded PIX payment.

    Only COMPLETED exists: PixPayment rows are an append-only record of
    settled payments reported by the gateway.
    """

    COMPLETED = "COMPLETED", "Completed"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    Tracks the lifecycle of webhook event processing for idempotency.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


__all__ = [
    "PRODUCT_PURCHASE_TYPES",
    "PaymentMethod",
    "PixChargeStatus",
    "PixPaymentStatus",
    "PurchaseStatus",
    "PurchaseType",
    "SubmissionStatus",
    "WebhookEventStatus",
]

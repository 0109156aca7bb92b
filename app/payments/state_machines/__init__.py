"""
State machine enums for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    PRODUCT_PURCHASE_TYPES,
    PaymentMethod,
    PixChargeStatus,
    PixPaymentStatus,
    PurchaseStatus,
    PurchaseType,
    SubmissionStatus,
    WebhookEventStatus,
)

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

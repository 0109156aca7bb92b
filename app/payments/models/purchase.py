"""
Purchase model for paid promotional entitlements.

A Purchase records that a seller paid (or is paying) for a promotion:
boosting a product, a carousel slot, or a plan. Two independent state
machines live on it:

    status (payment):            PENDING -> PAID | FAILED
    submission_status (usage):   AVAILABLE -> PENDING_APPROVAL -> USED

Usage:
    from payments.models import Purchase
    from payments.state_machines import PurchaseType, PaymentMethod

    purchase = Purchase.objects.create(
        owner=seller,
        type=PurchaseType.CARROSSEL_PRACA,
        product=product,
        amount=Decimal("19.90"),
        payment_method=PaymentMethod.PIX,
    )

    purchase.mark_paid()
    purchase.save()

Concurrency:
    ConcurrentTransitionMixin makes save() conditional on both FSM fields
    still holding the values the instance was loaded with. A stale
    instance raises django_fsm.ConcurrentTransition instead of silently
    overwriting a transition made by another request.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import (
    PaymentMethod,
    PurchaseStatus,
    PurchaseType,
    SubmissionStatus,
)


class Purchase(UUIDPrimaryKeyMixin, ConcurrentTransitionMixin, BaseModel):
    """
    A paid promotional entitlement owned by a seller.

    Fields:
        owner: Seller who bought the entitlement
        type: What was bought
        product: Promoted product (required for product promotions)
        amount: Amount charged in BRL
        payment_method: PIX or Stripe
        status: Payment state (FSM)
        submission_status: Consumption state (FSM)
        stripe_checkout_session_id: Stripe session that paid it (unique)
        paid_at / used_at: Transition timestamps
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="purchases",
        help_text="Seller who bought the entitlement",
    )

    product = models.ForeignKey(
        "marketplace.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases",
        help_text="Product the entitlement applies to",
    )

    # ==========================================================================
    # Purchase Details
    # ==========================================================================

    type = models.CharField(
        max_length=32,
        choices=PurchaseType.choices,
        db_index=True,
        help_text="Entitlement bought",
    )

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Amount charged in BRL",
    )

    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        help_text="How the purchase was paid",
    )

    stripe_checkout_session_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Stripe Checkout Session ID (cs_xxx) - unique for idempotency",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PurchaseStatus.PENDING,
        choices=PurchaseStatus.choices,
        db_index=True,
        help_text="Payment status (managed by FSM)",
    )

    submission_status = FSMField(
        default=SubmissionStatus.AVAILABLE,
        choices=SubmissionStatus.choices,
        db_index=True,
        help_text="Entitlement consumption status (managed by FSM)",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["owner", "type", "submission_status"],
                name="payments_pu_owner_i_3b8f1c_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Purchase({self.type}, {self.status}/{self.submission_status})"

    @property
    def is_paid(self) -> bool:
        return self.status == PurchaseStatus.PAID

    # ==========================================================================
    # Payment Transitions
    # ==========================================================================

    @transition(
        field=status,
        source=PurchaseStatus.PENDING,
        target=PurchaseStatus.PAID,
    )
    def mark_paid(self):
        """Payment confirmed by the gateway or by Stripe."""
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=PurchaseStatus.PENDING,
        target=PurchaseStatus.FAILED,
    )
    def mark_failed(self):
        """Charge expired or was never completed."""

    # ==========================================================================
    # Submission Transitions
    # ==========================================================================

    def _can_request_carousel(self) -> bool:
        return self.is_paid and self.type == PurchaseType.CARROSSEL_PRACA

    @transition(
        field=submission_status,
        source=SubmissionStatus.AVAILABLE,
        target=SubmissionStatus.PENDING_APPROVAL,
        conditions=[_can_request_carousel],
    )
    def request_carousel(self):
        """
        Seller asked for the carousel slot.

        Transition: AVAILABLE -> PENDING_APPROVAL
        Only paid CARROSSEL_PRACA purchases qualify.
        """

    @transition(
        field=submission_status,
        source=SubmissionStatus.PENDING_APPROVAL,
        target=SubmissionStatus.USED,
    )
    def consume(self):
        """
        Admin approved the request; the entitlement is spent.

        Transition: PENDING_APPROVAL -> USED
        """
        self.used_at = timezone.now()

"""
PIX models: charges we issue and payments the gateway reports.

- PixCharge: an immediate charge ("cob") created at the gateway for a
  Purchase. Reconciled when the webhook reports a payment for its txid.
- PixPayment: one row per settled PIX payment reported by the gateway
  webhook. Unique per txid and never modified after insert, so it doubles
  as the idempotency ledger for webhook redeliveries.

Usage:
    from payments.models import PixPayment

    if not PixPayment.objects.filter(txid=txid).exists():
        PixPayment.objects.create(
            txid=txid,
            amount=Decimal("19.90"),
            end_to_end_id="E1234...",
            paid_at=horario,
            raw_payload=entry,
        )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.exceptions import ConflictError
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import PixChargeStatus, PixPaymentStatus


class PixCharge(UUIDPrimaryKeyMixin, ConcurrentTransitionMixin, BaseModel):
    """
    Immediate PIX charge issued at the gateway.

    Fields:
        txid: Transaction id we generated and registered at the gateway
        purchase: Purchase paid by this charge
        amount: Charged amount in BRL
        status: Charge state (FSM)
        location_id: Gateway location id used to fetch the QR code
        qr_code: Copy-and-paste PIX payload
        expires_at: After this the charge can no longer be paid
        confirmed_at: When the webhook confirmed payment
    """

    txid = models.CharField(
        max_length=35,
        unique=True,
        help_text="PIX transaction id (26-35 alphanumeric characters)",
    )

    purchase = models.OneToOneField(
        "payments.Purchase",
        on_delete=models.CASCADE,
        related_name="pix_charge",
        help_text="Purchase paid by this charge",
    )

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Charged amount in BRL",
    )

    status = FSMField(
        default=PixChargeStatus.PENDING,
        choices=PixChargeStatus.choices,
        db_index=True,
        help_text="Charge status (managed by FSM)",
    )

    location_id = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Gateway location id (loc.id)",
    )

    qr_code = models.TextField(
        blank=True,
        help_text="PIX copy-and-paste payload",
    )

    expires_at = models.DateTimeField(
        db_index=True,
        help_text="Charge expiration",
    )

    confirmed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "PIX Charge"
        verbose_name_plural = "PIX Charges"

    def __str__(self) -> str:
        return f"PixCharge({self.txid}, {self.status})"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()

    @transition(
        field=status,
        source=PixChargeStatus.PENDING,
        target=PixChargeStatus.CONFIRMED,
    )
    def confirm(self):
        """Gateway reported payment for this txid."""
        self.confirmed_at = timezone.now()

    @transition(
        field=status,
        source=PixChargeStatus.PENDING,
        target=PixChargeStatus.EXPIRED,
    )
    def expire(self):
        """Charge passed expires_at without payment."""


class PixPayment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Settled PIX payment reported by the gateway webhook.

    Append-only: exactly one row per txid, created on first sight of the
    txid and never updated afterwards. Status is COMPLETED from creation.

    Fields:
        txid: Gateway transaction id (unique)
        amount: Amount paid ("valor")
        end_to_end_id: Central bank end-to-end id ("endToEndId")
        paid_at: Gateway payment timestamp ("horario")
        status: Always COMPLETED
        raw_payload: The webhook entry as received
    """

    txid = models.CharField(
        max_length=64,
        unique=True,
        help_text="PIX transaction id - unique constraint for idempotency",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount paid in BRL",
    )

    end_to_end_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="End-to-end id assigned by the central bank",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Payment timestamp reported by the gateway",
    )

    status = models.CharField(
        max_length=20,
        choices=PixPaymentStatus.choices,
        default=PixPaymentStatus.COMPLETED,
        editable=False,
    )

    raw_payload = models.JSONField(
        default=dict,
        help_text="Webhook entry as received",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "PIX Payment"
        verbose_name_plural = "PIX Payments"

    def __str__(self) -> str:
        return f"PixPayment({self.txid}, {self.amount})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ConflictError(
                "PIX payments are immutable once recorded",
                error_code="PIX_PAYMENT_IMMUTABLE",
                details={"txid": self.txid},
            )
        super().save(*args, **kwargs)

"""
Admin notification models.

- AdminNotification: an item in the admin inbox. Carousel requests are the
  actionable kind: confirming one consumes the seller's purchase and marks
  the notification read in the same transaction.

Usage:
    from notifications.models import AdminNotification, AdminNotificationType

    AdminNotification.objects.create(
        type=AdminNotificationType.CAROUSEL_REQUEST,
        message="Loja da Ana requested a carousel slot",
        seller=seller,
        purchase=purchase,
        metadata={"productId": str(product.id), "productName": product.name},
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class AdminNotificationType(models.TextChoices):
    """Kinds of admin inbox items."""

    CAROUSEL_REQUEST = "CAROUSEL_REQUEST", "Carousel request"


class AdminNotification(UUIDPrimaryKeyMixin, BaseModel):
    """
    Notification shown to marketplace administrators.

    Fields:
        type: Kind of notification
        message: Human-readable summary
        seller: Seller the notification is about
        purchase: Purchase to consume when the request is confirmed
        metadata: Snapshot of product data at request time
            (productId, productName, productImage, productPrice, purchaseId)
        is_read / read_at: Inbox state
    """

    type = models.CharField(
        max_length=32,
        choices=AdminNotificationType.choices,
        db_index=True,
    )
    message = models.TextField()
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="admin_notifications",
    )
    purchase = models.ForeignKey(
        "payments.Purchase",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="admin_notifications",
    )
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Admin Notification"
        verbose_name_plural = "Admin Notifications"

    def __str__(self) -> str:
        return f"AdminNotification({self.type}, read={self.is_read})"

    def mark_read(self) -> None:
        """
        Mark the notification as read.

        Note: Does not save - caller must save after calling.
        """
        self.is_read = True
        self.read_at = timezone.now()

"""
Marketplace models.

- Product: a seller's listing, its stock and the paid highlight windows
  (boost and carousel) granted by promotional purchases
- Reservation: a buyer's hold on product stock
- Review: buyer feedback for a completed reservation

Reservation State Flow:
    PENDING -> CONFIRMED -> COMPLETED
    PENDING/CONFIRMED -> COMPLETED (seller may complete directly)
    PENDING/CONFIRMED -> CANCELLED (stock is returned)

Inventory:
    Product.quantity is decremented when a reservation is created and
    incremented when an active reservation is cancelled or deleted. Both
    happen with conditional F() updates inside the same transaction as the
    reservation change (see marketplace.services).
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ReservationStatus(models.TextChoices):
    """
    States for the Reservation lifecycle.

    Terminal states: COMPLETED, CANCELLED
    """

    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    CANCELLED = "CANCELLED", "Cancelled"
    COMPLETED = "COMPLETED", "Completed"


# Reservations in these states still hold product stock
ACTIVE_RESERVATION_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class Product(UUIDPrimaryKeyMixin, BaseModel):
    """
    A product listed by a seller.

    Fields:
        seller: Owner of the listing
        name: Product title
        description: Free text description
        price: Unit price in BRL
        quantity: Units available for new reservations (never negative)
        images: List of image URLs, first one is the cover
        boosted_until: End of the paid "Achadinho Turbo" highlight
        carousel_until: End of the paid carousel placement
    """

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="products",
        help_text="Seller who listed the product",
    )
    name = models.CharField(
        max_length=200,
        help_text="Product title",
    )
    description = models.TextField(
        blank=True,
        help_text="Product description",
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price in BRL",
    )
    quantity = models.PositiveIntegerField(
        default=0,
        help_text="Units available for reservation",
    )
    images = models.JSONField(
        default=list,
        blank=True,
        help_text="Image URLs (first is the cover)",
    )
    boosted_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Product is boosted until this moment",
    )
    carousel_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Product appears in the carousel until this moment",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["seller", "created_at"], name="marketplace_seller__0b1f2e_idx"),
            models.Index(fields=["boosted_until"], name="marketplace_boosted_5a7c1d_idx"),
            models.Index(fields=["carousel_until"], name="marketplace_carouse_9e4b3a_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="product_price_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Product({self.name}, stock={self.quantity})"

    @property
    def cover_image(self) -> str | None:
        return self.images[0] if self.images else None

    @property
    def is_boosted(self) -> bool:
        return self.boosted_until is not None and self.boosted_until > timezone.now()

    @property
    def is_in_carousel(self) -> bool:
        return self.carousel_until is not None and self.carousel_until > timezone.now()


class Reservation(UUIDPrimaryKeyMixin, ConcurrentTransitionMixin, BaseModel):
    """
    A buyer's reservation of product units.

    ConcurrentTransitionMixin makes every save() conditional on the status
    the instance was loaded with, so two requests finalizing the same
    reservation cannot both succeed.

    Fields:
        buyer: User who reserved
        product: Reserved product
        quantity: Units held
        status: Lifecycle state (FSM)
        review_token: Single-use token mailed to the buyer on completion
        read_by_admin: Admin dashboard read flag
        completed_at / cancelled_at: Transition timestamps
    """

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservations",
        help_text="Buyer holding the reservation",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="reservations",
        help_text="Reserved product",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        help_text="Units reserved",
    )
    status = FSMField(
        default=ReservationStatus.PENDING,
        choices=ReservationStatus.choices,
        db_index=True,
        help_text="Current reservation status (managed by FSM)",
    )
    review_token = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="Single-use token for the buyer's review",
    )
    read_by_admin = models.BooleanField(
        default=False,
        help_text="Whether an admin has seen this reservation",
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["buyer", "status"], name="marketplace_buyer_i_4d2a8f_idx"),
            models.Index(fields=["product", "status"], name="marketplace_product_7c3e9b_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="reservation_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Reservation({self.id}, {self.status}, qty={self.quantity})"

    @property
    def holds_stock(self) -> bool:
        return self.status in ACTIVE_RESERVATION_STATUSES

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=ReservationStatus.PENDING,
        target=ReservationStatus.CONFIRMED,
    )
    def confirm(self):
        """Seller accepted the reservation."""

    @transition(
        field=status,
        source=[ReservationStatus.PENDING, ReservationStatus.CONFIRMED],
        target=ReservationStatus.COMPLETED,
    )
    def complete(self, review_token: str):
        """
        Seller handed over the product.

        Transition: PENDING/CONFIRMED -> COMPLETED
        """
        self.completed_at = timezone.now()
        self.review_token = review_token

    @transition(
        field=status,
        source=[ReservationStatus.PENDING, ReservationStatus.CONFIRMED],
        target=ReservationStatus.CANCELLED,
    )
    def cancel(self):
        """
        Buyer or seller called the reservation off.

        Transition: PENDING/CONFIRMED -> CANCELLED
        The caller returns the reserved units to stock.
        """
        self.cancelled_at = timezone.now()


class Review(UUIDPrimaryKeyMixin, BaseModel):
    """
    Buyer review of a completed reservation.

    The one-to-one link to Reservation guarantees a single review per sale
    even if two submissions race past the token check.
    """

    reservation = models.OneToOneField(
        Reservation,
        on_delete=models.CASCADE,
        related_name="review",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_received",
    )
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_written",
    )
    rating = models.PositiveSmallIntegerField(help_text="1 to 5 stars")
    comment = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rating__gte=1) & models.Q(rating__lte=5),
                name="review_rating_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Review({self.rating}/5 for {self.product_id})"

"""
Authentication models.

- User: email-based account carrying the marketplace role and the cached
  reference to the buyer/seller's Stripe customer and subscription

Related files:
    - managers.py: UserManager for email-based creation
    - permissions.py: DRF permission classes for seller/admin routes

Note:
    stripe_customer_id is a cache of externally-owned state. The payments
    app re-verifies it against Stripe before use and repairs it when the
    customer no longer exists there.
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """Marketplace role of an account."""

    BUYER = "BUYER", "Buyer"
    SELLER = "SELLER", "Seller"
    ADMIN = "ADMIN", "Admin"


class SubscriptionStatus(models.TextChoices):
    """
    Local mirror of the Stripe subscription status.

    Stripe reports lowercase values; payments.services.subscriptions maps
    them onto these members.
    """

    ACTIVE = "ACTIVE", "Active"
    CANCELED = "CANCELED", "Canceled"
    INCOMPLETE = "INCOMPLETE", "Incomplete"
    INCOMPLETE_EXPIRED = "INCOMPLETE_EXPIRED", "Incomplete expired"
    PAST_DUE = "PAST_DUE", "Past due"
    TRIALING = "TRIALING", "Trialing"
    UNPAID = "UNPAID", "Unpaid"
    PAUSED = "PAUSED", "Paused"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Login identifier, unique
        name: Display name used in emails and notifications
        store_name: Seller storefront name (blank for buyers)
        role: BUYER, SELLER or ADMIN
        stripe_customer_id: Cached Stripe customer id (cus_xxx)
        stripe_subscription_id: Current catalog subscription (sub_xxx)
        stripe_price_id: Price of the current subscription
        stripe_subscription_status: Mirror of the Stripe status
        stripe_current_period_end: End of the paid period

    Usage:
        seller = User.objects.create_user(
            email="loja@example.com",
            password="securepassword",
            role=UserRole.SELLER,
            store_name="Loja da Ana",
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Display name",
    )
    store_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Seller storefront name",
    )
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.BUYER,
        db_index=True,
        help_text="Marketplace role",
    )

    # ==========================================================================
    # Stripe Integration
    # ==========================================================================

    stripe_customer_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Customer ID (cus_xxx)",
    )
    stripe_subscription_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Subscription ID (sub_xxx)",
    )
    stripe_price_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Stripe Price ID of the current subscription",
    )
    stripe_subscription_status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        null=True,
        blank=True,
        help_text="Status of the current subscription",
    )
    stripe_current_period_end = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the current subscription period ends",
    )

    # ==========================================================================
    # Account Status
    # ==========================================================================

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return self.name.split(" ")[0] if self.name else self.email.split("@")[0]

    @property
    def is_seller(self) -> bool:
        return self.role == UserRole.SELLER

    @property
    def is_marketplace_admin(self) -> bool:
        """Admins are either ADMIN-role accounts or Django staff."""
        return self.role == UserRole.ADMIN or self.is_staff

    @property
    def has_active_subscription(self) -> bool:
        """
        Whether the catalog subscription currently grants access.

        A subscription counts while Stripe reports it active (or trialing)
        and the paid period has not ended yet.
        """
        if self.stripe_subscription_status not in (
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.TRIALING,
        ):
            return False
        if self.stripe_current_period_end is None:
            return False
        return self.stripe_current_period_end > timezone.now()

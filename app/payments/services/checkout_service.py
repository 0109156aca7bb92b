"""
Stripe checkout session provisioning.

Bridges a local user to a Stripe customer and opens a hosted Checkout
Session for one of the configured prices. Nothing is written locally
except the (re)provisioned customer id; the Purchase row is created by
the checkout.session.completed webhook.

Usage:
    from payments.services import CheckoutService

    url = CheckoutService.create_checkout_session(
        user=request.user,
        price_id="price_123",
        mode="payment",
        product_id=product_id,
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from core.services import BaseService
from marketplace.models import Product

from payments.adapters import (
    CreateCheckoutSessionParams,
    CreateCustomerParams,
    StripeAdapter,
)
from payments.exceptions import PaymentConfigurationError
from payments.state_machines import PRODUCT_PURCHASE_TYPES, PurchaseType

if TYPE_CHECKING:
    from authentication.models import User


SUBSCRIPTION_MODE = "subscription"
PAYMENT_MODE = "payment"


class CheckoutService(BaseService):
    """Customer provisioning and hosted checkout sessions."""

    @staticmethod
    def success_url() -> str:
        return f"{settings.APP_URL}/dashboard?payment=success"

    @staticmethod
    def cancel_url() -> str:
        return f"{settings.APP_URL}/planos?payment=cancelled"

    @classmethod
    def resolve_purchase_type(cls, price_id: str, mode: str) -> str:
        """
        Map a Stripe price id to the purchase type it sells.

        Raises:
            PaymentConfigurationError: price id is not one of the configured
                prices for this mode
        """
        if mode == SUBSCRIPTION_MODE:
            price_map = {settings.STRIPE_CATALOG_PRICE_ID: PurchaseType.PLANO}
        else:
            price_map = {
                settings.STRIPE_TURBO_PRICE_ID: PurchaseType.ACHADINHO_TURBO,
                settings.STRIPE_CAROUSEL_PRICE_ID: PurchaseType.CARROSSEL_PRACA,
            }
        # Unset settings are empty strings and must never match
        price_map.pop("", None)

        purchase_type = price_map.get(price_id)
        if purchase_type is None:
            cls.get_logger().error(
                "Checkout requested for an unconfigured price",
                extra={"price_id": price_id, "mode": mode},
            )
            raise PaymentConfigurationError(
                "Price is not configured for checkout",
                details={"price_id": price_id, "mode": mode},
            )
        return purchase_type

    @classmethod
    def ensure_customer(cls, user: User) -> str:
        """
        Return a live Stripe customer id for the user.

        The stored id is re-verified against Stripe; a missing or deleted
        customer is replaced by a new one whose id is saved before the
        checkout continues.
        """
        if user.stripe_customer_id:
            customer = StripeAdapter.retrieve_customer(user.stripe_customer_id)
            if customer is not None:
                return customer.id
            cls.get_logger().warning(
                "Stored Stripe customer is gone, provisioning a new one",
                extra={"user_id": user.pk, "stale_customer_id": user.stripe_customer_id},
            )

        customer = StripeAdapter.create_customer(
            CreateCustomerParams(
                email=user.email,
                name=user.get_full_name(),
                metadata={"userId": str(user.pk)},
            )
        )
        user.stripe_customer_id = customer.id
        user.save(update_fields=["stripe_customer_id", "updated_at"])

        cls.get_logger().info(
            "Stripe customer provisioned",
            extra={"user_id": user.pk, "customer_id": customer.id},
        )
        return customer.id

    @classmethod
    def create_checkout_session(
        cls,
        user: User,
        price_id: str,
        mode: str,
        product_id=None,
    ) -> str:
        """
        Open a hosted checkout session and return its URL.

        Raises:
            PaymentConfigurationError: Unknown price id (nothing created)
            ValidationError: Promotional purchase without a product
            NotFoundError: productId is not one of the caller's products
            StripeError: Stripe rejected a call
            ExternalServiceError: Stripe returned a session without a URL
        """
        purchase_type = cls.resolve_purchase_type(price_id, mode)
        if purchase_type in PRODUCT_PURCHASE_TYPES:
            if not product_id:
                raise ValidationError(
                    "productId is required for this purchase",
                    error_code="PRODUCT_REQUIRED",
                    details={"purchase_type": purchase_type},
                )
            if not Product.objects.filter(pk=product_id, seller=user).exists():
                raise NotFoundError(
                    "Product not found",
                    error_code="PRODUCT_NOT_FOUND",
                    details={"product_id": str(product_id)},
                )

        customer_id = cls.ensure_customer(user)

        metadata = {"userId": str(user.pk), "purchaseType": purchase_type}
        if purchase_type in PRODUCT_PURCHASE_TYPES:
            metadata["productId"] = str(product_id)

        session = StripeAdapter.create_checkout_session(
            CreateCheckoutSessionParams(
                customer_id=customer_id,
                price_id=price_id,
                mode=mode,
                success_url=cls.success_url(),
                cancel_url=cls.cancel_url(),
                metadata=metadata,
            )
        )
        if not session.url:
            cls.get_logger().error(
                "Stripe returned a checkout session without a URL",
                extra={"session_id": session.id, "user_id": user.pk},
            )
            raise ExternalServiceError(
                "Checkout session could not be created",
                error_code="CHECKOUT_URL_MISSING",
            )

        cls.get_logger().info(
            "Checkout session created",
            extra={
                "session_id": session.id,
                "user_id": user.pk,
                "purchase_type": purchase_type,
            },
        )
        return session.url

"""
Stripe API adapter.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, timeouts and observability.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Plain dataclass results, so callers never touch Stripe objects

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Network retries performed by the SDK (default: 3)

Usage:
    from payments.adapters import StripeAdapter, CreateCheckoutSessionParams

    customer = StripeAdapter.retrieve_customer("cus_xxx")
    if customer is None:
        customer = StripeAdapter.create_customer(
            CreateCustomerParams(email=user.email, name=user.name,
                                 metadata={"userId": str(user.pk)})
        )

    session = StripeAdapter.create_checkout_session(
        CreateCheckoutSessionParams(
            customer_id=customer.id,
            price_id="price_xxx",
            mode="payment",
            success_url="https://app.example.com/dashboard?payment=success",
            cancel_url="https://app.example.com/planos?payment=cancelled",
        )
    )
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)

if TYPE_CHECKING:
    from typing import Any, NoReturn


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateCustomerParams:
    """
    Parameters for creating a Stripe Customer.

    Attributes:
        email: Customer email
        name: Display name
        metadata: Key-value pairs (userId links back to our User)
        idempotency_key: Optional key for safe retries
    """

    email: str
    name: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    idempotency_key: str | None = None

    def __post_init__(self) -> None:
        if not self.email:
            raise ValueError("email is required")


@dataclass
class CustomerResult:
    id: str
    email: str | None = None
    name: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a hosted Checkout Session.

    Attributes:
        customer_id: Stripe Customer the session bills
        price_id: Price of the single line item
        mode: "payment" (one-off) or "subscription"
        success_url / cancel_url: Where Stripe sends the browser back
        metadata: userId, purchaseType, productId
    """

    customer_id: str
    price_id: str
    mode: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.mode not in ("payment", "subscription"):
            raise ValueError("mode must be 'payment' or 'subscription'")
        if not self.price_id:
            raise ValueError("price_id is required")


@dataclass
class CheckoutSessionResult:
    id: str
    url: str | None
    mode: str
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class SubscriptionResult:
    """
    Result from Stripe Subscription retrieval.

    Attributes:
        id: Subscription ID (sub_xxx)
        customer_id: Owning customer (cus_xxx)
        status: Stripe status string (active, canceled, ...)
        price_id: Price of the first subscription item
        current_period_end: End of the paid period (UTC)
    """

    id: str
    customer_id: str
    status: str
    price_id: str | None = None
    current_period_end: datetime | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


def _timestamp_to_datetime(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=dt_timezone.utc)


def subscription_result_from_dict(data: dict[str, Any]) -> SubscriptionResult:
    """
    Build a SubscriptionResult from a subscription payload.

    Used both for API responses and for the subscription object embedded
    in customer.subscription.* webhook events. Newer API versions report
    current_period_end on the subscription item instead of the
    subscription itself; both are accepted.
    """
    items = (data.get("items") or {}).get("data") or []
    first_item = items[0] if items else {}
    price_id = (first_item.get("price") or {}).get("id")
    period_end = data.get("current_period_end") or first_item.get("current_period_end")

    customer = data.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")

    return SubscriptionResult(
        id=data["id"],
        customer_id=customer or "",
        status=data.get("status", ""),
        price_id=price_id,
        current_period_end=_timestamp_to_datetime(period_end),
        raw_response=data,
    )


def customer_result_from_dict(data: dict[str, Any]) -> CustomerResult:
    """Build a CustomerResult from a customer payload."""
    return CustomerResult(
        id=data["id"],
        email=data.get("email"),
        name=data.get("name"),
        metadata=dict(data.get("metadata") or {}),
    )


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are class methods - no instance state is maintained.
    Thread-safe for use from Celery workers.
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = settings.STRIPE_MAX_RETRIES
        stripe.default_http_client = stripe.RequestsClient(
            timeout=settings.STRIPE_API_TIMEOUT_SECONDS
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Customers
    # =========================================================================

    @classmethod
    def retrieve_customer(cls, customer_id: str) -> CustomerResult | None:
        """
        Retrieve a Customer by ID.

        Returns:
            CustomerResult, or None when the customer no longer exists
            (deleted in the dashboard or never existed in this account)

        Raises:
            StripeRateLimitError, StripeAPIUnavailableError: transient failures
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {"operation": "retrieve_customer", "customer_id": customer_id}
        start_time = time.time()

        try:
            customer = stripe.Customer.retrieve(customer_id)
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                logger.warning("Stripe customer not found", extra=log_context)
                return None
            cls._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)
        except Exception as e:
            cls._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)

        duration_ms = (time.time() - start_time) * 1000
        data = customer.to_dict()
        if data.get("deleted"):
            logger.warning(
                "Stripe customer was deleted",
                extra={**log_context, "duration_ms": duration_ms},
            )
            return None

        logger.debug(
            "Stripe operation completed",
            extra={**log_context, "duration_ms": duration_ms},
        )
        return customer_result_from_dict(data)

    @classmethod
    def create_customer(cls, params: CreateCustomerParams) -> CustomerResult:
        """
        Create a Stripe Customer.

        Raises:
            StripeInvalidRequestError: Invalid parameters
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {"operation": "create_customer", "metadata": params.metadata}
        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            customer = stripe.Customer.create(
                email=params.email,
                name=params.name or None,
                metadata=params.metadata,
                idempotency_key=params.idempotency_key,
            )
        except Exception as e:
            cls._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)

        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "customer_id": customer.id,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return customer_result_from_dict(customer.to_dict())

    # =========================================================================
    # Checkout
    # =========================================================================

    @classmethod
    def create_checkout_session(
        cls,
        params: CreateCheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a hosted Checkout Session.

        Returns:
            CheckoutSessionResult; url is None if Stripe returned none

        Raises:
            StripeInvalidRequestError: Invalid price or customer
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_checkout_session",
            "customer_id": params.customer_id,
            "price_id": params.price_id,
            "mode": params.mode,
        }
        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session = stripe.checkout.Session.create(
                customer=params.customer_id,
                mode=params.mode,
                line_items=[{"price": params.price_id, "quantity": 1}],
                payment_method_types=["card"],
                success_url=params.success_url,
                cancel_url=params.cancel_url,
                metadata=params.metadata,
            )
        except Exception as e:
            cls._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)

        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "session_id": session.id,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        data = session.to_dict()
        return CheckoutSessionResult(
            id=data["id"],
            url=data.get("url"),
            mode=data.get("mode") or params.mode,
            metadata=dict(data.get("metadata") or {}),
        )

    # =========================================================================
    # Subscriptions
    # =========================================================================

    @classmethod
    def retrieve_subscription(cls, subscription_id: str) -> SubscriptionResult:
        """
        Retrieve a Subscription by ID.

        Raises:
            StripeInvalidRequestError: Subscription not found
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_subscription",
            "subscription_id": subscription_id,
        }
        start_time = time.time()

        try:
            subscription = stripe.Subscription.retrieve(subscription_id)
        except Exception as e:
            cls._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)

        result = subscription_result_from_dict(subscription.to_dict())
        logger.debug(
            "Stripe operation completed",
            extra={
                **log_context,
                "status": result.status,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return result

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def verify_webhook_signature(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            StripeInvalidRequestError: Invalid signature or payload
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
        except stripe.SignatureVerificationError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook signature",
                stripe_code="signature_verification_failed",
                details={"error": str(e)},
            ) from e
        except ValueError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook payload",
                stripe_code="invalid_payload",
                details={"error": str(e)},
            ) from e
        return event.to_dict()

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> NoReturn:
        """
        Translate Stripe exceptions to domain exceptions.

        Raises:
            StripeInvalidRequestError: Invalid request or authentication
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: API unavailable or unexpected error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(
                str(error.user_message or error),
                stripe_code=error.code,
            ) from error

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        if isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        if isinstance(error, stripe.StripeError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise StripeAPIUnavailableError(
            f"Unexpected Stripe error: {error}",
            stripe_code="unknown_error",
        ) from error

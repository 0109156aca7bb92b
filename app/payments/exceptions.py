"""
Payment-specific exceptions.

Every class derives from one of the core categories, so
core.views.error_response maps it to the right HTTP status without
knowing about payments.

Exception Hierarchy:
    PaymentNotFoundError (NotFoundError, 404)
    InvalidStateTransitionError (ConflictError, 409)
    PaymentConfigurationError (ConfigurationError, 500)
    PixGatewayError (ExternalServiceError, upstream status or 500)
    StripeError (ExternalServiceError, 500) - Base for all Stripe errors
        ├── StripeInvalidRequestError - Invalid request params (permanent)
        ├── StripeRateLimitError - Rate limited (transient, retry)
        └── StripeAPIUnavailableError - API unavailable (transient, retry)

Usage:
    from payments.exceptions import InvalidStateTransitionError

    raise InvalidStateTransitionError(
        "Purchase is not awaiting approval",
        details={"current_status": purchase.submission_status},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
)

if TYPE_CHECKING:
    from typing import Any


class PaymentNotFoundError(NotFoundError):
    """
    Raised when a payment entity cannot be found.

    Use for:
    - PixCharge / PixPayment lookup by txid fails
    - Purchase lookup fails
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class InvalidStateTransitionError(ConflictError):
    """
    FSM transition not allowed from the current state.

    Also raised when a concurrent request moved the row first
    (django_fsm.ConcurrentTransition).
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class PaymentConfigurationError(ConfigurationError):
    """
    Payment setting missing or a price id that maps to nothing.

    Example:
        if price_id not in price_map:
            raise PaymentConfigurationError(
                "Unknown price id",
                details={"price_id": price_id},
            )
    """

    default_error_code: str = "PAYMENT_CONFIGURATION_ERROR"


class PixGatewayError(ExternalServiceError):
    """
    PIX gateway call failed or was rejected.

    status_code mirrors the upstream HTTP status when the gateway answered
    with an error, so the client sees the same 4xx/5xx; transport failures
    report 502.
    """

    default_error_code: str = "PIX_GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(ExternalServiceError):
    """
    Base exception for all Stripe-related errors.

    Attributes:
        stripe_code: Stripe's internal error code
        is_retryable: Whether the operation can be retried

    Example:
        try:
            StripeAdapter.create_checkout_session(...)
        except StripeError as e:
            if e.is_retryable:
                raise self.retry(exc=e)
            raise
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe, or a bad webhook signature.

    Permanent: the same request will never succeed. Check stripe_code
    ("resource_missing", "signature_verification_failed", ...).
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


class StripeRateLimitError(StripeError):
    """Rate limited by Stripe API. Retry with backoff."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    This covers:
    - Network connectivity issues and timeouts
    - Stripe server errors (5xx)
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True

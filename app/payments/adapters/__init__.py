"""
Payment adapters for external services.

All external payment API calls go through these adapters to ensure
consistent error handling, timeouts and observability.

- StripeAdapter: customers, checkout sessions, subscriptions, webhooks
- PixGatewayAdapter: immediate PIX charges over mTLS + OAuth
"""

from payments.adapters.pix_adapter import (
    CreatePixChargeParams,
    PixChargeResult,
    PixGatewayAdapter,
)
from payments.adapters.stripe_adapter import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    CreateCustomerParams,
    CustomerResult,
    StripeAdapter,
    SubscriptionResult,
    subscription_result_from_dict,
)

__all__ = [
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "CreateCustomerParams",
    "CreatePixChargeParams",
    "CustomerResult",
    "PixChargeResult",
    "PixGatewayAdapter",
    "StripeAdapter",
    "SubscriptionResult",
    "subscription_result_from_dict",
]

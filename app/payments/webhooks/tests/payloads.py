"""
Stripe-shaped payload builders for webhook tests.

Usage:
    from payments.webhooks.tests.payloads import checkout_session

    session = checkout_session(user, mode="subscription", subscription="sub_1")
"""

import uuid

from payments.tests.factories import CATALOG_PRICE_ID

PERIOD_END = 1_800_000_000


def checkout_session(user, **overrides):
    """checkout.session.completed data.object for a paid one-off checkout."""
    session = {
        "id": f"cs_test_{uuid.uuid4().hex[:16]}",
        "object": "checkout.session",
        "mode": "payment",
        "payment_status": "paid",
        "amount_total": 1990,
        "currency": "brl",
        "customer": "cus_test",
        "metadata": {"userId": str(user.pk), "purchaseType": "ACHADINHO_TURBO"},
    }
    session.update(overrides)
    return session


def subscription_object(subscription_id="sub_test", status="active", period_end=PERIOD_END):
    """Subscription as embedded in customer.subscription.* events."""
    return {
        "id": subscription_id,
        "object": "subscription",
        "customer": "cus_test",
        "status": status,
        "items": {
            "object": "list",
            "data": [
                {
                    "id": "si_test",
                    "price": {"id": CATALOG_PRICE_ID},
                    "current_period_end": period_end,
                }
            ],
        },
    }

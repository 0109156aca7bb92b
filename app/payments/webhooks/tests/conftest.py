"""
Pytest fixtures for webhook tests.

Stored-event fixtures wrap payloads from payloads.py in WebhookEvent rows
the way the webhook view would.
"""

from unittest.mock import patch

import pytest
import stripe

from payments.tests.factories import WebhookEventFactory
from payments.webhooks.tests.payloads import subscription_object


@pytest.fixture
def stripe_subscription():
    """Patch stripe.Subscription.retrieve with a subscription_object()."""
    with patch("stripe.Subscription.retrieve") as retrieve:
        retrieve.return_value = stripe.Subscription.construct_from(
            subscription_object(), "sk_test_123"
        )
        yield retrieve


@pytest.fixture
def make_event(db):
    """Store a WebhookEvent of the given type around a data.object."""

    def _make(event_type, data_object, **kwargs):
        return WebhookEventFactory(event_type=event_type, data_object=data_object, **kwargs)

    return _make

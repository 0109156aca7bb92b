"""
Tests for the Stripe webhook endpoint.

POST /api/v1/payments/webhooks/stripe/

Requests are signed with the test webhook secret, so the real
stripe.Webhook verification runs.

Tests cover:
- Signature verification
- Webhook event creation and idempotency
- Failed handlers answer 500 and are reprocessed on redelivery
"""

import hashlib
import hmac
import json
import time

import pytest
from django.urls import reverse_lazy
from rest_framework import status

from payments.models import Purchase, WebhookEvent
from payments.state_machines import PurchaseStatus, WebhookEventStatus
from payments.webhooks.tests.payloads import checkout_session

WEBHOOK_URL = reverse_lazy("payments:stripe-webhook")


def sign(payload: bytes, secret: str = "whsec_test") -> str:
    timestamp = int(time.time())
    signed_payload = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type, data_object, event_id="evt_test_1"):
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": data_object},
    }


def post_event(client, event, secret="whsec_test", signature=None):
    payload = json.dumps(event).encode()
    return client.post(
        WEBHOOK_URL,
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=signature if signature is not None else sign(payload, secret),
    )


# =============================================================================
# Signature Verification Tests
# =============================================================================


@pytest.mark.django_db
class TestStripeWebhookSignature:
    def test_missing_signature_returns_400(self, api_client):
        response = api_client.post(
            WEBHOOK_URL, data=b"{}", content_type="application/json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert b"Missing signature" in response.content

    def test_wrong_secret_returns_400(self, api_client, seller):
        event = make_event("checkout.session.completed", checkout_session(seller))

        response = post_event(api_client, event, secret="whsec_other")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert b"Invalid signature" in response.content
        assert not WebhookEvent.objects.exists()

    def test_garbage_signature_returns_400(self, api_client):
        response = post_event(api_client, make_event("ping", {}), signature="nonsense")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_event_without_type_returns_400(self, api_client):
        response = post_event(api_client, {"id": "evt_no_type", "data": {"object": {}}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert b"Invalid event" in response.content


# =============================================================================
# Processing and Idempotency Tests
# =============================================================================


@pytest.mark.django_db
class TestStripeWebhookProcessing:
    def test_processes_checkout_event(self, api_client, seller):
        session = checkout_session(seller)

        response = post_event(api_client, make_event("checkout.session.completed", session))

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"Processed"
        event = WebhookEvent.objects.get(stripe_event_id="evt_test_1")
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.retry_count == 1
        purchase = Purchase.objects.get(stripe_checkout_session_id=session["id"])
        assert purchase.status == PurchaseStatus.PAID

    def test_redelivered_event_is_not_reprocessed(self, api_client, seller):
        event = make_event("checkout.session.completed", checkout_session(seller))
        post_event(api_client, event)

        response = post_event(api_client, event)

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"Already processed"
        assert WebhookEvent.objects.get().retry_count == 1
        assert Purchase.objects.count() == 1

    def test_distinct_events_for_same_session_record_one_purchase(self, api_client, seller):
        session = checkout_session(seller)

        post_event(api_client, make_event("checkout.session.completed", session, "evt_a"))
        post_event(api_client, make_event("checkout.session.completed", session, "evt_b"))

        assert WebhookEvent.objects.count() == 2
        assert Purchase.objects.filter(stripe_checkout_session_id=session["id"]).count() == 1

    def test_unhandled_event_type_is_acknowledged(self, api_client):
        response = post_event(api_client, make_event("charge.refunded", {"id": "ch_1"}))

        assert response.status_code == status.HTTP_200_OK
        assert WebhookEvent.objects.get().status == WebhookEventStatus.PROCESSED

    def test_failed_handler_returns_500_and_retries_on_redelivery(self, api_client, seller):
        session = checkout_session(
            seller, metadata={"userId": "999999", "purchaseType": "ACHADINHO_TURBO"}
        )
        event = make_event("checkout.session.completed", session)

        first = post_event(api_client, event)
        second = post_event(api_client, event)

        assert first.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert second.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        stored = WebhookEvent.objects.get()
        assert stored.status == WebhookEventStatus.FAILED
        assert stored.retry_count == 2
        assert "999999" in stored.error_message
        assert not Purchase.objects.exists()

    def test_get_is_not_allowed(self, api_client):
        assert api_client.get(WEBHOOK_URL).status_code == status.HTTP_405_METHOD_NOT_ALLOWED

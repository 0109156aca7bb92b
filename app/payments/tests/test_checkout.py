"""
Tests for Stripe checkout session provisioning.

POST /api/v1/payments/checkout-session/

The Stripe SDK is patched at its entry points, so StripeAdapter's
translation of SDK objects and errors is exercised too.
"""

from unittest.mock import patch

import pytest
import stripe
from django.urls import reverse_lazy
from rest_framework import status

from payments.exceptions import PaymentConfigurationError
from payments.models import Purchase
from payments.services import CheckoutService
from payments.state_machines import PurchaseType
from payments.tests.factories import (
    CAROUSEL_PRICE_ID,
    CATALOG_PRICE_ID,
    TURBO_PRICE_ID,
)

CHECKOUT_URL = reverse_lazy("payments:checkout-session")
SESSION_URL = "https://checkout.stripe.com/c/pay/cs_test_123"


def stripe_customer(customer_id="cus_new", **fields):
    return stripe.Customer.construct_from({"id": customer_id, **fields}, "sk_test_123")


def stripe_session(url=SESSION_URL, mode="payment"):
    return stripe.checkout.Session.construct_from(
        {"id": "cs_test_123", "url": url, "mode": mode, "metadata": {}},
        "sk_test_123",
    )


@pytest.fixture
def stripe_api():
    """Patched Stripe SDK calls used by checkout."""
    with (
        patch("stripe.Customer.retrieve") as retrieve,
        patch("stripe.Customer.create", return_value=stripe_customer()) as create,
        patch("stripe.checkout.Session.create", return_value=stripe_session()) as session,
    ):
        yield {"retrieve": retrieve, "create": create, "session": session}


@pytest.mark.django_db
class TestCheckoutSession:
    def test_returns_session_url(self, seller_client, seller, product, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": TURBO_PRICE_ID, "productId": str(product.id), "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"url": SESSION_URL}

        kwargs = stripe_api["session"].call_args.kwargs
        assert kwargs["customer"] == "cus_new"
        assert kwargs["mode"] == "payment"
        assert kwargs["line_items"] == [{"price": TURBO_PRICE_ID, "quantity": 1}]
        assert kwargs["success_url"] == "https://app.example.com/dashboard?payment=success"
        assert kwargs["cancel_url"] == "https://app.example.com/planos?payment=cancelled"
        assert kwargs["metadata"] == {
            "userId": str(seller.pk),
            "purchaseType": PurchaseType.ACHADINHO_TURBO,
            "productId": str(product.id),
        }

    def test_no_purchase_is_recorded_before_payment(self, seller_client, product, stripe_api):
        seller_client.post(
            CHECKOUT_URL,
            {"priceId": CAROUSEL_PRICE_ID, "productId": str(product.id), "type": "payment"},
            format="json",
        )

        assert not Purchase.objects.exists()

    def test_one_time_is_an_alias_of_payment(self, seller_client, product, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": CAROUSEL_PRICE_ID, "productId": str(product.id), "type": "one_time"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert stripe_api["session"].call_args.kwargs["mode"] == "payment"

    def test_subscription_checkout(self, seller_client, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": CATALOG_PRICE_ID, "type": "subscription"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        kwargs = stripe_api["session"].call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["metadata"]["purchaseType"] == PurchaseType.PLANO
        assert "productId" not in kwargs["metadata"]

    def test_unknown_price_fails_without_side_effects(self, seller_client, seller, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": "price_unknown", "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error_code"] == "PAYMENT_CONFIGURATION_ERROR"
        stripe_api["create"].assert_not_called()
        stripe_api["session"].assert_not_called()
        seller.refresh_from_db()
        assert seller.stripe_customer_id is None

    def test_price_of_the_other_mode_is_unknown(self, seller_client, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": CATALOG_PRICE_ID, "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR

    def test_unset_price_setting_never_matches(self, settings):
        settings.STRIPE_TURBO_PRICE_ID = ""

        with pytest.raises(PaymentConfigurationError):
            CheckoutService.resolve_purchase_type("", "payment")

    def test_promotion_requires_product(self, seller_client, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": TURBO_PRICE_ID, "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PRODUCT_REQUIRED"

    def test_product_of_another_seller_is_rejected(self, buyer_client, buyer, product, stripe_api):
        response = buyer_client.post(
            CHECKOUT_URL,
            {"priceId": TURBO_PRICE_ID, "productId": str(product.id), "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "PRODUCT_NOT_FOUND"
        stripe_api["create"].assert_not_called()
        stripe_api["session"].assert_not_called()
        buyer.refresh_from_db()
        assert buyer.stripe_customer_id is None

    def test_subscription_ignores_product(self, seller_client, product, stripe_api):
        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": CATALOG_PRICE_ID, "productId": str(product.id), "type": "subscription"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert "productId" not in stripe_api["session"].call_args.kwargs["metadata"]

    def test_session_without_url(self, seller_client, product, stripe_api):
        stripe_api["session"].return_value = stripe_session(url=None)

        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": TURBO_PRICE_ID, "productId": str(product.id), "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error_code"] == "CHECKOUT_URL_MISSING"

    def test_stripe_outage(self, seller_client, product, stripe_api):
        stripe_api["session"].side_effect = stripe.APIConnectionError("connection reset")

        response = seller_client.post(
            CHECKOUT_URL,
            {"priceId": TURBO_PRICE_ID, "productId": str(product.id), "type": "payment"},
            format="json",
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error_code"] == "STRIPE_UNAVAILABLE"

    def test_requires_authentication(self, api_client, stripe_api):
        response = api_client.post(
            CHECKOUT_URL, {"priceId": TURBO_PRICE_ID, "type": "payment"}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestCustomerProvisioning:
    def post(self, client):
        return client.post(
            CHECKOUT_URL,
            {"priceId": CATALOG_PRICE_ID, "type": "subscription"},
            format="json",
        )

    def test_creates_and_stores_customer(self, seller_client, seller, stripe_api):
        self.post(seller_client)

        seller.refresh_from_db()
        assert seller.stripe_customer_id == "cus_new"
        stripe_api["retrieve"].assert_not_called()
        assert stripe_api["create"].call_args.kwargs["metadata"] == {"userId": str(seller.pk)}
        assert stripe_api["create"].call_args.kwargs["email"] == seller.email

    def test_reuses_live_customer(self, seller_client, seller, stripe_api):
        seller.stripe_customer_id = "cus_live"
        seller.save()
        stripe_api["retrieve"].return_value = stripe_customer("cus_live", email=seller.email)

        self.post(seller_client)

        stripe_api["create"].assert_not_called()
        assert stripe_api["session"].call_args.kwargs["customer"] == "cus_live"

    def test_replaces_deleted_customer(self, seller_client, seller, stripe_api):
        seller.stripe_customer_id = "cus_deleted"
        seller.save()
        stripe_api["retrieve"].return_value = stripe_customer("cus_deleted", deleted=True)

        response = self.post(seller_client)

        assert response.status_code == status.HTTP_200_OK
        seller.refresh_from_db()
        assert seller.stripe_customer_id == "cus_new"
        assert stripe_api["session"].call_args.kwargs["customer"] == "cus_new"

    def test_replaces_missing_customer(self, seller_client, seller, stripe_api):
        seller.stripe_customer_id = "cus_other_account"
        seller.save()
        stripe_api["retrieve"].side_effect = stripe.InvalidRequestError(
            "No such customer: 'cus_other_account'", "id", code="resource_missing"
        )

        self.post(seller_client)

        seller.refresh_from_db()
        assert seller.stripe_customer_id == "cus_new"

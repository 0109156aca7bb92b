"""
Pytest fixtures shared by all payment test packages.

Users and API clients come from the root app/conftest.py. Gateway and
Stripe settings are filled with test values so adapters can be exercised
against mocked transports.
"""

from decimal import Decimal

import httpx
import pytest

from marketplace.tests.factories import ProductFactory
from payments.tests.factories import (
    CAROUSEL_PRICE_ID,
    CATALOG_PRICE_ID,
    TURBO_PRICE_ID,
    CarouselPurchaseFactory,
    PixChargeFactory,
    PurchaseFactory,
)


@pytest.fixture(autouse=True)
def payment_settings(settings):
    """Configured Stripe prices and PIX gateway for every payment test."""
    settings.APP_URL = "https://app.example.com"
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test"
    settings.STRIPE_TURBO_PRICE_ID = TURBO_PRICE_ID
    settings.STRIPE_CAROUSEL_PRICE_ID = CAROUSEL_PRICE_ID
    settings.STRIPE_CATALOG_PRICE_ID = CATALOG_PRICE_ID
    settings.PIX_GATEWAY_ENDPOINT = "https://pix.example.com"
    settings.PIX_CLIENT_ID = "client-id"
    settings.PIX_CLIENT_SECRET = "client-secret"
    settings.PIX_CERT_PATH = ""
    settings.PIX_KEY = "chave@example.com"
    settings.PURCHASE_BENEFIT_DAYS = 7
    return settings


@pytest.fixture(autouse=True)
def clear_cache():
    """The PIX token cache must not leak between tests."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def product(seller):
    return ProductFactory(seller=seller)


@pytest.fixture
def pending_purchase(seller, product):
    """Pending ACHADINHO_TURBO purchase for the seller's product."""
    return PurchaseFactory(owner=seller, product=product)


@pytest.fixture
def pending_charge(pending_purchase):
    """PENDING PixCharge of 19.90 for pending_purchase."""
    return PixChargeFactory(purchase=pending_purchase, amount=Decimal("19.90"))


@pytest.fixture
def carousel_purchase(seller, product):
    """Paid carousel purchase with submission AVAILABLE."""
    return CarouselPurchaseFactory(owner=seller, product=product)


# =============================================================================
# PIX Gateway
# =============================================================================


class FakePixGateway:
    """
    In-memory PIX gateway served through httpx.MockTransport.

    Answers the OAuth, charge and QR code endpoints. Set ``errors`` to
    {(method, path_prefix): (status_code, body)} to override a reply; a
    str body is sent as raw text.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.errors: dict[tuple[str, str], tuple[int, dict | str]] = {}
        self.location_id = 789

    def paths(self, method: str | None = None) -> list[str]:
        return [r.url.path for r in self.requests if method in (None, r.method)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for (method, prefix), (status_code, body) in self.errors.items():
            if request.method == method and path.startswith(prefix):
                if isinstance(body, str):
                    return httpx.Response(status_code, text=body)
                return httpx.Response(status_code, json=body)

        if path == "/oauth/token":
            return httpx.Response(200, json={"access_token": "token-abc", "expires_in": 3600})
        if request.method == "PUT" and path.startswith("/v2/cob/"):
            txid = path.rsplit("/", 1)[-1]
            return httpx.Response(
                201,
                json={
                    "txid": txid,
                    "status": "ATIVA",
                    "loc": {"id": self.location_id},
                    "pixCopiaECola": "00020101021226830014br.gov.bcb.pix",
                },
            )
        if path == f"/v2/loc/{self.location_id}/qrcode":
            return httpx.Response(
                200,
                json={
                    "qrcode": "00020101021226830014br.gov.bcb.pix",
                    "imagemQrcode": "data:image/png;base64,iVBORw0KGgo=",
                },
            )
        return httpx.Response(404, json={"title": "Not found"})


@pytest.fixture
def pix_gateway(monkeypatch):
    """Route PixGatewayAdapter traffic to a FakePixGateway."""
    from payments.adapters import PixGatewayAdapter

    gateway = FakePixGateway()

    def build_client(cls):
        return httpx.Client(
            base_url="https://pix.example.com",
            transport=httpx.MockTransport(gateway.handler),
        )

    monkeypatch.setattr(PixGatewayAdapter, "_build_client", classmethod(build_client))
    return gateway

"""
PIX gateway adapter.

Wraps the gateway's REST API (BACEN PIX API layout) behind plain
dataclasses, the same way StripeAdapter wraps the Stripe SDK.

Authentication:
    - Mutual TLS: the client certificate and key in PIX_CERT_PATH are
      loaded into an ssl.SSLContext passed to httpx
    - OAuth2 client credentials: POST /oauth/token with HTTP Basic auth.
      The access token is cached in the Django cache until shortly before
      it expires, so concurrent workers share one token

Configuration (via settings):
    - PIX_GATEWAY_ENDPOINT, PIX_CLIENT_ID, PIX_CLIENT_SECRET
    - PIX_CERT_PATH: PEM with certificate and private key
    - PIX_KEY: Receiving PIX key
    - PIX_CHARGE_EXPIRATION_SECONDS (default: 3600)
    - PIX_API_TIMEOUT_SECONDS (default: 15)

Usage:
    from payments.adapters import PixGatewayAdapter, CreatePixChargeParams

    result = PixGatewayAdapter.create_charge(
        CreatePixChargeParams(
            txid=generate_txid(),
            amount=Decimal("19.90"),
            description="Compra de ACHADINHO TURBO",
        )
    )
    result.imagem_qrcode  # data:image/png;base64,...
"""

from __future__ import annotations

import logging
import ssl
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

import httpx
from django.conf import settings
from django.core.cache import cache

from payments.exceptions import PaymentConfigurationError, PixGatewayError

if TYPE_CHECKING:
    from typing import Any, NoReturn


TOKEN_CACHE_KEY = "payments:pix_gateway:access_token"

# Refresh the cached token this many seconds before the gateway expires it
TOKEN_EXPIRY_MARGIN_SECONDS = 60


@dataclass
class CreatePixChargeParams:
    """
    Parameters for an immediate PIX charge.

    Attributes:
        txid: 26-35 alphanumeric characters, generated by us
        amount: Amount in BRL (sent with two decimals)
        description: Text shown to the payer ("solicitacaoPagador")
        expiration_seconds: Charge lifetime (defaults to settings)
    """

    txid: str
    amount: Decimal
    description: str = ""
    expiration_seconds: int | None = None

    def __post_init__(self) -> None:
        if not self.txid.isalnum() or not 26 <= len(self.txid) <= 35:
            raise ValueError("txid must have 26 to 35 alphanumeric characters")
        if self.amount <= 0:
            raise ValueError("amount must be positive")


@dataclass
class PixChargeResult:
    """
    Charge created at the gateway plus its QR code.

    Attributes:
        txid: Transaction id echoed by the gateway
        location_id: loc.id, used to fetch the QR code
        qrcode: Copy-and-paste payload
        imagem_qrcode: QR code image as a data URI
        raw_response: Charge creation response body
    """

    txid: str
    location_id: int
    qrcode: str
    imagem_qrcode: str
    raw_response: dict[str, Any] = field(default_factory=dict)


class PixGatewayAdapter:
    """
    Adapter for PIX gateway operations.

    All methods are class methods; a fresh httpx.Client is opened per
    operation and closed when it finishes.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _require_settings() -> None:
        missing = [
            name
            for name in (
                "PIX_GATEWAY_ENDPOINT",
                "PIX_CLIENT_ID",
                "PIX_CLIENT_SECRET",
                "PIX_KEY",
            )
            if not getattr(settings, name, "")
        ]
        if missing:
            raise PaymentConfigurationError(
                "PIX gateway is not configured",
                details={"missing_settings": missing},
            )

    @staticmethod
    def _ssl_context() -> ssl.SSLContext | bool:
        """Client-certificate context, or default verification when no cert is set."""
        if not settings.PIX_CERT_PATH:
            return True
        context = ssl.create_default_context()
        context.load_cert_chain(settings.PIX_CERT_PATH)
        return context

    @classmethod
    def _build_client(cls) -> httpx.Client:
        return httpx.Client(
            base_url=settings.PIX_GATEWAY_ENDPOINT,
            verify=cls._ssl_context(),
            timeout=settings.PIX_API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    # =========================================================================
    # Authentication
    # =========================================================================

    @classmethod
    def _get_access_token(cls, client: httpx.Client) -> str:
        token = cache.get(TOKEN_CACHE_KEY)
        if token:
            return token

        response = client.post(
            "/oauth/token",
            auth=(settings.PIX_CLIENT_ID, settings.PIX_CLIENT_SECRET),
            json={"grant_type": "client_credentials"},
        )
        if response.is_error:
            cls._raise_gateway_error(response, "oauth_token")

        data = cls._success_body(response, "oauth_token")
        token = data.get("access_token")
        if not token or not isinstance(token, str):
            cls._raise_bad_response(response, "oauth_token", "access_token missing")
        try:
            expires_in = int(data.get("expires_in", 3600))
        except (TypeError, ValueError):
            expires_in = 3600
        cache.set(
            TOKEN_CACHE_KEY,
            token,
            timeout=max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 1),
        )
        cls.get_logger().info(
            "PIX gateway token obtained",
            extra={"expires_in": expires_in},
        )
        return token

    # =========================================================================
    # Charges
    # =========================================================================

    @classmethod
    def create_charge(cls, params: CreatePixChargeParams) -> PixChargeResult:
        """
        Create an immediate charge and fetch its QR code.

        PUT /v2/cob/{txid} followed by GET /v2/loc/{loc.id}/qrcode.

        Raises:
            PaymentConfigurationError: Gateway settings missing
            PixGatewayError: Gateway rejected the call, was unreachable or
                answered with an unusable body
        """
        cls._require_settings()
        logger = cls.get_logger()

        expiration = params.expiration_seconds or settings.PIX_CHARGE_EXPIRATION_SECONDS
        body = {
            "calendario": {"expiracao": expiration},
            "valor": {"original": f"{params.amount:.2f}"},
            "chave": settings.PIX_KEY,
            "solicitacaoPagador": params.description,
        }
        log_context = {"operation": "create_charge", "txid": params.txid}
        start_time = time.time()
        logger.info("Starting PIX gateway operation", extra=log_context)

        try:
            with cls._build_client() as client:
                headers = {"Authorization": f"Bearer {cls._get_access_token(client)}"}

                response = client.put(f"/v2/cob/{params.txid}", json=body, headers=headers)
                if response.is_error:
                    cls._raise_gateway_error(response, "create_charge")
                charge = cls._success_body(response, "create_charge")
                location = charge.get("loc")
                location_id = location.get("id") if isinstance(location, dict) else None
                if location_id is None or isinstance(location_id, (dict, list)):
                    cls._raise_bad_response(response, "create_charge", "loc.id missing")

                response = client.get(f"/v2/loc/{location_id}/qrcode", headers=headers)
                if response.is_error:
                    cls._raise_gateway_error(response, "get_qrcode")
                qr = cls._success_body(response, "get_qrcode")
        except httpx.TransportError as e:
            logger.error(
                f"PIX gateway unreachable: {type(e).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise PixGatewayError(
                "PIX gateway unavailable",
                status_code=502,
                details={"operation": "create_charge"},
            ) from e

        logger.info(
            "PIX gateway operation completed",
            extra={
                **log_context,
                "location_id": location_id,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return PixChargeResult(
            txid=charge.get("txid", params.txid),
            location_id=location_id,
            qrcode=qr.get("qrcode") or charge.get("pixCopiaECola", ""),
            imagem_qrcode=qr.get("imagemQrcode", ""),
            raw_response=charge,
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _success_body(cls, response: httpx.Response, operation: str) -> dict[str, Any]:
        """JSON object of a 2xx response; any other body is a gateway fault."""
        try:
            body = response.json()
        except ValueError:
            cls._raise_bad_response(response, operation, "body is not JSON")
        if not isinstance(body, dict):
            cls._raise_bad_response(response, operation, "body is not a JSON object")
        return body

    @classmethod
    def _raise_bad_response(
        cls, response: httpx.Response, operation: str, reason: str
    ) -> NoReturn:
        """Raise a 502 PixGatewayError for a success status with an unusable body."""
        cls.get_logger().error(
            "PIX gateway returned an unusable response",
            extra={
                "operation": operation,
                "status_code": response.status_code,
                "reason": reason,
                "response_body": response.text[:500],
            },
        )
        raise PixGatewayError(
            "Resposta inválida do gateway Pix",
            status_code=502,
            error_code="PIX_GATEWAY_BAD_RESPONSE",
            details={"operation": operation},
        )

    @classmethod
    def _raise_gateway_error(cls, response: httpx.Response, operation: str) -> NoReturn:
        """
        Log the upstream error body and raise PixGatewayError.

        The client receives the gateway's short message ("mensagem" or
        "title") and status code; the full body stays in the logs.
        """
        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text[:500]}
        if not isinstance(body, dict):
            body = {"raw": body}

        if response.status_code == 401:
            cache.delete(TOKEN_CACHE_KEY)

        cls.get_logger().error(
            "PIX gateway returned an error",
            extra={
                "operation": operation,
                "status_code": response.status_code,
                "response_body": body,
            },
        )
        message = body.get("mensagem") or body.get("title") or "Erro ao gerar o Pix"
        raise PixGatewayError(
            message,
            status_code=response.status_code,
            details={"operation": operation},
        )

"""
Tests for PIX charge issuance and status lookup.

The gateway is the FakePixGateway from payments/conftest.py.
"""

import uuid
from decimal import Decimal

import pytest

from core.exceptions import NotFoundError
from payments.exceptions import PaymentNotFoundError, PixGatewayError
from payments.models import PixCharge, Purchase
from payments.services import PixChargeService
from payments.state_machines import (
    PaymentMethod,
    PixChargeStatus,
    PixPaymentStatus,
    PurchaseStatus,
    PurchaseType,
)
from payments.tests.factories import PixChargeFactory, PixPaymentFactory


@pytest.mark.django_db
class TestCreateCharge:
    def test_creates_purchase_and_charge(self, seller, product, pix_gateway):
        result = PixChargeService.create_charge(
            user=seller,
            amount=Decimal("19.90"),
            purchase_type=PurchaseType.ACHADINHO_TURBO,
            product_id=product.id,
        )

        charge = PixCharge.objects.select_related("purchase").get(txid=result["txid"])
        assert result["qrcode"] == "00020101021226830014br.gov.bcb.pix"
        assert result["imagemQrcode"].startswith("data:image/png;base64,")
        assert charge.status == PixChargeStatus.PENDING
        assert charge.location_id == pix_gateway.location_id
        assert charge.purchase.owner == seller
        assert charge.purchase.product == product
        assert charge.purchase.status == PurchaseStatus.PENDING
        assert charge.purchase.payment_method == PaymentMethod.PIX

    def test_sends_amount_and_key_to_gateway(self, seller, product, pix_gateway):
        result = PixChargeService.create_charge(
            user=seller,
            amount=Decimal("5"),
            purchase_type=PurchaseType.CARROSSEL_PRACA,
            product_id=product.id,
        )

        cob = next(r for r in pix_gateway.requests if r.method == "PUT")
        assert cob.url.path == f"/v2/cob/{result['txid']}"
        assert b'"original":"5.00"' in cob.content.replace(b" ", b"")
        assert b"chave@example.com" in cob.content
        assert cob.headers["Authorization"] == "Bearer token-abc"

    def test_plan_needs_no_product(self, seller, pix_gateway):
        PixChargeService.create_charge(
            user=seller, amount=Decimal("29.90"), purchase_type=PurchaseType.PLANO
        )

        assert Purchase.objects.get().product is None

    def test_product_of_another_seller_is_rejected(self, buyer, product, pix_gateway):
        with pytest.raises(NotFoundError) as exc_info:
            PixChargeService.create_charge(
                user=buyer,
                amount=Decimal("19.90"),
                purchase_type=PurchaseType.ACHADINHO_TURBO,
                product_id=product.id,
            )

        assert exc_info.value.error_code == "PRODUCT_NOT_FOUND"
        assert pix_gateway.requests == []

    def test_gateway_rejection_removes_local_rows(self, seller, product, pix_gateway):
        pix_gateway.errors[("PUT", "/v2/cob/")] = (
            400,
            {"title": "Cobrança inválida", "mensagem": "Valor inválido"},
        )

        with pytest.raises(PixGatewayError) as exc_info:
            PixChargeService.create_charge(
                user=seller,
                amount=Decimal("19.90"),
                purchase_type=PurchaseType.ACHADINHO_TURBO,
                product_id=product.id,
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Valor inválido"
        assert not Purchase.objects.exists()
        assert not PixCharge.objects.exists()

    def test_unusable_gateway_reply_removes_local_rows(self, seller, product, pix_gateway):
        pix_gateway.errors[("PUT", "/v2/cob/")] = (201, {"status": "ATIVA"})

        with pytest.raises(PixGatewayError) as exc_info:
            PixChargeService.create_charge(
                user=seller,
                amount=Decimal("19.90"),
                purchase_type=PurchaseType.ACHADINHO_TURBO,
                product_id=product.id,
            )

        assert exc_info.value.status_code == 502
        assert not Purchase.objects.exists()
        assert not PixCharge.objects.exists()


@pytest.mark.django_db
class TestGetPaymentStatus:
    def test_charge_status(self, pending_charge):
        assert PixChargeService.get_payment_status(pending_charge.txid) == {
            "txid": pending_charge.txid,
            "status": PixChargeStatus.PENDING,
        }

    def test_payment_without_local_charge(self):
        payment = PixPaymentFactory()

        assert PixChargeService.get_payment_status(payment.txid) == {
            "txid": payment.txid,
            "status": PixPaymentStatus.COMPLETED,
        }

    def test_unknown_txid(self):
        with pytest.raises(PaymentNotFoundError):
            PixChargeService.get_payment_status(uuid.uuid4().hex)

    def test_confirmed_charge(self):
        charge = PixChargeFactory(status=PixChargeStatus.CONFIRMED)

        assert PixChargeService.get_payment_status(charge.txid)["status"] == "CONFIRMED"

    def test_owner_sees_own_charge(self, seller, pending_charge):
        result = PixChargeService.get_payment_status(pending_charge.txid, user=seller)

        assert result["status"] == PixChargeStatus.PENDING

    def test_other_user_cannot_see_charge(self, buyer, pending_charge):
        with pytest.raises(PaymentNotFoundError):
            PixChargeService.get_payment_status(pending_charge.txid, user=buyer)

    def test_payment_without_charge_is_admin_only(self, buyer, admin_user):
        payment = PixPaymentFactory()

        with pytest.raises(PaymentNotFoundError):
            PixChargeService.get_payment_status(payment.txid, user=buyer)
        assert PixChargeService.get_payment_status(payment.txid, user=admin_user) == {
            "txid": payment.txid,
            "status": PixPaymentStatus.COMPLETED,
        }

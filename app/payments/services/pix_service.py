"""
PIX charge issuance and webhook reconciliation.

PixChargeService:
    - create_charge: Purchase + PixCharge locally, then the gateway charge.
      If the gateway fails the local rows are removed again.
    - get_payment_status: status lookup by txid
    - expire_stale_charges: periodic sweep of unpaid charges

PixWebhookService:
    - ingest: records each notified payment exactly once. The existence
      check skips known txids cheaply; the unique constraint on
      PixPayment.txid settles concurrent deliveries of the same txid.

Usage:
    from payments.services import PixWebhookService

    summary = PixWebhookService.ingest(request_body.get("pix") or [])
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core.exceptions import NotFoundError
from core.helpers import generate_txid
from core.services import BaseService
from marketplace.models import Product

from payments.adapters import CreatePixChargeParams, PixGatewayAdapter
from payments.exceptions import PaymentNotFoundError
from payments.models import PixCharge, PixPayment, Purchase
from payments.services.purchase_service import PurchaseService, run_transition
from payments.state_machines import (
    PRODUCT_PURCHASE_TYPES,
    PaymentMethod,
    PixChargeStatus,
    PurchaseStatus,
    PurchaseType,
)

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from authentication.models import User

# Column limits of PixPayment.txid and PixPayment.amount (numeric(12,2))
MAX_TXID_LENGTH = 64
MAX_AMOUNT = Decimal("10000000000")
CENT = Decimal("0.01")


class PixChargeService(BaseService):
    """Issues PIX charges and tracks their lifecycle."""

    @classmethod
    def create_charge(
        cls,
        user: User,
        amount: Decimal,
        purchase_type: str,
        product_id=None,
    ) -> dict[str, str]:
        """
        Create a pending purchase and an immediate PIX charge for it.

        Returns:
            {"txid", "qrcode", "imagemQrcode"}

        Raises:
            NotFoundError: productId is not one of the seller's products
            PaymentConfigurationError: Gateway settings missing
            PixGatewayError: Gateway rejected the charge (rows removed)
        """
        logger = cls.get_logger()

        product = None
        if purchase_type in PRODUCT_PURCHASE_TYPES:
            product = Product.objects.filter(pk=product_id, seller=user).first()
            if product is None:
                raise NotFoundError(
                    "Product not found",
                    error_code="PRODUCT_NOT_FOUND",
                    details={"product_id": str(product_id)},
                )

        expiration = settings.PIX_CHARGE_EXPIRATION_SECONDS
        with cls.atomic():
            purchase = Purchase.objects.create(
                owner=user,
                product=product,
                type=purchase_type,
                amount=amount,
                payment_method=PaymentMethod.PIX,
            )
            charge = PixCharge.objects.create(
                txid=generate_txid(),
                purchase=purchase,
                amount=amount,
                expires_at=timezone.now() + timedelta(seconds=expiration),
            )

        try:
            result = PixGatewayAdapter.create_charge(
                CreatePixChargeParams(
                    txid=charge.txid,
                    amount=amount,
                    description=f"Compra de {PurchaseType(purchase_type).label}",
                    expiration_seconds=expiration,
                )
            )
        except Exception:
            logger.warning(
                "PIX charge failed at the gateway, removing local purchase",
                extra={"txid": charge.txid, "purchase_id": str(purchase.pk)},
            )
            purchase.delete()
            raise

        charge.location_id = result.location_id
        charge.qr_code = result.qrcode
        charge.save(update_fields=["location_id", "qr_code", "updated_at"])

        logger.info(
            "PIX charge created",
            extra={
                "txid": charge.txid,
                "purchase_id": str(purchase.pk),
                "purchase_type": purchase_type,
                "user_id": user.pk,
            },
        )
        return {
            "txid": charge.txid,
            "qrcode": result.qrcode,
            "imagemQrcode": result.imagem_qrcode,
        }

    @classmethod
    def get_payment_status(cls, txid: str, user: User | None = None) -> dict[str, str]:
        """
        Status of a PIX payment by txid.

        The charge we issued wins; a PixPayment without a local charge
        (paid outside this system) is reported as recorded. When a user is
        given, only charges they own are visible; admins see everything.

        Raises:
            PaymentNotFoundError: No visible charge or payment exists
        """
        restricted = user is not None and not user.is_marketplace_admin

        charges = PixCharge.objects.filter(txid=txid)
        if restricted:
            charges = charges.filter(purchase__owner=user)
        charge = charges.only("txid", "status").first()
        if charge is not None:
            return {"txid": charge.txid, "status": charge.status}

        if not restricted:
            payment = PixPayment.objects.filter(txid=txid).only("txid", "status").first()
            if payment is not None:
                return {"txid": payment.txid, "status": payment.status}

        raise PaymentNotFoundError(
            "Payment not found",
            details={"txid": txid},
        )

    @classmethod
    def expire_stale_charges(cls) -> int:
        """
        Expire PENDING charges past expires_at and fail their purchases.

        Returns:
            Number of charges expired
        """
        logger = cls.get_logger()
        stale_ids = list(
            PixCharge.objects.filter(
                status=PixChargeStatus.PENDING,
                expires_at__lte=timezone.now(),
            ).values_list("pk", flat=True)
        )

        expired = 0
        for charge_id in stale_ids:
            with cls.atomic():
                charge = (
                    PixCharge.objects.select_for_update()
                    .select_related("purchase")
                    .filter(pk=charge_id, status=PixChargeStatus.PENDING)
                    .first()
                )
                # Paid between the scan and the lock
                if charge is None:
                    continue
                run_transition(charge, "expire")
                if charge.purchase.status == PurchaseStatus.PENDING:
                    run_transition(charge.purchase, "mark_failed")
            expired += 1

        if expired:
            logger.info("Stale PIX charges expired", extra={"count": expired})
        return expired


class PixWebhookService(BaseService):
    """Records gateway payment notifications exactly once."""

    @classmethod
    def parse_entry(cls, entry: Any) -> dict[str, Any] | None:
        """
        Validate one notification of the "pix" array.

        Returns:
            Normalized fields, or None if the entry must be ignored
        """
        if not isinstance(entry, dict):
            return None

        txid = entry.get("txid")
        if not isinstance(txid, str) or not txid.strip():
            return None
        txid = txid.strip()
        if len(txid) > MAX_TXID_LENGTH:
            return None

        try:
            amount = Decimal(str(entry.get("valor")))
        except (InvalidOperation, ValueError):
            return None
        if not amount.is_finite() or amount <= 0 or amount >= MAX_AMOUNT:
            return None
        if amount != amount.quantize(CENT):
            return None

        paid_at: datetime | None = None
        horario = entry.get("horario")
        if horario:
            try:
                paid_at = parse_datetime(str(horario))
            except ValueError:
                return None
            if paid_at is None:
                return None
            if timezone.is_naive(paid_at):
                paid_at = timezone.make_aware(paid_at)

        return {
            "txid": txid,
            "amount": amount,
            "end_to_end_id": str(entry.get("endToEndId") or "")[:64],
            "paid_at": paid_at,
        }

    @classmethod
    def ingest(cls, entries: list[Any]) -> dict[str, int]:
        """
        Record every notification of a webhook batch.

        Invalid entries are counted and skipped. Database errors other than
        the duplicate-txid race propagate so the gateway redelivers.

        Returns:
            {"received", "recorded", "duplicates", "ignored"}
        """
        logger = cls.get_logger()
        summary = {"received": len(entries), "recorded": 0, "duplicates": 0, "ignored": 0}

        for entry in entries:
            fields = cls.parse_entry(entry)
            if fields is None:
                logger.warning("Ignoring invalid PIX notification", extra={"entry": entry})
                summary["ignored"] += 1
                continue

            txid = fields["txid"]
            if PixPayment.objects.filter(txid=txid).exists():
                logger.info("PIX payment already recorded", extra={"txid": txid})
                summary["duplicates"] += 1
                continue

            try:
                with cls.atomic():
                    payment = PixPayment.objects.create(raw_payload=entry, **fields)
                    cls.reconcile(payment)
            except IntegrityError:
                logger.info(
                    "PIX payment recorded by a concurrent delivery",
                    extra={"txid": txid},
                )
                summary["duplicates"] += 1
                continue

            summary["recorded"] += 1

        logger.info("PIX webhook processed", extra=summary)
        return summary

    @classmethod
    def reconcile(cls, payment: PixPayment) -> bool:
        """
        Confirm the pending charge matching a newly recorded payment.

        Runs inside the transaction that inserted the payment: the charge is
        confirmed, its purchase marked PAID and the benefit applied.

        Returns:
            True if a charge was confirmed
        """
        logger = cls.get_logger()
        charge = (
            PixCharge.objects.select_for_update()
            .select_related("purchase")
            .filter(txid=payment.txid, status=PixChargeStatus.PENDING)
            .first()
        )
        if charge is None:
            logger.warning(
                "No pending PIX charge for payment",
                extra={"txid": payment.txid},
            )
            return False

        if payment.amount < charge.amount:
            logger.warning(
                "PIX payment below charged amount, charge left pending",
                extra={
                    "txid": payment.txid,
                    "charged": str(charge.amount),
                    "paid": str(payment.amount),
                },
            )
            return False

        run_transition(charge, "confirm")

        purchase = charge.purchase
        if purchase.status != PurchaseStatus.PENDING:
            logger.warning(
                "Purchase for confirmed PIX charge is not pending",
                extra={"txid": payment.txid, "purchase_status": purchase.status},
            )
            return True

        run_transition(purchase, "mark_paid")
        PurchaseService.apply_benefit(purchase)

        logger.info(
            "PIX charge confirmed",
            extra={"txid": payment.txid, "purchase_id": str(purchase.pk)},
        )
        return True

"""
Tests for the PIX gateway webhook.

POST /api/v1/payments/pix/webhook/

Covers:
- One PixPayment per txid no matter how often it is delivered
- Reconciliation of the matching charge, purchase and product benefit
- Invalid entries are skipped without failing the batch
- Storage failures answer 500 so the gateway redelivers
"""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError
from django.urls import reverse_lazy
from rest_framework import status

from payments.models import PixPayment
from payments.services import PixWebhookService
from payments.state_machines import PixChargeStatus, PurchaseStatus

WEBHOOK_URL = reverse_lazy("payments:pix-webhook")


def notification(txid, valor="19.90", **extra):
    return {
        "txid": txid,
        "valor": valor,
        "endToEndId": f"E18236120202603011200{txid[:10]}",
        "horario": "2026-03-01T12:00:00.000Z",
        **extra,
    }


def deliver(client, *entries):
    return client.post(WEBHOOK_URL, {"pix": list(entries)}, format="json")


@pytest.mark.django_db
class TestPixWebhookIdempotency:
    def test_records_new_payment(self, api_client):
        response = deliver(api_client, notification("a" * 32))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "status": "ok",
            "received": 1,
            "recorded": 1,
            "duplicates": 0,
            "ignored": 0,
        }
        payment = PixPayment.objects.get(txid="a" * 32)
        assert payment.amount == Decimal("19.90")
        assert payment.paid_at == datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)
        assert payment.raw_payload["txid"] == "a" * 32

    def test_redelivery_keeps_single_row(self, api_client):
        entry = notification("b" * 32)

        responses = [deliver(api_client, entry) for _ in range(5)]

        assert all(r.status_code == status.HTTP_200_OK for r in responses)
        assert PixPayment.objects.filter(txid="b" * 32).count() == 1
        assert [r.json()["duplicates"] for r in responses] == [0, 1, 1, 1, 1]

    def test_redelivery_with_different_amount_does_not_overwrite(self, api_client):
        deliver(api_client, notification("c" * 32, valor="10.00"))

        deliver(api_client, notification("c" * 32, valor="99.00"))

        assert PixPayment.objects.get(txid="c" * 32).amount == Decimal("10.00")

    def test_duplicates_inside_one_batch(self, api_client):
        entry = notification("d" * 32)

        response = deliver(api_client, entry, entry)

        assert response.json()["recorded"] == 1
        assert response.json()["duplicates"] == 1

    def test_insert_race_counts_as_duplicate(self, pending_charge):
        PixPayment.objects.create(
            txid=pending_charge.txid, amount=Decimal("19.90"), raw_payload={}
        )

        # Both deliveries passed the existence check before either inserted
        with patch("django.db.models.query.QuerySet.exists", return_value=False):
            summary = PixWebhookService.ingest([notification(pending_charge.txid)])

        assert summary == {"received": 1, "recorded": 0, "duplicates": 1, "ignored": 0}
        assert PixPayment.objects.filter(txid=pending_charge.txid).count() == 1
        pending_charge.refresh_from_db()
        assert pending_charge.status == PixChargeStatus.PENDING


@pytest.mark.django_db
class TestPixWebhookBatch:
    def test_processes_every_entry(self, api_client):
        response = deliver(
            api_client,
            notification("e" * 32),
            {"valor": "5.00"},
            notification("f" * 32, valor="-1"),
            notification("g" * 32, valor="abc"),
            "not-an-object",
            notification("h" * 32, horario="yesterday"),
            notification("i" * 32),
        )

        assert response.json() == {
            "status": "ok",
            "received": 7,
            "recorded": 2,
            "duplicates": 0,
            "ignored": 5,
        }
        assert set(PixPayment.objects.values_list("txid", flat=True)) == {"e" * 32, "i" * 32}

    def test_empty_batch(self, api_client):
        response = deliver(api_client)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["received"] == 0

    def test_missing_pix_key(self, api_client):
        response = api_client.post(WEBHOOK_URL, {}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["received"] == 0

    def test_oversized_entries_do_not_fail_the_batch(self, api_client):
        response = deliver(
            api_client,
            notification("x" * 200),
            notification("k" * 32, valor="99999999999.00"),
            notification("m" * 32),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["recorded"] == 1
        assert response.json()["ignored"] == 2
        assert list(PixPayment.objects.values_list("txid", flat=True)) == ["m" * 32]

    @pytest.mark.parametrize(
        "body",
        [
            "{not json",
            "not json",
            "[]",
            '"text"',
            '{"pix": "garbage"}',
            '{"pix": {"txid": "x"}}',
        ],
    )
    def test_malformed_body_is_acknowledged(self, api_client, body):
        response = api_client.post(WEBHOOK_URL, data=body, content_type="application/json")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "status": "ok",
            "received": 0,
            "recorded": 0,
            "duplicates": 0,
            "ignored": 0,
        }
        assert not PixPayment.objects.exists()

    def test_only_post_is_allowed(self, api_client):
        assert api_client.get(WEBHOOK_URL).status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_storage_failure_returns_500(self, api_client):
        with patch.object(
            PixPayment.objects, "create", side_effect=OperationalError("database is down")
        ):
            response = deliver(api_client, notification("j" * 32))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert not PixPayment.objects.exists()


@pytest.mark.django_db
class TestPixWebhookReconciliation:
    def test_confirms_charge_and_applies_benefit(self, api_client, pending_charge, product):
        deliver(api_client, notification(pending_charge.txid, valor="19.90"))

        pending_charge.refresh_from_db()
        purchase = pending_charge.purchase
        purchase.refresh_from_db()
        product.refresh_from_db()
        assert pending_charge.status == PixChargeStatus.CONFIRMED
        assert purchase.status == PurchaseStatus.PAID
        assert product.boosted_until is not None

    def test_redelivery_does_not_extend_benefit_again(self, api_client, pending_charge, product):
        entry = notification(pending_charge.txid)
        deliver(api_client, entry)
        product.refresh_from_db()
        boosted_until = product.boosted_until

        deliver(api_client, entry)

        product.refresh_from_db()
        assert product.boosted_until == boosted_until

    def test_underpayment_leaves_charge_pending(self, api_client, pending_charge):
        deliver(api_client, notification(pending_charge.txid, valor="10.00"))

        pending_charge.refresh_from_db()
        assert pending_charge.status == PixChargeStatus.PENDING
        assert PixPayment.objects.filter(txid=pending_charge.txid).exists()

    def test_expired_charge_is_not_revived(self, api_client, pending_charge):
        pending_charge.status = PixChargeStatus.EXPIRED
        pending_charge.save()

        deliver(api_client, notification(pending_charge.txid))

        pending_charge.refresh_from_db()
        assert pending_charge.status == PixChargeStatus.EXPIRED
        assert PixPayment.objects.filter(txid=pending_charge.txid).exists()


class TestParseEntry:
    def test_normalizes_fields(self):
        fields = PixWebhookService.parse_entry(
            {"txid": " abc ", "valor": "1.50", "endToEndId": "E" * 80}
        )

        assert fields == {
            "txid": "abc",
            "amount": Decimal("1.50"),
            "end_to_end_id": "E" * 64,
            "paid_at": None,
        }

    def test_naive_timestamp_becomes_aware(self):
        fields = PixWebhookService.parse_entry(
            {"txid": "abc", "valor": 1, "horario": "2026-03-01T09:00:00"}
        )

        assert fields["paid_at"].tzinfo is not None

    @pytest.mark.parametrize(
        "entry",
        [
            None,
            [],
            {"valor": "1.00"},
            {"txid": "", "valor": "1.00"},
            {"txid": 123, "valor": "1.00"},
            {"txid": "abc"},
            {"txid": "abc", "valor": "0"},
            {"txid": "abc", "valor": "NaN"},
            {"txid": "abc", "valor": "Infinity"},
            {"txid": "abc", "valor": "1.00", "horario": "not a date"},
            {"txid": "x" * 65, "valor": "1.00"},
            {"txid": "x" * 200, "valor": "1.00"},
            {"txid": "abc", "valor": "10000000000.00"},
            {"txid": "abc", "valor": "1e20"},
            {"txid": "abc", "valor": "1.005"},
        ],
    )
    def test_rejects_invalid_entries(self, entry):
        assert PixWebhookService.parse_entry(entry) is None

    def test_accepts_values_at_column_limits(self):
        fields = PixWebhookService.parse_entry(
            {"txid": "x" * 64, "valor": "9999999999.99"}
        )

        assert fields["txid"] == "x" * 64
        assert fields["amount"] == Decimal("9999999999.99")

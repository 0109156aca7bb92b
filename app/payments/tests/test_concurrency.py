"""
Concurrency tests for payment idempotency.

Each worker thread gets its own database connection, so these only mean
something on PostgreSQL; SQLite serializes writers and is skipped.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest
from django.db import connection, connections

from authentication.tests.factories import AdminFactory
from payments.exceptions import InvalidStateTransitionError
from payments.models import PixPayment
from payments.services import PixWebhookService, PurchaseService
from payments.state_machines import PixChargeStatus, PurchaseStatus, SubmissionStatus

pytestmark = [
    pytest.mark.django_db(transaction=True),
    pytest.mark.skipif(
        connection.vendor != "postgresql",
        reason="Row locking needs PostgreSQL",
    ),
]

WORKERS = 8


def run_concurrently(func, workers=WORKERS):
    """Start func in every worker at the same moment; return results or exceptions."""
    barrier = Barrier(workers)

    def worker():
        barrier.wait()
        try:
            return func()
        except Exception as e:
            return e
        finally:
            connections.close_all()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(worker) for _ in range(workers)]
        return [f.result() for f in futures]


def test_same_txid_delivered_concurrently_records_once(pending_charge):
    entry = {"txid": pending_charge.txid, "valor": "19.90", "endToEndId": "E1"}

    results = run_concurrently(lambda: PixWebhookService.ingest([entry]))

    assert all(isinstance(r, dict) for r in results), results
    assert sum(r["recorded"] for r in results) == 1
    assert sum(r["duplicates"] for r in results) == WORKERS - 1
    assert PixPayment.objects.filter(txid=pending_charge.txid).count() == 1
    pending_charge.refresh_from_db()
    pending_charge.purchase.refresh_from_db()
    assert pending_charge.status == PixChargeStatus.CONFIRMED
    assert pending_charge.purchase.status == PurchaseStatus.PAID
    assert PixPayment.objects.get().amount == Decimal("19.90")


def test_carousel_confirmed_once(seller, product, carousel_purchase):
    notification = PurchaseService.request_carousel(
        seller=seller, product_id=product.id, purchase_id=carousel_purchase.id
    )
    admin = AdminFactory()

    results = run_concurrently(lambda: PurchaseService.confirm_carousel(notification.id, admin))

    confirmed = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, InvalidStateTransitionError)]
    assert len(confirmed) == 1
    assert len(conflicts) == WORKERS - 1
    carousel_purchase.refresh_from_db()
    assert carousel_purchase.submission_status == SubmissionStatus.USED

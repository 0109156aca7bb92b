"""
Fixtures for marketplace tests.

Users and API clients (buyer, seller, buyer_client...) come from the
root app/conftest.py.
"""

import pytest

from marketplace.models import ReservationStatus
from marketplace.tests.factories import ProductFactory, ReservationFactory


@pytest.fixture
def product(seller):
    """Seller's product with 10 units in stock."""
    return ProductFactory(seller=seller, quantity=10)


@pytest.fixture
def reservation(buyer, product):
    """PENDING reservation of 2 units; stock already reflects the hold."""
    product.quantity -= 2
    product.save(update_fields=["quantity"])
    return ReservationFactory(buyer=buyer, product=product, quantity=2)


@pytest.fixture
def completed_reservation(buyer, product):
    return ReservationFactory(
        buyer=buyer,
        product=product,
        status=ReservationStatus.COMPLETED,
        review_token="a" * 64,
    )

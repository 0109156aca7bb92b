"""
Fixtures for notification tests.

Users and API clients come from the root app/conftest.py.
"""

import pytest

from notifications.tests.factories import CarouselRequestFactory
from payments.state_machines import SubmissionStatus
from payments.tests.factories import CarouselPurchaseFactory


@pytest.fixture
def pending_carousel_request(seller):
    """Carousel request awaiting admin approval, with its paid purchase."""
    purchase = CarouselPurchaseFactory(
        owner=seller,
        submission_status=SubmissionStatus.PENDING_APPROVAL,
    )
    return CarouselRequestFactory(seller=seller, purchase=purchase)

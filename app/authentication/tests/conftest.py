"""
Fixtures for authentication tests.

Shared user and API client fixtures (buyer, seller, admin_user,
api_client, buyer_client...) live in the root app/conftest.py.
"""

import pytest

from authentication.models import User


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="root@example.com",
        password="RootPass123!",
    )

"""
Tests for the User model.

Focus on the role helpers and the subscription access rule used by the
payments status endpoint.
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.utils import timezone
from freezegun import freeze_time

from authentication.models import SubscriptionStatus, UserRole
from authentication.tests.factories import AdminFactory, SellerFactory, UserFactory


@pytest.mark.django_db
class TestUserRoles:
    """Role helper properties."""

    def test_buyer_is_neither_seller_nor_admin(self):
        buyer = UserFactory()

        assert buyer.is_seller is False
        assert buyer.is_marketplace_admin is False

    def test_seller_role(self):
        assert SellerFactory().is_seller is True

    def test_admin_role(self):
        assert AdminFactory().is_marketplace_admin is True

    def test_staff_buyer_counts_as_admin(self):
        assert UserFactory(is_staff=True, role=UserRole.BUYER).is_marketplace_admin

    def test_str_is_email(self):
        assert str(UserFactory(email="ana@example.com")) == "ana@example.com"

    def test_full_name_falls_back_to_email(self):
        user = UserFactory(name="", email="anon@example.com")

        assert user.get_full_name() == "anon@example.com"
        assert user.get_short_name() == "anon"


@pytest.mark.django_db
class TestStripeCustomerId:
    """The cached Stripe customer id is unique per user."""

    def test_duplicate_customer_id_rejected(self):
        UserFactory(stripe_customer_id="cus_shared")

        with pytest.raises(IntegrityError):
            UserFactory(stripe_customer_id="cus_shared")

    def test_many_users_without_customer_id(self):
        UserFactory(stripe_customer_id=None)
        UserFactory(stripe_customer_id=None)


@pytest.mark.django_db
class TestHasActiveSubscription:
    """Subscription access requires an active status and an open period."""

    @freeze_time("2024-06-01 12:00:00")
    def test_active_with_future_period_end(self):
        user = UserFactory(
            stripe_subscription_status=SubscriptionStatus.ACTIVE,
            stripe_current_period_end=timezone.now() + timedelta(days=10),
        )

        assert user.has_active_subscription is True

    @freeze_time("2024-06-01 12:00:00")
    def test_trialing_counts_as_active(self):
        user = UserFactory(
            stripe_subscription_status=SubscriptionStatus.TRIALING,
            stripe_current_period_end=timezone.now() + timedelta(days=1),
        )

        assert user.has_active_subscription is True

    @freeze_time("2024-06-01 12:00:00")
    def test_expired_period_is_inactive(self):
        user = UserFactory(
            stripe_subscription_status=SubscriptionStatus.ACTIVE,
            stripe_current_period_end=timezone.now() - timedelta(seconds=1),
        )

        assert user.has_active_subscription is False

    def test_canceled_is_inactive(self):
        user = UserFactory(
            stripe_subscription_status=SubscriptionStatus.CANCELED,
            stripe_current_period_end=timezone.now() + timedelta(days=10),
        )

        assert user.has_active_subscription is False

    def test_no_subscription(self):
        assert UserFactory().has_active_subscription is False

"""
Tests for UserManager.

Covers email-based creation, password handling and the superuser
defaults that make superusers marketplace admins.
"""

import pytest

from authentication.models import User, UserRole


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user()."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then the user can authenticate with that password
        """
        user = User.objects.create_user(
            email="mgr_create@example.com", password="SecurePass123!"
        )

        assert user.pk is not None
        assert user.check_password("SecurePass123!") is True

    def test_defaults_to_buyer_role(self, db):
        user = User.objects.create_user(email="buyer@example.com", password="x")

        assert user.role == UserRole.BUYER
        assert user.is_staff is False

    def test_normalizes_email_domain_to_lowercase(self, db):
        user = User.objects.create_user(email="Ana.Souza@EXAMPLE.COM", password="x")

        assert user.email == "Ana.Souza@example.com"

    def test_user_without_password_cannot_log_in(self, db):
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_raises_valueerror_when_email_is_empty(self, db):
        with pytest.raises(ValueError) as exc_info:
            User.objects.create_user(email="", password="TestPass123!")

        assert "Email field must be set" in str(exc_info.value)

    def test_accepts_marketplace_fields(self, db):
        seller = User.objects.create_user(
            email="loja@example.com",
            password="x",
            role=UserRole.SELLER,
            store_name="Loja da Ana",
            name="Ana",
        )

        assert seller.is_seller is True
        assert seller.store_name == "Loja da Ana"


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser()."""

    def test_superuser_is_marketplace_admin(self, superuser):
        assert superuser.is_staff is True
        assert superuser.is_superuser is True
        assert superuser.role == UserRole.ADMIN
        assert superuser.is_marketplace_admin is True

    def test_rejects_superuser_without_staff_flag(self, db):
        with pytest.raises(ValueError, match="is_staff=True"):
            User.objects.create_superuser(
                email="bad@example.com", password="x", is_staff=False
            )

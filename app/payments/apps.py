"""
Payments app configuration.

This app provides payment processing infrastructure including:
- PIX gateway charges and webhook reconciliation
- Stripe checkout, subscriptions and webhook handling
- Purchase entitlements
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

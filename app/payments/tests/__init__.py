"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Purchase/PixCharge/PixPayment state rules
- test_services.py: Benefits, carousel lifecycle, charge expiry
- test_pix.py: PIX charge issuance and status lookup
- test_pix_webhook.py: Idempotent PIX webhook ingestion
- test_checkout.py: Stripe checkout provisioning
- test_views.py: Authenticated payment endpoints
- test_concurrency.py: Concurrent delivery and transition races (PostgreSQL)
"""

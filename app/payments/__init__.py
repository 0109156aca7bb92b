"""
Payments app: PIX and Stripe payments for marketplace entitlements.

This app handles:
- PIX charge issuance and gateway webhook reconciliation
- Stripe customers, hosted checkout and subscription sync
- Purchases and their submission lifecycle (carousel requests)
- Stripe webhook event ledger and retries

Related apps:
    - authentication: User model carrying the Stripe customer/subscription
    - marketplace: Products receiving purchase benefits
    - notifications: Admin notifications and seller emails

Usage:
    from payments.services import PixWebhookService

    summary = PixWebhookService.ingest(body.get("pix") or [])
"""

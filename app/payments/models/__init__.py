"""
Payment models.

- Purchase: paid promotional entitlement with payment and consumption FSMs
- PixCharge: charge issued at the PIX gateway for a Purchase
- PixPayment: append-only record of a settled PIX payment (one per txid)
- WebhookEvent: Stripe event ledger for idempotent processing
"""

from payments.models.pix import PixCharge, PixPayment
from payments.models.purchase import Purchase
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "PixCharge",
    "PixPayment",
    "Purchase",
    "WebhookEvent",
]

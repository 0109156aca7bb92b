"""
URL configuration for the payments app.

Routes:
    - POST /pix/ - Issue a PIX charge
    - POST /pix/webhook/ - PIX gateway callback
    - GET  /pix/status/<txid>/ - PIX payment status
    - POST /checkout-session/ - Stripe hosted checkout
    - POST /webhooks/stripe/ - Stripe webhook endpoint
    - POST /carousel-requests/ - Request carousel placement
    - GET  /status/ - Caller's subscription and entitlements

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import (
    CarouselRequestView,
    CheckoutSessionView,
    PixChargeCreateView,
    PixPaymentStatusView,
    UserPaymentStatusView,
)
from payments.webhooks.views import pix_webhook, stripe_webhook

app_name = "payments"

urlpatterns = [
    path("pix/", PixChargeCreateView.as_view(), name="pix-charge"),
    path("pix/status/<str:txid>/", PixPaymentStatusView.as_view(), name="pix-status"),
    path("checkout-session/", CheckoutSessionView.as_view(), name="checkout-session"),
    path("carousel-requests/", CarouselRequestView.as_view(), name="carousel-request"),
    path("status/", UserPaymentStatusView.as_view(), name="user-status"),
    # Webhook endpoints
    path("pix/webhook/", pix_webhook, name="pix-webhook"),
    path("webhooks/stripe/", stripe_webhook, name="stripe-webhook"),
]

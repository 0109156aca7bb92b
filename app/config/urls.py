"""
Root URL configuration for the marketplace backend.

URL Structure:
    /                                   - ReDoc API documentation
    /schema/                            - OpenAPI schema
    /admin/                             - Django admin interface
    /health/                            - Health check endpoint
    /api/v1/auth/token/                 - Obtain JWT pair (POST)
    /api/v1/auth/token/refresh/         - Refresh JWT (POST)
    /api/v1/payments/                   - Payment endpoints
        pix/                            - Issue a PIX charge (POST)
        pix/webhook/                    - PIX gateway callback (POST)
        pix/status/{txid}/              - PIX payment status (GET)
        checkout-session/               - Stripe hosted checkout (POST)
        webhooks/stripe/                - Stripe webhook endpoint (POST)
        status/                         - Caller's entitlements (GET)
        carousel-requests/              - Request carousel placement (POST)
    /api/v1/notifications/
        {id}/confirm-carousel/          - Admin confirms carousel (PATCH)
    /api/v1/marketplace/
        reservations/                   - List/create reservations
        reservations/{id}/              - Cancel/update a reservation
        reservations/{id}/mark-as-read/ - Admin marks reservation read
        sales/{id}/                     - Seller completes/cancels a sale
        reviews/                        - Submit a review (POST)
        reviews/{token}/                - Review form details (GET)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("marketplace/", include("marketplace.urls")),
    path("notifications/", include("notifications.urls")),
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Marketplace Admin"
admin.site.site_title = "Marketplace Admin"
admin.site.index_title = "Marketplace administration"

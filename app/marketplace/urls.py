"""
URL configuration for the marketplace app.

All routes are prefixed with /api/v1/marketplace/ when included in the
main URLconf.
"""

from django.urls import path

from marketplace.views import (
    ReservationDetailView,
    ReservationListCreateView,
    ReservationMarkReadView,
    ReviewCreateView,
    ReviewDetailView,
    SaleDetailView,
)

app_name = "marketplace"

urlpatterns = [
    path("reservations/", ReservationListCreateView.as_view(), name="reservation-list"),
    path(
        "reservations/<uuid:reservation_id>/",
        ReservationDetailView.as_view(),
        name="reservation-detail",
    ),
    path(
        "reservations/<uuid:reservation_id>/mark-as-read/",
        ReservationMarkReadView.as_view(),
        name="reservation-mark-read",
    ),
    path("sales/<uuid:reservation_id>/", SaleDetailView.as_view(), name="sale-detail"),
    path("reviews/", ReviewCreateView.as_view(), name="review-create"),
    path("reviews/<str:token>/", ReviewDetailView.as_view(), name="review-detail"),
]

"""
URL configuration for the notifications API.

Routes:
    /{id}/confirm-carousel/ - Confirm a carousel request (PATCH)

All routes are prefixed with /api/v1/notifications/ when included in the
main URLconf.
"""

from django.urls import path

from notifications.views import ConfirmCarouselView

app_name = "notifications"

urlpatterns = [
    path(
        "<uuid:notification_id>/confirm-carousel/",
        ConfirmCarouselView.as_view(),
        name="confirm-carousel",
    ),
]

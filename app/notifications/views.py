"""
Views for the admin notification API.

Endpoints:
    PATCH /api/v1/notifications/{id}/confirm-carousel/
        Approve a seller's carousel request (marketplace admins only)
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import IsMarketplaceAdmin
from core.exceptions import BaseApplicationError
from core.views import error_response
from payments.services import PurchaseService

logger = logging.getLogger(__name__)


class ConfirmCarouselView(APIView):
    """
    Confirm a carousel request.

    PATCH /api/v1/notifications/{id}/confirm-carousel/

    Consumes the purchase attached to the notification (PENDING_APPROVAL ->
    USED) and marks the notification read. A second confirmation of the
    same request returns 409.

    Returns:
        {"id", "purchaseId", "submissionStatus", "isRead"}
    """

    permission_classes = [IsMarketplaceAdmin]

    @extend_schema(
        operation_id="confirm_carousel_request",
        summary="Confirm carousel request",
        request=None,
        responses={
            200: OpenApiResponse(description="Purchase consumed"),
            404: OpenApiResponse(description="Notification not found"),
            409: OpenApiResponse(description="Request already confirmed"),
        },
        tags=["Notifications - Admin"],
    )
    def patch(self, request, notification_id):
        try:
            notification = PurchaseService.confirm_carousel(
                notification_id=notification_id,
                admin=request.user,
            )
        except BaseApplicationError as e:
            return error_response(e)

        purchase = notification.purchase
        return Response(
            {
                "id": str(notification.id),
                "purchaseId": str(purchase.id),
                "submissionStatus": purchase.submission_status,
                "isRead": notification.is_read,
            },
            status=status.HTTP_200_OK,
        )

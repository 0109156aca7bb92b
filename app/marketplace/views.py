"""
Views for the marketplace API.

Endpoints:
    GET    /api/v1/marketplace/reservations/                  - Buyer's reservations
    POST   /api/v1/marketplace/reservations/                  - Reserve product units
    PATCH  /api/v1/marketplace/reservations/{id}/             - Cancel (buyer)
    DELETE /api/v1/marketplace/reservations/{id}/             - Delete (buyer)
    PATCH  /api/v1/marketplace/reservations/{id}/mark-as-read/ - Admin read flag
    PATCH  /api/v1/marketplace/sales/{id}/                    - Complete or cancel (seller)
    GET    /api/v1/marketplace/reviews/{token}/               - Review link details
    POST   /api/v1/marketplace/reviews/                       - Submit review

Security:
    - Review endpoints are public; possession of the token is the credential
    - Everything else requires authentication
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import IsMarketplaceAdmin, IsSeller
from core.exceptions import BaseApplicationError
from core.views import error_response
from marketplace.serializers import (
    ReservationCreateSerializer,
    ReservationSerializer,
    ReservationUpdateSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    SaleUpdateSerializer,
)
from marketplace.services import ReservationService, ReviewService, SaleService


class ReservationListCreateView(APIView):
    """
    List or create the authenticated buyer's reservations.

    POST body:
        {"productId": "<uuid>", "quantity": 2}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_reservations",
        responses={200: ReservationSerializer(many=True)},
        tags=["Marketplace - Reservations"],
    )
    def get(self, request):
        reservations = ReservationService.list_for_buyer(request.user)
        return Response(ReservationSerializer(reservations, many=True).data)

    @extend_schema(
        operation_id="create_reservation",
        request=ReservationCreateSerializer,
        responses={
            201: ReservationSerializer,
            400: OpenApiResponse(description="Invalid input or insufficient stock"),
            404: OpenApiResponse(description="Product not found"),
        },
        tags=["Marketplace - Reservations"],
    )
    def post(self, request):
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reservation = ReservationService.create_reservation(
                buyer=request.user,
                product_id=serializer.validated_data["productId"],
                quantity=serializer.validated_data["quantity"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            ReservationSerializer(reservation).data,
            status=status.HTTP_201_CREATED,
        )


class ReservationDetailView(APIView):
    """Buyer cancellation and deletion of a single reservation."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="cancel_reservation",
        request=ReservationUpdateSerializer,
        responses={200: ReservationSerializer},
        tags=["Marketplace - Reservations"],
    )
    def patch(self, request, reservation_id):
        serializer = ReservationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reservation = ReservationService.cancel_reservation(
                reservation_id=reservation_id,
                buyer=request.user,
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(ReservationSerializer(reservation).data)

    @extend_schema(
        operation_id="delete_reservation",
        responses={200: OpenApiResponse(description="Reservation deleted")},
        tags=["Marketplace - Reservations"],
    )
    def delete(self, request, reservation_id):
        try:
            ReservationService.delete_reservation(
                reservation_id=reservation_id,
                buyer=request.user,
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            {"message": "Reservation deleted", "id": str(reservation_id)},
            status=status.HTTP_200_OK,
        )


class ReservationMarkReadView(APIView):
    """Flag a reservation as seen in the admin dashboard."""

    permission_classes = [IsMarketplaceAdmin]

    @extend_schema(
        operation_id="mark_reservation_read",
        request=None,
        responses={200: ReservationSerializer},
        tags=["Marketplace - Reservations"],
    )
    def patch(self, request, reservation_id):
        try:
            reservation = ReservationService.mark_read_by_admin(reservation_id)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(ReservationSerializer(reservation).data)


class SaleDetailView(APIView):
    """
    Seller finalization of a reservation.

    PATCH body:
        {"status": "COMPLETED"} or {"status": "CANCELLED"}
    """

    permission_classes = [IsAuthenticated, IsSeller | IsMarketplaceAdmin]

    @extend_schema(
        operation_id="finalize_sale",
        request=SaleUpdateSerializer,
        responses={
            200: ReservationSerializer,
            404: OpenApiResponse(description="Not one of the seller's reservations"),
            409: OpenApiResponse(description="Reservation already finalized"),
        },
        tags=["Marketplace - Sales"],
    )
    def patch(self, request, reservation_id):
        serializer = SaleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reservation = SaleService.finalize_sale(
                reservation_id=reservation_id,
                seller=request.user,
                new_status=serializer.validated_data["status"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(ReservationSerializer(reservation).data)


class ReviewCreateView(APIView):
    """Redeem a review token."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_review",
        request=ReviewCreateSerializer,
        responses={
            201: ReviewSerializer,
            404: OpenApiResponse(description="Token invalid or already used"),
            409: OpenApiResponse(description="Purchase already reviewed"),
        },
        tags=["Marketplace - Reviews"],
    )
    def post(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            review = ReviewService.submit_review(
                token=data["token"],
                rating=data["rating"],
                comment=data["comment"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class ReviewDetailView(APIView):
    """Describe the purchase behind a review link."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_review_details",
        responses={
            200: OpenApiResponse(description="{productName, sellerName}"),
            404: OpenApiResponse(description="Token invalid or already used"),
            409: OpenApiResponse(description="Purchase already reviewed"),
        },
        tags=["Marketplace - Reviews"],
    )
    def get(self, request, token):
        try:
            details = ReviewService.get_review_details(token)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(details)

"""
DRF views for payments app.

This module provides API views for:
- PIX charge issuance and status lookup
- Stripe checkout session creation
- Carousel requests
- The caller's subscription and entitlement status

Related files:
    - services/: CheckoutService, PixChargeService, PurchaseService
    - serializers.py: Request/response serializers
    - webhooks/views.py: Stripe and PIX gateway callbacks
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/pix/ - Issue a PIX charge
    GET  /api/v1/payments/pix/status/{txid}/ - PIX payment status
    POST /api/v1/payments/checkout-session/ - Create checkout session
    POST /api/v1/payments/carousel-requests/ - Request carousel placement
    GET  /api/v1/payments/status/ - Subscription and entitlements

Security:
    - All endpoints require authentication
    - Carousel requests are limited to sellers
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.permissions import IsSeller
from core.exceptions import BaseApplicationError
from core.views import error_response
from payments.serializers import (
    CarouselRequestCreateSerializer,
    CarouselRequestSerializer,
    CheckoutSessionCreateSerializer,
    CheckoutSessionSerializer,
    PixChargeCreateSerializer,
    PixChargeSerializer,
    PixPaymentStatusSerializer,
    UserPaymentStatusSerializer,
)
from payments.services import CheckoutService, PixChargeService, PurchaseService

logger = logging.getLogger(__name__)


class PixChargeCreateView(APIView):
    """
    Issue an immediate PIX charge.

    POST /api/v1/payments/pix/

    Request body:
        {"valor": "19.90", "tipo": "ACHADINHO_TURBO", "productId": "<uuid>"}

    Returns:
        {"txid", "qrcode", "imagemQrcode"}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_pix_charge",
        request=PixChargeCreateSerializer,
        responses={
            200: PixChargeSerializer,
            400: OpenApiResponse(description="Invalid input"),
            404: OpenApiResponse(description="Product not found"),
            502: OpenApiResponse(description="PIX gateway error"),
        },
        tags=["Payments - PIX"],
    )
    def post(self, request):
        serializer = PixChargeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            charge = PixChargeService.create_charge(
                user=request.user,
                amount=data["valor"],
                purchase_type=data["tipo"],
                product_id=data.get("productId"),
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(charge, status=status.HTTP_200_OK)


class PixPaymentStatusView(APIView):
    """
    GET /api/v1/payments/pix/status/{txid}/

    Returns:
        {"txid", "status"} of the charge, or of the recorded payment
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_pix_payment_status",
        responses={
            200: PixPaymentStatusSerializer,
            404: OpenApiResponse(description="Payment not found"),
        },
        tags=["Payments - PIX"],
    )
    def get(self, request, txid):
        try:
            payment_status = PixChargeService.get_payment_status(txid, user=request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(payment_status)


class CheckoutSessionView(APIView):
    """
    Create Stripe Checkout session.

    POST /api/v1/payments/checkout-session/

    Request body:
        {
            "priceId": "price_xxx",
            "productId": "<uuid>",
            "type": "payment"
        }

    Returns:
        {"url": "https://checkout.stripe.com/..."}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_checkout_session",
        request=CheckoutSessionCreateSerializer,
        responses={
            200: CheckoutSessionSerializer,
            400: OpenApiResponse(description="Invalid input"),
            500: OpenApiResponse(description="Unknown price or Stripe failure"),
        },
        tags=["Payments - Stripe"],
    )
    def post(self, request):
        serializer = CheckoutSessionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            url = CheckoutService.create_checkout_session(
                user=request.user,
                price_id=data["priceId"],
                mode=data["type"],
                product_id=data.get("productId"),
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response({"url": url})


class CarouselRequestView(APIView):
    """
    Request carousel placement using a paid CARROSSEL_PRACA purchase.

    POST /api/v1/payments/carousel-requests/

    Request body:
        {"productId": "<uuid>", "purchaseId": "<uuid>"}
    """

    permission_classes = [IsAuthenticated, IsSeller]

    @extend_schema(
        operation_id="create_carousel_request",
        request=CarouselRequestCreateSerializer,
        responses={
            201: CarouselRequestSerializer,
            403: OpenApiResponse(description="Caller is not a seller"),
            404: OpenApiResponse(description="Purchase or product not found"),
            409: OpenApiResponse(description="Purchase already used or pending"),
        },
        tags=["Payments - Carousel"],
    )
    def post(self, request):
        serializer = CarouselRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            notification = PurchaseService.request_carousel(
                seller=request.user,
                product_id=serializer.validated_data["productId"],
                purchase_id=serializer.validated_data["purchaseId"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            CarouselRequestSerializer(notification).data,
            status=status.HTTP_201_CREATED,
        )


class UserPaymentStatusView(APIView):
    """
    GET /api/v1/payments/status/

    Subscription flag and end date, boosted products and carousel
    purchases still available to the caller.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_payment_status",
        responses={200: UserPaymentStatusSerializer},
        tags=["Payments - Status"],
    )
    def get(self, request):
        summary = PurchaseService.get_user_status(request.user)
        return Response(UserPaymentStatusSerializer(summary).data)

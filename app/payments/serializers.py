"""
DRF serializers for payments app.

This module provides serializers for:
- PIX charge requests
- Stripe checkout session requests
- Carousel requests
- Payment and entitlement status responses

Request payloads use the keys the storefront client sends (valor, tipo,
priceId, productId).

Usage:
    serializer = PixChargeCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from payments.state_machines import PRODUCT_PURCHASE_TYPES, PurchaseType


class PixChargeCreateSerializer(serializers.Serializer):
    """
    POST /pix/ body.

    Fields:
        valor: Amount in BRL, positive, two decimals
        tipo: Purchase type being paid
        productId: Product to promote (required for promotional types)
    """

    valor = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )
    tipo = serializers.ChoiceField(choices=PurchaseType.choices)
    productId = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["tipo"] in PRODUCT_PURCHASE_TYPES and not attrs.get("productId"):
            raise serializers.ValidationError(
                {"productId": "This field is required for this purchase type."}
            )
        return attrs


class PixChargeSerializer(serializers.Serializer):
    txid = serializers.CharField(read_only=True)
    qrcode = serializers.CharField(read_only=True)
    imagemQrcode = serializers.CharField(read_only=True)


class PixPaymentStatusSerializer(serializers.Serializer):
    txid = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)


class CheckoutSessionCreateSerializer(serializers.Serializer):
    """
    POST /checkout-session/ body.

    type accepts the legacy "one_time" value as an alias of "payment".
    """

    priceId = serializers.CharField(max_length=255)
    productId = serializers.UUIDField(required=False, allow_null=True)
    type = serializers.ChoiceField(choices=["subscription", "payment", "one_time"])

    def validate_type(self, value: str) -> str:
        return "payment" if value == "one_time" else value


class CheckoutSessionSerializer(serializers.Serializer):
    url = serializers.URLField(read_only=True)


class CarouselRequestCreateSerializer(serializers.Serializer):
    productId = serializers.UUIDField()
    purchaseId = serializers.UUIDField()


class CarouselRequestSerializer(serializers.Serializer):
    """Notification created for the admins by a carousel request."""

    id = serializers.UUIDField(read_only=True)
    type = serializers.CharField(read_only=True)
    message = serializers.CharField(read_only=True)
    metadata = serializers.JSONField(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)


class BoostedProductSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    boostedUntil = serializers.DateTimeField()


class CarouselPurchaseSerializer(serializers.Serializer):
    id = serializers.CharField()
    createdAt = serializers.DateTimeField()


class UserPaymentStatusSerializer(serializers.Serializer):
    hasActiveSubscription = serializers.BooleanField()
    subscriptionEndDate = serializers.DateTimeField(allow_null=True)
    boostedProducts = BoostedProductSerializer(many=True)
    availableCarouselPurchases = CarouselPurchaseSerializer(many=True)

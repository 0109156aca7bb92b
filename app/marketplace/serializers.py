"""
Serializers for the marketplace API.

Request payloads use the camelCase keys the storefront client sends
(productId); responses mirror them.

Serializer Hierarchy:
    ProductSummarySerializer: Product fields embedded in reservations
    ReservationSerializer: Reservation read representation
    ReservationCreateSerializer: POST /reservations/
    ReservationUpdateSerializer: PATCH /reservations/{id}/ (buyer)
    SaleUpdateSerializer: PATCH /sales/{id}/ (seller)
    ReviewCreateSerializer: POST /reviews/
    ReviewSerializer: Review read representation
"""

from __future__ import annotations

from rest_framework import serializers

from marketplace.models import Product, Reservation, ReservationStatus, Review


class ProductSummarySerializer(serializers.ModelSerializer):
    """Minimal product info shown next to a reservation."""

    class Meta:
        model = Product
        fields = ["id", "name", "images", "price"]
        read_only_fields = fields


class ReservationSerializer(serializers.ModelSerializer):
    product = ProductSummarySerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    readByAdmin = serializers.BooleanField(source="read_by_admin", read_only=True)

    class Meta:
        model = Reservation
        fields = ["id", "product", "quantity", "status", "readByAdmin", "createdAt"]
        read_only_fields = fields


class ReservationCreateSerializer(serializers.Serializer):
    productId = serializers.UUIDField(help_text="Product to reserve")
    quantity = serializers.IntegerField(min_value=1, help_text="Units to reserve")


class ReservationUpdateSerializer(serializers.Serializer):
    """Buyers may only cancel their reservations."""

    status = serializers.ChoiceField(choices=[ReservationStatus.CANCELLED])


class SaleUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[ReservationStatus.COMPLETED, ReservationStatus.CANCELLED]
    )


class ReviewCreateSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class ReviewSerializer(serializers.ModelSerializer):
    reservationId = serializers.UUIDField(source="reservation_id", read_only=True)
    sellerId = serializers.IntegerField(source="seller_id", read_only=True)
    buyerId = serializers.IntegerField(source="buyer_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Review
        fields = [
            "id",
            "reservationId",
            "sellerId",
            "buyerId",
            "rating",
            "comment",
            "createdAt",
        ]
        read_only_fields = fields

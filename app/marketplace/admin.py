"""
Django admin configuration for marketplace models.
"""

from django.contrib import admin

from marketplace.models import Product, Reservation, Review


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "seller", "price", "quantity", "boosted_until", "carousel_until"]
    list_filter = ["created_at"]
    search_fields = ["name", "seller__email", "seller__store_name"]
    raw_id_fields = ["seller"]
    ordering = ["-created_at"]


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    """
    Admin configuration for Reservation.

    Status is read-only here: transitions go through the service layer so
    stock stays consistent.
    """

    list_display = ["id", "product", "buyer", "quantity", "status", "read_by_admin", "created_at"]
    list_filter = ["status", "read_by_admin"]
    search_fields = ["id", "buyer__email", "product__name"]
    raw_id_fields = ["buyer", "product"]
    readonly_fields = ["status", "review_token", "completed_at", "cancelled_at"]
    ordering = ["-created_at"]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ["product", "seller", "buyer", "rating", "created_at"]
    list_filter = ["rating"]
    raw_id_fields = ["reservation", "product", "seller", "buyer"]
    ordering = ["-created_at"]

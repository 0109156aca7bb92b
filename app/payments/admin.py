"""
Payment admin configuration.

Registers payment domain models with the Django admin. State fields are
read-only: transitions go through the service layer.
"""

from django.contrib import admin

from payments.models import PixCharge, PixPayment, Purchase, WebhookEvent

__all__ = [
    "PixChargeAdmin",
    "PixPaymentAdmin",
    "PurchaseAdmin",
    "WebhookEventAdmin",
]


class PixChargeInline(admin.StackedInline):
    model = PixCharge
    extra = 0
    can_delete = False
    readonly_fields = ["txid", "amount", "status", "location_id", "expires_at", "confirmed_at"]
    exclude = ["qr_code"]


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    """
    Admin configuration for Purchase.

    Provides visibility into paid entitlements and their consumption.
    """

    list_display = [
        "id",
        "owner",
        "type",
        "payment_method",
        "status",
        "submission_status",
        "amount",
        "created_at",
    ]
    list_filter = ["type", "payment_method", "status", "submission_status"]
    search_fields = ["id", "owner__email", "stripe_checkout_session_id", "pix_charge__txid"]
    raw_id_fields = ["owner", "product"]
    readonly_fields = [
        "id",
        "status",
        "submission_status",
        "stripe_checkout_session_id",
        "paid_at",
        "used_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [PixChargeInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "owner", "product", "type"),
            },
        ),
        (
            "Payment",
            {
                "fields": (
                    "payment_method",
                    "amount",
                    "status",
                    "stripe_checkout_session_id",
                    "paid_at",
                ),
            },
        ),
        (
            "Submission",
            {
                "fields": ("submission_status", "used_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(PixPayment)
class PixPaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for PixPayment.

    Payments reported by the gateway are an append-only audit trail.
    """

    list_display = ["txid", "amount", "end_to_end_id", "status", "paid_at", "created_at"]
    search_fields = ["txid", "end_to_end_id"]
    readonly_fields = [
        "id",
        "txid",
        "amount",
        "end_to_end_id",
        "paid_at",
        "status",
        "raw_payload",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "stripe_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "stripe_event_id",
        "event_type",
        "payload",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "stripe_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Disable adding webhook events through admin."""
        return False

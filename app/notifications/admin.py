"""
Django admin configuration for notification models.
"""

from django.contrib import admin

from notifications.models import AdminNotification


@admin.register(AdminNotification)
class AdminNotificationAdmin(admin.ModelAdmin):
    """
    Admin configuration for AdminNotification.

    Read-only view of the inbox; carousel requests are confirmed through
    the API so the purchase transition and the read flag change together.
    """

    list_display = ["type", "seller", "purchase", "is_read", "created_at"]
    list_filter = ["type", "is_read"]
    search_fields = ["message", "seller__email"]
    raw_id_fields = ["seller", "purchase"]
    readonly_fields = [
        "id",
        "type",
        "message",
        "seller",
        "purchase",
        "metadata",
        "read_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

"""
DRF permission classes for role-restricted marketplace routes.

Usage:
    class CarouselRequestView(APIView):
        permission_classes = [IsAuthenticated, IsSeller]
"""

from rest_framework.permissions import BasePermission


class IsSeller(BasePermission):
    """Allow only accounts with the SELLER role."""

    message = "Only sellers can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_seller)


class IsMarketplaceAdmin(BasePermission):
    """Allow ADMIN-role accounts and Django staff."""

    message = "Administrator access required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_marketplace_admin)

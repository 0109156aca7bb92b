"""
Authentication application.

Email-based User model carrying the marketplace role (buyer, seller,
admin) and the cached Stripe customer/subscription references, plus DRF
permission classes for role-restricted routes. JWT tokens are issued by
djangorestframework-simplejwt at /api/v1/auth/token/.

Usage:
    from authentication.models import User, UserRole
    from authentication.permissions import IsSeller, IsMarketplaceAdmin
"""

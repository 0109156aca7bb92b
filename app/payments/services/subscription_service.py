"""
Subscription sync service.

Mirrors Stripe subscription state onto the User row. Stripe is the source
of truth; these methods only copy what Stripe reports.

Usage:
    from payments.services import SubscriptionService

    SubscriptionService.sync_from_checkout(user_id, subscription_result)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from authentication.models import SubscriptionStatus, User
from core.services import BaseService

from payments.exceptions import PaymentNotFoundError

if TYPE_CHECKING:
    from payments.adapters import SubscriptionResult


STRIPE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete": SubscriptionStatus.INCOMPLETE,
    "incomplete_expired": SubscriptionStatus.INCOMPLETE_EXPIRED,
    "past_due": SubscriptionStatus.PAST_DUE,
    "trialing": SubscriptionStatus.TRIALING,
    "unpaid": SubscriptionStatus.UNPAID,
    "paused": SubscriptionStatus.PAUSED,
}


class UnknownSubscriptionStatusError(ValueError):
    """Stripe reported a subscription status this system does not model."""


def to_local_status(stripe_status: str) -> str:
    """
    Map a Stripe subscription status to SubscriptionStatus.

    Raises:
        UnknownSubscriptionStatusError: so the webhook event fails loudly
            and is retried once the enum is extended
    """
    try:
        return STRIPE_STATUS_MAP[stripe_status]
    except KeyError:
        raise UnknownSubscriptionStatusError(
            f"Unhandled Stripe subscription status: {stripe_status}"
        ) from None


class SubscriptionService(BaseService):
    """Copies Stripe subscription state onto users."""

    @classmethod
    def sync_from_checkout(cls, user_id, subscription: SubscriptionResult) -> User:
        """
        Attach a freshly paid subscription to the user who checked out.

        Raises:
            PaymentNotFoundError: user_id from the session metadata is unknown
        """
        with cls.atomic():
            user = User.objects.select_for_update().filter(pk=user_id).first()
            if user is None:
                raise PaymentNotFoundError(
                    "User from checkout metadata not found",
                    details={"user_id": str(user_id)},
                )

            user.stripe_subscription_id = subscription.id
            user.stripe_customer_id = subscription.customer_id or user.stripe_customer_id
            user.stripe_price_id = subscription.price_id
            user.stripe_subscription_status = to_local_status(subscription.status)
            user.stripe_current_period_end = subscription.current_period_end
            user.save(
                update_fields=[
                    "stripe_subscription_id",
                    "stripe_customer_id",
                    "stripe_price_id",
                    "stripe_subscription_status",
                    "stripe_current_period_end",
                    "updated_at",
                ]
            )

        cls.get_logger().info(
            "Subscription attached to user",
            extra={
                "user_id": user.pk,
                "subscription_id": subscription.id,
                "status": subscription.status,
            },
        )
        return user

    @classmethod
    def record_renewal(cls, subscription: SubscriptionResult) -> int:
        """
        Refresh price and period end after a paid invoice.

        Returns:
            Number of users updated (0 if no user holds the subscription)
        """
        updated = User.objects.filter(stripe_subscription_id=subscription.id).update(
            stripe_price_id=subscription.price_id,
            stripe_current_period_end=subscription.current_period_end,
        )
        cls.get_logger().info(
            "Subscription renewal recorded",
            extra={"subscription_id": subscription.id, "users_updated": updated},
        )
        return updated

    @classmethod
    def apply_status_change(cls, subscription: SubscriptionResult) -> int:
        """
        Apply a customer.subscription.updated/deleted event.

        A canceled subscription clears the period end; otherwise the period
        end reported by Stripe is stored.

        Returns:
            Number of users updated
        """
        local_status = to_local_status(subscription.status)
        changes = {"stripe_subscription_status": local_status}
        if local_status == SubscriptionStatus.CANCELED:
            changes["stripe_current_period_end"] = None
        elif subscription.current_period_end is not None:
            changes["stripe_current_period_end"] = subscription.current_period_end

        updated = User.objects.filter(stripe_subscription_id=subscription.id).update(**changes)
        if not updated:
            cls.get_logger().warning(
                "No user holds subscription",
                extra={"subscription_id": subscription.id},
            )
        return updated

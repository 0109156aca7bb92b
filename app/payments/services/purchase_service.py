"""
Purchase entitlement service.

Owns everything that happens to a Purchase after it is paid:
- Applying the benefit to the promoted product (boost or carousel window)
- The carousel submission lifecycle AVAILABLE -> PENDING_APPROVAL -> USED
- The seller's payment status summary

Every transition runs inside one transaction with the purchase row
locked, and the FSM save is itself conditional on the pre-state
(ConcurrentTransitionMixin), so a purchase is consumed at most once.

Usage:
    from payments.services import PurchaseService

    notification = PurchaseService.request_carousel(
        seller=request.user,
        product_id=product_id,
        purchase_id=purchase_id,
    )
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django_fsm import ConcurrentTransition, TransitionNotAllowed

from core.exceptions import NotFoundError
from core.services import BaseService
from marketplace.models import Product
from notifications.models import AdminNotification, AdminNotificationType
from notifications.tasks import send_carousel_confirmed_email

from payments.exceptions import InvalidStateTransitionError, PaymentNotFoundError
from payments.models import Purchase
from payments.state_machines import (
    PurchaseStatus,
    PurchaseType,
    SubmissionStatus,
)

if TYPE_CHECKING:
    from typing import Any

    from authentication.models import User


# Product field extended by each purchase type when its payment settles
BENEFIT_FIELDS = {
    PurchaseType.ACHADINHO_TURBO: "boosted_until",
    PurchaseType.CARROSSEL_PRACA: "carousel_until",
}


def run_transition(instance, transition_name: str, **kwargs) -> None:
    """
    Apply an FSM transition and save, raising 409 on any state conflict.

    TransitionNotAllowed: instance is not in a source state.
    ConcurrentTransition: another transaction changed the row first.
    """
    try:
        getattr(instance, transition_name)(**kwargs)
        instance.save()
    except TransitionNotAllowed as e:
        raise InvalidStateTransitionError(
            f"Cannot {transition_name.replace('_', ' ')} from the current state",
            details={"transition": transition_name},
        ) from e
    except ConcurrentTransition as e:
        raise InvalidStateTransitionError(
            "Record was modified by a concurrent request",
            error_code="CONCURRENT_TRANSITION",
            details={"transition": transition_name},
        ) from e


class PurchaseService(BaseService):
    """Benefits and submission lifecycle of purchases."""

    @classmethod
    def apply_benefit(cls, purchase: Purchase) -> bool:
        """
        Extend the promoted product's highlight window.

        Sets boosted_until / carousel_until to now + PURCHASE_BENEFIT_DAYS.
        Must run in the transaction that marks the purchase paid.

        Returns:
            True if a product was updated
        """
        field_name = BENEFIT_FIELDS.get(purchase.type)
        if field_name is None or purchase.product_id is None:
            return False

        until = timezone.now() + timedelta(days=settings.PURCHASE_BENEFIT_DAYS)
        updated = Product.objects.filter(pk=purchase.product_id).update(**{field_name: until})

        cls.get_logger().info(
            "Purchase benefit applied",
            extra={
                "purchase_id": str(purchase.pk),
                "product_id": str(purchase.product_id),
                "field": field_name,
                "until": until.isoformat(),
            },
        )
        return bool(updated)

    @classmethod
    def request_carousel(
        cls,
        seller: User,
        product_id,
        purchase_id,
    ) -> AdminNotification:
        """
        Submit a paid carousel purchase for admin approval.

        Raises:
            PaymentNotFoundError: No paid CARROSSEL_PRACA purchase of this
                seller with that id
            InvalidStateTransitionError: Purchase is not AVAILABLE
            NotFoundError: Product does not exist
        """
        with cls.atomic():
            purchase = (
                Purchase.objects.select_for_update()
                .filter(
                    pk=purchase_id,
                    owner=seller,
                    type=PurchaseType.CARROSSEL_PRACA,
                    status=PurchaseStatus.PAID,
                )
                .first()
            )
            if purchase is None:
                raise PaymentNotFoundError(
                    "Purchase not found",
                    details={"purchase_id": str(purchase_id)},
                )
            if purchase.submission_status != SubmissionStatus.AVAILABLE:
                raise InvalidStateTransitionError(
                    "Purchase was already used or is awaiting approval",
                    details={"current_status": purchase.submission_status},
                )

            product = Product.objects.filter(pk=product_id).first()
            if product is None:
                raise NotFoundError(
                    "Product not found",
                    error_code="PRODUCT_NOT_FOUND",
                    details={"product_id": str(product_id)},
                )

            run_transition(purchase, "request_carousel")

            seller_name = seller.store_name or seller.get_full_name()
            notification = AdminNotification.objects.create(
                type=AdminNotificationType.CAROUSEL_REQUEST,
                message=(
                    f'{seller_name} solicitou a divulgação do produto "{product.name}" '
                    "no Carrossel na Praça."
                ),
                seller=seller,
                purchase=purchase,
                metadata={
                    "productId": str(product.pk),
                    "productName": product.name,
                    "productImage": product.cover_image,
                    "productPrice": str(product.price),
                    "purchaseId": str(purchase.pk),
                },
            )

        cls.get_logger().info(
            "Carousel requested",
            extra={
                "purchase_id": str(purchase.pk),
                "notification_id": str(notification.pk),
                "seller_id": seller.pk,
            },
        )
        return notification

    @classmethod
    def confirm_carousel(cls, notification_id, admin: User) -> AdminNotification:
        """
        Approve a carousel request, consuming its purchase.

        The purchase moves PENDING_APPROVAL -> USED and the notification is
        marked read in one transaction; the seller email is queued after
        commit.

        Raises:
            NotFoundError: Notification missing or not a carousel request
            PaymentNotFoundError: Purchase attached to it no longer exists
            InvalidStateTransitionError: Purchase not PENDING_APPROVAL
        """
        with cls.atomic():
            notification = (
                AdminNotification.objects.select_for_update()
                .filter(pk=notification_id, type=AdminNotificationType.CAROUSEL_REQUEST)
                .first()
            )
            if notification is None:
                raise NotFoundError(
                    "Notification not found",
                    error_code="NOTIFICATION_NOT_FOUND",
                )

            purchase_id = notification.purchase_id or notification.metadata.get("purchaseId")
            purchase = (
                Purchase.objects.select_for_update().filter(pk=purchase_id).first()
                if purchase_id
                else None
            )
            if purchase is None:
                raise PaymentNotFoundError(
                    "The purchase linked to this request no longer exists",
                    details={"notification_id": str(notification_id)},
                )

            if purchase.submission_status != SubmissionStatus.PENDING_APPROVAL:
                raise InvalidStateTransitionError(
                    "Carousel request was already confirmed",
                    details={"current_status": purchase.submission_status},
                )
            run_transition(purchase, "consume")

            notification.mark_read()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
            notification.purchase = purchase

            confirmed_id = str(notification.pk)
            transaction.on_commit(lambda: send_carousel_confirmed_email.delay(confirmed_id))

        cls.get_logger().info(
            "Carousel request confirmed",
            extra={
                "notification_id": confirmed_id,
                "purchase_id": str(purchase.pk),
                "admin_id": admin.pk,
            },
        )
        return notification

    @classmethod
    def get_user_status(cls, user: User) -> dict[str, Any]:
        """
        Summarize the user's subscription and promotional entitlements.

        Returns:
            {
                "hasActiveSubscription": bool,
                "subscriptionEndDate": datetime | None,
                "boostedProducts": [{"id", "name", "boostedUntil"}],
                "availableCarouselPurchases": [{"id", "createdAt"}],
            }
        """

        now = timezone.now()
        boosted = Product.objects.filter(seller=user, boosted_until__gte=now).order_by(
            "boosted_until"
        )
        carousel_purchases = Purchase.objects.filter(
            owner=user,
            type=PurchaseType.CARROSSEL_PRACA,
            status=PurchaseStatus.PAID,
            submission_status=SubmissionStatus.AVAILABLE,
        ).order_by("created_at")

        return {
            "hasActiveSubscription": user.has_active_subscription,
            "subscriptionEndDate": user.stripe_current_period_end,
            "boostedProducts": [
                {"id": str(p.pk), "name": p.name, "boostedUntil": p.boosted_until}
                for p in boosted
            ],
            "availableCarouselPurchases": [
                {"id": str(p.pk), "createdAt": p.created_at} for p in carousel_purchases
            ],
        }

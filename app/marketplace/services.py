"""
Marketplace services: reservations with inventory, sales and reviews.

Services:
    ReservationService: Buyer-side reservation lifecycle and stock
    SaleService: Seller-side finalization of reservations
    ReviewService: Single-use review token redemption

Inventory rules:
    - Creating a reservation decrements Product.quantity with a conditional
      UPDATE (quantity >= requested) in the same transaction that inserts
      the reservation, so stock can never go negative
    - Cancelling or deleting a PENDING/CONFIRMED reservation returns its
      units in the same transaction as the status change or delete
    - COMPLETED reservations keep their units (the sale happened)

Emails are queued with transaction.on_commit, never for rolled-back work.

Usage:
    from marketplace.services import ReservationService

    reservation = ReservationService.create_reservation(
        buyer=request.user,
        product_id=product_id,
        quantity=2,
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import F
from django_fsm import ConcurrentTransition, TransitionNotAllowed

from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.helpers import generate_token
from core.services import BaseService
from marketplace.models import Product, Reservation, ReservationStatus, Review
from notifications.tasks import (
    send_reservation_created_email,
    send_review_request_email,
)

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User


def _restock(product_id, quantity: int) -> None:
    Product.objects.filter(pk=product_id).update(quantity=F("quantity") + quantity)


def _apply_transition(reservation: Reservation, transition_name: str, **kwargs) -> None:
    """
    Run an FSM transition and save, translating FSM errors to 409.

    Must be called inside a transaction holding the reservation row lock.
    """
    current_status = reservation.status
    try:
        getattr(reservation, transition_name)(**kwargs)
        reservation.save()
    except (TransitionNotAllowed, ConcurrentTransition) as e:
        raise ConflictError(
            f"Reservation is already {current_status}",
            error_code="INVALID_STATE_TRANSITION",
            details={"current_status": current_status},
        ) from e


class ReservationService(BaseService):
    """Buyer operations on reservations."""

    @classmethod
    def create_reservation(
        cls,
        buyer: User,
        product_id: UUID | str,
        quantity: int,
    ) -> Reservation:
        """
        Reserve units of a product.

        Raises:
            NotFoundError: Product does not exist
            ValidationError: Not enough stock
        """
        logger = cls.get_logger()

        with cls.atomic():
            product = Product.objects.filter(pk=product_id).first()
            if product is None:
                raise NotFoundError(
                    "Product not found",
                    error_code="PRODUCT_NOT_FOUND",
                    details={"product_id": str(product_id)},
                )

            updated = Product.objects.filter(
                pk=product.pk,
                quantity__gte=quantity,
            ).update(quantity=F("quantity") - quantity)
            if not updated:
                raise ValidationError(
                    "Insufficient stock",
                    error_code="INSUFFICIENT_STOCK",
                    details={"requested": quantity, "available": product.quantity},
                )

            reservation = Reservation.objects.create(
                buyer=buyer,
                product=product,
                quantity=quantity,
            )
            reservation_id = str(reservation.id)
            transaction.on_commit(
                lambda: send_reservation_created_email.delay(reservation_id)
            )

        logger.info(
            "Reservation created",
            extra={
                "reservation_id": reservation_id,
                "product_id": str(product.pk),
                "quantity": quantity,
            },
        )
        return reservation

    @classmethod
    def list_for_buyer(cls, buyer: User):
        return (
            Reservation.objects.filter(buyer=buyer)
            .select_related("product")
            .order_by("-created_at")
        )

    @classmethod
    def _lock_own(cls, reservation_id, buyer: User) -> Reservation:
        reservation = (
            Reservation.objects.select_for_update()
            .filter(pk=reservation_id)
            .first()
        )
        if reservation is None:
            raise NotFoundError(
                "Reservation not found",
                error_code="RESERVATION_NOT_FOUND",
            )
        if reservation.buyer_id != buyer.pk:
            raise PermissionDeniedError(
                "You can only change your own reservations",
                error_code="NOT_RESERVATION_OWNER",
            )
        return reservation

    @classmethod
    def delete_reservation(cls, reservation_id, buyer: User) -> Reservation:
        """
        Delete a buyer's reservation, returning held units to stock.

        Raises:
            NotFoundError: Reservation does not exist
            PermissionDeniedError: Reservation belongs to someone else
        """
        with cls.atomic():
            reservation = cls._lock_own(reservation_id, buyer)
            if reservation.holds_stock:
                _restock(reservation.product_id, reservation.quantity)
            reservation.delete()

        cls.get_logger().info(
            "Reservation deleted",
            extra={
                "reservation_id": str(reservation_id),
                "restocked": reservation.holds_stock,
            },
        )
        return reservation

    @classmethod
    def cancel_reservation(cls, reservation_id, buyer: User) -> Reservation:
        """
        Cancel a buyer's reservation and restock its units.

        Raises:
            NotFoundError, PermissionDeniedError
            ConflictError: Reservation is already COMPLETED or CANCELLED
        """
        with cls.atomic():
            reservation = cls._lock_own(reservation_id, buyer)
            _apply_transition(reservation, "cancel")
            _restock(reservation.product_id, reservation.quantity)

        cls.get_logger().info(
            "Reservation cancelled by buyer",
            extra={"reservation_id": str(reservation.id)},
        )
        return reservation

    @classmethod
    def mark_read_by_admin(cls, reservation_id) -> Reservation:
        updated = Reservation.objects.filter(pk=reservation_id).update(read_by_admin=True)
        if not updated:
            raise NotFoundError(
                "Reservation not found",
                error_code="RESERVATION_NOT_FOUND",
            )
        return Reservation.objects.get(pk=reservation_id)


class SaleService(BaseService):
    """Seller operations on reservations of their products."""

    @classmethod
    def finalize_sale(
        cls,
        reservation_id,
        seller: User,
        new_status: str,
    ) -> Reservation:
        """
        Complete or cancel a reservation of one of the seller's products.

        COMPLETED issues a review token and mails the buyer a review link.
        CANCELLED returns the units to stock.

        Raises:
            NotFoundError: No such reservation on the seller's products
            ConflictError: Reservation already finalized
            ValidationError: new_status is not COMPLETED or CANCELLED
        """
        if new_status not in (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED):
            raise ValidationError(
                "Status must be COMPLETED or CANCELLED",
                error_code="INVALID_STATUS",
                details={"status": new_status},
            )

        with cls.atomic():
            reservation = (
                Reservation.objects.select_for_update()
                .filter(pk=reservation_id, product__seller=seller)
                .first()
            )
            if reservation is None:
                raise NotFoundError(
                    "Reservation not found",
                    error_code="RESERVATION_NOT_FOUND",
                )

            if new_status == ReservationStatus.COMPLETED:
                _apply_transition(reservation, "complete", review_token=generate_token())
                sale_id = str(reservation.id)
                transaction.on_commit(lambda: send_review_request_email.delay(sale_id))
            else:
                _apply_transition(reservation, "cancel")
                _restock(reservation.product_id, reservation.quantity)

        cls.get_logger().info(
            "Sale finalized",
            extra={
                "reservation_id": str(reservation.id),
                "status": reservation.status,
                "seller_id": seller.pk,
            },
        )
        return reservation


class ReviewService(BaseService):
    """Review token lookup and redemption."""

    @classmethod
    def get_review_details(cls, token: str) -> dict[str, str]:
        """
        Describe the purchase a review token refers to.

        Raises:
            NotFoundError: Unknown or already redeemed token
            ConflictError: The reservation already has a review
        """
        reservation = (
            Reservation.objects.select_related("product__seller")
            .filter(review_token=token)
            .first()
        )
        if reservation is None:
            raise NotFoundError(
                "Review link is invalid or expired",
                error_code="REVIEW_TOKEN_NOT_FOUND",
            )
        if Review.objects.filter(reservation=reservation).exists():
            raise ConflictError(
                "This purchase was already reviewed",
                error_code="ALREADY_REVIEWED",
            )

        seller = reservation.product.seller
        return {
            "productName": reservation.product.name,
            "sellerName": seller.store_name or seller.get_full_name(),
        }

    @classmethod
    def submit_review(cls, token: str, rating: int, comment: str = "") -> Review:
        """
        Redeem a review token.

        The token is nulled in the same transaction that inserts the review,
        so a token can produce at most one review.

        Raises:
            NotFoundError: Unknown or already redeemed token
            ConflictError: A concurrent submission won the race
        """
        try:
            with cls.atomic():
                reservation = (
                    Reservation.objects.select_for_update()
                    .select_related("product")
                    .filter(review_token=token)
                    .first()
                )
                if reservation is None:
                    raise NotFoundError(
                        "Review token is invalid or already used",
                        error_code="REVIEW_TOKEN_NOT_FOUND",
                    )

                review = Review.objects.create(
                    reservation=reservation,
                    product=reservation.product,
                    seller_id=reservation.product.seller_id,
                    buyer_id=reservation.buyer_id,
                    rating=rating,
                    comment=comment,
                )
                Reservation.objects.filter(pk=reservation.pk).update(review_token=None)
        except IntegrityError as e:
            raise ConflictError(
                "This purchase was already reviewed",
                error_code="ALREADY_REVIEWED",
            ) from e

        cls.get_logger().info(
            "Review submitted",
            extra={"review_id": str(review.id), "reservation_id": str(reservation.pk)},
        )
        return review

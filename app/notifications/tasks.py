"""
Celery tasks for transactional emails.

Tasks:
    send_reservation_created_email: Tell the seller about a new reservation
    send_review_request_email: Ask the buyer to review a completed sale
    send_carousel_confirmed_email: Tell the seller the carousel slot is live

Design:
    - Tasks receive primary keys, never model instances
    - Callers queue them with transaction.on_commit so no email goes out
      for a rolled-back change
    - Missing rows are logged and skipped; SMTP failures retry with backoff

Usage:
    from django.db import transaction
    from notifications.tasks import send_review_request_email

    transaction.on_commit(
        lambda: send_review_request_email.delay(str(reservation.id))
    )
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def _send(subject: str, body: str, recipient: str) -> None:
    send_mail(
        subject=subject,
        message=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[recipient],
        fail_silently=False,
    )


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_reservation_created_email(self, reservation_id: str) -> bool:
    """
    Email the seller that a buyer reserved one of their products.

    Args:
        reservation_id: UUID string of the Reservation

    Returns:
        True if sent, False if the reservation no longer exists
    """
    from marketplace.models import Reservation

    reservation = (
        Reservation.objects.select_related("product__seller", "buyer")
        .filter(pk=reservation_id)
        .first()
    )
    if reservation is None:
        logger.warning(
            "Reservation email skipped: reservation not found",
            extra={"reservation_id": reservation_id},
        )
        return False

    product = reservation.product
    buyer = reservation.buyer
    _send(
        subject=f"Nova reserva: {product.name}",
        body=(
            f"{buyer.get_full_name()} reservou {reservation.quantity} "
            f"unidade(s) de {product.name}.\n"
            f"Contato: {buyer.email}\n\n"
            f"Gerencie suas vendas em {settings.APP_URL}/dashboard"
        ),
        recipient=product.seller.email,
    )
    logger.info(
        "Reservation email sent to seller",
        extra={"reservation_id": reservation_id, "seller_id": product.seller_id},
    )
    return True


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_review_request_email(self, reservation_id: str) -> bool:
    """
    Email the buyer a single-use link to review a completed purchase.

    Skipped when the token was already redeemed before the task ran.
    """
    from marketplace.models import Reservation

    reservation = (
        Reservation.objects.select_related("product__seller", "buyer")
        .filter(pk=reservation_id)
        .first()
    )
    if reservation is None or not reservation.review_token:
        logger.info(
            "Review request skipped: no pending review token",
            extra={"reservation_id": reservation_id},
        )
        return False

    product = reservation.product
    seller = product.seller
    _send(
        subject=f"Como foi sua compra de {product.name}?",
        body=(
            f"Sua compra com {seller.store_name or seller.get_full_name()} foi concluída.\n"
            f"Avalie em: {settings.APP_URL}/avaliar/{reservation.review_token}"
        ),
        recipient=reservation.buyer.email,
    )
    logger.info(
        "Review request email sent",
        extra={"reservation_id": reservation_id},
    )
    return True


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_carousel_confirmed_email(self, notification_id: str) -> bool:
    """Email the seller that their carousel request was approved."""
    from notifications.models import AdminNotification

    notification = (
        AdminNotification.objects.select_related("seller")
        .filter(pk=notification_id)
        .first()
    )
    if notification is None:
        logger.warning(
            "Carousel email skipped: notification not found",
            extra={"notification_id": notification_id},
        )
        return False

    product_name = notification.metadata.get("productName", "seu produto")
    _send(
        subject="Seu produto está no carrossel!",
        body=(
            f"O pedido de carrossel para {product_name} foi aprovado.\n"
            f"Confira em {settings.APP_URL}"
        ),
        recipient=notification.seller.email,
    )
    logger.info(
        "Carousel confirmation email sent",
        extra={"notification_id": notification_id, "seller_id": notification.seller_id},
    )
    return True

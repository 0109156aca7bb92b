"""
Notifications app for the admin inbox and transactional emails.

This app provides:
- AdminNotification model (carousel requests awaiting approval)
- Confirm-carousel endpoint that consumes the seller's purchase
- Celery tasks that send transactional emails after commit

Usage:
    from notifications.tasks import send_carousel_confirmed_email

    transaction.on_commit(
        lambda: send_carousel_confirmed_email.delay(str(notification.id))
    )
"""

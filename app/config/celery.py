"""
Celery configuration for the marketplace backend.

Background work runs in Celery workers so HTTP handlers stay short-lived:
- Transactional emails (reservation, sale, carousel confirmation)
- Periodic expiry of unpaid PIX charges
- Retry of Stripe webhook events that failed processing

Redis serves as both broker and result backend. Tasks are discovered from
each installed app's tasks.py, and the beat schedule lives in
settings.CELERY_BEAT_SCHEDULE.

Usage:
    from celery import shared_task

    @shared_task
    def send_reservation_email(reservation_id):
        ...

    send_reservation_email.delay(reservation.id)
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

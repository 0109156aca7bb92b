"""Tests for the Celery configuration used by the test session."""

from celery import current_app

from config.celery import app as celery_app
from notifications.tasks import send_carousel_confirmed_email


def test_tasks_run_inline():
    assert celery_app.conf.task_always_eager is True
    assert celery_app.conf.task_eager_propagates is True
    assert current_app.conf.task_always_eager is True


def test_delay_returns_eager_result(db):
    result = send_carousel_confirmed_email.delay("00000000-0000-0000-0000-000000000000")

    assert result.successful()
    assert result.get() is False

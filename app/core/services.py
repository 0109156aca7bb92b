"""
Service layer primitives shared by every domain app.

- ServiceResult: explicit success/failure value for expected outcomes
- BaseService: per-service logger and transaction boundary helper

Views handle HTTP, models hold data, services own the business rules and
the transaction boundaries around them. Expected failures that a caller
branches on (an unknown webhook event, a skipped notification) come back
as ServiceResult; everything a client must see as an HTTP error is raised
as a core.exceptions.BaseApplicationError subclass.

Usage:
    from core.services import BaseService, ServiceResult

    class ReservationService(BaseService):
        @classmethod
        def cancel(cls, reservation_id, user):
            with cls.atomic():
                reservation = Reservation.objects.select_for_update().get(
                    pk=reservation_id
                )
                ...
            cls.get_logger().info("Reservation cancelled")
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful
        error: Error message if failed
        error_code: Machine-readable error code

    Usage:
        result = dispatch_webhook(webhook_event)
        if not result:
            webhook_event.mark_failed(result.error)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(success=False, error=error, error_code=error_code)

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for stateless service classes.

    Services expose classmethods only. Multi-step writes go inside
    ``cls.atomic()`` so partial application is impossible.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls, savepoint: bool = True) -> Generator[None, None, None]:
        """
        Run the enclosed block in a database transaction.

        Nested calls create savepoints, so an inner block can fail and be
        rolled back without aborting the outer transaction.

        Example:
            with cls.atomic():
                purchase.request_carousel()
                purchase.save()
                AdminNotification.objects.create(...)
        """
        with transaction.atomic(savepoint=savepoint):
            yield

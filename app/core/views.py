"""
Infrastructure views and the exception-to-response mapping.

- health_check: liveness/readiness check for Docker and load balancers
- error_response: renders a BaseApplicationError as a DRF Response with the
  status code that matches its class
"""

from __future__ import annotations

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from core.exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order, so subclasses must precede their bases
ERROR_STATUS_CODES: list[tuple[type[BaseApplicationError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for_error(exc: BaseApplicationError) -> int:
    """Return the HTTP status code for an application error."""
    if isinstance(exc, ExternalServiceError):
        return exc.status_code
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def error_response(exc: BaseApplicationError) -> Response:
    """
    Build the API response for an application error.

    Server-side failures (5xx) are logged with their details since the
    client only receives the sanitized message.

    Args:
        exc: The raised application error

    Returns:
        DRF Response with exc.to_dict() as body
    """
    status_code = status_for_error(exc)
    if status_code >= 500:
        logger.error(
            f"Request failed: {exc}",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
        return Response(
            {"error": exc.message, "error_code": exc.error_code},
            status=status_code,
        )
    return Response(exc.to_dict(), status=status_code)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status, database and cache keys.
        200 when the database answers, 503 otherwise. A cache outage only
        marks the cache as disconnected.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        cache.set("health_check", "ok", timeout=1)
        health_status["cache"] = (
            "connected" if cache.get("health_check") == "ok" else "disconnected"
        )
    except Exception:
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)

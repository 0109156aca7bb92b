"""
Application-wide exception hierarchy.

Every domain error raised by the service layer derives from
BaseApplicationError, carries a machine-readable error code, and can be
rendered to JSON with to_dict(). Views translate these exceptions into
HTTP responses through core.views.error_response, which maps each class
to its status code.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input rejected before any side effect (400)
    ├── NotFoundError - Referenced entity does not exist (404)
    ├── PermissionDeniedError - Caller may not perform the action (403)
    ├── ConflictError - Action already applied or state moved on (409)
    ├── ExternalServiceError - Third-party API failed or rejected the call (500)
    └── ConfigurationError - Required setting or mapping missing (500)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    purchase = Purchase.objects.filter(pk=purchase_id, owner=user).first()
    if purchase is None:
        raise NotFoundError(
            "Purchase not found",
            error_code="PURCHASE_NOT_FOUND",
            details={"purchase_id": str(purchase_id)},
        )

    try:
        ...
    except BaseApplicationError as e:
        return error_response(e)

Note:
    DRF keeps handling its own API-layer exceptions (authentication,
    serializer validation, parsing).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, identifiers)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Render the exception as an API error body.

        Returns:
            Dict with error and error_code keys, plus details when present

        Example:
            {
                "error": "Purchase already used",
                "error_code": "INVALID_STATE_TRANSITION",
                "details": {"current_status": "USED"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when a request payload fails service-level validation.

    Serializer validation stays with DRF; this covers rules that only the
    service layer can check (e.g. a product that cannot be bought with the
    requested purchase type).
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a referenced entity is absent.

    Example:
        raise NotFoundError(
            "Reservation not found",
            error_code="RESERVATION_NOT_FOUND",
            details={"reservation_id": str(reservation_id)},
        )
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated caller may not act on a resource.

    Authentication failures stay with DRF (401); this is for ownership and
    role checks, such as a buyer trying to finalize a seller's sale.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when the action conflicts with the resource's current state.

    Use for:
    - Duplicate submissions (review already written for a reservation)
    - Consumable entitlements already consumed
    - Concurrent modification detected at save time
    """

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when a third-party API is unreachable or rejects a call.

    The upstream message belongs in the logs; the message carried by this
    exception is what the client sees.

    Attributes:
        status_code: HTTP status to report to the client (default 500)
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 500


class ConfigurationError(BaseApplicationError):
    """
    Raised when a required setting or mapping is missing.

    Treated as fatal misconfiguration: the request fails with 500 and no
    partial state is written.

    Example:
        if not settings.PIX_KEY:
            raise ConfigurationError("PIX_KEY is not configured")
    """

    default_error_code: str = "CONFIGURATION_ERROR"

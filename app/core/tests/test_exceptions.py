"""
Tests for the application error hierarchy and its HTTP mapping.
"""

import pytest
from rest_framework import status

from core.exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.views import error_response, status_for_error
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentConfigurationError,
    PaymentNotFoundError,
    PixGatewayError,
    StripeRateLimitError,
)


class TestBaseApplicationError:
    def test_defaults_to_class_error_code(self):
        exc = NotFoundError("Missing")

        assert exc.error_code == "NOT_FOUND"
        assert exc.details == {}
        assert str(exc) == "[NOT_FOUND] Missing"

    def test_to_dict_includes_details_only_when_present(self):
        assert ConflictError("Busy").to_dict() == {"error": "Busy", "error_code": "CONFLICT"}
        assert ValidationError("Bad", error_code="BAD", details={"field": "x"}).to_dict() == {
            "error": "Bad",
            "error_code": "BAD",
            "details": {"field": "x"},
        }


class TestStatusForError:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ValidationError("x"), status.HTTP_400_BAD_REQUEST),
            (PermissionDeniedError("x"), status.HTTP_403_FORBIDDEN),
            (NotFoundError("x"), status.HTTP_404_NOT_FOUND),
            (PaymentNotFoundError("x"), status.HTTP_404_NOT_FOUND),
            (ConflictError("x"), status.HTTP_409_CONFLICT),
            (InvalidStateTransitionError("x"), status.HTTP_409_CONFLICT),
            (ConfigurationError("x"), status.HTTP_500_INTERNAL_SERVER_ERROR),
            (PaymentConfigurationError("x"), status.HTTP_500_INTERNAL_SERVER_ERROR),
            (ExternalServiceError("x"), status.HTTP_500_INTERNAL_SERVER_ERROR),
            (StripeRateLimitError("x"), status.HTTP_500_INTERNAL_SERVER_ERROR),
            (PixGatewayError("x", status_code=422), 422),
            (BaseApplicationError("x"), status.HTTP_400_BAD_REQUEST),
        ],
    )
    def test_maps_error_class_to_status(self, exc, expected):
        assert status_for_error(exc) == expected


class TestErrorResponse:
    def test_client_error_includes_details(self):
        response = error_response(NotFoundError("Gone", details={"id": "1"}))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["details"] == {"id": "1"}

    def test_server_error_hides_details(self):
        response = error_response(
            PaymentConfigurationError("Price is not configured", details={"price_id": "p"})
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {
            "error": "Price is not configured",
            "error_code": "PAYMENT_CONFIGURATION_ERROR",
        }

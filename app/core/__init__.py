"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication,
marketplace, payments, notifications). Nothing here knows about products,
purchases or payments.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Logger and transaction helpers for service classes
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError, ValidationError, NotFoundError,
      PermissionDeniedError, ConflictError, ExternalServiceError,
      ConfigurationError

Views (import from core.views):
    - health_check: Infrastructure health check
    - error_response: Exception to HTTP response mapping

Helpers (import from core.helpers):
    - generate_token, generate_txid

Note:
    Models, model mixins and views are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import (
    BaseApplicationError,
    ConfigurationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .helpers import generate_token, generate_txid
from .services import BaseService, ServiceResult

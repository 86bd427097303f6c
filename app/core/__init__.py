"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication,
projects, credits). Nothing here knows about credits or projects.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Managers (import from core.managers):
    - BaseQuerySet: QuerySet with created_at range filtering
    - SoftDeleteQuerySet: QuerySet with soft delete operations
    - SoftDeleteManager: Filter deleted records by default

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError, PermissionDeniedError, ConflictError
    - ExternalServiceError

Helpers (import from core.helpers):
    - generate_token: Cryptographically secure token generation
    - get_client_ip / request_audit_context: Request metadata for audit trails

Note:
    Django models, mixins and managers are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

# Helpers (no Django model dependencies)
from .helpers import generate_token, get_client_ip, request_audit_context

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "ExternalServiceError",
    # Helpers
    "generate_token",
    "get_client_ip",
    "request_audit_context",
]

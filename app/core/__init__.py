"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. Nothing in here knows
about shares, files or users.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError, PermissionDeniedError, ConflictError
    - ExternalServiceError: Third-party service failures
    - TransientStoreError: Retryable database timeout/connection failures

Protocols (import from core.protocols):
    - Clock: Injectable time source

Decorators (import from core.decorators):
    - translate_store_errors: Map database driver errors to TransientStoreError

Helpers (import from core.helpers):
    - get_client_ip, get_user_agent: Request metadata extraction
    - format_file_size: Human-readable byte counts
    - mask_token: Safe token prefix for log lines

Note:
    Django models and model mixins are NOT imported here to avoid
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
    TransientStoreError,
    ValidationError,
)

# Protocols and clocks
from .protocols import Clock
from .clock import SystemClock

# Decorators
from .decorators import translate_store_errors

# Helpers
from .helpers import format_file_size, get_client_ip, get_user_agent, mask_token

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
    "TransientStoreError",
    # Protocols
    "Clock",
    "SystemClock",
    # Decorators
    "translate_store_errors",
    # Helpers
    "format_file_size",
    "get_client_ip",
    "get_user_agent",
    "mask_token",
]

"""API Core - Shared utilities for API routes.

This package provides:
- The error response builder (error_response)
- Domain exceptions (ValidationError, NotFoundError, etc.)
- The exception handler that renders them

Usage:
    from intelboard.api.core import error_response
    from intelboard.api.core.exceptions import ValidationError
"""

from .response import (
    error_response,
    register_exception_handlers,
)

from .exceptions import (
    IntelBoardError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    ServiceUnavailableError,
)

__all__ = [
    # Response utilities
    "error_response",
    "register_exception_handlers",
    # Exceptions
    "IntelBoardError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "ServiceUnavailableError",
]

"""
Custom exceptions for the W3Pets marketplace API.

Every exception carries the HTTP status it maps to. Route handlers raise
them freely; the handlers registered in ``w3pets.api.middleware.error_handler``
turn them into ``{"message": ..., "error": ...}`` JSON bodies.
"""

from typing import Optional, Dict, Any


class W3PetsError(Exception):
    """Base exception for all W3Pets errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception with message and optional details.

        Args:
            message: Error message, safe to show to API clients
            details: Additional error details (logged, shown in development only)
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(W3PetsError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(W3PetsError):
    """Raised when a request field is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[Any] = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            value: Invalid value
        """
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details)
        self.field = field


class ConflictError(W3PetsError):
    """Raised when a unique value (e.g. email) is already taken."""

    status_code = 400


class ExpiredOrInvalidTokenError(W3PetsError):
    """Raised when a verification or reset link is unknown, used or expired."""

    status_code = 400


class AuthenticationError(W3PetsError):
    """Raised when credentials or a session token are missing or wrong."""

    status_code = 401


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT fails signature, expiry or type checks."""
    pass


class ForbiddenError(W3PetsError):
    """Raised when a valid session lacks the required role."""

    status_code = 403


class NotFoundError(W3PetsError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class InternalError(W3PetsError):
    """Raised for persistence failures and other unexpected conditions."""

    status_code = 500


class CacheError(InternalError):
    """Raised when the Redis-backed pending store cannot be reached."""
    pass


class EmailDeliveryError(InternalError):
    """Raised when an outgoing email cannot be delivered."""

    def __init__(self, message: str, recipient: Optional[str] = None):
        details = {"recipient": recipient} if recipient else None
        super().__init__(message, details)
        self.recipient = recipient


class StorageError(InternalError):
    """Raised when an uploaded file cannot be stored."""
    pass

"""
Base exception classes for the Forge backend.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application: the API
layer maps each base class to one HTTP status code.
"""

from typing import Optional, Any


class ForgeError(Exception):
    """
    Base exception for all Forge errors.

    All custom exceptions should inherit from this class. The message is
    user-facing; diagnostic detail belongs in ``details``.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ForgeError):
    """Resource not found."""

    pass


class ValidationError(ForgeError):
    """Input validation failed."""

    pass


class AuthenticationError(ForgeError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(ForgeError):
    """Authorization failed (insufficient permissions)."""

    pass


class ConflictError(ForgeError):
    """Resource already exists."""

    pass


class ExternalServiceError(ForgeError):
    """Error communicating with an external service (database, identity provider)."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service

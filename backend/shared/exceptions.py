"""
Base exception classes for the ProductivityHub backend.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application: the API
layer maps every HubError to its status_code and to_dict() payload.
"""

from typing import Optional, Any


class HubError(Exception):
    """
    Base exception for all ProductivityHub errors.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500

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
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationError(HubError):
    """Input validation failed."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        violations: Optional[list[str]] = None,
    ):
        super().__init__(message, code, details)
        self.violations = list(violations or [])
        if self.violations:
            self.details["violations"] = self.violations


class ConflictError(HubError):
    """A unique field is already taken."""

    status_code = 409


class NotFoundError(HubError):
    """Resource not found."""

    status_code = 404


class AuthenticationError(HubError):
    """Authentication failed (invalid or missing credentials)."""

    status_code = 401


class AuthorizationError(HubError):
    """Authorization failed (authenticated but not allowed)."""

    status_code = 403


class InternalError(HubError):
    """Unexpected failure. The message is safe to show to clients."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="INTERNAL_ERROR")


class ConfigurationError(HubError):
    """A mandatory setting is missing or invalid."""

    pass

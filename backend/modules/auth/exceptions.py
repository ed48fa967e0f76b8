"""
Authentication module exceptions.

These exceptions are raised by the auth module and are mapped to HTTP
responses by the API error handlers (status_code + to_dict()).
"""

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)


class InvalidTokenError(AuthenticationError):
    """Raised when a session token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationError):
    """Raised when a session token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(AuthenticationError):
    """Raised when no session token is provided."""

    def __init__(self, message: str = "Access token is required"):
        super().__init__(message, code="MISSING_TOKEN")


class UserNotFoundError(AuthenticationError):
    """
    Raised when a structurally valid token names a user that no longer
    exists or is no longer verified.
    """

    def __init__(self, user_id: str):
        super().__init__(
            "Invalid token - user not found or not verified",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class InvalidCredentialsError(AuthenticationError):
    """
    Raised for an unknown email AND for a wrong password.

    The payload must not reveal which of the two happened, so it carries
    no details at all.
    """

    def __init__(self):
        super().__init__("Invalid email or password", code="INVALID_CREDENTIALS")


class EmailNotVerifiedError(AuthorizationError):
    """Raised on login with correct credentials but an unverified email."""

    def __init__(self):
        super().__init__(
            "Please verify your email address before logging in. "
            "Check your inbox for a verification email.",
            code="EMAIL_NOT_VERIFIED",
        )


class EmailAlreadyRegisteredError(ConflictError):
    """Raised when registering an email that already has an account."""

    def __init__(self):
        super().__init__("User already exists with this email", code="EMAIL_ALREADY_REGISTERED")


class AuthValidationError(ValidationError):
    """Raised with every violated input rule, not just the first."""

    def __init__(self, violations: list[str]):
        super().__init__(
            "Validation failed",
            code="VALIDATION_FAILED",
            violations=violations,
        )


class InvalidVerificationTokenError(ValidationError):
    """Raised when no account matches a verification token."""

    def __init__(self, message: str = "Invalid verification token"):
        super().__init__(message, code="INVALID_VERIFICATION_TOKEN")


class VerificationTokenExpiredError(ValidationError):
    """Raised when the verification token matches but its window has passed."""

    def __init__(self):
        super().__init__(
            "Verification token has expired. Please request a new verification email.",
            code="VERIFICATION_TOKEN_EXPIRED",
        )

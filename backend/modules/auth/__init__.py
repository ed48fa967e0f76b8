"""
Authentication module.

Handles registration, email verification, login and session token checks.

Public API:
- IAuthService: Interface for auth operations
- AuthResult, UserResponse, SessionTokenPayload: Auth models
- PasswordHasher, SessionTokenIssuer: Credential primitives
- Auth exceptions: InvalidCredentialsError, EmailNotVerifiedError, etc.
"""

from .interfaces import IAuthService
from .models import AuthResult, SessionTokenPayload, UserResponse
from .passwords import PasswordHasher, password_violations
from .tokens import SessionTokenIssuer
from .exceptions import (
    AuthValidationError,
    EmailAlreadyRegisteredError,
    EmailNotVerifiedError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
    InvalidVerificationTokenError,
    MissingTokenError,
    UserNotFoundError,
    VerificationTokenExpiredError,
)

__all__ = [
    # Interface
    "IAuthService",
    # Models
    "AuthResult",
    "SessionTokenPayload",
    "UserResponse",
    # Primitives
    "PasswordHasher",
    "SessionTokenIssuer",
    "password_violations",
    # Exceptions
    "AuthValidationError",
    "EmailAlreadyRegisteredError",
    "EmailNotVerifiedError",
    "ExpiredTokenError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "InvalidVerificationTokenError",
    "MissingTokenError",
    "UserNotFoundError",
    "VerificationTokenExpiredError",
]

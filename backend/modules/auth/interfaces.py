"""
Authentication module interface.

Other modules should depend on IAuthService, not the concrete implementation.
This enables testing with mocks and keeps the API layer ignorant of storage.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import AuthenticatedUser

from .models import AuthResult, UserResponse


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to other modules. Implementations must provide all these methods.
    """

    async def register(self, email: str, password: str, name: str) -> UserResponse:
        """
        Create an unverified account and send the verification email.

        Raises:
            AuthValidationError: With every violated rule
            EmailAlreadyRegisteredError: If the email (case-insensitive) is taken
        """
        ...

    async def verify_email(self, token: Optional[str]) -> AuthResult:
        """
        Consume a verification token. Success doubles as login.

        A repeated call with an already consumed token succeeds without a
        session token and without touching the record.

        Raises:
            InvalidVerificationTokenError: If no account matches
            VerificationTokenExpiredError: If the token window has passed
        """
        ...

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Exchange credentials for a session token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password, indistinguishably
            EmailNotVerifiedError: Credentials are right but the email is unverified
        """
        ...

    async def authenticate_request(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Resolve a bearer token to a live, verified user.

        Raises:
            AuthenticationError: Missing, malformed, expired, or the user is
                gone or unverified
        """
        ...

    async def get_profile(self, user_id: str) -> UserResponse:
        """
        Get a user's public profile.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        ...

"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Stateless collaborators (password hasher, token issuer, email sender) are
process-wide singletons. Services that touch the database are built per
request around that request's session from get_db().
"""

from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.orm import Session

from shared.database import get_db

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import IAuthService
    from modules.auth.passwords import PasswordHasher
    from modules.auth.tokens import SessionTokenIssuer
    from modules.email.interfaces import IEmailSender
    from modules.preferences.interfaces import IPreferenceService


class ServiceContainer:
    """
    Container for all service instances.

    Shared collaborators are created lazily on first access and cached.
    Use reset() to clear all cached instances for testing.
    """

    def __init__(self) -> None:
        self._password_hasher: "PasswordHasher | None" = None
        self._token_issuer: "SessionTokenIssuer | None" = None
        self._email_sender: "IEmailSender | None" = None

    @property
    def password_hasher(self) -> "PasswordHasher":
        """Get the password hasher instance."""
        if self._password_hasher is None:
            from modules.auth.passwords import PasswordHasher
            from shared.config import get_settings
            self._password_hasher = PasswordHasher(get_settings().bcrypt_salt_rounds)
        return self._password_hasher

    @property
    def token_issuer(self) -> "SessionTokenIssuer":
        """Get the session token issuer instance."""
        if self._token_issuer is None:
            from modules.auth.tokens import SessionTokenIssuer
            from shared.config import get_settings
            settings = get_settings()
            self._token_issuer = SessionTokenIssuer(
                settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                expires_days=settings.session_token_expires_days,
            )
        return self._token_issuer

    @property
    def email_sender(self) -> "IEmailSender":
        """Get the email sender instance."""
        if self._email_sender is None:
            from modules.email.service import create_email_sender
            self._email_sender = create_email_sender()
        return self._email_sender

    def preferences(self, db: Session) -> "IPreferenceService":
        """Build a preference service bound to a request session."""
        from modules.preferences.service import PreferenceService
        return PreferenceService(db)

    def auth(self, db: Session) -> "IAuthService":
        """Build an auth service bound to a request session."""
        from modules.auth.service import AuthService
        return AuthService(
            db,
            hasher=self.password_hasher,
            tokens=self.token_issuer,
            email_sender=self.email_sender,
            preferences=self.preferences(db),
        )

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._password_hasher = None
        self._token_issuer = None
        self._email_sender = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_auth_service(db: Session = Depends(get_db)) -> "IAuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth(db)


def get_preference_service(db: Session = Depends(get_db)) -> "IPreferenceService":
    """FastAPI dependency for preference service."""
    return get_container().preferences(db)

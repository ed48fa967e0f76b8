"""
Session and verification tokens.

Session tokens are HS256 JWTs carrying only the user id and email. They are
never stored server-side, so they cannot be revoked before they expire.
Verification tokens are random, single-use and stored on the user row.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from shared.exceptions import ConfigurationError

from .exceptions import ExpiredTokenError, InvalidTokenError, MissingTokenError
from .models import SessionTokenPayload


class SessionTokenIssuer:
    """Signs and checks session tokens with one shared secret."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_days: int = 7):
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set to issue session tokens")
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = timedelta(days=expires_days)

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "userId": user_id,
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> SessionTokenPayload:
        """
        Check signature and expiry and return the claims.

        Raises:
            MissingTokenError: token is empty
            ExpiredTokenError: signature is fine but exp has passed
            InvalidTokenError: anything else (bad signature, garbage, missing claims)
        """
        if not token:
            raise MissingTokenError()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError:
            raise InvalidTokenError()

        try:
            return SessionTokenPayload(**payload)
        except (TypeError, ValueError):
            raise InvalidTokenError()


def generate_verification_token() -> str:
    """64 hex characters of cryptographic randomness."""
    return secrets.token_hex(32)


def verification_expiry(hours: int, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + timedelta(hours=hours)

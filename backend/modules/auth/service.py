"""
Authentication service implementation.

Owns the account lifecycle: registration, email verification, login and
per-request token authentication. Storage goes through UserRepository on
the request's session; verification email delivery is best effort.
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.config import Settings, get_settings
from shared.database import transaction
from shared.models import AuthenticatedUser

from .exceptions import (
    AuthValidationError,
    EmailAlreadyRegisteredError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidVerificationTokenError,
    UserNotFoundError,
    VerificationTokenExpiredError,
)
from .interfaces import IAuthService
from .models import AuthResult, UserResponse
from .passwords import PasswordHasher, password_violations
from .repository import UserRepository
from .tables import UserRow
from .tokens import SessionTokenIssuer, generate_verification_token, verification_expiry

if TYPE_CHECKING:
    from modules.email.interfaces import IEmailSender
    from modules.preferences.interfaces import IPreferenceService

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_response(row: UserRow) -> UserResponse:
    return UserResponse(
        id=row.id,
        email=row.email,
        name=row.name,
        email_verified=row.email_verified,
        created_at=row.created_at,
    )


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    One instance serves one request: it is bound to that request's
    database session. The hasher and token issuer are shared.
    """

    def __init__(
        self,
        db: Session,
        hasher: PasswordHasher,
        tokens: SessionTokenIssuer,
        email_sender: Optional["IEmailSender"] = None,
        preferences: Optional["IPreferenceService"] = None,
        settings: Optional[Settings] = None,
    ):
        self._db = db
        self._users = UserRepository(db)
        self._hasher = hasher
        self._tokens = tokens
        self._email = email_sender
        self._preferences = preferences
        self._settings = settings or get_settings()

    async def register(self, email: str, password: str, name: str) -> UserResponse:
        email = normalize_email(email or "")
        violations = []
        if not name or not name.strip():
            violations.append("Name is required")
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            violations.append("Please provide a valid email")
        violations.extend(password_violations(password or ""))
        if violations:
            raise AuthValidationError(violations)

        if self._users.email_exists(email):
            raise EmailAlreadyRegisteredError()

        password_hash = await self._hasher.hash_async(password)
        verification_token = generate_verification_token()
        expires = verification_expiry(self._settings.email_verification_expires_hours)

        try:
            with transaction(self._db):
                row = self._users.create(
                    email=email,
                    name=name.strip(),
                    password_hash=password_hash,
                    verification_token=verification_token,
                    verification_expires=expires,
                )
                if self._preferences is not None:
                    self._preferences.create_defaults(row.id)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise EmailAlreadyRegisteredError()

        logger.info(f"Registered user {row.id}")

        if self._email is not None:
            try:
                await self._email.send_verification_email(row.email, row.name, verification_token)
            except Exception:
                # The account stays; the user can ask for another email later
                logger.exception(f"Failed to send verification email for user {row.id}")

        return _to_response(row)

    async def verify_email(self, token: Optional[str]) -> AuthResult:
        if not token:
            raise InvalidVerificationTokenError("Verification token is required")

        row = self._users.get_by_verification_token(token)
        if row is None:
            consumed = self._users.get_by_consumed_token(token)
            if consumed is not None and consumed.email_verified:
                return AuthResult(user=_to_response(consumed), already_verified=True)
            raise InvalidVerificationTokenError()

        if row.email_verified:
            return AuthResult(user=_to_response(row), already_verified=True)

        if row.email_verification_expires is None or datetime.now(timezone.utc) > _as_utc(
            row.email_verification_expires
        ):
            raise VerificationTokenExpiredError()

        with transaction(self._db):
            self._users.mark_verified(row)

        logger.info(f"Verified email for user {row.id}")
        return AuthResult(
            user=_to_response(row),
            session_token=self._tokens.issue(row.id, row.email),
        )

    async def login(self, email: str, password: str) -> AuthResult:
        violations = []
        if not email or not email.strip():
            violations.append("Please provide a valid email")
        if not password:
            violations.append("Password is required")
        if violations:
            raise AuthValidationError(violations)

        row = self._users.get_by_email(normalize_email(email))
        if row is None:
            await self._hasher.burn_verify_async(password)
            logger.info("Login failed: invalid credentials")
            raise InvalidCredentialsError()

        if not await self._hasher.verify_async(password, row.password_hash):
            logger.info("Login failed: invalid credentials")
            raise InvalidCredentialsError()

        if not row.email_verified:
            logger.info(f"Login refused for unverified user {row.id}")
            raise EmailNotVerifiedError()

        logger.info(f"User {row.id} logged in")
        return AuthResult(
            user=_to_response(row),
            session_token=self._tokens.issue(row.id, row.email),
        )

    async def authenticate_request(self, token: Optional[str]) -> AuthenticatedUser:
        payload = self._tokens.verify(token)

        row = self._users.get_by_id(payload.userId)
        if row is None or not row.email_verified:
            raise UserNotFoundError(payload.userId)

        return AuthenticatedUser(
            id=row.id,
            email=row.email,
            name=row.name,
            email_verified=row.email_verified,
        )

    async def get_profile(self, user_id: str) -> UserResponse:
        row = self._users.get_by_id(user_id)
        if row is None:
            raise UserNotFoundError(user_id)
        return _to_response(row)

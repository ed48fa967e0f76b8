"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from shared.models import AuthenticatedUser, CamelModel


class SessionTokenPayload(BaseModel):
    """
    Decoded session token claims.

    The token is self-contained: nothing about it is stored server-side.
    Verification status is deliberately absent and is re-checked against
    the database on every request.
    """

    userId: str = Field(..., description="Subject (user ID)")
    email: str = Field(..., description="User's email at issue time")
    iat: int = Field(..., description="Issued at timestamp")
    exp: int = Field(..., description="Expiration timestamp")


class RegisterRequest(BaseModel):
    """Registration payload. Rules are checked by the service so that every violation is reported together."""

    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(CamelModel):
    """Public view of a user record."""

    id: str
    email: str
    name: str
    email_verified: bool
    created_at: Optional[datetime] = None


class AuthResult(BaseModel):
    """A user together with a freshly minted session token, if any."""

    user: UserResponse
    session_token: Optional[str] = None
    already_verified: bool = False


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class VerifyEmailResponse(BaseModel):
    message: str
    user: UserResponse
    token: Optional[str] = None


class LoginResponse(BaseModel):
    message: str
    user: UserResponse
    token: str


class ProfileResponse(BaseModel):
    user: AuthenticatedUser

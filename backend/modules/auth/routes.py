"""
Authentication API endpoints.

Registration, email verification and login. Business errors raised by the
service are HubErrors and are rendered by the app's exception handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_auth_service

from .interfaces import IAuthService
from .models import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    VerifyEmailResponse,
)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    request: RegisterRequest,
    service: IAuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """
    Create an account.

    The account starts unverified; a verification link is emailed.
    """
    user = await service.register(request.email, request.password, request.name)
    return RegisterResponse(
        message="Registration successful. Please check your email to verify your account.",
        user=user,
    )


@router.get("/verify-email", response_model=VerifyEmailResponse, response_model_exclude_none=True)
async def verify_email(
    token: Optional[str] = Query(default=None, description="Verification token from the email link"),
    service: IAuthService = Depends(get_auth_service),
) -> VerifyEmailResponse:
    """
    Verify an email address.

    A first successful call also logs the user in. Repeating it is harmless.
    """
    result = await service.verify_email(token)
    if result.already_verified:
        return VerifyEmailResponse(message="Email already verified", user=result.user)
    return VerifyEmailResponse(
        message="Email verified successfully! You are now logged in.",
        user=result.user,
        token=result.session_token,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    service: IAuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange email and password for a session token."""
    result = await service.login(request.email, request.password)
    return LoginResponse(message="Login successful", user=result.user, token=result.session_token)

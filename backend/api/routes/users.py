"""
User-related endpoints.

Provides the profile endpoint the mobile client uses to check a stored
session token at startup.
"""

from fastapi import APIRouter, Depends

from modules.auth.models import ProfileResponse
from shared.models import AuthenticatedUser
from ..middleware.auth import get_current_user

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileResponse:
    """
    Get the current user's profile.

    Requires authentication. A 401 here means the stored token is no
    longer usable.
    """
    return ProfileResponse(user=user)

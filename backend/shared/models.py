"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for models that travel over the wire.

    Fields are snake_case in Python and camelCase in JSON, matching what
    the mobile app sends and expects.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthenticatedUser(CamelModel):
    """
    Represents an authenticated user in the system.

    Built from the user record after the session token has been verified,
    so email_verified reflects the database, not the token.
    """

    id: str = Field(..., description="User ID (UUID)")
    email: str = Field(..., description="User's email address (lowercase)")
    name: str = Field(..., description="Display name")
    email_verified: bool = Field(default=False, description="Whether email is verified")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,  # Make immutable for safety
    )

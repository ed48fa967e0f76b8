import pytest
from pydantic import ValidationError

from modules.auth.models import AuthResult, SessionTokenPayload, UserResponse, VerifyEmailResponse


class TestUserResponse:
    def test_serializes_camel_case(self):
        """UserResponse should use camelCase on the wire."""
        user = UserResponse(id="user-123", email="test@productivityhub.app", name="Test", email_verified=True)
        data = user.model_dump(by_alias=True)
        assert data["emailVerified"] is True
        assert "email_verified" not in data
        assert data["createdAt"] is None

    def test_accepts_either_name(self):
        user = UserResponse.model_validate(
            {"id": "user-123", "email": "test@productivityhub.app", "name": "Test", "emailVerified": False}
        )
        assert user.email_verified is False


class TestSessionTokenPayload:
    def test_parse_payload(self):
        """Should parse the claims of a session token."""
        payload = SessionTokenPayload(
            userId="user-123",
            email="test@productivityhub.app",
            iat=1704063600,
            exp=1704668400,
        )
        assert payload.userId == "user-123"
        assert payload.exp - payload.iat == 7 * 24 * 3600

    def test_missing_claims_rejected(self):
        with pytest.raises(ValidationError):
            SessionTokenPayload(userId="user-123", iat=1704063600, exp=1704668400)


class TestAuthResult:
    def test_defaults(self):
        user = UserResponse(id="u", email="u@productivityhub.app", name="U", email_verified=True)
        result = AuthResult(user=user)
        assert result.session_token is None
        assert result.already_verified is False

    def test_verify_response_without_token(self):
        user = UserResponse(id="u", email="u@productivityhub.app", name="U", email_verified=True)
        response = VerifyEmailResponse(message="Email already verified", user=user)
        assert "token" not in response.model_dump(exclude_none=True)

"""
HTTP client for the ProductivityHub API.

Every request has a bounded timeout. Failures come out as exactly two
types: NetworkError (no answer) and ApiError (an error answer). A 401 on
an authenticated call also discards the stored token, since the server
will never accept it again.
"""

import logging
from typing import Any, Optional

import httpx

from .config import get_client_settings
from .exceptions import ApiError, NetworkError
from .models import PluginPayload, PreferencesPayload, UserInfo
from .storage import TokenStore

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Thin async wrapper over the REST endpoints.

    Owns one httpx.AsyncClient; call aclose() when done.
    """

    def __init__(
        self,
        tokens: TokenStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_client_settings()
        self._tokens = tokens
        self._http = httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url).rstrip("/") + "/",
            timeout=timeout if timeout is not None else settings.request_timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        headers = {}
        if authenticated:
            token = await self._tokens.get()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._http.request(
                method, path.lstrip("/"), json=json, params=params, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.info(f"{method} {path} timed out")
            raise NetworkError("The server took too long to respond") from e
        except httpx.TransportError as e:
            logger.info(f"{method} {path} failed: {e}")
            raise NetworkError("Unable to reach the server") from e

        if response.is_success:
            return response.json() if response.content else {}

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        logger.info(f"{method} {path} - {response.status_code}")
        if response.status_code == 401 and authenticated:
            logger.info("Token expired or invalid - discarding it")
            await self._tokens.clear()

        raise ApiError(
            response.status_code,
            body.get("error") or f"Request failed with status {response.status_code}",
            code=body.get("code"),
            details=body.get("details") if isinstance(body.get("details"), dict) else None,
        )

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def register(self, email: str, password: str, name: str) -> UserInfo:
        body = await self._request(
            "POST",
            "auth/register",
            json={"email": email, "password": password, "name": name},
            authenticated=False,
        )
        return UserInfo.model_validate(body["user"])

    async def login(self, email: str, password: str) -> tuple[UserInfo, str]:
        body = await self._request(
            "POST",
            "auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        return UserInfo.model_validate(body["user"]), body["token"]

    async def verify_email(self, token: str) -> tuple[UserInfo, Optional[str]]:
        """Returns the user and, on first verification, a session token."""
        body = await self._request(
            "GET",
            "auth/verify-email",
            params={"token": token},
            authenticated=False,
        )
        return UserInfo.model_validate(body["user"]), body.get("token")

    async def get_profile(self) -> UserInfo:
        body = await self._request("GET", "user/profile")
        return UserInfo.model_validate(body["user"])

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    async def get_preferences(self) -> PreferencesPayload:
        body = await self._request("GET", "user/preferences")
        return PreferencesPayload.model_validate(body)

    async def set_current_theme(self, theme_id: str) -> str:
        body = await self._request("PUT", "user/current-theme", json={"themeId": theme_id})
        return body["currentTheme"]

    async def enable_theme(self, theme_id: str) -> list[str]:
        body = await self._request("POST", "user/enabled-themes", json={"themeId": theme_id})
        return list(body["enabledThemes"])

    async def disable_theme(self, theme_id: str) -> tuple[str, list[str]]:
        body = await self._request("DELETE", f"user/enabled-themes/{theme_id}")
        return body["currentTheme"], list(body["enabledThemes"])

    async def enable_plugin(self, plugin_id: str, settings: Optional[dict[str, Any]] = None) -> PluginPayload:
        body = await self._request(
            "POST",
            "user/enabled-plugins",
            json={"pluginId": plugin_id, "settings": settings or {}},
        )
        return PluginPayload.model_validate(body["plugin"])

    async def disable_plugin(self, plugin_id: str) -> str:
        body = await self._request("DELETE", f"user/enabled-plugins/{plugin_id}")
        return body["pluginId"]

    async def update_plugin_settings(self, plugin_id: str, settings: dict[str, Any]) -> PluginPayload:
        body = await self._request(
            "PUT",
            f"user/enabled-plugins/{plugin_id}/settings",
            json={"settings": settings},
        )
        return PluginPayload.model_validate(body["plugin"])

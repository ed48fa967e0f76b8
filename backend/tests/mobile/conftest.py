"""
Fixtures for the client runtime tests.

FakeHubServer answers the REST endpoints from memory through
httpx.MockTransport, and can be told to go down, fail one path with a
given status, or hold a path until the test releases it.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio

from mobile import create_client
from mobile.config import ClientSettings
from mobile.storage import MemoryStorage

API_BASE_URL = "http://testserver/api"
SESSION_TOKEN = "session-token"
PASSWORD = "Password1!"


class FakeHubServer:
    """In-memory stand-in for the ProductivityHub API."""

    def __init__(self) -> None:
        self.user = {
            "id": "user-1",
            "email": "alice@productivityhub.app",
            "name": "Alice",
            "emailVerified": True,
        }
        self.current = "light-default"
        self.enabled = ["light-default", "dark-default"]
        self.plugins: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str, Any]] = []
        self.down = False
        self.failures: dict[tuple[str, str], tuple[int, dict]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.in_flight: dict[str, int] = {}
        self.max_in_flight: dict[str, int] = {}

    # -- test controls --------------------------------------------------------

    def fail(self, method: str, path: str, status: int, code: Optional[str] = None, error: str = "Failed") -> None:
        self.failures[(method, path)] = (status, {"error": error, "code": code, "details": {}})

    def hold(self, path: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[path] = gate
        return gate

    def paths(self, method: Optional[str] = None) -> list[str]:
        return [p for m, p, _ in self.requests if method is None or m == method]

    # -- transport ------------------------------------------------------------

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        self.in_flight[path] = self.in_flight.get(path, 0) + 1
        self.max_in_flight[path] = max(self.max_in_flight.get(path, 0), self.in_flight[path])
        try:
            gate = self.gates.get(path)
            if gate is not None:
                await gate.wait()
            if self.down:
                raise httpx.ConnectError("Connection refused", request=request)
            failure = self.failures.get((request.method, path))
            if failure is not None:
                status, payload = failure
                return httpx.Response(status, json=payload)
            return self._route(request, path, body)
        finally:
            self.in_flight[path] -= 1

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {SESSION_TOKEN}"

    def _plugin(self, plugin_id: str) -> dict:
        return {"id": plugin_id, "settings": self.plugins[plugin_id], "enabledAt": "2026-01-01T00:00:00Z"}

    def _route(self, request: httpx.Request, path: str, body: Any) -> httpx.Response:
        method = request.method

        if path == "/auth/register" and method == "POST":
            user = {**self.user, "email": body["email"], "name": body["name"], "emailVerified": False}
            return httpx.Response(201, json={"message": "Registration successful", "user": user})
        if path == "/auth/login" and method == "POST":
            if body["password"] != PASSWORD:
                return httpx.Response(401, json={"error": "Invalid email or password", "code": "INVALID_CREDENTIALS"})
            return httpx.Response(200, json={"message": "Login successful", "user": self.user, "token": SESSION_TOKEN})
        if path == "/auth/verify-email" and method == "GET":
            if request.url.params.get("token") == "used-token":
                return httpx.Response(200, json={"message": "Email already verified", "user": self.user})
            return httpx.Response(200, json={"message": "Email verified", "user": self.user, "token": SESSION_TOKEN})

        if not self._authorized(request):
            return httpx.Response(401, json={"error": "Access token is required", "code": "MISSING_TOKEN"})

        if path == "/user/profile" and method == "GET":
            return httpx.Response(200, json={"user": self.user})
        if path == "/user/preferences" and method == "GET":
            return httpx.Response(
                200,
                json={
                    "themes": {"current": self.current, "enabled": list(self.enabled)},
                    "plugins": {"enabled": [self._plugin(p) for p in self.plugins]},
                    "lastUpdated": datetime.now(timezone.utc).isoformat(),
                },
            )
        if path == "/user/current-theme" and method == "PUT":
            self.current = body["themeId"]
            return httpx.Response(200, json={"message": "ok", "currentTheme": self.current})
        if path == "/user/enabled-themes" and method == "POST":
            self.enabled.append(body["themeId"])
            return httpx.Response(200, json={"message": "ok", "enabledThemes": self.enabled})
        if path.startswith("/user/enabled-themes/") and method == "DELETE":
            theme_id = path.rsplit("/", 1)[1]
            self.enabled.remove(theme_id)
            if self.current == theme_id:
                self.current = self.enabled[0]
            return httpx.Response(
                200, json={"message": "ok", "currentTheme": self.current, "enabledThemes": self.enabled}
            )
        if path == "/user/enabled-plugins" and method == "POST":
            self.plugins[body["pluginId"]] = body.get("settings") or {}
            return httpx.Response(200, json={"message": "ok", "plugin": self._plugin(body["pluginId"])})
        if path.startswith("/user/enabled-plugins/") and path.endswith("/settings") and method == "PUT":
            plugin_id = path.split("/")[3]
            self.plugins[plugin_id] = body["settings"]
            return httpx.Response(200, json={"message": "ok", "plugin": self._plugin(plugin_id)})
        if path.startswith("/user/enabled-plugins/") and method == "DELETE":
            plugin_id = path.rsplit("/", 1)[1]
            self.plugins.pop(plugin_id, None)
            return httpx.Response(200, json={"message": "ok", "pluginId": plugin_id})

        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def server() -> FakeHubServer:
    return FakeHubServer()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def signed_in_storage() -> MemoryStorage:
    """Storage that already holds a valid session token."""
    return MemoryStorage({"jwt_token": SESSION_TOKEN})


@pytest.fixture
def client_settings() -> ClientSettings:
    return ClientSettings(api_base_url=API_BASE_URL, request_timeout=2.0)


@pytest_asyncio.fixture
async def hub(server, storage, client_settings):
    """A fully wired client talking to the fake server."""
    client = create_client(
        storage=storage,
        settings=client_settings,
        transport=httpx.MockTransport(server),
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def signed_in_hub(server, signed_in_storage, client_settings):
    """A client with a stored token whose store is marked authenticated."""
    client = create_client(
        storage=signed_in_storage,
        settings=client_settings,
        transport=httpx.MockTransport(server),
    )
    await client.auth.check_auth()
    yield client
    await client.aclose()

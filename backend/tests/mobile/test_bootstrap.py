"""Tests for the startup sequence."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from mobile import create_client
from mobile.storage import MemoryStorage
from mobile.store import BootstrapStage, select_current_theme_id, select_is_authenticated, select_is_ready


@pytest_asyncio.fixture
async def client_for(server, client_settings):
    """Build a client on a storage pre-filled with the given items."""
    clients = []

    def factory(items=None):
        client = create_client(
            storage=MemoryStorage(items),
            settings=client_settings,
            transport=httpx.MockTransport(server),
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_without_token(self, client_for, server):
        client = client_for()

        result = await client.bootstrap.run()

        assert result.is_authenticated is False
        assert result.preferences.source == "default"
        assert select_is_ready(client.store.state) is True
        assert client.store.state.session.stage is BootstrapStage.COMPLETE
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_with_valid_token(self, client_for, server):
        server.current = "dark-default"
        client = client_for({"jwt_token": "session-token"})

        result = await client.bootstrap.run()

        assert result.is_authenticated is True
        assert result.user.id == "user-1"
        assert result.preferences.source == "server"
        assert select_current_theme_id(client.store.state) == "dark-default"
        assert server.paths("GET") == ["/user/profile", "/user/preferences"]

    @pytest.mark.asyncio
    async def test_with_rejected_token(self, client_for, server):
        """A stale token is discarded and the app starts signed out."""
        client = client_for({"jwt_token": "stale-token"})

        result = await client.bootstrap.run()

        assert result.is_authenticated is False
        assert await client.tokens.get() is None
        assert select_is_ready(client.store.state) is True
        assert "/user/preferences" not in server.paths()

    @pytest.mark.asyncio
    async def test_offline_start_uses_cache(self, client_for, server):
        server.down = True
        client = client_for(
            {
                "jwt_token": "session-token",
                "theme_preference": "grayscale-default",
                "enabled_themes": json.dumps(["light-default", "dark-default", "grayscale-default"]),
            }
        )

        result = await client.bootstrap.run()

        assert result.is_authenticated is False
        assert result.preferences.source == "cache"
        assert select_current_theme_id(client.store.state) == "grayscale-default"
        assert await client.tokens.get() == "session-token"
        assert select_is_ready(client.store.state) is True

    @pytest.mark.asyncio
    async def test_runs_once(self, client_for, server):
        client = client_for({"jwt_token": "session-token"})

        first, second = await asyncio.gather(client.bootstrap.run(), client.bootstrap.run())
        third = await client.bootstrap.run()

        assert first is second is third
        assert server.paths("GET").count("/user/profile") == 1

    @pytest.mark.asyncio
    async def test_ready_flips_exactly_once(self, client_for):
        client = client_for({"jwt_token": "session-token"})
        flips = []
        client.store.subscribe(lambda state: flips.append(select_is_ready(state)))

        await client.bootstrap.run()
        await client.bootstrap.run()

        assert flips[-1] is True
        assert flips.count(True) == 1

    @pytest.mark.asyncio
    async def test_stage_failure_does_not_stop_startup(self, client_for):
        client = client_for({"jwt_token": "session-token"})

        with patch.object(client.auth, "check_auth", AsyncMock(side_effect=RuntimeError("boom"))):
            result = await client.bootstrap.run()

        assert result.is_authenticated is False
        assert select_is_ready(client.store.state) is True


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_signed_out_does_nothing(self, client_for, server):
        client = client_for()
        await client.bootstrap.run()
        assert await client.bootstrap.refresh() is None
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_refresh_reloads_server_preferences(self, client_for, server):
        client = client_for({"jwt_token": "session-token"})
        await client.bootstrap.run()
        server.current = "dark-default"

        snapshot = await client.bootstrap.refresh()

        assert snapshot.current_theme_id == "dark-default"
        assert select_is_authenticated(client.store.state) is True

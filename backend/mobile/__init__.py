"""
Client runtime for the ProductivityHub mobile app.

Everything the app does between the UI and the API: local storage, the
HTTP client, the state store, preference sync and the startup sequence.
The UI reads state through selectors and calls into the services below.

Public API:
- Store, AppState and selectors: state container
- PreferenceSyncEngine: preference reads and writes
- ClientAuthService: register, verify, login, logout
- SessionBootstrap: startup sequence
- create_client: wires everything together
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from .api_client import ApiClient
from .auth import ClientAuthService
from .bootstrap import BootstrapResult, SessionBootstrap
from .config import ClientSettings, get_client_settings
from .exceptions import (
    ApiError,
    ClientError,
    ForbiddenError,
    InvalidStateError,
    NetworkError,
    StorageError,
)
from .optimistic import RollbackPolicy, SyncResult
from .plugins import PlaceholderPlugin, Plugin, PluginRegistry, PluginStatus
from .storage import FileStorage, KeyValueStorage, MemoryStorage, PreferenceCache, TokenStore
from .store import AppState, Store
from .sync import PreferenceSyncEngine


@dataclass
class Client:
    """Every client service, sharing one store, one HTTP client and one storage."""

    store: Store
    api: ApiClient
    tokens: TokenStore
    cache: PreferenceCache
    sync: PreferenceSyncEngine
    auth: ClientAuthService
    bootstrap: SessionBootstrap

    async def aclose(self) -> None:
        await self.api.aclose()


def create_client(
    storage: Optional[KeyValueStorage] = None,
    settings: Optional[ClientSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    color_scheme: Optional[str] = None,
    registry: Optional[PluginRegistry] = None,
) -> Client:
    """
    Build a fully wired client.

    Args:
        storage: Platform key-value store; a FileStorage at
            settings.storage_path when omitted
        settings: Client settings; loaded from the environment when omitted
        transport: httpx transport override (tests, in-process servers)
        color_scheme: Platform color scheme used before anything is cached
        registry: Plugin registry; the built-in catalog when omitted
    """
    settings = settings or get_client_settings()
    storage = storage if storage is not None else FileStorage(settings.storage_path)

    store = Store()
    tokens = TokenStore(storage)
    cache = PreferenceCache(storage)
    api = ApiClient(
        tokens,
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    sync = PreferenceSyncEngine(store, api, cache, registry=registry, color_scheme=color_scheme)
    auth = ClientAuthService(store, api, tokens, sync=sync, cache=cache)
    bootstrap = SessionBootstrap(store, sync, auth)
    return Client(
        store=store,
        api=api,
        tokens=tokens,
        cache=cache,
        sync=sync,
        auth=auth,
        bootstrap=bootstrap,
    )


__all__ = [
    "ApiClient",
    "ApiError",
    "AppState",
    "BootstrapResult",
    "Client",
    "ClientAuthService",
    "ClientError",
    "ClientSettings",
    "FileStorage",
    "ForbiddenError",
    "InvalidStateError",
    "KeyValueStorage",
    "MemoryStorage",
    "NetworkError",
    "PlaceholderPlugin",
    "Plugin",
    "PluginRegistry",
    "PluginStatus",
    "PreferenceCache",
    "PreferenceSyncEngine",
    "RollbackPolicy",
    "SessionBootstrap",
    "StorageError",
    "Store",
    "SyncResult",
    "TokenStore",
    "create_client",
]

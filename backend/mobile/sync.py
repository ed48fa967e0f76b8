"""
Preference Sync Engine.

Reconciles three copies of the user's preferences: the server (source of
truth), the local cache (survives restarts and outages) and the store
(what the UI shows).

Recovery differs by operation:
- current theme: the local change is kept when the server call fails and
  written to the cache as an offline change
- enabling or disabling a theme: the local change is kept and an error
  notice is posted
- plugin enable, disable and settings: the local change is rolled back to
  its previous value and a retryable notice is posted

Writes to one key (the current theme, one theme's enabled flag, one
plugin) are queued, so at most one request per key is in flight.
"""

import logging
from typing import Any, Optional

from shared.themes import THEME_IDS, can_disable_theme, first_enabled_theme, system_theme_id

from .api_client import ApiClient
from .exceptions import ApiError, ClientError, ForbiddenError, InvalidStateError, NetworkError
from .models import PluginEntry, PluginPayload, PreferenceSnapshot
from .optimistic import KeySerializer, RollbackPolicy, SyncResult, run_optimistic
from .plugins import PluginRegistry
from .storage import PreferenceCache
from .store import (
    CurrentThemeChanged,
    NoticeKind,
    NoticePosted,
    PluginsChanged,
    PreferencesReplaced,
    SignedOut,
    Store,
    ThemesChanged,
    select_plugin,
)

logger = logging.getLogger(__name__)

CURRENT_THEME_KEY = "theme:current"

# Server answers that mean "already the way you want it"
_NOOP_CODES = frozenset({"ALREADY_ENABLED", "NOT_ENABLED"})


def theme_key(theme_id: str) -> str:
    return f"theme:{theme_id}"


def plugin_key(plugin_id: str) -> str:
    return f"plugin:{plugin_id}"


class PreferenceSyncEngine:
    """
    Client-side owner of every preference write.

    Args:
        store: The app's state container
        api: HTTP client
        cache: Local preference cache
        registry: Known plugins; ids outside it are rejected
        color_scheme: Platform color scheme ("light", "dark" or None),
            used when nothing is cached yet
    """

    def __init__(
        self,
        store: Store,
        api: ApiClient,
        cache: PreferenceCache,
        registry: Optional[PluginRegistry] = None,
        color_scheme: Optional[str] = None,
    ):
        self._store = store
        self._api = api
        self._cache = cache
        self._registry = registry if registry is not None else PluginRegistry()
        self._color_scheme = color_scheme
        self._keys = KeySerializer()

    @property
    def registry(self) -> PluginRegistry:
        return self._registry

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_local(self) -> PreferenceSnapshot:
        """
        Load preferences without touching the network.

        Uses the cache when it holds both the current theme and the enabled
        list, otherwise the platform color scheme plus the core themes.
        """
        current = await self._cache.load_current_theme()
        enabled = await self._cache.load_enabled_themes()
        plugins = await self._cache.load_plugins() or []

        if current and enabled:
            snapshot = PreferenceSnapshot(current, tuple(enabled), tuple(plugins), source="cache")
            logger.info(f"Loaded local theme: {current}")
        else:
            theme_id = system_theme_id(self._color_scheme)
            snapshot = PreferenceSnapshot(
                theme_id,
                tuple(enabled or ()),
                tuple(plugins),
                source="default",
            )
            logger.info(f"Using system theme: {theme_id}")

        self._store.dispatch(PreferencesReplaced(snapshot))
        await self._registry.sync(p.id for p in self._store.state.plugins.enabled)
        return self._current_snapshot(snapshot.source)

    async def load_preferences(self) -> PreferenceSnapshot:
        """
        Load preferences from the server, falling back to local ones.

        On success the cache and the store are overwritten with the
        server's values. On failure the cache is used, then the defaults.
        """
        try:
            payload = await self._api.get_preferences()
        except (ApiError, NetworkError) as e:
            logger.info(f"Server load failed, using local preferences: {e.message}")
            self._handle_unauthorized(e)
            self._notify(
                "Couldn't load your preferences from the server. Showing the ones saved on this device.",
                kind=NoticeKind.WARNING,
                retryable=True,
            )
            return await self.load_local()

        snapshot = PreferenceSnapshot(
            current_theme_id=payload.themes.current,
            enabled_theme_ids=tuple(payload.themes.enabled),
            plugins=tuple(PluginEntry.from_payload(p) for p in payload.plugins.enabled),
            source="server",
        )
        self._store.dispatch(PreferencesReplaced(snapshot))
        await self._persist_themes()
        await self._persist_plugins()
        await self._registry.sync(p.id for p in self._store.state.plugins.enabled)
        logger.info("Loaded preferences from server")
        return self._current_snapshot("server")

    # -------------------------------------------------------------------------
    # Themes
    # -------------------------------------------------------------------------

    async def set_current_theme(self, theme_id: str) -> SyncResult:
        """
        Switch theme.

        Raises:
            InvalidStateError: If theme_id is not enabled
        """
        async with self._keys.hold(CURRENT_THEME_KEY):
            themes = self._store.state.themes
            if theme_id not in themes.enabled_theme_ids:
                raise InvalidStateError(f"Theme {theme_id} is not enabled")

            # A disable_theme on another key may have moved the current theme
            # while this request was in flight, so the cache follows the store.
            async def on_success(_: Any) -> None:
                await self._persist_themes()

            async def on_failure(error: ClientError, rolled_back: bool) -> None:
                await self._persist_themes()
                logger.info(f"Saved theme {self._store.state.themes.current_theme_id} locally despite server failure")
                if not self._handle_unauthorized(error):
                    self._notify(
                        "Couldn't save your theme to the server. It's saved on this device for now.",
                        kind=NoticeKind.WARNING,
                        retryable=True,
                    )

            return await run_optimistic(
                snapshot=lambda: themes.current_theme_id,
                apply=lambda: self._store.dispatch(CurrentThemeChanged(theme_id)),
                remote=lambda: self._api.set_current_theme(theme_id),
                restore=lambda previous: self._store.dispatch(CurrentThemeChanged(previous)),
                policy=RollbackPolicy.RETAIN,
                on_success=on_success,
                on_failure=on_failure,
                label=f"set current theme {theme_id}",
            )

    async def enable_theme(self, theme_id: str) -> SyncResult:
        """
        Raises:
            InvalidStateError: If the theme is unknown or already enabled
        """
        if theme_id not in THEME_IDS:
            raise InvalidStateError(f"Unknown theme: {theme_id}")

        async with self._keys.hold(theme_key(theme_id)):
            themes = self._store.state.themes
            if theme_id in themes.enabled_theme_ids:
                raise InvalidStateError(f"Theme {theme_id} is already enabled")

            def apply() -> None:
                state = self._store.state.themes
                self._store.dispatch(
                    ThemesChanged(state.current_theme_id, (*state.enabled_theme_ids, theme_id))
                )

            async def remote() -> Any:
                try:
                    return await self._api.enable_theme(theme_id)
                except ApiError as e:
                    if e.code in _NOOP_CODES:
                        return None
                    raise

            async def on_success(_: Any) -> None:
                await self._persist_themes()

            async def on_failure(error: ClientError, rolled_back: bool) -> None:
                if not self._handle_unauthorized(error):
                    self._notify("Couldn't enable that theme on the server. Please try again.", retryable=True)

            return await run_optimistic(
                snapshot=lambda: themes,
                apply=apply,
                remote=remote,
                restore=self._restore_themes,
                policy=RollbackPolicy.RETAIN,
                on_success=on_success,
                on_failure=on_failure,
                label=f"enable theme {theme_id}",
            )

    async def disable_theme(self, theme_id: str) -> SyncResult:
        """
        Disable a theme. If it is the current one, switch to the first
        remaining enabled theme in catalog order.

        Raises:
            ForbiddenError: For core themes, before any network call
            InvalidStateError: If it is not enabled, or nothing would remain
        """
        if not can_disable_theme(theme_id):
            raise ForbiddenError("Core themes cannot be disabled")

        async with self._keys.hold(theme_key(theme_id)):
            themes = self._store.state.themes
            if theme_id not in themes.enabled_theme_ids:
                raise InvalidStateError(f"Theme {theme_id} is not enabled")

            remaining = tuple(t for t in themes.enabled_theme_ids if t != theme_id)
            current = themes.current_theme_id
            if current == theme_id:
                fallback = first_enabled_theme(remaining)
                if fallback is None:
                    raise InvalidStateError("No other enabled theme to switch to")
                current = fallback.id

            async def remote() -> Any:
                try:
                    return await self._api.disable_theme(theme_id)
                except ApiError as e:
                    if e.code in _NOOP_CODES:
                        return None
                    raise

            async def on_success(_: Any) -> None:
                await self._persist_themes()

            async def on_failure(error: ClientError, rolled_back: bool) -> None:
                if not self._handle_unauthorized(error):
                    self._notify("Couldn't disable that theme on the server. Please try again.", retryable=True)

            return await run_optimistic(
                snapshot=lambda: themes,
                apply=lambda: self._store.dispatch(ThemesChanged(current, remaining)),
                remote=remote,
                restore=self._restore_themes,
                policy=RollbackPolicy.RETAIN,
                on_success=on_success,
                on_failure=on_failure,
                label=f"disable theme {theme_id}",
            )

    # -------------------------------------------------------------------------
    # Plugins
    # -------------------------------------------------------------------------

    async def enable_plugin(self, plugin_id: str, settings: Optional[dict[str, Any]] = None) -> SyncResult:
        """
        Raises:
            InvalidStateError: If the plugin is not in the registry
        """
        self._require_known_plugin(plugin_id)

        async def remote() -> Optional[PluginPayload]:
            try:
                return await self._api.enable_plugin(plugin_id, settings)
            except ApiError as e:
                if e.code in _NOOP_CODES:
                    return None
                raise

        async def on_success(payload: Optional[PluginPayload]) -> None:
            if payload is not None:
                self._set_plugin(plugin_id, PluginEntry.from_payload(payload))
            await self._after_plugin_change()

        return await self._plugin_write(
            plugin_id,
            apply_entry=PluginEntry(id=plugin_id, settings=dict(settings or {})),
            keep_existing=True,
            remote=remote,
            on_success=on_success,
            failure_message=f"Couldn't enable {self._plugin_name(plugin_id)}. Your change was undone. Please try again.",
            label=f"enable plugin {plugin_id}",
        )

    async def disable_plugin(self, plugin_id: str) -> SyncResult:
        """
        Raises:
            InvalidStateError: If the plugin is not in the registry
        """
        self._require_known_plugin(plugin_id)

        async def remote() -> Optional[str]:
            try:
                return await self._api.disable_plugin(plugin_id)
            except ApiError as e:
                if e.code in _NOOP_CODES:
                    return None
                raise

        async def on_success(_: Any) -> None:
            await self._after_plugin_change()

        return await self._plugin_write(
            plugin_id,
            apply_entry=None,
            keep_existing=False,
            remote=remote,
            on_success=on_success,
            failure_message=f"Couldn't disable {self._plugin_name(plugin_id)}. Your change was undone. Please try again.",
            label=f"disable plugin {plugin_id}",
        )

    async def update_plugin_settings(self, plugin_id: str, settings: dict[str, Any]) -> SyncResult:
        """
        Raises:
            InvalidStateError: If the plugin is not enabled
        """
        async with self._keys.hold(plugin_key(plugin_id)):
            previous = select_plugin(self._store.state, plugin_id)
            if previous is None:
                raise InvalidStateError(f"Plugin {plugin_id} is not enabled")

            async def on_success(payload: PluginPayload) -> None:
                self._set_plugin(plugin_id, PluginEntry.from_payload(payload))
                await self._after_plugin_change()

            async def on_failure(error: ClientError, rolled_back: bool) -> None:
                if not self._handle_unauthorized(error):
                    self._notify(
                        f"Couldn't save settings for {self._plugin_name(plugin_id)}. Your change was undone.",
                        retryable=True,
                    )

            return await run_optimistic(
                snapshot=lambda: previous,
                apply=lambda: self._set_plugin(
                    plugin_id,
                    PluginEntry(id=plugin_id, settings=dict(settings), enabled_at=previous.enabled_at),
                ),
                remote=lambda: self._api.update_plugin_settings(plugin_id, settings),
                restore=lambda entry: self._set_plugin(plugin_id, entry),
                policy=RollbackPolicy.RESTORE,
                on_success=on_success,
                on_failure=on_failure,
                label=f"update settings of plugin {plugin_id}",
            )

    async def _plugin_write(
        self,
        plugin_id: str,
        apply_entry: Optional[PluginEntry],
        keep_existing: bool,
        remote,
        on_success,
        failure_message: str,
        label: str,
    ) -> SyncResult:
        async with self._keys.hold(plugin_key(plugin_id)):
            previous = select_plugin(self._store.state, plugin_id)
            target = previous if (keep_existing and previous is not None) else apply_entry

            async def on_failure(error: ClientError, rolled_back: bool) -> None:
                if not self._handle_unauthorized(error):
                    self._notify(failure_message, retryable=True)

            return await run_optimistic(
                snapshot=lambda: previous,
                apply=lambda: self._set_plugin(plugin_id, target),
                remote=remote,
                restore=lambda entry: self._set_plugin(plugin_id, entry),
                policy=RollbackPolicy.RESTORE,
                on_success=on_success,
                on_failure=on_failure,
                label=label,
            )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _current_snapshot(self, source: str) -> PreferenceSnapshot:
        state = self._store.state
        return PreferenceSnapshot(
            current_theme_id=state.themes.current_theme_id,
            enabled_theme_ids=state.themes.enabled_theme_ids,
            plugins=state.plugins.enabled,
            source=source,
        )

    def _restore_themes(self, themes) -> None:
        self._store.dispatch(ThemesChanged(themes.current_theme_id, themes.enabled_theme_ids, themes.source))

    def _set_plugin(self, plugin_id: str, entry: Optional[PluginEntry]) -> None:
        """Replace one plugin's entry (None removes it), leaving the others alone."""
        entries = list(self._store.state.plugins.enabled)
        index = next((i for i, p in enumerate(entries) if p.id == plugin_id), None)
        if entry is None:
            if index is not None:
                del entries[index]
        elif index is None:
            entries.append(entry)
        else:
            entries[index] = entry
        self._store.dispatch(PluginsChanged(tuple(entries)))

    def _require_known_plugin(self, plugin_id: str) -> None:
        if plugin_id not in self._registry:
            raise InvalidStateError(f"Unknown plugin: {plugin_id}")

    def _plugin_name(self, plugin_id: str) -> str:
        plugin = self._registry.get(plugin_id)
        return plugin.display_info().name if plugin is not None else "that plugin"

    async def _persist_themes(self) -> None:
        themes = self._store.state.themes
        await self._cache.save_current_theme(themes.current_theme_id)
        await self._cache.save_enabled_themes(list(themes.enabled_theme_ids))

    async def _persist_plugins(self) -> None:
        await self._cache.save_plugins(list(self._store.state.plugins.enabled))

    async def _after_plugin_change(self) -> None:
        await self._persist_plugins()
        await self._registry.sync(p.id for p in self._store.state.plugins.enabled)

    def _notify(self, message: str, kind: NoticeKind = NoticeKind.ERROR, retryable: bool = False) -> None:
        self._store.dispatch(NoticePosted(message, kind=kind, retryable=retryable))

    def _handle_unauthorized(self, error: ClientError) -> bool:
        """Sign out locally on 401; the client has already dropped the token."""
        if isinstance(error, ApiError) and error.is_unauthorized:
            if self._store.state.auth.is_authenticated:
                self._store.dispatch(SignedOut())
                self._notify("Your session has expired. Please log in again.", kind=NoticeKind.WARNING)
            return True
        return False

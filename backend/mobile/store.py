"""
Client state container.

All UI-visible state lives in one immutable AppState owned by a Store.
The only way to change it is Store.dispatch(action); the only way to
read it is Store.state or a selector. Reducers are pure functions
registered per action type.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from functools import singledispatch
from typing import Callable, Optional, TypeVar

from shared.themes import (
    AVAILABLE_THEMES,
    CORE_THEME_IDS,
    DEFAULT_THEME_ID,
    ThemeInfo,
    first_enabled_theme,
    with_core_themes,
)

from .models import PluginEntry, PreferenceSnapshot, UserInfo


class NoticeKind(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class BootstrapStage(str, Enum):
    NOT_STARTED = "not_started"
    LOCAL_PREFERENCES = "local_preferences"
    AUTH_CHECK = "auth_check"
    SERVER_PREFERENCES = "server_preferences"
    COMPLETE = "complete"


# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class Notice:
    """A user-facing message. Never technical."""

    id: int
    message: str
    kind: NoticeKind = NoticeKind.ERROR
    retryable: bool = False


@dataclass(frozen=True)
class AuthState:
    user: Optional[UserInfo] = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class ThemeState:
    current_theme_id: str = DEFAULT_THEME_ID
    enabled_theme_ids: tuple[str, ...] = CORE_THEME_IDS
    # Where the values came from: "default", "cache", "server" or "local"
    source: str = "default"


@dataclass(frozen=True)
class PluginState:
    enabled: tuple[PluginEntry, ...] = ()


@dataclass(frozen=True)
class SessionState:
    stage: BootstrapStage = BootstrapStage.NOT_STARTED
    is_ready: bool = False


@dataclass(frozen=True)
class AppState:
    auth: AuthState = field(default_factory=AuthState)
    themes: ThemeState = field(default_factory=ThemeState)
    plugins: PluginState = field(default_factory=PluginState)
    session: SessionState = field(default_factory=SessionState)
    notices: tuple[Notice, ...] = ()
    next_notice_id: int = 1


# =============================================================================
# Actions
# =============================================================================


@dataclass(frozen=True)
class AuthStarted:
    pass


@dataclass(frozen=True)
class Authenticated:
    user: UserInfo


@dataclass(frozen=True)
class NotAuthenticated:
    message: Optional[str] = None


@dataclass(frozen=True)
class SignedOut:
    pass


@dataclass(frozen=True)
class PreferencesReplaced:
    snapshot: PreferenceSnapshot


@dataclass(frozen=True)
class CurrentThemeChanged:
    theme_id: str


@dataclass(frozen=True)
class ThemesChanged:
    current_theme_id: str
    enabled_theme_ids: tuple[str, ...]
    source: str = "local"


@dataclass(frozen=True)
class PluginsChanged:
    enabled: tuple[PluginEntry, ...]


@dataclass(frozen=True)
class NoticePosted:
    message: str
    kind: NoticeKind = NoticeKind.ERROR
    retryable: bool = False


@dataclass(frozen=True)
class NoticeDismissed:
    notice_id: int


@dataclass(frozen=True)
class BootstrapStageChanged:
    stage: BootstrapStage


@dataclass(frozen=True)
class BootstrapFinished:
    pass


# =============================================================================
# Reducers
# =============================================================================


def _consistent_themes(current: str, enabled) -> tuple[str, tuple[str, ...]]:
    """Core themes present, current theme among the enabled ones."""
    enabled = tuple(with_core_themes(enabled))
    if current not in enabled:
        fallback = first_enabled_theme(enabled)
        current = fallback.id if fallback else DEFAULT_THEME_ID
    return current, enabled


@singledispatch
def reduce(action, state: AppState) -> AppState:
    raise TypeError(f"Unhandled action: {type(action).__name__}")


@reduce.register
def _(action: AuthStarted, state: AppState) -> AppState:
    return replace(state, auth=replace(state.auth, is_loading=True, error=None))


@reduce.register
def _(action: Authenticated, state: AppState) -> AppState:
    return replace(state, auth=AuthState(user=action.user, is_authenticated=True))


@reduce.register
def _(action: NotAuthenticated, state: AppState) -> AppState:
    return replace(state, auth=AuthState(error=action.message))


@reduce.register
def _(action: SignedOut, state: AppState) -> AppState:
    return replace(state, auth=AuthState(), plugins=PluginState())


@reduce.register
def _(action: PreferencesReplaced, state: AppState) -> AppState:
    snapshot = action.snapshot
    current, enabled = _consistent_themes(snapshot.current_theme_id, snapshot.enabled_theme_ids)
    return replace(
        state,
        themes=ThemeState(current_theme_id=current, enabled_theme_ids=enabled, source=snapshot.source),
        plugins=PluginState(enabled=tuple(snapshot.plugins)),
    )


@reduce.register
def _(action: CurrentThemeChanged, state: AppState) -> AppState:
    if action.theme_id not in state.themes.enabled_theme_ids:
        return state
    return replace(state, themes=replace(state.themes, current_theme_id=action.theme_id))


@reduce.register
def _(action: ThemesChanged, state: AppState) -> AppState:
    current, enabled = _consistent_themes(action.current_theme_id, action.enabled_theme_ids)
    return replace(
        state,
        themes=ThemeState(current_theme_id=current, enabled_theme_ids=enabled, source=action.source),
    )


@reduce.register
def _(action: PluginsChanged, state: AppState) -> AppState:
    return replace(state, plugins=PluginState(enabled=tuple(action.enabled)))


@reduce.register
def _(action: NoticePosted, state: AppState) -> AppState:
    notice = Notice(
        id=state.next_notice_id,
        message=action.message,
        kind=action.kind,
        retryable=action.retryable,
    )
    return replace(state, notices=(*state.notices, notice), next_notice_id=state.next_notice_id + 1)


@reduce.register
def _(action: NoticeDismissed, state: AppState) -> AppState:
    return replace(state, notices=tuple(n for n in state.notices if n.id != action.notice_id))


@reduce.register
def _(action: BootstrapStageChanged, state: AppState) -> AppState:
    return replace(state, session=replace(state.session, stage=action.stage))


@reduce.register
def _(action: BootstrapFinished, state: AppState) -> AppState:
    return replace(state, session=SessionState(stage=BootstrapStage.COMPLETE, is_ready=True))


# =============================================================================
# Selectors
# =============================================================================


def select_is_authenticated(state: AppState) -> bool:
    return state.auth.is_authenticated


def select_user(state: AppState) -> Optional[UserInfo]:
    return state.auth.user


def select_current_theme_id(state: AppState) -> str:
    return state.themes.current_theme_id


def select_current_theme(state: AppState) -> ThemeInfo:
    for theme in AVAILABLE_THEMES:
        if theme.id == state.themes.current_theme_id:
            return theme
    return AVAILABLE_THEMES[0]


def select_enabled_theme_ids(state: AppState) -> tuple[str, ...]:
    return state.themes.enabled_theme_ids


def select_enabled_themes(state: AppState) -> list[ThemeInfo]:
    """Enabled themes the app can render, in catalog order."""
    enabled = set(state.themes.enabled_theme_ids)
    return [t for t in AVAILABLE_THEMES if t.id in enabled]


def select_enabled_plugin_ids(state: AppState) -> tuple[str, ...]:
    return tuple(p.id for p in state.plugins.enabled)


def select_plugin(state: AppState, plugin_id: str) -> Optional[PluginEntry]:
    for plugin in state.plugins.enabled:
        if plugin.id == plugin_id:
            return plugin
    return None


def is_plugin_enabled(state: AppState, plugin_id: str) -> bool:
    return select_plugin(state, plugin_id) is not None


def select_notices(state: AppState) -> tuple[Notice, ...]:
    return state.notices


def select_is_ready(state: AppState) -> bool:
    return state.session.is_ready


# =============================================================================
# Store
# =============================================================================


Listener = Callable[[AppState], None]
T = TypeVar("T")


class Store:
    """
    Owner of the application state.

    Listeners are called synchronously after every dispatch, in
    subscription order.
    """

    def __init__(self, initial: Optional[AppState] = None):
        self._state = initial or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def select(self, selector: Callable[[AppState], T]) -> T:
        return selector(self._state)

    def dispatch(self, action) -> AppState:
        self._state = reduce(action, self._state)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

"""
Preference service implementation.

Every write is one transaction that reads the preferences row FOR UPDATE,
checks the theme rules against what it read, and writes back. Requests
from two devices of the same user therefore serialize on the row.
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.database import transaction
from shared.themes import (
    CORE_THEME_IDS,
    DEFAULT_THEME_ID,
    can_disable_theme,
    first_enabled_theme,
    is_known_theme,
)

from .exceptions import (
    CoreThemeProtectedError,
    NoFallbackThemeError,
    PluginAlreadyEnabledError,
    PluginNotEnabledError,
    PluginNotFoundError,
    PreferencesNotFoundError,
    ThemeAlreadyEnabledError,
    ThemeNotEnabledError,
    UnknownThemeError,
)
from .interfaces import IPreferenceService
from .models import (
    EnabledPlugin,
    PluginPreferences,
    Preferences,
    ThemePreferences,
    ThemeState,
)
from .repository import PreferencesRepository
from .tables import EnabledPluginRow, UserPreferencesRow

logger = logging.getLogger(__name__)


def _plugin(row: EnabledPluginRow) -> EnabledPlugin:
    return EnabledPlugin(id=row.plugin_id, enabled_at=row.enabled_at, settings=row.settings or {})


def _theme_state(row: UserPreferencesRow) -> ThemeState:
    return ThemeState(
        current_theme=row.current_theme,
        enabled_themes=list(row.enabled_themes),
        updated_at=row.updated_at,
    )


class PreferenceService(IPreferenceService):
    """
    Implementation of the preference service.

    Bound to one request's database session, like AuthService.
    """

    def __init__(self, db: Session):
        self._db = db
        self._repo = PreferencesRepository(db)

    def _load_for_update(self, user_id: str) -> UserPreferencesRow:
        row = self._repo.get_for_update(user_id)
        if row is None:
            raise PreferencesNotFoundError(user_id)
        return row

    def create_defaults(self, user_id: str) -> None:
        self._repo.create(user_id, DEFAULT_THEME_ID, list(CORE_THEME_IDS))

    async def get_preferences(self, user_id: str) -> Preferences:
        row = self._repo.get(user_id)
        if row is None:
            raise PreferencesNotFoundError(user_id)

        plugins = [_plugin(p) for p in self._repo.list_plugins(user_id)]
        return Preferences(
            themes=ThemePreferences(current=row.current_theme, enabled=list(row.enabled_themes)),
            plugins=PluginPreferences(enabled=plugins),
            last_updated=row.updated_at,
        )

    async def set_current_theme(self, user_id: str, theme_id: str) -> ThemeState:
        with transaction(self._db):
            row = self._load_for_update(user_id)
            if theme_id not in row.enabled_themes:
                raise ThemeNotEnabledError(
                    theme_id,
                    "Cannot set theme that is not enabled. Enable the theme first.",
                )
            self._repo.save_themes(row, theme_id, row.enabled_themes)

        logger.info(f"User {user_id} switched to theme {theme_id}")
        return _theme_state(row)

    async def enable_theme(self, user_id: str, theme_id: str) -> ThemeState:
        if not is_known_theme(theme_id):
            raise UnknownThemeError(theme_id)

        with transaction(self._db):
            row = self._load_for_update(user_id)
            if theme_id in row.enabled_themes:
                raise ThemeAlreadyEnabledError(theme_id)
            self._repo.save_themes(row, row.current_theme, [*row.enabled_themes, theme_id])

        logger.info(f"User {user_id} enabled theme {theme_id}")
        return _theme_state(row)

    async def disable_theme(self, user_id: str, theme_id: str) -> ThemeState:
        if not can_disable_theme(theme_id):
            raise CoreThemeProtectedError(theme_id)

        with transaction(self._db):
            row = self._load_for_update(user_id)
            if theme_id not in row.enabled_themes:
                raise ThemeNotEnabledError(theme_id)

            remaining = [t for t in row.enabled_themes if t != theme_id]
            current = row.current_theme
            if current == theme_id:
                fallback = first_enabled_theme(remaining)
                if fallback is None:
                    raise NoFallbackThemeError(theme_id)
                current = fallback.id
            self._repo.save_themes(row, current, remaining)

        logger.info(f"User {user_id} disabled theme {theme_id}, current theme is {row.current_theme}")
        return _theme_state(row)

    async def enable_plugin(
        self,
        user_id: str,
        plugin_id: str,
        settings: Optional[dict[str, Any]] = None,
    ) -> EnabledPlugin:
        try:
            with transaction(self._db):
                self._load_for_update(user_id)
                if self._repo.get_plugin(user_id, plugin_id) is not None:
                    raise PluginAlreadyEnabledError(plugin_id)
                row = self._repo.add_plugin(user_id, plugin_id, settings or {})
        except IntegrityError:
            raise PluginAlreadyEnabledError(plugin_id)

        logger.info(f"User {user_id} enabled plugin {plugin_id}")
        return _plugin(row)

    async def disable_plugin(self, user_id: str, plugin_id: str) -> str:
        with transaction(self._db):
            self._load_for_update(user_id)
            row = self._repo.get_plugin(user_id, plugin_id)
            if row is None:
                raise PluginNotEnabledError(plugin_id)
            self._repo.delete_plugin(row)

        logger.info(f"User {user_id} disabled plugin {plugin_id}")
        return plugin_id

    async def update_plugin_settings(
        self,
        user_id: str,
        plugin_id: str,
        settings: dict[str, Any],
    ) -> EnabledPlugin:
        with transaction(self._db):
            row = self._repo.get_plugin(user_id, plugin_id)
            if row is None:
                raise PluginNotFoundError(plugin_id)
            self._repo.update_plugin_settings(row, settings)

        return _plugin(row)

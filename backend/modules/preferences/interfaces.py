"""
Preferences module interface.

The API layer and the auth module depend on IPreferenceService, not the
concrete implementation.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import EnabledPlugin, Preferences, ThemeState


@runtime_checkable
class IPreferenceService(Protocol):
    """
    Interface for per-user preference storage.

    Every write keeps two rules: the current theme is always enabled, and
    the core themes are never removed.
    """

    def create_defaults(self, user_id: str) -> None:
        """
        Stage the default record for a new user.

        Joins the caller's transaction instead of committing, so the record
        is created together with the account or not at all.
        """
        ...

    async def get_preferences(self, user_id: str) -> Preferences:
        """
        Raises:
            PreferencesNotFoundError: If the user has no record
        """
        ...

    async def set_current_theme(self, user_id: str, theme_id: str) -> ThemeState:
        """
        Raises:
            ThemeNotEnabledError: If theme_id is not in the enabled set
            PreferencesNotFoundError: If the user has no record
        """
        ...

    async def enable_theme(self, user_id: str, theme_id: str) -> ThemeState:
        """
        Raises:
            UnknownThemeError: If theme_id is not in the catalog
            ThemeAlreadyEnabledError: If it is already enabled
        """
        ...

    async def disable_theme(self, user_id: str, theme_id: str) -> ThemeState:
        """
        Remove a theme, moving the current theme to the first remaining
        enabled one when needed.

        Raises:
            CoreThemeProtectedError: For core themes
            ThemeNotEnabledError: If it is not enabled
        """
        ...

    async def enable_plugin(
        self,
        user_id: str,
        plugin_id: str,
        settings: Optional[dict[str, Any]] = None,
    ) -> EnabledPlugin:
        """
        Raises:
            PluginAlreadyEnabledError: If it is already enabled
        """
        ...

    async def disable_plugin(self, user_id: str, plugin_id: str) -> str:
        """
        Raises:
            PluginNotEnabledError: If it is not enabled
        """
        ...

    async def update_plugin_settings(
        self,
        user_id: str,
        plugin_id: str,
        settings: dict[str, Any],
    ) -> EnabledPlugin:
        """
        Raises:
            PluginNotFoundError: If the plugin is not enabled
        """
        ...

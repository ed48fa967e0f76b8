"""
Preferences module exceptions.

These exceptions are raised by the preferences module and are mapped to
HTTP responses by the API error handlers.
"""

from shared.exceptions import AuthorizationError, NotFoundError, ValidationError


class PreferencesNotFoundError(NotFoundError):
    """Raised when a user has no preference record."""

    def __init__(self, user_id: str):
        super().__init__(
            "User preferences not found",
            code="PREFERENCES_NOT_FOUND",
            details={"user_id": user_id},
        )


class UnknownThemeError(ValidationError):
    """Raised when a theme id is not in the catalog."""

    def __init__(self, theme_id: str):
        super().__init__(
            f"Unknown theme: {theme_id}",
            code="UNKNOWN_THEME",
            details={"theme_id": theme_id},
        )


class ThemeNotEnabledError(ValidationError):
    """Raised when an operation needs the theme to be enabled and it is not."""

    def __init__(self, theme_id: str, message: str = "Theme is not enabled"):
        super().__init__(message, code="NOT_ENABLED", details={"theme_id": theme_id})


class ThemeAlreadyEnabledError(ValidationError):
    def __init__(self, theme_id: str):
        super().__init__(
            "Theme is already enabled",
            code="ALREADY_ENABLED",
            details={"theme_id": theme_id},
        )


class CoreThemeProtectedError(AuthorizationError):
    """
    Raised when disabling a core theme.

    Semantically a Forbidden error, but answered with 400 like the other
    theme-membership rejections.
    """

    status_code = 400

    def __init__(self, theme_id: str):
        super().__init__(
            "Core themes cannot be disabled",
            code="CORE_THEME_PROTECTED",
            details={"theme_id": theme_id},
        )


class NoFallbackThemeError(ValidationError):
    """Raised when disabling the active theme would leave nothing to switch to."""

    def __init__(self, theme_id: str):
        super().__init__(
            "Cannot disable the only enabled theme",
            code="NO_FALLBACK_THEME",
            details={"theme_id": theme_id},
        )


class PluginAlreadyEnabledError(ValidationError):
    def __init__(self, plugin_id: str):
        super().__init__(
            "Plugin is already enabled",
            code="ALREADY_ENABLED",
            details={"plugin_id": plugin_id},
        )


class PluginNotEnabledError(ValidationError):
    def __init__(self, plugin_id: str):
        super().__init__(
            "Plugin is not enabled",
            code="NOT_ENABLED",
            details={"plugin_id": plugin_id},
        )


class PluginNotFoundError(NotFoundError):
    """Raised when updating settings of a plugin the user has not enabled."""

    def __init__(self, plugin_id: str):
        super().__init__(
            "Plugin not found or not enabled",
            code="PLUGIN_NOT_FOUND",
            details={"plugin_id": plugin_id},
        )

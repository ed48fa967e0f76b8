"""
Preferences module.

Per-user theme and plugin preferences.

Public API:
- IPreferenceService: Interface for preference operations
- Preferences, ThemeState, EnabledPlugin: Preference models
- Preference exceptions: ThemeNotEnabledError, CoreThemeProtectedError, etc.
"""

from .interfaces import IPreferenceService
from .models import EnabledPlugin, Preferences, ThemeState
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

__all__ = [
    # Interface
    "IPreferenceService",
    # Models
    "EnabledPlugin",
    "Preferences",
    "ThemeState",
    # Exceptions
    "CoreThemeProtectedError",
    "NoFallbackThemeError",
    "PluginAlreadyEnabledError",
    "PluginNotEnabledError",
    "PluginNotFoundError",
    "PreferencesNotFoundError",
    "ThemeAlreadyEnabledError",
    "ThemeNotEnabledError",
    "UnknownThemeError",
]

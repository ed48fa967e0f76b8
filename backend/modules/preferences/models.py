"""
Preferences module data models.

Wire shapes use camelCase (see CamelModel); the service returns the same
models the routes serialize.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models import CamelModel


class EnabledPlugin(CamelModel):
    """A plugin the user has switched on, with its settings blob."""

    id: str
    enabled_at: Optional[datetime] = None
    settings: dict[str, Any] = Field(default_factory=dict)


class ThemePreferences(BaseModel):
    current: str
    enabled: list[str]


class PluginPreferences(BaseModel):
    enabled: list[EnabledPlugin]


class Preferences(CamelModel):
    """Full preference snapshot for one user."""

    themes: ThemePreferences
    plugins: PluginPreferences
    last_updated: Optional[datetime] = None


class ThemeState(CamelModel):
    """Theme fields after a write."""

    current_theme: str
    enabled_themes: list[str]
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ThemeIdRequest(CamelModel):
    """Body of PUT /current-theme and POST /enabled-themes."""

    theme_id: str = Field(..., min_length=1, description="Theme ID is required")

    model_config = ConfigDict(str_strip_whitespace=True)


class EnablePluginRequest(CamelModel):
    plugin_id: str = Field(..., min_length=1, description="Plugin ID is required")
    settings: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(str_strip_whitespace=True)


class PluginSettingsRequest(BaseModel):
    settings: dict[str, Any]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class CurrentThemeResponse(CamelModel):
    message: str
    current_theme: str
    updated_at: Optional[datetime] = None


class EnabledThemesResponse(CamelModel):
    message: str
    enabled_themes: list[str]
    updated_at: Optional[datetime] = None


class ThemeDisabledResponse(CamelModel):
    message: str
    current_theme: str
    enabled_themes: list[str]
    updated_at: Optional[datetime] = None


class PluginResponse(CamelModel):
    message: str
    plugin: EnabledPlugin


class PluginDisabledResponse(CamelModel):
    message: str
    plugin_id: str

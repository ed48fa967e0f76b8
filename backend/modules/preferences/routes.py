"""
Preference API endpoints.

All endpoints require a bearer token and act on the caller's own record.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_preference_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser

from .interfaces import IPreferenceService
from .models import (
    CurrentThemeResponse,
    EnabledThemesResponse,
    EnablePluginRequest,
    PluginDisabledResponse,
    PluginResponse,
    PluginSettingsRequest,
    Preferences,
    ThemeDisabledResponse,
    ThemeIdRequest,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Themes
# ---------------------------------------------------------------------------


@router.get("/preferences", response_model=Preferences)
async def get_preferences(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> Preferences:
    """Get the current theme, enabled themes and enabled plugins."""
    return await service.get_preferences(user.id)


@router.put("/current-theme", response_model=CurrentThemeResponse)
async def set_current_theme(
    request: ThemeIdRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> CurrentThemeResponse:
    """Switch to an already enabled theme."""
    state = await service.set_current_theme(user.id, request.theme_id)
    return CurrentThemeResponse(
        message="Current theme updated successfully",
        current_theme=state.current_theme,
        updated_at=state.updated_at,
    )


@router.post("/enabled-themes", response_model=EnabledThemesResponse)
async def enable_theme(
    request: ThemeIdRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> EnabledThemesResponse:
    state = await service.enable_theme(user.id, request.theme_id)
    return EnabledThemesResponse(
        message="Theme enabled successfully",
        enabled_themes=state.enabled_themes,
        updated_at=state.updated_at,
    )


@router.delete("/enabled-themes/{theme_id}", response_model=ThemeDisabledResponse)
async def disable_theme(
    theme_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> ThemeDisabledResponse:
    """
    Disable a theme.

    When the disabled theme was current, the response carries the theme
    that replaced it.
    """
    state = await service.disable_theme(user.id, theme_id)
    return ThemeDisabledResponse(
        message="Theme disabled successfully",
        current_theme=state.current_theme,
        enabled_themes=state.enabled_themes,
        updated_at=state.updated_at,
    )


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------


@router.post("/enabled-plugins", response_model=PluginResponse)
async def enable_plugin(
    request: EnablePluginRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> PluginResponse:
    plugin = await service.enable_plugin(user.id, request.plugin_id, request.settings)
    return PluginResponse(message="Plugin enabled successfully", plugin=plugin)


@router.delete("/enabled-plugins/{plugin_id}", response_model=PluginDisabledResponse)
async def disable_plugin(
    plugin_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> PluginDisabledResponse:
    removed = await service.disable_plugin(user.id, plugin_id)
    return PluginDisabledResponse(message="Plugin disabled successfully", plugin_id=removed)


@router.put("/enabled-plugins/{plugin_id}/settings", response_model=PluginResponse)
async def update_plugin_settings(
    plugin_id: str,
    request: PluginSettingsRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPreferenceService = Depends(get_preference_service),
) -> PluginResponse:
    plugin = await service.update_plugin_settings(user.id, plugin_id, request.settings)
    return PluginResponse(message="Plugin settings updated successfully", plugin=plugin)

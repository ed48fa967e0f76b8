import pytest

from modules.auth.repository import UserRepository
from modules.preferences.exceptions import (
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
from modules.preferences.interfaces import IPreferenceService
from modules.preferences.repository import PreferencesRepository
from modules.preferences.service import PreferenceService
from shared.database import transaction


@pytest.fixture
def user_id(db_session) -> str:
    """A user with default preferences."""
    with transaction(db_session):
        row = UserRepository(db_session).create(
            email="alice@productivityhub.app",
            name="Alice",
            password_hash="x",
            verification_token="t" * 64,
            verification_expires=None,
        )
        PreferenceService(db_session).create_defaults(row.id)
    return row.id


@pytest.fixture
def service(db_session) -> PreferenceService:
    return PreferenceService(db_session)


class TestPreferenceInterface:
    def test_service_implements_interface(self, service):
        assert isinstance(service, IPreferenceService)


class TestThemePreferences:
    @pytest.mark.asyncio
    async def test_defaults(self, service, user_id):
        prefs = await service.get_preferences(user_id)
        assert prefs.themes.current == "light-default"
        assert prefs.themes.enabled == ["light-default", "dark-default"]
        assert prefs.plugins.enabled == []

    @pytest.mark.asyncio
    async def test_missing_record(self, service, db_engine):
        with pytest.raises(PreferencesNotFoundError):
            await service.get_preferences("ghost")

    @pytest.mark.asyncio
    async def test_set_current_theme(self, service, user_id):
        state = await service.set_current_theme(user_id, "dark-default")
        assert state.current_theme == "dark-default"
        assert state.updated_at is not None

    @pytest.mark.asyncio
    async def test_set_current_theme_not_enabled(self, service, user_id, db_session):
        """The write is refused and nothing changes."""
        with pytest.raises(ThemeNotEnabledError) as exc_info:
            await service.set_current_theme(user_id, "high-contrast")
        assert exc_info.value.code == "NOT_ENABLED"
        db_session.expire_all()
        assert PreferencesRepository(db_session).get(user_id).current_theme == "light-default"

    @pytest.mark.asyncio
    async def test_enable_theme_appends(self, service, user_id):
        state = await service.enable_theme(user_id, "grayscale-default")
        assert state.enabled_themes == ["light-default", "dark-default", "grayscale-default"]

    @pytest.mark.asyncio
    async def test_enable_unknown_theme(self, service, user_id):
        with pytest.raises(UnknownThemeError):
            await service.enable_theme(user_id, "neon")

    @pytest.mark.asyncio
    async def test_enable_twice(self, service, user_id):
        await service.enable_theme(user_id, "grayscale-default")
        with pytest.raises(ThemeAlreadyEnabledError) as exc_info:
            await service.enable_theme(user_id, "grayscale-default")
        assert exc_info.value.code == "ALREADY_ENABLED"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("theme_id", ["light-default", "dark-default"])
    async def test_core_themes_protected(self, service, user_id, theme_id):
        with pytest.raises(CoreThemeProtectedError) as exc_info:
            await service.disable_theme(user_id, theme_id)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_disable_not_enabled(self, service, user_id):
        with pytest.raises(ThemeNotEnabledError):
            await service.disable_theme(user_id, "grayscale-default")

    @pytest.mark.asyncio
    async def test_disable_current_theme_falls_back(self, service, user_id):
        await service.enable_theme(user_id, "colorblind-default")
        await service.set_current_theme(user_id, "colorblind-default")

        state = await service.disable_theme(user_id, "colorblind-default")
        assert state.current_theme == "light-default"
        assert state.enabled_themes == ["light-default", "dark-default"]

    @pytest.mark.asyncio
    async def test_fallback_follows_catalog_order(self, service, user_id, db_session):
        """The stored order of enabled themes does not pick the fallback."""
        with transaction(db_session):
            row = PreferencesRepository(db_session).get(user_id)
            PreferencesRepository(db_session).save_themes(
                row,
                "grayscale-default",
                ["high-contrast", "grayscale-default", "dark-default", "light-default"],
            )

        state = await service.disable_theme(user_id, "grayscale-default")
        assert state.current_theme == "light-default"
        assert state.enabled_themes == ["high-contrast", "dark-default", "light-default"]

    @pytest.mark.asyncio
    async def test_disable_current_theme_without_fallback(self, service, user_id, db_session):
        """A record that somehow holds only one theme cannot lose it."""
        with transaction(db_session):
            row = PreferencesRepository(db_session).get(user_id)
            PreferencesRepository(db_session).save_themes(row, "grayscale-default", ["grayscale-default"])
        with pytest.raises(NoFallbackThemeError):
            await service.disable_theme(user_id, "grayscale-default")

    @pytest.mark.asyncio
    async def test_invariants_after_every_write(self, service, user_id):
        writes = [
            service.enable_theme(user_id, "high-contrast"),
            service.set_current_theme(user_id, "high-contrast"),
            service.enable_theme(user_id, "grayscale-default"),
            service.disable_theme(user_id, "high-contrast"),
            service.set_current_theme(user_id, "grayscale-default"),
            service.disable_theme(user_id, "grayscale-default"),
        ]
        for write in writes:
            state = await write
            assert state.current_theme in state.enabled_themes
            assert {"light-default", "dark-default"} <= set(state.enabled_themes)


class TestPluginPreferences:
    @pytest.mark.asyncio
    async def test_enable_plugin(self, service, user_id):
        plugin = await service.enable_plugin(user_id, "workout-tracker", {"units": "kg"})
        assert plugin.id == "workout-tracker"
        assert plugin.settings == {"units": "kg"}
        assert plugin.enabled_at is not None

        prefs = await service.get_preferences(user_id)
        assert [p.id for p in prefs.plugins.enabled] == ["workout-tracker"]

    @pytest.mark.asyncio
    async def test_enable_plugin_default_settings(self, service, user_id):
        plugin = await service.enable_plugin(user_id, "workout-tracker")
        assert plugin.settings == {}

    @pytest.mark.asyncio
    async def test_enable_plugin_twice(self, service, user_id):
        await service.enable_plugin(user_id, "workout-tracker")
        with pytest.raises(PluginAlreadyEnabledError):
            await service.enable_plugin(user_id, "workout-tracker")

    @pytest.mark.asyncio
    async def test_enable_plugin_without_record(self, service, db_engine):
        with pytest.raises(PreferencesNotFoundError):
            await service.enable_plugin("ghost", "workout-tracker")

    @pytest.mark.asyncio
    async def test_disable_plugin(self, service, user_id):
        await service.enable_plugin(user_id, "workout-tracker")
        assert await service.disable_plugin(user_id, "workout-tracker") == "workout-tracker"
        prefs = await service.get_preferences(user_id)
        assert prefs.plugins.enabled == []

    @pytest.mark.asyncio
    async def test_disable_plugin_not_enabled(self, service, user_id):
        with pytest.raises(PluginNotEnabledError):
            await service.disable_plugin(user_id, "workout-tracker")

    @pytest.mark.asyncio
    async def test_update_settings_replaces_blob(self, service, user_id):
        await service.enable_plugin(user_id, "progress-photos", {"reminder": "monthly", "blur": False})
        plugin = await service.update_plugin_settings(user_id, "progress-photos", {"reminder": "weekly"})
        assert plugin.settings == {"reminder": "weekly"}

    @pytest.mark.asyncio
    async def test_update_settings_not_enabled(self, service, user_id):
        with pytest.raises(PluginNotFoundError):
            await service.update_plugin_settings(user_id, "progress-photos", {})

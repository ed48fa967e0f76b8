"""
Preference repository for database access.

Encapsulates queries for the user_preferences and user_enabled_plugins
tables. Read-modify-write callers must load the preferences row through
get_for_update() inside a transaction so concurrent writers from the same
user (two devices) queue on the row lock instead of losing updates.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select

from shared.repository import BaseRepository
from .tables import EnabledPluginRow, UserPreferencesRow


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PreferencesRepository(BaseRepository[UserPreferencesRow]):
    """
    Repository for preference data.

    Note: This repository does NOT commit and does NOT check theme rules.
    The service layer owns both.
    """

    # -------------------------------------------------------------------------
    # Theme preferences
    # -------------------------------------------------------------------------

    def get(self, user_id: str) -> Optional[UserPreferencesRow]:
        return self._db.get(UserPreferencesRow, user_id)

    def get_for_update(self, user_id: str) -> Optional[UserPreferencesRow]:
        """Load the row with SELECT ... FOR UPDATE (a no-op on SQLite)."""
        return self._db.scalars(
            select(UserPreferencesRow)
            .where(UserPreferencesRow.user_id == user_id)
            .with_for_update()
        ).first()

    def create(self, user_id: str, current_theme: str, enabled_themes: list[str]) -> UserPreferencesRow:
        row = UserPreferencesRow(
            user_id=user_id,
            current_theme=current_theme,
            enabled_themes=list(enabled_themes),
            updated_at=_now(),
        )
        return self.add(row)

    def save_themes(
        self,
        row: UserPreferencesRow,
        current_theme: str,
        enabled_themes: list[str],
    ) -> UserPreferencesRow:
        # Assign a fresh list so the JSON column is seen as dirty
        row.current_theme = current_theme
        row.enabled_themes = list(enabled_themes)
        row.updated_at = _now()
        self._db.flush()
        return row

    # -------------------------------------------------------------------------
    # Plugins
    # -------------------------------------------------------------------------

    def list_plugins(self, user_id: str) -> list[EnabledPluginRow]:
        return list(
            self._db.scalars(
                select(EnabledPluginRow)
                .where(EnabledPluginRow.user_id == user_id)
                .order_by(EnabledPluginRow.enabled_at, EnabledPluginRow.plugin_id)
            )
        )

    def get_plugin(self, user_id: str, plugin_id: str) -> Optional[EnabledPluginRow]:
        return self._db.get(EnabledPluginRow, (user_id, plugin_id))

    def add_plugin(self, user_id: str, plugin_id: str, settings: dict[str, Any]) -> EnabledPluginRow:
        row = EnabledPluginRow(
            user_id=user_id,
            plugin_id=plugin_id,
            settings=dict(settings),
            enabled_at=_now(),
        )
        return self.add(row)

    def update_plugin_settings(self, row: EnabledPluginRow, settings: dict[str, Any]) -> EnabledPluginRow:
        row.settings = dict(settings)
        self._db.flush()
        return row

    def delete_plugin(self, row: EnabledPluginRow) -> None:
        self._db.delete(row)
        self._db.flush()

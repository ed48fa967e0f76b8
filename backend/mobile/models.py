"""
Client-side data models.

Pydantic models parse server payloads; the frozen dataclasses are the
values held in client state and in the local cache.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UserInfo(_Payload):
    """The user as the server describes it."""

    id: str
    email: str
    name: str
    email_verified: bool = False
    created_at: Optional[datetime] = None


class PluginPayload(_Payload):
    id: str
    settings: dict[str, Any] = Field(default_factory=dict)
    enabled_at: Optional[datetime] = None


class ThemesPayload(_Payload):
    current: str
    enabled: list[str]


class PluginsPayload(_Payload):
    enabled: list[PluginPayload] = Field(default_factory=list)


class PreferencesPayload(_Payload):
    """Body of GET /user/preferences."""

    themes: ThemesPayload
    plugins: PluginsPayload = Field(default_factory=PluginsPayload)
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class PluginEntry:
    """One enabled plugin in client state."""

    id: str
    settings: dict[str, Any] = field(default_factory=dict, compare=True, hash=False)
    enabled_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: PluginPayload) -> "PluginEntry":
        return cls(id=payload.id, settings=dict(payload.settings), enabled_at=payload.enabled_at)

    def to_cache(self) -> dict[str, Any]:
        return {"id": self.id, "settings": self.settings}


@dataclass(frozen=True)
class PreferenceSnapshot:
    """
    A complete set of preferences from one source.

    `source` is "server", "cache" or "default" and tells the caller how
    fresh the values are.
    """

    current_theme_id: str
    enabled_theme_ids: tuple[str, ...]
    plugins: tuple[PluginEntry, ...] = ()
    source: str = "default"

"""
Plugin capability interface and the built-in catalog.

Real plugins are not shipped yet; every catalog entry is a
PlaceholderPlugin that only tracks its own status.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class PluginStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"


@dataclass(frozen=True)
class PluginDisplayInfo:
    name: str
    description: str
    icon: str
    status: PluginStatus


@runtime_checkable
class Plugin(Protocol):
    """What every plugin must offer the app shell."""

    @property
    def id(self) -> str:
        ...

    def display_info(self) -> PluginDisplayInfo:
        ...

    def enable(self) -> None:
        ...

    def disable(self) -> None:
        ...

    async def initialize(self) -> None:
        """Set up when the plugin loads."""
        ...

    async def cleanup(self) -> None:
        """Tear down when the plugin unloads."""
        ...

    def status(self) -> PluginStatus:
        ...


class PlaceholderPlugin:
    """A plugin with metadata and status but no behavior of its own."""

    def __init__(self, plugin_id: str, name: str, description: str, icon: str):
        self._id = plugin_id
        self.name = name
        self.description = description
        self.icon = icon
        self._enabled = False
        self._initialized = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def initialized(self) -> bool:
        return self._initialized

    def display_info(self) -> PluginDisplayInfo:
        return PluginDisplayInfo(
            name=self.name,
            description=self.description,
            icon=self.icon,
            status=self.status(),
        )

    def enable(self) -> None:
        self._enabled = True
        logger.debug(f"{self.name} enabled")

    def disable(self) -> None:
        self._enabled = False
        logger.debug(f"{self.name} disabled")

    async def initialize(self) -> None:
        self._initialized = True
        logger.debug(f"Initializing {self.name}")

    async def cleanup(self) -> None:
        self._initialized = False
        logger.debug(f"Cleaning up {self.name}")

    def status(self) -> PluginStatus:
        return PluginStatus.ACTIVE if self._enabled else PluginStatus.INACTIVE


def default_plugins() -> list[PlaceholderPlugin]:
    return [
        PlaceholderPlugin(
            "workout-tracker",
            "Workout Tracker",
            "Track your fitness progress and body recomposition",
            "🏋️",
        ),
        PlaceholderPlugin(
            "nutrition-logger",
            "Nutrition Logger",
            "Log meals and track your calorie goal",
            "🍎",
        ),
        PlaceholderPlugin(
            "progress-photos",
            "Progress Photos",
            "Take monthly body recomposition photos",
            "📸",
        ),
    ]


class PluginRegistry:
    """
    The plugins this build knows about, in display order.

    sync() brings each plugin's own enabled flag in line with the
    enabled set from client state.
    """

    def __init__(self, plugins: Optional[Iterable[Plugin]] = None):
        self._plugins: dict[str, Plugin] = {}
        for plugin in plugins if plugins is not None else default_plugins():
            self.register(plugin)

    def register(self, plugin: Plugin) -> None:
        if plugin.id in self._plugins:
            raise ValueError(f"Plugin already registered: {plugin.id}")
        self._plugins[plugin.id] = plugin

    def get(self, plugin_id: str) -> Optional[Plugin]:
        return self._plugins.get(plugin_id)

    def __contains__(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins

    def all(self) -> list[Plugin]:
        return list(self._plugins.values())

    async def sync(self, enabled_ids: Iterable[str]) -> None:
        enabled = set(enabled_ids)
        for plugin in self._plugins.values():
            should_run = plugin.id in enabled
            is_running = plugin.status() is PluginStatus.ACTIVE
            if should_run and not is_running:
                await plugin.initialize()
                plugin.enable()
            elif is_running and not should_run:
                plugin.disable()
                await plugin.cleanup()

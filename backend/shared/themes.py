"""
Theme catalog shared by the API and the mobile client.

Only identity and ordering live here. Color tables belong to the
presentation layer.
"""

from enum import Enum
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel


class ThemeType(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    COLORBLIND = "colorblind"
    GRAYSCALE = "grayscale"
    HIGH_CONTRAST = "high-contrast"


class ThemeInfo(BaseModel):
    """A theme the app knows how to render."""

    id: str
    name: str
    type: ThemeType

    model_config = {"frozen": True}


LIGHT_THEME_ID = "light-default"
DARK_THEME_ID = "dark-default"

DEFAULT_THEME_ID = LIGHT_THEME_ID

# Core themes can never be removed from a user's enabled set
CORE_THEME_IDS: tuple[str, ...] = (LIGHT_THEME_ID, DARK_THEME_ID)

# Canonical ordering. Fallback selection walks this list.
AVAILABLE_THEMES: tuple[ThemeInfo, ...] = (
    ThemeInfo(id=LIGHT_THEME_ID, name="Light", type=ThemeType.LIGHT),
    ThemeInfo(id=DARK_THEME_ID, name="Dark", type=ThemeType.DARK),
    ThemeInfo(id="colorblind-default", name="Colorblind Friendly", type=ThemeType.COLORBLIND),
    ThemeInfo(id="high-contrast", name="High Contrast", type=ThemeType.HIGH_CONTRAST),
    ThemeInfo(id="grayscale-default", name="Grayscale", type=ThemeType.GRAYSCALE),
)

THEME_IDS: frozenset[str] = frozenset(t.id for t in AVAILABLE_THEMES)


def is_known_theme(theme_id: str) -> bool:
    return theme_id in THEME_IDS


def can_disable_theme(theme_id: str) -> bool:
    """Core themes are protected."""
    return theme_id not in CORE_THEME_IDS


def with_core_themes(enabled: Iterable[str]) -> list[str]:
    """
    Return the enabled list with every core theme present.

    Core ids missing from the input are prepended in catalog order; the
    rest keeps its original order with duplicates dropped.
    """
    result: list[str] = []
    enabled = list(enabled)
    for core_id in CORE_THEME_IDS:
        if core_id not in enabled:
            result.append(core_id)
    for theme_id in enabled:
        if theme_id not in result:
            result.append(theme_id)
    return result


def first_enabled_theme(
    enabled: Iterable[str],
    available: Sequence[ThemeInfo] = AVAILABLE_THEMES,
) -> Optional[ThemeInfo]:
    """First theme of the available list (canonical order) that is enabled."""
    enabled_set = set(enabled)
    for theme in available:
        if theme.id in enabled_set:
            return theme
    return None


def system_theme_id(color_scheme: Optional[str]) -> str:
    """Map a platform color scheme ("light", "dark", None) to a core theme."""
    return DARK_THEME_ID if color_scheme == "dark" else LIGHT_THEME_ID

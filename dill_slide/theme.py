"""Theme presets, colour names and colour conversion helpers.

Everything in this module is pure and total: unknown preset names fall back to
the default triple and malformed colour strings resolve to opaque white, so a
bad theme value can never break layout compilation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True, slots=True)
class ThemePreset:
    """Concrete colours behind a named theme."""

    name: str
    background_color: str
    text_color: str
    accent_color: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "backgroundColor": self.background_color,
            "textColor": self.text_color,
            "accentColor": self.accent_color,
        }


@dataclass(frozen=True, slots=True)
class RgbColor:
    """Colour with each channel in ``[0, 1]``."""

    red: float
    green: float
    blue: float

    def to_dict(self) -> Dict[str, float]:
        return {"red": self.red, "green": self.green, "blue": self.blue}


WHITE = RgbColor(1.0, 1.0, 1.0)

DEFAULT_THEME = ThemePreset(
    name="Default",
    background_color="#ffffff",
    text_color="#111827",
    accent_color="#0ea5e9",
)

THEME_PRESETS: Dict[str, ThemePreset] = {
    preset.name: preset
    for preset in (
        ThemePreset("Material", "#ffffff", "#202124", "#1a73e8"),
        ThemePreset("Simple", "#ffffff", "#111827", "#374151"),
        ThemePreset("Dark", "#111827", "#F9FAFB", "#10B981"),
        ThemePreset("Coral", "#fff7ed", "#1f2937", "#fb7185"),
        ThemePreset("Ocean", "#0b132b", "#e0e1dd", "#00a8e8"),
        ThemePreset("Sunset", "#1f0a3a", "#fff7ed", "#ff6b6b"),
        ThemePreset("Forest", "#0b2614", "#e5f4ea", "#34d399"),
        ThemePreset("Mono", "#ffffff", "#0f172a", "#0f172a"),
        ThemePreset("Slate", "#0f172a", "#e2e8f0", "#64748b"),
        ThemePreset("Lavender", "#f5f3ff", "#312e81", "#8b5cf6"),
        ThemePreset("Emerald", "#052e2b", "#d1fae5", "#34d399"),
        ThemePreset("Candy", "#fff1f2", "#1f2937", "#ec4899"),
    )
}

# Colour words understood by the command grammar
COLOR_NAMES: Dict[str, str] = {
    "white": "#FFFFFF",
    "black": "#111827",
    "gray": "#374151",
    "grey": "#374151",
    "slate": "#0F172A",
    "navy": "#0B1B2B",
    "red": "#EF4444",
    "orange": "#F59E0B",
    "amber": "#FBBF24",
    "yellow": "#FACC15",
    "lime": "#84CC16",
    "green": "#10B981",
    "emerald": "#059669",
    "teal": "#14B8A6",
    "cyan": "#06B6D4",
    "sky": "#0EA5E9",
    "blue": "#2563EB",
    "indigo": "#4F46E5",
    "violet": "#8B5CF6",
    "purple": "#7C3AED",
    "fuchsia": "#C026D3",
    "pink": "#EC4899",
    "rose": "#F43F5E",
}

_HEX6_RE = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)
_HEX3_RE = re.compile(r"^#?([0-9a-f])([0-9a-f])([0-9a-f])$", re.IGNORECASE)


def resolve_theme(key: Optional[str]) -> ThemePreset:
    """Return the preset called ``key`` (case-insensitive) or the default."""

    if not key:
        return DEFAULT_THEME
    lookup = key.strip().lower()
    for name, preset in THEME_PRESETS.items():
        if name.lower() == lookup:
            return preset
    return DEFAULT_THEME


def normalize_color(value: Optional[str]) -> Optional[str]:
    """Return ``value`` as ``#RRGGBB`` or ``None`` when it is not a hex colour.

    ``#RGB`` shorthand is expanded and a missing ``#`` is added; the digits keep
    their original case.
    """

    if not isinstance(value, str):
        return None
    text = value.strip()
    match = _HEX6_RE.match(text)
    if match:
        return "#" + "".join(match.groups())
    match = _HEX3_RE.match(text)
    if match:
        return "#" + "".join(ch * 2 for ch in match.groups())
    return None


def resolve_color_word(word: Optional[str]) -> Optional[str]:
    """Resolve a hex literal or a colour name from :data:`COLOR_NAMES`."""

    if not word:
        return None
    text = word.strip()
    named = COLOR_NAMES.get(text.lower())
    if named:
        return named
    # bare words such as "bad" or "fed" are names, never hex digits
    if text.startswith("#"):
        return normalize_color(text)
    return None


def hex_to_rgb01(value: Optional[str]) -> RgbColor:
    """Convert ``#RRGGBB`` to channel fractions; anything else is white."""

    normalized = normalize_color(value)
    if normalized is None:
        return WHITE
    digits = normalized[1:]
    return RgbColor(
        red=int(digits[0:2], 16) / 255,
        green=int(digits[2:4], 16) / 255,
        blue=int(digits[4:6], 16) / 255,
    )


__all__ = [
    "ThemePreset",
    "RgbColor",
    "WHITE",
    "DEFAULT_THEME",
    "THEME_PRESETS",
    "COLOR_NAMES",
    "resolve_theme",
    "normalize_color",
    "resolve_color_word",
    "hex_to_rgb01",
]

"""Data models representing a slide deck and its styling."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .theme import DEFAULT_THEME, ThemePreset, resolve_theme, THEME_PRESETS


class SlideLayout(str, Enum):
    """Layout tag selecting which content regions a slide uses."""

    TITLE_SLIDE = "TITLE_SLIDE"
    TABLE_OF_CONTENTS = "TABLE_OF_CONTENTS"
    CONCLUSION = "CONCLUSION"
    APPENDIX = "APPENDIX"
    TITLE_AND_BODY = "TITLE_AND_BODY"
    PARAGRAPH = "PARAGRAPH"
    TWO_COLUMN = "TWO_COLUMN"
    SECTION_HEADER = "SECTION_HEADER"
    QUOTE = "QUOTE"
    TITLE_ONLY = "TITLE_ONLY"
    ONE_COLUMN_TEXT = "ONE_COLUMN_TEXT"
    MAIN_POINT = "MAIN_POINT"
    SECTION_AND_DESC = "SECTION_AND_DESC"
    CAPTION = "CAPTION"
    BIG_NUMBER = "BIG_NUMBER"

    @classmethod
    def parse(cls, value: Any) -> Optional["SlideLayout"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class TextAlign(str, Enum):
    START = "START"
    CENTER = "CENTER"
    END = "END"
    JUSTIFIED = "JUSTIFIED"

    @classmethod
    def parse(cls, value: Any) -> Optional["TextAlign"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


# ----------------------------------------------------------------------
# Coercion helpers (generated JSON is loosely typed)
# ----------------------------------------------------------------------

def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    items: List[str] = []
    for item in value:
        text = _optional_str(item)
        if text is not None and text.strip():
            items.append(text)
    return items


def _optional_str_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    return _str_list(value)


def _unique_terms(value: Any) -> List[str]:
    terms: List[str] = []
    for term in _str_list(value):
        if term not in terms:
            terms.append(term)
    return terms


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value) and value > 0:
        return int(value) if float(value).is_integer() else float(value)
    return None


@dataclass(slots=True)
class TextStyle:
    """Per-region overrides plus emphasis terms."""

    font_family: Optional[str] = None
    font_size: Optional[float] = None
    color: Optional[str] = None
    align: Optional[TextAlign] = None
    bold: List[str] = field(default_factory=list)
    italic: List[str] = field(default_factory=list)
    underline: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TextStyle"]:
        if not isinstance(data, dict):
            return None
        return cls(
            font_family=_optional_str(data.get("fontFamily")),
            font_size=_positive_number(data.get("fontSize")),
            color=_optional_str(data.get("color")),
            align=TextAlign.parse(data.get("align")),
            bold=_unique_terms(data.get("bold")),
            italic=_unique_terms(data.get("italic")),
            underline=_unique_terms(data.get("underline")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.font_family is not None:
            payload["fontFamily"] = self.font_family
        if self.font_size is not None:
            payload["fontSize"] = self.font_size
        if self.color is not None:
            payload["color"] = self.color
        if self.align is not None:
            payload["align"] = self.align.value
        for name in ("bold", "italic", "underline"):
            terms = getattr(self, name)
            if terms:
                payload[name] = list(terms)
        return payload

    def emphasis_terms(self, kind: str) -> List[str]:
        return list(getattr(self, kind))

    def add_emphasis(self, kind: str, term: str) -> bool:
        """Append ``term`` to the ``kind`` set; return False if already present."""

        terms: List[str] = getattr(self, kind)
        if term in terms:
            return False
        terms.append(term)
        return True


@dataclass(slots=True)
class Theme:
    """Deck-wide colours; each colour may be absent."""

    background_color: Optional[str] = None
    text_color: Optional[str] = None
    accent_color: Optional[str] = None
    background_image_url: Optional[str] = None

    @classmethod
    def from_preset(cls, preset: ThemePreset) -> "Theme":
        return cls(
            background_color=preset.background_color,
            text_color=preset.text_color,
            accent_color=preset.accent_color,
        )

    @classmethod
    def default(cls) -> "Theme":
        return cls.from_preset(DEFAULT_THEME)

    @classmethod
    def from_dict(cls, data: Any) -> "Theme":
        """Build a theme; a string or a ``key`` field selects a preset.

        Colours present in ``data`` win over the preset's colours.
        """

        if isinstance(data, str):
            return cls.from_preset(resolve_theme(data))
        if not isinstance(data, dict):
            return cls.default()

        theme = cls(
            background_color=_optional_str(data.get("backgroundColor")),
            text_color=_optional_str(data.get("textColor")),
            accent_color=_optional_str(data.get("accentColor")),
            background_image_url=_optional_str(data.get("backgroundImageUrl")),
        )
        key = _optional_str(data.get("key") or data.get("name"))
        if key and key.strip().lower() in {name.lower() for name in THEME_PRESETS}:
            preset = resolve_theme(key)
            theme.background_color = theme.background_color or preset.background_color
            theme.text_color = theme.text_color or preset.text_color
            theme.accent_color = theme.accent_color or preset.accent_color
        return theme

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.background_color is not None:
            payload["backgroundColor"] = self.background_color
        if self.text_color is not None:
            payload["textColor"] = self.text_color
        if self.accent_color is not None:
            payload["accentColor"] = self.accent_color
        if self.background_image_url is not None:
            payload["backgroundImageUrl"] = self.background_image_url
        return payload


@dataclass(slots=True)
class Slide:
    """A single content slide.

    ``layout`` stays ``None`` when the incoming tag was absent or unknown; the
    layout compiler infers one from the populated fields.
    """

    layout: Optional[SlideLayout] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    bullets: List[str] = field(default_factory=list)
    paragraph: Optional[str] = None
    quote: Optional[str] = None
    notes: Optional[str] = None
    toc_items: Optional[List[str]] = None
    citations: Optional[List[str]] = None
    title_style: Optional[TextStyle] = None
    body_style: Optional[TextStyle] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slide":
        return cls(
            layout=SlideLayout.parse(data.get("layout")),
            title=_optional_str(data.get("title")),
            subtitle=_optional_str(data.get("subtitle")),
            bullets=_str_list(data.get("bullets")),
            paragraph=_optional_str(data.get("paragraph")),
            quote=_optional_str(data.get("quote")),
            notes=_optional_str(data.get("notes")),
            toc_items=_optional_str_list(data.get("tocItems")),
            citations=_optional_str_list(data.get("citations")),
            title_style=TextStyle.from_dict(data.get("titleStyle")),
            body_style=TextStyle.from_dict(data.get("bodyStyle")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.layout is not None:
            payload["layout"] = self.layout.value
        payload["title"] = self.title
        if self.subtitle is not None:
            payload["subtitle"] = self.subtitle
        payload["bullets"] = list(self.bullets)
        payload["paragraph"] = self.paragraph
        if self.quote is not None:
            payload["quote"] = self.quote
        if self.notes is not None:
            payload["notes"] = self.notes
        if self.toc_items is not None:
            payload["tocItems"] = list(self.toc_items)
        if self.citations is not None:
            payload["citations"] = list(self.citations)
        if self.title_style is not None:
            payload["titleStyle"] = self.title_style.to_dict()
        if self.body_style is not None:
            payload["bodyStyle"] = self.body_style.to_dict()
        return payload

    def ensure_style(self, region: str) -> TextStyle:
        """Return the title/body style, creating an empty one if needed."""

        if region == "title":
            if self.title_style is None:
                self.title_style = TextStyle()
            return self.title_style
        if self.body_style is None:
            self.body_style = TextStyle()
        return self.body_style


@dataclass(slots=True)
class Deck:
    """Container for a whole presentation."""

    presentation_title: str = ""
    theme: Theme = field(default_factory=Theme.default)
    slides: List[Slide] = field(default_factory=list)

    @property
    def slides_count(self) -> int:
        return len(self.slides)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Deck":
        slides = [
            Slide.from_dict(item)
            for item in data.get("slides", [])
            if isinstance(item, dict)
        ]
        theme_data = data.get("theme")
        theme = Theme.from_dict(theme_data) if theme_data is not None else Theme.default()
        return cls(
            presentation_title=_optional_str(data.get("presentationTitle")) or "",
            theme=theme,
            slides=slides,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "presentationTitle": self.presentation_title,
            "slidesCount": self.slides_count,
            "theme": self.theme.to_dict(),
            "slides": [slide.to_dict() for slide in self.slides],
        }

    def copy(self) -> "Deck":
        """Deep copy; edits to the copy never reach this deck."""

        return copy.deepcopy(self)

    def get_slide(self, index: int) -> Optional[Slide]:
        if 0 <= index < len(self.slides):
            return self.slides[index]
        return None


__all__ = [
    "SlideLayout",
    "TextAlign",
    "TextStyle",
    "Theme",
    "Slide",
    "Deck",
]

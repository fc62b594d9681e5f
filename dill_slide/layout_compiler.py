"""Compile a :class:`Deck` into an ordered stream of render operations.

The compiler is pure: the same deck, geometry and generation date always give
an identical operation list, so the output can be diffed and re-submitted
safely. It never raises for content, colour or size values; missing content
simply produces no box for that region.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from .render_ops import OperationType, RenderOperation
from .slide_models import Deck, Slide, SlideLayout, TextAlign, TextStyle, Theme
from .text_fit import pick_font_size
from .theme import RgbColor, hex_to_rgb01, normalize_color

LOGGER = logging.getLogger(__name__)

TITLE_PAGE_ID = "slide_000"
DEFAULT_DECK_TITLE = "Generated Deck"
TOC_LIMIT = 12

EMPHASIS_OPERATIONS = (
    ("bold", OperationType.SET_BOLD),
    ("italic", OperationType.SET_ITALIC),
    ("underline", OperationType.SET_UNDERLINE),
)


@dataclass(frozen=True, slots=True)
class PageGeometry:
    """Page size and margins in points (Google Slides default page)."""

    width: float = 720
    height: float = 540
    margin_x: float = 40
    margin_y: float = 40

    @property
    def content_width(self) -> float:
        return self.width - self.margin_x * 2


@dataclass(frozen=True, slots=True)
class Box:
    x: float
    y: float
    width: float
    height: float


def infer_layout(slide: Slide) -> SlideLayout:
    """Layout to use when a slide carries no (known) layout tag."""

    if slide.layout is not None:
        return slide.layout
    if slide.bullets:
        return SlideLayout.TITLE_AND_BODY
    if (slide.paragraph or "").strip():
        return SlideLayout.PARAGRAPH
    if (slide.quote or "").strip():
        return SlideLayout.QUOTE
    return SlideLayout.TITLE_AND_BODY


def format_generation_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def find_occurrences(text: str, term: str) -> List[int]:
    """Start offsets of every non-overlapping occurrence of ``term``."""

    if not term:
        return []
    positions: List[int] = []
    start = text.find(term)
    while start != -1:
        positions.append(start)
        start = text.find(term, start + len(term))
    return positions


class DeckLayoutCompiler:
    """Turn a deck into positioned, styled draw operations."""

    def __init__(
        self,
        geometry: Optional[PageGeometry] = None,
        *,
        fallback_title: str = DEFAULT_DECK_TITLE,
    ) -> None:
        self.geometry = geometry or PageGeometry()
        self.fallback_title = fallback_title

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def compile(self, deck: Deck, *, generated_on: Optional[date] = None) -> List[RenderOperation]:
        """Return the operation stream: title page first, then every slide."""

        generated_on = generated_on or date.today()
        operations: List[RenderOperation] = []
        self._compile_title_page(operations, deck, generated_on)
        for index, slide in enumerate(deck.slides, start=1):
            page_id = f"slide_{index:03d}"
            self._container(operations, page_id, deck.theme)
            self._compile_slide(operations, page_id, slide, deck)
        LOGGER.debug(
            "Compiled %d slides into %d operations", deck.slides_count, len(operations)
        )
        return operations

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------
    def _compile_title_page(
        self, operations: List[RenderOperation], deck: Deck, generated_on: date
    ) -> None:
        page = self.geometry
        theme = deck.theme
        self._container(operations, TITLE_PAGE_ID, theme)

        title = (deck.presentation_title or "").strip() or self.fallback_title
        self._text_box(
            operations,
            f"{TITLE_PAGE_ID}_title",
            TITLE_PAGE_ID,
            Box(60, 160, page.width - 120, 120),
            title,
            color=theme.text_color,
            base=44,
            floor=28,
            align=TextAlign.CENTER,
        )
        self._text_box(
            operations,
            f"{TITLE_PAGE_ID}_subtitle",
            TITLE_PAGE_ID,
            Box(page.width / 2 - 180, 300, 360, 48),
            format_generation_date(generated_on),
            color=theme.accent_color or theme.text_color,
            base=18,
            floor=18,
            align=TextAlign.CENTER,
        )

    def _compile_slide(
        self, operations: List[RenderOperation], page_id: str, slide: Slide, deck: Deck
    ) -> None:
        layout = infer_layout(slide)
        handler = {
            SlideLayout.SECTION_HEADER: self._section_header,
            SlideLayout.PARAGRAPH: self._paragraph,
            SlideLayout.TWO_COLUMN: self._two_column,
            SlideLayout.QUOTE: self._quote,
            SlideLayout.TITLE_SLIDE: self._title_slide,
            SlideLayout.TABLE_OF_CONTENTS: self._table_of_contents,
            SlideLayout.APPENDIX: self._appendix,
            SlideLayout.CONCLUSION: self._conclusion,
        }.get(layout, self._title_and_body)
        handler(operations, page_id, slide, deck)

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------
    def _section_header(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        page = self.geometry
        title = _clean(slide.title)
        if title:
            self._text_box(
                operations,
                f"{page_id}_title",
                page_id,
                Box(page.margin_x, page.height / 2 - 60, page.content_width, 120),
                title,
                color=deck.theme.text_color,
                base=40,
                floor=26,
                align=TextAlign.CENTER,
                bold=True,
                style=slide.title_style,
            )

    def _paragraph(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        page = self.geometry
        title = _clean(slide.title)
        if title:
            self._text_box(
                operations,
                f"{page_id}_title",
                page_id,
                Box(page.margin_x, page.margin_y, page.content_width, 64),
                title,
                color=deck.theme.text_color,
                base=24,
                floor=18,
                bold=True,
                style=slide.title_style,
            )
        body = _clean(slide.paragraph) or " ".join(_clean_items(slide.bullets))
        if body:
            self._text_box(
                operations,
                f"{page_id}_body",
                page_id,
                self._body_box(),
                body,
                color=deck.theme.text_color,
                base=18,
                floor=12,
                align=TextAlign.JUSTIFIED,
                style=slide.body_style,
            )

    def _two_column(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        page = self.geometry
        title = _clean(slide.title)
        if title:
            self._text_box(
                operations,
                f"{page_id}_title",
                page_id,
                Box(page.margin_x, 22, page.content_width, 54),
                title,
                color=deck.theme.text_color,
                base=24,
                floor=16,
                bold=True,
                style=slide.title_style,
            )

        bullets = _clean_items(slide.bullets)
        half = math.ceil(len(bullets) / 2)
        column_width = page.content_width / 2 - 12
        columns = (
            ("_col1", page.margin_x, bullets[:half]),
            ("_col2", page.margin_x + page.content_width / 2 + 12, bullets[half:]),
        )
        for suffix, x, items in columns:
            if not items:
                continue
            self._text_box(
                operations,
                f"{page_id}{suffix}",
                page_id,
                Box(x, 96, column_width, page.height - 132),
                "\n".join(items),
                color=deck.theme.text_color,
                base=18,
                floor=12,
                bullets=True,
                style=slide.body_style,
            )

    def _quote(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        page = self.geometry
        bullets = _clean_items(slide.bullets)
        quote = _clean(slide.quote) or (bullets[0] if bullets else "")
        if quote:
            self._text_box(
                operations,
                f"{page_id}_body",
                page_id,
                Box(80, 160, page.width - 160, 260),
                f"“{quote}”",
                fit_text=quote,
                color=deck.theme.text_color,
                base=28,
                floor=16,
                align=TextAlign.CENTER,
                italic=True,
                style=slide.body_style,
            )
        title = _clean(slide.title)
        if title:
            self._text_box(
                operations,
                f"{page_id}_title",
                page_id,
                Box(page.margin_x, 40, page.content_width, 50),
                title,
                color=deck.theme.accent_color or deck.theme.text_color,
                base=20,
                floor=14,
                style=slide.title_style,
            )

    def _title_slide(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        page = self.geometry
        title = _clean(slide.title) or _clean(deck.presentation_title)
        if title:
            self._text_box(
                operations,
                f"{page_id}_title",
                page_id,
                Box(60, 160, page.width - 120, 120),
                title,
                color=deck.theme.text_color,
                base=44,
                floor=28,
                align=TextAlign.CENTER,
                style=slide.title_style,
            )
        subtitle = _clean(slide.subtitle)
        if subtitle:
            self._text_box(
                operations,
                f"{page_id}_body",
                page_id,
                Box(page.width / 2 - 180, 300, 360, 48),
                subtitle,
                color=deck.theme.accent_color or deck.theme.text_color,
                base=18,
                floor=12,
                align=TextAlign.CENTER,
                style=slide.body_style,
            )

    def _table_of_contents(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        items = _clean_items(slide.toc_items or []) or derive_toc_items(deck.slides)
        body = "\n".join(f"{number}. {item}" for number, item in enumerate(items, start=1))
        self._headed_body(
            operations, page_id, slide, deck,
            default_title="Table of Contents", body=body, bullets=False,
        )

    def _appendix(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        citations = _clean_items(slide.citations or [])
        self._headed_body(
            operations, page_id, slide, deck,
            default_title="Appendix", body="\n".join(citations), bullets=True,
        )

    def _conclusion(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        paragraph = _clean(slide.paragraph)
        if paragraph:
            body, bullets = paragraph, False
        else:
            body, bullets = "\n".join(_clean_items(slide.bullets)), True
        self._headed_body(
            operations, page_id, slide, deck,
            default_title="Conclusion", body=body, bullets=bullets,
        )

    def _title_and_body(self, operations, page_id, slide: Slide, deck: Deck) -> None:
        bullets = _clean_items(slide.bullets)
        if bullets:
            body, as_bullets = "\n".join(bullets), True
        else:
            body, as_bullets = _clean(slide.paragraph), False
        self._headed_body(
            operations, page_id, slide, deck,
            default_title="", body=body, bullets=as_bullets,
        )

    def _headed_body(
        self,
        operations: List[RenderOperation],
        page_id: str,
        slide: Slide,
        deck: Deck,
        *,
        default_title: str,
        body: str,
        bullets: bool,
    ) -> None:
        page = self.geometry
        title = _clean(slide.title) or default_title
        if title:
            self._text_box(
                operations,
                f"{page_id}_title",
                page_id,
                Box(page.margin_x, page.margin_y, page.content_width, 60),
                title,
                color=deck.theme.text_color,
                base=24,
                floor=16,
                bold=True,
                style=slide.title_style,
            )
        if body:
            self._text_box(
                operations,
                f"{page_id}_body",
                page_id,
                self._body_box(),
                body,
                color=deck.theme.text_color,
                base=18,
                floor=12,
                bullets=bullets,
                style=slide.body_style,
            )

    # ------------------------------------------------------------------
    # Operation helpers
    # ------------------------------------------------------------------
    def _body_box(self) -> Box:
        page = self.geometry
        return Box(page.margin_x, 120, page.content_width, page.height - 160)

    @staticmethod
    def _container(operations: List[RenderOperation], page_id: str, theme: Theme) -> None:
        operations.append(RenderOperation(OperationType.CREATE_CONTAINER, page_id))
        if theme.background_color:
            operations.append(
                RenderOperation(
                    OperationType.SET_BACKGROUND,
                    page_id,
                    color=hex_to_rgb01(theme.background_color),
                )
            )
        if theme.background_image_url:
            operations.append(
                RenderOperation(
                    OperationType.SET_BACKGROUND_IMAGE,
                    page_id,
                    url=theme.background_image_url,
                )
            )

    @staticmethod
    def _text_box(
        operations: List[RenderOperation],
        object_id: str,
        page_id: str,
        box: Box,
        text: str,
        *,
        color: Optional[str],
        base: float,
        floor: float,
        fit_text: Optional[str] = None,
        align: Optional[TextAlign] = None,
        bold: bool = False,
        italic: bool = False,
        bullets: bool = False,
        style: Optional[TextStyle] = None,
    ) -> None:
        style = style or TextStyle()
        operations.append(
            RenderOperation(
                OperationType.CREATE_TEXT_BOX,
                object_id,
                page_id=page_id,
                x=box.x,
                y=box.y,
                width=box.width,
                height=box.height,
            )
        )
        operations.append(RenderOperation(OperationType.INSERT_TEXT, object_id, text=text))

        text_color = _style_color(style, color)
        if text_color is not None:
            operations.append(
                RenderOperation(OperationType.SET_TEXT_COLOR, object_id, color=text_color)
            )

        align = style.align or align
        if align is not None:
            operations.append(
                RenderOperation(OperationType.SET_TEXT_ALIGN, object_id, align=align.value)
            )

        if style.font_size is not None:
            size = style.font_size
        else:
            size = pick_font_size(
                fit_text if fit_text is not None else text, box.width, box.height, base, floor
            )
        operations.append(RenderOperation(OperationType.SET_FONT_SIZE, object_id, font_size=size))

        if style.font_family:
            operations.append(
                RenderOperation(
                    OperationType.SET_FONT_FAMILY, object_id, font_family=style.font_family
                )
            )
        if bold:
            operations.append(RenderOperation(OperationType.SET_BOLD, object_id))
        if italic:
            operations.append(RenderOperation(OperationType.SET_ITALIC, object_id))
        if bullets:
            operations.append(RenderOperation(OperationType.APPLY_BULLET_FORMATTING, object_id))

        for kind, operation_type in EMPHASIS_OPERATIONS:
            for term in style.emphasis_terms(kind):
                for start in find_occurrences(text, term):
                    operations.append(
                        RenderOperation(
                            operation_type, object_id, start=start, end=start + len(term)
                        )
                    )


# ----------------------------------------------------------------------
# Helper functions
# ----------------------------------------------------------------------

def derive_toc_items(slides: Sequence[Slide]) -> List[str]:
    """Titles of the content slides, for a table of contents without items."""

    skipped = {SlideLayout.TITLE_SLIDE, SlideLayout.TABLE_OF_CONTENTS}
    titles = [
        _clean(slide.title)
        for slide in slides
        if slide.layout not in skipped and _clean(slide.title)
    ]
    return titles[:TOC_LIMIT]


def _style_color(style: TextStyle, fallback: Optional[str]) -> Optional[RgbColor]:
    explicit = normalize_color(style.color)
    if explicit is not None:
        return hex_to_rgb01(explicit)
    if fallback:
        return hex_to_rgb01(fallback)
    return None


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _clean_items(items: Sequence[str]) -> List[str]:
    return [item.strip() for item in items if item and item.strip()]


__all__ = [
    "PageGeometry",
    "Box",
    "DeckLayoutCompiler",
    "infer_layout",
    "derive_toc_items",
    "format_generation_date",
    "find_occurrences",
]

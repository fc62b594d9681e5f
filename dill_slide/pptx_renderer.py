"""Execute render operation streams into PPTX files with python-pptx."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import PP_ALIGN
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.util import Pt

from .layout_compiler import DeckLayoutCompiler, PageGeometry
from .render_ops import OperationType, RenderOperation
from .slide_models import Deck
from .theme import WHITE, RgbColor

LOGGER = logging.getLogger(__name__)

BLANK_LAYOUT_INDEX = 6
BULLET_CHAR = "•"
BULLET_INDENT = Pt(18)

ALIGNMENTS = {
    "START": PP_ALIGN.LEFT,
    "CENTER": PP_ALIGN.CENTER,
    "END": PP_ALIGN.RIGHT,
    "JUSTIFIED": PP_ALIGN.JUSTIFY,
}

RANGED_STYLES = {
    OperationType.SET_BOLD: "bold",
    OperationType.SET_ITALIC: "italic",
    OperationType.SET_UNDERLINE: "underline",
}


@dataclass
class _TextBoxState:
    """Accumulated styling for one text box until the stream is finished."""

    shape: object
    text: str = ""
    color: Optional[RgbColor] = None
    align: Optional[str] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    styles: Set[str] = field(default_factory=set)
    ranges: List[Tuple[int, int, str]] = field(default_factory=list)
    bullets: bool = False


class PptxOperationRenderer:
    """Render operation streams (or decks) into PPTX binaries."""

    def __init__(self, geometry: Optional[PageGeometry] = None) -> None:
        self.geometry = geometry or PageGeometry()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render_deck(self, deck: Deck, *, generated_on: Optional[date] = None) -> io.BytesIO:
        """Compile ``deck`` and return a PPTX stream."""

        operations = DeckLayoutCompiler(self.geometry).compile(deck, generated_on=generated_on)
        return self.render_operations(operations)

    def render_operations(self, operations: Iterable[RenderOperation]) -> io.BytesIO:
        """Execute ``operations`` in order and return a PPTX stream."""

        presentation = Presentation()
        presentation.slide_width = Pt(self.geometry.width)
        presentation.slide_height = Pt(self.geometry.height)
        layout = presentation.slide_layouts[BLANK_LAYOUT_INDEX]

        pages: Dict[str, object] = {}
        boxes: Dict[str, _TextBoxState] = {}

        for operation in operations:
            op = operation.type
            if op is OperationType.CREATE_CONTAINER:
                pages[operation.object_id] = presentation.slides.add_slide(layout)
            elif op is OperationType.SET_BACKGROUND:
                fill = pages[operation.object_id].background.fill
                fill.solid()
                fill.fore_color.rgb = _rgb(operation.color)
            elif op is OperationType.SET_BACKGROUND_IMAGE:
                # remote images are not fetched; the solid fill stays in place
                LOGGER.info(
                    "Skipping background image %s for %s", operation.url, operation.object_id
                )
            elif op is OperationType.CREATE_TEXT_BOX:
                slide = pages[operation.page_id]
                shape = slide.shapes.add_textbox(
                    Pt(operation.x), Pt(operation.y), Pt(operation.width), Pt(operation.height)
                )
                shape.name = operation.object_id
                boxes[operation.object_id] = _TextBoxState(shape=shape)
            else:
                self._apply_text_operation(boxes[operation.object_id], operation)

        for state in boxes.values():
            _write_text_box(state)

        buffer = io.BytesIO()
        presentation.save(buffer)
        buffer.seek(0)
        return buffer

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _apply_text_operation(state: _TextBoxState, operation: RenderOperation) -> None:
        op = operation.type
        if op is OperationType.INSERT_TEXT:
            state.text = (operation.text or "") + state.text
        elif op is OperationType.SET_TEXT_COLOR:
            state.color = operation.color
        elif op is OperationType.SET_TEXT_ALIGN:
            state.align = operation.align
        elif op is OperationType.SET_FONT_SIZE:
            state.font_size = operation.font_size
        elif op is OperationType.SET_FONT_FAMILY:
            state.font_family = operation.font_family
        elif op is OperationType.APPLY_BULLET_FORMATTING:
            state.bullets = True
        elif op in RANGED_STYLES:
            style = RANGED_STYLES[op]
            if operation.start is None:
                state.styles.add(style)
            else:
                state.ranges.append((operation.start, operation.end, style))
        else:
            raise ValueError(f"Unsupported render operation: {op}")


# ----------------------------------------------------------------------
# Helper functions
# ----------------------------------------------------------------------

def _write_text_box(state: _TextBoxState) -> None:
    text_frame = state.shape.text_frame
    text_frame.word_wrap = True
    offset = 0
    for index, line in enumerate(state.text.split("\n")):
        paragraph = text_frame.paragraphs[0] if index == 0 else text_frame.add_paragraph()
        if state.align in ALIGNMENTS:
            paragraph.alignment = ALIGNMENTS[state.align]
        if state.bullets:
            _set_bullet(paragraph)
        for start, end, styles in _segments(line, offset, state):
            run = paragraph.add_run()
            run.text = line[start:end]
            font = run.font
            if state.font_size is not None:
                font.size = Pt(state.font_size)
            if state.font_family:
                font.name = state.font_family
            if state.color is not None:
                font.color.rgb = _rgb(state.color)
            if "bold" in styles:
                font.bold = True
            if "italic" in styles:
                font.italic = True
            if "underline" in styles:
                font.underline = True
        # the newline joining two paragraphs occupies one character
        offset += len(line) + 1


def _segments(line: str, offset: int, state: _TextBoxState) -> List[Tuple[int, int, Set[str]]]:
    """Split ``line`` into runs so that each ranged style covers whole runs."""

    cuts = {0, len(line)}
    for start, end, _ in state.ranges:
        for point in (start - offset, end - offset):
            if 0 < point < len(line):
                cuts.add(point)
    points: Sequence[int] = sorted(cuts)

    segments: List[Tuple[int, int, Set[str]]] = []
    for start, end in zip(points, points[1:]):
        styles = set(state.styles)
        for range_start, range_end, style in state.ranges:
            if range_start <= offset + start and offset + end <= range_end:
                styles.add(style)
        segments.append((start, end, styles))
    if not segments:
        segments.append((0, 0, set(state.styles)))
    return segments


def _set_bullet(paragraph, char: str = BULLET_CHAR) -> None:
    pPr = paragraph._element.get_or_add_pPr()
    pPr.set("marL", str(BULLET_INDENT))
    pPr.set("indent", str(-BULLET_INDENT))
    for child in list(pPr):
        if child.tag in {qn("a:buChar"), qn("a:buAutoNum"), qn("a:buNone")}:
            pPr.remove(child)
    bullet = OxmlElement("a:buChar")
    bullet.set("char", char)
    pPr.append(bullet)


def _rgb(color: Optional[RgbColor]) -> RGBColor:
    color = color or WHITE
    return RGBColor(
        round(color.red * 255), round(color.green * 255), round(color.blue * 255)
    )


__all__ = ["PptxOperationRenderer"]

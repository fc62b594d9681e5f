"""Render operations emitted by the layout compiler.

Each operation is a small immutable record that an external presentation
engine executes in order. ``to_slides_request`` maps an operation onto the
equivalent Google Slides ``batchUpdate`` request body; ``PptxOperationRenderer``
executes the same stream with python-pptx.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .theme import WHITE, RgbColor


class OperationType(str, Enum):
    CREATE_CONTAINER = "createContainer"
    SET_BACKGROUND = "setBackground"
    SET_BACKGROUND_IMAGE = "setBackgroundImage"
    CREATE_TEXT_BOX = "createTextBox"
    INSERT_TEXT = "insertText"
    SET_TEXT_COLOR = "setTextColor"
    SET_TEXT_ALIGN = "setTextAlign"
    SET_FONT_SIZE = "setFontSize"
    SET_FONT_FAMILY = "setFontFamily"
    SET_BOLD = "setBold"
    SET_ITALIC = "setItalic"
    SET_UNDERLINE = "setUnderline"
    APPLY_BULLET_FORMATTING = "applyBulletFormatting"


@dataclass(frozen=True, slots=True)
class RenderOperation:
    """One drawing instruction.

    ``object_id`` names the target (a page for container/background
    operations, a text box otherwise). ``page_id`` is only set on
    ``createTextBox``. Geometry and font sizes are in points; ``start``/``end``
    restrict a style operation to a character range of the box text.
    """

    type: OperationType
    object_id: str
    page_id: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    text: Optional[str] = None
    color: Optional[RgbColor] = None
    align: Optional[str] = None
    font_size: Optional[float] = None
    font_family: Optional[str] = None
    url: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type.value, "objectId": self.object_id}
        if self.page_id is not None:
            payload["pageId"] = self.page_id
        if self.x is not None:
            payload.update(
                {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
            )
        if self.text is not None:
            payload["text"] = self.text
        if self.color is not None:
            payload["color"] = self.color.to_dict()
        if self.align is not None:
            payload["align"] = self.align
        if self.font_size is not None:
            payload["fontSize"] = self.font_size
        if self.font_family is not None:
            payload["fontFamily"] = self.font_family
        if self.url is not None:
            payload["url"] = self.url
        if self.start is not None:
            payload["start"] = self.start
            payload["end"] = self.end
        return payload

    def to_slides_request(self, text: Optional[str] = None) -> Dict[str, Any]:
        """Return the Google Slides ``batchUpdate`` request for this operation.

        ``text`` is the current text of the target box. When given, ranged
        offsets are converted to the UTF-16 indices the Slides API counts in.
        """

        op = self.type
        if op is OperationType.CREATE_CONTAINER:
            return {
                "createSlide": {
                    "objectId": self.object_id,
                    "slideLayoutReference": {"predefinedLayout": "BLANK"},
                }
            }
        if op is OperationType.SET_BACKGROUND:
            return {
                "updatePageProperties": {
                    "objectId": self.object_id,
                    "fields": "pageBackgroundFill.solidFill.color",
                    "pageProperties": {
                        "pageBackgroundFill": {
                            "solidFill": {"color": {"rgbColor": _rgb(self.color)}}
                        }
                    },
                }
            }
        if op is OperationType.SET_BACKGROUND_IMAGE:
            return {
                "updatePageProperties": {
                    "objectId": self.object_id,
                    "fields": "pageBackgroundFill.stretchedPictureFill.contentUrl",
                    "pageProperties": {
                        "pageBackgroundFill": {
                            "stretchedPictureFill": {"contentUrl": self.url}
                        }
                    },
                }
            }
        if op is OperationType.CREATE_TEXT_BOX:
            return {
                "createShape": {
                    "objectId": self.object_id,
                    "shapeType": "TEXT_BOX",
                    "elementProperties": {
                        "pageObjectId": self.page_id,
                        "size": {
                            "width": {"magnitude": self.width, "unit": "PT"},
                            "height": {"magnitude": self.height, "unit": "PT"},
                        },
                        "transform": {
                            "scaleX": 1,
                            "scaleY": 1,
                            "translateX": self.x,
                            "translateY": self.y,
                            "unit": "PT",
                        },
                    },
                }
            }
        if op is OperationType.INSERT_TEXT:
            return {
                "insertText": {
                    "objectId": self.object_id,
                    "insertionIndex": 0,
                    "text": self.text,
                }
            }
        if op is OperationType.SET_TEXT_ALIGN:
            return {
                "updateParagraphStyle": {
                    "objectId": self.object_id,
                    "textRange": self._text_range(text),
                    "fields": "alignment",
                    "style": {"alignment": self.align},
                }
            }
        if op is OperationType.APPLY_BULLET_FORMATTING:
            return {
                "createParagraphBullets": {
                    "objectId": self.object_id,
                    "textRange": self._text_range(text),
                    "bulletPreset": "BULLET_DISC_CIRCLE_SQUARE",
                }
            }

        fields, style = self._text_style()
        return {
            "updateTextStyle": {
                "objectId": self.object_id,
                "textRange": self._text_range(text),
                "fields": fields,
                "style": style,
            }
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _text_range(self, text: Optional[str] = None) -> Dict[str, Any]:
        if self.start is None:
            return {"type": "ALL"}
        start, end = self.start, self.end
        if text is not None:
            start, end = utf16_offset(text, start), utf16_offset(text, end)
        return {"type": "FIXED_RANGE", "startIndex": start, "endIndex": end}

    def _text_style(self) -> Tuple[str, Dict[str, Any]]:
        op = self.type
        if op is OperationType.SET_TEXT_COLOR:
            return "foregroundColor", {
                "foregroundColor": {"opaqueColor": {"rgbColor": _rgb(self.color)}}
            }
        if op is OperationType.SET_FONT_SIZE:
            return "fontSize", {"fontSize": {"magnitude": self.font_size, "unit": "PT"}}
        if op is OperationType.SET_FONT_FAMILY:
            return "fontFamily", {"fontFamily": self.font_family}
        if op is OperationType.SET_BOLD:
            return "bold", {"bold": True}
        if op is OperationType.SET_ITALIC:
            return "italic", {"italic": True}
        if op is OperationType.SET_UNDERLINE:
            return "underline", {"underline": True}
        raise ValueError(f"Unsupported render operation: {op}")


def _rgb(color: Optional[RgbColor]) -> Dict[str, float]:
    return (color or WHITE).to_dict()


def operations_to_dicts(operations: Iterable[RenderOperation]) -> List[Dict[str, Any]]:
    return [operation.to_dict() for operation in operations]


def operations_to_json(operations: Iterable[RenderOperation], *, indent: Optional[int] = None) -> str:
    """Serialise an operation stream; equal streams give identical strings."""

    return json.dumps(operations_to_dicts(operations), ensure_ascii=False, indent=indent)


def utf16_offset(text: str, index: int) -> int:
    """Convert a ``str`` index into ``text`` to a count of UTF-16 code units."""

    return len(text[:index].encode("utf-16-le")) // 2


def to_slides_requests(operations: Iterable[RenderOperation]) -> List[Dict[str, Any]]:
    """Return the ``requests`` list of a Google Slides ``batchUpdate`` call."""

    texts: Dict[str, str] = {}
    requests: List[Dict[str, Any]] = []
    for operation in operations:
        if operation.type is OperationType.INSERT_TEXT:
            # inserted at index 0, ahead of any earlier text
            texts[operation.object_id] = (operation.text or "") + texts.get(operation.object_id, "")
        requests.append(operation.to_slides_request(texts.get(operation.object_id)))
    return requests


__all__ = [
    "OperationType",
    "RenderOperation",
    "operations_to_dicts",
    "operations_to_json",
    "to_slides_requests",
    "utf16_offset",
]

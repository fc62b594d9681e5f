"""Approximate font sizing for fixed-size text boxes.

This is a packing estimate, not a text-measurement engine: an average glyph is
assumed to be half the font size wide and a line 1.35 times the font size tall.
Exact wrapping is left to whatever renders the boxes, and text that still does
not fit at the floor size simply overflows.
"""

from __future__ import annotations

import math

BOX_PADDING = 16
GLYPH_WIDTH_FACTOR = 0.5
LINE_HEIGHT_FACTOR = 1.35
MIN_CHARS_PER_LINE = 8
SIZE_STEP = 2


def estimate_lines(text_length: int, box_width: float, font_size: float) -> int:
    usable_width = max(0.0, box_width - BOX_PADDING)
    chars_per_line = max(
        MIN_CHARS_PER_LINE, math.floor(usable_width / (font_size * GLYPH_WIDTH_FACTOR))
    )
    return math.ceil(text_length / chars_per_line)


def max_lines(box_height: float, font_size: float) -> int:
    usable_height = max(0.0, box_height - BOX_PADDING)
    return math.floor(usable_height / (font_size * LINE_HEIGHT_FACTOR))


def pick_font_size(
    text: str,
    box_width: float,
    box_height: float,
    base: float = 18,
    floor: float = 12,
) -> float:
    """Largest size in ``[floor, base]`` (2pt steps down from ``base``) that fits.

    Returns ``floor`` when nothing fits. ``floor`` above ``base`` is treated as
    a fixed size.
    """

    if floor > base:
        return floor
    text_length = len(text or "")
    size = base
    while size > floor and size > 0:
        if estimate_lines(text_length, box_width, size) <= max_lines(box_height, size):
            return size
        size -= SIZE_STEP
    return floor


__all__ = ["pick_font_size", "estimate_lines", "max_lines"]

from datetime import date

import pytest

from dill_slide.layout_compiler import (
    DeckLayoutCompiler,
    PageGeometry,
    derive_toc_items,
    find_occurrences,
    format_generation_date,
    infer_layout,
)
from dill_slide.render_ops import (
    OperationType,
    RenderOperation,
    operations_to_json,
    to_slides_requests,
    utf16_offset,
)
from dill_slide.slide_models import Deck, Slide, SlideLayout, TextAlign, TextStyle, Theme
from dill_slide.theme import hex_to_rgb01

GENERATED_ON = date(2024, 3, 5)


def _compile(deck, **kwargs):
    return DeckLayoutCompiler(**kwargs).compile(deck, generated_on=GENERATED_ON)


def _ops_for(operations, object_id):
    return [op for op in operations if op.object_id == object_id]


def _op(operations, object_id, op_type):
    matches = [op for op in _ops_for(operations, object_id) if op.type is op_type]
    assert matches, f"no {op_type} for {object_id}"
    return matches[0]


def _sample_deck():
    return Deck(
        presentation_title="Ocean Basics",
        theme=Theme(background_color="#0b132b", text_color="#e0e1dd", accent_color="#00a8e8"),
        slides=[
            Slide(layout=SlideLayout.TITLE_AND_BODY, title="Tides", bullets=["Moon", "Sun"]),
            Slide(layout=SlideLayout.PARAGRAPH, title="Currents", paragraph="Water moves."),
            Slide(layout=SlideLayout.QUOTE, title="Voices", quote="The sea is everything."),
        ],
    )


def test_title_page_comes_first():
    operations = _compile(_sample_deck())

    assert operations[0].type is OperationType.CREATE_CONTAINER
    assert operations[0].object_id == "slide_000"
    assert operations[1].type is OperationType.SET_BACKGROUND
    assert operations[1].color == hex_to_rgb01("#0b132b")
    assert _op(operations, "slide_000_title", OperationType.INSERT_TEXT).text == "Ocean Basics"
    assert _op(operations, "slide_000_subtitle", OperationType.INSERT_TEXT).text == "March 5, 2024"
    subtitle_color = _op(operations, "slide_000_subtitle", OperationType.SET_TEXT_COLOR)
    assert subtitle_color.color == hex_to_rgb01("#00a8e8")


def test_content_pages_are_numbered_in_order():
    operations = _compile(_sample_deck())
    pages = [op.object_id for op in operations if op.type is OperationType.CREATE_CONTAINER]
    assert pages == ["slide_000", "slide_001", "slide_002", "slide_003"]


def test_recompiling_is_byte_identical():
    deck = _sample_deck()
    first = _compile(deck)
    second = _compile(deck.copy())

    assert first == second
    assert operations_to_json(first) == operations_to_json(second)


def test_missing_deck_title_uses_fallback():
    operations = _compile(Deck(slides=[Slide(title="A")]), fallback_title="Untitled")
    assert _op(operations, "slide_000_title", OperationType.INSERT_TEXT).text == "Untitled"


def test_text_box_operation_order():
    operations = _compile(_sample_deck())
    kinds = [op.type for op in _ops_for(operations, "slide_001_body")]
    assert kinds == [
        OperationType.CREATE_TEXT_BOX,
        OperationType.INSERT_TEXT,
        OperationType.SET_TEXT_COLOR,
        OperationType.SET_FONT_SIZE,
        OperationType.APPLY_BULLET_FORMATTING,
    ]
    box = _op(operations, "slide_001_body", OperationType.CREATE_TEXT_BOX)
    assert (box.page_id, box.x, box.y, box.width, box.height) == ("slide_001", 40, 120, 640, 380)
    assert _op(operations, "slide_001_body", OperationType.INSERT_TEXT).text == "Moon\nSun"


def test_title_boxes_are_bold():
    operations = _compile(_sample_deck())
    _op(operations, "slide_001_title", OperationType.SET_BOLD)


def test_paragraph_is_justified():
    operations = _compile(_sample_deck())
    align = _op(operations, "slide_002_body", OperationType.SET_TEXT_ALIGN)
    assert align.align == "JUSTIFIED"


def test_paragraph_falls_back_to_joined_bullets():
    deck = Deck(slides=[Slide(layout=SlideLayout.PARAGRAPH, title="P", bullets=["One", "Two"])])
    operations = _compile(deck)
    assert _op(operations, "slide_001_body", OperationType.INSERT_TEXT).text == "One Two"


def test_quote_layout():
    operations = _compile(_sample_deck())

    body_text = _op(operations, "slide_003_body", OperationType.INSERT_TEXT).text
    assert body_text == "“The sea is everything.”"
    _op(operations, "slide_003_body", OperationType.SET_ITALIC)
    assert _op(operations, "slide_003_body", OperationType.SET_TEXT_ALIGN).align == "CENTER"
    title_color = _op(operations, "slide_003_title", OperationType.SET_TEXT_COLOR).color
    assert title_color == hex_to_rgb01("#00a8e8")


def test_quote_falls_back_to_first_bullet():
    deck = Deck(slides=[Slide(layout=SlideLayout.QUOTE, bullets=["Said once", "Ignored"])])
    operations = _compile(deck)
    assert _op(operations, "slide_001_body", OperationType.INSERT_TEXT).text == "“Said once”"


def test_two_column_splits_bullets():
    deck = Deck(slides=[Slide(layout=SlideLayout.TWO_COLUMN, title="Split", bullets=list("abcde"))])
    operations = _compile(deck)

    assert _op(operations, "slide_001_col1", OperationType.INSERT_TEXT).text == "a\nb\nc"
    assert _op(operations, "slide_001_col2", OperationType.INSERT_TEXT).text == "d\ne"
    _op(operations, "slide_001_col2", OperationType.APPLY_BULLET_FORMATTING)


def test_two_column_with_single_bullet_has_one_column():
    deck = Deck(slides=[Slide(layout=SlideLayout.TWO_COLUMN, bullets=["only"])])
    operations = _compile(deck)
    assert _ops_for(operations, "slide_001_col2") == []


def test_section_header_has_only_a_title():
    deck = Deck(slides=[Slide(layout=SlideLayout.SECTION_HEADER, title="Part 2", bullets=["x"])])
    operations = _compile(deck)

    assert _ops_for(operations, "slide_001_body") == []
    _op(operations, "slide_001_title", OperationType.SET_BOLD)


def test_table_of_contents_derives_titles():
    deck = Deck(
        slides=[
            Slide(layout=SlideLayout.TABLE_OF_CONTENTS),
            Slide(title="Intro"),
            Slide(title="Results"),
        ]
    )
    operations = _compile(deck)

    assert _op(operations, "slide_001_title", OperationType.INSERT_TEXT).text == "Table of Contents"
    assert _op(operations, "slide_001_body", OperationType.INSERT_TEXT).text == "1. Intro\n2. Results"


def test_derive_toc_items_is_capped():
    slides = [Slide(title=f"S{i}") for i in range(20)]
    assert len(derive_toc_items(slides)) == 12


def test_appendix_lists_citations_as_bullets():
    deck = Deck(slides=[Slide(layout=SlideLayout.APPENDIX, citations=["Ref A", " ", "Ref B"])])
    operations = _compile(deck)

    assert _op(operations, "slide_001_title", OperationType.INSERT_TEXT).text == "Appendix"
    assert _op(operations, "slide_001_body", OperationType.INSERT_TEXT).text == "Ref A\nRef B"
    _op(operations, "slide_001_body", OperationType.APPLY_BULLET_FORMATTING)


def test_conclusion_defaults_title():
    deck = Deck(slides=[Slide(layout=SlideLayout.CONCLUSION, paragraph="Wrap up.")])
    operations = _compile(deck)
    assert _op(operations, "slide_001_title", OperationType.INSERT_TEXT).text == "Conclusion"


def test_title_slide_uses_accent_subtitle():
    deck = Deck(
        presentation_title="Deck",
        theme=Theme(text_color="#111111", accent_color="#ff0000"),
        slides=[Slide(layout=SlideLayout.TITLE_SLIDE, subtitle="Kickoff")],
    )
    operations = _compile(deck)

    assert _op(operations, "slide_001_title", OperationType.INSERT_TEXT).text == "Deck"
    color = _op(operations, "slide_001_body", OperationType.SET_TEXT_COLOR).color
    assert color == hex_to_rgb01("#ff0000")


@pytest.mark.parametrize(
    "slide,expected",
    [
        (Slide(bullets=["a"]), SlideLayout.TITLE_AND_BODY),
        (Slide(paragraph="text"), SlideLayout.PARAGRAPH),
        (Slide(quote="said"), SlideLayout.QUOTE),
        (Slide(title="only"), SlideLayout.TITLE_AND_BODY),
        (Slide(layout=SlideLayout.CAPTION, paragraph="text"), SlideLayout.CAPTION),
    ],
)
def test_infer_layout(slide, expected):
    assert infer_layout(slide) is expected


def test_missing_content_emits_no_boxes():
    deck = Deck(slides=[Slide(layout=SlideLayout.TITLE_AND_BODY)])
    operations = _compile(deck)
    assert [op.object_id for op in operations if op.object_id.startswith("slide_001")] == [
        "slide_001",
        "slide_001",
    ]


def test_theme_without_colours_skips_colour_operations():
    deck = Deck(theme=Theme(), slides=[Slide(title="Plain", bullets=["x"])])
    operations = _compile(deck)

    kinds = {op.type for op in operations}
    assert OperationType.SET_BACKGROUND not in kinds
    assert OperationType.SET_TEXT_COLOR not in kinds


def test_background_image_is_emitted():
    deck = Deck(
        theme=Theme(background_color="#ffffff", background_image_url="https://example.com/bg.png"),
        slides=[Slide(title="A")],
    )
    operations = _compile(deck)
    image = _op(operations, "slide_001", OperationType.SET_BACKGROUND_IMAGE)
    assert image.url == "https://example.com/bg.png"


def test_style_overrides_size_colour_alignment_and_family():
    style = TextStyle(font_size=30, color="#ff0000", align=TextAlign.END, font_family="Georgia")
    deck = Deck(slides=[Slide(title="Styled", bullets=["x" * 5000], body_style=style)])
    operations = _compile(deck)

    assert _op(operations, "slide_001_body", OperationType.SET_FONT_SIZE).font_size == 30
    assert _op(operations, "slide_001_body", OperationType.SET_TEXT_COLOR).color == hex_to_rgb01("#ff0000")
    assert _op(operations, "slide_001_body", OperationType.SET_TEXT_ALIGN).align == "END"
    assert _op(operations, "slide_001_body", OperationType.SET_FONT_FAMILY).font_family == "Georgia"


def test_invalid_style_colour_falls_back_to_theme():
    deck = Deck(
        theme=Theme(text_color="#123456"),
        slides=[Slide(title="T", body_style=TextStyle(color="tomato"), bullets=["x"])],
    )
    operations = _compile(deck)
    color = _op(operations, "slide_001_body", OperationType.SET_TEXT_COLOR).color
    assert color == hex_to_rgb01("#123456")


def test_emphasis_terms_become_ranged_operations():
    style = TextStyle(bold=["ATP"], underline=["cell"])
    deck = Deck(slides=[Slide(title="Energy", bullets=["ATP powers ATP use", "cell"], body_style=style)])
    operations = _compile(deck)

    ranged = [
        (op.type, op.start, op.end)
        for op in _ops_for(operations, "slide_001_body")
        if op.start is not None
    ]
    assert ranged == [
        (OperationType.SET_BOLD, 0, 3),
        (OperationType.SET_BOLD, 11, 14),
        (OperationType.SET_UNDERLINE, 19, 23),
    ]


def test_long_body_shrinks_but_stays_above_floor():
    deck = Deck(slides=[Slide(title="Long", paragraph="word " * 2000)])
    operations = _compile(deck)
    size = _op(operations, "slide_001_body", OperationType.SET_FONT_SIZE).font_size
    assert size == 12


def test_custom_geometry_moves_boxes():
    geometry = PageGeometry(width=960, height=540)
    operations = _compile(_sample_deck(), geometry=geometry)
    box = _op(operations, "slide_001_body", OperationType.CREATE_TEXT_BOX)
    assert box.width == 880


def test_find_occurrences_is_non_overlapping():
    assert find_occurrences("aaaa", "aa") == [0, 2]
    assert find_occurrences("abc", "") == []


def test_format_generation_date():
    assert format_generation_date(date(2025, 11, 2)) == "November 2, 2025"


def test_operations_map_to_slides_requests():
    operations = _compile(
        Deck(slides=[Slide(title="A", bullets=["ATP"], body_style=TextStyle(bold=["ATP"]))])
    )
    requests = to_slides_requests(operations)

    assert requests[0]["createSlide"]["objectId"] == "slide_000"
    shapes = [request["createShape"] for request in requests if "createShape" in request]
    assert shapes[0]["elementProperties"]["pageObjectId"] == "slide_000"
    ranged_bold = [
        request["updateTextStyle"]
        for request in requests
        if "updateTextStyle" in request
        and request["updateTextStyle"]["textRange"]["type"] == "FIXED_RANGE"
    ]
    assert ranged_bold == [
        {
            "objectId": "slide_001_body",
            "textRange": {"type": "FIXED_RANGE", "startIndex": 0, "endIndex": 3},
            "fields": "bold",
            "style": {"bold": True},
        }
    ]
    assert any("createParagraphBullets" in request for request in requests)


def test_slides_ranges_count_utf16_code_units():
    operations = _compile(
        Deck(
            slides=[
                Slide(
                    title="Energy",
                    paragraph="🌊 wave ATP",
                    body_style=TextStyle(bold=["ATP"]),
                )
            ]
        )
    )
    bold = _op(operations, "slide_001_body", OperationType.SET_BOLD)
    requests = to_slides_requests(operations)
    text_range = [
        request["updateTextStyle"]["textRange"]
        for request in requests
        if "updateTextStyle" in request
        and request["updateTextStyle"]["textRange"]["type"] == "FIXED_RANGE"
    ]

    assert (bold.start, bold.end) == (7, 10)
    assert text_range == [{"type": "FIXED_RANGE", "startIndex": 8, "endIndex": 11}]


def test_single_request_keeps_str_offsets_without_text():
    operation = RenderOperation(OperationType.SET_BOLD, "box", start=2, end=5)

    assert operation.to_slides_request()["updateTextStyle"]["textRange"]["startIndex"] == 2
    assert operation.to_slides_request("𝄞𝄞abc")["updateTextStyle"]["textRange"] == {
        "type": "FIXED_RANGE",
        "startIndex": 4,
        "endIndex": 7,
    }


def test_utf16_offset():
    assert utf16_offset("abc", 2) == 2
    assert utf16_offset("é🌊x", 2) == 3
    assert utf16_offset("", 0) == 0


def test_operation_to_dict_omits_unset_fields():
    operations = _compile(_sample_deck())
    assert operations[0].to_dict() == {"type": "createContainer", "objectId": "slide_000"}

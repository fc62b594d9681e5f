import pytest

from dill_slide.command_interpreter import (
    EXAMPLE_COMMANDS,
    RULES,
    CommandInterpreter,
    CommandStatus,
    UndoHistory,
    normalize_command_text,
)
from dill_slide.slide_models import Deck, Slide, SlideLayout, TextAlign, Theme


@pytest.fixture
def deck():
    return Deck(
        presentation_title="Ocean",
        theme=Theme.default(),
        slides=[
            Slide(layout=SlideLayout.TITLE_AND_BODY, title="Intro", bullets=["Waves"]),
            Slide(layout=SlideLayout.PARAGRAPH, title="Tides", paragraph="The moon pulls."),
            Slide(layout=SlideLayout.TITLE_AND_BODY, title="Life", bullets=["Plankton"]),
        ],
    )


@pytest.fixture
def interpreter():
    return CommandInterpreter()


def test_change_title_touches_only_target_slide(deck, interpreter):
    before = deck.copy()
    result = interpreter.execute(deck, "change title of slide 2 to Ocean Basics")

    assert result.status is CommandStatus.APPLIED
    assert result.deck.slides[1].title == "Ocean Basics"
    assert result.deck.slides[0] == before.slides[0]
    assert result.deck.slides[2] == before.slides[2]
    assert deck == before


def test_replace_bullets_sets_items_and_clears_paragraph(deck, interpreter):
    interpreter.execute(deck, "go to slide 2")
    result = interpreter.execute(deck, "replace bullets with: A; B; C")

    slide = result.deck.slides[1]
    assert slide.bullets == ["A", "B", "C"]
    assert slide.paragraph is None


def test_replace_bullets_accepts_commas(deck, interpreter):
    result = interpreter.execute(deck, "replace bullets with: 'one', two")
    assert result.deck.slides[0].bullets == ["one", "two"]


def test_unrecognised_command_returns_help(deck, interpreter):
    before = deck.copy()
    result = interpreter.execute(deck, "make it pretty")

    assert result.status is CommandStatus.UNRECOGNIZED
    assert result.deck == before
    assert any(example in result.message for example in EXAMPLE_COMMANDS)
    assert len(interpreter.history) == 0


@pytest.mark.parametrize(
    "command",
    [
        "change title of slide 2 to Ocean Basics",
        "change subtitle to Deep water",
        "add bullet to slide 3 Krill",
        "replace bullets with: A; B; C",
        "clear bullets",
        "set paragraph of slide 1 to Calm seas",
        "make slide 3 a quote: The sea, once it casts its spell",
        "set layout to two column",
        "switch background to navy",
        "title size 36",
        "align body justified",
        "make 'Waves' bold in body",
    ],
)
def test_command_then_undo_restores_deck(deck, interpreter, command):
    before = deck.copy()
    result = interpreter.execute(deck, command)
    assert result.status is CommandStatus.APPLIED
    assert result.deck != before

    undone = interpreter.undo(result.deck)

    assert undone.status is CommandStatus.UNDONE
    assert undone.deck == before


def test_undo_command_text(deck, interpreter):
    edited = interpreter.execute(deck, "title size 40").deck
    result = interpreter.execute(edited, "  UNDO ")
    assert result.deck == deck
    assert result.changed


def test_undo_with_empty_history_is_no_op(deck, interpreter):
    result = interpreter.execute(deck, "undo")
    assert result.status is CommandStatus.NO_OP
    assert result.deck is deck


def test_history_is_bounded(deck):
    interpreter = CommandInterpreter(history_limit=2)
    current = deck
    for size in (20, 22, 24):
        current = interpreter.execute(current, f"title size {size}").deck

    assert len(interpreter.history) == 2
    current = interpreter.undo(current).deck
    current = interpreter.undo(current).deck
    assert current.slides[0].title_style.font_size == 20
    assert interpreter.undo(current).status is CommandStatus.NO_OP


def test_undo_history_rejects_zero_limit():
    with pytest.raises(ValueError):
        UndoHistory(0)


def test_go_to_slide_clamps_and_sets_active(deck, interpreter):
    result = interpreter.execute(deck, "go to slide 99")

    assert result.status is CommandStatus.NAVIGATED
    assert interpreter.active_index == 2
    assert result.deck is deck

    interpreter.execute(deck, "open slide 0")
    assert interpreter.active_index == 0


def test_edits_target_active_slide(deck, interpreter):
    interpreter.execute(deck, "switch to slide 3")
    result = interpreter.execute(deck, "add bullet Tides follow the moon")
    assert result.deck.slides[2].bullets == ["Plankton", "Tides follow the moon"]


def test_add_bullet_clears_paragraph(deck, interpreter):
    result = interpreter.execute(deck, "add bullet to slide 2 Spring tides")
    slide = result.deck.slides[1]
    assert slide.bullets == ["Spring tides"]
    assert slide.paragraph is None


def test_set_paragraph_clears_bullets(deck, interpreter):
    result = interpreter.execute(deck, "set paragraph to Waves carry energy.")
    slide = result.deck.slides[0]
    assert slide.paragraph == "Waves carry energy."
    assert slide.bullets == []


def test_make_quote(deck, interpreter):
    result = interpreter.execute(deck, "make slide 3 a quote: The sea, once it casts its spell...")
    slide = result.deck.slides[2]
    assert slide.layout is SlideLayout.QUOTE
    assert slide.quote == "The sea, once it casts its spell..."
    assert slide.bullets == []
    assert slide.paragraph is None


@pytest.mark.parametrize(
    "key,layout",
    [
        ("two column", SlideLayout.TWO_COLUMN),
        ("Section-Header", SlideLayout.SECTION_HEADER),
        ("quote", SlideLayout.QUOTE),
        ("banana", SlideLayout.TITLE_AND_BODY),
    ],
)
def test_set_layout(deck, interpreter, key, layout):
    result = interpreter.execute(deck, f"set layout of slide 2 to {key}")
    assert result.deck.slides[1].layout is layout


def test_theme_colour_by_name_and_hex(deck, interpreter):
    result = interpreter.execute(deck, "switch background to red")
    assert result.deck.theme.background_color == "#EF4444"

    result = interpreter.execute(result.deck, "set text color to #abc")
    assert result.deck.theme.text_color == "#aabbcc"


def test_unknown_colour_is_no_op(deck, interpreter):
    result = interpreter.execute(deck, "set accent to sparkly")

    assert result.status is CommandStatus.NO_OP
    assert "sparkly" in result.message
    assert result.deck == deck
    assert len(interpreter.history) == 0


def test_font_size_is_clamped(deck, interpreter):
    big = interpreter.execute(deck, "title size 200").deck
    huge = interpreter.execute(deck, "title size 1000")
    small = interpreter.execute(deck, "body size 4").deck

    assert big.slides[0].title_style.font_size == 96
    assert small.slides[0].body_style.font_size == 8
    assert huge.status is CommandStatus.APPLIED
    assert huge.deck.slides[0].title_style.font_size == 96


def test_align_region(deck, interpreter):
    result = interpreter.execute(deck, "align title center")
    assert result.deck.slides[0].title_style.align is TextAlign.CENTER
    result = interpreter.execute(deck, "align body right")
    assert result.deck.slides[0].body_style.align is TextAlign.END


@pytest.mark.parametrize(
    "command,region,kind",
    [
        ("make 'ATP' bold in body", "body", "bold"),
        ('set "ATP" italic', "body", "italic"),
        ("make ATP underlined in title", "title", "underline"),
    ],
)
def test_emphasis_forms(deck, interpreter, command, region, kind):
    result = interpreter.execute(deck, command)
    style = result.deck.slides[0].ensure_style(region)
    assert style.emphasis_terms(kind) == ["ATP"]


def test_emphasis_is_idempotent(deck, interpreter):
    first = interpreter.execute(deck, "make 'ATP' bold")
    second = interpreter.execute(first.deck, "make 'ATP' bold")

    assert second.status is CommandStatus.NO_OP
    assert second.deck.slides[0].body_style.bold == ["ATP"]
    assert len(interpreter.history) == 1


def test_no_change_edit_is_not_recorded(deck, interpreter):
    interpreter.execute(deck, "go to slide 2")
    result = interpreter.execute(deck, "clear bullets")
    assert result.status is CommandStatus.NO_OP
    assert len(interpreter.history) == 0


def test_commands_are_case_and_whitespace_tolerant(deck, interpreter):
    result = interpreter.execute(deck, "  CHANGE   Title  of SLIDE 1 to   Hello there ")
    assert result.deck.slides[0].title == "Hello there"


def test_empty_deck_edits_are_no_ops(interpreter):
    empty = Deck()
    assert interpreter.execute(empty, "add bullet x").status is CommandStatus.NO_OP
    assert interpreter.execute(empty, "go to slide 2").status is CommandStatus.NO_OP


def test_rule_order_decides_between_overlapping_patterns():
    text = "make slide 2 a quote: bold"
    assert CommandInterpreter().parse(text)[0].name == "make_quote"

    reordered = CommandInterpreter(rules=list(reversed(RULES)))
    assert reordered.parse(text)[0].name == "emphasize"


def test_parse_returns_structured_command(interpreter):
    rule, command = interpreter.parse("change subtitle of slide 3 to 'Deep'")
    assert rule.name == "change_heading"
    assert (command.verb, command.slide_number, command.region, command.payload) == (
        "change",
        3,
        "subtitle",
        "Deep",
    )


def test_reset_clears_session(deck, interpreter):
    edited = interpreter.execute(deck, "title size 30").deck
    interpreter.execute(edited, "go to slide 3")
    interpreter.reset()

    assert interpreter.active_index == 0
    assert len(interpreter.history) == 0


def test_normalize_command_text():
    assert normalize_command_text("  a \t b\n c ") == "a b c"
    assert normalize_command_text(None) == ""

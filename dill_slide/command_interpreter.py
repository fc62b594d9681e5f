"""Interpret short imperative edit commands against a deck.

The grammar is a fixed, ordered table of :class:`CommandRule` records. Rules
are tried strictly in order and the first match wins, so the order of
:data:`RULES` is part of the grammar. Unrecognised input never raises: the
deck is returned unchanged together with a help message.

Slide numbers in commands are 1-based and clamped into the deck, so
``"go to slide 99"`` on a three-slide deck selects the last slide.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, List, Optional, Sequence, Tuple

from .slide_models import Deck, SlideLayout, TextAlign
from .theme import resolve_color_word

LOGGER = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 25
MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 96

EXAMPLE_COMMANDS = (
    "go to slide 2",
    "change title of slide 2 to Ocean Basics",
    "add bullet Tides follow the moon",
    "replace bullets with: A; B; C; D",
    "set paragraph to Plankton feed most of the ocean",
    "make slide 3 a quote: The sea, once it casts its spell...",
    "set layout to two column",
    "switch background to red",
    "title size 36",
    "align body center",
    "make 'ATP' bold in body",
    "undo",
)

HELP_MESSAGE = "Sorry, I didn't understand that. Try one of:\n" + "\n".join(
    f"  - {example}" for example in EXAMPLE_COMMANDS
)

LAYOUT_KEYS = {
    "twocolumn": SlideLayout.TWO_COLUMN,
    "twocolumns": SlideLayout.TWO_COLUMN,
    "paragraph": SlideLayout.PARAGRAPH,
    "quote": SlideLayout.QUOTE,
    "sectionheader": SlideLayout.SECTION_HEADER,
    "titleandbody": SlideLayout.TITLE_AND_BODY,
    "titleonly": SlideLayout.TITLE_ONLY,
    "titleslide": SlideLayout.TITLE_SLIDE,
    "tableofcontents": SlideLayout.TABLE_OF_CONTENTS,
    "conclusion": SlideLayout.CONCLUSION,
    "appendix": SlideLayout.APPENDIX,
}

ALIGN_WORDS = {
    "left": TextAlign.START,
    "right": TextAlign.END,
    "center": TextAlign.CENTER,
    "justified": TextAlign.JUSTIFIED,
}

EMPHASIS_KINDS = {"bold": "bold", "italic": "italic", "underlined": "underline"}

THEME_FIELDS = {
    "background": "background_color",
    "text": "text_color",
    "accent": "accent_color",
}


class CommandStatus(str, Enum):
    APPLIED = "applied"
    UNDONE = "undone"
    NAVIGATED = "navigated"
    NO_OP = "no_op"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True, slots=True)
class Command:
    """A parsed command: verb, optional 1-based slide number, region, payload."""

    verb: str
    slide_number: Optional[int] = None
    region: Optional[str] = None
    payload: Any = None


@dataclass(frozen=True, slots=True)
class CommandResult:
    deck: Deck
    message: str
    status: CommandStatus
    command: Optional[Command] = None

    @property
    def changed(self) -> bool:
        return self.status in (CommandStatus.APPLIED, CommandStatus.UNDONE)


Applier = Callable[["CommandInterpreter", Deck, Command], CommandResult]


@dataclass(frozen=True, slots=True)
class CommandRule:
    """One grammar entry: recogniser, field extractor and applier."""

    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], Command]
    apply: Applier

    def match(self, text: str) -> Optional[Command]:
        found = self.pattern.match(text)
        if found is None:
            return None
        return self.extract(found)


class UndoHistory:
    """Bounded stack of deck snapshots; the oldest entry is dropped on overflow."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._snapshots: Deque[Deck] = deque(maxlen=limit)

    def push(self, deck: Deck) -> None:
        self._snapshots.append(deck.copy())

    def pop(self) -> Optional[Deck]:
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def clear(self) -> None:
        self._snapshots.clear()

    def __len__(self) -> int:
        return len(self._snapshots)


class CommandInterpreter:
    """Editing session: owns the active slide index and the undo history.

    Callers must serialise commands for a session; no locking is done here.
    """

    def __init__(
        self,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        rules: Optional[Sequence[CommandRule]] = None,
    ) -> None:
        self.history = UndoHistory(history_limit)
        self.rules: List[CommandRule] = list(rules if rules is not None else RULES)
        self.active_index = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def parse(self, text: str) -> Optional[Tuple[CommandRule, Command]]:
        """Return ``(rule, command)`` for the first matching rule, if any."""

        normalized = normalize_command_text(text)
        for rule in self.rules:
            command = rule.match(normalized)
            if command is not None:
                return rule, command
        return None

    def execute(self, deck: Deck, text: str) -> CommandResult:
        """Apply one command line to ``deck``; ``deck`` itself is never modified."""

        parsed = self.parse(text)
        if parsed is None:
            LOGGER.info("Unrecognised command: %r", text)
            return CommandResult(deck, HELP_MESSAGE, CommandStatus.UNRECOGNIZED)
        rule, command = parsed
        LOGGER.debug("Command %r matched rule %s", text, rule.name)
        return rule.apply(self, deck, command)

    def undo(self, deck: Deck) -> CommandResult:
        previous = self.history.pop()
        if previous is None:
            return CommandResult(deck, "Nothing to undo.", CommandStatus.NO_OP, Command("undo"))
        return CommandResult(previous, "Undid the last change.", CommandStatus.UNDONE, Command("undo"))

    def reset(self) -> None:
        """End the session: forget history and the active slide."""

        self.history.clear()
        self.active_index = 0

    def resolve_slide_index(self, deck: Deck, slide_number: Optional[int]) -> int:
        """0-based target slide: the given 1-based number or the active slide, clamped."""

        if slide_number is None:
            return clamp(self.active_index, 0, deck.slides_count - 1)
        return clamp(slide_number - 1, 0, deck.slides_count - 1)

    # ------------------------------------------------------------------
    # Applier helpers
    # ------------------------------------------------------------------
    def commit(self, deck: Deck, edited: Deck, message: str, command: Command) -> CommandResult:
        """Record ``deck`` in the history and return ``edited`` as the new deck.

        An edit that changed nothing is reported as a no-op and not recorded.
        """

        if edited == deck:
            return CommandResult(deck, message, CommandStatus.NO_OP, command)
        self.history.push(deck)
        return CommandResult(edited, message, CommandStatus.APPLIED, command)


# ----------------------------------------------------------------------
# Text helpers
# ----------------------------------------------------------------------

def normalize_command_text(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def strip_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1].strip()
    return text


def _number(value: Optional[str]) -> Optional[int]:
    return int(value) if value else None


# ----------------------------------------------------------------------
# Appliers
# ----------------------------------------------------------------------

SlideEdit = Callable[[Deck, int, Command], str]


def slide_edit(edit: SlideEdit) -> Applier:
    """Wrap a slide mutation as an applier with copy-on-write and history."""

    def apply(interpreter: CommandInterpreter, deck: Deck, command: Command) -> CommandResult:
        if not deck.slides:
            return CommandResult(
                deck, "The deck has no slides to edit.", CommandStatus.NO_OP, command
            )
        index = interpreter.resolve_slide_index(deck, command.slide_number)
        edited = deck.copy()
        message = edit(edited, index, command)
        return interpreter.commit(deck, edited, message, command)

    return apply


def _apply_undo(interpreter: CommandInterpreter, deck: Deck, command: Command) -> CommandResult:
    return interpreter.undo(deck)


def _apply_go_to(interpreter: CommandInterpreter, deck: Deck, command: Command) -> CommandResult:
    if not deck.slides:
        return CommandResult(deck, "The deck has no slides.", CommandStatus.NO_OP, command)
    interpreter.active_index = interpreter.resolve_slide_index(deck, command.slide_number)
    return CommandResult(
        deck,
        f"Now editing slide {interpreter.active_index + 1}.",
        CommandStatus.NAVIGATED,
        command,
    )


def _edit_heading(deck: Deck, index: int, command: Command) -> str:
    setattr(deck.slides[index], command.region, command.payload)
    return f"Changed {command.region} of slide {index + 1}."


def _edit_add_bullet(deck: Deck, index: int, command: Command) -> str:
    slide = deck.slides[index]
    slide.bullets.append(command.payload)
    slide.paragraph = None
    return f"Added a bullet to slide {index + 1}."


def _edit_replace_bullets(deck: Deck, index: int, command: Command) -> str:
    slide = deck.slides[index]
    slide.bullets = list(command.payload)
    slide.paragraph = None
    return f"Replaced the bullets on slide {index + 1} ({len(slide.bullets)} items)."


def _edit_clear_bullets(deck: Deck, index: int, command: Command) -> str:
    deck.slides[index].bullets = []
    return f"Cleared the bullets on slide {index + 1}."


def _edit_paragraph(deck: Deck, index: int, command: Command) -> str:
    slide = deck.slides[index]
    slide.paragraph = command.payload
    slide.bullets = []
    return f"Set the paragraph of slide {index + 1}."


def _edit_quote(deck: Deck, index: int, command: Command) -> str:
    slide = deck.slides[index]
    slide.layout = SlideLayout.QUOTE
    slide.quote = command.payload
    slide.bullets = []
    slide.paragraph = None
    return f"Slide {index + 1} is now a quote."


def _edit_layout(deck: Deck, index: int, command: Command) -> str:
    layout = LAYOUT_KEYS.get(command.payload, SlideLayout.TITLE_AND_BODY)
    deck.slides[index].layout = layout
    return f"Set the layout of slide {index + 1} to {layout.value}."


def _edit_font_size(deck: Deck, index: int, command: Command) -> str:
    size = clamp(command.payload, MIN_FONT_SIZE, MAX_FONT_SIZE)
    deck.slides[index].ensure_style(command.region).font_size = size
    return f"Set the {command.region} size of slide {index + 1} to {size}pt."


def _edit_align(deck: Deck, index: int, command: Command) -> str:
    align = ALIGN_WORDS[command.payload]
    deck.slides[index].ensure_style(command.region).align = align
    return f"Aligned the {command.region} of slide {index + 1} {command.payload}."


def _edit_emphasis(deck: Deck, index: int, command: Command) -> str:
    kind, term = command.payload
    added = deck.slides[index].ensure_style(command.region).add_emphasis(kind, term)
    if not added:
        return f"'{term}' is already {kind} in the {command.region}."
    return f"'{term}' is now {kind} in the {command.region} of slide {index + 1}."


def _apply_theme_color(interpreter: CommandInterpreter, deck: Deck, command: Command) -> CommandResult:
    word = command.payload
    color = resolve_color_word(word)
    if color is None:
        return CommandResult(
            deck,
            f"Unknown color '{word}'. Use a name like red or navy, or a hex value like #1a73e8.",
            CommandStatus.NO_OP,
            command,
        )
    edited = deck.copy()
    setattr(edited.theme, THEME_FIELDS[command.region], color)
    return interpreter.commit(deck, edited, f"Set the {command.region} color to {color}.", command)


# ----------------------------------------------------------------------
# Grammar
# ----------------------------------------------------------------------

def _rule(name: str, pattern: str, extract: Callable[[re.Match[str]], Command], apply: Applier) -> CommandRule:
    return CommandRule(name, re.compile(pattern, re.IGNORECASE), extract, apply)


def _split_items(text: str) -> List[str]:
    return [strip_quotes(item) for item in re.split(r"[;,]", text) if item.strip()]


def _emphasis_command(match: re.Match[str]) -> Command:
    term = match.group("dq") or match.group("sq") or match.group("bare") or ""
    kind = EMPHASIS_KINDS[match.group("style").lower()]
    region = (match.group("region") or "body").lower()
    return Command("emphasize", region=region, payload=(kind, term.strip()))


RULES: List[CommandRule] = [
    _rule(
        "undo",
        r"^undo$",
        lambda m: Command("undo"),
        _apply_undo,
    ),
    _rule(
        "go_to_slide",
        r"^(?:go to|switch to|open) slide (\d+)",
        lambda m: Command("go_to", slide_number=int(m.group(1))),
        _apply_go_to,
    ),
    _rule(
        "change_heading",
        r"^change (title|subtitle) (?:of slide (\d+) )?to (.+)$",
        lambda m: Command(
            "change",
            slide_number=_number(m.group(2)),
            region=m.group(1).lower(),
            payload=strip_quotes(m.group(3)),
        ),
        slide_edit(_edit_heading),
    ),
    _rule(
        "add_bullet",
        r"^add bullet (?:to slide (\d+) )?(.+)$",
        lambda m: Command(
            "add_bullet", slide_number=_number(m.group(1)), payload=strip_quotes(m.group(2))
        ),
        slide_edit(_edit_add_bullet),
    ),
    _rule(
        "replace_bullets",
        r"^replace bullets with ?: ?(.+)$",
        lambda m: Command("replace_bullets", payload=_split_items(m.group(1))),
        slide_edit(_edit_replace_bullets),
    ),
    _rule(
        "clear_bullets",
        r"^clear bullets$",
        lambda m: Command("clear_bullets"),
        slide_edit(_edit_clear_bullets),
    ),
    _rule(
        "set_paragraph",
        r"^set paragraph (?:of slide (\d+) )?to (.+)$",
        lambda m: Command(
            "set_paragraph", slide_number=_number(m.group(1)), payload=strip_quotes(m.group(2))
        ),
        slide_edit(_edit_paragraph),
    ),
    _rule(
        "make_quote",
        r"^make (?:slide (\d+) )?a quote ?: ?(.+)$",
        lambda m: Command(
            "make_quote", slide_number=_number(m.group(1)), payload=strip_quotes(m.group(2))
        ),
        slide_edit(_edit_quote),
    ),
    _rule(
        "set_layout",
        r"^set layout (?:of slide (\d+) )?to (.+)$",
        lambda m: Command(
            "set_layout",
            slide_number=_number(m.group(1)),
            payload=re.sub(r"[^a-z]", "", m.group(2).lower()),
        ),
        slide_edit(_edit_layout),
    ),
    _rule(
        "theme_color",
        r"^(?:switch|set) (background|text|accent) (?:color )?to ([#a-z0-9]+)$",
        lambda m: Command("theme_color", region=m.group(1).lower(), payload=m.group(2)),
        _apply_theme_color,
    ),
    _rule(
        "font_size",
        r"^(title|body) size (\d+)\b",
        lambda m: Command("font_size", region=m.group(1).lower(), payload=int(m.group(2))),
        slide_edit(_edit_font_size),
    ),
    _rule(
        "align",
        r"^align (title|body) (left|right|center|justified)\b",
        lambda m: Command("align", region=m.group(1).lower(), payload=m.group(2).lower()),
        slide_edit(_edit_align),
    ),
    _rule(
        "emphasize",
        r"^(?:make|set) (?:\"(?P<dq>[^\"]+)\"|'(?P<sq>[^']+)'|(?P<bare>.+?)) "
        r"(?P<style>bold|italic|underlined)(?: in (?P<region>title|body))?$",
        _emphasis_command,
        slide_edit(_edit_emphasis),
    ),
]


__all__ = [
    "Command",
    "CommandResult",
    "CommandRule",
    "CommandStatus",
    "CommandInterpreter",
    "UndoHistory",
    "RULES",
    "HELP_MESSAGE",
    "EXAMPLE_COMMANDS",
    "LAYOUT_KEYS",
    "normalize_command_text",
    "strip_quotes",
]

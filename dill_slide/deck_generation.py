"""Deck generation from source text via the JSON pipeline."""

from __future__ import annotations

import json
import logging
import textwrap
from dataclasses import dataclass
from typing import Optional

from .deck_parser import DeckJsonPipeline
from .slide_models import Deck, SlideLayout, Theme
from .theme import DEFAULT_THEME, resolve_theme

LOGGER = logging.getLogger(__name__)

MODES = ("education", "business")
MIN_SLIDES = 1
MAX_SLIDES = 20
MAX_SOURCE_CHARS = 12000
MAX_CSV_SUMMARY_CHARS = 4000

GENERATION_INSTRUCTIONS = (
    "You produce a single JSON object describing a slide deck. Return ONLY "
    "valid RFC 8259 JSON: no markdown, no comments, no extra text."
)

OUTPUT_SHAPE = textwrap.dedent(
    """\
    {
      "presentationTitle": string,
      "theme": {"key": string, "backgroundColor": string, "textColor": string,
                "accentColor": string, "backgroundImageUrl": string|null},
      "slides": [
        {
          "layout": one of LAYOUTS,
          "title": string,
          "subtitle": string|null,
          "bullets": [string, ...],
          "paragraph": string|null,
          "quote": string|null,
          "notes": string|null,
          "tocItems": [string, ...]|null,
          "citations": [string, ...]|null
        }
      ]
    }"""
)


@dataclass
class DeckRequest:
    """Input parameters that influence deck generation."""

    source_text: str
    num_slides: int = 5
    mode: str = "education"
    csv_summary: Optional[str] = None
    theme_key: str = "Material"
    presentation_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.source_text or not self.source_text.strip():
            raise ValueError("source_text must not be empty")
        if not MIN_SLIDES <= self.num_slides <= MAX_SLIDES:
            raise ValueError(
                f"num_slides must be between {MIN_SLIDES} and {MAX_SLIDES}"
            )
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}")


class DeckPromptBuilder:
    """Assemble the generation prompt for a :class:`DeckRequest`."""

    def __init__(self, max_source_chars: int = MAX_SOURCE_CHARS) -> None:
        self.max_source_chars = max_source_chars

    def build(self, request: DeckRequest) -> str:
        preset = resolve_theme(request.theme_key)
        layouts = ", ".join(f'"{layout.value}"' for layout in SlideLayout)

        prompt_sections = [
            "You are an expert presentation writer.",
            f"Create a {request.mode} slide deck from the inputs below.",
            "",
            "[Constraints]",
            f"- slides.length MUST equal {request.num_slides}.",
            "- Keep slide titles at most 70 characters and bullet lines at most 140 characters.",
            "- Use at most 6 bullets per slide.",
            "- Prefer high-signal content, not boilerplate.",
            "- If unsure about a value, use null or [].",
            "",
            "[Theme]",
            f'Use the "{preset.name}" preset: {json.dumps(preset.to_dict())}',
            "",
            "[Layouts]",
            f"LAYOUTS = [{layouts}]",
            "",
            "[Output shape]",
            OUTPUT_SHAPE,
        ]

        if request.mode == "education":
            prompt_sections.append(
                "Follow a clear teaching flow: title, outline, key ideas, examples, recap."
            )
        else:
            prompt_sections.append(
                "Include the key trends and data issues a business audience should act on."
            )

        if request.presentation_name:
            prompt_sections.extend(["", f"Working title: {request.presentation_name}"])

        if request.csv_summary:
            prompt_sections.extend(
                [
                    "",
                    "[CSV summary]",
                    _truncate_text(request.csv_summary, MAX_CSV_SUMMARY_CHARS),
                ]
            )

        prompt_sections.extend(
            [
                "",
                "[Source text]",
                _truncate_text(request.source_text, self.max_source_chars),
                "",
                "Output only the JSON object.",
            ]
        )
        return "\n".join(prompt_sections)


class DeckGenerator:
    """Generate a :class:`Deck` for a request using the JSON pipeline."""

    def __init__(
        self,
        pipeline: DeckJsonPipeline,
        prompt_builder: Optional[DeckPromptBuilder] = None,
    ) -> None:
        self.pipeline = pipeline
        self.prompt_builder = prompt_builder or DeckPromptBuilder()

    def generate(self, request: DeckRequest) -> Deck:
        prompt = self.prompt_builder.build(request)
        preset = resolve_theme(request.theme_key)
        if preset is DEFAULT_THEME:
            LOGGER.info("Unknown theme '%s'; using the default colours", request.theme_key)

        deck = self.pipeline.generate(
            prompt,
            instructions=GENERATION_INSTRUCTIONS,
            fallback_title=request.presentation_name,
            default_theme=Theme.from_preset(preset),
        )
        if deck.slides_count != request.num_slides:
            LOGGER.info(
                "Requested %d slides, received %d", request.num_slides, deck.slides_count
            )
        return deck


def _truncate_text(text: Optional[str], limit: int) -> str:
    if text is None:
        return ""
    text = text.strip()
    if len(text) <= limit:
        return text
    return textwrap.shorten(text, width=limit, placeholder="…")


__all__ = [
    "DeckRequest",
    "DeckPromptBuilder",
    "DeckGenerator",
    "GENERATION_INSTRUCTIONS",
]

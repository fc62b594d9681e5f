"""Streamlit UI for generating, editing and exporting slide decks."""

from __future__ import annotations

import json
import textwrap
from typing import Any, Dict, List, Optional

import streamlit as st

from LLM_API.data_classes import BaseResponse

from dill_slide.command_interpreter import EXAMPLE_COMMANDS, CommandInterpreter, CommandStatus
from dill_slide.config import BackendDescriptor, DeckSettings
from dill_slide.deck_generation import MODES, DeckGenerator, DeckRequest
from dill_slide.deck_parser import DeckJsonPipeline
from dill_slide.errors import ConfigurationError, DeckError
from dill_slide.layout_compiler import DeckLayoutCompiler
from dill_slide.pptx_renderer import PptxOperationRenderer
from dill_slide.render_ops import operations_to_json
from dill_slide.slide_models import Deck, SlideLayout
from dill_slide.theme import THEME_PRESETS

STUB_BACKEND = "Stub generation"
CONFIGURED_BACKENDS = "Configured backends (.env)"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


def _extract_request_excerpt(prompt: str, *, max_width: int = 80) -> str:
    """Return a concise summary of the source text embedded in ``prompt``."""

    if not prompt:
        return "Untitled topic"

    marker = "[Source text]"
    if marker in prompt:
        section = prompt.split(marker, 1)[1]
        section = section.split("Output only the JSON object.", 1)[0]
    else:
        section = prompt
    section = section.strip().replace("\n", " ")
    if not section:
        return "Untitled topic"
    return textwrap.shorten(section, width=max_width, placeholder="…")


class StubDeckLLM:
    """Offline stand-in that answers generation prompts with a small deck."""

    model_name = "stub-deck"

    def __init__(self, *, num_slides: int = 3) -> None:
        self.num_slides = num_slides

    # ------------------------------------------------------------------
    # LLM compatible interface
    # ------------------------------------------------------------------
    def generate_content(self, request) -> BaseResponse:
        excerpt = _extract_request_excerpt(getattr(request, "prompt", ""), max_width=60)
        payload = {
            "presentationTitle": excerpt,
            "slides": self._slides(excerpt),
        }
        return BaseResponse(
            text=json.dumps(payload, ensure_ascii=False), model_used="stub-deck"
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _slides(self, excerpt: str) -> List[Dict[str, Any]]:
        slides: List[Dict[str, Any]] = [
            {
                "layout": SlideLayout.TITLE_AND_BODY.value,
                "title": "Overview",
                "bullets": [f"Topic: {excerpt}", "Key ideas", "Next steps"],
            }
        ]
        for number in range(2, self.num_slides + 1):
            slides.append(
                {
                    "layout": SlideLayout.PARAGRAPH.value,
                    "title": f"Point {number}",
                    "paragraph": f"Draft notes for point {number} about {excerpt}.",
                }
            )
        return slides[: self.num_slides]


@st.cache_resource(show_spinner=False)
def load_settings() -> DeckSettings:
    """Read backend and theme settings from ``.env`` and the environment."""

    return DeckSettings.from_env()


def _build_generator(choice: str, settings: DeckSettings, num_slides: int) -> DeckGenerator:
    if choice == CONFIGURED_BACKENDS:
        backends = settings.backends
    else:
        backends = [BackendDescriptor.from_client("stub", StubDeckLLM(num_slides=num_slides))]
    pipeline = DeckJsonPipeline(
        backends,
        timeout=settings.backend_timeout,
        fallback_title=settings.fallback_title,
    )
    return DeckGenerator(pipeline)


def _current_deck() -> Optional[Deck]:
    data = st.session_state.get("deck")
    if not data:
        return None
    return Deck.from_dict(data)


def _store_deck(deck: Deck) -> None:
    st.session_state["deck"] = deck.to_dict()


def _load_deck_from_upload(upload, settings: DeckSettings) -> Optional[Deck]:
    """Parse an uploaded deck.json with the same checks as generated output."""

    if upload is None:
        return None
    raw = upload.getvalue()
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
    # no backends: unreadable files fail locally instead of calling a model
    pipeline = DeckJsonPipeline(fallback_title=settings.fallback_title)
    return pipeline.parse(text)


def main() -> None:
    st.set_page_config(page_title="Dill Slide", layout="wide")
    st.title("Dill Slide")

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        st.error("The environment settings are invalid.")
        st.exception(exc)
        return

    st.session_state.setdefault("deck", None)
    st.session_state.setdefault("messages", [])
    if "interpreter" not in st.session_state:
        st.session_state["interpreter"] = CommandInterpreter(
            history_limit=settings.history_limit
        )
    interpreter: CommandInterpreter = st.session_state["interpreter"]

    with st.sidebar:
        st.header("Generation settings")
        backend_choice = st.radio(
            "Backend",
            (STUB_BACKEND, CONFIGURED_BACKENDS),
            index=0,
            help="Configured backends: " + ", ".join(settings.backend_names()),
        )
        theme_names = sorted(THEME_PRESETS)
        theme_key = st.selectbox(
            "Theme",
            theme_names,
            index=theme_names.index(settings.theme_key) if settings.theme_key in theme_names else 0,
        )
        mode = st.radio("Mode", MODES, index=0, horizontal=True)
        num_slides = st.slider("Slides", min_value=1, max_value=20, value=5)
        uploaded = st.file_uploader("Load an existing deck.json", type="json")
        upload_id = getattr(uploaded, "file_id", None) if uploaded is not None else None
        loaded_deck = None
        if upload_id is not None and upload_id != st.session_state.get("loaded_upload"):
            st.session_state["loaded_upload"] = upload_id
            try:
                loaded_deck = _load_deck_from_upload(uploaded, settings)
            except DeckError as exc:
                st.error("The uploaded deck.json could not be loaded.")
                st.exception(exc)
        if loaded_deck:
            _store_deck(loaded_deck)
            interpreter.reset()
            st.success("Loaded deck.json.")

    st.subheader("Source material")
    source_text = st.text_area(
        "Source text",
        height=200,
        placeholder="Paste notes, an article or a transcript to turn into slides",
    )
    col_a, col_b = st.columns(2)
    with col_a:
        presentation_name = st.text_input("Presentation name (optional)", value="")
    with col_b:
        csv_summary = st.text_area("CSV summary (optional)", height=80)

    if st.button("Generate deck", type="primary"):
        if not source_text.strip():
            st.error("Enter some source text first.")
        else:
            generator = _build_generator(backend_choice, settings, num_slides)
            try:
                request = DeckRequest(
                    source_text=source_text,
                    num_slides=num_slides,
                    mode=mode,
                    csv_summary=csv_summary or None,
                    theme_key=theme_key,
                    presentation_name=presentation_name or None,
                )
                deck = generator.generate(request)
            except DeckError as exc:
                st.error("Deck generation failed.")
                st.exception(exc)
            else:
                _store_deck(deck)
                interpreter.reset()
                st.session_state["messages"] = []
                st.success(f"Generated {deck.slides_count} slides.")

    st.divider()

    deck = _current_deck()
    if deck is None or not deck.slides:
        st.caption("Generate a deck or load a deck.json to start editing.")
        return

    st.subheader("Edit with commands")
    command = st.text_input(
        "Command",
        key="command_input",
        placeholder=EXAMPLE_COMMANDS[1],
        help="Examples:\n" + "\n".join(EXAMPLE_COMMANDS),
    )
    if st.button("Apply command") and command.strip():
        result = interpreter.execute(deck, command)
        st.session_state["messages"].append(result.message)
        if result.status is CommandStatus.UNRECOGNIZED:
            st.warning(result.message)
        elif result.changed:
            deck = result.deck
            _store_deck(deck)
        st.info(result.message)
    st.caption(f"Active slide: {interpreter.active_index + 1} of {deck.slides_count}")

    with st.expander("Command log", expanded=False):
        for message in st.session_state["messages"][-20:]:
            st.markdown(f"- {message}")

    tabs = st.tabs(
        [f"{index}. {slide.title or 'Untitled'}" for index, slide in enumerate(deck.slides, start=1)]
    )
    for tab, slide in zip(tabs, deck.slides):
        with tab:
            st.markdown(f"**Layout**: `{slide.layout.value if slide.layout else 'inferred'}`")
            if slide.subtitle:
                st.markdown(f"**Subtitle**: {slide.subtitle}")
            for bullet in slide.bullets:
                st.markdown(f"- {bullet}")
            if slide.paragraph:
                st.write(slide.paragraph)
            if slide.quote:
                st.markdown(f"> {slide.quote}")
            if slide.notes:
                st.caption(slide.notes)

    operations = DeckLayoutCompiler(fallback_title=settings.fallback_title).compile(deck)
    with st.expander(f"Render operations ({len(operations)})", expanded=False):
        st.code(operations_to_json(operations, indent=2), language="json")

    st.download_button(
        "Download deck.json",
        data=json.dumps(deck.to_dict(), ensure_ascii=False, indent=2).encode("utf-8"),
        file_name="deck.json",
        mime="application/json",
    )

    try:
        pptx_bytes = PptxOperationRenderer().render_operations(operations).getvalue()
    except Exception as exc:  # pragma: no cover - depends on python-pptx internals
        st.warning("PPTX export failed. See the log below.")
        st.exception(exc)
    else:
        st.download_button(
            "Download PPTX",
            data=pptx_bytes,
            file_name="generated_deck.pptx",
            mime=PPTX_MIME,
        )


if __name__ == "__main__":  # pragma: no cover - Streamlit handles execution
    main()

"""Turn raw generated text into a validated :class:`Deck`.

Recovery is strictly two-tier:

1. local normalisation, which never touches the network (code fences, the
   outermost bracket span, NUL bytes, then typographic quotes, trailing commas
   and single-quoted keys/values);
2. exactly one repair call through the backend fallback chain, whose reply is
   run through step 1 again.

A failure always carries the raw text; an empty deck is never returned.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from LLM_API.data_classes import BaseResponse, JsonTextRequest
from LLM_API.decorators import with_timeout

from .config import BackendDescriptor
from .errors import (
    BackendUnavailableError,
    EmptyInputError,
    SchemaViolationError,
    UnparsableJsonError,
)
from .slide_models import Deck, Theme

LOGGER = logging.getLogger(__name__)

DEFAULT_FALLBACK_TITLE = "Generated Deck"
MAX_REPAIR_INPUT_CHARS = 24000

REPAIR_INSTRUCTIONS = (
    "You fix malformed JSON. Reply with only the corrected JSON object: no "
    "markdown, no code fences, no commentary. Keep every field and value; only "
    "repair the syntax."
)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_SINGLE_QUOTED_KEY_RE = re.compile(r"([{,]\s*)'([^'\"\\\n]+?)'(\s*:)")
_SINGLE_QUOTED_VALUE_RE = re.compile(r"(:\s*)'([^'\"\\\n]*)'(\s*[,}\]])")
_SINGLE_QUOTED_ITEM_RE = re.compile(r"([\[,]\s*)'([^'\"\\\n]*)'(?=\s*[,\]])")
_TYPOGRAPHIC_QUOTES = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "„": '"',
        "″": '"',
        "‘": "'",
        "’": "'",
        "′": "'",
    }
)


# ---------------------------------------------------------------------------
# Local normalisation
# ---------------------------------------------------------------------------

def strip_code_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1)
    return text.replace("```", "")


def slice_json_span(text: str) -> str:
    """Slice from the first ``{``/``[`` to the last ``}``/``]``."""

    starts = [index for index in (text.find("{"), text.find("[")) if index != -1]
    end = max(text.rfind("}"), text.rfind("]"))
    if not starts or end == -1:
        return text.strip()
    start = min(starts)
    if end < start:
        return text.strip()
    return text[start : end + 1]


def extract_json_span(text: str) -> str:
    """First tier: NUL bytes, code fences and the bracket span."""

    cleaned = text.replace("\x00", "")
    return slice_json_span(strip_code_fences(cleaned))


def normalize_json_text(text: str) -> str:
    """Second tier: also fix quotes and trailing commas with conservative regexes."""

    cleaned = extract_json_span(text).translate(_TYPOGRAPHIC_QUOTES)
    # run twice so that adjacent matches sharing a comma are both rewritten
    for _ in range(2):
        cleaned = _SINGLE_QUOTED_KEY_RE.sub(r'\1"\2"\3', cleaned)
        cleaned = _SINGLE_QUOTED_VALUE_RE.sub(r'\1"\2"\3', cleaned)
        cleaned = _SINGLE_QUOTED_ITEM_RE.sub(r'\1"\2"', cleaned)
    return _TRAILING_COMMA_RE.sub(r"\1", cleaned)


def parse_json_loosely(text: Optional[str]) -> Optional[Any]:
    """Parse ``text`` without any network call; ``None`` when both tiers fail."""

    if not text or not text.strip():
        return None
    try:
        return json.loads(extract_json_span(text))
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(normalize_json_text(text), strict=False)
    except json.JSONDecodeError as exc:
        LOGGER.debug("Local JSON normalisation failed: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Schema normalisation
# ---------------------------------------------------------------------------

def build_deck(
    payload: Any,
    *,
    fallback_title: str = DEFAULT_FALLBACK_TITLE,
    default_theme: Optional[Theme] = None,
    backend: str = "",
) -> Deck:
    """Validate a parsed payload and normalise it into a :class:`Deck`.

    Accepts ``{"deck": {...}}`` wrappers and a bare slide list. ``slidesCount``
    in the payload is ignored; the count is always derived from the slides.
    """

    if isinstance(payload, list):
        payload = {"slides": payload}
    if isinstance(payload, dict) and isinstance(payload.get("deck"), dict):
        payload = payload["deck"]
    if not isinstance(payload, dict):
        raise SchemaViolationError(
            f"Expected a JSON object, got {type(payload).__name__}",
            payload=payload,
            backend=backend,
        )

    slides = payload.get("slides")
    if not isinstance(slides, list):
        raise SchemaViolationError("missing slides list", payload=payload, backend=backend)

    skipped = sum(1 for item in slides if not isinstance(item, dict))
    if skipped:
        LOGGER.warning("Ignoring %d slide entries that are not objects", skipped)
    if skipped == len(slides):
        raise SchemaViolationError(
            "slides list contains no slide objects", payload=payload, backend=backend
        )

    deck = Deck.from_dict(payload)
    if not deck.presentation_title.strip():
        deck.presentation_title = fallback_title
    if not isinstance(payload.get("theme"), (dict, str)):
        deck.theme = replace(default_theme) if default_theme else Theme.default()
    return deck


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class DeckJsonPipeline:
    """Generation, lenient parsing and single-shot repair over a backend chain."""

    def __init__(
        self,
        backends: Sequence[BackendDescriptor] = (),
        *,
        timeout: Optional[float] = None,
        fallback_title: str = DEFAULT_FALLBACK_TITLE,
        default_theme: Optional[Theme] = None,
    ) -> None:
        self.backends: List[BackendDescriptor] = list(backends)
        self.timeout = timeout
        self.fallback_title = fallback_title
        self.default_theme = default_theme

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def generate(
        self,
        prompt: str,
        *,
        instructions: Optional[str] = None,
        fallback_title: Optional[str] = None,
        default_theme: Optional[Theme] = None,
        max_tokens: Optional[int] = None,
    ) -> Deck:
        """Ask the chain for a deck and parse the first usable reply."""

        if not prompt or not prompt.strip():
            raise EmptyInputError("Generation prompt is empty")
        request = JsonTextRequest(prompt=prompt, instructions=instructions, max_tokens=max_tokens)
        backend, text = self.call_chain(request)
        return self.parse(
            text,
            backend=backend,
            fallback_title=fallback_title,
            default_theme=default_theme,
        )

    def parse(
        self,
        raw_text: Optional[str],
        *,
        backend: Optional[str] = None,
        fallback_title: Optional[str] = None,
        default_theme: Optional[Theme] = None,
    ) -> Deck:
        """Parse ``raw_text`` produced by ``backend`` into a deck."""

        if raw_text is None or not raw_text.strip():
            raise EmptyInputError("Generated text is empty", backend=backend or "")

        payload = parse_json_loosely(raw_text)
        producer = backend or ""
        if payload is None:
            LOGGER.info("Local JSON recovery failed; issuing one repair call")
            producer, repaired = self._repair(raw_text, backend)
            payload = parse_json_loosely(repaired)
            if payload is None:
                raise UnparsableJsonError(
                    "Reply is not valid JSON, even after one repair attempt",
                    raw_text=raw_text,
                    repaired_text=repaired,
                    backend=producer,
                )

        return build_deck(
            payload,
            fallback_title=fallback_title or self.fallback_title,
            default_theme=default_theme or self.default_theme,
            backend=producer,
        )

    def call_chain(
        self, request: JsonTextRequest, *, prefer: Optional[str] = None
    ) -> Tuple[str, str]:
        """Try each backend in order; return ``(backend name, reply text)``.

        Raises :class:`BackendUnavailableError` with every failure reason once
        the chain is exhausted.
        """

        failures: Dict[str, str] = {}
        for descriptor in self._ordered(prefer):
            name = descriptor.name
            try:
                response = self._invoke(descriptor, request)
            except Exception as exc:  # SDK, credential and timeout errors alike
                LOGGER.warning("Backend %s failed: %s", name, exc)
                failures[name] = str(exc) or exc.__class__.__name__
                continue

            if response.error:
                LOGGER.warning("Backend %s returned an error: %s", name, response.error)
                failures[name] = response.error
                continue
            if not (response.text or "").strip():
                LOGGER.warning("Backend %s returned an empty reply", name)
                failures[name] = "empty response"
                continue

            LOGGER.debug("Backend %s replied with %d chars", name, len(response.text))
            return name, response.text

        if not failures:
            failures["<none>"] = "no generation backends configured"
        raise BackendUnavailableError(
            f"All {len(failures)} generation backends failed", failures=failures
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _repair(self, raw_text: str, backend: Optional[str]) -> Tuple[str, str]:
        prompt = (
            "The following text was meant to be a JSON object describing a slide "
            "deck (presentationTitle, theme, slides) but it does not parse. Return "
            "the corrected JSON object.\n\n" + raw_text[:MAX_REPAIR_INPUT_CHARS]
        )
        request = JsonTextRequest(prompt=prompt, instructions=REPAIR_INSTRUCTIONS)
        try:
            return self.call_chain(request, prefer=backend)
        except BackendUnavailableError as exc:
            raise UnparsableJsonError(
                f"Reply is not valid JSON and the repair call failed: {exc}",
                raw_text=raw_text,
                backend=backend or "",
            ) from exc

    def _ordered(self, prefer: Optional[str]) -> Iterable[BackendDescriptor]:
        if prefer is None:
            return list(self.backends)
        first = [item for item in self.backends if item.name == prefer]
        return first + [item for item in self.backends if item.name != prefer]

    def _invoke(self, descriptor: BackendDescriptor, request: JsonTextRequest) -> BaseResponse:
        call = descriptor.get_client().generate_content
        if self.timeout is not None:
            call = with_timeout(self.timeout)(call)
        return call(request)


__all__ = [
    "DeckJsonPipeline",
    "build_deck",
    "extract_json_span",
    "normalize_json_text",
    "parse_json_loosely",
    "slice_json_span",
    "strip_code_fences",
]

import pytest

pytest.importorskip("streamlit")

from LLM_API.data_classes import JsonTextRequest

import app
from dill_slide.config import DeckSettings
from dill_slide.deck_generation import DeckPromptBuilder, DeckRequest
from dill_slide.errors import SchemaViolationError, UnparsableJsonError


def test_extract_request_excerpt_handles_missing_marker():
    result = app._extract_request_excerpt("Sample request about tides", max_width=20)
    assert "Sample" in result


def test_extract_request_excerpt_reads_source_section():
    prompt = DeckPromptBuilder().build(DeckRequest(source_text="Coral reefs host life."))
    assert app._extract_request_excerpt(prompt) == "Coral reefs host life."


def test_stub_llm_returns_parseable_deck():
    llm = app.StubDeckLLM(num_slides=4)
    response = llm.generate_content(JsonTextRequest(prompt="[Source text]\nTides"))

    assert response.model_used == "stub-deck"
    assert response.success
    assert '"slides"' in response.text


def test_stub_generator_builds_requested_slide_count():
    generator = app._build_generator(app.STUB_BACKEND, DeckSettings.from_env({}), 3)
    deck = generator.generate(DeckRequest(source_text="Volcanoes shape islands.", num_slides=3))

    assert deck.slides_count == 3
    assert deck.presentation_title == "Volcanoes shape islands."
    assert deck.slides[0].bullets[0] == "Topic: Volcanoes shape islands."


class FakeUpload:
    def __init__(self, text):
        self._data = text.encode("utf-8")

    def getvalue(self):
        return self._data


def test_upload_is_validated_like_generated_output():
    settings = DeckSettings.from_env({})

    deck = app._load_deck_from_upload(FakeUpload('[{"title": "Tides"}]'), settings)

    assert deck.slides_count == 1
    assert deck.presentation_title == settings.fallback_title
    assert app._load_deck_from_upload(None, settings) is None


@pytest.mark.parametrize(
    "text,error",
    [
        ('{"presentationTitle": "No slides"}', SchemaViolationError),
        ('{"slides": []}', SchemaViolationError),
        ("not json at all", UnparsableJsonError),
    ],
)
def test_invalid_upload_raises_deck_error(text, error):
    with pytest.raises(error):
        app._load_deck_from_upload(FakeUpload(text), DeckSettings.from_env({}))

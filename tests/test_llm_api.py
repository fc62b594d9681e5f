import time
from types import SimpleNamespace

import pytest

from LLM_API.data_classes import BaseResponse, JsonTextRequest, create_json_request
from LLM_API.decorators import log_request, with_timeout
from LLM_API.exceptions import LLMAuthenticationError, LLMTimeoutError


def test_with_timeout_returns_result():
    @with_timeout(1)
    def quick():
        return "done"

    assert quick() == "done"


def test_with_timeout_raises_timeout_error():
    @with_timeout(0.05)
    def slow():
        time.sleep(0.5)

    with pytest.raises(LLMTimeoutError) as excinfo:
        slow()
    assert excinfo.value.error_type == "timeout"
    assert "timeout" in str(excinfo.value)


def test_log_request_passes_responses_through():
    class Provider:
        @log_request
        def generate_content(self, request):
            return BaseResponse(error="boom")

    assert Provider().generate_content(None).error == "boom"


def test_create_json_request_defaults_to_json_mode():
    request = create_json_request("prompt", instructions="json only", max_tokens=100)
    assert isinstance(request, JsonTextRequest)
    assert request.json_mode is True
    assert request.to_dict()["max_tokens"] == 100


def test_missing_api_key_raises(monkeypatch):
    pytest.importorskip("anthropic")
    from LLM_API.providers import _base_provider
    from LLM_API.providers.claude import ClaudeModel

    monkeypatch.setattr(_base_provider, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(LLMAuthenticationError) as excinfo:
        ClaudeModel()
    assert excinfo.value.error_type == "missing_api_key"


def test_claude_provider_sends_instructions_as_system_prompt():
    pytest.importorskip("anthropic")
    from LLM_API.providers.claude import ClaudeModel

    calls = []

    def create(**params):
        calls.append(params)
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text='{"slides": []}')],
            usage=SimpleNamespace(input_tokens=3, output_tokens=4),
        )

    model = ClaudeModel(api_key="test-key")
    model.client = SimpleNamespace(messages=SimpleNamespace(create=create))

    response = model.generate_content(JsonTextRequest(prompt="deck", instructions="json only"))

    assert response.text == '{"slides": []}'
    assert response.usage["total_tokens"] == 7
    assert calls[0]["system"] == "json only"


def test_openai_provider_reports_errors_in_response():
    pytest.importorskip("openai")
    from LLM_API.providers.openai import OpenAIModel

    def create(**params):
        raise RuntimeError("service unavailable")

    model = OpenAIModel(api_key="test-key")
    model.client = SimpleNamespace(responses=SimpleNamespace(create=create))

    response = model.generate_content(JsonTextRequest(prompt="deck"))

    assert not response.success
    assert "service unavailable" in response.error


def test_instructions_fold_into_prompt_without_system_prompt_support():
    pytest.importorskip("anthropic")
    from LLM_API.providers.claude import ClaudeModel

    calls = []

    def create(**params):
        calls.append(params)
        return SimpleNamespace(content=[SimpleNamespace(type="text", text="{}")])

    model = ClaudeModel(api_key="test-key")
    model.client = SimpleNamespace(messages=SimpleNamespace(create=create))
    model.provider_config.supports_system_prompt = False

    model.generate_content(JsonTextRequest(prompt="deck", instructions="json only"))

    assert model.get_provider_name() == "Claude"
    assert not model.supports_feature("system_prompt")
    assert "system" not in calls[0]
    assert calls[0]["messages"][0]["content"] == "json only\n\ndeck"


def test_json_mode_follows_provider_support():
    pytest.importorskip("openai")
    from LLM_API.providers.openai import OpenAIModel

    calls = []

    def create(**params):
        calls.append(params)
        return SimpleNamespace(output_text="{}", usage=None)

    model = OpenAIModel(api_key="test-key")
    model.client = SimpleNamespace(responses=SimpleNamespace(create=create))

    model.generate_content(JsonTextRequest(prompt="deck"))
    model.provider_config.supports_json_mode = False
    model.generate_content(JsonTextRequest(prompt="deck"))

    assert model.supports_feature("json_mode") is False
    assert calls[0]["text"] == {"format": {"type": "json_object"}}
    assert "text" not in calls[1]

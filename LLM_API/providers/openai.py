from typing import Optional, Dict, Any
from openai import OpenAI
from ..data_classes import BaseRequest, BaseResponse, ProviderConfig
from ..decorators import log_request
from ._base_provider import BaseProvider


class OpenAIModel(BaseProvider):
    """OpenAI Responses API implementation of CallModel"""

    def __init__(self, api_key: Optional[str] = None, model_name: str = "gpt-5"):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider_name="OpenAI",
            model_name=self.model_name,
            supports_json_mode=True,
            supports_system_prompt=True,
            max_tokens_limit=128000,
            default_max_tokens=4096
        )

    def setup_client(self):
        api_key = self._get_api_key('OPENAI_API_KEY')
        self.client = OpenAI(api_key=api_key)

    @log_request
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        model = request.model_name or self.model_name
        try:
            self._validate_request(request)
            request_data: Dict[str, Any] = {
                "model": model,
                "input": self._prompt(request),
                "max_output_tokens": self._max_tokens(request)
            }
            instructions = self._instructions(request)
            if instructions:
                request_data["instructions"] = instructions
            if self._wants_json(request):
                request_data["text"] = {"format": {"type": "json_object"}}
            if request.temperature is not None:
                request_data["temperature"] = request.temperature

            response = self.client.responses.create(**request_data)

            usage = None
            if getattr(response, 'usage', None) is not None:
                usage = {
                    "prompt_tokens": getattr(response.usage, 'input_tokens', 0),
                    "completion_tokens": getattr(response.usage, 'output_tokens', 0),
                    "total_tokens": getattr(response.usage, 'total_tokens', 0)
                }
            return BaseResponse(
                text=getattr(response, 'output_text', '') or '',
                model_used=model,
                usage=usage,
                raw_response=response
            )
        except Exception as e:
            return BaseResponse(
                text="",
                model_used=model,
                error=str(e)
            )

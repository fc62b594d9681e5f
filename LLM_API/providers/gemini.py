from typing import Optional, Dict, Any
from google import genai
from google.genai import types
from ..data_classes import BaseRequest, BaseResponse, ProviderConfig
from ..decorators import log_request
from ._base_provider import BaseProvider


class GeminiModel(BaseProvider):
    """Gemini API implementation of CallModel"""

    def __init__(self, api_key: Optional[str] = None, model_name: str = "gemini-2.5-flash"):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        """Get Gemini provider configuration"""
        return ProviderConfig(
            provider_name="Gemini",
            model_name=self.model_name or "gemini-2.5-flash",
            supports_json_mode=True,
            supports_system_prompt=True,
            max_tokens_limit=65536,
            default_max_tokens=8192
        )

    def setup_client(self):
        """Setup Gemini client"""
        api_key = self._get_api_key('GEMINI_API_KEY')
        self.client = genai.Client(api_key=api_key)

    @log_request
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        """Generate content"""
        model = request.model_name or self.model_name
        try:
            self._validate_request(request)
            config_params: Dict[str, Any] = {
                "max_output_tokens": self._max_tokens(request)
            }
            instructions = self._instructions(request)
            if instructions:
                config_params["system_instruction"] = instructions
            if self._wants_json(request):
                config_params["response_mime_type"] = "application/json"
            if request.temperature is not None:
                config_params["temperature"] = request.temperature

            response = self.client.models.generate_content(
                model=model,
                contents=self._prompt(request),
                config=types.GenerateContentConfig(**config_params)
            )

            usage = None
            metadata = getattr(response, 'usage_metadata', None)
            if metadata is not None:
                usage = {
                    "prompt_tokens": getattr(metadata, 'prompt_token_count', 0) or 0,
                    "completion_tokens": getattr(metadata, 'candidates_token_count', 0) or 0,
                    "total_tokens": getattr(metadata, 'total_token_count', 0) or 0
                }

            return BaseResponse(
                text=response.text or "",
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

from typing import Optional, Dict, Any
import anthropic
from ..data_classes import BaseRequest, BaseResponse, ProviderConfig
from ..decorators import log_request
from ._base_provider import BaseProvider


class ClaudeModel(BaseProvider):
    """Anthropic Claude implementation of CallModel"""

    def __init__(self, api_key: Optional[str] = None, model_name: str = "claude-3-5-sonnet-20241022"):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        """Get Claude provider configuration"""
        return ProviderConfig(
            provider_name="Claude",
            model_name=self.model_name or "claude-3-5-sonnet-20241022",
            # no native JSON response format; the instructions carry the constraint
            supports_json_mode=False,
            supports_system_prompt=True,
            max_tokens_limit=200000,
            default_max_tokens=4096
        )

    def setup_client(self):
        """Setup Anthropic client"""
        api_key = self._get_api_key('ANTHROPIC_API_KEY')
        self.client = anthropic.Anthropic(api_key=api_key)

    @log_request
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        """Generate content"""
        model = request.model_name or self.model_name
        try:
            self._validate_request(request)
            request_params: Dict[str, Any] = {
                "model": model,
                "max_tokens": self._max_tokens(request),
                "messages": [{"role": "user", "content": self._prompt(request)}]
            }

            instructions = self._instructions(request)
            if instructions:
                request_params["system"] = instructions
            if request.temperature is not None:
                request_params["temperature"] = request.temperature

            response = self.client.messages.create(**request_params)

            # Extract text from response
            text_content = ""
            for content in response.content:
                if content.type == "text":
                    text_content += content.text

            # Extract usage information
            usage = None
            if hasattr(response, 'usage'):
                usage = {
                    "prompt_tokens": getattr(response.usage, 'input_tokens', 0),
                    "completion_tokens": getattr(response.usage, 'output_tokens', 0),
                    "total_tokens": getattr(response.usage, 'input_tokens', 0) + getattr(response.usage, 'output_tokens', 0)
                }

            return BaseResponse(
                text=text_content,
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

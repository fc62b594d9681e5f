import os
from typing import Optional
from dotenv import load_dotenv
from ..base import CallModel
from ..data_classes import BaseRequest, JsonTextRequest
from ..exceptions import LLMAuthenticationError


class BaseProvider(CallModel):
    """Base class with common provider functionality"""

    def _get_api_key(self, env_var_name: str) -> str:
        """Get API key from the instance, the environment or a .env file"""
        load_dotenv()
        api_key = self.api_key or os.getenv(env_var_name)

        if not api_key:
            raise LLMAuthenticationError(
                message=f"API key required. Set {env_var_name} or pass api_key parameter",
                provider=self.get_provider_name(),
                error_type="missing_api_key"
            )

        return api_key

    def _validate_request(self, request: BaseRequest):
        """Common request validation"""
        if not request.prompt:
            raise ValueError("Request must have a prompt")

        limit = self.provider_config.max_tokens_limit
        if request.max_tokens and limit and request.max_tokens > limit:
            raise ValueError(
                f"max_tokens exceeds limit: {limit}"
            )

    def _max_tokens(self, request: BaseRequest) -> int:
        return request.max_tokens or self.provider_config.default_max_tokens

    def _instructions(self, request: BaseRequest) -> Optional[str]:
        """Instructions to send as the system prompt, if the provider takes one."""
        if not isinstance(request, JsonTextRequest) or not request.instructions:
            return None
        if not self.supports_feature("system_prompt"):
            return None
        return request.instructions

    def _prompt(self, request: BaseRequest) -> str:
        """User prompt, with the instructions folded in when there is no system prompt."""
        if (
            isinstance(request, JsonTextRequest)
            and request.instructions
            and not self.supports_feature("system_prompt")
        ):
            return f"{request.instructions}\n\n{request.prompt}"
        return request.prompt

    def _wants_json(self, request: BaseRequest) -> bool:
        return (
            isinstance(request, JsonTextRequest)
            and request.json_mode
            and self.supports_feature("json_mode")
        )

"""
LLM API Package - Unified interface for the deck generation backends
"""

from .base import CallModel
from .data_classes import (
    BaseRequest, BaseResponse,
    JsonTextRequest,
    ProviderConfig,
    create_json_request
)
from .decorators import with_timeout, log_request
from .exceptions import (
    LLMError, LLMAuthenticationError, LLMTimeoutError
)
# Provider imports are optional because some dependencies may not be installed
try:  # pragma: no cover - optional dependency
    from .providers.claude import ClaudeModel
except ModuleNotFoundError:  # pragma: no cover - dependency not available
    ClaudeModel = None  # type: ignore

try:  # pragma: no cover - optional dependency
    from .providers.gemini import GeminiModel
except ModuleNotFoundError:  # pragma: no cover - dependency not available
    GeminiModel = None  # type: ignore

try:
    from .providers.openai import OpenAIModel
except ModuleNotFoundError:  # pragma: no cover - dependency not available
    OpenAIModel = None  # type: ignore

__version__ = "1.0.0"
__all__ = [
    # Base
    'CallModel',
    # Data Classes
    'BaseRequest', 'BaseResponse',
    'JsonTextRequest',
    'ProviderConfig',
    'create_json_request',
    # Decorators
    'with_timeout', 'log_request',
    # Exceptions
    'LLMError', 'LLMAuthenticationError', 'LLMTimeoutError',
    # Providers (optional)
    'ClaudeModel', 'GeminiModel', 'OpenAIModel'
]

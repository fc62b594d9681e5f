from dataclasses import dataclass
from typing import Optional, Dict, Any


# ========== Base Classes ==========

@dataclass
class BaseRequest:
    """Base class for every generation request"""
    prompt: str = ""
    model_name: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Dictionary form, dropping unset values (used for API payloads)"""
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class BaseResponse:
    """Base class for every generation response"""
    text: str = ""
    model_used: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    error: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def success(self) -> bool:
        """Whether the request succeeded"""
        return self.error is None


# ========== JSON Text Generation ==========

@dataclass
class JsonTextRequest(BaseRequest):
    """Free-form text request whose reply is expected to be a JSON document.

    ``instructions`` is sent as the system prompt where the provider supports
    one. ``json_mode`` asks the provider for its native JSON response format;
    the reply is still parsed leniently by the caller because not every
    provider honours it.
    """
    instructions: Optional[str] = None
    json_mode: bool = True


# ========== Provider Configuration ==========

@dataclass
class ProviderConfig:
    """Provider specific settings"""
    provider_name: str = ""
    model_name: str = ""
    supports_json_mode: bool = True
    supports_system_prompt: bool = True

    # provider limits
    max_tokens_limit: Optional[int] = None
    default_max_tokens: int = 4096


# ========== Utility Functions ==========

def create_json_request(
    prompt: str,
    instructions: Optional[str] = None,
    **kwargs
) -> JsonTextRequest:
    """Convenience constructor for a JSON text request"""
    return JsonTextRequest(
        prompt=prompt,
        instructions=instructions,
        **kwargs
    )

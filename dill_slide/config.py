"""Environment driven settings and the backend fallback chain."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from dotenv import load_dotenv

from LLM_API import ClaudeModel, GeminiModel, OpenAIModel

from .errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

DEFAULT_BACKENDS = "claude,openai,gemini"
DEFAULT_FALLBACK_TITLE = "Generated Deck"
DEFAULT_THEME_KEY = "Material"
DEFAULT_HISTORY_LIMIT = 25

PROVIDER_ALIASES = {
    "claude": "claude",
    "anthropic": "claude",
    "openai": "openai",
    "gpt": "openai",
    "gemini": "gemini",
    "google": "gemini",
}

# None when the provider SDK is not installed
PROVIDER_CLASSES = {
    "claude": ClaudeModel,
    "openai": OpenAIModel,
    "gemini": GeminiModel,
}


def create_client(provider: str, model_name: Optional[str] = None, api_key: Optional[str] = None):
    """Instantiate the ``LLM_API`` provider registered under ``provider``."""

    key = PROVIDER_ALIASES.get(provider.lower())
    if key is None:
        raise ConfigurationError(f"Unknown generation backend '{provider}'")
    model_class = PROVIDER_CLASSES[key]
    if model_class is None:
        raise ConfigurationError(f"The SDK for backend '{key}' is not installed")

    kwargs: Dict[str, Any] = {"api_key": api_key}
    if model_name:
        kwargs["model_name"] = model_name
    return model_class(**kwargs)


@dataclass(slots=True)
class BackendDescriptor:
    """One entry of the generation fallback chain.

    The provider client is built lazily on first use so that a backend with a
    missing API key only fails when it is actually tried. A ready ``client``
    (anything with ``generate_content``) may be injected instead.
    """

    provider: str
    model_name: Optional[str] = None
    api_key: Optional[str] = None
    client: Any = None
    label: Optional[str] = None

    @property
    def name(self) -> str:
        if self.label:
            return self.label
        if self.model_name:
            return f"{self.provider}:{self.model_name}"
        return self.provider

    @classmethod
    def parse(cls, entry: str) -> "BackendDescriptor":
        """Parse ``provider[:model]``."""

        provider, _, model_name = entry.strip().partition(":")
        if not provider:
            raise ConfigurationError(f"Invalid backend entry '{entry}'")
        return cls(provider=provider.strip().lower(), model_name=model_name.strip() or None)

    @classmethod
    def from_client(cls, name: str, client: Any) -> "BackendDescriptor":
        return cls(provider=name, client=client, label=name)

    def get_client(self):
        if self.client is None:
            LOGGER.debug("Creating client for backend %s", self.name)
            self.client = create_client(self.provider, self.model_name, self.api_key)
        return self.client


def parse_backend_chain(value: str) -> List[BackendDescriptor]:
    backends = [BackendDescriptor.parse(item) for item in value.split(",") if item.strip()]
    if not backends:
        raise ConfigurationError("At least one generation backend must be configured")
    return backends


@dataclass(slots=True)
class DeckSettings:
    backends: List[BackendDescriptor] = field(
        default_factory=lambda: parse_backend_chain(DEFAULT_BACKENDS)
    )
    fallback_title: str = DEFAULT_FALLBACK_TITLE
    theme_key: str = DEFAULT_THEME_KEY
    history_limit: int = DEFAULT_HISTORY_LIMIT
    backend_timeout: Optional[float] = None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        dotenv_path: Optional[str] = None,
    ) -> "DeckSettings":
        """Read settings from ``environ`` (default: ``.env`` plus ``os.environ``)."""

        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        history_limit = _int_setting(environ, "DILL_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)
        if history_limit < 1:
            raise ConfigurationError("DILL_HISTORY_LIMIT must be at least 1")

        timeout = _float_setting(environ, "DILL_BACKEND_TIMEOUT")
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("DILL_BACKEND_TIMEOUT must be positive")

        return cls(
            backends=parse_backend_chain(environ.get("DILL_BACKENDS") or DEFAULT_BACKENDS),
            fallback_title=environ.get("DILL_FALLBACK_TITLE") or DEFAULT_FALLBACK_TITLE,
            theme_key=environ.get("DILL_THEME") or DEFAULT_THEME_KEY,
            history_limit=history_limit,
            backend_timeout=timeout,
        )

    def backend_names(self) -> Sequence[str]:
        return [backend.name for backend in self.backends]


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from exc


def _float_setting(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from exc


__all__ = [
    "BackendDescriptor",
    "DeckSettings",
    "create_client",
    "parse_backend_chain",
]

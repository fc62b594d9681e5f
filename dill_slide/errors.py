"""Failure taxonomy for deck parsing and generation."""

from __future__ import annotations

from typing import Dict, Optional


class DeckError(Exception):
    """Base exception for every deck pipeline failure."""

    error_type = "general"

    def __init__(self, message: str, *, backend: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.backend = backend

    def __str__(self) -> str:
        prefix = f"[{self.backend}] " if self.backend else ""
        return f"{prefix}{self.error_type}: {self.message}"


class EmptyInputError(DeckError):
    """The raw reply (or the source text) was empty or whitespace only."""

    error_type = "empty_input"


class UnparsableJsonError(DeckError):
    """The reply could not be parsed, even after the single repair call."""

    error_type = "unparsable_json"

    def __init__(
        self,
        message: str,
        *,
        raw_text: str,
        repaired_text: Optional[str] = None,
        backend: str = "",
    ) -> None:
        super().__init__(message, backend=backend)
        self.raw_text = raw_text
        self.repaired_text = repaired_text


class SchemaViolationError(DeckError):
    """Valid JSON that does not describe a deck (e.g. missing ``slides``)."""

    error_type = "schema_violation"

    def __init__(self, message: str, *, payload: object = None, backend: str = "") -> None:
        super().__init__(message, backend=backend)
        self.payload = payload


class ConfigurationError(DeckError):
    """Invalid settings (environment variables or explicit values)."""

    error_type = "configuration"


class BackendUnavailableError(DeckError):
    """Every backend in the fallback chain failed."""

    error_type = "backend_unavailable"

    def __init__(self, message: str, *, failures: Dict[str, str]) -> None:
        super().__init__(message)
        self.failures = dict(failures)

    def __str__(self) -> str:
        details = "; ".join(f"{name}: {reason}" for name, reason in self.failures.items())
        base = super().__str__()
        return f"{base} ({details})" if details else base


__all__ = [
    "DeckError",
    "EmptyInputError",
    "UnparsableJsonError",
    "SchemaViolationError",
    "BackendUnavailableError",
    "ConfigurationError",
]

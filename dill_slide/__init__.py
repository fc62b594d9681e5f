"""High-level interfaces for deck generation, layout and editing workflows."""

from .slide_models import Deck, Slide, SlideLayout, TextAlign, TextStyle, Theme
from .errors import (
    BackendUnavailableError,
    ConfigurationError,
    DeckError,
    EmptyInputError,
    SchemaViolationError,
    UnparsableJsonError,
)
from .config import BackendDescriptor, DeckSettings
from .deck_parser import DeckJsonPipeline, build_deck, parse_json_loosely
from .deck_generation import DeckGenerator, DeckPromptBuilder, DeckRequest
from .render_ops import OperationType, RenderOperation, operations_to_json
from .layout_compiler import DeckLayoutCompiler, PageGeometry
from .command_interpreter import CommandInterpreter, CommandResult, CommandStatus
from .pptx_renderer import PptxOperationRenderer

__all__ = [
    "Deck",
    "Slide",
    "SlideLayout",
    "TextAlign",
    "TextStyle",
    "Theme",
    "DeckError",
    "EmptyInputError",
    "UnparsableJsonError",
    "SchemaViolationError",
    "ConfigurationError",
    "BackendUnavailableError",
    "BackendDescriptor",
    "DeckSettings",
    "DeckJsonPipeline",
    "build_deck",
    "parse_json_loosely",
    "DeckRequest",
    "DeckPromptBuilder",
    "DeckGenerator",
    "OperationType",
    "RenderOperation",
    "operations_to_json",
    "DeckLayoutCompiler",
    "PageGeometry",
    "CommandInterpreter",
    "CommandResult",
    "CommandStatus",
    "PptxOperationRenderer",
]

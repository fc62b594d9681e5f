"""
Generation backend implementations
"""

from .claude import ClaudeModel
from .gemini import GeminiModel
from .openai import OpenAIModel

__all__ = ['ClaudeModel', 'GeminiModel', 'OpenAIModel']

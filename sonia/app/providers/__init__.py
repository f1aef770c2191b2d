"""
AI Provider Abstraction.

Providers are swappable; model names come from config only.
"""

from .anthropic import ClaudeProvider
from .base import (
    ChatTurn,
    GenerationError,
    LLMProvider,
    ProviderError,
    StructuredResult,
    TranscriptionError,
    TranscriptionResult,
)
from .factory import create_provider
from .gemini import GeminiProvider

__all__ = [
    "ChatTurn",
    "LLMProvider",
    "StructuredResult",
    "TranscriptionResult",
    "ProviderError",
    "GenerationError",
    "TranscriptionError",
    "ClaudeProvider",
    "GeminiProvider",
    "create_provider",
]

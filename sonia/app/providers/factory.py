"""Provider selection from config (ai.provider)."""

import logging
from typing import Any

from sonia.domain.constants import (
    CLAUDE_MODEL,
    TEXT_FALLBACK_MODEL,
    TEXT_MODEL,
    TTS_MODEL,
)

from .anthropic import ClaudeProvider
from .base import LLMProvider
from .gemini import GeminiProvider

logger = logging.getLogger(__name__)


def create_provider(config: dict[str, Any]) -> LLMProvider:
    """
    config["ai"] → LLMProvider.

    ai:
      provider: gemini          # gemini | anthropic
      text_model: gemini-3-flash-preview
      fallback_model: gemini-2.5-flash
      tts_model: gemini-2.5-flash-preview-tts
      anthropic_model: claude-sonnet-4-20250514

    Raises:
        ValueError: unknown provider name
    """
    ai_config = config.get("ai", {}) or {}
    provider_name = ai_config.get("provider", "gemini")
    max_retries = int(ai_config.get("max_retries", 2))
    retry_delay = float(ai_config.get("retry_initial_delay", 1.0))

    if provider_name == "gemini":
        provider: LLMProvider = GeminiProvider(
            model=ai_config.get("text_model", TEXT_MODEL),
            fallback=ai_config.get("fallback_model", TEXT_FALLBACK_MODEL),
            temperature=ai_config.get("temperature"),
            max_retries=max_retries,
            retry_initial_delay=retry_delay,
            tts_model=ai_config.get("tts_model", TTS_MODEL),
        )
    elif provider_name == "anthropic":
        provider = ClaudeProvider(
            model=ai_config.get("anthropic_model", CLAUDE_MODEL),
            max_tokens=int(ai_config.get("max_tokens", 1024)),
            temperature=ai_config.get("temperature"),
            max_retries=max_retries,
            retry_initial_delay=retry_delay,
        )
    else:
        raise ValueError(f"Unknown AI provider: {provider_name}")

    logger.info(f"Using AI provider {provider.name} ({provider.model})")
    return provider

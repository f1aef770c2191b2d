"""
Anthropic (Claude) Provider.

Alternative text provider (ai.provider: anthropic).
- JSON mode is emulated: the response schema is appended to the system prompt
- Audio is not supported: transcribe() raises TRANSCRIPTION_UNSUPPORTED,
  synthesize_speech() raises SPEECH_UNSUPPORTED
"""

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

import anthropic

from sonia.domain.constants import CLAUDE_MODEL
from sonia.utils.retry import retry_with_exponential_backoff

from .base import (
    ChatTurn,
    GenerationError,
    LLMProvider,
    SpeechError,
    SpeechResult,
    StructuredResult,
    TranscriptionError,
    TranscriptionResult,
    hash_prompt,
    parse_json_response,
)

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
    anthropic.InternalServerError,
)

SCHEMA_INSTRUCTION = (
    "\n\nRespond with a single JSON object only, no prose, matching this schema:\n"
    "{schema}"
)


class ClaudeProvider(LLMProvider):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeProvider(model="claude-sonnet-4-20250514")
        result = await provider.generate_json(turns, system_prompt, EMOTION_SCHEMA)
    """

    name = "anthropic"

    def __init__(
        self,
        model: str = CLAUDE_MODEL,
        api_key: str | None = None,
        max_tokens: int = 1024,
        temperature: float | None = None,
        max_retries: int = 3,
        retry_initial_delay: float = 1.0,
    ):
        """
        Args:
            model: model ID (injected from config)
            api_key: API key (default: ANTHROPIC_API_KEY)
            max_tokens: response token limit
            temperature: sampling temperature (None → API default)

        Raises:
            GenerationError: no API key (fail-fast)
        """
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")

        if not self.api_key:
            raise GenerationError(
                "ANTHROPIC_KEY_MISSING",
                "Anthropic API key is missing. Set the ANTHROPIC_API_KEY environment variable.",
            )

        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic client (lazy init)."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate_json(
        self,
        turns: list[ChatTurn],
        system_instruction: str,
        response_schema: dict[str, Any],
    ) -> StructuredResult:
        prompt_hash = hash_prompt(system_instruction, turns)
        system = system_instruction + SCHEMA_INSTRUCTION.format(
            schema=json.dumps(response_schema, indent=2)
        )

        try:
            response = await self._call_api_with_retry(
                system=system,
                messages=self._build_messages(turns),
            )
        except Exception as e:
            logger.error(f"Claude generation failed: {e}", exc_info=True)
            raise GenerationError(
                "GENERATION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        raw_text = self._response_text(response)
        data = parse_json_response(raw_text)
        if data is None:
            logger.warning(f"Claude returned non-JSON output ({prompt_hash})")

        return StructuredResult(
            success=data is not None,
            data=data,
            raw_text=raw_text,
            model_requested=self.model,
            model_used=getattr(response, "model", None) or self.model,
            fallback_triggered=False,
            provider=self.name,
            prompt_hash=prompt_hash,
            generated_at=datetime.now(UTC).isoformat(),
            error_message=None if data is not None else "Failed to parse AI response",
        )

    async def transcribe(self, audio_bytes: bytes, mime_type: str) -> TranscriptionResult:
        raise TranscriptionError(
            "TRANSCRIPTION_UNSUPPORTED",
            "Voice messages need the Gemini provider (ai.provider: gemini).",
            model=self.model,
            mime_type=mime_type,
        )

    async def synthesize_speech(self, text: str, voice_name: str) -> SpeechResult:
        raise SpeechError(
            "SPEECH_UNSUPPORTED",
            "Spoken replies need the Gemini provider (ai.provider: gemini).",
            model=self.model,
            voice_name=voice_name,
        )

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """Plain completion."""
        try:
            client = self._get_client()
            response = await client.messages.create(
                model=self.model,
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise GenerationError(
                "COMPLETION_FAILED",
                f"Claude API call failed: {e}",
            ) from e
        return self._response_text(response)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_messages(self, turns: list[ChatTurn]) -> list[dict[str, Any]]:
        """
        ChatTurn list → Messages API format.

        The API requires the first message to come from the user, so leading
        assistant turns are dropped.
        """
        messages = [
            {
                "role": "assistant" if turn.role == "assistant" else "user",
                "content": turn.text,
            }
            for turn in turns
        ]
        while messages and messages[0]["role"] == "assistant":
            messages.pop(0)
        return messages

    def _response_text(self, response: Any) -> str:
        return "".join(
            getattr(block, "text", "") for block in getattr(response, "content", [])
        )

    async def _call_api_with_retry(
        self, system: str, messages: list[dict[str, Any]]
    ) -> Any:
        """API call with retry on transient errors."""

        async def _api_call() -> Any:
            client = self._get_client()
            api_kwargs: dict[str, Any] = {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "system": system,
                "messages": messages,
            }
            if self.temperature is not None:
                api_kwargs["temperature"] = self.temperature

            return await client.messages.create(**api_kwargs)

        return await retry_with_exponential_backoff(
            _api_call,
            max_retries=self.max_retries,
            initial_delay=self.retry_initial_delay,
            max_delay=30.0,
            exceptions=RETRYABLE_ERRORS,
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        if isinstance(error, anthropic.APITimeoutError):
            return "The AI service timed out. Please try again."
        if isinstance(error, anthropic.APIConnectionError):
            return "Could not reach the Anthropic API. Check the network connection."
        if isinstance(error, anthropic.RateLimitError):
            return "The AI service quota was exceeded. Please try again shortly."
        if isinstance(error, anthropic.AuthenticationError):
            return "Anthropic authentication failed. Check ANTHROPIC_API_KEY."
        if isinstance(error, anthropic.PermissionDeniedError):
            return "The API key is not allowed to perform this request."
        if isinstance(error, anthropic.BadRequestError):
            return "The request was rejected as invalid. Check the input."

        error_str = str(error)
        if "timeout" in error_str.lower():
            return "The AI service timed out. Please try again."
        if "connection" in error_str.lower():
            return "A network error occurred while contacting the AI service."

        return f"The AI service failed: {error_str}"

"""
Google Gemini Provider.

Fallback policy:
- FALLBACK_ERRORS: NotFound, ServiceUnavailable, ResourceExhausted → fallback model
- REJECT_IMMEDIATELY: InvalidArgument, PermissionDenied, Unauthenticated → fail now
- RETRYABLE_ERRORS: DeadlineExceeded, InternalServerError → retried on the same model

Speech synthesis uses the google-genai client (AUDIO response modality,
prebuilt voice); server errors are retried, everything else fails the call.

The SDKs are synchronous; calls run in a worker thread.
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import google.generativeai as genai
from google import genai as google_genai
from google.api_core.exceptions import (
    DeadlineExceeded,
    InternalServerError,
    InvalidArgument,
    NotFound,
    PermissionDenied,
    ResourceExhausted,
    ServiceUnavailable,
    Unauthenticated,
)
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from sonia.domain.constants import (
    OUTPUT_SAMPLE_RATE,
    TEXT_FALLBACK_MODEL,
    TEXT_MODEL,
    TTS_MODEL,
)
from sonia.domain.prompts import TRANSCRIBE_PROMPT, speech_prompt
from sonia.utils.retry import retry_with_exponential_backoff

from .base import (
    ChatTurn,
    GenerationError,
    LLMProvider,
    ProviderError,
    SpeechError,
    SpeechResult,
    StructuredResult,
    TranscriptionError,
    TranscriptionResult,
    hash_prompt,
    parse_json_response,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# =============================================================================
# Exception Mapping
# =============================================================================

FALLBACK_ERRORS: tuple[type[Exception], ...] = (
    NotFound,            # model name wrong / not available
    ServiceUnavailable,  # 5xx
    ResourceExhausted,   # 429 quota / rate limit
)

REJECT_IMMEDIATELY: tuple[type[Exception], ...] = (
    InvalidArgument,    # bad input
    PermissionDenied,   # key lacks permission
    Unauthenticated,    # bad API key
)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    DeadlineExceeded,
    InternalServerError,
)

SPEECH_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    genai_errors.ServerError,
)


class GeminiProvider(LLMProvider):
    """
    Gemini text/audio provider.

    Usage:
        provider = GeminiProvider(
            model="gemini-3-flash-preview",
            fallback="gemini-2.5-flash",
        )
        result = await provider.generate_json(turns, system_prompt, EMOTION_SCHEMA)
    """

    name = "gemini"

    def __init__(
        self,
        model: str = TEXT_MODEL,
        fallback: str | None = TEXT_FALLBACK_MODEL,
        api_key: str | None = None,
        temperature: float | None = None,
        max_retries: int = 2,
        retry_initial_delay: float = 1.0,
        tts_model: str = TTS_MODEL,
    ):
        """
        Args:
            model: primary model ID (injected from config)
            fallback: fallback model (None → fail without a second attempt)
            api_key: API key (default: GOOGLE_API_KEY)
            temperature: sampling temperature (None → API default)
            max_retries: retries for RETRYABLE_ERRORS on one model
            retry_initial_delay: first backoff wait in seconds
            tts_model: speech synthesis model (voice calls)
        """
        self.model = model
        self.fallback = fallback
        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY")
        self.temperature = temperature
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self.tts_model = tts_model
        self._client: Any = None
        self._speech_client: Any = None

    def _get_client(self) -> Any:
        """Configured genai module (lazy init)."""
        if self._client is None:
            genai.configure(api_key=self.api_key)
            self._client = genai
        return self._client

    def _get_speech_client(self) -> Any:
        """google-genai Client for audio output (lazy init)."""
        if self._speech_client is None:
            self._speech_client = google_genai.Client(api_key=self.api_key)
        return self._speech_client

    # =========================================================================
    # Public API
    # =========================================================================

    async def generate_json(
        self,
        turns: list[ChatTurn],
        system_instruction: str,
        response_schema: dict[str, Any],
    ) -> StructuredResult:
        """JSON-mode generation with the given response schema."""
        prompt_hash = hash_prompt(system_instruction, turns)
        contents = self._build_contents(turns)
        generation_config = self._generation_config(response_schema)

        async def _run(model: str) -> Any:
            return await self._generate(
                model,
                contents,
                system_instruction=system_instruction,
                generation_config=generation_config,
            )

        response, model_used, fallback_triggered = await self._with_fallback(
            _run, GenerationError, "GENERATION_FAILED"
        )

        raw_text = self._response_text(response)
        data = parse_json_response(raw_text)
        if data is None:
            logger.warning(
                f"Gemini returned non-JSON output ({model_used}, {prompt_hash})"
            )

        return StructuredResult(
            success=data is not None,
            data=data,
            raw_text=raw_text,
            model_requested=self.model,
            model_used=model_used,
            fallback_triggered=fallback_triggered,
            provider=self.name,
            prompt_hash=prompt_hash,
            generated_at=datetime.now(UTC).isoformat(),
            error_message=None if data is not None else "Failed to parse AI response",
        )

    async def transcribe(self, audio_bytes: bytes, mime_type: str) -> TranscriptionResult:
        """Audio (inline data) → transcription text."""
        audio_part = {"mime_type": mime_type, "data": audio_bytes}

        async def _run(model: str) -> Any:
            return await self._generate(model, [audio_part, TRANSCRIBE_PROMPT])

        response, model_used, fallback_triggered = await self._with_fallback(
            _run, TranscriptionError, "TRANSCRIPTION_FAILED"
        )

        text = self._response_text(response).strip()
        return TranscriptionResult(
            success=True,
            text=text,
            model_requested=self.model,
            model_used=model_used,
            fallback_triggered=fallback_triggered,
            processed_at=datetime.now(UTC).isoformat(),
        )

    async def synthesize_speech(self, text: str, voice_name: str) -> SpeechResult:
        """Reply text → 24 kHz 16-bit mono PCM in a prebuilt voice."""
        client = self._get_speech_client()
        config = genai_types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=genai_types.SpeechConfig(
                voice_config=genai_types.VoiceConfig(
                    prebuilt_voice_config=genai_types.PrebuiltVoiceConfig(
                        voice_name=voice_name
                    )
                )
            ),
        )

        async def _api_call() -> Any:
            return await asyncio.to_thread(
                client.models.generate_content,
                model=self.tts_model,
                contents=speech_prompt(text),
                config=config,
            )

        try:
            response = await retry_with_exponential_backoff(
                _api_call,
                max_retries=self.max_retries,
                initial_delay=self.retry_initial_delay,
                max_delay=30.0,
                exceptions=SPEECH_RETRYABLE_ERRORS,
            )
        except genai_errors.APIError as e:
            logger.error(f"Speech synthesis failed ({self.tts_model}): {e}")
            raise SpeechError(
                "SPEECH_FAILED",
                self._speech_error_message(e),
                model=self.tts_model,
                status=e.code,
            ) from e
        except Exception as e:
            logger.error(f"Speech synthesis failed with unexpected error: {e}", exc_info=True)
            raise SpeechError(
                "SPEECH_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.tts_model,
            ) from e

        audio = self._response_audio(response)
        if not audio:
            logger.warning(f"Gemini returned no audio ({self.tts_model})")

        return SpeechResult(
            success=bool(audio),
            audio=audio,
            sample_rate=OUTPUT_SAMPLE_RATE,
            voice_name=voice_name,
            model_used=self.tts_model,
            processed_at=datetime.now(UTC).isoformat(),
        )

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """Plain completion on the primary model (no fallback)."""
        try:
            response = await self._generate(kwargs.get("model", self.model), [prompt])
        except Exception as e:
            raise GenerationError(
                "COMPLETION_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e
        return self._response_text(response)

    # =========================================================================
    # Fallback / Retry
    # =========================================================================

    async def _with_fallback(
        self,
        operation: Callable[[str], Awaitable[T]],
        error_cls: type[ProviderError],
        failure_code: str,
    ) -> tuple[T, str, bool]:
        """
        Run operation on the primary model, then on the fallback if allowed.

        Returns:
            (result, model_used, fallback_triggered)
        """
        try:
            return await operation(self.model), self.model, False

        except FALLBACK_ERRORS as e:
            logger.warning(
                f"Primary model ({self.model}) failed with fallback error: {e}. "
                f"Attempting fallback..."
            )

            if self.fallback is None:
                raise error_cls(
                    "NO_FALLBACK",
                    self._get_user_friendly_error_message(e),
                    model=self.model,
                ) from e

            try:
                logger.info(f"Trying fallback model: {self.fallback}")
                result = await operation(self.fallback)
                logger.info("Fallback model succeeded")
                return result, self.fallback, True
            except Exception as fallback_error:
                logger.error(f"Fallback model also failed: {fallback_error}")
                raise error_cls(
                    "FALLBACK_FAILED",
                    f"{self._get_user_friendly_error_message(fallback_error)} "
                    f"Both the primary and the fallback model failed.",
                    primary_model=self.model,
                    fallback_model=self.fallback,
                ) from fallback_error

        except REJECT_IMMEDIATELY as e:
            logger.error(f"Authentication or input error: {e}", exc_info=True)
            raise error_cls(
                "AUTH_OR_INPUT_ERROR",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        except Exception as e:
            logger.error(f"Gemini call failed with unexpected error: {e}", exc_info=True)
            raise error_cls(
                failure_code,
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

    async def _generate(
        self,
        model: str,
        contents: Any,
        system_instruction: str | None = None,
        generation_config: dict[str, Any] | None = None,
    ) -> Any:
        """One SDK call (with retry on transient errors)."""
        client = self._get_client()
        if system_instruction:
            model_instance = client.GenerativeModel(
                model, system_instruction=system_instruction
            )
        else:
            model_instance = client.GenerativeModel(model)

        async def _api_call() -> Any:
            if generation_config is not None:
                return await asyncio.to_thread(
                    model_instance.generate_content,
                    contents,
                    generation_config=generation_config,
                )
            return await asyncio.to_thread(model_instance.generate_content, contents)

        return await retry_with_exponential_backoff(
            _api_call,
            max_retries=self.max_retries,
            initial_delay=self.retry_initial_delay,
            max_delay=30.0,
            exceptions=RETRYABLE_ERRORS,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_contents(self, turns: list[ChatTurn]) -> list[dict[str, Any]]:
        """ChatTurn list → Gemini contents (assistant turns use role 'model')."""
        return [
            {
                "role": "model" if turn.role == "assistant" else "user",
                "parts": [turn.text],
            }
            for turn in turns
        ]

    def _generation_config(self, response_schema: dict[str, Any]) -> dict[str, Any]:
        config: dict[str, Any] = {
            "response_mime_type": "application/json",
            "response_schema": response_schema,
        }
        if self.temperature is not None:
            config["temperature"] = self.temperature
        return config

    def _response_text(self, response: Any) -> str:
        """
        response.text, or "" when the SDK refuses to produce one.

        The SDK raises ValueError for blocked / empty candidates.
        """
        try:
            text = response.text
        except ValueError as e:
            logger.warning(f"Gemini response has no text: {e}")
            return ""
        return text or ""

    def _response_audio(self, response: Any) -> bytes:
        """First inline audio part of a google-genai response (b"" if none)."""
        for candidate in response.candidates or []:
            content = candidate.content
            for part in (content.parts if content is not None else None) or []:
                inline = part.inline_data
                if inline is not None and inline.data:
                    return inline.data
        return b""

    def _speech_error_message(self, error: Any) -> str:
        if error.code in (401, 403):
            return "Google API authentication failed. Check GOOGLE_API_KEY."
        if error.code == 429:
            return "The AI service quota was exceeded. Please try again shortly."
        if error.code == 404:
            return "The configured speech model was not found."
        if error.code is not None and error.code >= 500:
            return "The AI service is temporarily unavailable. Please try again shortly."
        return f"The AI service failed: {error.message or error}"

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """User-facing message for a provider failure."""
        if isinstance(error, Unauthenticated):
            return "Google API authentication failed. Check GOOGLE_API_KEY."
        if isinstance(error, PermissionDenied):
            return "The API key is not allowed to perform this request."
        if isinstance(error, ResourceExhausted):
            return "The AI service quota was exceeded. Please try again shortly."
        if isinstance(error, ServiceUnavailable):
            return "The AI service is temporarily unavailable. Please try again shortly."
        if isinstance(error, InvalidArgument):
            return "The request was rejected as invalid. Check the input format and size."
        if isinstance(error, NotFound):
            return "The configured AI model was not found."
        if isinstance(error, DeadlineExceeded):
            return "The AI service timed out. Please try again."

        error_str = str(error)
        lowered = error_str.lower()
        if "api_key" in lowered or "api key" in lowered:
            return "Check the API key configuration."
        if "quota" in lowered or "limit" in lowered:
            return "The AI service quota was exceeded. Please try again shortly."
        if "connection" in lowered:
            return "A network error occurred while contacting the AI service."
        if "timeout" in lowered:
            return "The AI service timed out. Please try again."

        return f"The AI service failed: {error_str}"

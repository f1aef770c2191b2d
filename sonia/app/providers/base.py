"""
LLM Provider abstract interface.

Every emotional-analysis feature goes through one of four calls:
- generate_json: system instruction + conversation → JSON matching a schema
- transcribe: audio bytes → text
- synthesize_speech: reply text → spoken PCM audio (voice calls)
- complete: plain prompt → text

Tracking metadata (recorded on every result):
- model_requested: model from config
- model_used: model actually answering (differs after a fallback)
- fallback_triggered, provider, prompt_hash
"""

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sonia.domain.prompts import PROMPT_VERSION

# =============================================================================
# Inputs
# =============================================================================


@dataclass
class ChatTurn:
    """One conversation turn sent to the provider."""
    role: str  # "user" | "assistant"
    text: str


def compute_hash(content: str) -> str:
    """SHA-256 hash (shortened) for prompt/response tracking."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


def hash_prompt(system_instruction: str | None, turns: list[ChatTurn]) -> str:
    """Hash of the full rendered prompt (template version + system + turns)."""
    conversation = "\n".join(f"{t.role}: {t.text}" for t in turns)
    rendered = f"v{PROMPT_VERSION}\n{system_instruction or ''}\n{conversation}"
    return compute_hash(rendered)


def parse_json_response(response_text: str | None) -> dict[str, Any] | None:
    """
    LLM response text → JSON object.

    Accepts a bare JSON object, a ```json fenced block, or JSON embedded in
    prose. Returns None when no object can be parsed.
    """
    if not response_text:
        return None

    text = response_text.strip()
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        text = text[start:end if end != -1 else None].strip()
    elif not text.startswith("{") and "{" in text:
        start = text.find("{")
        end = text.rfind("}") + 1
        text = text[start:end]

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None

    return data if isinstance(data, dict) else None


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class StructuredResult:
    """
    Result of a schema-constrained generation.

    success=False with data=None means the model answered but the answer
    could not be parsed; callers treat it as "no analysis".
    """
    success: bool
    data: dict[str, Any] | None = None
    raw_text: str | None = None

    model_requested: str | None = None
    model_used: str | None = None
    fallback_triggered: bool = False
    provider: str | None = None
    prompt_hash: str | None = None

    generated_at: str | None = None
    error_message: str | None = None


@dataclass
class TranscriptionResult:
    """Audio transcription result."""
    success: bool
    text: str | None = None

    model_requested: str | None = None
    model_used: str | None = None
    fallback_triggered: bool = False

    processed_at: str | None = None
    error_message: str | None = None
    error_code: str | None = None


@dataclass
class SpeechResult:
    """Synthesized speech: raw 16-bit mono PCM."""
    success: bool
    audio: bytes = b""
    sample_rate: int = 24000
    voice_name: str | None = None

    model_used: str | None = None
    processed_at: str | None = None

    @property
    def mime_type(self) -> str:
        return f"audio/pcm;rate={self.sample_rate}"


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderError(Exception):
    """Provider failure (network, auth, quota, ...)."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class GenerationError(ProviderError):
    """Text/JSON generation failed."""
    pass


class TranscriptionError(ProviderError):
    """Audio transcription failed."""
    pass


class SpeechError(ProviderError):
    """Speech synthesis failed."""
    pass


# =============================================================================
# Abstract Provider
# =============================================================================


class LLMProvider(ABC):
    """
    LLM Provider interface.

    Role: run prompts. Parsing into domain types happens in the services.
    """

    name: str = "base"
    model: str

    @abstractmethod
    async def generate_json(
        self,
        turns: list[ChatTurn],
        system_instruction: str,
        response_schema: dict[str, Any],
    ) -> StructuredResult:
        """
        Schema-constrained generation.

        Args:
            turns: conversation, oldest first, last turn is the user's input
            system_instruction: persona / task instruction
            response_schema: JSON schema the answer must follow

        Returns:
            StructuredResult (success=False if the answer was not valid JSON)

        Raises:
            GenerationError: the provider could not be reached or refused
        """
        ...

    @abstractmethod
    async def transcribe(self, audio_bytes: bytes, mime_type: str) -> TranscriptionResult:
        """
        Audio → text.

        Raises:
            TranscriptionError
        """
        ...

    @abstractmethod
    async def synthesize_speech(self, text: str, voice_name: str) -> SpeechResult:
        """
        Reply text → spoken audio in the given prebuilt voice.

        Raises:
            SpeechError
        """
        ...

    @abstractmethod
    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """Plain completion."""
        ...

"""
Voice Service: audio validation + turn-based voice call sessions.

Call session:
- audio turns are queued and processed strictly in arrival order
- each turn emits a `transcription` event, then a `response` event, then the
  spoken reply as ordered `audio` chunks (base64 16-bit PCM, 24 kHz)
- muted sessions ignore audio
- interrupt drops queued turns and the one in flight, including its unsent audio
- call turns live in memory only; they are not written to the chat document
"""

import asyncio
import base64
import binascii
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from sonia.app.providers.base import LLMProvider, ProviderError, SpeechError
from sonia.app.services.emotion import EmotionService
from sonia.core.ids import generate_message_id, now_ms
from sonia.domain.constants import (
    EMPTY_TRANSCRIPTION_PROMPT,
    INPUT_SAMPLE_RATE,
    LIVE_MODEL,
    OUTPUT_SAMPLE_RATE,
    SPEECH_CHUNK_BYTES,
    VOICE_NAME,
)
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.prompts import voice_system_prompt
from sonia.domain.schemas import Message, MessageRole, MessageType, UserContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_AUDIO_BYTES = 10 * 1024 * 1024

SendEvent = Callable[[dict[str, Any]], Awaitable[None]]


def validate_audio(audio: bytes, max_bytes: int = DEFAULT_MAX_AUDIO_BYTES) -> bytes:
    """
    Raises:
        WellnessError: EMPTY_AUDIO, AUDIO_TOO_LARGE
    """
    if not audio:
        raise WellnessError(ErrorCodes.EMPTY_AUDIO, "Audio is empty")
    if len(audio) > max_bytes:
        raise WellnessError(
            ErrorCodes.AUDIO_TOO_LARGE,
            "Audio is too large",
            size=len(audio),
            max_bytes=max_bytes,
        )
    return audio


def decode_audio(data: str | None, max_bytes: int = DEFAULT_MAX_AUDIO_BYTES) -> bytes:
    """
    base64 payload → validated audio bytes.

    Raises:
        WellnessError: INVALID_AUDIO, EMPTY_AUDIO, AUDIO_TOO_LARGE
    """
    try:
        audio = base64.b64decode(data or "", validate=True)
    except (binascii.Error, ValueError) as e:
        raise WellnessError(ErrorCodes.INVALID_AUDIO, "Audio is not valid base64") from e
    return validate_audio(audio, max_bytes)


def split_audio(audio: bytes, chunk_bytes: int = SPEECH_CHUNK_BYTES) -> list[bytes]:
    """PCM bytes → playback chunks in order (chunk size kept even for 16-bit samples)."""
    size = max(2, chunk_bytes - chunk_bytes % 2)
    return [audio[i:i + size] for i in range(0, len(audio), size)]


def format_duration(seconds: float) -> str:
    """Elapsed seconds → m:ss (75 → "1:15")."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def voice_call_config(
    context: UserContext,
    model: str = LIVE_MODEL,
    voice_name: str = VOICE_NAME,
) -> dict[str, Any]:
    """Realtime call configuration (for clients that connect to the live API)."""
    return {
        "model": model,
        "responseModalities": ["AUDIO"],
        "voiceName": voice_name,
        "inputSampleRate": INPUT_SAMPLE_RATE,
        "outputSampleRate": OUTPUT_SAMPLE_RATE,
        "systemInstruction": voice_system_prompt(
            context.role.value, context.language.value
        ),
    }


@dataclass
class VoiceTurn:
    seq: int
    audio: bytes
    mime_type: str


class VoiceCallSession:
    """
    One voice call.

    Usage:
        session = VoiceCallSession(provider, emotion, context)
        worker = asyncio.create_task(session.run(websocket.send_json))
        session.submit_audio(payload, "audio/webm")
        # → transcription, response, audio (chunk 0..n) per turn
        ...
        duration = session.end()
        await worker
    """

    def __init__(
        self,
        provider: LLMProvider,
        emotion: EmotionService,
        context: UserContext,
        max_audio_bytes: int = DEFAULT_MAX_AUDIO_BYTES,
        speak: bool = True,
        voice_name: str = VOICE_NAME,
        chunk_bytes: int = SPEECH_CHUNK_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.emotion = emotion
        self.context = context
        self.max_audio_bytes = max_audio_bytes
        self.speak = speak
        self.voice_name = voice_name
        self.chunk_bytes = chunk_bytes
        self.clock = clock

        self.muted = False
        self.ended = False
        self.started_at = clock()
        self.history: list[Message] = []

        self._queue: asyncio.Queue[VoiceTurn | None] = asyncio.Queue()
        self._seq = 0
        self._current: asyncio.Task[None] | None = None

    # =========================================================================
    # Client events
    # =========================================================================

    def submit_audio(self, data: str | None, mime_type: str | None = None) -> int | None:
        """
        Queue one audio turn.

        Returns:
            turn sequence number, or None when muted / ended

        Raises:
            WellnessError: INVALID_AUDIO, EMPTY_AUDIO, AUDIO_TOO_LARGE
        """
        if self.muted or self.ended:
            return None

        audio = decode_audio(data, self.max_audio_bytes)
        self._seq += 1
        self._queue.put_nowait(
            VoiceTurn(seq=self._seq, audio=audio, mime_type=mime_type or "audio/webm")
        )
        return self._seq

    def mute(self) -> None:
        self.muted = True

    def unmute(self) -> None:
        self.muted = False

    def interrupt(self) -> int:
        """
        Drop every queued turn and cancel the one in flight (its unsent
        audio chunks are dropped with it).

        Returns:
            number of dropped turns
        """
        dropped = 0
        end_requested = False
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is None:
                end_requested = True
            else:
                dropped += 1
        if end_requested:
            self._queue.put_nowait(None)

        if self._current is not None and not self._current.done():
            self._current.cancel()
            dropped += 1

        if dropped:
            logger.info(f"Voice call interrupted, {dropped} turn(s) dropped")
        return dropped

    def end(self) -> str:
        """Stop the call. Pending turns are dropped. Returns the duration (m:ss)."""
        if not self.ended:
            self.ended = True
            self.interrupt()
            self._queue.put_nowait(None)
        return self.duration()

    def duration(self) -> str:
        return format_duration(self.clock() - self.started_at)

    # =========================================================================
    # Worker
    # =========================================================================

    async def run(self, send: SendEvent) -> None:
        """Process turns in arrival order until the call ends."""
        while True:
            turn = await self._queue.get()
            if turn is None:
                break

            task = asyncio.create_task(self._process(turn, send))
            self._current = task
            await asyncio.wait({task})
            self._current = None

            if task.cancelled():
                logger.debug(f"Voice turn {turn.seq} cancelled")
                continue
            error = task.exception()
            if error is not None:
                raise error

    async def _process(self, turn: VoiceTurn, send: SendEvent) -> None:
        try:
            transcription = await self.provider.transcribe(turn.audio, turn.mime_type)
            text = (transcription.text or "").strip()
            await send({"type": "transcription", "seq": turn.seq, "text": text})

            user_text = text or EMPTY_TRANSCRIPTION_PROMPT
            emotion = await self.emotion.respond(
                self.history, user_text, self.context, voice=True
            )
        except ProviderError as e:
            logger.warning(f"Voice turn {turn.seq} failed: {e}")
            await send(
                {"type": "error", "seq": turn.seq, "code": e.code, "message": e.message}
            )
            return

        self._remember(MessageRole.USER, user_text)
        if emotion is None:
            await send({"type": "response", "seq": turn.seq, "text": None, "emotion": None})
            return

        self._remember(MessageRole.ASSISTANT, emotion.response or "")
        await send(
            {
                "type": "response",
                "seq": turn.seq,
                "text": emotion.response,
                "emotion": {
                    "label": emotion.label.value,
                    "confidence": emotion.confidence,
                    "intensity": emotion.intensity,
                    "activities": list(emotion.activities),
                },
            }
        )
        if self.speak and emotion.response:
            await self._speak(turn.seq, emotion.response, send)

    async def _speak(self, seq: int, text: str, send: SendEvent) -> None:
        """Synthesize the reply and send it as ordered audio chunks."""
        try:
            speech = await self.provider.synthesize_speech(text, self.voice_name)
        except SpeechError as e:
            logger.warning(f"Voice turn {seq} speech failed: {e}")
            await send({"type": "error", "seq": seq, "code": e.code, "message": e.message})
            return

        if not speech.audio:
            logger.warning(f"Voice turn {seq} produced no audio")
            return

        chunks = split_audio(speech.audio, self.chunk_bytes)
        for index, chunk in enumerate(chunks):
            await send(
                {
                    "type": "audio",
                    "seq": seq,
                    "chunk": index,
                    "last": index == len(chunks) - 1,
                    "mime_type": speech.mime_type,
                    "data": base64.b64encode(chunk).decode("ascii"),
                }
            )
            # interrupt point between chunks
            await asyncio.sleep(0)

    def _remember(self, role: MessageRole, content: str) -> None:
        ts = now_ms()
        self.history.append(
            Message(
                id=generate_message_id(ts),
                role=role,
                content=content,
                timestamp=ts,
                type=MessageType.VOICE,
            )
        )

"""
Emotion Service: LLM calls that produce EmotionData.

- respond: chat/voice turn → empathetic response + detected emotion
- analyze_journal: journal text → emotion (Neutral fallback)

Services never parse raw LLM text themselves; StructuredResult.data is the
only input.
"""

import logging

from sonia.app.providers.base import ChatTurn, LLMProvider
from sonia.domain.constants import (
    DEFAULT_HISTORY_WINDOW,
    EMOTION_SCHEMA,
    FALLBACK_EMOTION_CONFIDENCE,
    FALLBACK_EMOTION_INTENSITY,
    FALLBACK_EMOTION_LABEL,
)
from sonia.domain.prompts import (
    JOURNAL_SYSTEM_INSTRUCTION,
    chat_system_prompt,
    journal_prompt,
    voice_system_prompt,
)
from sonia.domain.schemas import EmotionData, EmotionLabel, Message, UserContext

logger = logging.getLogger(__name__)


def fallback_emotion() -> EmotionData:
    """Emotion recorded when the analysis returns nothing."""
    return EmotionData(
        label=EmotionLabel.normalize(FALLBACK_EMOTION_LABEL),
        confidence=FALLBACK_EMOTION_CONFIDENCE,
        intensity=FALLBACK_EMOTION_INTENSITY,
    )


def history_turns(history: list[Message], window: int) -> list[ChatTurn]:
    """Last `window` messages → provider turns (oldest first)."""
    if window <= 0:
        return []
    return [
        ChatTurn(role=m.role.value, text=m.content)
        for m in history[-window:]
        if m.content
    ]


class EmotionService:
    """
    Emotion detection + response generation.

    Usage:
        service = EmotionService(provider, history_window=10)
        emotion = await service.respond(history, context)
    """

    def __init__(self, provider: LLMProvider, history_window: int = DEFAULT_HISTORY_WINDOW):
        self.provider = provider
        self.history_window = history_window

    async def respond(
        self,
        history: list[Message],
        text: str,
        context: UserContext,
        voice: bool = False,
    ) -> EmotionData | None:
        """
        Answer one user turn.

        Args:
            history: earlier conversation, oldest first (without `text`)
            text: the user input to answer
            context: life context + language for the system prompt
            voice: use the concise voice-call prompt

        Returns:
            EmotionData with response/activities, or None if the model
            output could not be parsed

        Raises:
            ProviderError: provider unreachable or rejected the request
        """
        turns = history_turns(history, self.history_window)
        turns.append(ChatTurn(role="user", text=text))

        builder = voice_system_prompt if voice else chat_system_prompt
        system_instruction = builder(context.role.value, context.language.value)

        result = await self.provider.generate_json(turns, system_instruction, EMOTION_SCHEMA)
        if not result.success or not result.data:
            logger.warning(
                f"Chat analysis produced no usable output ({result.model_used})"
            )
            return None

        emotion = EmotionData.from_dict(result.data)
        if emotion.response is None:
            emotion.response = ""
        return emotion

    async def analyze_journal(self, text: str, context: UserContext) -> EmotionData:
        """
        Journal text → emotion (never None).

        Raises:
            ProviderError: provider unreachable or rejected the request
        """
        prompt = journal_prompt(text, context.role.value, context.language.value)
        result = await self.provider.generate_json(
            [ChatTurn(role="user", text=prompt)],
            JOURNAL_SYSTEM_INSTRUCTION,
            EMOTION_SCHEMA,
        )
        if not result.success or not result.data:
            logger.info("Journal analysis empty; using the Neutral fallback")
            return fallback_emotion()

        return EmotionData.from_dict(result.data)

"""
Chat Service: persisted conversation with Sonia.

Rules:
- The user message is persisted before the LLM is called
- Assistant messages carry the detected emotion (label, confidence,
  intensity, activities); the response text becomes the content
- Messages are append-only
"""

import logging

from sonia.app.services.emotion import EmotionService
from sonia.core.ids import generate_message_id, now_ms
from sonia.core.store import UserStore
from sonia.domain.constants import EMPTY_TRANSCRIPTION_PROMPT, VOICE_MESSAGE_PLACEHOLDER
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.schemas import EmotionData, Message, MessageRole, MessageType

logger = logging.getLogger(__name__)

# Client-side role names → stored role
ROLE_ALIASES = {
    "user": MessageRole.USER,
    "assistant": MessageRole.ASSISTANT,
    "ai": MessageRole.ASSISTANT,
}


def normalize_role(role: str | None) -> MessageRole:
    """
    Raises:
        WellnessError: INVALID_ROLE
    """
    resolved = ROLE_ALIASES.get((role or "").strip().lower())
    if resolved is None:
        raise WellnessError(ErrorCodes.INVALID_ROLE, "Invalid role", role=role)
    return resolved


class ChatService:
    """
    Usage:
        chat = ChatService(store, emotion_service)
        user_msg, reply = await chat.send_text(user_id, "I feel tired")
    """

    def __init__(self, store: UserStore, emotion: EmotionService):
        self.store = store
        self.emotion = emotion

    def save(self, user_id: str, role: str | None, text: str | None) -> Message:
        """Append a raw message (no LLM call)."""
        message = self._new_message(normalize_role(role), text or "")
        return self.store.append_message(user_id, message)

    def history(self, user_id: str) -> list[Message]:
        return self.store.list_messages(user_id)

    async def send_text(self, user_id: str, text: str | None) -> tuple[Message, Message | None]:
        """
        Persist the user message, then answer it.

        Returns:
            (user_message, assistant_message or None when the model output
            was unusable)

        Raises:
            WellnessError: EMPTY_MESSAGE
            ProviderError: provider failure (user message stays persisted)
        """
        text = (text or "").strip()
        if not text:
            raise WellnessError(ErrorCodes.EMPTY_MESSAGE, "Message is empty")

        history = self.store.list_messages(user_id)
        user_message = self.store.append_message(
            user_id, self._new_message(MessageRole.USER, text)
        )
        reply = await self._reply(user_id, history, text)
        return user_message, reply

    async def send_voice(
        self, user_id: str, transcription: str, audio_url: str | None = None
    ) -> tuple[Message, Message | None]:
        """
        Persist a transcribed voice message, then answer it.

        An empty transcription is stored as "Voice Message" and answered as "...".
        """
        transcription = (transcription or "").strip()
        history = self.store.list_messages(user_id)
        user_message = self.store.append_message(
            user_id,
            self._new_message(
                MessageRole.USER,
                transcription or VOICE_MESSAGE_PLACEHOLDER,
                message_type=MessageType.VOICE,
                audio_url=audio_url,
            ),
        )
        reply = await self._reply(
            user_id, history, transcription or EMPTY_TRANSCRIPTION_PROMPT
        )
        return user_message, reply

    async def _reply(
        self, user_id: str, history: list[Message], text: str
    ) -> Message | None:
        context = self.store.get_context(user_id)
        emotion = await self.emotion.respond(history, text, context)
        if emotion is None:
            return None

        assistant = self._new_message(
            MessageRole.ASSISTANT,
            emotion.response or "",
            emotion=EmotionData(
                label=emotion.label,
                confidence=emotion.confidence,
                intensity=emotion.intensity,
                activities=list(emotion.activities),
            ),
        )
        self.store.append_message(user_id, assistant)
        logger.info(
            f"Assistant replied to {user_id} ({emotion.label.value}, {emotion.intensity:.0f}%)"
        )
        return assistant

    @staticmethod
    def _new_message(
        role: MessageRole,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        emotion: EmotionData | None = None,
        audio_url: str | None = None,
    ) -> Message:
        ts = now_ms()
        return Message(
            id=generate_message_id(ts),
            role=role,
            content=content,
            timestamp=ts,
            type=message_type,
            emotion=emotion,
            audio_url=audio_url,
        )

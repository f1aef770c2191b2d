"""Domain layer: errors, schemas, constants and prompts."""

from .errors import ErrorCodes, WellnessError
from .schemas import (
    EmotionData,
    EmotionLabel,
    HistoryEntry,
    JournalEntry,
    Language,
    LifeRole,
    Message,
    MessageRole,
    MessageType,
    UserContext,
    UserRecord,
    WellnessReport,
)

__all__ = [
    "ErrorCodes",
    "WellnessError",
    "EmotionData",
    "EmotionLabel",
    "HistoryEntry",
    "JournalEntry",
    "Language",
    "LifeRole",
    "Message",
    "MessageRole",
    "MessageType",
    "UserContext",
    "UserRecord",
    "WellnessReport",
]

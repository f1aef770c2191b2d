"""
Data schemas for the wellness service.

Rules:
- Field names in to_dict() match the JSON the client already speaks (camelCase
  where the client uses it: audioUrl, stabilityScore, keyThemes)
- Timestamps are epoch milliseconds (int)
- LLM values are clamped: confidence 0..1, intensity 0..100
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Enums
# =============================================================================


class EmotionLabel(str, Enum):
    """Emotion labels the LLM is asked to choose from."""
    HAPPY = "Happy"
    SAD = "Sad"
    STRESS = "Stress"
    ANXIETY = "Anxiety"
    ANGER = "Anger"
    BURNOUT = "Burnout"
    NEUTRAL = "Neutral"
    EXCITED = "Excited"

    @classmethod
    def normalize(cls, value: Any) -> "EmotionLabel":
        """
        LLM label → EmotionLabel.

        Case-insensitive. Unknown or missing labels become NEUTRAL.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for label in cls:
            if label.value.lower() == text:
                return label
        return cls.NEUTRAL


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class LifeRole(str, Enum):
    """Life context the user selects in settings."""
    STUDENT = "Student"
    OFFICE_WORKER = "Office worker"
    PERSONAL_LIFE = "Personal life"


class Language(str, Enum):
    ENGLISH = "English"
    HINDI = "Hindi"


def _clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return max(low, min(high, number))


# =============================================================================
# Emotion
# =============================================================================


@dataclass
class EmotionData:
    """Emotion detected for one chat turn or journal entry."""
    label: EmotionLabel
    confidence: float
    intensity: float  # 0-100
    response: str | None = None
    activities: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionData":
        activities = data.get("activities") or []
        if not isinstance(activities, list):
            activities = [str(activities)]
        response = data.get("response")
        return cls(
            label=EmotionLabel.normalize(data.get("label")),
            confidence=_clamp(data.get("confidence"), 0.0, 1.0, 0.0),
            intensity=_clamp(data.get("intensity"), 0.0, 100.0, 0.0),
            response=str(response) if response is not None else None,
            activities=[str(a) for a in activities],
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "label": self.label.value,
            "confidence": self.confidence,
            "intensity": self.intensity,
        }
        if self.response is not None:
            result["response"] = self.response
        if self.activities:
            result["activities"] = list(self.activities)
        return result


# =============================================================================
# Chat / Journal
# =============================================================================


@dataclass
class Message:
    """One chat message (user or assistant)."""
    id: str
    role: MessageRole
    content: str
    timestamp: int
    type: MessageType = MessageType.TEXT
    emotion: EmotionData | None = None
    audio_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        emotion = data.get("emotion")
        return cls(
            id=str(data["id"]),
            role=MessageRole(data["role"]),
            content=data.get("content", ""),
            timestamp=int(data["timestamp"]),
            type=MessageType(data.get("type", MessageType.TEXT.value)),
            emotion=EmotionData.from_dict(emotion) if emotion else None,
            audio_url=data.get("audioUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "type": self.type.value,
        }
        if self.emotion is not None:
            result["emotion"] = self.emotion.to_dict()
        if self.audio_url is not None:
            result["audioUrl"] = self.audio_url
        return result


@dataclass
class JournalEntry:
    """Journal entry. Emotion is always present (fallback: Neutral)."""
    id: str
    title: str
    content: str
    timestamp: int
    emotion: EmotionData

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JournalEntry":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            content=data.get("content", ""),
            timestamp=int(data["timestamp"]),
            emotion=EmotionData.from_dict(data.get("emotion") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "timestamp": self.timestamp,
            "emotion": self.emotion.to_dict(),
        }


# =============================================================================
# User
# =============================================================================


@dataclass
class UserContext:
    """Life context + preferred language fed into every prompt."""
    role: LifeRole = LifeRole.OFFICE_WORKER
    language: Language = Language.ENGLISH

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UserContext":
        data = data or {}
        return cls(
            role=LifeRole(data.get("role", LifeRole.OFFICE_WORKER.value)),
            language=Language(data.get("language", Language.ENGLISH.value)),
        )

    def merged(self, partial: dict[str, Any]) -> "UserContext":
        """
        Partial update → new context.

        Raises:
            ValueError: unknown role or language
        """
        role = partial.get("role")
        language = partial.get("language")
        return UserContext(
            role=LifeRole(role) if role is not None else self.role,
            language=Language(language) if language is not None else self.language,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "language": self.language.value}


@dataclass
class UserRecord:
    """Stored user profile."""
    user_id: str
    name: str
    email: str
    password_hash: str
    created_at: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserRecord":
        return cls(
            user_id=data["user_id"],
            name=data.get("name") or "",
            email=data["email"],
            password_hash=data["password_hash"],
            created_at=data["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
        }

    def to_public_dict(self) -> dict[str, Any]:
        """Profile without the password hash."""
        return {
            "userId": self.user_id,
            "name": self.name,
            "email": self.email,
            "createdAt": self.created_at,
        }


# =============================================================================
# Analytics / Reports
# =============================================================================


@dataclass
class HistoryEntry:
    """Emotions recorded on one calendar date."""
    date: str  # YYYY-MM-DD
    emotions: list[EmotionData] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "emotions": [e.to_dict() for e in self.emotions],
        }


@dataclass
class WellnessReport:
    """LLM-generated wellness report."""
    summary: str
    stability_score: float
    key_themes: list[str] = field(default_factory=list)
    recommendation: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WellnessReport":
        themes = data.get("keyThemes") or []
        if not isinstance(themes, list):
            themes = [str(themes)]
        return cls(
            summary=str(data.get("summary", "")),
            stability_score=_clamp(data.get("stabilityScore"), 0.0, 100.0, 0.0),
            key_themes=[str(t) for t in themes],
            recommendation=str(data.get("recommendation", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "stabilityScore": self.stability_score,
            "keyThemes": list(self.key_themes),
            "recommendation": self.recommendation,
        }

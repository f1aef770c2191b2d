"""
Wellness analytics: derived aggregations over stored emotions.

Pure functions, no I/O. Inputs are chat messages and journal entries as
returned by the store; only messages with an emotion are counted as data.

Rounding is half-up (12.5 → 13), not Python's banker's rounding.
"""

import math
from datetime import UTC, datetime
from typing import Any

from sonia.domain.constants import MAX_ACTIVE_NODES, MAX_EQ, WELLNESS_MILESTONES
from sonia.domain.schemas import EmotionData, HistoryEntry, JournalEntry, Message

SOURCE_CHAT = "Chat"
SOURCE_JOURNAL = "Journal"


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def to_date(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)


def analyzed_messages(messages: list[Message]) -> list[Message]:
    return [m for m in messages if m.emotion is not None]


# =============================================================================
# Dashboard
# =============================================================================


def emotion_distribution(messages: list[Message]) -> list[dict[str, Any]]:
    """
    label → count, in first-seen order.

    share is the percentage of all messages (analyzed or not).
    """
    counts: dict[str, int] = {}
    for message in analyzed_messages(messages):
        label = message.emotion.label.value  # type: ignore[union-attr]
        counts[label] = counts.get(label, 0) + 1

    total = len(messages)
    return [
        {
            "name": label,
            "value": count,
            "share": round_half_up(count / total * 100, 1) if total else 0.0,
        }
        for label, count in counts.items()
    ]


def chat_timeline(messages: list[Message]) -> list[dict[str, Any]]:
    """Analyzed chat messages as (timestamp, intensity, label), oldest first."""
    points = [
        {
            "timestamp": m.timestamp,
            "intensity": m.emotion.intensity,  # type: ignore[union-attr]
            "label": m.emotion.label.value,  # type: ignore[union-attr]
        }
        for m in analyzed_messages(messages)
    ]
    return sorted(points, key=lambda p: p["timestamp"])


def dashboard_summary(messages: list[Message]) -> dict[str, Any]:
    return {
        "totalMessages": len(messages),
        "analyzedMessages": len(analyzed_messages(messages)),
        "distribution": emotion_distribution(messages),
        "timeline": chat_timeline(messages),
    }


# =============================================================================
# Wellness Path
# =============================================================================


def path_timeline(
    messages: list[Message], entries: list[JournalEntry]
) -> list[dict[str, Any]]:
    """Chat + journal emotions on one time axis, tagged with their source."""
    points: list[dict[str, Any]] = [
        {
            "timestamp": m.timestamp,
            "intensity": m.emotion.intensity,  # type: ignore[union-attr]
            "label": m.emotion.label.value,  # type: ignore[union-attr]
            "source": SOURCE_CHAT,
        }
        for m in analyzed_messages(messages)
    ]
    points.extend(
        {
            "timestamp": e.timestamp,
            "intensity": e.emotion.intensity,
            "label": e.emotion.label.value,
            "source": SOURCE_JOURNAL,
        }
        for e in entries
    )
    return sorted(points, key=lambda p: p["timestamp"])


def all_emotions(messages: list[Message], entries: list[JournalEntry]) -> list[EmotionData]:
    emotions = [m.emotion for m in analyzed_messages(messages)]
    emotions.extend(e.emotion for e in entries)
    return emotions  # type: ignore[return-value]


def path_metrics(messages: list[Message], entries: list[JournalEntry]) -> dict[str, Any]:
    """
    Progress metrics over every recorded emotion (n):

        stability    = 100 - mean(|50 - intensity|)
        eq           = min(10, n/5 + stability/20), one decimal
        growth       = min(100, n/20 * 100)
        active_nodes = min(4, floor(n/4) + 1)

    All zero without data.
    """
    emotions = all_emotions(messages, entries)
    n = len(emotions)
    if n == 0:
        return {"eq": 0.0, "stability": 0, "growth": 0, "activeNodes": 0}

    stability = 100 - sum(abs(50 - e.intensity) for e in emotions) / n
    eq = min(MAX_EQ, n / 5 + stability / 20)
    growth = min(100.0, n / 20 * 100)
    active_nodes = min(MAX_ACTIVE_NODES, n // 4 + 1)

    return {
        "eq": round_half_up(eq, 1),
        "stability": int(round_half_up(stability)),
        "growth": int(round_half_up(growth)),
        "activeNodes": active_nodes,
    }


def milestones(active_nodes: int) -> list[dict[str, Any]]:
    """
    The four path milestones with their state.

    A milestone is reached once active_nodes >= its number; the highest
    reached one is "current", the ones before it "completed".
    """
    result = []
    for milestone in WELLNESS_MILESTONES:
        number = milestone["milestone"]
        if number < active_nodes:
            status = "completed"
        elif number == active_nodes:
            status = "current"
        else:
            status = "locked"
        result.append(
            {
                **milestone,
                "reached": active_nodes >= number,
                "status": status,
            }
        )
    return result


def wellness_path(messages: list[Message], entries: list[JournalEntry]) -> dict[str, Any]:
    metrics = path_metrics(messages, entries)
    return {
        "timeline": path_timeline(messages, entries),
        "metrics": metrics,
        "milestones": milestones(metrics["activeNodes"]),
    }


# =============================================================================
# History
# =============================================================================


def history_by_date(
    messages: list[Message], entries: list[JournalEntry]
) -> list[HistoryEntry]:
    """Emotions grouped per calendar date (UTC), oldest date first."""
    dated: list[tuple[int, EmotionData]] = [
        (m.timestamp, m.emotion) for m in analyzed_messages(messages)  # type: ignore[misc]
    ]
    dated.extend((e.timestamp, e.emotion) for e in entries)
    dated.sort(key=lambda item: item[0])

    grouped: dict[str, HistoryEntry] = {}
    for timestamp, emotion in dated:
        day = to_date(timestamp).strftime("%Y-%m-%d")
        grouped.setdefault(day, HistoryEntry(date=day)).emotions.append(emotion)
    return list(grouped.values())

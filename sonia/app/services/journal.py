"""
Journal Service: analyzed journal entries.

Every stored entry carries an emotion; an empty analysis falls back to
Neutral (confidence 1, intensity 50).
"""

import logging
from datetime import UTC, datetime

from sonia.app.services.emotion import EmotionService
from sonia.core.ids import generate_entry_id, now_ms
from sonia.core.store import UserStore
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.schemas import JournalEntry

logger = logging.getLogger(__name__)


def default_title(timestamp_ms: int) -> str:
    """Entry M/D/YYYY (UTC date, no zero padding)."""
    day = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return f"Entry {day.month}/{day.day}/{day.year}"


class JournalService:
    def __init__(self, store: UserStore, emotion: EmotionService):
        self.store = store
        self.emotion = emotion

    async def add_entry(
        self, user_id: str, content: str | None, title: str | None = None
    ) -> JournalEntry:
        """
        Analyze and store a journal entry.

        Raises:
            WellnessError: EMPTY_ENTRY
            ProviderError: provider failure (nothing is stored)
        """
        content = (content or "").strip()
        if not content:
            raise WellnessError(ErrorCodes.EMPTY_ENTRY, "Journal entry is empty")

        context = self.store.get_context(user_id)
        emotion = await self.emotion.analyze_journal(content, context)

        ts = now_ms()
        entry = JournalEntry(
            id=generate_entry_id(ts),
            title=(title or "").strip() or default_title(ts),
            content=content,
            timestamp=ts,
            emotion=emotion,
        )
        self.store.add_journal_entry(user_id, entry)
        logger.info(f"Journal entry {entry.id} stored for {user_id} ({emotion.label.value})")
        return entry

    def list_entries(self, user_id: str) -> list[JournalEntry]:
        """Newest first."""
        return self.store.list_journal_entries(user_id)

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        """
        Raises:
            WellnessError: ENTRY_NOT_FOUND
        """
        self.store.delete_journal_entry(user_id, entry_id)
        logger.info(f"Journal entry {entry_id} deleted for {user_id}")

"""
Report Service: LLM wellness report from the emotion trajectory.

Scopes:
- dashboard: chat messages only
- path: journal entries + chat messages

Trajectory line format:
    [Journal] Mon Oct 19 2026: Sad (70%)
    [Chat] Tue Oct 20 2026: Happy (40%)
"""

import logging

from sonia.app.providers.base import ChatTurn, LLMProvider
from sonia.app.services.analytics import to_date
from sonia.core.store import UserStore
from sonia.domain.constants import MIN_REPORT_ITEMS, REPORT_SCHEMA
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.prompts import REPORT_SYSTEM_INSTRUCTION, report_prompt
from sonia.domain.schemas import EmotionData, JournalEntry, Message, WellnessReport

logger = logging.getLogger(__name__)

SCOPE_DASHBOARD = "dashboard"
SCOPE_PATH = "path"
REPORT_SCOPES = (SCOPE_DASHBOARD, SCOPE_PATH)


def _format_number(value: float) -> str:
    """70.0 → "70", 70.5 → "70.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)


def trajectory_line(source: str, timestamp_ms: int, emotion: EmotionData) -> str:
    day = to_date(timestamp_ms).strftime("%a %b %d %Y")
    return f"[{source}] {day}: {emotion.label.value} ({_format_number(emotion.intensity)}%)"


def build_trajectory(entries: list[JournalEntry], messages: list[Message]) -> str:
    """Journal lines first, then chat lines (only messages with an emotion)."""
    lines = [trajectory_line("Journal", e.timestamp, e.emotion) for e in entries]
    lines.extend(
        trajectory_line("Chat", m.timestamp, m.emotion)
        for m in messages
        if m.emotion is not None
    )
    return "\n".join(lines)


class ReportService:
    """
    Usage:
        reports = ReportService(store, provider)
        report = await reports.generate(user_id, scope="path")
    """

    def __init__(self, store: UserStore, provider: LLMProvider):
        self.store = store
        self.provider = provider

    async def generate(self, user_id: str, scope: str = SCOPE_PATH) -> WellnessReport:
        """
        Raises:
            WellnessError: INVALID_SCOPE, INSUFFICIENT_DATA, REPORT_FAILED
            ProviderError: provider failure
        """
        if scope not in REPORT_SCOPES:
            raise WellnessError(
                ErrorCodes.INVALID_SCOPE,
                f"Unknown report scope (expected one of {', '.join(REPORT_SCOPES)})",
                scope=scope,
            )

        messages = self.store.list_messages(user_id)
        entries = self.store.list_journal_entries(user_id) if scope == SCOPE_PATH else []

        item_count = len(messages) + len(entries)
        if item_count < MIN_REPORT_ITEMS:
            raise WellnessError(
                ErrorCodes.INSUFFICIENT_DATA,
                f"At least {MIN_REPORT_ITEMS} messages or entries are needed for a report",
                items=item_count,
            )

        context = self.store.get_context(user_id)
        prompt = report_prompt(build_trajectory(entries, messages), context.role.value)
        result = await self.provider.generate_json(
            [ChatTurn(role="user", text=prompt)],
            REPORT_SYSTEM_INSTRUCTION,
            REPORT_SCHEMA,
        )

        if not result.success or not result.data:
            raise WellnessError(
                ErrorCodes.REPORT_FAILED,
                "The wellness report could not be generated. Please try again.",
                model=result.model_used,
            )

        logger.info(f"Wellness report generated for {user_id} ({scope}, {item_count} items)")
        return WellnessReport.from_dict(result.data)

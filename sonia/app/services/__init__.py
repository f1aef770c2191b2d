"""
Application Services.

Role:
- auth: signup/login, JWT issue/verify
- emotion: LLM emotion detection + empathetic response
- chat: persisted conversation (text and voice messages)
- journal: analyzed journal entries
- analytics: dashboard / wellness path aggregations
- report: LLM wellness report
- voice: voice call sessions
"""

from .auth import AuthService
from .chat import ChatService
from .emotion import EmotionService
from .journal import JournalService
from .report import ReportService
from .voice import VoiceCallSession

__all__ = [
    "AuthService",
    "ChatService",
    "EmotionService",
    "JournalService",
    "ReportService",
    "VoiceCallSession",
]

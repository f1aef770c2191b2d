"""
FastAPI Routes.

API routes (REST + one WebSocket for voice calls).
"""

from . import auth, chat, context, journal, voice, wellness

__all__ = ["auth", "chat", "context", "journal", "voice", "wellness"]

"""
Core layer: persistence and process-wide plumbing.

Role:
- user documents (atomic JSON writes, per-user locks)
- id generation
- logging configuration
"""

from .ids import (
    email_key,
    generate_entry_id,
    generate_message_id,
    generate_user_id,
    now_ms,
)
from .logging import configure_logging, mask_sensitive_data
from .store import UserStore, atomic_write_json, atomic_write_json_exclusive

__all__ = [
    # ids
    "email_key",
    "generate_entry_id",
    "generate_message_id",
    "generate_user_id",
    "now_ms",
    # logging
    "configure_logging",
    "mask_sensitive_data",
    # store
    "UserStore",
    "atomic_write_json",
    "atomic_write_json_exclusive",
]

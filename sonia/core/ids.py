"""
ID generation: user_id, message_id, entry_id, email_key.

Rules:
- user_id is never modified once issued
- message/entry ids sort by creation time (ms prefix)
"""

import hashlib
import re
import time
import uuid

USER_ID_PATTERN = re.compile(r"^USR-[0-9A-F]{12}$")


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_user_id() -> str:
    """
    Generate a user ID.

    Format: USR-{uuid[:12]}
    """
    return f"USR-{uuid.uuid4().hex[:12].upper()}"


def is_valid_user_id(user_id: str) -> bool:
    """user_id doubles as a directory name, so only the issued format is accepted."""
    return bool(USER_ID_PATTERN.match(user_id or ""))


def generate_message_id(timestamp_ms: int | None = None) -> str:
    """
    Message ID.

    Format: {timestamp_ms}-{uuid[:6]}
    Two messages created in the same millisecond still get distinct ids.
    """
    ts = timestamp_ms if timestamp_ms is not None else now_ms()
    return f"{ts}-{uuid.uuid4().hex[:6]}"


def generate_entry_id(timestamp_ms: int | None = None) -> str:
    """Journal entry ID (same format as message ids)."""
    return generate_message_id(timestamp_ms)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def email_key(email: str) -> str:
    """
    Filename-safe key for an email address.

    Deterministic: the same (normalized) email → the same key.
    """
    digest = hashlib.sha256(normalize_email(email).encode()).hexdigest()
    return digest[:24]

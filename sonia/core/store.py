"""
User document store: profile.json, chat.json, journal.json, context.json

Rules:
- One directory per user, one JSON document per concern
- Atomic write: temp → fsync → rename (no half-written documents)
- Read-modify-write always runs under the per-user FileLock
- Chat messages are append-only
- Email index created with O_EXCL: two signups for one email cannot both win

Filesystem durability (best-effort):
- fsync failures are logged as warnings and do not fail the write
"""

import json
import logging
import os
import tempfile
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from sonia.core.ids import (
    email_key,
    generate_user_id,
    is_valid_user_id,
    normalize_email,
)
from sonia.domain.constants import (
    CHAT_FILENAME,
    CONTEXT_FILENAME,
    EMAILS_DIR,
    JOURNAL_FILENAME,
    LOCKS_DIR,
    PROFILE_FILENAME,
    STORE_SCHEMA_VERSION,
    USERS_DIR,
)
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.schemas import JournalEntry, Message, UserContext, UserRecord

logger = logging.getLogger(__name__)

# =============================================================================
# Atomic Write
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    fsync a directory so the rename entry is durable.

    Not supported everywhere (O_DIRECTORY); failure is only logged.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: dict) -> None:
    """
    Atomic JSON write.

    - temp file in the same directory → rename
    - file fsync + directory fsync where available
    - temp file removed on failure, the previous document stays intact

    Args:
        path: target file
        data: JSON-serializable document
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


def atomic_write_json_exclusive(path: Path, data: dict) -> bool:
    """
    Create a JSON file only if it does not exist yet.

    O_CREAT | O_EXCL makes "check + create" a single atomic step.

    Returns:
        True if this call created the file, False if it already existed
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError:
        return False

    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.flush()
        try:
            os.fsync(f.fileno())
        except OSError as e:
            logger.warning(f"File fsync failed for {path}: {e}.")
    return True


def load_document(path: Path) -> dict[str, Any] | None:
    """
    Load a store document.

    Returns:
        document, or None if the file does not exist

    Raises:
        WellnessError: STORE_CORRUPT (invalid JSON or schema_version missing)
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise WellnessError(
            ErrorCodes.STORE_CORRUPT,
            "Stored document is not valid JSON",
            path=str(path),
            error=str(e),
        ) from e

    if not isinstance(data, dict) or "schema_version" not in data:
        raise WellnessError(
            ErrorCodes.STORE_CORRUPT,
            "schema_version missing",
            path=str(path),
        )
    return data


# =============================================================================
# User Store
# =============================================================================


class UserStore:
    """
    Per-user document store.

    Usage:
        store = UserStore(Path("data"))
        user = store.create_user("Asha", "asha@example.com", password_hash)
        store.append_message(user.user_id, message)
    """

    def __init__(self, data_root: Path, lock_timeout: float = 10.0):
        """
        Args:
            data_root: root directory of all documents
            lock_timeout: seconds to wait for a user lock
        """
        self.data_root = data_root
        self.lock_timeout = lock_timeout
        self.users_dir = data_root / USERS_DIR
        self.emails_dir = data_root / EMAILS_DIR
        self._locks_dir = data_root / LOCKS_DIR

    # =========================================================================
    # Locking
    # =========================================================================

    @contextmanager
    def user_lock(self, user_id: str) -> Generator[None, None, None]:
        """
        Per-user lock around read-modify-write.

        Raises:
            WellnessError: STORE_LOCK_TIMEOUT
        """
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"{user_id}.lock", timeout=self.lock_timeout)

        try:
            lock.acquire()
        except Timeout as e:
            raise WellnessError(
                ErrorCodes.STORE_LOCK_TIMEOUT,
                "Could not acquire the user document lock",
                user_id=user_id,
                timeout=self.lock_timeout,
            ) from e

        try:
            yield
        finally:
            lock.release()

    def _user_dir(self, user_id: str) -> Path:
        if not is_valid_user_id(user_id):
            raise WellnessError(
                ErrorCodes.USER_NOT_FOUND,
                "User not found",
                user_id=user_id,
            )
        return self.users_dir / user_id

    def _document(self, user_id: str, filename: str) -> Path:
        return self._user_dir(user_id) / filename

    def _update(
        self,
        user_id: str,
        filename: str,
        mutate: Callable[[dict[str, Any]], Any],
        initial: Callable[[], dict[str, Any]],
    ) -> Any:
        """Locked load → mutate → atomic write. Returns mutate()'s result."""
        path = self._document(user_id, filename)
        with self.user_lock(user_id):
            data = load_document(path) or initial()
            result = mutate(data)
            data["updated_at"] = datetime.now(UTC).isoformat()
            atomic_write_json(path, data)
        return result

    @staticmethod
    def _new_document(**fields: Any) -> dict[str, Any]:
        now = datetime.now(UTC).isoformat()
        return {
            "schema_version": STORE_SCHEMA_VERSION,
            "created_at": now,
            "updated_at": now,
            **fields,
        }

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        """
        Create a user and claim its email.

        Raises:
            WellnessError: USER_EXISTS
        """
        normalized = normalize_email(email)
        user = UserRecord(
            user_id=generate_user_id(),
            name=name,
            email=normalized,
            password_hash=password_hash,
            created_at=datetime.now(UTC).isoformat(),
        )

        index_path = self.emails_dir / f"{email_key(normalized)}.json"
        claimed = atomic_write_json_exclusive(
            index_path,
            self._new_document(email=normalized, user_id=user.user_id),
        )
        if not claimed:
            raise WellnessError(
                ErrorCodes.USER_EXISTS,
                "User already exists",
                email=normalized,
            )

        try:
            atomic_write_json(
                self._document(user.user_id, PROFILE_FILENAME),
                self._new_document(**user.to_dict()),
            )
        except Exception:
            # release the email so the signup can be retried
            logger.error(f"Profile write failed for {user.user_id}, releasing {normalized}")
            index_path.unlink(missing_ok=True)
            raise
        logger.info(f"Created user {user.user_id}")
        return user

    def get_user(self, user_id: str) -> UserRecord | None:
        if not is_valid_user_id(user_id):
            return None
        data = load_document(self._document(user_id, PROFILE_FILENAME))
        if data is None:
            return None
        return UserRecord.from_dict(data)

    def find_user_by_email(self, email: str) -> UserRecord | None:
        """Email → UserRecord (None if not registered)."""
        index = load_document(self.emails_dir / f"{email_key(email)}.json")
        if index is None:
            return None
        return self.get_user(index["user_id"])

    # =========================================================================
    # Chat
    # =========================================================================

    def append_message(self, user_id: str, message: Message) -> Message:
        """Append a message to the user's chat document (append-only)."""

        def _append(data: dict[str, Any]) -> Message:
            data.setdefault("messages", []).append(message.to_dict())
            return message

        return self._update(
            user_id,
            CHAT_FILENAME,
            _append,
            lambda: self._new_document(user_id=user_id, messages=[]),
        )

    def list_messages(self, user_id: str) -> list[Message]:
        """Messages in arrival order ([] if the user never chatted)."""
        data = load_document(self._document(user_id, CHAT_FILENAME))
        if data is None:
            return []
        return [Message.from_dict(m) for m in data.get("messages", [])]

    # =========================================================================
    # Journal
    # =========================================================================

    def add_journal_entry(self, user_id: str, entry: JournalEntry) -> JournalEntry:
        def _add(data: dict[str, Any]) -> JournalEntry:
            data.setdefault("entries", []).append(entry.to_dict())
            return entry

        return self._update(
            user_id,
            JOURNAL_FILENAME,
            _add,
            lambda: self._new_document(user_id=user_id, entries=[]),
        )

    def list_journal_entries(self, user_id: str) -> list[JournalEntry]:
        """Journal entries, newest first."""
        data = load_document(self._document(user_id, JOURNAL_FILENAME))
        if data is None:
            return []
        entries = [JournalEntry.from_dict(e) for e in data.get("entries", [])]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    def delete_journal_entry(self, user_id: str, entry_id: str) -> None:
        """
        Delete one journal entry.

        Raises:
            WellnessError: ENTRY_NOT_FOUND
        """

        def _delete(data: dict[str, Any]) -> None:
            entries = data.get("entries", [])
            remaining = [e for e in entries if str(e.get("id")) != entry_id]
            if len(remaining) == len(entries):
                raise WellnessError(
                    ErrorCodes.ENTRY_NOT_FOUND,
                    "Journal entry not found",
                    entry_id=entry_id,
                )
            data["entries"] = remaining

        self._update(
            user_id,
            JOURNAL_FILENAME,
            _delete,
            lambda: self._new_document(user_id=user_id, entries=[]),
        )

    # =========================================================================
    # Context
    # =========================================================================

    def get_context(self, user_id: str) -> UserContext:
        """Stored context, or the default (Office worker / English)."""
        data = load_document(self._document(user_id, CONTEXT_FILENAME))
        if data is None:
            return UserContext()
        return UserContext.from_dict(data.get("context"))

    def update_context(self, user_id: str, partial: dict[str, Any]) -> UserContext:
        """
        Merge a partial update into the stored context.

        Raises:
            WellnessError: INVALID_CONTEXT
        """

        def _merge(data: dict[str, Any]) -> UserContext:
            current = UserContext.from_dict(data.get("context"))
            try:
                updated = current.merged(partial)
            except ValueError as e:
                raise WellnessError(
                    ErrorCodes.INVALID_CONTEXT,
                    f"Invalid context value: {e}",
                    **{k: v for k, v in partial.items() if v is not None},
                ) from e
            data["context"] = updated.to_dict()
            return updated

        return self._update(
            user_id,
            CONTEXT_FILENAME,
            _merge,
            lambda: self._new_document(
                user_id=user_id, context=UserContext().to_dict()
            ),
        )

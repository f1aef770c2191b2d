"""
test_store.py - UserStore tests

Checks:
1. users + exclusive email index
2. chat append order, journal order/delete, context merge
3. corrupt documents rejected, lock timeout reported
"""

import json
import threading
from pathlib import Path

import pytest

from sonia.core import store as store_module
from sonia.core.store import (
    UserStore,
    atomic_write_json,
    atomic_write_json_exclusive,
    load_document,
)
from sonia.domain.errors import ErrorCodes, WellnessError
from sonia.domain.schemas import (
    EmotionData,
    EmotionLabel,
    JournalEntry,
    Language,
    LifeRole,
    Message,
    MessageRole,
)


def make_message(ts: int, content: str = "hi", role: MessageRole = MessageRole.USER) -> Message:
    return Message(id=f"{ts}-abc", role=role, content=content, timestamp=ts)


def make_entry(ts: int, entry_id: str) -> JournalEntry:
    return JournalEntry(
        id=entry_id,
        title=f"Entry {entry_id}",
        content="Today was fine.",
        timestamp=ts,
        emotion=EmotionData(label=EmotionLabel.HAPPY, confidence=0.8, intensity=40),
    )


# =============================================================================
# Atomic write helpers
# =============================================================================


class TestAtomicWrite:
    def test_atomic_write_creates_parent_and_file(self, tmp_path: Path):
        target = tmp_path / "a" / "b" / "doc.json"
        atomic_write_json(target, {"schema_version": "1.0", "x": 1})

        assert json.loads(target.read_text(encoding="utf-8"))["x"] == 1
        assert not list(target.parent.glob("*.tmp"))

    def test_exclusive_write_only_first_wins(self, tmp_path: Path):
        target = tmp_path / "claim.json"

        assert atomic_write_json_exclusive(target, {"owner": "first"}) is True
        assert atomic_write_json_exclusive(target, {"owner": "second"}) is False
        assert json.loads(target.read_text(encoding="utf-8"))["owner"] == "first"

    def test_load_missing_document_returns_none(self, tmp_path: Path):
        assert load_document(tmp_path / "missing.json") is None

    def test_load_invalid_json_is_corrupt(self, tmp_path: Path):
        target = tmp_path / "broken.json"
        target.write_text("{not json", encoding="utf-8")

        with pytest.raises(WellnessError) as exc_info:
            load_document(target)
        assert exc_info.value.code == ErrorCodes.STORE_CORRUPT

    def test_load_without_schema_version_is_corrupt(self, tmp_path: Path):
        target = tmp_path / "old.json"
        target.write_text('{"messages": []}', encoding="utf-8")

        with pytest.raises(WellnessError) as exc_info:
            load_document(target)
        assert exc_info.value.code == ErrorCodes.STORE_CORRUPT


# =============================================================================
# Users
# =============================================================================


class TestUsers:
    def test_create_user_normalizes_email(self, store: UserStore):
        user = store.create_user("Asha", "  Asha@Example.COM ", "hash")

        assert user.user_id.startswith("USR-")
        assert user.email == "asha@example.com"
        assert store.get_user(user.user_id) == user

    def test_duplicate_email_rejected_case_insensitive(self, store: UserStore):
        store.create_user("Asha", "asha@example.com", "hash")

        with pytest.raises(WellnessError) as exc_info:
            store.create_user("Other", "ASHA@example.com", "hash2")
        assert exc_info.value.code == ErrorCodes.USER_EXISTS

    def test_find_user_by_email(self, store: UserStore):
        user = store.create_user("Asha", "asha@example.com", "hash")

        assert store.find_user_by_email("ASHA@EXAMPLE.COM") == user
        assert store.find_user_by_email("nobody@example.com") is None

    def test_get_user_rejects_malformed_id(self, store: UserStore):
        assert store.get_user("../etc") is None
        assert store.get_user("USR-000000000000") is None

    def test_failed_profile_write_releases_email(self, store: UserStore, monkeypatch):
        real_write = store_module.atomic_write_json
        calls = {"n": 0}

        def failing_once(path, data):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OSError("disk full")
            real_write(path, data)

        monkeypatch.setattr(store_module, "atomic_write_json", failing_once)

        with pytest.raises(OSError):
            store.create_user("Asha", "asha@example.com", "hash")
        assert store.find_user_by_email("asha@example.com") is None

        user = store.create_user("Asha", "asha@example.com", "hash")
        assert store.find_user_by_email("asha@example.com") == user

    def test_concurrent_signups_one_winner(self, store: UserStore):
        outcomes: list[str] = []
        barrier = threading.Barrier(4)

        def signup(i: int) -> None:
            barrier.wait()
            try:
                store.create_user(f"user{i}", "same@example.com", "hash")
                outcomes.append("created")
            except WellnessError as e:
                outcomes.append(e.code)

        threads = [threading.Thread(target=signup, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("created") == 1
        assert outcomes.count(ErrorCodes.USER_EXISTS) == 3


# =============================================================================
# Chat
# =============================================================================


class TestChat:
    def test_no_messages_is_empty_list(self, store: UserStore, user_id: str):
        assert store.list_messages(user_id) == []

    def test_messages_kept_in_arrival_order(self, store: UserStore, user_id: str):
        store.append_message(user_id, make_message(300, "first"))
        store.append_message(user_id, make_message(100, "second"))
        store.append_message(user_id, make_message(200, "third", MessageRole.ASSISTANT))

        contents = [m.content for m in store.list_messages(user_id)]
        assert contents == ["first", "second", "third"]

    def test_chat_document_has_schema_version(self, store: UserStore, user_id: str):
        store.append_message(user_id, make_message(1))

        data = json.loads(
            (store.users_dir / user_id / "chat.json").read_text(encoding="utf-8")
        )
        assert data["schema_version"] == "1.0"
        assert data["user_id"] == user_id
        assert len(data["messages"]) == 1

    def test_invalid_user_id_rejected(self, store: UserStore):
        with pytest.raises(WellnessError) as exc_info:
            store.append_message("../../escape", make_message(1))
        assert exc_info.value.code == ErrorCodes.USER_NOT_FOUND


# =============================================================================
# Journal
# =============================================================================


class TestJournal:
    def test_entries_listed_newest_first(self, store: UserStore, user_id: str):
        store.add_journal_entry(user_id, make_entry(100, "a"))
        store.add_journal_entry(user_id, make_entry(300, "c"))
        store.add_journal_entry(user_id, make_entry(200, "b"))

        assert [e.id for e in store.list_journal_entries(user_id)] == ["c", "b", "a"]

    def test_delete_entry(self, store: UserStore, user_id: str):
        store.add_journal_entry(user_id, make_entry(100, "a"))
        store.add_journal_entry(user_id, make_entry(200, "b"))

        store.delete_journal_entry(user_id, "a")

        assert [e.id for e in store.list_journal_entries(user_id)] == ["b"]

    def test_delete_missing_entry(self, store: UserStore, user_id: str):
        store.add_journal_entry(user_id, make_entry(100, "a"))

        with pytest.raises(WellnessError) as exc_info:
            store.delete_journal_entry(user_id, "missing")
        assert exc_info.value.code == ErrorCodes.ENTRY_NOT_FOUND
        assert len(store.list_journal_entries(user_id)) == 1


# =============================================================================
# Context
# =============================================================================


class TestContext:
    def test_default_context(self, store: UserStore, user_id: str):
        context = store.get_context(user_id)

        assert context.role == LifeRole.OFFICE_WORKER
        assert context.language == Language.ENGLISH

    def test_partial_update_merges(self, store: UserStore, user_id: str):
        store.update_context(user_id, {"role": "Student"})
        updated = store.update_context(user_id, {"language": "Hindi"})

        assert updated.role == LifeRole.STUDENT
        assert updated.language == Language.HINDI
        assert store.get_context(user_id) == updated

    def test_invalid_value_rejected_and_not_stored(self, store: UserStore, user_id: str):
        store.update_context(user_id, {"role": "Student"})

        with pytest.raises(WellnessError) as exc_info:
            store.update_context(user_id, {"language": "Klingon"})
        assert exc_info.value.code == ErrorCodes.INVALID_CONTEXT
        assert store.get_context(user_id).language == Language.ENGLISH


# =============================================================================
# Locking
# =============================================================================


class TestUserLock:
    def test_lock_timeout_reported(self, tmp_path: Path):
        slow_store = UserStore(tmp_path / "data", lock_timeout=0.05)
        user = slow_store.create_user("Asha", "asha@example.com", "hash")
        holding = threading.Event()
        release = threading.Event()

        def hold_lock() -> None:
            with slow_store.user_lock(user.user_id):
                holding.set()
                release.wait(timeout=5)

        holder = threading.Thread(target=hold_lock)
        holder.start()
        holding.wait(timeout=5)
        try:
            with pytest.raises(WellnessError) as exc_info:
                slow_store.append_message(user.user_id, make_message(1))
            assert exc_info.value.code == ErrorCodes.STORE_LOCK_TIMEOUT
        finally:
            release.set()
            holder.join()

    def test_concurrent_appends_all_kept(self, store: UserStore, user_id: str):
        def append(i: int) -> None:
            store.append_message(user_id, make_message(1000 + i, f"m{i}"))

        threads = [threading.Thread(target=append, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.list_messages(user_id)) == 8

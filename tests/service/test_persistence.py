"""
Tests for record stores and the write-behind queue.
"""

import json

import pytest

from aura.errors import PersistenceError
from aura.service import JsonFileStore, MemoryStore, WriteBehind, create_store
from aura.service import persistence
from aura.service.persistence import AUDIT_LOG, CHAT_MESSAGES, PARTICLES


class BrokenStore(MemoryStore):
    """Rejects every save."""

    def append(self, kind, record):
        raise PersistenceError("disk on fire")


class FaultyDiskStore(MemoryStore):
    """Fails with a raw OSError instead of a PersistenceError."""

    def append(self, kind, record):
        raise OSError(28, "No space left on device")


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_upsert_by_id(self):
        store = MemoryStore()
        store.append(PARTICLES, {"id": "a", "timestamp": 1})
        store.append(PARTICLES, {"id": "b", "timestamp": 2})
        store.append(PARTICLES, {"id": "a", "timestamp": 3})

        records = store.load_all(PARTICLES)
        assert [r["id"] for r in records] == ["a", "b"]
        assert records[0]["timestamp"] == 3

    def test_kinds_are_separate(self):
        store = MemoryStore()
        store.append(CHAT_MESSAGES, {"id": "m"})
        assert store.load_all(AUDIT_LOG) == []

    def test_unknown_kind(self):
        with pytest.raises(PersistenceError):
            MemoryStore().append("settings", {"id": "x"})

    def test_record_without_id(self):
        with pytest.raises(PersistenceError):
            MemoryStore().append(PARTICLES, {"timestamp": 1})


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_survives_reopen(self, tmp_path):
        JsonFileStore(tmp_path).append(PARTICLES, {"id": "a", "kind": "electron"})

        reopened = JsonFileStore(tmp_path)
        assert reopened.load_all(PARTICLES) == [{"id": "a", "kind": "electron"}]
        assert (tmp_path / "particles.json").exists()

    def test_file_is_keyed_by_id(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.append(CHAT_MESSAGES, {"id": "m1", "text": "привет"})
        store.append(CHAT_MESSAGES, {"id": "m1", "text": "hello"})

        data = json.loads((tmp_path / "chat-messages.json").read_text(encoding="utf-8"))
        assert data == {"m1": {"id": "m1", "text": "hello"}}

    def test_missing_file_loads_empty(self, tmp_path):
        assert JsonFileStore(tmp_path).load_all(AUDIT_LOG) == []

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "particles.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonFileStore(tmp_path).load_all(PARTICLES)

    def test_non_object_file(self, tmp_path):
        (tmp_path / "particles.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonFileStore(tmp_path).load_all(PARTICLES)

    def test_unserialisable_record_leaves_store_unchanged(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.append(PARTICLES, {"id": "a"})

        with pytest.raises(PersistenceError):
            store.append(PARTICLES, {"id": "x", "payload": object()})

        assert store.load_all(PARTICLES) == [{"id": "a"}]
        assert list(tmp_path.glob(".*.tmp")) == []
        assert JsonFileStore(tmp_path).load_all(PARTICLES) == [{"id": "a"}]

    def test_failed_replace_does_not_touch_cache(self, tmp_path, monkeypatch):
        store = JsonFileStore(tmp_path)
        store.append(PARTICLES, {"id": "a"})

        def refuse(src, dst):
            raise OSError(13, "Permission denied")

        monkeypatch.setattr(persistence.os, "replace", refuse)
        with pytest.raises(PersistenceError):
            store.append(PARTICLES, {"id": "b"})

        assert [r["id"] for r in store.load_all(PARTICLES)] == ["a"]
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_stats(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.append(PARTICLES, {"id": "a"})
        stats = store.get_stats()
        assert stats["counts"] == {PARTICLES: 1, CHAT_MESSAGES: 0, AUDIT_LOG: 0}


class TestWriteBehind:
    """Tests for WriteBehind."""

    def test_inline_writes(self):
        store = MemoryStore()
        writer = WriteBehind(store, background=False)
        assert writer.submit(PARTICLES, {"id": "a"}) is None
        assert store.load_all(PARTICLES) == [{"id": "a"}]

    def test_background_writes_in_order(self):
        store = MemoryStore()
        writer = WriteBehind(store)
        for i in range(20):
            writer.submit(AUDIT_LOG, {"id": str(i)})
        writer.flush()

        assert [r["id"] for r in store.load_all(AUDIT_LOG)] == [str(i) for i in range(20)]
        writer.close()

    def test_failures_are_counted_not_raised(self):
        writer = WriteBehind(BrokenStore(), background=False)
        writer.submit(PARTICLES, {"id": "a"})
        writer.submit(PARTICLES, {"id": "b"})
        assert writer.failures == 2

    def test_background_failure(self):
        writer = WriteBehind(BrokenStore())
        future = writer.submit(PARTICLES, {"id": "a"})
        assert future.result() is False
        writer.close()
        assert writer.failures == 1

    def test_inline_os_error_is_counted(self):
        writer = WriteBehind(FaultyDiskStore(), background=False)
        assert writer.submit(PARTICLES, {"id": "a"}) is None
        assert writer.failures == 1

    def test_background_os_error_is_counted(self):
        writer = WriteBehind(FaultyDiskStore())
        future = writer.submit(PARTICLES, {"id": "a"})
        assert future.result() is False
        writer.close()
        assert writer.failures == 1


class TestCreateStore:
    """Tests for the store factory."""

    def test_memory(self):
        assert isinstance(create_store("memory"), MemoryStore)

    def test_json(self, tmp_path):
        store = create_store("json", str(tmp_path / "data"))
        assert isinstance(store, JsonFileStore)
        assert (tmp_path / "data").is_dir()

    def test_unknown_backend(self):
        with pytest.raises(PersistenceError):
            create_store("sqlite")

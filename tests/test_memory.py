"""Tests for ConversationMemory – the serialised high-level API."""

from __future__ import annotations

import threading

import pytest

from crag_memory.config import CragConfig
from crag_memory.errors import SnapshotCorruptError, StorageError
from crag_memory.memory import ConversationMemory
from conftest import PYTHON_TUTORIAL, TERMUX_GUIDE


class TestConversationMemoryAdd:
    def test_add_autosaves(self, memory: ConversationMemory, config: CragConfig):
        memory.add(TERMUX_GUIDE, metadata={"source": "chat"})
        assert config.snapshot_path.is_file()

        reopened = ConversationMemory.open(config)
        assert reopened.count() == 1
        assert reopened.get(0).metadata == {"source": "chat"}

    def test_returned_record_cannot_alter_stored_metadata(self, memory: ConversationMemory):
        memory.add(TERMUX_GUIDE, metadata={"source": "chat"})
        with pytest.raises(TypeError):
            memory.get(0).metadata["source"] = "edited"
        assert memory.search("termux")[0].record.metadata == {"source": "chat"}

    def test_ids_continue_after_reopen(self, memory: ConversationMemory, config: CragConfig):
        memory.add(TERMUX_GUIDE)
        memory.add(PYTHON_TUTORIAL)
        reopened = ConversationMemory.open(config)
        assert reopened.add("espresso beans") == 2

    def test_autosave_disabled(self, tmp_path):
        config = CragConfig(data_dir=str(tmp_path / "data"), autosave=False)
        memory = ConversationMemory.open(config)
        memory.add(TERMUX_GUIDE)
        assert not config.snapshot_path.exists()

        memory.save()
        assert config.snapshot_path.is_file()

    def test_save_failure_is_raised_and_record_kept(self, tmp_path):
        blocker = tmp_path / "occupied"
        blocker.write_text("not a directory")
        memory = ConversationMemory(CragConfig(data_dir=str(blocker)))

        with pytest.raises(StorageError):
            memory.add(TERMUX_GUIDE)
        assert memory.count() == 1

    def test_concurrent_adds_get_unique_ids(self, tmp_path):
        memory = ConversationMemory(CragConfig(data_dir=str(tmp_path), autosave=False))
        ids: list[int] = []
        ids_lock = threading.Lock()

        def worker(n: int) -> None:
            for i in range(25):
                record_id = memory.add(f"worker{n} message{i}")
                with ids_lock:
                    ids.append(record_id)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(ids) == list(range(100))
        assert memory.count() == 100


class TestConversationMemoryQueries:
    def test_search_uses_configured_floor(self, tmp_path):
        strict = ConversationMemory(CragConfig(data_dir=str(tmp_path), min_similarity=0.5, autosave=False))
        strict.add(TERMUX_GUIDE)
        strict.add(PYTHON_TUTORIAL)
        assert [r.record.id for r in strict.search("termux setup")] == [0]

    def test_search_empty_memory(self, memory: ConversationMemory):
        assert memory.search("termux") == []

    def test_stats(self, memory: ConversationMemory):
        assert memory.stats().total_records == 0
        memory.add("a b c")
        memory.add("d e")
        stats = memory.stats()
        assert (stats.total_records, stats.total_words, stats.average_words) == (2, 5, 2)


class TestConversationMemoryLoad:
    def test_failed_load_keeps_current_corpus(self, memory: ConversationMemory, config: CragConfig):
        memory.add(TERMUX_GUIDE)
        config.snapshot_path.write_text("{broken", encoding="utf-8")

        with pytest.raises(SnapshotCorruptError):
            memory.load()
        assert memory.count() == 1
        assert memory.search("termux")[0].record.id == 0

    def test_open_reports_corrupt_snapshot(self, config: CragConfig):
        config.snapshot_path.parent.mkdir(parents=True)
        config.snapshot_path.write_text("[{]", encoding="utf-8")
        with pytest.raises(SnapshotCorruptError):
            ConversationMemory.open(config)

    def test_fresh_memory_is_empty_until_loaded(self, memory: ConversationMemory, config: CragConfig):
        memory.add(TERMUX_GUIDE)
        fresh = ConversationMemory(config)
        assert fresh.count() == 0
        fresh.load()
        assert fresh.count() == 1
        assert fresh.snapshot_path == str(config.snapshot_path)

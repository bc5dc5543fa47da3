"""
ConversationMemory: high-level, thread-safe API over a corpus and its snapshot.

This is the main entry-point for tools that keep a conversation history on
disk and query it.

Usage example::

    from crag_memory import ConversationMemory, CragConfig

    memory = ConversationMemory(CragConfig(data_dir="./crag_data"))
    memory.load()

    memory.add("How do I set up termux on android?", metadata={"source": "chat"})

    for hit in memory.search("termux setup"):
        print(hit.rank, round(hit.score, 3), hit.record.content)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from .config import DEFAULT_TOP_K, CragConfig
from .corpus import Corpus, CorpusStats, Record
from .search import SearchResult
from .store import SnapshotStore

logger = logging.getLogger(__name__)


class ConversationMemory:
    """
    Owner of one ``Corpus``, serialising every read and write behind a lock.

    Responsibilities
    ----------------
    * **Add** – Appends a conversation and, with ``autosave`` on, writes the
      snapshot straight away.  A failed write raises ``StorageError``; the
      conversation stays in memory and is written by the next successful save.
    * **Search / Get / Stats** – Read-only queries against the current corpus.
    * **Load / Save** – Snapshot I/O.  ``load`` builds the new corpus aside
      and only swaps it in once it is complete, so a failure leaves the
      current corpus untouched.

    Parameters
    ----------
    config:
        Data directory, feature cap, similarity floor and autosave setting.
    _store:
        Snapshot store override, used by tests.
    """

    def __init__(
        self,
        config: CragConfig | None = None,
        _store: SnapshotStore | None = None,
    ) -> None:
        self.config = config or CragConfig()
        self._store = _store or SnapshotStore(self.config.data_dir, self.config.snapshot_name)
        self._corpus = Corpus(max_features=self.config.max_features)
        self._lock = threading.RLock()

    @classmethod
    def open(cls, config: CragConfig | None = None) -> "ConversationMemory":
        """
        Create a memory and load its snapshot.

        Propagates ``StorageError`` / ``SnapshotCorruptError`` from ``load``.
        """
        memory = cls(config)
        memory.load()
        return memory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, content: str, metadata: Mapping[str, Any] | None = None) -> int:
        """Store *content* and return its id."""
        with self._lock:
            record_id = self._corpus.add(content, metadata)
            logger.debug("Added conversation %d (%d chars)", record_id, len(content))
            if self.config.autosave:
                self._store.save(self._corpus)
            return record_id

    def search(self, query: str, top_k: int = DEFAULT_TOP_K) -> list[SearchResult]:
        with self._lock:
            return self._corpus.search(
                query, top_k=top_k, min_similarity=self.config.min_similarity
            )

    def get(self, record_id: int) -> Record | None:
        with self._lock:
            return self._corpus.get(record_id)

    def stats(self) -> CorpusStats:
        with self._lock:
            return self._corpus.stats()

    def count(self) -> int:
        with self._lock:
            return len(self._corpus)

    def save(self) -> None:
        with self._lock:
            self._store.save(self._corpus)

    def load(self) -> None:
        """Replace the in-memory corpus with the snapshot on disk."""
        with self._lock:
            corpus = self._store.load(max_features=self.config.max_features)
            self._corpus = corpus

    @property
    def snapshot_path(self) -> str:
        return str(self._store.path)

"""
Corpus: the stored conversations plus their derived vocabulary and vectors.

Usage example::

    from crag_memory import Corpus

    corpus = Corpus()
    corpus.add("termux installation guide for android termux setup")
    corpus.add("python virtual environment setup tutorial")

    for hit in corpus.search("termux setup"):
        print(hit.rank, hit.score, hit.record.content)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

import numpy as np

from . import vectors
from .config import DEFAULT_MAX_FEATURES, DEFAULT_MIN_SIMILARITY, DEFAULT_TOP_K
from .errors import InvalidMetadataError
from .tokenizer import normalize
from .vocabulary import Vocabulary

if TYPE_CHECKING:
    from .search import SearchResult

logger = logging.getLogger(__name__)

MetadataValue = str | int | float | bool


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def validate_metadata(metadata: Mapping[str, Any] | None) -> dict[str, MetadataValue]:
    """
    Return a copy of *metadata* after checking it only holds primitive values.

    Raises ``InvalidMetadataError`` for non-string keys, values that are not
    ``str``, ``int``, ``float`` or ``bool``, and NaN or infinite floats.
    """
    if metadata is None:
        return {}
    if not isinstance(metadata, Mapping):
        raise InvalidMetadataError(f"metadata must be a mapping, got {type(metadata).__name__}")
    clean: dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise InvalidMetadataError(f"metadata key {key!r} is not a string")
        if not isinstance(value, (str, int, float, bool)):
            raise InvalidMetadataError(
                f"metadata value for {key!r} has unsupported type {type(value).__name__}"
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidMetadataError(f"metadata value for {key!r} is not a finite number")
        clean[key] = value
    return clean


@dataclass(frozen=True)
class Record:
    """One stored conversation.  Never mutated once created; metadata is read-only."""

    id: int
    content: str
    timestamp: datetime
    metadata: Mapping[str, MetadataValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Record":
        """
        Parse a snapshot entry.

        Raises ``KeyError``, ``TypeError`` or ``ValueError`` when a field is
        missing or has the wrong shape.
        """
        record_id = data["id"]
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            raise TypeError(f"record id must be an integer, got {record_id!r}")
        content = data["content"]
        if not isinstance(content, str):
            raise TypeError(f"record {record_id} content must be a string")
        timestamp = data["timestamp"]
        if not isinstance(timestamp, str):
            raise TypeError(f"record {record_id} timestamp must be an ISO-8601 string")
        return cls(
            id=record_id,
            content=content,
            timestamp=datetime.fromisoformat(timestamp),
            metadata=validate_metadata(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class CorpusStats:
    total_records: int
    total_words: int
    average_words: int
    latest_timestamp: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "total_words": self.total_words,
            "average_words": self.average_words,
            "latest_timestamp": self.latest_timestamp,
        }


# ---------------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------------


class Corpus:
    """
    In-memory conversation index.

    Responsibilities
    ----------------
    * **Add** – Appends a record, folds its terms into the vocabulary and
      recomputes every document vector, since idf weights shift whenever the
      document count or any document frequency changes.
    * **Lookup** – ``get`` by id and aggregate ``stats``.
    * **Search** – Ranks records against free text (see ``crag_memory.search``).

    A ``Corpus`` is not thread-safe; ``ConversationMemory`` serialises access
    when several callers share one.

    Parameters
    ----------
    max_features:
        Vocabulary feature cap.  Defaults to 5000; ``None`` disables it.
    """

    def __init__(self, max_features: int | None = DEFAULT_MAX_FEATURES) -> None:
        self.vocabulary = Vocabulary(max_features=max_features)
        self._records: list[Record] = []
        self._positions: dict[int, int] = {}
        self._vectors = vectors.DocumentVectors([], self.vocabulary)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Record],
        max_features: int | None = DEFAULT_MAX_FEATURES,
    ) -> "Corpus":
        """
        Rebuild a corpus from stored records, replaying them in id order.

        Raises ``ValueError`` on duplicate ids.
        """
        corpus = cls(max_features=max_features)
        for record in sorted(records, key=lambda r: r.id):
            if record.id in corpus._positions:
                raise ValueError(f"duplicate record id {record.id}")
            corpus._append(record)
        corpus._rebuild_vectors()
        return corpus

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(
        self,
        content: str,
        metadata: Mapping[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> int:
        """
        Store *content* as a new record and return its id.

        Ids increase strictly for the lifetime of the corpus.  Every document
        vector is recomputed against the updated vocabulary before returning.
        """
        if not isinstance(content, str):
            raise TypeError(f"content must be a string, got {type(content).__name__}")
        record = Record(
            id=self._next_id(),
            content=content,
            timestamp=timestamp or datetime.now(timezone.utc),
            metadata=validate_metadata(metadata),
        )
        self._append(record)
        self._rebuild_vectors()
        return record.id

    def get(self, record_id: int) -> Record | None:
        position = self._positions.get(record_id)
        return None if position is None else self._records[position]

    def vector(self, record_id: int) -> vectors.SparseVector | None:
        position = self._positions.get(record_id)
        return None if position is None else self._vectors.vector(position)

    def stats(self) -> CorpusStats:
        """
        Summarise the corpus.  Words are whitespace-separated tokens of the
        raw content, stop words included.
        """
        if not self._records:
            return CorpusStats(0, 0, 0, None)
        total_words = sum(len(r.content.split()) for r in self._records)
        return CorpusStats(
            total_records=len(self._records),
            total_words=total_words,
            average_words=total_words // len(self._records),
            latest_timestamp=self._records[-1].timestamp.isoformat(),
        )

    def search(
        self,
        query: str,
        top_k: int = DEFAULT_TOP_K,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
    ) -> list["SearchResult"]:
        from .search import search

        return search(self, query, top_k=top_k, min_similarity=min_similarity)

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    def similarities(self, query: str) -> np.ndarray:
        """Cosine similarity of *query* to every record, in record order."""
        return self._vectors.similarities(query)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _next_id(self) -> int:
        return self._records[-1].id + 1 if self._records else 0

    def _append(self, record: Record) -> None:
        terms = normalize(record.content)
        self._positions[record.id] = len(self._records)
        self._records.append(record)
        self.vocabulary.observe(terms)

    def _rebuild_vectors(self) -> None:
        self._vectors = vectors.DocumentVectors(
            [record.content for record in self._records], self.vocabulary
        )
        logger.debug(
            "Rebuilt %d document vectors (vocabulary=%d, features=%d)",
            len(self._records),
            self.vocabulary.size(),
            len(self.vocabulary.features()),
        )

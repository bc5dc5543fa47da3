"""
Vocabulary and corpus-wide term statistics.

Every term ever observed gets a permanent dimension index, a document
frequency and a corpus-wide occurrence count.  When the vocabulary outgrows
``max_features`` only the terms occurring most often across the corpus are
used as vector dimensions; the rest are still counted so they can be
promoted later.
"""

from __future__ import annotations

from typing import Iterable, Iterator


class Vocabulary:
    """
    Term → (dimension index, document frequency, occurrence count) store.

    Parameters
    ----------
    max_features:
        Cap on the number of terms used for vector construction.  ``None``
        disables the cap.
    """

    def __init__(self, max_features: int | None = None) -> None:
        if max_features is not None and max_features <= 0:
            raise ValueError(f"max_features must be positive, got {max_features}")
        self.max_features = max_features
        self._index: dict[str, int] = {}
        self._df: dict[str, int] = {}
        self._occurrences: dict[str, int] = {}
        self._features: dict[str, int] | None = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def observe(self, terms: Iterable[str]) -> None:
        """
        Record one document given its full token stream *terms*.

        Each distinct term's document frequency goes up by exactly one no
        matter how often it repeats; its occurrence count goes up once per
        repetition.  Unseen terms are assigned the next dimension index in
        the order they are first encountered.
        """
        seen: set[str] = set()
        for term in terms:
            if term not in self._index:
                self._index[term] = len(self._index)
                self._df[term] = 0
                self._occurrences[term] = 0
            self._occurrences[term] += 1
            if term not in seen:
                seen.add(term)
                self._df[term] += 1
        if seen:
            self._features = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def document_frequency(self, term: str) -> int:
        return self._df.get(term, 0)

    def occurrences(self, term: str) -> int:
        """Total number of times *term* appears across all observed documents."""
        return self._occurrences.get(term, 0)

    def index(self, term: str) -> int | None:
        return self._index.get(term)

    def size(self) -> int:
        """Number of distinct terms ever observed."""
        return len(self._index)

    def features(self) -> dict[str, int]:
        """
        Return the retained feature set as ``{term: dimension}``.

        Under the cap every term is retained.  Over it, the ``max_features``
        terms with the most occurrences across the corpus win; equal counts are
        resolved in favour of the term seen first.
        """
        if self._features is None:
            if self.max_features is None or len(self._index) <= self.max_features:
                self._features = dict(self._index)
            else:
                ranked = sorted(self._index, key=lambda t: (-self._occurrences[t], self._index[t]))
                kept = ranked[: self.max_features]
                self._features = {term: self._index[term] for term in kept}
        return self._features

    def __contains__(self, term: object) -> bool:
        return term in self._index

    def __len__(self) -> int:
        return len(self._index)

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

"""
Query engine: rank stored conversations against free text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from .config import DEFAULT_MIN_SIMILARITY, DEFAULT_TOP_K
from .tokenizer import normalize

if TYPE_CHECKING:
    from .corpus import Corpus, Record


@dataclass(frozen=True)
class SearchResult:
    record: "Record"
    score: float
    rank: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "similarity": self.score,
            "conversation": self.record.to_dict(),
        }


def search(
    corpus: "Corpus",
    query: str,
    top_k: int = DEFAULT_TOP_K,
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
) -> list[SearchResult]:
    """
    Return up to *top_k* records most similar to *query*.

    The query is vectorised against the corpus's current vocabulary without
    changing it, so terms the corpus has never seen carry no weight.  Hits
    scoring at or below *min_similarity* are dropped even if that leaves
    fewer than *top_k*.  Ordering is by descending score, then ascending id.

    An empty query, an empty corpus or a non-positive *top_k* gives ``[]``.
    """
    if top_k <= 0 or len(corpus) == 0:
        return []
    terms = normalize(query)
    if not terms:
        return []

    records = corpus.records
    scores = corpus.similarities(query)
    ids = np.array([record.id for record in records])

    candidates = np.flatnonzero(scores > min_similarity)
    # lexsort uses the last key as primary: score descending, then id.
    order = candidates[np.lexsort((ids[candidates], -scores[candidates]))]
    return [
        SearchResult(record=records[i], score=float(scores[i]), rank=rank)
        for rank, i in enumerate(order[:top_k], 1)
    ]

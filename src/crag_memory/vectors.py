"""
TF-IDF document vectors backed by scikit-learn.

The vectorizer is always fitted with a fixed vocabulary taken from
``Vocabulary.features()``, so queries never add terms and the retained
feature set is decided by the corpus, not by the vectorizer.  Weights use
the ``TfidfVectorizer`` defaults: raw term counts, smoothed idf
``ln((1 + N) / (1 + df)) + 1`` and L2-normalised rows, which makes cosine
similarity a plain dot product.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer

from .tokenizer import normalize
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)

SparseVector = dict[int, float]


class DocumentVectors:
    """
    TF-IDF matrix for an ordered list of documents.

    Row ``i`` is the vector of ``contents[i]``.  Matrix columns are the
    retained vocabulary terms in dimension order; ``vector`` maps them back
    to vocabulary dimensions.
    """

    def __init__(self, contents: Sequence[str], vocabulary: Vocabulary) -> None:
        features = vocabulary.features()
        # TfidfVectorizer needs contiguous column indices.
        columns = _columns(features)
        self.dimensions: list[int] = sorted(features.values())
        self.size = len(contents)
        self.vectorizer: TfidfVectorizer | None = None
        self.matrix = None

        if contents and columns:
            self.vectorizer = TfidfVectorizer(
                tokenizer=normalize,
                lowercase=False,
                token_pattern=None,
                vocabulary=columns,
            )
            self.matrix = self.vectorizer.fit_transform(contents)

        logger.debug("Fitted %d documents over %d features", self.size, len(columns))

    def vector(self, position: int) -> SparseVector:
        """Sparse ``{dimension: weight}`` view of one document row."""
        if self.matrix is None:
            return {}
        row = self.matrix[position].tocoo()
        return {self.dimensions[col]: float(w) for col, w in zip(row.col, row.data) if w}

    def similarities(self, query: str) -> np.ndarray:
        """Cosine similarity of *query* against every document row."""
        if self.matrix is None:
            return np.zeros(self.size)
        query_vec = self.vectorizer.transform([query])
        return (self.matrix @ query_vec.T).toarray().ravel()


def _columns(features: dict[str, int]) -> dict[str, int]:
    ordered = sorted(features, key=features.__getitem__)
    return {term: col for col, term in enumerate(ordered)}

"""
Text normalisation: raw conversation text to an ordered stream of terms.
"""

from __future__ import annotations

import re

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

#: Fixed stop-word list shared by indexing and querying.
STOP_WORDS: frozenset[str] = frozenset(ENGLISH_STOP_WORDS)

# Runs of Unicode letters/digits; underscore counts as a separator.
_TERM_RE = re.compile(r"[^\W_]+")


def normalize(text: str) -> list[str]:
    """
    Lower-case *text*, split it on non-alphanumeric boundaries and drop
    stop words.

    Repeated terms are kept, in order, so the result can be used for
    term-frequency counting.
    """
    if not text:
        return []
    return [term for term in _TERM_RE.findall(text.lower()) if term not in STOP_WORDS]

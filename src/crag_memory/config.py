"""
Runtime configuration for a conversation corpus.

Configuration (environment variables, read by ``CragConfig.from_env``):
    CRAG_MEMORY_DATA_DIR        - directory holding the snapshot (default: crag_data)
    CRAG_MEMORY_MAX_FEATURES    - vocabulary feature cap (default: 5000)
    CRAG_MEMORY_MIN_SIMILARITY  - similarity floor for search hits (default: 0.01)
    CRAG_MEMORY_AUTOSAVE        - write the snapshot after every add (default: 1)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_DATA_DIR = "crag_data"
DEFAULT_SNAPSHOT_NAME = "conversations.json"

#: Maximum number of vocabulary terms used as vector dimensions.
DEFAULT_MAX_FEATURES: int = 5000

#: Search hits scoring at or below this cosine similarity are dropped.
DEFAULT_MIN_SIMILARITY: float = 0.01

DEFAULT_TOP_K: int = 5

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class CragConfig:
    """Explicit settings for one corpus; there is no process-wide default instance."""

    data_dir: str = DEFAULT_DATA_DIR
    max_features: int | None = DEFAULT_MAX_FEATURES
    min_similarity: float = DEFAULT_MIN_SIMILARITY
    snapshot_name: str = DEFAULT_SNAPSHOT_NAME
    autosave: bool = True

    def __post_init__(self) -> None:
        if self.max_features is not None and self.max_features <= 0:
            raise ValueError(f"max_features must be positive, got {self.max_features}")
        if not 0.0 <= self.min_similarity < 1.0:
            raise ValueError(f"min_similarity must be in [0, 1), got {self.min_similarity}")
        if not self.snapshot_name:
            raise ValueError("snapshot_name must not be empty")

    @property
    def snapshot_path(self) -> Path:
        return Path(self.data_dir) / self.snapshot_name

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CragConfig":
        """Build a config from ``CRAG_MEMORY_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        max_features = env.get("CRAG_MEMORY_MAX_FEATURES")
        min_similarity = env.get("CRAG_MEMORY_MIN_SIMILARITY")
        autosave = env.get("CRAG_MEMORY_AUTOSAVE")

        return cls(
            data_dir=env.get("CRAG_MEMORY_DATA_DIR", DEFAULT_DATA_DIR),
            max_features=int(max_features) if max_features else DEFAULT_MAX_FEATURES,
            min_similarity=float(min_similarity) if min_similarity else DEFAULT_MIN_SIMILARITY,
            autosave=_parse_bool(autosave) if autosave else True,
        )


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Expected a boolean flag, got {value!r}")

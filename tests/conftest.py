"""
Shared pytest fixtures for crag-memory tests.

Everything runs against in-memory corpora or snapshot directories under
``tmp_path`` so tests never touch a real data directory.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from crag_memory.config import CragConfig
from crag_memory.corpus import Corpus
from crag_memory.memory import ConversationMemory
from crag_memory.store import SnapshotStore

#: Fixed clock so timestamps in assertions are predictable.
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

TERMUX_GUIDE = "termux installation guide for android termux setup"
PYTHON_TUTORIAL = "python virtual environment setup tutorial"


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


@pytest.fixture()
def corpus() -> Corpus:
    return Corpus()


@pytest.fixture()
def example_corpus() -> Corpus:
    """The two-record corpus used throughout the ranking examples."""
    corpus = Corpus()
    corpus.add(TERMUX_GUIDE, timestamp=at(0))
    corpus.add(PYTHON_TUTORIAL, timestamp=at(1))
    return corpus


@pytest.fixture()
def snapshot_store(tmp_path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "crag_data")


@pytest.fixture()
def config(tmp_path) -> CragConfig:
    return CragConfig(data_dir=str(tmp_path / "crag_data"))


@pytest.fixture()
def memory(config: CragConfig) -> ConversationMemory:
    """ConversationMemory with autosave into a temporary data directory."""
    return ConversationMemory.open(config)

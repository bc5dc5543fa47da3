"""
crag-memory: a local conversational-history index and retrieval engine.

Stores short conversation records, keeps a TF-IDF vector for each and ranks
them by cosine similarity against free-text queries.
"""

from .config import CragConfig
from .corpus import Corpus, CorpusStats, Record
from .errors import CragError, InvalidMetadataError, SnapshotCorruptError, StorageError
from .memory import ConversationMemory
from .search import SearchResult, search
from .store import SnapshotStore
from .tokenizer import normalize
from .vocabulary import Vocabulary

__all__ = [
    "ConversationMemory",
    "Corpus",
    "CorpusStats",
    "CragConfig",
    "CragError",
    "InvalidMetadataError",
    "Record",
    "SearchResult",
    "SnapshotCorruptError",
    "SnapshotStore",
    "StorageError",
    "Vocabulary",
    "normalize",
    "search",
]

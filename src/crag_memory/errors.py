"""
Exception types raised by crag-memory.

Only storage problems and invalid input to ``add`` are exceptions.  An empty
query, an empty corpus or a query with no matches is an ordinary empty
result, never an error.
"""

from __future__ import annotations


class CragError(Exception):
    """Base class for every error raised by crag-memory."""


class StorageError(CragError):
    """A snapshot could not be written or read."""


class SnapshotCorruptError(StorageError):
    """A snapshot file exists but cannot be turned back into a corpus."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Corrupt snapshot {path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidMetadataError(CragError, TypeError):
    """Record metadata is not a mapping of strings to str/int/float/bool."""

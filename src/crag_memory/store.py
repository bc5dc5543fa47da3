"""
JSON snapshot store for conversation records.

Only records are persisted; the vocabulary and vectors are rebuilt on load.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .config import DEFAULT_MAX_FEATURES, DEFAULT_SNAPSHOT_NAME
from .corpus import Corpus, Record
from .errors import SnapshotCorruptError, StorageError

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotStore:
    """
    Durable snapshot of a ``Corpus`` in ``<data_dir>/conversations.json``.

    Layout::

        {"version": 1, "records": [{"id", "content", "timestamp", "metadata"}, ...]}

    Older snapshots holding a bare JSON array of records are also accepted
    on load.
    """

    def __init__(self, data_dir: str | os.PathLike = "crag_data", filename: str = DEFAULT_SNAPSHOT_NAME) -> None:
        self.data_dir = Path(data_dir)
        self.filename = filename

    @property
    def path(self) -> Path:
        return self.data_dir / self.filename

    def exists(self) -> bool:
        return self.path.is_file()

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def save(self, corpus: Corpus) -> None:
        """
        Write *corpus* atomically: a temporary file in the data directory is
        fully written, then renamed over the snapshot.

        Raises ``StorageError`` if anything goes wrong; the previous snapshot
        is left in place in that case.
        """
        payload = {
            "version": SNAPSHOT_VERSION,
            "records": [record.to_dict() for record in corpus],
        }
        try:
            text = json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot serialise corpus: {exc}") from exc

        tmp_path: str | None = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.filename}.", suffix=".tmp", dir=self.data_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            raise StorageError(f"Cannot write snapshot {self.path}: {exc}") from exc
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning("Could not remove temporary file %s", tmp_path)

        logger.info("Saved %d records to %s", len(corpus), self.path)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def load(self, max_features: int | None = DEFAULT_MAX_FEATURES) -> Corpus:
        """
        Read the snapshot and rebuild a ``Corpus`` from it.

        Returns an empty corpus when no snapshot exists yet.  A snapshot that
        exists but cannot be read or parsed raises ``SnapshotCorruptError``;
        other I/O failures raise ``StorageError``.
        """
        if not self.path.exists():
            logger.info("No snapshot at %s, starting with an empty corpus", self.path)
            return Corpus(max_features=max_features)

        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise self._corrupt(f"not valid UTF-8 ({exc})") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read snapshot {self.path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise self._corrupt(f"malformed JSON ({exc})") from exc

        entries = self._record_entries(data)
        try:
            records = [Record.from_dict(entry) for entry in entries]
            corpus = Corpus.from_records(records, max_features=max_features)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise self._corrupt(f"invalid record ({exc!r})") from exc

        logger.info("Loaded %d records from %s", len(corpus), self.path)
        return corpus

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record_entries(self, data: Any) -> list[Any]:
        if isinstance(data, list):
            return data
        if not isinstance(data, dict):
            raise self._corrupt(f"expected an object or array, got {type(data).__name__}")
        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise self._corrupt(f"unsupported snapshot version {version!r}")
        records = data.get("records")
        if not isinstance(records, list):
            raise self._corrupt("'records' must be an array")
        return records

    def _corrupt(self, reason: str) -> SnapshotCorruptError:
        logger.warning("Snapshot %s is corrupt: %s", self.path, reason)
        return SnapshotCorruptError(str(self.path), reason)

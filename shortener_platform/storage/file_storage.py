"""
FileStorage – append-log durability on top of the in-memory store
=================================================================

On startup the newline-delimited log is replayed in full into the same
structures `MemoryStorage` uses; reads are then served from memory. Every
successful `save`/`save_batch` appends the new record(s), one JSON object per
line, and flushes before returning.

Line format (see `URLRecord`):

    {"id": "...", "short_url": "...", "original_url": "...", "user_id": "...", "is_deleted": false}

Key Design Points
-----------------
- **Strict replay**: a malformed line aborts loading with `StorageError`;
  lines are never skipped.
- **Soft deletes are volatile**: `delete_many` flips only the in-memory flag
  and writes nothing, so a restart restores records deleted since the last
  start. `is_deleted` is still honoured when present in the log.
- **Write-then-commit**: a record reaches memory only after its line is
  flushed, so an I/O error leaves both in agreement.

Example
-------
>>> storage = FileStorage("db.json")
>>> storage.save("AbC12345", "https://example.com", "owner-1").short_url
'AbC12345'
"""

import logging
import os
from typing import List

from pydantic import ValidationError

from ..exceptions import StorageError
from ..models import URLRecord
from .storage import MemoryStorage

logger = logging.getLogger(__name__)


class FileStorage(MemoryStorage):
    """Append-log backed implementation of the storage contract.

    Parameters
    ----------
    path : str
        Log file path; created if missing.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path
        try:
            self._file = open(path, "a+b")
        except OSError as e:
            raise StorageError(f"open url log {path}: {e}") from e
        try:
            self._load()
        except StorageError:
            self._file.close()
            raise

    def _load(self) -> None:
        self._file.seek(0)
        for lineno, raw in enumerate(self._file, start=1):
            try:
                record = URLRecord.model_validate_json(raw.decode("utf-8"))
            except (UnicodeDecodeError, ValidationError) as e:
                raise StorageError(f"load url records: {self.path}:{lineno}: {e}") from e
            self._append(record)
        self._file.seek(0, os.SEEK_END)
        logger.info("Loaded %d url records from %s", len(self.records), self.path)

    def _on_created(self, records: List[URLRecord]) -> None:
        if not records:
            return
        data = "".join(record.model_dump_json() + "\n" for record in records)
        try:
            self._file.write(data.encode("utf-8"))
            self._file.flush()
        except OSError as e:
            raise StorageError(f"save url record: {e}") from e

    def ping(self) -> None:
        if self._file.closed:
            raise StorageError(f"url log {self.path} is closed")

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()

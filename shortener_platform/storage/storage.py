"""
Storage module for the URL shortener (in-memory implementation).

Responsibilities:
    - Save records and enforce short-code / original-URL uniqueness
    - Resolve codes, signalling deleted records distinctly from missing ones
    - List records per owner
    - Flip the soft-delete flag for an owner's codes

Design:
    - All state lives in one ordered list plus two lookup indexes, guarded by a
      single `threading.Lock`; every read-modify-write happens under it, so
      concurrent writers of the same URL are serialized and exactly one wins.
    - Callers receive copies; the internal records are never handed out.
    - State is lost on process exit. `FileStorage` layers durability on top.
"""

import threading
from typing import Dict, Iterable, List, Tuple

from ..exceptions import OriginalURLConflict, RecordDeleted, RecordNotFound, ShortCodeConflict
from ..models import URLRecord
from .base import BaseStorage


class MemoryStorage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self.records      = [URLRecord, ...]          insertion order
            self._by_code     = {short_url: URLRecord}
            self._by_original = {original_url: URLRecord}
        """
        self._lock = threading.Lock()
        self.records: List[URLRecord] = []
        self._by_code: Dict[str, URLRecord] = {}
        self._by_original: Dict[str, URLRecord] = {}

    # ---- Internal helpers (caller holds the lock) -------------------------

    def _append(self, record: URLRecord) -> None:
        self.records.append(record)
        self._by_code[record.short_url] = record
        self._by_original[record.original_url] = record

    def _stage_batch(self, records: List[URLRecord]) -> Tuple[List[URLRecord], List[URLRecord]]:
        """
        Apply the per-item rules to a batch without mutating state.

        Returns:
            (results, created): results in input order, and the subset that is new.
        """
        results: List[URLRecord] = []
        created: List[URLRecord] = []
        staged_codes: Dict[str, URLRecord] = {}
        staged_originals: Dict[str, URLRecord] = {}

        for item in records:
            existing = self._by_original.get(item.original_url) or staged_originals.get(item.original_url)
            if existing is not None:
                results.append(existing)
                continue
            if item.short_url in self._by_code or item.short_url in staged_codes:
                raise ShortCodeConflict(item.short_url)

            record = item.model_copy(update={"is_deleted": False})
            staged_codes[record.short_url] = record
            staged_originals[record.original_url] = record
            results.append(record)
            created.append(record)
        return results, created

    # ---- Contract methods -------------------------------------------------

    def save(self, short_url: str, original_url: str, user_id: str) -> URLRecord:
        with self._lock:
            existing = self._by_original.get(original_url)
            if existing is not None:
                raise OriginalURLConflict(existing.model_copy())
            if short_url in self._by_code:
                raise ShortCodeConflict(short_url)

            record = URLRecord(short_url=short_url, original_url=original_url, user_id=user_id)
            self._on_created([record])
            self._append(record)
            return record.model_copy()

    def save_batch(self, records: List[URLRecord]) -> List[URLRecord]:
        """
        All items are staged first and committed only when none collides on
        its short code, so a failing batch leaves the store untouched.
        """
        with self._lock:
            results, created = self._stage_batch(records)
            self._on_created(created)
            for record in created:
                self._append(record)
            return [r.model_copy() for r in results]

    def get_by_short_url(self, short_url: str) -> URLRecord:
        with self._lock:
            record = self._by_code.get(short_url)
            if record is None:
                raise RecordNotFound(short_url)
            if record.is_deleted:
                raise RecordDeleted(record.model_copy())
            return record.model_copy()

    def get_by_user_id(self, user_id: str) -> List[URLRecord]:
        with self._lock:
            return [r.model_copy() for r in self.records if r.user_id == user_id]

    def delete_many(self, short_urls: Iterable[str], user_id: str) -> None:
        with self._lock:
            for code in short_urls:
                record = self._by_code.get(code)
                if record is not None and record.user_id == user_id:
                    record.is_deleted = True

    def ping(self) -> None:
        return None

    # ---- Hooks ------------------------------------------------------------

    def _on_created(self, records: List[URLRecord]) -> None:
        """Called under the lock before new records are committed; raising aborts the write."""

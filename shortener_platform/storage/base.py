"""
Base storage interface for the URL shortener.

Purpose:
    Define the contract every backend (in-memory, append-log, PostgreSQL)
    implements identically, so `ShorteningService` and `AsyncDeleter` never
    depend on where records live.

Uniqueness invariants enforced by every backend:
    1. `short_url` is unique across live *and* deleted records.
    2. `original_url` is unique across all records, regardless of owner.
       The first writer owns the mapping; later writers get the existing record.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    The shared behaviour lives in `tests/unit/test_storage_contract.py`,
    which runs against every backend.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from ..models import URLRecord


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def save(self, short_url: str, original_url: str, user_id: str) -> URLRecord:
        """
        Persist a new mapping.

        Returns:
            URLRecord: The newly created record.

        Raises:
            OriginalURLConflict: `original_url` is already mapped; the exception
                carries the existing record and nothing is created.
            ShortCodeConflict: `short_url` already names another record.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def save_batch(self, records: List[URLRecord]) -> List[URLRecord]:
        """
        Persist several mappings as one unit.

        Per item the rules of `save` apply, except that an already-mapped
        `original_url` yields the existing record in place instead of raising.
        Results preserve input order 1:1.

        Raises:
            ShortCodeConflict: Any item collides on `short_url`; nothing from
                the batch is persisted.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_by_short_url(self, short_url: str) -> URLRecord:
        """
        Resolve a short code.

        Raises:
            RecordNotFound: No record has this code.
            RecordDeleted: The record exists but is soft-deleted.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_by_user_id(self, user_id: str) -> List[URLRecord]:
        """Return all live and deleted records created by `user_id`."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_many(self, short_urls: Iterable[str], user_id: str) -> None:
        """
        Soft-delete every record whose code is in `short_urls` and which is
        owned by `user_id`. Codes owned by others are silently skipped;
        deleting an already-deleted record is a no-op.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def ping(self) -> None:
        """Liveness probe. Raises `StorageError` when the backend is unreachable."""
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources. No-op by default."""

"""
ShorteningService module for the URL shortener.

Responsibilities:
    - Generate short codes and save them, retrying on code collisions
    - Deduplicate by original URL: the first writer owns the mapping, later
      writers (any owner) get the existing short URL back
    - Shorten batches in one backend call, preserving correlation ids
    - Resolve codes, keeping not-found and deleted distinct
    - List an owner's records and hand deletions to the background deleter

Design notes:
    - Backend conflicts arrive as `OriginalURLConflict` / `ShortCodeConflict`
      and are translated here; transport failures propagate unchanged.
    - Single-item shortening retries collisions up to `max_retries`; batch
      shortening generates one code per item and fails the whole call on a
      collision.
    - URL deduplication is global, not per owner.
"""

import logging
from typing import List, Optional, Sequence

from ..exceptions import (
    EmptyBatchError,
    EmptyCodeError,
    EmptyURLError,
    OriginalURLConflict,
    RecordDeleted,
    RecordNotFound,
    RetriesExhaustedError,
    ShortCodeConflict,
    URLDeletedError,
    URLNotFoundError,
)
from ..models import BatchItem, BatchResult, ShortenResult, URLRecord
from ..storage.base import BaseStorage
from .deleter import AsyncDeleter, DeletionJob
from .strategies import BaseStrategy, RandomBase64Strategy

logger = logging.getLogger(__name__)

MAX_SAVE_RETRIES = 5


class ShorteningService:
    """
    Coordinates code generation, storage and deletion.

    Args:
        storage (BaseStorage): Backend storage instance.
        base_url (str): Prefix joined with a code to form the full short URL.
        strategy (Optional[BaseStrategy]): Code generator; random Base64 by default.
        deleter (Optional[AsyncDeleter]): Background deleter; one is created if omitted.
        max_retries (int): Attempts to find a free code in `shorten`.
    """

    def __init__(
        self,
        storage: BaseStorage,
        base_url: str,
        strategy: Optional[BaseStrategy] = None,
        deleter: Optional[AsyncDeleter] = None,
        max_retries: int = MAX_SAVE_RETRIES,
    ):
        self.storage = storage
        self.base_url = base_url.rstrip("/")
        self.strategy = strategy or RandomBase64Strategy()
        self.deleter = deleter or AsyncDeleter(storage)
        self.max_retries = max_retries

    def build_short_url(self, code: str) -> str:
        return f"{self.base_url}/{code}"

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def shorten(self, original_url: str, user_id: str) -> ShortenResult:
        """
        Create a short URL for `original_url` on behalf of `user_id`.

        Returns:
            ShortenResult: `created` is False when the URL was already mapped,
            in which case `short_url` is the existing one.

        Raises:
            EmptyURLError: `original_url` is empty.
            RetriesExhaustedError: Every generated code collided.
        """
        if not original_url:
            raise EmptyURLError("URL cannot be empty")

        for attempt in range(1, self.max_retries + 1):
            code = self.strategy.generate()
            try:
                record = self.storage.save(code, original_url, user_id)
            except OriginalURLConflict as conflict:
                logger.info("%s", conflict)
                return ShortenResult(self.build_short_url(conflict.record.short_url), created=False)
            except ShortCodeConflict:
                logger.info("Short code collision on attempt %d/%d", attempt, self.max_retries)
                continue
            return ShortenResult(self.build_short_url(record.short_url), created=True)

        logger.error("Could not generate a unique short code after %d attempts", self.max_retries)
        raise RetriesExhaustedError(
            f"maximum retry attempts ({self.max_retries}) exceeded for generating unique short URL"
        )

    def shorten_batch(self, items: Sequence[BatchItem], user_id: str) -> List[BatchResult]:
        """
        Shorten several URLs in one backend call.

        Raises:
            EmptyBatchError: `items` is empty.
            EmptyURLError: Any item has an empty URL.
            ShortCodeConflict: A generated code collided; nothing was saved.
        """
        if not items:
            raise EmptyBatchError("URL batch cannot be empty")

        records = []
        for item in items:
            if not item.original_url:
                raise EmptyURLError("URL cannot be empty")
            records.append(
                URLRecord(short_url=self.strategy.generate(), original_url=item.original_url, user_id=user_id)
            )

        saved = self.storage.save_batch(records)
        return [
            BatchResult(correlation_id=item.correlation_id, short_url=self.build_short_url(record.short_url))
            for item, record in zip(items, saved)
        ]

    def resolve(self, short_url: str) -> str:
        """
        Return the original URL for a code.

        Raises:
            EmptyCodeError, URLNotFoundError, URLDeletedError
        """
        if not short_url:
            raise EmptyCodeError("ShortID cannot be empty")
        try:
            return self.storage.get_by_short_url(short_url).original_url
        except RecordNotFound as e:
            raise URLNotFoundError(f"short ID '{short_url}' not found") from e
        except RecordDeleted as e:
            raise URLDeletedError(f"short ID '{short_url}' has been deleted") from e

    def list_owned(self, user_id: str) -> List[URLRecord]:
        return self.storage.get_by_user_id(user_id)

    def request_deletion(self, user_id: str, short_urls: Sequence[str]) -> Optional[DeletionJob]:
        """Fire-and-forget: dispatch soft deletion and return without waiting."""
        if not short_urls:
            return None
        return self.deleter.submit(user_id, short_urls)

    def check_health(self) -> None:
        self.storage.ping()

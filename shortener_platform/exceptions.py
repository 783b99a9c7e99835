"""
Exceptions for the URL shortener.

Two layers:
    - Storage outcomes (`StorageError` and subclasses) are raised by every
      backend implementing `BaseStorage`. Conflicts, not-found and deleted
      are first-class outcomes, not generic failures.
    - Service outcomes (`ShortenerError` and subclasses) are raised by
      `ShorteningService` and mapped to HTTP statuses by the API layer.

Example:
    >>> from shortener_platform.exceptions import ShortCodeConflict
    >>> raise ShortCodeConflict("abcd1234")
    Traceback (most recent call last):
        ...
    shortener_platform.exceptions.ShortCodeConflict: abcd1234
"""


class StorageError(Exception):
    """Generic base class for storage failures (I/O, connectivity, corrupt log)."""


class OriginalURLConflict(StorageError):
    """The original URL is already mapped; `record` is the existing canonical record."""

    def __init__(self, record):
        super().__init__(f"{record.original_url} - URL already exists")
        self.record = record


class ShortCodeConflict(StorageError):
    """The generated short code already names a different record."""


class RecordNotFound(StorageError):
    """No record exists for the requested short code."""


class RecordDeleted(StorageError):
    """The record exists but has been soft-deleted by its owner."""

    def __init__(self, record):
        super().__init__(f"{record.short_url} has been deleted")
        self.record = record


class ShortenerError(Exception):
    """Base class for service-level outcomes."""


class EmptyURLError(ShortenerError, ValueError):
    pass


class EmptyBatchError(ShortenerError, ValueError):
    pass


class EmptyCodeError(ShortenerError, ValueError):
    pass


class URLNotFoundError(ShortenerError):
    pass


class URLDeletedError(ShortenerError):
    pass


class RetriesExhaustedError(ShortenerError):
    """Could not find a free short code within the retry bound (server-side failure)."""

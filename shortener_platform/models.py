"""
Data models for the URL shortener.

`URLRecord` is the only persisted entity. Its JSON form is also the line
format of the append-only log used by `FileStorage`:

    {"id": "...", "short_url": "...", "original_url": "...", "user_id": "...", "is_deleted": false}
"""

import uuid
from typing import NamedTuple

from pydantic import BaseModel, Field


class URLRecord(BaseModel):
    """A short code mapped to its original URL, owned by `user_id`."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    short_url: str
    original_url: str
    user_id: str = ""
    is_deleted: bool = False


class BatchItem(BaseModel):
    """One entry of a batch shorten request."""

    correlation_id: str
    original_url: str


class BatchResult(BaseModel):
    correlation_id: str
    short_url: str


class ShortenResult(NamedTuple):
    """Outcome of `ShorteningService.shorten`.

    `created` is False when the URL was already mapped and `short_url`
    points at the existing record.
    """

    short_url: str
    created: bool

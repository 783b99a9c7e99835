"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

Centralizes selection of the storage backend so the rest of the app stays
ignorant of where records live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SHORTENER_STORAGE_BACKEND:   "memory" (default), "file" or "postgres"
- SHORTENER_FILE_STORAGE_PATH: log path if backend=="file" (default "db.json")
- SHORTENER_DB_DSN:            DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from .base import BaseStorage
from .file_storage import FileStorage
from .storage import MemoryStorage

logger = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory", "file" or "postgres". If omitted, reads SHORTENER_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend constructor: path="..." for file, dsn="..." for postgres.

    Returns
    -------
    BaseStorage
    """
    be = (backend or os.getenv("SHORTENER_STORAGE_BACKEND", "memory")).strip().lower()
    logger.info("Selected storage backend: %r", be)

    if be == "memory":
        return MemoryStorage()

    if be == "file":
        path = kwargs.get("path") or os.getenv("SHORTENER_FILE_STORAGE_PATH", "db.json")
        return FileStorage(path)

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SHORTENER_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTENER_DB_DSN)")
        # Local import to avoid loading the driver when not using postgres
        from .db_storage import DBStorage

        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")

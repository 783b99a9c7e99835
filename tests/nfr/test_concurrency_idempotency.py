"""
NFR: concurrency/idempotency for shorten

Goal:
    Hammer `shorten` for the same URL from many threads and owners, and ensure:
      - exactly one call reports `created`
      - every call returns the same short URL
      - storage holds a single record for that URL

How to run (opt-in):
    RUN_NFR=1 pytest tests/nfr/test_concurrency_idempotency.py -vv
"""

import os
from concurrent.futures import ThreadPoolExecutor

import pytest

from shortener_platform.manager.shortening_service import ShorteningService
from shortener_platform.storage.storage import MemoryStorage

pytestmark = pytest.mark.nfr


def _should_run():
    return os.getenv("RUN_NFR") == "1"


@pytest.mark.skipif(not _should_run(), reason="NFR tests are opt-in; set RUN_NFR=1 to enable")
def test_idempotent_on_concurrent_shortens_same_url():
    storage = MemoryStorage()
    service = ShorteningService(storage=storage, base_url="http://short.test")
    url = "https://example.com/idempotent"

    N = 2000
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda i: service.shorten(url, f"user-{i % 50}"), range(N)))
    service.deleter.close()

    assert sum(r.created for r in results) == 1
    assert len({r.short_url for r in results}) == 1
    assert len(storage.records) == 1

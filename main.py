"""
Main API module for the URL shortener.

Responsibilities:
    - Expose REST endpoints for shortening (single, JSON, batch), redirecting,
      listing the caller's URLs and deleting them
    - Map service outcomes to HTTP statuses (201/409/400/404/410/202/204/500)
    - Own process-scoped resources: storage backend and background deleter

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Storage backend chosen by configuration; in-memory by default.
    - ShorteningService orchestrates generation, dedupe and collision retries;
      AsyncDeleter runs deletions on an application-lifetime pool.
    - Owner identity comes from a signed cookie handled by the `auth` package.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from auth.dependencies import get_current_user
from auth.middleware import owner_cookie_middleware
from shortener_platform.config import load_settings
from shortener_platform.exceptions import (
    EmptyBatchError,
    EmptyCodeError,
    EmptyURLError,
    RetriesExhaustedError,
    StorageError,
    URLDeletedError,
    URLNotFoundError,
)
from shortener_platform.logging import initialize_logging
from shortener_platform.manager.deleter import AsyncDeleter
from shortener_platform.manager.shortening_service import ShorteningService
from shortener_platform.middleware import GzipRequestMiddleware
from shortener_platform.models import BatchItem
from shortener_platform.storage.base import BaseStorage
from shortener_platform.storage.storage_factory import get_storage

log = logging.getLogger("shortener")


class ShortenRequest(BaseModel):
    """Request payload for `POST /api/shorten`."""
    url: str


def require_content_type(media_type: str):
    """Dependency rejecting requests whose Content-Type is not `media_type` (parameters ignored)."""

    def check(request: Request) -> None:
        received = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
        if received != media_type:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid content type")

    return check


def create_app(settings=None, storage: Optional[BaseStorage] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        settings: Settings object; read from the environment when omitted.
        storage (Optional[BaseStorage]): Backend override, mainly for tests.

    Returns:
        FastAPI: A fully configured application with its own storage,
                 deleter and service instances.
    """
    settings = settings or load_settings()
    if not logging.getLogger().handlers:
        initialize_logging(settings.LOG_LEVEL)

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    storage = storage or get_storage(
        settings.STORAGE_BACKEND, path=settings.FILE_STORAGE_PATH, dsn=settings.DB_DSN
    )
    deleter = AsyncDeleter(
        storage,
        chunk_size=settings.DELETE_CHUNK_SIZE,
        max_concurrency=settings.DELETE_MAX_CONCURRENCY,
    )
    service = ShorteningService(
        storage=storage,
        base_url=settings.BASE_URL,
        deleter=deleter,
        max_retries=settings.MAX_SAVE_RETRIES,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Deletions run on the app's lifetime: let queued chunks finish first.
        deleter.close(wait=True)
        storage.close()

    app = FastAPI(
        title="URL Shortener",
        description="URL shortener with owner-scoped soft deletion",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    log.info("Shortener storage backend: %s", type(storage).__name__)

    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(GzipRequestMiddleware)
    app.middleware("http")(owner_cookie_middleware)

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        log.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000.0,
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse({"detail": "Failed to decode json"}, status_code=status.HTTP_400_BAD_REQUEST)

    def _internal_error(message: str, exc: Exception) -> HTTPException:
        log.error("%s: %s", message, exc)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

    def _shorten(url: str, user_id: str):
        try:
            return service.shorten(url, user_id)
        except EmptyURLError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except (RetriesExhaustedError, StorageError) as e:
            raise _internal_error("failed to shorten URL", e)

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/ping")
    def ping() -> Response:
        try:
            service.check_health()
        except StorageError as e:
            raise _internal_error("ping failed", e)
        return Response(status_code=status.HTTP_200_OK)

    @app.post("/", dependencies=[Depends(require_content_type("text/plain"))])
    async def shorten_text(request: Request, user_id: str = Depends(get_current_user)) -> Response:
        """Shorten a URL sent as a plain-text body; responds with the short URL as text."""
        try:
            url = (await request.body()).decode("utf-8").strip()
        except UnicodeDecodeError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Body must be UTF-8 text")
        result = await run_in_threadpool(_shorten, url, user_id)
        code = status.HTTP_201_CREATED if result.created else status.HTTP_409_CONFLICT
        return PlainTextResponse(result.short_url, status_code=code)

    @app.post("/api/shorten", dependencies=[Depends(require_content_type("application/json"))])
    def shorten_json(req: ShortenRequest, user_id: str = Depends(get_current_user)) -> Response:
        result = _shorten(req.url, user_id)
        code = status.HTTP_201_CREATED if result.created else status.HTTP_409_CONFLICT
        return JSONResponse({"result": result.short_url}, status_code=code)

    @app.post("/api/shorten/batch", status_code=status.HTTP_201_CREATED)
    def shorten_batch(items: List[BatchItem], user_id: str = Depends(get_current_user)):
        try:
            results = service.shorten_batch(items, user_id)
        except (EmptyBatchError, EmptyURLError) as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except StorageError as e:
            raise _internal_error("failed to shorten URL batch", e)
        return [r.model_dump() for r in results]

    @app.get("/api/user/urls")
    def user_urls(user_id: str = Depends(get_current_user)):
        try:
            records = service.list_owned(user_id)
        except StorageError as e:
            raise _internal_error("failed to get user URLs", e)
        if not records:
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return [
            {"short_url": service.build_short_url(r.short_url), "original_url": r.original_url}
            for r in records
        ]

    @app.delete("/api/user/urls", status_code=status.HTTP_202_ACCEPTED)
    def delete_user_urls(codes: List[str] = Body(...), user_id: str = Depends(get_current_user)) -> Response:
        if not codes:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty URL list")
        # Runs on the deleter's pool, not on this request.
        service.request_deletion(user_id, codes)
        return Response(status_code=status.HTTP_202_ACCEPTED)

    @app.get("/{code}")
    def redirect(code: str) -> Response:
        try:
            original_url = service.resolve(code)
        except (URLNotFoundError, EmptyCodeError):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL not found")
        except URLDeletedError:
            raise HTTPException(status_code=status.HTTP_410_GONE, detail="URL has been deleted")
        except StorageError as e:
            raise _internal_error("failed to get original URL", e)
        return RedirectResponse(url=original_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    return app


# `uvicorn main:app` and `from main import app` continue to work.
app = create_app()

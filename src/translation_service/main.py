"""FastAPI application entry point."""

import asyncio
import contextlib
from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlmodel import Session
from structlog import contextvars

from translation_service.api.main import api_router
from translation_service.auth import cleanup_expired_tokens
from translation_service.core.config import settings
from translation_service.core.db import engine
from translation_service.core.exceptions import AppException
from translation_service.core.logging import get_logger, setup_logging
from translation_service.core.rate_limit import limiter
from translation_service.core.tasks import create_safe_task
from translation_service.export import (
    ExportCache,
    ExportService,
    build_snapshot_storage,
    invalidate_on_write,
    sweep_expired,
)
from translation_service.translations import TranslationStore

setup_logging()
logger = get_logger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI schema.

    Format: {tag}-{route_name}
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and the export pipeline, and tear them down on exit."""
    storage = build_snapshot_storage(settings.EXPORT_STORAGE, settings.EXPORT_DIR)
    # Snapshots never outlive the process that built them
    storage.purge(settings.EXPORT_FILENAME_PREFIX)

    cache = ExportCache(storage, ttl_seconds=settings.EXPORT_CACHE_TTL_SECONDS)
    store = TranslationStore(engine)
    unsubscribe = store.on_write(invalidate_on_write(cache))

    app.state.translation_store = store
    app.state.export_cache = cache
    app.state.export_service = ExportService(
        store,
        cache,
        page_size=settings.EXPORT_PAGE_SIZE,
        filename_prefix=settings.EXPORT_FILENAME_PREFIX,
    )

    sweeper = create_safe_task(
        sweep_expired(cache, settings.EXPORT_CACHE_SWEEP_SECONDS),
        task_name="export_cache_sweeper",
    )

    with Session(engine) as session:
        cleanup_expired_tokens(session)

    logger.info(
        "application_startup",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        export_storage=storage.name,
        export_page_size=settings.EXPORT_PAGE_SIZE,
        export_cache_ttl=settings.EXPORT_CACHE_TTL_SECONDS,
    )

    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        unsubscribe()
        cache.invalidate()
        logger.info("application_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        """Handle all AppException subclasses with consistent JSON format."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "app_exception",
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add unique request ID to each request for tracing."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        contextvars.clear_contextvars()
        contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses."""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
        response.headers["Pragma"] = "no-cache"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        return response

    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=[
                "Authorization",
                "Content-Type",
                "X-Request-ID",
                "Accept",
                "Origin",
            ],
            expose_headers=[
                "X-Request-ID",
                "X-Export-Cache",
                "Content-Disposition",
            ],
        )
        logger.info("cors_configured", origins=settings.all_cors_origins)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_app()


@app.get("/health", tags=["health"])
async def root_health():
    """Root health check endpoint."""
    return {"status": "ok", "service": settings.PROJECT_NAME}

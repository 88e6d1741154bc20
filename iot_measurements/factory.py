from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from iot_measurements.api.router import AVAILABLE_ROUTES, api_router
from iot_measurements.core.config import Settings, load_settings
from iot_measurements.core.errors import MeasurementError, StorageError
from iot_measurements.core.logging_config import configure_logging
from iot_measurements.db.engine import create_engine_from_settings
from iot_measurements.repositories.base import MeasurementRepository
from iot_measurements.repositories.sql import SqlMeasurementRepository
from iot_measurements.schemas.measurements import ErrorResponse

logger = logging.getLogger(__name__)


def _build_repository(settings: Settings) -> SqlMeasurementRepository:
    return SqlMeasurementRepository(
        engine=create_engine_from_settings(settings),
        pool_size=settings.database_pool_size,
        max_pending=settings.database_max_pending,
    )


def create_app(
    settings: Settings | None = None,
    *,
    repository: MeasurementRepository | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        repo = repository
        if repo is None:
            sql_repo = _build_repository(settings)
            if settings.database_create_schema:
                await sql_repo.create_schema()
            repo = sql_repo
        app.state.measurement_repository = repo
        logger.info("Measurement API started")

        yield

        # Injected repositories belong to the caller.
        if repository is None:
            await repo.close()
        logger.info("Measurement API stopped")

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="IoT Measurements API",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response

    @app.middleware("http")
    async def request_logging(request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "status": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return response

    @app.exception_handler(MeasurementError)
    async def measurement_error_handler(request: Request, exc: MeasurementError):
        if isinstance(exc, StorageError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            body = ErrorResponse(error="Database connection error", kind=exc.kind)
        else:
            status_code = status.HTTP_400_BAD_REQUEST
            body = ErrorResponse(error=exc.message, kind=exc.kind)
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        body = ErrorResponse(error=str(exc.detail))
        if exc.status_code == status.HTTP_404_NOT_FOUND and "endpoint" not in request.scope:
            body.error = f"Route not found: {request.method} {request.url.path}"
            body.available_routes = AVAILABLE_ROUTES
        return JSONResponse(
            status_code=exc.status_code,
            content=body.model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None),
        )

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "iot-measurements", "status": "ok"}

    app.include_router(api_router)
    return app

"""
FastAPI Application for the TeleWindy sync server.

Main application entry point:
- Snapshot backup endpoints (GET/POST /api/data)
- Shared-secret bearer authentication
- Body size ceiling, request tracing, CORS
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.errors import STATUS_ERROR_CODES, make_error_response
from api.log_rotation import configure_logging
from api.middleware import BodySizeLimitMiddleware, RequestTracingMiddleware
from core.backup import (
    BackupNotFoundError,
    BackupReadError,
    BackupStoreError,
    BackupWriteError,
    RotatingBackupStore,
)
from core.config import SyncConfig, get_config

logger = logging.getLogger("telewindy.api")

__version__ = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management."""
    config: SyncConfig = app.state.config
    store: RotatingBackupStore = app.state.backup_store

    logger.info(f"Sync server started: http://{config.host}:{config.port}")
    logger.info(f"Mode: {store.capacity} rotating backup files in {store.data_dir}")
    if store.serialize_writes:
        logger.info("Write serialization enabled (file lock)")

    yield

    logger.info("Shutting down sync server...")


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    config: Optional[SyncConfig] = None,
    store: Optional[RotatingBackupStore] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Raises:
        RuntimeError: If the configuration is unusable (e.g. no secret set)
    """
    config = config or get_config()

    problems = config.validate()
    if problems:
        raise RuntimeError("Invalid sync server configuration: " + "; ".join(problems))

    app = FastAPI(
        title="TeleWindy Sync API",
        description="Rotating snapshot backups for the TeleWindy chat client",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.backup_store = store or RotatingBackupStore.from_config(config)

    # Request body size limit
    app.add_middleware(BodySizeLimitMiddleware, max_size=config.body_limit_bytes)

    # Request tracing (adds X-Request-ID)
    app.add_middleware(RequestTracingMiddleware)

    # CORS configuration, outermost so preflight never hits auth
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    _install_exception_handlers(app)
    _include_routers(app)

    return app


def _install_exception_handlers(app: FastAPI):
    """Global exception handlers for standardized error responses."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error_code = STATUS_ERROR_CODES.get(exc.status_code, "SYS_003")
        return JSONResponse(
            status_code=exc.status_code,
            content=make_error_response(error_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(BackupStoreError)
    async def backup_exception_handler(request: Request, exc: BackupStoreError):
        if isinstance(exc, BackupNotFoundError):
            return JSONResponse(status_code=404, content=make_error_response("DATA_001"))

        if isinstance(exc, BackupWriteError):
            logger.error(f"Backup write failed: {exc}")
            return JSONResponse(status_code=500, content=make_error_response("DATA_002", str(exc)))

        if isinstance(exc, BackupReadError):
            logger.error(f"Backup read failed: {exc}")
            return JSONResponse(status_code=500, content=make_error_response("DATA_003", str(exc)))

        logger.error(f"Backup store error: {exc}")
        return JSONResponse(status_code=500, content=make_error_response("SYS_003", str(exc)))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=make_error_response("SYS_003", "Internal server error")
        )


def _include_routers(app: FastAPI):
    """Include all API routers."""
    from api.routes.data import router as data_router
    app.include_router(data_router)
    logger.info("Included backup data routes")


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Run the server with uvicorn using the environment configuration."""
    import uvicorn

    config = get_config()
    configure_logging(config.log_level, config.log_file)

    uvicorn.run(
        "api.fastapi_app:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()

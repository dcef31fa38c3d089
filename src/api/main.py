"""
FastAPI main application.

REST API over the dynamic table engine.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
import time
from typing import Callable, Optional

from modules.tables import TableEngine
from shared.database.exceptions import (
    DatabaseOperationError,
    DuplicateError,
    InvalidArgumentError,
    InvalidConfigurationError,
    NotFoundError,
    ProtectedColumnError,
    TableEngineError,
    UnsupportedOperationError,
)
from shared.utils.config import Settings, get_settings
from shared.utils.logger import setup_logger
from src.api.config import APISettings, get_api_settings
from src.api.v1.models.responses import ErrorResponse
from src.api.v1.router import api_router
from src.database.connection import check_connection, create_tables

logger = setup_logger(__name__)

# Most specific first
ERROR_STATUS = [
    (NotFoundError, 404, "not_found"),
    (UnsupportedOperationError, 501, "unsupported_on_dialect"),
    (InvalidConfigurationError, 400, "invalid_configuration"),
    (ProtectedColumnError, 400, "protected_column"),
    (InvalidArgumentError, 400, "invalid_argument"),
    (DuplicateError, 409, "duplicate"),
    (DatabaseOperationError, 500, "database_error"),
]


def _error_response(status_code: int, error: str, message: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_application(
    settings: Optional[Settings] = None,
    api_settings: Optional[APISettings] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Database/application settings (environment if omitted)
        api_settings: API settings (environment if omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    api_settings = api_settings or get_api_settings()

    app = FastAPI(
        title=api_settings.API_TITLE,
        description=api_settings.API_DESCRIPTION,
        version=api_settings.API_VERSION,
        docs_url="/docs" if api_settings.ENABLE_DOCS else None,
        redoc_url="/redoc" if api_settings.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if api_settings.ENABLE_DOCS else None,
    )
    app.state.api_settings = api_settings
    app.state.table_engine = None

    # Configure CORS
    if api_settings.ENABLE_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=api_settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=api_settings.CORS_METHODS,
            allow_headers=api_settings.CORS_HEADERS,
        )

    # Add request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next: Callable):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    app.include_router(api_router, prefix=api_settings.API_V1_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check():
        """
        Health check endpoint.

        Returns:
            Health status of the API and the active dialect
        """
        engine: Optional[TableEngine] = app.state.table_engine
        if engine is None:
            status, dialect = "starting", None
        else:
            connected = await check_connection(engine.engine)
            status, dialect = ("healthy" if connected else "unhealthy"), engine.dialect.name
        return {
            "status": status,
            "version": api_settings.API_VERSION,
            "environment": api_settings.ENVIRONMENT,
            "dialect": dialect,
        }

    @app.exception_handler(TableEngineError)
    async def table_engine_exception_handler(_request: Request, exc: TableEngineError):
        """Map engine errors to HTTP status codes."""
        for error_type, status_code, code in ERROR_STATUS:
            if isinstance(exc, error_type):
                if status_code >= 500:
                    logger.error(f"{type(exc).__name__}: {exc}")
                return _error_response(status_code, code, str(exc))
        logger.error(f"Unmapped table engine error: {exc}")
        return _error_response(500, "table_engine_error", str(exc))

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(_request: Request, exc: IntegrityError):
        """Constraint violations reported by the database."""
        return _error_response(409, "constraint_violation", "The database rejected the change", str(exc.orig))

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception):
        """
        Global exception handler for unhandled errors.

        Args:
            _request: FastAPI request
            exc: Exception raised

        Returns:
            JSON error response
        """
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        return _error_response(
            500,
            "internal_server_error",
            "An internal server error occurred",
            str(exc) if api_settings.DEBUG else None,
        )

    @app.on_event("startup")
    async def startup_event():
        """Create the table engine (and metadata tables) on startup."""
        logger.info(f"Starting {api_settings.API_TITLE} v{api_settings.API_VERSION}")
        engine = TableEngine.from_settings(settings)
        if api_settings.CREATE_TABLES_ON_STARTUP:
            await create_tables(engine.engine)
        app.state.table_engine = engine

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        logger.info(f"Shutting down {api_settings.API_TITLE}")
        if app.state.table_engine is not None:
            await app.state.table_engine.close()
            app.state.table_engine = None

    return app


if __name__ == "__main__":
    import uvicorn

    api_settings = get_api_settings()
    uvicorn.run(
        "src.api.main:create_application",
        factory=True,
        host=api_settings.API_HOST,
        port=api_settings.API_PORT,
        reload=api_settings.DEBUG,
        log_level=api_settings.LOG_LEVEL.lower()
    )

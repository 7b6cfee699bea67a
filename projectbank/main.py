"""
Project Bank - FastAPI Application

Main entry point for the API server.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from projectbank.api import api_router
from projectbank.config import get_settings
from projectbank.models.common import ErrorResponse
from projectbank.api.routes.health import log_request, log_error
from projectbank.services.catalog import ProjectCatalog
from projectbank.services.store import create_project_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)

# Add filter to inject request_id into all log records
class RequestIdFilter(logging.Filter):
    """Filter that adds request_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'request_id'):
            record.request_id = '-'
        return True

# Apply filter to root logger
for handler in logging.root.handlers:
    handler.addFilter(RequestIdFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Storage backend: {app.state.catalog.store.backend}")

    yield

    # Shutdown
    logger.info("Shutting down...")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds request ID and logs all requests.

    Features:
    - Generates unique request ID for each request
    - Logs request start/end with timing
    - Records requests to diagnostics buffer
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        start_time = time.time()

        logger.info(
            f"➡️  {method} {path} from {client_ip}",
            extra={"request_id": request_id}
        )

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000

            status_emoji = "✅" if response.status_code < 400 else "❌"
            logger.info(
                f"{status_emoji} {method} {path} -> {response.status_code} ({duration_ms:.1f}ms)",
                extra={"request_id": request_id}
            )

            log_request({
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            })

            response.headers["X-Request-ID"] = request_id

            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.exception(
                f"💥 {method} {path} FAILED ({duration_ms:.1f}ms): {e}",
                extra={"request_id": request_id}
            )

            log_error({
                "request_id": request_id,
                "method": method,
                "path": path,
                "error": str(e),
                "error_type": type(e).__name__,
            })

            raise


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    code: Optional[str] = None,
    detail: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            code=code,
            detail=detail,
        ).model_dump(mode="json", exclude_none=True),
        headers={**(headers or {}), "X-Request-ID": request_id},
    )


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        msg = err.get("msg", "invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


def create_app(catalog: Optional[ProjectCatalog] = None) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.

    Args:
        catalog: Catalog to serve. Built from settings when omitted.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="College project bank: browse, rate and review student projects",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.catalog = catalog or ProjectCatalog(
        create_project_store(settings),
        default_limit=settings.default_page_size,
    )

    # Add request logging middleware (must be added before CORS)
    app.add_middleware(RequestLoggingMiddleware)

    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r".*",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if settings.is_development else None,
            "health": "/api/health",
        }

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors as {success: false, message}."""
        return _error_response(
            request,
            exc.status_code,
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Bad request bodies and parameters are 400s."""
        message = _describe_validation_errors(exc)
        logger.info(
            f"Rejected {request.method} {request.url.path}: {message}",
            extra={"request_id": getattr(request.state, 'request_id', 'unknown')}
        )
        return _error_response(request, 400, message, code="invalid_input")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.exception(
            f"Unhandled exception: {exc}",
            extra={"request_id": request_id}
        )

        log_error({
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
            "error_type": type(exc).__name__,
        })

        # Don't expose internal errors in production
        return _error_response(
            request,
            500,
            "Internal server error",
            code="internal_error",
            detail=None if settings.is_production else str(exc),
        )

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "projectbank.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )

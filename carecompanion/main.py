from contextlib import asynccontextmanager
from typing import Any, Dict
import secrets
import time

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from carecompanion import __version__
from carecompanion.core.config import AppConstants, get_settings
from carecompanion.core.database import close_db_connection, create_db_and_tables
from carecompanion.core.exceptions import CareCompanionError, NotAuthenticatedError, PersistenceError
from carecompanion.api.routes import (
    assessments,
    caregiver,
    dashboard,
    goals,
    health,
    logs,
    patients,
    safety,
    session,
    therapy
)
from carecompanion.schemas.common import ErrorResponse
from carecompanion.utils.logger import bind_request_context, clear_request_context, setup_logging

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    'carecompanion_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)
REQUEST_DURATION = Histogram(
    'carecompanion_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)


def _endpoint_label(request: Request) -> str:
    # Route templates keep label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or request.headers.get("X-Correlation-ID", "unknown")


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics"""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        endpoint = _endpoint_label(request)

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code)
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for structured request/response logging"""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        # Correlation ID for request tracing
        correlation_id = request.headers.get("X-Correlation-ID") or f"cc-{secrets.token_hex(8)}"
        request.state.correlation_id = correlation_id

        clear_request_context()
        bind_request_context(correlation_id=correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else "unknown"
        )

        try:
            response = await call_next(request)

            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration=f"{time.perf_counter() - start_time:.4f}s"
            )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as exc:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration=f"{time.perf_counter() - start_time:.4f}s",
                error=str(exc),
                exc_info=True
            )
            raise
        finally:
            clear_request_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings = get_settings()

    logger.info("Starting CareCompanion API", version=__version__)

    try:
        await create_db_and_tables()
        logger.info(
            "API startup completed",
            environment=settings.ENVIRONMENT,
            debug=settings.DEBUG,
            burnout_scorer=settings.clinical.BURNOUT_SCORER
        )

    except Exception as e:
        logger.error("Failed to start application", error=str(e), exc_info=True)
        raise

    yield  # Application runs here

    logger.info("Shutting down CareCompanion API")

    try:
        await close_db_connection()
        logger.info("Application shutdown completed")

    except Exception as e:
        logger.error("Error during shutdown", error=str(e), exc_info=True)


async def care_error_handler(request: Request, exc: CareCompanionError) -> JSONResponse:
    """Map domain errors to their HTTP status"""
    correlation_id = _correlation_id(request)

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request rejected",
        error=exc.error,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )

    body = ErrorResponse(
        error=exc.error,
        message=exc.message,
        correlation_id=correlation_id,
        details=exc.details or None,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticatedError) else None
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"), headers=headers)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Report a failed database call as a persistence error without leaking the statement"""
    logger.error(
        "Database operation failed",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return await care_error_handler(
        request,
        PersistenceError("The care record store is unavailable, please retry", {"error_type": type(exc).__name__}),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions"""
    correlation_id = _correlation_id(request)

    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    # Don't expose internal errors in production
    settings = get_settings()
    if settings.ENVIRONMENT == "production":
        body = ErrorResponse(
            error="internal_error",
            message=AppConstants.API_ERROR_MESSAGE,
            correlation_id=correlation_id,
        )
    else:
        body = ErrorResponse(
            error="internal_error",
            message=str(exc),
            correlation_id=correlation_id,
            details={"type": type(exc).__name__},
        )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(mode="json"))


def create_application() -> FastAPI:
    """Factory function to create FastAPI application"""
    settings = get_settings()
    prefix = f"/api/{settings.API_VERSION}"

    app = FastAPI(
        title="CareCompanion API",
        description="Dementia-care tracking backend: patient rosters, safety triage, functional decline, "
                    "caregiver wellbeing and dashboard roll-ups",
        version=__version__,
        openapi_url=f"{prefix}/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT"
        }
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"]
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Custom middleware; the last one added runs first
    if settings.PROMETHEUS_ENABLED:
        app.add_middleware(PrometheusMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(CareCompanionError, care_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    routers = [
        (health.router, ["Health"]),
        (patients.router, ["Patients"]),
        (safety.router, ["Safety Alerts"]),
        (assessments.router, ["ADL Assessments"]),
        (caregiver.router, ["Caregiver Wellbeing"]),
        (logs.router, ["Care Logs"]),
        (goals.router, ["Goals"]),
        (therapy.router, ["Therapy"]),
        (dashboard.router, ["Dashboard"]),
        (session.router, ["Session"]),
    ]
    for router, tags in routers:
        app.include_router(router, prefix=prefix, tags=tags)

    @app.get("/")
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information"""
        return {
            "message": "CareCompanion API",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
            "docs_url": "/docs" if settings.DEBUG else "Contact administrator for API documentation",
            "health_check": f"{prefix}/health"
        }

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint"""
        if not settings.PROMETHEUS_ENABLED:
            return JSONResponse(
                status_code=404,
                content={"error": "Metrics endpoint is disabled"}
            )

        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Create the FastAPI application
app = create_application()


def main():
    """Main function to run the application"""
    settings = get_settings()

    uvicorn.run(
        "carecompanion.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=settings.DEBUG,
        workers=1 if settings.DEBUG else 4
    )


if __name__ == "__main__":
    main()

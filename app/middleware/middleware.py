# app/middleware/middleware.py
"""
Middleware components for the User Directory API.

This module contains middleware for security headers, request logging and
CORS handling, plus the lifespan event handler that initializes the database
and cache on startup and releases them on shutdown.
"""

from asyncio import get_running_loop
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import getLogger
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from rich.traceback import install
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from uvloop import Loop

from app.configs import APP_VERSION, file_logger, settings
from app.db import close_db, init_db
from app.managers.cache_manager import cache_manager
from app.monitoring import bind_request_id, clear_context, configure_logging
from app.utils.helpers import get_summary, host

logger = file_logger(getLogger(__name__))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Manage application startup and shutdown events with service initialization."""
    configure_logging()
    if not settings.is_production:
        install(show_locals=False)

    logger.info(f"Starting {app.title} v{APP_VERSION} ({settings.ENVIRONMENT})...")

    if not settings.DATABASE_URL:
        logger.critical("DATABASE_URL is not set. Refusing to start.")
        raise SystemExit(1)

    try:
        await init_db()
    except Exception:
        logger.exception("Failed to initialize the database")
        raise

    # A cache outage is not fatal: the API serves straight from the database
    await cache_manager.initialize()
    app.state.cache_manager = cache_manager

    logger.info(f"is uvloop: {type(get_running_loop()) is Loop}")
    logger.info("Services:")
    logger.info(f"  - Backend API: http://{settings.HOST}:{settings.PORT}/api")
    logger.info(f"  - API Documentation: http://{settings.HOST}:{settings.PORT}/docs")
    logger.info(f"  - Health Check: http://{settings.HOST}:{settings.PORT}/api/health")

    yield

    logger.info(f"Shutting down {app.title}...")
    try:
        await cache_manager.shutdown()
        await close_db()
        logger.info("Services cleaned up successfully")
    except Exception:
        logger.exception("Error during service cleanup")


def configure_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware for the application.

    In production only ``ALLOWED_ORIGINS`` may call the API; elsewhere every
    origin is accepted.
    """
    allowed_origins = settings.allowed_origins if settings.is_production else ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-API-Version"],
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log request summary and timing information."""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        bind_request_id(request_id)

        start_time = perf_counter()
        route_info = get_summary(request) or f"{request.method} {request.url.path}"
        logger.info(f"Request: {route_info}, from ip: {host(request)}")

        try:
            response = await call_next(request)
            duration = perf_counter() - start_time
            logger.info(
                f"Response: {response.status_code} for {request.method} {request.url.path} "
                f"in {duration * 1000:.1f}ms",
            )
        finally:
            clear_context()

        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-API-Version"] = APP_VERSION
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

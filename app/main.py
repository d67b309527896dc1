# app/main.py

"""User Directory API - user CRUD with image uploads, caching and rate limiting."""

from time import monotonic

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.configs import APP_VERSION, settings
from app.db import check_db
from app.errors import (
    DatabaseError,
    UploadError,
    database_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    upload_exception_handler,
    validation_exception_handler,
)
from app.managers import cache_manager, limiter, rate_limit_exceeded_handler
from app.middleware import (
    InputSanitizationMiddleware,
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from app.routes import user_router
from app.schemas import HealthCheckResponse, ServicesStatus
from app.utils.helpers import iso_now

START_TIME = monotonic()

app = FastAPI(
    title=settings.APP_NAME,
    description="User directory backend: paginated listing, search and CRUD with optional avatars.",
    version=APP_VERSION,
    lifespan=lifespan,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

configure_cors(app)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(InputSanitizationMiddleware)
# Behind a trusted reverse proxy the client address comes from X-Forwarded-For
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.FORWARDED_ALLOW_IPS)

app.include_router(user_router, prefix="/api")

errors = [
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (DatabaseError, database_exception_handler),
    (UploadError, upload_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (StarletteHTTPException, http_exception_handler),
    (Exception, unhandled_exception_handler),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]

app.state.limiter = limiter
limiter: Limiter = app.state.limiter

if settings.STORAGE_PROVIDER == "local":
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.UPLOADS_DIR, check_dir=False),
        name="uploads",
    )


@app.get(
    "/api/health",
    tags=["🩺 Health"],
    summary="Health check endpoint",
    response_model=HealthCheckResponse,
    response_class=ORJSONResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "status": "ok",
                        "timestamp": "2025-01-01T00:00:00Z",
                        "uptime": 42.5,
                        "environment": "development",
                        "version": "1.0.0",
                        "services": {
                            "database": "connected",
                            "cache": {"status": "healthy", "backend": "memory"},
                        },
                    },
                },
            },
        },
    },
    operation_id="health_check",
)
@limiter.exempt
async def health_check(request: Request) -> HealthCheckResponse:
    """
    Health check endpoint with database and cache status.

    Parameters
    ----------
    request : Request
        Current request context.

    Returns
    -------
    HealthCheckResponse
        ``ok`` when the database answers, ``degraded`` otherwise.

    Examples
    --------
    Request
        GET /api/health
    Response
        200 OK
        {"status": "ok", "uptime": 42.5, "services": {"database": "connected", ...}, ...}
    """
    db_ok = await check_db()
    cache_health = await cache_manager.health_check()

    return HealthCheckResponse(
        status="ok" if db_ok else "degraded",
        timestamp=iso_now(),
        uptime=round(monotonic() - START_TIME, 3),
        environment=settings.ENVIRONMENT,
        version=APP_VERSION,
        services=ServicesStatus(
            database="connected" if db_ok else "disconnected",
            cache=cache_health,
        ),
    )

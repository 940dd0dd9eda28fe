"""
api/main.py -- FastAPI application entry point for the Funko store.

Run with:      uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds every long-lived component (stores, token service, cache,
notification hub, email outbox, services) through init_state() and tears
them down symmetrically on shutdown. A missing JWT_KEY outside dev mode
stops the process at startup.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.categories import router as categories_router
from api.routes.v1.funkos import router as funkos_router
from api.routes.v1.notifications import router as notifications_router
from auth.gate import RoleGate
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenExtractor, TokenService
from cache.store import CacheStore, MemoryCache, RedisCache, build_cache
from catalog.service import CategoryService, FunkoService
from catalog.store import CatalogStore
from core.config import Settings, get_settings
from notifications.hub import NotificationHub
from notifications.mailer import EmailOutbox

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("funkostore.api")

settings = get_settings()

# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def init_state(
    app: FastAPI,
    settings: Settings,
    *,
    user_store: UserStore | None = None,
    catalog_store: CatalogStore | None = None,
    cache: CacheStore | None = None,
) -> None:
    """Build the component graph and attach it to app.state.

    Stores and cache may be passed in (tests use in-memory ones); everything
    else is built from settings. TokenService raises ConfigurationError when
    no signing key is configured, which aborts startup.
    """
    token_service = TokenService(settings)
    token_extractor = TokenExtractor(token_service)

    app.state.settings = settings
    app.state.user_store = user_store or UserStore(db_url=settings.database_url)
    app.state.catalog_store = catalog_store or CatalogStore(db_url=settings.database_url)
    app.state.cache = cache or build_cache(settings)
    app.state.token_service = token_service
    app.state.token_extractor = token_extractor
    app.state.role_gate = RoleGate(token_extractor)
    app.state.auth_service = AuthService(app.state.user_store, token_service)

    app.state.notification_hub = NotificationHub()
    app.state.outbox = EmailOutbox(settings)
    app.state.outbox.start()

    app.state.category_service = CategoryService(
        app.state.catalog_store,
        app.state.cache,
        ttl=settings.cache_ttl_seconds,
    )
    app.state.funko_service = FunkoService(
        app.state.catalog_store,
        app.state.cache,
        app.state.notification_hub,
        app.state.outbox,
        admin_email=settings.admin_email,
        ttl=settings.cache_ttl_seconds,
    )
    logger.info("Components initialized (token ttl=%s)", token_service.ttl)


def close_state(app: FastAPI) -> None:
    """Release everything init_state() opened, in reverse order."""
    app.state.outbox.stop()
    app.state.cache.close()
    app.state.catalog_store.close()
    app.state.user_store.close()


# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Drop expired in-process cache entries every minute.

    Redis expires keys itself, so this only does work for MemoryCache.
    CancelledError from task.cancel() during shutdown unwinds the loop.
    """
    while True:
        await asyncio.sleep(60)
        cache = app.state.cache
        if isinstance(cache, MemoryCache):
            purged = cache.purge_expired()
            if purged:
                logger.debug("Purged %d expired cache entries", purged)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup builds the component graph, shutdown closes it.

    The purge task starts last because it references app.state.cache.
    """
    logger.info("Funko store API starting up")
    init_state(app, settings)
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    close_state(app)
    logger.info("Funko store API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Funko Store API",
    description="Funko catalog with JWT authentication, role-based access and cached reads.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(categories_router, prefix="/api/v1", tags=["Categories"])
app.include_router(funkos_router, prefix="/api/v1", tags=["Funkos"])
# Websocket path is /ws/funkos, outside the REST prefix.
app.include_router(notifications_router, tags=["Notifications"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error and a Retry-After header."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Routes raise HTTPException with detail=ErrorDetail(...).model_dump() (a
    dict); that dict becomes the error field as-is.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Not rate limited -- load balancer probes must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and per-component status."""
    components = {"app": "ok"}
    try:
        with request.app.state.catalog_store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        components["database"] = "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        components["database"] = "error"
    cache = request.app.state.cache
    components["cache"] = "redis" if isinstance(cache, RedisCache) else "memory"
    status = "healthy" if components["database"] == "ok" else "degraded"
    return HealthResponse(status=status, version=VERSION, components=components)

"""
api/main.py -- FastAPI application factory for the classifieds service.

Run with:      uvicorn asgi:app --reload
               python main.py serve

create_app(settings) builds a fully wired app from an explicit Settings object.
Nothing in here reads the environment: asgi.py passes get_settings(), tests pass
a Settings built by hand (fixed secret, in-memory database).

Request pipeline (outermost to innermost), each step able to answer on its own:
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- logs method, path, status, latency, client
  4. route dependencies    -- get_current_account on protected routes
  5. route handler

Lifespan builds the stores, the token issuer and the services on startup and
disposes of the database engines on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.listings import router as listings_router
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import Settings
from core.errors import ClassifiedsError, UnauthorizedError
from listings.service import ListingService
from listings.store import ListingStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("classifieds.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build every component from app.state.settings and tear them down on exit.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Stores come first because the services wrap them.
    """
    settings: Settings = app.state.settings
    logger.info("Classifieds API starting up")

    app.state.account_store = AccountStore(settings.database_url)
    app.state.listing_store = ListingStore(settings.database_url)
    logger.info("Stores initialized")

    app.state.token_issuer = TokenIssuer(settings.secret_key, settings.token_expire_seconds)
    app.state.account_service = AccountService(app.state.account_store, bcrypt_rounds=settings.bcrypt_rounds)
    app.state.listing_service = ListingService(
        app.state.listing_store,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    logger.info("Services initialized (token lifetime %ds)", settings.token_expire_seconds)

    yield

    app.state.account_store.close()
    app.state.listing_store.close()
    logger.info("Classifieds API shutdown complete")


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


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
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def classifieds_error_handler(request: Request, exc: ClassifiedsError) -> JSONResponse:
    """Render a domain error with its own status code and error code.

    Every UnauthorizedError subclass (missing, invalid, expired token, account
    gone) is rendered with the same public message.
    """
    if isinstance(exc, UnauthorizedError):
        message = UnauthorizedError.public_message
    else:
        message = exc.message
    detail = getattr(exc, "field", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=message, detail=detail)).model_dump(),
    )


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


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 routes, 405s)."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged server-side. The client only sees the
    exception text when DEBUG=true.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    debug = request.app.state.settings.debug
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
                detail=str(exc) if debug else None,
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


async def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and whether the database answers."""
    try:
        db_ok = request.app.state.account_store.ping() and request.app.state.listing_store.ping()
    except Exception:
        logger.exception("Health check database ping failed")
        db_ok = False
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings) -> FastAPI:
    """Assemble the FastAPI app around an explicit Settings object."""
    app = FastAPI(
        title="Classifieds API",
        description="Accounts, session tokens, and owner-scoped classified listings.",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Starlette wraps middleware in reverse registration order: the last one
    # added runs first. Register innermost first so a request meets
    # TrustedHost -> CORS -> request logging.
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    app.add_exception_handler(ClassifiedsError, classifieds_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(listings_router, prefix="/api/v1", tags=["Listings"])
    app.add_api_route("/api/v1/health", health, methods=["GET"], response_model=HealthResponse, tags=["Health"])

    return app

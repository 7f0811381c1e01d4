"""
PhotoVerse Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn photoverse.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────┐ ┌──────┐ ┌────────┐   │
    │  │  Req ID  │→│   Logging   │→│ GZip │→│  CORS  │   │
    │  └──────────┘ └─────────────┘ └──────┘ └────────┘   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ POST /poems  │ │ GET /options │ │ GET /health │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ Validation→400 │ RateLimit→429 │ Provider→502 │  │
    │  │ Timeout→504    │ BothFailed→503 │ other→500   │  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from photoverse import __version__
from photoverse.config import settings
from photoverse.exceptions import (
    BothProvidersFailedError,
    PhotoVerseError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitExceededError,
    ValidationError,
)
from photoverse.messages import localize
from photoverse.middleware.logging import RequestLoggingMiddleware
from photoverse.middleware.request_id import RequestIDMiddleware, request_id_var
from photoverse.routes import health, options, poems

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate provider credentials (log, don't exit)

    Missing keys are reported but the server keeps running: /health stays
    reachable and generation requests fail with the usual provider errors.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("PhotoVerse Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info(
        "Providers: primary=%s (%s), fallback=%s (%s)",
        settings.gemini_model,
        "configured" if settings.gemini_configured else "missing key",
        settings.anthropic_model,
        "configured" if settings.anthropic_configured else "missing key",
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("PhotoVerse Backend shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        ValidationError           → 400 Bad Request
        RateLimitExceededError    → 429 Too Many Requests (+ Retry-After)
        ProviderTimeoutError      → 504 Gateway Timeout
        ProviderError (others)    → 502 Bad Gateway
        BothProvidersFailedError  → 503 Service Unavailable
        PhotoVerseError (base)    → 500 Internal Server Error
        Exception (fallback)      → 500 Internal Server Error

    Provider errors are logged with their full context but the response only
    carries a generic localized message: upstream detail and provider
    identity never reach the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            details={"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ProviderError)
    async def handle_provider_error(request: Request, exc: ProviderError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Provider error (category=%s): %s | Context: %s",
            rid,
            exc.category.value,
            exc.message,
            exc.context,
        )
        language = getattr(request.state, "language", "es")
        status_code = 504 if isinstance(exc, ProviderTimeoutError) else 502
        return _error_response(
            status_code,
            f"provider_{exc.category.value}",
            localize("generation_failed", language),
        )

    @app.exception_handler(BothProvidersFailedError)
    async def handle_both_failed(request: Request, exc: BothProvidersFailedError):
        logger.error("[%s] No poem provider available", request_id_var.get(""))
        return _error_response(503, "service_unavailable", exc.message)

    @app.exception_handler(PhotoVerseError)
    async def handle_app_error(request: Request, exc: PhotoVerseError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="PhotoVerse API",
        description=(
            "Turns a photo into an original poem in a chosen style and mood. "
            "Uses Google Gemini, with Anthropic Claude as a fallback provider."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(poems.router)
    app.include_router(options.router)
    app.include_router(health.router)

    return app


app = create_app()

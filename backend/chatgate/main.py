"""
ChatGate Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routers and the
       static frontend; uvicorn serves `chatgate.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │  Middleware:  Request ID → Logging → CORS                 │
    │                                                           │
    │  Routes:                                                  │
    │   POST /api/auth/signup   POST /api/auth/login            │
    │   POST /api/chat          GET  /api/profile               │
    │   POST /api/kofi-webhook  GET  /health                    │
    │   GET  /*  (static files from STATIC_DIR)                 │
    │                                                           │
    │  Exception Handlers:                                      │
    │   Auth→401 │ Credentials/Registration/Malformed→400       │
    │   Entitlement→403 │ NotFound→404 │ Upstream→500           │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from chatgate import __version__
from chatgate.config import settings
from chatgate.database import dispose_engine
from chatgate.exceptions import (
    AuthError,
    AuthorizationError,
    ChatGateError,
    InvalidCredentialsError,
    MalformedInputError,
    NotFoundError,
    RegistrationError,
    UpstreamError,
    WebhookVerificationError,
)
from chatgate.middleware.logging import RequestLoggingMiddleware
from chatgate.middleware.request_id import RequestIDMiddleware, request_id_var
from chatgate.routes import auth, chat, health, webhook

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration check, banner.
    Shutdown: dispose the database engine.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("ChatGate Backend starting up (entitlement policy: %s)", settings.entitlement_policy)

    # Missing keys are logged, not fatal: /health and static files still work
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    logger.info("ChatGate Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
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
    Map exception types to HTTP responses.

    Handler hierarchy:
        AuthError                 → 401
        WebhookVerificationError  → 401
        InvalidCredentialsError   → 400
        RegistrationError         → 400
        MalformedInputError       → 400
        AuthorizationError        → 403 (details.deny_reason)
        NotFoundError             → 404
        UpstreamError             → 500 (context logged, never returned)
        ChatGateError / Exception → 500

    Security: handlers never put stack traces or upstream error bodies in
    the response.
    """

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return _error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(WebhookVerificationError)
    async def handle_webhook_verification(request: Request, exc: WebhookVerificationError):
        return _error_response(401, "webhook_unverified", exc.message)

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return _error_response(400, "invalid_credentials", exc.message)

    @app.exception_handler(RegistrationError)
    async def handle_registration_error(request: Request, exc: RegistrationError):
        logger.warning("[%s] Signup failed: %s | %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(400, "signup_failed", exc.message)

    @app.exception_handler(MalformedInputError)
    async def handle_malformed_input(request: Request, exc: MalformedInputError):
        logger.warning("[%s] Malformed input: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "malformed_input", exc.message)

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return _error_response(
            403,
            "entitlement_denied",
            exc.message,
            details={"deny_reason": exc.deny_reason},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        """Store, identity or Gemini failure: user-safe message, context logged."""
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(500, "upstream_error", exc.message)

    @app.exception_handler(ChatGateError)
    async def handle_chatgate_error(request: Request, exc: ChatGateError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", exc.message)

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
    """Assemble middleware, handlers, routers and static files into one app."""
    app = FastAPI(
        title="ChatGate API",
        description=(
            "Subscription-gated Gemini chat. Supabase authentication, per-plan chat "
            "credits, Ko-fi webhook upgrades."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Executes in reverse order of addition: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(chat.router)
    app.include_router(webhook.router)
    app.include_router(health.router)

    # Mounted last so it never shadows an API route
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info("Static directory %s not found; serving API only", static_dir.resolve())

    return app


app = create_app()

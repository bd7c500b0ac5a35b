"""
Forum Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the Database handle and the services from
       settings, stores them on app.state, registers middleware, exception
       handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite, which calls
       create_app() with its own Database and mail double.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Access Log → Rate Limit → CORS│
    │                                                          │
    │  Routes:      /api/users/*   /api/questions/*   /health  │
    │                                                          │
    │  app.state:   database, token_service, credential_store, │
    │               question_repository, mail_service,         │
    │               password_reset_service                     │
    │                                                          │
    │  Errors:      ForumError → its status │ 422 → 400 │ 500  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → database.connect()
    Shutdown: database.dispose()
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import Database
from app.exceptions import ForumError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, questions, users
from app.services.credential_store import CredentialStore
from app.services.mail_service import MailService
from app.services.password_reset import PasswordResetService
from app.services.question_repository import QuestionRepository
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure root logging once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] app.services.credential_store: ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("Forum Backend %s starting up...", __version__)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: the API still works in development without SMTP
        logger.error("Configuration error: %s", str(e))

    database: Database = app.state.database
    database.connect()

    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)

    yield

    logger.info("Forum Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the shared error body.

        ForumError subclass    → exc.status_code (details only for 4xx)
        RequestValidationError → 400 validation_error
        Exception              → 500, stack trace logged server-side only
    """

    @app.exception_handler(ForumError)
    async def handle_forum_error(request: Request, exc: ForumError):
        rid = request_id_var.get("")
        headers = {}
        if exc.status_code >= 500:
            # Context may hold internals; it goes to the log, not the client
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            content = error_body(exc.error_code, exc.message)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            content = error_body(exc.error_code, exc.message, exc.context)
        retry_after = getattr(exc, "retry_after", None)
        if retry_after:
            headers["Retry-After"] = str(retry_after)
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed JSON or wrong types: reported like any other bad input."""
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=error_body(
                "validation_error",
                "Request body or parameters are malformed",
                {"fields": fields},
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "internal_server_error",
                "Something went wrong, please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    mail_service: Optional[MailService] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        app_settings: defaults to the module-level settings from the environment
        database: defaults to a Database built from app_settings.database_url
        mail_service: defaults to an SMTP MailService built from app_settings
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Evangadi Forum API",
        description="Question & answer forum: accounts, password reset, and questions.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared handles ────────────────────────────────────────────────────
    token_service = TokenService(app_settings.jwt_secret, app_settings.jwt_algorithm)
    credential_store = CredentialStore(
        token_service,
        bcrypt_rounds=app_settings.bcrypt_rounds,
        session_ttl=timedelta(minutes=app_settings.session_token_ttl_minutes),
    )
    mail_service = mail_service or MailService(app_settings)

    app.state.settings = app_settings
    app.state.database = database or Database(
        app_settings.database_url,
        pool_size=app_settings.db_pool_size,
        max_overflow=app_settings.db_max_overflow,
        pool_pre_ping=app_settings.db_pool_pre_ping,
        echo=app_settings.log_level == "DEBUG",
    )
    app.state.token_service = token_service
    app.state.credential_store = credential_store
    app.state.question_repository = QuestionRepository(
        default_page_size=app_settings.default_page_size,
        max_page_size=app_settings.max_page_size,
    )
    app.state.mail_service = mail_service
    app.state.password_reset_service = PasswordResetService(
        credential_store,
        token_service,
        mail_service,
        frontend_url=app_settings.frontend_url,
        reset_ttl=timedelta(minutes=app_settings.reset_token_ttl_minutes),
    )

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(questions.router)
    app.include_router(health.router)

    return app


app = create_app()

"""FastAPI application factory.

Creates and configures the FastAPI application with routers, middleware,
exception handlers and the account cleanup scheduler.

API Versioning:
    All API endpoints are versioned under /api/v1/ prefix.
    The health check endpoint remains unversioned at /health.

Run with:
    uvicorn folio.presentation.api.app:create_app --factory
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from starlette.middleware.sessions import SessionMiddleware

from folio.presentation.api.exception_handlers import setup_exception_handlers
from folio.presentation.api.oauth import init_oauth
from folio.presentation.api.routers import auth_router
from folio_auth import JWTService, PasswordHashingService
from folio_config.settings import Settings, get_settings
from folio_identity import AccountService, NotificationGateway
from folio_identity.infrastructure.email import EmailService
from folio_identity.infrastructure.persistence.sqlalchemy import (
    UserRepositorySQLAlchemy,
    create_engine,
    create_session_maker,
    create_tables,
)
from folio_identity.infrastructure.scheduling import AccountCleanupScheduler

logger = logging.getLogger(__name__)

# API version info
API_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"

OPENAPI_TAGS = [
    {
        "name": "Authentication",
        "description": """Account lifecycle and session management.

**Registration & Login:**
- Sign up with email/password, then verify via the emailed link (7 days)
- Login to obtain a JWT (1 hour, or 14 days with remember_me)
- Sign in with Google

**Password Reset:**
- Request a reset link by email (valid for 1 hour)
- Validate the token, then set a new password

**Security:**
- Passwords are hashed with bcrypt
- Stateless HS256 JWTs, delivered in an HttpOnly cookie
""",
    },
    {
        "name": "Health",
        "description": "Service health monitoring endpoints.",
    },
]


def _configure_logging(settings: Settings) -> None:
    """Configure application logging.

    Sets up logging for the folio packages with:
    - Console output with timestamps and module names
    - Configurable log level for folio modules (from settings)
    - WARNING level for noisy third-party libraries
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Override any existing config
    )

    for name in ("folio", "folio_auth", "folio_identity"):
        logging.getLogger(name).setLevel(log_level)

    # Quiet down noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def build_account_service(session: AsyncSession, settings: Settings) -> AccountService:
    """Wire an AccountService to a session (used outside request scope)."""
    return AccountService(
        user_repository=UserRepositorySQLAlchemy(session),
        password_service=PasswordHashingService(rounds=settings.bcrypt_rounds),
        jwt_service=JWTService(
            secret_key=settings.jwt_secret_key.get_secret_value(),
            access_token_expire_hours=settings.jwt_access_token_expire_hours,
            remember_me_expire_days=settings.jwt_remember_me_expire_days,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    engine: AsyncEngine = app.state.engine

    # Startup
    logger.info("Starting %s API v%s...", settings.app_name, API_VERSION)
    await _init_database_schema(engine)

    scheduler: AccountCleanupScheduler | None = None
    if settings.cleanup_enabled:
        scheduler = AccountCleanupScheduler(
            session_maker=app.state.session_maker,
            service_factory=lambda session: build_account_service(session, settings),
            interval=timedelta(hours=settings.cleanup_interval_hours),
            stagger=timedelta(minutes=settings.cleanup_stagger_minutes),
        )
        scheduler.start()
    app.state.cleanup_scheduler = scheduler

    yield

    # Shutdown - stop background jobs, then dispose the engine and its pool
    logger.info("Shutting down %s API...", settings.app_name)
    if scheduler is not None:
        scheduler.shutdown()
    await engine.dispose()
    logger.info("Database connections closed")


async def _init_database_schema(engine: AsyncEngine) -> None:
    """Initialize database schema (if not existent) and verify connectivity."""
    try:
        await create_tables(engine)
    except (ConnectionRefusedError, OSError):
        logger.critical("Could not connect to the database.")
        raise SystemExit(1) from None


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all endpoints."""
    v1_router = APIRouter()
    v1_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
    return v1_router


def create_app(
    settings: Settings | None = None,
    engine: AsyncEngine | None = None,
    notification_gateway: NotificationGateway | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings
        Optional settings override for testing.
    engine
        Optional engine override (tests pass an in-memory SQLite engine).
    notification_gateway
        Optional gateway override; defaults to the SMTP EmailService.

    Returns
    -------
    Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _configure_logging(settings)

    if engine is None:
        engine = create_engine(settings)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Authentication and account lifecycle for the Folio platform.",
        version=API_VERSION,
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = create_session_maker(engine)
    app.state.notification_gateway = notification_gateway or EmailService(settings)
    app.state.oauth = init_oauth(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Signed cookie holding the OAuth state between login and callback
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        same_site="lax",
        https_only=settings.api_cookie_secure,
    )

    # Register exception handlers for consistent error responses
    setup_exception_handlers(app)

    # Include versioned API router
    app.include_router(create_v1_router(), prefix=API_V1_PREFIX)

    # Health check endpoint (unversioned - always accessible)
    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint.

        Returns service status and version info.
        Unversioned for load balancer/monitoring compatibility.
        """
        return {
            "status": "healthy",
            "version": API_VERSION,
            "api_versions": ["v1"],
        }

    return app

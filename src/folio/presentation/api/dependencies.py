"""FastAPI dependency injection for the Folio API.

Provides dependencies for:
- Settings and database sessions (both held on ``app.state``)
- Authentication services
- Current user (JWT from the ``jwt-token`` cookie or a Bearer header)
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from folio_auth import InvalidTokenError, JWTService, PasswordHashingService
from folio_config.settings import Settings
from folio_identity import AccountService, NotificationGateway, User
from folio_identity.exceptions import UserNotFoundError
from folio_identity.infrastructure.persistence.sqlalchemy import (
    UserRepositorySQLAlchemy,
)

logger = logging.getLogger(__name__)

# Cookie carrying the bearer token for browser clients
JWT_COOKIE = "jwt-token"  # NOQA: S105

# Security scheme for JWT Bearer tokens (API clients)
security = HTTPBearer(auto_error=False)


def get_api_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_api_settings)]


# -----------------------------------------------------------------------------
# Database Session
# -----------------------------------------------------------------------------


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    One session per request from the shared engine/pool. Any error raised
    by the endpoint rolls the session back before it is closed.

    Yields
    ------
    AsyncSession for database operations
    """
    async with request.app.state.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# Type alias for injected session
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


# -----------------------------------------------------------------------------
# Authentication Services
# -----------------------------------------------------------------------------


def get_jwt_service(settings: SettingsDep) -> JWTService:
    """Get JWT service configured with API settings."""
    return JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        access_token_expire_hours=settings.jwt_access_token_expire_hours,
        remember_me_expire_days=settings.jwt_remember_me_expire_days,
    )


def get_password_service(settings: SettingsDep) -> PasswordHashingService:
    """Get password hashing service."""
    return PasswordHashingService(rounds=settings.bcrypt_rounds)


def get_account_service(
    session: DBSession,
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    password_service: Annotated[PasswordHashingService, Depends(get_password_service)],
) -> AccountService:
    """
    Get the account service bound to the request session.

    This service orchestrates signup, verification, login and password reset.
    """
    return AccountService(
        user_repository=UserRepositorySQLAlchemy(session),
        password_service=password_service,
        jwt_service=jwt_service,
    )


# Type alias for injected account service
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]


def get_notification_gateway(request: Request) -> NotificationGateway:
    return request.app.state.notification_gateway


Notifier = Annotated[NotificationGateway, Depends(get_notification_gateway)]


# -----------------------------------------------------------------------------
# Current User (JWT Authentication)
# -----------------------------------------------------------------------------


async def get_current_user(
    request: Request,
    account_service: AccountServiceDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """
    FastAPI dependency to get the current authenticated user from JWT.

    The Authorization header takes precedence over the cookie.

    Raises
    ------
    HTTPException
        401 if token is missing, invalid, or user not found
    """
    token = credentials.credentials if credentials else request.cookies.get(JWT_COOKIE)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await account_service.get_user_from_token(token)
    except (InvalidTokenError, UserNotFoundError) as e:
        logger.warning("Rejected token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


# Type alias for injected current user
CurrentUser = Annotated[User, Depends(get_current_user)]

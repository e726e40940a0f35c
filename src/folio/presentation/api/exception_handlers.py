"""Centralized exception handlers for the FastAPI application.

Identity and auth exceptions are mapped to HTTP responses with a
consistent error format.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }

Usage:
    from folio.presentation.api.exception_handlers import setup_exception_handlers

    app = FastAPI()
    setup_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from folio_auth import AuthError, InvalidTokenError, WeakPasswordError
from folio_identity.exceptions import (
    AlreadyDoneError,
    ConflictError,
    ErrorCode,
    ExpiredError,
    IdentityError,
    InvalidInputError,
    NotFoundError,
    NotificationDeliveryError,
    StorageError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Category to HTTP Status Mapping
# =============================================================================

# Checked in order; the first matching category wins
ERROR_CATEGORY_TO_STATUS: tuple[tuple[type[IdentityError], int], ...] = (
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ExpiredError, status.HTTP_401_UNAUTHORIZED),
    (AlreadyDoneError, status.HTTP_409_CONFLICT),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (NotificationDeliveryError, status.HTTP_502_BAD_GATEWAY),
)


def _get_status_for_exception(exc: IdentityError) -> int:
    for category, status_code in ERROR_CATEGORY_TO_STATUS:
        if isinstance(exc, category):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "code": code,
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(IdentityError)
    async def identity_exception_handler(
        request: Request,
        exc: IdentityError,
    ) -> JSONResponse:
        """Handle all identity exceptions with structured response.

        Logs the full exception details for debugging while returning
        a safe, user-friendly message to the client.
        """
        status_code = _get_status_for_exception(exc)
        log = logger.error if status_code >= 500 else logger.warning  # noqa: PLR2004
        log(
            "Identity exception on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )

        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(AuthError)
    async def auth_exception_handler(
        request: Request,
        exc: AuthError,
    ) -> JSONResponse:
        """Handle token and password-hashing errors from folio_auth."""
        logger.warning(
            "Auth exception on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
        )

        if isinstance(exc, InvalidTokenError):
            return _create_error_response(
                status_code=status.HTTP_401_UNAUTHORIZED,
                message="Invalid or expired token",
                code=ErrorCode.INVALID_TOKEN.value,
                headers={"WWW-Authenticate": "Bearer"},
            )
        if isinstance(exc, WeakPasswordError):
            return _create_error_response(
                status_code=status.HTTP_400_BAD_REQUEST,
                message=exc.message,
                code=ErrorCode.INVALID_PASSWORD.value,
            )

        return _create_error_response(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=exc.message,
            code=ErrorCode.INVALID_CREDENTIALS.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unhandled exceptions with consistent error format."""
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )

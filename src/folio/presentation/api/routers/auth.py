"""Authentication router: signup, verification, login, password reset, OAuth."""

import logging
from collections.abc import Callable
from typing import Annotated

from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse

from folio.presentation.api.dependencies import (
    JWT_COOKIE,
    AccountServiceDep,
    CurrentUser,
    DBSession,
    Notifier,
    SettingsDep,
)
from folio.presentation.api.oauth import profile_from_userinfo
from folio.presentation.api.schemas.auth import (
    LoginRequest,
    MessageResponse,
    PasswordResetCompleteRequest,
    PasswordResetRequest,
    PasswordResetTokenRequest,
    SignupRequest,
    TokenResponse,
    TokenValidResponse,
    UserResponse,
)
from folio_auth import IssuedToken
from folio_config.settings import Settings
from folio_identity.exceptions import (
    InvalidCredentialsError,
    NoPasswordSetError,
    NotificationDeliveryError,
    UserAlreadyVerifiedError,
    UserNotFoundError,
    VerificationTokenExpiredError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_jwt_cookie(
    response: Response,
    issued: IssuedToken,
    settings: Settings,
) -> None:
    """Set the bearer token as an HttpOnly cookie.

    This cookie is:
    - HttpOnly: Not accessible to JavaScript (XSS protection)
    - Secure: Only sent over HTTPS (when cookie_secure=True)
    - Max-Age: Equal to the token lifetime
    """
    response.set_cookie(
        key=JWT_COOKIE,
        value=issued.token,
        max_age=issued.expires_in,
        path="/",
        domain=settings.api_cookie_domain,
        secure=settings.api_cookie_secure,
        httponly=True,
        samesite=settings.api_cookie_samesite,
    )


def _clear_jwt_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=JWT_COOKIE,
        path="/",
        domain=settings.api_cookie_domain,
        secure=settings.api_cookie_secure,
        httponly=True,
        samesite=settings.api_cookie_samesite,
    )


def _frontend_url(settings: Settings, path: str) -> str:
    return f"{settings.frontend_base_url.rstrip('/')}{path}"


async def _notify(send: Callable[..., None], *args: str) -> None:
    """Run a blocking gateway call off the event loop.

    Called only after the mutation is committed; a failure is reported
    to the client but leaves the committed state in place.
    """
    try:
        await run_in_threadpool(send, *args)
    except Exception as e:
        logger.error("Notification %s failed: %s", send.__name__, e)
        raise NotificationDeliveryError(details={"notification": send.__name__}) from e


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    responses={
        201: {"description": "Account created, verification email sent"},
        400: {"description": "Invalid email or password"},
        409: {"description": "Email already registered"},
        502: {"description": "Verification email could not be sent"},
    },
)
async def signup(
    request: SignupRequest,
    account_service: AccountServiceDep,
    session: DBSession,
    notifier: Notifier,
) -> MessageResponse:
    """
    Register with email and password.

    The account stays unverified until the link in the verification
    email is opened (valid for 7 days).
    """
    token = await account_service.sign_up(request.email, request.password)
    await session.commit()

    await _notify(notifier.send_verification_email, request.email, token)
    return MessageResponse(
        message="Registration received. Check your email to complete signup.",
    )


@router.get(
    "/verify",
    status_code=status.HTTP_302_FOUND,
    summary="Complete email verification",
    responses={
        302: {"description": "Redirect to the frontend (home on success)"},
    },
)
async def verify(
    token: Annotated[str, Query(min_length=1)],
    account_service: AccountServiceDep,
    session: DBSession,
    notifier: Notifier,
    settings: SettingsDep,
) -> RedirectResponse:
    """
    Verify the account owning ``token`` and log the user in.

    Unknown, expired and already-used tokens redirect to the login page.
    """
    try:
        user = await account_service.verify_user(token)
    except (
        UserNotFoundError,
        VerificationTokenExpiredError,
        UserAlreadyVerifiedError,
    ) as e:
        logger.info("Verification rejected: %s", e.code.value)
        return RedirectResponse(
            _frontend_url(settings, "/auth"),
            status_code=status.HTTP_302_FOUND,
        )
    await session.commit()

    await _notify(notifier.send_welcome_email, user.email)

    issued = account_service.create_token(user.id, user.email)
    response = RedirectResponse(
        _frontend_url(settings, "/home"),
        status_code=status.HTTP_302_FOUND,
    )
    _set_jwt_cookie(response, issued, settings)
    return response


@router.post(
    "/login",
    summary="Authenticate user",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
    },
)
async def login(
    request: LoginRequest,
    response: Response,
    account_service: AccountServiceDep,
    session: DBSession,
    settings: SettingsDep,
) -> TokenResponse:
    """
    Authenticate with email and password.

    The token is returned in the body and set as the ``jwt-token`` cookie.
    ``remember_me`` extends the lifetime from 1 hour to 14 days.
    """
    try:
        issued = await account_service.login(
            email=request.email,
            password=request.password,
            remember_me=request.remember_me,
        )
    except (UserNotFoundError, NoPasswordSetError, InvalidCredentialsError) as e:
        # One response for all three so accounts cannot be enumerated
        logger.info("Login failed: %s", e.code.value)
        raise InvalidCredentialsError from e
    await session.commit()  # persists a rehashed password

    _set_jwt_cookie(response, issued, settings)
    return TokenResponse(access_token=issued.token, expires_in=issued.expires_in)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout user",
    responses={
        204: {"description": "Logged out successfully"},
    },
)
async def logout(
    response: Response,
    account_service: AccountServiceDep,
    settings: SettingsDep,
) -> None:
    """Logout user (clears the token cookie; tokens are stateless)."""
    account_service.logout()
    _clear_jwt_cookie(response, settings)
    logger.debug("User logged out (jwt cookie cleared)")


@router.get(
    "/me",
    summary="Get current user",
    responses={
        200: {"description": "Current user data"},
        401: {"description": "Not authenticated"},
    },
)
async def get_me(user: CurrentUser) -> UserResponse:
    """
    Get the current authenticated user's information.

    Accepts the ``jwt-token`` cookie or an Authorization Bearer header.
    """
    return UserResponse(
        id=user.id,
        email=user.email,
        is_verified=user.is_verified,
        created_at=user.created_at,
    )


@router.post(
    "/password-reset/request",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request password reset",
    responses={
        202: {"description": "Reset link sent"},
        404: {"description": "No account for this email"},
    },
)
async def request_password_reset(
    request: PasswordResetRequest,
    account_service: AccountServiceDep,
    session: DBSession,
    notifier: Notifier,
) -> MessageResponse:
    """Send a password reset link (valid for 1 hour)."""
    token = await account_service.generate_password_reset_token(request.email)
    await session.commit()

    await _notify(notifier.send_password_reset_email, request.email, token)
    return MessageResponse(message="A password reset link has been sent.")


@router.post(
    "/password-reset/validate",
    summary="Check a password reset token",
    responses={
        200: {"description": "Token is valid"},
        401: {"description": "Token expired"},
        404: {"description": "Unknown token"},
    },
)
async def validate_password_reset_token(
    request: PasswordResetTokenRequest,
    account_service: AccountServiceDep,
) -> TokenValidResponse:
    """Check a reset token without consuming it."""
    await account_service.validate_password_reset_token(request.token)
    return TokenValidResponse(valid=True)


@router.post(
    "/password-reset/complete",
    summary="Reset password with token",
    responses={
        200: {"description": "Password reset and logged in"},
        400: {"description": "Invalid new password"},
        401: {"description": "Token expired"},
        404: {"description": "Unknown token"},
    },
)
async def complete_password_reset(
    request: PasswordResetCompleteRequest,
    response: Response,
    account_service: AccountServiceDep,
    session: DBSession,
    notifier: Notifier,
    settings: SettingsDep,
) -> TokenResponse:
    """Set a new password, consume the token and log the user in."""
    user = await account_service.validate_password_reset_token(request.token)
    await account_service.update_password(user, request.new_password)
    await session.commit()
    logger.info("Password reset completed for user: %s", user.id)

    await _notify(notifier.send_password_reset_confirmation_email, user.email)

    issued = account_service.create_token(user.id, user.email)
    _set_jwt_cookie(response, issued, settings)
    return TokenResponse(access_token=issued.token, expires_in=issued.expires_in)


# -----------------------------------------------------------------------------
# Google OAuth
# -----------------------------------------------------------------------------


def _google_client(request: Request):
    oauth = request.app.state.oauth
    if oauth is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Google login is not configured",
        )
    return oauth.google


@router.get(
    "/google/login",
    summary="Start Google login",
    responses={
        302: {"description": "Redirect to Google"},
        404: {"description": "Google login not configured"},
    },
)
async def google_login(
    request: Request,
    settings: SettingsDep,
    remember_me: bool = False,
) -> Response:
    """Redirect to Google's consent screen."""
    google = _google_client(request)
    request.session["remember_me"] = remember_me
    redirect_uri = (
        f"{settings.backend_base_url.rstrip('/')}"
        f"{request.app.url_path_for('google_callback')}"
    )
    return await google.authorize_redirect(request, redirect_uri)


@router.get(
    "/google/callback",
    name="google_callback",
    status_code=status.HTTP_302_FOUND,
    summary="Google login callback",
    responses={
        302: {"description": "Redirect to the frontend home page"},
        400: {"description": "Authorization failed"},
    },
)
async def google_callback(
    request: Request,
    account_service: AccountServiceDep,
    session: DBSession,
    notifier: Notifier,
    settings: SettingsDep,
) -> RedirectResponse:
    """
    Finish Google login.

    Creates a verified, password-less account on first login and sends a
    welcome email to new accounts only.
    """
    google = _google_client(request)
    try:
        token = await google.authorize_access_token(request)
    except OAuthError as e:
        logger.warning("Google authorization failed: %s", e.error)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google authorization failed",
        ) from e

    userinfo = token.get("userinfo") or await google.userinfo(token=token)
    profile = profile_from_userinfo(userinfo)

    user, created = await account_service.find_or_create_user_by_google(profile)
    await session.commit()

    if created:
        await _notify(notifier.send_welcome_email, user.email)

    remember_me = bool(request.session.pop("remember_me", False))
    issued = account_service.create_token(user.id, user.email, remember_me)
    response = RedirectResponse(
        _frontend_url(settings, "/home"),
        status_code=status.HTTP_302_FOUND,
    )
    _set_jwt_cookie(response, issued, settings)
    return response

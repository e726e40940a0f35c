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

__all__ = [
    "LoginRequest",
    "MessageResponse",
    "PasswordResetCompleteRequest",
    "PasswordResetRequest",
    "PasswordResetTokenRequest",
    "SignupRequest",
    "TokenResponse",
    "TokenValidResponse",
    "UserResponse",
]

"""Folio Auth - Generic authentication infrastructure.

This package provides authentication primitives that are independent
of the user domain. It handles:
- Password hashing (bcrypt)
- JWT bearer token creation and verification
- Opaque one-time tokens (verification / password reset links)

Architecture:
    folio_auth/
    ├── services/           # Pure logic (password hashing, JWT, opaque tokens)
    ├── schemas.py          # Data classes
    └── exceptions.py       # Auth exceptions

Usage:
    from folio_auth import JWTService, PasswordHashingService

    jwt_service = JWTService(secret_key="...")
    issued = jwt_service.create_token(user_id, "user@example.com")
"""

from folio_auth.exceptions import (
    AuthError,
    InvalidSignatureError,
    InvalidTokenError,
    TokenExpiredError,
    WeakPasswordError,
)
from folio_auth.schemas import IssuedToken, TokenPayload
from folio_auth.services import (
    JWTService,
    OpaqueTokenService,
    PasswordHashingService,
)

__all__ = [
    # Services
    "JWTService",
    "OpaqueTokenService",
    "PasswordHashingService",
    # Schemas
    "IssuedToken",
    "TokenPayload",
    # Exceptions
    "AuthError",
    "InvalidSignatureError",
    "InvalidTokenError",
    "TokenExpiredError",
    "WeakPasswordError",
]

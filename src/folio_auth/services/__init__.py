"""Authentication services.

Provides password hashing, JWT token management and opaque one-time tokens.
"""

from folio_auth.services.jwt_service import JWTService
from folio_auth.services.opaque_token_service import OpaqueTokenService
from folio_auth.services.password_service import PasswordHashingService

__all__ = [
    "JWTService",
    "OpaqueTokenService",
    "PasswordHashingService",
]

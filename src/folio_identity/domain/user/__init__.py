"""User domain: identity, credentials and verification state.

This domain handles:
- User aggregate (email, password hash, one-time token digests)
- Value objects (Email, UserProfile, ExternalIdentityProfile)
- The UserRepository port
"""

from folio_identity.domain.user.aggregates import User
from folio_identity.domain.user.repositories import UserRepository
from folio_identity.domain.user.value_objects import (
    Email,
    ExternalIdentityProfile,
    UserProfile,
)

__all__ = [
    "Email",
    "ExternalIdentityProfile",
    "User",
    "UserProfile",
    "UserRepository",
]

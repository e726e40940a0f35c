"""Folio Identity - Account lifecycle for the Folio backend.

Layers:
    folio_identity/
    ├── domain/            # User aggregate, value objects, repository port
    ├── application/       # AccountService, notification port
    ├── infrastructure/    # SQLAlchemy store, SMTP gateway, cleanup scheduler
    └── exceptions.py      # Error taxonomy (IdentityError + ErrorCode)
"""

from folio_identity.application.ports import NotificationGateway
from folio_identity.application.services import AccountService
from folio_identity.domain.user import (
    Email,
    ExternalIdentityProfile,
    User,
    UserProfile,
    UserRepository,
)

__all__ = [
    "AccountService",
    "Email",
    "ExternalIdentityProfile",
    "NotificationGateway",
    "User",
    "UserProfile",
    "UserRepository",
]

"""Value objects for the user domain."""

from folio_identity.domain.user.value_objects.email import Email
from folio_identity.domain.user.value_objects.external_identity import (
    ExternalIdentityProfile,
)
from folio_identity.domain.user.value_objects.user_profile import UserProfile

__all__ = [
    "Email",
    "ExternalIdentityProfile",
    "UserProfile",
]

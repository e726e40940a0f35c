"""Auth schemas and data structures.

These are simple data classes used for transferring token data
between components.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID


@dataclass(frozen=True)
class TokenPayload:
    """Decoded JWT token payload.

    Attributes
    ----------
    user_id
        The unique identifier of the user (``sub`` claim)
    email
        The user's email address
    exp
        Token expiration timestamp
    """

    user_id: UUID
    email: str
    exp: datetime

    def is_expired(self) -> bool:
        """Check if the token has expired."""
        return datetime.now(tz=self.exp.tzinfo) > self.exp


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed bearer token together with its lifetime."""

    token: str
    lifetime: timedelta

    @property
    def expires_in(self) -> int:
        """Lifetime in whole seconds (cookie ``max-age``)."""
        return int(self.lifetime.total_seconds())

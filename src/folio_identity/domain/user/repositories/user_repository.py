"""User repository interface (the credential store)."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from folio_identity.domain.user.aggregates.user import User


class UserRepository(ABC):
    """Repository interface for User aggregates.

    Every lookup sees live users only: rows carrying a ``deleted_at``
    marker are invisible to ``find_*``.
    """

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> User | None:
        """Find a live user by their ID."""

    @abstractmethod
    async def find_by_email(self, email: str) -> User | None:
        """Find a live user by exact email match."""

    @abstractmethod
    async def find_by_verification_token(self, token_hash: str) -> User | None:
        """Find a live user whose active or consumed verification digest matches."""

    @abstractmethod
    async def find_by_password_reset_token(self, token_hash: str) -> User | None:
        """Find a live user whose active reset digest matches."""

    @abstractmethod
    async def add(self, user: User) -> None:
        """Insert a new user.

        Raises
        ------
        UserAlreadyExistsError
            If a live user already holds the email address
        """

    @abstractmethod
    async def update(self, user: User) -> None:
        """Persist changes to an existing live user.

        Raises
        ------
        UserNotFoundError
            If the user no longer exists or was soft-deleted meanwhile
        """

    @abstractmethod
    async def consume_password_reset_token(self, user: User, token_hash: str) -> None:
        """Persist ``user`` only while ``token_hash`` is still its reset digest.

        Two requests racing on the same reset link must not both succeed:
        the stored row is locked and re-checked before the write.

        Raises
        ------
        UserNotFoundError
            If the token was consumed or replaced meanwhile, or the user is gone
        """

    @abstractmethod
    async def soft_delete_unverified_before(self, cutoff: datetime) -> int:
        """Mark live unverified users created before ``cutoff`` as deleted."""

    @abstractmethod
    async def permanently_delete_before(self, cutoff: datetime) -> int:
        """Remove users soft-deleted before ``cutoff``."""

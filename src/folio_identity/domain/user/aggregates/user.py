"""User aggregate: credentials and verification state."""

from datetime import datetime
from typing import Union
from uuid import UUID, uuid4

from folio_identity.domain.shared.time import ensure_tz_aware, utc_now
from folio_identity.domain.user.value_objects import (
    Email,
    ExternalIdentityProfile,
    UserProfile,
)
from folio_identity.exceptions import (
    UserAlreadyVerifiedError,
    VerificationTokenExpiredError,
)


class User:
    """
    User aggregate root.

    Holds the login credential and the one-time token digests for
    verification and password reset. Opaque tokens are never held in raw
    form; only their SHA-256 digests are.

    Invariants
    ----------
    - A verified user has no active verification token or expiry.
    - At most one active verification and one active reset token.
    - ``password_hash`` is either None (external login only) or a bcrypt hash.
    """

    def __init__(  # noqa: PLR0913
        self,
        email: Union[str, Email],
        password_hash: str | None = None,
        is_verified: bool = False,
        verification_token_hash: str | None = None,
        verification_expires_at: datetime | None = None,
        consumed_verification_token_hash: str | None = None,
        password_reset_token_hash: str | None = None,
        password_reset_expires_at: datetime | None = None,
        profile: UserProfile | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        deleted_at: datetime | None = None,
    ):
        self._email = email if isinstance(email, Email) else Email(email)
        self._id = id or uuid4()
        self._password_hash = password_hash
        self._is_verified = is_verified
        self._verification_token_hash = verification_token_hash
        self._verification_expires_at = _aware(verification_expires_at)
        self._consumed_verification_token_hash = consumed_verification_token_hash
        self._password_reset_token_hash = password_reset_token_hash
        self._password_reset_expires_at = _aware(password_reset_expires_at)
        self._profile = profile or UserProfile()
        self._created_at = _aware(created_at) or utc_now()
        self._updated_at = _aware(updated_at) or self._created_at
        self._deleted_at = _aware(deleted_at)

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def email(self) -> str:
        return self._email.value

    @property
    def password_hash(self) -> str | None:
        return self._password_hash

    @property
    def has_password(self) -> bool:
        return self._password_hash is not None

    @property
    def is_verified(self) -> bool:
        return self._is_verified

    @property
    def verification_token_hash(self) -> str | None:
        return self._verification_token_hash

    @property
    def verification_expires_at(self) -> datetime | None:
        return self._verification_expires_at

    @property
    def consumed_verification_token_hash(self) -> str | None:
        return self._consumed_verification_token_hash

    @property
    def password_reset_token_hash(self) -> str | None:
        return self._password_reset_token_hash

    @property
    def password_reset_expires_at(self) -> datetime | None:
        return self._password_reset_expires_at

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def deleted_at(self) -> datetime | None:
        return self._deleted_at

    @property
    def is_deleted(self) -> bool:
        return self._deleted_at is not None

    def is_verification_expired(self, now: datetime) -> bool:
        expires_at = self._verification_expires_at
        return expires_at is not None and now > expires_at

    def is_password_reset_expired(self, now: datetime) -> bool:
        expires_at = self._password_reset_expires_at
        return expires_at is not None and now > expires_at

    def verify(self, now: datetime) -> None:
        """Complete e-mail verification.

        Raises
        ------
        VerificationTokenExpiredError
            If the verification window has closed
        UserAlreadyVerifiedError
            If the account is already verified
        """
        if self.is_verification_expired(now):
            raise VerificationTokenExpiredError
        if self._is_verified:
            raise UserAlreadyVerifiedError

        self._is_verified = True
        self._consumed_verification_token_hash = self._verification_token_hash
        self._verification_token_hash = None
        self._verification_expires_at = None
        self._updated_at = now

    def request_password_reset(self, token_hash: str, expires_at: datetime) -> None:
        """Install a new reset token, replacing any earlier one."""
        self._password_reset_token_hash = token_hash
        self._password_reset_expires_at = expires_at
        self._updated_at = utc_now()

    def change_password(self, password_hash: str) -> None:
        """Replace the password and consume any outstanding reset token."""
        self._password_hash = password_hash
        self._password_reset_token_hash = None
        self._password_reset_expires_at = None
        self._updated_at = utc_now()

    def rehash_password(self, password_hash: str) -> None:
        """Swap in a hash of the same password made with a new work factor."""
        self._password_hash = password_hash
        self._updated_at = utc_now()

    def soft_delete(self, now: datetime) -> None:
        self._deleted_at = now
        self._updated_at = now

    @classmethod
    def register(
        cls,
        email: Union[str, Email],
        password_hash: str,
        verification_token_hash: str,
        verification_expires_at: datetime,
    ) -> "User":
        """Create an unverified account awaiting e-mail verification."""
        return cls(
            email=email,
            password_hash=password_hash,
            is_verified=False,
            verification_token_hash=verification_token_hash,
            verification_expires_at=verification_expires_at,
        )

    @classmethod
    def create_from_external(cls, external: ExternalIdentityProfile) -> "User":
        """Create a verified, password-less account from an OAuth profile."""
        return cls(
            email=external.email,
            is_verified=True,
            profile=UserProfile(
                first_name=external.given_name,
                last_name=external.family_name,
            ),
        )

    @classmethod
    def reconstitute(  # noqa: PLR0913
        cls,
        id: UUID,
        email: Union[str, Email],
        password_hash: str | None,
        is_verified: bool,
        verification_token_hash: str | None,
        verification_expires_at: datetime | None,
        consumed_verification_token_hash: str | None,
        password_reset_token_hash: str | None,
        password_reset_expires_at: datetime | None,
        profile: UserProfile,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
    ) -> "User":
        return cls(
            id=id,
            email=email,
            password_hash=password_hash,
            is_verified=is_verified,
            verification_token_hash=verification_token_hash,
            verification_expires_at=verification_expires_at,
            consumed_verification_token_hash=consumed_verification_token_hash,
            password_reset_token_hash=password_reset_token_hash,
            password_reset_expires_at=password_reset_expires_at,
            profile=profile,
            created_at=created_at,
            updated_at=updated_at,
            deleted_at=deleted_at,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"User(id={self._id}, email={self._email.value}, "
            f"verified={self._is_verified})"
        )


def _aware(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything in the domain is UTC
    return ensure_tz_aware(dt) if dt is not None else None

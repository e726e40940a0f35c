"""Account lifecycle: signup, verification, login, reset and cleanup.

AccountService is the only component that mutates credentials. It works
against the UserRepository port and the folio_auth primitives; it never
commits (the caller owns the transaction) and never sends mail (the
caller notifies after a successful commit).
"""

import logging
from datetime import timedelta
from uuid import UUID

from folio_auth import (
    IssuedToken,
    JWTService,
    OpaqueTokenService,
    PasswordHashingService,
    WeakPasswordError,
)
from folio_identity.domain.shared.time import utc_now
from folio_identity.domain.user import (
    Email,
    ExternalIdentityProfile,
    User,
    UserRepository,
)
from folio_identity.exceptions import (
    InvalidCredentialsError,
    InvalidPasswordError,
    NoPasswordSetError,
    ResetTokenExpiredError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Application service for the credential lifecycle.

    Parameters
    ----------
    user_repository
        Credential store
    password_service
        bcrypt hashing
    jwt_service
        Bearer token issuer / verifier
    token_service
        Generator for verification and reset link tokens
    """

    VERIFICATION_TOKEN_TTL = timedelta(days=7)
    RESET_TOKEN_TTL = timedelta(hours=1)
    SOFT_DELETE_AFTER = timedelta(days=7)
    PERMANENT_DELETE_AFTER = timedelta(days=23)

    def __init__(
        self,
        user_repository: UserRepository,
        password_service: PasswordHashingService,
        jwt_service: JWTService,
        token_service: OpaqueTokenService | None = None,
    ):
        self._user_repo = user_repository
        self._password_service = password_service
        self._jwt_service = jwt_service
        self._token_service = token_service or OpaqueTokenService()

    async def sign_up(self, email: str, password: str) -> str:
        """Register an unverified account.

        Returns
        -------
        The raw verification token, to be delivered by e-mail

        Raises
        ------
        InvalidEmailError
            If the address is empty or malformed
        InvalidPasswordError
            If the password is empty or cannot be hashed
        UserAlreadyExistsError
            If a live user already holds the address
        """
        email_obj = Email(email)
        if not password:
            msg = "Password cannot be empty"
            raise InvalidPasswordError(msg)

        if await self._user_repo.find_by_email(email_obj.value) is not None:
            raise UserAlreadyExistsError(email_obj.value)

        password_hash = self._hash_password(password)
        raw_token = self._token_service.generate()

        user = User.register(
            email=email_obj,
            password_hash=password_hash,
            verification_token_hash=self._token_service.digest(raw_token),
            verification_expires_at=utc_now() + self.VERIFICATION_TOKEN_TTL,
        )
        await self._user_repo.add(user)

        logger.info("Registered user %s (pending verification)", user.id)
        return raw_token

    async def verify_user(self, token: str) -> User:
        """Mark the account owning ``token`` as verified.

        A token that already completed verification still resolves to its
        user so a repeated click reports UserAlreadyVerifiedError rather
        than UserNotFoundError.

        Raises
        ------
        UserNotFoundError
            If no live user matches the token
        VerificationTokenExpiredError
            If the verification window has closed
        UserAlreadyVerifiedError
            If the account was verified before
        """
        user = await self._find_by_verification_token(token)
        user.verify(utc_now())
        await self._user_repo.update(user)

        logger.info("Verified user %s", user.id)
        return user

    async def login(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
    ) -> IssuedToken:
        """Authenticate with email and password.

        Raises
        ------
        UserNotFoundError
            If no live user holds the address
        NoPasswordSetError
            If the account was created through an external provider
        InvalidCredentialsError
            If the password does not match
        """
        user = await self._user_repo.find_by_email(email) if email else None
        if user is None:
            raise UserNotFoundError(email=email)

        if user.password_hash is None:
            raise NoPasswordSetError

        if not self._password_service.verify(password, user.password_hash):
            logger.debug("Password mismatch for user %s", user.id)
            raise InvalidCredentialsError

        if self._password_service.needs_rehash(user.password_hash):
            user.rehash_password(self._password_service.hash(password))
            await self._user_repo.update(user)
            logger.info("Rehashed password for user %s", user.id)

        return self.create_token(user.id, user.email, remember_me)

    def create_token(
        self,
        user_id: UUID,
        email: str,
        remember_me: bool = False,
    ) -> IssuedToken:
        return self._jwt_service.create_token(user_id, email, remember_me)

    async def get_user_from_token(self, token: str) -> User:
        """Resolve a bearer token to its live user.

        Raises
        ------
        InvalidTokenError
            (or a subclass) if the token does not verify
        UserNotFoundError
            If the user was deleted after the token was issued
        """
        payload = self._jwt_service.verify_token(token)
        user = await self._user_repo.find_by_id(payload.user_id)
        if user is None:
            raise UserNotFoundError(user_id=str(payload.user_id))
        return user

    async def find_or_create_user_by_google(
        self,
        profile: ExternalIdentityProfile,
    ) -> tuple[User, bool]:
        """Return the live account for the provider's address, creating it if needed.

        Existing accounts are returned untouched. New accounts are verified
        and have no password. If a concurrent first login wins the insert,
        the winner's record is returned.

        Returns
        -------
        The account, and whether this call created it
        """
        email_obj = Email(profile.email)
        user = await self._user_repo.find_by_email(email_obj.value)
        if user is not None:
            return user, False

        user = User.create_from_external(profile)
        try:
            await self._user_repo.add(user)
        except UserAlreadyExistsError:
            winner = await self._user_repo.find_by_email(email_obj.value)
            if winner is None:
                raise
            logger.info(
                "Concurrent OAuth signup for %s resolved to %s", email_obj, winner.id
            )
            return winner, False

        logger.info("Created user %s from external identity", user.id)
        return user, True

    async def generate_password_reset_token(self, email: str) -> str:
        """Issue a one-hour reset token, replacing any earlier one.

        Returns
        -------
        The raw reset token, to be delivered by e-mail

        Raises
        ------
        UserNotFoundError
            If no live user holds the address
        """
        user = await self._user_repo.find_by_email(email) if email else None
        if user is None:
            raise UserNotFoundError(email=email)

        raw_token = self._token_service.generate()
        user.request_password_reset(
            self._token_service.digest(raw_token),
            utc_now() + self.RESET_TOKEN_TTL,
        )
        await self._user_repo.update(user)

        logger.info("Password reset requested for user %s", user.id)
        return raw_token

    async def validate_password_reset_token(self, token: str) -> User:
        """Look up the user owning a reset token without consuming it.

        Raises
        ------
        UserNotFoundError
            If no live user holds the token
        ResetTokenExpiredError
            If the token is older than one hour
        """
        user = None
        if token:
            token_hash = self._token_service.digest(token)
            user = await self._user_repo.find_by_password_reset_token(token_hash)
        if user is None:
            raise UserNotFoundError("Invalid password reset token")

        if user.is_password_reset_expired(utc_now()):
            raise ResetTokenExpiredError
        return user

    async def update_password(self, user: User, new_password: str) -> None:
        """Replace the password and consume the reset token.

        ``user`` must come from ``validate_password_reset_token``; the write
        only lands if its reset token is still the stored one.

        Raises
        ------
        InvalidPasswordError
            If the new password is empty or too long
        UserNotFoundError
            If the reset token was consumed or replaced meanwhile
        """
        if not new_password:
            msg = "Password cannot be empty"
            raise InvalidPasswordError(msg)

        token_hash = user.password_reset_token_hash
        if token_hash is None:
            raise UserNotFoundError("Invalid password reset token")

        user.change_password(self._hash_password(new_password))
        await self._user_repo.consume_password_reset_token(user, token_hash)
        logger.info("Password updated for user %s", user.id)

    def logout(self) -> None:
        """Tokens are stateless; the HTTP layer clears the cookie."""

    async def soft_delete_unverified_users(self) -> int:
        """Soft-delete accounts left unverified for longer than seven days."""
        cutoff = utc_now() - self.SOFT_DELETE_AFTER
        count = await self._user_repo.soft_delete_unverified_before(cutoff)
        logger.info(
            "Soft-deleted %d unverified user(s) created before %s", count, cutoff
        )
        return count

    async def permanently_delete_users(self) -> int:
        """Remove accounts that were soft-deleted more than 23 days ago."""
        cutoff = utc_now() - self.PERMANENT_DELETE_AFTER
        count = await self._user_repo.permanently_delete_before(cutoff)
        logger.info(
            "Permanently deleted %d user(s) soft-deleted before %s", count, cutoff
        )
        return count

    async def _find_by_verification_token(self, token: str) -> User:
        user = None
        if token:
            token_hash = self._token_service.digest(token)
            user = await self._user_repo.find_by_verification_token(token_hash)
        if user is None:
            raise UserNotFoundError("Invalid verification token")
        return user

    def _hash_password(self, password: str) -> str:
        try:
            return self._password_service.hash(password)
        except WeakPasswordError as e:
            raise InvalidPasswordError(e.message) from e

"""SQLAlchemy implementation of UserRepository."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from folio_identity.domain.shared.time import utc_now
from folio_identity.domain.user import User, UserProfile, UserRepository
from folio_identity.exceptions import (
    StorageError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from folio_identity.infrastructure.persistence.sqlalchemy.models import UserModel

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Storage failure during %s: %s", operation, e)
        raise StorageError(details={"operation": operation}) from e


class UserRepositorySQLAlchemy(UserRepository):
    """SQLAlchemy implementation of the UserRepository interface.

    Never commits; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_id(self, user_id: UUID) -> User | None:
        return await self._find_one(UserModel.id == user_id, "find_by_id")

    async def find_by_email(self, email: str) -> User | None:
        return await self._find_one(UserModel.email == email, "find_by_email")

    async def find_by_verification_token(self, token_hash: str) -> User | None:
        return await self._find_one(
            or_(
                UserModel.verification_token_hash == token_hash,
                UserModel.consumed_verification_token_hash == token_hash,
            ),
            "find_by_verification_token",
        )

    async def find_by_password_reset_token(self, token_hash: str) -> User | None:
        return await self._find_one(
            UserModel.password_reset_token_hash == token_hash,
            "find_by_password_reset_token",
        )

    async def add(self, user: User) -> None:
        with _storage_errors("add"):
            try:
                # Savepoint keeps the outer transaction usable after a conflict
                async with self._session.begin_nested():
                    self._session.add(self._map_to_model(user))
                    await self._session.flush()
            except IntegrityError as e:
                logger.info("Email already registered: %s", user.email)
                raise UserAlreadyExistsError(user.email) from e

        logger.info("Created user: %s (email: %s)", user.id, user.email)

    async def update(self, user: User) -> None:
        with _storage_errors("update"):
            model = await self._find_live_model(user.id)
            if model is None:
                raise UserNotFoundError(user_id=str(user.id))

            self._update_model(model, user)
            await self._session.flush()

        logger.debug("Updated user: %s", user.id)

    async def consume_password_reset_token(self, user: User, token_hash: str) -> None:
        # FOR UPDATE makes a concurrent consumer wait and then re-evaluate the
        # token predicate against the committed row
        stmt = (
            select(UserModel)
            .where(
                UserModel.id == user.id,
                UserModel.deleted_at.is_(None),
                UserModel.password_reset_token_hash == token_hash,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        with _storage_errors("consume_password_reset_token"):
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                logger.info("Reset token for user %s already consumed", user.id)
                raise UserNotFoundError("Invalid password reset token")

            self._update_model(model, user)
            await self._session.flush()

        logger.debug("Consumed reset token for user: %s", user.id)

    async def soft_delete_unverified_before(self, cutoff: datetime) -> int:
        now = utc_now()
        stmt = (
            update(UserModel)
            .where(
                UserModel.is_verified.is_(False),
                UserModel.created_at < cutoff,
                UserModel.deleted_at.is_(None),
            )
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        with _storage_errors("soft_delete_unverified_before"):
            result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def permanently_delete_before(self, cutoff: datetime) -> int:
        stmt = (
            delete(UserModel)
            .where(
                UserModel.deleted_at.is_not(None),
                UserModel.deleted_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        with _storage_errors("permanently_delete_before"):
            result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def _find_one(self, criterion, operation: str) -> User | None:
        stmt = select(UserModel).where(criterion, UserModel.deleted_at.is_(None))
        with _storage_errors(operation):
            result = await self._session.execute(stmt)
            model = result.scalars().first()

        if model is None:
            return None

        return self._map_to_domain(model)

    async def _find_live_model(self, user_id: UUID) -> UserModel | None:
        stmt = select(UserModel).where(
            UserModel.id == user_id,
            UserModel.deleted_at.is_(None),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _map_to_domain(self, model: UserModel) -> User:
        return User.reconstitute(
            id=model.id,
            email=model.email,
            password_hash=model.password_hash,
            is_verified=model.is_verified,
            verification_token_hash=model.verification_token_hash,
            verification_expires_at=model.verification_expires_at,
            consumed_verification_token_hash=model.consumed_verification_token_hash,
            password_reset_token_hash=model.password_reset_token_hash,
            password_reset_expires_at=model.password_reset_expires_at,
            profile=UserProfile(
                first_name=model.first_name,
                last_name=model.last_name,
                first_name_kana=model.first_name_kana,
                last_name_kana=model.last_name_kana,
                school_name=model.school_name,
                department=model.department,
                laboratory=model.laboratory,
                graduation_year=model.graduation_year,
                desired_job_types=tuple(model.desired_job_types or ()),
                skills=tuple(model.skills or ()),
                self_introduction=model.self_introduction,
                profile_image_url=model.profile_image_url,
            ),
            created_at=model.created_at,
            updated_at=model.updated_at,
            deleted_at=model.deleted_at,
        )

    def _map_to_model(self, user: User) -> UserModel:
        model = UserModel(id=user.id, created_at=user.created_at)
        self._update_model(model, user)
        return model

    def _update_model(self, model: UserModel, user: User) -> None:
        profile = user.profile
        model.email = user.email
        model.password_hash = user.password_hash
        model.is_verified = user.is_verified
        model.verification_token_hash = user.verification_token_hash
        model.verification_expires_at = user.verification_expires_at
        model.consumed_verification_token_hash = user.consumed_verification_token_hash
        model.password_reset_token_hash = user.password_reset_token_hash
        model.password_reset_expires_at = user.password_reset_expires_at
        model.first_name = profile.first_name
        model.last_name = profile.last_name
        model.first_name_kana = profile.first_name_kana
        model.last_name_kana = profile.last_name_kana
        model.school_name = profile.school_name
        model.department = profile.department
        model.laboratory = profile.laboratory
        model.graduation_year = profile.graduation_year
        model.desired_job_types = list(profile.desired_job_types)
        model.skills = list(profile.skills)
        model.self_introduction = profile.self_introduction
        model.profile_image_url = profile.profile_image_url
        model.updated_at = user.updated_at

"""Cleanup jobs against a real (SQLite) store."""

from datetime import timedelta

import pytest

from folio_auth import JWTService, PasswordHashingService
from folio_identity import AccountService
from folio_identity.domain.shared.time import utc_now
from folio_identity.infrastructure.persistence.sqlalchemy import (
    UserRepositorySQLAlchemy,
)
from folio_identity.infrastructure.scheduling import AccountCleanupScheduler
from tests.shared.fixtures.factories import (
    TEST_BCRYPT_ROUNDS,
    TEST_JWT_SECRET,
    TestUserFactory,
)

pytestmark = pytest.mark.integration


def _service(session) -> AccountService:
    return AccountService(
        user_repository=UserRepositorySQLAlchemy(session),
        password_service=PasswordHashingService(rounds=TEST_BCRYPT_ROUNDS),
        jwt_service=JWTService(secret_key=TEST_JWT_SECRET),
    )


@pytest.fixture
def cleanup(session_maker) -> AccountCleanupScheduler:
    return AccountCleanupScheduler(
        session_maker=session_maker,
        service_factory=_service,
    )


async def _seed(session_maker, *users) -> None:
    async with session_maker() as session:
        repo = UserRepositorySQLAlchemy(session)
        for user in users:
            await repo.add(user)
        await session.commit()


class TestCleanupJobs:
    @pytest.mark.asyncio
    async def test_soft_delete_job_commits(self, session_maker, cleanup):
        now = utc_now()
        stale = TestUserFactory.unverified(
            email=TestUserFactory.ALICE_EMAIL, created_at=now - timedelta(days=8)
        )
        fresh = TestUserFactory.unverified(
            email=TestUserFactory.BOB_EMAIL,
            created_at=now - timedelta(days=1),
            verification_token="b" * 64,
        )
        await _seed(session_maker, stale, fresh)

        assert await cleanup.run_soft_delete() == 1

        async with session_maker() as session:
            repo = UserRepositorySQLAlchemy(session)
            assert await repo.find_by_id(stale.id) is None
            assert await repo.find_by_id(fresh.id) is not None

    @pytest.mark.asyncio
    async def test_permanent_delete_job_commits(self, session_maker, cleanup):
        old = TestUserFactory.soft_deleted(deleted_at=utc_now() - timedelta(days=24))
        await _seed(session_maker, old)

        assert await cleanup.run_permanent_delete() == 1
        assert await cleanup.run_permanent_delete() == 0

    @pytest.mark.asyncio
    async def test_freed_email_can_sign_up_again(self, session_maker, cleanup):
        stale = TestUserFactory.unverified(created_at=utc_now() - timedelta(days=8))
        await _seed(session_maker, stale)
        await cleanup.run_soft_delete()

        async with session_maker() as session:
            token = await _service(session).sign_up(stale.email, "secure_password_1")
            await session.commit()

        async with session_maker() as session:
            user = await _service(session).verify_user(token)
            assert user.id != stale.id

"""Unit tests for AccountCleanupScheduler."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from folio_identity import AccountService
from folio_identity.exceptions import StorageError
from folio_identity.infrastructure.scheduling import AccountCleanupScheduler
from folio_identity.infrastructure.scheduling.cleanup_scheduler import (
    PERMANENT_DELETE_JOB_ID,
    SOFT_DELETE_JOB_ID,
)


class TestSchedulerJobs:
    def setup_method(self):
        self.session = AsyncMock()
        self.session_maker = MagicMock()
        self.session_maker.return_value.__aenter__.return_value = self.session
        self.account_service = Mock(spec=AccountService)
        self.account_service.soft_delete_unverified_users = AsyncMock(return_value=3)
        self.account_service.permanently_delete_users = AsyncMock(return_value=1)
        self.service_factory = Mock(return_value=self.account_service)

        self.scheduler = AccountCleanupScheduler(
            session_maker=self.session_maker,
            service_factory=self.service_factory,
        )

    @pytest.mark.asyncio
    async def test_soft_delete_commits_and_returns_count(self):
        count = await self.scheduler.run_soft_delete()

        assert count == 3
        self.service_factory.assert_called_once_with(self.session)
        self.session.commit.assert_awaited_once()
        self.session.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_permanent_delete_commits_and_returns_count(self):
        count = await self.scheduler.run_permanent_delete()

        assert count == 1
        self.account_service.permanently_delete_users.assert_awaited_once()
        self.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_returns_none(self, caplog):
        self.account_service.soft_delete_unverified_users.side_effect = StorageError()

        count = await self.scheduler.run_soft_delete()

        assert count is None
        self.session.rollback.assert_awaited_once()
        self.session.commit.assert_not_called()
        assert SOFT_DELETE_JOB_ID in caplog.text

    @pytest.mark.asyncio
    async def test_failure_of_one_job_does_not_affect_the_other(self):
        self.account_service.soft_delete_unverified_users.side_effect = StorageError()

        assert await self.scheduler.run_soft_delete() is None
        assert await self.scheduler.run_permanent_delete() == 1


class TestSchedulerLifecycle:
    def _scheduler(self, **kwargs) -> AccountCleanupScheduler:
        return AccountCleanupScheduler(
            session_maker=MagicMock(),
            service_factory=Mock(),
            **kwargs,
        )

    @pytest.mark.asyncio
    async def test_start_registers_both_jobs(self):
        scheduler = self._scheduler()
        before = datetime.now(tz=timezone.utc)

        scheduler.start()
        try:
            assert scheduler.running
            soft = scheduler.scheduler.get_job(SOFT_DELETE_JOB_ID)
            permanent = scheduler.scheduler.get_job(PERMANENT_DELETE_JOB_ID)

            assert soft.trigger.interval == timedelta(hours=24)
            assert permanent.trigger.interval == timedelta(hours=24)
            assert soft.max_instances == 1
            assert soft.coalesce
            assert soft.next_run_time >= before + timedelta(hours=24)
            assert permanent.next_run_time - soft.next_run_time >= timedelta(
                minutes=10
            ) - timedelta(seconds=1)
        finally:
            scheduler.shutdown()

        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_custom_interval_and_stagger(self):
        scheduler = self._scheduler(
            interval=timedelta(hours=6),
            stagger=timedelta(minutes=30),
        )

        scheduler.start()
        try:
            soft = scheduler.scheduler.get_job(SOFT_DELETE_JOB_ID)
            permanent = scheduler.scheduler.get_job(PERMANENT_DELETE_JOB_ID)
            assert soft.trigger.interval == timedelta(hours=6)
            assert permanent.next_run_time - soft.next_run_time >= timedelta(
                minutes=29
            )
        finally:
            scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_start_twice_is_harmless(self):
        scheduler = self._scheduler()

        scheduler.start()
        scheduler.start()
        try:
            assert len(scheduler.scheduler.get_jobs()) == 2
        finally:
            scheduler.shutdown()

    def test_shutdown_when_not_started_is_noop(self):
        scheduler = self._scheduler()

        scheduler.shutdown()

        assert not scheduler.running

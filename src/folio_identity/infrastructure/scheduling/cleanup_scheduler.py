"""
Background scheduler for account cleanup.

Two periodic jobs share the application's event loop:
- Soft-delete accounts left unverified for more than 7 days
- Permanently delete accounts soft-deleted more than 23 days ago

The permanent-delete job is staggered after the soft-delete job. Each run
opens its own session and commits on success. Failures are logged and
rolled back; the next tick retries. There is no cross-process lock, so
run the scheduler in one worker only.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from folio_identity.application.services import AccountService

logger = logging.getLogger(__name__)

AccountServiceFactory = Callable[[AsyncSession], AccountService]

SOFT_DELETE_JOB_ID = "soft_delete_unverified_users"
PERMANENT_DELETE_JOB_ID = "permanently_delete_users"


class AccountCleanupScheduler:
    """Runs the account cleanup jobs on an APScheduler AsyncIOScheduler.

    Parameters
    ----------
    session_maker
        Factory for one session per job run
    service_factory
        Builds an AccountService bound to a session
    interval
        Time between runs of each job (default 24 hours)
    stagger
        Extra delay for the permanent-delete job
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        service_factory: AccountServiceFactory,
        interval: timedelta = timedelta(hours=24),
        stagger: timedelta = timedelta(minutes=10),
    ):
        self._session_maker = session_maker
        self._service_factory = service_factory
        self._interval = interval
        self._stagger = stagger
        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler

    def start(self) -> None:
        """Register both jobs and start the scheduler (needs a running loop)."""
        if self._scheduler.running:
            return

        first_run = datetime.now(tz=timezone.utc) + self._interval
        self._scheduler.add_job(
            self.run_soft_delete,
            trigger=IntervalTrigger(
                seconds=self._interval.total_seconds(),
                start_date=first_run,
            ),
            id=SOFT_DELETE_JOB_ID,
            name="Soft-delete unverified users",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.add_job(
            self.run_permanent_delete,
            trigger=IntervalTrigger(
                seconds=self._interval.total_seconds(),
                start_date=first_run + self._stagger,
            ),
            id=PERMANENT_DELETE_JOB_ID,
            name="Permanently delete users",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self._scheduler.start()
        logger.info(
            "Account cleanup scheduler started "
            "(every %s, permanent delete staggered by %s)",
            self._interval,
            self._stagger,
        )

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Account cleanup scheduler stopped")

    async def run_soft_delete(self) -> int | None:
        """Run one soft-delete pass. Returns the row count, or None on failure."""
        return await self._run(
            SOFT_DELETE_JOB_ID,
            lambda service: service.soft_delete_unverified_users(),
        )

    async def run_permanent_delete(self) -> int | None:
        """Run one permanent-delete pass. Returns the row count, or None on failure."""
        return await self._run(
            PERMANENT_DELETE_JOB_ID,
            lambda service: service.permanently_delete_users(),
        )

    async def _run(
        self,
        job_id: str,
        action: Callable[[AccountService], Awaitable[int]],
    ) -> int | None:
        async with self._session_maker() as session:
            try:
                count = await action(self._service_factory(session))
                await session.commit()
            except Exception:
                # Jobs must not raise into the scheduler; the next tick retries
                await session.rollback()
                logger.exception("Cleanup job %s failed", job_id)
                return None

        logger.info("Cleanup job %s completed: %d row(s) affected", job_id, count)
        return count

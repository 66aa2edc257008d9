"""APScheduler integration: periodic sync driven by the stored integration config."""

import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import Request
from sqlalchemy.orm import Session

from cleanflow.config import settings
from cleanflow.database import SessionLocal
from cleanflow.schemas.sync import ConfigSyncStatus, ServiceSyncStatus, SyncResult, SyncStatusResponse
from cleanflow.services.integration_config import get_integration_config
from cleanflow.services.sync_service import SyncService
from cleanflow.utils.clock import now

log = logging.getLogger(__name__)

SYNC_JOB_ID = "periodic_sync_job"
CONFIG_CHECK_JOB_ID = "integration_config_check"


class SyncScheduler:
    """
    Keeps one recurring sync job in step with the integration config.

    A config-check job re-reads the config every ``check_interval_seconds``:
    the sync job is (re)scheduled when the integration is enabled and its
    interval changed, and removed when the integration is disabled.
    """

    def __init__(
        self,
        sync_service: SyncService,
        scheduler: Optional[AsyncIOScheduler] = None,
        session_factory: Callable[[], Session] = SessionLocal,
        check_interval_seconds: Optional[int] = None
    ):
        self.sync_service = sync_service
        self.scheduler = scheduler or AsyncIOScheduler(timezone=settings.timezone)
        self.session_factory = session_factory
        self.check_interval_seconds = check_interval_seconds or settings.config_check_interval_seconds
        self.current_interval: Optional[int] = None

    def start(self) -> None:
        """Start the scheduler; the first config check runs immediately."""
        self.scheduler.add_job(
            self.check_and_schedule,
            trigger=IntervalTrigger(seconds=self.check_interval_seconds),
            id=CONFIG_CHECK_JOB_ID,
            replace_existing=True,
            next_run_time=now(),
            max_instances=1,
            coalesce=True
        )
        if not self.scheduler.running:
            self.scheduler.start()
            log.info(f"APScheduler started (config check every {self.check_interval_seconds}s)")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            log.info("APScheduler shut down successfully")
        self.current_interval = None

    async def check_and_schedule(self) -> None:
        db = self.session_factory()
        try:
            config = get_integration_config(db)
            enabled, interval = config.enabled, config.sync_interval
        except Exception as e:
            log.error(f"Failed to read integration config for scheduling: {e}", exc_info=True)
            return
        finally:
            db.close()

        if enabled and interval and interval > 0:
            self.schedule_sync(interval)
        else:
            self.cancel_sync()

    def schedule_sync(self, interval_minutes: int) -> None:
        if self.is_scheduled and self.current_interval == interval_minutes:
            return

        if self.scheduler.get_job(SYNC_JOB_ID):
            self.scheduler.remove_job(SYNC_JOB_ID)
        self.scheduler.add_job(
            self._scheduled_sync,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=SYNC_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        previous, self.current_interval = self.current_interval, interval_minutes
        if previous is None:
            log.info(f"Automatic sync scheduled every {interval_minutes} minutes")
        else:
            log.info(f"Sync interval changed from {previous} to {interval_minutes} minutes, rescheduled")

    def cancel_sync(self) -> None:
        if self.scheduler.get_job(SYNC_JOB_ID):
            self.scheduler.remove_job(SYNC_JOB_ID)
            log.info("Automatic sync cancelled (integration disabled)")
        self.current_interval = None

    async def _scheduled_sync(self) -> None:
        result = await self.sync_service.run_sync('scheduled')
        if result.success:
            log.info(f"Scheduled sync finished: {result.message}")
        else:
            log.warning(f"Scheduled sync did not succeed: {result.message}")

    async def force_sync(self) -> SyncResult:
        """Run the sync now, outside the schedule. Still single-flight."""
        log.info("Forced sync requested")
        return await self.sync_service.run_sync('manual')

    @property
    def is_scheduled(self) -> bool:
        return self.scheduler.get_job(SYNC_JOB_ID) is not None

    def next_run(self):
        job = self.scheduler.get_job(SYNC_JOB_ID)
        # Pending jobs on a stopped scheduler carry no next_run_time yet
        return getattr(job, 'next_run_time', None) if job else None

    def get_status(self, db: Session) -> SyncStatusResponse:
        config = get_integration_config(db)
        return SyncStatusResponse(
            config=ConfigSyncStatus(
                enabled=config.enabled,
                last_sync=config.last_sync,
                sync_interval=config.sync_interval
            ),
            service=ServiceSyncStatus(
                is_running=self.sync_service.is_running,
                is_scheduled=self.is_scheduled,
                last_run=self.sync_service.last_run,
                next_run=self.next_run(),
                current_interval=self.current_interval
            ),
            timestamp=now()
        )


def get_sync_scheduler(request: Request) -> SyncScheduler:
    """FastAPI dependency: the process-wide scheduler created at startup."""
    return request.app.state.sync_scheduler

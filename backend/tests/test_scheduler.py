import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cleanflow.scheduler import SYNC_JOB_ID, SyncScheduler
from cleanflow.services.integration_config import save_integration_config
from cleanflow.services.sync_service import SyncService


@pytest.fixture
def sync_scheduler(connector_factory) -> SyncScheduler:
    # Never started: jobs stay pending, which is all these tests inspect
    service = SyncService(connector_factory=connector_factory(rows=[{"code1": "QTO101", "tipobloq": "L"}]))
    return SyncScheduler(service, scheduler=AsyncIOScheduler())


@pytest.mark.asyncio
async def test_disabled_integration_is_not_scheduled(db, sync_scheduler):
    await sync_scheduler.check_and_schedule()

    assert sync_scheduler.is_scheduled is False
    assert sync_scheduler.current_interval is None


@pytest.mark.asyncio
async def test_enabled_integration_is_scheduled(db, enabled_config, sync_scheduler):
    await sync_scheduler.check_and_schedule()

    assert sync_scheduler.is_scheduled is True
    assert sync_scheduler.current_interval == 5


@pytest.mark.asyncio
async def test_interval_change_reschedules(db, enabled_config, sync_scheduler):
    await sync_scheduler.check_and_schedule()
    save_integration_config(db, {"sync_interval": 10})

    await sync_scheduler.check_and_schedule()

    assert sync_scheduler.current_interval == 10
    job = sync_scheduler.scheduler.get_job(SYNC_JOB_ID)
    assert job.trigger.interval.total_seconds() == 600


@pytest.mark.asyncio
async def test_disabling_cancels_the_job(db, enabled_config, sync_scheduler):
    await sync_scheduler.check_and_schedule()
    save_integration_config(db, {"enabled": False})

    await sync_scheduler.check_and_schedule()

    assert sync_scheduler.is_scheduled is False
    assert sync_scheduler.current_interval is None


@pytest.mark.asyncio
async def test_force_sync_runs_manual_sync(db, enabled_config, sync_scheduler):
    result = await sync_scheduler.force_sync()

    assert result.success is True
    assert result.stats.created == 1


@pytest.mark.asyncio
async def test_status_merges_config_and_service_state(db, enabled_config, sync_scheduler):
    await sync_scheduler.check_and_schedule()
    await sync_scheduler.force_sync()

    status = sync_scheduler.get_status(db)

    assert status.config.enabled is True
    assert status.config.sync_interval == 5
    assert status.config.last_sync is not None
    assert status.service.is_running is False
    assert status.service.is_scheduled is True
    assert status.service.last_run is not None
    assert status.service.current_interval == 5

import asyncio
from unittest.mock import patch

import pytest

from cleanflow.constants.connection_failures import ConnectionFailure
from cleanflow.models.integration_config import IntegrationConfig
from cleanflow.models.location import Location
from cleanflow.models.sync_history import SyncHistory
from cleanflow.schemas.mapping import MappingCreate
from cleanflow.services.exceptions import ExternalConnectionError
from cleanflow.services.integration_config import save_integration_config
from cleanflow.services.mapping_service import create_mapping
from cleanflow.services.sync_service import SyncService, get_sync_statistics, list_sync_history, was_rejected

ROWS = [
    {"code1": "QTO101", "tipobloq": "L"},
    {"code1": "APTO202", "tipobloq": "*"},
    {"code1": "XYZ1", "tipobloq": "Z"},
]


def stored_config(db) -> IntegrationConfig:
    db.expire_all()
    return db.query(IntegrationConfig).one()


@pytest.mark.asyncio
async def test_full_run(db, enabled_config, connector_factory):
    service = SyncService(connector_factory=connector_factory(rows=ROWS))

    result = await service.run_sync('manual')

    assert result.success is True
    assert result.stats.model_dump() == {"total": 3, "updated": 0, "created": 2, "skipped": 1, "errors": 0}
    assert result.message == "Sync finished! 2 new, 0 updated, 1 skipped, 0 errors."
    assert result.sync_id.startswith("sync-")
    assert service.is_running is False
    assert service.last_run is not None

    db.expire_all()
    locations = {l.external_code: l for l in db.query(Location).all()}
    assert set(locations) == {"QTO101", "APTO202"}
    assert (locations["QTO101"].name, locations["QTO101"].status) == ("Quarto", "available")
    assert (locations["APTO202"].name, locations["APTO202"].status) == ("Apartamento", "occupied")

    config = stored_config(db)
    assert config.last_sync is not None
    assert config.last_sync_stats["created"] == 2

    history = db.query(SyncHistory).one()
    assert history.sync_id == result.sync_id
    assert history.type == "manual"
    assert history.success is True
    assert history.target == {"host": "beds.hospital.local", "database": "leitos"}


@pytest.mark.asyncio
async def test_second_run_is_idempotent(db, enabled_config, connector_factory):
    service = SyncService(connector_factory=connector_factory(rows=ROWS))

    await service.run_sync('scheduled')
    second = await service.run_sync('scheduled')

    assert second.stats.created == 0
    assert second.stats.updated == 0
    assert second.stats.skipped == 3


@pytest.mark.asyncio
async def test_location_in_cleaning_survives_sync(db, enabled_config, connector_factory):
    cleaning = {"type": "concurrent", "user_id": "3", "user_name": "Ana", "start_time": "2026-10-19T08:00:00+00:00"}
    db.add(Location(name="Quarto", number="101", status="in_cleaning", external_code="QTO101", current_cleaning=cleaning))
    db.commit()

    service = SyncService(connector_factory=connector_factory(rows=[{"code1": "QTO101", "tipobloq": "*"}]))
    result = await service.run_sync('scheduled')

    assert result.stats.skipped == 1
    db.expire_all()
    location = db.query(Location).filter(Location.external_code == "QTO101").one()
    assert location.status == "in_cleaning"
    assert location.current_cleaning == cleaning


@pytest.mark.asyncio
async def test_mapping_override_is_applied(db, enabled_config, connector_factory):
    create_mapping(db, MappingCreate(external_code="QTO101", internal_name="Enfermaria", internal_number="12"))

    service = SyncService(connector_factory=connector_factory(rows=[{"code1": "QTO101", "tipobloq": "L"}]))
    await service.run_sync('manual')

    db.expire_all()
    location = db.query(Location).one()
    assert (location.name, location.number) == ("Enfermaria", "12")


@pytest.mark.asyncio
async def test_empty_fetch_is_a_success(db, enabled_config, connector_factory):
    service = SyncService(connector_factory=connector_factory(rows=[]))

    result = await service.run_sync('manual')

    assert result.success is True
    assert result.stats.model_dump() == {"total": 0, "updated": 0, "created": 0, "skipped": 0, "errors": 0}
    assert stored_config(db).last_sync is not None
    assert db.query(SyncHistory).count() == 1


@pytest.mark.asyncio
async def test_concurrent_trigger_is_rejected(db, enabled_config, connector_factory):
    gate = asyncio.Event()
    started = asyncio.Event()
    service = SyncService(connector_factory=connector_factory(rows=ROWS, gate=gate, started=started))

    first = asyncio.create_task(service.run_sync('manual'))
    await started.wait()
    assert service.is_running is True

    second = await service.run_sync('manual')

    assert second.success is False
    assert second.message == "Sync already in progress"
    assert was_rejected(second) is True
    assert stored_config(db).last_sync_stats is None

    gate.set()
    first_result = await first

    assert first_result.success is True
    assert was_rejected(first_result) is False
    assert service.is_running is False
    assert len(connector_factory.created) == 1
    assert stored_config(db).last_sync_stats["created"] == 2
    assert db.query(SyncHistory).count() == 1


@pytest.mark.asyncio
async def test_disabled_integration(db, connector_factory):
    service = SyncService(connector_factory=connector_factory(rows=ROWS))

    result = await service.run_sync('scheduled')

    assert result.success is False
    assert result.message == "Integration is not enabled."
    assert connector_factory.created == []
    assert db.query(SyncHistory).count() == 0


@pytest.mark.asyncio
async def test_incomplete_configuration_is_not_fetched(db, enabled_config, connector_factory):
    save_integration_config(db, {"field_mappings": {"code_field": "", "status_field": "tipobloq"}})
    service = SyncService(connector_factory=connector_factory(rows=ROWS))

    result = await service.run_sync('manual')

    assert result.success is False
    assert "Code field not configured" in result.message
    assert connector_factory.created == []


@pytest.mark.asyncio
async def test_connection_failure_is_reported(db, enabled_config, connector_factory):
    error = ExternalConnectionError(ConnectionFailure.REFUSED, "Could not connect to the server. Check host and port.")
    service = SyncService(connector_factory=connector_factory(error=error))

    result = await service.run_sync('scheduled')

    assert result.success is False
    assert result.message == "Sync error: Could not connect to the server. Check host and port."
    assert result.stats.errors == 1
    assert service.is_running is False

    history = db.query(SyncHistory).one()
    assert history.success is False
    assert history.error == "Could not connect to the server. Check host and port."


@pytest.mark.asyncio
async def test_row_errors_make_the_run_unsuccessful(db, enabled_config, connector_factory):
    rows = ROWS + [{"code1": "", "tipobloq": "L"}]
    service = SyncService(connector_factory=connector_factory(rows=rows))

    result = await service.run_sync('manual')

    assert result.success is False
    assert result.stats.errors == 1
    assert result.stats.created == 2
    assert result.errors[0]["error"] == "Code field (code1) not found"


@pytest.mark.asyncio
async def test_unexpected_error_releases_the_guard(db, enabled_config, connector_factory):
    service = SyncService(connector_factory=connector_factory(rows=ROWS))

    with patch("cleanflow.services.sync_service.load_active_overrides", side_effect=RuntimeError("boom")):
        result = await service.run_sync('manual')

    assert result.success is False
    assert result.message == "Sync error: boom"
    assert service.is_running is False
    assert db.query(SyncHistory).one().error == "boom"


@pytest.mark.asyncio
async def test_history_and_statistics(db, enabled_config, connector_factory):
    ok = SyncService(connector_factory=connector_factory(rows=ROWS))
    failing = SyncService(connector_factory=connector_factory(
        error=ExternalConnectionError(ConnectionFailure.TIMEOUT, "Connection timed out after 5s.")
    ))

    await ok.run_sync('manual')
    await failing.run_sync('scheduled')
    await ok.run_sync('scheduled')

    history = list_sync_history(db, limit=2)
    assert len(history) == 2
    assert history[0].timestamp >= history[1].timestamp

    stats = get_sync_statistics(db)
    assert stats.total_syncs == 3
    assert stats.successful_syncs == 2
    assert stats.failed_syncs == 1
    assert round(stats.success_rate, 2) == 66.67
    assert stats.last_sync is not None


def test_statistics_without_history(db):
    stats = get_sync_statistics(db)
    assert stats.total_syncs == 0
    assert stats.success_rate == 0.0
    assert stats.last_sync is None

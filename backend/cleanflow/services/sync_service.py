import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from cleanflow.connectors.base import BaseConnector
from cleanflow.connectors.postgres_connector import build_connector
from cleanflow.database import SessionLocal
from cleanflow.models.sync_history import SyncHistory
from cleanflow.schemas.integration import IntegrationSettings, SyncStats
from cleanflow.schemas.sync import SyncResult, SyncStatistics
from cleanflow.services.exceptions import ConcurrentRunRejected, ConfigurationError, ExternalConnectionError
from cleanflow.services.integration_config import load_integration_settings, record_sync_stats, validate_transformation_config
from cleanflow.services.mapping_service import load_active_overrides
from cleanflow.services.reconciler import ReconciliationService
from cleanflow.services.transformer import RecordTransformer, TransformationRunner
from cleanflow.utils.clock import now

log = logging.getLogger(__name__)

ConnectorFactory = Callable[[IntegrationSettings], BaseConnector]


def was_rejected(result: SyncResult) -> bool:
    """True when the run never started because another one was active."""
    return any(error.get("error_code") == ConcurrentRunRejected.code for error in result.errors)


def new_sync_id() -> str:
    return f"sync-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class SyncService:
    """
    Orchestrates the synchronization of location status from the external system.

    One instance lives for the whole process. ``run_sync`` is single-flight:
    a trigger arriving while a run is active is rejected, not queued.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        connector_factory: ConnectorFactory = build_connector,
        reconciliation_service: Optional[ReconciliationService] = None
    ):
        self.session_factory = session_factory
        self.connector_factory = connector_factory
        self.reconciliation_service = reconciliation_service or ReconciliationService()
        self.is_running = False
        self.last_run: Optional[datetime] = None

    async def run_sync(self, trigger: str = 'manual') -> SyncResult:
        """Run one full sync. Never raises; failures come back as ``success=False``."""
        sync_id = new_sync_id()
        log_extra = {'sync_id': sync_id, 'trigger': trigger}

        if self.is_running:
            rejected = ConcurrentRunRejected()
            log.warning(f"{rejected.message}, ignoring new trigger", extra=log_extra)
            return SyncResult(success=False, message=rejected.message, sync_id=sync_id, errors=[rejected.to_dict()])

        self.is_running = True
        self.last_run = now()
        started = time.monotonic()
        db = self.session_factory()
        config: Optional[IntegrationSettings] = None

        try:
            log.info(f"Starting sync ({trigger})", extra=log_extra)

            try:
                config = load_integration_settings(db)
            except ConfigurationError as e:
                log.error(f"Sync configuration unusable: {e.message}", extra=log_extra)
                return SyncResult(success=False, message=e.message, sync_id=sync_id)

            if not config.enabled:
                log.warning("Sync attempted with integration disabled", extra=log_extra)
                return SyncResult(success=False, message="Integration is not enabled.", sync_id=sync_id)

            missing = validate_transformation_config(config)
            if missing:
                log.error("Invalid sync configuration", extra={**log_extra, 'errors': missing})
                return SyncResult(
                    success=False,
                    message=f"Incomplete configuration: {', '.join(missing)}",
                    sync_id=sync_id
                )

            log.info("Fetching data from external system", extra=log_extra)
            connector = self.connector_factory(config)
            try:
                rows = await connector.fetch_rows()
            except ExternalConnectionError as e:
                duration_ms = self._elapsed_ms(started)
                log.error(
                    f"Sync failed - {e.message}",
                    extra={**log_extra, 'duration_ms': duration_ms, 'errors': [e.to_dict()]}
                )
                stats = SyncStats(errors=1)
                self._save_history(db, sync_id, trigger, False, stats, duration_ms, config, error=e.message)
                return SyncResult(success=False, message=f"Sync error: {e.message}", stats=stats, sync_id=sync_id)

            if not rows:
                stats = SyncStats()
                log.info("No data found in external system", extra=log_extra)
                self._finish(db, sync_id, trigger, config, stats, started)
                return SyncResult(
                    success=True,
                    message="Sync finished. No data found in the external system.",
                    stats=stats,
                    sync_id=sync_id
                )

            log.info(f"Transforming {len(rows)} records", extra=log_extra)
            transformer = RecordTransformer(config, load_active_overrides(db))
            transformation = TransformationRunner(transformer).transform(rows)
            log.info("Transformation result", extra={**log_extra, 'stats': vars(transformation.stats)})
            for item in transformation.errors:
                log.warning(f"Row transformation error: {item['error']}", extra={**log_extra, 'errors': [item]})

            reconciliation = self.reconciliation_service.reconcile(transformation.data, db)

            stats = SyncStats(
                total=transformation.stats.total,
                updated=reconciliation.updated_count,
                created=reconciliation.created_count,
                skipped=reconciliation.skipped_count + transformation.stats.skipped,
                errors=transformation.stats.errors + reconciliation.error_count
            )
            self._finish(db, sync_id, trigger, config, stats, started)

            message = (
                f"Sync finished! {stats.created} new, {stats.updated} updated, "
                f"{stats.skipped} skipped, {stats.errors} errors."
            )
            return SyncResult(
                success=stats.errors == 0,
                message=message,
                stats=stats,
                sync_id=sync_id,
                errors=transformation.errors + reconciliation.errors
            )

        except Exception as e:
            duration_ms = self._elapsed_ms(started)
            log.error(f"Unhandled error during sync ({trigger}): {e}", exc_info=True,
                      extra={**log_extra, 'duration_ms': duration_ms})
            db.rollback()
            stats = SyncStats(errors=1)
            self._save_history(db, sync_id, trigger, False, stats, duration_ms, config, error=str(e))
            return SyncResult(success=False, message=f"Sync error: {e}", stats=stats, sync_id=sync_id)
        finally:
            db.close()
            self.is_running = False

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)

    def _finish(
        self,
        db: Session,
        sync_id: str,
        trigger: str,
        config: IntegrationSettings,
        stats: SyncStats,
        started: float
    ) -> None:
        record_sync_stats(db, stats)
        duration_ms = self._elapsed_ms(started)
        success = stats.errors == 0
        self._save_history(db, sync_id, trigger, success, stats, duration_ms, config)

        log_extra = {'sync_id': sync_id, 'trigger': trigger, 'stats': stats.model_dump(), 'duration_ms': duration_ms}
        if success:
            log.info(f"Sync ({trigger}) completed successfully", extra=log_extra)
        else:
            log.error(f"Sync ({trigger}) completed with {stats.errors} errors", extra=log_extra)

    def _save_history(
        self,
        db: Session,
        sync_id: str,
        trigger: str,
        success: bool,
        stats: SyncStats,
        duration_ms: int,
        config: Optional[IntegrationSettings],
        error: Optional[str] = None
    ) -> None:
        entry = SyncHistory(
            sync_id=sync_id,
            timestamp=now(),
            type=trigger,
            success=success,
            stats=stats.model_dump(),
            duration=duration_ms,
            error=error,
            target={'host': config.host, 'database': config.database} if config else None
        )
        try:
            db.add(entry)
            db.commit()
        except Exception as e:
            db.rollback()
            log.error(f"Failed to save sync history: {e}", extra={'sync_id': sync_id})


def list_sync_history(db: Session, limit: int = 50) -> List[SyncHistory]:
    return db.query(SyncHistory).order_by(SyncHistory.timestamp.desc()).limit(limit).all()


def get_sync_statistics(db: Session, hours: int = 24) -> SyncStatistics:
    """Success rate of the runs in the last ``hours``."""
    since = now() - timedelta(hours=hours)
    entries = db.query(SyncHistory).filter(SyncHistory.timestamp >= since).all()

    successful = sum(1 for entry in entries if entry.success)
    failed = len(entries) - successful
    total = len(entries)

    return SyncStatistics(
        success_rate=(successful / total) * 100 if total else 0.0,
        total_syncs=total,
        successful_syncs=successful,
        failed_syncs=failed,
        last_sync=max((entry.timestamp for entry in entries), default=None)
    )

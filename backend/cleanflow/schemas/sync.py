from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel

from cleanflow.schemas.integration import SyncStats


class SyncResult(BaseModel):
    """Outcome of one sync run as reported to operators."""
    success: bool
    message: str
    stats: SyncStats = SyncStats()
    sync_id: Optional[str] = None
    errors: List[Dict[str, Any]] = []


class ConfigSyncStatus(BaseModel):
    enabled: bool
    last_sync: Optional[datetime] = None
    sync_interval: int


class ServiceSyncStatus(BaseModel):
    is_running: bool
    is_scheduled: bool
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None
    current_interval: Optional[int] = None


class SyncStatusResponse(BaseModel):
    config: ConfigSyncStatus
    service: ServiceSyncStatus
    timestamp: datetime


class SyncHistoryResponse(BaseModel):
    sync_id: str
    timestamp: datetime
    type: str
    success: bool
    stats: Optional[SyncStats] = None
    duration: int
    error: Optional[str] = None

    class Config:
        from_attributes = True


class SyncStatistics(BaseModel):
    success_rate: float
    total_syncs: int
    successful_syncs: int
    failed_syncs: int
    last_sync: Optional[datetime] = None

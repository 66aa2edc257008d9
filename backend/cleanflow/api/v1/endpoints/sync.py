from typing import Annotated, List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from cleanflow.auth import get_current_active_user
from cleanflow.config import settings
from cleanflow.database import get_db
from cleanflow.scheduler import SyncScheduler, get_sync_scheduler
from cleanflow.schemas.auth import User
from cleanflow.schemas.sync import SyncHistoryResponse, SyncResult, SyncStatistics, SyncStatusResponse
from cleanflow.services.sync_service import get_sync_statistics, list_sync_history, was_rejected
from cleanflow.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)
router = APIRouter()


@router.post("/force", response_model=SyncResult)
async def force_sync(
    request: Request,
    db: Session = Depends(get_db),
    sync_scheduler: SyncScheduler = Depends(get_sync_scheduler),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Run a sync immediately, outside the schedule."""
    create_audit_log(
        db=db,
        request=request,
        action="sync_forced",
        entity_type="integration_config",
        user=current_user.username if current_user else None
    )

    result = await sync_scheduler.force_sync()
    if was_rejected(result):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
    return result


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    db: Session = Depends(get_db),
    sync_scheduler: SyncScheduler = Depends(get_sync_scheduler),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    return sync_scheduler.get_status(db)


@router.get("/history", response_model=List[SyncHistoryResponse])
async def get_sync_history(
    limit: int = settings.sync_history_limit,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Most recent sync runs, newest first."""
    return list_sync_history(db, limit=min(limit, settings.sync_history_limit))


@router.get("/statistics", response_model=SyncStatistics)
async def get_statistics(
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Success rate over the last 24 hours."""
    return get_sync_statistics(db)

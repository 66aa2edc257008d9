from typing import Annotated, Any, Dict, Optional
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from cleanflow.auth import get_current_active_user
from cleanflow.database import get_db
from cleanflow.scheduler import SyncScheduler, get_sync_scheduler
from cleanflow.schemas.auth import User
from cleanflow.schemas.integration import (
    ConnectionTestRequest,
    ConnectionTestResult,
    IntegrationConfigResponse,
    IntegrationConfigUpdate,
    SaveConfigResult,
    TransformationPreview,
)
from cleanflow.services.exceptions import ConfigurationError
from cleanflow.services.integration_config import (
    get_integration_config,
    preview_transformation,
    save_integration_config,
    settings_with_overrides,
    to_response,
)
from cleanflow.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/config", response_model=IntegrationConfigResponse)
async def read_integration_config(
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Current integration settings; the password is masked."""
    return to_response(get_integration_config(db))


@router.put("/config", response_model=SaveConfigResult)
async def update_integration_config(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    sync_scheduler: SyncScheduler = Depends(get_sync_scheduler),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Merge a partial update into the stored settings and reschedule if needed."""
    result = save_integration_config(db, payload)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)

    create_audit_log(
        db=db,
        request=request,
        action="integration_config_saved",
        entity_type="integration_config",
        user=current_user.username if current_user else None,
        details={"updated_fields": sorted(k for k in payload.keys() if k != "password")}
    )

    await sync_scheduler.check_and_schedule()
    return result


@router.post("/test-connection", response_model=ConnectionTestResult)
async def test_connection(
    overrides: Optional[ConnectionTestRequest] = Body(None),
    db: Session = Depends(get_db),
    sync_scheduler: SyncScheduler = Depends(get_sync_scheduler),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Try to reach the external database; stored settings are not modified."""
    try:
        config = settings_with_overrides(db, overrides)
    except ConfigurationError as e:
        return ConnectionTestResult(success=False, message=e.message)

    connector = sync_scheduler.sync_service.connector_factory(config)
    result = await connector.test_connection()
    log.info(f"Connection test to {config.host}:{config.port}/{config.database}: {result.message}")
    return result


@router.post("/test-transformation", response_model=TransformationPreview)
async def test_transformation(
    overrides: Optional[IntegrationConfigUpdate] = Body(None),
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Run sample rows through the configured transformation."""
    try:
        config = settings_with_overrides(db, overrides)
    except ConfigurationError as e:
        return TransformationPreview(success=False, error=e.message)
    return preview_transformation(config)

from typing import List, Annotated, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from cleanflow.auth import get_current_active_user
from cleanflow.database import get_db
from cleanflow.models.location import Location
from cleanflow.schemas.auth import User
from cleanflow.schemas.location import (
    CleaningActionResult,
    CleaningOccurrenceResponse,
    LocationResponse,
    LocationStatus,
    StartCleaningRequest,
)
from cleanflow.services import cleaning_service
from cleanflow.services.cleaning_service import CleaningStateError
from cleanflow.utils.audit_logger import create_audit_log

log = logging.getLogger(__name__)
router = APIRouter()


def _get_or_404(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return location


@router.get("/", response_model=List[LocationResponse])
async def read_locations(
    status_filter: Optional[LocationStatus] = None,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    query = db.query(Location)
    if status_filter:
        query = query.filter(Location.status == status_filter)
    return query.order_by(Location.name, Location.number).offset(skip).limit(limit).all()


@router.get("/occurrences", response_model=List[CleaningOccurrenceResponse])
async def read_occurrences(
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Cleanings that exceeded their SLA, newest first."""
    return cleaning_service.list_occurrences(db, limit=limit)


@router.post("/{location_id}/start-cleaning", response_model=CleaningActionResult)
async def start_cleaning(
    request: Request,
    location_id: int,
    body: StartCleaningRequest,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    location = _get_or_404(db, location_id)
    username = current_user.username if current_user else None
    try:
        result = cleaning_service.start_cleaning(
            db, location, body.type,
            user_id=username,
            user_name=current_user.full_name or username if current_user else None
        )
    except CleaningStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    create_audit_log(
        db=db,
        request=request,
        action="cleaning_started",
        entity_type="location",
        entity_id=location.id,
        user=username,
        details={"type": body.type}
    )
    return result


@router.post("/{location_id}/finish-cleaning", response_model=CleaningActionResult)
async def finish_cleaning(
    request: Request,
    location_id: int,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    location = _get_or_404(db, location_id)
    try:
        result = cleaning_service.finish_cleaning(db, location)
    except CleaningStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    create_audit_log(
        db=db,
        request=request,
        action="cleaning_finished",
        entity_type="location",
        entity_id=location.id,
        user=current_user.username if current_user else None,
        details={"delayed": result.delayed, "actual_duration": result.actual_duration}
    )
    return result

from typing import List, Annotated
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from cleanflow.database import get_db
from cleanflow.models.mapping import LocationMapping
from cleanflow.schemas.mapping import MappingCreate, MappingUpdate, MappingToggle, MappingInDB
from cleanflow.schemas.auth import User
from cleanflow.auth import get_current_active_user
from cleanflow.services import mapping_service
from cleanflow.services.mapping_service import DuplicateMappingError
from cleanflow.utils.audit_logger import create_audit_log

router = APIRouter()


def _get_or_404(db: Session, mapping_id: int) -> LocationMapping:
    db_mapping = mapping_service.get_mapping(db, mapping_id)
    if db_mapping is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mapping not found")
    return db_mapping


@router.post("/", response_model=MappingInDB, status_code=status.HTTP_201_CREATED)
async def create_mapping(
    request: Request,
    mapping: MappingCreate,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Map an external code to an internal location name and number."""
    try:
        db_mapping = mapping_service.create_mapping(db, mapping)
    except DuplicateMappingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    create_audit_log(
        db=db,
        request=request,
        action="mapping_created",
        entity_type="mapping",
        entity_id=db_mapping.id,
        user=current_user.username if current_user else None,
        details={
            "external_code": db_mapping.external_code,
            "location": f"{db_mapping.internal_name} {db_mapping.internal_number}"
        }
    )
    return db_mapping


@router.get("/", response_model=List[MappingInDB])
async def read_mappings(
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    return mapping_service.list_mappings(db)


@router.get("/{mapping_id}", response_model=MappingInDB)
async def read_mapping(
    mapping_id: int,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    return _get_or_404(db, mapping_id)


@router.patch("/{mapping_id}", response_model=MappingInDB)
async def update_mapping(
    request: Request,
    mapping_id: int,
    mapping: MappingUpdate,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    db_mapping = mapping_service.update_mapping(db, _get_or_404(db, mapping_id), mapping)

    create_audit_log(
        db=db,
        request=request,
        action="mapping_updated",
        entity_type="mapping",
        entity_id=db_mapping.id,
        user=current_user.username if current_user else None,
        details={"updated_fields": list(mapping.model_dump(exclude_unset=True).keys())}
    )
    return db_mapping


@router.post("/{mapping_id}/toggle", response_model=MappingInDB)
async def toggle_mapping(
    request: Request,
    mapping_id: int,
    toggle: MappingToggle,
    db: Session = Depends(get_db),
    current_user: Annotated[User, Depends(get_current_active_user)] = None
):
    """Activate or deactivate a mapping; inactive mappings are ignored by the sync."""
    db_mapping = mapping_service.set_mapping_active(db, _get_or_404(db, mapping_id), toggle.is_active)

    create_audit_log(
        db=db,
        request=request,
        action="mapping_activated" if toggle.is_active else "mapping_deactivated",
        entity_type="mapping",
        entity_id=db_mapping.id,
        user=current_user.username if current_user else None
    )
    return db_mapping

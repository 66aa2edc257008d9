import re
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from cleanflow.models.mapping import LocationMapping
from cleanflow.schemas.mapping import MappingCreate, MappingUpdate
from cleanflow.services.code_parser import ParsedCode
from cleanflow.utils.clock import now

log = logging.getLogger(__name__)


class DuplicateMappingError(ValueError):
    pass


def generate_codes(internal_name: str, internal_number: str) -> Dict[str, str]:
    """Derive the QR slug and short code for a mapping."""
    name_slug = re.sub(r'[^a-z0-9]', '-', internal_name.lower())
    number_slug = re.sub(r'[^a-z0-9]', '', internal_number.lower())
    location_id = f"{name_slug}-{number_slug}"
    return {
        'location_id': location_id,
        'qr_code_url': f"/clean/{location_id}",
        'short_code': f"{internal_name[:2].upper()}{internal_number.upper()}",
    }


def load_active_overrides(db: Session) -> Dict[str, ParsedCode]:
    """Active mappings keyed by external code, as consumed by the code parser."""
    mappings = db.query(LocationMapping).filter(LocationMapping.is_active == True).all()  # noqa: E712
    return {
        m.external_code: ParsedCode(m.internal_name, m.internal_number)
        for m in mappings
    }


def list_mappings(db: Session) -> List[LocationMapping]:
    return db.query(LocationMapping).order_by(LocationMapping.setor, LocationMapping.internal_name).all()


def get_mapping(db: Session, mapping_id: int) -> Optional[LocationMapping]:
    return db.query(LocationMapping).filter(LocationMapping.id == mapping_id).first()


def create_mapping(db: Session, mapping: MappingCreate) -> LocationMapping:
    external_code = mapping.external_code
    if db.query(LocationMapping).filter(LocationMapping.external_code == external_code).first():
        raise DuplicateMappingError("This external code is already mapped")

    db_mapping = LocationMapping(
        **mapping.model_dump(),
        **generate_codes(mapping.internal_name, mapping.internal_number),
        is_active=True
    )
    db.add(db_mapping)
    db.commit()
    db.refresh(db_mapping)
    log.info(f"Created location mapping {external_code} -> {mapping.internal_name} {mapping.internal_number}")
    return db_mapping


def update_mapping(db: Session, db_mapping: LocationMapping, mapping: MappingUpdate) -> LocationMapping:
    update_data = mapping.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(db_mapping, key, value)
    for key, value in generate_codes(db_mapping.internal_name, db_mapping.internal_number).items():
        setattr(db_mapping, key, value)
    db_mapping.updated_at = now()
    db.commit()
    db.refresh(db_mapping)
    return db_mapping


def set_mapping_active(db: Session, db_mapping: LocationMapping, is_active: bool) -> LocationMapping:
    db_mapping.is_active = is_active
    db_mapping.updated_at = now()
    db.commit()
    db.refresh(db_mapping)
    return db_mapping

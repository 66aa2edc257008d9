from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from cleanflow.models.location import Location
from cleanflow.schemas.location import CandidateLocation
from cleanflow.services.exceptions import ReconciliationError
from cleanflow.utils.clock import now

log = logging.getLogger(__name__)

EXTERNAL_CLEANING_USER = "External system"


class ReconciliationStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_IN_CLEANING = "skipped_in_cleaning"
    SKIPPED_UNCHANGED = "skipped_unchanged"
    ERROR = "error"


@dataclass
class ReconciliationDecision:
    external_code: str
    status: ReconciliationStatus
    location_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ReconciliationResult:
    created_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    decisions: List[ReconciliationDecision] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)


def external_cleaning_entry() -> Dict[str, Any]:
    """currentCleaning payload for locations the external system reports as being cleaned."""
    return {
        'type': 'external',
        'user_id': None,
        'user_name': EXTERNAL_CLEANING_USER,
        'start_time': now().isoformat(),
    }


class ReconciliationService:
    """
    Applies transformed candidates to the stored locations.

    A location that is being cleaned is never touched, whatever the external
    system reports. Writes are per location; one failing candidate does not
    stop the others.
    """

    def _find_existing(self, db: Session, candidate: CandidateLocation) -> Optional[Location]:
        existing = db.query(Location).filter(
            Location.external_code == candidate.external_code
        ).first()
        if existing:
            return existing

        # Records created before external codes were tracked
        return db.query(Location).filter(
            Location.name == candidate.name,
            Location.number == candidate.number,
            or_(Location.external_code.is_(None), Location.external_code == '')
        ).first()

    def _create(self, db: Session, candidate: CandidateLocation) -> Location:
        timestamp = now()
        location = Location(
            name=candidate.name,
            number=candidate.number,
            status=candidate.status,
            external_code=candidate.external_code,
            location_type='leito',
            current_cleaning=external_cleaning_entry() if candidate.status == 'in_cleaning' else None,
            created_at=timestamp,
            updated_at=timestamp
        )
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    def _apply(self, db: Session, existing: Location, candidate: CandidateLocation) -> ReconciliationStatus:
        if existing.status == 'in_cleaning':
            log.debug(f"Location {existing.id} ({candidate.external_code}) is being cleaned; leaving it untouched")
            return ReconciliationStatus.SKIPPED_IN_CLEANING

        has_changes = (
            existing.status != candidate.status or
            existing.name != candidate.name or
            existing.number != candidate.number
        )
        needs_backfill = not existing.external_code

        if not has_changes and not needs_backfill:
            return ReconciliationStatus.SKIPPED_UNCHANGED

        existing.status = candidate.status
        existing.name = candidate.name
        existing.number = candidate.number
        if candidate.status == 'in_cleaning':
            existing.current_cleaning = external_cleaning_entry()
        if needs_backfill:
            existing.external_code = candidate.external_code
        existing.updated_at = now()
        db.commit()
        return ReconciliationStatus.UPDATED

    def reconcile_candidate(self, db: Session, candidate: CandidateLocation) -> ReconciliationDecision:
        try:
            existing = self._find_existing(db, candidate)
            if existing is None:
                location = self._create(db, candidate)
                log.debug(f"Created location {location.id} for {candidate.external_code}")
                return ReconciliationDecision(candidate.external_code, ReconciliationStatus.CREATED, location.id)

            status = self._apply(db, existing, candidate)
            return ReconciliationDecision(candidate.external_code, status, existing.id)
        except Exception as e:
            db.rollback()
            raise ReconciliationError(candidate.external_code, f"Failed to reconcile {candidate.external_code}: {e}") from e

    def reconcile(self, candidates: List[CandidateLocation], db: Session) -> ReconciliationResult:
        result = ReconciliationResult()

        for candidate in candidates:
            try:
                decision = self.reconcile_candidate(db, candidate)
            except ReconciliationError as e:
                log.error(e.message, extra={'external_code': e.external_code})
                result.error_count += 1
                result.errors.append({'external_code': e.external_code, 'error': e.message})
                result.decisions.append(
                    ReconciliationDecision(e.external_code, ReconciliationStatus.ERROR, error=e.message)
                )
                continue

            result.decisions.append(decision)
            if decision.status == ReconciliationStatus.CREATED:
                result.created_count += 1
            elif decision.status == ReconciliationStatus.UPDATED:
                result.updated_count += 1
            else:
                result.skipped_count += 1

        log.info(
            f"Reconciliation finished: {result.created_count} created, {result.updated_count} updated, "
            f"{result.skipped_count} skipped, {result.error_count} errors"
        )
        return result

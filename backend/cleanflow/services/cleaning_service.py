"""Manual cleaning lifecycle: start, finish, SLA accounting."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from cleanflow.config import settings
from cleanflow.models.cleaning import CleaningOccurrence, CleaningRecord
from cleanflow.models.location import Location
from cleanflow.schemas.location import CleaningActionResult
from cleanflow.utils.clock import as_aware, now

log = logging.getLogger(__name__)


class CleaningStateError(ValueError):
    """The location is not in a state that allows the requested action."""


def sla_minutes() -> Dict[str, int]:
    return {
        'concurrent': settings.sla_concurrent_minutes,
        'terminal': settings.sla_terminal_minutes,
    }


def expected_duration(cleaning_type: str) -> int:
    # External cleanings carry no SLA of their own; measure them as concurrent
    return sla_minutes().get(cleaning_type, settings.sla_concurrent_minutes)


def location_label(location: Location) -> str:
    return f"{location.name} {location.number}"


def start_cleaning(
    db: Session,
    location: Location,
    cleaning_type: str,
    user_id: Optional[str] = None,
    user_name: Optional[str] = None
) -> CleaningActionResult:
    if cleaning_type not in sla_minutes():
        raise CleaningStateError(f"Unknown cleaning type '{cleaning_type}'")
    if location.status == 'in_cleaning':
        raise CleaningStateError(f"{location_label(location)} is already being cleaned")

    location.status = 'in_cleaning'
    location.current_cleaning = {
        'type': cleaning_type,
        'user_id': user_id,
        'user_name': user_name,
        'start_time': now().isoformat(),
    }
    location.updated_at = now()
    db.commit()

    log.info(f"Cleaning ({cleaning_type}) started at {location_label(location)} by {user_name}")
    return CleaningActionResult(success=True, message=f"Cleaning started at {location_label(location)}")


def finish_cleaning(db: Session, location: Location) -> CleaningActionResult:
    """
    Close the running cleaning and free the location.

    Writes a CleaningRecord, plus a CleaningOccurrence when the actual
    duration exceeded the SLA for the cleaning type.
    """
    if location.status != 'in_cleaning' or not location.current_cleaning:
        raise CleaningStateError(f"{location_label(location)} is not being cleaned")

    current = location.current_cleaning
    cleaning_type = current.get('type', 'concurrent')
    finish_time = now()
    start_time = as_aware(datetime.fromisoformat(current['start_time']))

    actual = int((finish_time - start_time).total_seconds() // 60)
    expected = expected_duration(cleaning_type)
    delayed = actual > expected

    db.add(CleaningRecord(
        location_id=location.id,
        location_name=location_label(location),
        location_type=location.location_type,
        cleaning_type=cleaning_type,
        user_id=str(current['user_id']) if current.get('user_id') is not None else None,
        user_name=current.get('user_name'),
        start_time=start_time,
        finish_time=finish_time,
        expected_duration=expected,
        actual_duration=actual,
        status='completed',
        delayed=delayed
    ))

    if delayed:
        db.add(CleaningOccurrence(
            location_name=location_label(location),
            cleaning_type=cleaning_type,
            user_name=current.get('user_name'),
            delay_in_minutes=actual - expected,
            occurred_at=finish_time
        ))
        log.warning(
            f"Cleaning at {location_label(location)} exceeded SLA by {actual - expected} minutes"
        )

    location.status = 'available'
    location.current_cleaning = None
    location.updated_at = finish_time
    db.commit()

    log.info(f"Cleaning finished at {location_label(location)} after {actual} minutes")
    return CleaningActionResult(
        success=True,
        message=f"Cleaning finished at {location_label(location)}",
        delayed=delayed,
        actual_duration=actual
    )


def list_occurrences(db: Session, limit: int = 100) -> List[CleaningOccurrence]:
    return (
        db.query(CleaningOccurrence)
        .order_by(CleaningOccurrence.occurred_at.desc())
        .limit(limit)
        .all()
    )

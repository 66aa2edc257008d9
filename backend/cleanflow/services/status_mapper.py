from typing import Optional
import logging

from cleanflow.schemas.integration import StatusMappings

log = logging.getLogger(__name__)


def map_status(external_status: Optional[str], mappings: StatusMappings) -> Optional[str]:
    """
    Map an external status token onto 'available', 'occupied' or 'in_cleaning'.

    The token is trimmed and compared exactly (no case folding). Returns None
    for unmapped tokens; callers skip those rows rather than failing them.
    """
    token = (external_status or '').strip()

    if token == mappings.available:
        return 'available'
    if token == mappings.occupied:
        return 'occupied'
    if mappings.in_cleaning and token == mappings.in_cleaning:
        return 'in_cleaning'

    log.debug(f"Unmapped status token: '{token}'")
    return None

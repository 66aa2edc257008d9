"""Database models."""

from cleanflow.models.location import Location
from cleanflow.models.integration_config import IntegrationConfig, INTEGRATION_CONFIG_ID
from cleanflow.models.sync_history import SyncHistory
from cleanflow.models.mapping import LocationMapping
from cleanflow.models.cleaning import CleaningRecord, CleaningOccurrence
from cleanflow.models.audit_log import AuditLog

__all__ = [
    "Location",
    "IntegrationConfig",
    "INTEGRATION_CONFIG_ID",
    "SyncHistory",
    "LocationMapping",
    "CleaningRecord",
    "CleaningOccurrence",
    "AuditLog",
]

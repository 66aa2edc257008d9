"""
Exceptions raised by the synchronization pipeline.

Configuration and connection errors halt a run; row and candidate errors are
absorbed into the run statistics.
"""

from typing import Any, Dict, Optional

from cleanflow.constants.connection_failures import ConnectionFailure


class SyncError(Exception):
    """Base exception for all sync pipeline errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': True,
            'message': self.message,
            'error_code': self.error_code,
            'details': self.details
        }


class ConfigurationError(SyncError):
    """Integration disabled or required mappings missing."""

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message, 'CONFIGURATION_ERROR', {'missing': missing or []})
        self.missing = missing or []


class ExternalConnectionError(SyncError):
    """The external database could not be reached or queried."""

    def __init__(self, reason: ConnectionFailure, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, reason.value, details)
        self.reason = reason


class RowTransformError(SyncError):
    """A single external row could not be turned into a candidate record."""

    def __init__(self, message: str, error_code: str = 'ROW_TRANSFORM_ERROR', details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class MissingFieldError(RowTransformError):
    def __init__(self, field_role: str, field_name: str):
        super().__init__(
            f"{field_role} field ({field_name}) not found",
            'MISSING_FIELD',
            {'field': field_name}
        )
        self.field_name = field_name


class InvalidTransformError(RowTransformError):
    def __init__(self, external_code: str):
        super().__init__(
            "Invalid transformed data (name or number missing)",
            'INVALID_TRANSFORM',
            {'external_code': external_code}
        )


class ReconciliationError(SyncError):
    """Unexpected failure while diffing or writing one location."""

    def __init__(self, external_code: str, message: str):
        super().__init__(message, 'RECONCILIATION_ERROR', {'external_code': external_code})
        self.external_code = external_code


class ConcurrentRunRejected(SyncError):
    code = 'SYNC_IN_PROGRESS'

    def __init__(self, message: str = "Sync already in progress"):
        super().__init__(message, self.code)

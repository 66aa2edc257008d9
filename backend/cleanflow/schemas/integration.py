"""Typed integration configuration and diagnostics schemas."""

import ipaddress
import re
from datetime import datetime
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field, field_validator


class StatusMappings(BaseModel):
    """External status token for each internal location state."""
    available: str = ""
    occupied: str = ""
    in_cleaning: Optional[str] = None


class FieldMappings(BaseModel):
    """Keys of an external row holding the identifier and the status."""
    code_field: str = ""
    status_field: str = ""
    name_field: Optional[str] = None
    number_field: Optional[str] = None


class TransformationOptions(BaseModel):
    """Parsing hints for codes without an explicit location mapping."""
    name_separator: Optional[str] = None
    name_pattern: Optional[str] = None
    number_pattern: Optional[str] = None
    custom_transform: Optional[bool] = None

    @field_validator('name_pattern', 'number_pattern')
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f'Invalid regular expression: {e}')
        return v


class SyncStats(BaseModel):
    total: int = 0
    updated: int = 0
    created: int = 0
    skipped: int = 0
    errors: int = 0


class IntegrationSettings(BaseModel):
    """
    In-memory view of the integration config with the password decrypted.

    Built by the integration config service from the stored row; this is the
    only shape the sync pipeline reads configuration through.
    """
    enabled: bool = False
    host: str = ""
    port: int = 5432
    database: str = ""
    username: str = ""
    password: str = ""
    sync_interval: int = 5
    query: str = "SELECT code1, tipobloq FROM cable1"
    status_mappings: StatusMappings = Field(default_factory=StatusMappings)
    field_mappings: FieldMappings = Field(default_factory=FieldMappings)
    transformation: TransformationOptions = Field(default_factory=TransformationOptions)
    last_sync: Optional[datetime] = None
    last_sync_stats: Optional[SyncStats] = None

    def missing_fields(self) -> List[str]:
        """List the mapping pieces a sync run cannot do without."""
        errors: List[str] = []
        if not self.field_mappings.code_field:
            errors.append('Code field not configured')
        if not self.field_mappings.status_field:
            errors.append('Status field not configured')
        if not self.status_mappings.available:
            errors.append('Mapping for status "available" not configured')
        if not self.status_mappings.occupied:
            errors.append('Mapping for status "occupied" not configured')
        return errors


class IntegrationConfigUpdate(BaseModel):
    """Partial update - all fields optional."""
    enabled: Optional[bool] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    sync_interval: Optional[int] = None
    query: Optional[str] = None
    status_mappings: Optional[StatusMappings] = None
    field_mappings: Optional[FieldMappings] = None
    transformation: Optional[TransformationOptions] = None

    # Omit a field to keep it; only the password may be cleared
    @field_validator('enabled', 'host', 'port', 'database', 'username', 'sync_interval', 'query', mode='before')
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError('Value must not be null')
        return v

    @field_validator('host')
    @classmethod
    def validate_host(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return v
        v = v.strip()
        if v == 'localhost':
            return v
        try:
            ipaddress.ip_address(v)
            return v
        except ValueError:
            pass
        if '.' not in v:
            raise ValueError('Host must be a valid address')
        return v

    @field_validator('port')
    @classmethod
    def validate_port(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 65535:
            raise ValueError('Port must be between 1 and 65535')
        return v

    @field_validator('sync_interval')
    @classmethod
    def validate_interval(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError('Sync interval must be at least 1 minute')
        return v

    @field_validator('query')
    @classmethod
    def validate_query(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError('Query must not be empty')
        return v


class IntegrationConfigResponse(BaseModel):
    enabled: bool
    host: str
    port: int
    database: str
    username: str
    password: str = "********"
    sync_interval: int
    query: str
    status_mappings: StatusMappings
    field_mappings: FieldMappings
    transformation: TransformationOptions
    last_sync: Optional[datetime] = None
    last_sync_stats: Optional[SyncStats] = None


class SaveConfigResult(BaseModel):
    success: bool
    message: str
    data: Optional[IntegrationConfigResponse] = None


class ConnectionTestRequest(IntegrationConfigUpdate):
    """Connection parameters to try; unset fields fall back to the stored config."""


class ConnectionTestResult(BaseModel):
    success: bool
    message: str


class TransformationPreview(BaseModel):
    success: bool
    sample_input: List[Dict[str, Any]] = []
    sample_output: List[Dict[str, Any]] = []
    stats: Optional[Dict[str, int]] = None
    config: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

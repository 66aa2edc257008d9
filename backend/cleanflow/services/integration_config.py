"""Integration config persistence: singleton row, validated partial saves, diagnostics."""

from typing import Any, Dict, List, Optional, Union
import logging

from cryptography.fernet import InvalidToken
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cleanflow.models.integration_config import IntegrationConfig, INTEGRATION_CONFIG_ID
from cleanflow.schemas.integration import (
    FieldMappings,
    IntegrationConfigResponse,
    IntegrationConfigUpdate,
    IntegrationSettings,
    SaveConfigResult,
    StatusMappings,
    SyncStats,
    TransformationOptions,
    TransformationPreview,
)
from cleanflow.services.exceptions import ConfigurationError
from cleanflow.services.transformer import RecordTransformer, TransformationRunner
from cleanflow.utils.clock import now
from cleanflow.utils.encrypt import decrypt_data, encrypt_data, rotate_encryption

log = logging.getLogger(__name__)

PASSWORD_MASK = "********"

SAMPLE_CODES = ("QTO101", "APTO202")


def _default_row() -> IntegrationConfig:
    defaults = IntegrationSettings(
        status_mappings=StatusMappings(available='L', occupied='*'),
        field_mappings=FieldMappings(code_field='code1', status_field='tipobloq'),
        transformation=TransformationOptions(name_separator=' '),
    )
    return IntegrationConfig(
        id=INTEGRATION_CONFIG_ID,
        enabled=defaults.enabled,
        host=defaults.host,
        port=defaults.port,
        database=defaults.database,
        username=defaults.username,
        password=None,
        sync_interval=defaults.sync_interval,
        query=defaults.query,
        status_mappings=defaults.status_mappings.model_dump(),
        field_mappings=defaults.field_mappings.model_dump(),
        transformation=defaults.transformation.model_dump(),
    )


def get_integration_config(db: Session) -> IntegrationConfig:
    """Return the singleton config row, creating it with defaults on first read."""
    config = db.query(IntegrationConfig).filter(IntegrationConfig.id == INTEGRATION_CONFIG_ID).first()
    if config is None:
        config = _default_row()
        db.add(config)
        db.commit()
        db.refresh(config)
        log.info("Created default integration configuration")
    return config


def _decrypt_password(config: IntegrationConfig) -> str:
    if not config.password:
        return ""
    try:
        return decrypt_data(config.password)
    except InvalidToken:
        raise ConfigurationError("Stored external database password cannot be decrypted; save it again")


def to_settings(config: IntegrationConfig) -> IntegrationSettings:
    """Typed, decrypted view of the stored row."""
    return IntegrationSettings(
        enabled=config.enabled,
        host=config.host or "",
        port=config.port,
        database=config.database or "",
        username=config.username or "",
        password=_decrypt_password(config),
        sync_interval=config.sync_interval,
        query=config.query,
        status_mappings=StatusMappings(**(config.status_mappings or {})),
        field_mappings=FieldMappings(**(config.field_mappings or {})),
        transformation=TransformationOptions(**(config.transformation or {})),
        last_sync=config.last_sync,
        last_sync_stats=SyncStats(**config.last_sync_stats) if config.last_sync_stats else None,
    )


def validate_transformation_config(config: IntegrationSettings) -> List[str]:
    """Names of the required mapping pieces that are still blank."""
    return config.missing_fields()


def load_integration_settings(db: Session) -> IntegrationSettings:
    return to_settings(get_integration_config(db))


def to_response(config: IntegrationConfig) -> IntegrationConfigResponse:
    return IntegrationConfigResponse(
        enabled=config.enabled,
        host=config.host or "",
        port=config.port,
        database=config.database or "",
        username=config.username or "",
        password=PASSWORD_MASK if config.password else "",
        sync_interval=config.sync_interval,
        query=config.query,
        status_mappings=StatusMappings(**(config.status_mappings or {})),
        field_mappings=FieldMappings(**(config.field_mappings or {})),
        transformation=TransformationOptions(**(config.transformation or {})),
        last_sync=config.last_sync,
        last_sync_stats=SyncStats(**config.last_sync_stats) if config.last_sync_stats else None,
    )


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        message = item.get("msg", "invalid value").removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


NESTED_MODELS = {
    "status_mappings": StatusMappings,
    "field_mappings": FieldMappings,
    "transformation": TransformationOptions,
}


def _merge_nested(config: IntegrationConfig, update_data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Lay each partial nested update over the stored dict and re-validate the whole."""
    merged = {}
    for key, model in NESTED_MODELS.items():
        value = update_data.pop(key, None)
        if value is None:
            continue
        merged[key] = model.model_validate({**(getattr(config, key) or {}), **value}).model_dump()
    return merged


def save_integration_config(
    db: Session,
    update: Union[IntegrationConfigUpdate, Dict[str, Any]]
) -> SaveConfigResult:
    """
    Merge a partial update into the stored config.

    Nested mappings are merged key by key, so sibling tokens survive. Validation
    failures leave the stored row untouched. A password equal to the response
    mask keeps the stored one.
    """
    if not isinstance(update, IntegrationConfigUpdate):
        try:
            update = IntegrationConfigUpdate.model_validate(update)
        except ValidationError as e:
            message = f"Invalid configuration data: {_format_validation_error(e)}"
            log.warning(message)
            return SaveConfigResult(success=False, message=message)

    config = get_integration_config(db)
    update_data = update.model_dump(exclude_unset=True)
    saved_fields = sorted(update_data.keys())

    try:
        nested = _merge_nested(config, update_data)
    except ValidationError as e:
        message = f"Invalid configuration data: {_format_validation_error(e)}"
        log.warning(message)
        return SaveConfigResult(success=False, message=message)

    password = update_data.pop("password", None)
    if password is not None and password != PASSWORD_MASK:
        config.password = encrypt_data(password) if password else None
    elif config.password:
        try:
            config.password = rotate_encryption(config.password)
        except InvalidToken:
            log.warning("Stored external database password cannot be decrypted with the configured keys")

    for key, value in {**update_data, **nested}.items():
        setattr(config, key, value)

    config.updated_at = now()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"Failed to save integration configuration: {e}", exc_info=True)
        return SaveConfigResult(success=False, message=f"Failed to save settings: {e}")

    db.refresh(config)
    log.info(f"Integration configuration saved (fields: {saved_fields})")

    return SaveConfigResult(success=True, message="Settings saved successfully", data=to_response(config))


def record_sync_stats(db: Session, stats: SyncStats) -> None:
    config = get_integration_config(db)
    config.last_sync = now()
    config.last_sync_stats = stats.model_dump()
    db.commit()


def sample_rows(config: IntegrationSettings):
    field_mappings = config.field_mappings
    status_mappings = config.status_mappings
    return [
        {field_mappings.code_field: SAMPLE_CODES[0], field_mappings.status_field: status_mappings.available},
        {field_mappings.code_field: SAMPLE_CODES[1], field_mappings.status_field: status_mappings.occupied},
    ]


def preview_transformation(config: IntegrationSettings) -> TransformationPreview:
    """Run two sample rows through the transformer; nothing is persisted."""
    try:
        rows = sample_rows(config)
        result = TransformationRunner(RecordTransformer(config)).transform(rows)
    except Exception as e:
        log.warning(f"Transformation preview failed: {e}")
        return TransformationPreview(success=False, error=str(e))

    return TransformationPreview(
        success=result.success,
        sample_input=rows,
        sample_output=[candidate.model_dump(mode="json") for candidate in result.data],
        stats=vars(result.stats),
        config={
            'field_mappings': config.field_mappings.model_dump(),
            'status_mappings': config.status_mappings.model_dump(),
            'transformation': config.transformation.model_dump(),
        },
        error="; ".join(item['error'] for item in result.errors) or None,
    )


def settings_with_overrides(db: Session, overrides: Optional[IntegrationConfigUpdate]) -> IntegrationSettings:
    """
    Stored settings with the given fields laid over them, for diagnostics.

    Nothing is written. A masked or missing password keeps the stored one.
    """
    current = load_integration_settings(db)
    if overrides is None:
        return current

    data = overrides.model_dump(exclude_unset=True, exclude_none=True)
    if data.get("password") == PASSWORD_MASK:
        data.pop("password")
    return IntegrationSettings.model_validate({**current.model_dump(), **data})

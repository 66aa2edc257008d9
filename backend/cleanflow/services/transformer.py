from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from cleanflow.connectors.base import ExternalRow
from cleanflow.schemas.integration import IntegrationSettings
from cleanflow.schemas.location import CandidateLocation
from cleanflow.services.code_parser import CodeParser, ParsedCode
from cleanflow.services.exceptions import InvalidTransformError, MissingFieldError
from cleanflow.services.status_mapper import map_status
from cleanflow.utils.clock import now

log = logging.getLogger(__name__)


@dataclass
class TransformationStats:
    total: int = 0
    transformed: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass
class TransformationResult:
    success: bool = True
    data: List[CandidateLocation] = field(default_factory=list)
    stats: TransformationStats = field(default_factory=TransformationStats)
    errors: List[Dict[str, Any]] = field(default_factory=list)


def _field_value(row: ExternalRow, field_name: Optional[str]) -> str:
    if not field_name:
        return ''
    value = row.get(field_name)
    if value is None:
        return ''
    return str(value).strip()


class RecordTransformer:
    """
    Turns one raw external row into a typed ``CandidateLocation``.

    Untyped row access stops here: everything downstream only sees
    candidates.
    """

    def __init__(self, config: IntegrationSettings, overrides: Optional[Dict[str, ParsedCode]] = None):
        self.config = config
        self.code_parser = CodeParser(config.transformation, overrides)

    def transform_item(self, row: ExternalRow) -> Optional[CandidateLocation]:
        """
        Returns None when the status token is unmapped (skip, not error).
        Raises MissingFieldError / InvalidTransformError for broken rows.
        """
        field_mappings = self.config.field_mappings

        external_code = _field_value(row, field_mappings.code_field)
        if not external_code:
            raise MissingFieldError('Code', field_mappings.code_field)

        external_status = _field_value(row, field_mappings.status_field)
        if not external_status:
            raise MissingFieldError('Status', field_mappings.status_field)

        status = map_status(external_status, self.config.status_mappings)
        if status is None:
            log.info(f"Skipping {external_code}: status '{external_status}' is not mapped")
            return None

        parsed = self.code_parser.resolve_override(external_code)
        if parsed is None:
            parsed = self._parse_explicit_fields(row)
        if parsed is None:
            parsed = self.code_parser.parse(external_code)

        if not parsed.name or not parsed.number:
            raise InvalidTransformError(external_code)

        return CandidateLocation(
            name=parsed.name,
            number=parsed.number,
            status=status,
            external_code=external_code,
            external_status=external_status,
            last_external_update=now()
        )

    def _parse_explicit_fields(self, row: ExternalRow) -> Optional[ParsedCode]:
        """Use dedicated name/number columns when the external schema has them."""
        field_mappings = self.config.field_mappings
        if not field_mappings.name_field or not field_mappings.number_field:
            return None
        name = _field_value(row, field_mappings.name_field)
        number = _field_value(row, field_mappings.number_field)
        if name and number:
            return ParsedCode(name, number)
        return None


class TransformationRunner:
    """Drives the record transformer over a whole fetched dataset without aborting on bad rows."""

    def __init__(self, transformer: RecordTransformer):
        self.transformer = transformer

    def transform(self, rows: List[ExternalRow]) -> TransformationResult:
        result = TransformationResult(stats=TransformationStats(total=len(rows)))

        for row in rows:
            try:
                candidate = self.transformer.transform_item(row)
            except Exception as e:
                result.stats.errors += 1
                result.errors.append({
                    'original_data': {key: str(value) for key, value in row.items()},
                    'error': str(e)
                })
                log.debug(f"Row transformation failed: {e} ({row})")
                continue

            if candidate is None:
                result.stats.skipped += 1
            else:
                result.data.append(candidate)
                result.stats.transformed += 1

        result.success = result.stats.errors == 0
        return result

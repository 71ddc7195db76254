"""Optional conformance checks against the published OCF JSON schemas.

The schemas themselves are not bundled; callers load the ones for the OCF
version they target and pass them in.
"""

from __future__ import annotations

from typing import Any, Mapping

import jsonschema
from jsonschema.validators import validator_for

from .aliases import normalize_ocf_data
from .errors import ErrorCode, OcpValidationError


def _format_path(object_type: str, path: Any) -> str:
    result = object_type
    for part in path:
        result += f"[{part}]" if isinstance(part, int) else f".{part}"
    return result


def iter_schema_errors(data: Mapping[str, Any], schema: Mapping[str, Any]) -> list[jsonschema.ValidationError]:
    """All schema violations in ``data``, ordered by location."""
    validator_cls = validator_for(schema)
    validator_cls.check_schema(schema)
    validator = validator_cls(schema)
    return sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))


def validate_ocf(object_type: str, data: Mapping[str, Any], schema: Mapping[str, Any]) -> None:
    """Validate a native OCF object against its JSON schema.

    Plan-security object types are checked as their equity compensation
    equivalents, matching how they are stored.

    Raises:
        OcpValidationError: For the first violation, with code SCHEMA_MISMATCH
    """
    normalized = normalize_ocf_data(data)
    errors = iter_schema_errors(normalized, schema)
    if not errors:
        return
    first = errors[0]
    raise OcpValidationError(
        _format_path(object_type, first.absolute_path),
        f"{first.message} ({len(errors)} schema violation(s))",
        expected_type=str(first.validator),
        received_value=first.instance,
        code=ErrorCode.SCHEMA_MISMATCH,
    )

"""Tests for optional OCF JSON schema checks."""

from typing import Any

import pytest

from ocp_ledger import validate_ocf
from ocp_ledger.errors import ErrorCode, OcpValidationError
from ocp_ledger.schema import iter_schema_errors

EXERCISE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "object_type": {"const": "TX_EQUITY_COMPENSATION_EXERCISE"},
        "id": {"type": "string"},
        "quantity": {"type": "string", "pattern": "^[+-]?[0-9]+(\\.[0-9]+)?$"},
        "resulting_security_ids": {"type": "array", "items": {"type": "string"}, "minItems": 1},
    },
    "required": ["object_type", "id", "quantity"],
}


class TestValidateOcf:
    """Tests for validate_ocf()."""

    def test_valid(self) -> None:
        validate_ocf(
            "TX_EQUITY_COMPENSATION_EXERCISE",
            {"object_type": "TX_EQUITY_COMPENSATION_EXERCISE", "id": "ex-1", "quantity": "100"},
            EXERCISE_SCHEMA,
        )

    def test_plan_security_object_type_is_normalized(self) -> None:
        """Plan security objects validate against their equity compensation schema."""
        validate_ocf(
            "TX_PLAN_SECURITY_EXERCISE",
            {"object_type": "TX_PLAN_SECURITY_EXERCISE", "id": "ex-1", "quantity": "100"},
            EXERCISE_SCHEMA,
        )

    def test_violation_path(self) -> None:
        data = {
            "object_type": "TX_EQUITY_COMPENSATION_EXERCISE",
            "id": "ex-1",
            "quantity": "100",
            "resulting_security_ids": [7],
        }
        with pytest.raises(OcpValidationError) as exc_info:
            validate_ocf("TX_EQUITY_COMPENSATION_EXERCISE", data, EXERCISE_SCHEMA)
        err = exc_info.value
        assert err.field_path == "TX_EQUITY_COMPENSATION_EXERCISE.resulting_security_ids[0]"
        assert err.code == ErrorCode.SCHEMA_MISMATCH
        assert err.received_value == 7

    def test_counts_violations(self) -> None:
        data = {"object_type": "TX_EQUITY_COMPENSATION_EXERCISE", "id": 5, "quantity": "1e3"}
        with pytest.raises(OcpValidationError, match="2 schema violation"):
            validate_ocf("TX_EQUITY_COMPENSATION_EXERCISE", data, EXERCISE_SCHEMA)

    def test_iter_schema_errors_sorted(self) -> None:
        errors = iter_schema_errors({"object_type": "X", "id": 1, "quantity": 2}, EXERCISE_SCHEMA)
        assert [list(e.absolute_path) for e in errors] == [["id"], ["object_type"], ["quantity"]]

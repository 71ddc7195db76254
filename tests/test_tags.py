"""Tests for operation tags, entity type aliases and deprecated fields."""

import pytest

from ocp_ledger import (
    ENTITY_DATA_FIELDS,
    OPERATION_TAGS,
    EntityType,
    OperationKind,
    check_deprecated_fields,
    normalize_entity_type,
    normalize_object_type,
    normalize_ocf_data,
)
from ocp_ledger.aliases import is_plan_security_type, normalize_singular_to_array
from ocp_ledger.errors import ErrorCode, OcpValidationError
from ocp_ledger.tags import coerce_entity_type, tag_for


class TestOperationTags:
    """Tests for the operation tag registry."""

    def test_registry_is_total(self) -> None:
        assert set(OPERATION_TAGS) == set(EntityType)
        assert set(ENTITY_DATA_FIELDS) == set(EntityType)

    def test_standard_tags(self) -> None:
        tags = OPERATION_TAGS[EntityType.STOCK_ISSUANCE]
        assert tags.create == "OcfCreateStockIssuance"
        assert tags.edit == "OcfEditStockIssuance"
        assert tags.delete == "OcfDeleteStockIssuance"

    def test_issuer_is_edit_only(self) -> None:
        tags = OPERATION_TAGS[EntityType.ISSUER]
        assert tags.create is None
        assert tags.edit == "OcfEditIssuer"
        assert tags.delete is None

    def test_plan_security_uses_equity_compensation_tags(self) -> None:
        tags = OPERATION_TAGS[EntityType.PLAN_SECURITY_EXERCISE]
        assert tags == OPERATION_TAGS[EntityType.EQUITY_COMPENSATION_EXERCISE]
        assert tags.create == "OcfCreateEquityCompensationExercise"

    def test_change_event_tags(self) -> None:
        tags = OPERATION_TAGS[EntityType.STAKEHOLDER_STATUS_CHANGE_EVENT]
        assert tags.create == "OcfCreateStakeholderStatusChangeEvent"

    def test_for_kind(self) -> None:
        tags = OPERATION_TAGS[EntityType.VALUATION]
        assert tags.for_kind(OperationKind.EDIT) == "OcfEditValuation"

    def test_tag_for_unsupported(self) -> None:
        with pytest.raises(OcpValidationError) as exc_info:
            tag_for(EntityType.ISSUER, OperationKind.DELETE)
        err = exc_info.value
        assert err.code == ErrorCode.UNSUPPORTED_OPERATION
        assert "Delete operation not supported for entity type: issuer" in str(err)

    def test_data_fields(self) -> None:
        assert ENTITY_DATA_FIELDS[EntityType.STAKEHOLDER] == "stakeholder_data"
        assert ENTITY_DATA_FIELDS[EntityType.STOCK_PLAN_RETURN_TO_POOL] == "return_data"


class TestCoerceEntityType:
    """Tests for coerce_entity_type()."""

    def test_from_string(self) -> None:
        assert coerce_entity_type("stockClass") is EntityType.STOCK_CLASS

    def test_from_member(self) -> None:
        assert coerce_entity_type(EntityType.VALUATION) is EntityType.VALUATION

    def test_unknown(self) -> None:
        with pytest.raises(OcpValidationError) as exc_info:
            coerce_entity_type("StockClass", "type")
        assert exc_info.value.field_path == "type"
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENTITY_TYPE

    def test_str(self) -> None:
        assert str(EntityType.STOCK_ISSUANCE) == "stockIssuance"
        assert str(OperationKind.DELETE) == "delete"


class TestAliases:
    """Tests for plan security aliasing."""

    def test_normalize_entity_type(self) -> None:
        assert normalize_entity_type(EntityType.PLAN_SECURITY_ISSUANCE) is EntityType.EQUITY_COMPENSATION_ISSUANCE
        assert normalize_entity_type(EntityType.STOCK_ISSUANCE) is EntityType.STOCK_ISSUANCE

    def test_is_plan_security_type(self) -> None:
        assert is_plan_security_type(EntityType.PLAN_SECURITY_RELEASE)
        assert not is_plan_security_type(EntityType.EQUITY_COMPENSATION_RELEASE)

    def test_normalize_object_type(self) -> None:
        assert normalize_object_type("TX_PLAN_SECURITY_ISSUANCE") == "TX_EQUITY_COMPENSATION_ISSUANCE"
        assert normalize_object_type("TX_STOCK_ISSUANCE") == "TX_STOCK_ISSUANCE"

    def test_normalize_ocf_data_copies(self) -> None:
        data = {"object_type": "TX_PLAN_SECURITY_EXERCISE", "id": "ex-1"}
        normalized = normalize_ocf_data(data)
        assert normalized == {"object_type": "TX_EQUITY_COMPENSATION_EXERCISE", "id": "ex-1"}
        assert data["object_type"] == "TX_PLAN_SECURITY_EXERCISE"

    def test_normalize_ocf_data_without_object_type(self) -> None:
        assert normalize_ocf_data({"id": "x"}) == {"id": "x"}


class TestDeprecatedFields:
    """Tests for deprecated field detection and normalization."""

    def test_check_deprecated_fields(self) -> None:
        usages = check_deprecated_fields("STOCK_PLAN", {"stock_class_id": "sc-1"})
        assert len(usages) == 1
        usage = usages[0]
        assert usage.field == "stock_class_id"
        assert usage.replacement == "stock_class_ids"
        assert usage.value == "sc-1"

    def test_empty_values_are_not_usages(self) -> None:
        assert check_deprecated_fields("STOCK_PLAN", {"stock_class_id": ""}) == []
        assert check_deprecated_fields("STOCK_CLASS", {"stock_class_id": "sc-1"}) == []

    def test_plural_wins(self) -> None:
        values, used = normalize_singular_to_array(["a", "b"], "c", "x_id", "x_ids")
        assert values == ["a", "b"]
        assert not used

    def test_singular_fallback_warns(self) -> None:
        with pytest.warns(DeprecationWarning, match="'x_id' in thing is deprecated; use 'x_ids' instead"):
            values, used = normalize_singular_to_array([], "c", "x_id", "x_ids", "thing")
        assert values == ["c"]
        assert used

    def test_neither(self) -> None:
        assert normalize_singular_to_array(None, None, "x_id", "x_ids") == ([], False)

"""Tests for the JSON-safety check on outgoing payloads."""

import pytest

from ocp_ledger import UNDEFINED, EntityType, OperationKind, assert_json_safe, find_undefined
from ocp_ledger.diagnostics import BatchItemMeta
from ocp_ledger.errors import ErrorCode, OcpValidationError


class TestFindUndefined:
    """Tests for find_undefined()."""

    def test_clean_payload(self) -> None:
        assert find_undefined({"a": [1, {"b": None}], "c": ""}) is None

    def test_nested_path(self) -> None:
        payload = {"creates": [{"tag": "x", "value": {}}, {"tag": "y", "value": {"ids": ["a", UNDEFINED]}}]}
        assert find_undefined(payload) == "creates[1].value.ids[1]"

    def test_top_level(self) -> None:
        assert find_undefined(UNDEFINED) == ""
        assert find_undefined(UNDEFINED, "root") == "root"

    def test_first_in_order(self) -> None:
        assert find_undefined({"a": UNDEFINED, "b": UNDEFINED}) == "a"

    def test_none_is_not_undefined(self) -> None:
        """An explicit null is a legitimate JSON value."""
        assert find_undefined({"a": None}) is None


class TestAssertJsonSafe:
    """Tests for assert_json_safe()."""

    def test_passes_clean_payload(self) -> None:
        assert_json_safe({"creates": [], "edits": [], "deletes": []})

    def test_names_path_and_entity(self) -> None:
        payload = {
            "creates": [
                {"tag": "OcfCreateStakeholder", "value": {"id": "sh-1"}},
                {"tag": "OcfCreateStockPlan", "value": {"id": "sp-1", "stock_class_ids": UNDEFINED}},
            ],
            "edits": [],
            "deletes": [],
        }
        meta = {
            "creates": [
                BatchItemMeta(EntityType.STAKEHOLDER, "sh-1"),
                BatchItemMeta(EntityType.STOCK_PLAN, "sp-1"),
            ],
            "edits": [],
            "deletes": [],
        }
        with pytest.raises(OcpValidationError) as exc_info:
            assert_json_safe(payload, meta)
        err = exc_info.value
        assert err.field_path == "creates[1].value.stock_class_ids"
        assert err.code == ErrorCode.INVALID_TYPE
        assert "undefined value at creates[1].value.stock_class_ids" in str(err)
        assert "(entityType: stockPlan, ocfId: sp-1)" in str(err)

    def test_without_meta(self) -> None:
        with pytest.raises(OcpValidationError) as exc_info:
            assert_json_safe({"edits": [{"tag": "t", "value": UNDEFINED}]})
        assert "entityType" not in str(exc_info.value)

    def test_meta_index_out_of_range(self) -> None:
        payload = {"deletes": [{"tag": "t", "value": UNDEFINED}]}
        meta = {"deletes": []}
        with pytest.raises(OcpValidationError) as exc_info:
            assert_json_safe(payload, meta)
        assert "entityType" not in str(exc_info.value)

    def test_delete_attribution(self) -> None:
        payload = {"deletes": [{"tag": "OcfDeleteStakeholder", "value": UNDEFINED}]}
        meta = {"deletes": [BatchItemMeta(EntityType.STAKEHOLDER, "sh-7", OperationKind.DELETE)]}
        with pytest.raises(OcpValidationError, match="ocfId: sh-7"):
            assert_json_safe(payload, meta)

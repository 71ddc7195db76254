"""Tests for CapTableBatch and the standalone command builder."""

import asyncio
import logging
import re
from typing import Any

import pytest

from conftest import FakeLedger, exercised_response
from ocp_ledger import (
    DEFAULT_CAP_TABLE_TEMPLATE_ID,
    UNDEFINED,
    CapTableBatch,
    CapTableBatchParams,
    LedgerTransport,
    OperationKind,
    build_update_cap_table_command,
    resolve_template_id,
)
from ocp_ledger.errors import ErrorCode, OcpContractError, OcpParseError, OcpValidationError


class TestAccumulation:
    """Tests for adding operations to a batch."""

    def test_empty(self, params: CapTableBatchParams) -> None:
        batch = CapTableBatch(params)
        assert batch.size == 0
        assert batch.is_empty
        assert not batch.has_operations()

    def test_chaining_and_size(
        self,
        params: CapTableBatchParams,
        stakeholder: dict[str, Any],
        stock_class: dict[str, Any],
    ) -> None:
        batch = (
            CapTableBatch(params)
            .create("stakeholder", stakeholder)
            .create("stockClass", stock_class)
            .edit("stakeholder", stakeholder)
            .delete("stockClass", "sc-old")
        )
        assert batch.size == 4
        assert batch.has_operations()

    def test_invalid_data_fails_at_add(self, params: CapTableBatchParams, stock_issuance: dict[str, Any]) -> None:
        """Conversion happens when the operation is added, not at build time."""
        del stock_issuance["security_id"]
        batch = CapTableBatch(params)
        with pytest.raises(OcpValidationError, match="stockIssuance.security_id"):
            batch.create("stockIssuance", stock_issuance)
        assert batch.is_empty

    def test_cannot_create_issuer(self, params: CapTableBatchParams, issuer: dict[str, Any]) -> None:
        with pytest.raises(OcpValidationError) as exc_info:
            CapTableBatch(params).create("issuer", issuer)
        assert "Cannot create issuer via batch" in str(exc_info.value)
        assert exc_info.value.code == ErrorCode.INVALID_TYPE

    def test_cannot_delete_issuer(self, params: CapTableBatchParams) -> None:
        with pytest.raises(OcpValidationError, match="issuer must always exist"):
            CapTableBatch(params).delete("issuer", "issuer-1")

    @pytest.mark.parametrize("ocf_id", [None, "", "   ", 42])
    def test_delete_requires_id(self, params: CapTableBatchParams, ocf_id: Any) -> None:
        batch = CapTableBatch(params)
        with pytest.raises(OcpValidationError) as exc_info:
            batch.delete("stakeholder", ocf_id)
        assert exc_info.value.field_path == "id"
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELD_MISSING
        assert batch.is_empty

    def test_can_edit_issuer(self, params: CapTableBatchParams, issuer: dict[str, Any]) -> None:
        batch = CapTableBatch(params).edit("issuer", issuer)
        command = batch.build().command
        edit = command.choice_argument.edits[0]
        assert edit.tag == "OcfEditIssuer"
        assert edit.value["formation_date"] == "2020-03-01T00:00:00.000Z"

    def test_unknown_entity_type(self, params: CapTableBatchParams) -> None:
        with pytest.raises(OcpValidationError) as exc_info:
            CapTableBatch(params).delete("shareCertificate", "x")
        assert exc_info.value.code == ErrorCode.UNKNOWN_ENTITY_TYPE

    def test_clear(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        batch = CapTableBatch(params).create("stakeholder", stakeholder).delete("stakeholder", "sh-2")
        assert batch.clear() is batch
        assert batch.is_empty
        assert batch.detailed_summary() == {"creates": [], "edits": [], "deletes": []}

    def test_detailed_summary(self, params: CapTableBatchParams, stock_issuance: dict[str, Any]) -> None:
        batch = CapTableBatch(params).create("stockIssuance", stock_issuance).delete("stakeholder", "sh-2")
        detailed = batch.detailed_summary()
        created = detailed["creates"][0]
        assert created.ocf_id == "si-1"
        assert created.security_id == "sec-1"
        assert detailed["deletes"][0].ocf_id == "sh-2"
        detailed["creates"].clear()
        assert len(batch.detailed_summary()["creates"]) == 1

    def test_plan_security_alias_tag(self, params: CapTableBatchParams) -> None:
        batch = CapTableBatch(params).delete("planSecurityIssuance", "ps-1")
        assert batch.build().command.choice_argument.deletes[0].tag == "OcfDeleteEquityCompensationIssuance"
        assert batch.detailed_summary()["deletes"][0].entity_type.value == "planSecurityIssuance"


class TestBuild:
    """Tests for build()."""

    def test_lists_and_command(
        self,
        params: CapTableBatchParams,
        stakeholder: dict[str, Any],
        stock_class: dict[str, Any],
    ) -> None:
        batch = (
            CapTableBatch(params)
            .create("stakeholder", stakeholder)
            .create("stockClass", stock_class)
            .edit("stakeholder", stakeholder)
            .delete("stockClass", "sc-old")
        )
        built = batch.build()
        argument = built.command.choice_argument
        assert [len(argument.creates), len(argument.edits), len(argument.deletes)] == [2, 1, 1]
        assert argument.size == 4
        assert built.command.choice == "UpdateCapTable"
        assert built.command.contract_id == "cap-table-1"
        assert built.disclosed_contracts == ()
        assert argument.creates[0].tag == "OcfCreateStakeholder"
        assert argument.deletes[0].tag == "OcfDeleteStockClass"
        assert argument.deletes[0].value == "sc-old"

    def test_empty_batch(self, params: CapTableBatchParams) -> None:
        with pytest.raises(OcpValidationError) as exc_info:
            CapTableBatch(params).build()
        assert exc_info.value.field_path == "batch"
        assert "Cannot build empty batch" in str(exc_info.value)

    def test_undefined_value_is_caught(self, params: CapTableBatchParams, stock_plan: dict[str, Any]) -> None:
        """A payload with an UNDEFINED value is rejected before it leaves the process."""
        batch = CapTableBatch(params).create("stockPlan", stock_plan)
        batch._ops[OperationKind.CREATE][0].value["stock_class_ids"] = UNDEFINED
        with pytest.raises(OcpValidationError) as exc_info:
            batch.build()
        message = str(exc_info.value)
        assert "undefined value at" in message
        assert "stock_class_ids" in message
        assert "stockPlan" in message

    def test_built_command_is_independent(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        """Later mutation of the batch does not reach an already built command."""
        batch = CapTableBatch(params).create("stakeholder", stakeholder)
        built = batch.build()
        batch._ops[OperationKind.CREATE][0].value["id"] = "changed"
        batch.delete("stakeholder", "sh-2")
        assert built.command.choice_argument.creates[0].value["id"] == "sh-1"
        assert built.command.choice_argument.deletes == ()

    def test_default_template_id(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        built = CapTableBatch(params).create("stakeholder", stakeholder).build()
        assert built.command.template_id == DEFAULT_CAP_TABLE_TEMPLATE_ID

    def test_explicit_template_id(self, stakeholder: dict[str, Any]) -> None:
        params = CapTableBatchParams("cap-table-1", template_id="abc123:Fairmint.OpenCapTable.CapTable:CapTable")
        built = CapTableBatch(params).create("stakeholder", stakeholder).build()
        assert built.command.template_id == "abc123:Fairmint.OpenCapTable.CapTable:CapTable"
        assert resolve_template_id(params) == built.command.template_id

    def test_summary(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        batch = CapTableBatch(params).create("stakeholder", stakeholder).delete("stockClass", "sc-1")
        assert batch.summary().formatted == "[batch: 1 creates, 0 edits, 1 deletes; types: Stakeholder, StockClass]"


class TestStandaloneBuilder:
    """Tests for build_update_cap_table_command()."""

    def test_builds_from_pairs(
        self,
        params: CapTableBatchParams,
        stakeholder: dict[str, Any],
        stock_class: dict[str, Any],
    ) -> None:
        built = build_update_cap_table_command(
            params,
            creates=[("stakeholder", stakeholder)],
            edits=[("stockClass", stock_class)],
            deletes=[("valuation", "val-1")],
        )
        argument = built.command.choice_argument
        assert argument.size == 3
        assert argument.edits[0].tag == "OcfEditStockClass"
        assert argument.deletes[0].tag == "OcfDeleteValuation"

    def test_empty(self, params: CapTableBatchParams) -> None:
        with pytest.raises(OcpValidationError):
            build_update_cap_table_command(params)


class TestExecute:
    """Tests for execute() against an in-memory ledger."""

    def test_fake_ledger_satisfies_transport(self) -> None:
        assert isinstance(FakeLedger(), LedgerTransport)
        assert not isinstance(object(), LedgerTransport)

    def test_returns_result_and_update_id(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        ledger = FakeLedger(response=exercised_response({"updatedCapTableCid": "cap-table-2"}, update_id="upd-9"))
        batch = CapTableBatch(params, ledger).create("stakeholder", stakeholder)
        result = asyncio.run(batch.execute())
        assert result == {"updatedCapTableCid": "cap-table-2", "updateId": "upd-9"}

    def test_request_body(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        ledger = FakeLedger(response=exercised_response({"updatedCapTableCid": "cap-table-2"}))
        asyncio.run(CapTableBatch(params, ledger).create("stakeholder", stakeholder).execute())
        assert len(ledger.requests) == 1
        request = ledger.requests[0]
        assert re.match(r"^update-captable-\d+-[0-9a-f]{8}$", request["commandId"])
        assert list(request["actAs"]) == ["issuer::party"]
        assert list(request["readAs"]) == ["issuer::party"]
        exercise = request["commands"][0]["ExerciseCommand"]
        assert exercise["contractId"] == "cap-table-1"
        assert exercise["choice"] == "UpdateCapTable"
        assert exercise["templateId"] == DEFAULT_CAP_TABLE_TEMPLATE_ID
        creates = exercise["choiceArgument"]["creates"]
        assert creates[0]["tag"] == "OcfCreateStakeholder"
        assert creates[0]["value"]["id"] == "sh-1"

    def test_command_ids_are_unique(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        ledger = FakeLedger(response=exercised_response({}))
        batch = CapTableBatch(params, ledger).create("stakeholder", stakeholder)
        asyncio.run(batch.execute())
        asyncio.run(batch.execute())
        assert ledger.requests[0]["commandId"] != ledger.requests[1]["commandId"]

    def test_read_as(self, stakeholder: dict[str, Any]) -> None:
        params = CapTableBatchParams("cap-table-1", act_as=("a::1",), read_as=("b::2",), command_id_prefix="sync")
        ledger = FakeLedger(response=exercised_response({}))
        asyncio.run(CapTableBatch(params, ledger).create("stakeholder", stakeholder).execute())
        request = ledger.requests[0]
        assert list(request["readAs"]) == ["b::2"]
        assert request["commandId"].startswith("sync-")

    def test_without_client(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        batch = CapTableBatch(params).create("stakeholder", stakeholder)
        with pytest.raises(OcpValidationError) as exc_info:
            asyncio.run(batch.execute())
        assert exc_info.value.field_path == "client"
        assert "use build() instead" in str(exc_info.value)

    def test_result_not_found(self, params: CapTableBatchParams) -> None:
        response = exercised_response({}, choice="Archive")
        ledger = FakeLedger(response=response)
        batch = CapTableBatch(params, ledger).delete("stakeholder", "sh-1")
        with pytest.raises(OcpContractError) as exc_info:
            asyncio.run(batch.execute())
        err = exc_info.value
        assert "result not found" in str(err)
        assert "[batch: 0 creates, 0 edits, 1 deletes; types: Stakeholder]" in str(err)
        assert err.code == ErrorCode.RESULT_NOT_FOUND
        assert err.summary.deletes == 1
        assert err.batch_items["deletes"][0].ocf_id == "sh-1"

    def test_failure_log_lists_items(self, params: CapTableBatchParams, caplog: pytest.LogCaptureFixture) -> None:
        ledger = FakeLedger(response=exercised_response({}, choice="Archive"))
        batch = CapTableBatch(params, ledger).delete("stakeholder", "sh-1").delete("stockClass", "sc-1")
        with caplog.at_level(logging.WARNING, logger="ocp_ledger.batch"):
            with pytest.raises(OcpContractError):
                asyncio.run(batch.execute())
        assert "items: delete stakeholder sh-1; delete stockClass sc-1" in caplog.text

    def test_only_created_events(self, params: CapTableBatchParams) -> None:
        response = {
            "transactionTree": {
                "updateId": "upd-1",
                "eventsById": {
                    "0": {
                        "CreatedTreeEvent": {
                            "value": {"contractId": "c-1", "templateId": "t", "createArgument": {}}
                        }
                    }
                },
            }
        }
        batch = CapTableBatch(params, FakeLedger(response=response)).delete("stakeholder", "sh-1")
        with pytest.raises(OcpContractError, match="result not found"):
            asyncio.run(batch.execute())

    def test_unreadable_unrelated_event_is_ignored(self, params: CapTableBatchParams) -> None:
        """A malformed event beside the UpdateCapTable result does not fail a committed batch."""
        response = exercised_response({"a": 1}, update_id="u")
        response["transactionTree"]["eventsById"]["1"] = {
            "CreatedTreeEvent": {"value": {"contractId": "c2"}}
        }
        batch = CapTableBatch(params, FakeLedger(response=response)).delete("stakeholder", "sh-1")
        assert asyncio.run(batch.execute()) == {"a": 1, "updateId": "u"}

    def test_submission_failure_is_chained(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        cause = ConnectionError("connection reset")
        batch = CapTableBatch(params, FakeLedger(error=cause)).create("stakeholder", stakeholder)
        with pytest.raises(OcpContractError) as exc_info:
            asyncio.run(batch.execute())
        err = exc_info.value
        assert err.cause is cause
        assert err.code == ErrorCode.CHOICE_FAILED
        assert "Batch execution failed: connection reset" in str(err)
        assert "[batch: 1 creates, 0 edits, 0 deletes; types: Stakeholder]" in str(err)
        assert err.contract_id == "cap-table-1"
        assert err.choice == "UpdateCapTable"

    def test_malformed_response(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        batch = CapTableBatch(params, FakeLedger(response={"status": "ok"})).create("stakeholder", stakeholder)
        with pytest.raises(OcpParseError) as exc_info:
            asyncio.run(batch.execute())
        assert "[batch: 1 creates" in str(exc_info.value)

    def test_nested_transaction_tree(self, params: CapTableBatchParams, stakeholder: dict[str, Any]) -> None:
        """Trees nested under "transaction" are read the same way."""
        flat = exercised_response({"updatedCapTableCid": "cap-table-2"})["transactionTree"]
        response = {
            "transactionTree": {
                "transaction": {"updateId": "upd-nested", "eventsById": flat["eventsById"]}
            }
        }
        batch = CapTableBatch(params, FakeLedger(response=response)).create("stakeholder", stakeholder)
        result = asyncio.run(batch.execute())
        assert result["updateId"] == "upd-nested"

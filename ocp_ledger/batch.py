"""Atomic multi-entity cap table updates.

A CapTableBatch accumulates creates, edits and deletes, converting each one
as it is added, and builds them into a single UpdateCapTable choice. The
ledger applies that choice all-or-nothing; nothing here attempts partial
rollback.
"""

from __future__ import annotations

import copy
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from . import entities
from .diagnostics import BatchItemMeta, BatchSummary, describe_items, summarize
from .errors import ErrorCode, OcpContractError, OcpParseError, OcpValidationError
from .safety import assert_json_safe
from .tags import SINGLETON_ENTITY_TYPES, coerce_entity_type, tag_for
from .transport import LedgerTransport
from .types import EntityType, EntityTypeLike, OperationKind
from .wire import (
    CommandWithDisclosedContracts,
    ExerciseCommand,
    ExercisedTreeEvent,
    SubmitRequest,
    TaggedValue,
    UpdateCapTableArgument,
    converter,
    parse_transaction_tree_response,
)

logger = logging.getLogger(__name__)

UPDATE_CAP_TABLE_CHOICE = "UpdateCapTable"

# Last-resort template reference, resolved by package name on the ledger.
# Prefer the live template id of the cap table contract when it is known.
DEFAULT_CAP_TABLE_TEMPLATE_ID = "#OpenCapTable-v34:Fairmint.OpenCapTable.CapTable:CapTable"


@dataclass(frozen=True)
class CapTableBatchParams:
    cap_table_contract_id: str
    act_as: tuple[str, ...] = ()
    read_as: Optional[tuple[str, ...]] = None
    template_id: Optional[str] = None
    """Template id of the deployed cap table contract, fetched by the caller."""
    command_id_prefix: str = "update-captable"


def resolve_template_id(params: CapTableBatchParams) -> str:
    return params.template_id or DEFAULT_CAP_TABLE_TEMPLATE_ID


def _new_command_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


class CapTableBatch:
    """Accumulates cap table operations for one atomic UpdateCapTable call.

    Each create/edit is converted immediately, so invalid input fails at the
    call that introduced it. A batch is owned by one caller: it is not safe
    to mutate or execute it concurrently.

    Example:
        >>> batch = CapTableBatch(params, client)
        >>> batch.create("stakeholder", stakeholder).edit("stockClass", stock_class)
        >>> result = await batch.execute()
    """

    def __init__(self, params: CapTableBatchParams, client: Optional[LedgerTransport] = None) -> None:
        self._params = params
        self._client = client
        self._ops: dict[OperationKind, list[TaggedValue]] = {kind: [] for kind in OperationKind}
        self._metas: dict[OperationKind, list[BatchItemMeta]] = {kind: [] for kind in OperationKind}

    @property
    def params(self) -> CapTableBatchParams:
        return self._params

    def create(self, entity_type: EntityTypeLike, data: Mapping[str, Any]) -> "CapTableBatch":
        """Add a create operation.

        Raises:
            OcpValidationError: If the type cannot be created or the data is invalid
        """
        resolved = coerce_entity_type(entity_type, "type")
        if resolved in SINGLETON_ENTITY_TYPES:
            raise OcpValidationError(
                "type",
                "Cannot create issuer via batch - issuer is created with the CapTable "
                "via IssuerAuthorization.CreateCapTable",
                received_value=resolved.value,
                code=ErrorCode.INVALID_TYPE,
            )
        return self._add_converted(OperationKind.CREATE, resolved, data)

    def edit(self, entity_type: EntityTypeLike, data: Mapping[str, Any]) -> "CapTableBatch":
        """Add an edit operation. Every entity type, the issuer included, can be edited."""
        return self._add_converted(OperationKind.EDIT, coerce_entity_type(entity_type, "type"), data)

    def delete(self, entity_type: EntityTypeLike, ocf_id: str) -> "CapTableBatch":
        resolved = coerce_entity_type(entity_type, "type")
        if resolved in SINGLETON_ENTITY_TYPES:
            raise OcpValidationError(
                "type",
                "Cannot delete issuer - issuer must always exist for the CapTable",
                received_value=resolved.value,
                code=ErrorCode.INVALID_TYPE,
            )
        if not isinstance(ocf_id, str) or not ocf_id.strip():
            raise OcpValidationError(
                "id",
                "Delete requires a non-empty string id",
                expected_type="string",
                received_value=ocf_id,
                code=ErrorCode.REQUIRED_FIELD_MISSING,
            )
        tag = tag_for(resolved, OperationKind.DELETE)
        self._ops[OperationKind.DELETE].append(TaggedValue(tag, ocf_id))
        self._metas[OperationKind.DELETE].append(
            BatchItemMeta.from_id(resolved, OperationKind.DELETE, ocf_id)
        )
        logger.debug("Batch delete %s %s", resolved.value, ocf_id)
        return self

    def _add_converted(
        self, kind: OperationKind, entity_type: EntityType, data: Mapping[str, Any]
    ) -> "CapTableBatch":
        tag = tag_for(entity_type, kind)
        record = entities.to_ledger(entity_type, data)
        meta = BatchItemMeta.from_data(entity_type, kind, data)
        self._ops[kind].append(TaggedValue(tag, record))
        self._metas[kind].append(meta)
        logger.debug("Batch %s %s %s", kind.value, entity_type.value, meta.ocf_id)
        return self

    @property
    def size(self) -> int:
        return sum(len(ops) for ops in self._ops.values())

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def has_operations(self) -> bool:
        return not self.is_empty

    def _payload(self) -> dict[str, list[dict[str, Any]]]:
        return {
            f"{kind.value}s": [{"tag": op.tag, "value": op.value} for op in self._ops[kind]]
            for kind in OperationKind
        }

    def build(self) -> CommandWithDisclosedContracts:
        """Assemble the accumulated operations into one immutable command.

        The command holds deep copies of the payloads, so it is unaffected by
        later changes to this batch. No network I/O happens here.

        Raises:
            OcpValidationError: If the batch is empty or a payload is not JSON-safe
        """
        if self.is_empty:
            raise OcpValidationError(
                "batch",
                "Cannot build empty batch - add at least one create, edit, or delete operation",
                code=ErrorCode.REQUIRED_FIELD_MISSING,
            )

        detailed = self.detailed_summary()
        assert_json_safe(self._payload(), detailed)

        argument = UpdateCapTableArgument(
            *(
                tuple(TaggedValue(op.tag, copy.deepcopy(op.value)) for op in self._ops[kind])
                for kind in OperationKind
            )
        )
        command = ExerciseCommand(
            template_id=resolve_template_id(self._params),
            contract_id=self._params.cap_table_contract_id,
            choice=UPDATE_CAP_TABLE_CHOICE,
            choice_argument=argument,
        )
        logger.debug("Built UpdateCapTable command %s", self.summary().formatted)
        # UpdateCapTable references no contracts besides the one it exercises.
        return CommandWithDisclosedContracts(command=command, disclosed_contracts=())

    async def execute(self) -> dict[str, Any]:
        """Build, submit and return the UpdateCapTable result.

        Returns:
            The choice's exercise result plus the ledger's ``updateId``

        Raises:
            OcpValidationError: If there is no client or the batch cannot be built
            OcpContractError: If submission fails or the result is missing from
                the transaction tree; carries ``summary`` and ``batch_items``
        """
        if self._client is None:
            raise OcpValidationError(
                "client",
                "Cannot execute batch without a client - use build() instead and submit manually",
                code=ErrorCode.REQUIRED_FIELD_MISSING,
            )

        built = self.build()
        summary = self.summary()
        request = SubmitRequest(
            commands=(built.command,),
            command_id=_new_command_id(self._params.command_id_prefix),
            act_as=tuple(self._params.act_as),
            read_as=tuple(
                self._params.read_as if self._params.read_as is not None else self._params.act_as
            ),
            disclosed_contracts=built.disclosed_contracts,
        )

        try:
            response = await self._client.submit_and_wait_for_transaction_tree(
                converter.unstructure(request)
            )
        except Exception as err:
            logger.warning(
                "UpdateCapTable submission failed %s: %s (items: %s)",
                summary.formatted,
                err,
                self._describe_items(),
            )
            raise self._contract_error(
                f"Batch execution failed: {err} {summary.formatted}",
                summary,
                ErrorCode.CHOICE_FAILED,
            ) from err

        try:
            tree = parse_transaction_tree_response(response).transaction_tree
        except OcpParseError as err:
            logger.warning(
                "Unreadable transaction tree %s: %s (items: %s)",
                summary.formatted,
                err,
                self._describe_items(),
            )
            raise OcpParseError(
                f"{err.message} {summary.formatted}", source=err.source, code=err.code
            ) from err

        for event in tree.events_by_id.values():
            if (
                isinstance(event, ExercisedTreeEvent)
                and event.choice == UPDATE_CAP_TABLE_CHOICE
                and isinstance(event.exercise_result, Mapping)
            ):
                logger.info("UpdateCapTable committed %s %s", tree.update_id, summary.formatted)
                return {**event.exercise_result, "updateId": tree.update_id}

        logger.warning(
            "UpdateCapTable result not found %s (items: %s)", summary.formatted, self._describe_items()
        )
        raise self._contract_error(
            f"UpdateCapTable result not found in transaction tree {summary.formatted}",
            summary,
            ErrorCode.RESULT_NOT_FOUND,
        )

    def _contract_error(self, message: str, summary: BatchSummary, code: ErrorCode) -> OcpContractError:
        error = OcpContractError(
            message,
            contract_id=self._params.cap_table_contract_id,
            template_id=resolve_template_id(self._params),
            choice=UPDATE_CAP_TABLE_CHOICE,
            code=code,
        )
        error.summary = summary
        error.batch_items = self.detailed_summary()
        return error

    def summary(self) -> BatchSummary:
        return summarize(*(self._ops[kind] for kind in OperationKind))

    def _describe_items(self) -> str:
        return describe_items(meta for kind in OperationKind for meta in self._metas[kind])

    def detailed_summary(self) -> dict[str, list[BatchItemMeta]]:
        """Copies of the per-item metadata, keyed by ``creates``/``edits``/``deletes``."""
        return {f"{kind.value}s": list(self._metas[kind]) for kind in OperationKind}

    def clear(self) -> "CapTableBatch":
        for kind in OperationKind:
            self._ops[kind].clear()
            self._metas[kind].clear()
        return self


def build_update_cap_table_command(
    params: CapTableBatchParams,
    creates: Iterable[Sequence[Any]] = (),
    edits: Iterable[Sequence[Any]] = (),
    deletes: Iterable[Sequence[Any]] = (),
) -> CommandWithDisclosedContracts:
    """Build an UpdateCapTable command without a client.

    ``creates`` and ``edits`` are ``(entity_type, data)`` pairs and
    ``deletes`` are ``(entity_type, id)`` pairs.
    """
    batch = CapTableBatch(params)
    for entity_type, data in creates:
        batch.create(entity_type, data)
    for entity_type, data in edits:
        batch.edit(entity_type, data)
    for entity_type, ocf_id in deletes:
        batch.delete(entity_type, ocf_id)
    return batch.build()

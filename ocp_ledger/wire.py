"""Ledger JSON API shapes and their cattrs converter.

Commands are built as frozen dataclasses and unstructured to the camelCase
JSON the ledger's HTTP API expects. Transaction trees coming back are
structured into the same dataclass vocabulary; event kinds this package does
not know are kept as UnknownTreeEvent rather than rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional, Union

import cattrs
from cattrs.gen import make_dict_structure_fn, make_dict_unstructure_fn, override

from .errors import ErrorCode, OcpParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaggedValue:
    """One operation in a batch list: a variant constructor and its payload."""

    tag: str
    value: Any


@dataclass(frozen=True)
class UpdateCapTableArgument:
    creates: tuple[TaggedValue, ...] = ()
    edits: tuple[TaggedValue, ...] = ()
    deletes: tuple[TaggedValue, ...] = ()

    @property
    def size(self) -> int:
        return len(self.creates) + len(self.edits) + len(self.deletes)


@dataclass(frozen=True)
class ExerciseCommand:
    template_id: str
    contract_id: str
    choice: str
    choice_argument: UpdateCapTableArgument


@dataclass(frozen=True)
class DisclosedContract:
    template_id: str
    contract_id: str
    created_event_blob: str
    synchronizer_id: Optional[str] = None


@dataclass(frozen=True)
class CommandWithDisclosedContracts:
    """A built command, ready for submission."""

    command: ExerciseCommand
    disclosed_contracts: tuple[DisclosedContract, ...] = ()


@dataclass(frozen=True)
class SubmitRequest:
    """The body of a submit-and-wait call."""

    commands: tuple[ExerciseCommand, ...]
    command_id: str
    act_as: tuple[str, ...]
    read_as: tuple[str, ...] = ()
    disclosed_contracts: tuple[DisclosedContract, ...] = ()


@dataclass(frozen=True)
class CreatedTreeEvent:
    contract_id: str
    template_id: str
    create_argument: Any = None
    node_id: Optional[int] = None


@dataclass(frozen=True)
class ExercisedTreeEvent:
    contract_id: str
    template_id: str
    choice: str
    choice_argument: Any = None
    exercise_result: Any = None
    consuming: bool = False
    node_id: Optional[int] = None


@dataclass(frozen=True)
class UnknownTreeEvent:
    """An event kind this package does not interpret, or an unreadable known one."""

    kind: str
    payload: Any = None


TreeEvent = Union[CreatedTreeEvent, ExercisedTreeEvent, UnknownTreeEvent]


@dataclass(frozen=True)
class TransactionTree:
    update_id: Optional[str] = None
    events_by_id: Mapping[str, TreeEvent] = field(default_factory=dict)
    command_id: Optional[str] = None
    offset: Optional[int] = None


@dataclass(frozen=True)
class TransactionTreeResponse:
    transaction_tree: TransactionTree


def _to_camel_case(snake_str: str) -> str:
    """Convert a snake_case string to camelCase."""
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def _camel_overrides(cls: type) -> dict[str, Any]:
    return {fld.name: override(rename=_to_camel_case(fld.name)) for fld in fields(cls)}


def _register_camel_case(conv: cattrs.Converter, *classes: type) -> None:
    # Generated hooks capture the field handlers registered so far, so
    # callers register leaf types before the records that contain them.
    for cls in classes:
        overrides = _camel_overrides(cls)
        conv.register_unstructure_hook(cls, make_dict_unstructure_fn(cls, conv, **overrides))
        conv.register_structure_hook(cls, make_dict_structure_fn(cls, conv, **overrides))


def _create_converter() -> cattrs.Converter:
    """Create and configure a cattrs converter for the ledger JSON API."""
    conv = cattrs.Converter()

    _register_camel_case(conv, TaggedValue, UpdateCapTableArgument, DisclosedContract)

    # ExerciseCommand is externally tagged: {"ExerciseCommand": {...}}
    exercise_fields = _camel_overrides(ExerciseCommand)
    unstructure_exercise_body = make_dict_unstructure_fn(ExerciseCommand, conv, **exercise_fields)
    structure_exercise_body = make_dict_structure_fn(ExerciseCommand, conv, **exercise_fields)

    def unstructure_exercise(cmd: ExerciseCommand) -> dict[str, Any]:
        return {"ExerciseCommand": unstructure_exercise_body(cmd)}

    def structure_exercise(d: dict[str, Any], cls: type) -> ExerciseCommand:
        return structure_exercise_body(d.get("ExerciseCommand", d), cls)

    conv.register_unstructure_hook(ExerciseCommand, unstructure_exercise)
    conv.register_structure_hook(ExerciseCommand, structure_exercise)

    _register_camel_case(conv, CommandWithDisclosedContracts, SubmitRequest)

    # Tree events are externally tagged as well, with the body under "value"
    _register_camel_case(conv, CreatedTreeEvent, ExercisedTreeEvent)
    _event_kinds: dict[str, type] = {
        "CreatedTreeEvent": CreatedTreeEvent,
        "ExercisedTreeEvent": ExercisedTreeEvent,
    }

    def structure_tree_event(d: Any, _: type) -> TreeEvent:
        if not isinstance(d, Mapping) or len(d) != 1:
            raise OcpParseError(
                f"Expected a single-key tree event object, got {d!r}",
                source="eventsById",
            )
        ((kind, body),) = d.items()
        event_cls = _event_kinds.get(kind)
        if event_cls is None:
            return UnknownTreeEvent(kind=kind, payload=body)
        inner = body
        if isinstance(inner, Mapping) and isinstance(inner.get("value"), Mapping):
            inner = inner["value"]
        if not isinstance(inner, Mapping):
            return UnknownTreeEvent(kind=kind, payload=body)
        try:
            return conv.structure(inner, event_cls)
        except cattrs.BaseValidationError as err:
            # One unreadable event must not hide the rest of the tree
            logger.debug("Keeping unreadable %s as unknown: %s", kind, err)
            return UnknownTreeEvent(kind=kind, payload=body)

    def _make_event_unstructure_hook(kind: str, cls: type) -> Callable[[Any], dict[str, Any]]:
        body = make_dict_unstructure_fn(cls, conv, **_camel_overrides(cls))

        def hook(event: Any) -> dict[str, Any]:
            return {kind: {"value": body(event)}}

        return hook

    def unstructure_unknown_event(event: UnknownTreeEvent) -> dict[str, Any]:
        return {event.kind: event.payload}

    conv.register_structure_hook(TreeEvent, structure_tree_event)
    for kind, cls in _event_kinds.items():
        conv.register_unstructure_hook(cls, _make_event_unstructure_hook(kind, cls))
    conv.register_unstructure_hook(UnknownTreeEvent, unstructure_unknown_event)

    # Newer ledger APIs nest the tree body under "transaction"
    def structure_transaction_tree(d: dict[str, Any], _: type) -> TransactionTree:
        inner = d.get("transaction")
        if not isinstance(inner, Mapping):
            inner = {}
        events = d.get("eventsById") or inner.get("eventsById") or {}
        return TransactionTree(
            update_id=d.get("updateId") or inner.get("updateId"),
            events_by_id={
                str(event_id): structure_tree_event(event, TreeEvent)
                for event_id, event in events.items()
            },
            command_id=d.get("commandId") or inner.get("commandId"),
            offset=d.get("offset", inner.get("offset")),
        )

    def unstructure_transaction_tree(tree: TransactionTree) -> dict[str, Any]:
        return {
            "updateId": tree.update_id,
            "eventsById": {k: conv.unstructure(v) for k, v in tree.events_by_id.items()},
            "commandId": tree.command_id,
            "offset": tree.offset,
        }

    conv.register_structure_hook(TransactionTree, structure_transaction_tree)
    conv.register_unstructure_hook(TransactionTree, unstructure_transaction_tree)

    _register_camel_case(conv, TransactionTreeResponse)

    return conv


# Global converter instance
converter: cattrs.Converter = _create_converter()


def parse_transaction_tree_response(raw: Any) -> TransactionTreeResponse:
    """Structure a raw submit-and-wait response.

    Raises:
        OcpParseError: If the response has no transaction tree
    """
    if not isinstance(raw, Mapping) or not isinstance(raw.get("transactionTree"), Mapping):
        raise OcpParseError(
            "Response does not contain a transactionTree",
            source="transactionTree",
            code=ErrorCode.INVALID_RESPONSE,
        )
    try:
        return converter.structure(raw, TransactionTreeResponse)
    except cattrs.BaseValidationError as err:
        raise OcpParseError(f"Malformed transaction tree: {err}", source="transactionTree") from err


def extract_update_id(raw: Any) -> str:
    """Read the ledger-assigned update id from a raw submit response.

    Looks at ``transactionTree.updateId`` first, then at
    ``transactionTree.transaction.updateId``.

    Raises:
        OcpParseError: If neither location holds an update id
    """
    tree = raw.get("transactionTree") if isinstance(raw, Mapping) else None
    if isinstance(tree, Mapping):
        update_id = tree.get("updateId")
        if isinstance(update_id, str) and update_id:
            return update_id
        transaction = tree.get("transaction")
        if isinstance(transaction, Mapping):
            update_id = transaction.get("updateId")
            if isinstance(update_id, str) and update_id:
                return update_id
    raise OcpParseError(
        "Transaction tree response has no updateId",
        source="transactionTree.updateId",
        code=ErrorCode.INVALID_RESPONSE,
    )

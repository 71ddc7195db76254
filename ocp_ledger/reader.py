"""Reading OCF entities and cap table state back from the ledger."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from . import entities
from .errors import ErrorCode, OcpParseError
from .tags import ENTITY_DATA_FIELDS, PLAN_SECURITY_TO_EQUITY_COMPENSATION, SINGLETON_ENTITY_TYPES
from .transport import LedgerTransport
from .types import EntityType, EntityTypeLike

logger = logging.getLogger(__name__)

_OBJECT_ENTITY_TYPES = frozenset(
    {
        EntityType.DOCUMENT,
        EntityType.ISSUER,
        EntityType.STAKEHOLDER,
        EntityType.STOCK_CLASS,
        EntityType.STOCK_LEGEND_TEMPLATE,
        EntityType.STOCK_PLAN,
        EntityType.VALUATION,
        EntityType.VESTING_TERMS,
    }
)
_CHANGE_EVENT_OBJECT_TYPES = {
    EntityType.STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT: "CE_STAKEHOLDER_RELATIONSHIP",
    EntityType.STAKEHOLDER_STATUS_CHANGE_EVENT: "CE_STAKEHOLDER_STATUS",
}
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Cap table contract fields mapping OCF ids to entity contract ids
CAP_TABLE_FIELDS: Mapping[str, EntityType] = {
    "stakeholders": EntityType.STAKEHOLDER,
    "stock_classes": EntityType.STOCK_CLASS,
    "stock_plans": EntityType.STOCK_PLAN,
    "vesting_terms": EntityType.VESTING_TERMS,
    "stock_legend_templates": EntityType.STOCK_LEGEND_TEMPLATE,
    "documents": EntityType.DOCUMENT,
    "valuations": EntityType.VALUATION,
    "stock_class_authorized_shares_adjustments": EntityType.STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT,
    "stock_class_conversion_ratio_adjustments": EntityType.STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT,
    "stock_class_splits": EntityType.STOCK_CLASS_SPLIT,
    "issuer_authorized_shares_adjustments": EntityType.ISSUER_AUTHORIZED_SHARES_ADJUSTMENT,
    "stock_issuances": EntityType.STOCK_ISSUANCE,
    "stock_cancellations": EntityType.STOCK_CANCELLATION,
    "stock_transfers": EntityType.STOCK_TRANSFER,
    "stock_acceptances": EntityType.STOCK_ACCEPTANCE,
    "stock_conversions": EntityType.STOCK_CONVERSION,
    "stock_repurchases": EntityType.STOCK_REPURCHASE,
    "stock_reissuances": EntityType.STOCK_REISSUANCE,
    "stock_retractions": EntityType.STOCK_RETRACTION,
    "stock_consolidations": EntityType.STOCK_CONSOLIDATION,
    "equity_compensation_issuances": EntityType.EQUITY_COMPENSATION_ISSUANCE,
    "equity_compensation_cancellations": EntityType.EQUITY_COMPENSATION_CANCELLATION,
    "equity_compensation_transfers": EntityType.EQUITY_COMPENSATION_TRANSFER,
    "equity_compensation_acceptances": EntityType.EQUITY_COMPENSATION_ACCEPTANCE,
    "equity_compensation_exercises": EntityType.EQUITY_COMPENSATION_EXERCISE,
    "equity_compensation_releases": EntityType.EQUITY_COMPENSATION_RELEASE,
    "equity_compensation_repricings": EntityType.EQUITY_COMPENSATION_REPRICING,
    "equity_compensation_retractions": EntityType.EQUITY_COMPENSATION_RETRACTION,
    "convertible_issuances": EntityType.CONVERTIBLE_ISSUANCE,
    "convertible_cancellations": EntityType.CONVERTIBLE_CANCELLATION,
    "convertible_transfers": EntityType.CONVERTIBLE_TRANSFER,
    "convertible_acceptances": EntityType.CONVERTIBLE_ACCEPTANCE,
    "convertible_conversions": EntityType.CONVERTIBLE_CONVERSION,
    "convertible_retractions": EntityType.CONVERTIBLE_RETRACTION,
    "warrant_issuances": EntityType.WARRANT_ISSUANCE,
    "warrant_cancellations": EntityType.WARRANT_CANCELLATION,
    "warrant_transfers": EntityType.WARRANT_TRANSFER,
    "warrant_acceptances": EntityType.WARRANT_ACCEPTANCE,
    "warrant_exercises": EntityType.WARRANT_EXERCISE,
    "warrant_retractions": EntityType.WARRANT_RETRACTION,
    "stock_plan_pool_adjustments": EntityType.STOCK_PLAN_POOL_ADJUSTMENT,
    "stock_plan_return_to_pools": EntityType.STOCK_PLAN_RETURN_TO_POOL,
    "vesting_accelerations": EntityType.VESTING_ACCELERATION,
    "vesting_events": EntityType.VESTING_EVENT,
    "vesting_starts": EntityType.VESTING_START,
    "stakeholder_relationship_change_events": EntityType.STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT,
    "stakeholder_status_change_events": EntityType.STAKEHOLDER_STATUS_CHANGE_EVENT,
}


def object_type_for(entity_type: EntityType) -> str:
    """The OCF object_type string for an entity type, e.g. TX_STOCK_ISSUANCE."""
    if entity_type in _CHANGE_EVENT_OBJECT_TYPES:
        return _CHANGE_EVENT_OBJECT_TYPES[entity_type]
    name = _CAMEL_BOUNDARY.sub("_", entity_type.value).upper()
    return name if entity_type in _OBJECT_ENTITY_TYPES else f"TX_{name}"


def _resolve(entity_type: EntityTypeLike) -> EntityType:
    try:
        return EntityType(entity_type)
    except ValueError:
        raise OcpParseError(
            f"Unsupported entity type: {entity_type!r}",
            source="entity_type",
            code=ErrorCode.UNKNOWN_ENTITY_TYPE,
        ) from None


def extract_create_argument(events_response: Any, contract_id: str) -> Mapping[str, Any]:
    """Pull ``created.createdEvent.createArgument`` out of a contract events response."""
    created = events_response.get("created") if isinstance(events_response, Mapping) else None
    created_event = created.get("createdEvent") if isinstance(created, Mapping) else None
    if not isinstance(created_event, Mapping):
        raise OcpParseError(
            "Invalid contract events response: missing created event",
            source=f"contract {contract_id}",
        )
    create_argument = created_event.get("createArgument")
    if not isinstance(create_argument, Mapping) or not create_argument:
        raise OcpParseError(
            "Invalid contract events response: missing create argument",
            source=f"contract {contract_id}",
        )
    return create_argument


def extract_entity_data(entity_type: EntityTypeLike, create_argument: Any) -> Mapping[str, Any]:
    resolved = _resolve(entity_type)
    if not isinstance(create_argument, Mapping):
        raise OcpParseError(
            "Invalid createArgument: expected an object",
            source=resolved.value,
        )
    field_name = ENTITY_DATA_FIELDS[resolved]
    if field_name not in create_argument:
        raise OcpParseError(
            f"Expected field '{field_name}' not found in contract create argument for {resolved.value}",
            source=resolved.value,
            code=ErrorCode.SCHEMA_MISMATCH,
        )
    data = create_argument[field_name]
    if not isinstance(data, Mapping):
        raise OcpParseError(
            f"Entity data field '{field_name}' is not an object for {resolved.value}",
            source=resolved.value,
            code=ErrorCode.SCHEMA_MISMATCH,
        )
    return data


def convert_to_ocf(entity_type: EntityTypeLike, data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a ledger record to a native OCF object, object_type included."""
    resolved = _resolve(entity_type)
    native = entities.from_ledger(resolved, data)
    return {"object_type": object_type_for(resolved), **native}


@dataclass(frozen=True)
class EntityRead:
    data: dict[str, Any]
    contract_id: str


async def get_entity_as_ocf(client: LedgerTransport, entity_type: EntityTypeLike, contract_id: str) -> EntityRead:
    """Fetch one entity contract and convert it to native OCF.

    Raises:
        OcpParseError: If the contract is unknown or its data is malformed
    """
    events = await client.get_events_by_contract_id(contract_id)
    if events is None:
        raise OcpParseError(
            f"Contract not found: {contract_id}",
            source=f"contract {contract_id}",
            code=ErrorCode.RESULT_NOT_FOUND,
        )
    create_argument = extract_create_argument(events, contract_id)
    data = extract_entity_data(entity_type, create_argument)
    return EntityRead(data=convert_to_ocf(entity_type, data), contract_id=contract_id)


@dataclass(frozen=True)
class CapTableState:
    """Which OCF entities a cap table contract currently holds."""

    cap_table_contract_id: str
    issuer_contract_id: Optional[str] = None
    entities: Mapping[EntityType, frozenset[str]] = field(default_factory=dict)
    """OCF ids per entity type."""
    contract_ids: Mapping[EntityType, Mapping[str, str]] = field(default_factory=dict)
    """OCF id to entity contract id, per entity type."""

    def has(self, entity_type: EntityType, ocf_id: str) -> bool:
        return ocf_id in self.entities.get(entity_type, frozenset())

    def contract_id_for(self, entity_type: EntityType, ocf_id: str) -> Optional[str]:
        return self.contract_ids.get(entity_type, {}).get(ocf_id)


def _as_id_map(value: Any, field_name: str) -> dict[str, str]:
    # Ledger maps arrive either as JSON objects or as [key, value] pairs.
    if isinstance(value, Mapping):
        items = value.items()
    elif isinstance(value, list):
        items = value
    else:
        raise OcpParseError(
            f"Cap table field '{field_name}' is not a map",
            source=field_name,
            code=ErrorCode.SCHEMA_MISMATCH,
        )
    result = {}
    for item in items:
        try:
            ocf_id, contract_id = item
        except (TypeError, ValueError):
            raise OcpParseError(
                f"Cap table field '{field_name}' has a malformed entry: {item!r}",
                source=field_name,
                code=ErrorCode.SCHEMA_MISMATCH,
            ) from None
        result[str(ocf_id)] = str(contract_id)
    return result


def parse_cap_table_state(cap_table_contract_id: str, create_argument: Mapping[str, Any]) -> CapTableState:
    found: dict[EntityType, frozenset[str]] = {}
    contract_ids: dict[EntityType, Mapping[str, str]] = {}
    for field_name, entity_type in CAP_TABLE_FIELDS.items():
        value = create_argument.get(field_name)
        if not value:
            continue
        id_map = _as_id_map(value, field_name)
        found[entity_type] = frozenset(id_map)
        contract_ids[entity_type] = id_map

    issuer = create_argument.get("issuer")
    return CapTableState(
        cap_table_contract_id=cap_table_contract_id,
        issuer_contract_id=issuer if isinstance(issuer, str) else None,
        entities=found,
        contract_ids=contract_ids,
    )


async def get_cap_table_state(client: LedgerTransport, cap_table_contract_id: str) -> Optional[CapTableState]:
    """Read the entity index of a cap table contract.

    Returns None when the ledger does not know the contract.
    """
    events = await client.get_events_by_contract_id(cap_table_contract_id)
    if events is None:
        logger.info("Cap table contract %s not found", cap_table_contract_id)
        return None
    create_argument = extract_create_argument(events, cap_table_contract_id)
    state = parse_cap_table_state(cap_table_contract_id, create_argument)
    logger.debug(
        "Cap table %s holds %d entity types",
        cap_table_contract_id,
        len(state.entities),
    )
    return state


_missing_fields = (
    set(EntityType)
    - set(CAP_TABLE_FIELDS.values())
    - SINGLETON_ENTITY_TYPES
    - set(PLAN_SECURITY_TO_EQUITY_COMPENSATION)
)
if _missing_fields:
    raise RuntimeError(
        "Entity types without a cap table field: "
        + ", ".join(sorted(t.value for t in _missing_fields))
    )

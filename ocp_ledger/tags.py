"""Operation tag registry: which wire constructor carries each operation."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .enums import pascal_case
from .errors import ErrorCode, OcpValidationError
from .types import EntityType, EntityTypeLike, OperationKind, OperationTags

# Plan securities are stored as equity compensation contracts on the ledger.
PLAN_SECURITY_TO_EQUITY_COMPENSATION: Mapping[EntityType, EntityType] = MappingProxyType(
    {
        EntityType.PLAN_SECURITY_ACCEPTANCE: EntityType.EQUITY_COMPENSATION_ACCEPTANCE,
        EntityType.PLAN_SECURITY_CANCELLATION: EntityType.EQUITY_COMPENSATION_CANCELLATION,
        EntityType.PLAN_SECURITY_EXERCISE: EntityType.EQUITY_COMPENSATION_EXERCISE,
        EntityType.PLAN_SECURITY_ISSUANCE: EntityType.EQUITY_COMPENSATION_ISSUANCE,
        EntityType.PLAN_SECURITY_RELEASE: EntityType.EQUITY_COMPENSATION_RELEASE,
        EntityType.PLAN_SECURITY_RETRACTION: EntityType.EQUITY_COMPENSATION_RETRACTION,
        EntityType.PLAN_SECURITY_TRANSFER: EntityType.EQUITY_COMPENSATION_TRANSFER,
    }
)

# The issuer exists exactly once per cap table: created with it, never deleted.
SINGLETON_ENTITY_TYPES = frozenset({EntityType.ISSUER})

# Types whose operations carry a security id worth reporting in diagnostics.
ISSUANCE_ENTITY_TYPES = frozenset(
    {
        EntityType.STOCK_ISSUANCE,
        EntityType.CONVERTIBLE_ISSUANCE,
        EntityType.EQUITY_COMPENSATION_ISSUANCE,
        EntityType.WARRANT_ISSUANCE,
        EntityType.PLAN_SECURITY_ISSUANCE,
    }
)


def _standard_tags(entity_type: EntityType) -> OperationTags:
    name = pascal_case(entity_type.value)
    return OperationTags(f"OcfCreate{name}", f"OcfEdit{name}", f"OcfDelete{name}")


def _build_registry() -> Mapping[EntityType, OperationTags]:
    registry: dict[EntityType, OperationTags] = {}
    for entity_type in EntityType:
        if entity_type in PLAN_SECURITY_TO_EQUITY_COMPENSATION:
            registry[entity_type] = _standard_tags(PLAN_SECURITY_TO_EQUITY_COMPENSATION[entity_type])
        elif entity_type is EntityType.ISSUER:
            registry[entity_type] = OperationTags(create=None, edit="OcfEditIssuer", delete=None)
        else:
            registry[entity_type] = _standard_tags(entity_type)
    return MappingProxyType(registry)


OPERATION_TAGS = _build_registry()

# Contract field holding the entity's OCF data in its create argument.
ENTITY_DATA_FIELDS: Mapping[EntityType, str] = MappingProxyType(
    {
        EntityType.CONVERTIBLE_ACCEPTANCE: "acceptance_data",
        EntityType.CONVERTIBLE_CANCELLATION: "cancellation_data",
        EntityType.CONVERTIBLE_CONVERSION: "conversion_data",
        EntityType.CONVERTIBLE_ISSUANCE: "issuance_data",
        EntityType.CONVERTIBLE_RETRACTION: "retraction_data",
        EntityType.CONVERTIBLE_TRANSFER: "transfer_data",
        EntityType.DOCUMENT: "document_data",
        EntityType.EQUITY_COMPENSATION_ACCEPTANCE: "acceptance_data",
        EntityType.EQUITY_COMPENSATION_CANCELLATION: "cancellation_data",
        EntityType.EQUITY_COMPENSATION_EXERCISE: "exercise_data",
        EntityType.EQUITY_COMPENSATION_ISSUANCE: "issuance_data",
        EntityType.EQUITY_COMPENSATION_RELEASE: "release_data",
        EntityType.EQUITY_COMPENSATION_REPRICING: "repricing_data",
        EntityType.EQUITY_COMPENSATION_RETRACTION: "retraction_data",
        EntityType.EQUITY_COMPENSATION_TRANSFER: "transfer_data",
        EntityType.ISSUER: "issuer_data",
        EntityType.ISSUER_AUTHORIZED_SHARES_ADJUSTMENT: "adjustment_data",
        EntityType.PLAN_SECURITY_ACCEPTANCE: "acceptance_data",
        EntityType.PLAN_SECURITY_CANCELLATION: "cancellation_data",
        EntityType.PLAN_SECURITY_EXERCISE: "exercise_data",
        EntityType.PLAN_SECURITY_ISSUANCE: "issuance_data",
        EntityType.PLAN_SECURITY_RELEASE: "release_data",
        EntityType.PLAN_SECURITY_RETRACTION: "retraction_data",
        EntityType.PLAN_SECURITY_TRANSFER: "transfer_data",
        EntityType.STAKEHOLDER: "stakeholder_data",
        EntityType.STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT: "relationship_change_data",
        EntityType.STAKEHOLDER_STATUS_CHANGE_EVENT: "status_change_data",
        EntityType.STOCK_ACCEPTANCE: "acceptance_data",
        EntityType.STOCK_CANCELLATION: "cancellation_data",
        EntityType.STOCK_CLASS: "stock_class_data",
        EntityType.STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT: "adjustment_data",
        EntityType.STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT: "adjustment_data",
        EntityType.STOCK_CLASS_SPLIT: "split_data",
        EntityType.STOCK_CONSOLIDATION: "consolidation_data",
        EntityType.STOCK_CONVERSION: "conversion_data",
        EntityType.STOCK_ISSUANCE: "issuance_data",
        EntityType.STOCK_LEGEND_TEMPLATE: "stock_legend_template_data",
        EntityType.STOCK_PLAN: "stock_plan_data",
        EntityType.STOCK_PLAN_POOL_ADJUSTMENT: "adjustment_data",
        EntityType.STOCK_PLAN_RETURN_TO_POOL: "return_data",
        EntityType.STOCK_REISSUANCE: "reissuance_data",
        EntityType.STOCK_REPURCHASE: "repurchase_data",
        EntityType.STOCK_RETRACTION: "retraction_data",
        EntityType.STOCK_TRANSFER: "transfer_data",
        EntityType.VALUATION: "valuation_data",
        EntityType.VESTING_ACCELERATION: "vesting_acceleration_data",
        EntityType.VESTING_EVENT: "vesting_event_data",
        EntityType.VESTING_START: "vesting_start_data",
        EntityType.VESTING_TERMS: "vesting_terms_data",
        EntityType.WARRANT_ACCEPTANCE: "acceptance_data",
        EntityType.WARRANT_CANCELLATION: "cancellation_data",
        EntityType.WARRANT_EXERCISE: "exercise_data",
        EntityType.WARRANT_ISSUANCE: "issuance_data",
        EntityType.WARRANT_RETRACTION: "retraction_data",
        EntityType.WARRANT_TRANSFER: "transfer_data",
    }
)

_missing_data_fields = set(EntityType) - set(ENTITY_DATA_FIELDS)
if _missing_data_fields:
    raise RuntimeError(
        "Entity types without a contract data field: "
        + ", ".join(sorted(t.value for t in _missing_data_fields))
    )


def coerce_entity_type(value: EntityTypeLike, field_path: str = "entity_type") -> EntityType:
    """Resolve a string or EntityType to a catalog member.

    Raises:
        OcpValidationError: If the value names no known entity type
    """
    try:
        return EntityType(value)
    except ValueError:
        raise OcpValidationError(
            field_path,
            f"Unknown entity type: {value!r}",
            expected_type="EntityType",
            received_value=value,
            code=ErrorCode.UNKNOWN_ENTITY_TYPE,
        ) from None


def tag_for(entity_type: EntityType, kind: OperationKind) -> str:
    """Return the wire tag for an operation, rejecting unsupported ones."""
    tag = OPERATION_TAGS[entity_type].for_kind(kind)
    if tag is None:
        raise OcpValidationError(
            "type",
            f"{kind.value.capitalize()} operation not supported for entity type: {entity_type.value}",
            expected_type="EntityType",
            received_value=entity_type.value,
            code=ErrorCode.UNSUPPORTED_OPERATION,
        )
    return tag

"""Alias entity types and deprecated OCF field shapes.

Plan-security transactions are a specialization of the equity compensation
family and share its ledger contracts. Deprecated singular fields are still
accepted from callers but are rewritten to their plural form before any
conversion, so the deprecated shape never reaches the ledger.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .tags import PLAN_SECURITY_TO_EQUITY_COMPENSATION
from .types import EntityType

logger = logging.getLogger(__name__)

_PLAN_SECURITY_PREFIX = "TX_PLAN_SECURITY_"
_EQUITY_COMPENSATION_PREFIX = "TX_EQUITY_COMPENSATION_"


def normalize_entity_type(entity_type: EntityType) -> EntityType:
    """Map a plan-security alias to its equity compensation entity type."""
    return PLAN_SECURITY_TO_EQUITY_COMPENSATION.get(entity_type, entity_type)


def is_plan_security_type(entity_type: EntityType) -> bool:
    return entity_type in PLAN_SECURITY_TO_EQUITY_COMPENSATION


def normalize_object_type(object_type: str) -> str:
    """Map TX_PLAN_SECURITY_* object types to TX_EQUITY_COMPENSATION_*."""
    if object_type.startswith(_PLAN_SECURITY_PREFIX):
        return _EQUITY_COMPENSATION_PREFIX + object_type[len(_PLAN_SECURITY_PREFIX):]
    return object_type


def normalize_ocf_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of an OCF object with its object_type normalized."""
    result = dict(data)
    object_type = result.get("object_type")
    if isinstance(object_type, str):
        result["object_type"] = normalize_object_type(object_type)
    return result


@dataclass(frozen=True)
class DeprecatedField:
    """A deprecated OCF field and the field that replaces it."""

    field: str
    replacement: str
    kind: str = "singular_to_array"


@dataclass(frozen=True)
class DeprecatedFieldUsage:
    object_type: str
    field: str
    replacement: str
    value: Any


DEPRECATED_FIELDS: Mapping[str, tuple[DeprecatedField, ...]] = {
    "STOCK_PLAN": (DeprecatedField("stock_class_id", "stock_class_ids"),),
}


def check_deprecated_fields(object_type: str, data: Mapping[str, Any]) -> list[DeprecatedFieldUsage]:
    """List the deprecated fields present (and non-empty) in an OCF object."""
    usages = []
    for deprecated in DEPRECATED_FIELDS.get(object_type, ()):
        value = data.get(deprecated.field)
        if value is not None and value != "":
            usages.append(
                DeprecatedFieldUsage(object_type, deprecated.field, deprecated.replacement, value)
            )
    return usages


def normalize_singular_to_array(
    array_value: Any,
    singular_value: Any,
    field: str,
    replacement: str,
    context: Optional[str] = None,
) -> tuple[list[Any], bool]:
    """Resolve a deprecated singular field against its plural replacement.

    A non-empty plural list always wins. Otherwise a non-empty singular value
    is wrapped in a list and a DeprecationWarning is issued.

    Returns:
        The normalized list and whether the deprecated field was used
    """
    if isinstance(array_value, (list, tuple)) and array_value:
        return list(array_value), False

    if singular_value is not None and singular_value != "":
        where = f" in {context}" if context else ""
        message = f"'{field}'{where} is deprecated; use '{replacement}' instead"
        warnings.warn(message, DeprecationWarning, stacklevel=3)
        logger.debug("Normalized deprecated field: %s", message)
        return [singular_value], True

    return [], False


def normalize_deprecated_stock_plan_fields(data: Mapping[str, Any], context: str = "stockPlan") -> dict[str, Any]:
    """Return stock plan data with stock_class_id folded into stock_class_ids."""
    result = dict(data)
    stock_class_ids, _ = normalize_singular_to_array(
        result.get("stock_class_ids"),
        result.pop("stock_class_id", None),
        "stock_class_id",
        "stock_class_ids",
        context,
    )
    result["stock_class_ids"] = stock_class_ids
    return result

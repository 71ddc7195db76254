"""Diagnostic context for batches: per-item metadata and one-line summaries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from .tags import ISSUANCE_ENTITY_TYPES
from .types import EntityType, OperationKind

# OcfCreateStakeholder -> Stakeholder, OcfDeleteStockClassId -> StockClass
_TAG_PATTERN = re.compile(r"^Ocf(?:Create|Edit|Delete)?(.+?)(?:Id)?$")


@dataclass(frozen=True)
class BatchItemMeta:
    """What was in flight for one operation, independent of its wire payload."""

    entity_type: EntityType
    """The entity type as the caller named it (aliases are not resolved)."""

    ocf_id: str
    """The native id, or "unknown" when the input had no string id."""

    kind: OperationKind = OperationKind.CREATE

    security_id: Optional[str] = None
    """Set for issuance-like entity types only."""

    @classmethod
    def from_data(
        cls, entity_type: EntityType, kind: OperationKind, data: Any
    ) -> "BatchItemMeta":
        ocf_id = data.get("id") if isinstance(data, Mapping) else None
        security_id = None
        if entity_type in ISSUANCE_ENTITY_TYPES and isinstance(data, Mapping):
            candidate = data.get("security_id")
            security_id = candidate if isinstance(candidate, str) else None
        return cls(
            entity_type=entity_type,
            ocf_id=ocf_id if isinstance(ocf_id, str) else "unknown",
            kind=kind,
            security_id=security_id,
        )

    @classmethod
    def from_id(cls, entity_type: EntityType, kind: OperationKind, ocf_id: Any) -> "BatchItemMeta":
        return cls(
            entity_type=entity_type,
            ocf_id=ocf_id if isinstance(ocf_id, str) else "unknown",
            kind=kind,
        )

    def describe(self) -> str:
        text = f"{self.kind.value} {self.entity_type.value} {self.ocf_id}"
        if self.security_id:
            text += f" (security {self.security_id})"
        return text


@dataclass(frozen=True)
class BatchSummary:
    creates: int
    edits: int
    deletes: int
    entity_types: tuple[str, ...]
    formatted: str

    @property
    def total(self) -> int:
        return self.creates + self.edits + self.deletes


def entity_type_from_tag(tag: str) -> str:
    """Human-readable entity name carried in a wire tag."""
    match = _TAG_PATTERN.match(tag)
    return match.group(1) if match else tag


def summarize(
    creates: Sequence[Any], edits: Sequence[Any], deletes: Sequence[Any]
) -> BatchSummary:
    """Summarize three operation lists of ``{tag, value}`` items.

    Entity types are listed in order of first appearance.
    """
    seen: dict[str, None] = {}
    for item in (*creates, *edits, *deletes):
        tag = _tag_of(item)
        if tag:
            seen.setdefault(entity_type_from_tag(tag), None)
    types = tuple(seen)
    formatted = (
        f"[batch: {len(creates)} creates, {len(edits)} edits, {len(deletes)} deletes; "
        f"types: {', '.join(types)}]"
    )
    return BatchSummary(len(creates), len(edits), len(deletes), types, formatted)


def _tag_of(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        tag = item.get("tag")
    else:
        tag = getattr(item, "tag", None)
    return tag if isinstance(tag, str) else None


def describe_items(items: Iterable[BatchItemMeta]) -> str:
    return "; ".join(item.describe() for item in items)

"""JSON-safety check for outgoing payloads.

An UNDEFINED value anywhere in a payload would be dropped or rejected during
JSON serialization, so the record reaching the ledger would be short a field
and fail remotely with an unattributable schema mismatch. This module finds
such values locally, before submission.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional, Sequence

from ._numeric import UNDEFINED
from .errors import ErrorCode, OcpValidationError

_OPERATION_LISTS = ("creates", "edits", "deletes")


def _walk(value: Any, path: str) -> Iterator[str]:
    if value is UNDEFINED:
        yield path
    elif isinstance(value, Mapping):
        for key, child in value.items():
            yield from _walk(child, f"{path}.{key}" if path else str(key))
    elif isinstance(value, (list, tuple)):
        for i, child in enumerate(value):
            yield from _walk(child, f"{path}[{i}]")


def find_undefined(value: Any, path: str = "") -> Optional[str]:
    """Return the path of the first UNDEFINED value, or None if there is none."""
    return next(_walk(value, path), None)


def assert_json_safe(payload: Any, meta: Optional[Mapping[str, Sequence[Any]]] = None) -> None:
    """Raise if ``payload`` holds an UNDEFINED value at any depth.

    ``meta`` maps each operation list name (creates, edits, deletes) to the
    per-item metadata recorded by the batch, so an offending path such as
    ``creates[2].value.stock_class_ids`` can be attributed to an entity.

    Raises:
        OcpValidationError: Naming the path of the first UNDEFINED value found
    """
    path = find_undefined(payload)
    if path is None:
        return

    message = f"Payload contains an undefined value at {path}"
    item = _item_for_path(path, meta)
    if item is not None:
        message += f" (entityType: {item.entity_type}, ocfId: {item.ocf_id})"
    raise OcpValidationError(
        path,
        message,
        expected_type="JSON value",
        code=ErrorCode.INVALID_TYPE,
    )


def _item_for_path(path: str, meta: Optional[Mapping[str, Sequence[Any]]]) -> Any:
    if not meta:
        return None
    for name in _OPERATION_LISTS:
        prefix = f"{name}["
        if not path.startswith(prefix):
            continue
        index_text = path[len(prefix):].split("]", 1)[0]
        if not index_text.isdigit():
            return None
        items = meta.get(name, ())
        index = int(index_text)
        return items[index] if index < len(items) else None
    return None

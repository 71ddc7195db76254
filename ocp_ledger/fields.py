"""Field codecs and record schemas describing the ledger wire shape.

A RecordSchema is the structural model of one ledger record: an ordered list
of fields, each with a codec that encodes the native value to its wire form
and decodes it back. Encoding always writes every field, so optional fields
reach the ledger as an explicit null (or empty list). Decoding omits optional
fields that are null or empty, so a native record read back only contains
what was actually set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ._numeric import (
    UNDEFINED,
    clean_comments,
    date_to_ledger_time,
    ledger_time_to_date,
    normalize_numeric_string,
)
from .enums import AUTHORIZED_SHARES, EnumTable
from .errors import ErrorCode, OcpParseError, OcpValidationError


def _is_empty(value: Any) -> bool:
    return value is None or value is UNDEFINED or (isinstance(value, str) and value == "")


class Codec:
    """Converts one field value between its native and ledger forms."""

    expected_type = "value"
    # Write-only codecs emit a fixed wire value and are never read back.
    write_only = False

    def encode(self, value: Any, path: str) -> Any:
        return value

    def decode(self, value: Any, path: str) -> Any:
        return value

    def missing(self) -> Any:
        """Wire value for an optional field the caller did not set."""
        return None

    def _invalid(self, path: str, message: str, value: Any) -> OcpValidationError:
        return OcpValidationError(
            path,
            message,
            expected_type=self.expected_type,
            received_value=value,
            code=ErrorCode.INVALID_FORMAT,
        )


class Text(Codec):
    expected_type = "string"

    def encode(self, value: Any, path: str) -> str:
        if not isinstance(value, str):
            raise OcpValidationError(
                path,
                f"Expected a string, got {type(value).__name__}",
                expected_type=self.expected_type,
                received_value=value,
                code=ErrorCode.INVALID_TYPE,
            )
        return value


class Bool(Codec):
    expected_type = "boolean"

    def __init__(self, default: Optional[bool] = None) -> None:
        self.default = default

    def encode(self, value: Any, path: str) -> bool:
        if not isinstance(value, bool):
            raise OcpValidationError(
                path,
                f"Expected a boolean, got {type(value).__name__}",
                expected_type=self.expected_type,
                received_value=value,
                code=ErrorCode.INVALID_TYPE,
            )
        return value

    def missing(self) -> Optional[bool]:
        return self.default


class Numeric(Codec):
    expected_type = "numeric string"

    def encode(self, value: Any, path: str) -> str:
        try:
            return normalize_numeric_string(value)
        except ValueError as err:
            raise self._invalid(path, str(err), value) from err

    def decode(self, value: Any, path: str) -> str:
        try:
            return normalize_numeric_string(value)
        except ValueError as err:
            raise OcpParseError(f"{path}: {err}", source=path) from err


class Date(Codec):
    """Native "YYYY-MM-DD" dates; midnight UTC timestamps on the ledger."""

    expected_type = "date string"

    def encode(self, value: Any, path: str) -> str:
        try:
            return date_to_ledger_time(value)
        except ValueError as err:
            raise self._invalid(path, str(err), value) from err

    def decode(self, value: Any, path: str) -> str:
        if not isinstance(value, str):
            raise OcpParseError(f"{path}: expected a timestamp string", source=path)
        return ledger_time_to_date(value)


class Enum(Codec):
    def __init__(self, table: EnumTable) -> None:
        self.table = table
        self.expected_type = table.name

    def encode(self, value: Any, path: str) -> str:
        return self.table.to_ledger(value, path)

    def decode(self, value: Any, path: str) -> str:
        return self.table.from_ledger(value, path)


class Comments(Codec):
    expected_type = "list of strings"

    def encode(self, value: Any, path: str) -> list[str]:
        if not isinstance(value, (list, tuple)):
            raise self._invalid(path, "Expected a list of comments", value)
        return clean_comments(value)

    def decode(self, value: Any, path: str) -> list[str]:
        return list(value or [])

    def missing(self) -> list[str]:
        return []


class ListOf(Codec):
    """A list of items sharing one codec.

    ``keep`` drops native items before encoding (for example zero-amount
    vestings); ``min_items`` rejects lists that are too short.
    """

    def __init__(
        self,
        item: Codec,
        min_items: int = 0,
        keep: Optional[Callable[[Any], bool]] = None,
    ) -> None:
        self.item = item
        self.min_items = min_items
        self.keep = keep
        self.expected_type = f"list of {item.expected_type}"

    def encode(self, value: Any, path: str) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise OcpValidationError(
                path,
                f"Expected a list, got {type(value).__name__}",
                expected_type=self.expected_type,
                received_value=value,
                code=ErrorCode.INVALID_TYPE,
            )
        if len(value) < self.min_items:
            raise OcpValidationError(
                path,
                f"Must contain at least {self.min_items} element(s)",
                expected_type=self.expected_type,
                received_value=value,
                code=ErrorCode.OUT_OF_RANGE,
            )
        items = [v for v in value if self.keep is None or self.keep(v)]
        return [self.item.encode(v, f"{path}[{i}]") for i, v in enumerate(items)]

    def decode(self, value: Any, path: str) -> list[Any]:
        if not isinstance(value, list):
            raise OcpParseError(f"{path}: expected a list", source=path)
        return [self.item.decode(v, f"{path}[{i}]") for i, v in enumerate(value)]

    def missing(self) -> list[Any]:
        return []


class FirstOf(Codec):
    """Writes only the first element of a native list as a singular wire value.

    Reading back yields a one-element list. This is a narrowing mapping: any
    further elements are dropped.
    """

    def __init__(self, item: Codec) -> None:
        self.item = item
        self.expected_type = f"non-empty list of {item.expected_type}"

    def encode(self, value: Any, path: str) -> Any:
        if not isinstance(value, (list, tuple)) or not value:
            raise OcpValidationError(
                path,
                "Must contain at least 1 element(s)",
                expected_type=self.expected_type,
                received_value=value,
                code=ErrorCode.OUT_OF_RANGE,
            )
        return self.item.encode(value[0], f"{path}[0]")

    def decode(self, value: Any, path: str) -> list[Any]:
        return [self.item.decode(value, path)]


class Const(Codec):
    """Always writes a fixed value, ignoring the native record."""

    write_only = True

    def __init__(self, value: Any) -> None:
        self.value = value

    def encode(self, value: Any, path: str) -> Any:
        return self.value


class Literal(Codec):
    """A discriminator-like string that must equal one fixed value."""

    def __init__(self, value: str) -> None:
        self.value = value
        self.expected_type = repr(value)

    def encode(self, value: Any, path: str) -> str:
        if value != self.value:
            raise self._invalid(path, f"Expected {self.value!r}, got {value!r}", value)
        return self.value

    def decode(self, value: Any, path: str) -> str:
        return self.value

    def missing(self) -> str:
        return self.value


class Nested(Codec):
    """A nested record. With ``null_if_empty`` an all-empty record is written as null."""

    def __init__(self, schema: "RecordSchema", null_if_empty: bool = False) -> None:
        self.schema = schema
        self.null_if_empty = null_if_empty
        self.expected_type = schema.name

    def encode(self, value: Any, path: str) -> Any:
        record = self.schema.encode(value, path)
        if self.null_if_empty and all(v in (None, []) for v in record.values()):
            return None
        return record

    def decode(self, value: Any, path: str) -> dict[str, Any]:
        return self.schema.decode(value, path)


class Wrapped(Codec):
    """A single-constructor tagged variant around a nested codec."""

    def __init__(self, tag: str, inner: Codec) -> None:
        self.tag = tag
        self.inner = inner
        self.expected_type = inner.expected_type

    def encode(self, value: Any, path: str) -> dict[str, Any]:
        return {"tag": self.tag, "value": self.inner.encode(value, path)}

    def decode(self, value: Any, path: str) -> Any:
        if not isinstance(value, Mapping) or value.get("tag") != self.tag:
            raise OcpParseError(
                f"{path}: expected variant {self.tag!r}",
                source=path,
                code=ErrorCode.UNKNOWN_ENUM_VALUE,
            )
        return self.inner.decode(value.get("value"), path)


@dataclass(frozen=True)
class VariantCase:
    """One arm of a discriminated union.

    The payload is either a record schema (its fields sit beside the
    discriminator on the native side) or a single scalar field.
    """

    native: str
    tag: str
    schema: Optional["RecordSchema"] = None
    scalar: Optional[tuple[str, Codec]] = None


class Variant(Codec):
    """Native ``{type: ..., ...}`` unions encoded as ``{tag, value}``.

    The mapping is closed: an unknown discriminator is an error on both sides.
    """

    def __init__(self, name: str, cases: Sequence[VariantCase], key: str = "type") -> None:
        self.name = name
        self.key = key
        self.expected_type = name
        self._by_native = {case.native: case for case in cases}
        self._by_tag = {case.tag: case for case in cases}

    def encode(self, value: Any, path: str) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise OcpValidationError(
                path,
                f"Expected an object with a '{self.key}' discriminator",
                expected_type=self.name,
                received_value=value,
                code=ErrorCode.INVALID_TYPE,
            )
        discriminator = value.get(self.key)
        try:
            case = self._by_native[discriminator]
        except (KeyError, TypeError):
            raise OcpValidationError(
                f"{path}.{self.key}",
                f"Unknown {self.name}: {discriminator!r}. "
                f"Expected one of: {', '.join(self._by_native)}",
                expected_type=self.name,
                received_value=discriminator,
                code=ErrorCode.UNKNOWN_ENUM_VALUE,
            ) from None
        if case.scalar is not None:
            name, codec = case.scalar
            if _is_empty(value.get(name)):
                raise OcpValidationError(
                    f"{path}.{name}",
                    "Required field is missing or empty",
                    expected_type=codec.expected_type,
                    code=ErrorCode.REQUIRED_FIELD_MISSING,
                )
            payload: Any = codec.encode(value[name], f"{path}.{name}")
        elif case.schema is not None:
            payload = case.schema.encode(value, path)
        else:
            payload = {}
        return {"tag": case.tag, "value": payload}

    def decode(self, value: Any, path: str) -> dict[str, Any]:
        if not isinstance(value, Mapping) or "tag" not in value:
            raise OcpParseError(f"{path}: expected a tagged variant", source=path)
        try:
            case = self._by_tag[value["tag"]]
        except (KeyError, TypeError):
            raise OcpParseError(
                f"Unknown ledger {self.name}: {value['tag']!r}",
                source=path,
                code=ErrorCode.UNKNOWN_ENUM_VALUE,
            ) from None
        native: dict[str, Any] = {self.key: case.native}
        if case.scalar is not None:
            name, codec = case.scalar
            native[name] = codec.decode(value.get("value"), f"{path}.{name}")
        elif case.schema is not None:
            native.update(case.schema.decode(value.get("value"), path))
        return native


class InitialShares(Codec):
    """Authorized share counts: a number, or UNLIMITED / NOT_APPLICABLE."""

    expected_type = "numeric string or authorized shares enum"

    def encode(self, value: Any, path: str) -> dict[str, Any]:
        if value in AUTHORIZED_SHARES.values:
            return {
                "tag": "OcfInitialSharesEnum",
                "value": AUTHORIZED_SHARES.to_ledger(value, path),
            }
        return {"tag": "OcfInitialSharesNumeric", "value": NUMERIC.encode(value, path)}

    def decode(self, value: Any, path: str) -> str:
        tag = value.get("tag") if isinstance(value, Mapping) else None
        if tag == "OcfInitialSharesNumeric":
            return NUMERIC.decode(value.get("value"), path)
        if tag == "OcfInitialSharesEnum":
            return AUTHORIZED_SHARES.from_ledger(value.get("value"), path)
        raise OcpParseError(
            f"{path}: unknown initial shares variant {tag!r}",
            source=path,
            code=ErrorCode.UNKNOWN_ENUM_VALUE,
        )


@dataclass(frozen=True)
class Field:
    name: str
    codec: Codec
    required: bool = False
    wire_name: Optional[str] = None

    @property
    def wire(self) -> str:
        return self.wire_name or self.name


def req(name: str, codec: Codec, wire: Optional[str] = None) -> Field:
    return Field(name, codec, required=True, wire_name=wire)


def opt(name: str, codec: Codec, wire: Optional[str] = None) -> Field:
    return Field(name, codec, required=False, wire_name=wire)


Check = Callable[[Mapping[str, Any], str], None]


class RecordSchema:
    """Ordered field layout of one ledger record."""

    def __init__(
        self,
        name: str,
        fields: Iterable[Field],
        checks: Sequence[Check] = (),
    ) -> None:
        self.name = name
        self.fields = tuple(fields)
        self.checks = tuple(checks)

    def extend(self, name: str, fields: Iterable[Field], checks: Sequence[Check] = ()) -> "RecordSchema":
        """A new schema with this one's fields followed by ``fields``."""
        return RecordSchema(name, self.fields + tuple(fields), self.checks + tuple(checks))

    def encode(self, data: Any, path: Optional[str] = None) -> dict[str, Any]:
        path = path or self.name
        if not isinstance(data, Mapping):
            raise OcpValidationError(
                path,
                f"Expected an object, got {type(data).__name__}",
                expected_type="object",
                received_value=data,
                code=ErrorCode.INVALID_TYPE,
            )

        for check in self.checks:
            check(data, path)

        record: dict[str, Any] = {}
        for fld in self.fields:
            field_path = f"{path}.{fld.name}"
            if fld.codec.write_only:
                record[fld.wire] = fld.codec.encode(None, field_path)
                continue

            value = data.get(fld.name, UNDEFINED)
            if _is_empty(value):
                if fld.required:
                    raise OcpValidationError(
                        field_path,
                        "Required field is missing or empty",
                        expected_type=fld.codec.expected_type,
                        received_value=None if value is UNDEFINED else value,
                        code=ErrorCode.REQUIRED_FIELD_MISSING,
                    )
                record[fld.wire] = fld.codec.missing()
                continue

            record[fld.wire] = fld.codec.encode(value, field_path)
        return record

    def decode(self, record: Any, path: Optional[str] = None) -> dict[str, Any]:
        path = path or self.name
        if not isinstance(record, Mapping):
            raise OcpParseError(
                f"{path}: expected an object, got {type(record).__name__}",
                source=path,
            )

        native: dict[str, Any] = {}
        for fld in self.fields:
            if fld.codec.write_only:
                continue
            raw = record.get(fld.wire)
            if raw is None:
                if fld.required:
                    raise OcpParseError(
                        f"Missing required field '{fld.wire}' in {path}",
                        source=path,
                        code=ErrorCode.SCHEMA_MISMATCH,
                    )
                missing = fld.codec.missing()
                if missing is not None and missing != []:
                    native[fld.name] = missing
                continue

            value = fld.codec.decode(raw, f"{path}.{fld.name}")
            if not fld.required and (value is None or value == []):
                continue
            native[fld.name] = value
        return native


TEXT = Text()
NUMERIC = Numeric()
DATE = Date()
COMMENTS = Comments()
STRINGS = ListOf(TEXT)

MONETARY = RecordSchema("monetary", [req("amount", NUMERIC), req("currency", TEXT)])
MONEY = Nested(MONETARY)

RATIO = RecordSchema("ratio", [req("numerator", NUMERIC), req("denominator", NUMERIC)])

SECURITY_LAW_EXEMPTION = RecordSchema(
    "security_law_exemption",
    [req("description", TEXT), req("jurisdiction", TEXT)],
)

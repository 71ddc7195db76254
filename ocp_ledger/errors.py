"""Error handling for the ocp_ledger package."""

from enum import IntEnum
from typing import Any, Optional


class ErrorCode(IntEnum):
    """Machine-readable error codes attached to every OcpError."""

    REQUIRED_FIELD_MISSING = 1
    INVALID_TYPE = 2
    INVALID_FORMAT = 3
    OUT_OF_RANGE = 4
    UNKNOWN_ENUM_VALUE = 5
    UNKNOWN_ENTITY_TYPE = 6
    UNSUPPORTED_OPERATION = 7
    SCHEMA_MISMATCH = 8
    INVALID_RESPONSE = 9
    CHOICE_FAILED = 10
    RESULT_NOT_FOUND = 11
    CONNECTION_FAILED = 12


class OcpError(Exception):
    """Base exception for all ocp_ledger errors."""

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.code = code

    @property
    def message(self) -> str:
        return str(self)

    @property
    def cause(self) -> Optional[BaseException]:
        """The underlying error this one wraps, if any."""
        return self.__cause__


class OcpValidationError(OcpError):
    """Raised locally when input data is missing, malformed or not allowed.

    Always raised before any network interaction. ``field_path`` names the
    offending field, e.g. ``stockIssuance.security_id`` or
    ``creates[2].value.stock_class_ids``.
    """

    def __init__(
        self,
        field_path: str,
        message: str,
        expected_type: Optional[str] = None,
        received_value: Any = None,
        code: ErrorCode = ErrorCode.REQUIRED_FIELD_MISSING,
    ):
        super().__init__(f"Validation error at '{field_path}': {message}", code)
        self.field_path = field_path
        self.expected_type = expected_type
        self.received_value = received_value


class OcpContractError(OcpError):
    """Raised when the ledger rejects a choice or its result cannot be found."""

    def __init__(
        self,
        message: str,
        contract_id: Optional[str] = None,
        template_id: Optional[str] = None,
        choice: Optional[str] = None,
        code: ErrorCode = ErrorCode.CHOICE_FAILED,
    ):
        super().__init__(message, code)
        self.contract_id = contract_id
        self.template_id = template_id
        self.choice = choice
        # Set by CapTableBatch.execute: the BatchSummary and per-item metadata
        self.summary: Any = None
        self.batch_items: Optional[dict[str, list[Any]]] = None


class OcpParseError(OcpError):
    """Raised when data read back from the ledger has an unexpected shape."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        code: ErrorCode = ErrorCode.INVALID_RESPONSE,
    ):
        super().__init__(message, code)
        self.source = source


class OcpNetworkError(OcpError):
    """Raised by transports when the ledger cannot be reached."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        code: ErrorCode = ErrorCode.CONNECTION_FAILED,
    ):
        super().__init__(message, code)
        self.endpoint = endpoint
        self.status_code = status_code


def error_code_to_string(code: int) -> str:
    """Convert an error code to a human-readable string."""
    try:
        error = ErrorCode(code)
        return error.name.replace("_", " ").title()
    except ValueError:
        return f"Unknown Error Code ({code})"

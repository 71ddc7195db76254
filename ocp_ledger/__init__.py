"""
ocp_ledger - convert OCF cap table data to ledger contract payloads and back.

This package turns native Open Cap Table Format records into the tagged
variant payloads of a cap table contract's UpdateCapTable choice, batches
creates, edits and deletes into one atomic submission, and reads entities
back from the ledger as native OCF.
"""

__version__ = "0.1.0"

import logging

from .errors import (
    OcpError,
    OcpValidationError,
    OcpContractError,
    OcpParseError,
    OcpNetworkError,
    ErrorCode,
    error_code_to_string,
)
from ._numeric import (
    UNDEFINED,
    normalize_numeric_string,
    date_to_ledger_time,
    ledger_time_to_date,
    optional_string,
    clean_comments,
)
from .types import EntityType, OperationKind, OperationTags
from .tags import OPERATION_TAGS, ISSUANCE_ENTITY_TYPES, ENTITY_DATA_FIELDS
from .entities import CONVERTERS, to_ledger, from_ledger
from .aliases import (
    normalize_entity_type,
    normalize_object_type,
    normalize_ocf_data,
    check_deprecated_fields,
)
from .safety import assert_json_safe, find_undefined
from .diagnostics import BatchItemMeta, BatchSummary
from .batch import (
    CapTableBatch,
    CapTableBatchParams,
    DEFAULT_CAP_TABLE_TEMPLATE_ID,
    UPDATE_CAP_TABLE_CHOICE,
    build_update_cap_table_command,
    resolve_template_id,
)
from .wire import CommandWithDisclosedContracts, extract_update_id
from .reader import (
    CapTableState,
    EntityRead,
    extract_create_argument,
    extract_entity_data,
    convert_to_ocf,
    get_entity_as_ocf,
    get_cap_table_state,
)
from .schema import validate_ocf
from .transport import LedgerTransport

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Conversion
    "EntityType",
    "CONVERTERS",
    "to_ledger",
    "from_ledger",
    "OperationKind",
    "OperationTags",
    "OPERATION_TAGS",
    "ISSUANCE_ENTITY_TYPES",
    "ENTITY_DATA_FIELDS",
    # Batches
    "CapTableBatch",
    "CapTableBatchParams",
    "DEFAULT_CAP_TABLE_TEMPLATE_ID",
    "UPDATE_CAP_TABLE_CHOICE",
    "build_update_cap_table_command",
    "resolve_template_id",
    "CommandWithDisclosedContracts",
    "BatchItemMeta",
    "BatchSummary",
    "extract_update_id",
    "assert_json_safe",
    "find_undefined",
    # Reading
    "CapTableState",
    "EntityRead",
    "extract_create_argument",
    "extract_entity_data",
    "convert_to_ocf",
    "get_entity_as_ocf",
    "get_cap_table_state",
    "LedgerTransport",
    # Aliases and deprecations
    "normalize_entity_type",
    "normalize_object_type",
    "normalize_ocf_data",
    "check_deprecated_fields",
    "validate_ocf",
    # Normalization
    "UNDEFINED",
    "normalize_numeric_string",
    "date_to_ledger_time",
    "ledger_time_to_date",
    "optional_string",
    "clean_comments",
    # Errors
    "OcpError",
    "OcpValidationError",
    "OcpContractError",
    "OcpParseError",
    "OcpNetworkError",
    "ErrorCode",
    "error_code_to_string",
]

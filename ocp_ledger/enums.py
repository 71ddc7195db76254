"""Closed two-way tables between native OCF enum values and ledger enum constructors."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .errors import ErrorCode, OcpParseError, OcpValidationError


def pascal_case(name: str) -> str:
    """Convert an UPPER_SNAKE or camelCase name to PascalCase."""
    if "_" in name or name.isupper():
        return "".join(part.capitalize() for part in name.lower().split("_"))
    return name[:1].upper() + name[1:]


class EnumTable:
    """A bijective mapping between native values and ledger constructor names.

    Unknown values are never guessed: encoding raises OcpValidationError and
    decoding raises OcpParseError, both with code UNKNOWN_ENUM_VALUE.
    """

    def __init__(self, name: str, mapping: Mapping[str, str]) -> None:
        self.name = name
        self._to_ledger = dict(mapping)
        self._from_ledger = {tag: value for value, tag in mapping.items()}
        if len(self._from_ledger) != len(self._to_ledger):
            raise ValueError(f"Enum table {name!r} is not one-to-one")

    @classmethod
    def generated(cls, name: str, prefix: str, values: Iterable[str]) -> "EnumTable":
        return cls(name, {value: prefix + pascal_case(value) for value in values})

    @property
    def values(self) -> list[str]:
        return list(self._to_ledger)

    @property
    def tags(self) -> list[str]:
        return list(self._from_ledger)

    def to_ledger(self, value: Any, path: str) -> str:
        try:
            return self._to_ledger[value]
        except (KeyError, TypeError):
            raise OcpValidationError(
                path,
                f"Unknown {self.name}: {value!r}. Expected one of: {', '.join(self._to_ledger)}",
                expected_type=self.name,
                received_value=value,
                code=ErrorCode.UNKNOWN_ENUM_VALUE,
            ) from None

    def from_ledger(self, tag: Any, path: str) -> str:
        try:
            return self._from_ledger[tag]
        except (KeyError, TypeError):
            raise OcpParseError(
                f"Unknown ledger {self.name}: {tag!r}",
                source=path,
                code=ErrorCode.UNKNOWN_ENUM_VALUE,
            ) from None


STAKEHOLDER_TYPE = EnumTable.generated(
    "stakeholder type", "OcfStakeholderType", ["INDIVIDUAL", "INSTITUTION"]
)

STAKEHOLDER_STATUS = EnumTable.generated(
    "stakeholder status",
    "OcfStakeholderStatus",
    [
        "ACTIVE",
        "LEAVE_OF_ABSENCE",
        "TERMINATION_VOLUNTARY_OTHER",
        "TERMINATION_VOLUNTARY_GOOD_CAUSE",
        "TERMINATION_VOLUNTARY_RETIREMENT",
        "TERMINATION_INVOLUNTARY_OTHER",
        "TERMINATION_INVOLUNTARY_DEATH",
        "TERMINATION_INVOLUNTARY_DISABILITY",
        "TERMINATION_INVOLUNTARY_WITH_CAUSE",
    ],
)

STAKEHOLDER_RELATIONSHIP = EnumTable.generated(
    "stakeholder relationship",
    "OcfRel",
    ["EMPLOYEE", "ADVISOR", "INVESTOR", "FOUNDER", "BOARD_MEMBER", "OFFICER", "OTHER"],
)

EMAIL_TYPE = EnumTable.generated("email type", "OcfEmailType", ["PERSONAL", "BUSINESS", "OTHER"])

PHONE_TYPE = EnumTable.generated(
    "phone type", "OcfPhoneType", ["HOME", "MOBILE", "BUSINESS", "OTHER"]
)

ADDRESS_TYPE = EnumTable.generated("address type", "OcfAddressType", ["LEGAL", "CONTACT", "OTHER"])

STOCK_CLASS_TYPE = EnumTable.generated("stock class type", "OcfStockClassType", ["COMMON", "PREFERRED"])

STOCK_ISSUANCE_TYPE = EnumTable(
    "stock issuance type",
    {"RSA": "OcfStockIssuanceRSA", "FOUNDERS_STOCK": "OcfStockIssuanceFounders"},
)

COMPENSATION_TYPE = EnumTable(
    "compensation type",
    {
        "OPTION_NSO": "OcfCompensationTypeOptionNSO",
        "OPTION_ISO": "OcfCompensationTypeOptionISO",
        "OPTION": "OcfCompensationTypeOption",
        "RSU": "OcfCompensationTypeRSU",
        "CSAR": "OcfCompensationTypeCSAR",
        "SSAR": "OcfCompensationTypeSSAR",
    },
)

# "OTHER" has no ledger counterpart and is rejected rather than coerced.
PLAN_SECURITY_TYPE = EnumTable(
    "plan security type",
    {"OPTION": "OcfCompensationTypeOption", "RSU": "OcfCompensationTypeRSU"},
)

TERMINATION_REASON = EnumTable.generated(
    "termination window reason",
    "OcfTerm",
    [
        "VOLUNTARY_OTHER",
        "VOLUNTARY_GOOD_CAUSE",
        "VOLUNTARY_RETIREMENT",
        "INVOLUNTARY_OTHER",
        "INVOLUNTARY_DEATH",
        "INVOLUNTARY_DISABILITY",
        "INVOLUNTARY_WITH_CAUSE",
    ],
)

PERIOD_TYPE = EnumTable.generated("period type", "OcfPeriod", ["DAYS", "MONTHS", "YEARS"])

CANCELLATION_BEHAVIOR = EnumTable.generated(
    "stock plan cancellation behavior",
    "OcfPlanCancel",
    ["RETIRE", "RETURN_TO_POOL", "HOLD_AS_CAPITAL_STOCK", "DEFINED_PER_PLAN_SECURITY"],
)

ALLOCATION_TYPE = EnumTable(
    "allocation type",
    {
        "CUMULATIVE_ROUNDING": "OcfAllocationCumulativeRounding",
        "CUMULATIVE_ROUND_DOWN": "OcfAllocationCumulativeRoundDown",
        "FRONT_LOADED": "OcfAllocationFrontLoaded",
        "BACK_LOADED": "OcfAllocationBackLoaded",
        "FRONT_LOADED_SINGLE_TRANCHE": "OcfAllocationFrontLoadedToSingleTranche",
        "BACK_LOADED_SINGLE_TRANCHE": "OcfAllocationBackLoadedToSingleTranche",
        "FRACTIONAL": "OcfAllocationFractional",
    },
)

VESTING_DAY = EnumTable(
    "vesting day of month",
    {
        **{f"{day:02d}": f"OcfVestingDay{day:02d}" for day in range(1, 29)},
        "29_OR_LAST_DAY_OF_MONTH": "OcfVestingDay29OrLast",
        "30_OR_LAST_DAY_OF_MONTH": "OcfVestingDay30OrLast",
        "31_OR_LAST_DAY_OF_MONTH": "OcfVestingDay31OrLast",
        "VESTING_START_DAY_OR_LAST_DAY_OF_MONTH": "OcfVestingStartDayOrLast",
    },
)

CONVERTIBLE_TYPE = EnumTable.generated("convertible type", "OcfConvertible", ["NOTE", "SAFE", "SECURITY"])

CONVERSION_TRIGGER_TYPE = EnumTable.generated(
    "conversion trigger type",
    "OcfTriggerTypeType",
    [
        "AUTOMATIC_ON_CONDITION",
        "AUTOMATIC_ON_DATE",
        "ELECTIVE_AT_WILL",
        "ELECTIVE_ON_CONDITION",
        "ELECTIVE_IN_RANGE",
        "UNSPECIFIED",
    ],
)

STOCK_CLASS_CONVERSION_TRIGGER = EnumTable.generated(
    "stock class conversion trigger",
    "OcfTriggerType",
    ["AUTOMATIC_ON_CONDITION", "AUTOMATIC_ON_DATE", "ELECTIVE_AT_WILL", "ELECTIVE_ON_CONDITION"],
)

STOCK_CLASS_CONVERSION_MECHANISM = EnumTable(
    "stock class conversion mechanism",
    {
        "RATIO_CONVERSION": "OcfConversionMechanismRatioConversion",
        "PERCENT_CONVERSION": "OcfConversionMechanismPercentCapitalizationConversion",
        "FIXED_AMOUNT_CONVERSION": "OcfConversionMechanismFixedAmountConversion",
    },
)

ROUNDING_TYPE = EnumTable.generated("rounding type", "OcfRounding", ["CEILING", "FLOOR", "NORMAL"])

QUANTITY_SOURCE = EnumTable.generated(
    "quantity source",
    "OcfQuantity",
    [
        "HUMAN_ESTIMATED",
        "MACHINE_ESTIMATED",
        "UNSPECIFIED",
        "INSTRUMENT_FIXED",
        "INSTRUMENT_MAX",
        "INSTRUMENT_MIN",
    ],
)

VALUATION_TYPE = EnumTable("valuation type", {"409A": "OcfValuationType409A"})

DAY_COUNT = EnumTable(
    "day count convention",
    {"ACTUAL_365": "OcfDayCountActual365", "30_360": "OcfDayCount30_360"},
)

INTEREST_PAYOUT = EnumTable.generated("interest payout", "OcfInterestPayout", ["DEFERRED", "CASH"])

ACCRUAL_PERIOD = EnumTable.generated(
    "interest accrual period",
    "OcfAccrual",
    ["DAILY", "MONTHLY", "QUARTERLY", "SEMI_ANNUAL", "ANNUAL"],
)

COMPOUNDING_TYPE = EnumTable.generated("compounding type", "Ocf", ["SIMPLE", "COMPOUNDING"])

CONVERSION_TIMING = EnumTable.generated(
    "conversion timing", "OcfConversionTiming", ["PRE_MONEY", "POST_MONEY"]
)

AUTHORIZED_SHARES = EnumTable.generated(
    "authorized shares", "OcfAuthorizedShares", ["NOT_APPLICABLE", "UNLIMITED"]
)

OBJECT_TYPE = EnumTable.generated(
    "object type",
    "OcfObj",
    [
        "ISSUER",
        "STAKEHOLDER",
        "STOCK_CLASS",
        "STOCK_LEGEND_TEMPLATE",
        "STOCK_PLAN",
        "VALUATION",
        "VESTING_TERMS",
        "FINANCING",
        "DOCUMENT",
        "CE_STAKEHOLDER_RELATIONSHIP",
        "CE_STAKEHOLDER_STATUS",
        "TX_ISSUER_AUTHORIZED_SHARES_ADJUSTMENT",
        "TX_STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT",
        "TX_STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT",
        "TX_STOCK_CLASS_SPLIT",
        "TX_STOCK_PLAN_POOL_ADJUSTMENT",
        "TX_STOCK_PLAN_RETURN_TO_POOL",
        "TX_CONVERTIBLE_ACCEPTANCE",
        "TX_CONVERTIBLE_CANCELLATION",
        "TX_CONVERTIBLE_CONVERSION",
        "TX_CONVERTIBLE_ISSUANCE",
        "TX_CONVERTIBLE_RETRACTION",
        "TX_CONVERTIBLE_TRANSFER",
        "TX_EQUITY_COMPENSATION_ACCEPTANCE",
        "TX_EQUITY_COMPENSATION_CANCELLATION",
        "TX_EQUITY_COMPENSATION_EXERCISE",
        "TX_EQUITY_COMPENSATION_ISSUANCE",
        "TX_EQUITY_COMPENSATION_RELEASE",
        "TX_EQUITY_COMPENSATION_REPRICING",
        "TX_EQUITY_COMPENSATION_RETRACTION",
        "TX_EQUITY_COMPENSATION_TRANSFER",
        "TX_STOCK_ACCEPTANCE",
        "TX_STOCK_CANCELLATION",
        "TX_STOCK_CONSOLIDATION",
        "TX_STOCK_CONVERSION",
        "TX_STOCK_ISSUANCE",
        "TX_STOCK_REISSUANCE",
        "TX_STOCK_REPURCHASE",
        "TX_STOCK_RETRACTION",
        "TX_STOCK_TRANSFER",
        "TX_VESTING_ACCELERATION",
        "TX_VESTING_EVENT",
        "TX_VESTING_START",
        "TX_WARRANT_ACCEPTANCE",
        "TX_WARRANT_CANCELLATION",
        "TX_WARRANT_EXERCISE",
        "TX_WARRANT_ISSUANCE",
        "TX_WARRANT_RETRACTION",
        "TX_WARRANT_TRANSFER",
    ],
)

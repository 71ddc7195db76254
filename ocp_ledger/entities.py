"""Entity conversion dispatch between native OCF records and ledger records.

Each entity type has one RecordSchema describing its ledger record. The
schemas are total over EntityType: a missing converter is detected when this
module is imported, never silently at conversion time.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from . import enums
from .aliases import normalize_deprecated_stock_plan_fields
from .errors import ErrorCode, OcpParseError, OcpValidationError
from .fields import (
    COMMENTS,
    DATE,
    MONEY,
    NUMERIC,
    RATIO,
    SECURITY_LAW_EXEMPTION,
    STRINGS,
    TEXT,
    Bool,
    Const,
    Enum,
    Field,
    FirstOf,
    InitialShares,
    ListOf,
    Literal,
    Nested,
    RecordSchema,
    Variant,
    VariantCase,
    Wrapped,
    opt,
    req,
)
from .tags import coerce_entity_type
from .types import EntityType, EntityTypeLike


def _entity(name: str, *fields: Field, checks: tuple = ()) -> RecordSchema:
    """An entity schema: id first, comments last."""
    return RecordSchema(name, [req("id", TEXT), *fields, opt("comments", COMMENTS)], checks)


def _positive_amount(item: Any) -> bool:
    """Keep vesting entries unless their amount is a number <= 0."""
    if not isinstance(item, Mapping):
        return True
    try:
        return Decimal(str(item.get("amount"))) > 0
    except (InvalidOperation, ValueError):
        return True


def _nonzero_range(item: Any) -> bool:
    if not isinstance(item, Mapping):
        return True
    return not (item.get("starting_share_number") == "0" and item.get("ending_share_number") == "0")


def _require_one_of(*names: str) -> Callable[[Mapping[str, Any], str], None]:
    def check(data: Mapping[str, Any], path: str) -> None:
        if not any(data.get(name) for name in names):
            raise OcpValidationError(
                f"{path}.{names[0]}",
                f"One of {', '.join(names)} is required",
                code=ErrorCode.REQUIRED_FIELD_MISSING,
            )

    return check


def _period_bounds(data: Mapping[str, Any], path: str) -> None:
    for name, minimum in (("length", 0), ("occurrences", 1)):
        value = data.get(name)
        if value is None:
            continue
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            continue
        too_small = number <= 0 if minimum == 0 else number < minimum
        if too_small:
            raise OcpValidationError(
                f"{path}.{name}",
                f"Invalid vesting period {name}: {value!r}",
                expected_type="positive number",
                received_value=value,
                code=ErrorCode.OUT_OF_RANGE,
            )


# Shared building blocks

_DATED = (req("date", DATE), req("security_id", TEXT))
_APPROVALS = (opt("board_approval_date", DATE), opt("stockholder_approval_date", DATE))
_SECURITY_LAW_EXEMPTIONS = opt("security_law_exemptions", ListOf(Nested(SECURITY_LAW_EXEMPTION)))
_VESTINGS = opt(
    "vestings",
    ListOf(
        Nested(RecordSchema("vesting", [req("date", DATE), req("amount", NUMERIC)])),
        keep=_positive_amount,
    ),
)
_ISSUANCE_HEADER = (
    req("date", DATE),
    req("security_id", TEXT),
    req("custom_id", TEXT),
    req("stakeholder_id", TEXT),
    *_APPROVALS,
    opt("consideration_text", TEXT),
    _SECURITY_LAW_EXEMPTIONS,
)

NAME = RecordSchema(
    "name",
    [req("legal_name", TEXT), opt("first_name", TEXT), opt("last_name", TEXT)],
)
EMAIL = RecordSchema(
    "email",
    [req("email_type", Enum(enums.EMAIL_TYPE)), req("email_address", TEXT)],
)
PHONE = RecordSchema(
    "phone",
    [req("phone_type", Enum(enums.PHONE_TYPE)), req("phone_number", TEXT)],
)
ADDRESS = RecordSchema(
    "address",
    [
        req("address_type", Enum(enums.ADDRESS_TYPE)),
        opt("street_suite", TEXT),
        opt("city", TEXT),
        opt("country_subdivision", TEXT),
        req("country", TEXT),
        opt("postal_code", TEXT),
    ],
)
TAX_ID = RecordSchema("tax_id", [req("tax_id", TEXT), req("country", TEXT)])
_CONTACT_LISTS = (
    opt("phone_numbers", ListOf(Nested(PHONE))),
    opt("emails", ListOf(Nested(EMAIL))),
)
CONTACT_INFO = RecordSchema("contact_info", [req("name", Nested(NAME)), *_CONTACT_LISTS])
CONTACT_INFO_WITHOUT_NAME = RecordSchema("contact_info", _CONTACT_LISTS)

# Conversion mechanisms shared by convertible and warrant instruments

CAPITALIZATION_RULES = RecordSchema(
    "capitalization_definition_rules",
    [
        opt(name, Bool(default=False))
        for name in (
            "include_outstanding_shares",
            "include_outstanding_options",
            "include_outstanding_unissued_options",
            "include_this_security",
            "include_other_converting_securities",
            "include_option_pool_topup_for_promised_options",
            "include_additional_option_pool_topup",
            "include_new_money",
        )
    ],
)
_CAPITALIZATION = (
    opt("capitalization_definition", TEXT),
    opt("capitalization_definition_rules", Nested(CAPITALIZATION_RULES)),
)
_DISCOUNT_AND_CAP = (
    opt("conversion_discount", NUMERIC),
    opt("conversion_valuation_cap", MONEY),
)
_CUSTOM = RecordSchema("custom_conversion", [req("custom_conversion_description", TEXT)])
_PERCENT_CAPITALIZATION = RecordSchema(
    "percent_capitalization_conversion",
    [req("converts_to_percent", NUMERIC), *_CAPITALIZATION],
)
_FIXED_AMOUNT = RecordSchema("fixed_amount_conversion", [req("converts_to_quantity", NUMERIC)])
_VALUATION_BASED = RecordSchema(
    "valuation_based_conversion",
    [req("valuation_type", TEXT), opt("valuation_amount", MONEY), *_CAPITALIZATION],
)
_SHARE_PRICE_BASED = RecordSchema(
    "share_price_based_conversion",
    [
        req("description", TEXT),
        opt("discount", Bool(default=False)),
        opt("discount_percentage", NUMERIC),
        opt("discount_amount", MONEY),
    ],
)
_SAFE = RecordSchema(
    "safe_conversion",
    [
        *_DISCOUNT_AND_CAP,
        opt("exit_multiple", Nested(RATIO)),
        opt("conversion_mfn", Bool()),
        opt("conversion_timing", Enum(enums.CONVERSION_TIMING)),
        *_CAPITALIZATION,
    ],
)
_NOTE = RecordSchema(
    "convertible_note_conversion",
    [
        req(
            "interest_rates",
            ListOf(
                Nested(
                    RecordSchema(
                        "interest_rate",
                        [
                            req("rate", NUMERIC),
                            opt("accrual_start_date", DATE),
                            opt("accrual_end_date", DATE),
                        ],
                    )
                )
            ),
        ),
        req("day_count_convention", Enum(enums.DAY_COUNT)),
        req("interest_payout", Enum(enums.INTEREST_PAYOUT)),
        req("interest_accrual_period", Enum(enums.ACCRUAL_PERIOD)),
        req("compounding_type", Enum(enums.COMPOUNDING_TYPE)),
        *_DISCOUNT_AND_CAP,
        *_CAPITALIZATION,
        opt("exit_multiple", Nested(RATIO)),
        opt("conversion_mfn", Bool()),
    ],
)

CONVERTIBLE_MECHANISM = Variant(
    "convertible conversion mechanism",
    [
        VariantCase("CUSTOM_CONVERSION", "OcfConvMechCustom", _CUSTOM),
        VariantCase("SAFE_CONVERSION", "OcfConvMechSAFE", _SAFE),
        VariantCase("CONVERTIBLE_NOTE_CONVERSION", "OcfConvMechNote", _NOTE),
        VariantCase(
            "FIXED_PERCENT_OF_CAPITALIZATION_CONVERSION",
            "OcfConvMechPercentCapitalization",
            _PERCENT_CAPITALIZATION,
        ),
        VariantCase("FIXED_AMOUNT_CONVERSION", "OcfConvMechFixedAmount", _FIXED_AMOUNT),
        VariantCase("VALUATION_BASED_CONVERSION", "OcfConvMechValuationBased", _VALUATION_BASED),
        VariantCase("SHARE_PRICE_BASED_CONVERSION", "OcfConvMechSharePriceBased", _SHARE_PRICE_BASED),
    ],
)

WARRANT_MECHANISM = Variant(
    "warrant conversion mechanism",
    [
        VariantCase("CUSTOM_CONVERSION", "OcfWarrantMechanismCustom", _CUSTOM),
        VariantCase(
            "FIXED_PERCENT_OF_CAPITALIZATION_CONVERSION",
            "OcfWarrantMechanismPercentCapitalization",
            _PERCENT_CAPITALIZATION,
        ),
        VariantCase("FIXED_AMOUNT_CONVERSION", "OcfWarrantMechanismFixedAmount", _FIXED_AMOUNT),
        VariantCase("VALUATION_BASED_CONVERSION", "OcfWarrantMechanismValuationBased", _VALUATION_BASED),
        VariantCase(
            "SHARE_PRICE_BASED_CONVERSION",
            "OcfWarrantMechanismSharePriceBased",
            _SHARE_PRICE_BASED,
        ),
    ],
)


def _conversion_right(right_type: str, mechanism: Variant) -> RecordSchema:
    return RecordSchema(
        "conversion_right",
        [
            opt("type", Literal(right_type), wire="type_"),
            req("conversion_mechanism", mechanism),
            opt("converts_to_future_round", Bool()),
            opt("converts_to_stock_class_id", TEXT),
        ],
    )


def _conversion_trigger(right: Any) -> RecordSchema:
    return RecordSchema(
        "conversion_trigger",
        [
            req("type", Enum(enums.CONVERSION_TRIGGER_TYPE), wire="type_"),
            req("trigger_id", TEXT),
            opt("nickname", TEXT),
            opt("trigger_description", TEXT),
            req("conversion_right", right),
            opt("trigger_date", DATE),
            opt("trigger_condition", TEXT),
        ],
    )


CONVERTIBLE_TRIGGER = _conversion_trigger(
    Nested(_conversion_right("CONVERTIBLE_CONVERSION_RIGHT", CONVERTIBLE_MECHANISM))
)
WARRANT_TRIGGER = _conversion_trigger(
    Wrapped("OcfRightWarrant", Nested(_conversion_right("WARRANT_CONVERSION_RIGHT", WARRANT_MECHANISM)))
)

# Vesting

_VESTING_PERIOD_FIELDS = (
    req("length", NUMERIC, wire="length_"),
    req("occurrences", NUMERIC),
)
VESTING_PERIOD = Variant(
    "vesting period",
    [
        VariantCase(
            "DAYS",
            "OcfVestingPeriodDays",
            RecordSchema(
                "period",
                [*_VESTING_PERIOD_FIELDS, opt("cliff_installment", NUMERIC)],
                checks=(_period_bounds,),
            ),
        ),
        VariantCase(
            "MONTHS",
            "OcfVestingPeriodMonths",
            RecordSchema(
                "period",
                [
                    *_VESTING_PERIOD_FIELDS,
                    req("day_of_month", Enum(enums.VESTING_DAY)),
                    opt("cliff_installment", NUMERIC),
                ],
                checks=(_period_bounds,),
            ),
        ),
    ],
)
VESTING_TRIGGER = Variant(
    "vesting trigger",
    [
        VariantCase("VESTING_START_DATE", "OcfVestingStartTrigger"),
        VariantCase("VESTING_EVENT", "OcfVestingEventTrigger"),
        VariantCase(
            "VESTING_SCHEDULE_ABSOLUTE",
            "OcfVestingScheduleAbsoluteTrigger",
            scalar=("date", DATE),
        ),
        VariantCase(
            "VESTING_SCHEDULE_RELATIVE",
            "OcfVestingScheduleRelativeTrigger",
            RecordSchema(
                "trigger",
                [req("period", VESTING_PERIOD), req("relative_to_condition_id", TEXT)],
            ),
        ),
    ],
)
VESTING_CONDITION = RecordSchema(
    "vesting_condition",
    [
        req("id", TEXT),
        opt("description", TEXT),
        opt(
            "portion",
            Nested(
                RecordSchema(
                    "portion",
                    [
                        req("numerator", NUMERIC),
                        req("denominator", NUMERIC),
                        opt("remainder", Bool(default=False)),
                    ],
                )
            ),
        ),
        opt("quantity", NUMERIC),
        req("trigger", VESTING_TRIGGER),
        req("next_condition_ids", STRINGS),
    ],
)

STOCK_CLASS_CONVERSION_RIGHT = RecordSchema(
    "conversion_right",
    [
        req("type", TEXT, wire="type_"),
        req("conversion_mechanism", Enum(enums.STOCK_CLASS_CONVERSION_MECHANISM)),
        req("conversion_trigger", Enum(enums.STOCK_CLASS_CONVERSION_TRIGGER)),
        req("converts_to_stock_class_id", TEXT),
        opt("ratio", Nested(RATIO)),
        opt("percent_of_capitalization", NUMERIC),
        opt("conversion_price", MONEY),
        opt("reference_share_price", MONEY),
        opt("reference_valuation_price_per_share", MONEY),
        opt("discount_rate", NUMERIC),
        opt("valuation_cap", MONEY),
        opt("floor_price_per_share", MONEY),
        opt("ceiling_price_per_share", MONEY),
        opt("custom_description", TEXT),
        opt("expires_at", DATE),
    ],
)

# Objects

STAKEHOLDER = _entity(
    "stakeholder",
    req("name", Nested(NAME)),
    req("stakeholder_type", Enum(enums.STAKEHOLDER_TYPE)),
    opt("issuer_assigned_id", TEXT),
    opt("primary_contact", Nested(CONTACT_INFO)),
    opt("contact_info", Nested(CONTACT_INFO_WITHOUT_NAME, null_if_empty=True)),
    opt("addresses", ListOf(Nested(ADDRESS))),
    opt("tax_ids", ListOf(Nested(TAX_ID))),
    opt("current_relationships", ListOf(Enum(enums.STAKEHOLDER_RELATIONSHIP))),
    opt("current_status", Enum(enums.STAKEHOLDER_STATUS)),
)

ISSUER = _entity(
    "issuer",
    req("legal_name", TEXT),
    req("country_of_formation", TEXT),
    opt("dba", TEXT),
    opt("formation_date", DATE),
    opt("country_subdivision_of_formation", TEXT),
    opt("tax_ids", ListOf(Nested(TAX_ID))),
    opt("email", Nested(EMAIL)),
    opt("phone", Nested(PHONE)),
    opt("address", Nested(ADDRESS)),
    opt("initial_shares_authorized", InitialShares()),
)

STOCK_CLASS = _entity(
    "stockClass",
    req("name", TEXT),
    req("class_type", Enum(enums.STOCK_CLASS_TYPE)),
    req("default_id_prefix", TEXT),
    req("initial_shares_authorized", InitialShares()),
    req("votes_per_share", NUMERIC),
    req("seniority", NUMERIC),
    *_APPROVALS,
    opt("par_value", MONEY),
    opt("price_per_share", MONEY),
    opt("conversion_rights", ListOf(Nested(STOCK_CLASS_CONVERSION_RIGHT))),
    opt("liquidation_preference_multiple", NUMERIC),
    opt("participation_cap_multiple", NUMERIC),
)

STOCK_LEGEND_TEMPLATE = _entity("stockLegendTemplate", req("name", TEXT), req("text", TEXT))

STOCK_PLAN = _entity(
    "stockPlan",
    req("plan_name", TEXT),
    *_APPROVALS,
    req("initial_shares_reserved", NUMERIC),
    opt("default_cancellation_behavior", Enum(enums.CANCELLATION_BEHAVIOR)),
    opt("stock_class_ids", STRINGS),
)

VESTING_TERMS = _entity(
    "vestingTerms",
    req("name", TEXT),
    req("description", TEXT),
    req("allocation_type", Enum(enums.ALLOCATION_TYPE)),
    req("vesting_conditions", ListOf(Nested(VESTING_CONDITION))),
)

DOCUMENT = _entity(
    "document",
    opt("path", TEXT),
    opt("uri", TEXT),
    req("md5", TEXT),
    opt(
        "related_objects",
        ListOf(
            Nested(
                RecordSchema(
                    "related_object",
                    [req("object_type", Enum(enums.OBJECT_TYPE)), req("object_id", TEXT)],
                )
            )
        ),
    ),
    checks=(_require_one_of("path", "uri"),),
)

VALUATION = _entity(
    "valuation",
    req("stock_class_id", TEXT),
    opt("provider", TEXT),
    *_APPROVALS,
    req("price_per_share", MONEY),
    req("effective_date", DATE),
    req("valuation_type", Enum(enums.VALUATION_TYPE)),
)

# Issuances

STOCK_ISSUANCE = _entity(
    "stockIssuance",
    *_ISSUANCE_HEADER,
    req("stock_class_id", TEXT),
    opt("stock_plan_id", TEXT),
    opt(
        "share_numbers_issued",
        ListOf(
            Nested(
                RecordSchema(
                    "share_number_range",
                    [req("starting_share_number", NUMERIC), req("ending_share_number", NUMERIC)],
                )
            ),
            keep=_nonzero_range,
        ),
    ),
    req("share_price", MONEY),
    req("quantity", NUMERIC),
    opt("vesting_terms_id", TEXT),
    _VESTINGS,
    opt("cost_basis", MONEY),
    opt("stock_legend_ids", STRINGS),
    opt("issuance_type", Enum(enums.STOCK_ISSUANCE_TYPE)),
)

_COMPENSATION_HEADER = (
    *_ISSUANCE_HEADER,
    opt("stock_plan_id", TEXT),
    opt("stock_class_id", TEXT),
    opt("vesting_terms_id", TEXT),
)

EQUITY_COMPENSATION_ISSUANCE = _entity(
    "equityCompensationIssuance",
    *_COMPENSATION_HEADER,
    req("compensation_type", Enum(enums.COMPENSATION_TYPE)),
    req("quantity", NUMERIC),
    opt("exercise_price", MONEY),
    opt("base_price", MONEY),
    opt("early_exercisable", Bool()),
    _VESTINGS,
    opt("expiration_date", DATE),
    opt(
        "termination_exercise_windows",
        ListOf(
            Nested(
                RecordSchema(
                    "termination_exercise_window",
                    [
                        req("reason", Enum(enums.TERMINATION_REASON)),
                        req("period", NUMERIC),
                        req("period_type", Enum(enums.PERIOD_TYPE)),
                    ],
                )
            )
        ),
    ),
)

# Plan securities carry fewer fields than the equity compensation contract
# they are stored as; the rest are written as fixed empty values.
PLAN_SECURITY_ISSUANCE = _entity(
    "planSecurityIssuance",
    *_COMPENSATION_HEADER,
    req("plan_security_type", Enum(enums.PLAN_SECURITY_TYPE), wire="compensation_type"),
    req("quantity", NUMERIC),
    opt("exercise_price", MONEY),
    Field("base_price", Const(None)),
    Field("early_exercisable", Const(None)),
    Field("vestings", Const([])),
    Field("expiration_date", Const(None)),
    Field("termination_exercise_windows", Const([])),
)

CONVERTIBLE_ISSUANCE = _entity(
    "convertibleIssuance",
    *_ISSUANCE_HEADER,
    req("investment_amount", MONEY),
    req("convertible_type", Enum(enums.CONVERTIBLE_TYPE)),
    req("conversion_triggers", ListOf(Nested(CONVERTIBLE_TRIGGER), min_items=1)),
    opt("pro_rata", NUMERIC),
    req("seniority", NUMERIC),
)

WARRANT_ISSUANCE = _entity(
    "warrantIssuance",
    *_ISSUANCE_HEADER,
    opt("quantity", NUMERIC),
    opt("quantity_source", Enum(enums.QUANTITY_SOURCE)),
    opt("exercise_price", MONEY),
    req("purchase_price", MONEY),
    req("exercise_triggers", ListOf(Nested(WARRANT_TRIGGER))),
    opt("warrant_expiration_date", DATE),
    opt("vesting_terms_id", TEXT),
    _VESTINGS,
)

# Transactions

_RESULTING = req("resulting_security_ids", ListOf(TEXT, min_items=1))
_BALANCE = opt("balance_security_id", TEXT)
_CONSIDERATION = opt("consideration_text", TEXT)


def _acceptance(name: str) -> RecordSchema:
    return _entity(name, *_DATED)


def _retraction(name: str) -> RecordSchema:
    return _entity(name, *_DATED, req("reason_text", TEXT))


def _cancellation(name: str, amount: Field) -> RecordSchema:
    return _entity(name, *_DATED, amount, _BALANCE, req("reason_text", TEXT))


def _transfer(name: str, amount: Field) -> RecordSchema:
    return _entity(name, *_DATED, amount, _RESULTING, _BALANCE, _CONSIDERATION)


_QUANTITY = req("quantity", NUMERIC)
_AMOUNT = req("amount", MONEY)

EQUITY_COMPENSATION_EXERCISE = _entity(
    "equityCompensationExercise", *_DATED, _QUANTITY, _CONSIDERATION, _RESULTING
)
EQUITY_COMPENSATION_RELEASE = _entity(
    "equityCompensationRelease",
    *_DATED,
    _QUANTITY,
    _RESULTING,
    _BALANCE,
    opt("settlement_date", DATE),
    _CONSIDERATION,
)

_SCHEMAS: dict[EntityType, RecordSchema] = {
    EntityType.STAKEHOLDER: STAKEHOLDER,
    EntityType.ISSUER: ISSUER,
    EntityType.STOCK_CLASS: STOCK_CLASS,
    EntityType.STOCK_LEGEND_TEMPLATE: STOCK_LEGEND_TEMPLATE,
    EntityType.STOCK_PLAN: STOCK_PLAN,
    EntityType.VESTING_TERMS: VESTING_TERMS,
    EntityType.DOCUMENT: DOCUMENT,
    EntityType.VALUATION: VALUATION,
    EntityType.STOCK_ISSUANCE: STOCK_ISSUANCE,
    EntityType.EQUITY_COMPENSATION_ISSUANCE: EQUITY_COMPENSATION_ISSUANCE,
    EntityType.PLAN_SECURITY_ISSUANCE: PLAN_SECURITY_ISSUANCE,
    EntityType.CONVERTIBLE_ISSUANCE: CONVERTIBLE_ISSUANCE,
    EntityType.WARRANT_ISSUANCE: WARRANT_ISSUANCE,
    EntityType.STOCK_ACCEPTANCE: _acceptance("stockAcceptance"),
    EntityType.WARRANT_ACCEPTANCE: _acceptance("warrantAcceptance"),
    EntityType.CONVERTIBLE_ACCEPTANCE: _acceptance("convertibleAcceptance"),
    EntityType.EQUITY_COMPENSATION_ACCEPTANCE: _acceptance("equityCompensationAcceptance"),
    EntityType.PLAN_SECURITY_ACCEPTANCE: _acceptance("planSecurityAcceptance"),
    EntityType.STOCK_RETRACTION: _retraction("stockRetraction"),
    EntityType.WARRANT_RETRACTION: _retraction("warrantRetraction"),
    EntityType.CONVERTIBLE_RETRACTION: _retraction("convertibleRetraction"),
    EntityType.EQUITY_COMPENSATION_RETRACTION: _retraction("equityCompensationRetraction"),
    EntityType.PLAN_SECURITY_RETRACTION: _retraction("planSecurityRetraction"),
    EntityType.STOCK_CANCELLATION: _cancellation("stockCancellation", _QUANTITY),
    EntityType.WARRANT_CANCELLATION: _cancellation("warrantCancellation", _QUANTITY),
    EntityType.CONVERTIBLE_CANCELLATION: _cancellation("convertibleCancellation", _AMOUNT),
    EntityType.EQUITY_COMPENSATION_CANCELLATION: _cancellation("equityCompensationCancellation", _QUANTITY),
    EntityType.PLAN_SECURITY_CANCELLATION: _cancellation("planSecurityCancellation", _QUANTITY),
    EntityType.STOCK_TRANSFER: _transfer("stockTransfer", _QUANTITY),
    EntityType.WARRANT_TRANSFER: _transfer("warrantTransfer", _QUANTITY),
    EntityType.CONVERTIBLE_TRANSFER: _transfer("convertibleTransfer", _AMOUNT),
    EntityType.EQUITY_COMPENSATION_TRANSFER: _transfer("equityCompensationTransfer", _QUANTITY),
    EntityType.PLAN_SECURITY_TRANSFER: _transfer("planSecurityTransfer", _QUANTITY),
    EntityType.EQUITY_COMPENSATION_EXERCISE: EQUITY_COMPENSATION_EXERCISE,
    EntityType.PLAN_SECURITY_EXERCISE: EQUITY_COMPENSATION_EXERCISE.extend(
        "planSecurityExercise", [_BALANCE]
    ),
    EntityType.EQUITY_COMPENSATION_RELEASE: EQUITY_COMPENSATION_RELEASE,
    EntityType.PLAN_SECURITY_RELEASE: EQUITY_COMPENSATION_RELEASE.extend("planSecurityRelease", []),
    EntityType.EQUITY_COMPENSATION_REPRICING: _entity(
        "equityCompensationRepricing", *_DATED, _RESULTING
    ),
    EntityType.WARRANT_EXERCISE: _entity(
        "warrantExercise", *_DATED, _QUANTITY, _RESULTING, _BALANCE, _CONSIDERATION
    ),
    EntityType.CONVERTIBLE_CONVERSION: _entity(
        "convertibleConversion", *_DATED, _RESULTING, _BALANCE, opt("trigger_id", TEXT)
    ),
    EntityType.STOCK_CONVERSION: _entity("stockConversion", *_DATED, _QUANTITY, _RESULTING, _BALANCE),
    EntityType.STOCK_REPURCHASE: _entity(
        "stockRepurchase", *_DATED, _QUANTITY, req("price", MONEY), _BALANCE, _CONSIDERATION
    ),
    EntityType.STOCK_REISSUANCE: _entity(
        "stockReissuance",
        *_DATED,
        _RESULTING,
        opt("split_transaction_id", TEXT),
        opt("reason_text", TEXT),
    ),
    EntityType.STOCK_CONSOLIDATION: _entity(
        "stockConsolidation",
        req("date", DATE),
        req("security_ids", ListOf(TEXT, min_items=1)),
        req("resulting_security_ids", FirstOf(TEXT), wire="resulting_security_id"),
        opt("reason_text", TEXT),
    ),
    EntityType.STOCK_CLASS_SPLIT: _entity(
        "stockClassSplit",
        req("date", DATE),
        req("stock_class_id", TEXT),
        req("split_ratio", Nested(RATIO)),
    ),
    EntityType.STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT: _entity(
        "stockClassConversionRatioAdjustment",
        req("date", DATE),
        req("stock_class_id", TEXT),
        req(
            "new_ratio_conversion_mechanism",
            Nested(
                RecordSchema(
                    "ratio_conversion_mechanism",
                    [
                        req("conversion_price", MONEY),
                        req("ratio", Nested(RATIO)),
                        req("rounding_type", Enum(enums.ROUNDING_TYPE)),
                    ],
                )
            ),
        ),
        *_APPROVALS,
    ),
    EntityType.STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT: _entity(
        "stockClassAuthorizedSharesAdjustment",
        req("date", DATE),
        req("stock_class_id", TEXT),
        req("new_shares_authorized", NUMERIC),
        *_APPROVALS,
    ),
    EntityType.ISSUER_AUTHORIZED_SHARES_ADJUSTMENT: _entity(
        "issuerAuthorizedSharesAdjustment",
        req("issuer_id", TEXT),
        req("date", DATE),
        req("new_shares_authorized", NUMERIC),
        *_APPROVALS,
    ),
    EntityType.STOCK_PLAN_POOL_ADJUSTMENT: _entity(
        "stockPlanPoolAdjustment",
        req("date", DATE),
        req("stock_plan_id", TEXT),
        req("shares_reserved", NUMERIC),
        *_APPROVALS,
    ),
    EntityType.STOCK_PLAN_RETURN_TO_POOL: _entity(
        "stockPlanReturnToPool",
        req("date", DATE),
        req("stock_plan_id", TEXT),
        _QUANTITY,
        req("reason_text", TEXT),
    ),
    EntityType.VESTING_START: _entity(
        "vestingStart", *_DATED, req("vesting_condition_id", TEXT)
    ),
    EntityType.VESTING_EVENT: _entity(
        "vestingEvent", *_DATED, req("vesting_condition_id", TEXT)
    ),
    EntityType.VESTING_ACCELERATION: _entity(
        "vestingAcceleration", *_DATED, _QUANTITY, req("reason_text", TEXT)
    ),
    EntityType.STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT: _entity(
        "stakeholderRelationshipChangeEvent",
        req("date", DATE),
        req("stakeholder_id", TEXT),
        opt("relationship_started", Enum(enums.STAKEHOLDER_RELATIONSHIP)),
        opt("relationship_ended", Enum(enums.STAKEHOLDER_RELATIONSHIP)),
    ),
    EntityType.STAKEHOLDER_STATUS_CHANGE_EVENT: _entity(
        "stakeholderStatusChangeEvent",
        req("date", DATE),
        req("stakeholder_id", TEXT),
        req("new_status", Enum(enums.STAKEHOLDER_STATUS)),
    ),
}


@dataclass(frozen=True)
class EntityConverter:
    """The pair of pure conversions for one entity type."""

    entity_type: EntityType
    schema: RecordSchema
    prepare: Optional[Callable[[Mapping[str, Any], str], dict[str, Any]]] = None

    def to_ledger(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if self.prepare is not None and isinstance(data, Mapping):
            data = self.prepare(data, self.schema.name)
        return self.schema.encode(data)

    def from_ledger(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return self.schema.decode(record)


_PREPARE = {EntityType.STOCK_PLAN: normalize_deprecated_stock_plan_fields}

CONVERTERS: Mapping[EntityType, EntityConverter] = {
    entity_type: EntityConverter(entity_type, schema, _PREPARE.get(entity_type))
    for entity_type, schema in _SCHEMAS.items()
}

_missing_converters = set(EntityType) - set(CONVERTERS)
if _missing_converters:
    raise RuntimeError(
        "Entity types without a converter: "
        + ", ".join(sorted(t.value for t in _missing_converters))
    )


def to_ledger(entity_type: EntityTypeLike, data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a native OCF record to its ledger record.

    Raises:
        OcpValidationError: If the entity type is unknown or the data is invalid
    """
    return CONVERTERS[coerce_entity_type(entity_type)].to_ledger(data)


def from_ledger(entity_type: EntityTypeLike, record: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a ledger record back to a native OCF record.

    Timestamps come back as their date portion only.

    Raises:
        OcpParseError: If the entity type is unknown or the record is malformed
    """
    try:
        resolved = EntityType(entity_type)
    except ValueError:
        raise OcpParseError(
            f"Unsupported entity type: {entity_type!r}",
            source="entity_type",
            code=ErrorCode.UNKNOWN_ENTITY_TYPE,
        ) from None
    return CONVERTERS[resolved].from_ledger(record)

"""Core value types shared across the package."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class EntityType(str, Enum):
    """The closed catalog of OCF entity types the ledger understands.

    Values are the camelCase names used by OCF clients, e.g. "stockIssuance".
    Every member must have a converter and an operation-tag row; both
    registries verify this when they are imported.
    """

    CONVERTIBLE_ACCEPTANCE = "convertibleAcceptance"
    CONVERTIBLE_CANCELLATION = "convertibleCancellation"
    CONVERTIBLE_CONVERSION = "convertibleConversion"
    CONVERTIBLE_ISSUANCE = "convertibleIssuance"
    CONVERTIBLE_RETRACTION = "convertibleRetraction"
    CONVERTIBLE_TRANSFER = "convertibleTransfer"
    DOCUMENT = "document"
    EQUITY_COMPENSATION_ACCEPTANCE = "equityCompensationAcceptance"
    EQUITY_COMPENSATION_CANCELLATION = "equityCompensationCancellation"
    EQUITY_COMPENSATION_EXERCISE = "equityCompensationExercise"
    EQUITY_COMPENSATION_ISSUANCE = "equityCompensationIssuance"
    EQUITY_COMPENSATION_RELEASE = "equityCompensationRelease"
    EQUITY_COMPENSATION_REPRICING = "equityCompensationRepricing"
    EQUITY_COMPENSATION_RETRACTION = "equityCompensationRetraction"
    EQUITY_COMPENSATION_TRANSFER = "equityCompensationTransfer"
    ISSUER = "issuer"
    ISSUER_AUTHORIZED_SHARES_ADJUSTMENT = "issuerAuthorizedSharesAdjustment"
    PLAN_SECURITY_ACCEPTANCE = "planSecurityAcceptance"
    PLAN_SECURITY_CANCELLATION = "planSecurityCancellation"
    PLAN_SECURITY_EXERCISE = "planSecurityExercise"
    PLAN_SECURITY_ISSUANCE = "planSecurityIssuance"
    PLAN_SECURITY_RELEASE = "planSecurityRelease"
    PLAN_SECURITY_RETRACTION = "planSecurityRetraction"
    PLAN_SECURITY_TRANSFER = "planSecurityTransfer"
    STAKEHOLDER = "stakeholder"
    STAKEHOLDER_RELATIONSHIP_CHANGE_EVENT = "stakeholderRelationshipChangeEvent"
    STAKEHOLDER_STATUS_CHANGE_EVENT = "stakeholderStatusChangeEvent"
    STOCK_ACCEPTANCE = "stockAcceptance"
    STOCK_CANCELLATION = "stockCancellation"
    STOCK_CLASS = "stockClass"
    STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT = "stockClassAuthorizedSharesAdjustment"
    STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT = "stockClassConversionRatioAdjustment"
    STOCK_CLASS_SPLIT = "stockClassSplit"
    STOCK_CONSOLIDATION = "stockConsolidation"
    STOCK_CONVERSION = "stockConversion"
    STOCK_ISSUANCE = "stockIssuance"
    STOCK_LEGEND_TEMPLATE = "stockLegendTemplate"
    STOCK_PLAN = "stockPlan"
    STOCK_PLAN_POOL_ADJUSTMENT = "stockPlanPoolAdjustment"
    STOCK_PLAN_RETURN_TO_POOL = "stockPlanReturnToPool"
    STOCK_REISSUANCE = "stockReissuance"
    STOCK_REPURCHASE = "stockRepurchase"
    STOCK_RETRACTION = "stockRetraction"
    STOCK_TRANSFER = "stockTransfer"
    VALUATION = "valuation"
    VESTING_ACCELERATION = "vestingAcceleration"
    VESTING_EVENT = "vestingEvent"
    VESTING_START = "vestingStart"
    VESTING_TERMS = "vestingTerms"
    WARRANT_ACCEPTANCE = "warrantAcceptance"
    WARRANT_CANCELLATION = "warrantCancellation"
    WARRANT_EXERCISE = "warrantExercise"
    WARRANT_ISSUANCE = "warrantIssuance"
    WARRANT_RETRACTION = "warrantRetraction"
    WARRANT_TRANSFER = "warrantTransfer"

    def __str__(self) -> str:
        return self.value


EntityTypeLike = Union[EntityType, str]


class OperationKind(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OperationTags:
    """Wire tags for the three operations on one entity type.

    None marks an operation the ledger does not support for that type.
    """

    create: Optional[str]
    """Constructor name in the create list, e.g. "OcfCreateStakeholder"."""

    edit: Optional[str]
    """Constructor name in the edit list."""

    delete: Optional[str]
    """Constructor name in the delete list."""

    def for_kind(self, kind: OperationKind) -> Optional[str]:
        return getattr(self, kind.value)

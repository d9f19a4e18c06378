"""Rule table schemas."""

from .rating import (
    TOTAL_THEFT_EXCESS_MULTIPLIER,
    AddedBenefits,
    DocumentCategory,
    DocumentRequirement,
    ExcessBuyBackBenefit,
    ExcessRule,
    FixedAmount,
    LossOfUseBenefit,
    PercentOfValue,
    PercentOfValuePlusFixed,
    PremiumFormula,
    PrivateRateReference,
    RateRow,
    RuleTableData,
)

__all__ = [
    "TOTAL_THEFT_EXCESS_MULTIPLIER",
    "AddedBenefits",
    "DocumentCategory",
    "DocumentRequirement",
    "ExcessBuyBackBenefit",
    "ExcessRule",
    "FixedAmount",
    "LossOfUseBenefit",
    "PercentOfValue",
    "PercentOfValuePlusFixed",
    "PremiumFormula",
    "PrivateRateReference",
    "RateRow",
    "RuleTableData",
]

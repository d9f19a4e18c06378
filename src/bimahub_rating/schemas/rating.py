# BimaHub Rating - Premium Rating and Policy Rules Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Typed rule table rows.

Each premium rule is a tagged formula variant instead of free text, so
the same row always evaluates to the same amount. These models are also
the JSON shape accepted by ``load_rule_table``.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator

from ..models.base import BaseModelConfig
from ..models.quote import MAX_INSURED_VALUE, CoverageTier, VehicleClass, VehicleUsage

__all__ = [
    "PercentOfValue",
    "PercentOfValuePlusFixed",
    "FixedAmount",
    "PrivateRateReference",
    "PremiumFormula",
    "RateRow",
    "ExcessRule",
    "LossOfUseBenefit",
    "ExcessBuyBackBenefit",
    "AddedBenefits",
    "DocumentCategory",
    "DocumentRequirement",
    "RuleTableData",
    "TOTAL_THEFT_EXCESS_MULTIPLIER",
]

TOTAL_THEFT_EXCESS_MULTIPLIER = Decimal("2")


class PercentOfValue(BaseModelConfig):
    """``insured_value * rate``."""

    kind: Literal["percent_of_value"] = "percent_of_value"
    rate: Decimal = Field(..., gt=Decimal("0"), lt=Decimal("1"))


class PercentOfValuePlusFixed(BaseModelConfig):
    """``insured_value * rate + fixed``."""

    kind: Literal["percent_of_value_plus_fixed"] = "percent_of_value_plus_fixed"
    rate: Decimal = Field(..., gt=Decimal("0"), lt=Decimal("1"))
    fixed: Decimal = Field(..., ge=Decimal("0"), le=MAX_INSURED_VALUE)


class FixedAmount(BaseModelConfig):
    """A flat premium independent of the insured value."""

    kind: Literal["fixed_amount"] = "fixed_amount"
    amount: Decimal = Field(..., gt=Decimal("0"), le=MAX_INSURED_VALUE)


class PrivateRateReference(BaseModelConfig):
    """Base premium of the private-usage row for the same vehicle class.

    The referenced tier is the resolved comprehensive claim tier; the
    commercial addition lives in the row's ``surcharge``.
    """

    kind: Literal["private_rate"] = "private_rate"


PremiumFormula = Annotated[
    PercentOfValue | PercentOfValuePlusFixed | FixedAmount | PrivateRateReference,
    Field(discriminator="kind"),
]


class RateRow(BaseModelConfig):
    """Premium rule for one (vehicle class, usage, coverage tier) key."""

    vehicle_class: VehicleClass
    usage: VehicleUsage
    coverage_tier: CoverageTier
    formula: PremiumFormula
    surcharge: Decimal | None = Field(
        default=None,
        gt=Decimal("0"),
        description="Fixed commercial surcharge added after the base premium",
    )
    min_premium: Decimal | None = Field(default=None, gt=Decimal("0"))

    @property
    def key(self) -> tuple[VehicleClass, VehicleUsage, CoverageTier]:
        return (self.vehicle_class, self.usage, self.coverage_tier)

    @field_validator("surcharge", "min_premium")
    @classmethod
    def validate_whole_units(cls, v: Decimal | None) -> Decimal | None:
        """Fixed amounts are quoted in whole currency units."""
        if v is not None and v != v.to_integral_value():
            raise ValueError("Fixed amounts must be whole currency units")
        return v

    @model_validator(mode="after")
    def validate_commercial_loading(self) -> "RateRow":
        """Private-rate formulas and surcharges are commercial-only."""
        if self.surcharge is not None and self.usage is not VehicleUsage.COMMERCIAL:
            raise ValueError("surcharge requires commercial usage")
        if isinstance(self.formula, PrivateRateReference):
            if self.usage is not VehicleUsage.COMMERCIAL:
                raise ValueError("private_rate formula requires commercial usage")
            if not self.coverage_tier.is_comprehensive:
                raise ValueError("private_rate formula requires a comprehensive tier")
        return self


class ExcessRule(BaseModelConfig):
    """Excess schedule for a vehicle class.

    Total theft excess is derived from the standard excess so the two can
    never drift apart.
    """

    vehicle_class: VehicleClass
    standard_excess: Decimal | None = Field(
        default=None, ge=Decimal("0"), description="None when unspecified"
    )

    @property
    def total_theft_excess(self) -> Decimal | None:
        if self.standard_excess is None:
            return None
        return self.standard_excess * TOTAL_THEFT_EXCESS_MULTIPLIER


class LossOfUseBenefit(BaseModelConfig):
    """Fixed payout while the insured vehicle cannot be used."""

    payout: Decimal = Field(default=Decimal("50000"), gt=Decimal("0"))
    claim_window_days: int = Field(default=21, ge=1, le=365)


class ExcessBuyBackBenefit(BaseModelConfig):
    """Add-on that removes the standard excess for a share of the base premium."""

    rate: Decimal = Field(default=Decimal("0.10"), gt=Decimal("0"), lt=Decimal("1"))


class AddedBenefits(BaseModelConfig):
    loss_of_use: LossOfUseBenefit = Field(default_factory=LossOfUseBenefit)
    excess_buy_back: ExcessBuyBackBenefit = Field(default_factory=ExcessBuyBackBenefit)


class DocumentCategory(str, Enum):
    """Document checklists are shared across tiers of the same family."""

    COMPREHENSIVE = "comprehensive"
    THIRD_PARTY = "third_party"

    @classmethod
    def for_tier(cls, tier: CoverageTier) -> "DocumentCategory":
        return cls.COMPREHENSIVE if tier.is_comprehensive else cls.THIRD_PARTY


class DocumentRequirement(BaseModelConfig):
    """Mandatory documents for issuing a policy of a document category."""

    category: DocumentCategory
    mandatory_documents: tuple[str, ...] = Field(..., min_length=1)


class RuleTableData(BaseModelConfig):
    """Serialisable rule table, as stored in JSON rule table files."""

    version: str = Field(..., min_length=1, max_length=50)
    rates: tuple[RateRow, ...] = Field(..., min_length=1)
    excess_rules: tuple[ExcessRule, ...] = Field(..., min_length=1)
    added_benefits: AddedBenefits = Field(default_factory=AddedBenefits)
    document_requirements: tuple[DocumentRequirement, ...] = Field(..., min_length=1)

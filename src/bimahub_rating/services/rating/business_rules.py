"""Policy business rules applied around the premium formula.

Each rule is a small method with typed inputs and outputs so it can be
tested on its own and recorded in the rating audit trail:

- coverage tier resolution from the request's claim history
- minimum premium floor
- excess resolution, including total theft doubling and Excess Buy Back
- Loss of Use claim window
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from beartype import beartype
from pydantic import Field

from ...core.config import PrivateRateBasis
from ...core.errors import InvalidInput, RatingError
from ...core.result_types import Err, Ok, Result
from ...models.base import BaseModelConfig, to_whole_units
from ...models.quote import (
    MAX_INSURED_VALUE,
    CoverageRequest,
    CoverageTier,
    QuoteRequest,
    VehicleClass,
    VehicleUsage,
)
from ...schemas.rating import (
    ExcessBuyBackBenefit,
    ExcessRule,
    LossOfUseBenefit,
    RateRow,
)
from .rate_tables import RuleTable

_EXPLICIT_TIERS: dict[CoverageRequest, CoverageTier] = {
    CoverageRequest.COMPREHENSIVE_CLAIM_FREE: CoverageTier.COMPREHENSIVE_CLAIM_FREE,
    CoverageRequest.COMPREHENSIVE_WITH_CLAIMS: CoverageTier.COMPREHENSIVE_WITH_CLAIMS,
    CoverageRequest.THIRD_PARTY_FIRE_THEFT: CoverageTier.THIRD_PARTY_FIRE_THEFT,
    CoverageRequest.THIRD_PARTY_ONLY: CoverageTier.THIRD_PARTY_ONLY,
}


class TierResolution(BaseModelConfig):
    """Outcome of coverage tier resolution."""

    coverage_tier: CoverageTier = Field(..., description="Rate row tier to look up")
    private_tier: CoverageTier | None = Field(
        default=None, description="Private tier priced by a private-rate row"
    )


class MinimumPremiumResult(BaseModelConfig):
    premium: Decimal = Field(..., ge=Decimal("0"))
    min_premium_applied: bool


class ExcessResolution(BaseModelConfig):
    """Effective excess amounts and the optional buy-back cost."""

    standard_excess: Decimal | None = Field(default=None, ge=Decimal("0"))
    total_theft_excess: Decimal | None = Field(default=None, ge=Decimal("0"))
    excess_buy_back_cost: Decimal | None = Field(default=None, ge=Decimal("0"))


@beartype
class RatingBusinessRules:
    """Business rules of the BimaHub motor product."""

    def __init__(
        self, private_rate_basis: PrivateRateBasis = PrivateRateBasis.CLAIM_HISTORY
    ) -> None:
        """Initialize business rules.

        Args:
            private_rate_basis: Private tier used by "Private Rate + X" rows
        """
        self._private_rate_basis = private_rate_basis

    @property
    def private_rate_basis(self) -> PrivateRateBasis:
        return self._private_rate_basis

    def validate_request(self, request: QuoteRequest) -> Result[QuoteRequest, RatingError]:
        """Defend against requests built without validation."""
        enum_fields: tuple[tuple[str, type[Enum]], ...] = (
            ("vehicle_class", VehicleClass),
            ("usage", VehicleUsage),
            ("coverage", CoverageRequest),
        )
        for field_name, enum_type in enum_fields:
            value = getattr(request, field_name, None)
            if not isinstance(value, enum_type):
                return Err(
                    InvalidInput(
                        f"{field_name} must be one of "
                        f"{', '.join(member.value for member in enum_type)}",
                        field=field_name,
                    )
                )

        insured_value = getattr(request, "insured_value", None)
        if not isinstance(insured_value, Decimal) or not insured_value.is_finite():
            return Err(
                InvalidInput("Insured value must be a finite decimal", field="insured_value")
            )
        if insured_value <= 0:
            return Err(InvalidInput("Insured value must be positive", field="insured_value"))
        if insured_value > MAX_INSURED_VALUE:
            return Err(
                InvalidInput(
                    f"Insured value must not exceed {MAX_INSURED_VALUE}",
                    field="insured_value",
                )
            )

        return Ok(request)

    def resolve_coverage_tier(
        self, request: QuoteRequest, table: RuleTable
    ) -> TierResolution:
        """Map the requested coverage onto a rate row tier.

        A bare comprehensive request is rated claim-free unless the request
        reports recent claims. Commercial comprehensive requests for a
        vehicle class that prices off the private rate route to the
        commercial comprehensive row, carrying the private tier along.
        """
        if request.coverage is CoverageRequest.COMPREHENSIVE:
            claim_tier = (
                CoverageTier.COMPREHENSIVE_WITH_CLAIMS
                if request.has_recent_claims
                else CoverageTier.COMPREHENSIVE_CLAIM_FREE
            )
        else:
            claim_tier = _EXPLICIT_TIERS[request.coverage]

        if (
            request.coverage.is_comprehensive
            and request.usage is VehicleUsage.COMMERCIAL
            and table.has_rate(
                request.vehicle_class,
                VehicleUsage.COMMERCIAL,
                CoverageTier.COMMERCIAL_COMPREHENSIVE,
            )
        ):
            return TierResolution(
                coverage_tier=CoverageTier.COMMERCIAL_COMPREHENSIVE,
                private_tier=self._private_tier_for(claim_tier),
            )

        return TierResolution(coverage_tier=claim_tier)

    def _private_tier_for(self, claim_tier: CoverageTier) -> CoverageTier:
        if self._private_rate_basis is PrivateRateBasis.CLAIM_FREE:
            return CoverageTier.COMPREHENSIVE_CLAIM_FREE
        if self._private_rate_basis is PrivateRateBasis.WITH_CLAIMS:
            return CoverageTier.COMPREHENSIVE_WITH_CLAIMS
        return claim_tier

    def apply_minimum_premium(self, row: RateRow, premium: Decimal) -> MinimumPremiumResult:
        """Quote the row's minimum premium when the calculated one is lower."""
        if row.min_premium is not None and premium < row.min_premium:
            return MinimumPremiumResult(premium=row.min_premium, min_premium_applied=True)
        return MinimumPremiumResult(premium=premium, min_premium_applied=False)

    def resolve_excess(
        self,
        excess_rule: ExcessRule,
        base_premium: Decimal,
        wants_excess_buy_back: bool,
        buy_back: ExcessBuyBackBenefit,
    ) -> ExcessResolution:
        """Resolve effective excess amounts.

        Excess Buy Back costs a share of the base premium (before surcharge
        and floor, excluding tax) and zeroes the standard excess. Total theft
        excess is never bought back.
        """
        total_theft_excess = excess_rule.total_theft_excess
        if not wants_excess_buy_back:
            return ExcessResolution(
                standard_excess=excess_rule.standard_excess,
                total_theft_excess=total_theft_excess,
            )

        return ExcessResolution(
            standard_excess=Decimal("0"),
            total_theft_excess=total_theft_excess,
            excess_buy_back_cost=to_whole_units(base_premium * buy_back.rate),
        )

    def loss_of_use_claim_allowed(
        self,
        incident_date: date,
        claim_date: date,
        benefit: LossOfUseBenefit,
    ) -> Result[bool, RatingError]:
        """Check that a Loss of Use claim falls inside the claim window."""
        if claim_date < incident_date:
            return Err(
                InvalidInput("Claim date precedes incident date", field="claim_date")
            )
        return Ok((claim_date - incident_date).days <= benefit.claim_window_days)

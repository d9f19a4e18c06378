"""Quote request and premium breakdown models."""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import Field, ValidationError, field_validator

from ..core.errors import InvalidInput
from ..core.result_types import Err, Ok, Result
from .base import BaseModelConfig

MAX_INSURED_VALUE = Decimal("1000000000000000")


class VehicleClass(str, Enum):
    """Vehicle classes the rule table prices."""

    MOTOR_VEHICLE = "motor_vehicle"
    TWO_WHEELER = "two_wheeler"
    THREE_WHEELER = "three_wheeler"


class VehicleUsage(str, Enum):
    """How the insured vehicle is used."""

    PRIVATE = "private"
    COMMERCIAL = "commercial"


class CoverageTier(str, Enum):
    """Coverage tiers as keyed in the rule table."""

    COMPREHENSIVE_CLAIM_FREE = "comprehensive_claim_free"
    COMPREHENSIVE_WITH_CLAIMS = "comprehensive_with_claims"
    THIRD_PARTY_FIRE_THEFT = "third_party_fire_theft"
    THIRD_PARTY_ONLY = "third_party_only"
    COMMERCIAL_COMPREHENSIVE = "commercial_comprehensive"

    @property
    def is_comprehensive(self) -> bool:
        return self in _COMPREHENSIVE_TIERS


_COMPREHENSIVE_TIERS = frozenset(
    {
        CoverageTier.COMPREHENSIVE_CLAIM_FREE,
        CoverageTier.COMPREHENSIVE_WITH_CLAIMS,
        CoverageTier.COMMERCIAL_COMPREHENSIVE,
    }
)


class CoverageRequest(str, Enum):
    """Coverage the caller asks for.

    ``COMPREHENSIVE`` leaves the claim tier to the engine, which picks it
    from the request's claim history.
    """

    COMPREHENSIVE = "comprehensive"
    COMPREHENSIVE_CLAIM_FREE = "comprehensive_claim_free"
    COMPREHENSIVE_WITH_CLAIMS = "comprehensive_with_claims"
    THIRD_PARTY_FIRE_THEFT = "third_party_fire_theft"
    THIRD_PARTY_ONLY = "third_party_only"

    @property
    def is_comprehensive(self) -> bool:
        return self in {
            CoverageRequest.COMPREHENSIVE,
            CoverageRequest.COMPREHENSIVE_CLAIM_FREE,
            CoverageRequest.COMPREHENSIVE_WITH_CLAIMS,
        }


class QuoteRequest(BaseModelConfig):
    """Caller-supplied quote request, validated at the edge."""

    vehicle_class: VehicleClass = Field(..., description="Class of vehicle")
    usage: VehicleUsage = Field(
        default=VehicleUsage.PRIVATE, description="Private or commercial usage"
    )
    coverage: CoverageRequest = Field(..., description="Requested coverage")
    insured_value: Decimal = Field(
        ...,
        gt=Decimal("0"),
        le=MAX_INSURED_VALUE,
        description="Market value of the vehicle in whole currency units",
    )
    has_recent_claims: bool = Field(
        default=False, description="Whether the policyholder claimed recently"
    )
    wants_excess_buy_back: bool = Field(
        default=False, description="Whether to price the Excess Buy Back add-on"
    )
    currency: str | None = Field(
        default=None,
        pattern=r"^[A-Z]{3}$",
        description="Currency already chosen by an upstream collaborator",
    )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Result["QuoteRequest", InvalidInput]:
        """Validate a raw payload, reporting the first offending field."""
        try:
            return Ok(cls.model_validate(payload))
        except ValidationError as e:
            return Err(InvalidInput.from_validation_error(e))


class RatingStep(BaseModelConfig):
    """One entry of the audit trail produced while rating."""

    rule: str = Field(..., min_length=1, max_length=64, description="Rule identifier")
    detail: str = Field(..., min_length=1, max_length=500, description="What the rule did")
    amount: Decimal | None = Field(default=None, description="Amount the rule produced")


class PremiumBreakdown(BaseModelConfig):
    """Every figure needed to audit a premium, in whole currency units."""

    vehicle_class: VehicleClass
    usage: VehicleUsage
    coverage_tier: CoverageTier = Field(..., description="Tier actually rated")
    insured_value: Decimal = Field(..., gt=Decimal("0"))
    base_premium: Decimal = Field(
        ..., ge=Decimal("0"), description="Formula result before surcharge and floor"
    )
    surcharge_applied: bool = Field(default=False)
    surcharge_amount: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    min_premium_applied: bool = Field(default=False)
    final_premium: Decimal = Field(..., ge=Decimal("0"))
    standard_excess: Decimal | None = Field(
        default=None, ge=Decimal("0"), description="None when unspecified"
    )
    total_theft_excess: Decimal | None = Field(
        default=None, ge=Decimal("0"), description="None when unspecified"
    )
    excess_buy_back_cost: Decimal | None = Field(default=None, ge=Decimal("0"))
    required_documents: tuple[str, ...] = Field(default=())
    rule_table_version: str = Field(..., min_length=1)
    steps: tuple[RatingStep, ...] = Field(default=())
    quote_id: str | None = Field(default=None)
    currency: str | None = Field(default=None, pattern=r"^[A-Z]{3}$")

    @field_validator("final_premium")
    @classmethod
    def validate_final_premium(cls, v: Decimal) -> Decimal:
        """Final premium is always quoted in whole units."""
        if v != v.to_integral_value():
            raise ValueError("Final premium must be in whole currency units")
        return v

# BimaHub Rating - Premium Rating and Policy Rules Engine
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Main rating engine that orchestrates the rating steps.

Steps run in a fixed order and each one is recorded in the breakdown's
audit trail:

1. coverage tier resolution
2. base premium from the rate row formula
3. commercial surcharge
4. minimum premium floor
5. excess resolution and Excess Buy Back pricing
6. output assembly

The engine is a pure function of the request and one rule table. It
never assigns quote identifiers or currency; see ``QuoteService``.
"""

from beartype import beartype

from ...core.config import Settings, get_settings
from ...core.errors import RatingError, RuleNotFound
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.quote import (
    CoverageRequest,
    CoverageTier,
    PremiumBreakdown,
    QuoteRequest,
    RatingStep,
    VehicleClass,
    VehicleUsage,
)
from ..performance_monitor import performance_monitor
from .business_rules import RatingBusinessRules
from .calculators import PremiumCalculator
from .rate_tables import RuleTable, RuleTableRegistry
from .surcharge_calculator import SurchargeCalculator

logger = get_logger(__name__)


@beartype
class RatingEngine:
    """Deterministic premium computation over an immutable rule table."""

    def __init__(
        self,
        rule_table: RuleTable | RuleTableRegistry,
        settings: Settings | None = None,
        business_rules: RatingBusinessRules | None = None,
    ) -> None:
        """Initialize rating engine with its dependencies.

        Args:
            rule_table: Fixed table, or a registry whose current table is
                read once per rating call
            settings: Settings; defaults to the process settings
            business_rules: Rules override, mainly for tests
        """
        self._rule_table = rule_table
        self._settings = settings or get_settings()
        self._business_rules = business_rules or RatingBusinessRules(
            self._settings.commercial_private_rate_basis
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def current_table(self) -> RuleTable:
        if isinstance(self._rule_table, RuleTableRegistry):
            return self._rule_table.current()
        return self._rule_table

    @performance_monitor("rate_quote")
    def rate(self, request: QuoteRequest) -> Result[PremiumBreakdown, RatingError]:
        """Calculate the premium breakdown for a quote request.

        Args:
            request: Validated quote request

        Returns:
            Result containing the breakdown, or RuleNotFound / InvalidInput
        """
        validation = self._business_rules.validate_request(request)
        if validation.is_err():
            logger.info("Rejected quote request: %r", validation.unwrap_err())
            return validation

        # One table for the whole computation, even if a reload happens meanwhile
        table = self.current_table()
        result = self._rate_with_table(request, table)
        if result.is_err():
            error = result.unwrap_err()
            if isinstance(error, RuleNotFound):
                logger.error(
                    "Rule table %s configuration error: %s", table.version, error.message
                )
            else:
                logger.info("Rating failed: %r", error)
        return result

    def _rate_with_table(
        self, request: QuoteRequest, table: RuleTable
    ) -> Result[PremiumBreakdown, RatingError]:
        rules = self._business_rules
        steps: list[RatingStep] = []

        # Step 1: coverage tier
        resolution = rules.resolve_coverage_tier(request, table)
        tier_detail = f"{request.coverage.value} -> {resolution.coverage_tier.value}"
        if resolution.private_tier is not None:
            tier_detail += f" (private rate: {resolution.private_tier.value})"
        steps.append(RatingStep(rule="coverage_tier_resolution", detail=tier_detail))

        row_result = table.lookup_rate(
            request.vehicle_class, request.usage, resolution.coverage_tier
        )
        if row_result.is_err():
            return row_result
        row = row_result.unwrap()

        # Step 2: base premium
        base_result = PremiumCalculator.calculate_base_premium(
            row, request.insured_value, table, resolution.private_tier
        )
        if base_result.is_err():
            return base_result
        base_premium = base_result.unwrap()
        steps.append(
            RatingStep(rule="base_premium", detail=row.formula.kind, amount=base_premium)
        )

        # Step 3: commercial surcharge
        surcharge_result = SurchargeCalculator.apply_commercial_surcharge(row, base_premium)
        if surcharge_result.is_err():
            return surcharge_result
        surcharge = surcharge_result.unwrap()
        if surcharge.surcharge_applied:
            steps.append(
                RatingStep(
                    rule="commercial_surcharge",
                    detail=f"added {surcharge.surcharge_amount}",
                    amount=surcharge.premium,
                )
            )

        # Step 4: minimum premium
        floor = rules.apply_minimum_premium(row, surcharge.premium)
        if floor.min_premium_applied:
            steps.append(
                RatingStep(
                    rule="minimum_premium",
                    detail=f"raised {surcharge.premium} to {row.min_premium}",
                    amount=floor.premium,
                )
            )

        # Step 5: excess
        excess_rule_result = table.lookup_excess(request.vehicle_class)
        if excess_rule_result.is_err():
            return excess_rule_result
        excess = rules.resolve_excess(
            excess_rule_result.unwrap(),
            base_premium,
            request.wants_excess_buy_back,
            table.added_benefits.excess_buy_back,
        )
        steps.append(
            RatingStep(
                rule="excess_resolution",
                detail=(
                    f"standard={_format_amount(excess_rule_result.unwrap().standard_excess)} "
                    f"total_theft={_format_amount(excess.total_theft_excess)}"
                ),
            )
        )
        if excess.excess_buy_back_cost is not None:
            steps.append(
                RatingStep(
                    rule="excess_buy_back",
                    detail="standard excess reduced to 0",
                    amount=excess.excess_buy_back_cost,
                )
            )

        documents_result = table.lookup_documents(resolution.coverage_tier)
        if documents_result.is_err():
            return documents_result

        # Step 6: assembly
        breakdown = PremiumBreakdown(
            vehicle_class=request.vehicle_class,
            usage=request.usage,
            coverage_tier=resolution.coverage_tier,
            insured_value=request.insured_value,
            base_premium=base_premium,
            surcharge_applied=surcharge.surcharge_applied,
            surcharge_amount=surcharge.surcharge_amount,
            min_premium_applied=floor.min_premium_applied,
            final_premium=floor.premium,
            standard_excess=excess.standard_excess,
            total_theft_excess=excess.total_theft_excess,
            excess_buy_back_cost=excess.excess_buy_back_cost,
            required_documents=documents_result.unwrap().mandatory_documents,
            rule_table_version=table.version,
            steps=tuple(steps),
        )
        logger.debug(
            "Rated %s/%s/%s: base=%s final=%s",
            request.vehicle_class.value,
            request.usage.value,
            resolution.coverage_tier.value,
            breakdown.base_premium,
            breakdown.final_premium,
        )
        return Ok(breakdown)

    def available_coverages(
        self, vehicle_class: VehicleClass, usage: VehicleUsage
    ) -> tuple[CoverageRequest, ...]:
        """List coverage requests the current table can rate."""
        table = self.current_table()
        commercial_row = usage is VehicleUsage.COMMERCIAL and table.has_rate(
            vehicle_class, usage, CoverageTier.COMMERCIAL_COMPREHENSIVE
        )

        available: list[CoverageRequest] = []
        for coverage in CoverageRequest:
            if coverage.is_comprehensive and commercial_row:
                available.append(coverage)
                continue
            if coverage is CoverageRequest.COMPREHENSIVE:
                tiers = (
                    CoverageTier.COMPREHENSIVE_CLAIM_FREE,
                    CoverageTier.COMPREHENSIVE_WITH_CLAIMS,
                )
            else:
                tiers = (CoverageTier(coverage.value),)
            if all(table.has_rate(vehicle_class, usage, tier) for tier in tiers):
                available.append(coverage)
        return tuple(available)


def _format_amount(amount: object) -> str:
    return "unspecified" if amount is None else str(amount)

"""Premium formula evaluation."""

from decimal import Decimal

from beartype import beartype

from ...core.errors import InvalidInput, RatingError
from ...core.result_types import Err, Ok, Result
from ...models.base import to_whole_units
from ...models.quote import MAX_INSURED_VALUE, CoverageTier, VehicleUsage
from ...schemas.rating import (
    FixedAmount,
    PercentOfValue,
    PercentOfValuePlusFixed,
    PrivateRateReference,
    RateRow,
)
from .rate_tables import RuleTable


class PremiumCalculator:
    """Evaluate rate row formulas against an insured value."""

    @beartype
    @staticmethod
    def evaluate_formula(
        formula: PercentOfValue | PercentOfValuePlusFixed | FixedAmount,
        insured_value: Decimal,
    ) -> Result[Decimal, RatingError]:
        """Evaluate a self-contained formula, rounded to whole units.

        Args:
            formula: Formula variant from a rate row
            insured_value: Market value of the vehicle

        Returns:
            Result containing the premium or an InvalidInput error
        """
        if insured_value <= 0:
            return Err(
                InvalidInput("Insured value must be positive", field="insured_value")
            )
        if insured_value > MAX_INSURED_VALUE:
            return Err(
                InvalidInput(
                    f"Insured value must not exceed {MAX_INSURED_VALUE}",
                    field="insured_value",
                )
            )

        if isinstance(formula, PercentOfValue):
            premium = insured_value * formula.rate
        elif isinstance(formula, PercentOfValuePlusFixed):
            premium = insured_value * formula.rate + formula.fixed
        else:
            premium = formula.amount

        return Ok(to_whole_units(premium))

    @beartype
    @staticmethod
    def calculate_base_premium(
        row: RateRow,
        insured_value: Decimal,
        table: RuleTable,
        private_tier: CoverageTier | None = None,
    ) -> Result[Decimal, RatingError]:
        """Calculate a row's base premium, following private-rate references.

        A ``PrivateRateReference`` row is priced as the base premium of the
        private row for the same vehicle class and ``private_tier``. The
        private row's own surcharge and floor are not part of the base.

        Args:
            row: Rate row being rated
            insured_value: Market value of the vehicle
            table: Table used to resolve private-rate references
            private_tier: Claim tier of the referenced private row

        Returns:
            Result containing the base premium or error
        """
        formula = row.formula
        if not isinstance(formula, PrivateRateReference):
            return PremiumCalculator.evaluate_formula(formula, insured_value)

        if private_tier is None or not private_tier.is_comprehensive:
            return Err(
                InvalidInput(
                    f"Private-rate row {row.vehicle_class.value} needs a "
                    f"comprehensive claim tier",
                    field="coverage",
                )
            )

        private_result = table.lookup_rate(
            row.vehicle_class, VehicleUsage.PRIVATE, private_tier
        )
        if private_result.is_err():
            return private_result

        return PremiumCalculator.calculate_base_premium(
            private_result.unwrap(), insured_value, table, private_tier
        )

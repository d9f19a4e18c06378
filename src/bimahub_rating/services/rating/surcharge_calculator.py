# BimaHub Rating - Premium Rating and Policy Rules Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Commercial surcharge calculation.

Commercial comprehensive rows carry a fixed surcharge that is added after
the base premium and before the minimum-premium floor:

- Two-wheelers: 15,000 on top of the percentage premium.
- Three-wheelers: 45,000 on top of the equivalent private rate.

Rows whose fixed amount already embeds the loading (three-wheeler TPO)
carry no surcharge and pass through unchanged.
"""

from decimal import Decimal

from beartype import beartype
from pydantic import Field

from ...core.errors import InvalidInput, RatingError
from ...core.result_types import Err, Ok, Result
from ...models.base import BaseModelConfig
from ...schemas.rating import RateRow


class SurchargeCalculation(BaseModelConfig):
    """Premium after the commercial surcharge step."""

    surcharge_applied: bool
    surcharge_amount: Decimal = Field(..., ge=Decimal("0"))
    premium: Decimal = Field(..., ge=Decimal("0"))


@beartype
class SurchargeCalculator:
    """Apply the fixed commercial surcharge a rate row defines."""

    @staticmethod
    def apply_commercial_surcharge(
        row: RateRow, base_premium: Decimal
    ) -> Result[SurchargeCalculation, RatingError]:
        """Add the row's surcharge to the base premium.

        Args:
            row: Rate row being rated
            base_premium: Base premium from the row's formula

        Returns:
            Result containing the surcharged premium or error
        """
        if base_premium < 0:
            return Err(
                InvalidInput(
                    "Base premium must not be negative for surcharge calculation",
                    field="base_premium",
                )
            )

        if row.surcharge is None:
            return Ok(
                SurchargeCalculation(
                    surcharge_applied=False,
                    surcharge_amount=Decimal("0"),
                    premium=base_premium,
                )
            )

        return Ok(
            SurchargeCalculation(
                surcharge_applied=True,
                surcharge_amount=row.surcharge,
                premium=base_premium + row.surcharge,
            )
        )

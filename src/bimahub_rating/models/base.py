# BimaHub Rating - Premium Rating and Policy Rules Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Base Pydantic model configuration for all rating models.

Requests, breakdowns and rule rows are values: they are created once and
never modified, so every model here is frozen and rejects unknown fields.
"""

from decimal import ROUND_HALF_UP, Decimal

from beartype import beartype
from pydantic import BaseModel, ConfigDict

WHOLE_UNIT = Decimal("1")


@beartype
def to_whole_units(amount: Decimal) -> Decimal:
    """Round a money amount to whole currency units, half up."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


@beartype
class BaseModelConfig(BaseModel):
    """Base model with strict configuration for all rating entities.

    Enforces:
    - Immutability (frozen=True)
    - No extra fields allowed (extra="forbid")
    - Validation on assignment
    - Automatic whitespace stripping
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )

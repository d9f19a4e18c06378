"""Rating engine services package.

This package provides deterministic premium rating with:
- Typed rule tables with versioned, atomic reload
- Premium formula evaluation
- Commercial surcharge calculation
- Business rules (tier resolution, minimum premium, excess, benefits)
"""

from .business_rules import (
    ExcessResolution,
    MinimumPremiumResult,
    RatingBusinessRules,
    TierResolution,
)
from .calculators import PremiumCalculator
from .rate_tables import (
    DEFAULT_RULE_TABLE_VERSION,
    RuleTable,
    RuleTableRegistry,
    default_rule_table,
    default_rule_table_data,
    load_rule_table,
)
from .rating_engine import RatingEngine
from .surcharge_calculator import SurchargeCalculation, SurchargeCalculator

__all__ = [
    # Main Engine
    "RatingEngine",
    # Core calculators
    "PremiumCalculator",
    "SurchargeCalculator",
    "SurchargeCalculation",
    # Business Rules
    "RatingBusinessRules",
    "TierResolution",
    "MinimumPremiumResult",
    "ExcessResolution",
    # Rule tables
    "RuleTable",
    "RuleTableRegistry",
    "DEFAULT_RULE_TABLE_VERSION",
    "default_rule_table",
    "default_rule_table_data",
    "load_rule_table",
]

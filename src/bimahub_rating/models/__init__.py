"""Domain models package for the rating engine.

Requests and breakdowns are frozen Pydantic models so a quote, once
produced, can be logged, stored or serialised without being altered.
"""

from .base import BaseModelConfig, to_whole_units
from .quote import (
    MAX_INSURED_VALUE,
    CoverageRequest,
    CoverageTier,
    PremiumBreakdown,
    QuoteRequest,
    RatingStep,
    VehicleClass,
    VehicleUsage,
)

__all__ = [
    # Base models
    "BaseModelConfig",
    "to_whole_units",
    # Enums
    "VehicleClass",
    "VehicleUsage",
    "CoverageTier",
    "CoverageRequest",
    # Quote models
    "MAX_INSURED_VALUE",
    "QuoteRequest",
    "RatingStep",
    "PremiumBreakdown",
]

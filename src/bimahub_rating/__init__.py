"""BimaHub premium rating and policy rules engine.

Typical use::

    from bimahub_rating import QuoteRequest, create_quote_service

    service = create_quote_service()
    result = service.issue_quote(
        QuoteRequest(
            vehicle_class="motor_vehicle",
            coverage="comprehensive",
            insured_value=20_000_000,
        )
    )
    if result.is_ok():
        breakdown = result.unwrap()
"""

from .core.errors import InvalidInput, RatingError, RuleNotFound, RuleTableError
from .core.result_types import Err, Ok, Result
from .models.quote import (
    CoverageRequest,
    CoverageTier,
    PremiumBreakdown,
    QuoteRequest,
    RatingStep,
    VehicleClass,
    VehicleUsage,
)
from .services.quote_service import QuoteIdGenerator, QuoteService, create_quote_service
from .services.rating import (
    RatingEngine,
    RuleTable,
    RuleTableRegistry,
    default_rule_table,
    load_rule_table,
)

__version__ = "0.1.0"

__all__ = [
    "CoverageRequest",
    "CoverageTier",
    "Err",
    "InvalidInput",
    "Ok",
    "PremiumBreakdown",
    "QuoteIdGenerator",
    "QuoteRequest",
    "QuoteService",
    "RatingEngine",
    "RatingError",
    "RatingStep",
    "Result",
    "RuleNotFound",
    "RuleTable",
    "RuleTableError",
    "RuleTableRegistry",
    "VehicleClass",
    "VehicleUsage",
    "create_quote_service",
    "default_rule_table",
    "load_rule_table",
]

"""Rule table construction, lookup and versioned reload.

A ``RuleTable`` is built once from ``RuleTableData`` and never mutated.
Lookups are exact: a key with no row is a configuration defect reported
as ``RuleNotFound``, never a default premium. ``RuleTableRegistry`` holds
the table currently in force and swaps it as a whole on reload.
"""

import threading
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType

from beartype import beartype
from pydantic import ValidationError

from ...core.config import Settings, get_settings
from ...core.errors import RuleNotFound, RuleTableError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.quote import CoverageTier, VehicleClass, VehicleUsage
from ...schemas.rating import (
    AddedBenefits,
    DocumentCategory,
    DocumentRequirement,
    ExcessBuyBackBenefit,
    ExcessRule,
    FixedAmount,
    LossOfUseBenefit,
    PercentOfValue,
    PercentOfValuePlusFixed,
    PrivateRateReference,
    RateRow,
    RuleTableData,
)

logger = get_logger(__name__)

RateKey = tuple[VehicleClass, VehicleUsage, CoverageTier]

DEFAULT_RULE_TABLE_VERSION = "2024.1"

_MV = VehicleClass.MOTOR_VEHICLE
_2W = VehicleClass.TWO_WHEELER
_3W = VehicleClass.THREE_WHEELER
_PRIVATE = VehicleUsage.PRIVATE
_COMMERCIAL = VehicleUsage.COMMERCIAL


def _pct(rate: str) -> PercentOfValue:
    return PercentOfValue(rate=Decimal(rate))


def _row(
    vehicle_class: VehicleClass,
    usage: VehicleUsage,
    tier: CoverageTier,
    formula: PercentOfValue | PercentOfValuePlusFixed | FixedAmount | PrivateRateReference,
    *,
    surcharge: int | None = None,
    min_premium: int | None = None,
) -> RateRow:
    return RateRow(
        vehicle_class=vehicle_class,
        usage=usage,
        coverage_tier=tier,
        formula=formula,
        surcharge=Decimal(surcharge) if surcharge is not None else None,
        min_premium=Decimal(min_premium) if min_premium is not None else None,
    )


@beartype
def default_rule_table_data() -> RuleTableData:
    """BimaHub premium, excess, benefit and document rules."""
    claim_free = CoverageTier.COMPREHENSIVE_CLAIM_FREE
    with_claims = CoverageTier.COMPREHENSIVE_WITH_CLAIMS
    tpft = CoverageTier.THIRD_PARTY_FIRE_THEFT
    tpo = CoverageTier.THIRD_PARTY_ONLY

    rates = (
        # Motor vehicles
        _row(_MV, _PRIVATE, claim_free, _pct("0.035"), min_premium=250_000),
        _row(_MV, _PRIVATE, with_claims, _pct("0.040"), min_premium=250_000),
        _row(
            _MV,
            _PRIVATE,
            tpft,
            PercentOfValuePlusFixed(rate=Decimal("0.02"), fixed=Decimal("100000")),
        ),
        _row(_MV, _PRIVATE, tpo, FixedAmount(amount=Decimal("100000"))),
        # Two-wheelers
        _row(_2W, _PRIVATE, claim_free, _pct("0.050"), min_premium=125_000),
        _row(_2W, _PRIVATE, with_claims, _pct("0.060"), min_premium=125_000),
        _row(
            _2W, _COMMERCIAL, claim_free, _pct("0.050"), surcharge=15_000, min_premium=125_000
        ),
        _row(
            _2W, _COMMERCIAL, with_claims, _pct("0.060"), surcharge=15_000, min_premium=125_000
        ),
        _row(
            _2W,
            _PRIVATE,
            tpft,
            PercentOfValuePlusFixed(rate=Decimal("0.035"), fixed=Decimal("100000")),
        ),
        _row(_2W, _PRIVATE, tpo, FixedAmount(amount=Decimal("50000"))),
        _row(_2W, _COMMERCIAL, tpo, FixedAmount(amount=Decimal("65000"))),
        # Three-wheelers
        _row(_3W, _PRIVATE, claim_free, _pct("0.060"), min_premium=125_000),
        _row(_3W, _PRIVATE, with_claims, _pct("0.070"), min_premium=125_000),
        _row(
            _3W,
            _COMMERCIAL,
            CoverageTier.COMMERCIAL_COMPREHENSIVE,
            PrivateRateReference(),
            surcharge=45_000,
        ),
        _row(_3W, _PRIVATE, tpo, FixedAmount(amount=Decimal("75000"))),
        # 75,000 private rate with the 45,000 commercial loading already included
        _row(_3W, _COMMERCIAL, tpo, FixedAmount(amount=Decimal("120000"))),
    )

    excess_rules = (
        ExcessRule(vehicle_class=_MV, standard_excess=Decimal("350000")),
        ExcessRule(vehicle_class=_3W, standard_excess=Decimal("100000")),
        ExcessRule(vehicle_class=_2W, standard_excess=None),
    )

    document_requirements = (
        DocumentRequirement(
            category=DocumentCategory.COMPREHENSIVE,
            mandatory_documents=(
                "vehicle_registration_card",
                "drivers_license",
                "vehicle_photo_front",
                "vehicle_photo_back",
                "vehicle_photo_left",
                "vehicle_photo_right",
            ),
        ),
        DocumentRequirement(
            category=DocumentCategory.THIRD_PARTY,
            mandatory_documents=("vehicle_registration_card", "drivers_license"),
        ),
    )

    return RuleTableData(
        version=DEFAULT_RULE_TABLE_VERSION,
        rates=rates,
        excess_rules=excess_rules,
        added_benefits=AddedBenefits(
            loss_of_use=LossOfUseBenefit(payout=Decimal("50000"), claim_window_days=21),
            excess_buy_back=ExcessBuyBackBenefit(rate=Decimal("0.10")),
        ),
        document_requirements=document_requirements,
    )


@beartype
class RuleTable:
    """Immutable, exact-match lookup over one rule table version."""

    def __init__(
        self,
        version: str,
        rates: dict[RateKey, RateRow],
        excess_rules: dict[VehicleClass, ExcessRule],
        added_benefits: AddedBenefits,
        documents: dict[DocumentCategory, DocumentRequirement],
    ) -> None:
        """Initialize from already validated rows; use ``from_data`` instead."""
        self._version = version
        self._rates = MappingProxyType(dict(rates))
        self._excess_rules = MappingProxyType(dict(excess_rules))
        self._added_benefits = added_benefits
        self._documents = MappingProxyType(dict(documents))

    @classmethod
    def from_data(cls, data: RuleTableData) -> "RuleTable":
        """Build a table, rejecting duplicate keys and dangling references.

        Raises:
            RuleTableError: If the rows do not form a consistent table
        """
        rates: dict[RateKey, RateRow] = {}
        for row in data.rates:
            if row.key in rates:
                raise RuleTableError(
                    f"Duplicate rate row for {_format_key(row.key)} "
                    f"in rule table {data.version}"
                )
            rates[row.key] = row

        for row in rates.values():
            if not isinstance(row.formula, PrivateRateReference):
                continue
            for tier in (
                CoverageTier.COMPREHENSIVE_CLAIM_FREE,
                CoverageTier.COMPREHENSIVE_WITH_CLAIMS,
            ):
                if (row.vehicle_class, VehicleUsage.PRIVATE, tier) not in rates:
                    raise RuleTableError(
                        f"Rate row {_format_key(row.key)} prices off the private rate "
                        f"but {row.vehicle_class.value}/private/{tier.value} is missing"
                    )

        excess_rules: dict[VehicleClass, ExcessRule] = {}
        for rule in data.excess_rules:
            if rule.vehicle_class in excess_rules:
                raise RuleTableError(
                    f"Duplicate excess rule for {rule.vehicle_class.value} "
                    f"in rule table {data.version}"
                )
            excess_rules[rule.vehicle_class] = rule

        rated_classes = {key[0] for key in rates}
        missing_excess = rated_classes - excess_rules.keys()
        if missing_excess:
            names = ", ".join(sorted(vc.value for vc in missing_excess))
            raise RuleTableError(f"No excess rule for rated vehicle classes: {names}")

        documents: dict[DocumentCategory, DocumentRequirement] = {}
        for requirement in data.document_requirements:
            if requirement.category in documents:
                raise RuleTableError(
                    f"Duplicate document requirement for {requirement.category.value}"
                )
            documents[requirement.category] = requirement

        missing_documents = set(DocumentCategory) - documents.keys()
        if missing_documents:
            names = ", ".join(sorted(category.value for category in missing_documents))
            raise RuleTableError(f"No document requirement for: {names}")

        return cls(
            version=data.version,
            rates=rates,
            excess_rules=excess_rules,
            added_benefits=data.added_benefits,
            documents=documents,
        )

    @property
    def version(self) -> str:
        return self._version

    @property
    def added_benefits(self) -> AddedBenefits:
        return self._added_benefits

    @property
    def rate_rows(self) -> tuple[RateRow, ...]:
        return tuple(self._rates.values())

    def has_rate(
        self,
        vehicle_class: VehicleClass,
        usage: VehicleUsage,
        coverage_tier: CoverageTier,
    ) -> bool:
        return (vehicle_class, usage, coverage_tier) in self._rates

    def lookup_rate(
        self,
        vehicle_class: VehicleClass,
        usage: VehicleUsage,
        coverage_tier: CoverageTier,
    ) -> Result[RateRow, RuleNotFound]:
        """Get the rate row for an exact key."""
        key = (vehicle_class, usage, coverage_tier)
        row = self._rates.get(key)
        if row is None:
            return Err(
                RuleNotFound(
                    f"No rate row for {_format_key(key)} in rule table {self._version}",
                    key=tuple(part.value for part in key),
                )
            )
        return Ok(row)

    def lookup_excess(self, vehicle_class: VehicleClass) -> Result[ExcessRule, RuleNotFound]:
        """Get the excess schedule for a vehicle class."""
        rule = self._excess_rules.get(vehicle_class)
        if rule is None:
            return Err(
                RuleNotFound(
                    f"No excess rule for {vehicle_class.value} "
                    f"in rule table {self._version}",
                    key=(vehicle_class.value,),
                )
            )
        return Ok(rule)

    def lookup_documents(
        self, coverage_tier: CoverageTier
    ) -> Result[DocumentRequirement, RuleNotFound]:
        """Get the mandatory documents for the tier's document category."""
        category = DocumentCategory.for_tier(coverage_tier)
        requirement = self._documents.get(category)
        if requirement is None:
            return Err(
                RuleNotFound(
                    f"No document requirement for {category.value} "
                    f"in rule table {self._version}",
                    key=(category.value,),
                )
            )
        return Ok(requirement)

    def to_data(self) -> RuleTableData:
        """Convert back to the serialisable form."""
        return RuleTableData(
            version=self._version,
            rates=tuple(self._rates.values()),
            excess_rules=tuple(self._excess_rules.values()),
            added_benefits=self._added_benefits,
            document_requirements=tuple(self._documents.values()),
        )


def _format_key(key: RateKey) -> str:
    return "/".join(part.value for part in key)


@beartype
def default_rule_table() -> RuleTable:
    """Build the built-in BimaHub rule table."""
    return RuleTable.from_data(default_rule_table_data())


@beartype
def load_rule_table(path: Path) -> RuleTable:
    """Load and validate a JSON rule table file.

    Raises:
        RuleTableError: If the file is missing, malformed or inconsistent
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RuleTableError(f"Cannot read rule table {path}: {e}") from e

    try:
        data = RuleTableData.model_validate_json(raw)
    except ValidationError as e:
        raise RuleTableError(f"Invalid rule table {path}: {e}") from e

    table = RuleTable.from_data(data)
    logger.info(
        "Loaded rule table %s from %s (%d rate rows)",
        table.version,
        path,
        len(table.rate_rows),
    )
    return table


@beartype
class RuleTableRegistry:
    """Holds the rule table currently in force.

    Readers call ``current()`` once per rating and keep that table for the
    whole computation, so a concurrent ``reload`` is never observed halfway.
    """

    def __init__(self, table: RuleTable) -> None:
        self._table = table
        self._lock = threading.Lock()

    def current(self) -> RuleTable:
        return self._table

    def reload(self, table: RuleTable) -> RuleTable:
        """Swap in a new table and return the one it replaced."""
        with self._lock:
            previous = self._table
            self._table = table
        logger.info(
            "Rule table reloaded: %s -> %s", previous.version, table.version
        )
        return previous

    def reload_from_path(self, path: Path) -> RuleTable:
        """Load a JSON table and swap it in; the old table stays on failure."""
        return self.reload(load_rule_table(path))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RuleTableRegistry":
        """Build the startup registry from ``rule_table_path`` or the defaults."""
        settings = settings or get_settings()
        if settings.rule_table_path is not None:
            return cls(load_rule_table(settings.rule_table_path))
        return cls(default_rule_table())

"""Unit tests for the rating engine end to end over the built-in table."""

import json
import logging
from decimal import Decimal

import pytest

from bimahub_rating.core.config import PrivateRateBasis, Settings
from bimahub_rating.core.errors import InvalidInput, RuleNotFound
from bimahub_rating.models.quote import (
    MAX_INSURED_VALUE,
    CoverageRequest,
    CoverageTier,
    QuoteRequest,
    VehicleClass,
    VehicleUsage,
)
from bimahub_rating.services.performance_monitor import performance_tracker
from bimahub_rating.services.rating.rate_tables import RuleTableRegistry, load_rule_table
from bimahub_rating.services.rating.rating_engine import RatingEngine
from tests.fixtures.test_data import make_request, sample_rule_table_payload

INSURED_VALUES = [
    Decimal("1"),
    Decimal("100000"),
    Decimal("1000000"),
    Decimal("2500000"),
    Decimal("7142857"),
    Decimal("20000000"),
    Decimal("150000000"),
]


def _all_requests(value: Decimal) -> list[QuoteRequest]:
    return [
        make_request(vehicle_class, coverage, value, usage=usage, has_recent_claims=claims)
        for vehicle_class in VehicleClass
        for usage in VehicleUsage
        for coverage in CoverageRequest
        for claims in (False, True)
    ]


class TestMotorVehicle:
    """Private motor vehicle rating."""

    def test_comprehensive_claim_free(self, engine):
        result = engine.rate(make_request(insured_value="20000000"))

        assert result.is_ok()
        breakdown = result.unwrap()
        assert breakdown.coverage_tier is CoverageTier.COMPREHENSIVE_CLAIM_FREE
        assert breakdown.base_premium == Decimal("700000")
        assert breakdown.final_premium == Decimal("700000")
        assert breakdown.min_premium_applied is False
        assert breakdown.surcharge_applied is False
        assert breakdown.standard_excess == Decimal("350000")
        assert breakdown.total_theft_excess == Decimal("700000")
        assert breakdown.excess_buy_back_cost is None
        assert len(breakdown.required_documents) == 6
        assert breakdown.rule_table_version == "2024.1"
        assert breakdown.quote_id is None
        assert breakdown.currency is None

    def test_comprehensive_with_claims(self, engine):
        result = engine.rate(make_request(insured_value="20000000", has_recent_claims=True))

        breakdown = result.unwrap()
        assert breakdown.coverage_tier is CoverageTier.COMPREHENSIVE_WITH_CLAIMS
        assert breakdown.final_premium == Decimal("800000")

    def test_minimum_premium(self, engine):
        """3.5% of 5,000,000 is 175,000, below the 250,000 floor."""
        breakdown = engine.rate(make_request(insured_value="5000000")).unwrap()

        assert breakdown.base_premium == Decimal("175000")
        assert breakdown.final_premium == Decimal("250000")
        assert breakdown.min_premium_applied is True

    def test_third_party_fire_theft(self, engine):
        breakdown = engine.rate(
            make_request(
                coverage=CoverageRequest.THIRD_PARTY_FIRE_THEFT, insured_value="10000000"
            )
        ).unwrap()

        assert breakdown.final_premium == Decimal("300000")
        assert breakdown.required_documents == (
            "vehicle_registration_card",
            "drivers_license",
        )

    def test_third_party_only_is_flat(self, engine):
        breakdown = engine.rate(
            make_request(coverage=CoverageRequest.THIRD_PARTY_ONLY, insured_value="1")
        ).unwrap()

        assert breakdown.final_premium == Decimal("100000")

    def test_excess_buy_back(self, engine):
        """Buy-back costs 10% of the base premium and zeroes the standard excess."""
        breakdown = engine.rate(
            make_request(insured_value="20000000", wants_excess_buy_back=True)
        ).unwrap()

        assert breakdown.excess_buy_back_cost == Decimal("70000")
        assert breakdown.standard_excess == Decimal("0")
        assert breakdown.total_theft_excess == Decimal("700000")
        assert breakdown.final_premium == Decimal("700000")
        assert breakdown.steps[-1].rule == "excess_buy_back"

    def test_excess_buy_back_priced_on_base_not_floor(self, engine):
        breakdown = engine.rate(
            make_request(insured_value="5000000", wants_excess_buy_back=True)
        ).unwrap()

        assert breakdown.final_premium == Decimal("250000")
        assert breakdown.excess_buy_back_cost == Decimal("17500")

    def test_commercial_usage_not_priced(self, engine):
        result = engine.rate(make_request(usage=VehicleUsage.COMMERCIAL))

        assert result.is_err()
        error = result.unwrap_err()
        assert isinstance(error, RuleNotFound)
        assert error.key == (
            "motor_vehicle",
            "commercial",
            "comprehensive_claim_free",
        )


class TestTwoWheeler:
    """Two-wheeler rating, including commercial surcharge."""

    def test_private_floor(self, engine):
        breakdown = engine.rate(
            make_request(VehicleClass.TWO_WHEELER, insured_value="1000000")
        ).unwrap()

        assert breakdown.base_premium == Decimal("50000")
        assert breakdown.final_premium == Decimal("125000")
        assert breakdown.min_premium_applied is True
        assert breakdown.standard_excess is None
        assert breakdown.total_theft_excess is None

    def test_commercial_surcharge_then_floor(self, engine):
        """100,000 + 15,000 is still below the 125,000 floor."""
        breakdown = engine.rate(
            make_request(
                VehicleClass.TWO_WHEELER,
                insured_value="2000000",
                usage=VehicleUsage.COMMERCIAL,
            )
        ).unwrap()

        assert breakdown.base_premium == Decimal("100000")
        assert breakdown.surcharge_applied is True
        assert breakdown.surcharge_amount == Decimal("15000")
        assert breakdown.final_premium == Decimal("125000")
        assert [step.rule for step in breakdown.steps] == [
            "coverage_tier_resolution",
            "base_premium",
            "commercial_surcharge",
            "minimum_premium",
            "excess_resolution",
        ]

    def test_commercial_surcharge_above_floor(self, engine):
        breakdown = engine.rate(
            make_request(
                VehicleClass.TWO_WHEELER,
                insured_value="4000000",
                usage=VehicleUsage.COMMERCIAL,
                has_recent_claims=True,
            )
        ).unwrap()

        assert breakdown.base_premium == Decimal("240000")
        assert breakdown.final_premium == Decimal("255000")
        assert breakdown.min_premium_applied is False

    def test_commercial_third_party_only(self, engine):
        breakdown = engine.rate(
            make_request(
                VehicleClass.TWO_WHEELER,
                CoverageRequest.THIRD_PARTY_ONLY,
                usage=VehicleUsage.COMMERCIAL,
            )
        ).unwrap()

        assert breakdown.final_premium == Decimal("65000")
        assert breakdown.surcharge_applied is False

    def test_buy_back_with_unspecified_excess(self, engine):
        breakdown = engine.rate(
            make_request(
                VehicleClass.TWO_WHEELER,
                insured_value="4000000",
                wants_excess_buy_back=True,
            )
        ).unwrap()

        assert breakdown.excess_buy_back_cost == Decimal("20000")
        assert breakdown.standard_excess == Decimal("0")
        assert breakdown.total_theft_excess is None


class TestThreeWheeler:
    """Three-wheeler rating, including the private-rate reference."""

    @pytest.mark.parametrize(
        ("has_recent_claims", "base", "final"),
        [
            (False, Decimal("60000"), Decimal("105000")),
            (True, Decimal("70000"), Decimal("115000")),
        ],
    )
    def test_commercial_comprehensive(self, engine, has_recent_claims, base, final):
        """Private rate plus 45,000, without the private floor."""
        breakdown = engine.rate(
            make_request(
                VehicleClass.THREE_WHEELER,
                insured_value="1000000",
                usage=VehicleUsage.COMMERCIAL,
                has_recent_claims=has_recent_claims,
            )
        ).unwrap()

        assert breakdown.coverage_tier is CoverageTier.COMMERCIAL_COMPREHENSIVE
        assert breakdown.base_premium == base
        assert breakdown.surcharge_amount == Decimal("45000")
        assert breakdown.final_premium == final
        assert breakdown.min_premium_applied is False
        assert breakdown.standard_excess == Decimal("100000")
        assert breakdown.total_theft_excess == Decimal("200000")

    def test_commercial_private_rate_basis_setting(self, rule_table):
        engine = RatingEngine(
            rule_table,
            Settings(commercial_private_rate_basis=PrivateRateBasis.WITH_CLAIMS),
        )

        breakdown = engine.rate(
            make_request(
                VehicleClass.THREE_WHEELER,
                insured_value="1000000",
                usage=VehicleUsage.COMMERCIAL,
            )
        ).unwrap()

        assert breakdown.final_premium == Decimal("115000")

    def test_commercial_third_party_only(self, engine):
        breakdown = engine.rate(
            make_request(
                VehicleClass.THREE_WHEELER,
                CoverageRequest.THIRD_PARTY_ONLY,
                usage=VehicleUsage.COMMERCIAL,
            )
        ).unwrap()

        assert breakdown.final_premium == Decimal("120000")
        assert breakdown.surcharge_applied is False

    def test_private_floor(self, engine):
        breakdown = engine.rate(
            make_request(VehicleClass.THREE_WHEELER, insured_value="1000000")
        ).unwrap()

        assert breakdown.final_premium == Decimal("125000")

    def test_third_party_fire_theft_not_priced(self, engine):
        result = engine.rate(
            make_request(VehicleClass.THREE_WHEELER, CoverageRequest.THIRD_PARTY_FIRE_THEFT)
        )

        assert result.is_err()
        assert isinstance(result.unwrap_err(), RuleNotFound)


class TestInvalidInput:
    """Requests the engine refuses to rate."""

    def test_zero_insured_value(self, engine):
        request = QuoteRequest.model_construct(
            vehicle_class=VehicleClass.MOTOR_VEHICLE,
            usage=VehicleUsage.PRIVATE,
            coverage=CoverageRequest.COMPREHENSIVE,
            insured_value=Decimal("0"),
        )

        result = engine.rate(request)

        assert result.is_err()
        assert isinstance(result.unwrap_err(), InvalidInput)

    def test_insured_value_above_cap(self, engine):
        """Values too large to round are refused, not raised."""
        request = QuoteRequest.model_construct(
            vehicle_class=VehicleClass.MOTOR_VEHICLE,
            usage=VehicleUsage.PRIVATE,
            coverage=CoverageRequest.COMPREHENSIVE,
            insured_value=Decimal(10) ** 30,
        )

        result = engine.rate(request)

        assert result.is_err()
        error = result.unwrap_err()
        assert isinstance(error, InvalidInput)
        assert error.field == "insured_value"

    def test_insured_value_at_cap_is_rated(self, engine):
        result = engine.rate(make_request(insured_value=MAX_INSURED_VALUE))

        assert result.is_ok()
        assert result.unwrap().final_premium == MAX_INSURED_VALUE * Decimal("0.035")

    def test_payload_above_cap(self):
        result = QuoteRequest.from_payload(
            {
                "vehicle_class": "motor_vehicle",
                "coverage": "comprehensive",
                "insured_value": str(Decimal(10) ** 30),
            }
        )

        assert result.is_err()
        assert result.unwrap_err().field == "insured_value"

    def test_payload_validation(self):
        result = QuoteRequest.from_payload(
            {"vehicle_class": "tractor", "coverage": "comprehensive", "insured_value": 1}
        )

        assert result.is_err()
        assert result.unwrap_err().field == "vehicle_class"

    def test_payload_with_negative_value(self):
        result = QuoteRequest.from_payload(
            {
                "vehicle_class": "motor_vehicle",
                "coverage": "comprehensive",
                "insured_value": "-10",
            }
        )

        assert result.is_err()
        assert result.unwrap_err().field == "insured_value"


class TestRatingProperties:
    """Properties that hold for every request the table can price."""

    @pytest.mark.parametrize("insured_value", INSURED_VALUES)
    def test_final_premium_respects_floor_and_whole_units(
        self, engine, rule_table, insured_value
    ):
        rated = 0
        for request in _all_requests(insured_value):
            result = engine.rate(request)
            if result.is_err():
                assert isinstance(result.unwrap_err(), RuleNotFound)
                continue
            rated += 1
            breakdown = result.unwrap()
            row = rule_table.lookup_rate(
                breakdown.vehicle_class, breakdown.usage, breakdown.coverage_tier
            ).unwrap()
            if row.min_premium is not None:
                assert breakdown.final_premium >= row.min_premium
            assert breakdown.final_premium == breakdown.final_premium.to_integral_value()
            assert breakdown.final_premium >= breakdown.base_premium
        assert rated > 0

    def test_rating_is_deterministic(self, engine):
        for request in _all_requests(Decimal("3333333")):
            first = engine.rate(request)
            second = engine.rate(request)
            assert first == second

    def test_premium_is_monotonic_in_insured_value(self, engine):
        requests_by_value = [_all_requests(value) for value in INSURED_VALUES]
        for same_key in zip(*requests_by_value):
            premiums = [
                result.unwrap().final_premium
                for result in (engine.rate(request) for request in same_key)
                if result.is_ok()
            ]
            assert premiums == sorted(premiums)

    def test_total_theft_excess_is_double_standard(self, engine):
        for request in _all_requests(Decimal("20000000")):
            result = engine.rate(request)
            if result.is_err():
                continue
            breakdown = result.unwrap()
            if breakdown.standard_excess is None:
                assert breakdown.total_theft_excess is None
            else:
                assert breakdown.total_theft_excess == 2 * breakdown.standard_excess


class TestEngineWiring:
    """Registry-backed tables, coverage listing and observability."""

    def test_reads_reloaded_table(self, registry, settings, tmp_path):
        engine = RatingEngine(registry, settings)
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(sample_rule_table_payload()), encoding="utf-8")

        registry.reload(load_rule_table(path))
        breakdown = engine.rate(make_request(insured_value="20000000")).unwrap()

        assert breakdown.rule_table_version == "2025.1"
        assert breakdown.final_premium == Decimal("600000")
        assert breakdown.standard_excess == Decimal("300000")

    def test_registry_from_settings(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(sample_rule_table_payload()), encoding="utf-8")
        settings = Settings(rule_table_path=path)

        engine = RatingEngine(RuleTableRegistry.from_settings(settings), settings)

        assert engine.current_table().version == "2025.1"

    @pytest.mark.parametrize(
        ("vehicle_class", "usage", "expected"),
        [
            (VehicleClass.MOTOR_VEHICLE, VehicleUsage.PRIVATE, tuple(CoverageRequest)),
            (VehicleClass.MOTOR_VEHICLE, VehicleUsage.COMMERCIAL, ()),
            (
                VehicleClass.TWO_WHEELER,
                VehicleUsage.COMMERCIAL,
                (
                    CoverageRequest.COMPREHENSIVE,
                    CoverageRequest.COMPREHENSIVE_CLAIM_FREE,
                    CoverageRequest.COMPREHENSIVE_WITH_CLAIMS,
                    CoverageRequest.THIRD_PARTY_ONLY,
                ),
            ),
            (
                VehicleClass.THREE_WHEELER,
                VehicleUsage.COMMERCIAL,
                (
                    CoverageRequest.COMPREHENSIVE,
                    CoverageRequest.COMPREHENSIVE_CLAIM_FREE,
                    CoverageRequest.COMPREHENSIVE_WITH_CLAIMS,
                    CoverageRequest.THIRD_PARTY_ONLY,
                ),
            ),
        ],
    )
    def test_available_coverages(self, engine, vehicle_class, usage, expected):
        assert engine.available_coverages(vehicle_class, usage) == expected

    def test_available_coverages_are_ratable(self, engine):
        for vehicle_class in VehicleClass:
            for usage in VehicleUsage:
                for coverage in engine.available_coverages(vehicle_class, usage):
                    result = engine.rate(
                        make_request(vehicle_class, coverage, usage=usage)
                    )
                    assert result.is_ok()

    def test_rule_not_found_logged_as_error(self, engine, caplog):
        with caplog.at_level(logging.ERROR, logger="bimahub_rating"):
            engine.rate(make_request(usage=VehicleUsage.COMMERCIAL))

        assert any(
            "configuration error" in record.getMessage() for record in caplog.records
        )

    def test_rating_is_timed(self, engine):
        engine.rate(make_request())

        stats = performance_tracker.get_operation_stats("rate_quote")
        assert stats is not None
        assert stats["count"] == 1
        assert stats["success_count"] == 1

    def test_json_serialisation(self, engine):
        breakdown = engine.rate(make_request(insured_value="20000000")).unwrap()

        data = breakdown.model_dump(mode="json")

        assert data["final_premium"] == "700000"
        assert data["coverage_tier"] == "comprehensive_claim_free"
        assert data["steps"][0]["rule"] == "coverage_tier_resolution"

"""Test configuration and fixtures for the rating engine."""

from collections.abc import Generator

import pytest

from bimahub_rating.core.config import PrivateRateBasis, Settings, clear_settings_cache
from bimahub_rating.core.logging_utils import reset_logging
from bimahub_rating.services.performance_monitor import performance_tracker
from bimahub_rating.services.rating.business_rules import RatingBusinessRules
from bimahub_rating.services.rating.rate_tables import (
    RuleTable,
    RuleTableRegistry,
    default_rule_table,
)
from bimahub_rating.services.rating.rating_engine import RatingEngine


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep environment overrides and cached settings out of other tests."""
    for name in (
        "BIMAHUB_QUOTE_ID_PREFIX",
        "BIMAHUB_DEFAULT_CURRENCY",
        "BIMAHUB_RULE_TABLE_PATH",
        "BIMAHUB_COMMERCIAL_PRIVATE_RATE_BASIS",
        "BIMAHUB_LOG_LEVEL",
        "BIMAHUB_SLOW_OPERATION_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()
    reset_logging()
    performance_tracker.reset_stats()


@pytest.fixture
def settings() -> Settings:
    """Explicit default settings."""
    return Settings()


@pytest.fixture
def rule_table() -> RuleTable:
    """Built-in BimaHub rule table."""
    return default_rule_table()


@pytest.fixture
def registry(rule_table: RuleTable) -> RuleTableRegistry:
    return RuleTableRegistry(rule_table)


@pytest.fixture
def engine(rule_table: RuleTable, settings: Settings) -> RatingEngine:
    """Rating engine over the built-in table."""
    return RatingEngine(rule_table, settings)


@pytest.fixture
def business_rules() -> RatingBusinessRules:
    return RatingBusinessRules(PrivateRateBasis.CLAIM_HISTORY)

"""Shared fixtures for DQI engine tests."""

import pytest

from dqi_engine.config import EngineConfig
from dqi_engine.core import (
    DefaultMarketProvider,
    MarketContextProvider,
    MarketDataUnavailable,
    PropertyInput,
    PropertyType,
    build_market_context,
)


class FailingMarketProvider(MarketContextProvider):
    """Provider whose every call fails."""

    def get_market_cap_rate(self, property_type, location):
        raise MarketDataUnavailable("feed offline")

    def get_commercial_rate(self, loan_amount, ltv):
        raise MarketDataUnavailable("feed offline")


@pytest.fixture
def provider():
    """Reference market tables."""
    return DefaultMarketProvider()


@pytest.fixture
def failing_provider():
    """Market provider that is always unavailable."""
    return FailingMarketProvider()


@pytest.fixture
def office_deal():
    """Stabilised Los Angeles office deal at a 5.8% cap rate."""
    return PropertyInput(
        property_id="LA-OFFICE-001",
        name="Wilshire Office Tower",
        property_value=10_000_000,
        net_operating_income=580_000,
        square_feet=50_000,
        property_type=PropertyType.OFFICE,
        location="Los Angeles, CA",
    )


@pytest.fixture
def distressed_deal(office_deal):
    """Same office deal with NOI cut to $150k (1.5% cap rate)."""
    return office_deal.with_overrides(
        property_id="LA-OFFICE-002",
        net_operating_income=150_000,
    )


@pytest.fixture
def office_market(provider, office_deal):
    """Market context for the office deal."""
    return build_market_context(provider, office_deal)


@pytest.fixture
def sequential_config():
    """Deterministic configuration with no narrative and no thread fan-out."""
    return EngineConfig(
        narrative_timeout=1.0,
        narrative_enabled=True,
        peer_benchmark=71,
        max_workers=1,
        storage_path="",
        log_level="INFO",
    )

"""
Market context for DQI analysis.

Supplies capitalisation rates and commercial lending rates by
property type and location. The engine consumes a provider through
MarketContextProvider; DefaultMarketProvider carries the reference
tables used when no live provider is wired in.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .property import PropertyInput, PropertyType

logger = logging.getLogger(__name__)


class MarketDataUnavailable(Exception):
    """Raised by a provider that cannot supply a market figure."""


# Sector median cap rates (fraction), also the substitution when a provider fails
SECTOR_DEFAULT_CAP_RATES: dict[PropertyType, float] = {
    PropertyType.OFFICE: 0.062,
    PropertyType.INDUSTRIAL: 0.055,
    PropertyType.RETAIL: 0.068,
    PropertyType.MULTIFAMILY: 0.048,
    PropertyType.MIXED: 0.060,
}

# Lending rate substituted when the provider cannot price a loan
DEFAULT_LENDING_RATE = 0.065

# Market tiers, matched case-insensitively as substrings of the location
GATEWAY_MARKETS = [
    "New York", "Los Angeles", "San Francisco", "Chicago", "Boston", "Washington DC",
]
STRONG_SECONDARY_MARKETS = [
    "Seattle", "Austin", "Denver", "Atlanta", "Miami", "Dallas", "Phoenix", "San Diego",
]
EMERGING_MARKETS = [
    "Nashville", "Charlotte", "Raleigh", "Portland", "Tampa", "Las Vegas",
]


def location_matches(location: str, markets: list[str]) -> bool:
    """Check whether a free-text location names one of the given markets."""
    if not location:
        return False
    lowered = location.lower()
    return any(market.lower() in lowered for market in markets)


class MarketContextProvider(ABC):
    """Source of market cap rates and commercial lending rates."""

    @abstractmethod
    def get_market_cap_rate(self, property_type: PropertyType, location: str) -> float:
        """Market cap rate (fraction) for a sector and location."""

    @abstractmethod
    def get_commercial_rate(self, loan_amount: float, ltv: float) -> float:
        """Annual commercial lending rate (fraction) for a loan."""


class DefaultMarketProvider(MarketContextProvider):
    """
    Reference market tables.

    Cap rates start from the sector median and shift by market tier:
    gateway -30bp, strong secondary -10bp, any other named location
    +20bp. Lending rates start at BASE_LENDING_RATE and move with loan
    size and leverage, floored at MIN_LENDING_RATE.
    """

    BASE_LENDING_RATE = 0.040
    MIN_LENDING_RATE = 0.035

    GATEWAY_ADJUSTMENT = -0.003
    SECONDARY_ADJUSTMENT = -0.001
    TERTIARY_ADJUSTMENT = 0.002

    def get_market_cap_rate(self, property_type: PropertyType, location: str) -> float:
        cap_rate = SECTOR_DEFAULT_CAP_RATES.get(property_type, SECTOR_DEFAULT_CAP_RATES[PropertyType.MIXED])

        if location:
            if location_matches(location, GATEWAY_MARKETS):
                cap_rate += self.GATEWAY_ADJUSTMENT
            elif location_matches(location, STRONG_SECONDARY_MARKETS):
                cap_rate += self.SECONDARY_ADJUSTMENT
            else:
                cap_rate += self.TERTIARY_ADJUSTMENT

        return round(cap_rate, 6)

    def get_commercial_rate(self, loan_amount: float, ltv: float) -> float:
        rate = self.BASE_LENDING_RATE

        # Size-based pricing
        if loan_amount > 35_000_000:
            rate -= 0.0025
        elif loan_amount > 17_500_000:
            rate -= 0.0015
        elif loan_amount > 10_000_000:
            rate -= 0.0005

        # Leverage pricing
        if ltv > 0.75:
            rate += 0.0015
        elif ltv < 0.65:
            rate -= 0.0010

        return round(max(self.MIN_LENDING_RATE, rate), 6)


@dataclass(frozen=True)
class MarketContext:
    """
    Market figures for one analysis.

    Fetched fresh per analysis and never cached by the engine.
    Lending rates are priced per loan through the provider.
    """

    property_type: PropertyType
    location: str
    market_cap_rate: float
    cap_rate_source: str = "provider"  # "provider" or "sector default"
    provider: Optional[MarketContextProvider] = None

    @property
    def cap_rate_is_default(self) -> bool:
        return self.cap_rate_source != "provider"

    def lending_rate(self, loan_amount: float, ltv: float) -> tuple[float, bool]:
        """
        Price a loan.

        Returns:
            (rate, is_default) where is_default is True when the
            provider failed and DEFAULT_LENDING_RATE was substituted
        """
        if self.provider is None:
            return DEFAULT_LENDING_RATE, True
        try:
            rate = float(self.provider.get_commercial_rate(loan_amount, ltv))
        except Exception as e:
            logger.warning(
                "Lending rate unavailable for loan %.0f at LTV %.2f, using default %.4f: %s",
                loan_amount, ltv, DEFAULT_LENDING_RATE, e,
            )
            return DEFAULT_LENDING_RATE, True
        if rate <= 0:
            logger.warning("Provider returned non-positive lending rate %s, using default", rate)
            return DEFAULT_LENDING_RATE, True
        return rate, False

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "property_type": self.property_type.value,
            "location": self.location,
            "market_cap_rate": self.market_cap_rate,
            "cap_rate_source": self.cap_rate_source,
        }


def build_market_context(
    provider: Optional[MarketContextProvider],
    prop: PropertyInput,
) -> MarketContext:
    """
    Fetch the market context for a property.

    Provider failures never propagate: the sector median cap rate is
    substituted and the context is marked as a sector default.

    Args:
        provider: Market data source (None means sector defaults only)
        prop: The property under analysis

    Returns:
        MarketContext for this analysis
    """
    sector_default = SECTOR_DEFAULT_CAP_RATES[prop.property_type]

    if provider is None:
        return MarketContext(
            property_type=prop.property_type,
            location=prop.location,
            market_cap_rate=sector_default,
            cap_rate_source="sector default",
        )

    try:
        cap_rate = float(provider.get_market_cap_rate(prop.property_type, prop.location))
        if cap_rate <= 0:
            raise MarketDataUnavailable(f"non-positive cap rate {cap_rate}")
        source = "provider"
    except Exception as e:
        logger.warning(
            "Market cap rate unavailable for %s in '%s', using sector default %.4f: %s",
            prop.property_type.value, prop.location, sector_default, e,
        )
        cap_rate = sector_default
        source = "sector default"

    return MarketContext(
        property_type=prop.property_type,
        location=prop.location,
        market_cap_rate=cap_rate,
        cap_rate_source=source,
        provider=provider,
    )

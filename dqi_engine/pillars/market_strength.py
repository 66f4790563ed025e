"""
Market Strength pillar.

Classifies the location into a market tier, applies a sector cycle
premium or penalty, then adjusts for demographic and vacancy proxies.
"""

from dataclasses import dataclass
from enum import Enum

from dqi_engine.core.market import (
    MarketContext,
    GATEWAY_MARKETS,
    STRONG_SECONDARY_MARKETS,
    EMERGING_MARKETS,
    location_matches,
)
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput, PropertyType


class MarketTier(Enum):
    """Market classification by liquidity and depth."""

    GATEWAY = "Gateway market"
    STRONG_SECONDARY = "Strong secondary market"
    EMERGING = "Emerging growth market"
    OTHER = "Secondary market"


TIER_BASELINES: dict[MarketTier, int] = {
    MarketTier.GATEWAY: 85,
    MarketTier.STRONG_SECONDARY: 79,
    MarketTier.EMERGING: 74,
    MarketTier.OTHER: 70,
}

# Sector market-cycle premium
TYPE_MARKET_PREMIUM: dict[PropertyType, int] = {
    PropertyType.INDUSTRIAL: 8,  # Strong demand, limited supply
    PropertyType.MULTIFAMILY: 5,
    PropertyType.MIXED: 0,
    PropertyType.OFFICE: -5,
    PropertyType.RETAIL: -8,
}

# Submarket vacancy offset by sector (percentage points)
SECTOR_VACANCY_OFFSET: dict[PropertyType, float] = {
    PropertyType.INDUSTRIAL: -1.5,
    PropertyType.MULTIFAMILY: -0.5,
    PropertyType.MIXED: 0.0,
    PropertyType.RETAIL: 1.0,
    PropertyType.OFFICE: 2.5,
}


@dataclass(frozen=True)
class MarketFundamentals:
    """Demographic and vacancy proxies (annual percent)."""

    population_growth: float
    employment_growth: float
    vacancy_rate: float


def classify_market(location: str) -> MarketTier:
    """Assign a market tier from the free-text location."""
    if location_matches(location, GATEWAY_MARKETS):
        return MarketTier.GATEWAY
    if location_matches(location, STRONG_SECONDARY_MARKETS):
        return MarketTier.STRONG_SECONDARY
    if location_matches(location, EMERGING_MARKETS):
        return MarketTier.EMERGING
    return MarketTier.OTHER


def market_fundamentals(tier: MarketTier, property_type: PropertyType) -> MarketFundamentals:
    """
    Proxy fundamentals for a tier and sector.

    Gateway markets grow more slowly but carry deeper demand; other
    tiers grow faster with thinner absorption.
    """
    if tier == MarketTier.GATEWAY:
        population, employment, vacancy = 1.75, 2.5, 6.0
    else:
        population, employment, vacancy = 2.9, 3.75, 5.45

    vacancy += SECTOR_VACANCY_OFFSET[property_type]
    return MarketFundamentals(
        population_growth=population,
        employment_growth=employment,
        vacancy_rate=round(vacancy, 2),
    )


def compute_market_strength(prop: PropertyInput, market: MarketContext) -> Metric:
    """Score location tier, sector cycle and submarket fundamentals."""
    tier = classify_market(prop.location)
    baseline = TIER_BASELINES[tier]
    premium = TYPE_MARKET_PREMIUM[prop.property_type]
    fundamentals = market_fundamentals(tier, prop.property_type)

    score = baseline + premium
    if fundamentals.vacancy_rate < 5.0:
        score += 4
    if fundamentals.vacancy_rate > 8.0:
        score -= 6
    if fundamentals.population_growth > 2.5:
        score += 3
    if fundamentals.employment_growth > 3.5:
        score += 3

    drivers = []
    if fundamentals.vacancy_rate > 8.0:
        drivers.append(f"- Elevated vacancy {fundamentals.vacancy_rate:.1f}%")
    if tier == MarketTier.GATEWAY:
        drivers.append("+ Gateway market liquidity")
    elif tier == MarketTier.STRONG_SECONDARY:
        drivers.append("+ Strong secondary market")
    if premium > 0:
        drivers.append(f"+ {prop.property_type.value} demand cycle tailwind")
    elif premium < 0:
        drivers.append(f"- {prop.property_type.value} market cycle headwind")
    if fundamentals.vacancy_rate < 5.0:
        drivers.append(f"+ Tight submarket vacancy {fundamentals.vacancy_rate:.1f}%")
    if fundamentals.population_growth > 2.5:
        drivers.append(f"+ Population growth {fundamentals.population_growth:.1f}%")
    if fundamentals.employment_growth > 3.5:
        drivers.append(f"+ Employment growth {fundamentals.employment_growth:.1f}%")

    improvements = []
    if fundamentals.vacancy_rate > 6.0:
        improvements.append("Target submarkets with <5% vacancy -> +4pts")
    improvements.append("Monitor supply pipeline developments -> +2pts")

    details = [
        tier.value,
        f"Population growth: {fundamentals.population_growth:.1f}% annually",
        f"Employment growth: {fundamentals.employment_growth:.1f}% annually",
        f"Submarket vacancy: {fundamentals.vacancy_rate:.1f}%",
    ]
    if not prop.location:
        details.append("Location not provided; scored as secondary market")

    return Metric(
        pillar=Pillar.MARKET_STRENGTH,
        score=clamp_score(score),
        weight=PILLAR_WEIGHTS[Pillar.MARKET_STRENGTH],
        description="Supply pipeline, absorption, rent growth, employment and migration proxies",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="market-analytics",
    )

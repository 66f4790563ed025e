"""
Cash-Flow Quality pillar.

Compares the realised cap rate with the market cap rate and applies
a sector adjustment reflecting current fundamentals.
"""

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput, PropertyType


BASE_SCORE = 72
SCORE_FLOOR = 55
SCORE_CEILING = 95

# Sector fundamentals adjustment
SECTOR_ADJUSTMENTS: dict[PropertyType, int] = {
    PropertyType.INDUSTRIAL: 8,
    PropertyType.MULTIFAMILY: 5,
    PropertyType.MIXED: 0,
    PropertyType.OFFICE: -5,
    PropertyType.RETAIL: -8,
}

BASE_EXPENSE_RATIO = 25  # Percent of revenue
OFFICE_EXPENSE_PREMIUM = 5


def spread_bps(actual_cap_rate: float, market_cap_rate: float) -> int:
    """Cap rate spread over market in whole basis points."""
    return int(round((actual_cap_rate - market_cap_rate) * 10_000))


def _spread_adjustment(spread: int) -> int:
    if spread > 50:
        return 15
    if spread > 25:
        return 10
    if spread > 10:
        return 5
    if spread < -25:
        return -12
    if spread < -10:
        return -6
    return 0


def compute_cash_flow_quality(prop: PropertyInput, market: MarketContext) -> Metric:
    """Score income yield relative to market and sector fundamentals."""
    market_rate = market.market_cap_rate
    noi_is_derived = prop.net_operating_income is None
    noi = prop.property_value * market_rate if noi_is_derived else prop.net_operating_income
    actual_rate = noi / prop.property_value

    spread = spread_bps(actual_rate, market_rate)
    spread_adjustment = _spread_adjustment(spread)
    sector_adjustment = SECTOR_ADJUSTMENTS[prop.property_type]

    raw_score = BASE_SCORE + spread_adjustment + sector_adjustment
    score = clamp_score(raw_score, SCORE_FLOOR, SCORE_CEILING)

    drivers = []
    if spread > 25:
        drivers.append(f"+ {spread}bp above market ({market_rate * 100:.1f}%)")
    elif spread < -10:
        drivers.append(f"- {abs(spread)}bp below market ({market_rate * 100:.1f}%)")
    if actual_rate > 0.06:
        drivers.append(f"+ Strong NOI yield ({actual_rate * 100:.1f}%)")
    if prop.property_type == PropertyType.INDUSTRIAL:
        drivers.append("+ Favorable sector fundamentals")
    elif prop.property_type == PropertyType.MULTIFAMILY:
        drivers.append("+ Resilient asset class")
    elif prop.property_type == PropertyType.RETAIL:
        drivers.append("- Structural retail headwinds")
    elif prop.property_type == PropertyType.OFFICE:
        drivers.append("- Challenged office fundamentals")

    improvements = []
    if spread < -10:
        improvements.append(f"Target market cap rate ({market_rate * 100:.1f}%) -> +5pts")
    if prop.property_type == PropertyType.RETAIL:
        improvements.append("Focus on necessity-based retail -> +6pts")
    elif prop.property_type == PropertyType.OFFICE:
        improvements.append("Diversify tenant base for post-pandemic resilience -> +4pts")
    improvements.append("Extend lease terms to reduce rollover risk -> +2pts")

    expense_ratio = BASE_EXPENSE_RATIO
    if prop.property_type == PropertyType.OFFICE:
        expense_ratio += OFFICE_EXPENSE_PREMIUM

    details = [
        f"Actual cap rate: {actual_rate * 100:.1f}% (Market: {market_rate * 100:.1f}%)",
        f"Spread to market: {spread:+d}bp",
        f"Operating expense ratio: {expense_ratio}% (sector default)",
        f"NOI: ${noi:,.0f}",
    ]
    if noi_is_derived:
        details.append("NOI not provided; assumed at market cap rate")
    if market.cap_rate_is_default:
        details.append(f"Market data unavailable; sector default cap rate {market_rate * 100:.2f}% used")
    if raw_score != score:
        details.append(f"Score held within {SCORE_FLOOR}-{SCORE_CEILING} band (raw {raw_score})")

    return Metric(
        pillar=Pillar.CASH_FLOW_QUALITY,
        score=score,
        weight=PILLAR_WEIGHTS[Pillar.CASH_FLOW_QUALITY],
        description="NOI trend/volatility, expense leakage, rollover schedule, TI/LC burden",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="property-data",
    )

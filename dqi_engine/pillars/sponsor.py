"""
Sponsor Quality pillar.

Larger deals demand stronger sponsors, so the baseline rises with
deal size; sector complexity shifts it further. Track-record figures
are modelled from deal size in the absence of sponsor filings.
"""

import math

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput, PropertyType


# Property type complexity adjustment
TYPE_COMPLEXITY: dict[PropertyType, int] = {
    PropertyType.INDUSTRIAL: 5,  # Simpler asset class
    PropertyType.MULTIFAMILY: 0,
    PropertyType.MIXED: -2,
    PropertyType.OFFICE: -3,  # More complex leasing
    PropertyType.RETAIL: -5,  # Most complex tenant management
}

REALIZATION_BONUS_THRESHOLD = 92.0
REALIZATION_BONUS = 3


def baseline_for_deal_size(property_value: float) -> int:
    """Sponsor baseline for a deal of this size."""
    if property_value > 50_000_000:
        return 82
    if property_value > 25_000_000:
        return 78
    if property_value > 15_000_000:
        return 76
    return 74


def sponsor_track_record(property_value: float) -> tuple[int, float, float]:
    """
    Modelled sponsor track record.

    Returns:
        (years_active, transaction_volume_billions, realization_accuracy_percent)
    """
    scale = property_value / 10_000_000
    years = max(8, 15 + math.floor(scale * 2))
    volume = max(0.8, scale * 1.2 + 0.75)
    realization = max(82.0, 91.0 + (property_value / 50_000_000) * 6)
    return years, round(volume, 2), round(realization, 1)


def compute_sponsor_quality(prop: PropertyInput, market: MarketContext) -> Metric:
    """Score sponsor strength relative to deal demands."""
    baseline = baseline_for_deal_size(prop.property_value)
    complexity = TYPE_COMPLEXITY[prop.property_type]
    years, volume, realization = sponsor_track_record(prop.property_value)

    score = baseline + complexity
    if realization > REALIZATION_BONUS_THRESHOLD:
        score += REALIZATION_BONUS

    drivers = []
    if realization > REALIZATION_BONUS_THRESHOLD:
        drivers.append(f"+ {realization:.0f}% pro-forma accuracy")
    if complexity > 0:
        drivers.append(f"+ {prop.property_type.value} execution is lower complexity")
    elif complexity < 0:
        drivers.append(f"- {prop.property_type.value} execution complexity")
    drivers.append(f"+ {years}+ years experience")
    drivers.append(f"+ ${volume:.1f}B transaction volume")

    improvements = []
    if realization <= REALIZATION_BONUS_THRESHOLD:
        improvements.append("Improve underwriting accuracy above 92% -> +3pts")
    improvements.append("Expand liquidity facilities -> +2pts")

    details = [
        f"Deal-size baseline: {baseline}",
        f"{years}+ years CRE experience",
        f"${volume:.1f}B transaction volume",
        f"{realization:.0f}% realization accuracy",
        "Track record modelled from deal size; sponsor filings not provided",
    ]

    return Metric(
        pillar=Pillar.SPONSOR_QUALITY,
        score=clamp_score(score),
        weight=PILLAR_WEIGHTS[Pillar.SPONSOR_QUALITY],
        description="Track record, realized vs. pro-forma variance, liquidity, past covenant behavior",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="market-analytics",
    )

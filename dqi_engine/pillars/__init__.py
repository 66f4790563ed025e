"""
Pillar calculators for the Deal Quality Index.

Each calculator is a pure function `(PropertyInput, MarketContext) ->
Metric` with no shared state, so the seven can run in any order or
in parallel. Scores are deterministic: values the original data does
not carry are derived from deal size, sector and location, and the
metric's details say so.
"""

from typing import Callable

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar
from dqi_engine.core.property import PropertyInput

from .leverage import (
    compute_leverage_coverage,
    leverage_profile,
    indicative_ltv,
    LeverageProfile,
    HARD_FAIL_STRESSED_DSCR,
)
from .cash_flow import compute_cash_flow_quality, spread_bps
from .lease import compute_lease_tenant_risk, tenancy_profile, TenancyProfile
from .sponsor import compute_sponsor_quality, sponsor_track_record
from .market_strength import (
    compute_market_strength,
    classify_market,
    market_fundamentals,
    MarketTier,
)
from .structure import compute_structure_legal
from .data_confidence import compute_data_confidence, validation_score

PillarCalculator = Callable[[PropertyInput, MarketContext], Metric]

# Calculators in aggregation order
PILLAR_CALCULATORS: dict[Pillar, PillarCalculator] = {
    Pillar.LEVERAGE_COVERAGE: compute_leverage_coverage,
    Pillar.CASH_FLOW_QUALITY: compute_cash_flow_quality,
    Pillar.LEASE_TENANT_RISK: compute_lease_tenant_risk,
    Pillar.SPONSOR_QUALITY: compute_sponsor_quality,
    Pillar.MARKET_STRENGTH: compute_market_strength,
    Pillar.STRUCTURE_LEGAL: compute_structure_legal,
    Pillar.DATA_CONFIDENCE: compute_data_confidence,
}

__all__ = [
    "PillarCalculator",
    "PILLAR_CALCULATORS",
    # Leverage & Coverage
    "compute_leverage_coverage",
    "leverage_profile",
    "indicative_ltv",
    "LeverageProfile",
    "HARD_FAIL_STRESSED_DSCR",
    # Cash-Flow Quality
    "compute_cash_flow_quality",
    "spread_bps",
    # Lease & Tenant Risk
    "compute_lease_tenant_risk",
    "tenancy_profile",
    "TenancyProfile",
    # Sponsor Quality
    "compute_sponsor_quality",
    "sponsor_track_record",
    # Market Strength
    "compute_market_strength",
    "classify_market",
    "market_fundamentals",
    "MarketTier",
    # Structure & Legal Complexity
    "compute_structure_legal",
    # Data Confidence
    "compute_data_confidence",
    "validation_score",
]

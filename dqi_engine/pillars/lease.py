"""
Lease & Tenant Risk pillar.

Scores lease term, tenant concentration, credit quality and
occupancy. Figures not supplied on the property are derived from
deal size and sector: larger deals are assumed to carry longer,
more diversified rent rolls.
"""

from dataclasses import dataclass

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput, PropertyType


BASE_SCORE = 70


@dataclass(frozen=True)
class TenancyProfile:
    """Rent roll summary used for scoring."""

    walt_years: float
    top_tenant_share: float  # Percent of NOI
    investment_grade_share: float  # Fraction 0-1
    occupancy: float  # Percent
    defaulted: tuple[str, ...] = ()  # Names of fields that were derived


def derived_tenancy(property_value: float, property_type: PropertyType) -> TenancyProfile:
    """Typical rent roll for a deal of this size and sector."""
    walt = 4.8
    occupancy = 88.0
    credit = 0.55
    concentration = 35.0

    if property_value > 15_000_000:
        walt += 1.5
        occupancy += 4
        credit += 0.15
        concentration -= 8
    if property_value > 30_000_000:
        walt += 1.0
        occupancy += 3
        credit += 0.10
        concentration -= 5

    if property_type == PropertyType.OFFICE:
        walt += 0.8
        credit += 0.10
    elif property_type == PropertyType.INDUSTRIAL:
        walt += 1.2
        concentration += 10  # Often single tenant

    return TenancyProfile(
        walt_years=round(walt, 2),
        top_tenant_share=max(15.0, concentration),
        investment_grade_share=round(min(0.90, credit), 4),
        occupancy=min(98.0, occupancy),
    )


def tenancy_profile(prop: PropertyInput) -> TenancyProfile:
    """Supplied rent roll facts, with derived values filling the gaps."""
    derived = derived_tenancy(prop.property_value, prop.property_type)
    supplied = {
        "walt_years": prop.walt_years,
        "top_tenant_share": prop.top_tenant_share,
        "investment_grade_share": prop.investment_grade_share,
        "occupancy": prop.occupancy,
    }
    defaulted = tuple(name for name, value in supplied.items() if value is None)

    return TenancyProfile(
        walt_years=prop.walt_years if prop.walt_years is not None else derived.walt_years,
        top_tenant_share=(
            prop.top_tenant_share if prop.top_tenant_share is not None else derived.top_tenant_share
        ),
        investment_grade_share=(
            prop.investment_grade_share
            if prop.investment_grade_share is not None
            else derived.investment_grade_share
        ),
        occupancy=prop.occupancy if prop.occupancy is not None else derived.occupancy,
        defaulted=defaulted,
    )


def compute_lease_tenant_risk(prop: PropertyInput, market: MarketContext) -> Metric:
    """
    Score rent roll quality.

    Bonuses: WALT > 6y (+8), top tenant < 30% (+10), investment-grade
    share > 70% (+7), occupancy > 95% (+5).
    """
    tenancy = tenancy_profile(prop)

    score = BASE_SCORE
    if tenancy.top_tenant_share < 30:
        score += 10
    if tenancy.walt_years > 6:
        score += 8
    if tenancy.investment_grade_share > 0.7:
        score += 7
    if tenancy.occupancy > 95:
        score += 5

    drivers = []
    if tenancy.top_tenant_share < 30:
        drivers.append(f"+ Diversified rent roll ({tenancy.top_tenant_share:.0f}% top tenant)")
    elif tenancy.top_tenant_share > 30:
        drivers.append(f"- {tenancy.top_tenant_share:.0f}% top-tenant exposure")
    if tenancy.walt_years > 6:
        drivers.append(f"+ WALT {tenancy.walt_years:.1f}y")
    if tenancy.investment_grade_share > 0.65:
        drivers.append(f"+ {tenancy.investment_grade_share * 100:.0f}% investment-grade tenants")
    if tenancy.occupancy > 95:
        drivers.append(f"+ {tenancy.occupancy:.0f}% occupied")

    improvements = []
    if tenancy.top_tenant_share >= 30:
        improvements.append("Reduce tenant concentration <25% -> +10pts")
    if tenancy.walt_years <= 6:
        improvements.append("Extend lease terms beyond 6 years -> +8pts")
    if tenancy.occupancy <= 95:
        improvements.append("Lease up to >95% occupancy -> +5pts")

    details = [
        f"WALT: {tenancy.walt_years:.1f} years",
        f"Top tenant: {tenancy.top_tenant_share:.0f}% of NOI",
        f"Investment grade: {tenancy.investment_grade_share * 100:.0f}%",
        f"Occupancy: {tenancy.occupancy:.0f}%",
    ]
    if tenancy.defaulted:
        details.append(
            "Rent roll not provided for: "
            + ", ".join(tenancy.defaulted)
            + "; derived from deal size and property type"
        )

    return Metric(
        pillar=Pillar.LEASE_TENANT_RISK,
        score=clamp_score(score),
        weight=PILLAR_WEIGHTS[Pillar.LEASE_TENANT_RISK],
        description="WALT, top-tenant concentration, credit quality, co-tenancy, occupancy",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="lease-comparables",
    )

"""
Structure & Legal Complexity pillar.

Platform deals start from a clean-structure baseline. A complexity
flag (intercreditor arrangements, condo regimes, ground leases)
subtracts a fixed penalty. When the flag is not supplied, mixed-use
deals are treated as complex and all other sectors as standard.
"""

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput, PropertyType


BASE_SCORE = 88
COMPLEXITY_PENALTY = 12


def is_complex_structure(prop: PropertyInput) -> tuple[bool, bool]:
    """
    Resolve the complexity flag.

    Returns:
        (is_complex, was_defaulted)
    """
    if prop.complex_structure is not None:
        return prop.complex_structure, False
    return prop.property_type == PropertyType.MIXED, True


def compute_structure_legal(prop: PropertyInput, market: MarketContext) -> Metric:
    """Score legal and capital-stack complexity."""
    is_complex, defaulted = is_complex_structure(prop)

    score = BASE_SCORE
    if is_complex:
        score -= COMPLEXITY_PENALTY

    drivers = []
    improvements = []
    if is_complex:
        drivers.append("- Complex intercreditor arrangements")
        improvements.append(f"Simplify legal structure -> +{COMPLEXITY_PENALTY}pts")
    else:
        drivers.append("+ Standard legal structure")
        drivers.append("+ No intercreditor complications")
    drivers.append("+ Clear seniority position")
    improvements.append("Add SNDA protections -> +2pts")

    details = [
        "Complex structure" if is_complex else "Standard structure",
        "Clear title and permits",
        "No material litigation",
    ]
    if defaulted:
        details.append(
            "Structure not disclosed; "
            + ("mixed-use deals assumed complex" if is_complex else "standard structure assumed")
        )

    return Metric(
        pillar=Pillar.STRUCTURE_LEGAL,
        score=clamp_score(score),
        weight=PILLAR_WEIGHTS[Pillar.STRUCTURE_LEGAL],
        description="Seniority, intercreditor quirks, ROFR/ROFO, zoning/permits, litigation flags",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="legal-review",
    )

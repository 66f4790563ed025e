"""
Data Confidence pillar.

Turns the data validator's output into a score and rewards
third-party diligence reports.
"""

from typing import Optional

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput
from dqi_engine.core.validation import ConfidenceLevel, ValidationResult, validate_property


BASE_SCORE = 85
WARNING_PENALTY = 8
CONFIDENCE_PENALTIES: dict[ConfidenceLevel, int] = {
    ConfidenceLevel.HIGH: 0,
    ConfidenceLevel.MEDIUM: 5,
    ConfidenceLevel.LOW: 15,
}
SCORE_FLOOR = 45
SCORE_CEILING = 95

# Third-party report bonuses
APPRAISAL_BONUS = 3
ENVIRONMENTAL_BONUS = 3
CONDITION_BONUS = 2


def validation_score(result: ValidationResult) -> int:
    """Base data confidence score for a validation result (unclamped above)."""
    score = BASE_SCORE
    score -= len(result.warnings) * WARNING_PENALTY
    score -= CONFIDENCE_PENALTIES[result.confidence]
    return max(SCORE_FLOOR, score)


def _report_line(present: Optional[bool], label: str, missing: str) -> str:
    if present is None:
        return f"{label} not reported"
    return f"{label} completed" if present else missing


def compute_data_confidence(
    prop: PropertyInput,
    market: MarketContext,
    validation: Optional[ValidationResult] = None,
) -> Metric:
    """
    Score confidence in the deal data.

    Args:
        prop: The property under analysis
        market: Market context (cap rate used for validation)
        validation: Pre-computed validation result; computed here if None
    """
    if validation is None:
        validation = validate_property(prop, market.market_cap_rate)

    raw_score = validation_score(validation)
    if prop.has_appraisal:
        raw_score += APPRAISAL_BONUS
    if prop.has_environmental_report:
        raw_score += ENVIRONMENTAL_BONUS
    if prop.has_condition_report:
        raw_score += CONDITION_BONUS
    score = clamp_score(raw_score, SCORE_FLOOR, SCORE_CEILING)

    drivers = []
    if validation.confidence == ConfidenceLevel.HIGH:
        drivers.append("+ Data validated against market standards")
    else:
        drivers.append(
            f"- Data validation concerns detected ({len(validation.warnings)} warnings)"
        )
    if prop.has_appraisal:
        drivers.append("+ Third-party appraisal completed")
    if prop.has_environmental_report:
        drivers.append("+ Environmental assessment available")
    if prop.has_condition_report:
        drivers.append("+ Property condition assessment")

    improvements = list(validation.adjustments)
    if validation.confidence != ConfidenceLevel.HIGH:
        improvements.append("Validate data against comparable market transactions -> +6pts")
    if not prop.has_appraisal:
        improvements.append(f"Commission third-party appraisal -> +{APPRAISAL_BONUS}pts")
    if not prop.has_environmental_report:
        improvements.append(f"Complete environmental site assessment -> +{ENVIRONMENTAL_BONUS}pts")
    if not prop.has_condition_report:
        improvements.append(f"Complete property condition assessment -> +{CONDITION_BONUS}pts")

    details = [
        f"Market validation: {validation.confidence.value} confidence",
        _report_line(prop.has_appraisal, "Third-party appraisal", "Missing appraisal"),
        _report_line(
            prop.has_environmental_report, "Environmental assessment", "Missing environmental study"
        ),
        _report_line(
            prop.has_condition_report, "Property condition report", "Missing condition assessment"
        ),
        f"Data warnings: {len(validation.warnings)}",
    ]
    details.extend(f"Warning: {warning}" for warning in validation.warnings)
    if market.cap_rate_is_default:
        details.append("Market data unavailable; validated against sector default cap rate")

    return Metric(
        pillar=Pillar.DATA_CONFIDENCE,
        score=score,
        weight=PILLAR_WEIGHTS[Pillar.DATA_CONFIDENCE],
        description="Doc completeness, third-party reports (appraisal/ESA/PCAs), market validation",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="property-data",
    )

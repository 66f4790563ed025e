"""
Input validation against market expectations.

Checks a property's declared figures for internal consistency and
deviation from market norms before scoring, producing a confidence
classification (HIGH/MEDIUM/LOW), warnings and remediation advice.

Confidence only ever degrades within one validation pass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .property import PropertyInput, PropertyType


class ConfidenceLevel(Enum):
    """Confidence in the submitted property data."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Higher rank = more confident."""
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    ConfidenceLevel.LOW: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.HIGH: 2,
}


# Cap rate deviation thresholds (fraction)
CAP_RATE_WARNING_SPREAD = 0.015  # 150bp
CAP_RATE_SEVERE_SPREAD = 0.025  # 250bp

# Acceptable price per square foot by sector (USD)
PRICE_PER_SQFT_RANGES: dict[PropertyType, tuple[float, float]] = {
    PropertyType.OFFICE: (150, 800),
    PropertyType.INDUSTRIAL: (50, 200),
    PropertyType.RETAIL: (100, 500),
    PropertyType.MULTIFAMILY: (100, 600),
    PropertyType.MIXED: (100, 600),
}

MIN_LOCATION_LENGTH = 3
STALE_DATA_DAYS = 90
MAX_WARNINGS_FOR_VALID = 2

GENERIC_ADJUSTMENTS = [
    "Consider updating property data with recent market conditions",
    "Validate key metrics against comparable sales",
]
LOW_CONFIDENCE_ADJUSTMENTS = [
    "Recommend independent third-party valuation",
    "Consider additional due diligence before investment decisions",
]

CONFIDENCE_DISCLAIMERS = {
    ConfidenceLevel.HIGH: "Data validated against current market standards with high confidence.",
    ConfidenceLevel.MEDIUM: (
        "Data shows some deviation from market norms. Additional verification recommended."
    ),
    ConfidenceLevel.LOW: (
        "Data requires significant validation. Independent assessment strongly "
        "recommended before investment decisions."
    ),
}


@dataclass
class ValidationResult:
    """Result of validating a property against market expectations."""

    is_valid: bool
    warnings: list[str] = field(default_factory=list)
    adjustments: list[str] = field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.HIGH

    # Every level the pass moved through, starting at HIGH
    confidence_history: list[ConfidenceLevel] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid

    @property
    def disclaimer(self) -> str:
        return CONFIDENCE_DISCLAIMERS[self.confidence]

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "isValid": self.is_valid,
            "warnings": list(self.warnings),
            "adjustments": list(self.adjustments),
            "confidence": self.confidence.value,
            "disclaimer": self.disclaimer,
        }


class _ConfidenceTracker:
    """Accumulates warnings; confidence can only move down."""

    def __init__(self) -> None:
        self.level = ConfidenceLevel.HIGH
        self.history = [ConfidenceLevel.HIGH]
        self.warnings: list[str] = []

    def warn(self, message: str, cap: Optional[ConfidenceLevel] = None, step_down: bool = False) -> None:
        self.warnings.append(message)

        target = self.level
        if step_down:
            target = ConfidenceLevel.MEDIUM if self.level == ConfidenceLevel.HIGH else ConfidenceLevel.LOW
        if cap is not None and cap.rank < target.rank:
            target = cap

        if target.rank < self.level.rank:
            self.level = target
        self.history.append(self.level)


def validate_property(
    prop: PropertyInput,
    market_cap_rate: float,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Validate a property against market expectations.

    Never raises for missing optional fields; gaps become warnings.

    Args:
        prop: The property to validate
        market_cap_rate: Market cap rate (fraction) for its type and location
        now: Reference time for the staleness check (defaults to now)

    Returns:
        ValidationResult with confidence, warnings and adjustments
    """
    tracker = _ConfidenceTracker()

    # Cap rate vs market
    actual_cap_rate = prop.actual_cap_rate
    if actual_cap_rate is None:
        tracker.warn(
            "Insufficient data: net operating income not provided, cap rate cannot be validated",
            cap=ConfidenceLevel.MEDIUM,
        )
    else:
        spread = abs(actual_cap_rate - market_cap_rate)
        if spread > CAP_RATE_WARNING_SPREAD:
            tracker.warn(
                f"Cap rate {actual_cap_rate * 100:.1f}% significantly differs from "
                f"market average {market_cap_rate * 100:.1f}%",
                cap=ConfidenceLevel.MEDIUM,
            )
        if spread > CAP_RATE_SEVERE_SPREAD:
            tracker.warn(
                "Extreme cap rate deviation requires additional validation",
                cap=ConfidenceLevel.LOW,
            )

    # Price per square foot vs sector range
    price_per_sqft = prop.price_per_sqft
    if price_per_sqft is not None:
        low, high = PRICE_PER_SQFT_RANGES[prop.property_type]
        if price_per_sqft < low or price_per_sqft > high:
            tracker.warn(
                f"Price/sqft ${price_per_sqft:,.0f} outside typical range "
                f"${low:,.0f}-${high:,.0f} for {prop.property_type.value}",
                step_down=True,
            )

    # Location sufficiency
    if not prop.location or len(prop.location.strip()) < MIN_LOCATION_LENGTH:
        tracker.warn(
            "Property location insufficient for accurate market analysis",
            cap=ConfidenceLevel.MEDIUM,
        )

    # Data freshness
    if prop.last_updated is not None:
        reference = now or datetime.now(prop.last_updated.tzinfo)
        days_old = (reference - prop.last_updated).total_seconds() / 86400
        if days_old > STALE_DATA_DAYS:
            tracker.warn(
                f"Property data is {round(days_old)} days old - market conditions may have changed",
                cap=ConfidenceLevel.MEDIUM,
            )

    adjustments: list[str] = []
    if tracker.warnings:
        adjustments.extend(GENERIC_ADJUSTMENTS)
    if tracker.level == ConfidenceLevel.LOW:
        adjustments.extend(LOW_CONFIDENCE_ADJUSTMENTS)

    return ValidationResult(
        is_valid=len(tracker.warnings) <= MAX_WARNINGS_FOR_VALID,
        warnings=tracker.warnings,
        adjustments=adjustments,
        confidence=tracker.level,
        confidence_history=tracker.history,
    )


def confidence_disclaimer(result: ValidationResult) -> str:
    """Investor-facing sentence describing the validation confidence."""
    return CONFIDENCE_DISCLAIMERS[result.confidence]

"""
Score aggregation module.

Combines the seven pillar metrics into the composite Deal Quality
Index: weighted score, hard-fail override, rating label, decile band
and peer comparison.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .metric import Metric, Pillar, PILLAR_ORDER, PILLAR_WEIGHTS
from .validation import ConfidenceLevel


class Rating(Enum):
    """DQI rating labels."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    BELOW_AVERAGE = "Below Average"
    POOR = "Poor"


# Minimum score for each rating, highest first
RATING_THRESHOLDS: list[tuple[int, Rating]] = [
    (90, Rating.EXCELLENT),
    (80, Rating.GOOD),
    (70, Rating.FAIR),
    (60, Rating.BELOW_AVERAGE),
]

HARD_FAIL_SCORE_CAP = 59
DEFAULT_PEER_BENCHMARK = 71

MAX_DRIVERS = 4
MAX_IMPROVEMENTS = 3

# Safeguard warnings
RISK_THRESHOLD = 70
RISK_THRESHOLD_WARNING = "Below standard risk threshold"
LEVERAGE_CONCERN_THRESHOLD = 60
LEVERAGE_CONCERN_WARNING = "Leverage concerns identified"

# Data Confidence score needed for each governance level
GOVERNANCE_HIGH_THRESHOLD = 85
GOVERNANCE_MEDIUM_THRESHOLD = 75


class PillarWeightError(ValueError):
    """Raised when the metric set or its weights are malformed."""
    pass


@dataclass(frozen=True)
class AggregateScore:
    """Composite score derived from the seven pillar metrics."""

    overall_score: int
    rating: Rating
    band: str
    peer_rank: str

    # Weighted score before any hard-fail cap
    uncapped_score: int = 0

    hard_fails: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    drivers: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()

    @property
    def is_hard_fail(self) -> bool:
        return bool(self.hard_fails)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "overallScore": self.overall_score,
            "uncappedScore": self.uncapped_score,
            "rating": self.rating.value,
            "band": self.band,
            "peerRank": self.peer_rank,
            "hardFails": list(self.hard_fails),
            "warnings": list(self.warnings),
            "drivers": list(self.drivers),
            "improvements": list(self.improvements),
        }


def rating_for_score(score: int) -> Rating:
    """Map a composite score to its rating label."""
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return Rating.POOR


def score_band(score: int) -> str:
    """
    Decile band for a score, e.g. 84 -> "80-89".

    A perfect 100 falls in the top band "90-100".
    """
    decile = min(score // 10 * 10, 90)
    upper = 100 if score >= 100 else decile + 9
    return f"{decile}-{upper}"


def peer_category(score: int) -> str:
    """Categorical peer position for a composite score."""
    if score > 80:
        return "top 20%"
    if score > 70:
        return "top 40%"
    if score > 60:
        return "median"
    return "below median"


def peer_rank(score: int, benchmark: int = DEFAULT_PEER_BENCHMARK) -> str:
    """Render the peer comparison string."""
    return f"{score} vs. market benchmark {benchmark} ({peer_category(score)})"


def weighted_score(metrics: Iterable[Metric]) -> int:
    """
    Weighted composite score, rounded half up.

    Scores and weights are integers, so the sum is exact and the
    rounding never depends on float representation.
    """
    total = sum(m.score * m.weight for m in metrics)
    return (total + 50) // 100


def governance_confidence(
    data_confidence_score: int,
    validation_confidence: Optional[ConfidenceLevel] = None,
) -> ConfidenceLevel:
    """
    Governance confidence level from the Data Confidence pillar.

    Never reports more confidence than the validator assigned.
    """
    if data_confidence_score > GOVERNANCE_HIGH_THRESHOLD:
        level = ConfidenceLevel.HIGH
    elif data_confidence_score > GOVERNANCE_MEDIUM_THRESHOLD:
        level = ConfidenceLevel.MEDIUM
    else:
        level = ConfidenceLevel.LOW

    if validation_confidence is not None and validation_confidence.rank < level.rank:
        return validation_confidence
    return level


def _check_metrics(metrics: list[Metric]) -> None:
    pillars = [m.pillar for m in metrics]
    if sorted(p.name for p in pillars) != sorted(p.name for p in PILLAR_ORDER):
        missing = [p.value for p in PILLAR_ORDER if p not in pillars]
        raise PillarWeightError(
            f"Expected exactly one metric per pillar; missing {missing}, got {len(metrics)} metrics"
        )
    for metric in metrics:
        expected = PILLAR_WEIGHTS[metric.pillar]
        if metric.weight != expected:
            raise PillarWeightError(
                f"{metric.name} weight {metric.weight} does not match fixed weight {expected}"
            )
    total_weight = sum(m.weight for m in metrics)
    if total_weight != 100:
        raise PillarWeightError(f"Pillar weights sum to {total_weight}, expected 100")


def aggregate(
    metrics: Iterable[Metric],
    peer_benchmark: int = DEFAULT_PEER_BENCHMARK,
) -> AggregateScore:
    """
    Aggregate the seven pillar metrics.

    Args:
        metrics: One metric per pillar, in any order
        peer_benchmark: Benchmark score quoted in the peer comparison

    Returns:
        AggregateScore with rating, band, peer rank and safeguards

    Raises:
        PillarWeightError: If a pillar is missing or duplicated or a
            weight differs from the fixed table
    """
    metric_list = list(metrics)
    _check_metrics(metric_list)
    by_pillar = {m.pillar: m for m in metric_list}
    ordered = [by_pillar[p] for p in PILLAR_ORDER]

    uncapped = weighted_score(ordered)
    overall = uncapped

    hard_fails: list[str] = []
    for metric in ordered:
        hard_fails.extend(metric.hard_fails)
    if hard_fails:
        overall = min(overall, HARD_FAIL_SCORE_CAP)

    warnings = []
    if overall < RISK_THRESHOLD:
        warnings.append(RISK_THRESHOLD_WARNING)
    if by_pillar[Pillar.LEVERAGE_COVERAGE].score < LEVERAGE_CONCERN_THRESHOLD:
        warnings.append(LEVERAGE_CONCERN_WARNING)

    drivers = [d for m in ordered for d in m.drivers]
    improvements = [i for m in ordered for i in m.improvements]

    return AggregateScore(
        overall_score=overall,
        rating=rating_for_score(overall),
        band=score_band(overall),
        peer_rank=peer_rank(overall, peer_benchmark),
        uncapped_score=uncapped,
        hard_fails=tuple(hard_fails),
        warnings=tuple(warnings),
        drivers=tuple(drivers[:MAX_DRIVERS]),
        improvements=tuple(improvements[:MAX_IMPROVEMENTS]),
    )

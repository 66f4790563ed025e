"""
Pillar metric model.

A Metric is the output of one pillar calculator: a clamped 0-100
score, its fixed weight, and the details, drivers and improvements
that explain it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Pillar(Enum):
    """The seven DQI pillars, in aggregation order."""

    LEVERAGE_COVERAGE = "Leverage & Coverage"
    CASH_FLOW_QUALITY = "Cash-Flow Quality"
    LEASE_TENANT_RISK = "Lease & Tenant Risk"
    SPONSOR_QUALITY = "Sponsor Quality"
    MARKET_STRENGTH = "Market Strength"
    STRUCTURE_LEGAL = "Structure & Legal Complexity"
    DATA_CONFIDENCE = "Data Confidence"


# Fixed pillar weights (percent); must sum to 100
PILLAR_WEIGHTS: dict[Pillar, int] = {
    Pillar.LEVERAGE_COVERAGE: 20,
    Pillar.CASH_FLOW_QUALITY: 15,
    Pillar.LEASE_TENANT_RISK: 15,
    Pillar.SPONSOR_QUALITY: 20,
    Pillar.MARKET_STRENGTH: 10,
    Pillar.STRUCTURE_LEGAL: 10,
    Pillar.DATA_CONFIDENCE: 10,
}

PILLAR_ORDER: list[Pillar] = list(PILLAR_WEIGHTS.keys())


def clamp_score(score: float, low: int = 0, high: int = 100) -> int:
    """Round a raw score and clamp it to [low, high]."""
    return int(max(low, min(high, round(score))))


@dataclass(frozen=True)
class Metric:
    """Output of one pillar calculator."""

    pillar: Pillar
    score: int  # 0-100
    weight: int  # Percent
    description: str
    details: tuple[str, ...] = ()
    drivers: tuple[str, ...] = ()  # "+ ..." / "- ..."
    improvements: tuple[str, ...] = ()  # "... -> +Npts"
    source_ref: str = ""
    computed_at: datetime = field(default_factory=datetime.now)

    # Safeguard conditions escalated to the aggregator
    hard_fails: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0 <= self.score <= 100:
            raise ValueError(f"{self.pillar.value} score {self.score} outside 0-100")
        if self.weight < 0:
            raise ValueError(f"{self.pillar.value} weight cannot be negative")

    @property
    def name(self) -> str:
        return self.pillar.value

    @property
    def weighted_score(self) -> float:
        """Contribution to the composite score."""
        return self.score * self.weight / 100

    @property
    def has_hard_fail(self) -> bool:
        return bool(self.hard_fails)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "score": self.score,
            "weight": self.weight,
            "description": self.description,
            "details": list(self.details),
            "drivers": list(self.drivers),
            "improvements": list(self.improvements),
            "sourceRef": self.source_ref,
            "computedAt": self.computed_at.isoformat(),
            "hardFails": list(self.hard_fails),
        }

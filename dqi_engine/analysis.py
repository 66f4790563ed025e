"""
Deal Quality Index analysis assembler.

Orchestrates one analysis through defined states:
VALIDATING_INPUT → COMPUTING_PILLARS → AGGREGATING →
NARRATIVE_REQUESTED | NARRATIVE_SKIPPED → COMPLETE

FAILED is reachable only from VALIDATING_INPUT, when the property
value is missing. Every other failure (market data, narrative) is
recovered locally, so callers receive either a complete DQIAnalysis
or a single MissingRequiredField.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Any, Iterable, Optional, Union

from .config import EngineConfig
from .core.aggregation import Rating, aggregate, governance_confidence
from .core.market import (
    DefaultMarketProvider,
    MarketContext,
    MarketContextProvider,
    build_market_context,
)
from .core.metric import Metric, Pillar, PILLAR_ORDER
from .core.narrative import NarrativeCollaborator, template_narrative
from .core.property import MissingRequiredField, PropertyInput, normalize_property
from .core.validation import ConfidenceLevel, ValidationResult, validate_property
from .pillars import PILLAR_CALCULATORS, PillarCalculator, compute_data_confidence


logger = logging.getLogger(__name__)


class AnalysisState(Enum):
    """Lifecycle states of one DQI analysis."""

    VALIDATING_INPUT = "validating_input"
    COMPUTING_PILLARS = "computing_pillars"
    AGGREGATING = "aggregating"
    NARRATIVE_REQUESTED = "narrative_requested"
    NARRATIVE_SKIPPED = "narrative_skipped"
    COMPLETE = "complete"
    FAILED = "failed"


# Valid state transitions
VALID_TRANSITIONS: dict[AnalysisState, set[AnalysisState]] = {
    AnalysisState.VALIDATING_INPUT: {AnalysisState.COMPUTING_PILLARS, AnalysisState.FAILED},
    AnalysisState.COMPUTING_PILLARS: {AnalysisState.AGGREGATING},
    AnalysisState.AGGREGATING: {
        AnalysisState.NARRATIVE_REQUESTED,
        AnalysisState.NARRATIVE_SKIPPED,
    },
    AnalysisState.NARRATIVE_REQUESTED: {AnalysisState.COMPLETE},
    AnalysisState.NARRATIVE_SKIPPED: {AnalysisState.COMPLETE},
    AnalysisState.COMPLETE: set(),
    AnalysisState.FAILED: set(),
}


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, current_state: AnalysisState, target_state: AnalysisState):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Cannot move from '{current_state.value}' to '{target_state.value}'"
        )


@dataclass
class StateTransition:
    """Record of a state transition in the audit trail."""

    from_state: AnalysisState
    to_state: AnalysisState
    timestamp: datetime
    notes: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "timestamp": self.timestamp.isoformat(),
            "notes": self.notes,
        }


@dataclass
class AnalysisRun:
    """
    Audit record for one analysis invocation.

    Tracks the current state and every transition taken.
    """

    property_id: str
    state: AnalysisState = AnalysisState.VALIDATING_INPUT
    started_at: datetime = field(default_factory=datetime.now)
    history: list[StateTransition] = field(default_factory=list)

    def can_transition(self, target: AnalysisState) -> bool:
        """Check if a transition is valid from current state."""
        return target in VALID_TRANSITIONS.get(self.state, set())

    def transition(self, target: AnalysisState, notes: str = "") -> "AnalysisRun":
        """
        Move to a new state.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self.state, target)

        self.history.append(StateTransition(
            from_state=self.state,
            to_state=target,
            timestamp=datetime.now(),
            notes=notes,
        ))
        logger.debug(
            "Analysis %s: %s -> %s %s",
            self.property_id, self.state.value, target.value, notes,
        )
        self.state = target
        return self

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS.get(self.state)

    @property
    def states(self) -> list[AnalysisState]:
        """Every state visited, in order."""
        if not self.history:
            return [self.state]
        return [self.history[0].from_state] + [t.to_state for t in self.history]

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "property_id": self.property_id,
            "state": self.state.value,
            "started_at": self.started_at.isoformat(),
            "history": [t.to_dict() for t in self.history],
        }


# =============================================================================
# Result model
# =============================================================================

@dataclass(frozen=True)
class Safeguards:
    """Hard-fail conditions and risk warnings."""

    hard_fails: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "hardFails": list(self.hard_fails),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class Governance:
    """Confidence level and peer comparison."""

    confidence_level: ConfidenceLevel
    peer_rank: str

    def to_dict(self) -> dict:
        return {
            "confidenceLevel": self.confidence_level.value,
            "peerRank": self.peer_rank,
        }


NARRATIVE_FROM_COLLABORATOR = "collaborator"
NARRATIVE_FROM_TEMPLATE = "template"


@dataclass(frozen=True)
class DQIAnalysis:
    """
    Complete Deal Quality Index result for one property.

    Immutable once assembled. Numeric fields depend only on the
    property and its market context; the narrative may vary.
    """

    property_id: str
    property_name: str
    overall_score: int
    rating: Rating
    band: str
    drivers: tuple[str, ...]
    improvements: tuple[str, ...]
    metrics: tuple[Metric, ...]
    safeguards: Safeguards
    governance: Governance
    rune_analysis: str
    narrative_source: str = NARRATIVE_FROM_TEMPLATE
    validation: Optional[ValidationResult] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def metric(self, pillar: Pillar) -> Metric:
        """Look up the metric for one pillar."""
        for m in self.metrics:
            if m.pillar == pillar:
                return m
        raise KeyError(pillar.value)

    @property
    def is_hard_fail(self) -> bool:
        return bool(self.safeguards.hard_fails)

    def to_dict(self) -> dict:
        """Convert to the stable camelCase result contract."""
        return {
            "propertyId": self.property_id,
            "propertyName": self.property_name,
            "overallScore": self.overall_score,
            "rating": self.rating.value,
            "band": self.band,
            "drivers": list(self.drivers),
            "improvements": list(self.improvements),
            "metrics": [m.to_dict() for m in self.metrics],
            "safeguards": self.safeguards.to_dict(),
            "governance": self.governance.to_dict(),
            "runeAnalysis": self.rune_analysis,
            "narrativeSource": self.narrative_source,
            "validation": self.validation.to_dict() if self.validation else None,
            "timestamp": self.timestamp.isoformat(),
        }


# =============================================================================
# Assembly steps
# =============================================================================

def _resolve_input(property_id: str, property_input: Union[PropertyInput, dict]) -> PropertyInput:
    if isinstance(property_input, PropertyInput):
        if property_input.property_id != property_id:
            return property_input.with_overrides(property_id=property_id)
        return property_input
    if property_input is None:
        raise MissingRequiredField("propertyValue", "Property data is required for DQI analysis")
    return normalize_property(property_id, dict(property_input))


def compute_pillars(
    prop: PropertyInput,
    market: MarketContext,
    validation: ValidationResult,
    max_workers: int = 1,
) -> list[Metric]:
    """
    Evaluate all seven pillars, in pillar order.

    Calculators share no state, so they fan out over a thread pool
    when max_workers > 1. The Data Confidence pillar reuses the
    validation result computed before the fan-out.
    """
    calculators: dict[Pillar, PillarCalculator] = dict(PILLAR_CALCULATORS)
    calculators[Pillar.DATA_CONFIDENCE] = partial(compute_data_confidence, validation=validation)

    if max_workers <= 1:
        return [calculators[p](prop, market) for p in PILLAR_ORDER]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(PILLAR_ORDER))) as pool:
        futures = {p: pool.submit(calculators[p], prop, market) for p in PILLAR_ORDER}
        return [futures[p].result() for p in PILLAR_ORDER]


def request_narrative(
    narrator: NarrativeCollaborator,
    prop: PropertyInput,
    metrics: list[Metric],
    overall_score: int,
    timeout: float,
    executor: Optional[ThreadPoolExecutor] = None,
) -> Optional[str]:
    """
    Ask the collaborator for commentary, bounded by a timeout.

    Args:
        executor: Long-lived pool to run the request on. When None a
            single-use pool is created and abandoned after the call.

    Returns:
        The narrative, or None if the collaborator timed out, failed
        or returned nothing. The failure is logged.
    """
    pool = executor or ThreadPoolExecutor(max_workers=1)
    future = pool.submit(narrator.summarize, prop, metrics, overall_score)
    try:
        narrative = future.result(timeout=timeout)
    except FuturesTimeout:
        # Drop the request if it is still queued behind a hung one
        future.cancel()
        logger.warning(
            "Narrative for %s timed out after %.1fs, using template", prop.property_id, timeout
        )
        return None
    except Exception as e:
        logger.warning("Narrative for %s unavailable, using template: %s", prop.property_id, e)
        return None
    finally:
        if executor is None:
            # Never wait on a hung collaborator
            pool.shutdown(wait=False, cancel_futures=True)

    if not narrative or not str(narrative).strip():
        logger.warning("Narrative for %s was empty, using template", prop.property_id)
        return None
    return str(narrative).strip()


def compute_deal_quality_index(
    property_id: str,
    property_input: Union[PropertyInput, dict],
    *,
    provider: Optional[MarketContextProvider] = None,
    narrator: Optional[NarrativeCollaborator] = None,
    config: Optional[EngineConfig] = None,
    run: Optional[AnalysisRun] = None,
    narrative_executor: Optional[ThreadPoolExecutor] = None,
) -> DQIAnalysis:
    """
    Compute the Deal Quality Index for one property.

    Args:
        property_id: Identifier reported on the result
        property_input: A PropertyInput, or a loosely shaped record
            that is normalised first
        provider: Market data source (defaults to DefaultMarketProvider)
        narrator: Narrative collaborator (None skips the request and
            uses the templated narrative)
        config: Engine configuration (defaults to EngineConfig.load())
        run: Audit record to populate (a fresh one is created if None)
        narrative_executor: Pool for the narrative request (a single-use
            pool is created if None)

    Returns:
        Immutable DQIAnalysis

    Raises:
        MissingRequiredField: If the property value is missing or not positive
    """
    config = config or EngineConfig.load()
    provider = provider or DefaultMarketProvider()
    run = run or AnalysisRun(property_id=property_id)

    try:
        prop = _resolve_input(property_id, property_input)
    except MissingRequiredField as e:
        run.transition(AnalysisState.FAILED, notes=str(e))
        logger.warning("DQI analysis for %s failed: %s", property_id, e)
        raise

    logger.info(
        "Generating DQI analysis for %s (%s, %s, value %.0f)",
        prop.property_id, prop.name, prop.property_type.value, prop.property_value,
    )

    market = build_market_context(provider, prop)
    validation = validate_property(prop, market.market_cap_rate)

    run.transition(
        AnalysisState.COMPUTING_PILLARS,
        notes=f"{validation.confidence.value} confidence, {len(validation.warnings)} warnings",
    )
    metrics = compute_pillars(prop, market, validation, config.max_workers)

    run.transition(AnalysisState.AGGREGATING)
    score = aggregate(metrics, peer_benchmark=config.peer_benchmark)
    data_confidence = next(m for m in metrics if m.pillar == Pillar.DATA_CONFIDENCE)
    confidence = governance_confidence(data_confidence.score, validation.confidence)

    narrative = None
    if narrator is not None and config.narrative_enabled:
        run.transition(AnalysisState.NARRATIVE_REQUESTED)
        narrative = request_narrative(
            narrator, prop, metrics, score.overall_score, config.narrative_timeout,
            executor=narrative_executor,
        )
    else:
        run.transition(AnalysisState.NARRATIVE_SKIPPED)

    narrative_source = NARRATIVE_FROM_COLLABORATOR
    if narrative is None:
        narrative = template_narrative(prop, score.overall_score, score.rating.value)
        narrative_source = NARRATIVE_FROM_TEMPLATE

    analysis = DQIAnalysis(
        property_id=property_id,
        property_name=prop.name,
        overall_score=score.overall_score,
        rating=score.rating,
        band=score.band,
        drivers=score.drivers,
        improvements=score.improvements,
        metrics=tuple(metrics),
        safeguards=Safeguards(hard_fails=score.hard_fails, warnings=score.warnings),
        governance=Governance(confidence_level=confidence, peer_rank=score.peer_rank),
        rune_analysis=narrative,
        narrative_source=narrative_source,
        validation=validation,
    )

    run.transition(AnalysisState.COMPLETE)
    logger.info(
        "DQI analysis for %s complete: %d (%s)%s",
        property_id, analysis.overall_score, analysis.rating.value,
        " HARD FAIL" if analysis.is_hard_fail else "",
    )
    return analysis


class DealQualityIndexEngine:
    """
    Reusable DQI engine.

    Holds the market provider, narrator and configuration so callers
    can analyze many properties with the same collaborators. Holds no
    per-analysis state. Narrative requests share one single-worker
    pool, so at most one collaborator call is in flight per engine.
    Call close() when done.
    """

    def __init__(
        self,
        provider: Optional[MarketContextProvider] = None,
        narrator: Optional[NarrativeCollaborator] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig.load()
        self.provider = provider or DefaultMarketProvider()
        self.narrator = narrator
        self._narrative_pool: Optional[ThreadPoolExecutor] = None
        if narrator is not None:
            self._narrative_pool = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="dqi-narrative"
            )

    def close(self) -> None:
        """Release the narrative pool without waiting on a hung request."""
        if self._narrative_pool is not None:
            self._narrative_pool.shutdown(wait=False, cancel_futures=True)

    def analyze(self, property_id: str, property_input: Union[PropertyInput, dict]) -> DQIAnalysis:
        """Analyze a single property."""
        return compute_deal_quality_index(
            property_id,
            property_input,
            provider=self.provider,
            narrator=self.narrator,
            config=self.config,
            narrative_executor=self._narrative_pool,
        )

    def analyze_batch(
        self,
        properties: Union[dict[str, Any], Iterable[PropertyInput]],
        skip_invalid: bool = True,
    ) -> list[DQIAnalysis]:
        """
        Analyze multiple properties.

        Args:
            properties: Mapping of property_id to input, or PropertyInputs
            skip_invalid: Skip properties missing a value instead of raising

        Returns:
            Analyses sorted by overall score (highest first)
        """
        if isinstance(properties, dict):
            items = list(properties.items())
        else:
            items = [(p.property_id, p) for p in properties]

        results = []
        for property_id, property_input in items:
            try:
                results.append(self.analyze(property_id, property_input))
            except MissingRequiredField as e:
                if not skip_invalid:
                    raise
                logger.warning("Skipping %s: %s", property_id, e)

        results.sort(key=lambda a: a.overall_score, reverse=True)
        return results

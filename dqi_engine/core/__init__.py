"""
Core modules for the Deal Quality Index Engine.

- property: Property input model and payload normalisation
- market: Market context provider (cap rates, lending rates)
- metric: Pillar metric model and fixed weights
- validation: Data validation and confidence classification
- aggregation: Composite score, rating, band and peer rank
- narrative: Narrative collaborators and the templated fallback

The seven pillar calculators live in dqi_engine.pillars and the
analysis assembler in dqi_engine.analysis.
"""

from .property import (
    PropertyInput,
    PropertyType,
    MissingRequiredField,
    normalize_property,
    parse_amount,
)
from .market import (
    MarketContext,
    MarketContextProvider,
    DefaultMarketProvider,
    MarketDataUnavailable,
    build_market_context,
    SECTOR_DEFAULT_CAP_RATES,
    DEFAULT_LENDING_RATE,
)
from .metric import Metric, Pillar, PILLAR_WEIGHTS, PILLAR_ORDER, clamp_score
from .validation import (
    ConfidenceLevel,
    ValidationResult,
    validate_property,
    confidence_disclaimer,
)
from .aggregation import (
    AggregateScore,
    Rating,
    PillarWeightError,
    aggregate,
    rating_for_score,
    score_band,
    peer_rank,
    governance_confidence,
)
from .narrative import (
    NarrativeCollaborator,
    NarrativeUnavailable,
    OpenAINarrator,
    TemplateNarrator,
    template_narrative,
)

__all__ = [
    # Property
    "PropertyInput",
    "PropertyType",
    "MissingRequiredField",
    "normalize_property",
    "parse_amount",
    # Market
    "MarketContext",
    "MarketContextProvider",
    "DefaultMarketProvider",
    "MarketDataUnavailable",
    "build_market_context",
    "SECTOR_DEFAULT_CAP_RATES",
    "DEFAULT_LENDING_RATE",
    # Metric
    "Metric",
    "Pillar",
    "PILLAR_WEIGHTS",
    "PILLAR_ORDER",
    "clamp_score",
    # Validation
    "ConfidenceLevel",
    "ValidationResult",
    "validate_property",
    "confidence_disclaimer",
    # Aggregation
    "AggregateScore",
    "Rating",
    "PillarWeightError",
    "aggregate",
    "rating_for_score",
    "score_band",
    "peer_rank",
    "governance_confidence",
    # Narrative
    "NarrativeCollaborator",
    "NarrativeUnavailable",
    "OpenAINarrator",
    "TemplateNarrator",
    "template_narrative",
]

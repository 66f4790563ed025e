"""
Deal Quality Index Engine

Transparent 0-100 scoring for commercial real-estate deals.

Components:
  1. Property input model and payload normalisation
  2. Market context (cap rates, lending rates)
  3. Data validation and confidence classification
  4. Seven pillar calculators
  5. Score aggregation, hard-fail safeguards, rating and peer rank
  6. Analysis assembly with optional narrative commentary

Usage:
    from dqi_engine.analysis import compute_deal_quality_index
    analysis = compute_deal_quality_index("prop-1", {"propertyValue": 10_000_000})
"""

__version__ = "1.0.0"

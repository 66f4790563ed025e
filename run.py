#!/usr/bin/env python3
"""
Deal Quality Index Engine - Demo

Demonstrates the scoring engine end to end:

- Seven-pillar scoring of a stabilised office deal
- Stress-test hard fail on a distressed deal
- Narrative timeout with templated fallback
- Analysis state machine and audit trail
- Payload normalisation and the missing-value failure
- Batch ranking

Run with: python run.py
"""

import logging
import time

from dqi_engine.analysis import (
    AnalysisRun,
    DealQualityIndexEngine,
    DQIAnalysis,
    compute_deal_quality_index,
)
from dqi_engine.config import EngineConfig
from dqi_engine.core import (
    MissingRequiredField,
    NarrativeCollaborator,
    PropertyInput,
    PropertyType,
)


def create_office_deal() -> PropertyInput:
    """Stabilised Los Angeles office deal at a 5.8% cap rate."""
    return PropertyInput(
        property_id="LA-OFFICE-001",
        name="Wilshire Office Tower",
        property_value=10_000_000,
        net_operating_income=580_000,
        square_feet=50_000,
        property_type=PropertyType.OFFICE,
        location="Los Angeles, CA",
    )


class SlowNarrator(NarrativeCollaborator):
    """Collaborator that never answers within the timeout."""

    def __init__(self, delay: float):
        self.delay = delay

    def summarize(self, prop, metrics, overall_score):
        time.sleep(self.delay)
        return "This commentary arrives too late to be used."


def print_analysis(analysis: DQIAnalysis) -> None:
    """Print the headline figures and pillar breakdown."""
    print(f"\n{analysis.property_name} ({analysis.property_id})")
    print(f"  DQI: {analysis.overall_score}/100 [{analysis.rating.value}] band {analysis.band}")
    print(f"  Peer rank: {analysis.governance.peer_rank}")
    print(f"  Confidence: {analysis.governance.confidence_level.value}")

    print("\n  Pillars:")
    for m in analysis.metrics:
        flag = "  HARD FAIL" if m.has_hard_fail else ""
        print(f"    {m.name:<30} {m.score:>3}  ({m.weight}%){flag}")

    if analysis.safeguards.hard_fails:
        print(f"\n  Hard fails: {', '.join(analysis.safeguards.hard_fails)}")
    if analysis.safeguards.warnings:
        print(f"  Warnings: {', '.join(analysis.safeguards.warnings)}")

    print("\n  Drivers:")
    for d in analysis.drivers:
        print(f"    {d}")
    print("  Improvements:")
    for i in analysis.improvements:
        print(f"    {i}")

    print(f"\n  Narrative ({analysis.narrative_source}): {analysis.rune_analysis}")


def demo_baseline():
    """Score a stabilised office deal."""
    print("\n" + "=" * 60)
    print("BASELINE: STABILISED OFFICE DEAL")
    print("=" * 60)

    analysis = compute_deal_quality_index("LA-OFFICE-001", create_office_deal())
    print_analysis(analysis)


def demo_hard_fail():
    """Show the stressed DSCR hard fail capping the composite score."""
    print("\n" + "=" * 60)
    print("HARD FAIL: DISTRESSED NOI")
    print("=" * 60)

    distressed = create_office_deal().with_overrides(
        property_id="LA-OFFICE-002",
        name="Wilshire Office Tower (distressed)",
        net_operating_income=150_000,
    )
    analysis = compute_deal_quality_index("LA-OFFICE-002", distressed)
    print_analysis(analysis)

    print("\n  Data validation:")
    print(f"    Confidence: {analysis.validation.confidence.value}")
    for w in analysis.validation.warnings:
        print(f"    - {w}")
    print(f"    {analysis.validation.disclaimer}")


def demo_narrative_timeout():
    """Show the templated fallback when the narrator times out."""
    print("\n" + "=" * 60)
    print("NARRATIVE TIMEOUT: TEMPLATED FALLBACK")
    print("=" * 60)

    config = EngineConfig(narrative_timeout=0.5)
    started = time.monotonic()
    analysis = compute_deal_quality_index(
        "LA-OFFICE-001",
        create_office_deal(),
        narrator=SlowNarrator(delay=3.0),
        config=config,
    )
    elapsed = time.monotonic() - started

    print(f"\n  Completed in {elapsed:.2f}s with timeout {config.narrative_timeout}s")
    print(f"  Score unaffected: {analysis.overall_score} [{analysis.rating.value}]")
    print(f"  Narrative ({analysis.narrative_source}): {analysis.rune_analysis}")


def demo_state_machine():
    """Show the analysis audit trail."""
    print("\n" + "=" * 60)
    print("ANALYSIS STATE MACHINE")
    print("=" * 60)

    run = AnalysisRun(property_id="LA-OFFICE-001")
    compute_deal_quality_index("LA-OFFICE-001", create_office_deal(), run=run)

    print("\n--- Audit Trail ---")
    for i, transition in enumerate(run.history, 1):
        print(f"  {i}. {transition.from_state.value} → {transition.to_state.value}")
        if transition.notes:
            print(f"     Notes: {transition.notes}")

    print("\n--- Missing Property Value ---")
    failed = AnalysisRun(property_id="NO-VALUE")
    try:
        compute_deal_quality_index("NO-VALUE", {"name": "Unpriced Lot", "noi": 100_000}, run=failed)
    except MissingRequiredField as e:
        print(f"  Caught expected error: {e}")
        print(f"  Final state: {failed.state.value}")


def demo_batch():
    """Rank loosely shaped upstream records."""
    print("\n" + "=" * 60)
    print("BATCH RANKING FROM UPSTREAM PAYLOADS")
    print("=" * 60)

    payloads = {
        "IND-7": {
            "title": "Inland Empire Logistics Center",
            "price": "$32M",
            "noi": 1_790_000,
            "sqft": 240_000,
            "type": "warehouse",
            "city": "Riverside, CA",
            "waltYears": 7.5,
            "occupancy": 100,
            "hasAppraisal": True,
        },
        "MF-3": {
            "name": "Camelback Apartments",
            "listPrice": "18,500,000",
            "netOperatingIncome": 980_000,
            "squareFeet": 92_000,
            "propertyType": "multi-family",
            "location": "Phoenix, AZ",
        },
        "RET-9": {
            "name": "Eastgate Shopping Plaza",
            "totalValue": 10_000_000,
            "noi": 150_000,
            "propertyType": "Retail",
            "address": "Columbus, OH",
        },
        "UNPRICED": {"name": "Unpriced Lot"},
    }

    engine = DealQualityIndexEngine()
    results = engine.analyze_batch(payloads)

    print(f"\nScored {len(results)} of {len(payloads)} records\n")
    for a in results:
        marker = " (hard fail)" if a.is_hard_fail else ""
        print(f"  [{a.band:>6}] {a.overall_score:>3} {a.rating.value:<13} {a.property_name}{marker}")


# =============================================================================
# Main
# =============================================================================

def main():
    """Run all demos."""
    config = EngineConfig.load()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("\n" + "=" * 60)
    print("  DEAL QUALITY INDEX ENGINE - DEMO")
    print("=" * 60)

    demo_baseline()
    demo_hard_fail()
    demo_narrative_timeout()
    demo_state_machine()
    demo_batch()

    print("\n" + "=" * 60)
    print("  DEMO COMPLETE")
    print("=" * 60)
    print("\nModules:")
    print("  - dqi_engine.core: Property, market, validation, aggregation, narrative")
    print("  - dqi_engine.pillars: Seven pillar calculators")
    print("  - dqi_engine.analysis: Analysis assembler and state machine")
    print("\nServe the API with: python serve.py")
    print()


if __name__ == "__main__":
    main()

"""
Leverage & Coverage pillar.

Sizes an indicative loan from deal size and sector, computes debt
service coverage at the market lending rate and under a stress
scenario, and escalates a hard fail when stressed coverage breaches
the safeguard threshold.
"""

from dataclasses import dataclass

from dqi_engine.core.market import MarketContext
from dqi_engine.core.metric import Metric, Pillar, PILLAR_WEIGHTS, clamp_score
from dqi_engine.core.property import PropertyInput, PropertyType


BASE_SCORE = 70

# Loan-to-value sizing
BASE_LTV = 0.75
LARGE_DEAL_LTV = 0.70  # > $20M
INSTITUTIONAL_LTV = 0.65  # > $50M
OFFICE_MAX_LTV = 0.68
RETAIL_MAX_LTV = 0.65
INDUSTRIAL_LTV_PREMIUM = 0.05
INDUSTRIAL_MAX_LTV = 0.80

# Stress scenario
STRESS_NOI_FACTOR = 0.75
STRESS_RATE_SHOCK = 0.015  # +150bp

# Safeguard
HARD_FAIL_STRESSED_DSCR = 1.10
HARD_FAIL_SCORE_CAP = 45
HARD_FAIL_MESSAGE = "Stressed DSCR < 1.10 (Hard Fail)"


@dataclass(frozen=True)
class LeverageProfile:
    """Indicative debt terms and coverage for a property."""

    noi: float
    noi_is_derived: bool
    ltv: float
    loan_amount: float
    interest_rate: float
    rate_is_default: bool
    dscr: float
    stressed_rate: float
    stressed_noi: float
    stressed_dscr: float

    @property
    def is_hard_fail(self) -> bool:
        return self.stressed_dscr < HARD_FAIL_STRESSED_DSCR


def indicative_ltv(property_value: float, property_type: PropertyType) -> float:
    """Loan-to-value a lender would offer for this deal size and sector."""
    ltv = BASE_LTV
    if property_value > 50_000_000:
        ltv = INSTITUTIONAL_LTV
    elif property_value > 20_000_000:
        ltv = LARGE_DEAL_LTV

    if property_type == PropertyType.OFFICE:
        ltv = min(ltv, OFFICE_MAX_LTV)
    elif property_type == PropertyType.RETAIL:
        ltv = min(ltv, RETAIL_MAX_LTV)
    elif property_type == PropertyType.INDUSTRIAL:
        ltv = min(ltv + INDUSTRIAL_LTV_PREMIUM, INDUSTRIAL_MAX_LTV)

    return round(ltv, 4)


def leverage_profile(prop: PropertyInput, market: MarketContext) -> LeverageProfile:
    """Compute base and stressed coverage for a property."""
    noi_is_derived = prop.net_operating_income is None
    noi = prop.property_value * market.market_cap_rate if noi_is_derived else prop.net_operating_income

    ltv = indicative_ltv(prop.property_value, prop.property_type)
    loan_amount = prop.property_value * ltv
    interest_rate, rate_is_default = market.lending_rate(loan_amount, ltv)

    dscr = noi / (loan_amount * interest_rate)

    stressed_rate = interest_rate + STRESS_RATE_SHOCK
    stressed_noi = noi * STRESS_NOI_FACTOR
    stressed_dscr = stressed_noi / (loan_amount * stressed_rate)

    return LeverageProfile(
        noi=noi,
        noi_is_derived=noi_is_derived,
        ltv=ltv,
        loan_amount=loan_amount,
        interest_rate=interest_rate,
        rate_is_default=rate_is_default,
        dscr=dscr,
        stressed_rate=stressed_rate,
        stressed_noi=stressed_noi,
        stressed_dscr=stressed_dscr,
    )


def compute_leverage_coverage(prop: PropertyInput, market: MarketContext) -> Metric:
    """
    Score leverage and debt service coverage.

    Bonuses: LTV < 65% (+15), LTV < 60% (+10), DSCR > 1.40x (+10),
    stressed DSCR > 1.20x (+5). Stressed DSCR < 1.10x caps the score
    at 45 and escalates a hard fail.
    """
    profile = leverage_profile(prop, market)

    score = BASE_SCORE
    if profile.ltv < 0.65:
        score += 15
    if profile.ltv < 0.60:
        score += 10
    if profile.dscr > 1.4:
        score += 10
    if profile.stressed_dscr > 1.2:
        score += 5

    hard_fails: tuple[str, ...] = ()
    if profile.is_hard_fail:
        score = min(score, HARD_FAIL_SCORE_CAP)
        hard_fails = (HARD_FAIL_MESSAGE,)

    drivers = []
    if profile.is_hard_fail:
        drivers.append(f"- Stressed DSCR below 1.10x hard-fail floor ({profile.stressed_dscr:.2f}x)")
    elif profile.stressed_dscr < 1.2:
        drivers.append(f"- Stressed DSCR concern ({profile.stressed_dscr:.2f}x)")
    if profile.ltv < 0.60:
        drivers.append(f"+ Low LTV ({profile.ltv * 100:.0f}%)")
    if profile.dscr > 1.4:
        drivers.append(f"+ Strong DSCR ({profile.dscr:.2f}x)")
    if profile.stressed_dscr > 1.2:
        drivers.append(f"+ Passes stress test with headroom ({profile.stressed_dscr:.2f}x)")

    improvements = []
    if profile.is_hard_fail:
        improvements.append("Resize debt so stressed DSCR clears 1.10x -> removes hard-fail cap")
    if profile.ltv > 0.70:
        improvements.append("Reduce LTV to <65% -> +8pts")
    if profile.stressed_dscr < 1.25:
        improvements.append("Add interest rate hedge -> +5pts")

    details = [
        f"LTV: {profile.ltv * 100:.0f}%",
        f"Loan amount: ${profile.loan_amount:,.0f} at {profile.interest_rate * 100:.2f}%",
        f"Base DSCR: {profile.dscr:.2f}x",
        f"Stressed DSCR: {profile.stressed_dscr:.2f}x "
        f"(NOI -25%, rate +150bp to {profile.stressed_rate * 100:.2f}%)",
        "Hard Fail: Stressed DSCR < 1.10" if profile.is_hard_fail else "Passes stress test",
    ]
    if profile.noi_is_derived:
        details.append(
            f"NOI not provided; derived at market cap rate {market.market_cap_rate * 100:.2f}%: "
            f"${profile.noi:,.0f}"
        )
    if market.cap_rate_is_default:
        details.append(f"Market data unavailable; sector default cap rate {market.market_cap_rate * 100:.2f}% used")
    if profile.rate_is_default:
        details.append(f"Lending rate unavailable; default {profile.interest_rate * 100:.2f}% used")

    return Metric(
        pillar=Pillar.LEVERAGE_COVERAGE,
        score=clamp_score(score),
        weight=PILLAR_WEIGHTS[Pillar.LEVERAGE_COVERAGE],
        description="LTV, DSCR (base + stressed), fixed vs. floating, hedges, maturity wall",
        details=tuple(details),
        drivers=tuple(drivers),
        improvements=tuple(improvements),
        source_ref="market-trends",
        hard_fails=hard_fails,
    )

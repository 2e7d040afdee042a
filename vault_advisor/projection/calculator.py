"""
Compounded return projections for a chosen vault.

Formula
-------
    periodic_rate = (1 + apy_percent / 100) ** (1 / periods_per_year) - 1
    balance(m)    = principal * (1 + periodic_rate) ** completed_periods(m)
                  + Σ_k contribution * (1 + periodic_rate) ** periods_after(k)

With the default monthly compounding and no contributions this reduces to
``principal * (1 + monthly_rate) ** m``.  Quarterly and annual compounding
credit growth only for completed periods, so a 6-month horizon under annual
compounding returns the principal unchanged.

Monthly contributions are deposited at the end of each month, after that
month's growth, and then compound with the balance.

Independent of the ranking pipeline: callers that already hold a chosen
vault's APY can project alternate horizons directly.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import Decimal
from typing import Optional, Union

from vault_advisor.config import TierPolicyConfig
from vault_advisor.errors import ValidationError
from vault_advisor.models.projection import (
    ProjectionAssumptions,
    ProjectionPoint,
    ProjectionSummary,
)
from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER, VALID_HORIZON_MONTHS, RiskTier

Number = Union[int, float, Decimal]

PERIODS_PER_YEAR: dict[str, int] = {
    "monthly":   12,
    "quarterly": 4,
    "annually":  1,
}

DEFAULT_MAX_APY_PERCENT = 1000.0

COMPOUNDING_DESCRIPTIONS: dict[str, str] = {
    "monthly":   "Monthly compounding (r_m = (1 + APY)^(1/12) - 1)",
    "quarterly": "Quarterly compounding (r_q = (1 + APY)^(1/4) - 1)",
    "annually":  "Annual compounding (r_a = APY)",
}

APY_TYPE = "Estimated APY based on the vault's risk tier policy"
FEES_NOTE = "Projections are gross of protocol fees and network costs"


def periodic_rate(apy_percent: float, periods_per_year: int = 12) -> float:
    """Per-period rate equivalent to ``apy_percent`` compounded ``periods_per_year`` times."""
    return (1.0 + apy_percent / 100.0) ** (1.0 / periods_per_year) - 1.0


def project(
    principal:            Number,
    apy_percent:          Number,
    horizons_months:      Sequence[int],
    monthly_contribution: Number = 0,
    compounding:          str = "monthly",
    max_apy_percent:      float = DEFAULT_MAX_APY_PERCENT,
) -> list[ProjectionPoint]:
    """Project balances at each requested horizon.

    Args:
        principal:            Initial deposit; must be positive.
        apy_percent:          Annual yield in percent; 0 ≤ apy ≤ ``max_apy_percent``.
        horizons_months:      Positive month counts, returned in the given order.
        monthly_contribution: Extra deposit at the end of every month (≥ 0).
        compounding:          ``"monthly"``, ``"quarterly"`` or ``"annually"``.
        max_apy_percent:      Upper bound accepted for ``apy_percent``.

    Returns:
        One ``ProjectionPoint`` per horizon.

    Raises:
        ValidationError: On non-positive principal, negative / excessive APY,
            negative contribution, bad horizon, or unknown compounding.
    """
    p = _positive(principal, "principal")
    apy = _finite(apy_percent, "apy_percent")
    if apy < 0:
        raise ValidationError("apy_percent", f"must be non-negative, got {apy}.")
    if apy > max_apy_percent:
        raise ValidationError("apy_percent", f"must be at most {max_apy_percent}, got {apy}.")
    contribution = _finite(monthly_contribution, "monthly_contribution")
    if contribution < 0:
        raise ValidationError(
            "monthly_contribution", f"must be non-negative, got {contribution}."
        )
    horizons = _validate_horizons(horizons_months)

    periods_per_year = PERIODS_PER_YEAR[_validate_compounding(compounding)]
    months_per_period = 12 // periods_per_year
    growth = 1.0 + periodic_rate(apy, periods_per_year)

    points: list[ProjectionPoint] = []
    for months in horizons:
        periods = months // months_per_period
        balance = p * growth ** periods
        if contribution:
            for k in range(1, months + 1):
                balance += contribution * growth ** (periods - k // months_per_period)
        invested = p + contribution * months
        points.append(
            ProjectionPoint(
                months=months,
                balance=balance,
                total_contributions=invested,
                total_returns=balance - invested,
            )
        )
    return points


def summarize_projection(
    points:      Sequence[ProjectionPoint],
    principal:   Number,
    compounding: str = "monthly",
) -> ProjectionSummary:
    """Summarize the longest horizon in ``points``.

    ``effective_apy`` annualises ``final_balance / principal`` over that
    horizon, so contributions inflate it; it is informational only.
    ``compounding`` should match the frequency ``points`` were projected with;
    it only feeds the stated assumptions.
    """
    p = _positive(principal, "principal")
    assumptions = describe_assumptions(compounding)
    if not points:
        return ProjectionSummary(
            total_invested=p, final_balance=p, total_returns=0.0, effective_apy=0.0,
            assumptions=assumptions,
        )

    final = max(points, key=lambda pt: pt.months)
    effective = ((final.balance / p) ** (12.0 / final.months) - 1.0) * 100.0
    return ProjectionSummary(
        total_invested=final.total_contributions,
        final_balance=final.balance,
        total_returns=final.total_returns,
        effective_apy=round(effective, 2),
        assumptions=assumptions,
    )


def describe_assumptions(compounding: str = "monthly") -> ProjectionAssumptions:
    """Assumptions block for projections compounded at ``compounding``."""
    return ProjectionAssumptions(
        compounding=COMPOUNDING_DESCRIPTIONS[_validate_compounding(compounding)],
        apy_type=APY_TYPE,
        fees=FEES_NOTE,
    )


def reference_scenarios(
    tiers:           Optional[TierPolicyConfig] = None,
    principal:       Number = 1000,
    horizons_months: Optional[Sequence[int]] = None,
) -> dict[RiskTier, list[ProjectionPoint]]:
    """Project a sample principal at every tier's configured APY."""
    policy = tiers or TierPolicyConfig()
    horizons = list(horizons_months or sorted(VALID_HORIZON_MONTHS))
    return {
        tier: project(principal, policy.for_tier(tier).apy, horizons)
        for tier in TIER_ORDER
    }


# ── Validation helpers ────────────────────────────────────────────────────────

def _finite(value: Number, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(field, f"must be a number, got {type(value).__name__}.")
    result = float(value)
    if not math.isfinite(result):
        raise ValidationError(field, f"must be finite, got {value}.")
    return result


def _positive(value: Number, field: str) -> float:
    result = _finite(value, field)
    if result <= 0:
        raise ValidationError(field, f"must be positive, got {value}.")
    return result


def _validate_compounding(compounding: str) -> str:
    freq = compounding.lower()
    if freq not in PERIODS_PER_YEAR:
        raise ValidationError(
            "compounding", f"must be one of {sorted(PERIODS_PER_YEAR)}, got '{compounding}'."
        )
    return freq


def _validate_horizons(horizons: Sequence[int]) -> list[int]:
    if not horizons:
        raise ValidationError("horizons_months", "at least one horizon is required.")
    for m in horizons:
        if isinstance(m, bool) or not isinstance(m, int) or m <= 0:
            raise ValidationError("horizons_months", f"must be positive integers, got {m!r}.")
    return list(horizons)

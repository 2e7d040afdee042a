"""
Recommendation scoring: turns one candidate vault's features into a score
and a human-readable rationale.

Score formula (weights from ``ScoringConfig``)
----------------------------------------------
    total = (
        log10(1 + tvl_normalized) * tvl_weight              # size / safety
        + (estimated_apy / 100)   * apy_weight              # tier APY policy
        + liquidity_fit           * liquidity_bonus_weight  # 1 or 0
    )

Component explanations
----------------------
tvl_term:
    Log-scaled so a single very large vault cannot drown out every other
    signal: 10x more TVL adds a constant ``tvl_weight``.

apy_term:
    Constant within one tier; only separates candidates when the ranker
    mixes tiers.

liquidity_term:
    Awarded only when the investor states High liquidity needs and the
    vault holds at least ``liquidity_idle_threshold`` of its TVL idle
    (immediately withdrawable).  Low and Medium needs never get it.

All functions are pure; the rationale text is fully determined by inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from vault_advisor.config import ScoringConfig
from vault_advisor.models.features import FeatureVector
from vault_advisor.taxonomy.risk_taxonomy import LiquidityNeeds, RiskTier


@dataclass
class ScoreComponents:
    """Weighted components of a recommendation score.

    Attributes:
        tvl_term:       Weighted log-scaled TVL.
        apy_term:       Weighted tier APY.
        liquidity_term: Weighted liquidity-fit bonus (0 when not applied).
        liquidity_fit:  True if the liquidity bonus was awarded.
    """

    tvl_term:       float
    apy_term:       float
    liquidity_term: float
    liquidity_fit:  bool

    @property
    def total(self) -> float:
        return self.tvl_term + self.apy_term + self.liquidity_term


def has_liquidity_fit(
    features: FeatureVector,
    liquidity_needs: LiquidityNeeds,
    scoring: Optional[ScoringConfig] = None,
) -> bool:
    """True if a High-liquidity investor gets an idle-capital bonus here."""
    cfg = scoring or ScoringConfig()
    return (
        liquidity_needs == LiquidityNeeds.HIGH
        and features.idle_ratio >= cfg.liquidity_idle_threshold
    )


def compute_score(
    features:        FeatureVector,
    estimated_apy:   float,
    liquidity_needs: LiquidityNeeds,
    scoring:         Optional[ScoringConfig] = None,
) -> ScoreComponents:
    """Compute all score components for one candidate vault.

    Args:
        features:        Candidate's feature vector.
        estimated_apy:   Tier-assumed APY in percent.
        liquidity_needs: Investor's stated liquidity needs.
        scoring:         Weights. Defaults to ``ScoringConfig()``.

    Returns:
        ScoreComponents with all fields populated.
    """
    cfg = scoring or ScoringConfig()
    fit = has_liquidity_fit(features, liquidity_needs, cfg)
    return ScoreComponents(
        tvl_term=math.log10(1.0 + features.tvl_normalized) * cfg.tvl_weight,
        apy_term=(estimated_apy / 100.0) * cfg.apy_weight,
        liquidity_term=cfg.liquidity_bonus_weight if fit else 0.0,
        liquidity_fit=fit,
    )


def build_rationale(
    features:            FeatureVector,
    tier:                RiskTier,
    requested_tier:      RiskTier,
    estimated_apy:       float,
    liquidity_needs:     LiquidityNeeds,
    time_horizon_months: int,
    asset_symbol:        str,
    components:          ScoreComponents,
) -> str:
    """Assemble the rationale sentence for one recommendation.

    Returns text such as::

        "Matches your Balanced risk tolerance; large TVL of 394,759 USDT;
        concentrated in a single active strategy. Assumes 12.0% APY for the
        Balanced tier over your 12-month horizon."
    """
    reasons: list[str] = []

    # Tier signal
    if tier == requested_tier:
        reasons.append(f"Matches your {tier.value} risk tolerance")
    else:
        reasons.append(
            f"Fallback to the {tier.value} tier because no {requested_tier.value} "
            f"vaults were available"
        )

    # TVL magnitude
    tvl = features.tvl_normalized
    if tvl >= 100_000:
        reasons.append(f"large TVL of {tvl:,.0f} {asset_symbol}")
    elif tvl >= 1_000:
        reasons.append(f"moderate TVL of {tvl:,.0f} {asset_symbol}")
    else:
        reasons.append(f"small TVL of {tvl:,.2f} {asset_symbol}")

    # Concentration
    hhi = features.concentration_index
    if hhi == 0.0:
        reasons.append("no capital in active strategies")
    elif hhi >= 0.999:
        reasons.append("concentrated in a single active strategy")
    elif hhi >= 0.5:
        reasons.append(f"moderately concentrated strategies (HHI {hhi:.2f})")
    else:
        reasons.append(
            f"diversified across {features.active_strategy_count} active strategies "
            f"(HHI {hhi:.2f})"
        )

    # Liquidity fit
    if liquidity_needs == LiquidityNeeds.HIGH:
        if components.liquidity_fit:
            reasons.append(f"{features.idle_ratio:.0%} idle capital supports quick withdrawals")
        else:
            reasons.append(
                f"only {features.idle_ratio:.0%} idle capital, so withdrawals may wait "
                f"on strategy unwinds"
            )

    return (
        f"{'; '.join(reasons)}. Assumes {estimated_apy:.1f}% APY for the "
        f"{tier.value} tier over your {time_horizon_months}-month horizon."
    )

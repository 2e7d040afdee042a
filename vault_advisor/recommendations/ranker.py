"""
Recommendation ranker: filters classified vaults to the investor's tier,
scores them, and returns the top-N as ``Recommendation`` records.

Usage flow
----------
1. select_candidates(features, classification, requested_tier)
   -> (tier actually used, list[FeatureVector])

2. recommend(features, classification, profile, top_n)
   -> list[Recommendation]  (score desc, TVL desc, vault_id asc)

3. build_recommendation_result(recommendations, classification, profile)
   -> RecommendationResult  (top pick + alternatives + assumptions)

Candidate filter
----------------
Only vaults with a defined price per share (non-zero share supply) are
recommendable.  If the requested tier has none, tiers are tried in
``fallback_order()``: the neighbor toward Conservative, then the neighbor
toward Aggressive, then any remaining tier.  The rationale of every
recommendation states when a fallback tier was used.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from vault_advisor.classification.tiering import Classification
from vault_advisor.config import AssetsConfig, ScoringConfig
from vault_advisor.errors import NoCandidatesError, ValidationError
from vault_advisor.models.features import FeatureVector
from vault_advisor.models.profile import UserRiskProfile
from vault_advisor.models.recommendation import (
    Assumptions,
    Recommendation,
    RecommendationResult,
)
from vault_advisor.recommendations.scorer import (
    ScoreComponents,
    build_rationale,
    compute_score,
)
from vault_advisor.taxonomy.risk_taxonomy import RiskTier, fallback_order

logger = logging.getLogger(__name__)


@dataclass
class ScoredVault:
    """Intermediate object coupling a candidate with its score.

    Attributes:
        features:   Candidate's feature vector.
        tier:       Tier the candidate was classified into.
        components: Detailed score breakdown.
        score:      ``components.total``.
    """

    features:   FeatureVector
    tier:       RiskTier
    components: ScoreComponents
    score:      float

    @property
    def sort_key(self) -> tuple[float, float, str]:
        return (-self.score, -self.features.tvl_normalized, self.features.vault_id)


def select_candidates(
    features:       Sequence[FeatureVector],
    classification: Classification,
    requested_tier: RiskTier,
) -> tuple[RiskTier, list[FeatureVector]]:
    """Pick recommendable vaults from the requested tier, or the first
    fallback tier that has any.

    Raises:
        NoCandidatesError: If no tier has a priceable classified vault.
    """
    priceable = [
        fv for fv in features
        if fv.is_priceable and fv.vault_id in classification.assignments
    ]

    for tier in (requested_tier, *fallback_order(requested_tier)):
        candidates = [fv for fv in priceable if classification.tier_of(fv.vault_id) == tier]
        if candidates:
            if tier != requested_tier:
                logger.info(
                    "No %s candidates; falling back to %s (%d candidate(s)).",
                    requested_tier.value, tier.value, len(candidates),
                )
            return tier, candidates

    raise NoCandidatesError(requested_tier.value, len(features))


def recommend(
    features:       Sequence[FeatureVector],
    classification: Classification,
    profile:        UserRiskProfile,
    top_n:          int = 3,
    scoring:        Optional[ScoringConfig] = None,
    assets:         Optional[AssetsConfig] = None,
) -> list[Recommendation]:
    """Rank candidate vaults for one investor profile.

    Args:
        features:       Feature vectors for the batch.
        classification: Output of ``classify()`` for the same batch.
        profile:        Investor profile.
        top_n:          Maximum results (clamped to the candidate count).
        scoring:        Scoring weights. Defaults to ``ScoringConfig()``.
        assets:         Asset symbol table. Defaults to ``AssetsConfig()``.

    Returns:
        Up to ``top_n`` recommendations, best first.

    Raises:
        ValidationError:   If ``top_n < 1``.
        NoCandidatesError: If nothing is recommendable in any tier.
    """
    if top_n < 1:
        raise ValidationError("top_n", f"must be >= 1, got {top_n}.")

    cfg = scoring or ScoringConfig()
    symbols = assets or AssetsConfig()
    requested = profile.risk_tolerance

    tier, candidates = select_candidates(features, classification, requested)
    apy = classification.bucket(tier).assumed_apy

    scored: list[ScoredVault] = []
    for fv in candidates:
        components = compute_score(fv, apy, profile.liquidity_needs, cfg)
        scored.append(
            ScoredVault(features=fv, tier=tier, components=components, score=components.total)
        )
    scored.sort(key=lambda sv: sv.sort_key)

    results: list[Recommendation] = []
    for sv in scored[:top_n]:
        fv = sv.features
        symbol = symbols.symbol_for(fv.asset_id)
        results.append(
            Recommendation(
                vault_id=fv.vault_id,
                asset_id=fv.asset_id,
                asset_symbol=symbol,
                estimated_apy=apy,
                risk_level=tier,
                tvl=fv.tvl_normalized,
                score=round(sv.score, 4),
                rationale=build_rationale(
                    features=fv,
                    tier=tier,
                    requested_tier=requested,
                    estimated_apy=apy,
                    liquidity_needs=profile.liquidity_needs,
                    time_horizon_months=profile.time_horizon_months,
                    asset_symbol=symbol,
                    components=sv.components,
                ),
                fallback_tier=requested if tier != requested else None,
            )
        )

    logger.info(
        "Recommended %d of %d %s candidate(s) for a %s profile.",
        len(results), len(candidates), tier.value, requested.value,
    )
    return results


def build_recommendation_result(
    recommendations: Sequence[Recommendation],
    classification:  Classification,
    profile:         UserRiskProfile,
    scoring:         Optional[ScoringConfig] = None,
) -> RecommendationResult:
    """Wrap ranked recommendations in the caller-facing envelope.

    Raises:
        NoCandidatesError: If ``recommendations`` is empty.
    """
    if not recommendations:
        raise NoCandidatesError(profile.risk_tolerance.value, len(classification))

    cfg = scoring or ScoringConfig()
    top = recommendations[0]
    apy_source = (
        f"Estimated APY from the {top.risk_level.value.lower()} risk tier policy "
        f"table ({top.estimated_apy:.1f}%); not measured from live yield data"
    )
    if top.fallback_used:
        apy_source += (
            f". {profile.risk_tolerance.value} had no recommendable vaults, "
            f"so the {top.risk_level.value} tier was used as a fallback"
        )

    return RecommendationResult(
        recommendation=top,
        alternatives=tuple(recommendations[1:]),
        assumptions=Assumptions(
            apy_source=apy_source,
            risk_assessment=(
                f"Risk tiers from strategy concentration ({cfg.concentration_weight:.0%}) "
                f"and capital utilization ({cfg.utilization_weight:.0%}) across "
                f"{len(classification)} vault(s), for a "
                f"{profile.time_horizon_months}-month horizon"
            ),
        ),
    )

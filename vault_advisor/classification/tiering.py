"""
Risk classification: partitions a batch of vaults into three risk tiers.

Composite risk score (range 0–1)
--------------------------------
    score = concentration_index * 0.6   # single-strategy exposure
          + utilization_ratio   * 0.4   # deployed vs idle capital

A single-strategy vault scores at least 0.6 and can never fall below a
diversified vault at equal utilization; a vault spread across many
strategies can sit in the lowest tier even when fully deployed.  An
unfunded vault (total 0) scores 0.

Tiering procedure
-----------------
This is k-means restricted to k=3 on a 1-D score with no iterative
reassignment, which makes it a sort-and-partition:

    1. Sort by (score ascending, vault_id ascending).
    2. Split into three contiguous groups of n // 3, giving the n % 3
       leftover vaults to the lowest-score groups first.
    3. Lowest group → Conservative, middle → Balanced, highest → Aggressive.

With fewer than three vaults the groups fill from Conservative upward.  The
output depends only on the set of feature vectors, never on their order.

Assumed APY per tier is read from ``TierPolicyConfig``; nothing here looks at
live yield.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from vault_advisor.config import ScoringConfig, TierPolicyConfig
from vault_advisor.errors import ComputationError
from vault_advisor.models.features import FeatureVector
from vault_advisor.taxonomy.risk_taxonomy import TIER_ORDER, RiskTier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierBucket:
    """One classified tier for a batch of vaults.

    Attributes:
        tier:        The risk tier.
        vault_ids:   Members in ascending score order.
        assumed_apy: Configured APY estimate for this tier (percent).
        description: Configured tier description.
        score_min:   Lowest member score, or ``None`` if the tier is empty.
        score_max:   Highest member score, or ``None`` if the tier is empty.
    """

    tier:        RiskTier
    vault_ids:   tuple[str, ...]
    assumed_apy: float
    description: str
    score_min:   Optional[float]
    score_max:   Optional[float]

    @property
    def is_empty(self) -> bool:
        return not self.vault_ids


@dataclass(frozen=True)
class Classification:
    """Tier assignment for one batch.

    Attributes:
        assignments: vault_id → tier, for every classified vault.
        tiers:       tier → bucket; always contains all three tiers.
        scores:      vault_id → composite risk score.
    """

    assignments: dict[str, RiskTier]
    tiers:       dict[RiskTier, TierBucket]
    scores:      dict[str, float]

    def tier_of(self, vault_id: str) -> RiskTier:
        return self.assignments[vault_id]

    def bucket(self, tier: RiskTier) -> TierBucket:
        return self.tiers[tier]

    def __len__(self) -> int:
        return len(self.assignments)


def composite_risk_score(
    features: FeatureVector,
    scoring: Optional[ScoringConfig] = None,
) -> float:
    """Weighted concentration + utilization score in [0, 1]."""
    cfg = scoring or ScoringConfig()
    score = (
        features.concentration_index * cfg.concentration_weight
        + features.utilization_ratio * cfg.utilization_weight
    )
    if not 0.0 <= score <= 1.0 + 1e-12:
        raise ComputationError(features.vault_id, "composite_risk_score", score)
    return min(score, 1.0)


def partition_sizes(n: int) -> tuple[int, int, int]:
    """Group sizes (Conservative, Balanced, Aggressive) for ``n`` vaults.

    Examples: 0 → (0, 0, 0), 1 → (1, 0, 0), 4 → (2, 1, 1), 5 → (2, 2, 1).
    """
    base, remainder = divmod(n, 3)
    return tuple(base + (1 if i < remainder else 0) for i in range(3))  # type: ignore[return-value]


def classify(
    features: Sequence[FeatureVector],
    tiers: Optional[TierPolicyConfig] = None,
    scoring: Optional[ScoringConfig] = None,
) -> Classification:
    """Assign every vault in the batch to exactly one risk tier.

    Args:
        features: Feature vectors for the batch (any order).
        tiers:    Tier APY policy table. Defaults to ``TierPolicyConfig()``.
        scoring:  Risk score weights. Defaults to ``ScoringConfig()``.

    Returns:
        ``Classification``; empty assignments for an empty batch.

    Raises:
        ComputationError: On duplicate vault ids or an out-of-range score.
    """
    policy = tiers or TierPolicyConfig()

    scores: dict[str, float] = {}
    for fv in features:
        if fv.vault_id in scores:
            raise ComputationError(fv.vault_id, "vault_id", "duplicate in batch")
        scores[fv.vault_id] = composite_risk_score(fv, scoring)

    ordered = sorted(scores, key=lambda vid: (scores[vid], vid))

    assignments: dict[str, RiskTier] = {}
    buckets: dict[RiskTier, TierBucket] = {}
    start = 0
    for tier, size in zip(TIER_ORDER, partition_sizes(len(ordered))):
        members = tuple(ordered[start:start + size])
        start += size
        for vid in members:
            assignments[vid] = tier

        tier_policy = policy.for_tier(tier)
        buckets[tier] = TierBucket(
            tier=tier,
            vault_ids=members,
            assumed_apy=tier_policy.apy,
            description=tier_policy.description,
            score_min=scores[members[0]] if members else None,
            score_max=scores[members[-1]] if members else None,
        )

    logger.info(
        "Classified %d vault(s): %s",
        len(assignments),
        ", ".join(f"{t.value}={len(buckets[t].vault_ids)}" for t in TIER_ORDER),
    )
    return Classification(assignments=assignments, tiers=buckets, scores=scores)

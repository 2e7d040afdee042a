"""
Feature extraction: ``VaultSnapshot`` → ``FeatureVector``.

Feature definitions
-------------------
idle_ratio          = idle_amount / total_amount          (0 if total is 0)
utilization_ratio   = invested_amount / total_amount      (0 if total is 0)
concentration_index = Σ (amount_i / active_sum)²  over non-paused allocations
                      Range [1/active_count, 1]; 0 when nothing is actively
                      allocated.  Paused allocations carry zero weight.
tvl_normalized      = total_amount / 10^base_unit_decimals
price_per_share     = total_amount / total_supply         (None if supply is 0)

Ratios are computed from the integer amounts in a single division, so the
only float rounding is the final one.

Range policy
------------
Every ratio must land in [0, 1].  A value outside that range can only come
from a snapshot that bypassed parser validation, so it raises
``ComputationError`` instead of being clamped.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Optional

from vault_advisor.config import FeatureConfig
from vault_advisor.errors import ComputationError
from vault_advisor.models.features import FeatureVector
from vault_advisor.models.vault import VaultSnapshot

logger = logging.getLogger(__name__)


def extract_features(
    snapshots: Sequence[VaultSnapshot],
    config: Optional[FeatureConfig] = None,
) -> list[FeatureVector]:
    """Derive one ``FeatureVector`` per snapshot, index-aligned with the input.

    Args:
        snapshots: Parsed vault snapshots.
        config:    Feature settings (base-unit scale). Defaults to ``FeatureConfig()``.

    Returns:
        List of feature vectors, same length and order as ``snapshots``.

    Raises:
        ComputationError: If any ratio escapes [0, 1] or a value is not finite.
    """
    cfg = config or FeatureConfig()
    vectors = [extract_vault_features(s, cfg.base_unit_scale) for s in snapshots]
    logger.debug("Extracted features for %d vault(s).", len(vectors))
    return vectors


def extract_vault_features(snapshot: VaultSnapshot, base_unit_scale: int) -> FeatureVector:
    """Compute the feature vector for a single snapshot."""
    total = snapshot.total_amount

    if total == 0:
        idle_ratio = 0.0
        utilization_ratio = 0.0
        concentration = 0.0
    else:
        idle_ratio = snapshot.idle_amount / total
        utilization_ratio = snapshot.invested_amount / total
        concentration = herfindahl_index(
            [a.amount for a in snapshot.strategy_allocations if not a.paused]
        )

    vault_id = snapshot.vault_id
    price_per_share = (
        _divide(vault_id, "price_per_share", total, snapshot.total_supply)
        if snapshot.total_supply else None
    )

    _check_unit_interval(vault_id, "idle_ratio", idle_ratio)
    _check_unit_interval(vault_id, "utilization_ratio", utilization_ratio)
    _check_unit_interval(vault_id, "concentration_index", concentration)

    tvl_normalized = _divide(vault_id, "tvl_normalized", total, base_unit_scale)
    _check_non_negative(vault_id, "tvl_normalized", tvl_normalized)
    if price_per_share is not None:
        _check_non_negative(vault_id, "price_per_share", price_per_share)

    active_count = sum(1 for a in snapshot.strategy_allocations if not a.paused)

    return FeatureVector(
        vault_id=vault_id,
        asset_id=snapshot.asset_id,
        idle_ratio=idle_ratio,
        utilization_ratio=utilization_ratio,
        concentration_index=concentration,
        active_strategy_count=active_count,
        total_strategy_count=len(snapshot.strategy_allocations),
        tvl_normalized=tvl_normalized,
        price_per_share=price_per_share,
    )


def herfindahl_index(amounts: Sequence[int]) -> float:
    """Herfindahl–Hirschman index of allocation shares.

    Computed as ``Σ a_i² / (Σ a_i)²`` on exact integers.  Returns 0.0 when the
    amounts sum to zero (no active capital to be concentrated).
    """
    allocated = sum(amounts)
    if allocated == 0:
        return 0.0
    return sum(a * a for a in amounts) / (allocated * allocated)


# ── Range guards ──────────────────────────────────────────────────────────────

def _divide(vault_id: str, field: str, numerator: int, denominator: int) -> float:
    try:
        return numerator / denominator
    except OverflowError as exc:
        raise ComputationError(vault_id, field, math.inf) from exc


def _check_unit_interval(vault_id: str, field: str, value: float) -> None:
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise ComputationError(vault_id, field, value)


def _check_non_negative(vault_id: str, field: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise ComputationError(vault_id, field, value)

"""
Derived per-vault feature vector.

All fields are dimensionless floats or counts, so vaults holding different
assets and sizes can be compared directly.  ``price_per_share`` is ``None``
for vaults with zero outstanding shares; those vaults are still classified
but are never recommended.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class FeatureVector(BaseModel):
    """Comparable features for one vault snapshot.

    Attributes:
        vault_id:              Vault identifier (copied from the snapshot).
        asset_id:              Underlying asset identifier.
        idle_ratio:            ``idle / total`` in [0, 1]; 0 for an empty vault.
        utilization_ratio:     ``invested / total`` in [0, 1]; 0 for an empty vault.
        concentration_index:   Herfindahl–Hirschman index over active allocations.
        active_strategy_count: Allocations with ``paused == False``.
        total_strategy_count:  All allocations, paused or not.
        tvl_normalized:        Total amount in whole asset units.
        price_per_share:       ``total / supply``, or ``None`` if supply is 0.
    """

    model_config = ConfigDict(frozen=True)

    vault_id: str
    asset_id: str
    idle_ratio: float
    utilization_ratio: float
    concentration_index: float
    active_strategy_count: int
    total_strategy_count: int
    tvl_normalized: float
    price_per_share: Optional[float] = None

    @property
    def is_priceable(self) -> bool:
        return self.price_per_share is not None

"""
Recommendation output models.

``Recommendation`` is one ranked vault for one request.  It is built fresh
by the ranker and never mutated or persisted by the core.

``RecommendationResult`` is the envelope an embedding API returns: the top
pick, the runners-up, and a plain-language statement of the assumptions
behind the APY and the risk tier.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from vault_advisor.taxonomy.risk_taxonomy import RiskTier


class Recommendation(BaseModel):
    """A ranked vault recommendation.

    Attributes:
        vault_id:      Vault identifier.
        asset_id:      Underlying asset identifier.
        asset_symbol:  Display symbol for the asset (``"TOKEN"`` if unknown).
        estimated_apy: Tier-assumed APY in percent (policy value).
        risk_level:    Tier the vault was classified into.
        tvl:           Total value locked in whole asset units.
        score:         Ranking score (higher ranks first).
        rationale:     Deterministic human-readable explanation.
        fallback_tier: Requested tier when a fallback was needed, else ``None``.
    """

    model_config = ConfigDict(frozen=True)

    vault_id: str
    asset_id: str
    asset_symbol: str
    estimated_apy: float
    risk_level: RiskTier
    tvl: float
    score: float
    rationale: str
    fallback_tier: Optional[RiskTier] = None

    @property
    def fallback_used(self) -> bool:
        return self.fallback_tier is not None


class Assumptions(BaseModel):
    """Where the APY and risk tier in a recommendation come from."""

    model_config = ConfigDict(frozen=True)

    apy_source: str
    risk_assessment: str


class RecommendationResult(BaseModel):
    """Top recommendation, alternatives, and stated assumptions."""

    model_config = ConfigDict(frozen=True)

    recommendation: Recommendation
    alternatives: tuple[Recommendation, ...] = ()
    assumptions: Assumptions

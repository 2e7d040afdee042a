"""
Risk taxonomy for vault recommendations.

Four closed vocabularies describe an investor and a vault:
  - ``RiskTier``        — the tier a vault is classified into, and the tier an
                          investor asks for.
  - ``LiquidityNeeds``  — how quickly the investor may need to withdraw.
  - ``ExperienceLevel`` — self-reported familiarity with DeFi vaults.
  - ``VALID_HORIZON_MONTHS`` — the only permitted investment horizons.

Usage example::

    from vault_advisor.taxonomy.risk_taxonomy import RiskTier, fallback_order

    fallback_order(RiskTier.CONSERVATIVE)
    # (RiskTier.BALANCED, RiskTier.AGGRESSIVE)

This module has NO imports from any other ``vault_advisor`` package.
"""

from enum import StrEnum


class RiskTier(StrEnum):
    """Coarse risk bucket, ordered from safest to riskiest."""

    CONSERVATIVE = "Conservative"
    """Lowest composite risk scores in the batch."""

    BALANCED = "Balanced"
    """Middle third of the batch."""

    AGGRESSIVE = "Aggressive"
    """Highest composite risk scores in the batch."""


class LiquidityNeeds(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ExperienceLevel(StrEnum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


TIER_ORDER: tuple[RiskTier, ...] = (
    RiskTier.CONSERVATIVE,
    RiskTier.BALANCED,
    RiskTier.AGGRESSIVE,
)

VALID_HORIZON_MONTHS: frozenset[int] = frozenset({6, 12, 18, 24})


def fallback_order(tier: RiskTier) -> tuple[RiskTier, ...]:
    """Return the tiers to try, in order, when ``tier`` has no candidates.

    Neighbor toward Conservative first, then neighbor toward Aggressive,
    then every remaining tier from safest to riskiest.
    """
    idx = TIER_ORDER.index(tier)
    order: list[RiskTier] = []
    if idx > 0:
        order.append(TIER_ORDER[idx - 1])
    if idx < len(TIER_ORDER) - 1:
        order.append(TIER_ORDER[idx + 1])
    for other in TIER_ORDER:
        if other != tier and other not in order:
            order.append(other)
    return tuple(order)

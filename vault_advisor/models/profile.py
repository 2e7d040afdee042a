"""
Investor risk profile — the structured input to the recommendation ranker.

The profile arrives from an external intake layer (chat, form, API body).
``parse_profile()`` is the boundary: it converts pydantic's validation error
into the core's ``ValidationError`` so callers only ever handle one
caller-facing exception type.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from vault_advisor.errors import ValidationError
from vault_advisor.taxonomy.risk_taxonomy import (
    VALID_HORIZON_MONTHS,
    ExperienceLevel,
    LiquidityNeeds,
    RiskTier,
)


class UserRiskProfile(BaseModel):
    """Stated preferences of one investor.

    Attributes:
        risk_tolerance:      Requested risk tier.
        liquidity_needs:     Low / Medium / High withdrawal needs.
        time_horizon_months: One of 6, 12, 18, 24.
        experience_level:    Beginner / Intermediate / Advanced.
        investment_amount:   Positive amount in whole asset units.
    """

    model_config = ConfigDict(frozen=True)

    risk_tolerance: RiskTier
    liquidity_needs: LiquidityNeeds = LiquidityNeeds.MEDIUM
    time_horizon_months: int
    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    investment_amount: Decimal

    @field_validator("time_horizon_months")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        if v not in VALID_HORIZON_MONTHS:
            raise ValueError(
                f"time_horizon_months must be one of {sorted(VALID_HORIZON_MONTHS)}, got {v}."
            )
        return v

    @field_validator("investment_amount")
    @classmethod
    def validate_amount_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError(f"investment_amount must be positive, got {v}.")
        return v


def parse_profile(
    raw: Mapping[str, Any],
    default_liquidity: Optional[LiquidityNeeds] = None,
    default_experience: Optional[ExperienceLevel] = None,
) -> UserRiskProfile:
    """Build a ``UserRiskProfile`` from a loosely-typed mapping.

    Missing ``liquidity_needs`` / ``experience_level`` fall back to the given
    defaults (typically from ``RankingConfig``).

    Raises:
        ValidationError: If any field is missing, unknown, or out of range.
    """
    data = dict(raw)
    if default_liquidity is not None:
        data.setdefault("liquidity_needs", default_liquidity)
    if default_experience is not None:
        data.setdefault("experience_level", default_experience)

    try:
        return UserRiskProfile(**data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "profile"
        raise ValidationError(field, first.get("msg", str(exc))) from exc

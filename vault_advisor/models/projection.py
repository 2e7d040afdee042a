"""
Projection output models.

Balances are floats: a projection is an estimate derived from a float APY,
not a ledger amount, so it never feeds back into snapshot invariants.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ProjectionPoint(BaseModel):
    """Projected balance at one horizon.

    Attributes:
        months:              Horizon in months.
        balance:             Projected balance including contributions.
        total_contributions: Principal plus all monthly contributions so far.
        total_returns:       ``balance - total_contributions``.
    """

    model_config = ConfigDict(frozen=True)

    months: int
    balance: float
    total_contributions: float
    total_returns: float


class ProjectionAssumptions(BaseModel):
    """Stated basis of a projection, shown next to its figures."""

    model_config = ConfigDict(frozen=True)

    compounding: str
    apy_type: str
    fees: str


class ProjectionSummary(BaseModel):
    """Roll-up of the longest projected horizon.

    Attributes:
        total_invested: Contributions at the final horizon.
        final_balance:  Balance at the final horizon.
        total_returns:  Returns at the final horizon.
        effective_apy:  Annualised growth of final balance over principal, in
                        percent, rounded to 2 decimals.
        assumptions:    Basis the figures were computed on.
    """

    model_config = ConfigDict(frozen=True)

    total_invested: float
    final_balance: float
    total_returns: float
    effective_apy: float
    assumptions: ProjectionAssumptions

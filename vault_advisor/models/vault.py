"""
Vault snapshot models — canonical, validated ledger state.

``VaultSnapshot`` is produced only by the snapshot parser.  All monetary
quantities are Python ``int`` in the asset's smallest unit; no floating point
is involved until feature extraction.

Both models are frozen (immutable) after construction, and the snapshot
re-checks its ledger invariants in a model validator so that no caller can
build an inconsistent snapshot through the normal constructor.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class StrategyAllocation(BaseModel):
    """Portion of invested capital assigned to one yield strategy.

    Attributes:
        strategy_id: Strategy contract identifier.
        amount:      Allocated amount in smallest units.
        paused:      ``True`` if the strategy holds capital but is not deployed.
    """

    model_config = ConfigDict(frozen=True)

    strategy_id: str
    amount: int
    paused: bool = False

    @field_validator("amount")
    @classmethod
    def validate_amount_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Allocation amount must be non-negative.")
        return v


class VaultSnapshot(BaseModel):
    """Point-in-time on-chain state of one vault.

    Attributes:
        vault_id:             Vault contract identifier (unique per batch).
        asset_id:             Underlying asset identifier.
        idle_amount:          Uninvested balance.
        invested_amount:      Balance deployed to strategies.
        total_amount:         ``idle_amount + invested_amount`` (exact).
        total_supply:         Outstanding vault shares.
        strategy_allocations: Allocations in ledger order.
    """

    model_config = ConfigDict(frozen=True)

    vault_id: str
    asset_id: str
    idle_amount: int
    invested_amount: int
    total_amount: int
    total_supply: int
    strategy_allocations: tuple[StrategyAllocation, ...] = ()

    @field_validator("idle_amount", "invested_amount", "total_amount", "total_supply")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Vault amounts must be non-negative.")
        return v

    @model_validator(mode="after")
    def validate_ledger_invariants(self) -> "VaultSnapshot":
        if self.total_amount != self.idle_amount + self.invested_amount:
            raise ValueError(
                f"total_amount ({self.total_amount}) != idle_amount "
                f"({self.idle_amount}) + invested_amount ({self.invested_amount})."
            )
        if self.active_allocated_amount > self.invested_amount:
            raise ValueError(
                f"Active allocations ({self.active_allocated_amount}) exceed "
                f"invested_amount ({self.invested_amount})."
            )
        return self

    @property
    def active_allocations(self) -> tuple[StrategyAllocation, ...]:
        return tuple(a for a in self.strategy_allocations if not a.paused)

    @property
    def active_allocated_amount(self) -> int:
        return sum(a.amount for a in self.strategy_allocations if not a.paused)


class SkippedRecord(BaseModel):
    """A raw record rejected by the parser, kept for diagnostics.

    Attributes:
        index:    Position of the record in the raw input.
        vault_id: Vault identifier if one could be read, else ``None``.
        kind:     Error category (``ParseError.kind``).
        detail:   Human-readable reason.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    vault_id: Optional[str] = None
    kind: str
    detail: str

"""
Snapshot parser: validates raw vault ledger records into ``VaultSnapshot``.

Accepted raw record shape (ledger query service)::

    {
      "vault": "CBNK...",
      "totalManagedFundsBefore": "{\"asset\": \"CCW6...\", \"idle_amount\": \"0\",
                                   \"invested_amount\": \"394...\",
                                   \"total_amount\": \"394...\",
                                   \"strategy_allocations\": [
                                       {\"strategy_address\": \"CDB2...\",
                                        \"amount\": \"0\", \"paused\": false}]}",
      "totalSupplyBefore": "3815786978098"
    }

The funds structure may also be an already-decoded mapping, and snake_case
aliases (``vault_id``, ``funds``, ``total_supply``, ``asset_id``,
``strategy_id``) are accepted.

Validation rules
----------------
- Amounts are ``int``, integral ``Decimal``/``float``, or decimal digit
  strings.  Booleans, fractions, and non-digit strings are malformed.
- ``total_amount == idle_amount + invested_amount`` must hold exactly.
- Active (non-paused) allocations must not exceed ``invested_amount``.
- A vault id may appear once per batch; later duplicates are skipped.

A failing record is skipped and reported as a ``SkippedRecord``; the batch
always continues.  No partially-populated snapshot is ever returned.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from vault_advisor.errors import ParseError
from vault_advisor.models.vault import SkippedRecord, StrategyAllocation, VaultSnapshot

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"^[+-]?\d+$")

_VAULT_ID_KEYS = ("vault", "vault_id", "vaultId")
_FUNDS_KEYS = ("totalManagedFundsBefore", "funds")
_SUPPLY_KEYS = ("totalSupplyBefore", "total_supply", "totalSupply")
_ASSET_KEYS = ("asset", "asset_id", "assetId")
_STRATEGY_KEYS = ("strategy_address", "strategy_id", "strategyId")


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one batch of raw records.

    Attributes:
        snapshots: Valid snapshots, in input order.
        skipped:   One entry per rejected record, in input order.
    """

    snapshots: tuple[VaultSnapshot, ...]
    skipped:   tuple[SkippedRecord, ...]

    @property
    def vault_ids(self) -> list[str]:
        return [s.vault_id for s in self.snapshots]


def parse_vault_records(raw_records: Sequence[Any]) -> ParseResult:
    """Parse and validate a batch of raw vault records.

    Args:
        raw_records: Sequence of JSON-like mappings from the ledger service.

    Returns:
        ``ParseResult`` with valid snapshots and skip reasons.
    """
    snapshots: list[VaultSnapshot] = []
    skipped: list[SkippedRecord] = []
    seen: set[str] = set()

    for idx, raw in enumerate(raw_records):
        try:
            snapshot = parse_vault_record(raw)
            if snapshot.vault_id in seen:
                raise ParseError(
                    "duplicate_vault",
                    f"Vault '{snapshot.vault_id}' already appeared earlier in the batch.",
                    vault_id=snapshot.vault_id,
                )
        except ParseError as exc:
            skipped.append(
                SkippedRecord(
                    index=idx,
                    vault_id=exc.vault_id,
                    kind=exc.kind,
                    detail=str(exc),
                )
            )
            logger.warning(
                "Skipping raw record #%d (vault=%s): [%s] %s",
                idx, exc.vault_id, exc.kind, exc,
                extra={"record_index": idx, "vault_id": exc.vault_id, "skip_kind": exc.kind},
            )
            continue

        seen.add(snapshot.vault_id)
        snapshots.append(snapshot)

    logger.info(
        "Parsed %d vault snapshot(s); skipped %d record(s).",
        len(snapshots), len(skipped),
    )
    return ParseResult(snapshots=tuple(snapshots), skipped=tuple(skipped))


def parse_vault_record(raw: Any) -> VaultSnapshot:
    """Parse one raw record.

    Raises:
        ParseError: On any missing field, malformed amount, or ledger
            invariant violation.
    """
    if not isinstance(raw, Mapping):
        raise ParseError("malformed_record", f"Expected a mapping, got {type(raw).__name__}.")

    vault_id = _first_present(raw, _VAULT_ID_KEYS)
    if not isinstance(vault_id, str) or not vault_id.strip():
        raise ParseError("missing_field", "Record has no vault identifier.", field="vault")
    vault_id = vault_id.strip()

    funds = _decode_funds(raw, vault_id)

    asset_id = _first_present(funds, _ASSET_KEYS)
    if not isinstance(asset_id, str) or not asset_id.strip():
        raise ParseError(
            "missing_field", "Funds structure has no asset identifier.",
            vault_id=vault_id, field="asset",
        )

    idle = _parse_amount(_require(funds, "idle_amount", vault_id), "idle_amount", vault_id)
    invested = _parse_amount(
        _require(funds, "invested_amount", vault_id), "invested_amount", vault_id
    )
    total = _parse_amount(_require(funds, "total_amount", vault_id), "total_amount", vault_id)

    supply_raw = _first_present(raw, _SUPPLY_KEYS)
    if supply_raw is None:
        raise ParseError(
            "missing_field", "Record has no total supply.",
            vault_id=vault_id, field="totalSupplyBefore",
        )
    supply = _parse_amount(supply_raw, "total_supply", vault_id)

    allocations = _parse_allocations(
        _require(funds, "strategy_allocations", vault_id), vault_id
    )

    if total != idle + invested:
        raise ParseError(
            "invariant_violation",
            f"total_amount {total} != idle_amount {idle} + invested_amount {invested}.",
            vault_id=vault_id, field="total_amount",
        )

    active_sum = sum(a.amount for a in allocations if not a.paused)
    if active_sum > invested:
        raise ParseError(
            "allocation_overflow",
            f"Active allocations sum to {active_sum}, above invested_amount {invested}.",
            vault_id=vault_id, field="strategy_allocations",
        )

    return VaultSnapshot(
        vault_id=vault_id,
        asset_id=asset_id.strip(),
        idle_amount=idle,
        invested_amount=invested,
        total_amount=total,
        total_supply=supply,
        strategy_allocations=tuple(allocations),
    )


# ── Helpers ───────────────────────────────────────────────────────────────────

def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _require(data: Mapping[str, Any], key: str, vault_id: str) -> Any:
    if key not in data or data[key] is None:
        raise ParseError(
            "missing_field", f"Funds structure is missing '{key}'.",
            vault_id=vault_id, field=key,
        )
    return data[key]


def _decode_funds(raw: Mapping[str, Any], vault_id: str) -> Mapping[str, Any]:
    funds = _first_present(raw, _FUNDS_KEYS)
    if funds is None:
        raise ParseError(
            "missing_field", "Record has no funds structure.",
            vault_id=vault_id, field="totalManagedFundsBefore",
        )
    if isinstance(funds, (str, bytes)):
        try:
            funds = json.loads(funds)
        except ValueError as exc:
            # JSONDecodeError, UnicodeDecodeError and the int digit limit all land here.
            detail = exc.msg if isinstance(exc, json.JSONDecodeError) else str(exc)
            raise ParseError(
                "malformed_funds", f"Funds JSON could not be decoded: {detail}.",
                vault_id=vault_id, field="totalManagedFundsBefore",
            ) from exc
    if not isinstance(funds, Mapping):
        raise ParseError(
            "malformed_funds",
            f"Funds structure must be an object, got {type(funds).__name__}.",
            vault_id=vault_id, field="totalManagedFundsBefore",
        )
    return funds


def _parse_amount(value: Any, field: str, vault_id: Optional[str]) -> int:
    """Convert a raw amount to a non-negative ``int`` without float rounding."""
    if isinstance(value, bool):
        raise ParseError(
            "malformed_amount", f"'{field}' must be an integer amount, got a boolean.",
            vault_id=vault_id, field=field,
        )

    if isinstance(value, int):
        amount = value
    elif isinstance(value, str):
        text = value.strip()
        if not _DIGITS_RE.match(text):
            raise ParseError(
                "malformed_amount", f"'{field}' is not an integer string: {value!r}.",
                vault_id=vault_id, field=field,
            )
        try:
            amount = int(text)
        except ValueError as exc:
            raise ParseError(
                "malformed_amount", f"'{field}' has too many digits ({len(text)}).",
                vault_id=vault_id, field=field,
            ) from exc
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ParseError(
                "malformed_amount", f"'{field}' is not a whole number: {value}.",
                vault_id=vault_id, field=field,
            )
        amount = int(value)
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ParseError(
                "malformed_amount", f"'{field}' is not a whole number: {value}.",
                vault_id=vault_id, field=field,
            )
        amount = int(value)
    else:
        raise ParseError(
            "malformed_amount",
            f"'{field}' has unsupported type {type(value).__name__}.",
            vault_id=vault_id, field=field,
        )

    if amount < 0:
        raise ParseError(
            "negative_amount", f"'{field}' must be non-negative, got {amount}.",
            vault_id=vault_id, field=field,
        )
    return amount


def _parse_allocations(raw_allocations: Any, vault_id: str) -> list[StrategyAllocation]:
    if not isinstance(raw_allocations, list):
        raise ParseError(
            "malformed_funds", "'strategy_allocations' must be a list.",
            vault_id=vault_id, field="strategy_allocations",
        )

    allocations: list[StrategyAllocation] = []
    for pos, alloc in enumerate(raw_allocations):
        if not isinstance(alloc, Mapping):
            raise ParseError(
                "malformed_funds", f"Allocation #{pos} is not an object.",
                vault_id=vault_id, field="strategy_allocations",
            )
        strategy_id = _first_present(alloc, _STRATEGY_KEYS)
        if not isinstance(strategy_id, str) or not strategy_id.strip():
            raise ParseError(
                "missing_field", f"Allocation #{pos} has no strategy identifier.",
                vault_id=vault_id, field="strategy_address",
            )
        if "amount" not in alloc:
            raise ParseError(
                "missing_field", f"Allocation #{pos} has no amount.",
                vault_id=vault_id, field="amount",
            )
        paused = alloc.get("paused", False)
        if not isinstance(paused, bool):
            raise ParseError(
                "malformed_funds", f"Allocation #{pos} 'paused' must be a boolean.",
                vault_id=vault_id, field="paused",
            )
        allocations.append(
            StrategyAllocation(
                strategy_id=strategy_id.strip(),
                amount=_parse_amount(alloc["amount"], "amount", vault_id),
                paused=paused,
            )
        )
    return allocations

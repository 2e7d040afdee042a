"""
Base-unit conversions between human amounts and ledger integers.

Ledger amounts are integers in the asset's smallest unit (10^-7 of a whole
token on Stellar).  Conversions go through ``Decimal`` so no float rounding
can leak into an amount that is later compared against ledger state.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Union

DEFAULT_DECIMALS = 7


def to_base_units(amount: Union[Decimal, int, str], decimals: int = DEFAULT_DECIMALS) -> int:
    """Convert a human amount to smallest units, truncating sub-unit dust.

    Example::

        to_base_units(Decimal("100.5"))  # → 1005000000

    Raises:
        ValueError: If ``amount`` is negative or not finite.
    """
    value = Decimal(amount)
    if not value.is_finite() or value < 0:
        raise ValueError(f"Amount must be a finite non-negative number, got {amount}.")
    with localcontext() as ctx:
        # Enough precision to hold every integer digit of the scaled amount.
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits), value.adjusted() + decimals + 2)
        return int(value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_DOWN))


def to_human_units(base_units: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Convert smallest units back to a human ``Decimal`` amount."""
    return Decimal(base_units).scaleb(-decimals)

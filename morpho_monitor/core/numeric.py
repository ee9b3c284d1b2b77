"""Exact share math and tolerant field extraction — no I/O."""
from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

# Morpho Blue SharesMathLib offsets
VIRTUAL_SHARES = 10**6
VIRTUAL_ASSETS = 1


def mul_div_down(x: int, y: int, denominator: int) -> int:
    """Return ``floor(x * y / denominator)`` using integer arithmetic."""
    return (x * y) // denominator


def mul_div_up(x: int, y: int, denominator: int) -> int:
    """Return ``ceil(x * y / denominator)`` using integer arithmetic."""
    return (x * y + denominator - 1) // denominator


def _check_share_inputs(shares: int, total_assets: int, total_shares: int) -> None:
    if shares < 0 or total_assets < 0 or total_shares < 0:
        raise ValueError("shares and totals must be non-negative")


def to_assets_up(shares: int, total_assets: int, total_shares: int) -> int:
    """Convert shares to assets, rounding up (borrow side).

    Matches ``SharesMathLib.toAssetsUp``:
        assets = ceil(shares * (totalAssets + 1) / (totalShares + 1e6))
    """
    _check_share_inputs(shares, total_assets, total_shares)
    return mul_div_up(
        int(shares),
        int(total_assets) + VIRTUAL_ASSETS,
        int(total_shares) + VIRTUAL_SHARES,
    )


def to_assets_down(shares: int, total_assets: int, total_shares: int) -> int:
    """Convert shares to assets, rounding down (supply side)."""
    _check_share_inputs(shares, total_assets, total_shares)
    return mul_div_down(
        int(shares),
        int(total_assets) + VIRTUAL_ASSETS,
        int(total_shares) + VIRTUAL_SHARES,
    )


def from_units(raw: int, decimals: int) -> float:
    """Scale a raw on-chain integer by ``10**decimals``.

    Examples:
        from_units(1_500_000, 6) → 1.5
        from_units(10**18, 18) → 1.0
    """
    return float(Decimal(int(raw)).scaleb(-int(decimals)))


def safe_get(data: Any, path: str, default: Any = None) -> Any:
    """Read a dotted path from nested mappings.

    Returns ``default`` when any segment is missing or ``None``.
    """
    current = data
    for key in path.split("."):
        if not isinstance(current, Mapping) or current.get(key) is None:
            return default
        current = current[key]
    return current


def to_float(value: Any, default: float | None = 0.0) -> float | None:
    """Coerce a number or numeric string to float, else return ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def to_int(value: Any, default: int | None = 0) -> int | None:
    """Coerce a number or numeric string to int, else return ``default``."""
    number = to_float(value, None)
    if number is None:
        return default
    return int(number)


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


def format_percentage(value: float | None) -> str:
    """Format a fraction as a two-decimal percentage, e.g. 0.0512 → '5.12%'."""
    if value is None:
        return "N/A"
    return f"{value * 100:.2f}%"


def format_currency(value: float | None, decimals: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"{value:,.{decimals}f}"

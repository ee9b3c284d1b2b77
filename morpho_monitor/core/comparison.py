"""Vault yield comparison and cycle-over-cycle change detection."""
from __future__ import annotations

from ..models import AggregatedVaultYield, ApyChange, Outcome, VaultComparison

# Differences below 0.005% round to the same two-decimal percentage
EQUALITY_EPSILON = 0.00005
# 1bp move in net APY between two cycles
APY_CHANGE_EPSILON = 0.0001


def compare_timelocks(timelock_a: int, timelock_b: int) -> str | None:
    """Return ``"a"`` or ``"b"`` for the shorter timelock, ``None`` when equal."""
    if timelock_a < timelock_b:
        return "a"
    if timelock_b < timelock_a:
        return "b"
    return None


def compare_vault_yields(
    a: AggregatedVaultYield, b: AggregatedVaultYield
) -> VaultComparison:
    """Classify two vaults by total net APY (net APY + rewards APR)."""
    diff = a.total_net_apy - b.total_net_apy
    magnitude = abs(diff)

    if magnitude < EQUALITY_EPSILON:
        outcome = Outcome.EQUAL
    elif diff > 0:
        outcome = Outcome.A_HIGHER
    else:
        outcome = Outcome.B_HIGHER

    timelock_a = a.snapshot.timelock_seconds
    timelock_b = b.snapshot.timelock_seconds
    return VaultComparison(
        outcome=outcome,
        diff=diff,
        magnitude=magnitude,
        timelock_winner=compare_timelocks(timelock_a, timelock_b),
        timelock_diff_seconds=abs(timelock_a - timelock_b),
    )


def detect_apy_change(
    previous: tuple[float, ...] | None, current: tuple[float, float]
) -> ApyChange | None:
    """Compare this cycle's net APY pair with the previous cycle's.

    Returns ``None`` on the first cycle (no baseline yet).
    """
    if previous is None:
        return None
    previous_a, previous_b = previous
    current_a, current_b = current
    changed = (
        abs(current_a - previous_a) > APY_CHANGE_EPSILON
        or abs(current_b - previous_b) > APY_CHANGE_EPSILON
    )
    return ApyChange(
        previous_a=previous_a,
        previous_b=previous_b,
        current_a=current_a,
        current_b=current_b,
        changed=changed,
    )


def ltv_change(previous: tuple[float, ...] | None, current: float) -> float | None:
    """Signed LTV delta since the previous cycle, ``None`` on the first cycle."""
    if previous is None:
        return None
    return current - previous[0]

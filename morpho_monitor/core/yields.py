"""Vault yield aggregation — folds direct and market rewards into one APY.

Direct vault rewards are added at face value. Market-level rewards are
weighted by each allocation's share of the vault's allocated USD:

    rewards_apr = Σ direct.supply_apr
                + Σ_alloc (alloc.usd / total_usd) * Σ market_reward.supply_apr

When the allocated USD sums to zero, market rewards contribute nothing.
"""
from __future__ import annotations

from ..models import AggregatedVaultYield, VaultAllocation, VaultReward, VaultSnapshot


def sum_direct_rewards(rewards: tuple[VaultReward, ...]) -> float:
    return sum(r.supply_apr for r in rewards if r.supply_apr is not None)


def total_allocated_usd(allocations: tuple[VaultAllocation, ...]) -> float:
    return sum(
        a.supply_assets_usd for a in allocations if a.supply_assets_usd is not None
    )


def weighted_market_rewards(allocations: tuple[VaultAllocation, ...]) -> float:
    total_usd = total_allocated_usd(allocations)
    if total_usd <= 0:
        return 0.0

    weighted = 0.0
    for allocation in allocations:
        if not allocation.supply_assets_usd or allocation.market is None:
            continue
        weight = allocation.supply_assets_usd / total_usd
        for reward in allocation.market.rewards:
            if reward.supply_apr is not None:
                weighted += reward.supply_apr * weight
    return weighted


def calc_rewards_apr(snapshot: VaultSnapshot) -> float:
    return sum_direct_rewards(snapshot.direct_rewards) + weighted_market_rewards(
        snapshot.allocations
    )


def aggregate_vault_yield(snapshot: VaultSnapshot) -> AggregatedVaultYield:
    rewards_apr = calc_rewards_apr(snapshot)
    base_apy = snapshot.base_apy or 0.0
    net_apy = snapshot.net_apy or 0.0
    return AggregatedVaultYield(
        snapshot=snapshot,
        rewards_apr=rewards_apr,
        total_apy=base_apy + rewards_apr,
        total_net_apy=net_apy + rewards_apr,
    )


def allocation_shares(
    snapshot: VaultSnapshot,
) -> list[tuple[VaultAllocation, float | None]]:
    """Allocations sorted by USD (largest first) with their share of the total.

    The share is ``None`` when nothing is allocated.
    """
    total_usd = total_allocated_usd(snapshot.allocations)
    ordered = sorted(
        snapshot.allocations,
        key=lambda a: a.supply_assets_usd or 0.0,
        reverse=True,
    )
    return [
        (a, (a.supply_assets_usd or 0.0) / total_usd if total_usd > 0 else None)
        for a in ordered
    ]

"""Pure parsing of Morpho API vault items into VaultSnapshot — no I/O.

Every optional branch of the GraphQL response is resolved here, once, so the
yield and comparison code only ever sees typed ``float | None`` fields.
"""
from __future__ import annotations

from typing import Any

from ...core.numeric import safe_get, to_float, to_int
from ...models import AllocationMarket, VaultAllocation, VaultReward, VaultSnapshot


def parse_reward(raw: Any) -> VaultReward:
    return VaultReward(
        asset_symbol=safe_get(raw, "asset.symbol", safe_get(raw, "asset.address", "")),
        supply_apr=to_float(safe_get(raw, "supplyApr"), None),
    )


def _parse_rewards(raw: Any) -> tuple[VaultReward, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(parse_reward(r) for r in raw if isinstance(r, dict))


def parse_market(raw: Any) -> AllocationMarket | None:
    if not isinstance(raw, dict):
        return None
    return AllocationMarket(
        unique_key=safe_get(raw, "uniqueKey", ""),
        loan_asset_symbol=safe_get(raw, "loanAsset.symbol", ""),
        collateral_asset_symbol=safe_get(raw, "collateralAsset.symbol", ""),
        supply_apy=to_float(safe_get(raw, "state.supplyApy"), None),
        net_supply_apy=to_float(safe_get(raw, "state.netSupplyApy"), None),
        rewards=_parse_rewards(safe_get(raw, "state.rewards", [])),
    )


def parse_allocation(raw: Any) -> VaultAllocation:
    return VaultAllocation(
        supply_assets=to_float(safe_get(raw, "supplyAssets"), None),
        supply_assets_usd=to_float(safe_get(raw, "supplyAssetsUsd"), None),
        market=parse_market(safe_get(raw, "market")),
    )


def parse_vault(raw: dict[str, Any]) -> VaultSnapshot:
    """Convert one ``vaults.items`` entry into a VaultSnapshot."""
    allocations_raw = safe_get(raw, "state.allocation", [])
    if not isinstance(allocations_raw, list):
        allocations_raw = []

    return VaultSnapshot(
        address=safe_get(raw, "address", ""),
        name=safe_get(raw, "name", ""),
        symbol=safe_get(raw, "symbol", ""),
        asset_symbol=safe_get(raw, "asset.symbol", ""),
        asset_decimals=to_int(safe_get(raw, "asset.decimals"), None),
        chain_network=safe_get(raw, "chain.network", ""),
        base_apy=to_float(safe_get(raw, "state.apy"), None),
        net_apy=to_float(safe_get(raw, "state.netApy"), None),
        fee=to_float(safe_get(raw, "state.fee"), None),
        timelock_seconds=to_int(safe_get(raw, "state.timelock"), 0),
        total_assets=to_float(safe_get(raw, "state.totalAssets"), None),
        total_assets_usd=to_float(safe_get(raw, "state.totalAssetsUsd"), None),
        direct_rewards=_parse_rewards(safe_get(raw, "state.rewards", [])),
        allocations=tuple(
            parse_allocation(a) for a in allocations_raw if isinstance(a, dict)
        ),
    )


def find_vault(items: list[dict[str, Any]], address: str) -> dict[str, Any] | None:
    """Return the item whose address matches ``address`` (case-insensitive)."""
    target = address.lower()
    for item in items:
        if str(safe_get(item, "address", "")).lower() == target:
            return item
    return None

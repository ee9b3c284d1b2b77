"""Unit tests for Morpho API vault parsing."""
from __future__ import annotations

import pytest

from morpho_monitor.protocols.morpho_api.parser import (
    find_vault,
    parse_allocation,
    parse_reward,
    parse_vault,
)


class TestParseVault:
    def test_full_item(self, vault_item_factory, allocation_factory) -> None:
        item = vault_item_factory(
            "0xabc",
            name="Alpha USDC",
            net_apy=0.05,
            apy=0.055,
            rewards=[0.01],
            allocations=[allocation_factory(600.0, [0.02]), allocation_factory(400.0)],
            timelock=259200,
        )

        snapshot = parse_vault(item)

        assert snapshot.address == "0xabc"
        assert snapshot.name == "Alpha USDC"
        assert snapshot.asset_symbol == "USDC"
        assert snapshot.asset_decimals == 6
        assert snapshot.chain_network == "base"
        assert snapshot.base_apy == 0.055
        assert snapshot.net_apy == 0.05
        assert snapshot.timelock_seconds == 259200
        assert snapshot.total_assets == 1e12
        assert snapshot.direct_rewards[0].supply_apr == 0.01
        assert len(snapshot.allocations) == 2
        assert snapshot.allocations[0].supply_assets == 600e6
        market = snapshot.allocations[0].market
        assert market.collateral_asset_symbol == "WETH"
        assert market.net_supply_apy == 0.045
        assert market.rewards[0].supply_apr == 0.02

    def test_missing_state_defaults(self) -> None:
        snapshot = parse_vault({"address": "0xabc"})
        assert snapshot.net_apy is None
        assert snapshot.base_apy is None
        assert snapshot.timelock_seconds == 0
        assert snapshot.asset_decimals is None
        assert snapshot.direct_rewards == ()
        assert snapshot.allocations == ()

    def test_null_fields_tolerated(self) -> None:
        snapshot = parse_vault(
            {
                "address": "0xabc",
                "name": None,
                "state": {"netApy": None, "rewards": None, "allocation": None},
            }
        )
        assert snapshot.name == ""
        assert snapshot.net_apy is None
        assert snapshot.allocations == ()


class TestParseParts:
    def test_reward_symbol_falls_back_to_address(self) -> None:
        reward = parse_reward({"asset": {"address": "0xtoken"}, "supplyApr": "0.03"})
        assert reward.asset_symbol == "0xtoken"
        assert reward.supply_apr == pytest.approx(0.03)

    def test_allocation_without_market(self) -> None:
        allocation = parse_allocation({"supplyAssetsUsd": 10.0})
        assert allocation.supply_assets_usd == 10.0
        assert allocation.market is None


class TestFindVault:
    def test_case_insensitive(self, sample_vault_items) -> None:
        item = find_vault(sample_vault_items, "0x" + "A" * 40)
        assert item is not None
        assert item["name"] == "Alpha USDC"

    def test_not_found(self, sample_vault_items) -> None:
        assert find_vault(sample_vault_items, "0xdead") is None

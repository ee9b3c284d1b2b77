"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from morpho_monitor.config import (
    AppConfig,
    ChainConfig,
    NotificationsConfig,
    OracleConfig,
    PositionAlertConfig,
    PositionConfig,
    TelegramConfig,
    VaultsConfig,
)
from morpho_monitor.core.risk import ThresholdPolicy
from morpho_monitor.models import MarketPosition, PositionReading

WALLET = "0x1111111111111111111111111111111111111111"
MARKET_ID = "0x" + "ab" * 32
VAULT_A = "0xAAAAaaaaAAAAaaaaAAAAaaaaAAAAaaaaAAAAaaaa"
VAULT_B = "0xBBBBbbbbBBBBbbbbBBBBbbbbBBBBbbbbBBBBbbbb"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_position_config() -> PositionConfig:
    return PositionConfig(
        enabled=True,
        wallet_address=WALLET,
        market_id=MARKET_ID,
        oracle=OracleConfig(source="market"),
        alert=PositionAlertConfig(policy=ThresholdPolicy.RELATIVE, ltv_threshold=0.8),
        check_interval_seconds=300,
        alert_cooldown_seconds=360,
    )


@pytest.fixture()
def sample_vaults_config() -> VaultsConfig:
    return VaultsConfig(
        enabled=True,
        vault_1=VAULT_A,
        vault_2=VAULT_B,
        apy_diff_threshold=0.001,
        check_interval_seconds=600,
        alert_cooldown_seconds=600,
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    sample_position_config: PositionConfig,
    sample_vaults_config: VaultsConfig,
) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        position=sample_position_config,
        vaults=sample_vaults_config,
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_position() -> MarketPosition:
    """1 WETH @ $2000 backing 1000 USDC at 80% LLTV: LTV 0.5, buffer 37.5%."""
    return MarketPosition(
        collateral_amount=1.0,
        borrowed_amount=1000.0,
        collateral_price=2000.0,
        borrow_price=1.0,
        lltv=0.8,
        collateral_symbol="WETH",
        loan_symbol="USDC",
        market_id=MARKET_ID,
        wallet_address=WALLET,
    )


@pytest.fixture()
def sample_reading(sample_position: MarketPosition) -> PositionReading:
    return PositionReading(
        position=sample_position,
        borrow_shares=1000 * 10**12,
        borrowed_assets_raw=1000 * 10**6,
        market_oracle_price=2000.0,
    )


# ---------------------------------------------------------------------------
# Morpho API fixtures
# ---------------------------------------------------------------------------


def make_vault_item(
    address: str,
    name: str = "Vault",
    net_apy: float = 0.05,
    apy: float | None = None,
    rewards: list[float] | None = None,
    allocations: list[dict[str, Any]] | None = None,
    timelock: int = 86400,
    total_assets_usd: float = 1_000_000.0,
) -> dict[str, Any]:
    """Build a raw ``vaults.items`` entry as returned by the Morpho API."""
    return {
        "address": address,
        "symbol": name[:4].upper(),
        "name": name,
        "asset": {"address": "0xusdc", "symbol": "USDC", "decimals": 6},
        "chain": {"id": 8453, "network": "base"},
        "state": {
            "apy": apy if apy is not None else net_apy,
            "netApy": net_apy,
            "totalAssets": "1000000000000",
            "totalAssetsUsd": total_assets_usd,
            "fee": 0.1,
            "timelock": str(timelock),
            "rewards": [
                {"asset": {"symbol": f"RWD{i}"}, "supplyApr": apr}
                for i, apr in enumerate(rewards or [])
            ],
            "allocation": allocations or [],
        },
    }


def make_allocation(
    supply_usd: float | None,
    reward_aprs: list[float] | None = None,
    collateral: str = "WETH",
    decimals: int = 6,
) -> dict[str, Any]:
    """Build one ``state.allocation`` entry for a $1 asset with ``decimals``."""
    return {
        "supplyAssets": None if supply_usd is None else str(int(supply_usd * 10**decimals)),
        "supplyAssetsUsd": supply_usd,
        "market": {
            "uniqueKey": "0x" + collateral.lower(),
            "loanAsset": {"symbol": "USDC"},
            "collateralAsset": {"symbol": collateral},
            "lltv": "860000000000000000",
            "state": {
                "supplyApy": 0.04,
                "borrowApy": 0.06,
                "netSupplyApy": 0.045,
                "rewards": [
                    {"supplyApr": apr, "asset": {"symbol": "MORPHO"}}
                    for apr in (reward_aprs or [])
                ],
            },
        },
    }


@pytest.fixture()
def sample_vault_items() -> list[dict[str, Any]]:
    """Vault A: 5% net + 1% rewards; vault B: 5.5% net, no rewards."""
    return [
        make_vault_item(VAULT_A.lower(), name="Alpha USDC", net_apy=0.05, rewards=[0.01]),
        make_vault_item(VAULT_B.lower(), name="Beta USDC", net_apy=0.055, timelock=259200),
        make_vault_item("0xcccccccccccccccccccccccccccccccccccccccc", name="Other"),
    ]


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    chain:
      name: base
      chain_id: 8453
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    position:
      enabled: true
      wallet_address: "{WALLET}"
      market_id: "{MARKET_ID}"
      oracle:
        source: market
      alert:
        policy: absolute
        ltv_threshold: 0.8
      check_interval_seconds: 120
    vaults:
      enabled: true
      vault_1: "{VAULT_A}"
      vault_2: "{VAULT_B}"
      apy_diff_threshold: 0.002
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


@pytest.fixture()
def vault_item_factory():
    return make_vault_item


@pytest.fixture()
def allocation_factory():
    return make_allocation

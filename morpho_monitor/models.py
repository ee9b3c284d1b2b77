"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Lending position
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarketPosition:
    """A Morpho Blue position converted to token units and oracle prices."""

    collateral_amount: float
    borrowed_amount: float
    collateral_price: float
    borrow_price: float
    lltv: float
    collateral_symbol: str = ""
    loan_symbol: str = ""
    market_id: str = ""
    wallet_address: str = ""


@dataclass(frozen=True)
class PositionReading:
    """One cycle's on-chain read of a position."""

    position: MarketPosition
    borrow_shares: int = 0
    borrowed_assets_raw: int = 0
    supplied_assets_raw: int = 0
    market_oracle_price: float | None = None


@dataclass(frozen=True)
class RiskSnapshot:
    """Risk figures derived from one MarketPosition."""

    position: MarketPosition
    ltv: float
    liquidation_price: float
    buffer_percentage: float
    collateral_value_usd: float
    borrowed_value_usd: float


# ---------------------------------------------------------------------------
# Vaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VaultReward:
    asset_symbol: str
    supply_apr: float | None = None


@dataclass(frozen=True)
class AllocationMarket:
    unique_key: str = ""
    loan_asset_symbol: str = ""
    collateral_asset_symbol: str = ""
    supply_apy: float | None = None
    net_supply_apy: float | None = None
    rewards: tuple[VaultReward, ...] = ()


@dataclass(frozen=True)
class VaultAllocation:
    supply_assets: float | None = None
    supply_assets_usd: float | None = None
    market: AllocationMarket | None = None


@dataclass(frozen=True)
class VaultSnapshot:
    """One vault as returned by the Morpho API, optional fields resolved."""

    address: str
    name: str = ""
    symbol: str = ""
    asset_symbol: str = ""
    asset_decimals: int | None = None
    chain_network: str = ""
    base_apy: float | None = None
    net_apy: float | None = None
    fee: float | None = None
    timelock_seconds: int = 0
    total_assets: float | None = None
    total_assets_usd: float | None = None
    direct_rewards: tuple[VaultReward, ...] = ()
    allocations: tuple[VaultAllocation, ...] = ()


@dataclass(frozen=True)
class AggregatedVaultYield:
    """Vault yield with reward APR folded in."""

    snapshot: VaultSnapshot
    rewards_apr: float
    total_apy: float
    total_net_apy: float

    @property
    def name(self) -> str:
        return self.snapshot.name or self.snapshot.address


# ---------------------------------------------------------------------------
# Comparison results
# ---------------------------------------------------------------------------


class Outcome(str, Enum):
    EQUAL = "equal"
    A_HIGHER = "a_higher"
    B_HIGHER = "b_higher"


@dataclass(frozen=True)
class VaultComparison:
    """Classification of two vault yields taken in the same cycle."""

    outcome: Outcome
    diff: float
    magnitude: float
    timelock_winner: str | None = None
    timelock_diff_seconds: int = 0


@dataclass(frozen=True)
class ApyChange:
    """Net APY movement of a vault pair since the previous cycle."""

    previous_a: float
    previous_b: float
    current_a: float
    current_b: float
    changed: bool

    @property
    def delta_a(self) -> float:
        return self.current_a - self.previous_a

    @property
    def delta_b(self) -> float:
        return self.current_b - self.previous_b

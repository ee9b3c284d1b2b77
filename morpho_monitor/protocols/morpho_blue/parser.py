"""Pure ABI encoding/decoding for Morpho Blue reads — no I/O."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_utils import decode_hex, function_signature_to_4byte_selector, to_checksum_address

from ...core.numeric import from_units

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Morpho Blue oracles quote collateral in loan token with 36 decimals of
# precision adjusted by the token decimal difference.
ORACLE_PRICE_SCALE_DECIMALS = 36
WAD_DECIMALS = 18


@dataclass(frozen=True)
class MarketParams:
    loan_token: str
    collateral_token: str
    oracle: str
    irm: str
    lltv_raw: int

    @property
    def lltv(self) -> float:
        return from_units(self.lltv_raw, WAD_DECIMALS)


@dataclass(frozen=True)
class PositionShares:
    supply_shares: int
    borrow_shares: int
    collateral: int


@dataclass(frozen=True)
class MarketTotals:
    total_supply_assets: int
    total_supply_shares: int
    total_borrow_assets: int
    total_borrow_shares: int
    last_update: int
    fee: int

    @property
    def utilization(self) -> float:
        if self.total_supply_assets == 0:
            return 0.0
        return self.total_borrow_assets / self.total_supply_assets

    @property
    def fee_fraction(self) -> float:
        return from_units(self.fee, WAD_DECIMALS)


def encode_call(
    signature: str, arg_types: Sequence[str] = (), args: Sequence[Any] = ()
) -> bytes:
    """Build calldata for ``signature`` (e.g. ``"position(bytes32,address)"``)."""
    selector = function_signature_to_4byte_selector(signature)
    if not arg_types:
        return selector
    return selector + encode(list(arg_types), list(args))


def market_id_to_bytes(market_id: str) -> bytes:
    """Convert a 0x-prefixed 32-byte market id to bytes."""
    raw = decode_hex(market_id)
    if len(raw) != 32:
        raise ValueError(f"Market id must be 32 bytes, got {len(raw)}: {market_id}")
    return raw


def decode_market_params(data: bytes) -> MarketParams:
    loan, collateral, oracle, irm, lltv = decode(
        ["address", "address", "address", "address", "uint256"], data
    )
    return MarketParams(
        loan_token=to_checksum_address(loan),
        collateral_token=to_checksum_address(collateral),
        oracle=to_checksum_address(oracle),
        irm=to_checksum_address(irm),
        lltv_raw=lltv,
    )


def decode_position(data: bytes) -> PositionShares:
    supply_shares, borrow_shares, collateral = decode(
        ["uint256", "uint128", "uint128"], data
    )
    return PositionShares(
        supply_shares=supply_shares,
        borrow_shares=borrow_shares,
        collateral=collateral,
    )


def decode_market(data: bytes) -> MarketTotals:
    values = decode(["uint128"] * 6, data)
    return MarketTotals(*values)


def decode_single(output_type: str, data: bytes) -> Any:
    (value,) = decode([output_type], data)
    if output_type == "address":
        return to_checksum_address(value)
    return value


def is_zero_address(address: str) -> bool:
    return not address or int(address, 16) == 0


def scale_oracle_price(raw_price: int, loan_decimals: int, collateral_decimals: int) -> float:
    """Market oracle ``price()`` as loan tokens per whole collateral token."""
    return from_units(
        raw_price,
        ORACLE_PRICE_SCALE_DECIMALS + loan_decimals - collateral_decimals,
    )

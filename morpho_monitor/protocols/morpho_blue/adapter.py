"""Morpho Blue adapter — reads a borrower position and its oracle prices."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from eth_utils import to_checksum_address

from ...config import PositionConfig
from ...core.numeric import from_units, to_assets_down, to_assets_up
from ...errors import MonitorError
from ...interfaces.chain import ChainClient
from ...models import MarketPosition, PositionReading
from . import parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketContext:
    """Per-market values that never change between cycles.

    The feed addresses are only set for the ``feeds`` oracle source.
    """

    params: parser.MarketParams
    loan_decimals: int
    collateral_decimals: int
    loan_symbol: str
    collateral_symbol: str
    collateral_feed: str = ""
    borrow_feed: str = ""

    @property
    def uses_feeds(self) -> bool:
        return bool(self.collateral_feed)


class MorphoBlueAdapter:
    """Fetch a Morpho Blue position for one wallet and market.

    With the ``market`` oracle source the collateral is priced by the market
    oracle's ``price()`` in loan-token units, which already combines every
    feed and vault conversion the oracle is built from. The ``feeds`` source
    prices both sides from the configured feeds and keeps ``price()`` as a
    cross-check.
    """

    def __init__(
        self,
        chain_client: ChainClient,
        config: PositionConfig,
        expected_chain_id: int | None = None,
    ) -> None:
        self._client = chain_client
        self._config = config
        self._morpho = config.morpho_address
        self._market_id = parser.market_id_to_bytes(config.market_id)
        self._expected_chain_id = expected_chain_id
        self._context: MarketContext | None = None

    @property
    def protocol_name(self) -> str:
        return "morpho_blue"

    @property
    def context(self) -> MarketContext | None:
        return self._context

    async def _call(
        self,
        to: str,
        signature: str,
        output_type: str,
        arg_types: Sequence[str] = (),
        args: Sequence[Any] = (),
    ) -> Any:
        data = await self._client.eth_call(
            to, parser.encode_call(signature, arg_types, args)
        )
        return parser.decode_single(output_type, data)

    async def _check_chain(self) -> None:
        if self._expected_chain_id is None:
            return
        chain_id = await self._client.chain_id()
        if chain_id != self._expected_chain_id:
            raise MonitorError(
                f"RPC endpoint is on chain {chain_id}, "
                f"expected {self._expected_chain_id}"
            )

    async def load_context(self) -> MarketContext:
        """Resolve market params and tokens once, then reuse them."""
        if self._context is not None:
            return self._context

        await self._check_chain()

        data = await self._client.eth_call(
            self._morpho,
            parser.encode_call("idToMarketParams(bytes32)", ["bytes32"], [self._market_id]),
        )
        params = parser.decode_market_params(data)

        loan_decimals, collateral_decimals, loan_symbol, collateral_symbol = (
            await asyncio.gather(
                self._call(params.loan_token, "decimals()", "uint8"),
                self._call(params.collateral_token, "decimals()", "uint8"),
                self._call(params.loan_token, "symbol()", "string"),
                self._call(params.collateral_token, "symbol()", "string"),
            )
        )

        oracle = self._config.oracle
        feeds = (
            (oracle.collateral_feed, oracle.borrow_feed)
            if oracle.source == "feeds"
            else ("", "")
        )

        self._context = MarketContext(
            params=params,
            loan_decimals=loan_decimals,
            collateral_decimals=collateral_decimals,
            loan_symbol=loan_symbol,
            collateral_symbol=collateral_symbol,
            collateral_feed=feeds[0],
            borrow_feed=feeds[1],
        )

        logger.info(
            "Market parameters — loan: %s (%s) collateral: %s (%s) oracle: %s "
            "irm: %s lltv: %.4f",
            loan_symbol,
            params.loan_token,
            collateral_symbol,
            params.collateral_token,
            params.oracle,
            params.irm,
            params.lltv,
        )
        if self._context.uses_feeds:
            logger.info("Price feeds — collateral: %s borrow: %s", *feeds)
        else:
            logger.info("Pricing collateral from market oracle %s", params.oracle)
        return self._context

    async def _feed_price(self, feed: str) -> float:
        """Latest feed answer scaled by its decimals; a zero-address feed is 1."""
        if parser.is_zero_address(feed):
            return 1.0
        answer, decimals = await asyncio.gather(
            self._call(feed, "latestAnswer()", "int256"),
            self._call(feed, "decimals()", "uint8"),
        )
        return from_units(answer, decimals)

    async def _oracle_price(self, ctx: MarketContext) -> float:
        raw = await self._call(ctx.params.oracle, "price()", "uint256")
        return parser.scale_oracle_price(raw, ctx.loan_decimals, ctx.collateral_decimals)

    async def _prices(self, ctx: MarketContext) -> tuple[float, float, float | None]:
        """Return (collateral price, borrow price, market oracle price)."""
        if not ctx.uses_feeds:
            price = await self._oracle_price(ctx)
            return price, 1.0, price

        collateral_price, borrow_price = await asyncio.gather(
            self._feed_price(ctx.collateral_feed),
            self._feed_price(ctx.borrow_feed),
        )
        try:
            market_price: float | None = await self._oracle_price(ctx)
        except Exception as e:
            logger.warning("Could not read market oracle price: %s", e)
            market_price = None
        return collateral_price, borrow_price, market_price

    async def fetch_position(self) -> PositionReading:
        """Read the position and prices for this cycle."""
        ctx = await self.load_context()
        wallet = self._config.wallet_address

        position_data, market_data = await asyncio.gather(
            self._client.eth_call(
                self._morpho,
                parser.encode_call(
                    "position(bytes32,address)",
                    ["bytes32", "address"],
                    [self._market_id, to_checksum_address(wallet)],
                ),
            ),
            self._client.eth_call(
                self._morpho,
                parser.encode_call("market(bytes32)", ["bytes32"], [self._market_id]),
            ),
        )
        shares = parser.decode_position(position_data)
        totals = parser.decode_market(market_data)

        borrowed_raw = to_assets_up(
            shares.borrow_shares, totals.total_borrow_assets, totals.total_borrow_shares
        )
        supplied_raw = to_assets_down(
            shares.supply_shares, totals.total_supply_assets, totals.total_supply_shares
        )

        collateral_price, borrow_price, market_price = await self._prices(ctx)

        logger.debug(
            "Market totals — supplied: %d borrowed: %d utilization: %.4f "
            "fee: %.4f last update: %d",
            totals.total_supply_assets,
            totals.total_borrow_assets,
            totals.utilization,
            totals.fee_fraction,
            totals.last_update,
        )
        logger.debug(
            "Raw position — borrow shares: %d borrowed assets: %d "
            "supplied assets: %d collateral: %d",
            shares.borrow_shares,
            borrowed_raw,
            supplied_raw,
            shares.collateral,
        )

        position = MarketPosition(
            collateral_amount=from_units(shares.collateral, ctx.collateral_decimals),
            borrowed_amount=from_units(borrowed_raw, ctx.loan_decimals),
            collateral_price=collateral_price,
            borrow_price=borrow_price,
            lltv=ctx.params.lltv,
            collateral_symbol=ctx.collateral_symbol,
            loan_symbol=ctx.loan_symbol,
            market_id=self._config.market_id,
            wallet_address=wallet,
        )
        return PositionReading(
            position=position,
            borrow_shares=shares.borrow_shares,
            borrowed_assets_raw=borrowed_raw,
            supplied_assets_raw=supplied_raw,
            market_oracle_price=market_price,
        )

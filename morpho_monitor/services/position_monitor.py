"""Liquidation-risk monitoring for one Morpho Blue borrower position."""
from __future__ import annotations

import logging
from collections.abc import Callable

from ..chains.evm import EvmClient
from ..config import AppConfig
from ..core.alerts import AlertOutcome, AlertStateMachine, now_millis
from ..core.comparison import ltv_change
from ..core.risk import (
    ThresholdPolicy,
    assess_position,
    is_ltv_alert,
    ltv_alert_level,
    oracle_price_deviation,
)
from ..interfaces.notifier import Notifier
from ..interfaces.position_source import PositionSource
from ..models import PositionReading, RiskSnapshot
from ..protocols.morpho_blue import MorphoBlueAdapter
from . import dispatch
from .scheduler import run_periodic

logger = logging.getLogger(__name__)


class PositionMonitor:
    """Reads the position each cycle and alerts when LTV nears the LLTV."""

    name = "position"

    def __init__(
        self,
        config: AppConfig,
        source: PositionSource | None = None,
        notifiers: list[Notifier] | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._config = config
        self._position_cfg = config.position
        self._source: PositionSource = source or MorphoBlueAdapter(
            EvmClient(config.chain),
            config.position,
            expected_chain_id=config.chain.chain_id,
        )
        self._notifiers = (
            notifiers if notifiers is not None else dispatch.build_notifiers(config)
        )
        self._alerts = AlertStateMachine(
            "position",
            cooldown_ms=self._position_cfg.alert_cooldown_seconds * 1000,
            clock=clock,
        )
        self.last_snapshot: RiskSnapshot | None = None

    @property
    def alerts(self) -> AlertStateMachine:
        return self._alerts

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    def _alert_level(self, lltv: float) -> float:
        alert = self._position_cfg.alert
        return ltv_alert_level(lltv, alert.ltv_threshold, alert.policy)

    def _describe_threshold(self) -> str:
        alert = self._position_cfg.alert
        if alert.policy is ThresholdPolicy.RELATIVE:
            return f"{alert.ltv_threshold * 100:.0f}% of LLTV"
        return "absolute"

    def _build_alert_message(
        self, snapshot: RiskSnapshot, change: float | None
    ) -> str:
        position = snapshot.position
        lines = [
            "<b>🚨 LIQUIDATION RISK ALERT 🚨</b>",
            "",
            f"Market: {position.collateral_symbol}/{position.loan_symbol}",
            f"Current LTV: {snapshot.ltv:.4f}",
            f"LLTV: {position.lltv:.4f}",
            f"Alert level: {self._alert_level(position.lltv):.4f} "
            f"({self._describe_threshold()})",
            f"Buffer remaining: {snapshot.buffer_percentage:.2f}%",
            "",
            f"Collateral price: ${position.collateral_price:,.2f}",
            f"Liquidation price: ${snapshot.liquidation_price:,.2f}",
            f"Collateral: {position.collateral_amount:.6f} {position.collateral_symbol}"
            f" (${snapshot.collateral_value_usd:,.2f})",
            f"Borrowed: {position.borrowed_amount:.6f} {position.loan_symbol}"
            f" (${snapshot.borrowed_value_usd:,.2f})",
        ]
        if change is not None:
            lines.append(f"LTV change since last check: {change:+.4f}")
        lines += [
            "",
            "Consider adding collateral or repaying part of the loan.",
            "",
            f"Wallet: {dispatch.format_address(position.wallet_address)}",
            f"{dispatch.now_str()} UTC",
        ]
        return "\n".join(lines)

    def _log_reading(self, reading: PositionReading, snapshot: RiskSnapshot) -> None:
        position = snapshot.position
        logger.info(
            "Position — collateral: %.6f %s  borrowed: %.6f %s  "
            "LTV: %.4f  LLTV: %.4f  buffer: %.2f%%  liquidation price: $%.2f",
            position.collateral_amount,
            position.collateral_symbol,
            position.borrowed_amount,
            position.loan_symbol,
            snapshot.ltv,
            position.lltv,
            snapshot.buffer_percentage,
            snapshot.liquidation_price,
        )
        if (
            self._position_cfg.oracle.source == "feeds"
            and reading.market_oracle_price is not None
            and position.borrow_price
        ):
            feed_price = position.collateral_price / position.borrow_price
            logger.info(
                "Oracle price: %.6f  feed price: %.6f  deviation: %.6f",
                reading.market_oracle_price,
                feed_price,
                oracle_price_deviation(reading.market_oracle_price, feed_price),
            )

    async def _send_alert(self, message: str) -> bool:
        return await dispatch.send_alert(self._notifiers, message)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def check(self) -> AlertOutcome:
        """Run one monitoring cycle."""
        reading = await self._source.fetch_position()
        snapshot = assess_position(reading.position)
        self._log_reading(reading, snapshot)

        previous = self._alerts.observe(snapshot.ltv)
        change = ltv_change(previous, snapshot.ltv)
        alert = self._position_cfg.alert
        triggered = is_ltv_alert(
            snapshot.ltv, snapshot.position.lltv, alert.ltv_threshold, alert.policy
        )
        self.last_snapshot = snapshot

        message = self._build_alert_message(snapshot, change) if triggered else ""
        return await self._alerts.process(triggered, message, self._send_alert)

    async def run_continuous(self, interval_seconds: int | None = None) -> None:
        interval = interval_seconds or self._position_cfg.check_interval_seconds
        logger.info(
            "Starting position monitoring for %s on market %s (checking every %d seconds)",
            self._position_cfg.wallet_address,
            self._position_cfg.market_id,
            interval,
        )
        await run_periodic(self.check, interval, self.name)

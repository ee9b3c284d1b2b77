"""Yield monitoring for a pair of MetaMorpho vaults."""
from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..config import AppConfig
from ..core.alerts import (
    AlertOutcome,
    AlertStateMachine,
    now_millis,
    vault_alert_reasons,
)
from ..core.comparison import compare_vault_yields, detect_apy_change
from ..core.numeric import format_currency, format_percentage, from_units
from ..core.yields import aggregate_vault_yield, allocation_shares
from ..errors import FetchError
from ..interfaces.notifier import Notifier
from ..interfaces.vault_source import VaultSource
from ..models import (
    AggregatedVaultYield,
    ApyChange,
    Outcome,
    VaultComparison,
    VaultReward,
    VaultSnapshot,
)
from ..protocols.morpho_api import MorphoApiClient
from ..protocols.morpho_api.parser import find_vault, parse_vault
from . import dispatch
from .scheduler import run_periodic

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def _days(seconds: int) -> str:
    return f"{seconds / SECONDS_PER_DAY:.1f}"


def _asset_units(raw: float | None, decimals: int | None) -> float | None:
    """Scale a raw API asset amount; left raw when the decimals are unknown."""
    if raw is None or decimals is None:
        return raw
    return from_units(int(raw), decimals)


def recommendation(
    comparison: VaultComparison,
    a: AggregatedVaultYield,
    b: AggregatedVaultYield,
) -> str:
    """One-line advice derived from a comparison."""
    if comparison.outcome is Outcome.EQUAL:
        if comparison.timelock_winner is None:
            return "Both vaults have identical APY and timelock periods."
        winner = a if comparison.timelock_winner == "a" else b
        return f"{winner.name} offers the same returns with a shorter timelock."

    better, worse = (a, b) if comparison.outcome is Outcome.A_HIGHER else (b, a)
    return (
        f"{better.name} currently offers better returns "
        f"(higher by {format_percentage(comparison.magnitude)}) than {worse.name}."
    )


def timelock_note(
    comparison: VaultComparison,
    a: AggregatedVaultYield,
    b: AggregatedVaultYield,
) -> str:
    if comparison.timelock_winner is None:
        return "Both vaults have the same timelock."
    winner = a if comparison.timelock_winner == "a" else b
    return (
        f"{winner.name} has a shorter timelock by "
        f"{_days(comparison.timelock_diff_seconds)} days."
    )


class VaultMonitor:
    """Compares two vaults each cycle; alerts on a yield gap or an APY move."""

    name = "vaults"

    def __init__(
        self,
        config: AppConfig,
        source: VaultSource | None = None,
        notifiers: list[Notifier] | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._config = config
        self._vaults_cfg = config.vaults
        self._chain_id = config.chain.chain_id
        self._source: VaultSource = source or MorphoApiClient(self._vaults_cfg.api_url)
        self._notifiers = (
            notifiers if notifiers is not None else dispatch.build_notifiers(config)
        )
        self._alerts = AlertStateMachine(
            "vaults",
            cooldown_ms=self._vaults_cfg.alert_cooldown_seconds * 1000,
            clock=clock,
        )
        self.last_comparison: VaultComparison | None = None

    @property
    def alerts(self) -> AlertStateMachine:
        return self._alerts

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def _locate(
        self, items: list[dict[str, Any]]
    ) -> tuple[VaultSnapshot | None, VaultSnapshot | None]:
        raw_a = find_vault(items, self._vaults_cfg.vault_1)
        raw_b = find_vault(items, self._vaults_cfg.vault_2)
        return (
            parse_vault(raw_a) if raw_a is not None else None,
            parse_vault(raw_b) if raw_b is not None else None,
        )

    async def fetch_pair(self) -> tuple[VaultSnapshot, VaultSnapshot]:
        """Fetch both configured vaults from the same response."""
        items = await self._source.fetch_vaults(self._chain_id)
        snapshot_a, snapshot_b = self._locate(items)
        missing = [
            address
            for address, snapshot in (
                (self._vaults_cfg.vault_1, snapshot_a),
                (self._vaults_cfg.vault_2, snapshot_b),
            )
            if snapshot is None
        ]
        if missing:
            raise FetchError(f"Vault(s) not found in API response: {', '.join(missing)}")
        return snapshot_a, snapshot_b

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _vault_lines(y: AggregatedVaultYield) -> list[str]:
        s = y.snapshot
        return [
            f"<b>{y.name}</b>",
            f"  Net APY: {format_percentage(s.net_apy)}"
            f" + rewards {format_percentage(y.rewards_apr)}"
            f" = {format_percentage(y.total_net_apy)}",
            f"  Timelock: {_days(s.timelock_seconds)} days",
            f"  TVL: ${format_currency(s.total_assets_usd)}",
        ]

    def _build_alert_message(
        self,
        a: AggregatedVaultYield,
        b: AggregatedVaultYield,
        comparison: VaultComparison,
        change: ApyChange | None,
    ) -> str:
        lines = ["<b>📈 MORPHO VAULT APY ALERT</b>", ""]
        lines += self._vault_lines(a)
        lines += self._vault_lines(b)
        lines += ["", f"Difference: {format_percentage(comparison.magnitude)}"]
        if change is not None and change.changed:
            lines += [
                "",
                "APY changes since last check:",
                f"  {a.name}: {format_percentage(change.previous_a)} → "
                f"{format_percentage(change.current_a)}",
                f"  {b.name}: {format_percentage(change.previous_b)} → "
                f"{format_percentage(change.current_b)}",
            ]
        lines += [
            "",
            f"Recommendation: {recommendation(comparison, a, b)}",
            timelock_note(comparison, a, b),
            "",
            f"{dispatch.now_str()} UTC",
        ]
        return "\n".join(lines)

    def _build_start_message(self) -> str:
        return (
            f"🚀 Morpho vault monitor started\n"
            f"\n"
            f"Vault 1: {dispatch.format_address(self._vaults_cfg.vault_1)}\n"
            f"Vault 2: {dispatch.format_address(self._vaults_cfg.vault_2)}\n"
            f"Checking every {self._vaults_cfg.check_interval_seconds} seconds\n"
            f"\n"
            f"{dispatch.now_str()} UTC"
        )

    async def _send_alert(self, message: str) -> bool:
        return await dispatch.send_alert(self._notifiers, message)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def announce(self) -> None:
        await dispatch.send_log(self._notifiers, self._build_start_message(), silent=True)

    async def check(self) -> AlertOutcome:
        """Run one monitoring cycle."""
        snapshot_a, snapshot_b = await self.fetch_pair()
        yield_a = aggregate_vault_yield(snapshot_a)
        yield_b = aggregate_vault_yield(snapshot_b)
        comparison = compare_vault_yields(yield_a, yield_b)
        self.last_comparison = comparison

        logger.info(
            "Vaults — %s: %s  %s: %s  difference: %s (%s)",
            yield_a.name,
            format_percentage(yield_a.total_net_apy),
            yield_b.name,
            format_percentage(yield_b.total_net_apy),
            format_percentage(comparison.magnitude),
            comparison.outcome.value,
        )

        previous = self._alerts.observe(yield_a.total_net_apy, yield_b.total_net_apy)
        change = detect_apy_change(
            previous, (yield_a.total_net_apy, yield_b.total_net_apy)
        )
        reasons = vault_alert_reasons(
            comparison, change, self._vaults_cfg.apy_diff_threshold
        )
        if reasons:
            logger.info("Vault alert conditions met: %s", ", ".join(reasons))

        message = (
            self._build_alert_message(yield_a, yield_b, comparison, change)
            if reasons
            else ""
        )
        return await self._alerts.process(bool(reasons), message, self._send_alert)

    async def report(self, output_path: str | Path | None = None) -> VaultComparison | None:
        """Fetch every vault on the chain, optionally save it, and log the pair."""
        items = await self._source.fetch_vaults(self._chain_id)

        if output_path is not None:
            path = Path(output_path)
            with open(path, "w") as f:
                json.dump(items, f, indent=2)
            logger.info("Saved %d vaults to %s", len(items), path)

        snapshot_a, snapshot_b = self._locate(items)
        for address, snapshot in (
            (self._vaults_cfg.vault_1, snapshot_a),
            (self._vaults_cfg.vault_2, snapshot_b),
        ):
            if snapshot is None:
                logger.warning("Vault %s not found", address)
            else:
                self._log_vault_details(aggregate_vault_yield(snapshot))

        if snapshot_a is None or snapshot_b is None:
            return None

        yield_a = aggregate_vault_yield(snapshot_a)
        yield_b = aggregate_vault_yield(snapshot_b)
        comparison = compare_vault_yields(yield_a, yield_b)
        logger.info("Recommendation: %s", recommendation(comparison, yield_a, yield_b))
        logger.info("Timelock: %s", timelock_note(comparison, yield_a, yield_b))
        return comparison

    @staticmethod
    def _log_rewards(heading: str, empty: str, rewards: tuple[VaultReward, ...]) -> None:
        if not rewards:
            logger.info(empty)
            return
        logger.info(heading)
        for reward in rewards:
            logger.info(
                "    - %s: APR %s",
                reward.asset_symbol or "?",
                format_percentage(reward.supply_apr),
            )

    @classmethod
    def _log_vault_details(cls, y: AggregatedVaultYield) -> None:
        s = y.snapshot
        logger.info(
            "%s (%s) — asset: %s  network: %s  address: %s",
            y.name,
            s.symbol,
            s.asset_symbol,
            s.chain_network,
            s.address,
        )
        logger.info(
            "  APY: %s  net APY: %s  rewards: %s  total APY: %s  total net APY: %s",
            format_percentage(s.base_apy),
            format_percentage(s.net_apy),
            format_percentage(y.rewards_apr),
            format_percentage(y.total_apy),
            format_percentage(y.total_net_apy),
        )
        logger.info(
            "  total assets: %s %s  TVL: $%s",
            format_currency(_asset_units(s.total_assets, s.asset_decimals)),
            s.asset_symbol,
            format_currency(s.total_assets_usd),
        )
        logger.info(
            "  fee: %s  timelock: %s days",
            format_percentage(s.fee),
            _days(s.timelock_seconds),
        )
        cls._log_rewards(
            "  Direct vault rewards:", "  No direct vault rewards.", s.direct_rewards
        )

        shares = allocation_shares(s)
        if not shares:
            logger.info("  No market allocations found.")
        for index, (allocation, share) in enumerate(shares, start=1):
            market = allocation.market
            label = (
                f"{market.collateral_asset_symbol or '-'}/{market.loan_asset_symbol}"
                if market is not None
                else "idle"
            )
            logger.info(
                "  #%d %s (%s of allocation)  market: %s",
                index,
                label,
                format_percentage(share),
                market.unique_key if market is not None else "-",
            )
            logger.info(
                "    supply APY: %s  net supply APY: %s",
                format_percentage(market.supply_apy if market is not None else None),
                format_percentage(market.net_supply_apy if market is not None else None),
            )
            logger.info(
                "    allocated: %s %s  ($%s)",
                format_currency(_asset_units(allocation.supply_assets, s.asset_decimals)),
                s.asset_symbol,
                format_currency(allocation.supply_assets_usd),
            )
            cls._log_rewards(
                "    Market rewards:",
                "    No market rewards.",
                market.rewards if market is not None else (),
            )

    async def run_continuous(self, interval_seconds: int | None = None) -> None:
        interval = interval_seconds or self._vaults_cfg.check_interval_seconds
        logger.info(
            "Starting vault monitoring for %s vs %s (checking every %d seconds)",
            self._vaults_cfg.vault_1,
            self._vaults_cfg.vault_2,
            interval,
        )
        await self.announce()
        await run_periodic(self.check, interval, self.name)

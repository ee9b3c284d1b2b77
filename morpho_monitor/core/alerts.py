"""Debounced alert dispatch with a per-entity cooldown.

Each monitored entity (the position, or the vault pair) owns one
``AlertStateMachine``:

    IDLE --trigger--> NOTIFYING --sent or failed--> COOLDOWN --elapsed--> IDLE

Triggers arriving in COOLDOWN are logged and dropped. The cooldown starts on
every attempted dispatch, whether or not delivery succeeded. The baseline
values used for change detection are replaced on every cycle.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from ..models import ApyChange, VaultComparison

logger = logging.getLogger(__name__)

SendFn = Callable[[str], Awaitable[bool]]


def now_millis() -> int:
    return int(time.time() * 1000)


class AlertPhase(str, Enum):
    IDLE = "idle"
    NOTIFYING = "notifying"
    COOLDOWN = "cooldown"


class AlertOutcome(str, Enum):
    NOT_TRIGGERED = "not_triggered"
    SUPPRESSED = "suppressed"
    DISPATCHED = "dispatched"
    DISPATCH_FAILED = "dispatch_failed"


@dataclass
class AlertState:
    cooldown_ms: int
    last_alert_ms: int | None = None
    last_values: tuple[float, ...] | None = None


class AlertStateMachine:
    """Cooldown and baseline bookkeeping for one monitored entity."""

    def __init__(
        self,
        entity: str,
        cooldown_ms: int,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.entity = entity
        self.state = AlertState(cooldown_ms=cooldown_ms)
        self._clock = clock
        self._dispatching = False

    def phase(self, now_ms: int | None = None) -> AlertPhase:
        if self._dispatching:
            return AlertPhase.NOTIFYING
        if self.in_cooldown(now_ms):
            return AlertPhase.COOLDOWN
        return AlertPhase.IDLE

    def in_cooldown(self, now_ms: int | None = None) -> bool:
        if self.state.last_alert_ms is None:
            return False
        now = self._clock() if now_ms is None else now_ms
        return now - self.state.last_alert_ms < self.state.cooldown_ms

    def observe(self, *values: float) -> tuple[float, ...] | None:
        """Record this cycle's values and return the previous cycle's."""
        previous = self.state.last_values
        self.state.last_values = tuple(values)
        return previous

    async def process(
        self,
        triggered: bool,
        message: str,
        send: SendFn,
        now_ms: int | None = None,
    ) -> AlertOutcome:
        """Dispatch ``message`` through ``send`` unless cooling down."""
        if not triggered:
            return AlertOutcome.NOT_TRIGGERED

        now = self._clock() if now_ms is None else now_ms
        if self.in_cooldown(now):
            remaining = self.state.cooldown_ms - (now - self.state.last_alert_ms)
            logger.info(
                "[%s] Alert cooldown in effect (%ds remaining)",
                self.entity,
                remaining // 1000,
            )
            return AlertOutcome.SUPPRESSED

        self._dispatching = True
        self.state.last_alert_ms = now
        try:
            delivered = await send(message)
        except Exception as e:
            logger.error("[%s] Alert dispatch failed: %s", self.entity, e)
            delivered = False
        finally:
            self._dispatching = False

        if not delivered:
            logger.warning("[%s] Alert was not delivered", self.entity)
            return AlertOutcome.DISPATCH_FAILED

        logger.info("[%s] Alert dispatched", self.entity)
        return AlertOutcome.DISPATCHED


def vault_alert_reasons(
    comparison: VaultComparison,
    change: ApyChange | None,
    diff_threshold: float,
) -> list[str]:
    """Why the vault pair should alert this cycle; empty when it should not."""
    reasons: list[str] = []
    if comparison.magnitude >= diff_threshold:
        reasons.append("difference")
    if change is not None and change.changed:
        reasons.append("apy_change")
    return reasons

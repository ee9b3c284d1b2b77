"""Fan-out of alert and log messages to the configured notifiers."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import AppConfig
from ..interfaces.notifier import Notifier
from ..notifications import TelegramNotifier

logger = logging.getLogger(__name__)


def build_notifiers(config: AppConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram))
    return notifiers


def now_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def format_address(address: str) -> str:
    if len(address) > 16:
        return f"{address[:10]}...{address[-6:]}"
    return address


async def send_alert(notifiers: list[Notifier], message: str) -> bool:
    """Send ``message`` to every notifier; True if at least one delivered."""
    logger.warning("ALERT:\n%s", message)
    delivered = False
    for notifier in notifiers:
        try:
            delivered = await notifier.send_alert(message) or delivered
        except Exception as e:
            logger.error("Notifier send_alert failed: %s", e)
    return delivered


async def send_log(notifiers: list[Notifier], message: str, silent: bool = True) -> bool:
    delivered = False
    for notifier in notifiers:
        try:
            delivered = await notifier.send_log(message, silent=silent) or delivered
        except Exception as e:
            logger.error("Notifier send_log failed: %s", e)
    return delivered

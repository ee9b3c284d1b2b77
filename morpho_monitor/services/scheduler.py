"""Polling loop — runs one monitoring cycle per interval, isolating failures."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from ..errors import FetchError

logger = logging.getLogger(__name__)

CycleFn = Callable[[], Awaitable[Any]]


class ContinuousMonitor(Protocol):
    name: str

    async def run_continuous(self, interval_seconds: int | None = None) -> None: ...


async def run_periodic(
    cycle: CycleFn,
    interval_seconds: float,
    name: str,
    iterations: int | None = None,
) -> int:
    """Run ``cycle`` now and then every ``interval_seconds``.

    Each cycle is awaited to completion before the next sleep starts, so
    cycles never overlap. Errors end the cycle, not the loop.

    Returns the number of cycles run (only reachable with ``iterations``).
    """
    completed = 0
    while True:
        try:
            await cycle()
        except FetchError as e:
            logger.warning("[%s] Could not fetch data, will retry: %s", name, e)
        except Exception as e:
            logger.exception("[%s] Error in monitoring loop: %s", name, e)

        completed += 1
        if iterations is not None and completed >= iterations:
            return completed
        await asyncio.sleep(interval_seconds)


async def run_all(monitors: list[ContinuousMonitor]) -> None:
    """Run every monitor's loop on the current event loop."""
    if not monitors:
        logger.warning("No monitors enabled")
        return
    await asyncio.gather(*(m.run_continuous() for m in monitors))

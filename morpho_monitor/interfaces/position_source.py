"""Position source protocol — per-protocol position reads."""
from typing import Protocol

from ..models import PositionReading


class PositionSource(Protocol):
    """Abstract interface for reading one lending position."""

    @property
    def protocol_name(self) -> str: ...

    async def fetch_position(self) -> PositionReading: ...

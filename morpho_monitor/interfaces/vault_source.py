"""Vault source protocol — yield vault data abstraction."""
from typing import Any, Protocol


class VaultSource(Protocol):
    """Abstract interface for fetching raw vault items for a chain."""

    async def fetch_vaults(self, chain_id: int) -> list[dict[str, Any]]: ...

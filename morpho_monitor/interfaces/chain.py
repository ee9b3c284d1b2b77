"""Chain client protocol — blockchain RPC abstraction."""
from typing import Protocol


class ChainClient(Protocol):
    """Abstract interface for EVM contract reads."""

    async def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes: ...

    async def chain_id(self) -> int: ...

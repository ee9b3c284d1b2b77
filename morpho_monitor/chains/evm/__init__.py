"""EVM chain support."""
from .client import EvmClient

__all__ = ["EvmClient"]

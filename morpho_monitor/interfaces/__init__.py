"""Protocol interfaces for the Morpho monitor."""
from .chain import ChainClient
from .notifier import Notifier
from .position_source import PositionSource
from .vault_source import VaultSource

__all__ = ["ChainClient", "Notifier", "PositionSource", "VaultSource"]

"""Morpho Blue on-chain reads."""
from .adapter import MarketContext, MorphoBlueAdapter

__all__ = ["MarketContext", "MorphoBlueAdapter"]

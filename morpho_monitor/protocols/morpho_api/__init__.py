"""Morpho GraphQL API."""
from .client import MorphoApiClient

__all__ = ["MorphoApiClient"]

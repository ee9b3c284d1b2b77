"""Morpho Blue position risk and vault yield monitor."""

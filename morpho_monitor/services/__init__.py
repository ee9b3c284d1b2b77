"""Service modules"""
from .position_monitor import PositionMonitor
from .scheduler import run_all, run_periodic
from .vault_monitor import VaultMonitor

__all__ = ["PositionMonitor", "VaultMonitor", "run_all", "run_periodic"]

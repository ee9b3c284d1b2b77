"""Exception types raised by the monitor's collaborators."""


class MonitorError(Exception):
    """Base class for monitor errors."""


class FetchError(MonitorError):
    """An external source could not produce data for this cycle."""

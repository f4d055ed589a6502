"""Floodgate exception hierarchy.

The counter itself never raises for in-domain input; these cover the
configuration and command-line layers around it.
"""


class FloodgateError(Exception):
    """Base exception for all Floodgate errors."""


class FloodgateConfigError(FloodgateError):
    """Raised for an invalid or missing floodgate.toml."""

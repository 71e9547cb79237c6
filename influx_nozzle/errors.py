"""
Nozzle Exceptions
=================
Exception classes raised while building a sender.

Delivery failures are never raised; they are classified into
``DeliveryOutcome`` values and logged.
"""

from typing import Optional


class NozzleError(Exception):
    """Base exception for all influx-nozzle errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message if details is None else f"{message}: {details}")


class ConfigurationError(NozzleError):
    """Raised when nozzle properties are missing or invalid."""
    pass


class DestinationError(NozzleError):
    """Raised when the metrics destination cannot provide a host."""
    pass

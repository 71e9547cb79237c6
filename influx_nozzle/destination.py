"""
Metrics Destination
===================
Collaborator that tells the sender where the time-series database lives.
"""

from typing import Protocol, runtime_checkable

from .errors import DestinationError


@runtime_checkable
class MetricsDestination(Protocol):
    """Anything exposing the base URL of the database."""

    def get_host(self) -> str:
        ...


class StaticDestination:
    """Destination with a host fixed at construction time."""

    def __init__(self, host: str):
        if not host or not host.strip():
            raise DestinationError("InfluxDB host is not configured")
        self._host = host.strip().rstrip("/")

    def get_host(self) -> str:
        return self._host

    def __repr__(self) -> str:
        return f"StaticDestination({self._host!r})"

"""
Influx Nozzle
=============
Asynchronous, retrying delivery of line-protocol metric batches to InfluxDB.
"""

__version__ = "0.1.0"

# Configuration
from influx_nozzle.config import BackoffKind, NozzleProperties

# Errors
from influx_nozzle.errors import NozzleError, ConfigurationError, DestinationError

# Destination
from influx_nozzle.destination import MetricsDestination, StaticDestination

# Backoff
from influx_nozzle.backoff import BackoffPolicy, wait_backoff_policy

# Delivery
from influx_nozzle.delivery import (
    DeliveryClient,
    DeliveryOutcome,
    DeliveryRequest,
    Success,
    NonTerminalFailure,
    TransientError,
    FatalError,
    serialize_batch,
    build_write_uri,
)

# Retry
from influx_nozzle.retry import RetryExecutor, RetryPhase, RetryReport, RetryState

# Sender
from influx_nozzle.sender import BatchSender

# Logging
from influx_nozzle.logging_config import setup_logging

__all__ = [
    "__version__",
    "BackoffKind",
    "NozzleProperties",
    "NozzleError",
    "ConfigurationError",
    "DestinationError",
    "MetricsDestination",
    "StaticDestination",
    "BackoffPolicy",
    "wait_backoff_policy",
    "DeliveryClient",
    "DeliveryOutcome",
    "DeliveryRequest",
    "Success",
    "NonTerminalFailure",
    "TransientError",
    "FatalError",
    "serialize_batch",
    "build_write_uri",
    "RetryExecutor",
    "RetryPhase",
    "RetryReport",
    "RetryState",
    "BatchSender",
    "setup_logging",
]

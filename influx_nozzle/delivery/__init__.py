"""
Delivery
========
Single write attempts and the payload they carry.
"""

from .client import DeliveryClient, TRANSIENT_EXCEPTIONS
from .request import DeliveryRequest, serialize_batch, build_write_uri
from .models import (
    DeliveryOutcome,
    Success,
    NonTerminalFailure,
    TransientError,
    FatalError,
    outcome_label,
)

__all__ = [
    "DeliveryClient",
    "TRANSIENT_EXCEPTIONS",
    "DeliveryRequest",
    "serialize_batch",
    "build_write_uri",
    "DeliveryOutcome",
    "Success",
    "NonTerminalFailure",
    "TransientError",
    "FatalError",
    "outcome_label",
]

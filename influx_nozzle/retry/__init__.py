"""
Retry
=====
Attempt loop for batch delivery.
"""

from .models import RetryPhase, RetryState, RetryReport
from .executor import RetryExecutor, log_exhaustion

__all__ = [
    "RetryPhase",
    "RetryState",
    "RetryReport",
    "RetryExecutor",
    "log_exhaustion",
]

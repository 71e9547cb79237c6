"""
Backoff
=======
Wait strategies used between delivery attempts.
"""

from ..config import BackoffKind
from .policy import BackoffPolicy, wait_backoff_policy

__all__ = [
    "BackoffKind",
    "BackoffPolicy",
    "wait_backoff_policy",
]

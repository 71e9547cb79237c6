"""
Backoff Policy
==============
Wait durations between delivery attempts.
"""

import random
from dataclasses import dataclass

import structlog
from tenacity import RetryCallState
from tenacity.wait import wait_base

from ..config import BackoffKind, NozzleProperties

logger = structlog.get_logger(__name__)

EXPONENTIAL_MULTIPLIER = 2.0


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Immutable wait strategy, tagged by ``kind``.

    Example:
        policy = BackoffPolicy(BackoffKind.EXPONENTIAL, 0.1, 1.0)
        policy.wait(3)  # 0.4
    """
    kind: BackoffKind = BackoffKind.EXPONENTIAL
    min_interval: float = 0.1
    max_interval: float = 30.0

    def __post_init__(self):
        if self.min_interval < 0:
            raise ValueError("min_interval must not be negative")
        if self.max_interval < self.min_interval:
            raise ValueError("max_interval must not be lower than min_interval")

    @classmethod
    def from_properties(cls, properties: NozzleProperties) -> "BackoffPolicy":
        policy = cls(
            kind=properties.backoff_policy,
            min_interval=properties.min_backoff,
            max_interval=properties.max_backoff,
        )
        logger.info(
            "backoff_policy_selected",
            policy=policy.kind.value,
            min_interval=policy.min_interval,
            max_interval=policy.max_interval,
        )
        return policy

    def wait(self, attempt: int) -> float:
        """
        Seconds to wait after failed attempt number ``attempt`` (1-based).
        """
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")

        if self.kind == BackoffKind.LINEAR:
            return self.min_interval

        if self.kind == BackoffKind.RANDOM:
            return random.uniform(self.min_interval, self.max_interval)

        # Exponent is bounded so very long retry chains cannot overflow a float
        exponent = min(attempt - 1, 64)
        delay = self.min_interval * (EXPONENTIAL_MULTIPLIER ** exponent)
        return min(delay, self.max_interval)


class wait_backoff_policy(wait_base):
    """Tenacity wait strategy backed by a ``BackoffPolicy``."""

    def __init__(self, policy: BackoffPolicy):
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.policy.wait(retry_state.attempt_number)

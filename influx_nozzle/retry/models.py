"""
Retry Models
============
State and report types for a single retry sequence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..delivery.models import DeliveryOutcome, NonTerminalFailure, Success


class RetryPhase(str, Enum):
    """Phases of a retry sequence."""
    IDLE = "idle"
    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"   # Success or a non-retryable response
    EXHAUSTED = "exhausted"   # Out of attempts, or a fatal error


@dataclass
class RetryState:
    """Mutable progress of one ``execute`` call."""
    phase: RetryPhase = RetryPhase.IDLE
    attempts: int = 0
    last_outcome: Optional[DeliveryOutcome] = None


@dataclass(frozen=True)
class RetryReport:
    """Final state of a finished retry sequence."""
    phase: RetryPhase
    attempts: int
    outcome: Optional[DeliveryOutcome]

    @property
    def delivered(self) -> bool:
        """True only when the database accepted the batch."""
        return isinstance(self.outcome, Success)

    @property
    def rejected(self) -> bool:
        return isinstance(self.outcome, NonTerminalFailure)

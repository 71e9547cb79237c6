"""
Delivery Outcomes
=================
Tagged results of a single write attempt.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    """The database answered 204 No Content."""
    body: str = ""


@dataclass(frozen=True)
class NonTerminalFailure:
    """The database answered with any status other than 204."""
    status_code: int
    body: str = ""


@dataclass(frozen=True)
class TransientError:
    """Network-level failure; eligible for retry."""
    cause: BaseException


@dataclass(frozen=True)
class FatalError:
    """Any other failure; never retried."""
    cause: BaseException


DeliveryOutcome = Union[Success, NonTerminalFailure, TransientError, FatalError]


def outcome_label(outcome: DeliveryOutcome) -> str:
    """Short label used in logs and metrics."""
    if isinstance(outcome, Success):
        return "success"
    if isinstance(outcome, NonTerminalFailure):
        return "non_terminal"
    if isinstance(outcome, TransientError):
        return "transient"
    return "fatal"

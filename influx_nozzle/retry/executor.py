"""
Retry Executor
==============
Drives a delivery operation through repeated attempts with backoff.

Only ``TransientError`` outcomes are retried. ``max_retries`` counts every
attempt, the first one included, so ``max_retries=3`` means at most three
writes.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt

from ..backoff import BackoffPolicy, wait_backoff_policy
from ..delivery.models import (
    DeliveryOutcome,
    FatalError,
    NonTerminalFailure,
    Success,
    TransientError,
    outcome_label,
)
from ..metrics import record_attempt
from .models import RetryPhase, RetryReport, RetryState

logger = structlog.get_logger(__name__)

Operation = Callable[[], Awaitable[DeliveryOutcome]]
RecoveryCallback = Callable[[RetryReport], None]
Sleep = Callable[[float], Awaitable[None]]


def _is_transient(outcome: DeliveryOutcome) -> bool:
    return isinstance(outcome, TransientError)


def _last_outcome(retry_state: RetryCallState) -> DeliveryOutcome:
    return retry_state.outcome.result()


def log_exhaustion(report: RetryReport) -> None:
    """Default recovery: record the attempt count and nothing else."""
    cause = getattr(report.outcome, "cause", None)
    logger.warning(
        "delivery_exhausted",
        attempts=report.attempts,
        outcome=outcome_label(report.outcome) if report.outcome is not None else None,
        error=str(cause) if cause is not None else None,
    )


class RetryExecutor:
    """
    Runs an operation until it succeeds, runs out of attempts, or fails
    fatally.

    Example:
        executor = RetryExecutor(max_retries=3, backoff=policy)
        report = await executor.execute(lambda: client.attempt(uri, body))
        if report.phase == RetryPhase.EXHAUSTED:
            ...

    One executor may serve many concurrent ``execute`` calls; each call
    keeps its own ``RetryState``.
    """

    def __init__(
        self,
        max_retries: int,
        backoff: BackoffPolicy,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.max_retries = max_retries
        self.backoff = backoff
        self._sleep = sleep

    async def execute(
        self,
        operation: Operation,
        recover: Optional[RecoveryCallback] = None,
    ) -> RetryReport:
        """
        Run ``operation`` under the retry policy.

        Args:
            operation: Async callable performing one attempt
            recover: Called with the report once the sequence is exhausted

        Returns:
            RetryReport describing how the sequence ended
        """
        state = RetryState()

        async def attempt() -> DeliveryOutcome:
            state.phase = RetryPhase.ATTEMPTING
            state.attempts += 1
            logger.debug(
                "delivery_attempt",
                attempt=state.attempts,
                max_attempts=self.max_retries,
            )
            try:
                outcome = await operation()
            except Exception as e:
                logger.error(
                    "delivery_attempt_raised",
                    attempt=state.attempts,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                outcome = FatalError(e)
            state.last_outcome = outcome
            record_attempt(outcome_label(outcome))
            return outcome

        def before_sleep(retry_state: RetryCallState) -> None:
            state.phase = RetryPhase.BACKING_OFF
            cause = getattr(state.last_outcome, "cause", None)
            logger.warning(
                "delivery_retry_scheduled",
                attempt=retry_state.attempt_number,
                delay=retry_state.next_action.sleep if retry_state.next_action else None,
                error=str(cause),
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_backoff_policy(self.backoff),
            retry=retry_if_result(_is_transient),
            before_sleep=before_sleep,
            retry_error_callback=_last_outcome,
            sleep=self._sleep,
        )
        outcome = await retrying(attempt)

        if isinstance(outcome, (Success, NonTerminalFailure)):
            state.phase = RetryPhase.SUCCEEDED
        else:
            state.phase = RetryPhase.EXHAUSTED

        report = RetryReport(phase=state.phase, attempts=state.attempts, outcome=outcome)
        if report.phase == RetryPhase.EXHAUSTED:
            (recover or log_exhaustion)(report)
        return report

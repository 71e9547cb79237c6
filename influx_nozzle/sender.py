"""
Batch Sender
============
Fire-and-forget delivery of metric batches to InfluxDB.

``send_batch`` schedules the delivery on the sender's event loop and
returns at once, whether it is called on that loop or from a worker
thread. The caller never sees the outcome: success and failure
show up only in logs and metrics, and no exception raised during delivery
reaches the caller.

Usage:
    sender = BatchSender.from_properties(NozzleProperties.from_env())

    sender.send_batch(["cpu,host=a value=1", "cpu,host=b value=2"])
    ...
    await sender.aclose()
"""

import asyncio
import threading
import uuid
from concurrent.futures import Future
from typing import Optional, Sequence, Set, Tuple, Union

import structlog

from .backoff import BackoffPolicy
from .config import NozzleProperties
from .delivery import (
    DeliveryClient,
    DeliveryRequest,
    FatalError,
    NonTerminalFailure,
    Success,
    TransientError,
    build_write_uri,
    serialize_batch,
)
from .destination import MetricsDestination, StaticDestination
from .errors import DestinationError
from .metrics import BATCH_MESSAGES, BATCHES_INFLIGHT, record_batch
from .retry import RetryExecutor, RetryReport
from .retry.executor import Sleep

logger = structlog.get_logger(__name__)

Delivery = Union["asyncio.Task[None]", "Future[None]"]


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def batch_outcome(report: RetryReport) -> str:
    """Metric label for how a batch delivery ended."""
    if isinstance(report.outcome, Success):
        return "delivered"
    if isinstance(report.outcome, NonTerminalFailure):
        return "rejected"
    if isinstance(report.outcome, TransientError):
        return "exhausted"
    return "failed"


class BatchSender:
    """
    Public entry point of the delivery engine.

    The target URI and the backoff policy are built on first use and then
    shared, read-only, by every delivery of this sender.
    """

    def __init__(
        self,
        properties: NozzleProperties,
        destination: MetricsDestination,
        client: Optional[DeliveryClient] = None,
        sleep: Sleep = asyncio.sleep,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.properties = properties
        self.destination = destination
        self.client = client or DeliveryClient(timeout=properties.http_timeout)
        self._sleep = sleep

        self._uri: Optional[str] = None
        self._backoff_policy: Optional[BackoffPolicy] = None
        self._init_lock = threading.Lock()

        # Deliveries run on this loop, whichever thread hands the batch off
        self._loop = loop or _running_loop()
        self._deliveries: Set[Delivery] = set()
        self._deliveries_lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_properties(
        cls,
        properties: NozzleProperties,
        destination: Optional[MetricsDestination] = None,
        **kwargs,
    ) -> "BatchSender":
        """
        Build a sender from configuration.

        Raises:
            DestinationError: If no destination is given and no host is configured
        """
        if destination is None:
            if not properties.influxdb_host:
                raise DestinationError("No destination given and influxdb_host is not set")
            destination = StaticDestination(properties.influxdb_host)
        return cls(properties, destination, **kwargs)

    @property
    def uri(self) -> str:
        """Write URI, resolved from the destination once."""
        if self._uri is None:
            with self._init_lock:
                if self._uri is None:
                    self._uri = build_write_uri(
                        self.destination.get_host(), self.properties.db_name
                    )
                    logger.debug("write_uri_resolved", uri=self._uri)
        return self._uri

    @property
    def backoff_policy(self) -> BackoffPolicy:
        if self._backoff_policy is None:
            with self._init_lock:
                if self._backoff_policy is None:
                    self._backoff_policy = BackoffPolicy.from_properties(self.properties)
        return self._backoff_policy

    @property
    def pending(self) -> int:
        """Number of deliveries still running."""
        with self._deliveries_lock:
            return sum(1 for delivery in self._deliveries if not delivery.done())

    def send_batch(self, batch: Sequence[str]) -> None:
        """
        Hand a batch off for delivery and return immediately.

        Safe to call from the event loop or from any other thread. On the
        loop the delivery becomes a task; from another thread it is
        submitted to the sender's loop. When no loop is known the batch is
        logged and dropped. The batch is copied, so the caller may reuse
        its list.
        """
        messages = tuple(batch)
        if self._closed:
            self._drop(messages, "sender_closed")
            return

        running = _running_loop()
        if self._loop is None:
            self._loop = running
        loop = self._loop
        if loop is None or loop.is_closed():
            self._drop(messages, "no_event_loop")
            return

        coro = self._deliver(messages)
        if running is loop:
            delivery: Delivery = loop.create_task(coro)
        else:
            try:
                delivery = asyncio.run_coroutine_threadsafe(coro, loop)
            except RuntimeError:
                # Loop closed between the check and the submit
                coro.close()
                self._drop(messages, "no_event_loop")
                return

        with self._deliveries_lock:
            self._deliveries.add(delivery)
        delivery.add_done_callback(self._forget)

    def _forget(self, delivery: Delivery) -> None:
        with self._deliveries_lock:
            self._deliveries.discard(delivery)

    def _drop(self, messages: Tuple[str, ...], reason: str) -> None:
        logger.error("batch_dropped", reason=reason, batch_size=len(messages))
        record_batch("dropped")

    async def _deliver(self, messages: Tuple[str, ...]) -> None:
        # Runs in its own task, so these bindings stay local to this batch
        structlog.contextvars.bind_contextvars(
            batch_id=uuid.uuid4().hex[:12],
            batch_size=len(messages),
        )
        logger.debug("send_batch_enter")
        BATCH_MESSAGES.observe(len(messages))
        BATCHES_INFLIGHT.inc()
        try:
            report = await self._run(messages)
        except Exception:
            logger.exception("batch_delivery_crashed")
            record_batch("failed")
        else:
            record_batch(batch_outcome(report))
        finally:
            BATCHES_INFLIGHT.dec()
            logger.debug("send_batch_exit")

    async def _run(self, messages: Tuple[str, ...]) -> RetryReport:
        request = DeliveryRequest(uri=self.uri, body=serialize_batch(messages))
        executor = RetryExecutor(
            max_retries=self.properties.max_retries,
            backoff=self.backoff_policy,
            sleep=self._sleep,
        )

        report = await executor.execute(lambda: self.client.attempt(request.uri, request.body))

        outcome = report.outcome
        if isinstance(outcome, Success):
            logger.debug("batch_sent", attempts=report.attempts)
        elif isinstance(outcome, NonTerminalFailure):
            logger.error(
                "batch_rejected",
                expected_status=204,
                status_code=outcome.status_code,
                attempts=report.attempts,
            )
            logger.debug("batch_rejected_request", request_body=request.body)
            logger.debug("batch_rejected_response", response_body=outcome.body)
        elif isinstance(outcome, FatalError):
            logger.error(
                "batch_failed",
                attempts=report.attempts,
                error_type=type(outcome.cause).__name__,
                error=str(outcome.cause),
            )
        return report

    async def drain(self) -> None:
        """Wait until every delivery started so far has finished."""
        while True:
            with self._deliveries_lock:
                pending = [delivery for delivery in self._deliveries if not delivery.done()]
            if not pending:
                return
            await asyncio.gather(
                *(d if isinstance(d, asyncio.Future) else asyncio.wrap_future(d) for d in pending),
                return_exceptions=True,
            )

    async def aclose(self) -> None:
        """Stop accepting batches, finish in-flight ones, close the client."""
        self._closed = True
        await self.drain()
        await self.client.aclose()

    async def __aenter__(self) -> "BatchSender":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

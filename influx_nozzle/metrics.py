"""
Delivery Metrics
================
Prometheus metric definitions for batch delivery monitoring.

Metrics live on their own registry so the hosting pipeline decides
whether and where to expose them.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

NOZZLE_REGISTRY = CollectorRegistry()

DELIVERY_ATTEMPTS = Counter(
    name="nozzle_delivery_attempts_total",
    documentation="Write attempts against the database, by classified result",
    labelnames=["result"],
    registry=NOZZLE_REGISTRY,
)

BATCHES = Counter(
    name="nozzle_batches_total",
    documentation="Batches whose delivery finished, by final outcome",
    labelnames=["outcome"],
    registry=NOZZLE_REGISTRY,
)

BATCHES_INFLIGHT = Gauge(
    name="nozzle_batches_inflight",
    documentation="Batches currently being delivered",
    registry=NOZZLE_REGISTRY,
)

BATCH_MESSAGES = Histogram(
    name="nozzle_batch_messages",
    documentation="Number of messages per batch handed to the sender",
    buckets=[1, 10, 50, 100, 500, 1000, 5000, 10000],
    registry=NOZZLE_REGISTRY,
)


def record_attempt(result: str) -> None:
    DELIVERY_ATTEMPTS.labels(result=result).inc()


def record_batch(outcome: str) -> None:
    BATCHES.labels(outcome=outcome).inc()


def export_metrics() -> bytes:
    """Render all nozzle metrics in the Prometheus text format."""
    return generate_latest(NOZZLE_REGISTRY)

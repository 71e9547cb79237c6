"""
Nozzle Logging
==============
Structured logging setup for services embedding the sender.

Usage:
    from influx_nozzle.logging_config import setup_logging

    setup_logging(service_name="metrics-nozzle", level="DEBUG", json_output=False)
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
) -> Any:
    """
    Configure structlog and the stdlib root logger.

    Args:
        service_name: Name added to every log line
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to output JSON (for production)

    Returns:
        Logger bound to the service name
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    # stdlib records (tenacity, httpx) go to the same stream, in the same format
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if json_output:
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors + [structlog.stdlib.add_logger_name],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))
    root_logger.addHandler(handler)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.bind_contextvars(service=service_name)

    logger = structlog.get_logger("influx_nozzle")
    logger.info("logging_configured", service=service_name, level=level.upper())
    return logger

"""
Delivery Request
================
Payload and target URI for a batch write.
"""

from dataclasses import dataclass
from typing import Iterable

import httpx


@dataclass(frozen=True)
class DeliveryRequest:
    """Where a batch goes and what is sent."""
    uri: str
    body: str


def serialize_batch(messages: Iterable[str]) -> str:
    """
    Join line-protocol messages, one per line.

    Every message is followed by a newline, the last one included, so an
    empty batch gives an empty body.
    """
    return "".join(f"{message}\n" for message in messages)


def build_write_uri(host: str, db_name: str) -> str:
    """Build ``{host}/write?db={db_name}`` with the database name encoded."""
    url = httpx.URL(f"{host.rstrip('/')}/write", params={"db": db_name})
    return str(url)

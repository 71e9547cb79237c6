"""
Delivery Client
===============
Performs a single HTTP write of a serialized batch.
"""

from typing import Dict, Optional

import httpx
import structlog

from .. import __version__
from .models import DeliveryOutcome, FatalError, NonTerminalFailure, Success, TransientError

logger = structlog.get_logger(__name__)

# httpx errors that mean the request never got a usable answer
TRANSIENT_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    httpx.ProxyError,
)


class DeliveryClient:
    """
    Async HTTP client that writes line-protocol bodies to InfluxDB.

    Responses are never raised as errors, whatever the status code; the
    status is inspected and turned into a ``DeliveryOutcome``. Only
    network failures come back as ``TransientError``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": f"influx-nozzle/{__version__}"},
        )

    async def aclose(self):
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    def _classify(self, exc: Exception) -> DeliveryOutcome:
        """Map an exception raised by httpx to an outcome."""
        if isinstance(exc, TRANSIENT_EXCEPTIONS):
            return TransientError(exc)
        return FatalError(exc)

    async def attempt(self, uri: str, body: str) -> DeliveryOutcome:
        """POST ``body`` to ``uri`` exactly once."""
        headers: Dict[str, str] = {"Content-Type": "text/plain; charset=utf-8"}
        try:
            response = await self.client.post(uri, content=body.encode("utf-8"), headers=headers)
        except Exception as e:
            outcome = self._classify(e)
            logger.debug(
                "delivery_request_failed",
                uri=uri,
                error_type=type(e).__name__,
                error=str(e),
                transient=isinstance(outcome, TransientError),
            )
            return outcome

        if response.status_code == httpx.codes.NO_CONTENT:
            return Success(response.text)

        return NonTerminalFailure(response.status_code, response.text)

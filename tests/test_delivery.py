"""
Unit Tests for the Delivery Client
==================================
Covers payload building and response/exception classification.
"""

import httpx
import pytest

from influx_nozzle.delivery import (
    DeliveryClient,
    FatalError,
    NonTerminalFailure,
    Success,
    TransientError,
    build_write_uri,
    outcome_label,
    serialize_batch,
)

URI = "http://influx.local:8086/write?db=metrics"


class TestSerializeBatch:
    """Tests for line-protocol payload building."""

    def test_newline_after_every_message(self):
        assert serialize_batch(["cpu value=1", "mem value=2"]) == "cpu value=1\nmem value=2\n"

    def test_single_message(self):
        assert serialize_batch(["cpu value=1"]) == "cpu value=1\n"

    def test_empty_batch(self):
        """An empty batch produces an empty body."""
        assert serialize_batch([]) == ""

    def test_preserves_order(self):
        messages = [f"m{i} value={i}" for i in range(50)]

        assert serialize_batch(messages).splitlines() == messages


class TestBuildWriteUri:
    """Tests for the write endpoint URI."""

    def test_formats_host_and_database(self):
        assert build_write_uri("http://influx.local:8086", "metrics") == URI

    def test_trailing_slash_on_host(self):
        assert build_write_uri("http://influx.local:8086/", "metrics") == URI

    def test_encodes_database_name(self):
        uri = build_write_uri("http://influx.local:8086", "my db&x")

        assert httpx.URL(uri).params["db"] == "my db&x"


class TestDeliveryClient:
    """Tests for a single write attempt."""

    @pytest.mark.asyncio
    async def test_204_is_success(self, mock_http):
        """Should POST the body and report success on 204."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        client = DeliveryClient(client=mock_http(handler))

        outcome = await client.attempt(URI, "cpu value=1\n")

        assert outcome == Success("")
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == URI
        assert seen[0].content == b"cpu value=1\n"
        assert seen[0].headers["content-type"] == "text/plain; charset=utf-8"

    @pytest.mark.asyncio
    async def test_other_status_is_non_terminal_failure(self, mock_http):
        """Any status other than 204 is reported, never raised."""
        client = DeliveryClient(
            client=mock_http(lambda request: httpx.Response(500, text="boom"))
        )

        outcome = await client.attempt(URI, "cpu value=1\n")

        assert outcome == NonTerminalFailure(500, "boom")

    @pytest.mark.asyncio
    async def test_200_is_not_success(self, mock_http):
        client = DeliveryClient(client=mock_http(lambda request: httpx.Response(200)))

        outcome = await client.attempt(URI, "")

        assert isinstance(outcome, NonTerminalFailure)
        assert outcome.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc_type", [
        httpx.ConnectError,
        httpx.ConnectTimeout,
        httpx.ReadTimeout,
        httpx.ReadError,
        httpx.RemoteProtocolError,
    ])
    async def test_network_failures_are_transient(self, mock_http, exc_type):
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("network down", request=request)

        client = DeliveryClient(client=mock_http(handler))

        outcome = await client.attempt(URI, "cpu value=1\n")

        assert isinstance(outcome, TransientError)
        assert isinstance(outcome.cause, exc_type)

    @pytest.mark.asyncio
    async def test_unsupported_protocol_is_fatal(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.UnsupportedProtocol("no ftp here", request=request)

        client = DeliveryClient(client=mock_http(handler))

        outcome = await client.attempt(URI, "")

        assert isinstance(outcome, FatalError)

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_fatal(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            raise ValueError("bug")

        client = DeliveryClient(client=mock_http(handler))

        outcome = await client.attempt(URI, "")

        assert isinstance(outcome, FatalError)
        assert str(outcome.cause) == "bug"

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, mock_http):
        http = mock_http(lambda request: httpx.Response(204))
        client = DeliveryClient(client=http)

        await client.aclose()

        assert not http.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        client = DeliveryClient(timeout=1.0)

        await client.aclose()

        assert client.client.is_closed
        assert client.client.headers["user-agent"].startswith("influx-nozzle/")


class TestOutcomeLabel:
    def test_labels(self):
        assert outcome_label(Success()) == "success"
        assert outcome_label(NonTerminalFailure(500)) == "non_terminal"
        assert outcome_label(TransientError(OSError())) == "transient"
        assert outcome_label(FatalError(ValueError())) == "fatal"

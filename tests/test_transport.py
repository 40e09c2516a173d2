"""Tests for the HTTP transport."""

import json
import threading

import httpx
import pytest

from alertiqo.transport import HttpTransport


class Collector:
    """httpx MockTransport handler that records requests."""

    def __init__(self, status_code: int = 201):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.received = threading.Event()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.received.set()
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})


def _transport(handler) -> HttpTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpTransport("https://collector.example.com", "secret-key", client=client)


class TestSend:
    def test_posts_json_with_api_key(self):
        collector = Collector()
        transport = _transport(collector)
        try:
            assert transport.send({"message": "boom", "level": "error"}) is True
        finally:
            transport.close()

        request = collector.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://collector.example.com/api/errors"
        assert request.headers["X-API-Key"] == "secret-key"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"message": "boom", "level": "error"}

    def test_non_success_status_is_logged(self, caplog):
        transport = _transport(Collector(status_code=401))
        try:
            with caplog.at_level("ERROR"):
                assert transport.send({"message": "x"}) is False
        finally:
            transport.close()
        assert "Failed to send error report" in caplog.text
        assert "401" in caplog.text

    def test_transport_error_is_swallowed(self, caplog):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport = _transport(refuse)
        try:
            with caplog.at_level("ERROR"):
                assert transport.send({"message": "x"}) is False
        finally:
            transport.close()
        assert "connection refused" in caplog.text

    def test_unserializable_values_are_stringified(self):
        collector = Collector()
        transport = _transport(collector)
        try:
            assert transport.send({"data": {"obj": object()}}) is True
        finally:
            transport.close()
        body = json.loads(collector.requests[0].content)
        assert body["data"]["obj"].startswith("<object object")

    def test_url_is_endpoint_plus_path(self):
        transport = HttpTransport("http://localhost:8080", "k")
        try:
            assert transport.url == "http://localhost:8080/api/errors"
        finally:
            transport.close()


class TestDispatch:
    def test_dispatch_returns_without_waiting(self):
        release = threading.Event()
        collector = Collector()

        def slow(request):
            release.wait(timeout=5)
            return collector(request)

        transport = _transport(slow)
        try:
            future = transport.dispatch({"message": "slow"})
            assert not future.done()
            release.set()
            assert future.result(timeout=5) is True
        finally:
            release.set()
            transport.close()
        assert len(collector.requests) == 1

    def test_dispatch_failure_resolves_false(self):
        transport = _transport(Collector(status_code=500))
        try:
            assert transport.dispatch({"message": "x"}).result(timeout=5) is False
        finally:
            transport.close()

    def test_unexpected_error_is_logged_not_raised(self, caplog):
        def explode(request):
            raise ValueError("bad handler")

        transport = _transport(explode)
        try:
            with caplog.at_level("ERROR"):
                assert transport.dispatch({"message": "x"}).result(timeout=5) is False
        finally:
            transport.close()
        assert "Unexpected error while sending error report" in caplog.text

    def test_dispatch_after_close_raises_runtime_error(self):
        transport = _transport(Collector())
        transport.close()
        with pytest.raises(RuntimeError):
            transport.dispatch({"message": "late"})

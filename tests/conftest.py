"""Shared pytest fixtures for the alertiqo test suite."""

from types import SimpleNamespace

import pytest

from alertiqo.client import Alertiqo
from alertiqo.config import ClientConfig
from alertiqo.hosts import NullHost

CHROME_WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class RecordingTransport:
    """Collects dispatched payloads synchronously instead of posting them."""

    def __init__(self):
        self.sent: list[dict] = []
        self.closed = False

    def dispatch(self, payload: dict):
        self.sent.append(payload)

    def close(self):
        self.closed = True


class FakeHost:
    """Host with global signals that the test fires by hand."""

    supports_signals = True
    is_browser = False

    def __init__(self):
        self.uncaught_callbacks = []
        self.rejection_callbacks = []

    def on_uncaught_exception(self, callback):
        self.uncaught_callbacks.append(callback)

    def on_unhandled_rejection(self, callback):
        self.rejection_callbacks.append(callback)

    def page_url(self):
        return None

    def user_agent(self):
        return None


class FakeWindow:
    """Just enough of a browser window for BrowserHost."""

    def __init__(self, href="https://shop.example.com/cart", user_agent=CHROME_WINDOWS_UA):
        self.location = SimpleNamespace(href=href)
        self.navigator = SimpleNamespace(userAgent=user_agent)
        self.listeners: dict[str, list] = {}

    def addEventListener(self, name, listener):
        self.listeners.setdefault(name, []).append(listener)

    def removeEventListener(self, name, listener):
        self.listeners.get(name, []).remove(listener)

    def fire(self, name, **event_fields):
        for listener in list(self.listeners.get(name, [])):
            listener(SimpleNamespace(**event_fields))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_key="test-key", endpoint="https://collector.example.com")


@pytest.fixture
def client(config, transport) -> Alertiqo:
    """Client with no host signals and a recording transport."""
    return Alertiqo(config, host=NullHost(), transport=transport)


@pytest.fixture
def fake_window() -> FakeWindow:
    return FakeWindow()


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()

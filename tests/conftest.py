"""Pytest shared fixtures for the ZeroStack SDK."""
import json
import pathlib
import sys
from typing import Any, List, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests
import socketio

from zerostack.core.client import RequestClient
from zerostack.core.identity import IdentityResolver
from zerostack.sdk import ZeroStack

API_URL = "http://zerostack.test/api"
WS_URL = "http://zerostack.test"
API_KEY = "zs_test_key_0123456789"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from performing real HTTP calls."""

    def _refuse(method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests, "request", _refuse)


# ─────────────────────────────────────────────────────────────────────────────
# HTTP stubs
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: Optional[str] = None,
                 url: str = API_URL):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.url = url

    def json(self):
        return json.loads(self.text)


def envelope(data: Any = None, status_code: int = 200) -> StubResponse:
    return StubResponse({"success": True, "data": data}, status_code)


def failure(error: Optional[str], status_code: int = 400) -> StubResponse:
    payload = {"success": False}
    if error is not None:
        payload["error"] = error
    return StubResponse(payload, status_code)


class RecordingHTTP:
    """Stand-in for ``requests``: records every call and replays queued responses."""

    def __init__(self):
        self.calls: List[dict] = []
        self.responses: List[Any] = []

    def queue(self, *responses: Any) -> "RecordingHTTP":
        self.responses.extend(responses)
        return self

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "headers": dict(headers or {}),
            "json": json,
            "timeout": timeout,
        })
        response = self.responses.pop(0) if self.responses else envelope()
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self) -> dict:
        return self.calls[-1]


@pytest.fixture()
def http():
    return RecordingHTTP()


@pytest.fixture()
def identity():
    return IdentityResolver()


@pytest.fixture()
def client(http, identity):
    return RequestClient(API_URL, API_KEY, identity, http=http)


# ─────────────────────────────────────────────────────────────────────────────
# Socket.IO transport fake
# ─────────────────────────────────────────────────────────────────────────────
class FakeSocket:
    """Minimal ``socketio.Client`` double driven synchronously by tests."""

    def __init__(self, fail_with: Optional[Exception] = None, report_error: bool = True):
        self.fail_with = fail_with
        self.report_error = report_error
        self.handlers: dict = {}
        self.emitted: List[tuple] = []
        self.connect_calls: List[dict] = []
        self.disconnect_calls = 0
        self.connected = False
        self.background_tasks: List[tuple] = []

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def start_background_task(self, target, *args, **kwargs):
        self.background_tasks.append((target, args, kwargs))

    def run_background_tasks(self):
        """Run queued tasks inline, standing in for the client's retry thread."""
        tasks, self.background_tasks = self.background_tasks, []
        for target, args, kwargs in tasks:
            target(*args, **kwargs)

    def connect(self, url, auth=None, socketio_path="socket.io", retry=False, **kwargs):
        self.connect_calls.append({"url": url, "auth": auth, "socketio_path": socketio_path, "retry": retry})
        if self.fail_with is not None:
            if self.report_error:
                self.fire("connect_error", str(self.fail_with))
            raise self.fail_with
        self.connected = True
        self.fire("connect")

    def emit(self, event, data=None):
        if not self.connected:
            raise socketio.exceptions.BadNamespaceError("/ is not a connected namespace.")
        self.emitted.append((event, data))

    def disconnect(self):
        self.disconnect_calls += 1
        if self.connected:
            self.connected = False
            self.fire("disconnect", "client disconnect")

    def drop(self):
        """Simulate a transport-initiated drop."""
        self.connected = False
        self.fire("disconnect", "transport close")

    def reconnect(self):
        self.connected = True
        self.fire("connect")

    def fire(self, event, *args):
        handler = self.handlers.get(event)
        if handler is not None:
            handler(*args)


class FakeTransport:
    """Factory handing out FakeSockets; ``next_failure`` makes the next one fail."""

    def __init__(self):
        self.sockets: List[FakeSocket] = []
        self.next_failure: Optional[Exception] = None
        self.report_error = True

    def __call__(self) -> FakeSocket:
        socket = FakeSocket(self.next_failure, self.report_error)
        self.next_failure = None
        self.sockets.append(socket)
        return socket

    @property
    def socket(self) -> FakeSocket:
        return self.sockets[-1]


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def zs(http, transport):
    return ZeroStack(API_URL, API_KEY, http=http, transport_factory=transport)

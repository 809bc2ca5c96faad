from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from unison import TransportError, TransportResponse


class GatedTransport:
    """Fake transport that blocks every call until `release` is set."""

    def __init__(self, response: TransportResponse | None = None, error: Exception | None = None):
        self.response = response or TransportResponse(status=200, headers={}, body=b'{"id": 1, "name": "first"}')
        self.error = error
        self.calls = []
        self.started = threading.Event()
        self.release = threading.Event()
        self.closed = False
        self._lock = threading.Lock()

    def send(self, request):
        with self._lock:
            self.calls.append(request)
        self.started.set()
        if not self.release.wait(timeout=5):
            raise TransportError("gate never opened")
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def gated():
    return GatedTransport()


@pytest.fixture
def callback_executor():
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ui_thread")
    yield executor
    executor.shutdown(wait=True)

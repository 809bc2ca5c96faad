"""
Unison Transport
One network exchange per ResolvedRequest, over curl-cffi.

Sessions are pooled: libcurl keeps a per-handle connection cache
(DNS -> TCP -> TLS), so handing a released session to the next request
skips connection setup. A session is only ever used by one thread at a time.
"""

import threading
import time
from collections import deque
from typing import Optional, Protocol

from curl_cffi import CurlError
from curl_cffi import requests

from .config import ClientConfig
from .debug import DebugLog
from .errors import TransportError
from .types import ResolvedRequest, TransportResponse


class Transport(Protocol):
    def send(self, request: ResolvedRequest) -> TransportResponse:
        """Perform the exchange; raise TransportError when no response arrives."""
        ...

    def close(self) -> None:
        ...


class SessionPool:
    """Pool of curl-cffi sessions sharing one impersonation profile."""

    def __init__(self, impersonate: Optional[str] = None, max_size: int = 8):
        self._impersonate = impersonate
        self._max_size = max_size
        self._idle: deque = deque()
        self._lock = threading.Lock()

    def acquire(self) -> requests.Session:
        with self._lock:
            if self._idle:
                return self._idle.popleft()
        return requests.Session(impersonate=self._impersonate)

    def release(self, session: requests.Session) -> None:
        session.cookies.clear()
        with self._lock:
            if len(self._idle) < self._max_size:
                self._idle.append(session)
                return
        session.close()

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    def close_all(self) -> None:
        with self._lock:
            while self._idle:
                self._idle.pop().close()


class CurlTransport:
    """
    Default transport.

    TLS certificates are verified unless `insecure_skip_verify` is set, in
    which case every server certificate is accepted.
    """

    def __init__(
        self,
        impersonate: Optional[str] = None,
        insecure_skip_verify: bool = False,
        pool_size: int = 8,
        debug: Optional[DebugLog] = None,
    ):
        self._pool = SessionPool(impersonate=impersonate, max_size=pool_size)
        self._verify = not insecure_skip_verify
        self._debug = debug or DebugLog()
        if insecure_skip_verify:
            self._debug.warn("TLS certificate verification is DISABLED for this transport")
            self._debug.event("insecure_tls", verify=False)

    @classmethod
    def from_config(cls, config: ClientConfig, debug: Optional[DebugLog] = None) -> "CurlTransport":
        return cls(
            impersonate=config.impersonate,
            insecure_skip_verify=config.insecure_skip_verify,
            pool_size=config.max_workers,
            debug=debug,
        )

    @property
    def verify(self) -> bool:
        return self._verify

    def send(self, request: ResolvedRequest) -> TransportResponse:
        session = self._pool.acquire()
        start = time.perf_counter()
        try:
            response = session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=request.timeout,
                verify=self._verify,
                allow_redirects=True,
            )
        except CurlError as e:
            session.close()
            raise TransportError(str(e)) from e
        except BaseException:
            session.close()
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        content = response.content or b""
        headers = {k: v for k, v in response.headers.items()}
        self._pool.release(session)

        return TransportResponse(
            status=int(response.status_code),
            headers=headers,
            body=content,
            url=str(response.url or request.url),
            elapsed_ms=elapsed_ms,
            bytes_sent=len(request.body or b""),
            bytes_received=len(content),
        )

    def close(self) -> None:
        self._pool.close_all()

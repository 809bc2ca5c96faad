"""
Unison HTTP Client
Explicit client object: build -> coalesce -> transport -> decode -> deliver.

Every call returns a concurrent.futures.Future that resolves to a Result and
optionally invokes a callback. Both happen on the client's callback executor,
one completion at a time, so callbacks may touch shared state without extra
locking. Errors are never raised from these methods; they arrive as
Result.error.
"""

import asyncio
from concurrent.futures import Future
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar, Union

from .builder import build_request, request_key
from .config import ClientConfig
from .debug import DebugLog
from .decoder import JSONDecoder
from .dispatcher import CallbackExecutor, CoalescingDispatcher, Waiter
from .errors import EncodingError
from .transport import CurlTransport, Transport
from .types import FileAttachment, HTTPMethod, Result

T = TypeVar("T")

Callback = Callable[[Result], None]
Transform = Callable[[Any], Optional[Any]]


class APIClient:
    """
    HTTP client with in-flight request coalescing.

    Args:
        config: Client configuration (timeouts, TLS policy, key strategy).
            Defaults to ClientConfig().
        transport: Custom Transport. The default CurlTransport is owned and
            closed by the client; a supplied transport is not.
        callback_executor: Where results are delivered. Any object with
            submit(fn, *args). Defaults to a private single-thread executor.

    Do not block on a Future (or call fetch()) from inside a callback: the
    callback executor is the thread that would resolve it.
    """
    __slots__ = ('config', '_debug', '_transport', '_owns_transport', '_dispatcher')

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
        callback_executor: Optional[CallbackExecutor] = None,
    ):
        self.config = config or ClientConfig()
        self._debug = DebugLog(self.config.debug)
        self._owns_transport = transport is None
        self._transport = transport or CurlTransport.from_config(self.config, debug=self._debug)
        self._dispatcher = CoalescingDispatcher(
            self._transport,
            max_workers=self.config.max_workers,
            callback_executor=callback_executor,
            debug=self._debug,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "APIClient":
        return cls(config=ClientConfig.from_env(), **kwargs)

    @property
    def dispatcher(self) -> CoalescingDispatcher:
        return self._dispatcher

    # ── Core ────────────────────────────────────────────────

    def request(
        self,
        url: str,
        method: Union[HTTPMethod, str] = HTTPMethod.GET,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        target: Any = Any,
        transform: Optional[Transform] = None,
        callback: Optional[Callback] = None,
        timeout: Optional[float] = None,
    ) -> "Future[Result]":
        """
        Issue (or join) a request.

        `target` is any type pydantic can validate JSON into; `transform` maps
        the validated value to the final result, returning None to reject it.
        """
        return self._submit(url, method, params, headers, None, target, transform, callback, timeout)

    def upload(
        self,
        url: str,
        files: Iterable[FileAttachment],
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        target: Any = Any,
        transform: Optional[Transform] = None,
        callback: Optional[Callback] = None,
        timeout: Optional[float] = None,
    ) -> "Future[Result]":
        """POST a multipart/form-data body with `files` and `params` as fields."""
        return self._submit(
            url, HTTPMethod.POST, params, headers, list(files), target, transform, callback, timeout
        )

    def _submit(self, url, method, params, headers, files, target, transform, callback, timeout):
        future: "Future[Result]" = Future()
        future.set_running_or_notify_cancel()

        def deliver(result: Result) -> None:
            try:
                if callback is not None:
                    callback(result)
            finally:
                future.set_result(result)

        try:
            with self._debug.stage("build_request", url=url):
                request = build_request(
                    url, method, params, headers, files=files, timeout=timeout, config=self.config
                )
        except EncodingError as e:
            self._dispatcher.post(deliver, Result.failure(e))
            return future

        key = request_key(request, self.config.key_strategy)
        waiter = Waiter(decode=JSONDecoder(target, transform), deliver=deliver)
        self._dispatcher.submit(key, request, waiter)
        return future

    # ── Verb helpers ────────────────────────────────────────

    def get(self, url: str, params=None, headers=None, **kwargs) -> "Future[Result]":
        return self.request(url, HTTPMethod.GET, params, headers, **kwargs)

    def post(self, url: str, params=None, headers=None, **kwargs) -> "Future[Result]":
        return self.request(url, HTTPMethod.POST, params, headers, **kwargs)

    def put(self, url: str, params=None, headers=None, **kwargs) -> "Future[Result]":
        return self.request(url, HTTPMethod.PUT, params, headers, **kwargs)

    def patch(self, url: str, params=None, headers=None, **kwargs) -> "Future[Result]":
        return self.request(url, HTTPMethod.PATCH, params, headers, **kwargs)

    def delete(self, url: str, params=None, headers=None, **kwargs) -> "Future[Result]":
        return self.request(url, HTTPMethod.DELETE, params, headers, **kwargs)

    # ── Blocking / asyncio adapters ─────────────────────────

    def fetch(self, url: str, method: Union[HTTPMethod, str] = HTTPMethod.GET, params=None,
              headers=None, **kwargs) -> Result:
        """Blocking request. Never call from a callback."""
        return self.request(url, method, params, headers, **kwargs).result()

    async def arequest(self, url: str, method: Union[HTTPMethod, str] = HTTPMethod.GET,
                       params=None, headers=None, **kwargs) -> Result:
        return await asyncio.wrap_future(self.request(url, method, params, headers, **kwargs))

    # ── Lifecycle ───────────────────────────────────────────

    def close(self) -> None:
        """Drain outstanding requests and callbacks, then release sessions."""
        self._dispatcher.close(wait=True)
        if self._owns_transport:
            self._transport.close()

    def __enter__(self) -> "APIClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

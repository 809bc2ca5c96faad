"""
Unison Coalescing Dispatcher
Single-flight table for in-flight requests.

Concurrent submissions with the same key share one transport call: the first
submitter schedules it, later submitters are appended to the waiter list.
When the call completes the whole waiter list is taken out of the table
under the lock and every waiter is notified on the designated callback
executor. A submission that arrives after that point starts a new call.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from .debug import DebugLog
from .errors import ParseError, TransportError
from .transport import Transport
from .types import ResolvedRequest, Result, TransportOutcome


class CallbackExecutor(Protocol):
    def submit(self, fn: Callable[..., Any], *args: Any) -> Any:
        ...


@dataclass(frozen=True, slots=True)
class Waiter:
    """`decode` turns the shared outcome into a Result, `deliver` receives it."""
    decode: Callable[[TransportOutcome], Result]
    deliver: Callable[[Result], None]


class CoalescingDispatcher:
    def __init__(
        self,
        transport: Transport,
        max_workers: int = 16,
        callback_executor: Optional[CallbackExecutor] = None,
        debug: Optional[DebugLog] = None,
    ):
        self._transport = transport
        self._debug = debug or DebugLog()
        self._lock = threading.Lock()
        self._in_flight: Dict[str, List[Waiter]] = {}
        self._workers = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="unison_req")
        self._owns_callback_executor = callback_executor is None
        self._callback_executor = callback_executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="unison_callback"
        )
        self._transport_calls = 0
        self._coalesced = 0
        self._closed = False

    # ── Submission ──────────────────────────────────────────

    def submit(self, key: str, request: ResolvedRequest, waiter: Waiter) -> bool:
        """
        Register `waiter` under `key`.

        Returns:
            True if this call scheduled the transport call, False if the
            waiter joined one already in flight.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("dispatcher is closed")
            waiters = self._in_flight.get(key)
            if waiters is not None:
                waiters.append(waiter)
                self._coalesced += 1
                return False
            self._in_flight[key] = [waiter]
            self._transport_calls += 1
            try:
                self._workers.submit(self._run, key, request)
            except BaseException:
                del self._in_flight[key]
                self._transport_calls -= 1
                raise
        return True

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Run `fn` on the callback executor (used for results that never reach the table)."""
        self._callback_executor.submit(self._guarded, fn, *args)

    # ── Completion ──────────────────────────────────────────

    def _run(self, key: str, request: ResolvedRequest) -> None:
        outcome: Optional[TransportOutcome] = None
        try:
            outcome = TransportOutcome(response=self._transport.send(request))
        except TransportError as e:
            outcome = TransportOutcome(error=str(e) or "Request Failed")
        except Exception as e:
            self._debug.warn(f"transport raised {type(e).__name__} for {request.url}: {e}")
            outcome = TransportOutcome(error=f"{type(e).__name__}: {e}")
        finally:
            if outcome is None:
                outcome = TransportOutcome(error="transport call aborted")
            self._complete(key, request, outcome)

    def _complete(self, key: str, request: ResolvedRequest, outcome: TransportOutcome) -> None:
        response = outcome.response
        self._debug.event(
            "network_task_finished",
            method=request.method.value,
            url=request.url,
            status=response.status if response else 0,
            elapsed_ms=round(response.elapsed_ms, 3) if response else None,
            bytes_sent=response.bytes_sent if response else 0,
            bytes_received=response.bytes_received if response else 0,
            error=outcome.error,
        )
        with self._lock:
            waiters = self._in_flight.pop(key, [])
        try:
            self._callback_executor.submit(self._fan_out, key, outcome, waiters)
        except Exception as e:
            self._debug.warn(
                f"could not deliver {len(waiters)} result(s) for {key}: {type(e).__name__}: {e}"
            )
            self._debug.event("callback_failed", key=key, error=repr(e))

    def _fan_out(self, key: str, outcome: TransportOutcome, waiters: List[Waiter]) -> None:
        results: Dict[Any, Result] = {}
        for waiter in waiters:
            try:
                result = self._decode_shared(results, waiter.decode, outcome)
            except Exception as e:
                status = outcome.response.status if outcome.response else None
                result = Result.failure(ParseError(status, f"{type(e).__name__}: {e}"))
            try:
                waiter.deliver(result)
            except Exception as e:
                self._debug.warn(f"waiter for {key} failed: {type(e).__name__}: {e}")
                self._debug.event("callback_failed", key=key, error=repr(e))

    @staticmethod
    def _decode_shared(
        results: Dict[Any, Result],
        decode: Callable[[TransportOutcome], Result],
        outcome: TransportOutcome,
    ) -> Result:
        try:
            cached = results.get(decode)
        except TypeError:
            return decode(outcome)
        if cached is None:
            cached = results[decode] = decode(outcome)
        return cached

    def _guarded(self, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception as e:
            self._debug.warn(f"callback failed: {type(e).__name__}: {e}")
            self._debug.event("callback_failed", key=None, error=repr(e))

    # ── Introspection ───────────────────────────────────────

    @property
    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def is_in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    def waiter_count(self, key: str) -> int:
        with self._lock:
            return len(self._in_flight.get(key, ()))

    @property
    def transport_calls(self) -> int:
        return self._transport_calls

    @property
    def coalesced_count(self) -> int:
        return self._coalesced

    def close(self, wait: bool = True) -> None:
        """Stop accepting work; with `wait`, drain transport calls and callbacks first."""
        with self._lock:
            self._closed = True
        self._workers.shutdown(wait=wait)
        if self._owns_callback_executor:
            self._callback_executor.shutdown(wait=wait)

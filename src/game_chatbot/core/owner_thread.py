from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

_UNSET = object()


class OwnerThreadExecutor:
    """Runs reads of thread-restricted game state on the owning thread.

    Callers on other threads enqueue a request and block on a future until the
    owner drains the queue on its next tick. The owner is either the host's
    game thread (which calls :meth:`bind_current_thread` once and
    :meth:`drain` every tick) or a dedicated thread started with
    :meth:`start`.
    """

    def __init__(
        self,
        *,
        default_timeout: Optional[float] = 10.0,
        logger: logging.Logger | None = None,
    ):
        self._queue: "queue.SimpleQueue[tuple[Callable[[], Any], Future]]" = queue.SimpleQueue()
        self._owner_ident: Optional[int] = None
        self._default_timeout = default_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._closed = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def bind_current_thread(self) -> None:
        self._owner_ident = threading.get_ident()
        self._closed.clear()

    def is_owner_thread(self) -> bool:
        return self._owner_ident is not None and threading.get_ident() == self._owner_ident

    @property
    def running(self) -> bool:
        return self._owner_ident is not None and not self._closed.is_set()

    def call(
        self,
        fn: Callable[[], T],
        *,
        default: T,
        timeout: Optional[float] | object = _UNSET,
    ) -> T:
        if self.is_owner_thread():
            return fn()
        if not self.running:
            self._logger.warning("Owner thread unavailable, returning default for %r", fn)
            return default

        wait_for = self._default_timeout if timeout is _UNSET else timeout
        future: Future = Future()
        self._queue.put((fn, future))
        try:
            return future.result(timeout=wait_for)
        except FutureTimeoutError:
            future.cancel()
            self._logger.warning("Owner thread read timed out after %ss", wait_for)
            return default
        except CancelledError:
            return default
        except KeyboardInterrupt:
            future.cancel()
            raise

    def drain(self, max_items: Optional[int] = None) -> int:
        """Execute queued requests in FIFO order; returns how many ran."""
        handled = 0
        while max_items is None or handled < max_items:
            try:
                fn, future = self._queue.get_nowait()
            except queue.Empty:
                break
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(fn())
            except BaseException as exc:
                future.set_exception(exc)
            handled += 1
        return handled

    def start(self, tick_seconds: float = 0.05, name: str = "chatbot-owner") -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        ready = threading.Event()

        def _run() -> None:
            self.bind_current_thread()
            ready.set()
            while not self._closed.wait(tick_seconds):
                self.drain()
            self._cancel_pending()

        self._closed.clear()
        self._thread = threading.Thread(target=_run, name=name, daemon=True)
        self._thread.start()
        ready.wait()

    def stop(self, join_timeout: float = 1.0) -> None:
        self._closed.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(join_timeout)
        self._thread = None
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        while True:
            try:
                _fn, future = self._queue.get_nowait()
            except queue.Empty:
                return
            future.cancel()

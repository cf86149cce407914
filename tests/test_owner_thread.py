from __future__ import annotations

import threading
from concurrent.futures import Future

import pytest

from game_chatbot.core import owner_thread as owner_thread_module
from game_chatbot.core.owner_thread import OwnerThreadExecutor


def test_call_runs_on_the_owner_thread_when_drained():
    owner = OwnerThreadExecutor(default_timeout=5.0)
    owner.start(tick_seconds=0.01)
    try:
        ran_on: list[int] = []
        value = owner.call(lambda: ran_on.append(threading.get_ident()) or 42, default=-1)
        assert value == 42
        assert ran_on and ran_on[0] != threading.get_ident()
    finally:
        owner.stop()


def test_call_on_owner_thread_runs_inline():
    owner = OwnerThreadExecutor()
    owner.bind_current_thread()
    assert owner.is_owner_thread()
    assert owner.call(lambda: "inline", default="fallback") == "inline"


def test_manual_drain_processes_in_fifo_order():
    owner = OwnerThreadExecutor(default_timeout=5.0)
    order: list[int] = []
    results: list[int] = []
    owner.bind_current_thread()

    def caller(n: int):
        results.append(owner.call(lambda: order.append(n) or n, default=-1))

    first = threading.Thread(target=caller, args=(1,))
    first.start()
    while owner.drain() == 0:
        pass
    first.join()

    second = threading.Thread(target=caller, args=(2,))
    second.start()
    while owner.drain() == 0:
        pass
    second.join()

    assert order == [1, 2]
    assert results == [1, 2]


def test_timeout_returns_default_when_owner_never_drains():
    owner = OwnerThreadExecutor(default_timeout=0.05)
    owner.bind_current_thread()
    outcome: list[str] = []

    worker = threading.Thread(target=lambda: outcome.append(owner.call(lambda: "late", default="unknown")))
    worker.start()
    worker.join(2.0)

    assert outcome == ["unknown"]
    # The cancelled request is skipped on the next drain.
    assert owner.drain() == 0


def test_call_without_running_owner_returns_default():
    owner = OwnerThreadExecutor()
    assert owner.running is False
    assert owner.call(lambda: "value", default="unknown") == "unknown"


def test_stop_releases_waiting_callers():
    owner = OwnerThreadExecutor(default_timeout=None)
    owner.bind_current_thread()
    outcome: list[str] = []
    queued = threading.Event()

    def caller():
        queued.set()
        outcome.append(owner.call(lambda: "never", default="unknown"))

    worker = threading.Thread(target=caller)
    worker.start()
    queued.wait(1.0)
    while worker.is_alive():
        owner.stop()
        worker.join(0.05)

    assert outcome == ["unknown"]
    assert owner.running is False


def test_exceptions_from_the_read_reach_the_caller():
    owner = OwnerThreadExecutor(default_timeout=5.0)
    owner.start(tick_seconds=0.01)
    try:
        def boom():
            raise LookupError("entity gone")

        with pytest.raises(LookupError, match="entity gone"):
            owner.call(boom, default=None)
    finally:
        owner.stop()


class InterruptedFuture(Future):
    created: list["InterruptedFuture"] = []

    def __init__(self):
        super().__init__()
        InterruptedFuture.created.append(self)

    def result(self, timeout=None):
        raise KeyboardInterrupt


def test_interrupt_while_waiting_cancels_request_and_reraises(monkeypatch):
    InterruptedFuture.created = []
    monkeypatch.setattr(owner_thread_module, "Future", InterruptedFuture)
    owner = OwnerThreadExecutor(default_timeout=5.0)
    owner.bind_current_thread()
    outcome: list[str] = []

    def caller():
        try:
            owner.call(lambda: "never", default="unknown")
            outcome.append("returned")
        except KeyboardInterrupt:
            outcome.append("interrupted")

    worker = threading.Thread(target=caller)
    worker.start()
    worker.join(2.0)

    assert outcome == ["interrupted"]
    assert len(InterruptedFuture.created) == 1
    assert InterruptedFuture.created[0].cancelled()
    assert owner.drain() == 0

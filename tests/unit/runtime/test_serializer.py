"""Unit tests for the single-worker serializer."""

from __future__ import annotations

import threading
import time

from runtime.serializer import SingleWorkerSerializer, WorkUnit


def _serializer() -> SingleWorkerSerializer:
    serializer = SingleWorkerSerializer(poll_interval_seconds=0.01)
    serializer.start()
    return serializer


def test_submit_runs_unit_and_stores_result() -> None:
    """Submitted units should run on the worker and keep their result."""
    serializer = _serializer()
    unit = WorkUnit(name="file", action=lambda: 42)

    accepted = serializer.submit(unit)
    unit.done.wait(2.0)
    serializer.stop(2.0)

    assert accepted and unit.result == 42 and not unit.cancelled


def test_units_never_run_concurrently() -> None:
    """At most one unit should be active at any time."""
    serializer = _serializer()
    lock = threading.Lock()
    state = {"active": 0, "max_active": 0}
    units: list[WorkUnit] = []

    def _action() -> None:
        with lock:
            state["active"] += 1
            state["max_active"] = max(state["max_active"], state["active"])
        time.sleep(0.005)
        with lock:
            state["active"] -= 1

    def _produce(name: str) -> None:
        for _ in range(5):
            unit = WorkUnit(name=name, action=_action)
            units.append(unit)
            serializer.submit(unit)

    producers = [threading.Thread(target=_produce, args=(name,)) for name in ("file", "poll")]
    for producer in producers:
        producer.start()
    for producer in producers:
        producer.join(5.0)
    for unit in units:
        unit.done.wait(2.0)
    serializer.stop(2.0)

    assert state["max_active"] == 1 and len(units) == 10


def test_failed_unit_keeps_error_and_worker_continues() -> None:
    """A raising unit should not stop later units."""
    serializer = _serializer()

    def _fail() -> None:
        raise ValueError("bad batch")

    failing = WorkUnit(name="file", action=_fail)
    following = WorkUnit(name="poll", action=lambda: "ok")
    serializer.submit(failing)
    serializer.submit(following)
    following.done.wait(2.0)
    serializer.stop(2.0)

    assert isinstance(failing.error, ValueError) and following.result == "ok"


def test_stop_purges_queued_units_and_lets_in_flight_finish() -> None:
    """Stopping should cancel queued work but not the running unit."""
    serializer = _serializer()
    started = threading.Event()
    release = threading.Event()

    def _block() -> str:
        started.set()
        release.wait(2.0)
        return "finished"

    running = WorkUnit(name="file", action=_block)
    queued = WorkUnit(name="poll", action=lambda: "never")
    serializer.submit(running)
    started.wait(2.0)
    serializer.submit(queued)

    serializer.stop(0.01)
    release.set()
    running.done.wait(2.0)

    assert queued.cancelled and queued.done.is_set() and queued.result is None
    assert running.result == "finished" and not running.cancelled


def test_submit_after_stop_is_refused() -> None:
    """A stopped serializer should refuse new work."""
    serializer = _serializer()
    serializer.stop(1.0)

    assert serializer.submit(WorkUnit(name="poll", action=lambda: None)) is False


def test_blocked_producer_is_released_on_stop() -> None:
    """Producers waiting on a full queue should return once stopped."""
    serializer = _serializer()
    started = threading.Event()
    release = threading.Event()
    serializer.submit(WorkUnit(name="file", action=lambda: (started.set(), release.wait(2.0))))
    started.wait(2.0)
    serializer.submit(WorkUnit(name="file", action=lambda: None))
    results: list[bool] = []
    producer = threading.Thread(
        target=lambda: results.append(serializer.submit(WorkUnit(name="poll", action=lambda: None)))
    )
    producer.start()
    time.sleep(0.05)

    serializer.stop(0.01)
    producer.join(2.0)
    release.set()

    assert results == [False]

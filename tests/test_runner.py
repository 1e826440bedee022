"""Tests for running the capture and publisher tasks together."""

from __future__ import annotations

import threading

from buttonoff.core.runner import run_all


class WaitForStop:
    def __init__(self) -> None:
        self.stopped = False

    def run(self, stop: threading.Event) -> None:
        stop.wait()
        self.stopped = True


class StopsEverything:
    def run(self, stop: threading.Event) -> None:
        stop.set()


class Crashes:
    def run(self, stop: threading.Event) -> None:
        raise RuntimeError("capture socket went away")


def test_run_all_joins_every_runnable():
    stop = threading.Event()
    waiters = [WaitForStop(), WaitForStop()]

    run_all(stop, StopsEverything(), *waiters)

    assert all(waiter.stopped for waiter in waiters)


def test_failing_runnable_stops_the_others(caplog):
    stop = threading.Event()
    waiter = WaitForStop()
    caplog.set_level("ERROR")

    run_all(stop, Crashes(), waiter)

    assert stop.is_set()
    assert waiter.stopped
    assert "Crashes failed" in caplog.text

from __future__ import annotations

import contextlib
import logging
import signal
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class Runnable(Protocol):
    def run(self, stop: threading.Event) -> None: ...


def install_signal_handlers(stop: threading.Event) -> None:
    """Set ``stop`` on SIGINT and SIGTERM."""

    def _stop(signum, _frame) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(ValueError):  # not the main thread
            signal.signal(sig, _stop)


def run_all(stop: threading.Event, *runnables: Runnable) -> None:
    """Run each runnable in its own thread until ``stop`` is set, then join."""

    def _target(runnable: Runnable) -> None:
        try:
            runnable.run(stop)
        except Exception:
            logger.exception("%s failed, stopping", type(runnable).__name__)
            stop.set()

    threads = [
        threading.Thread(
            target=_target, args=(runnable,), name=type(runnable).__name__
        )
        for runnable in runnables
    ]
    for thread in threads:
        thread.start()

    # join with a timeout so signals reach the main thread
    for thread in threads:
        while thread.is_alive():
            thread.join(timeout=0.5)

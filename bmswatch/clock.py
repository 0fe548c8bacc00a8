"""
bmswatch.clock
AUTHOR: carter-vin

Local time source + cancellation for the control loops

- now(): monotonic seconds; each process reads its own clock, nothing is shared
- sleep(): bounded wait that returns early once the stop signal is set
- stop_on_signals(): SIGINT/SIGTERM set the stop signal instead of unwinding
  the loop mid-cycle
"""

from __future__ import annotations

import signal
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float, stop: Optional[threading.Event] = None) -> None: ...


class SystemClock:
    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, stop: Optional[threading.Event] = None) -> None:
        if seconds <= 0:
            return
        if stop is None:
            time.sleep(seconds)
            return
        stop.wait(seconds)


@contextmanager
def stop_on_signals(stop: threading.Event) -> Iterator[None]:
    """
    Route SIGINT and SIGTERM into the cooperative stop signal

    Loops then exit at their next iteration boundary. Previous handlers are
    restored on exit. Handlers can only be installed from the main thread;
    elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = {signum: signal.signal(signum, lambda signum, frame: stop.set()) for signum in STOP_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

# echoservice/worker/shutdown.py
# Graceful stop on SIGTERM/SIGINT. Fires once per process.

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Callable, Iterable
from enum import Enum

log = logging.getLogger("echoservice")

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownState(str, Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class ShutdownCoordinator:
    def __init__(
        self,
        stop: Callable[[], None],
        signals: Iterable[signal.Signals] = SHUTDOWN_SIGNALS,
    ):
        self._stop_server = stop
        self._signals = tuple(signals)
        self._event = threading.Event()
        self.signum: int | None = None
        self.state = ShutdownState.RUNNING

    def install(self) -> None:
        """Register handlers; must run on the main thread."""
        for sig in self._signals:
            signal.signal(sig, self._handle)

    def _handle(self, signum, frame) -> None:
        self.trigger(signum)

    def trigger(self, signum: int) -> None:
        # first signal wins; handlers run serially on the main thread
        if self.signum is not None:
            return
        self.signum = signum
        self._event.set()

    def wait(self) -> int:
        """Block until a signal arrives, stop the server, return the exit code."""
        self._event.wait()
        log.info(f"caught sig: {signal.Signals(self.signum).name}")
        self.state = ShutdownState.SHUTTING_DOWN
        self._stop_server()
        self.state = ShutdownState.TERMINATED
        log.info("shutdown complete")
        return 0
